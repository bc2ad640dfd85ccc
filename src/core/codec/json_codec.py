"""
JSON кодек CoMID

Текстовая форма: объекты с именованными ключами (lang, tag-identity,
entities, triples, domain-id, members, ...). Имена ключей задаются
alias'ами Pydantic моделей.
"""

import json
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from src.core.config import get_settings
from src.core.domain.comid import Comid
from src.core.errors import DecodeError
from src.core.observability import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


def encode_json(model: BaseModel) -> str:
    """Сериализация любой модели пакета в JSON (wire-имена ключей, без null)"""
    data = model.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, indent=get_settings().json_indent)


def decode_json(model_cls: type[M], data: str | bytes) -> M:
    """
    Десериализация модели из JSON.

    Raises:
        DecodeError: Некорректный JSON или структура не соответствует модели
    """
    try:
        return model_cls.model_validate(json.loads(data))
    except json.JSONDecodeError as err:
        raise DecodeError(f"malformed JSON: {err}") from err
    except ValidationError as err:
        raise DecodeError(f"invalid {model_cls.__name__} structure: {err}") from err


def encode_comid_json(comid: Comid) -> str:
    """
    Raises:
        CoRIMValidationError: Если validate_on_encode и документ невалиден
    """
    if get_settings().validate_on_encode:
        comid.validate()
    text = encode_json(comid)
    logger.debug("comid_encoded", format="json", size=len(text))
    return text


def decode_comid_json(data: str | bytes) -> Comid:
    comid = decode_json(Comid, data)
    logger.debug("comid_decoded", format="json", size=len(data))
    if get_settings().validate_on_decode:
        comid.validate()
    return comid
