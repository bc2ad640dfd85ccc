"""
Comid — Документ Concise Module Identifier

CoRIM: Section 5.1 (concise-mid-tag)

Агрегат верхнего уровня: язык, идентичность тега, стороны и раздел
триплетов. Валидация делегируется вложенным моделям, сериализация —
модулям src.core.codec.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.errors import CoRIMValidationError
from src.core.observability import get_logger

from .entity import Entity, Role
from .membership_triple import DomainMembershipTriple
from .triples import Triples
from .value_triple import ValueTriple

logger = get_logger(__name__)

# BCP 47 language tag (упрощённо: primary subtag + необязательные subtags)
_LANGUAGE_RE = re.compile(r"^[A-Za-z]{2,8}(-[A-Za-z0-9]{1,8})*$")


# =============================================================================
# NESTED MODELS
# =============================================================================


class TagIdentity(BaseModel):
    """
    Идентичность тега: id (строка или UUID) и версия.

    CoRIM: tag-identity-map
    """

    id: str = Field(..., min_length=1, description="Идентификатор тега")
    version: int = Field(0, ge=0, description="Версия тега")

    model_config = ConfigDict(frozen=True)


# =============================================================================
# COMID MODEL
# =============================================================================


class Comid(BaseModel):
    """
    Документ CoMID.

    Mutable модель с fluent-сеттерами, каждый возвращает self:

        comid = (
            Comid()
            .set_language("en-US")
            .set_tag_identity("my-tag", 1)
            .add_entity("ACME Inc.", "https://acme.example", Role.CREATOR)
            .add_domain_membership_triple(triple)
        )
    """

    language: str | None = Field(None, alias="lang", description="Язык (BCP 47)")
    tag_identity: TagIdentity | None = Field(
        None, alias="tag-identity", description="Идентичность тега"
    )
    entities: list[Entity] | None = Field(None, description="Ответственные стороны")
    triples: Triples = Field(default_factory=Triples, description="Раздел триплетов")

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str | None) -> str | None:
        if v is not None and not _LANGUAGE_RE.match(v):
            raise ValueError(f"invalid language tag: {v!r}")
        return v

    # -------------------------------------------------------------------------
    # Fluent setters
    # -------------------------------------------------------------------------

    def set_language(self, language: str) -> "Comid":
        self.language = language
        return self

    def set_tag_identity(self, tag_id: str, version: int = 0) -> "Comid":
        self.tag_identity = TagIdentity(id=tag_id, version=version)
        return self

    def add_entity(self, name: str, reg_id: str | None = None, *roles: Role) -> "Comid":
        entity = Entity(name=name, reg_id=reg_id, roles=list(roles))
        if self.entities is None:
            self.entities = []
        self.entities.append(entity)
        return self

    def add_reference_value(self, triple: ValueTriple) -> "Comid":
        self.triples.add_reference_value(triple)
        return self

    def add_endorsed_value(self, triple: ValueTriple) -> "Comid":
        self.triples.add_endorsed_value(triple)
        return self

    def add_domain_membership_triple(self, triple: DomainMembershipTriple) -> "Comid":
        """
        Добавить триплет членства в раздел триплетов.

        Returns:
            self — для цепочек вызовов
        """
        self.triples.add_domain_membership_triple(triple)
        return self

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> None:  # type: ignore[override]
        """
        Валидация документа: tag-identity → entities → triples.

        Raises:
            CoRIMValidationError: Первая найденная ошибка с полной цепочкой контекста
        """
        try:
            self._validate()
        except CoRIMValidationError as err:
            logger.debug("comid_invalid", error=str(err))
            raise

    def _validate(self) -> None:
        if self.tag_identity is None:
            raise CoRIMValidationError("tag-identity validation failed: missing tag-identity")

        if self.entities is not None:
            for i, entity in enumerate(self.entities):
                try:
                    entity.validate()
                except CoRIMValidationError as err:
                    raise CoRIMValidationError.wrap(
                        f"entities validation failed: entity at index {i}", err
                    )

        try:
            self.triples.validate()
        except CoRIMValidationError as err:
            raise CoRIMValidationError.wrap("triples validation failed", err)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_json(self) -> str:
        from src.core.codec.json_codec import encode_comid_json

        return encode_comid_json(self)

    @classmethod
    def from_json(cls, data: str | bytes) -> "Comid":
        from src.core.codec.json_codec import decode_comid_json

        return decode_comid_json(data)

    def to_cbor(self) -> bytes:
        from src.core.codec.cbor import encode_comid

        return encode_comid(self)

    @classmethod
    def from_cbor(cls, data: bytes) -> "Comid":
        from src.core.codec.cbor import decode_comid

        return decode_comid(data)

    def to_dict(self) -> dict[str, Any]:
        """JSON-совместимый dict (ключи — wire-имена, без None)"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
