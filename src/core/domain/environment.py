"""
Environment — Идентичность измеряемого окружения

CoRIM: Section 5.1.4.1 (environment-map)

Immutable Pydantic модели: Environment и его части (Class, Instance, Group).
Формат значений (UUID, OID, base64) проверяется при создании модели,
семантическая непустота — в validate().
"""

import base64
import binascii
import re
from typing import Final, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.errors import CoRIMValidationError

# =============================================================================
# CONSTANTS
# =============================================================================

PSA_IMPL_ID_LEN: Final[int] = 32

UEID_MIN_LEN: Final[int] = 7
UEID_MAX_LEN: Final[int] = 33

# Первый байт UEID — тип идентификатора (EAT, Section 4.2.1)
UEID_TYPE_RAND: Final[int] = 0x01
UEID_TYPE_EUI: Final[int] = 0x02
UEID_TYPE_IMEI: Final[int] = 0x03
UEID_TYPES: Final[frozenset[int]] = frozenset({UEID_TYPE_RAND, UEID_TYPE_EUI, UEID_TYPE_IMEI})

_OID_RE = re.compile(r"^[0-2](\.(0|[1-9][0-9]*))+$")

_FROZEN = ConfigDict(frozen=True, populate_by_name=True)


# =============================================================================
# HELPERS
# =============================================================================


def _canonical_uuid(value: str) -> str:
    try:
        return str(UUID(value))
    except ValueError:
        raise ValueError(f"invalid UUID: {value!r}")


def _b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError(f"invalid base64: {value!r}")


def _check_ueid(raw: bytes) -> None:
    if not UEID_MIN_LEN <= len(raw) <= UEID_MAX_LEN:
        raise ValueError(
            f"UEID length {len(raw)} out of range [{UEID_MIN_LEN}, {UEID_MAX_LEN}]"
        )
    if raw[0] not in UEID_TYPES:
        raise ValueError(f"unknown UEID type 0x{raw[0]:02x}")


# =============================================================================
# CLASS
# =============================================================================


class ClassID(BaseModel):
    """
    Идентификатор класса окружения.

    CoRIM: class-id-type-choice (tagged-uuid / tagged-oid / tagged-impl-id)
    """

    type: Literal["uuid", "oid", "psa.impl-id"] = Field(..., description="Тип идентификатора")
    value: str = Field(..., min_length=1, description="Текстовое представление значения")

    model_config = _FROZEN

    @field_validator("value")
    @classmethod
    def validate_value_format(cls, v: str, info) -> str:
        """Формат значения зависит от type"""
        kind = info.data.get("type")
        if kind == "uuid":
            return _canonical_uuid(v)
        if kind == "oid":
            if not _OID_RE.match(v):
                raise ValueError(f"invalid OID: {v!r}")
        elif kind == "psa.impl-id":
            raw = _b64decode(v)
            if len(raw) != PSA_IMPL_ID_LEN:
                raise ValueError(
                    f"PSA implementation ID must be {PSA_IMPL_ID_LEN} bytes, got {len(raw)}"
                )
        return v

    def to_bytes(self) -> bytes:
        """Бинарное представление для CBOR"""
        if self.type == "uuid":
            return UUID(self.value).bytes
        if self.type == "oid":
            return oid_to_der(self.value)
        return _b64decode(self.value)


class Class(BaseModel):
    """
    Класс окружения: идентификатор, вендор, модель, слой, индекс.

    CoRIM: class-map
    """

    id: ClassID | None = Field(None, description="Идентификатор класса")
    vendor: str | None = Field(None, min_length=1, description="Вендор")
    model: str | None = Field(None, min_length=1, description="Модель")
    layer: int | None = Field(None, ge=0, description="Слой в цепочке загрузки")
    index: int | None = Field(None, ge=0, description="Индекс среди одинаковых компонентов")

    model_config = _FROZEN

    @classmethod
    def uuid(cls, value: str | UUID) -> "Class":
        return cls(id=ClassID(type="uuid", value=str(value)))

    @classmethod
    def oid(cls, value: str) -> "Class":
        return cls(id=ClassID(type="oid", value=value))

    @classmethod
    def impl_id(cls, raw: bytes) -> "Class":
        return cls(id=ClassID(type="psa.impl-id", value=base64.b64encode(raw).decode("ascii")))

    def _replace(self, **changes) -> "Class":
        # model_copy(update=...) не валидирует, поэтому пересоздаём
        return type(self).model_validate({**self.model_dump(), **changes})

    def with_vendor(self, vendor: str) -> "Class":
        return self._replace(vendor=vendor)

    def with_model(self, model: str) -> "Class":
        return self._replace(model=model)

    def with_layer(self, layer: int) -> "Class":
        return self._replace(layer=layer)

    def with_index(self, index: int) -> "Class":
        return self._replace(index=index)

    def is_empty(self) -> bool:
        return all(
            v is None for v in (self.id, self.vendor, self.model, self.layer, self.index)
        )

    def validate(self) -> None:  # type: ignore[override]
        """
        Семантическая валидация класса.

        Raises:
            CoRIMValidationError: Если ни одно поле не задано
        """
        if self.is_empty():
            raise CoRIMValidationError("class must not be empty")


# =============================================================================
# INSTANCE / GROUP
# =============================================================================


class Instance(BaseModel):
    """
    Идентификатор экземпляра окружения.

    CoRIM: instance-id-type-choice (tagged-ueid / tagged-uuid)
    """

    type: Literal["ueid", "uuid"] = Field(..., description="Тип идентификатора")
    value: str = Field(..., min_length=1, description="UEID в base64 или UUID")

    model_config = _FROZEN

    @field_validator("value")
    @classmethod
    def validate_value_format(cls, v: str, info) -> str:
        kind = info.data.get("type")
        if kind == "uuid":
            return _canonical_uuid(v)
        if kind == "ueid":
            _check_ueid(_b64decode(v))
        return v

    @classmethod
    def ueid(cls, raw: bytes) -> "Instance":
        return cls(type="ueid", value=base64.b64encode(raw).decode("ascii"))

    @classmethod
    def uuid(cls, value: str | UUID) -> "Instance":
        return cls(type="uuid", value=str(value))

    def to_bytes(self) -> bytes:
        if self.type == "uuid":
            return UUID(self.value).bytes
        return _b64decode(self.value)


class Group(BaseModel):
    """
    Группа окружений (CoRIM: group-id-type-choice, только tagged-uuid)
    """

    type: Literal["uuid"] = Field("uuid", description="Тип идентификатора группы")
    value: str = Field(..., min_length=1, description="UUID группы")

    model_config = _FROZEN

    @field_validator("value")
    @classmethod
    def validate_uuid(cls, v: str) -> str:
        return _canonical_uuid(v)

    def to_bytes(self) -> bytes:
        return UUID(self.value).bytes


# =============================================================================
# ENVIRONMENT
# =============================================================================


class Environment(BaseModel):
    """
    Окружение: класс и/или экземпляр и/или группа.

    CoRIM: environment-map

    Immutable модель (frozen=True). Пустое окружение можно создать,
    но validate() его отвергает.
    """

    class_: Class | None = Field(None, alias="class", description="Класс окружения")
    instance: Instance | None = Field(None, description="Экземпляр окружения")
    group: Group | None = Field(None, description="Группа окружений")

    model_config = _FROZEN

    def is_empty(self) -> bool:
        return self.class_ is None and self.instance is None and self.group is None

    def validate(self) -> None:  # type: ignore[override]
        """
        Семантическая валидация окружения.

        Raises:
            CoRIMValidationError: Пустое окружение или пустой класс
        """
        if self.is_empty():
            raise CoRIMValidationError("environment must not be empty")

        if self.class_ is not None:
            try:
                self.class_.validate()
            except CoRIMValidationError as err:
                raise CoRIMValidationError.wrap("class validation failed", err)


# =============================================================================
# OID DER
# =============================================================================


def oid_to_der(dotted: str) -> bytes:
    """
    Dotted-decimal OID → DER-кодирование без tag/length (CoRIM: tagged-oid-type).
    """
    arcs = [int(a) for a in dotted.split(".")]
    out = bytearray()
    first = arcs[0] * 40 + arcs[1]
    for arc in [first] + arcs[2:]:
        chunk = [arc & 0x7F]
        arc >>= 7
        while arc:
            chunk.append(0x80 | (arc & 0x7F))
            arc >>= 7
        out.extend(reversed(chunk))
    return bytes(out)


def oid_from_der(raw: bytes) -> str:
    """DER-тело OID → dotted-decimal"""
    if not raw:
        raise ValueError("empty OID")
    arcs: list[int] = []
    value = 0
    for byte in raw:
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            arcs.append(value)
            value = 0
    if raw[-1] & 0x80:
        raise ValueError("truncated OID")
    first = arcs[0]
    if first < 80:
        head = [first // 40, first % 40]
    else:
        head = [2, first - 80]
    return ".".join(str(a) for a in head + arcs[1:])
