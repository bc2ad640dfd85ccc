"""
Measurement — Измерение окружения

CoRIM: Section 5.1.4.1.4 (measurement-map, measurement-values-map)

Полезная нагрузка reference-values / endorsed-values триплетов.
Поддерживается подмножество mval: version, svn, digests, raw-value.
"""

import base64
import binascii

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.errors import CoRIMValidationError

_FROZEN = ConfigDict(frozen=True, populate_by_name=True)


class Digest(BaseModel):
    """
    Хэш измерения: алгоритм и значение.

    CoRIM: digest = [alg: int / text, val: bytes]
    """

    alg: int | str = Field(..., description="Алгоритм (IANA Named Information id или имя)")
    value: str = Field(..., min_length=1, description="Значение хэша (base64)")

    model_config = _FROZEN

    @field_validator("alg")
    @classmethod
    def validate_alg(cls, v: int | str) -> int | str:
        if isinstance(v, str) and not v:
            raise ValueError("digest algorithm must not be empty")
        if isinstance(v, int) and v < 0:
            raise ValueError(f"digest algorithm id {v} must be non-negative")
        return v

    @field_validator("value")
    @classmethod
    def validate_base64(cls, v: str) -> str:
        try:
            raw = base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError(f"invalid base64 digest: {v!r}")
        if not raw:
            raise ValueError("digest value must not be empty")
        return v

    @classmethod
    def of(cls, alg: int | str, raw: bytes) -> "Digest":
        return cls(alg=alg, value=base64.b64encode(raw).decode("ascii"))

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.value)


class Mval(BaseModel):
    """Значения измерения (CoRIM: measurement-values-map)"""

    version: str | None = Field(None, min_length=1, description="Версия")
    svn: int | None = Field(None, ge=0, description="Security version number")
    digests: list[Digest] | None = Field(None, description="Хэши")
    raw_value: str | None = Field(
        None, alias="raw-value", description="Сырое значение (base64)"
    )

    model_config = _FROZEN

    @field_validator("raw_value")
    @classmethod
    def validate_raw_value(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError(f"invalid base64 raw-value: {v!r}")
        return v

    def validate(self) -> None:  # type: ignore[override]
        if all(v is None for v in (self.version, self.svn, self.digests, self.raw_value)):
            raise CoRIMValidationError("no measurement value set")
        if self.digests is not None and len(self.digests) == 0:
            raise CoRIMValidationError("digests must not be empty")


class Measurement(BaseModel):
    """
    Измерение: необязательный ключ и значения.

    CoRIM: measurement-map (mkey / mval)
    """

    key: str | None = Field(None, min_length=1, description="Ключ измерения (mkey)")
    value: Mval = Field(..., description="Значения измерения (mval)")

    model_config = _FROZEN

    def validate(self) -> None:  # type: ignore[override]
        """
        Raises:
            CoRIMValidationError: Если mval пуст
        """
        try:
            self.value.validate()
        except CoRIMValidationError as err:
            raise CoRIMValidationError.wrap("measurement values validation failed", err)
