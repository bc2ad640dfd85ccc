"""
Entity — Сторона, ответственная за CoMID

CoRIM: Section 5.1.2 (entity-map, comid-role-type-choice)
"""

from enum import Enum
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.errors import CoRIMValidationError


# =============================================================================
# ENUMS
# =============================================================================


class Role(str, Enum):
    """Роль стороны (CoRIM: comid-role-type-choice)"""

    TAG_CREATOR = "tagCreator"
    CREATOR = "creator"
    MAINTAINER = "maintainer"


# CBOR коды ролей
ROLE_CODES: Final[dict[Role, int]] = {
    Role.TAG_CREATOR: 0,
    Role.CREATOR: 1,
    Role.MAINTAINER: 2,
}
ROLES_BY_CODE: Final[dict[int, Role]] = {v: k for k, v in ROLE_CODES.items()}


# =============================================================================
# ENTITY MODEL
# =============================================================================


class Entity(BaseModel):
    """
    Сторона: имя, необязательный registration id (URI), роли.

    CoRIM: entity-map
    """

    name: str = Field(..., min_length=1, description="Имя стороны")
    reg_id: str | None = Field(None, alias="regid", description="Registration ID (URI)")
    roles: list[Role] = Field(default_factory=list, description="Роли стороны")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("reg_id")
    @classmethod
    def validate_reg_id(cls, v: str | None) -> str | None:
        """reg_id должен быть абсолютным URI (scheme:...)"""
        if v is None:
            return v
        scheme, sep, rest = v.partition(":")
        if not sep or not scheme or not rest or not scheme[0].isalpha():
            raise ValueError(f"reg_id must be an absolute URI, got {v!r}")
        return v

    def validate(self) -> None:  # type: ignore[override]
        if not self.roles:
            raise CoRIMValidationError("empty roles")
