"""
Contract Validation Module

Модуль для валидации JSON формы CoMID по JSON Schema контракту.
"""

from .validators import (
    ComidValidator,
    ContractValidator,
    DomainMembershipTripleValidator,
    EnvironmentValidator,
    SchemaLoader,
    ValueTripleValidator,
    validate_comid,
    validate_domain_membership_triple,
    validate_environment,
    validate_value_triple,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "ComidValidator",
    "EnvironmentValidator",
    "DomainMembershipTripleValidator",
    "ValueTripleValidator",
    # Functions
    "validate_comid",
    "validate_environment",
    "validate_domain_membership_triple",
    "validate_value_triple",
]
