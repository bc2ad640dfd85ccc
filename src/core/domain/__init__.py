"""
Domain models: CoMID document, triples, environments.

Contains the relationship records (domain membership, reference/endorsed
values) and the document aggregate that validates and serializes them.
"""

from src.core.domain.comid import Comid, TagIdentity
from src.core.domain.entity import Entity, Role
from src.core.domain.environment import (
    Class,
    ClassID,
    Environment,
    Group,
    Instance,
)
from src.core.domain.measurement import Digest, Measurement, Mval
from src.core.domain.membership_triple import (
    DomainMembershipTriple,
    DomainMembershipTriples,
    add_member,
    add_triple,
)
from src.core.domain.triples import Triples, add_domain_membership_triple
from src.core.domain.value_triple import ValueTriple, ValueTriples

__all__ = [
    # Environment
    "Environment",
    "Class",
    "ClassID",
    "Instance",
    "Group",
    # Measurement
    "Measurement",
    "Mval",
    "Digest",
    # Domain membership
    "DomainMembershipTriple",
    "DomainMembershipTriples",
    "add_member",
    "add_triple",
    # Value triples
    "ValueTriple",
    "ValueTriples",
    # Triples aggregate
    "Triples",
    "add_domain_membership_triple",
    # Document
    "Comid",
    "TagIdentity",
    "Entity",
    "Role",
]
