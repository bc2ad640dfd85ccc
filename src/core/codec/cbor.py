"""
CBOR кодек CoMID

CoRIM: Section 5.1 (CDDL concise-mid-tag), RFC 8949

Компактная бинарная форма: map с целочисленными ключами, теги CBOR для
типизированных идентификаторов, триплеты — массивы фиксированной длины
без имён полей. Использует cbor2.
"""

import base64
from typing import Any, Final
from uuid import UUID

import cbor2
from cbor2 import CBORTag
from pydantic import ValidationError

from src.core.config import get_settings
from src.core.domain.comid import Comid, TagIdentity
from src.core.domain.entity import ROLE_CODES, ROLES_BY_CODE, Entity
from src.core.domain.environment import (
    Class,
    ClassID,
    Environment,
    Group,
    Instance,
    oid_from_der,
)
from src.core.domain.measurement import Digest, Measurement, Mval
from src.core.domain.membership_triple import DomainMembershipTriple, DomainMembershipTriples
from src.core.domain.triples import Triples
from src.core.domain.value_triple import ValueTriple, ValueTriples
from src.core.errors import DecodeError, EncodeError
from src.core.observability import get_logger

logger = get_logger(__name__)

# =============================================================================
# CBOR TAGS
# =============================================================================

TAG_URI: Final[int] = 32
TAG_UUID: Final[int] = 37
TAG_OID: Final[int] = 111
TAG_UEID: Final[int] = 550
TAG_SVN: Final[int] = 552
TAG_RAW_VALUE: Final[int] = 560
TAG_PSA_IMPL_ID: Final[int] = 600

# =============================================================================
# MAP KEYS
# =============================================================================

# concise-mid-tag
COMID_LANGUAGE: Final[int] = 0
COMID_TAG_IDENTITY: Final[int] = 1
COMID_ENTITIES: Final[int] = 2
COMID_TRIPLES: Final[int] = 4

# triples-map
TRIPLES_REFERENCE: Final[int] = 0
TRIPLES_ENDORSED: Final[int] = 1
TRIPLES_MEMBERSHIP: Final[int] = 5

# environment-map
ENV_CLASS: Final[int] = 0
ENV_INSTANCE: Final[int] = 1
ENV_GROUP: Final[int] = 2

# class-map
CLASS_ID: Final[int] = 0
CLASS_VENDOR: Final[int] = 1
CLASS_MODEL: Final[int] = 2
CLASS_LAYER: Final[int] = 3
CLASS_INDEX: Final[int] = 4

# measurement-values-map
MVAL_VERSION: Final[int] = 0
MVAL_SVN: Final[int] = 1
MVAL_DIGESTS: Final[int] = 2
MVAL_RAW_VALUE: Final[int] = 4

_CLASS_ID_TAGS: Final[dict[str, int]] = {
    "uuid": TAG_UUID,
    "oid": TAG_OID,
    "psa.impl-id": TAG_PSA_IMPL_ID,
}


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _expect(value: Any, kind: type | tuple[type, ...], what: str) -> Any:
    if not isinstance(value, kind):
        raise DecodeError(f"{what}: unexpected CBOR type {type(value).__name__}")
    return value


def _expect_tag(value: Any, tags: tuple[int, ...], what: str) -> CBORTag:
    if not isinstance(value, CBORTag) or value.tag not in tags:
        raise DecodeError(f"{what}: expected CBOR tag {' or '.join(map(str, tags))}")
    return value


def _uuid_str(raw: Any, what: str) -> str:
    if isinstance(raw, UUID):
        return str(raw)
    _expect(raw, bytes, what)
    if len(raw) != 16:
        raise DecodeError(f"{what}: UUID must be 16 bytes, got {len(raw)}")
    return str(UUID(bytes=raw))


# =============================================================================
# ENVIRONMENT
# =============================================================================


def environment_to_cbor(env: Environment) -> dict[int, Any]:
    out: dict[int, Any] = {}
    if env.class_ is not None:
        cls_map: dict[int, Any] = {}
        c = env.class_
        if c.id is not None:
            cls_map[CLASS_ID] = CBORTag(_CLASS_ID_TAGS[c.id.type], c.id.to_bytes())
        if c.vendor is not None:
            cls_map[CLASS_VENDOR] = c.vendor
        if c.model is not None:
            cls_map[CLASS_MODEL] = c.model
        if c.layer is not None:
            cls_map[CLASS_LAYER] = c.layer
        if c.index is not None:
            cls_map[CLASS_INDEX] = c.index
        out[ENV_CLASS] = cls_map
    if env.instance is not None:
        tag = TAG_UEID if env.instance.type == "ueid" else TAG_UUID
        out[ENV_INSTANCE] = CBORTag(tag, env.instance.to_bytes())
    if env.group is not None:
        out[ENV_GROUP] = CBORTag(TAG_UUID, env.group.to_bytes())
    return out


def _class_id_from_cbor(item: Any) -> ClassID:
    if isinstance(item, UUID):
        # cbor2 сам декодирует tag 37 в uuid.UUID
        return ClassID(type="uuid", value=str(item))
    tagged = _expect_tag(item, (TAG_UUID, TAG_OID, TAG_PSA_IMPL_ID), "class-id")
    raw = _expect(tagged.value, bytes, "class-id")
    if tagged.tag == TAG_UUID:
        return ClassID(type="uuid", value=_uuid_str(raw, "class-id"))
    if tagged.tag == TAG_OID:
        try:
            return ClassID(type="oid", value=oid_from_der(raw))
        except ValueError as err:
            raise DecodeError(f"class-id: {err}") from err
    return ClassID(type="psa.impl-id", value=_b64(raw))


def environment_from_cbor(item: Any) -> Environment:
    _expect(item, dict, "environment")
    fields: dict[str, Any] = {}

    if ENV_CLASS in item:
        cls_map = _expect(item[ENV_CLASS], dict, "class")
        fields["class_"] = Class(
            id=_class_id_from_cbor(cls_map[CLASS_ID]) if CLASS_ID in cls_map else None,
            vendor=cls_map.get(CLASS_VENDOR),
            model=cls_map.get(CLASS_MODEL),
            layer=cls_map.get(CLASS_LAYER),
            index=cls_map.get(CLASS_INDEX),
        )

    if ENV_INSTANCE in item:
        instance = item[ENV_INSTANCE]
        if isinstance(instance, UUID):
            fields["instance"] = Instance.uuid(instance)
        else:
            tagged = _expect_tag(instance, (TAG_UEID,), "instance")
            fields["instance"] = Instance.ueid(_expect(tagged.value, bytes, "instance"))

    if ENV_GROUP in item:
        group = item[ENV_GROUP]
        if not isinstance(group, UUID):
            group = _expect_tag(group, (TAG_UUID,), "group").value
        fields["group"] = Group(value=_uuid_str(group, "group"))

    return Environment(**fields)


# =============================================================================
# MEASUREMENT
# =============================================================================


def measurement_to_cbor(m: Measurement) -> dict[int, Any]:
    mval: dict[int, Any] = {}
    if m.value.version is not None:
        mval[MVAL_VERSION] = {0: m.value.version}
    if m.value.svn is not None:
        mval[MVAL_SVN] = CBORTag(TAG_SVN, m.value.svn)
    if m.value.digests is not None:
        mval[MVAL_DIGESTS] = [[d.alg, d.to_bytes()] for d in m.value.digests]
    if m.value.raw_value is not None:
        mval[MVAL_RAW_VALUE] = CBORTag(TAG_RAW_VALUE, base64.b64decode(m.value.raw_value))

    out: dict[int, Any] = {}
    if m.key is not None:
        out[0] = m.key
    out[1] = mval
    return out


def measurement_from_cbor(item: Any) -> Measurement:
    _expect(item, dict, "measurement")
    mval = _expect(item.get(1), dict, "measurement-values")
    fields: dict[str, Any] = {}

    if MVAL_VERSION in mval:
        fields["version"] = _expect(mval[MVAL_VERSION], dict, "version").get(0)
    if MVAL_SVN in mval:
        svn = mval[MVAL_SVN]
        fields["svn"] = svn.value if isinstance(svn, CBORTag) else svn
    if MVAL_DIGESTS in mval:
        digests = []
        for entry in _expect(mval[MVAL_DIGESTS], list, "digests"):
            if not isinstance(entry, list) or len(entry) != 2:
                raise DecodeError("digest: expected [alg, value]")
            digests.append(Digest.of(entry[0], _expect(entry[1], bytes, "digest")))
        fields["digests"] = digests
    if MVAL_RAW_VALUE in mval:
        tagged = _expect_tag(mval[MVAL_RAW_VALUE], (TAG_RAW_VALUE,), "raw-value")
        fields["raw_value"] = _b64(_expect(tagged.value, bytes, "raw-value"))

    return Measurement(key=item.get(0), value=Mval(**fields))


# =============================================================================
# TRIPLES
# =============================================================================


def _two_element_array(item: Any, what: str) -> tuple[Any, list]:
    if not isinstance(item, list) or len(item) != 2:
        raise DecodeError(f"{what}: expected a 2-element array")
    return item[0], _expect(item[1], list, what)


def membership_triple_to_cbor(triple: DomainMembershipTriple) -> list[Any]:
    """[domain, [members...]] — порядок полей фиксирован"""
    return [
        environment_to_cbor(triple.domain),
        [environment_to_cbor(m) for m in triple.members],
    ]


def membership_triple_from_cbor(item: Any) -> DomainMembershipTriple:
    domain, members = _two_element_array(item, "domain membership triple")
    return DomainMembershipTriple(
        domain=environment_from_cbor(domain),
        members=[environment_from_cbor(m) for m in members],
    )


def value_triple_to_cbor(triple: ValueTriple) -> list[Any]:
    return [
        environment_to_cbor(triple.environment),
        [measurement_to_cbor(m) for m in triple.measurements],
    ]


def value_triple_from_cbor(item: Any) -> ValueTriple:
    env, measurements = _two_element_array(item, "value triple")
    return ValueTriple(
        environment=environment_from_cbor(env),
        measurements=[measurement_from_cbor(m) for m in measurements],
    )


def triples_to_cbor(triples: Triples) -> dict[int, Any]:
    out: dict[int, Any] = {}
    if triples.reference_values is not None:
        out[TRIPLES_REFERENCE] = [value_triple_to_cbor(t) for t in triples.reference_values]
    if triples.endorsed_values is not None:
        out[TRIPLES_ENDORSED] = [value_triple_to_cbor(t) for t in triples.endorsed_values]
    if triples.domain_membership is not None:
        out[TRIPLES_MEMBERSHIP] = [
            membership_triple_to_cbor(t) for t in triples.domain_membership
        ]
    return out


def triples_from_cbor(item: Any) -> Triples:
    _expect(item, dict, "triples")
    triples = Triples()
    if TRIPLES_REFERENCE in item:
        triples.reference_values = ValueTriples(
            [value_triple_from_cbor(t) for t in _expect(item[TRIPLES_REFERENCE], list, "reference")]
        )
    if TRIPLES_ENDORSED in item:
        triples.endorsed_values = ValueTriples(
            [value_triple_from_cbor(t) for t in _expect(item[TRIPLES_ENDORSED], list, "endorsed")]
        )
    if TRIPLES_MEMBERSHIP in item:
        triples.domain_membership = DomainMembershipTriples(
            [
                membership_triple_from_cbor(t)
                for t in _expect(item[TRIPLES_MEMBERSHIP], list, "membership")
            ]
        )
    return triples


# =============================================================================
# COMID
# =============================================================================


def _tag_id_to_cbor(tag_id: str) -> Any:
    try:
        return CBORTag(TAG_UUID, UUID(tag_id).bytes)
    except ValueError:
        return tag_id


def comid_to_cbor(comid: Comid) -> dict[int, Any]:
    out: dict[int, Any] = {}
    if comid.language is not None:
        out[COMID_LANGUAGE] = comid.language
    if comid.tag_identity is not None:
        out[COMID_TAG_IDENTITY] = {
            0: _tag_id_to_cbor(comid.tag_identity.id),
            1: comid.tag_identity.version,
        }
    if comid.entities is not None:
        entities = []
        for e in comid.entities:
            entry: dict[int, Any] = {0: e.name}
            if e.reg_id is not None:
                entry[1] = CBORTag(TAG_URI, e.reg_id)
            entry[2] = [ROLE_CODES[r] for r in e.roles]
            entities.append(entry)
        out[COMID_ENTITIES] = entities
    out[COMID_TRIPLES] = triples_to_cbor(comid.triples)
    return out


def comid_from_cbor(item: Any) -> Comid:
    _expect(item, dict, "comid")
    comid = Comid(language=item.get(COMID_LANGUAGE))

    if COMID_TAG_IDENTITY in item:
        ti = _expect(item[COMID_TAG_IDENTITY], dict, "tag-identity")
        tag_id = ti.get(0)
        if isinstance(tag_id, UUID):
            tag_id = str(tag_id)
        elif isinstance(tag_id, CBORTag):
            tag_id = _uuid_str(_expect_tag(tag_id, (TAG_UUID,), "tag-id").value, "tag-id")
        comid.tag_identity = TagIdentity(id=tag_id, version=ti.get(1, 0))

    if COMID_ENTITIES in item:
        entities = []
        for e in _expect(item[COMID_ENTITIES], list, "entities"):
            _expect(e, dict, "entity")
            reg_id = e.get(1)
            if isinstance(reg_id, CBORTag):
                reg_id = reg_id.value
            try:
                roles = [ROLES_BY_CODE[code] for code in e.get(2, [])]
            except (KeyError, TypeError) as err:
                raise DecodeError(f"entity: unknown role {err}") from err
            entities.append(Entity(name=e.get(0), reg_id=reg_id, roles=roles))
        comid.entities = entities

    if COMID_TRIPLES in item:
        comid.triples = triples_from_cbor(item[COMID_TRIPLES])
    return comid


# =============================================================================
# PUBLIC API
# =============================================================================


def encode_comid(comid: Comid) -> bytes:
    """
    Сериализация Comid в CBOR.

    Raises:
        CoRIMValidationError: Если validate_on_encode и документ невалиден
        EncodeError: Ошибка cbor2
    """
    if get_settings().validate_on_encode:
        comid.validate()
    try:
        data = cbor2.dumps(comid_to_cbor(comid))
    except (cbor2.CBOREncodeError, TypeError, ValueError) as err:
        raise EncodeError(f"CBOR encoding failed: {err}") from err
    logger.debug("comid_encoded", format="cbor", size=len(data))
    return data


def decode_comid(data: bytes) -> Comid:
    """
    Десериализация Comid из CBOR.

    Raises:
        DecodeError: Некорректный CBOR или структура
        CoRIMValidationError: Если validate_on_decode и документ невалиден
    """
    try:
        comid = comid_from_cbor(cbor2.loads(data))
    except cbor2.CBORDecodeError as err:
        raise DecodeError(f"malformed CBOR: {err}") from err
    except ValidationError as err:
        raise DecodeError(f"invalid comid structure: {err}") from err
    logger.debug("comid_decoded", format="cbor", size=len(data))
    if get_settings().validate_on_decode:
        comid.validate()
    return comid


def encode_membership_triple(triple: DomainMembershipTriple) -> bytes:
    return cbor2.dumps(membership_triple_to_cbor(triple))


def decode_membership_triple(data: bytes) -> DomainMembershipTriple:
    try:
        return membership_triple_from_cbor(cbor2.loads(data))
    except cbor2.CBORDecodeError as err:
        raise DecodeError(f"malformed CBOR: {err}") from err
    except ValidationError as err:
        raise DecodeError(f"invalid domain membership triple: {err}") from err


__all__ = [
    "decode_comid",
    "decode_membership_triple",
    "encode_comid",
    "encode_membership_triple",
    "environment_from_cbor",
    "environment_to_cbor",
]
