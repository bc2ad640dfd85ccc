"""
Тесты для CBOR и JSON кодеков

CoRIM: Section 5.1 (CDDL), RFC 8949

Проверяет:
1. Wire-формат триплета членства: CBOR [domain, members], JSON domain-id/members
2. Round-trip документа: валидность и структура сохраняются
3. Сохранение validate()-поведения для невалидных триплетов после round-trip
4. Ошибки декодирования некорректного ввода
5. validate_on_encode / validate_on_decode
"""

import json

import cbor2
import pytest

from src.core.codec import (
    decode_comid,
    decode_comid_json,
    decode_json,
    decode_membership_triple,
    encode_comid,
    encode_json,
    encode_membership_triple,
)
from src.core.codec.cbor import (
    TAG_UEID,
    TRIPLES_MEMBERSHIP,
    comid_to_cbor,
    environment_from_cbor,
    environment_to_cbor,
)
from src.core.config import get_settings
from src.core.domain import (
    Class,
    Comid,
    Digest,
    DomainMembershipTriple,
    Environment,
    Group,
    Instance,
    Measurement,
    Mval,
    Role,
    ValueTriple,
)
from src.core.errors import CoRIMValidationError, DecodeError

TEST_UUID = "31fb5abf-023e-4992-aa4e-95f9c1503bfa"
TEST_UEID = bytes.fromhex("02deadbeefdead")


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Каждый тест видит настройки по умолчанию"""
    for var in ("CORIM_VALIDATE_ON_ENCODE", "CORIM_VALIDATE_ON_DECODE", "CORIM_JSON_INDENT"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def composite_triple() -> DomainMembershipTriple:
    """ACME Composite Device: TPM + Secure Element"""
    return DomainMembershipTriple(
        domain=Environment(class_=Class(vendor="ACME", model="Composite Device")),
        members=[
            Environment(class_=Class(vendor="TPM Vendor", model="TPM 2.0")),
            Environment(class_=Class(vendor="SE Vendor", model="SE v1.0")),
        ],
    )


@pytest.fixture
def full_comid(composite_triple: DomainMembershipTriple) -> Comid:
    """Документ со всеми видами триплетов и всеми типами идентификаторов"""
    rich_domain = Environment(
        class_=Class.uuid(TEST_UUID).with_vendor("ACME").with_model("Board").with_layer(1).with_index(0),
        instance=Instance.ueid(TEST_UEID),
        group=Group(value=TEST_UUID),
    )
    oid_member = Environment(class_=Class.oid("2.16.840.1.113741.1.2.3"))
    psa_member = Environment(class_=Class.impl_id(bytes(range(32))))
    uuid_member = Environment(instance=Instance.uuid(TEST_UUID))

    measurement = Measurement(
        key="bootloader",
        value=Mval(
            version="1.0.0",
            svn=3,
            digests=[Digest.of(1, b"\xaa" * 32), Digest.of("sha-384", b"\xbb" * 48)],
            raw_value="AQID",
        ),
    )
    return (
        Comid()
        .set_language("en-GB")
        .set_tag_identity("full-example", 3)
        .add_entity("ACME Inc.", "https://acme.example", Role.CREATOR, Role.TAG_CREATOR)
        .add_entity("Maintainer Ltd", None, Role.MAINTAINER)
        .add_reference_value(ValueTriple(environment=rich_domain, measurements=[measurement]))
        .add_endorsed_value(ValueTriple(environment=psa_member, measurements=[measurement]))
        .add_domain_membership_triple(composite_triple)
        .add_domain_membership_triple(
            DomainMembershipTriple(domain=rich_domain, members=[oid_member, psa_member, uuid_member])
        )
    )


# =============================================================================
# WIRE FORMAT
# =============================================================================


class TestMembershipTripleWireFormat:
    """Формат триплета членства на проводе"""

    def test_cbor_two_element_array(self, composite_triple: DomainMembershipTriple) -> None:
        """CBOR: [domain, [members...]] без имён полей"""
        decoded = cbor2.loads(encode_membership_triple(composite_triple))
        assert isinstance(decoded, list)
        assert len(decoded) == 2
        assert decoded[0] == {0: {1: "ACME", 2: "Composite Device"}}
        assert decoded[1] == [
            {0: {1: "TPM Vendor", 2: "TPM 2.0"}},
            {0: {1: "SE Vendor", 2: "SE v1.0"}},
        ]

    def test_json_keys(self, composite_triple: DomainMembershipTriple) -> None:
        data = json.loads(encode_json(composite_triple))
        assert set(data) == {"domain-id", "members"}
        assert data["domain-id"] == {"class": {"vendor": "ACME", "model": "Composite Device"}}
        assert len(data["members"]) == 2

    def test_comid_membership_key(self, full_comid: Comid) -> None:
        """Триплеты членства — ключ 5 в triples-map"""
        raw = cbor2.loads(encode_comid(full_comid))
        assert len(raw[4][TRIPLES_MEMBERSHIP]) == 2
        assert set(raw[4]) == {0, 1, 5}

    def test_ueid_tag(self) -> None:
        encoded = environment_to_cbor(Environment(instance=Instance.ueid(TEST_UEID)))
        assert encoded[1].tag == TAG_UEID
        assert encoded[1].value == TEST_UEID

    def test_entity_roles_as_ints(self, full_comid: Comid) -> None:
        raw = comid_to_cbor(full_comid)
        assert raw[2][0][2] == [1, 0]
        assert raw[2][1][2] == [2]


# =============================================================================
# ROUND TRIP
# =============================================================================


class TestRoundTrip:
    """encode → decode сохраняет валидность и структуру"""

    def test_membership_triple_cbor(self, composite_triple: DomainMembershipTriple) -> None:
        restored = decode_membership_triple(encode_membership_triple(composite_triple))
        restored.validate()
        assert len(restored.members) == 2
        assert restored == composite_triple

    def test_membership_triple_json(self, composite_triple: DomainMembershipTriple) -> None:
        restored = decode_json(DomainMembershipTriple, encode_json(composite_triple))
        restored.validate()
        assert restored.members == composite_triple.members

    def test_comid_cbor(self, full_comid: Comid) -> None:
        restored = Comid.from_cbor(full_comid.to_cbor())
        restored.validate()
        assert restored == full_comid
        assert len(restored.triples.domain_membership) == 2

    def test_comid_json(self, full_comid: Comid) -> None:
        restored = Comid.from_json(full_comid.to_json())
        restored.validate()
        assert restored == full_comid

    def test_member_order_preserved(self, full_comid: Comid) -> None:
        restored = decode_comid(encode_comid(full_comid))
        original_members = full_comid.triples.domain_membership[1].members
        assert restored.triples.domain_membership[1].members == original_members

    def test_invalid_triple_stays_invalid(self) -> None:
        """После round-trip validate() ведёт себя так же"""
        triple = DomainMembershipTriple(
            domain=Environment(class_=Class(vendor="ACME")),
            members=[Environment(instance=Instance.ueid(TEST_UEID)), Environment()],
        )
        restored = decode_membership_triple(encode_membership_triple(triple))
        with pytest.raises(CoRIMValidationError) as exc_info:
            restored.validate()
        assert "member at index 1" in str(exc_info.value)

    def test_empty_members_stays_invalid(self) -> None:
        triple = DomainMembershipTriple(domain=Environment(class_=Class(vendor="ACME")))
        restored = decode_membership_triple(encode_membership_triple(triple))
        with pytest.raises(CoRIMValidationError, match="no member environments"):
            restored.validate()

    def test_uuid_tag_id(self, composite_triple: DomainMembershipTriple) -> None:
        """UUID tag-id кодируется тегом 37 и восстанавливается строкой"""
        comid = Comid().set_tag_identity(TEST_UUID, 0).add_domain_membership_triple(composite_triple)
        restored = decode_comid(encode_comid(comid))
        assert restored.tag_identity.id == TEST_UUID

    def test_environment_uuid_class(self) -> None:
        env = Environment(class_=Class.uuid(TEST_UUID))
        assert environment_from_cbor(cbor2.loads(cbor2.dumps(environment_to_cbor(env)))) == env


# =============================================================================
# ERRORS / SETTINGS
# =============================================================================


class TestCodecErrors:
    """Некорректный ввод и настройки валидации"""

    def test_malformed_cbor(self) -> None:
        with pytest.raises(DecodeError, match="malformed CBOR"):
            decode_comid(b"\xa1\x00")  # map без значения

    def test_triple_not_array(self) -> None:
        with pytest.raises(DecodeError, match="2-element array"):
            decode_membership_triple(cbor2.dumps({0: 1}))

    def test_triple_wrong_arity(self) -> None:
        with pytest.raises(DecodeError, match="2-element array"):
            decode_membership_triple(cbor2.dumps([{}, [], []]))

    def test_environment_not_map(self) -> None:
        with pytest.raises(DecodeError, match="environment"):
            decode_membership_triple(cbor2.dumps(["x", []]))

    def test_bad_ueid_in_cbor(self) -> None:
        data = cbor2.dumps([{1: cbor2.CBORTag(TAG_UEID, b"\x09" * 8)}, []])
        with pytest.raises(DecodeError, match="invalid domain membership triple"):
            decode_membership_triple(data)

    def test_malformed_json(self) -> None:
        with pytest.raises(DecodeError, match="malformed JSON"):
            decode_comid_json("{not json")

    def test_json_wrong_structure(self) -> None:
        with pytest.raises(DecodeError, match="invalid Comid structure"):
            decode_comid_json('{"tag-identity": {"id": ""}}')

    def test_encode_validates_by_default(self) -> None:
        with pytest.raises(CoRIMValidationError):
            encode_comid(Comid().set_tag_identity("t", 0))

    def test_encode_without_validation(self, monkeypatch) -> None:
        monkeypatch.setenv("CORIM_VALIDATE_ON_ENCODE", "false")
        get_settings.cache_clear()
        data = encode_comid(Comid().set_tag_identity("t", 0))
        assert decode_comid(data).triples.is_empty()

    def test_decode_validates_when_enabled(self, monkeypatch) -> None:
        monkeypatch.setenv("CORIM_VALIDATE_ON_ENCODE", "false")
        monkeypatch.setenv("CORIM_VALIDATE_ON_DECODE", "true")
        get_settings.cache_clear()
        data = encode_comid(Comid().set_tag_identity("t", 0))
        with pytest.raises(CoRIMValidationError, match="triples struct must not be empty"):
            decode_comid(data)

    def test_json_indent(self, monkeypatch, composite_triple: DomainMembershipTriple) -> None:
        monkeypatch.setenv("CORIM_JSON_INDENT", "2")
        get_settings.cache_clear()
        text = encode_json(composite_triple)
        assert "\n  " in text
