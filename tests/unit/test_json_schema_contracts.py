"""
Tests for JSON Schema Contract Validators

Комплексное тестирование JSON Schema контракта CoMID:
- Валидность самой схемы
- Валидация правильных данных
- Детекция нарушений required полей и constraints
- Интеграция с Pydantic моделями (model_dump → схема)
"""

import pytest
from jsonschema import ValidationError

from src.core.contracts import (
    ComidValidator,
    DomainMembershipTripleValidator,
    EnvironmentValidator,
    SchemaLoader,
    validate_comid,
    validate_domain_membership_triple,
    validate_environment,
    validate_value_triple,
)
from src.core.domain import (
    Class,
    Comid,
    DomainMembershipTriple,
    Environment,
    Instance,
    Measurement,
    Mval,
    Role,
    ValueTriple,
)

TEST_UUID = "31fb5abf-023e-4992-aa4e-95f9c1503bfa"
TEST_UEID = bytes.fromhex("02deadbeefdead")


# =============================================================================
# FIXTURES - VALID DATA SAMPLES
# =============================================================================


@pytest.fixture
def valid_membership_triple():
    """Валидный domain-membership триплет в JSON форме."""
    return {
        "domain-id": {
            "class": {
                "id": {"type": "uuid", "value": TEST_UUID},
                "vendor": "ACME",
                "model": "Composite Device",
            }
        },
        "members": [
            {"class": {"vendor": "TPM Vendor", "model": "TPM 2.0"}},
            {"instance": {"type": "ueid", "value": "At6tvu/erQ=="}},
        ],
    }


@pytest.fixture
def valid_comid(valid_membership_triple):
    """Валидный CoMID в JSON форме."""
    return {
        "lang": "en-US",
        "tag-identity": {"id": "composite-device", "version": 1},
        "entities": [
            {"name": "ACME Inc.", "regid": "https://acme.example", "roles": ["creator", "tagCreator"]}
        ],
        "triples": {"domain-membership": [valid_membership_triple]},
    }


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class TestSchemaLoader:
    """Загрузка и meta-validation схем"""

    def test_load_comid_schema(self):
        schema = SchemaLoader().load_schema("comid")
        assert schema["title"].startswith("concise-mid-tag")
        assert "domainMembershipTriple" in schema["$defs"]

    def test_schema_cached(self):
        loader = SchemaLoader()
        assert loader.load_schema("comid") is loader.load_schema("comid")

    def test_missing_schema(self):
        with pytest.raises(FileNotFoundError):
            SchemaLoader().load_schema("does_not_exist")

    def test_missing_definition(self):
        with pytest.raises(KeyError):
            SchemaLoader().load_definition("comid", "noSuchDef")

    def test_missing_directory(self, tmp_path):
        with pytest.raises(RuntimeError):
            SchemaLoader(tmp_path / "nope")

    def test_invalid_schema_rejected(self, tmp_path):
        (tmp_path / "broken.json").write_text('{"type": 12}', encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON Schema"):
            SchemaLoader(tmp_path).load_schema("broken")


# =============================================================================
# DOMAIN MEMBERSHIP TRIPLE CONTRACT
# =============================================================================


class TestDomainMembershipTripleContract:
    """Контракт domainMembershipTriple"""

    def test_valid(self, valid_membership_triple):
        validate_domain_membership_triple(valid_membership_triple)

    def test_missing_members(self, valid_membership_triple):
        del valid_membership_triple["members"]
        with pytest.raises(ValidationError):
            validate_domain_membership_triple(valid_membership_triple)

    def test_empty_members(self, valid_membership_triple):
        valid_membership_triple["members"] = []
        assert not DomainMembershipTripleValidator().is_valid(valid_membership_triple)

    def test_empty_domain(self, valid_membership_triple):
        valid_membership_triple["domain-id"] = {}
        with pytest.raises(ValidationError):
            validate_domain_membership_triple(valid_membership_triple)

    def test_unknown_key(self, valid_membership_triple):
        valid_membership_triple["member"] = []
        with pytest.raises(ValidationError):
            validate_domain_membership_triple(valid_membership_triple)

    def test_iter_errors(self, valid_membership_triple):
        valid_membership_triple["members"] = [{}, {"class": {}}]
        errors = list(DomainMembershipTripleValidator().iter_errors(valid_membership_triple))
        assert len(errors) == 2


# =============================================================================
# ENVIRONMENT / COMID CONTRACT
# =============================================================================


class TestEnvironmentContract:
    def test_valid(self):
        validate_environment({"instance": {"type": "uuid", "value": TEST_UUID}})

    def test_bad_instance_type(self):
        assert not EnvironmentValidator().is_valid({"instance": {"type": "mac", "value": "x"}})

    def test_negative_layer(self):
        with pytest.raises(ValidationError):
            validate_environment({"class": {"layer": -1}})


class TestComidContract:
    def test_valid(self, valid_comid):
        validate_comid(valid_comid)

    def test_missing_tag_identity(self, valid_comid):
        del valid_comid["tag-identity"]
        with pytest.raises(ValidationError):
            validate_comid(valid_comid)

    def test_empty_triples(self, valid_comid):
        valid_comid["triples"] = {}
        assert not ComidValidator().is_valid(valid_comid)

    def test_unknown_role(self, valid_comid):
        valid_comid["entities"][0]["roles"] = ["owner"]
        with pytest.raises(ValidationError):
            validate_comid(valid_comid)


# =============================================================================
# PYDANTIC INTEGRATION
# =============================================================================


class TestPydanticIntegration:
    """model_dump моделей соответствует контракту"""

    def test_comid_model_dump_matches_schema(self):
        comid = (
            Comid()
            .set_language("en-US")
            .set_tag_identity("composite-device", 1)
            .add_entity("ACME Inc.", "https://acme.example", Role.CREATOR)
            .add_domain_membership_triple(
                DomainMembershipTriple(
                    domain=Environment(class_=Class.uuid(TEST_UUID).with_vendor("ACME")),
                    members=[Environment(instance=Instance.ueid(TEST_UEID))],
                )
            )
            .add_reference_value(
                ValueTriple(
                    environment=Environment(class_=Class(vendor="ACME", model="FW")),
                    measurements=[Measurement(value=Mval(svn=1, raw_value="AQID"))],
                )
            )
        )
        comid.validate()
        validate_comid(comid.to_dict())

    def test_json_parsed_by_model(self, valid_comid):
        comid = Comid.model_validate(valid_comid)
        comid.validate()
        assert comid.triples.domain_membership[0].members[1].instance.type == "ueid"

    def test_value_triple_dump(self):
        triple = ValueTriple(
            environment=Environment(class_=Class(vendor="ACME")),
            measurements=[Measurement(key="fw", value=Mval(version="1.0"))],
        )
        validate_value_triple(triple.model_dump(mode="json", by_alias=True, exclude_none=True))
