"""
JSON Schema Contract Validators

CoRIM: Section 5.1 (concise-mid-tag), JSON-форма

Модуль для валидации JSON формы CoMID согласно формальному JSON Schema
контракту. Использует библиотеку jsonschema (Draft 2020-12).

Схема:
- comid.json — документ целиком; отдельные записи (environment,
  domainMembershipTriple, ...) валидируются по её $defs.
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы лежат в schema/ рядом с этим модулем (ставятся как package data).
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'comid')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема не проходит meta-validation
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Валидируем саму схему (meta-validation)
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema

    def load_definition(self, schema_name: str, definition: str) -> Dict[str, Any]:
        """
        Схема для одного определения из $defs.

        Raises:
            KeyError: Если определения нет в схеме
        """
        schema = self.load_schema(schema_name)
        defs = schema.get("$defs", {})
        if definition not in defs:
            raise KeyError(f"Definition {definition!r} not found in {schema_name}.json")
        return {
            "$schema": schema["$schema"],
            "$ref": f"#/$defs/{definition}",
            "$defs": defs,
        }


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema
    (всей схемы или одного её определения).
    """

    def __init__(self, schema_name: str, definition: str | None = None):
        """
        Args:
            schema_name: Имя схемы для валидации
            definition: Имя определения из $defs (None — корень схемы)
        """
        self.schema_name = schema_name
        self.definition = definition
        if definition is None:
            self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        else:
            self.schema = _SCHEMA_LOADER.load_definition(schema_name, definition)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Any) -> None:
        """
        Raises:
            ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Any) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Any):
        """
        Итератор по всем ошибкам валидации.

        Yields:
            ValidationError объекты для каждой найденной ошибки
        """
        return self.validator.iter_errors(data)


class ComidValidator(ContractValidator):
    """Валидатор документа CoMID"""

    def __init__(self):
        super().__init__("comid")


class EnvironmentValidator(ContractValidator):
    """Валидатор environment-map"""

    def __init__(self):
        super().__init__("comid", "environment")


class DomainMembershipTripleValidator(ContractValidator):
    """Валидатор domain-membership-triple-record"""

    def __init__(self):
        super().__init__("comid", "domainMembershipTriple")


class ValueTripleValidator(ContractValidator):
    """Валидатор reference/endorsed triple record"""

    def __init__(self):
        super().__init__("comid", "valueTriple")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_comid(data: Dict[str, Any]) -> None:
    """
    Валидация JSON формы CoMID.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    ComidValidator().validate(data)


def validate_environment(data: Dict[str, Any]) -> None:
    EnvironmentValidator().validate(data)


def validate_domain_membership_triple(data: Dict[str, Any]) -> None:
    """
    Валидация JSON формы триплета членства.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    DomainMembershipTripleValidator().validate(data)


def validate_value_triple(data: Dict[str, Any]) -> None:
    ValueTripleValidator().validate(data)
