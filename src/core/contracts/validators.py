"""
JSON Schema Contract Validators

Модуль для валидации JSON данных согласно формальным JSON Schema контрактам.
Использует библиотеку jsonschema для проверки соответствия данных схемам.

Схемы (package data, src/core/contracts/schema/):
- catalog_snapshot.json (входной снапшот опций продукта)
- option_nesting.json (выходное дерево option nesting для фронтенда)

Помимо схем:
- format "money": каноническая fixed-point строка ("1.50", не "1.5" и не "01.50")
- option_nesting: каждый selection id встречается в дереве как leaf не более одного раза
"""

import json
from importlib import resources
from typing import Any, Dict, Iterator, List, Sequence

import jsonschema
from jsonschema import Draft202012Validator, FormatChecker, ValidationError

from src.core.domain.money import money_to_str


# =============================================================================
# FORMAT CHECKER
# =============================================================================


CONTRACT_FORMAT_CHECKER = FormatChecker()


@CONTRACT_FORMAT_CHECKER.checks("money", raises=ValueError)
def is_money(instance: Any) -> bool:
    """Строка денежного значения в канонической форме money_to_str()."""
    if not isinstance(instance, str):
        return True
    return money_to_str(instance) == instance


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы лежат в пакете (schema/ рядом с этим модулем) и читаются через
    importlib.resources, поэтому доступны и из установленного wheel.
    """

    def __init__(self):
        self._schema_dir = resources.files(__package__) / "schema"
        if not self._schema_dir.is_dir():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'option_nesting')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема не является валидной JSON Schema
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_file = self._schema_dir / f"{schema_name}.json"
        if not schema_file.is_file():
            raise FileNotFoundError(f"Schema not found: {schema_file}")

        schema = json.loads(schema_file.read_text(encoding="utf-8"))

        # Валидируем саму схему (meta-validation)
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Сначала проверяется схема (включая format "money"). Проверки,
    которые схема выразить не может, подклассы добавляют в
    iter_domain_errors(); они выполняются только для данных, уже
    прошедших схему.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(
            self.schema, format_checker=CONTRACT_FORMAT_CHECKER
        )

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация данных против схемы и доменных правил контракта.

        Raises:
            ValidationError: Если данные не соответствуют контракту
        """
        self.validator.validate(data)
        for error in self.iter_domain_errors(data):
            raise error

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Проверка валидности данных без exception."""
        return next(self.iter_errors(data), None) is None

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        """Итератор по всем ошибкам валидации."""
        errors = list(self.validator.iter_errors(data))
        if not errors:
            errors = list(self.iter_domain_errors(data))
        return iter(errors)

    def iter_domain_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        return iter(())


class CatalogSnapshotValidator(ContractValidator):
    """Валидатор для catalog_snapshot контракта."""

    def __init__(self):
        super().__init__("catalog_snapshot")


class OptionNestingValidator(ContractValidator):
    """
    Валидатор для option_nesting контракта.

    Дополнительно к схеме: leaf (children = selection id) каждой selection
    встречается в дереве не более одного раза.
    """

    def __init__(self):
        super().__init__("option_nesting")

    def iter_domain_errors(self, data: Dict[str, Any]) -> Iterator[ValidationError]:
        seen: Dict[int, List[str]] = {}
        for selection_id, path in _iter_leaves(data, []):
            if selection_id in seen:
                yield ValidationError(
                    f"Selection {selection_id} appears as a leaf more than once: "
                    f"{'/'.join(seen[selection_id])} and {'/'.join(path)}",
                    path=_document_path(path),
                )
            else:
                seen[selection_id] = path


def _iter_leaves(level: Dict[str, Any], names: List[str]):
    """(selection id, путь имён опций) для каждого leaf дерева."""
    for name, node in level.items():
        path = names + [name]
        children = node["children"]
        if isinstance(children, dict):
            yield from _iter_leaves(children, path)
        else:
            yield children, path


def _document_path(names: Sequence[str]) -> List[str]:
    """Путь JSON-документа до слота children последнего узла."""
    path: List[str] = []
    for index, name in enumerate(names):
        if index:
            path.append("children")
        path.append(name)
    path.append("children")
    return path


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_catalog_snapshot(data: Dict[str, Any]) -> None:
    """
    Валидация catalog_snapshot данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    CatalogSnapshotValidator().validate(data)


def validate_option_nesting(data: Dict[str, Any]) -> None:
    """
    Валидация option_nesting данных (JSON-форма, см. nesting_to_jsonable).

    Raises:
        ValidationError: Если данные не соответствуют контракту
    """
    OptionNestingValidator().validate(data)
