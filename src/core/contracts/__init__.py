"""
Contract Validation Module

Модуль для валидации JSON контрактов модели опций продукта.
"""

from .validators import (
    CONTRACT_FORMAT_CHECKER,
    CatalogSnapshotValidator,
    ContractValidator,
    OptionNestingValidator,
    SchemaLoader,
    validate_catalog_snapshot,
    validate_option_nesting,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "CatalogSnapshotValidator",
    "OptionNestingValidator",
    "CONTRACT_FORMAT_CHECKER",
    # Functions
    "validate_catalog_snapshot",
    "validate_option_nesting",
]
