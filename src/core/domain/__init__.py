"""
Domain models and value objects.

Contains the product option entities: Option, OptionSet, Selection,
CatalogSnapshot, and fixed-point money helpers.
"""

from src.core.domain.money import (
    MONEY_QUANTUM,
    ZERO_MONEY,
    money_to_str,
    sum_money,
    to_money,
)
from src.core.domain.options import (
    CatalogSnapshot,
    Option,
    OptionSet,
    Selection,
)

__all__ = [
    # Money module
    "MONEY_QUANTUM",
    "ZERO_MONEY",
    "to_money",
    "money_to_str",
    "sum_money",
    # Option models
    "Option",
    "OptionSet",
    "Selection",
    "CatalogSnapshot",
]
