"""Options: модель опций продукта.

- Matrix Builder: декартово произведение наборов опций
- Nesting Aggregator: дерево существующих selections по имени OptionSet
- Boundary validation: отклонение некорректных ссылок каталога
- ProductOptions: точка входа для одного продукта
"""

from .boundary import (
    option_index,
    option_set_name_lookup,
    resolve_selection,
    validate_catalog,
)
from .errors import (
    InternalConsistencyError,
    InvalidInputError,
    LeafCollisionError,
    MatrixTooLargeError,
    OptionModelError,
)
from .matrix import MatrixConfig, OptionTuple, build_matrix, matrix_size
from .nesting import (
    CHILDREN_KEY,
    HAS_INPUT_KEY,
    OPTION_ID_KEY,
    PRICE_ADJUSTMENT_KEY,
    SKU_EXTENSION_KEY,
    LeafCollisionPolicy,
    NestingConfig,
    NestingTree,
    build_nesting,
    nesting_to_jsonable,
    next_choices,
    selection_id_at,
    sort_selection_options,
)
from .product import MatrixRow, ProductOptions, combination_price, combination_sku

__all__ = [
    # Errors
    "OptionModelError",
    "InvalidInputError",
    "InternalConsistencyError",
    "LeafCollisionError",
    "MatrixTooLargeError",
    # Matrix
    "MatrixConfig",
    "OptionTuple",
    "build_matrix",
    "matrix_size",
    # Nesting
    "CHILDREN_KEY",
    "HAS_INPUT_KEY",
    "OPTION_ID_KEY",
    "PRICE_ADJUSTMENT_KEY",
    "SKU_EXTENSION_KEY",
    "LeafCollisionPolicy",
    "NestingConfig",
    "NestingTree",
    "build_nesting",
    "nesting_to_jsonable",
    "next_choices",
    "selection_id_at",
    "sort_selection_options",
    # Boundary
    "validate_catalog",
    "option_index",
    "option_set_name_lookup",
    "resolve_selection",
    # Product
    "ProductOptions",
    "MatrixRow",
    "combination_sku",
    "combination_price",
]
