"""ProductOptions: точка входа модели опций одного продукта.

Объединяет проверенный CatalogSnapshot с Matrix Builder и Nesting Aggregator:
- has_options / option_sets_for_select: данные для формы администратора
- option_matrix / option_matrix_rows: все возможные комбинации
- available_option_nesting: дерево существующих selections

Снапшот проверяется при создании (validate_catalog); все представления
вычисляются заново при каждом вызове.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from src.core.contracts import validate_catalog_snapshot, validate_option_nesting
from src.core.domain.money import sum_money
from src.core.domain.options import CatalogSnapshot, Option, OptionSet
from src.options.boundary import (
    option_set_name_lookup,
    resolve_selection,
    validate_catalog,
)
from src.options.matrix import MatrixConfig, OptionTuple, build_matrix
from src.options.nesting import (
    NestingConfig,
    NestingTree,
    build_nesting,
    nesting_to_jsonable,
)

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class MatrixRow:
    """Строка матрицы опций с вычисленными SKU и ценой."""

    options: OptionTuple
    sku: str
    price: Decimal

    # Существующая selection с ровно этим набором опций
    selection_id: Optional[int]


def combination_sku(base_sku: str, options: OptionTuple) -> str:
    """Базовый SKU + непустые sku_extension в порядке кортежа."""
    return base_sku + "".join(option.sku_extension for option in options if option.sku_extension)


def combination_price(base_price: Decimal, options: OptionTuple) -> Decimal:
    """Базовая цена + сумма надбавок опций."""
    return sum_money((option.price_adjustment for option in options), start=base_price)


# =============================================================================
# PRODUCT OPTIONS
# =============================================================================


class ProductOptions:
    """Модель опций продукта поверх снапшота каталога.

    Args:
        snapshot: снапшот опций продукта
        matrix_config: конфигурация Matrix Builder
        nesting_config: конфигурация Nesting Aggregator

    Raises:
        InvalidInputError: если снапшот не согласован
    """

    def __init__(
        self,
        snapshot: CatalogSnapshot,
        matrix_config: Optional[MatrixConfig] = None,
        nesting_config: Optional[NestingConfig] = None
    ):
        validate_catalog(snapshot.option_sets, snapshot.selections)
        self.snapshot = snapshot
        self.matrix_config = matrix_config or MatrixConfig()
        self.nesting_config = nesting_config or NestingConfig()

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        matrix_config: Optional[MatrixConfig] = None,
        nesting_config: Optional[NestingConfig] = None
    ) -> "ProductOptions":
        """Создание из JSON-снапшота (контракт catalog_snapshot).

        Selections в снапшоте заданы списками option_ids и разрешаются
        через опции каталога.

        Raises:
            ValidationError: снапшот не соответствует контракту
            InvalidInputError: ссылки на неизвестные опции
        """
        validate_catalog_snapshot(data)

        option_sets = tuple(
            OptionSet(
                id=raw_set["id"],
                name=raw_set["name"],
                options=[
                    Option(option_set_id=raw_set["id"], **raw_option)
                    for raw_option in raw_set["options"]
                ],
            )
            for raw_set in data["option_sets"]
        )
        selections = tuple(
            resolve_selection(raw["id"], raw["option_ids"], option_sets)
            for raw in data["selections"]
        )

        snapshot = CatalogSnapshot(
            product_id=data["product_id"],
            sku=data["sku"],
            price=data.get("price", "0"),
            option_sets=option_sets,
            selections=selections,
        )
        logger.debug(
            f"Loaded product {snapshot.product_id}: {len(option_sets)} option sets, "
            f"{len(selections)} selections"
        )
        return cls(snapshot, matrix_config=matrix_config, nesting_config=nesting_config)

    # -------------------------------------------------------------------------
    # Option sets
    # -------------------------------------------------------------------------

    def has_options(self) -> bool:
        return len(self.snapshot.option_sets) != 0

    def option_sets_for_select(self) -> List[Tuple[str, int]]:
        """Пары (имя, id) для select-поля формы."""
        return [(option_set.name, option_set.id) for option_set in self.snapshot.option_sets]

    def option_set_names(self) -> Dict[int, str]:
        return option_set_name_lookup(self.snapshot.option_sets)

    # -------------------------------------------------------------------------
    # Matrix
    # -------------------------------------------------------------------------

    def option_matrix(self) -> List[OptionTuple]:
        """Все комбинации опций продукта (см. build_matrix)."""
        return build_matrix(
            self.snapshot.option_sets,
            max_combinations=self.matrix_config.max_combinations
        )

    def option_matrix_rows(self) -> List[MatrixRow]:
        """Матрица опций с SKU, ценой и существующей selection."""
        by_options: Dict[FrozenSet[int], int] = {}
        for selection in self.snapshot.selections:
            by_options.setdefault(selection.option_ids(), selection.id)

        rows = []
        for options in self.option_matrix():
            key = frozenset(option.id for option in options)
            rows.append(MatrixRow(
                options=options,
                sku=combination_sku(self.snapshot.sku, options),
                price=combination_price(self.snapshot.price, options),
                selection_id=by_options.get(key),
            ))
        return rows

    # -------------------------------------------------------------------------
    # Nesting
    # -------------------------------------------------------------------------

    def available_option_nesting(self) -> NestingTree:
        """Дерево существующих selections (см. build_nesting)."""
        return build_nesting(
            self.option_set_names(),
            self.snapshot.selections,
            config=self.nesting_config
        )

    def available_option_nesting_json(self) -> Dict[str, Any]:
        """JSON-версия дерева, проверенная контрактом option_nesting."""
        document = nesting_to_jsonable(self.available_option_nesting())
        validate_option_nesting(document)
        return document
