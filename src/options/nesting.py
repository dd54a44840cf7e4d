"""Option Nesting: дерево существующих selections продукта.

Используется для выбора одной опции и поиска того, что доступно дальше.
JSON-версия предназначена для JS-виджета выбора (может быть большой).
Опции вложены в порядке OptionSet.name.

Структура:
    {
        "Blue": {
            "children": {
                "Plaid": {"children": 11, ...},     <-- leaf: selection id
                "Striped": {"children": 12, ...},
            },
            "x_has_user_input": False,
            "option_id": 37,
            "price_adjustment": Decimal("0.00"),
            "sku_extension": "-BL",
        },
    }

Правила записи:
- метаданные узла перезаписываются при каждом посещении (last writer wins)
- слот children записывается только если он ещё пуст (first writer wins)
- leaf id пишется только для последней опции отсортированного пути selection
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.core.domain.money import money_to_str
from src.core.domain.options import Option, Selection
from src.options.errors import (
    InternalConsistencyError,
    InvalidInputError,
    LeafCollisionError,
)

logger = logging.getLogger(__name__)

NestingTree = Dict[str, Dict[str, Any]]


# =============================================================================
# ПОЛЯ УЗЛА (имена фиксированы, читаются фронтендом)
# =============================================================================

CHILDREN_KEY = "children"
HAS_INPUT_KEY = "x_has_user_input"
OPTION_ID_KEY = "option_id"
PRICE_ADJUSTMENT_KEY = "price_adjustment"
SKU_EXTENSION_KEY = "sku_extension"


# =============================================================================
# CONFIG
# =============================================================================


class LeafCollisionPolicy(str, Enum):
    """Поведение, когда путь selection упирается в leaf более короткой selection.

    RAISE: LeafCollisionError, частичный результат не возвращается (default)
    SHADOW: оставшиеся опции длинной selection отбрасываются, leaf сохраняется
    """
    RAISE = "raise"
    SHADOW = "shadow"


@dataclass(frozen=True)
class NestingConfig:
    """Конфигурация Nesting Aggregator.

    SHADOW включается только явно: без него коллизия является жёсткой ошибкой.
    """
    leaf_collision_policy: LeafCollisionPolicy = LeafCollisionPolicy.RAISE


# =============================================================================
# NESTING AGGREGATOR
# =============================================================================


def sort_selection_options(
    selection: Selection,
    option_set_names: Mapping[int, str]
) -> List[Option]:
    """Опции selection в порядке имени их OptionSet.

    При равных именах порядок определяет option id (по возрастанию).

    Raises:
        InvalidInputError: если OptionSet опции неизвестен
    """
    for option in selection.options:
        if option.option_set_id not in option_set_names:
            raise InvalidInputError(
                f"Selection {selection.id}: option {option.id} ({option.name!r}) "
                f"references unknown option set {option.option_set_id}"
            )
    return sorted(
        selection.options,
        key=lambda option: (option_set_names[option.option_set_id], option.id)
    )


def build_nesting(
    option_set_names: Mapping[int, str],
    selections: Sequence[Selection],
    config: Optional[NestingConfig] = None
) -> NestingTree:
    """Построение дерева option nesting.

    Args:
        option_set_names: id OptionSet → отображаемое имя
        selections: существующие selections (порядок обработки = порядок списка)
        config: конфигурация (default NestingConfig())

    Returns:
        Корневой mapping: имя опции → узел

    Raises:
        InvalidInputError: опция ссылается на неизвестный OptionSet
        InternalConsistencyError: ожидаемый промежуточный узел отсутствует
        LeafCollisionError: коллизия leaf/children при политике RAISE
    """
    config = config or NestingConfig()
    tree: NestingTree = {}
    shadowed = 0

    for selection in selections:
        path = sort_selection_options(selection, option_set_names)

        # опции, уже размещённые в дереве для этой selection
        placed: List[Option] = []

        for index, option in enumerate(path):
            level = _locate_level(tree, placed, selection, config)
            if level is None:
                shadowed += 1
                break

            node = level.setdefault(option.name, {})
            if CHILDREN_KEY not in node:
                is_last = index + 1 == len(path)
                node[CHILDREN_KEY] = selection.id if is_last else {}

            node[HAS_INPUT_KEY] = option.has_input
            node[OPTION_ID_KEY] = option.id
            node[PRICE_ADJUSTMENT_KEY] = option.price_adjustment
            node[SKU_EXTENSION_KEY] = option.sku_extension

            placed.append(option)

    logger.debug(
        f"Built option nesting: {len(selections)} selections, "
        f"{len(tree)} root options, {shadowed} shadowed"
    )
    return tree


def _locate_level(
    tree: NestingTree,
    placed: Sequence[Option],
    selection: Selection,
    config: NestingConfig
) -> Optional[NestingTree]:
    """Спуск от корня по уже размещённым опциям selection.

    Returns:
        Mapping children текущей глубины (ссылка внутрь tree, не копия);
        None если путь перекрыт leaf при политике SHADOW
    """
    level = tree
    for option in placed:
        node = level.get(option.name)
        if node is None:
            raise InternalConsistencyError(
                f"Unable to build option nesting for selection {selection.id} "
                f"({_describe(selection)}): node {option.name!r} is missing"
            )

        children = node[CHILDREN_KEY]
        if not isinstance(children, dict):
            if config.leaf_collision_policy == LeafCollisionPolicy.RAISE:
                raise LeafCollisionError(
                    f"Selection {selection.id} ({_describe(selection)}) passes through "
                    f"{option.name!r}, which is already a leaf of selection {children}"
                )
            logger.warning(
                f"Selection {selection.id} ({_describe(selection)}) shadowed by leaf "
                f"selection {children} at {option.name!r}"
            )
            return None

        level = children
    return level


def _describe(selection: Selection) -> str:
    return ", ".join(f"{option.option_set_id}:{option.name}" for option in selection.options)


# =============================================================================
# СЕРИАЛИЗАЦИЯ И НАВИГАЦИЯ
# =============================================================================


def nesting_to_jsonable(tree: Mapping[str, Mapping[str, Any]]) -> Dict[str, Any]:
    """Копия дерева, пригодная для json.dumps (Decimal → строка "1.50")."""
    result: Dict[str, Any] = {}
    for name, node in tree.items():
        converted = dict(node)
        children = node[CHILDREN_KEY]
        if isinstance(children, dict):
            converted[CHILDREN_KEY] = nesting_to_jsonable(children)
        adjustment = node[PRICE_ADJUSTMENT_KEY]
        if isinstance(adjustment, Decimal):
            converted[PRICE_ADJUSTMENT_KEY] = money_to_str(adjustment)
        result[name] = converted
    return result


def _follow(tree: Mapping[str, Any], chosen_names: Sequence[str]) -> Optional[Mapping[str, Any]]:
    """Узел в конце пути chosen_names; None если пути нет."""
    level: Any = tree
    node = None
    for name in chosen_names:
        if not isinstance(level, dict) or name not in level:
            return None
        node = level[name]
        level = node[CHILDREN_KEY]
    return node


def next_choices(tree: NestingTree, chosen_names: Sequence[str]) -> Dict[str, Any]:
    """Опции, доступные после выбора chosen_names (в порядке вложенности).

    Returns:
        Mapping имя опции → узел; пустой, если путь неизвестен или
        заканчивается leaf
    """
    if not chosen_names:
        return dict(tree)
    node = _follow(tree, chosen_names)
    if node is None or not isinstance(node[CHILDREN_KEY], dict):
        return {}
    return dict(node[CHILDREN_KEY])


def selection_id_at(tree: NestingTree, chosen_names: Sequence[str]) -> Optional[int]:
    """Id selection, если путь chosen_names заканчивается ровно на leaf."""
    if not chosen_names:
        return None
    node = _follow(tree, chosen_names)
    if node is None or isinstance(node[CHILDREN_KEY], dict):
        return None
    return node[CHILDREN_KEY]
