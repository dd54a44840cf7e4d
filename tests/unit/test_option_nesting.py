"""Тесты для Option Nesting (Nesting Aggregator)

Покрытие:
- Базовое построение дерева и слияние общих префиксов
- Сортировка по имени OptionSet и tie-break по option id
- Метаданные узлов (last writer wins)
- Коллизия leaf/children (first writer wins, SHADOW / RAISE)
- Согласованность leaf id со входными selections
- JSON-форма и навигация по дереву
"""

import json
from decimal import Decimal

import pytest

from src.core.contracts import validate_option_nesting
from src.core.domain import Option, Selection
from src.options import (
    CHILDREN_KEY,
    HAS_INPUT_KEY,
    OPTION_ID_KEY,
    PRICE_ADJUSTMENT_KEY,
    SKU_EXTENSION_KEY,
    InternalConsistencyError,
    InvalidInputError,
    LeafCollisionError,
    LeafCollisionPolicy,
    NestingConfig,
    build_nesting,
    nesting_to_jsonable,
    next_choices,
    selection_id_at,
    sort_selection_options,
)
from src.options import nesting as nesting_module


# =============================================================================
# FIXTURES
# =============================================================================

COLOR = 1
PATTERN = 2
SIZE = 3


@pytest.fixture
def option_set_names():
    """Имена наборов: Color < Pattern < Size."""
    return {COLOR: "Color", PATTERN: "Pattern", SIZE: "Size"}


@pytest.fixture
def blue():
    return Option(id=10, name="Blue", option_set_id=COLOR, sku_extension="-BL")


@pytest.fixture
def red():
    return Option(id=11, name="Red", option_set_id=COLOR, price_adjustment="1.00")


@pytest.fixture
def plaid():
    return Option(id=20, name="Plaid", option_set_id=PATTERN, price_adjustment="2.50")


@pytest.fixture
def striped():
    return Option(id=21, name="Striped", option_set_id=PATTERN, has_input=True)


@pytest.fixture
def large():
    return Option(id=30, name="Large", option_set_id=SIZE, price_adjustment="-0.75")


def collect_leaves(tree):
    """Helper: все leaf id дерева."""
    leaves = []
    for node in tree.values():
        children = node[CHILDREN_KEY]
        if isinstance(children, dict):
            leaves.extend(collect_leaves(children))
        else:
            leaves.append(children)
    return leaves


# =============================================================================
# ТЕСТЫ: базовое построение
# =============================================================================


def test_nesting_no_selections(option_set_names):
    """Нет selections → пустое дерево."""
    assert build_nesting(option_set_names, []) == {}


def test_nesting_single_option_selection(option_set_names, blue):
    """Selection из одной опции → корневой узел с leaf id."""
    tree = build_nesting(option_set_names, [Selection(id=1, options=[blue])])

    assert tree == {
        "Blue": {
            CHILDREN_KEY: 1,
            HAS_INPUT_KEY: False,
            OPTION_ID_KEY: 10,
            PRICE_ADJUSTMENT_KEY: Decimal("0.00"),
            SKU_EXTENSION_KEY: "-BL",
        }
    }


def test_nesting_shared_prefix_merges(option_set_names, blue, plaid, striped):
    """{Blue, Plaid} и {Blue, Striped} → один узел Blue с двумя детьми-leaf."""
    selections = [
        Selection(id=1, options=[blue, plaid]),
        Selection(id=2, options=[blue, striped]),
    ]

    tree = build_nesting(option_set_names, selections)

    assert list(tree) == ["Blue"]
    children = tree["Blue"][CHILDREN_KEY]
    assert set(children) == {"Plaid", "Striped"}
    assert children["Plaid"][CHILDREN_KEY] == 1
    assert children["Striped"][CHILDREN_KEY] == 2
    assert children["Striped"][HAS_INPUT_KEY] is True
    assert children["Plaid"][PRICE_ADJUSTMENT_KEY] == Decimal("2.50")


def test_nesting_divergence_creates_siblings(option_set_names, blue, red, plaid):
    """Разные корневые опции → разные корневые узлы."""
    selections = [
        Selection(id=1, options=[blue, plaid]),
        Selection(id=2, options=[red, plaid]),
    ]

    tree = build_nesting(option_set_names, selections)

    assert set(tree) == {"Blue", "Red"}
    assert tree["Blue"][CHILDREN_KEY]["Plaid"][CHILDREN_KEY] == 1
    assert tree["Red"][CHILDREN_KEY]["Plaid"][CHILDREN_KEY] == 2


def test_nesting_three_levels(option_set_names, blue, plaid, large):
    """Глубина дерева = число опций selection."""
    tree = build_nesting(option_set_names, [Selection(id=7, options=[large, plaid, blue])])

    plaid_node = tree["Blue"][CHILDREN_KEY]["Plaid"]
    assert isinstance(plaid_node[CHILDREN_KEY], dict)
    assert plaid_node[CHILDREN_KEY]["Large"][CHILDREN_KEY] == 7
    assert plaid_node[CHILDREN_KEY]["Large"][PRICE_ADJUSTMENT_KEY] == Decimal("-0.75")


def test_nesting_does_not_mutate_inputs(option_set_names, blue, plaid):
    names_before = dict(option_set_names)
    selections = [Selection(id=1, options=[plaid, blue])]

    build_nesting(option_set_names, selections)

    assert option_set_names == names_before
    assert selections[0].options == (plaid, blue)


def test_nesting_empty_selection_is_skipped(option_set_names, blue):
    """Selection без опций не создаёт узлов."""
    tree = build_nesting(
        option_set_names,
        [Selection(id=1, options=[]), Selection(id=2, options=[blue])]
    )

    assert collect_leaves(tree) == [2]


# =============================================================================
# ТЕСТЫ: сортировка
# =============================================================================


def test_nesting_sorted_by_option_set_name_not_input_order(option_set_names, blue, plaid):
    """Путь определяется именем OptionSet: Color раньше Pattern."""
    tree = build_nesting(option_set_names, [Selection(id=1, options=[plaid, blue])])

    assert list(tree) == ["Blue"]
    assert list(tree["Blue"][CHILDREN_KEY]) == ["Plaid"]


def test_nesting_sort_uses_name_not_set_id(blue, plaid):
    """Имена переопределяют порядок id наборов."""
    names = {COLOR: "Zcolor", PATTERN: "Apattern"}

    tree = build_nesting(names, [Selection(id=1, options=[blue, plaid])])

    assert list(tree) == ["Plaid"]
    assert tree["Plaid"][CHILDREN_KEY]["Blue"][CHILDREN_KEY] == 1


def test_sort_tie_break_by_option_id():
    """Одинаковые имена наборов → порядок по option id."""
    names = {1: "Same", 2: "Same"}
    first = Option(id=5, name="First", option_set_id=2)
    second = Option(id=9, name="Second", option_set_id=1)

    ordered = sort_selection_options(Selection(id=1, options=[second, first]), names)

    assert [option.name for option in ordered] == ["First", "Second"]


def test_nesting_unknown_option_set_rejected(blue):
    """OptionSet опции отсутствует в lookup → InvalidInputError."""
    with pytest.raises(InvalidInputError, match="unknown option set"):
        build_nesting({PATTERN: "Pattern"}, [Selection(id=1, options=[blue])])


# =============================================================================
# ТЕСТЫ: метаданные (last writer wins)
# =============================================================================


def test_nesting_shared_node_metadata_from_last_selection(option_set_names):
    """Метаданные общего узла берутся из последней selection."""
    small = Option(id=40, name="Large", option_set_id=COLOR, price_adjustment="1.00")
    big = Option(
        id=41,
        name="Large",
        option_set_id=PATTERN,
        has_input=True,
        price_adjustment="3.00",
        sku_extension="-XL",
    )

    tree = build_nesting(
        option_set_names,
        [Selection(id=1, options=[small]), Selection(id=2, options=[big])]
    )

    node = tree["Large"]
    assert node[OPTION_ID_KEY] == 41
    assert node[HAS_INPUT_KEY] is True
    assert node[PRICE_ADJUSTMENT_KEY] == Decimal("3.00")
    assert node[SKU_EXTENSION_KEY] == "-XL"
    # children слот: first writer wins
    assert node[CHILDREN_KEY] == 1


def test_nesting_metadata_refreshed_on_every_visit(option_set_names, plaid, striped):
    """Промежуточный узел также перезаписывается последней selection."""
    blue_old = Option(id=10, name="Blue", option_set_id=COLOR, price_adjustment="0.50")
    blue_new = Option(id=10, name="Blue", option_set_id=COLOR, price_adjustment="0.99")

    tree = build_nesting(
        option_set_names,
        [
            Selection(id=1, options=[blue_old, plaid]),
            Selection(id=2, options=[blue_new, striped]),
        ]
    )

    assert tree["Blue"][PRICE_ADJUSTMENT_KEY] == Decimal("0.99")


# =============================================================================
# ТЕСТЫ: коллизия leaf/children
# =============================================================================


@pytest.fixture
def shadow_config():
    """Явно включённая политика SHADOW."""
    return NestingConfig(leaf_collision_policy=LeafCollisionPolicy.SHADOW)


def test_nesting_default_policy_is_raise():
    assert NestingConfig().leaf_collision_policy == LeafCollisionPolicy.RAISE


def test_nesting_short_then_long_default_raises(option_set_names, blue, plaid):
    """{Blue} затем {Blue, Plaid} без конфигурации → жёсткая ошибка, без частичного дерева."""
    with pytest.raises(InternalConsistencyError, match="already a leaf of selection 1"):
        build_nesting(
            option_set_names,
            [Selection(id=1, options=[blue]), Selection(id=2, options=[blue, plaid])]
        )


def test_nesting_short_then_long_shadows_long(option_set_names, blue, plaid, shadow_config):
    """SHADOW: leaf {Blue} сохраняется, длинная selection отброшена."""
    tree = build_nesting(
        option_set_names,
        [Selection(id=1, options=[blue]), Selection(id=2, options=[blue, plaid])],
        config=shadow_config
    )

    assert tree["Blue"][CHILDREN_KEY] == 1
    assert collect_leaves(tree) == [1]


def test_nesting_short_then_long_logs_warning(option_set_names, blue, plaid, shadow_config, caplog):
    with caplog.at_level("WARNING", logger=nesting_module.__name__):
        build_nesting(
            option_set_names,
            [Selection(id=1, options=[blue]), Selection(id=2, options=[blue, plaid])],
            config=shadow_config
        )

    assert "Selection 2" in caplog.text
    assert "shadowed" in caplog.text


def test_nesting_short_then_long_strict_policy_raises(option_set_names, blue, plaid):
    """Политика RAISE → LeafCollisionError."""
    config = NestingConfig(leaf_collision_policy=LeafCollisionPolicy.RAISE)

    with pytest.raises(LeafCollisionError, match="already a leaf of selection 1"):
        build_nesting(
            option_set_names,
            [Selection(id=1, options=[blue]), Selection(id=2, options=[blue, plaid])],
            config=config
        )


def test_leaf_collision_is_consistency_error():
    assert issubclass(LeafCollisionError, InternalConsistencyError)


def test_nesting_long_then_short_keeps_subtree(option_set_names, blue, plaid):
    """{Blue, Plaid} затем {Blue}: слот children уже занят поддеревом, {Blue} не пишется."""
    tree = build_nesting(
        option_set_names,
        [Selection(id=1, options=[blue, plaid]), Selection(id=2, options=[blue])]
    )

    assert tree["Blue"][CHILDREN_KEY] == {"Plaid": tree["Blue"][CHILDREN_KEY]["Plaid"]}
    assert collect_leaves(tree) == [1]


def test_nesting_long_then_short_strict_policy_does_not_raise(option_set_names, blue, plaid):
    """Поддерево, занявшее слот раньше, не является коллизией спуска."""
    config = NestingConfig(leaf_collision_policy=LeafCollisionPolicy.RAISE)

    tree = build_nesting(
        option_set_names,
        [Selection(id=1, options=[blue, plaid]), Selection(id=2, options=[blue])],
        config=config
    )

    assert collect_leaves(tree) == [1]


def test_nesting_duplicate_path_first_id_wins(option_set_names, blue, plaid):
    """Две selection с одинаковым путём → leaf первой."""
    tree = build_nesting(
        option_set_names,
        [Selection(id=1, options=[blue, plaid]), Selection(id=2, options=[plaid, blue])]
    )

    assert collect_leaves(tree) == [1]


def test_nesting_missing_intermediate_node_raises(option_set_names, blue, plaid, monkeypatch):
    """Отсутствующий промежуточный узел → InternalConsistencyError."""
    original = nesting_module._locate_level

    def losing_level(tree, placed, selection, config):
        if placed:
            tree.clear()
        return original(tree, placed, selection, config)

    monkeypatch.setattr(nesting_module, "_locate_level", losing_level)

    with pytest.raises(InternalConsistencyError, match="'Blue' is missing"):
        build_nesting(option_set_names, [Selection(id=1, options=[blue, plaid])])


# =============================================================================
# ТЕСТЫ: leaf id ↔ входные selections
# =============================================================================


def test_nesting_every_selection_appears_once(option_set_names, blue, red, plaid, striped, large):
    """Каждая непустая selection встречается ровно один раз как leaf."""
    selections = [
        Selection(id=1, options=[blue, plaid, large]),
        Selection(id=2, options=[blue, striped, large]),
        Selection(id=3, options=[red, plaid, large]),
        Selection(id=4, options=[red, striped]),
        Selection(id=5, options=[blue, plaid]),
    ]

    leaves = collect_leaves(build_nesting(option_set_names, selections))

    # selection 5 является префиксом selection 1, слот Plaid уже занят поддеревом
    assert sorted(leaves) == [1, 2, 3, 4]
    assert len(leaves) == len(set(leaves))
    assert set(leaves) <= {selection.id for selection in selections}


# =============================================================================
# ТЕСТЫ: JSON и навигация
# =============================================================================


def test_nesting_to_jsonable_is_serializable(option_set_names, blue, plaid, large):
    tree = build_nesting(option_set_names, [Selection(id=3, options=[blue, plaid, large])])

    document = nesting_to_jsonable(tree)

    assert document["Blue"][PRICE_ADJUSTMENT_KEY] == "0.00"
    large_node = document["Blue"][CHILDREN_KEY]["Plaid"][CHILDREN_KEY]["Large"]
    assert large_node[PRICE_ADJUSTMENT_KEY] == "-0.75"
    assert json.loads(json.dumps(document)) == document
    validate_option_nesting(document)


def test_nesting_to_jsonable_leaves_tree_untouched(option_set_names, plaid):
    tree = build_nesting(option_set_names, [Selection(id=1, options=[plaid])])

    nesting_to_jsonable(tree)

    assert tree["Plaid"][PRICE_ADJUSTMENT_KEY] == Decimal("2.50")


def test_next_choices(option_set_names, blue, plaid, striped):
    tree = build_nesting(
        option_set_names,
        [Selection(id=1, options=[blue, plaid]), Selection(id=2, options=[blue, striped])]
    )

    assert list(next_choices(tree, [])) == ["Blue"]
    assert set(next_choices(tree, ["Blue"])) == {"Plaid", "Striped"}
    assert next_choices(tree, ["Blue", "Plaid"]) == {}
    assert next_choices(tree, ["Red"]) == {}
    assert next_choices(tree, ["Blue", "Plaid", "Large"]) == {}


def test_selection_id_at(option_set_names, blue, plaid):
    tree = build_nesting(option_set_names, [Selection(id=4, options=[blue, plaid])])

    assert selection_id_at(tree, ["Blue", "Plaid"]) == 4
    assert selection_id_at(tree, ["Blue"]) is None
    assert selection_id_at(tree, []) is None
    assert selection_id_at(tree, ["Blue", "Striped"]) is None
