"""Boundary validation: проверка ссылок каталога до вызова компонентов.

Matrix Builder и Nesting Aggregator предполагают корректные данные.
Всё некорректное отклоняется здесь через InvalidInputError.

Проверки validate_catalog():
1. Уникальность id и имён OptionSet
2. Уникальность id опций во всём каталоге
3. Опции selection существуют в каталоге и принадлежат тому же OptionSet
4. Уникальность id selection

resolve_selection() дополнительно отклоняет две опции из одного OptionSet
через InvalidInputError до создания модели Selection.
"""

from typing import Dict, Iterable, Sequence

from src.core.domain.options import Option, OptionSet, Selection
from src.options.errors import InvalidInputError


def option_set_name_lookup(option_sets: Iterable[OptionSet]) -> Dict[int, str]:
    """id OptionSet → отображаемое имя."""
    return {option_set.id: option_set.name for option_set in option_sets}


def option_index(option_sets: Iterable[OptionSet]) -> Dict[int, Option]:
    """id опции → Option по всем наборам.

    Raises:
        InvalidInputError: если id опции повторяется
    """
    index: Dict[int, Option] = {}
    for option_set in option_sets:
        for option in option_set.options:
            if option.id in index:
                raise InvalidInputError(
                    f"Duplicate option id {option.id}: {index[option.id].name!r} "
                    f"and {option.name!r}"
                )
            index[option.id] = option
    return index


def validate_catalog(
    option_sets: Sequence[OptionSet],
    selections: Sequence[Selection]
) -> None:
    """Проверка согласованности снапшота каталога.

    Raises:
        InvalidInputError: при первом найденном нарушении
    """
    set_ids = set()
    set_names = set()
    for option_set in option_sets:
        if option_set.id in set_ids:
            raise InvalidInputError(f"Duplicate option set id {option_set.id}")
        if option_set.name in set_names:
            raise InvalidInputError(f"Duplicate option set name {option_set.name!r}")
        set_ids.add(option_set.id)
        set_names.add(option_set.name)

    known_options = option_index(option_sets)

    selection_ids = set()
    for selection in selections:
        if selection.id in selection_ids:
            raise InvalidInputError(f"Duplicate selection id {selection.id}")
        selection_ids.add(selection.id)

        for option in selection.options:
            known = known_options.get(option.id)
            if known is None:
                raise InvalidInputError(
                    f"Selection {selection.id} references option {option.id} "
                    f"({option.name!r}) that is not in any known option set"
                )
            if known.option_set_id != option.option_set_id:
                raise InvalidInputError(
                    f"Selection {selection.id}: option {option.id} belongs to option set "
                    f"{known.option_set_id}, not {option.option_set_id}"
                )


def resolve_selection(
    selection_id: int,
    option_ids: Iterable[int],
    option_sets: Sequence[OptionSet]
) -> Selection:
    """Selection из списка id опций (формат selection-репозитория).

    Raises:
        InvalidInputError: если id опции неизвестен или две опции
            принадлежат одному OptionSet
    """
    known_options = option_index(option_sets)
    options = []
    by_set: Dict[int, Option] = {}
    for option_id in option_ids:
        if option_id not in known_options:
            raise InvalidInputError(
                f"Selection {selection_id} references unknown option id {option_id}"
            )
        option = known_options[option_id]
        previous = by_set.get(option.option_set_id)
        if previous is not None:
            raise InvalidInputError(
                f"Selection {selection_id}: options {previous.id} and {option.id} "
                f"belong to the same option set {option.option_set_id}"
            )
        by_set[option.option_set_id] = option
        options.append(option)
    return Selection(id=selection_id, options=options)
