"""Option Matrix: полный перебор комбинаций опций продукта.

Матрица опций: список всех различных кортежей Option, по одной опции из
каждого OptionSet. Наличие selection или остатков НЕ учитывается.

Пример:
    OS1: [OPT1-1, OPT1-2], OS2: [OPT2-3, OPT2-4]
    →
    [
        (OPT1-1, OPT2-3),
        (OPT1-1, OPT2-4),
        (OPT1-2, OPT2-3),
        (OPT1-2, OPT2-4),
    ]

Рост экспоненциальный по числу наборов: вызывающая сторона ограничивает
размер через max_combinations.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from src.core.domain.options import Option, OptionSet
from src.options.errors import MatrixTooLargeError

logger = logging.getLogger(__name__)

OptionTuple = Tuple[Option, ...]


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class MatrixConfig:
    """Конфигурация Matrix Builder.

    max_combinations: предел количества комбинаций (None: без предела)
    """
    max_combinations: Optional[int] = 10_000


# =============================================================================
# MATRIX BUILDER
# =============================================================================


def matrix_size(option_sets: Sequence[OptionSet]) -> int:
    """Количество комбинаций без построения самой матрицы.

    Returns:
        Произведение количеств опций; 0 для пустого списка наборов
    """
    if not option_sets:
        return 0
    return math.prod(len(option_set.options) for option_set in option_sets)


def build_matrix(
    option_sets: Sequence[OptionSet],
    max_combinations: Optional[int] = None
) -> List[OptionTuple]:
    """Построение матрицы опций (декартово произведение).

    Порядок лексикографический по индексам опций: выбор из первого набора
    фиксируется снаружи, последний набор перебирается внутри всех.

    Args:
        option_sets: наборы опций в порядке отображения
        max_combinations: предел количества комбинаций (None: без предела)

    Returns:
        Список кортежей Option; пустой, если наборов нет или хотя бы
        один набор пуст

    Raises:
        MatrixTooLargeError: если комбинаций больше max_combinations
    """
    option_lists = [option_set.options for option_set in option_sets]
    if not option_lists or any(not options for options in option_lists):
        return []

    size = matrix_size(option_sets)
    if max_combinations is not None and size > max_combinations:
        raise MatrixTooLargeError(
            f"Option matrix has {size} combinations, limit is {max_combinations} "
            f"({len(option_lists)} option sets)"
        )

    matrix = _expand(option_lists)
    logger.debug(f"Built option matrix: {len(option_lists)} option sets, {len(matrix)} tuples")
    return matrix


def _expand(option_lists: Sequence[Sequence[Option]]) -> List[OptionTuple]:
    """Рекурсивно: каждая опция головы + каждый хвостовой кортеж."""
    head, tail = option_lists[0], option_lists[1:]
    appendages = _expand(tail) if tail else [()]
    return [(option,) + appendage for option in head for appendage in appendages]
