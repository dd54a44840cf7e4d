"""
Money: Fixed-point денежные значения

Все цены и ценовые надбавки опций хранятся как Decimal с фиксированной
точностью до центов (0.01). Округление: ROUND_HALF_UP.

ЗАПРЕЩЕНО считать деньги во float: любые входные значения проходят через
to_money() перед использованием.
"""

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Final, Iterable, Union


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Квант денежного значения (центы)
MONEY_QUANTUM: Final[Decimal] = Decimal("0.01")

# Нулевая надбавка
ZERO_MONEY: Final[Decimal] = Decimal("0.00")

MoneyLike = Union[Decimal, int, float, str]


# =============================================================================
# КОНВЕРТЕРЫ
# =============================================================================


def to_money(value: MoneyLike) -> Decimal:
    """
    Приведение значения к fixed-point Decimal с точностью 0.01.

    Args:
        value: Decimal, int, float или строка ("1.5", "-0.25")

    Returns:
        Decimal, квантованный до центов

    Raises:
        ValueError: Если значение не является конечным числом

    Examples:
        >>> to_money("1.5")
        Decimal('1.50')
        >>> to_money(-0.125)
        Decimal('-0.13')
    """
    if isinstance(value, bool):
        raise ValueError(f"Money value must be numeric, got bool {value!r}")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Money value must be finite, got {value}")
        # repr даёт кратчайшее представление float (0.1 → "0.1")
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Invalid money value: {value!r}")
    else:
        raise ValueError(f"Unsupported money type: {type(value).__name__}")

    if not amount.is_finite():
        raise ValueError(f"Money value must be finite, got {value!r}")

    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def money_to_str(value: MoneyLike) -> str:
    """
    Строковое fixed-point представление (для JSON).

    Examples:
        >>> money_to_str(Decimal("2"))
        '2.00'
    """
    return format(to_money(value), "f")


def sum_money(values: Iterable[MoneyLike], start: MoneyLike = ZERO_MONEY) -> Decimal:
    """
    Сумма денежных значений без потери точности.

    Args:
        values: Слагаемые
        start: Начальное значение (например, базовая цена)

    Returns:
        Сумма, квантованная до центов
    """
    total = to_money(start)
    for value in values:
        total += to_money(value)
    return to_money(total)
