from decimal import Decimal, ROUND_HALF_UP
from functools import reduce
from typing import Iterable, Union

Number = Union[Decimal, int, float, str]

ZERO = Decimal(0)
ONE = Decimal(1)
HUNDRED = Decimal(100)


def to_decimal(value: Number) -> Decimal:
    """
    Приводит число к Decimal.
    float идёт через str, чтобы 0.825 не превратилось в 0.82499999...
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a monetary value")
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_to(value: Decimal, decimals: int) -> Decimal:
    """Округление до decimals знаков, половина - от нуля"""
    return value.quantize(ONE.scaleb(-decimals), rounding=ROUND_HALF_UP)


def sum_decimals(values: Iterable[Decimal]) -> Decimal:
    return reduce(lambda acc, v: acc + v, values, ZERO)
