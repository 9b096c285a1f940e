from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping

from .interfaces import CartItem, is_weighted
from .money import HUNDRED, ONE, ZERO, Number, round_to, sum_decimals, to_decimal


@dataclass(frozen=True)
class CartTotals:
    """
    Итоги по ставкам НДС для выбранного подмножества товаров.
    Для каждой ставки r: totals[r] == subtotals[r] + taxes[r].
    """

    subtotals: Mapping[Decimal, Decimal] = field(default_factory=dict)
    taxes: Mapping[Decimal, Decimal] = field(default_factory=dict)
    totals: Mapping[Decimal, Decimal] = field(default_factory=dict)
    weight: Decimal = ZERO

    def __post_init__(self):
        # только для чтения: объект хранится в кэше корзины
        for name in ("subtotals", "taxes", "totals"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @property
    def subtotal(self) -> Decimal:
        return sum_decimals(self.subtotals.values())

    @property
    def total(self) -> Decimal:
        return sum_decimals(self.totals.values())

    @property
    def tax(self) -> Decimal:
        return sum_decimals(self.taxes.values())


def count_price(
    unit_price: Number,
    tax_rate: Number,
    quantity: Number,
    prices_with_vat: bool,
    rounding_decimals: int,
) -> Decimal:
    """
    Цена позиции. Округляется цена ЕДИНИЦЫ, и только потом умножается на количество.
    gross: round(unit * (1 + r/100)) * qty
    net:   round(unit) * qty
    """
    price = to_decimal(unit_price)
    if prices_with_vat:
        price = price * (ONE + to_decimal(tax_rate) / HUNDRED)
    return round_to(price, rounding_decimals) * to_decimal(quantity)


def split_amount(
    amount: Decimal, tax_rate: Decimal, prices_with_vat: bool, rounding_decimals: int
) -> tuple:
    """Раскладывает накопленную сумму по ставке на (subtotal, tax, total)"""
    if prices_with_vat:
        tax = round_to(amount * (ONE - ONE / (ONE + tax_rate / HUNDRED)), rounding_decimals)
        return amount - tax, tax, amount

    tax = round_to(amount * tax_rate / HUNDRED, rounding_decimals)
    return amount, tax, amount + tax


def calculate_totals(
    items: Iterable[CartItem],
    price_of: Callable[[CartItem], Decimal],
    prices_with_vat: bool,
    rounding_decimals: int,
    weight_decimals: int = 6,
) -> CartTotals:
    """
    Считает итоги по товарам (уже отфильтрованным).
    price_of - цена позиции с учётом контекста корзины (Cart.get_item_price).
    """
    by_rate: Dict[Decimal, Decimal] = {}
    weight = ZERO

    for item in items:
        price = price_of(item)
        rate = to_decimal(item.tax_rate)
        by_rate[rate] = by_rate.get(rate, ZERO) + price

        if is_weighted(item):
            weight += to_decimal(item.weight) * to_decimal(item.cart_quantity)

    subtotals, taxes, totals = {}, {}, {}
    for rate, amount in by_rate.items():
        subtotals[rate], taxes[rate], totals[rate] = split_amount(
            amount, rate, prices_with_vat, rounding_decimals
        )

    return CartTotals(
        subtotals=subtotals,
        taxes=taxes,
        totals=totals,
        weight=round_to(weight, weight_decimals),
    )
