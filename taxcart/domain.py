from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Tuple

from .money import Number, to_decimal


@dataclass(eq=False)
class Item:
    """
    Простая позиция корзины.
    Количество и контекст выставляет корзина, а не вызывающий код.
    """

    cart_id: str
    cart_type: str
    unit_price: Number
    tax_rate: Number
    cart_name: str = ""
    cart_quantity: Decimal = Decimal(1)
    context: Any = field(default=None, repr=False)

    def __post_init__(self):
        self.cart_quantity = to_decimal(self.cart_quantity)

    def set_cart_quantity(self, quantity: Number) -> None:
        self.cart_quantity = to_decimal(quantity)

    def set_cart_context(self, context: Any) -> None:
        self.context = context


@dataclass(eq=False, kw_only=True)
class WeightedItem(Item):
    weight: Number


@dataclass(eq=False, kw_only=True)
class BoundItem(Item):
    """Позиция, привязанная к одному родителю (гарантия, страховка)"""

    bound_item_cart_id: str
    update_cart_quantity_automatically: bool = False


@dataclass(eq=False, kw_only=True)
class MultipleBoundItem(Item):
    """Позиция, привязанная сразу к нескольким родителям (комплект)"""

    bound_item_cart_ids: Tuple[str, ...] = ()
