"""Протоколы возможностей товаров и промоакций.

Товар обязан реализовать CartItem; остальные возможности необязательны
и определяются проверкой isinstance (товар может реализовать несколько сразу).
"""

from __future__ import annotations

from typing import Any, Protocol, Tuple, TYPE_CHECKING, runtime_checkable

from .money import Number

if TYPE_CHECKING:
    from .cart import Cart


@runtime_checkable
class CartItem(Protocol):
    @property
    def cart_id(self) -> str: ...

    @property
    def cart_type(self) -> str: ...

    @property
    def cart_name(self) -> str: ...

    @property
    def cart_quantity(self) -> Number: ...

    @property
    def unit_price(self) -> Number: ...

    @property
    def tax_rate(self) -> Number: ...

    def set_cart_quantity(self, quantity: Number) -> None: ...

    def set_cart_context(self, context: Any) -> None: ...


@runtime_checkable
class WeightedCartItem(Protocol):
    """Товар с весом единицы"""

    @property
    def weight(self) -> Number: ...


@runtime_checkable
class BoundCartItem(Protocol):
    """Товар, привязанный к одному родителю (например, гарантия к товару)"""

    @property
    def bound_item_cart_id(self) -> str: ...

    @property
    def update_cart_quantity_automatically(self) -> bool: ...


@runtime_checkable
class MultipleBoundCartItem(Protocol):
    """Товар, привязанный к нескольким родителям"""

    @property
    def bound_item_cart_ids(self) -> Tuple[str, ...]: ...


@runtime_checkable
class Promotion(Protocol):
    def is_eligible(self, cart: "Cart") -> bool: ...

    def before_apply(self, cart: "Cart") -> None: ...

    def after_apply(self, cart: "Cart") -> None: ...

    def apply(self, cart: "Cart") -> None: ...


def is_weighted(item: CartItem) -> bool:
    return isinstance(item, WeightedCartItem)


def is_bound(item: CartItem) -> bool:
    return isinstance(item, BoundCartItem)


def is_multiple_bound(item: CartItem) -> bool:
    return isinstance(item, MultipleBoundCartItem)


def declared_parents(item: CartItem) -> Tuple[str, ...]:
    """Все id родителей, объявленные товаром (без повторов, в порядке объявления)"""
    parents = []
    if is_bound(item):
        parents.append(item.bound_item_cart_id)
    if is_multiple_bound(item):
        parents.extend(item.bound_item_cart_ids)
    return tuple(dict.fromkeys(parents))
