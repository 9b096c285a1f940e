import logging
from contextlib import contextmanager
from collections.abc import Hashable
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .bindings import BindingIndex, ensure_acyclic, validate_parents
from .config import get_settings
from .errors import InvalidArgument, ItemNotFound
from .filters import ALL_TYPES, FilterSpec, by_type, resolve_filter
from .ftypes import Maybe
from .interfaces import CartItem, Promotion, is_bound
from .money import Number, to_decimal
from .promotions import process_promotions
from .totals import CartTotals, calculate_totals, count_price

logger = logging.getLogger(__name__)


class Cart:
    """
    Корзина: товары, привязки, кэш итогов и промоакции.

    Любое внешнее изменение сбрасывает кэш итогов и один раз прогоняет промоакции.
    Изменения, сделанные самими промоакциями, кэш сбрасывают, но повторный
    прогон не запускают. Не потокобезопасна.
    """

    def __init__(
        self,
        context: Any = None,
        prices_with_vat: Optional[bool] = None,
        rounding_decimals: Optional[int] = None,
    ):
        self._items: Dict[str, CartItem] = {}
        self._bindings = BindingIndex()
        self._promotions: List[Promotion] = []
        self._totals: Dict[Any, CartTotals] = {}
        self._process_on_modify = True
        settings = get_settings()
        self._weight_decimals = settings.weight_decimals

        self._context = None
        self._prices_with_vat = settings.prices_with_vat
        self._rounding_decimals = settings.rounding_decimals

        self.set_context(context)
        if prices_with_vat is not None:
            self.set_prices_with_vat(prices_with_vat)
        if rounding_decimals is not None:
            self.set_rounding_decimals(rounding_decimals)

    # ============ Настройки ============

    @property
    def context(self) -> Any:
        return self._context

    def set_context(self, context: Any) -> None:
        """Контекст передаётся товарам (например, для своей логики цен)"""
        self._context = context

        if self._items:
            for item in self._items.values():
                item.set_cart_context(context)
            self._cart_modified()

    @property
    def prices_with_vat(self) -> bool:
        return self._prices_with_vat

    def set_prices_with_vat(self, prices_with_vat: bool) -> None:
        self._prices_with_vat = bool(prices_with_vat)

        if self._items:
            self._cart_modified()

    @property
    def rounding_decimals(self) -> int:
        return self._rounding_decimals

    def set_rounding_decimals(self, rounding_decimals: int) -> None:
        if rounding_decimals < 0:
            raise InvalidArgument(f"Invalid value for rounding decimals: {rounding_decimals}")

        self._rounding_decimals = int(rounding_decimals)

        if self._items:
            self._cart_modified()

    @property
    def promotions(self) -> Tuple[Promotion, ...]:
        return tuple(self._promotions)

    def set_promotions(self, promotions: Iterable[Promotion]) -> None:
        self._promotions = list(promotions)

        if self._items:
            self._cart_modified()

    def sort_by_type(self, types: Sequence[str]) -> None:
        """
        Стабильная сортировка по позиции типа в списке.
        Типы не из списка идут после всех перечисленных, их порядок сохраняется.
        Итоги от порядка не зависят, поэтому кэш не сбрасывается.
        """
        ranks = {cart_type: i for i, cart_type in enumerate(types)}
        unlisted = len(ranks)
        ordered = sorted(
            self._items.values(), key=lambda item: ranks.get(item.cart_type, unlisted)
        )
        self._items = {item.cart_id: item for item in ordered}

    # ============ Чтение ============

    def get_items(self, item_filter: Optional[FilterSpec] = None) -> Dict[str, CartItem]:
        if item_filter is None:
            return dict(self._items)
        predicate = resolve_filter(item_filter)
        return {cart_id: item for cart_id, item in self._items.items() if predicate(item)}

    def get_items_by_type(self, type_spec: str) -> Dict[str, CartItem]:
        return self.get_items(by_type(type_spec))

    def count_items(self, item_filter: Optional[FilterSpec] = None) -> int:
        return len(self.get_items(item_filter))

    def count_items_by_type(self, type_spec: str) -> int:
        return self.count_items(by_type(type_spec))

    def is_empty(self, item_filter: Optional[FilterSpec] = None) -> bool:
        return not self.count_items(item_filter)

    def is_empty_by_type(self, type_spec: str) -> bool:
        return not self.count_items_by_type(type_spec)

    def has_item(self, cart_id: str) -> bool:
        return cart_id in self._items

    def get_item(self, cart_id: str) -> CartItem:
        if cart_id not in self._items:
            raise ItemNotFound(cart_id)
        return self._items[cart_id]

    def find_item(self, cart_id: str) -> Maybe[CartItem]:
        """Безопасный поиск товара без исключения"""
        return Maybe.of(self._items.get(cart_id))

    def get_bound_item_ids(self, cart_id: str) -> Tuple[str, ...]:
        """Id товаров, привязанных к cart_id (напрямую)"""
        return self._bindings.children_of(cart_id)

    @property
    def bindings(self) -> Dict[str, Tuple[str, ...]]:
        return self._bindings.as_dict()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, cart_id: str) -> bool:
        return self.has_item(cart_id)

    # ============ Изменение ============

    def add_item(self, item: CartItem, quantity: Number = 1) -> None:
        """
        Добавляет товар. Если товар с таким id уже есть - увеличивает его количество,
        переданный объект при этом отбрасывается.
        Привязки проверяются до сохранения: при отсутствующем родителе корзина не меняется.
        """
        quantity = to_decimal(quantity)

        if item.cart_id in self._items:
            existing = self._items[item.cart_id]
            target = to_decimal(existing.cart_quantity) + quantity
            if is_bound(existing) and existing.update_cart_quantity_automatically:
                target = to_decimal(self._items[existing.bound_item_cart_id].cart_quantity)
            self.set_item_quantity(item.cart_id, target)
            return

        parents = validate_parents(item, self.has_item).get_or_raise(
            lambda missing: ItemNotFound(missing, "Target cart item does not exist")
        )

        for parent_id in parents:
            self._bindings.add(item.cart_id, parent_id)

        if is_bound(item) and item.update_cart_quantity_automatically:
            quantity = to_decimal(self._items[item.bound_item_cart_id].cart_quantity)

        item.set_cart_quantity(quantity)
        item.set_cart_context(self._context)

        self._items[item.cart_id] = item
        logger.debug("added %s x %s", item.cart_id, quantity)
        self._cart_modified()

    def set_items(self, items: Iterable[CartItem]) -> None:
        """Заменяет содержимое корзины; промоакции прогоняются один раз в конце"""
        with self._batch():
            self.clear()
            for item in items:
                self.add_item(item, item.cart_quantity)

        self._cart_modified()

    def set_item_quantity(self, cart_id: str, quantity: Number) -> None:
        item = self.get_item(cart_id)
        quantity = to_decimal(quantity)

        if quantity <= 0:
            self.remove_item(cart_id)
            return

        if to_decimal(item.cart_quantity) == quantity:
            return

        item.set_cart_quantity(quantity)

        for bound_id in self._bindings.children_of(cart_id):
            bound = self._items[bound_id]
            if (
                is_bound(bound)
                and bound.bound_item_cart_id == cart_id
                and bound.update_cart_quantity_automatically
            ):
                bound.set_cart_quantity(quantity)

        logger.debug("quantity of %s set to %s", cart_id, quantity)
        self._cart_modified()

    def remove_item(self, cart_id: str) -> None:
        """
        Удаляет товар вместе с привязанными к нему (в глубину).
        Товар с несколькими родителями удаляется вместе с последним из них.
        """
        self.get_item(cart_id)
        ensure_acyclic(self._bindings, cart_id)

        self._remove_cascade(cart_id)
        self._cart_modified()

    def clear(self) -> None:
        if self._items:
            self._items = {}
            self._bindings.clear()
            logger.debug("cart cleared")
            self._cart_modified()

    def _remove_cascade(self, cart_id: str) -> None:
        for child_id in self._bindings.children_of(cart_id):
            if child_id not in self._items:
                continue
            if self._outlives_parent(child_id, cart_id):
                self._bindings.remove(child_id, cart_id)
                continue
            self._remove_cascade(child_id)

        del self._items[cart_id]
        for parent_id in self._bindings.parents_of(cart_id):
            self._bindings.remove(cart_id, parent_id)
        logger.debug("removed %s", cart_id)

    def _outlives_parent(self, child_id: str, parent_id: str) -> bool:
        child = self._items[child_id]
        if is_bound(child) and child.bound_item_cart_id == parent_id:
            return False
        return any(p != parent_id for p in self._bindings.parents_of(child_id))

    # ============ Цены и итоги ============

    def count_price(
        self,
        unit_price: Number,
        tax_rate: Number,
        quantity: Number = 1,
        prices_with_vat: Optional[bool] = None,
        rounding_decimals: Optional[int] = None,
    ) -> Decimal:
        if prices_with_vat is None:
            prices_with_vat = self._prices_with_vat
        if rounding_decimals is None:
            rounding_decimals = self._rounding_decimals
        elif rounding_decimals < 0:
            raise InvalidArgument(f"Invalid value for rounding decimals: {rounding_decimals}")

        return count_price(unit_price, tax_rate, quantity, prices_with_vat, rounding_decimals)

    def get_item_price(
        self,
        item: CartItem,
        quantity: Optional[Number] = None,
        prices_with_vat: Optional[bool] = None,
        rounding_decimals: Optional[int] = None,
    ) -> Decimal:
        """Цена позиции; контекст выставляется товару до чтения цены"""
        item.set_cart_context(self._context)

        return self.count_price(
            item.unit_price,
            item.tax_rate,
            item.cart_quantity if quantity is None else quantity,
            prices_with_vat,
            rounding_decimals,
        )

    def get_totals(self, item_filter: FilterSpec = ALL_TYPES) -> CartTotals:
        """
        Итоги по фильтру (строка типов или предикат).
        Кэш по строке или по самому предикату, сбрасывается целиком при любом изменении.
        """
        predicate = resolve_filter(item_filter)
        cacheable = isinstance(item_filter, Hashable)

        if cacheable and item_filter in self._totals:
            return self._totals[item_filter]

        totals = calculate_totals(
            (item for item in self._items.values() if predicate(item)),
            self.get_item_price,
            self._prices_with_vat,
            self._rounding_decimals,
            self._weight_decimals,
        )

        if cacheable:
            self._totals[item_filter] = totals
        return totals

    def get_subtotal(self, item_filter: FilterSpec = ALL_TYPES) -> Decimal:
        return self.get_totals(item_filter).subtotal

    def get_total(self, item_filter: FilterSpec = ALL_TYPES) -> Decimal:
        return self.get_totals(item_filter).total

    def get_taxes(self, item_filter: FilterSpec = ALL_TYPES) -> Dict[Decimal, Decimal]:
        return dict(self.get_totals(item_filter).taxes)

    def get_tax_bases(self, item_filter: FilterSpec = ALL_TYPES) -> Dict[Decimal, Decimal]:
        return dict(self.get_totals(item_filter).subtotals)

    def get_tax_totals(self, item_filter: FilterSpec = ALL_TYPES) -> Dict[Decimal, Decimal]:
        return dict(self.get_totals(item_filter).totals)

    def get_weight(self, item_filter: FilterSpec = ALL_TYPES) -> Decimal:
        return self.get_totals(item_filter).weight

    # ============ Служебное ============

    @contextmanager
    def _batch(self):
        """Подавляет прогон промоакций на время пакетной операции"""
        previous = self._process_on_modify
        self._process_on_modify = False
        try:
            yield
        finally:
            self._process_on_modify = previous

    def _cart_modified(self) -> None:
        self._totals.clear()

        if not self._process_on_modify:
            return

        with self._batch():
            process_promotions(self, self._promotions)
