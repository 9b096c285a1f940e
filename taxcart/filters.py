from typing import Callable, Tuple, Union

from .errors import InvalidArgument
from .interfaces import CartItem

ItemFilter = Callable[[CartItem], bool]
FilterSpec = Union[str, ItemFilter]

ALL_TYPES = "~"


def parse_type_spec(spec: str) -> Tuple[bool, Tuple[str, ...]]:
    """
    Разбирает строку типов: "product,service" или "~product" (отрицание).
    Возвращает (negative, types). "~" - пустой список с отрицанием, т.е. все товары.
    """
    negative = spec.startswith("~")
    if negative:
        spec = spec[1:]
    if not spec:
        return negative, ()
    return negative, tuple(spec.split(","))


def by_type(spec: str) -> ItemFilter:
    """Фильтр по типу товара (замыкание над разобранной строкой)"""
    negative, types = parse_type_spec(spec)
    if negative:
        return lambda item: item.cart_type not in types
    return lambda item: item.cart_type in types


def resolve_filter(spec: FilterSpec) -> ItemFilter:
    """Строка превращается в by_type, вызываемый объект возвращается как есть"""
    if isinstance(spec, str):
        return by_type(spec)
    if not callable(spec):
        raise InvalidArgument(
            f"Item filter has to be a type spec string or callable, got {type(spec).__name__}"
        )
    return spec
