class CartError(Exception):
    """Базовая ошибка корзины"""

    pass


class ItemNotFound(CartError, LookupError):
    """Товар с указанным cart_id отсутствует в корзине"""

    def __init__(self, cart_id: str, message: str = "Requested cart item does not exist"):
        super().__init__(f"{message}: '{cart_id}'")
        self.cart_id = cart_id


class InvalidArgument(CartError, ValueError):
    """Некорректный аргумент (точность округления, фильтр)"""

    pass


class BindingCycleError(CartError):
    """Циклическая привязка товаров друг к другу"""

    def __init__(self, path):
        super().__init__("Cyclic item binding: " + " -> ".join(path))
        self.path = tuple(path)
