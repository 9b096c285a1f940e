import logging
from typing import Sequence, TYPE_CHECKING

from .interfaces import Promotion

if TYPE_CHECKING:
    from .cart import Cart

logger = logging.getLogger(__name__)


class BasePromotion:
    """
    Промоакция без действий: наследники переопределяют нужные фазы.
    is_eligible по умолчанию возвращает True.
    """

    def is_eligible(self, cart: "Cart") -> bool:
        return True

    def before_apply(self, cart: "Cart") -> None:
        pass

    def after_apply(self, cart: "Cart") -> None:
        pass

    def apply(self, cart: "Cart") -> None:
        pass


def process_promotions(cart: "Cart", promotions: Sequence[Promotion]) -> int:
    """
    Три фазы строго по порядку, каждая по всему списку:
      1. before_apply - всем
      2. apply - только тем, кто is_eligible на текущем состоянии корзины
      3. after_apply - всем
    Возвращает число применённых промоакций.
    """
    for promotion in promotions:
        promotion.before_apply(cart)

    applied = 0
    for promotion in promotions:
        if promotion.is_eligible(cart):
            promotion.apply(cart)
            applied += 1

    for promotion in promotions:
        promotion.after_apply(cart)

    logger.debug("promotions processed: %d of %d applied", applied, len(promotions))
    return applied
