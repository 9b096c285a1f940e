import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from decimal import Decimal

import pytest
from taxcart.cart import Cart
from taxcart.domain import Item
from taxcart.interfaces import Promotion
from taxcart.promotions import BasePromotion, process_promotions


class RecordingPromotion(BasePromotion):
    """Записывает вызовы фаз в общий журнал"""

    def __init__(self, name, eligible, journal):
        self.name = name
        self.eligible = eligible
        self.journal = journal

    def is_eligible(self, cart):
        self.journal.append(f"{self.name}.is_eligible")
        return self.eligible

    def before_apply(self, cart):
        self.journal.append(f"{self.name}.before_apply")

    def apply(self, cart):
        self.journal.append(f"{self.name}.apply")

    def after_apply(self, cart):
        self.journal.append(f"{self.name}.after_apply")


class FreeGiftPromotion(BasePromotion):
    """При сумме от 3 добавляет подарок, иначе убирает его"""

    def __init__(self):
        self.runs = 0

    def before_apply(self, cart):
        self.runs += 1

    def is_eligible(self, cart):
        return cart.get_total("~gift") >= Decimal("3")

    def apply(self, cart):
        if not cart.has_item("GIFT"):
            cart.add_item(Item(cart_id="GIFT", cart_type="gift", unit_price=0, tax_rate=0))

    def after_apply(self, cart):
        if cart.has_item("GIFT") and not self.is_eligible(cart):
            cart.remove_item("GIFT")


@pytest.fixture
def cart():
    c = Cart()
    c.add_item(Item(cart_id="A", cart_type="product", unit_price=1, tax_rate=10), 2)
    c.add_item(Item(cart_id="B", cart_type="product", unit_price=0.825, tax_rate=20))
    return c


def test_handles_promotions_in_three_phases(cart):
    """before_apply всем, apply только подходящим, after_apply всем"""
    journal = []
    cart.set_promotions(
        [RecordingPromotion("p1", True, journal), RecordingPromotion("p2", False, journal)]
    )

    assert journal == [
        "p1.before_apply",
        "p2.before_apply",
        "p1.is_eligible",
        "p1.apply",
        "p2.is_eligible",
        "p1.after_apply",
        "p2.after_apply",
    ]


def test_promotions_run_once_per_mutation(cart):
    journal = []
    cart.set_promotions([RecordingPromotion("p", True, journal)])
    journal.clear()

    cart.add_item(Item(cart_id="C", cart_type="product", unit_price=1, tax_rate=0))
    cart.set_item_quantity("C", 2)
    cart.remove_item("C")
    cart.set_prices_with_vat(False)
    cart.set_rounding_decimals(3)
    cart.set_context({"x": 1})
    cart.clear()

    assert journal.count("p.before_apply") == 7


def test_same_quantity_is_noop(cart):
    """Установка того же количества не сбрасывает кэш и не запускает промоакции"""
    journal = []
    cart.set_promotions([RecordingPromotion("p", True, journal)])
    journal.clear()
    totals = cart.get_totals()

    cart.set_item_quantity("A", 2)

    assert journal == []
    assert cart.get_totals() is totals


def test_clear_on_empty_cart_is_noop():
    journal = []
    c = Cart()
    c.set_promotions([RecordingPromotion("p", True, journal)])
    c.clear()
    assert journal == []


def test_set_items_runs_promotions_once(cart):
    journal = []
    cart.set_promotions([RecordingPromotion("p", True, journal)])
    journal.clear()

    cart.set_items(
        [
            Item(cart_id="X", cart_type="product", unit_price=1, tax_rate=0),
            Item(cart_id="Y", cart_type="product", unit_price=1, tax_rate=0),
            Item(cart_id="Z", cart_type="product", unit_price=1, tax_rate=0),
        ]
    )

    assert journal.count("p.apply") == 1


def test_promotion_mutation_does_not_recurse(cart):
    """Изменения из apply не запускают вложенный прогон"""
    gift = FreeGiftPromotion()
    cart.set_promotions([gift])

    assert cart.has_item("GIFT")
    assert gift.runs == 1

    cart.set_item_quantity("A", 1)
    assert not cart.has_item("GIFT")
    assert gift.runs == 2


def test_promotion_mutation_invalidates_cache(cart):
    """Кэш, заполненный промоакцией, не переживает её же изменения"""
    cart.set_promotions([FreeGiftPromotion()])

    assert cart.count_items() == 3
    assert cart.get_total() == Decimal("3.19")
    assert cart.get_items_by_type("gift")


def test_promotion_errors_propagate_and_guard_is_restored(cart):
    class Broken(BasePromotion):
        def apply(self, cart):
            raise RuntimeError("broken promotion")

    with pytest.raises(RuntimeError):
        cart.set_promotions([Broken()])

    journal = []
    cart.set_promotions([RecordingPromotion("p", True, journal)])
    assert "p.apply" in journal


def test_base_promotion_satisfies_protocol():
    assert isinstance(BasePromotion(), Promotion)


def test_process_promotions_returns_applied_count(cart):
    journal = []
    promotions = [
        RecordingPromotion("p1", True, journal),
        RecordingPromotion("p2", False, journal),
        RecordingPromotion("p3", True, journal),
    ]
    assert process_promotions(cart, promotions) == 2
    assert cart.promotions == ()
