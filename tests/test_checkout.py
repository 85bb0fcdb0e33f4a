import sys
import os
import re

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from configurator.cart import CartStore
from configurator.config import settings
from configurator.service import CatalogService, OrderService
from configurator.transforms import (
    by_price_range,
    checkout,
    find_model,
    load_seed,
    order_number,
)

categories, models, attributes, options = load_seed(settings.seed_path)


def test_load_seed():
    """Проверка загрузки каталога из seed.json"""
    assert len(categories) > 0
    assert len(models) > 0
    assert all(isinstance(m.features, tuple) for m in models)
    indexes = [a.order_index for a in attributes if a.category_id == "cat-sofa"]
    assert indexes == sorted(indexes)
    for opts in options.values():
        assert [o.order_index for o in opts] == sorted(o.order_index for o in opts)


def test_option_values_unique_per_attribute():
    for opts in options.values():
        values = [o.value for o in opts]
        assert len(values) == len(set(values))


def test_find_model():
    assert find_model(models, "Milano").get_or_else(None).base_price == 62000
    assert find_model(models, "Unknown").is_none()
    assert find_model(models, None).is_none()
    assert find_model((), "Milano").is_none()


def test_price_range_filter():
    affordable = tuple(filter(by_price_range(0, 50000), models))
    assert {m.name for m in affordable} == {"Dolce", "Serena"}


def test_catalog_service():
    svc = CatalogService(categories, models, attributes, options)
    assert svc.category_by_slug("Sofa").get_or_else(None).id == "cat-sofa"
    assert svc.category_by_slug("Dining Table").is_none()
    assert [c.priority for c in svc.active_categories()] == sorted(c.priority for c in categories)
    assert {m.name for m in svc.models_for("cat-recliner")} == {"Serena"}
    assert set(svc.options_for("cat-recliner")) == {"a-mechanism", "a-rec-seats"}


def test_checkout_empty_cart_is_refused():
    result = checkout((), "2025-11-25T12:00:00", "INR")
    assert result.is_left
    assert result.get_or_else(None) is None


def test_checkout_creates_pending_order():
    cart = CartStore()
    cart.add("Dolce", {"model": "Dolce"}, 94250)
    cart.add("Aurora", {"model": "Aurora"}, 78000)

    result = checkout(cart.items, "2025-11-25T12:00:00", "INR", delivery_address="Bandra, Mumbai")
    assert result.is_right
    order = result.get_or_else(None)
    assert order.total_amount == cart.total_price() == 172250
    assert order.status == "pending"
    assert order.currency == "INR"
    assert [i.item_price for i in order.items] == [94250, 78000]
    assert order.items[0].configuration_data == {"model": "Dolce"}
    assert re.fullmatch(r"EST-\d{8}", order.order_number)


def test_order_number_uses_last_eight_digits():
    assert order_number(1732536000123) == "EST-36000123"


def test_order_service_clears_cart_and_keeps_history():
    cart = CartStore()
    orders = OrderService(cart, "INR")
    assert orders.place_order().is_left

    cart.add("Dolce", {"model": "Dolce"}, 45000)
    first = orders.place_order("Gift wrap").get_or_else(None)
    cart.add("Milano", {"model": "Milano"}, 62000)
    second = orders.place_order().get_or_else(None)

    assert cart.item_count() == 0
    assert orders.history() == (second, first)
    assert first.customer_notes == "Gift wrap"
    assert orders.total_spent() == 107000
