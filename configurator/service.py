import logging
from datetime import datetime
from typing import Dict, Mapping, Optional, Tuple

from .cart import CartStore
from .domain import (
    AttributeOption,
    ConfigurationAttribute,
    FurnitureCategory,
    Order,
    SofaModel,
)
from .fabrics import FabricCatalog
from .ftypes import Either, Maybe
from .session import ConfigurationSession, open_session
from .transforms import by_category, checkout

logger = logging.getLogger(__name__)


class CatalogService:
    """Фасад над загруженным каталогом (категории, модели, атрибуты, ткани)"""

    def __init__(
        self,
        categories: Tuple[FurnitureCategory, ...],
        models: Tuple[SofaModel, ...],
        attributes: Tuple[ConfigurationAttribute, ...],
        options_by_attribute_id: Mapping[str, Tuple[AttributeOption, ...]],
        fabrics: Optional[FabricCatalog] = None,
    ):
        self.categories = categories
        self.models = models
        self.attributes = attributes
        self.options_by_attribute_id = options_by_attribute_id
        self.fabrics = fabrics or FabricCatalog()

    def active_categories(self) -> Tuple[FurnitureCategory, ...]:
        """Категории по приоритету"""
        return tuple(sorted(self.categories, key=lambda c: c.priority))

    def category_by_slug(self, slug: str) -> Maybe[FurnitureCategory]:
        normalized = "-".join((slug or "").lower().split())
        return Maybe.first(self.categories, lambda c: c.slug == normalized)

    def models_for(self, category_id: str) -> Tuple[SofaModel, ...]:
        return tuple(filter(by_category(category_id), self.models))

    def attributes_for(self, category_id: str) -> Tuple[ConfigurationAttribute, ...]:
        return tuple(
            sorted(filter(by_category(category_id), self.attributes), key=lambda a: a.order_index)
        )

    def options_for(self, category_id: str) -> Dict[str, Tuple[AttributeOption, ...]]:
        ids = {a.id for a in self.attributes_for(category_id)}
        return {aid: opts for aid, opts in self.options_by_attribute_id.items() if aid in ids}

    def open_configurator(self, category_id: str, cart: Optional[CartStore] = None, **price_flags: bool) -> ConfigurationSession:
        """Новая пустая сессия конфигуратора для категории"""
        logger.debug("Opening configurator for %s", category_id)
        return open_session(
            category_id,
            self.models,
            self.attributes,
            self.options_for(category_id),
            cart=cart,
            fabric_catalog=self.fabrics,
            **price_flags,
        )


class OrderService:
    """Оформление заказов из корзины"""

    def __init__(self, cart: CartStore, currency: str):
        self.cart = cart
        self.currency = currency
        self.orders: Tuple[Order, ...] = ()

    def place_order(self, customer_notes: str = "", delivery_address: str = "") -> Either[dict, Order]:
        """
        Заказ из текущей корзины. При успехе корзина очищается,
        заказ добавляется в историю.
        """
        result = checkout(
            self.cart.items,
            datetime.now().isoformat(timespec="seconds"),
            self.currency,
            customer_notes=customer_notes,
            delivery_address=delivery_address,
        )
        if result.is_right:
            order = result.get_or_else(None)
            self.orders = (order,) + self.orders
            self.cart.clear()
            logger.info("Order %s placed, total %s %s", order.order_number, order.total_amount, order.currency)
        return result

    def history(self) -> Tuple[Order, ...]:
        """Заказы, новые первыми"""
        return self.orders

    def total_spent(self) -> int:
        return sum(o.total_amount for o in self.orders)
