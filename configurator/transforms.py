import json
import time
import uuid
from datetime import datetime
from functools import reduce
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .domain import (
    AttributeOption,
    CartItem,
    ConfigurationAttribute,
    FurnitureCategory,
    Order,
    OrderItem,
    SofaModel,
    freeze,
    thaw,
    validate_configuration,
)
from .ftypes import Either, Maybe
from .pricing import round_half_up

Seed = Tuple[
    Tuple[FurnitureCategory, ...],
    Tuple[SofaModel, ...],
    Tuple[ConfigurationAttribute, ...],
    Dict[str, Tuple[AttributeOption, ...]],
]


def load_seed(path: str) -> Seed:
    """
    Загружает seed.json: категории, модели, атрибуты и опции.
    Опции группируются по attribute_id и сортируются по order_index.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    categories = tuple(map(lambda c: FurnitureCategory(**c), data.get("categories", [])))

    def _to_model(m):
        m2 = dict(m)
        m2["features"] = tuple(m2.get("features", []))
        return SofaModel(**m2)

    models = tuple(map(_to_model, data.get("models", [])))
    attributes = tuple(
        sorted(
            map(lambda a: ConfigurationAttribute(**a), data.get("attributes", [])),
            key=lambda a: a.order_index,
        )
    )
    options = tuple(map(lambda o: AttributeOption(**o), data.get("options", [])))

    def group_by_attribute(acc: dict, option: AttributeOption) -> dict:
        return {**acc, option.attribute_id: acc.get(option.attribute_id, ()) + (option,)}

    grouped = reduce(group_by_attribute, options, {})
    options_by_attribute_id = {
        aid: tuple(sorted(opts, key=lambda o: o.order_index)) for aid, opts in grouped.items()
    }
    return categories, models, attributes, options_by_attribute_id


# ============ Поиск в каталоге ============


def find_model(models: Tuple[SofaModel, ...], name: Any) -> Maybe[SofaModel]:
    """Модель по имени (Nothing, пока модели не загружены или имя не выбрано)"""
    return Maybe.first(models, lambda m: m.name == name) if name else Maybe.nothing()


def by_category(category_id: str) -> Callable[[Any], bool]:
    """Фильтр по категории (модели, атрибуты)"""
    return lambda item: item.category_id == category_id


def by_price_range(min_price: int, max_price: int) -> Callable[[SofaModel], bool]:
    return lambda m: min_price <= m.base_price <= max_price


# ============ Корзина (чистые функции над кортежем позиций) ============


def now_ms() -> int:
    return int(time.time() * 1000)


def make_cart_item(
    model_name: str,
    config: Mapping[str, Any],
    price: float,
    timestamp: Optional[int] = None,
) -> CartItem:
    """Снимок конфигурации: глубокая копия, цена фиксируется"""
    validate_configuration(config)
    ts = now_ms() if timestamp is None else int(timestamp)
    return CartItem(
        id=f"{model_name}-{ts}-{uuid.uuid4().hex[:6]}",
        model_name=model_name,
        config=freeze(config),
        price=round_half_up(price),
        timestamp=ts,
    )


def add_item(items: Tuple[CartItem, ...], item: CartItem) -> Tuple[CartItem, ...]:
    return items + (item,)


def remove_item(items: Tuple[CartItem, ...], item_id: str) -> Tuple[CartItem, ...]:
    return tuple(filter(lambda i: i.id != item_id, items))


def update_item(
    items: Tuple[CartItem, ...], item_id: str, config: Mapping[str, Any], price: float
) -> Tuple[CartItem, ...]:
    """Заменяет конфигурацию и цену позиции; id и время добавления сохраняются"""
    validate_configuration(config)

    def replace(i: CartItem) -> CartItem:
        if i.id != item_id:
            return i
        return CartItem(
            id=i.id,
            model_name=i.model_name,
            config=freeze(config),
            price=round_half_up(price),
            timestamp=i.timestamp,
        )

    return tuple(map(replace, items))


def total_price(items: Tuple[CartItem, ...]) -> int:
    """Сумма зафиксированных цен, без пересчёта по каталогу"""
    return reduce(lambda acc, i: acc + int(i.price), items, 0)


def item_from_payload(payload: Mapping[str, Any]) -> CartItem:
    """Позиция из сохранённой записи {id, modelName, config, price, timestamp}"""
    config = validate_configuration(payload["config"])
    return CartItem(
        id=str(payload["id"]),
        model_name=str(payload["modelName"]),
        config=freeze(config),
        price=int(payload["price"]),
        timestamp=int(payload["timestamp"]),
    )


# ============ Оформление заказа ============


def order_number(timestamp_ms: int) -> str:
    return f"EST-{str(timestamp_ms)[-8:]}"


def checkout(
    items: Tuple[CartItem, ...],
    ts: str,
    currency: str,
    customer_notes: str = "",
    delivery_address: str = "",
) -> Either[dict, Order]:
    """
    Корзина -> Either[error, Order]
    Left если корзина пуста, иначе заказ в статусе pending.
    Сумма заказа - сумма зафиксированных цен позиций.
    """
    if not items:
        return Either.error("Cart is empty")

    order_items = tuple(
        OrderItem(
            cart_item_id=i.id,
            model_name=i.model_name,
            configuration_data=thaw(i.config),
            item_price=i.price,
        )
        for i in items
    )
    stamp = now_ms()
    order = Order(
        id=str(uuid.uuid4()),
        order_number=order_number(stamp),
        items=order_items,
        total_amount=total_price(items),
        currency=currency,
        created_at=str(ts or datetime.now().isoformat()),
        customer_notes=customer_notes,
        delivery_address=delivery_address,
    )
    return Either.right(order)
