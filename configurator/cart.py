import json
import logging
import os
from typing import Any, List, Mapping, Optional, Tuple

from .domain import CartItem
from .ftypes import Either
from .transforms import (
    add_item,
    item_from_payload,
    make_cart_item,
    remove_item,
    total_price,
    update_item,
)

logger = logging.getLogger(__name__)


class JsonCartStorage:
    """Хранилище корзины: JSON-список записей {id, modelName, config, price, timestamp}"""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Tuple[CartItem, ...]:
        if not os.path.exists(self.path):
            return ()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            return tuple(map(item_from_payload, payload))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable cart file %s: %s", self.path, exc)
            return ()

    def save(self, items: Tuple[CartItem, ...]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        payload: List[dict] = [i.to_payload() for i in items]
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)


class CartStore:
    """
    Корзина магазина. Создаётся один раз при старте и передаётся явно
    туда, где нужна. Меняется только через add/remove/update/clear;
    после каждого изменения сохраняется в storage (если задан).
    """

    def __init__(self, storage: Optional[JsonCartStorage] = None):
        self.storage = storage
        self._items: Tuple[CartItem, ...] = storage.load() if storage else ()

    @property
    def items(self) -> Tuple[CartItem, ...]:
        return self._items

    def _commit(self, items: Tuple[CartItem, ...]) -> None:
        if self.storage:
            self.storage.save(items)
        self._items = items

    def add(self, model_name: str, config: Mapping[str, Any], price: float) -> CartItem:
        item = make_cart_item(model_name, config, price)
        self._commit(add_item(self._items, item))
        logger.info("Added %s to cart at %s", item.model_name, item.price)
        return item

    def remove(self, item_id: str) -> bool:
        remaining = remove_item(self._items, item_id)
        removed = len(remaining) != len(self._items)
        if removed:
            self._commit(remaining)
            logger.info("Removed %s from cart", item_id)
        return removed

    def update(self, item_id: str, config: Mapping[str, Any], price: float) -> Either[dict, CartItem]:
        if not any(i.id == item_id for i in self._items):
            return Either.error(f"Cart item '{item_id}' not found")
        self._commit(update_item(self._items, item_id, config, price))
        updated = next(i for i in self._items if i.id == item_id)
        logger.info("Updated cart item %s, price %s", item_id, updated.price)
        return Either.right(updated)

    def clear(self) -> None:
        self._commit(())

    def total_price(self) -> int:
        return total_price(self._items)

    def item_count(self) -> int:
        return len(self._items)
