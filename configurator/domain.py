from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


class ConfigurationError(ValueError):
    """Структурно некорректная конфигурация (не словарь, ключ не строка и т.п.)"""


SELECT = "select"
MULTISELECT = "multiselect"


@dataclass(frozen=True)
class FurnitureCategory:
    id: str
    name: str
    slug: str
    base_price: int = 0
    type: str = "sofa"
    priority: int = 0


@dataclass(frozen=True)
class SofaModel:
    id: str
    name: str
    category_id: str
    base_price: int  # рупии
    description: str = ""
    features: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ConfigurationAttribute:
    id: str
    category_id: str
    name: str  # ключ в словаре конфигурации
    label: str
    type: str = SELECT  # "select" | "multiselect"
    required: bool = False
    depends_on: Optional[str] = None
    depends_value: Optional[str] = None
    order_index: int = 0

    @property
    def is_multiselect(self) -> bool:
        return self.type == MULTISELECT

    @property
    def has_dependency(self) -> bool:
        return bool(self.depends_on) and bool(self.depends_value)


@dataclass(frozen=True)
class AttributeOption:
    id: str
    attribute_id: str
    value: str
    label: str
    price_modifier: int = 0
    order_index: int = 0


@dataclass(frozen=True)
class FabricRecord:
    code: str
    description: str
    company: str
    collection: str
    color: str
    color_hex: str
    price_per_meter: int
    upgrade_charges: int  # надбавка за метр
    category: str  # leather | velvet | linen | cotton | synthetic
    texture: str = ""
    durability: str = ""


@dataclass(frozen=True)
class FabricBreakdown:
    total_meters: float
    meters_per_slot: float
    fabric_cost: float
    upgrade_cost: float

    @property
    def total_cost(self) -> float:
        return self.fabric_cost + self.upgrade_cost


@dataclass(frozen=True)
class PriceBreakdown:
    base_price: int
    modifier_total: int
    fabric_cost: float
    upgrade_cost: float
    total: int


@dataclass(frozen=True)
class CartItem:
    id: str
    model_name: str
    config: Mapping[str, Any]  # замороженная копия на момент добавления
    price: int
    timestamp: int  # миллисекунды

    def to_payload(self) -> dict:
        """Форма записи для хранилища корзины"""
        return {
            "id": self.id,
            "modelName": self.model_name,
            "config": thaw(self.config),
            "price": self.price,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class OrderItem:
    cart_item_id: str
    model_name: str
    configuration_data: Mapping[str, Any]
    item_price: int
    quantity: int = 1


@dataclass(frozen=True)
class Order:
    id: str
    order_number: str
    items: Tuple[OrderItem, ...]
    total_amount: int
    currency: str
    created_at: str
    status: str = "pending"  # pending | confirmed | in_production | ready | delivered | cancelled
    customer_notes: str = ""
    delivery_address: str = ""


@dataclass(frozen=True)
class SavedConfiguration:
    category_id: str
    model_id: str
    name: str
    configuration_data: Mapping[str, Any] = field(default_factory=dict)
    total_price: int = 0


# ============ Проверка конфигурации ============

_SCALARS = (str, int, float, bool, type(None))


def validate_configuration(config: Any) -> Mapping[str, Any]:
    """
    Структурная проверка: словарь строка -> скаляр или список скаляров.
    Пустые и незнакомые значения допустимы, их обрабатывают расчёты.
    """
    if not isinstance(config, Mapping):
        raise ConfigurationError(
            f"configuration must be a mapping, got {type(config).__name__}"
        )
    for key, value in config.items():
        if not isinstance(key, str):
            raise ConfigurationError(f"configuration key {key!r} is not a string")
        if isinstance(value, (list, tuple)):
            bad = next((v for v in value if not isinstance(v, _SCALARS)), None)
            if bad is not None:
                raise ConfigurationError(
                    f"field {key!r} holds unsupported item {type(bad).__name__}"
                )
        elif not isinstance(value, _SCALARS):
            raise ConfigurationError(
                f"field {key!r} holds unsupported value {type(value).__name__}"
            )
    return config


# ============ Заморозка конфигурации ============


def freeze(value: Any) -> Any:
    """Глубокая read-only копия: dict -> MappingProxyType, list -> tuple"""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Обратное преобразование для JSON"""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value
