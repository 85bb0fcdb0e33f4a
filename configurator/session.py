"""
Сессия конфигуратора: текущий набор выбранных значений для одной категории.

Все производные значения (видимые поля, метраж, цена) вычисляются заново
при каждом чтении из текущего словаря конфигурации, ничего не кэшируется.
"""

import copy
import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .cart import CartStore
from .domain import (
    AttributeOption,
    CartItem,
    ConfigurationAttribute,
    ConfigurationError,
    FabricBreakdown,
    PriceBreakdown,
    SavedConfiguration,
    SofaModel,
    validate_configuration,
)
from .fabrics import FabricCatalog, estimate_fabric_meters, fabric_breakdown, fabric_plan
from .ftypes import Either, Maybe
from .pricing import price_breakdown
from .transforms import find_model
from .visibility import visible_attributes

logger = logging.getLogger(__name__)

MODEL_KEY = "model"
FABRIC_PLAN_KEY = "fabricPlan"
FABRIC_CODES_KEY = "fabricCodes"


class SessionState(str, Enum):
    EMPTY = "empty"  # модель не выбрана
    PARTIAL = "partial"  # есть незаполненные видимые обязательные поля
    COMPLETE = "complete"


def has_value(value: Any) -> bool:
    """None, пустая строка и пустой список считаются незаполненными"""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple)):
        return len(value) > 0
    return True


class ConfigurationSession:
    def __init__(
        self,
        category_id: str,
        models: Tuple[SofaModel, ...],
        attributes: Tuple[ConfigurationAttribute, ...],
        options_by_attribute_id: Mapping[str, Tuple[AttributeOption, ...]],
        fabric_catalog: Optional[FabricCatalog] = None,
        cart: Optional[CartStore] = None,
        **price_flags: bool,
    ):
        self.category_id = category_id
        self.models = models
        self.attributes = attributes
        self.options_by_attribute_id = options_by_attribute_id
        self.fabric_catalog = fabric_catalog or FabricCatalog()
        self.cart = cart
        self.price_flags = price_flags
        self.config: Dict[str, Any] = {}

    # ---------- мутации ----------

    def _set(self, key: str, value: Any) -> SessionState:
        if not isinstance(key, str) or not key:
            raise ConfigurationError(f"field name must be a non-empty string, got {key!r}")
        validate_configuration({key: value})
        before = self.state
        self.config[key] = list(value) if isinstance(value, (list, tuple)) else value
        after = self.state
        if after != before:
            logger.debug("Session %s: %s -> %s on %s", self.category_id, before.value, after.value, key)
        return after

    def select_model(self, name: str) -> SessionState:
        return self._set(MODEL_KEY, name)

    def select_default_model(self) -> SessionState:
        """Первая модель категории, если модель ещё не выбрана"""
        if self.models and not has_value(self.config.get(MODEL_KEY)):
            return self.select_model(self.models[0].name)
        return self.state

    def set_value(self, name: str, value: Any) -> SessionState:
        return self._set(name, value)

    def clear_value(self, name: str) -> SessionState:
        self.config.pop(name, None)
        return self.state

    def toggle_value(self, name: str, value: str) -> SessionState:
        """Добавляет значение в multiselect-поле или убирает его оттуда"""
        current = self.config.get(name)
        values = list(current) if isinstance(current, (list, tuple)) else []
        updated = [v for v in values if v != value] if value in values else values + [value]
        return self._set(name, updated)

    def set_fabric_plan(self, plan: str) -> SessionState:
        """Меняет план обивки; список кодов подгоняется под число слотов"""
        slots = fabric_plan(plan).slots
        codes = list(self.fabric_codes)[:slots]
        codes += [""] * (slots - len(codes))
        self._set(FABRIC_PLAN_KEY, plan)
        return self._set(FABRIC_CODES_KEY, codes)

    def set_fabric_code(self, index: int, code: str) -> SessionState:
        slots = fabric_plan(self.config.get(FABRIC_PLAN_KEY)).slots
        if not isinstance(index, int) or not 0 <= index < slots:
            raise ConfigurationError(f"fabric slot {index!r} is outside the plan's {slots} slot(s)")
        codes = list(self.fabric_codes)[:slots]
        codes += [""] * (slots - len(codes))
        codes[index] = code
        return self._set(FABRIC_CODES_KEY, codes)

    # ---------- производные значения ----------

    @property
    def fabric_codes(self) -> Tuple[str, ...]:
        codes = self.config.get(FABRIC_CODES_KEY) or ()
        return tuple(codes) if isinstance(codes, (list, tuple)) else (codes,)

    @property
    def model(self) -> Maybe[SofaModel]:
        return find_model(self.models, self.config.get(MODEL_KEY))

    @property
    def visible_attributes(self) -> Tuple[ConfigurationAttribute, ...]:
        return visible_attributes(self.attributes, self.config)

    def missing_required(self) -> Tuple[ConfigurationAttribute, ...]:
        return tuple(
            a for a in self.visible_attributes if a.required and not has_value(self.config.get(a.name))
        )

    @property
    def state(self) -> SessionState:
        if not has_value(self.config.get(MODEL_KEY)):
            return SessionState.EMPTY
        if self.missing_required():
            return SessionState.PARTIAL
        return SessionState.COMPLETE

    def fabric_meters(self) -> float:
        return estimate_fabric_meters(self.config)

    def fabric_breakdown(self) -> FabricBreakdown:
        return fabric_breakdown(self.config, self.fabric_catalog)

    def price_breakdown(self) -> PriceBreakdown:
        return price_breakdown(
            self.config,
            self.model.get_or_else(None),
            self.attributes,
            self.options_by_attribute_id,
            self.fabric_breakdown(),
            **self.price_flags,
        )

    def price(self) -> int:
        return self.price_breakdown().total

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self.config)

    # ---------- действия ----------

    def add_to_cart(self) -> Either[dict, CartItem]:
        """
        Снимок конфигурации в корзину. Разрешено в partial и complete.
        Сессия не сбрасывается - можно добавить вариацию.
        """
        if self.cart is None:
            return Either.error("No cart attached to the session")
        if self.state == SessionState.EMPTY:
            return Either.error("Select a model before adding to cart")
        if self.model.is_none():
            return Either.error(f"Unknown model '{self.config[MODEL_KEY]}'")
        item = self.cart.add(self.model.get_or_else(None).name, self.snapshot(), self.price())
        return Either.right(item)

    def save_configuration(self, name: str = "") -> Either[dict, SavedConfiguration]:
        """Данные для сохранения конфигурации во внешнем хранилище"""
        selected = self.model.get_or_else(None)
        if selected is None:
            return Either.error("Select a model before saving the configuration")
        return Either.right(
            SavedConfiguration(
                category_id=self.category_id,
                model_id=selected.id,
                name=name or selected.name,
                configuration_data=self.snapshot(),
                total_price=self.price(),
            )
        )


def open_session(
    category_id: str,
    models: Sequence[SofaModel],
    attributes: Sequence[ConfigurationAttribute],
    options_by_attribute_id: Mapping[str, Tuple[AttributeOption, ...]],
    cart: Optional[CartStore] = None,
    fabric_catalog: Optional[FabricCatalog] = None,
    **price_flags: bool,
) -> ConfigurationSession:
    """Сессия только с моделями и атрибутами выбранной категории"""
    return ConfigurationSession(
        category_id=category_id,
        models=tuple(m for m in models if m.category_id == category_id),
        attributes=tuple(a for a in attributes if a.category_id == category_id),
        options_by_attribute_id=options_by_attribute_id,
        fabric_catalog=fabric_catalog,
        cart=cart,
        **price_flags,
    )
