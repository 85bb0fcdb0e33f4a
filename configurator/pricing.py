# configurator/pricing.py - калькуляторы цены поверх таблицы правил

import math
from typing import Any, Dict, Iterable, Mapping, Optional

from .domain import (
    AttributeOption,
    ConfigurationAttribute,
    FabricBreakdown,
    PriceBreakdown,
    SofaModel,
    validate_configuration,
)
from .fabrics import CONSOLE_COUNTS
from .rules import (
    PriceRule,
    PriceTable,
    always,
    constant_rule,
    evaluate,
    lookup_rule,
    number,
    option_modifier_rules,
    truthy,
    when_equals,
)

# Цена до выбора модели - интерфейс должен работать, пока модели загружаются
DEFAULT_BASE_PRICE = 45000


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ============ Калькулятор по опциям каталога ============


def catalog_price_table(
    model: Optional[SofaModel],
    attributes: Iterable[ConfigurationAttribute],
    options_by_attribute_id: Mapping[str, Iterable[AttributeOption]],
    fabric_costs: Optional[FabricBreakdown] = None,
    *,
    sum_multiselect: bool = False,
    visible_only: bool = False,
) -> PriceTable:
    """База модели -> модификаторы опций -> ткань -> надбавка за ткань"""
    base = model.base_price if model is not None and model.base_price else DEFAULT_BASE_PRICE
    fabric_cost = fabric_costs.fabric_cost if fabric_costs is not None else 0.0
    upgrade_cost = fabric_costs.upgrade_cost if fabric_costs is not None else 0.0

    modifiers = option_modifier_rules(
        attributes,
        options_by_attribute_id,
        sum_multiselect=sum_multiselect,
        visible_only=visible_only,
    )
    return PriceTable(base=lambda _c: base, rules=modifiers).extend(
        constant_rule("fabric", fabric_cost, kind="fabric"),
        constant_rule("upgrade", upgrade_cost, kind="upgrade"),
    )


def price_breakdown(
    config: Mapping[str, Any],
    model: Optional[SofaModel],
    attributes: Iterable[ConfigurationAttribute],
    options_by_attribute_id: Mapping[str, Iterable[AttributeOption]],
    fabric_costs: Optional[FabricBreakdown] = None,
    **flags: bool,
) -> PriceBreakdown:
    """Разбивка цены; итог округлён и не бывает отрицательным"""
    validate_configuration(config)
    table = catalog_price_table(model, attributes, options_by_attribute_id, fabric_costs, **flags)
    result = evaluate(table, config)
    return PriceBreakdown(
        base_price=round_half_up(result.base),
        modifier_total=round_half_up(result.sum_of("modifier")),
        fabric_cost=result.sum_of("fabric"),
        upgrade_cost=result.sum_of("upgrade"),
        total=max(0, round_half_up(result.total)),
    )


def calculate_price(
    config: Mapping[str, Any],
    model: Optional[SofaModel],
    attributes: Iterable[ConfigurationAttribute],
    options_by_attribute_id: Mapping[str, Iterable[AttributeOption]],
    fabric_costs: Optional[FabricBreakdown] = None,
    **flags: bool,
) -> int:
    return price_breakdown(
        config, model, attributes, options_by_attribute_id, fabric_costs, **flags
    ).total


# ============ Быстрый расчёт (фиксированные таблицы) ============

SEAT_BASE_PRICES: Dict[float, int] = {
    1: 45000,
    2: 65000,
    3: 85000,
    123: 150000,  # комплект 1+2+3
}
LOUNGER_BASE = 25000
LOUNGER_PER_FOOT = 2000
LOUNGER_REFERENCE_FEET = 6.0
REFERENCE_SEAT_WIDTH = 28.0  # дюймы
ARMREST_PRICES = {"smug": 0, "ocean": 3000, "box": 1500}
CONSOLE_PRICES = {'6"': 4000, '8"': 5500, '10"': 7000}
DEFAULT_CONSOLE_PRICE = 4000
CORNER_PRICE = 15000
PINE_WOOD_PRICE = 8000
LATEX_FOAM_PRICE = 12000
FABRIC_PLAN_SURCHARGES = {"single": 0, "dual": 8000, "triple": 15000}
ACCESSORY_PRICE = 2500


def _seat_base(config: Mapping[str, Any]) -> float:
    return SEAT_BASE_PRICES.get(number(config, "seats"), DEFAULT_BASE_PRICE)


def _lounger(config: Mapping[str, Any], _total: float) -> float:
    length = number(config, "loungerLength", LOUNGER_REFERENCE_FEET)
    return LOUNGER_BASE + (length - LOUNGER_REFERENCE_FEET) * LOUNGER_PER_FOOT


def _width(config: Mapping[str, Any], total: float) -> float:
    width = number(config, "seatWidth", REFERENCE_SEAT_WIDTH)
    return total * (width / REFERENCE_SEAT_WIDTH - 1.0)


def _console(config: Mapping[str, Any], _total: float) -> float:
    kind = config.get("consoleType")
    unit = CONSOLE_PRICES.get(kind, DEFAULT_CONSOLE_PRICE) if isinstance(kind, str) else DEFAULT_CONSOLE_PRICE
    count = number(config, "consoleCount")
    if count is None:
        token = config.get("consoleCount")
        count = CONSOLE_COUNTS.get(token, 1) if isinstance(token, str) else 1
    return unit * count


def _accessories(config: Mapping[str, Any], _total: float) -> float:
    chosen = config.get("accessories") or ()
    return len(chosen) * ACCESSORY_PRICE if isinstance(chosen, (list, tuple)) else 0.0


def quick_quote_table() -> PriceTable:
    return PriceTable(
        base=_seat_base,
        rules=(
            PriceRule("lounger", truthy("needsLounger"), _lounger),
            PriceRule("seat width", always, _width),
            lookup_rule("armrest", "armRestType", ARMREST_PRICES),
            PriceRule("console", truthy("needsConsole"), _console),
            constant_rule("corner", CORNER_PRICE, truthy("needsCorner")),
            constant_rule("pine wood", PINE_WOOD_PRICE, when_equals("woodType", "pine")),
            constant_rule("latex foam", LATEX_FOAM_PRICE, when_equals("seatFoam", "latex")),
            lookup_rule("fabric plan", "fabricPlan", FABRIC_PLAN_SURCHARGES),
            PriceRule("accessories", always, _accessories),
        ),
    )


def calculate_quick_quote(config: Mapping[str, Any]) -> int:
    """Цена по фиксированным таблицам: места, шезлонг, ширина, подлокотники, ..."""
    validate_configuration(config)
    return max(0, round_half_up(evaluate(quick_quote_table(), config).total))
