import logging
import math
from dataclasses import dataclass
from functools import reduce
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .domain import FabricBreakdown, FabricRecord, validate_configuration
from .ftypes import Maybe

logger = logging.getLogger(__name__)


# ============ Каталог тканей ============

FABRIC_DATASET: Tuple[FabricRecord, ...] = (
    # Premium Leather
    FabricRecord("LEA-LUX-001", "Premium Italian Nappa Leather", "Natuzzi Italia", "Luxury Leather",
                 "Midnight Black", "#1a1a1a", 2800, 450, "leather", "Smooth Grain", "Premium"),
    FabricRecord("LEA-LUX-002", "Hand-Finished Cognac Leather", "Natuzzi Italia", "Luxury Leather",
                 "Cognac Brown", "#8B4513", 2650, 420, "leather", "Natural Grain", "Premium"),
    FabricRecord("LEA-LUX-003", "Vintage Distressed Leather", "Natuzzi Italia", "Luxury Leather",
                 "Vintage Tan", "#D2B48C", 2950, 480, "leather", "Distressed", "Premium"),
    # Royal Velvet
    FabricRecord("VEL-ROY-001", "Royal Emerald Velvet", "Designers Guild", "Royal Velvet",
                 "Emerald Green", "#50C878", 1850, 280, "velvet", "Plush Pile", "High"),
    FabricRecord("VEL-ROY-002", "Deep Navy Velvet", "Designers Guild", "Royal Velvet",
                 "Deep Navy", "#000080", 1750, 260, "velvet", "Crushed Velvet", "High"),
    FabricRecord("VEL-ROY-003", "Champagne Gold Velvet", "Designers Guild", "Royal Velvet",
                 "Champagne Gold", "#F7E7CE", 1950, 300, "velvet", "Silk Velvet", "Premium"),
    # Natural Linen
    FabricRecord("LIN-NAT-001", "Belgian Natural Linen", "Libeco Home", "Natural Linen",
                 "Natural Beige", "#F5F5DC", 1200, 180, "linen", "Woven", "High"),
    FabricRecord("LIN-NAT-002", "Sage Green Linen", "Libeco Home", "Natural Linen",
                 "Sage Green", "#9CAF88", 1150, 170, "linen", "Textured Weave", "High"),
    FabricRecord("LIN-NAT-003", "Stone Grey Linen", "Libeco Home", "Natural Linen",
                 "Stone Grey", "#8C8C8C", 1180, 175, "linen", "Fine Weave", "High"),
    # Cotton Blend
    FabricRecord("COT-BLE-001", "Premium Cotton Blend", "Kravet", "Cotton Blend",
                 "Cream White", "#FFFDD0", 850, 120, "cotton", "Smooth", "Medium"),
    FabricRecord("COT-BLE-002", "Charcoal Cotton Blend", "Kravet", "Cotton Blend",
                 "Charcoal Grey", "#36454F", 820, 115, "cotton", "Textured", "Medium"),
    FabricRecord("COT-BLE-003", "Terracotta Cotton Blend", "Kravet", "Cotton Blend",
                 "Terracotta", "#E2725B", 880, 125, "cotton", "Canvas Weave", "High"),
    # Synthetic Premium
    FabricRecord("SYN-PRE-001", "Microfiber Suede", "Ultrafabrics", "Synthetic Premium",
                 "Mocha Brown", "#8B4513", 950, 140, "synthetic", "Suede-like", "High"),
    FabricRecord("SYN-PRE-002", "Performance Fabric", "Ultrafabrics", "Synthetic Premium",
                 "Ocean Blue", "#006994", 1050, 155, "synthetic", "Smooth", "Premium"),
    FabricRecord("SYN-PRE-003", "Eco-Friendly Synthetic", "Ultrafabrics", "Synthetic Premium",
                 "Forest Green", "#228B22", 1120, 165, "synthetic", "Textured", "Premium"),
)


class FabricCatalog:
    """Фасад над таблицей тканей"""

    def __init__(self, fabrics: Tuple[FabricRecord, ...] = FABRIC_DATASET):
        self.fabrics = fabrics
        self._by_code: Dict[str, FabricRecord] = {f.code: f for f in fabrics}

    def get(self, code: str) -> Maybe[FabricRecord]:
        """Ткань по коду (Nothing для пустого или неизвестного кода)"""
        return Maybe.of(self._by_code.get(code)) if code else Maybe.nothing()

    def by_category(self, category: str) -> Tuple[FabricRecord, ...]:
        return tuple(filter(lambda f: f.category == category, self.fabrics))

    def categories(self) -> Tuple[str, ...]:
        """Категории в порядке первого появления"""
        return tuple(dict.fromkeys(f.category for f in self.fabrics))

    def search(self, term: str = "", category: str = "all") -> Tuple[FabricRecord, ...]:
        """Поиск по описанию, коду, производителю и коллекции"""
        needle = (term or "").lower()

        def matches(f: FabricRecord) -> bool:
            haystack = (f.description, f.code, f.company, f.collection)
            in_text = not needle or any(needle in s.lower() for s in haystack)
            in_category = category == "all" or f.category == category
            return in_text and in_category

        return tuple(filter(matches, self.fabrics))


# ============ Планы обивки ============


@dataclass(frozen=True)
class FabricPlan:
    name: str
    multiplier: float  # запас на раскрой и подбор цветов
    slots: int


SINGLE_COLOUR = "Single Colour"
DUAL_COLOUR = "Dual Colour"
TRI_COLOUR = "Tri Colour"

FABRIC_PLANS: Dict[str, FabricPlan] = {
    SINGLE_COLOUR: FabricPlan(SINGLE_COLOUR, 1.0, 1),
    DUAL_COLOUR: FabricPlan(DUAL_COLOUR, 1.2, 2),
    TRI_COLOUR: FabricPlan(TRI_COLOUR, 1.4, 3),
}
DEFAULT_PLAN = FABRIC_PLANS[SINGLE_COLOUR]


def fabric_plan(name: Any) -> FabricPlan:
    return FABRIC_PLANS.get(name, DEFAULT_PLAN) if isinstance(name, str) else DEFAULT_PLAN


# ============ Таблицы метража ============

SEAT_METERS: Dict[str, float] = {
    "1 (One) seat": 6.0,
    "2 (Two) seats": 9.0,
    "3 (Three) seats": 12.0,
    "2+3+C seats": 18.0,
}
DEFAULT_SEAT_METERS = 12.0

LOUNGER_METERS: Dict[str, float] = {
    "5.5 feet": 6.5,
    "6 feet": 7.2,
    "6.5 feet": 7.8,
    "7 feet": 8.4,
}
DEFAULT_LOUNGER_METERS = 7.2

CONSOLE_METERS: Dict[str, float] = {
    "Tray": 1.5,
    "USB": 1.8,
    "Lighting...": 2.0,
    "Single cup holder": 1.2,
    "Dual cup holder": 2.0,
}
DEFAULT_CONSOLE_METERS = 1.5

CONSOLE_COUNTS: Dict[str, int] = {
    "1 (One)": 1,
    "2 (Two)": 2,
}
DEFAULT_CONSOLE_COUNT = 1

CORNER_METERS = 4.5

YES = "Yes"


def _text(config: Mapping[str, Any], key: str) -> Optional[str]:
    """Строковое значение поля; списки (multiselect) не участвуют в поиске по таблицам"""
    value = config.get(key)
    return value if isinstance(value, str) else None


def _lookup(table: Mapping[str, float], key: Optional[str], default: float, what: str) -> float:
    if key in table:
        return table[key]
    logger.debug("Unmapped %s %r, using %s", what, key, default)
    return default


def ceil_tenth(value: float) -> float:
    """Округление вверх до 0.1 (погрешность float отсекается до ceil)"""
    return math.ceil(round(value * 10, 6)) / 10


def estimate_fabric_meters(config: Mapping[str, Any]) -> float:
    """
    Метраж ткани для конфигурации дивана.
    Неизвестные или незаполненные поля берут значения по умолчанию - пользователь
    заполняет форму постепенно, это не ошибка.
    """
    validate_configuration(config)
    parts = [_lookup(SEAT_METERS, _text(config, "seats"), DEFAULT_SEAT_METERS, "seat count")]

    if _text(config, "needsLounger") == YES:
        parts.append(
            _lookup(LOUNGER_METERS, _text(config, "loungerLength"), DEFAULT_LOUNGER_METERS, "lounger length")
        )

    if _text(config, "needsConsole") == YES:
        per_unit = _lookup(CONSOLE_METERS, _text(config, "consoleType"), DEFAULT_CONSOLE_METERS, "console type")
        count = CONSOLE_COUNTS.get(_text(config, "consoleCount"), DEFAULT_CONSOLE_COUNT)
        parts.append(per_unit * count)

    if _text(config, "needsCorner") == YES:
        parts.append(CORNER_METERS)

    total = reduce(lambda acc, m: acc + m, parts, 0.0)
    total *= fabric_plan(config.get("fabricPlan")).multiplier
    return max(0.0, ceil_tenth(total))


# ============ Стоимость ткани ============


def calculate_fabric_costs(
    fabric_codes: Sequence[str],
    plan_name: Any,
    catalog: FabricCatalog,
    total_meters: float,
) -> FabricBreakdown:
    """
    Стоимость ткани и надбавки.
    Single Colour - весь метраж на один слот, иначе метраж делится поровну на
    число слотов плана. Пустые и неизвестные коды дают ноль.
    """
    plan = fabric_plan(plan_name)
    meters = total_meters if plan.slots == 1 else total_meters / plan.slots
    chosen = tuple(
        catalog.get(code).get_or_else(None)
        for code in tuple(fabric_codes or ())[: plan.slots]
        if isinstance(code, str)
    )
    found = tuple(f for f in chosen if f is not None)

    fabric_cost = reduce(lambda acc, f: acc + meters * f.price_per_meter, found, 0.0)
    upgrade_cost = reduce(lambda acc, f: acc + meters * f.upgrade_charges, found, 0.0)

    return FabricBreakdown(
        total_meters=total_meters,
        meters_per_slot=meters,
        fabric_cost=max(0.0, fabric_cost),
        upgrade_cost=max(0.0, upgrade_cost),
    )


def fabric_breakdown(config: Mapping[str, Any], catalog: FabricCatalog) -> FabricBreakdown:
    """Метраж + стоимость ткани для текущей конфигурации"""
    validate_configuration(config)
    codes = config.get("fabricCodes") or ()
    if isinstance(codes, str):
        codes = (codes,)
    return calculate_fabric_costs(
        codes, config.get("fabricPlan"), catalog, estimate_fabric_meters(config)
    )
