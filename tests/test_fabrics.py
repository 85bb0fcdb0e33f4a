import sys
import os

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from configurator.domain import ConfigurationError
from configurator.fabrics import (
    FabricCatalog,
    calculate_fabric_costs,
    ceil_tenth,
    estimate_fabric_meters,
    fabric_breakdown,
)

TWO_SEATER = {"seats": "2 (Two) seats", "needsLounger": "No", "fabricPlan": "Single Colour"}


def test_two_seater_single_colour():
    """2 места, без шезлонга, один цвет -> 9.0 м"""
    assert estimate_fabric_meters(TWO_SEATER) == 9.0


def test_two_seater_dual_colour():
    """Dual Colour: 9 * 1.2 = 10.8"""
    assert estimate_fabric_meters({**TWO_SEATER, "fabricPlan": "Dual Colour"}) == 10.8


def test_two_tray_consoles_add_three_meters():
    config = {
        **TWO_SEATER,
        "needsConsole": "Yes",
        "consoleType": "Tray",
        "consoleCount": "2 (Two)",
    }
    assert estimate_fabric_meters(config) == 12.0


def test_unknown_values_fall_back():
    """Неизвестные значения не ломают расчёт, а берут значения по умолчанию"""
    assert estimate_fabric_meters({}) == 12.0
    assert estimate_fabric_meters({"seats": "9 seats"}) == 12.0
    lounger = {"seats": "1 (One) seat", "needsLounger": "Yes", "loungerLength": "9 feet"}
    assert estimate_fabric_meters(lounger) == pytest.approx(6 + 7.2)
    console = {"seats": "1 (One) seat", "needsConsole": "Yes", "consoleType": "Fridge"}
    assert estimate_fabric_meters(console) == 7.5


def test_multiselect_value_in_lookup_field_is_ignored():
    assert estimate_fabric_meters({"seats": ["2 (Two) seats"]}) == 12.0


def test_malformed_configuration_fails_fast():
    """Не словарь или вложенный словарь - ConfigurationError, а не AttributeError"""
    with pytest.raises(ConfigurationError):
        estimate_fabric_meters(None)
    with pytest.raises(ConfigurationError):
        estimate_fabric_meters({"seats": {"count": 2}})
    with pytest.raises(ConfigurationError):
        fabric_breakdown(["seats"], FabricCatalog())


def test_optional_units_never_decrease_meters():
    steps = [
        {"seats": "3 (Three) seats"},
        {"needsLounger": "Yes", "loungerLength": "6.5 feet"},
        {"needsConsole": "Yes", "consoleType": "USB", "consoleCount": "1 (One)"},
        {"consoleCount": "2 (Two)"},
        {"needsCorner": "Yes"},
    ]
    config, previous = {}, 0.0
    for step in steps:
        config = {**config, **step}
        meters = estimate_fabric_meters(config)
        assert meters >= previous
        previous = meters


@pytest.mark.parametrize(
    "base",
    [
        {"seats": "1 (One) seat"},
        {"seats": "2+3+C seats", "needsCorner": "Yes"},
        {"seats": "3 (Three) seats", "needsLounger": "Yes", "loungerLength": "7 feet"},
    ],
)
def test_tri_colour_needs_at_least_single_colour(base):
    single = estimate_fabric_meters({**base, "fabricPlan": "Single Colour"})
    tri = estimate_fabric_meters({**base, "fabricPlan": "Tri Colour"})
    assert tri >= single


def test_rounds_up_to_one_decimal():
    """(12 + 1.2) * 1.4 = 18.48 -> 18.5, никогда вниз"""
    config = {
        "seats": "3 (Three) seats",
        "needsConsole": "Yes",
        "consoleType": "Single cup holder",
        "fabricPlan": "Tri Colour",
    }
    meters = estimate_fabric_meters(config)
    assert meters == 18.5
    assert meters >= (12 + 1.2) * 1.4
    assert round(meters, 1) == meters


def test_ceil_tenth_keeps_exact_tenths():
    assert ceil_tenth(10.8) == 10.8
    assert ceil_tenth(9 * 1.2) == 10.8
    assert ceil_tenth(10.81) == 10.9


def test_single_colour_costs():
    catalog = FabricCatalog()
    costs = calculate_fabric_costs(["LEA-LUX-001"], "Single Colour", catalog, 9.0)
    assert costs.meters_per_slot == 9.0
    assert costs.fabric_cost == 9.0 * 2800
    assert costs.upgrade_cost == 9.0 * 450
    assert costs.total_cost == costs.fabric_cost + costs.upgrade_cost


def test_dual_colour_splits_meters_and_skips_unknown_codes():
    catalog = FabricCatalog()
    costs = calculate_fabric_costs(["VEL-ROY-001", "NOPE-000"], "Dual Colour", catalog, 10.8)
    assert costs.meters_per_slot == pytest.approx(5.4)
    assert costs.fabric_cost == pytest.approx(5.4 * 1850)
    assert costs.upgrade_cost == pytest.approx(5.4 * 280)


def test_empty_slots_cost_nothing():
    catalog = FabricCatalog()
    costs = calculate_fabric_costs(["", ""], "Dual Colour", catalog, 10.8)
    assert costs.fabric_cost == 0
    assert costs.upgrade_cost == 0


def test_codes_beyond_plan_slots_are_ignored():
    catalog = FabricCatalog()
    costs = calculate_fabric_costs(["COT-BLE-001", "LEA-LUX-001"], "Single Colour", catalog, 6.0)
    assert costs.fabric_cost == 6.0 * 850


def test_fabric_breakdown_from_config():
    catalog = FabricCatalog()
    config = {**TWO_SEATER, "fabricCodes": ["LIN-NAT-001"]}
    breakdown = fabric_breakdown(config, catalog)
    assert breakdown.total_meters == 9.0
    assert breakdown.fabric_cost == 9.0 * 1200


def test_catalog_lookup_and_search():
    catalog = FabricCatalog()
    assert catalog.get("SYN-PRE-002").get_or_else(None).color == "Ocean Blue"
    assert catalog.get("").is_none()
    assert catalog.get("LEA-LUX-999").is_none()
    assert catalog.categories() == ("leather", "velvet", "linen", "cotton", "synthetic")
    assert len(catalog.by_category("velvet")) == 3
    assert {f.code for f in catalog.search("kravet")} == {"COT-BLE-001", "COT-BLE-002", "COT-BLE-003"}
    assert catalog.search("green", "linen")[0].code == "LIN-NAT-002"
