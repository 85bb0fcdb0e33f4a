import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from configurator.domain import ConfigurationAttribute
from configurator.visibility import hidden_values, is_visible, visible_attributes

SEATS = ConfigurationAttribute(id="a1", category_id="c", name="seats", label="Seats", order_index=1)
LOUNGER = ConfigurationAttribute(id="a2", category_id="c", name="needsLounger", label="Lounger", order_index=2)
LENGTH = ConfigurationAttribute(
    id="a3", category_id="c", name="loungerLength", label="Length",
    depends_on="needsLounger", depends_value="Yes", order_index=3,
)
ACCESSORIES = ConfigurationAttribute(
    id="a4", category_id="c", name="accessories", label="Accessories", type="multiselect", order_index=4,
)
CUSHION_STYLE = ConfigurationAttribute(
    id="a5", category_id="c", name="cushionStyle", label="Cushion style",
    depends_on="accessories", depends_value="Cushions", order_index=5,
)


def test_attribute_without_dependency_always_visible():
    for config in ({}, {"seats": "x"}, {"needsLounger": "No"}, {"anything": ["a", "b"]}):
        assert is_visible(SEATS, config)


def test_dependency_requires_exact_value():
    assert is_visible(LENGTH, {"needsLounger": "Yes"})
    assert not is_visible(LENGTH, {"needsLounger": "No"})
    assert not is_visible(LENGTH, {"needsLounger": "yes"})
    assert not is_visible(LENGTH, {})


def test_half_declared_dependency_is_ignored():
    loose = ConfigurationAttribute(id="x", category_id="c", name="x", label="X", depends_on="needsLounger")
    assert is_visible(loose, {})


def test_multiselect_source_never_matches_scalar():
    """Список выбранных значений не равен строке - поле остаётся скрытым"""
    assert not is_visible(CUSHION_STYLE, {"accessories": ["Cushions"]})
    assert not is_visible(CUSHION_STYLE, {"accessories": ("Cushions", "Throw")})


def test_visible_attributes_sorted_by_order_index():
    shuffled = (LENGTH, SEATS, LOUNGER)
    assert visible_attributes(shuffled, {}) == (SEATS, LOUNGER)
    assert visible_attributes(shuffled, {"needsLounger": "Yes"}) == (SEATS, LOUNGER, LENGTH)


def test_hidden_values_are_kept():
    config = {"needsLounger": "No", "loungerLength": "7 feet"}
    assert hidden_values((SEATS, LOUNGER, LENGTH), config) == {"loungerLength": "7 feet"}
    assert config["loungerLength"] == "7 feet"
