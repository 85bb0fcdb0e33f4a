import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from configurator.ftypes import Maybe, Either


def test_maybe_some_and_none_behavior():
    just = Maybe.some(42)
    nothing = Maybe.nothing()

    assert not just.is_none()
    assert nothing.is_none()
    assert just.get_or_else(0) == 42
    assert nothing.get_or_else(0) == 0
    assert Maybe.of(None).is_none()


def test_maybe_map_and_bind():
    maybe_val = Maybe.some(10)
    assert maybe_val.map(lambda x: x * 2).get_or_else(0) == 20
    assert maybe_val.bind(lambda x: Maybe.some(x + 5)).get_or_else(0) == 15
    assert Maybe.nothing().map(lambda x: x * 2).is_none()


def test_maybe_first():
    assert Maybe.first([1, 2, 3], lambda x: x > 1).get_or_else(None) == 2
    assert Maybe.first([], lambda x: True).is_none()


def test_either_left_and_right_behavior():
    right_val = Either.right(100)
    left_val = Either.error("Cart is empty")

    assert right_val.is_right
    assert not left_val.is_right
    assert left_val.value == {"error": "Cart is empty"}
    assert right_val.get_or_else(0) == 100
    assert left_val.get_or_else(0) == 0


def test_either_map_and_bind():
    val = Either.right(5)
    assert val.map(lambda x: x * 2).get_or_else(0) == 10
    assert val.bind(lambda x: Either.right(x + 3)).get_or_else(0) == 8
    assert Either.left("e").map(lambda x: x * 2).is_left
