# configurator/ftypes.py
# Результаты конфигуратора дивана.
# Maybe: модель по имени, ткань по коду, категория по slug (find_model, FabricCatalog.get).
# Either: add_to_cart, save_configuration, CartStore.update и checkout;
# отказ - Either.error("Cart is empty") -> Left({"error": "Cart is empty"}).

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
L = TypeVar("L")
R = TypeVar("R")


@dataclass(frozen=True)
class Maybe(Generic[T]):
    """
    Значение, которого может не быть (модель ещё не выбрана, код ткани неизвестен).
    Maybe.some(value) / Maybe.nothing() / Maybe.of(optional).
    """

    value: Optional[T]

    def __init__(self, value: Optional[T]):
        object.__setattr__(self, "value", value)

    @staticmethod
    def some(value: T) -> "Maybe[T]":
        return Maybe(value)

    @staticmethod
    def nothing() -> "Maybe[None]":
        return Maybe(None)

    @staticmethod
    def of(value: Optional[T]) -> "Maybe[T]":
        return Maybe(value)

    @staticmethod
    def first(items: Iterable[T], predicate: Callable[[T], bool]) -> "Maybe[T]":
        """Первый элемент, удовлетворяющий предикату"""
        return Maybe(next((item for item in items if predicate(item)), None))

    def is_some(self) -> bool:
        return self.value is not None

    def is_none(self) -> bool:
        return self.value is None

    def map(self, fn: Callable[[T], U]) -> "Maybe[U]":
        return Maybe.some(fn(self.value)) if self.is_some() else Maybe.nothing()

    def bind(self, fn: Callable[[T], "Maybe[U]"]) -> "Maybe[U]":
        return fn(self.value) if self.is_some() else Maybe.nothing()

    def get_or_else(self, default: U) -> T | U:
        return self.value if self.is_some() else default

    def __repr__(self) -> str:
        return f"Some({self.value})" if self.is_some() else "Nothing"


@dataclass(frozen=True)
class Either(Generic[L, R]):
    """
    Either<L, R>: Left - отказ ({"error": "..."}), Right - результат.
    """

    is_left: bool
    value: Union[L, R]

    def __init__(self, is_left: bool, value: Union[L, R]):
        object.__setattr__(self, "is_left", is_left)
        object.__setattr__(self, "value", value)

    @staticmethod
    def left(value: L) -> "Either[L, R]":
        return Either(True, value)

    @staticmethod
    def right(value: R) -> "Either[L, R]":
        return Either(False, value)

    @staticmethod
    def error(message: str) -> "Either[dict, R]":
        return Either.left({"error": message})

    @property
    def is_right(self) -> bool:
        return not self.is_left

    def map(self, fn: Callable[[R], U]) -> "Either[L, U]":
        return Either.right(fn(self.value)) if not self.is_left else self  # type: ignore[return-value]

    def bind(self, fn: Callable[[R], "Either[L, U]"]) -> "Either[L, U]":
        return fn(self.value) if not self.is_left else self  # type: ignore[return-value]

    def get_or_else(self, default: U) -> R | U:
        return self.value if not self.is_left else default  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Left({self.value})" if self.is_left else f"Right({self.value})"
