"""
Таблица правил ценообразования.

Правило - пара (предикат над конфигурацией, дельта цены). Правила
применяются по порядку свёрткой: дельта может зависеть от накопленной
суммы (например, множитель ширины посадки), поэтому порядок в таблице
значим. Оба калькулятора (по опциям каталога и быстрый расчёт) - это
просто разные таблицы.
"""

from dataclasses import dataclass
from functools import reduce
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from .domain import AttributeOption, ConfigurationAttribute
from .visibility import is_visible

Config = Mapping[str, Any]
Predicate = Callable[[Config], bool]
Delta = Callable[[Config, float], float]


@dataclass(frozen=True)
class PriceRule:
    name: str
    applies: Predicate
    delta: Delta
    kind: str = "modifier"  # modifier | fabric | upgrade


@dataclass(frozen=True)
class PriceTable:
    base: Callable[[Config], float]
    rules: Tuple[PriceRule, ...] = ()

    def extend(self, *rules: PriceRule) -> "PriceTable":
        """Новая таблица с добавленными в конец правилами"""
        return PriceTable(base=self.base, rules=self.rules + tuple(rules))


@dataclass(frozen=True)
class RuleEvaluation:
    base: float
    applied: Tuple[Tuple[PriceRule, float], ...]
    total: float

    def sum_of(self, kind: str) -> float:
        return sum(d for rule, d in self.applied if rule.kind == kind)


def evaluate(table: PriceTable, config: Config) -> RuleEvaluation:
    """Свёртка правил по порядку: (итог, применённые правила)"""
    base = float(table.base(config))

    def step(acc: Tuple[float, tuple], rule: PriceRule):
        total, applied = acc
        if not rule.applies(config):
            return acc
        d = float(rule.delta(config, total))
        return total + d, applied + ((rule, d),)

    total, applied = reduce(step, table.rules, (base, ()))
    return RuleEvaluation(base=base, applied=applied, total=total)


# ============ Конструкторы правил ============


def always(_: Config) -> bool:
    return True


def when_equals(key: str, value: Any) -> Predicate:
    """Строгое равенство хранимого значения (список никогда не равен скаляру)"""
    return lambda config: config.get(key) == value


def constant_rule(name: str, amount: float, applies: Predicate = always, kind: str = "modifier") -> PriceRule:
    return PriceRule(name=name, applies=applies, delta=lambda _c, _t: amount, kind=kind)


def lookup_rule(
    name: str,
    key: str,
    table: Mapping[Any, float],
    default: float = 0.0,
    applies: Predicate = always,
) -> PriceRule:
    """Дельта из таблицы по значению поля; неизвестное значение -> default"""

    def delta(config: Config, _total: float) -> float:
        value = config.get(key)
        try:
            return table.get(value, default)
        except TypeError:  # нехешируемое значение (список из multiselect)
            return default

    return PriceRule(name=name, applies=applies, delta=delta)


def option_modifier_rules(
    attributes: Iterable[ConfigurationAttribute],
    options_by_attribute_id: Mapping[str, Iterable[AttributeOption]],
    *,
    sum_multiselect: bool = False,
    visible_only: bool = False,
) -> Tuple[PriceRule, ...]:
    """
    По правилу на каждую опцию каждого атрибута: выбран option.value -> +price_modifier.

    sum_multiselect: для multiselect-атрибутов суммировать модификаторы всех
        выбранных значений (по умолчанию выключено, multiselect не влияет на цену).
    visible_only: не учитывать атрибуты, скрытые зависимостью.
    """

    def option_rule(attribute: ConfigurationAttribute, option: AttributeOption) -> PriceRule:
        def selected(config: Config) -> bool:
            value = config.get(attribute.name)
            if sum_multiselect and attribute.is_multiselect and isinstance(value, (list, tuple)):
                hit = option.value in value
            else:
                hit = value == option.value
            return hit and (not visible_only or is_visible(attribute, config))

        return constant_rule(f"{attribute.name}={option.value}", option.price_modifier, selected)

    return tuple(
        option_rule(attribute, option)
        for attribute in attributes
        for option in _unique_options(options_by_attribute_id.get(attribute.id, ()))
    )


def _unique_options(options: Iterable[AttributeOption]) -> Tuple[AttributeOption, ...]:
    """Первая опция для каждого value, в порядке order_index"""
    seen: Dict[str, AttributeOption] = {}
    for option in sorted(options, key=lambda o: o.order_index):
        seen.setdefault(option.value, option)
    return tuple(seen.values())


def number(config: Config, key: str, default: Optional[float] = None) -> Optional[float]:
    """Числовое значение поля (строки вида "28" тоже принимаются)"""
    value = config.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def truthy(key: str) -> Predicate:
    """Флаг: True или "Yes" """
    return lambda config: config.get(key) is True or config.get(key) == "Yes"
