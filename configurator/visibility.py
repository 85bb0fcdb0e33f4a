from typing import Any, Iterable, Mapping, Tuple

from .domain import ConfigurationAttribute


def is_visible(attribute: ConfigurationAttribute, config: Mapping[str, Any]) -> bool:
    """
    Атрибут без зависимости виден всегда.
    С зависимостью - только если config[depends_on] строго равно depends_value.
    Для multiselect-источника хранится список, он не равен строке, поэтому
    такой зависимый атрибут не показывается никогда.
    """
    if not attribute.has_dependency:
        return True
    return config.get(attribute.depends_on) == attribute.depends_value


def visible_attributes(
    attributes: Iterable[ConfigurationAttribute], config: Mapping[str, Any]
) -> Tuple[ConfigurationAttribute, ...]:
    """Видимые атрибуты в порядке order_index"""
    return tuple(
        sorted(
            filter(lambda a: is_visible(a, config), attributes),
            key=lambda a: a.order_index,
        )
    )


def hidden_values(
    attributes: Iterable[ConfigurationAttribute], config: Mapping[str, Any]
) -> Mapping[str, Any]:
    """Значения, сохранённые за скрытыми атрибутами (при скрытии они не сбрасываются)"""
    return {
        a.name: config[a.name]
        for a in attributes
        if not is_visible(a, config) and a.name in config
    }
