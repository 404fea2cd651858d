"""Category -> capex/prepaid sub-category resolution with legacy-value tolerance."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Configured:
    value: str


@dataclass(frozen=True)
class LegacyRetained:
    """A sub-category no longer offered for its category but kept until the category changes."""

    value: str


SubcategoryState = Configured | LegacyRetained | None


def configured_options(category: str, category_map: dict[str, list[str]]) -> list[str]:
    return list(category_map.get(str(category or "").strip(), []))


def classify_subcategory(
    category: str,
    subcategory: str,
    category_map: dict[str, list[str]],
    previous_category: str | None = None,
) -> SubcategoryState:
    """Classify a sub-category value against the options for its parent category.

    ``previous_category`` is the parent before the current edit; when omitted the
    category is taken as unchanged.
    """
    value = str(subcategory or "").strip()
    if not value:
        return None
    if value in configured_options(category, category_map):
        return Configured(value)
    category_text = str(category or "").strip()
    unchanged = previous_category is None or str(previous_category).strip() == category_text
    if unchanged and category_text:
        return LegacyRetained(value)
    return None


def resolved_value(state: SubcategoryState) -> str:
    return state.value if state is not None else ""


def subcategory_options(category: str, current: str, category_map: dict[str, list[str]]) -> list[str]:
    """Dropdown options for a row: configured values plus a retained legacy value."""
    options = configured_options(category, category_map)
    state = classify_subcategory(category, current, category_map)
    if isinstance(state, LegacyRetained) and state.value not in options:
        options.append(state.value)
    return options
