"""Closed set of place categories and the legacy label resolver."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

__all__ = [
    "Category",
    "CategoryStyle",
    "CATEGORY_STYLES",
    "DEFAULT_CATEGORY",
    "category_from_code",
    "category_from_legacy_text",
]


class Category(str, Enum):
    """Category code stored on disk. Never a translated label."""

    RESTAURANT = "RESTAURANT"
    CAFE = "CAFE"
    BAR = "BAR"
    BAKERY = "BAKERY"

    @property
    def code(self) -> str:
        return self.value

    @property
    def style(self) -> CategoryStyle:
        return CATEGORY_STYLES[self]

    @classmethod
    def all(cls) -> list[Category]:
        """Return every category in definition order."""

        return list(cls)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class CategoryStyle:
    """Display attributes for a category, consumed by presentation layers."""

    label_key: str
    color: str
    icon: str


CATEGORY_STYLES: Final[dict[Category, CategoryStyle]] = {
    Category.RESTAURANT: CategoryStyle("category_restaurant", "#E57373", "restaurant_cutlery"),
    Category.CAFE: CategoryStyle("category_cafe", "#8D6E63", "cafe_cup"),
    Category.BAR: CategoryStyle("category_bar", "#42A5F5", "bar_glass"),
    Category.BAKERY: CategoryStyle("category_bakery", "#F8BBD0", "bakery_bread"),
}

DEFAULT_CATEGORY: Final[Category] = Category.RESTAURANT

_CODES: Final[dict[str, Category]] = {category.value: category for category in Category}

# Checked in order; the first rule with a matching fragment wins.
_LEGACY_RULES: Final[tuple[tuple[tuple[str, ...], Category], ...]] = (
    (("restaurant", "restaurante"), Category.RESTAURANT),
    (("caf",), Category.CAFE),
    (("bar",), Category.BAR),
    (("bakery", "panad", "okindegi"), Category.BAKERY),
)


def category_from_code(code: object) -> Category:
    """Resolve a stored code, falling back to :data:`DEFAULT_CATEGORY`.

    Only the four exact codes are recognised. Unknown input is mapped to
    ``RESTAURANT`` rather than rejected, so an unknown code does not survive a
    round trip.
    """

    if isinstance(code, Category):
        return code
    if isinstance(code, str):
        return _CODES.get(code, DEFAULT_CATEGORY)
    return DEFAULT_CATEGORY


def category_from_legacy_text(text: str | None) -> Category:
    """Resolve a free-text category label written by older versions.

    Matching is a case-insensitive substring search over English, Spanish and
    Basque spellings (``"Cafetería"``, ``"Panadería"``, ``"Okindegi"`` ...).
    Codes are valid input too, since each code contains its category word.
    """

    if not text:
        return DEFAULT_CATEGORY
    folded = text.casefold()
    for fragments, category in _LEGACY_RULES:
        if any(fragment in folded for fragment in fragments):
            return category
    return DEFAULT_CATEGORY
