import pytest

from placebook.core.category import (
    CATEGORY_STYLES,
    DEFAULT_CATEGORY,
    Category,
    category_from_code,
    category_from_legacy_text,
)


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Café", Category.CAFE),
        ("Cafetería", Category.CAFE),
        ("CAFE", Category.CAFE),
        ("Restaurante", Category.RESTAURANT),
        ("Restaurant", Category.RESTAURANT),
        ("Bar", Category.BAR),
        ("Tapas bar", Category.BAR),
        ("Panadería", Category.BAKERY),
        ("Okindegi", Category.BAKERY),
        ("Bakery", Category.BAKERY),
        ("Pizzeria", Category.RESTAURANT),
        ("", Category.RESTAURANT),
        (None, Category.RESTAURANT),
    ],
)
def test_legacy_text_resolution(label, expected):
    assert category_from_legacy_text(label) is expected


def test_restaurant_rule_wins_over_later_rules():
    # "Restaurant bar" matches both; restaurant is checked first.
    assert category_from_legacy_text("Restaurant bar") is Category.RESTAURANT
    assert category_from_legacy_text("Café bar") is Category.CAFE


def test_codes_resolve_to_themselves_through_legacy_resolver():
    for category in Category.all():
        assert category_from_legacy_text(category.value) is category


def test_category_from_code_is_exact():
    assert category_from_code("BAR") is Category.BAR
    assert category_from_code(Category.BAKERY) is Category.BAKERY
    assert category_from_code("bar") is DEFAULT_CATEGORY
    assert category_from_code("PIZZERIA") is DEFAULT_CATEGORY
    assert category_from_code(None) is DEFAULT_CATEGORY


def test_all_categories_have_a_style():
    assert Category.all() == [Category.RESTAURANT, Category.CAFE, Category.BAR, Category.BAKERY]
    assert set(CATEGORY_STYLES) == set(Category)
    assert Category.CAFE.style.label_key == "category_cafe"
    assert str(Category.BAR) == "BAR"
