"""Tests for catalog model parsing at the API boundary."""

import json
from decimal import Decimal

import pytest

from storefront.models.catalog import (
    DEFAULT_NAME_NUMBER_PRICE,
    Product,
    ProductKind,
    Variant,
    parse_size_entries,
    product_kind,
)


class TestProductParsing:
    def test_prisma_style_payload(self, jersey):
        assert jersey.id == "p-jersey"
        assert jersey.base_price == Decimal("900")
        assert jersey.kind == ProductKind.JERSEY
        assert len(jersey.variants) == 2
        assert [v.option for v in jersey.sized_variants] == ["Fan Version", "Player Version"]

    def test_sizes_json_string_is_parsed(self, jersey):
        fan = jersey.variant_for("Fan Version")
        assert [e.size for e in fan.sizes] == ["S", "M", "L", "XL", "XXL", "3XL", "4XL", "5XL"]
        assert fan.size_entry("3XL").price == Decimal("1050")

    def test_base_price_aliases(self):
        for key in ("price", "basePrice", "base_price"):
            product = Product.model_validate({"id": 1, "name": "X", "slug": "x", key: 10})
            assert product.base_price == Decimal("10")
            assert product.id == "1"

    def test_missing_category_is_unknown(self):
        product = Product.model_validate({"id": "1", "name": "X", "slug": "x", "price": 5, "category": None})
        assert product.category.slug == "unknown"
        assert product.kind == ProductKind.OTHER

    @pytest.mark.parametrize("value", [None, 0])
    def test_name_number_price_defaults_to_250(self, value):
        product = Product.model_validate(
            {"id": "1", "name": "X", "slug": "x", "price": 5, "nameNumberPrice": value}
        )
        assert product.name_number_price == DEFAULT_NAME_NUMBER_PRICE

    def test_numeric_variant_value_becomes_label(self, sneaker):
        assert [v.value for v in sneaker.variants] == ["38", "42", "45"]

    def test_negative_base_price_rejected(self):
        with pytest.raises(ValueError):
            Product.model_validate({"id": "1", "name": "X", "slug": "x", "price": -1})

    def test_prices_serialize_as_numbers(self, jersey):
        data = jersey.model_dump(mode="json", by_alias=True)
        assert data["price"] == 900
        assert data["variants"][0]["sizes"][0] == {"size": "S", "price": 800, "stock": 10}
        assert data["allowNameNumber"] is True

    def test_variant_for_respects_category_axis(self, jersey):
        jersey.variants.append(Variant(tracksuit_type="Set", sizes=[]))
        assert jersey.variant_for("Set") is None


class TestSizeParsing:
    def test_unparsable_string_degrades_to_no_sizes(self):
        variant = Variant.model_validate({"fabricType": "Fan Version", "sizes": "{not json"})
        assert variant.sizes == []
        assert variant.is_sized

    def test_non_list_payload_degrades(self):
        assert parse_size_entries(json.dumps({"size": "M"})) == []
        assert parse_size_entries(42) == []

    def test_invalid_entries_are_dropped_individually(self):
        entries = parse_size_entries([
            {"size": "S", "price": 100, "stock": 1},
            {"size": "M", "price": 100, "stock": -2},
            {"size": "L"},
            "garbage",
            {"size": "XL", "price": 120, "stock": None},
        ])
        assert [(e.size, e.stock) for e in entries] == [("S", 1), ("XL", 0)]

    def test_duplicate_sizes_keep_first(self):
        entries = parse_size_entries([
            {"size": "M", "price": 100, "stock": 1},
            {"size": "M", "price": 999, "stock": 5},
        ])
        assert len(entries) == 1
        assert entries[0].price == Decimal("100")

    def test_empty_values(self):
        assert parse_size_entries(None) == []
        assert parse_size_entries("") == []


@pytest.mark.parametrize("slug,kind", [
    ("jersey", ProductKind.JERSEY),
    ("jerseys", ProductKind.JERSEY),
    ("Tracksuit", ProductKind.TRACKSUIT),
    ("sneakers", ProductKind.SNEAKER),
    ("shorts", ProductKind.SHORTS),
    ("watch", ProductKind.WATCH),
    ("football", ProductKind.OTHER),
    (None, ProductKind.OTHER),
])
def test_product_kind(slug, kind):
    assert product_kind(slug) == kind
