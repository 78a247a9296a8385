"""Pytest configuration and fixtures."""

import json

import pytest

from storefront.models.catalog import Badge, Product


def jersey_sizes(base, stock=10, overrides=None):
    """Размеры джерси в том виде, как их хранит каталог (JSON-строка)."""
    overrides = overrides or {}
    entries = []
    for size in ["S", "M", "L", "XL", "XXL", "3XL", "4XL", "5XL"]:
        price = base + (250 if size in ("3XL", "4XL", "5XL") else 0)
        entries.append({"size": size, "price": price, "stock": overrides.get(size, stock)})
    return json.dumps(entries)


@pytest.fixture
def jersey_data():
    """Raw catalog payload for a jersey with both fabrics."""
    return {
        "id": "p-jersey",
        "name": "Argentina Home Jersey 2024",
        "slug": "argentina-home-jersey-2024",
        "price": 900,
        "comparePrice": 1200,
        "images": ["/img/arg-1.jpg", "/img/arg-2.jpg"],
        "allowNameNumber": True,
        "nameNumberPrice": 250,
        "Category": {"id": "c1", "name": "Jersey", "slug": "jersey"},
        "ProductVariant": [
            {
                "id": "v-fan",
                "name": "Fabric Type",
                "value": "Fan Version",
                "price": 800,
                "fabricType": "Fan Version",
                "sizes": jersey_sizes(800),
            },
            {
                "id": "v-player",
                "name": "Fabric Type",
                "value": "Player Version",
                "price": 1200,
                "fabricType": "Player Version",
                "sizes": jersey_sizes(1200, overrides={"M": 3, "L": 0}),
            },
        ],
        "badges": [
            {"id": "b1", "name": "Champions League", "price": 300, "isActive": True},
            {"id": "b2", "name": "Premier League", "price": 150, "isActive": True},
            {"id": "b3", "name": "Old Badge", "price": 500, "isActive": False},
        ],
    }


@pytest.fixture
def jersey(jersey_data):
    return Product.model_validate(jersey_data)


@pytest.fixture
def tracksuit():
    sizes = [{"size": s, "price": 2500, "stock": 4} for s in ["S", "M", "L", "XL", "XXL"]]
    return Product.model_validate({
        "id": "p-track",
        "name": "Training Tracksuit",
        "slug": "training-tracksuit",
        "price": 2500,
        "category": {"slug": "tracksuit"},
        "variants": [
            {"id": "v-set", "tracksuitType": "Set", "price": 2500, "sizes": sizes},
            {"id": "v-upper", "tracksuitType": "Upper", "price": 1800,
             "sizes": [{"size": s, "price": 1800, "stock": 0} for s in ["S", "M", "L", "XL", "XXL"]]},
        ],
    })


@pytest.fixture
def sneaker():
    return Product.model_validate({
        "id": "p-sneaker",
        "name": "Runner Pro",
        "slug": "runner-pro",
        "price": 1500,
        "category": {"slug": "sneaker"},
        "variants": [
            {"id": "v-38", "name": "Size", "value": "38", "price": 1500, "stock": 7},
            {"id": "v-42", "name": "Size", "value": 42, "price": 1700, "stock": 2},
            {"id": "v-45", "name": "Size", "value": "45", "price": 1500, "stock": 0},
        ],
    })


@pytest.fixture
def plain_product():
    return Product.model_validate({
        "id": "p-ball",
        "name": "Match Ball",
        "slug": "match-ball",
        "price": 1100,
        "category": {"slug": "football"},
    })


@pytest.fixture
def badges():
    return [
        Badge(id="b1", name="Champions League", price=300),
        Badge(id="b2", name="Premier League", price=150),
    ]
