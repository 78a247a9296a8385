"""Tests for the in-memory cart."""

from decimal import Decimal

from storefront.models.cart import CartItemCreate
from storefront.models.selection import CustomOptions
from storefront.services.cart import CartRegistry, CartStore


def make_item(product_id="p1", price="1000", quantity=1, variant_id=None, options=None):
    return CartItemCreate(
        product_id=product_id,
        name="Item",
        price=Decimal(price),
        quantity=quantity,
        variant_id=variant_id,
        custom_options=options,
    )


def test_identical_items_are_merged():
    cart = CartStore("c1")
    first = cart.add_item(make_item(quantity=1))
    second = cart.add_item(make_item(quantity=2))
    assert first.id == second.id
    assert len(cart.items) == 1
    assert cart.total_items() == 3


def test_different_custom_options_stay_separate():
    cart = CartStore("c1")
    cart.add_item(make_item(variant_id="v1", options=CustomOptions(name="MESSI")))
    cart.add_item(make_item(variant_id="v1", options=CustomOptions(name="DI MARIA")))
    cart.add_item(make_item(variant_id="v2"))
    assert len(cart.items) == 3


def test_totals_and_summary():
    cart = CartStore("c1")
    cart.add_item(make_item(price="1750", quantity=2))
    cart.add_item(make_item(product_id="p2", price="800"))
    summary = cart.summary()
    assert summary.total_items == 3
    assert summary.total_price == Decimal("4300")
    assert summary.formatted_total == "৳4300"


def test_update_quantity_and_remove():
    cart = CartStore("c1")
    item = cart.add_item(make_item())
    assert cart.update_quantity(item.id, 5).quantity == 5
    assert cart.update_quantity(item.id, 0) is None
    assert cart.items == []
    assert cart.remove_item(item.id) is False


def test_clear():
    cart = CartStore("c1")
    cart.add_item(make_item())
    cart.clear()
    assert cart.total_price() == Decimal("0")


def test_empty_optionals_are_not_serialized():
    item = CartStore("c1").add_item(make_item())
    data = item.model_dump(mode="json", by_alias=True)
    assert "variantId" not in data
    assert "customOptions" not in data
    assert data["productId"] == "p1"
    assert data["price"] == 1000


def test_registry_creates_carts_only_on_request():
    registry = CartRegistry(max_carts=10)
    assert registry.find("abc") is None
    assert len(registry) == 0
    cart = registry.get_or_create("abc")
    assert registry.get_or_create("abc") is cart
    assert registry.find("abc") is cart
    assert len(registry) == 1
    registry.drop("abc")
    assert len(registry) == 0


def test_registry_evicts_least_recently_used():
    registry = CartRegistry(max_carts=2)
    registry.get_or_create("a")
    registry.get_or_create("b")
    registry.find("a")
    registry.get_or_create("c")
    assert len(registry) == 2
    assert registry.find("b") is None
    assert registry.find("a") is not None


def test_registry_drops_only_empty_carts():
    registry = CartRegistry(max_carts=10)
    registry.get_or_create("full").add_item(make_item())
    registry.get_or_create("empty")
    registry.drop_if_empty("full")
    registry.drop_if_empty("empty")
    assert registry.find("full") is not None
    assert registry.find("empty") is None
