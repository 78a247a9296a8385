"""HTTP-level tests for the storefront API."""

import pytest
from fastapi.testclient import TestClient

from storefront.core.config import settings
from storefront.dependencies import get_catalog_service
from storefront.main import app
from storefront.models.catalog import Badge, Category, Product
from storefront.services.catalog import CatalogServiceError

API = settings.API_V1_STR


class FakeCatalog:
    def __init__(self, products):
        self.products = {product.slug: product for product in products}
        self.created = []
        self.updated = []

    async def get_product(self, slug):
        return self.products.get(slug)

    async def get_products(self, page=1, limit=12, category=None, search=None):
        return list(self.products.values()), {"total": len(self.products), "pages": 1}

    async def get_badges(self, active_only=True):
        return [Badge(id="b1", name="Champions League", price=300)]

    async def get_categories(self):
        return [Category(id="c1", name="Jersey", slug="jersey")]

    async def create_product(self, payload):
        self.created.append(payload)
        return Product.model_validate({**payload, "id": "new", "slug": "new-kit", "category": {"slug": "jersey"}})

    async def get_admin_product(self, product_id):
        return next((p for p in self.products.values() if p.id == product_id), None)

    async def update_product(self, product_id, payload):
        existing = await self.get_admin_product(product_id)
        if existing is None:
            return None
        self.updated.append((product_id, payload))
        return existing.model_copy(update={"name": payload["name"]})


class FailingCatalog(FakeCatalog):
    async def get_product(self, slug):
        raise CatalogServiceError("Ошибка сети при подключении к API каталога")


@pytest.fixture
def catalog(jersey, tracksuit, sneaker):
    return FakeCatalog([jersey, tracksuit, sneaker])


@pytest.fixture
def client(catalog):
    app.dependency_overrides[get_catalog_service] = lambda: catalog
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_key(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_API_KEY", "secret")
    return {"X-Admin-API-Key": "secret"}


CART = {"X-Cart-Id": "cart-1"}


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestProducts:
    def test_list(self, client):
        response = client.get(f"{API}/products/")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 3
        assert data["next"] is None
        assert {p["slug"] for p in data["results"]} == {"argentina-home-jersey-2024", "training-tracksuit", "runner-pro"}

    def test_details_include_availability_and_auto_selection(self, client):
        response = client.get(f"{API}/products/training-tracksuit")
        assert response.status_code == 200
        data = response.json()
        assert data["selection"]["fabric"] == "Set"
        assert data["availability"]["options"][1]["notice"] == "No Stock Available"

    def test_unknown_product(self, client):
        assert client.get(f"{API}/products/nope").status_code == 404

    def test_catalog_failure(self, client):
        app.dependency_overrides[get_catalog_service] = lambda: FailingCatalog([])
        response = client.get(f"{API}/products/anything")
        assert response.status_code == 503

    def test_quote(self, client):
        response = client.post(f"{API}/products/argentina-home-jersey-2024/quote", json={
            "fabric": "Player Version",
            "size": "S",
            "playerName": "DI MARIA",
            "jerseyNumber": "11",
            "badgeIds": ["b1"],
        })
        assert response.status_code == 200
        quote = response.json()
        assert quote["unitPrice"] == 1750
        assert quote["formattedPrice"] == "৳1750"
        assert quote["canAddToCart"] is True

    def test_quote_rejected_step(self, client):
        response = client.post(
            f"{API}/products/argentina-home-jersey-2024/quote",
            json={"fabric": "Player Version", "size": "L"},
        )
        quote = response.json()
        assert quote["canAddToCart"] is False
        assert quote["message"] == "Out of Stock"
        assert quote["unitPrice"] is None

    def test_quote_out_of_stock_fabric_has_no_price(self, client):
        response = client.post(
            f"{API}/products/training-tracksuit/quote",
            json={"fabric": "Upper", "size": "M"},
        )
        quote = response.json()
        assert quote["message"] == "No Stock Available"
        assert quote["unitPrice"] is None
        assert quote["canAddToCart"] is False


class TestCart:
    def test_cart_id_required(self, client):
        assert client.get(f"{API}/cart/").status_code == 400

    def test_incomplete_selection_rejected(self, client):
        response = client.post(f"{API}/cart/items", headers=CART, json={
            "slug": "argentina-home-jersey-2024",
            "selection": {"fabric": "Fan Version"},
        })
        assert response.status_code == 422
        assert response.json()["detail"] == "Please select fabric type and size"
        assert client.get(f"{API}/cart/", headers=CART).json()["totalItems"] == 0

    def test_add_update_and_remove(self, client):
        response = client.post(f"{API}/cart/items", headers=CART, json={
            "slug": "runner-pro",
            "selection": {"variantId": "v-42"},
            "quantity": 2,
        })
        assert response.status_code == 201
        item = response.json()
        assert item["price"] == 1700
        assert item["variantName"] == "Size: 42"

        summary = client.get(f"{API}/cart/", headers=CART).json()
        assert summary["totalItems"] == 2
        assert summary["totalPrice"] == 3400

        summary = client.patch(f"{API}/cart/items/{item['id']}", headers=CART, json={"quantity": 1}).json()
        assert summary["totalPrice"] == 1700

        assert client.delete(f"{API}/cart/items/{item['id']}", headers=CART).json()["items"] == []
        assert client.delete(f"{API}/cart/items/{item['id']}", headers=CART).status_code == 404

    def test_carts_are_isolated(self, client):
        client.post(f"{API}/cart/items", headers=CART, json={"slug": "runner-pro", "selection": {"size": "38"}})
        other = client.get(f"{API}/cart/", headers={"X-Cart-Id": "cart-2"}).json()
        assert other["items"] == []

    def test_reading_unknown_carts_does_not_register_them(self, client):
        registry = client.app.state.cart_registry
        before = len(registry)
        for n in range(5):
            summary = client.get(f"{API}/cart/", headers={"X-Cart-Id": f"visitor-{n}"}).json()
            assert summary["totalItems"] == 0
        assert len(registry) == before

    def test_clearing_drops_the_cart(self, client):
        client.post(f"{API}/cart/items", headers=CART, json={"slug": "runner-pro", "selection": {"size": "38"}})
        registry = client.app.state.cart_registry
        assert registry.find("cart-1") is not None
        assert client.delete(f"{API}/cart/", headers=CART).json()["totalItems"] == 0
        assert registry.find("cart-1") is None


class TestReference:
    def test_categories_and_badges(self, client):
        assert client.get(f"{API}/categories").json()[0]["slug"] == "jersey"
        assert client.get(f"{API}/badges").json()[0]["id"] == "b1"


class TestAdmin:
    def test_unconfigured_key(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_API_KEY", None)
        response = client.post(f"{API}/admin/variants/generate", json={"category": "watch", "basePrice": 100})
        assert response.status_code == 503

    def test_wrong_key(self, client, admin_key):
        response = client.post(
            f"{API}/admin/variants/generate",
            headers={"X-Admin-API-Key": "wrong"},
            json={"category": "watch", "basePrice": 100},
        )
        assert response.status_code == 403

    def test_generate_variants(self, client, admin_key):
        response = client.post(f"{API}/admin/variants/generate", headers=admin_key, json={
            "category": "jersey",
            "basePrice": 1000,
            "options": ["Fan Version"],
        })
        assert response.status_code == 200
        sizes = response.json()["variants"][0]["sizes"]
        assert {"size": "3XL", "price": 1250, "stock": 0} in sizes

    def test_generate_rejects_unknown_option(self, client, admin_key):
        response = client.post(f"{API}/admin/variants/generate", headers=admin_key, json={
            "category": "tracksuit", "basePrice": 1000, "options": ["Lower"],
        })
        assert response.status_code == 422

    def test_create_product(self, client, admin_key, catalog):
        response = client.post(f"{API}/admin/products", headers=admin_key, json={
            "name": "Brazil Away",
            "category": "jersey",
            "categoryId": "c1",
            "price": 1000,
            "options": ["Fan Version"],
            "sizeEdits": [{"option": "Fan Version", "size": "M", "stock": 6}],
        })
        assert response.status_code == 201
        payload = catalog.created[0]
        assert payload["categoryId"] == "c1"
        assert '"stock": 6' in payload["variants"][0]["sizes"]
        assert response.json()["id"] == "new"

    def test_create_product_bad_option(self, client, admin_key):
        response = client.post(f"{API}/admin/products", headers=admin_key, json={
            "name": "Kit", "category": "tracksuit", "categoryId": "c1", "price": 1000, "options": ["Fan Version"],
        })
        assert response.status_code == 422

    def test_update_product(self, client, admin_key, catalog):
        response = client.put(f"{API}/admin/products/p-jersey", headers=admin_key, json={
            "price": 1000,
            "options": ["Player Version"],
            "sizeEdits": [{"option": "Player Version", "size": "L", "stock": 5}],
        })
        assert response.status_code == 200
        product_id, payload = catalog.updated[0]
        assert product_id == "p-jersey"
        assert payload["price"] == 1000
        assert payload["categoryId"] == "c1"
        assert [v["fabricType"] for v in payload["variants"]] == ["Player Version"]
        sizes = payload["variants"][0]["sizes"]
        assert '{"size": "L", "price": 1200, "stock": 5}' in sizes
        assert '{"size": "M", "price": 1200, "stock": 3}' in sizes
        assert response.json()["id"] == "p-jersey"

    def test_update_unknown_product(self, client, admin_key, catalog):
        response = client.put(f"{API}/admin/products/missing", headers=admin_key, json={"name": "X"})
        assert response.status_code == 404
        assert catalog.updated == []
