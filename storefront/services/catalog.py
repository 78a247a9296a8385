# storefront/services/catalog.py
import httpx
import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from httpx import Headers
from pydantic import BaseModel, ValidationError

from storefront.core.config import settings
from storefront.models.catalog import Badge, Category, Product

logger = logging.getLogger(__name__)


class CatalogServiceError(Exception):
    """Базовый класс для ошибок API каталога."""
    def __init__(self, message="Ошибка при взаимодействии с API каталога", status_code=None, details=None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


def _unwrap(data: Any, *keys: str) -> Any:
    """Каталог отвечает то голым объектом, то обёрткой вида {"product": {...}} или {"data": ...}."""
    if isinstance(data, dict):
        for key in (*keys, "data"):
            if key in data:
                return data[key]
    return data


class CatalogService:
    """
    Асинхронный клиент REST API витрины (товары, нашивки, категории).
    """
    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.CATALOG_API_BASE).rstrip('/')
        headers = {"Accept": "application/json"}
        if settings.CATALOG_API_TOKEN:
            headers["Authorization"] = f"Bearer {settings.CATALOG_API_TOKEN}"
        timeouts = httpx.Timeout(settings.CATALOG_TIMEOUT, read=settings.CATALOG_READ_TIMEOUT)
        self._client = httpx.AsyncClient(
            base_url=self.base_url, headers=headers, timeout=timeouts, transport=transport
        )
        logger.info(f"CatalogService initialized for URL: {self.base_url}")

    async def close_client(self):
        """Закрывает httpx клиент."""
        if hasattr(self, '_client') and self._client:
            await self._client.aclose()
            logger.info("Catalog HTTP client closed.")

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_data: Optional[Union[Dict, BaseModel]] = None
    ) -> Tuple[Optional[Any], Optional[Headers]]:
        """
        Выполняет запрос к API каталога с обработкой ошибок.
        Возвращает кортеж (данные_ответа, заголовки_ответа) или вызывает CatalogServiceError.
        """
        payload_dict: Optional[Dict] = None
        if json_data is not None:
            if isinstance(json_data, BaseModel):
                payload_dict = json_data.model_dump(mode='json', exclude_none=True, by_alias=True)
            else:
                payload_dict = json_data

        logger.debug(f"Requesting {method} {endpoint} | Params: {params} | Payload: {payload_dict!r}")

        try:
            response = await self._client.request(method, endpoint.lstrip('/'), params=params, json=payload_dict)
            response.raise_for_status()

            if response.status_code == 204:
                logger.debug(f"Received 204 No Content for {method} {endpoint}")
                return True, response.headers

            content_type = response.headers.get("Content-Type", "")
            if "application/json" not in content_type:
                logger.warning(f"Unexpected Content-Type '{content_type}' for {method} {endpoint}. Response text: {response.text[:500]}...")
                return response.text, response.headers
            try:
                response_data = response.json()
            except json.JSONDecodeError as json_err:
                logger.error(f"Failed to decode JSON response for {method} {endpoint}. Status: {response.status_code}. Error: {json_err}")
                raise CatalogServiceError("Ошибка декодирования JSON ответа от API каталога", status_code=response.status_code, details=response.text) from json_err
            logger.debug(f"Received {response.status_code} JSON response for {method} {endpoint}. Body sample: {str(response_data)[:200]}...")
            return response_data, response.headers

        except httpx.HTTPStatusError as e:
            error_status_code = e.response.status_code
            error_message = f"HTTP ошибка {error_status_code} от API каталога"
            error_details: Any = e.response.text
            try:
                api_error = e.response.json()
                if isinstance(api_error, dict):
                    error_message = api_error.get("error") or api_error.get("message") or error_message
                    error_details = api_error
                logger.error(f"Catalog API error: {error_status_code} - {error_message} for {e.request.url}")
            except (json.JSONDecodeError, ValueError):
                logger.error(f"HTTP error: {error_status_code} for {e.request.url}. Response text: {str(error_details)[:500]}...")
            raise CatalogServiceError(
                message=f"Ошибка каталога: {error_message}",
                status_code=error_status_code,
                details=error_details
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {e} for {method} {endpoint}")
            raise CatalogServiceError("Превышен таймаут запроса к API каталога") from e
        except httpx.RequestError as e:
            logger.error(f"Network error: {e} for {method} {endpoint}")
            raise CatalogServiceError("Ошибка сети при подключении к API каталога") from e

    # --- Товары ---

    async def get_products(
        self,
        page: int = 1,
        limit: int = 12,
        category: Optional[str] = None,
        search: Optional[str] = None,
        **kwargs
    ) -> Tuple[List[Product], Dict[str, Any]]:
        """
        Получает список товаров. Возвращает (товары, пагинация).
        Товары с битыми данными пропускаются.
        """
        params = {'page': page, 'limit': limit, 'category': category, 'search': search, **kwargs}
        params = {k: v for k, v in params.items() if v is not None}
        logger.info(f"Fetching products with params: {params}")

        data, _ = await self._request("GET", "products", params=params)
        pagination: Dict[str, Any] = data.get("pagination", {}) if isinstance(data, dict) else {}
        raw_products = _unwrap(data, "products")
        if not isinstance(raw_products, list):
            logger.error(f"Unexpected data type for products list: {type(raw_products)}")
            return [], pagination

        products: List[Product] = []
        for raw in raw_products:
            try:
                products.append(Product.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed product {raw.get('id') if isinstance(raw, dict) else raw!r}: {e.error_count()} error(s)")
        return products, pagination

    async def get_product(self, slug: str) -> Optional[Product]:
        logger.info(f"Fetching product: {slug}")
        try:
            data, _ = await self._request("GET", f"products/{slug}")
        except CatalogServiceError as e:
            if e.status_code == 404:
                logger.info(f"Product {slug} not found (404).")
                return None
            raise
        raw = _unwrap(data, "product")
        if not isinstance(raw, dict):
            logger.error(f"Unexpected data type received for product {slug}: {type(raw)}")
            return None
        try:
            return Product.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Malformed product data for {slug}: {e}")
            raise CatalogServiceError(f"Некорректные данные товара {slug}", status_code=502, details=e.errors()) from e

    async def create_product(self, payload: Union[Dict, BaseModel]) -> Optional[Product]:
        logger.info("Attempting to create product...")
        data, _ = await self._request("POST", "admin/products", json_data=payload)
        raw = _unwrap(data, "product")
        if not isinstance(raw, dict):
            logger.error(f"Failed to create product. Unexpected response type: {type(raw)}")
            raise CatalogServiceError("Не удалось создать товар: неожиданный ответ от API")
        try:
            product = Product.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Created product has malformed data: {e}")
            raise CatalogServiceError("Товар создан, но ответ API некорректен", status_code=502, details=e.errors()) from e
        logger.info(f"Product created successfully with ID: {product.id}")
        return product

    async def get_admin_product(self, product_id: str) -> Optional[Product]:
        """Товар по id из админского API (для формы редактирования)."""
        logger.info(f"Fetching admin product: {product_id}")
        try:
            data, _ = await self._request("GET", f"admin/products/{product_id}")
        except CatalogServiceError as e:
            if e.status_code == 404:
                logger.info(f"Admin product {product_id} not found (404).")
                return None
            raise
        raw = _unwrap(data, "product")
        if not isinstance(raw, dict):
            logger.error(f"Unexpected data type received for admin product {product_id}: {type(raw)}")
            return None
        try:
            return Product.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Malformed admin product data for {product_id}: {e}")
            raise CatalogServiceError(f"Некорректные данные товара {product_id}", status_code=502, details=e.errors()) from e

    async def update_product(self, product_id: str, payload: Union[Dict, BaseModel]) -> Optional[Product]:
        """
        Полностью обновляет товар; переданные варианты заменяют существующие.
        Возвращает None, если товар не найден.
        """
        logger.info(f"Attempting to update product {product_id}...")
        try:
            data, _ = await self._request("PUT", f"admin/products/{product_id}", json_data=payload)
        except CatalogServiceError as e:
            if e.status_code == 404:
                logger.warning(f"Product {product_id} to update not found (404).")
                return None
            raise
        raw = _unwrap(data, "product")
        if not isinstance(raw, dict):
            logger.error(f"Failed to update product {product_id}. Unexpected response type: {type(raw)}")
            raise CatalogServiceError("Не удалось обновить товар: неожиданный ответ от API")
        try:
            product = Product.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Updated product has malformed data: {e}")
            raise CatalogServiceError("Товар обновлён, но ответ API некорректен", status_code=502, details=e.errors()) from e
        logger.info(f"Product {product_id} updated successfully.")
        return product

    # --- Справочники ---

    async def get_badges(self, active_only: bool = True) -> List[Badge]:
        params = {'isActive': 'true'} if active_only else None
        logger.info(f"Fetching badges with params: {params}")
        data, _ = await self._request("GET", "badges", params=params)
        raw_badges = _unwrap(data, "badges")
        if not isinstance(raw_badges, list):
            logger.error(f"Unexpected data type received for badges: {type(raw_badges)}")
            return []
        badges: List[Badge] = []
        for raw in raw_badges:
            try:
                badge = Badge.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed badge {raw!r}: {e.error_count()} error(s)")
                continue
            if active_only and not badge.is_active:
                continue
            badges.append(badge)
        return badges

    async def get_categories(self) -> List[Category]:
        logger.info("Fetching categories")
        data, _ = await self._request("GET", "categories")
        raw_categories = _unwrap(data, "categories")
        if not isinstance(raw_categories, list):
            logger.error(f"Unexpected data type received for categories: {type(raw_categories)}")
            return []
        categories: List[Category] = []
        for raw in raw_categories:
            try:
                categories.append(Category.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed category {raw!r}: {e.error_count()} error(s)")
        return categories
