# storefront/dependencies.py
import hmac
import logging
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from storefront.core.config import settings
from storefront.services.cart import CartRegistry, CartStore
from storefront.services.catalog import CatalogService

logger = logging.getLogger(__name__)

api_key_header_admin = APIKeyHeader(name="X-Admin-API-Key", auto_error=False)


async def verify_admin_api_key(api_key: str = Security(api_key_header_admin)):
    """
    Проверяет секретный ключ доступа к админским API (заголовок X-Admin-API-Key).
    """
    if not settings.ADMIN_API_KEY:
        logger.critical("Admin API Key is not configured on the server!")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Функция администратора временно недоступна."
        )
    if not api_key or not hmac.compare_digest(api_key, settings.ADMIN_API_KEY):
        logger.warning("Invalid or missing Admin API Key received.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Недействительный или отсутствующий ключ API администратора."
        )
    return True


async def get_catalog_service(request: Request) -> CatalogService:
    service = getattr(request.app.state, 'catalog_service', None)
    if not service or not isinstance(service, CatalogService):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Сервис каталога недоступен."
        )
    return service


async def get_cart_registry(request: Request) -> CartRegistry:
    registry = getattr(request.app.state, 'cart_registry', None)
    if registry is None or not isinstance(registry, CartRegistry):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Корзина временно недоступна."
        )
    return registry


async def get_cart_id(
    x_cart_id: Annotated[Optional[str], Header(description="Идентификатор корзины клиента")] = None,
) -> str:
    if not x_cart_id or not x_cart_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Отсутствует заголовок X-Cart-Id.",
        )
    return x_cart_id.strip()


async def find_cart(
    registry: Annotated[CartRegistry, Depends(get_cart_registry)],
    cart_id: Annotated[str, Depends(get_cart_id)],
) -> Optional[CartStore]:
    """Существующая корзина клиента или None, без создания новой."""
    return registry.find(cart_id)
