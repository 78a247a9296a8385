# storefront/api/v1/endpoints/products.py
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from storefront.dependencies import get_catalog_service
from storefront.models.catalog import Badge, Product
from storefront.models.pagination import PaginatedResponse
from storefront.models.selection import PriceQuote, Selection
from storefront.services.catalog import CatalogService, CatalogServiceError
from storefront.services.selection import SelectionSession
from storefront.services.stock import availability

logger = logging.getLogger(__name__)

router = APIRouter()


async def load_product(slug: str, catalog: CatalogService) -> Product:
    """Загружает товар или отвечает 404/ошибкой каталога."""
    try:
        product = await catalog.get_product(slug)
    except CatalogServiceError as e:
        logger.warning(f"Catalog service error fetching product {slug}: {e}")
        raise HTTPException(status_code=e.status_code or 503, detail=e.message) from e
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Product '{slug}' not found.")
    return product


async def load_badges(product: Product, catalog: CatalogService) -> List[Badge]:
    """Нашивки товара; если товар их не содержит, берём активные из справочника."""
    if product.badges:
        return product.badges
    try:
        return await catalog.get_badges()
    except CatalogServiceError as e:
        # Без нашивок страница товара работает, просто без надбавок
        logger.warning(f"Could not load badges for product {product.slug}: {e}")
        return []


@router.get(
    "/",
    response_model=PaginatedResponse[Product],
    summary="Получить список товаров",
)
async def get_products_list(
    request: Request,
    page: int = Query(1, ge=1, description="Номер страницы"),
    limit: int = Query(12, ge=1, le=100, description="Количество товаров на странице"),
    category: Optional[str] = Query(None, description="Slug категории"),
    search: Optional[str] = Query(None, description="Поисковый запрос"),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        products, pagination = await catalog.get_products(page=page, limit=limit, category=category, search=search)
    except CatalogServiceError as e:
        logger.error(f"Catalog service error fetching products: {e}", exc_info=True)
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)

    return PaginatedResponse[Product].from_catalog(products, pagination, request.url, page=page, limit=limit)


@router.get(
    "/{slug}",
    summary="Получить товар с картой доступности",
)
async def get_product_details(
    slug: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Dict:
    product = await load_product(slug, catalog)
    session = SelectionSession(product)
    return {
        "product": product.model_dump(mode='json', by_alias=True),
        "availability": availability(product),
        "selection": session.selection.model_dump(mode='json', by_alias=True),
    }


@router.post(
    "/{slug}/quote",
    response_model=PriceQuote,
    summary="Рассчитать цену для выбора",
    description="Проверяет выбор (ткань/тип, размер, имя/номер, нашивки) и считает цену за единицу.",
)
async def quote_selection(
    slug: str,
    selection: Selection,
    catalog: CatalogService = Depends(get_catalog_service),
):
    product = await load_product(slug, catalog)
    badges = await load_badges(product, catalog)
    session = SelectionSession(product, badges=badges)
    errors = session.apply(selection)
    quote = session.quote()
    if errors:
        quote.message = errors[0]
        quote.can_add_to_cart = False
    return quote
