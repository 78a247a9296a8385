# storefront/api/v1/endpoints/catalog.py
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from storefront.dependencies import get_catalog_service
from storefront.models.catalog import Badge, Category
from storefront.services.catalog import CatalogService, CatalogServiceError

# Справочники витрины: категории и нашивки
router = APIRouter()

@router.get(
    "/categories",
    response_model=List[Category],
    tags=["Categories"],
    summary="Получить список категорий",
)
async def get_categories_list(
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return await catalog.get_categories()
    except CatalogServiceError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)


@router.get(
    "/badges",
    response_model=List[Badge],
    tags=["Badges"],
    summary="Получить список нашивок",
)
async def get_badges_list(
    active_only: bool = Query(True, description="Только активные нашивки"),
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        return await catalog.get_badges(active_only=active_only)
    except CatalogServiceError as e:
        raise HTTPException(status_code=e.status_code or 503, detail=e.message)
