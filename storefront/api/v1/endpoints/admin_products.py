# storefront/api/v1/endpoints/admin_products.py
import logging
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, status

from storefront.dependencies import get_catalog_service, verify_admin_api_key
from storefront.models.admin import (
    ProductCreateRequest,
    ProductUpdateRequest,
    VariantGenerationRequest,
    VariantGenerationResponse,
)
from storefront.models.catalog import Product
from storefront.services.catalog import CatalogService, CatalogServiceError
from storefront.services.variant_generator import DraftError, ProductDraft, generate_variants

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/admin",
    tags=["Admin Products"],
    dependencies=[Depends(verify_admin_api_key)]
)


@router.post(
    "/variants/generate",
    response_model=VariantGenerationResponse,
    summary="Сгенерировать матрицу вариантов",
    description="Возвращает варианты для категории: размеры кроссовок/шорт/часов или ткани/типы с размерами.",
)
async def generate_variant_matrix(payload: VariantGenerationRequest):
    try:
        variants = generate_variants(
            payload.category,
            payload.base_price,
            options=payload.options,
            option_prices=payload.option_prices,
        )
    except DraftError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e
    logger.info(f"Generated {len(variants)} variants for category '{payload.category}'")
    return VariantGenerationResponse(category=payload.category, variants=variants)


def apply_matrix_edits(draft: ProductDraft, payload: Union[ProductCreateRequest, ProductUpdateRequest]) -> None:
    """Цены тканей, затем правки размеров и простых вариантов, как их применяет форма."""
    for option, price in payload.option_prices.items():
        draft.set_option_price(option, price)
    for edit in payload.size_edits:
        if edit.price is not None:
            draft.update_size_price(edit.option, edit.size, edit.price)
        if edit.stock is not None:
            draft.update_stock(edit.option, edit.size, edit.stock)
    for edit in payload.variant_edits:
        fields = {k: v for k, v in (("price", edit.price), ("stock", edit.stock)) if v is not None}
        if fields:
            draft.update_variant(edit.index, **fields)


def build_draft(payload: ProductCreateRequest) -> ProductDraft:
    """Собирает черновик нового товара из запроса."""
    draft = ProductDraft(
        name=payload.name,
        category=payload.category,
        category_id=payload.category_id,
        base_price=payload.base_price,
    )
    draft.description = payload.description
    draft.compare_price = payload.compare_price
    draft.images = payload.images
    draft.allow_name_number = payload.allow_name_number
    draft.name_number_price = payload.name_number_price
    draft.selected_badges = payload.selected_badges

    for option in payload.options:
        draft.select_option(option)
    apply_matrix_edits(draft, payload)
    return draft


def update_draft(draft: ProductDraft, payload: ProductUpdateRequest) -> ProductDraft:
    """Применяет правку к черновику, загруженному из каталога."""
    if payload.category is not None and payload.category != draft.category:
        # Смена категории строит матрицу заново
        draft.set_category(payload.category, payload.category_id)
    elif payload.category_id is not None:
        draft.category_id = payload.category_id
    if payload.base_price is not None:
        draft.set_base_price(payload.base_price)

    for field in ("name", "description", "compare_price", "images",
                  "allow_name_number", "name_number_price", "selected_badges"):
        value = getattr(payload, field)
        if value is not None:
            setattr(draft, field, value)

    if payload.options is not None:
        draft.set_options(payload.options)
    apply_matrix_edits(draft, payload)
    return draft


@router.post(
    "/products",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Создать товар с матрицей вариантов",
)
async def create_product(
    payload: ProductCreateRequest,
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        draft = build_draft(payload)
        product = await draft.submit(catalog)
    except DraftError as e:
        logger.warning(f"Invalid product draft '{payload.name}': {e.message}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e
    except CatalogServiceError as e:
        logger.error(f"Catalog service error creating product '{payload.name}': {e}", exc_info=True)
        raise HTTPException(status_code=e.status_code or 503, detail=e.message) from e
    if product is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Catalog did not return the created product.")
    return product


@router.put(
    "/products/{product_id}",
    response_model=Product,
    summary="Изменить товар и его матрицу вариантов",
    description="Загружает товар, применяет правки формы и заменяет варианты в каталоге.",
)
async def update_product(
    product_id: str,
    payload: ProductUpdateRequest,
    catalog: CatalogService = Depends(get_catalog_service),
):
    try:
        existing = await catalog.get_admin_product(product_id)
        if existing is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Product '{product_id}' not found.")
        draft = update_draft(ProductDraft.from_product(existing), payload)
        product = await draft.submit(catalog)
    except DraftError as e:
        logger.warning(f"Invalid edit of product {product_id}: {e.message}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e
    except CatalogServiceError as e:
        logger.error(f"Catalog service error updating product {product_id}: {e}", exc_info=True)
        raise HTTPException(status_code=e.status_code or 503, detail=e.message) from e
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Product '{product_id}' not found.")
    return product
