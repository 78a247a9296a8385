# storefront/api/v1/endpoints/cart.py
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from storefront.api.v1.endpoints.products import load_badges, load_product
from storefront.dependencies import find_cart, get_cart_id, get_cart_registry, get_catalog_service
from storefront.models.cart import AddToCartRequest, CartItem, CartQuantityUpdate, CartSummary
from storefront.services.cart import CartRegistry, CartStore
from storefront.services.catalog import CatalogService
from storefront.services.selection import SelectionError, SelectionSession

logger = logging.getLogger(__name__)
router = APIRouter()


def empty_summary(cart_id: str) -> CartSummary:
    # Незарегистрированная корзина отдаётся пустой и в реестр не попадает
    return CartStore(cart_id).summary()


def existing_item_cart(cart: Optional[CartStore], item_id: str) -> CartStore:
    if cart is None or cart.get_item(item_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cart item not found.")
    return cart


@router.get(
    "/",
    response_model=CartSummary,
    summary="Получить корзину",
)
async def get_user_cart(
    cart_id: Annotated[str, Depends(get_cart_id)],
    cart: Annotated[Optional[CartStore], Depends(find_cart)],
):
    return cart.summary() if cart is not None else empty_summary(cart_id)


@router.post(
    "/items",
    response_model=CartItem,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить товар в корзину",
    description="Выбор проверяется на сервере: неполный выбор или отсутствие остатка отклоняются с 422.",
)
async def add_cart_item(
    payload: AddToCartRequest,
    cart_id: Annotated[str, Depends(get_cart_id)],
    registry: Annotated[CartRegistry, Depends(get_cart_registry)],
    catalog: CatalogService = Depends(get_catalog_service),
):
    product = await load_product(payload.slug, catalog)
    badges = await load_badges(product, catalog)
    session = SelectionSession(product, badges=badges)
    errors = session.apply(payload.selection)
    if errors:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=errors[0])
    try:
        item = session.build_cart_item(quantity=payload.quantity, image_index=payload.image_index)
    except SelectionError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message) from e
    # Корзина заводится только под валидную позицию
    cart = registry.get_or_create(cart_id)
    return cart.add_item(item)


@router.patch(
    "/items/{item_id}",
    response_model=CartSummary,
    summary="Изменить количество",
    description="Количество 0 или меньше удаляет позицию.",
)
async def update_cart_item(
    item_id: str,
    payload: CartQuantityUpdate,
    registry: Annotated[CartRegistry, Depends(get_cart_registry)],
    cart: Annotated[Optional[CartStore], Depends(find_cart)],
):
    cart = existing_item_cart(cart, item_id)
    cart.update_quantity(item_id, payload.quantity)
    summary = cart.summary()
    registry.drop_if_empty(cart.cart_id)
    return summary


@router.delete(
    "/items/{item_id}",
    response_model=CartSummary,
    summary="Удалить позицию",
)
async def remove_cart_item(
    item_id: str,
    registry: Annotated[CartRegistry, Depends(get_cart_registry)],
    cart: Annotated[Optional[CartStore], Depends(find_cart)],
):
    cart = existing_item_cart(cart, item_id)
    cart.remove_item(item_id)
    summary = cart.summary()
    registry.drop_if_empty(cart.cart_id)
    return summary


@router.delete(
    "/",
    response_model=CartSummary,
    summary="Очистить корзину",
)
async def clear_cart(
    cart_id: Annotated[str, Depends(get_cart_id)],
    registry: Annotated[CartRegistry, Depends(get_cart_registry)],
):
    logger.info(f"Clearing cart {cart_id}")
    registry.drop(cart_id)
    return empty_summary(cart_id)
