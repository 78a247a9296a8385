# storefront/models/cart.py
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, model_serializer

from storefront.models.catalog import CatalogModel, Label, Money
from storefront.models.selection import CustomOptions, Selection


class CartItemCreate(CatalogModel):
    product_id: Label
    name: str
    price: Money = Field(..., ge=0)
    image: str = "/api/placeholder/300"
    quantity: int = Field(1, gt=0)
    variant_id: Optional[str] = None
    variant_name: Optional[str] = None
    custom_options: Optional[CustomOptions] = None


class CartItem(CartItemCreate):
    id: str

    # Не отдаём пустые variantId/variantName/customOptions, как и корзина на фронте
    @model_serializer(mode='wrap', when_used='json')
    def skip_empty_optionals(self, handler):
        data = handler(self)
        for key in ('variantId', 'variantName', 'customOptions', 'variant_id', 'variant_name', 'custom_options'):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class CartSummary(CatalogModel):
    items: List[CartItem] = []
    total_items: int = 0
    total_price: Money = Decimal("0")
    formatted_total: str = ""


class AddToCartRequest(CatalogModel):
    """Запрос на добавление товара: выбор проверяется и оценивается на сервере."""
    slug: str
    selection: Selection = Field(default_factory=Selection)
    quantity: int = Field(1, gt=0)
    image_index: int = Field(0, ge=0)


class CartQuantityUpdate(CatalogModel):
    quantity: int


class WishlistItem(CatalogModel):
    """Позиция списка желаний: товар и, если выбран, вариант."""
    product_id: Label
    name: str
    price: Money
    image: str = "/api/placeholder/300"
    variant_id: Optional[str] = None
