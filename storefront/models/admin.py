# storefront/models/admin.py
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from storefront.models.catalog import CatalogModel, Label, Money, Variant


class VariantGenerationRequest(CatalogModel):
    """Параметры генерации матрицы вариантов для категории."""
    category: str
    base_price: Money = Field(Decimal("0"), ge=0)
    options: List[str] = []
    option_prices: Dict[str, Money] = {}


class VariantGenerationResponse(CatalogModel):
    category: str
    variants: List[Variant] = []


class SizeEdit(CatalogModel):
    option: str
    size: Label
    stock: Optional[int] = Field(None, ge=0)
    price: Optional[Money] = Field(None, ge=0)


class VariantEdit(CatalogModel):
    index: int = Field(..., ge=0)
    stock: Optional[int] = Field(None, ge=0)
    price: Optional[Money] = Field(None, ge=0)


class ProductCreateRequest(CatalogModel):
    name: str
    description: str = ""
    category: str
    category_id: Label
    base_price: Money = Field(..., gt=0, alias='price')
    compare_price: Optional[Money] = None
    images: List[str] = []
    allow_name_number: bool = False
    name_number_price: Money = Decimal("250")
    selected_badges: List[str] = []
    options: List[str] = []
    option_prices: Dict[str, Money] = {}
    size_edits: List[SizeEdit] = []
    variant_edits: List[VariantEdit] = []


class ProductUpdateRequest(CatalogModel):
    """
    Правка существующего товара. Незаданные поля остаются как в каталоге;
    options, если задан, - итоговый набор тканей/типов (снятые удаляются вместе с размерами).
    """
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    category_id: Optional[Label] = None
    base_price: Optional[Money] = Field(None, gt=0, alias='price')
    compare_price: Optional[Money] = None
    images: Optional[List[str]] = None
    allow_name_number: Optional[bool] = None
    name_number_price: Optional[Money] = None
    selected_badges: Optional[List[str]] = None
    options: Optional[List[str]] = None
    option_prices: Dict[str, Optional[Money]] = {}
    size_edits: List[SizeEdit] = []
    variant_edits: List[VariantEdit] = []
