# storefront/models/selection.py
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from storefront.models.catalog import CatalogModel, Label, Money


class Selection(CatalogModel):
    """
    Текущий (не сохраняемый) выбор покупателя на странице товара.
    fabric - ткань джерси или тип костюма, size - размер внутри неё,
    variant_id - простой вариант для остальных категорий.
    """
    fabric: Optional[str] = None
    size: Optional[Label] = None
    variant_id: Optional[Label] = None
    player_name: str = ""
    jersey_number: str = ""
    badge_ids: List[str] = []

    @field_validator('player_name', 'jersey_number', mode='before')
    @classmethod
    def none_is_blank(cls, value):
        return "" if value is None else value

    @property
    def has_name_or_number(self) -> bool:
        return bool(self.player_name.strip() or self.jersey_number.strip())


class CustomOptions(CatalogModel):
    """Полезная нагрузка customOptions, которую получает корзина."""
    name: str = ""
    number: str = ""
    badges: List[str] = []
    badge_total: Money = Decimal("0")
    size: Optional[str] = None
    fabric: Optional[str] = None


class PriceQuote(CatalogModel):
    """Расчёт цены для выбора. unit_price=None означает «цену определить нельзя», а не «бесплатно»."""
    product_id: str
    unit_price: Optional[Money] = None
    base_component: Optional[Money] = None
    name_number_total: Money = Decimal("0")
    badge_total: Money = Decimal("0")
    formatted_price: Optional[str] = None
    can_add_to_cart: bool = False
    message: Optional[str] = None
    notice: Optional[str] = None
    custom_options: CustomOptions = Field(default_factory=CustomOptions)
