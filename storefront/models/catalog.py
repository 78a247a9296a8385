# storefront/models/catalog.py
import json
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Annotated

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

DEFAULT_NAME_NUMBER_PRICE = Decimal("250")


def _money_to_json(value: Decimal):
    # Цены отдаём числами, как их присылает каталог, а не строками
    return int(value) if value == value.to_integral_value() else float(value)

Money = Annotated[Decimal, PlainSerializer(_money_to_json, when_used="json")]


class CatalogModel(BaseModel):
    """Базовая модель: camelCase на проводе, snake_case в коде."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )


class ProductKind(str, Enum):
    JERSEY = "jersey"
    TRACKSUIT = "tracksuit"
    SNEAKER = "sneaker"
    SHORTS = "shorts"
    WATCH = "watch"
    OTHER = "other"

# Старые данные каталога используют slug во множественном числе
CATEGORY_ALIASES = {
    "jerseys": ProductKind.JERSEY,
    "tracksuits": ProductKind.TRACKSUIT,
    "sneakers": ProductKind.SNEAKER,
    "watches": ProductKind.WATCH,
}

SIZED_KINDS = (ProductKind.JERSEY, ProductKind.TRACKSUIT)


def product_kind(slug: Optional[str]) -> ProductKind:
    """Определяет вид товара по slug категории."""
    if not slug:
        return ProductKind.OTHER
    normalized = slug.strip().lower()
    if normalized in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[normalized]
    try:
        return ProductKind(normalized)
    except ValueError:
        return ProductKind.OTHER


def _coerce_label(value: Any) -> Any:
    # Каталог может прислать числовой id или размер (например, 42)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value

Label = Annotated[str, BeforeValidator(_coerce_label)]


class SizeEntry(CatalogModel):
    size: Label
    price: Money = Field(..., ge=0)
    stock: int = Field(0, ge=0)

    @field_validator('stock', mode='before')
    @classmethod
    def none_stock_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


def parse_size_entries(raw: Any) -> List[SizeEntry]:
    """
    Разбирает поле sizes варианта (JSON-строка или список).
    Некорректные данные не роняют разбор товара: вариант просто остаётся без размеров.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Error parsing sizes: {e}. Raw value: {str(raw)[:200]}")
            return []
    if not isinstance(raw, list):
        logger.error(f"Unexpected sizes payload type: {type(raw)}. Treating variant as having no sizes.")
        return []

    entries: List[SizeEntry] = []
    seen = set()
    for item in raw:
        if isinstance(item, SizeEntry):
            entry = item
        else:
            try:
                entry = SizeEntry.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping invalid size entry {item!r}: {e.error_count()} validation error(s)")
                continue
        if entry.size in seen:
            logger.warning(f"Duplicate size '{entry.size}' in variant sizes, keeping the first entry.")
            continue
        seen.add(entry.size)
        entries.append(entry)
    return entries


class Variant(CatalogModel):
    id: Optional[Label] = None
    product_id: Optional[Label] = None
    name: Optional[str] = None
    value: Optional[Label] = None
    price: Optional[Money] = Field(None, ge=0)
    stock: int = Field(0, ge=0)
    fabric_type: Optional[str] = None
    tracksuit_type: Optional[str] = None
    sizes: List[SizeEntry] = []

    @field_validator('stock', mode='before')
    @classmethod
    def none_stock_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator('sizes', mode='before')
    @classmethod
    def parse_sizes(cls, value: Any) -> List[SizeEntry]:
        return parse_size_entries(value)

    @property
    def option(self) -> Optional[str]:
        """Значение оси ткань/тип (fabricType или tracksuitType), если это вариант с размерами."""
        return self.fabric_type or self.tracksuit_type

    @property
    def is_sized(self) -> bool:
        return self.option is not None

    def size_entry(self, size: Optional[str]) -> Optional[SizeEntry]:
        if size is None:
            return None
        return next((entry for entry in self.sizes if entry.size == size), None)


class Category(CatalogModel):
    id: Optional[Label] = None
    name: Optional[str] = None
    slug: str = "unknown"

    @property
    def kind(self) -> ProductKind:
        return product_kind(self.slug)


class Badge(CatalogModel):
    id: Label
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    price: Money = Field(Decimal("0"), ge=0)
    is_active: bool = True


class Product(CatalogModel):
    id: Label
    name: str
    slug: str
    description: Optional[str] = None
    base_price: Money = Field(
        ..., ge=0,
        alias='price',
        validation_alias=AliasChoices('price', 'basePrice', 'base_price'),
    )
    compare_price: Optional[Money] = None
    category: Category = Field(
        default_factory=Category,
        validation_alias=AliasChoices('category', 'Category'),
    )
    images: List[str] = []
    allow_name_number: bool = False
    name_number_price: Money = DEFAULT_NAME_NUMBER_PRICE
    badges: List[Badge] = []
    variants: List[Variant] = Field(
        default_factory=list,
        validation_alias=AliasChoices('variants', 'ProductVariant'),
    )

    @field_validator('category', mode='before')
    @classmethod
    def missing_category(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator('images', 'badges', 'variants', mode='before')
    @classmethod
    def none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator('name_number_price', mode='before')
    @classmethod
    def default_name_number_price(cls, value: Any) -> Any:
        # Пустая или нулевая цена печати означает цену по умолчанию
        return value or DEFAULT_NAME_NUMBER_PRICE

    @property
    def kind(self) -> ProductKind:
        return self.category.kind

    @property
    def has_option_axis(self) -> bool:
        """Выбор идёт через ткань/тип -> размер (джерси или костюм с такими вариантами)."""
        return self.kind in SIZED_KINDS and bool(self.sized_variants)

    @property
    def sized_variants(self) -> List[Variant]:
        return [v for v in self.variants if v.is_sized]

    @property
    def simple_variants(self) -> List[Variant]:
        return [v for v in self.variants if not v.is_sized]

    def variant_for(self, option: Optional[str]) -> Optional[Variant]:
        """Ищет вариант по ткани/типу с учётом оси, подходящей виду товара."""
        if option is None:
            return None
        for variant in self.sized_variants:
            if self.kind == ProductKind.JERSEY and variant.fabric_type == option:
                return variant
            if self.kind == ProductKind.TRACKSUIT and variant.tracksuit_type == option:
                return variant
        return None

    def find_variant(self, variant_id: Optional[str]) -> Optional[Variant]:
        if variant_id is None:
            return None
        return next((v for v in self.variants if v.id == variant_id), None)
