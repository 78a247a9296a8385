# storefront/services/variant_generator.py
"""
Генерация матрицы вариантов при создании товара в админке.

Чистые функции generate_* строят варианты по правилам категории, reprice_*
пересчитывают цены при смене базовой цены. ProductDraft хранит состояние формы
и связывает их между собой.
"""
import json
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from storefront.models.catalog import Product, ProductKind, SizeEntry, Variant, product_kind
from storefront.services.pricing import jersey_size_price, tracksuit_size_price

if TYPE_CHECKING:
    from storefront.services.catalog import CatalogService

logger = logging.getLogger(__name__)

SNEAKER_SIZES = [str(size) for size in range(25, 47)]
SHORTS_SIZES = ["S", "M", "L", "XL", "XXL", "3XL", "4XL", "5XL"]
WATCH_SIZES = ["One Size"]
JERSEY_SIZES = ["S", "M", "L", "XL", "XXL", "3XL", "4XL", "5XL"]
TRACKSUIT_SIZES = ["S", "M", "L", "XL", "XXL"]

JERSEY_FABRICS = ("Fan Version", "Player Version")
TRACKSUIT_TYPES = ("Set", "Upper")

SIMPLE_SIZES = {
    ProductKind.SNEAKER: SNEAKER_SIZES,
    ProductKind.SHORTS: SHORTS_SIZES,
    ProductKind.WATCH: WATCH_SIZES,
}


class DraftError(Exception):
    """Ошибка формы создания товара (недопустимая опция, повторная отправка и т.п.)."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


# --- Генерация ---

def generate_simple_variants(kind: ProductKind, base_price: Decimal) -> List[Variant]:
    """Простые варианты «Size» для кроссовок, шорт и часов. Для прочих категорий - пусто."""
    sizes = SIMPLE_SIZES.get(kind, [])
    return [
        Variant(name="Size", value=size, price=Decimal(base_price), stock=0)
        for size in sizes
    ]


def generate_fabric_variant(fabric: str, base_price: Decimal) -> Variant:
    if fabric not in JERSEY_FABRICS:
        raise DraftError(f"Unknown fabric type: {fabric}")
    return Variant(
        name="Fabric Type",
        value=fabric,
        price=Decimal(base_price),
        stock=0,
        fabric_type=fabric,
        sizes=[
            SizeEntry(size=size, price=jersey_size_price(base_price, size), stock=0)
            for size in JERSEY_SIZES
        ],
    )


def generate_tracksuit_variant(tracksuit_type: str, base_price: Decimal) -> Variant:
    if tracksuit_type not in TRACKSUIT_TYPES:
        raise DraftError(f"Unknown tracksuit type: {tracksuit_type}")
    return Variant(
        name="Tracksuit Type",
        value=tracksuit_type,
        price=Decimal(base_price),
        stock=0,
        tracksuit_type=tracksuit_type,
        sizes=[
            SizeEntry(size=size, price=tracksuit_size_price(base_price, size), stock=0)
            for size in TRACKSUIT_SIZES
        ],
    )


def option_values(kind: ProductKind) -> tuple:
    if kind == ProductKind.JERSEY:
        return JERSEY_FABRICS
    if kind == ProductKind.TRACKSUIT:
        return TRACKSUIT_TYPES
    return ()


def generate_variants(
    category: str,
    base_price: Decimal,
    options: Iterable[str] = (),
    option_prices: Optional[Dict[str, Decimal]] = None,
) -> List[Variant]:
    """
    Матрица вариантов для категории.
    Для джерси/костюмов варианты создаются только для явно выбранных тканей/типов;
    цена ткани берётся из option_prices, иначе - базовая цена товара.
    """
    kind = product_kind(category)
    option_prices = option_prices or {}
    if kind == ProductKind.JERSEY:
        return [
            generate_fabric_variant(option, option_prices.get(option) or base_price)
            for option in dict.fromkeys(options)
        ]
    if kind == ProductKind.TRACKSUIT:
        return [
            generate_tracksuit_variant(option, option_prices.get(option) or base_price)
            for option in dict.fromkeys(options)
        ]
    return generate_simple_variants(kind, base_price)


# --- Пересчёт цен ---

def reprice_simple_variants(variants: List[Variant], old_base: Decimal, new_base: Decimal) -> List[Variant]:
    """
    Переносит новую базовую цену на простые варианты.
    Цены, которые админ уже изменил вручную (не равны старой базовой), не трогаются.
    """
    result = []
    for variant in variants:
        if not variant.is_sized and variant.price == old_base:
            variant = variant.model_copy(update={"price": Decimal(new_base)})
        result.append(variant)
    return result


def reprice_sized_variant(variant: Variant, old_base: Decimal, new_base: Decimal) -> Variant:
    """Пересчитывает цены размеров ткани/типа; вручную изменённые размеры сохраняются."""
    rule = jersey_size_price if variant.fabric_type else tracksuit_size_price
    sizes = [
        entry.model_copy(update={"price": rule(new_base, entry.size)})
        if entry.price == rule(old_base, entry.size) else entry
        for entry in variant.sizes
    ]
    price = Decimal(new_base) if variant.price == old_base else variant.price
    return variant.model_copy(update={"sizes": sizes, "price": price})


# --- Состояние формы ---

class ProductDraft:
    """
    Форма создания товара: категория, базовая цена, выбранные ткани/типы и их цены.
    Отправка защищена от повторного вызова, пока предыдущая не завершилась.
    """

    def __init__(self, name: str = "", category: Optional[str] = None, base_price: Decimal = Decimal("0"),
                 category_id: Optional[str] = None):
        self.name = name
        self.description = ""
        self.category: Optional[str] = None
        self.category_id = category_id
        self.base_price = Decimal(base_price)
        self.compare_price: Optional[Decimal] = None
        self.images: List[str] = []
        self.allow_name_number = False
        self.name_number_price = Decimal("250")
        self.selected_badges: List[str] = []
        self.options: List[str] = []
        self.option_prices: Dict[str, Decimal] = {}
        self.variants: List[Variant] = []
        self.is_submitting = False
        self.product_id: Optional[str] = None
        if category is not None:
            self.set_category(category, category_id)

    @classmethod
    def from_product(cls, product: Product) -> "ProductDraft":
        """
        Черновик для редактирования существующего товара.
        Варианты берутся как есть; цена ткани/типа - цена первого размера,
        если она есть и отличается от базовой, иначе ткань следует базовой цене.
        """
        draft = cls(name=product.name, base_price=product.base_price, category_id=product.category.id)
        draft.product_id = product.id
        draft.category = product.category.slug
        draft.description = product.description or ""
        draft.compare_price = product.compare_price
        draft.images = list(product.images)
        draft.allow_name_number = product.allow_name_number
        draft.name_number_price = product.name_number_price
        draft.selected_badges = [badge.id for badge in product.badges]
        draft.variants = [variant.model_copy(deep=True) for variant in product.variants]

        if draft.kind in (ProductKind.JERSEY, ProductKind.TRACKSUIT):
            for variant in product.sized_variants:
                if product.variant_for(variant.option) is not variant:
                    continue
                draft.options.append(variant.option)
                first_price = variant.sizes[0].price if variant.sizes else None
                if first_price and first_price != draft.base_price:
                    draft.option_prices[variant.option] = first_price
        logger.debug(
            f"Draft loaded from product {product.id}: options={draft.options}, option_prices={draft.option_prices}"
        )
        return draft

    @property
    def kind(self) -> ProductKind:
        return product_kind(self.category)

    def _option_base(self, option: str) -> Decimal:
        return self.option_prices.get(option) or self.base_price

    def set_category(self, category: str, category_id: Optional[str] = None) -> List[Variant]:
        """Смена категории сбрасывает выбор тканей/типов и заново строит матрицу."""
        self.category = category
        if category_id is not None:
            self.category_id = category_id
        self.options = []
        self.option_prices = {}
        self.variants = generate_variants(category, self.base_price)
        logger.debug(f"Draft category set to '{category}', {len(self.variants)} variants generated")
        return self.variants

    def set_base_price(self, price: Decimal) -> None:
        old_base, self.base_price = self.base_price, Decimal(price)
        if self.kind in (ProductKind.JERSEY, ProductKind.TRACKSUIT):
            # Цена товара влияет только на ткани/типы без собственной цены
            self.variants = [
                reprice_sized_variant(v, old_base, self.base_price)
                if v.option not in self.option_prices else v
                for v in self.variants
            ]
        else:
            self.variants = reprice_simple_variants(self.variants, old_base, self.base_price)

    def _check_option(self, option: str):
        allowed = option_values(self.kind)
        if option not in allowed:
            raise DraftError(f"'{option}' is not a valid option for category '{self.category}'")

    def select_option(self, option: str) -> Variant:
        self._check_option(option)
        existing = next((v for v in self.variants if v.option == option), None)
        if existing is not None:
            return existing
        self.options.append(option)
        if self.kind == ProductKind.JERSEY:
            variant = generate_fabric_variant(option, self._option_base(option))
        else:
            variant = generate_tracksuit_variant(option, self._option_base(option))
        self.variants.append(variant)
        return variant

    def deselect_option(self, option: str) -> None:
        """Удаляет ткань/тип вместе со всеми размерами (остатки не сохраняются)."""
        self.options = [o for o in self.options if o != option]
        self.option_prices.pop(option, None)
        self.variants = [v for v in self.variants if v.option != option]

    def set_options(self, options: Iterable[str]) -> None:
        """Приводит выбор тканей/типов к заданному набору: лишние удаляются, новые генерируются."""
        wanted = list(dict.fromkeys(options))
        for option in [o for o in self.options if o not in wanted]:
            self.deselect_option(option)
        for option in wanted:
            self.select_option(option)

    def set_option_price(self, option: str, price: Optional[Decimal]) -> None:
        """Цена ткани/типа. Пустая или нулевая цена возвращает ткань к базовой цене товара."""
        self._check_option(option)
        old_base = self._option_base(option)
        if price:
            self.option_prices[option] = Decimal(price)
        else:
            self.option_prices.pop(option, None)
        new_base = self._option_base(option)
        self.variants = [
            reprice_sized_variant(v, old_base, new_base) if v.option == option else v
            for v in self.variants
        ]

    def _sized(self, option: str) -> Variant:
        variant = next((v for v in self.variants if v.option == option), None)
        if variant is None:
            raise DraftError(f"'{option}' is not selected")
        return variant

    def _replace_entry(self, option: str, size: str, **update) -> None:
        variant = self._sized(option)
        if variant.size_entry(size) is None:
            raise DraftError(f"Size '{size}' does not exist for '{option}'")
        sizes = [e.model_copy(update=update) if e.size == size else e for e in variant.sizes]
        self.variants = [v.model_copy(update={"sizes": sizes}) if v is variant else v for v in self.variants]

    def update_stock(self, option: str, size: str, stock: int) -> None:
        # Изменение остатка цену не пересчитывает
        self._replace_entry(option, size, stock=max(int(stock), 0))

    def update_size_price(self, option: str, size: str, price: Decimal) -> None:
        self._replace_entry(option, size, price=Decimal(price))

    def update_variant(self, index: int, **fields) -> None:
        """Ручная правка простого варианта (цена, остаток, значение)."""
        if not 0 <= index < len(self.variants) or self.variants[index].is_sized:
            raise DraftError(f"No simple variant at index {index}")
        self.variants[index] = self.variants[index].model_copy(update=fields)

    def remove_variant(self, index: int) -> None:
        if not 0 <= index < len(self.variants):
            raise DraftError(f"No variant at index {index}")
        del self.variants[index]

    def to_payload(self) -> Dict:
        """Тело POST /api/admin/products; sizes хранятся в каталоге JSON-строкой."""
        variants = []
        for variant in self.variants:
            data = variant.model_dump(mode='json', by_alias=True, exclude_none=True, exclude={'id', 'product_id'})
            if variant.is_sized:
                data['sizes'] = json.dumps(
                    [entry.model_dump(mode='json', by_alias=True) for entry in variant.sizes]
                )
            else:
                data.pop('sizes', None)
            variants.append(data)
        payload = {
            "name": self.name,
            "description": self.description,
            "categoryId": self.category_id,
            "price": float(self.base_price),
            "images": self.images,
            "allowNameNumber": self.allow_name_number,
            "nameNumberPrice": float(self.name_number_price),
            "selectedBadges": self.selected_badges,
            "variants": variants,
        }
        if self.compare_price is not None:
            payload["comparePrice"] = float(self.compare_price)
        return payload

    async def submit(self, catalog: "CatalogService") -> Optional[Product]:
        if self.is_submitting:
            raise DraftError("Product is already being saved")
        if not self.name or not self.category_id or self.base_price <= 0:
            raise DraftError("Name, price, and category are required")
        self.is_submitting = True
        try:
            if self.product_id is not None:
                # Каталог пересоздаёт варианты товара целиком из переданной матрицы
                return await catalog.update_product(self.product_id, self.to_payload())
            return await catalog.create_product(self.to_payload())
        finally:
            self.is_submitting = False
