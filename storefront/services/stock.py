# storefront/services/stock.py
import logging
from typing import Dict, List, Optional, Union

from storefront.models.catalog import Product, SizeEntry, Variant

logger = logging.getLogger(__name__)

# Порог «мало осталось»: размер остаётся доступным, но помечается предупреждением.
# TODO: перенести порог в настройки категории, когда каталог начнёт его отдавать
LOW_STOCK_THRESHOLD = 5

OUT_OF_STOCK_NOTICE = "Out of Stock"
NO_STOCK_NOTICE = "No Stock Available"

Stocked = Union[SizeEntry, Variant]


def _stock_of(item: Optional[Stocked]) -> int:
    if item is None:
        return 0
    try:
        return max(int(item.stock), 0)
    except (TypeError, ValueError):
        logger.warning(f"Invalid stock value {item.stock!r}, treating as 0")
        return 0


def is_fabric_selectable(variant: Optional[Variant]) -> bool:
    """Ткань/тип доступны, если хотя бы у одного размера stock > 0."""
    if variant is None:
        return False
    return any(_stock_of(entry) > 0 for entry in variant.sizes)


def is_size_selectable(entry: Optional[Stocked]) -> bool:
    return _stock_of(entry) > 0


def is_low_stock(entry: Optional[Stocked]) -> bool:
    stock = _stock_of(entry)
    return 0 < stock <= LOW_STOCK_THRESHOLD


def stock_notice(entry: Optional[Stocked]) -> Optional[str]:
    """Текст для витрины: 'Out of Stock', 'Only N left' или None."""
    stock = _stock_of(entry)
    if stock <= 0:
        return OUT_OF_STOCK_NOTICE
    if stock <= LOW_STOCK_THRESHOLD:
        return f"Only {stock} left"
    return None


def selectable_options(product: Product) -> List[str]:
    """Ткани/типы товара, которые можно выбрать."""
    return [
        variant.option
        for variant in product.sized_variants
        if product.variant_for(variant.option) is variant and is_fabric_selectable(variant)
    ]


def has_any_stock(product: Product) -> bool:
    if product.has_option_axis:
        return bool(selectable_options(product))
    if product.variants:
        return any(is_size_selectable(v) for v in product.simple_variants)
    return True


def _entry_info(label: str, item: Stocked) -> Dict:
    return {
        "size": label,
        "price": item.price,
        "stock": _stock_of(item),
        "selectable": is_size_selectable(item),
        "lowStock": is_low_stock(item),
        "notice": stock_notice(item),
    }


def availability(product: Product) -> Dict:
    """
    Карта доступности для страницы товара.
    Для джерси/костюмов - ткани/типы с вложенными размерами, для остальных - простые варианты.
    """
    if product.has_option_axis:
        options = []
        for variant in product.sized_variants:
            if product.variant_for(variant.option) is not variant:
                continue
            selectable = is_fabric_selectable(variant)
            options.append({
                "option": variant.option,
                "variantId": variant.id,
                "price": variant.price,
                "selectable": selectable,
                "notice": None if selectable else NO_STOCK_NOTICE,
                "sizes": [_entry_info(entry.size, entry) for entry in variant.sizes],
            })
        return {"options": options, "variants": [], "inStock": has_any_stock(product)}

    variants = [
        {**_entry_info(v.value or "", v), "variantId": v.id, "name": v.name}
        for v in product.simple_variants
    ]
    return {"options": [], "variants": variants, "inStock": has_any_stock(product)}
