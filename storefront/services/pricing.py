# storefront/services/pricing.py
"""
Правила расчёта цены товара по выбору покупателя.

Все функции чистые и тотальные: на некорректных данных они не бросают
исключений, а возвращают None («цену определить нельзя»). None никогда не
подменяется нулём - ноль означал бы бесплатный товар.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from storefront.models.catalog import Badge, Product, ProductKind, Variant
from storefront.models.selection import CustomOptions, Selection

logger = logging.getLogger(__name__)

LARGE_SIZES = frozenset({"3XL", "4XL", "5XL"})
LARGE_SIZE_PREMIUM = Decimal("250")


# --- Правила генерации цен по размерам (используются генератором вариантов) ---

def jersey_size_price(fabric_base_price: Decimal, size: str) -> Decimal:
    """Цена размера джерси: базовая цена ткани + 250 за 3XL/4XL/5XL."""
    premium = LARGE_SIZE_PREMIUM if size in LARGE_SIZES else Decimal("0")
    return Decimal(fabric_base_price) + premium


def tracksuit_size_price(type_base_price: Decimal, size: str) -> Decimal:
    # Для костюмов наценки за размер нет
    return Decimal(type_base_price)


# --- Базовая составляющая цены ---

def resolve_simple_variant(product: Product, selection: Selection) -> Optional[Variant]:
    """Находит выбранный простой вариант по id или по значению (размеру)."""
    if selection.variant_id is not None:
        variant = product.find_variant(selection.variant_id)
        if variant is not None and not variant.is_sized:
            return variant
        return None
    if selection.size is not None:
        return next((v for v in product.simple_variants if v.value == selection.size), None)
    return None


def _sized_component(product: Product, selection: Selection) -> Optional[Decimal]:
    if not selection.fabric or not selection.size:
        return None
    variant = product.variant_for(selection.fabric)
    if variant is None:
        logger.debug(f"No variant '{selection.fabric}' for product {product.id}")
        return None
    entry = variant.size_entry(selection.size)
    if entry is not None:
        return entry.price
    if product.kind == ProductKind.TRACKSUIT and variant.price is not None:
        # У костюма допускается плоская цена типа, если цены размера нет
        return variant.price
    logger.debug(f"Cannot price size '{selection.size}' of '{selection.fabric}' for product {product.id}")
    return None


def _simple_component(product: Product, selection: Selection) -> Optional[Decimal]:
    if selection.variant_id is None and selection.size is None:
        return product.base_price
    variant = resolve_simple_variant(product, selection)
    if variant is None:
        logger.debug(f"Selected variant not found for product {product.id}: {selection.variant_id or selection.size}")
        return None
    if variant.price and variant.price != product.base_price:
        return variant.price
    return product.base_price


def base_component(product: Product, selection: Selection) -> Optional[Decimal]:
    """Цена за единицу без надбавок (имя/номер, нашивки)."""
    if product.has_option_axis:
        return _sized_component(product, selection)
    # Без вариантов ткани/типа товар выбирается как простой (или покупается по базовой цене)
    return _simple_component(product, selection)


# --- Надбавки ---

def name_number_surcharge(product: Product, selection: Selection) -> Decimal:
    """Печать имени/номера оплачивается один раз, сколько бы полей ни было заполнено."""
    if product.allow_name_number and selection.has_name_or_number:
        return product.name_number_price
    return Decimal("0")


def selected_badges(
    product: Product,
    badge_ids: Iterable[str],
    badges: Optional[List[Badge]] = None,
) -> List[Badge]:
    available: Dict[str, Badge] = {
        badge.id: badge
        for badge in (product.badges if badges is None else badges)
        if badge.is_active
    }
    result: List[Badge] = []
    seen = set()
    for badge_id in badge_ids:
        if badge_id in seen:
            continue
        seen.add(badge_id)
        badge = available.get(badge_id)
        if badge is None:
            logger.debug(f"Badge '{badge_id}' is not available for product {product.id}, ignoring.")
            continue
        result.append(badge)
    return result


def badge_total(
    product: Product,
    badge_ids: Iterable[str],
    badges: Optional[List[Badge]] = None,
) -> Decimal:
    return sum((badge.price for badge in selected_badges(product, badge_ids, badges)), Decimal("0"))


# --- Итоговая цена ---

def compute_price(
    product: Product,
    selection: Selection,
    badges: Optional[List[Badge]] = None,
) -> Optional[Decimal]:
    """
    Цена за единицу для выбора: базовая составляющая + печать имени/номера + нашивки.
    :param badges: список нашивок (по умолчанию - нашивки самого товара).
    :return: сумма в BDT или None, если выбор нельзя оценить.
    """
    base = base_component(product, selection)
    if base is None:
        return None
    return (
        base
        + name_number_surcharge(product, selection)
        + badge_total(product, selection.badge_ids, badges)
    )


def build_custom_options(
    product: Product,
    selection: Selection,
    badges: Optional[List[Badge]] = None,
) -> CustomOptions:
    chosen = selected_badges(product, selection.badge_ids, badges)
    return CustomOptions(
        name=selection.player_name,
        number=selection.jersey_number,
        badges=[badge.id for badge in chosen],
        badge_total=sum((badge.price for badge in chosen), Decimal("0")),
        size=selection.size or None,
        fabric=selection.fabric or None,
    )
