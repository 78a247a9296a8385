# storefront/services/selection.py
import logging
from decimal import Decimal
from typing import List, Optional, Protocol, TYPE_CHECKING

from storefront.models.catalog import Badge, Product, ProductKind, Variant
from storefront.models.cart import CartItem, CartItemCreate, WishlistItem
from storefront.models.selection import PriceQuote, Selection
from storefront.services import pricing
from storefront.services.stock import (
    NO_STOCK_NOTICE,
    OUT_OF_STOCK_NOTICE,
    is_fabric_selectable,
    is_size_selectable,
    selectable_options,
    stock_notice,
)
from storefront.utils.currency import format_currency

if TYPE_CHECKING:
    from storefront.services.catalog import CatalogService

logger = logging.getLogger(__name__)

MISSING_SELECTION_MESSAGES = {
    ProductKind.JERSEY: "Please select fabric type and size",
    ProductKind.TRACKSUIT: "Please select tracksuit type and size",
}
MISSING_VARIANT_MESSAGE = "Please select a size"
UNPRICEABLE_MESSAGE = "Selected option is currently unavailable"
DEFAULT_IMAGE = "/api/placeholder/300"


class SelectionError(Exception):
    """Недопустимый шаг выбора. message показывается покупателю как есть."""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


class CartCollaborator(Protocol):
    def add_item(self, item: CartItemCreate) -> CartItem: ...


class WishlistCollaborator(Protocol):
    async def contains(self, product_id: str, variant_id: Optional[str]) -> bool: ...

    async def add(self, item: WishlistItem) -> None: ...

    async def remove(self, product_id: str, variant_id: Optional[str]) -> None: ...


class SelectionSession:
    """
    Состояние выбора на странице товара: ткань/тип -> размер, плюс независимая ось
    надбавок (имя/номер, нашивки). Каталожные данные не изменяет.

    revision растёт при каждом переходе; ответы на запросы, отправленные для
    старой ревизии, отбрасываются (см. apply_refresh).
    """

    def __init__(self, product: Product, badges: Optional[List[Badge]] = None):
        self.product = product
        self.badges = badges
        self.selection = Selection()
        self.revision = 0
        self.notice: Optional[str] = None
        self._auto_select()

    @property
    def kind(self) -> ProductKind:
        return self.product.kind

    @property
    def is_sized(self) -> bool:
        return self.product.has_option_axis

    def _touch(self):
        self.revision += 1

    def _auto_select(self):
        # Единственная доступная ткань выбирается сразу, размер - только покупателем
        if not self.is_sized or self.selection.fabric is not None:
            return
        options = selectable_options(self.product)
        if len(options) == 1:
            self.selection.fabric = options[0]
            logger.debug(f"Auto-selected '{options[0]}' for product {self.product.id}")

    def _current_variant(self) -> Optional[Variant]:
        return self.product.variant_for(self.selection.fabric)

    # --- Переходы ---

    def choose_fabric(self, option: str) -> None:
        if not self.is_sized:
            raise SelectionError("This product has no fabric or type options", field="fabric")
        variant = self.product.variant_for(option)
        if not is_fabric_selectable(variant):
            logger.info(f"Rejected fabric '{option}' for product {self.product.id}: no stock")
            raise SelectionError(NO_STOCK_NOTICE, field="fabric")
        self.selection.fabric = option
        # Размеры привязаны к ткани, поэтому прежний размер сбрасывается
        self.selection.size = None
        self.notice = None
        self._touch()

    def choose_size(self, size: str) -> Optional[str]:
        """
        Выбирает размер. Возвращает предупреждение 'Only N left' для малого остатка
        (не блокирует выбор) или None.
        """
        if self.is_sized:
            if not self.selection.fabric:
                raise SelectionError(MISSING_SELECTION_MESSAGES[self.kind], field="fabric")
            variant = self._current_variant()
            entry = variant.size_entry(size) if variant else None
            if not is_size_selectable(entry):
                raise SelectionError(OUT_OF_STOCK_NOTICE, field="size")
            self.selection.size = size
            self.notice = stock_notice(entry)
        else:
            variant = next((v for v in self.product.simple_variants if v.value == size), None)
            self._choose_simple(variant)
        self._touch()
        return self.notice

    def choose_variant(self, variant_id: str) -> Optional[str]:
        if self.is_sized:
            raise SelectionError(MISSING_SELECTION_MESSAGES[self.kind], field="fabric")
        variant = self.product.find_variant(variant_id)
        if variant is not None and variant.is_sized:
            variant = None
        self._choose_simple(variant)
        self._touch()
        return self.notice

    def _choose_simple(self, variant: Optional[Variant]):
        if not is_size_selectable(variant):
            raise SelectionError(OUT_OF_STOCK_NOTICE, field="size")
        self.selection.variant_id = variant.id
        self.selection.size = variant.value
        self.notice = stock_notice(variant)

    def set_player_name(self, name: Optional[str]) -> None:
        self.selection.player_name = name or ""
        self._touch()

    def set_jersey_number(self, number: Optional[str]) -> None:
        self.selection.jersey_number = number or ""
        self._touch()

    def toggle_badge(self, badge_id: str) -> None:
        if badge_id in self.selection.badge_ids:
            self.selection.badge_ids = [b for b in self.selection.badge_ids if b != badge_id]
        else:
            self.selection.badge_ids = [*self.selection.badge_ids, badge_id]
        self._touch()

    def set_badges(self, badge_ids: List[str]) -> None:
        self.selection.badge_ids = list(dict.fromkeys(badge_ids))
        self._touch()

    def apply(self, selection: Selection) -> List[str]:
        """
        Проигрывает выбор, пришедший от клиента, через обычные переходы.
        Отклонённые шаги не прерывают разбор: их сообщения возвращаются списком.
        """
        errors: List[str] = []
        fabric_rejected = False
        if selection.fabric is not None and self.is_sized:
            try:
                self.choose_fabric(selection.fabric)
            except SelectionError as e:
                errors.append(e.message)
                fabric_rejected = True
                # Размер без запрошенной ткани не выбираем, иначе цена была бы за другую ткань
                self.selection.fabric = None
                self.selection.size = None
                self.notice = None
        if not fabric_rejected:
            try:
                if selection.variant_id is not None and not self.is_sized:
                    self.choose_variant(selection.variant_id)
                elif selection.size is not None:
                    self.choose_size(selection.size)
            except SelectionError as e:
                errors.append(e.message)
        self.set_player_name(selection.player_name)
        self.set_jersey_number(selection.jersey_number)
        self.set_badges(selection.badge_ids)
        return errors

    # --- Проверки и расчёт ---

    def validation_message(self) -> Optional[str]:
        """Почему нельзя добавить в корзину, или None, если можно."""
        if not self.product.variants:
            return None
        sel = self.selection
        if self.is_sized:
            if not sel.fabric or not sel.size:
                return MISSING_SELECTION_MESSAGES[self.kind]
            variant = self._current_variant()
            if not is_size_selectable(variant.size_entry(sel.size) if variant else None):
                return OUT_OF_STOCK_NOTICE
            return None
        variant = pricing.resolve_simple_variant(self.product, sel)
        if variant is None:
            return MISSING_VARIANT_MESSAGE
        if not is_size_selectable(variant):
            return OUT_OF_STOCK_NOTICE
        return None

    def can_add_to_cart(self) -> bool:
        return self.validation_message() is None

    def unit_price(self) -> Optional[Decimal]:
        return pricing.compute_price(self.product, self.selection, self.badges)

    def variant_id(self) -> Optional[str]:
        if self.is_sized:
            variant = self._current_variant()
            return variant.id if variant and self.selection.size else None
        variant = pricing.resolve_simple_variant(self.product, self.selection)
        return variant.id if variant else None

    def variant_name(self) -> Optional[str]:
        sel = self.selection
        if self.is_sized:
            if sel.fabric and sel.size:
                label = "Fabric" if self.kind == ProductKind.JERSEY else "Type"
                return f"{label}: {sel.fabric}, Size: {sel.size}"
            return None
        variant = pricing.resolve_simple_variant(self.product, sel)
        if variant is None or not variant.value:
            return None
        return f"{variant.name or 'Size'}: {variant.value}"

    def quote(self) -> PriceQuote:
        base = pricing.base_component(self.product, self.selection)
        unit_price = self.unit_price()
        options = pricing.build_custom_options(self.product, self.selection, self.badges)
        return PriceQuote(
            product_id=self.product.id,
            unit_price=unit_price,
            base_component=base,
            name_number_total=pricing.name_number_surcharge(self.product, self.selection),
            badge_total=options.badge_total,
            formatted_price=format_currency(unit_price) if unit_price is not None else None,
            can_add_to_cart=self.can_add_to_cart() and unit_price is not None,
            message=self.validation_message() or (UNPRICEABLE_MESSAGE if unit_price is None else None),
            notice=self.notice,
            custom_options=options,
        )

    def _image(self, index: int) -> str:
        images = self.product.images
        if 0 <= index < len(images):
            return images[index]
        return images[0] if images else DEFAULT_IMAGE

    def build_cart_item(self, quantity: int = 1, image_index: int = 0) -> CartItemCreate:
        message = self.validation_message()
        if message:
            raise SelectionError(message)
        unit_price = self.unit_price()
        if unit_price is None:
            raise SelectionError(UNPRICEABLE_MESSAGE)

        sel = self.selection
        options = pricing.build_custom_options(self.product, sel, self.badges)
        has_options = bool(sel.player_name or sel.jersey_number or options.badges or sel.size or sel.fabric)
        image = self._image(image_index)

        return CartItemCreate(
            product_id=self.product.id,
            name=self.product.name,
            price=unit_price,
            image=image,
            quantity=quantity,
            variant_id=self.variant_id(),
            variant_name=self.variant_name(),
            custom_options=options if has_options else None,
        )

    def add_to_cart(self, cart: CartCollaborator, quantity: int = 1, image_index: int = 0) -> CartItem:
        """Передаёт выбор в корзину. При неполном выборе корзина не вызывается."""
        try:
            item = self.build_cart_item(quantity=quantity, image_index=image_index)
        except SelectionError as e:
            logger.info(f"Add to cart rejected for product {self.product.id}: {e.message}")
            raise
        return cart.add_item(item)

    async def toggle_wishlist(self, wishlist: WishlistCollaborator, image_index: int = 0) -> bool:
        """
        Добавляет товар (с текущим вариантом, если он выбран) в список желаний
        или убирает его оттуда. Возвращает True, если позиция теперь в списке.
        """
        variant_id = self.variant_id()
        if await wishlist.contains(self.product.id, variant_id):
            await wishlist.remove(self.product.id, variant_id)
            logger.info(f"Removed product {self.product.id} ({variant_id or 'no variant'}) from wishlist")
            return False
        await wishlist.add(WishlistItem(
            product_id=self.product.id,
            name=self.product.name,
            price=self.product.base_price,
            image=self._image(image_index),
            variant_id=variant_id,
        ))
        logger.info(f"Added product {self.product.id} ({variant_id or 'no variant'}) to wishlist")
        return True

    # --- Обновление остатков ---

    def apply_refresh(self, product: Product, issued_revision: int) -> bool:
        """
        Применяет свежие данные товара, если выбор не менялся с момента запроса.
        Возвращает False, если ответ устарел и был отброшен.
        """
        if issued_revision != self.revision:
            logger.info(
                f"Discarding stale product data for {product.id}: "
                f"issued for revision {issued_revision}, current {self.revision}"
            )
            return False
        self.product = product
        self._revalidate()
        self._touch()
        return True

    def _revalidate(self):
        sel = self.selection
        if self.is_sized:
            if sel.fabric is not None:
                variant = self._current_variant()
                if not is_fabric_selectable(variant):
                    logger.info(f"'{sel.fabric}' is out of stock after refresh, clearing selection")
                    sel.fabric = None
                    sel.size = None
                    self.notice = None
                elif sel.size is not None:
                    entry = variant.size_entry(sel.size)
                    if not is_size_selectable(entry):
                        logger.info(f"Size '{sel.size}' of '{sel.fabric}' is out of stock after refresh, clearing it")
                        sel.size = None
                        self.notice = None
                    else:
                        self.notice = stock_notice(entry)
            self._auto_select()
        elif sel.variant_id is not None or sel.size is not None:
            variant = pricing.resolve_simple_variant(self.product, sel)
            if not is_size_selectable(variant):
                logger.info(f"Variant {sel.variant_id or sel.size} is out of stock after refresh, clearing it")
                sel.variant_id = None
                sel.size = None
                self.notice = None
            else:
                self.notice = stock_notice(variant)

    async def refresh(self, catalog: "CatalogService") -> bool:
        issued_revision = self.revision
        product = await catalog.get_product(self.product.slug)
        if product is None:
            logger.warning(f"Product {self.product.slug} disappeared from the catalog during refresh")
            return False
        return self.apply_refresh(product, issued_revision)
