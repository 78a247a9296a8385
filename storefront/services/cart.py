# storefront/services/cart.py
import logging
import uuid
from collections import OrderedDict
from decimal import Decimal
from typing import List, Optional

from storefront.core.config import settings
from storefront.models.cart import CartItem, CartItemCreate, CartSummary
from storefront.utils.currency import format_currency

logger = logging.getLogger(__name__)


class CartStore:
    """
    Корзина одной сессии. Одинаковые позиции (товар, вариант, доп. опции)
    объединяются увеличением количества.
    """

    def __init__(self, cart_id: Optional[str] = None):
        self.cart_id = cart_id or uuid.uuid4().hex
        self.items: List[CartItem] = []

    def _find_same(self, item: CartItemCreate) -> Optional[CartItem]:
        options = item.custom_options.model_dump() if item.custom_options else None
        for existing in self.items:
            existing_options = existing.custom_options.model_dump() if existing.custom_options else None
            if (
                existing.product_id == item.product_id
                and existing.variant_id == item.variant_id
                and existing_options == options
            ):
                return existing
        return None

    def add_item(self, item: CartItemCreate) -> CartItem:
        existing = self._find_same(item)
        if existing is not None:
            existing.quantity += item.quantity
            logger.info(f"Cart {self.cart_id}: increased quantity of {existing.id} to {existing.quantity}")
            return existing
        new_item = CartItem(id=uuid.uuid4().hex, **item.model_dump())
        self.items.append(new_item)
        logger.info(f"Cart {self.cart_id}: added product {item.product_id} ({item.variant_name or 'no variant'}) at {item.price}")
        return new_item

    def get_item(self, item_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def remove_item(self, item_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.id != item_id]
        return len(self.items) != before

    def update_quantity(self, item_id: str, quantity: int) -> Optional[CartItem]:
        """Количество <= 0 удаляет позицию."""
        if quantity <= 0:
            self.remove_item(item_id)
            return None
        item = self.get_item(item_id)
        if item is not None:
            item.quantity = quantity
        return item

    def clear(self) -> None:
        self.items = []

    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def total_price(self) -> Decimal:
        return sum((item.price * item.quantity for item in self.items), Decimal("0"))

    def summary(self) -> CartSummary:
        total = self.total_price()
        return CartSummary(
            items=list(self.items),
            total_items=self.total_items(),
            total_price=total,
            formatted_total=format_currency(total),
        )


class CartRegistry:
    """
    Корзины в памяти процесса, по одной на идентификатор X-Cart-Id.
    Корзина создаётся только при добавлении товара; при превышении max_carts
    вытесняется корзина, к которой дольше всего не обращались.
    """

    def __init__(self, max_carts: Optional[int] = None):
        self.max_carts = max_carts if max_carts is not None else settings.CART_MAX_CARTS
        self._carts: "OrderedDict[str, CartStore]" = OrderedDict()

    def find(self, cart_id: str) -> Optional[CartStore]:
        """Существующая корзина или None; новых корзин не создаёт."""
        cart = self._carts.get(cart_id)
        if cart is not None:
            self._carts.move_to_end(cart_id)
        return cart

    def get_or_create(self, cart_id: str) -> CartStore:
        cart = self.find(cart_id)
        if cart is None:
            cart = CartStore(cart_id)
            self._carts[cart_id] = cart
            logger.debug(f"Created cart {cart_id}")
            while len(self._carts) > self.max_carts:
                evicted_id, _ = self._carts.popitem(last=False)
                logger.warning(f"Cart limit {self.max_carts} reached, evicted least recently used cart {evicted_id}")
        return cart

    def drop(self, cart_id: str) -> None:
        self._carts.pop(cart_id, None)

    def drop_if_empty(self, cart_id: str) -> None:
        cart = self._carts.get(cart_id)
        if cart is not None and not cart.items:
            self.drop(cart_id)
            logger.debug(f"Dropped empty cart {cart_id}")

    def __len__(self) -> int:
        return len(self._carts)
