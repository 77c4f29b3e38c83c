from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Tuple

from backend import crud
from backend.client import BackendClient
from backend.errors import ProductNotFoundError
from backend.models import AuthUser, CartItem, Order, Product, SearchEntry
from stores.auth import AuthStore
from stores.observable import Observable
from utils.logger import get_logger

_logger = get_logger(__name__)


class UserDataStore(Observable):
    """
    Mirror of the signed-in user's favorites, cart and search history.

    Collections are loaded when a user signs in and emptied locally when they
    sign out. Every mutation writes to the backend first and touches the local
    collection only after that write succeeded; failures are logged and
    re-raised. With nobody signed in every mutation returns None without
    calling the backend.

    Cart and favorite mutations for the same (user, product) run one at a
    time, so a double "add to cart" yields one line with the summed quantity.

    Listeners receive the name of the collection that changed: "favorites",
    "cart", "search_history" or "all".
    """

    def __init__(self, backend: BackendClient, auth: AuthStore) -> None:
        super().__init__()
        self._backend = backend
        self._auth = auth
        self.favorites: List[Product] = []
        self.cart_items: List[CartItem] = []
        self.search_history: List[SearchEntry] = []
        self._locks: Dict[Tuple[str, str, str], asyncio.Lock] = {}
        self._unsubscribe_auth = auth.subscribe(self._on_user_changed)

    def close(self) -> None:
        self._unsubscribe_auth()

    # ---------------------------
    # Derived values
    # ---------------------------

    @property
    def cart_count(self) -> int:
        return sum(item.quantity for item in self.cart_items)

    @property
    def favorites_count(self) -> int:
        return len(self.favorites)

    @property
    def cart_total(self) -> float:
        return sum(item.line_total for item in self.cart_items)

    def is_favorite(self, product_id: str) -> bool:
        return any(p.id == product_id for p in self.favorites)

    def cart_quantity(self, product_id: str) -> int:
        item = self._find_cart_item(product_id)
        return item.quantity if item else 0

    # ---------------------------
    # Loading
    # ---------------------------

    async def _on_user_changed(self, user: Optional[AuthUser]) -> None:
        if user is None:
            self.clear()
            await self._emit("all")
        else:
            await self.load()

    def clear(self) -> None:
        self.favorites = []
        self.cart_items = []
        self.search_history = []
        self._locks.clear()

    async def load(self) -> None:
        user = self._auth.user
        if user is None:
            return

        favorites, cart_items, history = await asyncio.gather(
            crud.list_favorites(self._backend, user.id),
            crud.list_cart(self._backend, user.id),
            crud.list_search_history(self._backend, user.id),
            return_exceptions=True,
        )
        if not self._is_current(user):
            _logger.info("User changed while loading, dropping loaded data")
            return

        self.favorites = self._loaded(favorites, "favorites")
        self.cart_items = self._loaded(cart_items, "cart")
        self.search_history = self._loaded(history, "search history")
        await self._emit("all")

    @staticmethod
    def _loaded(result, what: str) -> list:
        if isinstance(result, BaseException):
            _logger.error(f"Error loading {what}: {result!r}")
            return []
        return result

    # ---------------------------
    # Favorites
    # ---------------------------

    async def add_to_favorites(self, product_id: str) -> None:
        user = self._auth.user
        if user is None:
            return

        async with self._lock("favorites", user, product_id):
            try:
                product = await crud.get_product(self._backend, product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                await crud.add_favorite(self._backend, user.id, product_id)
            except Exception as exc:
                _logger.error(f"Error adding to favorites: {exc!r}")
                raise
            if not self._is_current(user):
                return
            self.favorites = [*self.favorites, product]
        await self._emit("favorites")

    async def remove_from_favorites(self, product_id: str) -> None:
        user = self._auth.user
        if user is None:
            return

        async with self._lock("favorites", user, product_id):
            try:
                await crud.remove_favorite(self._backend, user.id, product_id)
            except Exception as exc:
                _logger.error(f"Error removing from favorites: {exc!r}")
                raise
            if not self._is_current(user):
                return
            self.favorites = [p for p in self.favorites if p.id != product_id]
        await self._emit("favorites")

    # ---------------------------
    # Cart
    # ---------------------------

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> None:
        """Add a product, or bump the quantity of the line already in the cart."""
        user = self._auth.user
        if user is None:
            return

        async with self._lock("cart", user, product_id):
            try:
                product = await crud.get_product(self._backend, product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)
                existing = self._find_cart_item(product_id)
                if existing:
                    await self._write_quantity(
                        user, product_id, existing.quantity + quantity
                    )
                else:
                    await crud.insert_cart_item(
                        self._backend, user.id, product_id, quantity
                    )
                    if self._is_current(user):
                        self.cart_items = [
                            *self.cart_items,
                            CartItem(product=product, quantity=quantity),
                        ]
            except Exception as exc:
                _logger.error(f"Error adding to cart: {exc!r}")
                raise
        await self._emit("cart")

    async def update_cart_quantity(self, product_id: str, quantity: int) -> None:
        """Set the quantity of a cart line. Keeping it >= 1 is up to the caller."""
        user = self._auth.user
        if user is None:
            return

        async with self._lock("cart", user, product_id):
            try:
                await self._write_quantity(user, product_id, quantity)
            except Exception as exc:
                _logger.error(f"Error updating cart quantity: {exc!r}")
                raise
        await self._emit("cart")

    async def change_cart_quantity(self, product_id: str, delta: int) -> Optional[int]:
        """
        Move a cart line's quantity by delta, reading the current value under
        the line's lock. Returns the new quantity, or None when nothing was
        written: signed out, no such line, or the result would drop below one.
        """
        user = self._auth.user
        if user is None:
            return None

        async with self._lock("cart", user, product_id):
            existing = self._find_cart_item(product_id)
            if existing is None or existing.quantity + delta < 1:
                return None
            quantity = existing.quantity + delta
            try:
                await self._write_quantity(user, product_id, quantity)
            except Exception as exc:
                _logger.error(f"Error updating cart quantity: {exc!r}")
                raise
        await self._emit("cart")
        return quantity

        await self._emit("cart")

    async def remove_from_cart(self, product_id: str) -> None:
        user = self._auth.user
        if user is None:
            return

        async with self._lock("cart", user, product_id):
            try:
                await crud.delete_cart_item(self._backend, user.id, product_id)
            except Exception as exc:
                _logger.error(f"Error removing from cart: {exc!r}")
                raise
            if not self._is_current(user):
                return
            self.cart_items = [i for i in self.cart_items if i.product.id != product_id]
        await self._emit("cart")

    async def checkout(self) -> Optional[Order]:
        """
        Turn the cart into a pending order, then empty the cart line by line.

        Once the order exists checkout does not raise: a cart line that cannot
        be removed is logged and stays in the cart, and the order is returned.
        """
        user = self._auth.user
        if user is None:
            return None

        items = list(self.cart_items)
        if not items:
            raise ValueError("Cart is empty")
        try:
            order = await crud.create_order(self._backend, user.id, items)
        except Exception as exc:
            _logger.error(f"Checkout error: {exc!r}")
            raise
        _logger.info(f"Order {order.id} placed with {len(items)} line(s)")

        for item in items:
            try:
                await self.remove_from_cart(item.product.id)
            except Exception as exc:
                _logger.warning(
                    f"Order {order.id}: cart line {item.product.id} not cleared: {exc!r}"
                )
        return order

    async def _write_quantity(self, user: AuthUser, product_id: str, quantity: int) -> None:
        await crud.update_cart_item(self._backend, user.id, product_id, quantity)
        if not self._is_current(user):
            return
        self.cart_items = [
            CartItem(product=i.product, quantity=quantity)
            if i.product.id == product_id
            else i
            for i in self.cart_items
        ]

    def _find_cart_item(self, product_id: str) -> Optional[CartItem]:
        for item in self.cart_items:
            if item.product.id == product_id:
                return item
        return None

    # ---------------------------
    # Search history
    # ---------------------------

    async def add_to_search_history(self, query: str) -> None:
        user = self._auth.user
        if user is None:
            return

        try:
            entry = await crud.add_search_entry(self._backend, user.id, query)
        except Exception as exc:
            _logger.error(f"Error adding to search history: {exc!r}")
            raise
        if entry is None or not self._is_current(user):
            return
        self.search_history = [entry, *self.search_history]
        await self._emit("search_history")

    async def clear_search_history(self) -> None:
        user = self._auth.user
        if user is None:
            return

        try:
            await crud.clear_search_history(self._backend, user.id)
        except Exception as exc:
            _logger.error(f"Error clearing search history: {exc!r}")
            raise
        if not self._is_current(user):
            return
        self.search_history = []
        await self._emit("search_history")

    # ---------------------------
    # helpers
    # ---------------------------

    def _is_current(self, user: AuthUser) -> bool:
        current = self._auth.user
        return current is not None and current.id == user.id

    def _lock(self, scope: str, user: AuthUser, product_id: str) -> asyncio.Lock:
        return self._locks.setdefault((scope, user.id, product_id), asyncio.Lock())
