"""Ownership of the client-side stores for one UI scope.

A :class:`StoreScope` is created for a session (a storefront tab, a driver
shift, a CLI invocation), opened with ``with``, and handed explicitly to every
consumer that needs a store::

    with StoreScope(storage) as scope:
        checkout(scope.cart)

While a scope is open it is also bound to a ``ContextVar`` so deeply nested
helpers can call :func:`use_cart` and friends. Asking for a store from a scope
that is not open, or calling the helpers outside any open scope, raises
:class:`~localsza.errors.MissingProviderError` immediately.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar, Token
from types import TracebackType

from localsza.errors import MissingProviderError
from localsza.services.cart import CartStore
from localsza.services.favorites import FavoritesStore
from localsza.services.route_list import RouteListStore
from localsza.storage import CART_KEY, FAVORITES_KEY, DurableStorage, storage_key

logger = logging.getLogger(__name__)

__all__ = [
    "CURRENT_SCOPE",
    "StoreScope",
    "current_scope",
    "use_cart",
    "use_favorites",
    "use_route_list",
]

CURRENT_SCOPE: ContextVar[StoreScope | None] = ContextVar("store_scope", default=None)


class StoreScope:
    """Owns one cart, one favorites list, and one route list.

    Stores are created when the scope opens and released when it closes. The
    durable copies of the cart and favorites survive; the route list does not.
    """

    def __init__(
        self,
        storage: DurableStorage,
        *,
        namespace: str | None = None,
        key_prefix: str = "",
    ) -> None:
        self._storage = storage
        self._namespace = namespace
        self._key_prefix = key_prefix
        self._cart: CartStore | None = None
        self._favorites: FavoritesStore | None = None
        self._route_list: RouteListStore | None = None
        self._tokens: list[Token[StoreScope | None]] = []

    @property
    def is_open(self) -> bool:
        return self._cart is not None

    def _key(self, name: str) -> str:
        return storage_key(name, prefix=self._key_prefix, namespace=self._namespace)

    def open(self) -> StoreScope:
        """Load the stores from storage. Opening an open scope is a no-op."""

        if self.is_open:
            return self
        self._cart = CartStore(self._storage, key=self._key(CART_KEY))
        self._favorites = FavoritesStore(self._storage, key=self._key(FAVORITES_KEY))
        self._route_list = RouteListStore()
        logger.debug(
            f"Opened store scope {self._namespace or '<default>'}: "
            f"{len(self._cart)} cart entries, {len(self._favorites)} favorites"
        )
        return self

    def close(self) -> None:
        """Release in-memory state; durable copies are left untouched."""

        for store in (self._cart, self._favorites, self._route_list):
            if store is not None:
                store.release()
        self._cart = None
        self._favorites = None
        self._route_list = None

    def __enter__(self) -> StoreScope:
        self.open()
        self._tokens.append(CURRENT_SCOPE.set(self))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if self._tokens:
            CURRENT_SCOPE.reset(self._tokens.pop())
        # Re-entered scopes stay open until the outermost block exits.
        if not self._tokens:
            self.close()

    @property
    def cart(self) -> CartStore:
        if self._cart is None:
            raise MissingProviderError("cart", provider="StoreScope that is open")
        return self._cart

    @property
    def favorites(self) -> FavoritesStore:
        if self._favorites is None:
            raise MissingProviderError("favorites", provider="StoreScope that is open")
        return self._favorites

    @property
    def route_list(self) -> RouteListStore:
        if self._route_list is None:
            raise MissingProviderError("route_list", provider="StoreScope that is open")
        return self._route_list


def current_scope(accessor: str = "current_scope") -> StoreScope:
    """Return the scope bound to the running context or fail fast."""

    scope = CURRENT_SCOPE.get()
    if scope is None or not scope.is_open:
        raise MissingProviderError(accessor)
    return scope


def use_cart() -> CartStore:
    return current_scope("use_cart").cart


def use_favorites() -> FavoritesStore:
    return current_scope("use_favorites").favorites


def use_route_list() -> RouteListStore:
    return current_scope("use_route_list").route_list
