"""Client-side stores and the helpers built around them."""

from .cart import CartStore
from .collection import PersistedCollection
from .favorites import FavoritesStore
from .route_list import RouteListStore

__all__ = [
    "CartStore",
    "FavoritesStore",
    "PersistedCollection",
    "RouteListStore",
]
