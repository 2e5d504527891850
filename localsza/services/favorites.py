"""Favorites store persisted under the ``favorites`` storage key."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from localsza.schemas.products import ProductReference
from localsza.services.collection import PersistedCollection
from localsza.services.normalization import load_favorite_entries
from localsza.storage import FAVORITES_KEY, DurableStorage


class FavoritesStore(PersistedCollection[ProductReference]):
    """Set of product references kept in the order they were favorited."""

    def __init__(self, storage: DurableStorage | None, key: str = FAVORITES_KEY) -> None:
        super().__init__(storage, key)

    def _load(self, raw: str | None) -> Iterable[ProductReference]:
        return load_favorite_entries(raw)

    def _serialize_entry(self, entry: ProductReference) -> Any:
        return entry.to_storage()

    @property
    def favorites(self) -> tuple[ProductReference, ...]:
        return self.items

    def is_favorite(self, product_id: str) -> bool:
        return any(product.id == product_id for product in self._items)

    def toggle_favorite(self, product: ProductReference) -> None:
        """Remove ``product`` when already favorited, otherwise append it."""

        if self.is_favorite(product.id):
            self.remove_favorite(product.id)
        else:
            self._commit([*self._items, product])

    def remove_favorite(self, product_id: str) -> None:
        self._commit([product for product in self._items if product.id != product_id])


__all__ = ["FavoritesStore"]
