"""Shopping cart store persisted under the ``cart`` storage key."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

from localsza.schemas.cart import CartEntry
from localsza.schemas.products import ProductReference
from localsza.services.collection import PersistedCollection
from localsza.services.normalization import load_cart_entries
from localsza.storage import CART_KEY, DurableStorage


def _unit_price(product: ProductReference) -> Decimal:
    """Return the product price as a ``Decimal``; unparseable prices count as zero."""

    if product.price is None or product.price == "":
        return Decimal(0)
    try:
        price = Decimal(str(product.price).strip())
    except InvalidOperation:
        return Decimal(0)
    if not price.is_finite():
        return Decimal(0)
    return price


class CartStore(PersistedCollection[CartEntry]):
    """Deduplicated list of ``(product, qty)`` entries.

    Loading tolerates legacy and malformed persisted data (see
    :mod:`localsza.services.normalization`). Quantities never drop below one;
    removing a product is always an explicit :meth:`remove_from_cart`.
    """

    def __init__(self, storage: DurableStorage | None, key: str = CART_KEY) -> None:
        super().__init__(storage, key)

    def _load(self, raw: str | None) -> Iterable[CartEntry]:
        return load_cart_entries(raw)

    def _serialize_entry(self, entry: CartEntry) -> Any:
        return entry.to_storage()

    def _index_of(self, product_id: str) -> int:
        for index, entry in enumerate(self._items):
            if entry.product_id == product_id:
                return index
        return -1

    def _replace_qty(self, product_id: str, qty: int) -> None:
        index = self._index_of(product_id)
        if index < 0:
            return
        entries = list(self._items)
        entries[index] = entries[index].model_copy(update={"qty": max(1, qty)})
        self._commit(entries)

    @property
    def cart(self) -> tuple[CartEntry, ...]:
        return self.items

    def add_to_cart(self, product: ProductReference) -> None:
        """Increment the quantity of ``product`` or append it with quantity one."""

        index = self._index_of(product.id)
        if index < 0:
            self._commit([*self._items, CartEntry(product=product, qty=1)])
            return
        entries = list(self._items)
        entries[index] = entries[index].model_copy(update={"qty": entries[index].qty + 1})
        self._commit(entries)

    def remove_from_cart(self, product_id: str) -> None:
        self._commit([entry for entry in self._items if entry.product_id != product_id])

    def increase_qty(self, product_id: str) -> None:
        self._replace_qty(product_id, self.get_qty(product_id) + 1)

    def decrease_qty(self, product_id: str) -> None:
        self._replace_qty(product_id, self.get_qty(product_id) - 1)

    def set_qty(self, product_id: str, qty: int) -> None:
        """Raise the entry for ``product_id`` to at least ``qty``; never lowers it."""

        current = self.get_qty(product_id)
        if current and qty > current:
            self._replace_qty(product_id, qty)

    def is_in_cart(self, product_id: str) -> bool:
        return self._index_of(product_id) >= 0

    def get_qty(self, product_id: str) -> int:
        index = self._index_of(product_id)
        return self._items[index].qty if index >= 0 else 0

    def clear_cart(self) -> None:
        self._commit([])

    def item_count(self) -> int:
        """Total number of units across all entries."""

        return sum(entry.qty for entry in self._items)

    def total(self) -> Decimal:
        """Sum of ``price * qty`` over the cart, rounded to cents."""

        amount = sum(
            (_unit_price(entry.product) * entry.qty for entry in self._items),
            Decimal(0),
        )
        return amount.quantize(Decimal("0.01"))


__all__ = ["CartStore"]
