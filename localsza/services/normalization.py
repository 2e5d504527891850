"""Parse persisted cart and favorites payloads into validated entries.

Stored carts come in two shapes. The current one nests the product::

    [{"product": {"id": "p1", "name": "Widget", "price": 10}, "qty": 2}]

Carts written by earlier storefront releases were flat and used a handful of
alternative field names::

    [{"id": "p1", "product_name": "Widget", "price": 10, "quantity": 2}]

Every raw entry is classified into exactly one :class:`PersistedShape` before
it is converted. Anything that matches neither shape is dropped, as is a
whole payload that is not a JSON array.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import ValidationError

from localsza.errors import ErrorType
from localsza.schemas.cart import CartEntry
from localsza.schemas.products import ProductReference

logger = logging.getLogger(__name__)


class PersistedShape(str, Enum):
    """Closed set of recognised persisted cart entry shapes."""

    CANONICAL = "canonical"
    LEGACY_FLAT = "legacy_flat"
    UNRECOGNIZED = "unrecognized"


def coerce_quantity(*candidates: Any) -> int:
    """Return the first usable positive quantity among ``candidates``, else 1.

    Falsy candidates are skipped the same way ``qty || quantity || 1`` would
    skip them, and numeric strings are accepted. Fractions are truncated.
    """

    for candidate in candidates:
        if not candidate or isinstance(candidate, bool):
            continue
        try:
            number = float(candidate)
        except (TypeError, ValueError):
            continue
        if not math.isfinite(number):
            continue
        quantity = int(number)
        if quantity >= 1:
            return quantity
    return 1


def parse_json_array(raw: str | None) -> list[Any]:
    """Decode ``raw`` into a list, treating absence and malformed data as empty."""

    if raw is None or raw == "":
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.debug(f"{ErrorType.MALFORMED_DATA.value}: discarding unparseable payload ({exc})")
        return []
    if not isinstance(parsed, list):
        logger.debug(
            f"{ErrorType.MALFORMED_DATA.value}: expected a JSON array, got {type(parsed).__name__}"
        )
        return []
    return parsed


def classify_cart_entry(raw: Any) -> PersistedShape:
    """Return the persisted shape ``raw`` belongs to."""

    if not isinstance(raw, Mapping):
        return PersistedShape.UNRECOGNIZED
    if isinstance(raw.get("product"), Mapping):
        return PersistedShape.CANONICAL
    if raw.get("id"):
        return PersistedShape.LEGACY_FLAT
    return PersistedShape.UNRECOGNIZED


def _first_present(raw: Mapping[str, Any], *names: str, default: Any) -> Any:
    for name in names:
        value = raw.get(name)
        if value:
            return value
    return default


def _canonical_entry(raw: Mapping[str, Any]) -> CartEntry:
    product = ProductReference.model_validate(dict(raw["product"]))
    return CartEntry(product=product, qty=coerce_quantity(raw.get("qty")))


def _legacy_entry(raw: Mapping[str, Any]) -> CartEntry:
    price = raw.get("price")
    product = ProductReference(
        id=str(raw["id"]),
        name=_first_present(raw, "name", "product_name", default=""),
        price=price if price is not None else 0,
        image_url=_first_present(raw, "image_url", "image", default=""),
    )
    return CartEntry(product=product, qty=coerce_quantity(raw.get("qty"), raw.get("quantity")))


def normalize_cart_entry(raw: Any) -> CartEntry | None:
    """Convert one persisted entry, returning ``None`` when it must be dropped."""

    shape = classify_cart_entry(raw)
    try:
        if shape is PersistedShape.CANONICAL:
            return _canonical_entry(raw)
        if shape is PersistedShape.LEGACY_FLAT:
            return _legacy_entry(raw)
    except ValidationError as exc:
        logger.debug(f"Dropping {shape.value} cart entry that failed validation: {exc}")
        return None
    return None


def load_cart_entries(raw: str | None) -> list[CartEntry]:
    """Return the normalized cart stored in ``raw``.

    Entries sharing a product id collapse into the first occurrence with their
    quantities summed, keeping the one-entry-per-product invariant.
    """

    merged: dict[str, CartEntry] = {}
    for item in parse_json_array(raw):
        entry = normalize_cart_entry(item)
        if entry is None:
            continue
        existing = merged.get(entry.product_id)
        if existing is None:
            merged[entry.product_id] = entry
        else:
            merged[entry.product_id] = existing.model_copy(
                update={"qty": existing.qty + entry.qty}
            )
    return list(merged.values())


def load_favorite_entries(raw: str | None) -> list[ProductReference]:
    """Return the favorites stored in ``raw`` with invalid and repeated ids dropped."""

    favorites: dict[str, ProductReference] = {}
    for item in parse_json_array(raw):
        if not isinstance(item, Mapping):
            continue
        try:
            product = ProductReference.model_validate(dict(item))
        except ValidationError as exc:
            logger.debug(f"Dropping favorite that failed validation: {exc}")
            continue
        favorites.setdefault(product.id, product)
    return list(favorites.values())


__all__ = [
    "PersistedShape",
    "classify_cart_entry",
    "coerce_quantity",
    "load_cart_entries",
    "load_favorite_entries",
    "normalize_cart_entry",
    "parse_json_array",
]
