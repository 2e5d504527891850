"""Shared cart links.

A sales rep (or a shopper) can hand a cart to somebody else as a link of the
form ``<origin>/shared-cart?d=<token>``. The token is the base64 encoding of
the UTF-8 JSON payload ``{"items": [{"id": ..., "qty": ...}], "createdAt":
..., "sharedBy": ...}``. Only ids and quantities travel; the receiving side
resolves the products again before merging them into its own cart.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any
from urllib.parse import parse_qs, quote, urlsplit

from pydantic import ValidationError

from localsza.errors import SharedCartDecodeError
from localsza.schemas.cart import CartEntry, SharedCartItem, SharedCartPayload
from localsza.schemas.products import ProductReference
from localsza.services.cart import CartStore
from localsza.services.normalization import coerce_quantity

logger = logging.getLogger(__name__)

SHARED_CART_PATH = "/shared-cart"

ProductResolver = Callable[[str], ProductReference | Mapping[str, Any] | None]


def encode_shared_cart(
    entries: Iterable[CartEntry],
    *,
    shared_by: str | None = None,
    created_at: datetime | None = None,
) -> str:
    """Return the base64 token describing ``entries``."""

    payload = SharedCartPayload(
        items=[SharedCartItem(id=entry.product_id, qty=entry.qty) for entry in entries],
        shared_by=shared_by,
    )
    if created_at is not None:
        payload = payload.model_copy(update={"created_at": created_at})
    encoded = json.dumps(payload.to_wire(), separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(encoded.encode("utf-8")).decode("ascii")


def build_share_link(
    entries: Iterable[CartEntry],
    base_url: str,
    *,
    shared_by: str | None = None,
    created_at: datetime | None = None,
) -> str:
    """Return the full shared cart URL rooted at ``base_url``."""

    token = encode_shared_cart(entries, shared_by=shared_by, created_at=created_at)
    return f"{base_url.rstrip('/')}{SHARED_CART_PATH}?d={quote(token, safe='')}"


def decode_shared_cart(token: str) -> SharedCartPayload:
    """Turn a link token back into a :class:`SharedCartPayload`.

    Link metadata is advisory: an unreadable ``createdAt`` or ``sharedBy``
    falls back to the default rather than rejecting the link.

    Raises:
        SharedCartDecodeError: if the token is not base64 UTF-8 JSON or the
            JSON lacks an ``items`` array.
    """

    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise SharedCartDecodeError("Failed to decode link") from exc

    try:
        parsed = json.loads(decoded)
    except ValueError as exc:
        raise SharedCartDecodeError("Malformed link data") from exc
    if not isinstance(parsed, Mapping) or not isinstance(parsed.get("items"), list):
        raise SharedCartDecodeError("Malformed link data")

    items = [
        {"id": item.get("id"), "qty": coerce_quantity(item.get("qty"))}
        for item in parsed["items"]
        if isinstance(item, Mapping) and item.get("id") not in (None, "")
    ]
    metadata: dict[str, Any] = {}
    for alias in ("createdAt", "sharedBy"):
        if parsed.get(alias) is None:
            continue
        try:
            SharedCartPayload.model_validate({alias: parsed[alias]})
        except ValidationError:
            logger.info(f"Ignoring unreadable {alias} in shared cart link")
            continue
        metadata[alias] = parsed[alias]

    try:
        return SharedCartPayload.model_validate({"items": items, **metadata})
    except ValidationError as exc:
        raise SharedCartDecodeError("Malformed link data") from exc


def parse_share_link(url: str) -> SharedCartPayload:
    """Decode the payload carried by a full shared cart URL."""

    values = parse_qs(urlsplit(url).query).get("d")
    if not values or not values[0]:
        raise SharedCartDecodeError("Invalid shared link")
    # parse_qs turns an unescaped "+" into a space; base64 never contains spaces.
    return decode_shared_cart(values[0].replace(" ", "+"))


def _resolve(resolve_product: ProductResolver, product_id: str) -> ProductReference | None:
    try:
        resolved = resolve_product(product_id)
    except LookupError as exc:
        logger.info(f"Shared cart product {product_id} could not be resolved: {exc}")
        return None
    if resolved is None:
        return None
    if isinstance(resolved, ProductReference):
        return resolved
    try:
        return ProductReference.model_validate(dict(resolved))
    except ValidationError as exc:
        logger.info(f"Shared cart product {product_id} returned an invalid payload: {exc}")
        return None


def apply_shared_cart(
    cart: CartStore,
    payload: SharedCartPayload,
    resolve_product: ProductResolver,
) -> list[str]:
    """Merge ``payload`` into ``cart`` and return the ids that were skipped.

    Products missing from the cart are added; quantities are raised to the
    shared quantity but an existing larger quantity is left alone.
    """

    skipped: list[str] = []
    for item in payload.items:
        product = _resolve(resolve_product, item.id)
        if product is None:
            skipped.append(item.id)
            continue
        if not cart.is_in_cart(product.id):
            cart.add_to_cart(product)
        cart.set_qty(product.id, item.qty)
    return skipped


__all__ = [
    "ProductResolver",
    "SHARED_CART_PATH",
    "apply_shared_cart",
    "build_share_link",
    "decode_shared_cart",
    "encode_shared_cart",
    "parse_share_link",
]
