"""Tests for shared cart link encoding, decoding, and merging."""

from __future__ import annotations

import base64
import json
from datetime import UTC, datetime
from urllib.parse import parse_qs, urlsplit

import pytest

from localsza.errors import ErrorType, SharedCartDecodeError
from localsza.schemas.cart import SharedCartItem, SharedCartPayload
from localsza.services.cart import CartStore
from localsza.services.sharing import (
    apply_shared_cart,
    build_share_link,
    decode_shared_cart,
    encode_shared_cart,
    parse_share_link,
)


def _token(payload: object) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def test_encoded_token_is_base64_json_with_ids_and_quantities(storage, make_product) -> None:
    cart = CartStore(storage)
    cart.add_to_cart(make_product("p1"))
    cart.add_to_cart(make_product("p1"))
    cart.add_to_cart(make_product("p2"))
    created = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)

    token = encode_shared_cart(cart.items, shared_by="sales_rep", created_at=created)
    decoded = json.loads(base64.b64decode(token).decode("utf-8"))

    assert decoded["items"] == [{"id": "p1", "qty": 2}, {"id": "p2", "qty": 1}]
    assert decoded["sharedBy"] == "sales_rep"
    assert datetime.fromisoformat(decoded["createdAt"].replace("Z", "+00:00")) == created


def test_share_link_decodes_back_to_the_same_items(storage, make_product) -> None:
    cart = CartStore(storage)
    cart.add_to_cart(make_product("p1", name="Mielie meal"))
    cart.increase_qty("p1")
    cart.add_to_cart(make_product("p2", name="Chakalaka"))

    link = build_share_link(cart.items, "https://shop.example/")
    parts = urlsplit(link)
    payload = parse_share_link(link)

    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://shop.example/shared-cart"
    assert "d" in parse_qs(parts.query)
    assert payload.items == [SharedCartItem(id="p1", qty=2), SharedCartItem(id="p2", qty=1)]
    assert payload.shared_by is None


def test_decode_coerces_ids_and_quantities() -> None:
    token = _token(
        {
            "items": [{"id": 5, "qty": "3"}, {"id": "p2", "qty": 0}, {"qty": 4}, "junk"],
            "createdAt": "2026-01-01T00:00:00Z",
        }
    )

    payload = decode_shared_cart(token)

    assert payload.items == [SharedCartItem(id="5", qty=3), SharedCartItem(id="p2", qty=1)]


def test_decode_ignores_unreadable_link_metadata() -> None:
    before = datetime.now(UTC)
    token = _token({"items": [{"id": "p1", "qty": 2}], "createdAt": "yesterday", "sharedBy": 17})

    payload = decode_shared_cart(token)

    assert payload.items == [SharedCartItem(id="p1", qty=2)]
    assert payload.shared_by is None
    assert payload.created_at >= before


def test_decode_keeps_readable_metadata_next_to_unreadable_metadata() -> None:
    token = _token({"items": [{"id": "p1"}], "createdAt": "soon", "sharedBy": "sales_rep"})

    payload = decode_shared_cart(token)

    assert payload.shared_by == "sales_rep"
    assert payload.items == [SharedCartItem(id="p1", qty=1)]


@pytest.mark.parametrize(
    ("token", "message"),
    [
        ("%%% not base64 %%%", "Failed to decode link"),
        (base64.b64encode(b"\xff\xfe\xfa").decode("ascii"), "Failed to decode link"),
        (base64.b64encode(b"not json").decode("ascii"), "Malformed link data"),
        (_token(["p1"]), "Malformed link data"),
        (_token({"items": "p1"}), "Malformed link data"),
    ],
)
def test_decode_rejects_garbage(token: str, message: str) -> None:
    with pytest.raises(SharedCartDecodeError) as excinfo:
        decode_shared_cart(token)

    assert excinfo.value.message == message
    assert excinfo.value.error_type is ErrorType.INVALID_SHARE_LINK


def test_parse_share_link_requires_data_parameter() -> None:
    with pytest.raises(SharedCartDecodeError, match="Invalid shared link"):
        parse_share_link("https://shop.example/shared-cart?ref=whatsapp")


def test_apply_shared_cart_adds_missing_and_raises_quantities(storage, make_product) -> None:
    cart = CartStore(storage)
    cart.add_to_cart(make_product("p1"))
    for _ in range(4):
        cart.increase_qty("p1")
    cart.add_to_cart(make_product("p2"))
    catalogue = {
        "p1": make_product("p1"),
        "p2": make_product("p2"),
        "p3": {"id": "p3", "name": "Rusks", "price": 35},
    }

    def resolve(product_id: str):
        if product_id == "gone":
            raise LookupError(product_id)
        return catalogue.get(product_id)

    payload = SharedCartPayload(
        items=[
            SharedCartItem(id="p1", qty=2),
            SharedCartItem(id="p2", qty=3),
            SharedCartItem(id="p3", qty=2),
            SharedCartItem(id="gone", qty=1),
            SharedCartItem(id="unknown", qty=1),
        ]
    )

    skipped = apply_shared_cart(cart, payload, resolve)

    assert skipped == ["gone", "unknown"]
    assert [(entry.product_id, entry.qty) for entry in cart] == [("p1", 5), ("p2", 3), ("p3", 2)]
    assert cart.items[2].product.name == "Rusks"
