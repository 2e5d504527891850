"""Tests for store ownership and fail-fast access through :class:`StoreScope`."""

from __future__ import annotations

import json

import pytest

from localsza.errors import ErrorType, MissingProviderError
from localsza.schemas.routes import DeliveryAddress
from localsza.scope import StoreScope, current_scope, use_cart, use_favorites, use_route_list


def test_stores_are_available_inside_an_open_scope(storage, make_product) -> None:
    with StoreScope(storage) as scope:
        scope.cart.add_to_cart(make_product("p1"))
        scope.favorites.toggle_favorite(make_product("p2"))

        assert use_cart() is scope.cart
        assert use_favorites() is scope.favorites
        assert use_route_list() is scope.route_list
        assert current_scope() is scope

    assert json.loads(storage.get("cart"))[0]["product"]["id"] == "p1"
    assert json.loads(storage.get("favorites"))[0]["id"] == "p2"


@pytest.mark.parametrize("accessor", [use_cart, use_favorites, use_route_list, current_scope])
def test_helpers_fail_fast_outside_any_scope(accessor) -> None:
    with pytest.raises(MissingProviderError) as excinfo:
        accessor()

    assert excinfo.value.error_type is ErrorType.SCOPE_VIOLATION
    assert "must be used within a StoreScope" in str(excinfo.value)


def test_use_cart_error_names_the_accessor() -> None:
    with pytest.raises(MissingProviderError, match="^use_cart must be used within a StoreScope$"):
        use_cart()


@pytest.mark.parametrize("attribute", ["cart", "favorites", "route_list"])
def test_unopened_scope_refuses_store_access(storage, attribute: str) -> None:
    scope = StoreScope(storage)

    with pytest.raises(MissingProviderError, match=attribute):
        getattr(scope, attribute)


def test_closed_scope_releases_memory_but_keeps_durable_copy(storage, make_product) -> None:
    with StoreScope(storage) as scope:
        cart = scope.cart
        cart.add_to_cart(make_product("p1"))
        scope.route_list.add_address(DeliveryAddress(id="o1", name="Ayanda", address="9 Beach Rd"))

    assert not scope.is_open
    assert len(cart) == 0
    with pytest.raises(MissingProviderError):
        scope.cart
    with pytest.raises(MissingProviderError):
        use_cart()

    with StoreScope(storage) as reopened:
        assert reopened.cart.get_qty("p1") == 1
        assert len(reopened.route_list) == 0


def test_nested_scopes_restore_the_outer_binding(storage) -> None:
    other = type(storage)()

    with StoreScope(storage) as outer:
        with StoreScope(other, namespace="driver-7") as inner:
            assert current_scope() is inner
        assert current_scope() is outer


def test_namespace_and_prefix_shape_storage_keys(storage, make_product) -> None:
    with StoreScope(storage, namespace="user-42", key_prefix="locals-za") as scope:
        scope.cart.add_to_cart(make_product("p1"))
        scope.favorites.toggle_favorite(make_product("p1"))

    assert sorted(storage.keys()) == ["locals-za:user-42:cart", "locals-za:user-42:favorites"]


def test_scopes_do_not_share_store_instances(storage) -> None:
    first = StoreScope(storage).open()
    second = StoreScope(storage).open()

    assert first.cart is not second.cart
    assert first.route_list is not second.route_list

    first.close()
    second.close()


def test_store_handle_kept_past_close_cannot_overwrite_durable_copy(storage, make_product) -> None:
    with StoreScope(storage) as scope:
        cart = scope.cart
        for product_id in ("p1", "p2", "p3"):
            cart.add_to_cart(make_product(product_id))

    with pytest.raises(MissingProviderError, match="^CartStore must be used within a StoreScope"):
        cart.add_to_cart(make_product("p9"))
    with pytest.raises(MissingProviderError):
        cart.persist()

    assert [entry["product"]["id"] for entry in json.loads(storage.get("cart"))] == [
        "p1",
        "p2",
        "p3",
    ]


def test_released_favorites_and_route_list_fail_fast(storage, make_product) -> None:
    with StoreScope(storage) as scope:
        favorites = scope.favorites
        favorites.toggle_favorite(make_product("p1"))
        route_list = scope.route_list

    with pytest.raises(MissingProviderError, match="FavoritesStore"):
        favorites.toggle_favorite(make_product("p2"))
    with pytest.raises(MissingProviderError, match="RouteListStore"):
        route_list.add_address(DeliveryAddress(id="o1", name="Ayanda", address="9 Beach Rd"))

    assert [entry["id"] for entry in json.loads(storage.get("favorites"))] == ["p1"]


def test_reentering_a_scope_keeps_it_open_until_the_outer_block_exits(
    storage, make_product
) -> None:
    scope = StoreScope(storage)

    with scope:
        cart = scope.cart
        with scope as again:
            assert again is scope
            assert scope.cart is cart
        assert scope.is_open
        assert current_scope() is scope
        cart.add_to_cart(make_product("p1"))

    assert not scope.is_open
    with pytest.raises(MissingProviderError):
        current_scope()
    assert json.loads(storage.get("cart"))[0]["product"]["id"] == "p1"
