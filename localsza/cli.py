"""
Inspect and maintain carts and favorites held in durable storage.

Usage:
    localsza show-cart --namespace user-42
    localsza show-favorites --namespace user-42
    localsza migrate-cart --namespace user-42   # rewrite legacy cart shapes
    localsza share-cart --namespace user-42 --shared-by sales_rep
    localsza decode-link "https://shop.example/shared-cart?d=..."
"""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.table import Table

from localsza.errors import SharedCartDecodeError
from localsza.scope import StoreScope
from localsza.services.normalization import PersistedShape, classify_cart_entry, parse_json_array
from localsza.services.sharing import build_share_link, parse_share_link
from localsza.settings import configure_logging, get_settings
from localsza.storage import CART_KEY, get_storage, storage_key

console = Console()


def _open_scope(namespace: str | None) -> StoreScope:
    settings = get_settings()
    return StoreScope(
        get_storage(settings),
        namespace=namespace,
        key_prefix=settings.storage_key_prefix,
    )


@click.group()
@click.option("--namespace", default=None, help="Storage namespace, e.g. a user or session id.")
@click.pass_context
def main(ctx: click.Context, namespace: str | None) -> None:
    """LocalsZA client-state maintenance commands."""

    configure_logging()
    ctx.obj = {"namespace": namespace}


@main.command("show-cart")
@click.pass_context
def show_cart(ctx: click.Context) -> None:
    """Print the normalized cart with quantities and total."""

    with _open_scope(ctx.obj["namespace"]) as scope:
        cart = scope.cart
        table = Table(title=f"Cart ({cart.storage_key})")
        table.add_column("Product ID", style="cyan")
        table.add_column("Name")
        table.add_column("Price", justify="right")
        table.add_column("Qty", justify="right")
        for entry in cart:
            table.add_row(
                entry.product_id,
                str(entry.product.name or ""),
                str(entry.product.price if entry.product.price is not None else ""),
                str(entry.qty),
            )
        console.print(table)
        console.print(f"[bold]Items:[/bold] {cart.item_count()}  [bold]Total:[/bold] R {cart.total()}")


@main.command("show-favorites")
@click.pass_context
def show_favorites(ctx: click.Context) -> None:
    """Print the stored favorites."""

    with _open_scope(ctx.obj["namespace"]) as scope:
        favorites = scope.favorites
        table = Table(title=f"Favorites ({favorites.storage_key})")
        table.add_column("Product ID", style="cyan")
        table.add_column("Name")
        for product in favorites:
            table.add_row(product.id, str(product.name or ""))
        console.print(table)


@main.command("migrate-cart")
@click.pass_context
def migrate_cart(ctx: click.Context) -> None:
    """Rewrite the stored cart in the canonical ``{product, qty}`` shape."""

    settings = get_settings()
    storage = get_storage(settings)
    key = storage_key(CART_KEY, prefix=settings.storage_key_prefix, namespace=ctx.obj["namespace"])

    shapes: dict[PersistedShape, int] = {shape: 0 for shape in PersistedShape}
    for item in parse_json_array(storage.get(key)):
        shapes[classify_cart_entry(item)] += 1

    with StoreScope(
        storage, namespace=ctx.obj["namespace"], key_prefix=settings.storage_key_prefix
    ) as scope:
        written = scope.cart.persist()
        kept = len(scope.cart)

    summary = ", ".join(f"{shape.value}={count}" for shape, count in shapes.items())
    if not written:
        console.print(f"[red]Failed to write migrated cart to {key}[/red] ({summary})")
        sys.exit(1)
    console.print(f"[green]Migrated {key}:[/green] {kept} entries kept ({summary})")


@main.command("share-cart")
@click.option("--shared-by", default=None, help="Identifier recorded in the link for analytics.")
@click.pass_context
def share_cart(ctx: click.Context, shared_by: str | None) -> None:
    """Print a shared cart link for the stored cart."""

    settings = get_settings()
    with _open_scope(ctx.obj["namespace"]) as scope:
        if not scope.cart:
            console.print("[yellow]Cart is empty; nothing to share.[/yellow]")
            return
        link = build_share_link(
            scope.cart.items,
            settings.normalized_share_base_url,
            shared_by=shared_by,
        )
    click.echo(link)


@main.command("decode-link")
@click.argument("url")
def decode_link(url: str) -> None:
    """Print the items carried by a shared cart link."""

    try:
        payload = parse_share_link(url)
    except SharedCartDecodeError as exc:
        console.print(f"[red]{exc.message}[/red]")
        sys.exit(1)

    table = Table(title=f"Shared cart ({payload.created_at.isoformat()})")
    table.add_column("Product ID", style="cyan")
    table.add_column("Qty", justify="right")
    for item in payload.items:
        table.add_row(item.id, str(item.qty))
    console.print(table)
    if payload.shared_by:
        console.print(f"Shared by: {payload.shared_by}")


if __name__ == "__main__":
    main()
