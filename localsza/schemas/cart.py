"""Pydantic schemas for cart entries and shared cart payloads."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from localsza.schemas.products import ProductReference, coerce_identifier


class CartEntry(BaseModel):
    """A product the shopper intends to buy together with its quantity."""

    model_config = ConfigDict(frozen=True)

    product: ProductReference
    qty: int = Field(1, ge=1, description="Units requested; never below one.")

    @property
    def product_id(self) -> str:
        return self.product.id

    def to_storage(self) -> dict[str, Any]:
        """Return the canonical persisted shape ``{"product": {...}, "qty": n}``."""

        return {"product": self.product.to_storage(), "qty": self.qty}


class SharedCartItem(BaseModel):
    """Single line of a shared cart link: only the id and quantity travel."""

    id: str = Field(..., min_length=1)
    qty: int = Field(1, ge=1)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return coerce_identifier(value)


class SharedCartPayload(BaseModel):
    """Wire payload embedded (base64 JSON) in a shared cart link."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[SharedCartItem] = Field(default_factory=list)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        alias="createdAt",
        description="When the link was generated.",
    )
    shared_by: str | None = Field(
        None,
        alias="sharedBy",
        description="Identifier for analytics, e.g. ``sales_rep``.",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["CartEntry", "SharedCartItem", "SharedCartPayload"]
