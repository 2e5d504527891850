"""Product references as seen by the client-side stores."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def coerce_identifier(value: Any) -> Any:
    """Return numeric identifiers as strings so ``7`` and ``"7"`` collide."""

    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


class ProductReference(BaseModel):
    """Opaque product payload keyed by ``id``.

    Only the identifier is interpreted by the stores. Display fields are kept
    as whatever type the catalogue sent (older rows carry numeric names and
    structured prices), as are arbitrary extension fields (category, stock,
    supplier, ...), so that persisting and reloading never loses data.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str = Field(..., min_length=1, description="Catalogue primary key")
    name: Any = Field(None, description="Display name")
    price: Any = Field(
        None,
        description="Unit price; older catalogue rows store it as a numeric string.",
    )
    image_url: Any = Field(None, description="Primary product image")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return coerce_identifier(value)

    def to_storage(self) -> dict[str, Any]:
        """Return the JSON-ready mapping written to durable storage."""

        return self.model_dump(mode="json", exclude_unset=True)


__all__ = ["ProductReference", "coerce_identifier"]
