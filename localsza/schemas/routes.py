"""Schemas describing delivery addresses collected for route planning."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from localsza.schemas.products import coerce_identifier


class Coordinates(BaseModel):
    """Latitude/longitude pair; either half may be missing before geocoding."""

    model_config = ConfigDict(frozen=True)

    lat: float | None = None
    lng: float | None = None

    @property
    def is_complete(self) -> bool:
        return self.lat is not None and self.lng is not None


class DeliveryAddress(BaseModel):
    """An order's delivery destination as shown on the driver's route list."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Order identifier")
    name: str = Field(..., description="Customer name")
    address: str = Field(..., description="Full address string")
    coordinates: Coordinates | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return coerce_identifier(value)


class RouteStop(BaseModel):
    """A geocoded stop handed to the navigation app."""

    model_config = ConfigDict(frozen=True)

    name: str
    lat: float
    lng: float


__all__ = ["Coordinates", "DeliveryAddress", "RouteStop"]
