"""Pydantic schemas for the client-side stores."""

from localsza.schemas.cart import (  # noqa: F401
    CartEntry,
    SharedCartItem,
    SharedCartPayload,
)
from localsza.schemas.products import ProductReference  # noqa: F401
from localsza.schemas.routes import (  # noqa: F401
    Coordinates,
    DeliveryAddress,
    RouteStop,
)
