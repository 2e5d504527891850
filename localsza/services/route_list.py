"""Route-planning scratchpad used by drivers to batch deliveries."""

from __future__ import annotations

from localsza.schemas.routes import DeliveryAddress, RouteStop
from localsza.services.collection import PersistedCollection


class RouteListStore(PersistedCollection[DeliveryAddress]):
    """Delivery addresses picked for the next route.

    The list lives only as long as its owning scope: it is never written to
    durable storage, so a fresh scope always starts with an empty route.
    """

    def __init__(self) -> None:
        super().__init__(storage=None, key=None)

    @property
    def addresses(self) -> tuple[DeliveryAddress, ...]:
        return self.items

    def add_address(self, address: DeliveryAddress) -> None:
        """Append ``address`` unless an entry with the same order id exists."""

        if self.has_address(address.id):
            return
        self._commit([*self._items, address])

    def remove_address(self, address_id: str) -> None:
        self._commit([address for address in self._items if address.id != address_id])

    def clear_addresses(self) -> None:
        self._commit([])

    def has_address(self, address_id: str) -> bool:
        return any(address.id == address_id for address in self._items)

    def stops(self) -> list[RouteStop]:
        """Return the geocoded addresses as navigation stops, in list order."""

        return [
            RouteStop(
                name=address.name or address.address,
                lat=address.coordinates.lat,
                lng=address.coordinates.lng,
            )
            for address in self._items
            if address.coordinates is not None and address.coordinates.is_complete
        ]


__all__ = ["RouteListStore"]
