"""Shared machinery for the client-side stores.

A :class:`PersistedCollection` owns an ordered tuple of entries. Every mutation
replaces the tuple wholesale, writes the new state to durable storage (when
the store is persisted at all), and then notifies subscribers with the new
snapshot. Subscribers never see intermediate states.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any, Generic, TypeVar

from localsza.errors import ErrorType, MissingProviderError
from localsza.storage import DurableStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[tuple[T, ...]], None]


class PersistedCollection(Generic[T]):
    """Ordered, observable collection optionally mirrored to durable storage.

    Subclasses supply :meth:`_load` (turning the stored string into entries)
    and :meth:`_serialize_entry` (turning one entry back into JSON-ready data).
    Passing ``storage=None`` keeps the collection in memory only.
    """

    def __init__(self, storage: DurableStorage | None = None, key: str | None = None) -> None:
        if storage is not None and not key:
            raise ValueError("A storage key is required for persisted collections")
        self._storage = storage
        self._key = key
        self._listeners: list[Listener[T]] = []
        self._released = False
        raw = storage.get(key) if storage is not None and key else None
        self._items: tuple[T, ...] = tuple(self._load(raw))

    # -- subclass hooks ---------------------------------------------------------

    def _load(self, raw: str | None) -> Iterable[T]:
        return ()

    def _serialize_entry(self, entry: T) -> Any:
        raise NotImplementedError

    # -- read-only view ---------------------------------------------------------

    @property
    def items(self) -> tuple[T, ...]:
        """Current snapshot; replaced, never mutated, on every change."""

        return self._items

    @property
    def storage_key(self) -> str | None:
        return self._key

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    # -- observation ------------------------------------------------------------

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it again."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- mutation ---------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._released:
            raise MissingProviderError(type(self).__name__, provider="StoreScope that is open")

    def _commit(self, entries: Sequence[T]) -> None:
        self._ensure_open()
        new_items = tuple(entries)
        if new_items == self._items:
            return
        self._items = new_items
        self.persist()
        for listener in list(self._listeners):
            listener(new_items)

    def persist(self) -> bool:
        """Write the full snapshot to storage, returning ``False`` on failure.

        A failed write is logged and otherwise ignored; the in-memory snapshot
        stays authoritative for the rest of the session.
        """

        self._ensure_open()
        if self._storage is None or self._key is None:
            return True
        try:
            payload = json.dumps([self._serialize_entry(entry) for entry in self._items])
        except (TypeError, ValueError) as exc:
            logger.warning(
                f"{ErrorType.STORAGE_WRITE_FAILURE.value}: could not serialize {self._key}: {exc}"
            )
            return False
        written = self._storage.set(self._key, payload)
        if not written:
            logger.warning(
                f"{ErrorType.STORAGE_WRITE_FAILURE.value}: durable copy of {self._key} is stale"
            )
        return written

    def release(self) -> None:
        """Drop in-memory state and listeners; the durable copy is untouched.

        A released collection detaches from storage. Later mutations raise
        :class:`~localsza.errors.MissingProviderError` instead of writing the
        emptied snapshot over the durable copy.
        """

        self._released = True
        self._storage = None
        self._items = ()
        self._listeners.clear()


__all__ = ["Listener", "PersistedCollection"]
