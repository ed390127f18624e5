"""In-memory dataset store guarded by a readers-writer lock."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Callable

from minigraph.logging import get_logger

logger = get_logger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one writer.

    The write side is re-entrant for the thread holding it, and that thread
    may also read while writing. A reader must not try to upgrade to a
    writer.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer: int | None = None
        self._write_depth = 0

    @contextmanager
    def reading(self) -> Iterator[None]:
        """Hold the shared side for the duration of the block."""
        me = threading.get_ident()
        with self._cond:
            nested = self._writer == me
            if not nested:
                while self._writer is not None:
                    self._cond.wait()
                self._readers += 1
        try:
            yield
        finally:
            if not nested:
                with self._cond:
                    self._readers -= 1
                    if self._readers == 0:
                        self._cond.notify_all()

    @contextmanager
    def writing(self) -> Iterator[None]:
        """Hold the exclusive side for the duration of the block."""
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
            else:
                while self._writer is not None or self._readers > 0:
                    self._cond.wait()
                self._writer = me
                self._write_depth = 1
        try:
            yield
        finally:
            with self._cond:
                self._write_depth -= 1
                if self._write_depth == 0:
                    self._writer = None
                    self._cond.notify_all()


def _entity_id(entity: Any) -> Any:
    if isinstance(entity, dict):
        return entity.get("id")
    return getattr(entity, "id", None)


class InMemoryStore:
    """Named collections of entities, alive for the lifetime of the process.

    Reads return snapshots, so a reader never observes a collection halfway
    through an append.
    """

    def __init__(
        self,
        collections: dict[str, Iterable[Any]] | None = None,
        key: Callable[[Any], Any] = _entity_id,
    ) -> None:
        """Initialize a store.

        Args:
            collections: Initial entities by collection name. Only these
                collections exist.
            key: Returns the id of an entity, used by ``find_by_id``.
        """
        self._collections: dict[str, list[Any]] = {
            name: list(entities) for name, entities in (collections or {}).items()
        }
        self._key = key
        self.lock = ReadWriteLock()

    def _collection(self, name: str) -> list[Any]:
        try:
            return self._collections[name]
        except KeyError:
            raise KeyError(f"Unknown collection '{name}'") from None

    def reading(self):  # type: ignore[no-untyped-def]
        """Hold the shared lock across several reads."""
        return self.lock.reading()

    def writing(self):  # type: ignore[no-untyped-def]
        """Hold the exclusive lock, e.g. around a check-then-append."""
        return self.lock.writing()

    def collection_names(self) -> list[str]:
        """List the collection names."""
        return list(self._collections)

    def find_by_id(self, collection: str, entity_id: Any) -> Any | None:
        """Return the first entity in ``collection`` with the given id, or None."""
        with self.lock.reading():
            for entity in self._collection(collection):
                if self._key(entity) == entity_id:
                    return entity
        return None

    def all(self, collection: str) -> tuple[Any, ...]:
        """Return a snapshot of every entity in ``collection``, in insertion order."""
        with self.lock.reading():
            return tuple(self._collection(collection))

    def count(self, collection: str) -> int:
        """Return the number of entities in ``collection``."""
        with self.lock.reading():
            return len(self._collection(collection))

    def append(self, collection: str, entity: Any) -> None:
        """Append an entity to ``collection``."""
        with self.lock.writing():
            self._collection(collection).append(entity)
        logger.debug("entity appended", collection=collection, entity_id=self._key(entity))
