"""Subscriber bindings — connect a component to the store, never to each other.

A reader binding holds one live subscription and the latest value; a writer
binding is just a callable that writes. Components compose them according to
the capabilities they need.

    with bind_reader(store, text) as text_binding:
        text_binding.on_change(label.update)
        label.update(text_binding.value)
        ...
    # subscription released here, on every exit path
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Generic, TypeVar

if TYPE_CHECKING:
    from atomx.atom import Atom
    from atomx.selector import Selector
    from atomx.store import Store

T = TypeVar("T")

logger = logging.getLogger("atomx.binding")


class ReaderBinding(Generic[T]):
    """Live view of one atom or selector for a single component."""

    __slots__ = ("_handle", "_value", "_listeners", "_unsubscribe")

    def __init__(self, store: Store, handle: Atom[T] | Selector[T]) -> None:
        self._handle = handle
        self._value: T = store.read(handle)
        self._listeners: list[Callable[[T], None]] = []
        self._unsubscribe: Callable[[], None] | None = store.subscribe(handle, self._changed)

    @property
    def value(self) -> T:
        return self._value

    @property
    def closed(self) -> bool:
        return self._unsubscribe is None

    def on_change(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register callback for future changes. Returns a remover."""
        self._listeners.append(callback)

        def _remove() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass  # already removed

        return _remove

    def _changed(self, value: T) -> None:
        self._value = value
        first_error: Exception | None = None
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as exc:
                if first_error is None:
                    first_error = exc
                else:
                    logger.exception("Listener %r failed for %r", listener, self._handle)
        if first_error is not None:
            raise first_error

    def close(self) -> None:
        """Release the store subscription. Safe to call more than once."""
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
            self._listeners.clear()

    def __enter__(self) -> ReaderBinding[T]:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"ReaderBinding({self._handle!r}, {state})"


def bind_reader(store: Store, handle: Atom[T] | Selector[T]) -> ReaderBinding[T]:
    """Subscribe to handle. Fails fast if the store doesn't know it."""
    return ReaderBinding(store, handle)


def bind_writer(store: Store, handle: Atom[T]) -> Callable[[T], None]:
    """Return a function writing to handle. Fails fast on unknown or read-only handles."""
    store._resolve_writable(handle)

    def write(value: T) -> None:
        store.write(handle, value)

    return write


def bind_appender(store: Store, handle: Atom[list]) -> Callable[[object], None]:
    """Return a function appending records to a list atom."""
    store._resolve_list(handle)

    def append(record: object) -> None:
        store.append(handle, record)

    return append
