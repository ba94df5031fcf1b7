"""Textual integration for atomx. Requires textual.

Widgets declare their capabilities by mixing in AtomReader and/or AtomWriter.
Reader subscriptions are acquired while the widget is mounted and released
on unmount, so a removed widget never receives another update.

Guarding happens here, not at callsites: effects skip while the app is not
running, NoMatches from widget queries is swallowed, and notifications that
arrive on a background thread are posted to the widget as an AtomEffect
message instead of being run inline. post_message is thread-safe and never
blocks, so a notification pass holding the store lock cannot deadlock
against the UI thread.
"""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack
from typing import TYPE_CHECKING, Callable, TypeVar

from textual.css.query import NoMatches
from textual.message import Message

from atomx.binding import ReaderBinding, bind_appender, bind_reader, bind_writer

if TYPE_CHECKING:
    from atomx.atom import Atom
    from atomx.selector import Selector
    from atomx.store import Store

T = TypeVar("T")

logger = logging.getLogger("atomx.textual")


class AtomEffect(Message, bubble=False):
    """An effect to run on the UI thread, posted from a background notification."""

    def __init__(self, effect: Callable[[object], None], value: object) -> None:
        super().__init__()
        self.effect = effect
        self.value = value


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running


def guarded(app, effect: Callable[[T], None], target) -> Callable[[T], None]:
    """Wrap effect so it is safe to call from any store notification.

    target receives the AtomEffect message when the notification happens
    off the thread that created the wrapper; it must handle on_atom_effect.
    """
    _main = threading.get_ident()

    def _guarded(value: T) -> None:
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            target.post_message(AtomEffect(_safe, value))
        else:
            _safe(value)

    def _safe(value: T) -> None:
        try:
            effect(value)
        except NoMatches:
            logger.debug("Skipped effect %r: widget no longer mounted", effect)

    return _guarded


class AtomReader:
    """Reader capability for widgets.

    Call bind_atom() from on_mount(); every subscription is released when the
    widget unmounts. release_atoms() is idempotent.
    """

    _atom_bindings: ExitStack | None = None

    def bind_atom(
        self,
        store: Store,
        handle: Atom[T] | Selector[T],
        effect: Callable[[T], None],
    ) -> ReaderBinding[T]:
        """Run effect now with the current value, then on every change."""
        if self._atom_bindings is None:
            self._atom_bindings = ExitStack()
        binding = self._atom_bindings.enter_context(bind_reader(store, handle))
        binding.on_change(guarded(self.app, effect, self))
        effect(binding.value)
        logger.debug("%r bound to %r", self, handle)
        return binding

    def release_atoms(self) -> None:
        stack, self._atom_bindings = self._atom_bindings, None
        if stack is not None:
            stack.close()
            logger.debug("%r released its atom bindings", self)

    def on_atom_effect(self, message: AtomEffect) -> None:
        if self._atom_bindings is not None:
            message.effect(message.value)

    def on_unmount(self) -> None:
        self.release_atoms()


class AtomWriter:
    """Writer capability for widgets."""

    def writer_for(self, store: Store, handle: Atom[T]) -> Callable[[T], None]:
        return bind_writer(store, handle)

    def appender_for(self, store: Store, handle: Atom[list]) -> Callable[[object], None]:
        return bind_appender(store, handle)
