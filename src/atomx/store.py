"""Store — the atom registry and single source of truth for its atoms.

A Store is constructed explicitly and passed to whoever needs it; there is no
ambient global store. It creates atoms and selectors, serves reads and writes,
and drives synchronous notification: by the time write() returns, every
observer of the written atom and of every affected selector has run once.

Thread safety: every operation runs under one re-entrant lock. Call
set_scheduler() from the UI thread to have writes from background threads
marshaled onto it instead of running inline. A transaction opened on another
thread queues its writes and hands them over as one batch when it closes;
the lock is never held while waiting on the scheduler.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Sequence, TypeVar

from atomx import _anchor, _tracking
from atomx.atom import Atom, runtime_type, type_name
from atomx.errors import AtomTypeError, ReadOnlyWriteError, ReentrantWriteError, UnknownAtomError
from atomx.selector import Selector

T = TypeVar("T")

logger = logging.getLogger("atomx.store")

Handle = Atom | Selector
Unsubscribe = Callable[[], None]


class Store:
    """Explicitly constructed container of atoms and selectors."""

    def __init__(self, *, check_types: bool = True) -> None:
        self._anchor = _anchor.Anchor()
        self._lock = threading.RLock()
        self._check_types = check_types
        self._scheduler: Callable[[Callable[[], None]], object] | None = None
        self._scheduler_thread: threading.Thread | None = None
        self._tokens = 0
        # Per-thread queue of writes made inside a transaction off the scheduler thread
        self._local = threading.local()

    # ─── Configuration ───────────────────────────────────────────────────────

    def set_scheduler(self, scheduler: Callable[[Callable[[], None]], object] | None) -> None:
        """Marshal writes from other threads through scheduler.

        Call once from the main/UI thread:
            store.set_scheduler(app.call_from_thread)

        Writes from the calling thread remain synchronous. Pass None to go
        back to serializing cross-thread writes behind the store lock.
        """
        self._scheduler = scheduler
        self._scheduler_thread = threading.current_thread() if scheduler else None

    # ─── Creation ────────────────────────────────────────────────────────────

    def create_atom(
        self,
        initial: T,
        *,
        value_type: type | None = None,
        name: str | None = None,
    ) -> Atom[T]:
        """Register a new atom holding initial. Its type is fixed from here on."""
        value_type = value_type or type(initial)
        checked = runtime_type(value_type)
        if self._check_types and not isinstance(initial, checked):
            raise AtomTypeError(
                f"initial value {initial!r} is not a {type_name(value_type)}"
            )
        with self._lock:
            node_id = _anchor.new_id()
            atom = Atom(node_id, name, value_type)
            a = self._anchor
            a.values[node_id] = _anchor.snapshot(initial)
            a.value_types[node_id] = checked
            a.observers[node_id] = {}
            a.dependents[node_id] = set()
            a.handles[node_id] = atom
        logger.debug("Created %r", atom)
        return atom

    def create_selector(
        self,
        dependencies: Sequence[Handle],
        compute: Callable[..., T],
        *,
        name: str | None = None,
    ) -> Selector[T]:
        """Register a selector computing compute(*dependency_values).

        The selector starts dirty; nothing is computed until it is read or
        one of its observers has to be notified.
        """
        with self._lock:
            dep_ids = tuple(self._resolve(d) for d in dependencies)
            node_id = _anchor.new_id()
            sel = Selector(node_id, name or getattr(compute, "__name__", None), tuple(dependencies))
            a = self._anchor
            a.compute_fns[node_id] = compute
            a.dependencies[node_id] = dep_ids
            a.cached_values[node_id] = _anchor.UNSET
            a.dirty_flags[node_id] = True
            a.observers[node_id] = {}
            a.dependents[node_id] = set()
            a.handles[node_id] = sel
            for dep_id in dep_ids:
                a.dependents[dep_id].add(node_id)
        logger.debug("Created %r", sel)
        return sel

    def selector(self, *dependencies: Handle) -> Callable[[Callable[..., T]], Selector[T]]:
        """Decorator form of create_selector().

        Usage:
            first = store.create_atom("Ada")
            last = store.create_atom("Lovelace")

            @store.selector(first, last)
            def full_name(first, last):
                return f"{first} {last}"

            store.read(full_name)  # "Ada Lovelace"
        """

        def decorator(fn: Callable[..., T]) -> Selector[T]:
            return self.create_selector(dependencies, fn)

        return decorator

    # ─── Read / write ────────────────────────────────────────────────────────

    def read(self, handle: Atom[T] | Selector[T]) -> T:
        """Current value of an atom, or a selector's value (recomputed if dirty)."""
        with self._lock:
            return self._read_copy(self._resolve(handle))

    def write(self, handle: Atom[T], value: T) -> None:
        """Replace the atom's value and notify all affected observers."""
        if self._should_marshal():
            self._resolve_writable(handle)
            self._marshal(lambda v=value: self._write(handle, v))
        else:
            self._write(handle, value)

    def append(self, handle: Atom[list], record: object) -> None:
        """Write a new list with record added after the existing items."""
        if self._should_marshal():
            self._resolve_list(handle)
            self._marshal(lambda r=record: self._append(handle, r))
        else:
            self._append(handle, record)

    def _append(self, handle: Atom[list], record: object) -> None:
        with self._lock:
            node_id = self._resolve_list(handle)
            self._write(handle, [*self._anchor.values[node_id], record])

    def _write(self, handle: Atom, value: object) -> None:
        with self._lock:
            node_id = self._resolve_writable(handle)
            a = self._anchor
            if node_id in a.notifying:
                raise ReentrantWriteError(handle)
            if self._check_types and not isinstance(value, a.value_types[node_id]):
                raise AtomTypeError(
                    f"{handle!r} expects {type_name(handle.value_type)}, got {type(value).__name__}"
                )
            a.values[node_id] = _anchor.snapshot(value)
            stale = _tracking.invalidate(a, node_id)
            logger.debug("Wrote %r (%d selectors invalidated)", handle, len(stale))
            if a.batch_depth > 0:
                a.pending_atoms[node_id] = None
                a.pending_selectors.update(stale)
            else:
                _tracking.run_pass(a, [node_id], stale, self._read_copy)

    # ─── Subscriptions ───────────────────────────────────────────────────────

    def subscribe(self, handle: Handle, callback: Callable[[T], None]) -> Unsubscribe:
        """Invoke callback with the new value after every change affecting handle.

        Returns a function removing exactly this registration. Calling it
        again is a no-op.
        """
        with self._lock:
            node_id = self._resolve(handle)
            self._tokens += 1
            token = self._tokens
            self._anchor.observers[node_id][token] = callback

        def _unsubscribe() -> None:
            with self._lock:
                registrations = self._anchor.observers.get(node_id)
                if registrations is not None:
                    registrations.pop(token, None)

        return _unsubscribe

    def observer_count(self, handle: Handle) -> int:
        """Number of live registrations on handle. Useful for leak checks."""
        with self._lock:
            return len(self._anchor.observers[self._resolve(handle)])

    # ─── Batching ────────────────────────────────────────────────────────────

    def _begin_batch(self) -> None:
        if self._should_marshal():
            # Off the scheduler thread: never hold the lock across a handoff.
            # Writes queue up and run as one batch on the scheduler thread.
            if getattr(self._local, "queued", None) is None:
                self._local.queued = []
                self._local.depth = 0
            self._local.depth += 1
            return
        self._lock.acquire()
        _tracking.begin_batch(self._anchor)

    def _end_batch(self) -> None:
        if getattr(self._local, "queued", None) is not None:
            self._local.depth -= 1
            if self._local.depth == 0:
                jobs, self._local.queued = self._local.queued, None
                if jobs:
                    self._scheduler(lambda: self._run_batch(jobs))
            return
        try:
            _tracking.end_batch(self._anchor, self._read_copy)
        finally:
            self._lock.release()

    def _run_batch(self, jobs: list[Callable[[], None]]) -> None:
        self._begin_batch()
        try:
            for job in jobs:
                job()
        finally:
            self._end_batch()

    def _marshal(self, job: Callable[[], None]) -> None:
        queued = getattr(self._local, "queued", None)
        if queued is not None:
            queued.append(job)
        else:
            self._scheduler(job)

    @property
    def pending_count(self) -> int:
        """Atoms written inside an open transaction, awaiting notification."""
        return _tracking.get_pending_count(self._anchor)

    # ─── Lifecycle ───────────────────────────────────────────────────────────

    def dispose(self) -> None:
        """Tear down the store. Its handles become unknown to it."""
        with self._lock:
            count = len(self._anchor.handles)
            self._anchor.clear()
        logger.debug("Disposed store with %d atoms/selectors", count)

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    # ─── Internals ───────────────────────────────────────────────────────────

    def _resolve(self, handle: object) -> int:
        node_id = getattr(handle, "_id", None)
        if node_id is None or self._anchor.handles.get(node_id) is not handle:
            raise UnknownAtomError(handle)
        return node_id

    def _resolve_writable(self, handle: object) -> int:
        node_id = self._resolve(handle)
        if self._anchor.is_selector(node_id):
            raise ReadOnlyWriteError(handle)
        return node_id

    def _resolve_list(self, handle: object) -> int:
        node_id = self._resolve_writable(handle)
        if not handle.is_list:
            raise AtomTypeError(f"{handle!r} is not a list atom")
        return node_id

    def _should_marshal(self) -> bool:
        return (
            self._scheduler is not None
            and threading.current_thread() is not self._scheduler_thread
        )

    def _read_id(self, node_id: int) -> object:
        a = self._anchor
        if not a.is_selector(node_id):
            return a.values[node_id]
        if a.dirty_flags[node_id]:
            self._recompute(node_id)
        return a.cached_values[node_id]

    def _read_copy(self, node_id: int) -> object:
        return _anchor.snapshot(self._read_id(node_id))

    def _recompute(self, node_id: int) -> None:
        a = self._anchor
        args = [self._read_copy(dep_id) for dep_id in a.dependencies[node_id]]
        a.cached_values[node_id] = a.compute_fns[node_id](*args)
        a.dirty_flags[node_id] = False

    def __repr__(self) -> str:
        return f"Store({len(self._anchor.handles)} atoms/selectors)"
