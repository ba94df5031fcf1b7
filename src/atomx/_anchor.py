"""Data anchor — plain Python structures that hold one store's reactive state.

Handles (Atom, Selector) are thin references holding an _id. Everything they
point at lives here, owned by exactly one Store instance. Separating data from
behavior keeps the handles immutable and makes teardown a matter of clearing
these mappings.
"""

from __future__ import annotations

import itertools
from typing import Callable

# ID generation — itertools.count is thread-safe (C-level GIL atomic).
# Ids are process-wide so a handle from one store never resolves in another.
_id_counter = itertools.count(1)

UNSET = object()


def new_id() -> int:
    return next(_id_counter)


def snapshot(value):
    """Shallow-copy mutable containers so store state never aliases callers."""
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, set):
        return set(value)
    return value


class Anchor:
    """All mutable state of a single store."""

    def __init__(self) -> None:
        # Atom state
        self.values: dict[int, object] = {}
        self.value_types: dict[int, type | tuple] = {}  # isinstance-ready

        # Selector state
        self.compute_fns: dict[int, Callable] = {}
        self.dependencies: dict[int, tuple[int, ...]] = {}  # sel_id -> ordered dep ids
        self.cached_values: dict[int, object] = {}
        self.dirty_flags: dict[int, bool] = {}

        # Shared: id -> direct dependent selector ids
        self.dependents: dict[int, set[int]] = {}
        # id -> {registration token -> callback}, insertion ordered
        self.observers: dict[int, dict[int, Callable]] = {}
        self.handles: dict[int, object] = {}

        # Notification pass state
        self.notifying: set[int] = set()
        self.pass_depth: int = 0
        self.pass_selectors: set[int] = set()  # queued on the outermost pass
        self.batch_depth: int = 0
        self.pending_atoms: dict[int, None] = {}  # ordered set
        self.pending_selectors: set[int] = set()

    def knows(self, node_id: int) -> bool:
        return node_id in self.observers

    def is_selector(self, node_id: int) -> bool:
        return node_id in self.compute_fns

    def clear(self) -> None:
        for mapping in (
            self.values, self.value_types, self.compute_fns, self.dependencies,
            self.cached_values, self.dirty_flags, self.dependents,
            self.observers, self.handles, self.pending_atoms,
        ):
            mapping.clear()
        self.notifying.clear()
        self.pending_selectors.clear()
        self.pass_selectors.clear()
        self.pass_depth = 0
        self.batch_depth = 0
