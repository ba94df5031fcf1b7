"""Notification engine — the heart of atomx.

A write invalidates every selector downstream of the written atom, then runs
one notification pass: each observer of the atom is invoked with its own copy
of the settled value, followed by the observers of each affected selector.

Writes made by observers during a pass notify their atom's observers inline,
but queue their selectors onto the outermost pass, so each selector is
notified once, after every atom write it depends on has landed.

Batching: writes inside a transaction accumulate the atoms and selectors they
touched and flush them in a single pass when the outermost scope exits.
"""

from __future__ import annotations

import logging
from typing import Callable

from atomx._anchor import Anchor, snapshot

logger = logging.getLogger("atomx.store")


def invalidate(anchor: Anchor, node_id: int) -> set[int]:
    """Mark every selector that depends on node_id (transitively) dirty.

    Returns the ids of all selectors reached.
    """
    reached: set[int] = set()
    stack = list(anchor.dependents.get(node_id, ()))
    while stack:
        sel_id = stack.pop()
        if sel_id in reached:
            continue
        reached.add(sel_id)
        anchor.dirty_flags[sel_id] = True
        stack.extend(anchor.dependents.get(sel_id, ()))
    return reached


def notify(
    anchor: Anchor,
    node_id: int,
    value: object,
    failures: list[BaseException],
) -> None:
    """Invoke every observer of node_id registered before the pass began.

    Each observer gets its own shallow copy of value. An observer unsubscribed
    mid-pass is skipped if it hasn't run yet. Failures are logged and
    collected; they never stop the remaining observers.
    """
    registrations = anchor.observers.get(node_id)
    if not registrations:
        return
    for token, callback in list(registrations.items()):
        if token not in registrations:
            continue
        try:
            callback(snapshot(value))
        except Exception as exc:
            logger.exception(
                "Observer %r failed for %r", callback, anchor.handles.get(node_id)
            )
            failures.append(exc)


def run_pass(
    anchor: Anchor,
    atom_ids: list[int],
    selector_ids: set[int],
    read: Callable[[int], object],
) -> None:
    """One synchronous notification pass.

    Atom observers run first. Selectors are drained by the outermost pass only,
    lowest id first: dependencies exist before their selectors are created, so
    id order is a topological order of the selector graph. The first observer
    failure is re-raised once every observer was attempted.
    """
    failures: list[BaseException] = []
    entered = [i for i in atom_ids if i not in anchor.notifying]
    outermost = anchor.pass_depth == 0
    anchor.notifying.update(entered)
    anchor.pass_selectors.update(selector_ids)
    anchor.pass_depth += 1
    try:
        for atom_id in atom_ids:
            if anchor.knows(atom_id):
                notify(anchor, atom_id, read(atom_id), failures)
        if outermost:
            _drain_selectors(anchor, read, failures)
    finally:
        anchor.pass_depth -= 1
        anchor.notifying.difference_update(entered)
        if outermost:
            anchor.pass_selectors.clear()
    if failures:
        raise failures[0]


def _drain_selectors(
    anchor: Anchor,
    read: Callable[[int], object],
    failures: list[BaseException],
) -> None:
    # Selector observers may write atoms and queue more selectors; keep going
    # until the queue is empty.
    while anchor.pass_selectors:
        sel_id = min(anchor.pass_selectors)
        anchor.pass_selectors.discard(sel_id)
        if not anchor.observers.get(sel_id):
            continue
        try:
            value = read(sel_id)
        except Exception as exc:
            logger.exception("Selector %r failed to recompute", anchor.handles.get(sel_id))
            failures.append(exc)
            continue
        notify(anchor, sel_id, value, failures)


def begin_batch(anchor: Anchor) -> None:
    """Enter a batching scope. Nested batches are supported."""
    anchor.batch_depth += 1


def end_batch(anchor: Anchor, read: Callable[[int], object]) -> None:
    """Exit a batching scope. When the outermost scope exits, flush pending work."""
    anchor.batch_depth -= 1
    if anchor.batch_depth == 0:
        flush_pending(anchor, read)


def flush_pending(anchor: Anchor, read: Callable[[int], object]) -> None:
    if not anchor.pending_atoms and not anchor.pending_selectors:
        return
    # Snapshot and clear — observers may write (and queue) more during the pass.
    atom_ids = list(anchor.pending_atoms)
    selector_ids = set(anchor.pending_selectors)
    anchor.pending_atoms.clear()
    anchor.pending_selectors.clear()
    run_pass(anchor, atom_ids, selector_ids, read)


def get_pending_count(anchor: Anchor) -> int:
    """Number of atoms waiting for a batched notification. Useful for testing."""
    return len(anchor.pending_atoms)
