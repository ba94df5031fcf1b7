"""Actions and transactions — batched writes.

Wrapping writes in an @action(store) or `with transaction(store)` defers
notification until the outermost scope exits. Each written atom, and each
selector downstream of one, is then notified once with its settled value.
This prevents glitchy intermediate states where a display has seen one half
of a related pair of writes but not the other.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, ParamSpec, TypeVar

if TYPE_CHECKING:
    from atomx.store import Store

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def transaction(store: Store) -> Iterator[Store]:
    """Context manager for batching writes.

    Usage:
        with transaction(store):
            store.write(first, "Grace")
            store.write(last, "Hopper")
            # observers run here, after both are written

    Off the scheduler thread (see Store.set_scheduler) the writes are queued
    and applied together on the scheduler thread when the scope exits; reads
    inside the scope do not see them yet.
    """
    store._begin_batch()
    try:
        yield store
    finally:
        store._end_batch()


def action(store: Store) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Decorator factory: batch all writes to store made inside fn.

    Usage:
        @action(store)
        def swap():
            a, b = store.read(left), store.read(right)
            store.write(left, b)
            store.write(right, a)
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with transaction(store):
                return fn(*args, **kwargs)

        return wrapper

    return decorator
