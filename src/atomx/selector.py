"""Selectors — read-only values derived from atoms or other selectors.

A Selector declares its dependencies up front and computes over their current
values. The result is cached until any dependency (direct or transitive) is
written; it is then recomputed on the next read, or eagerly when a
notification pass has observers of the selector to inform.

All state lives in the store's anchor — instances are thin handles holding an _id.
"""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")


class Selector(Generic[T]):
    """Handle to a derived cell created by Store.create_selector()."""

    __slots__ = ("_id", "_name", "_dependencies")

    def __init__(self, node_id: int, name: str | None, dependencies: tuple) -> None:
        self._id = node_id
        self._name = name
        self._dependencies = dependencies

    @property
    def name(self) -> str:
        return self._name or f"selector{self._id}"

    @property
    def dependencies(self) -> tuple:
        """The Atom/Selector handles this selector computes over, in order."""
        return self._dependencies

    def __repr__(self) -> str:
        deps = ", ".join(d.name for d in self._dependencies)
        return f"Selector({self.name!r}, [{deps}])"
