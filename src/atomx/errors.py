"""Error taxonomy. Every store failure is a programmer error and fails fast."""

from __future__ import annotations


class AtomError(Exception):
    """Base class for all atomx errors."""


class UnknownAtomError(AtomError, KeyError):
    """The handle was not created by this store (or the store was disposed)."""

    def __init__(self, handle: object) -> None:
        super().__init__(handle)
        self.handle = handle

    def __str__(self) -> str:
        return f"{self.handle!r} is not registered in this store"


class ReadOnlyWriteError(AtomError, TypeError):
    """Selectors are derived and cannot be written."""

    def __init__(self, handle: object) -> None:
        super().__init__(f"{handle!r} is a selector and cannot be written")
        self.handle = handle


class AtomTypeError(AtomError, TypeError):
    """A value does not match the type declared for its atom."""


class ReentrantWriteError(AtomError, RuntimeError):
    """An observer wrote to the atom whose notification pass is running."""

    def __init__(self, handle: object) -> None:
        super().__init__(f"{handle!r} was written while notifying its own observers")
        self.handle = handle
