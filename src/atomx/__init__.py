"""atomx: an explicitly constructed reactive store of atoms and selectors."""

from importlib.metadata import version as _version

__version__ = _version("atomx")

from atomx.atom import Atom
from atomx.selector import Selector
from atomx.store import Store
from atomx.action import action, transaction
from atomx.binding import ReaderBinding, bind_appender, bind_reader, bind_writer
from atomx.errors import (
    AtomError,
    AtomTypeError,
    ReadOnlyWriteError,
    ReentrantWriteError,
    UnknownAtomError,
)
# textual / board NOT auto-imported — they pull in the UI stack

__all__ = [
    "Atom",
    "Selector",
    "Store",
    "action",
    "transaction",
    "ReaderBinding",
    "bind_reader",
    "bind_writer",
    "bind_appender",
    "AtomError",
    "AtomTypeError",
    "ReadOnlyWriteError",
    "ReentrantWriteError",
    "UnknownAtomError",
]
