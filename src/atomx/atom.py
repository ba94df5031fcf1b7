"""Atom handles — references to single named cells of state.

An Atom holds no value itself. All state lives in the owning store's anchor;
the handle is an immutable token holding an _id, so passing it around never
aliases store state.
"""

from __future__ import annotations

import types
from typing import Any, Generic, TypeVar, Union, get_args, get_origin

from atomx.errors import AtomTypeError

T = TypeVar("T")


def runtime_type(tp) -> type | tuple:
    """Reduce a declared value type to something isinstance() accepts.

    list[Post] checks as list, int | None as (int, NoneType), Any as object.
    Item types of generics are not checked.
    """
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        return tuple(runtime_type(arg) for arg in get_args(tp))
    if origin is not None:
        return runtime_type(origin)
    if tp is Any:
        return object
    if isinstance(tp, type):
        return tp
    raise AtomTypeError(f"unsupported value_type {tp!r}")


def type_name(tp) -> str:
    if isinstance(tp, type) and get_origin(tp) is None:
        return tp.__name__
    return repr(tp)


class Atom(Generic[T]):
    """Handle to a writable cell created by Store.create_atom()."""

    __slots__ = ("_id", "_name", "_value_type")

    def __init__(self, node_id: int, name: str | None, value_type) -> None:
        self._id = node_id
        self._name = name
        self._value_type = value_type

    @property
    def name(self) -> str:
        return self._name or f"atom{self._id}"

    @property
    def value_type(self):
        """The type declared at creation, as given."""
        return self._value_type

    @property
    def is_list(self) -> bool:
        """True for list atoms, which support Store.append()."""
        checked = runtime_type(self._value_type)
        return isinstance(checked, type) and issubclass(checked, list)

    def __repr__(self) -> str:
        return f"Atom({self.name!r}, {type_name(self._value_type)})"
