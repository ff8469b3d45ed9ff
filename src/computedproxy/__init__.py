"""computedproxy: lazily cached computed fields over plain Python data."""

from importlib.metadata import version as _version

__version__ = _version("computedproxy")

from computedproxy._bindings import set_strict, is_strict
from computedproxy.computed import ComputedField, ReadOnlyFieldError, computed
from computedproxy.reactive import ReactiveObject, ReactiveList, SlotKind, slot_kind, wrap

__all__ = [
    "wrap",
    "ReactiveObject",
    "ReactiveList",
    "computed",
    "ComputedField",
    "ReadOnlyFieldError",
    "SlotKind",
    "slot_kind",
    "set_strict",
    "is_strict",
]
