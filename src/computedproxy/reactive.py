"""Reactive objects and lists — plain data that knows who depends on it.

A ReactiveObject adopts a dict and routes every field read and write through
get()/set(). Attribute and item syntax both work:

    obj.name, obj["name"], obj.get("name")
    obj.name = 1, obj["name"] = 1, obj.set("name", 1)

Writes dispatch a change notification for the field name; reads of computed
fields return the cache unless it was invalidated. Lists read from a reactive
object come back wrapped in a ReactiveList whose mutations notify the owner.
"""

from __future__ import annotations

import logging
import weakref
from enum import Enum
from typing import Any, Callable, Iterable, Iterator

from computedproxy import _bindings
from computedproxy.computed import ComputedField

logger = logging.getLogger("computedproxy.reactive")

# id(dict) -> weak reference to the one ReactiveObject viewing it.
_views: dict[int, weakref.ref] = {}


class SlotKind(Enum):
    """What a field slot currently holds."""

    PLAIN = "plain"
    COMPUTED = "computed"
    NESTED = "nested"
    SEQUENCE = "sequence"


def slot_kind(value: Any) -> SlotKind:
    if isinstance(value, ComputedField):
        return SlotKind.COMPUTED
    if isinstance(value, ReactiveObject):
        return SlotKind.NESTED
    if isinstance(value, (list, tuple, ReactiveList)):
        return SlotKind.SEQUENCE
    return SlotKind.PLAIN


def _walk(field: ComputedField, target: Any, segments: list[str]) -> None:
    """Bind field along the remaining path segments starting at target."""
    if not segments:
        return
    kind = slot_kind(target)
    if kind is SlotKind.NESTED:
        key, rest = segments[0], segments[1:]
        # Intermediate segments re-index when replaced; the last one just dirties.
        callback = field._reindex if rest else field._mark_dirty
        field._bind(target._bindings, key, callback)
        _walk(field, target._data.get(key), rest)
    elif kind is SlotKind.SEQUENCE:
        if segments[0] in _bindings.WILDCARDS:
            segments = segments[1:]
        for element in list(target):
            _walk(field, element, segments)


class ReactiveObject:
    """A dict-backed object whose computed fields track their dependencies.

    There is one view per dict: constructing a ReactiveObject over a dict
    that already has a live view returns that view, binding table included.
    """

    __slots__ = ("_data", "_bindings", "__weakref__")

    def __new__(cls, data: dict[str, Any] | None = None) -> ReactiveObject:
        if data is not None:
            ref = _views.get(id(data))
            view = ref() if ref is not None else None
            if view is not None and view._data is data:
                return view
        return super().__new__(cls)

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        if hasattr(self, "_data"):
            return  # existing view handed back by __new__
        object.__setattr__(self, "_data", data if data is not None else {})
        object.__setattr__(self, "_bindings", {})
        key = id(self._data)

        def _forget(ref: weakref.ref) -> None:
            if _views.get(key) is ref:
                del _views[key]

        _views[key] = weakref.ref(self, _forget)
        for name, value in list(self._data.items()):
            if isinstance(value, ReactiveList):
                self._data[name] = value._items
            elif isinstance(value, ComputedField):
                value._attach(self, name)

    def _index(self, field: ComputedField) -> None:
        """(Re)build the bindings for a computed field installed on this object."""
        if _bindings.is_strict():
            field._evict()
        for path in field.paths:
            _walk(field, self, path.split("."))
        logger.debug(
            "Indexed %s: %d paths, %d bindings",
            field._name, len(field.paths), len(field._registrations),
        )

    # --- Reads ---

    def _read(self, name: str) -> Any:
        value = self._data[name]
        kind = slot_kind(value)
        if kind is SlotKind.COMPUTED:
            return value._evaluate(self, name)
        if kind is SlotKind.SEQUENCE and isinstance(value, list):
            return ReactiveList(self, name, value)
        return value

    def get(self, name: str, default: Any = None) -> Any:
        """Read a field. Missing fields return default."""
        if name not in self._data:
            return default
        return self._read(name)

    def __getitem__(self, name: str) -> Any:
        return self._read(name)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails: slots, methods and dunders win.
        if name in ReactiveObject.__slots__ or name.startswith("__"):
            raise AttributeError(name)
        try:
            return self._read(name)
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__!r} object has no field {name!r}"
            ) from None

    # --- Writes ---

    def set(self, name: str, value: Any) -> None:
        """Write a field and notify everything bound to it.

        Raises ReadOnlyFieldError if the slot holds a computed field without
        a setter. With a setter, whatever it returns replaces the computed
        field in the slot.
        """
        if isinstance(value, ReactiveList):
            value = value._items
        current = self._data.get(name)
        if isinstance(value, ComputedField):
            if isinstance(current, ComputedField) and current is not value:
                current._detach()
            self._data[name] = value
            value._attach(self, name)
        elif isinstance(current, ComputedField):
            # The setter's result becomes the raw slot value; the field leaves.
            self._data[name] = current._assign(self, name, value)
            current._detach()
        else:
            self._data[name] = value
        self.notify_property_change(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def delete(self, name: str) -> None:
        """Remove a field and notify everything bound to it."""
        value = self._data.pop(name)
        if isinstance(value, ComputedField):
            value._detach()
        self.notify_property_change(name)

    def __delitem__(self, name: str) -> None:
        self.delete(name)

    def __delattr__(self, name: str) -> None:
        try:
            self.delete(name)
        except KeyError:
            raise AttributeError(name) from None

    def notify_property_change(self, name: str) -> None:
        """Invalidate everything that depends on `name`.

        Use this after mutating nested state that the object cannot see,
        e.g. a plain dict stored in a field.
        """
        _bindings.notify(self._bindings, name)

    # --- Mapping-ish helpers ---

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ReactiveObject({self._data!r})"


class ReactiveList:
    """A view over a list held by a ReactiveObject field.

    Mutations run on the real list first, then notify the owning field.
    Reads pass straight through.
    """

    __slots__ = ("_owner", "_name", "_items")

    def __init__(self, owner: ReactiveObject, name: str, items: list) -> None:
        self._owner = owner
        self._name = name
        self._items = items

    def _changed(self) -> None:
        self._owner.notify_property_change(self._name)

    # --- Read operations (pass through) ---

    def __getitem__(self, index):
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator:
        return iter(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReactiveList):
            other = other._items
        return self._items == other

    __hash__ = None  # type: ignore[assignment]

    def __add__(self, other):
        return self._items.__add__(_plain(other))

    def __radd__(self, other):
        if isinstance(other, list):
            return other + self._items
        return NotImplemented

    def __mul__(self, count):
        return self._items * count

    __rmul__ = __mul__

    def __lt__(self, other):
        return self._items.__lt__(_plain(other))

    def __le__(self, other):
        return self._items.__le__(_plain(other))

    def __gt__(self, other):
        return self._items.__gt__(_plain(other))

    def __ge__(self, other):
        return self._items.__ge__(_plain(other))

    def __reversed__(self) -> Iterator:
        return reversed(self._items)

    def __getattr__(self, name: str) -> Any:
        # index, count, copy, ... come from the real list.
        if name in ReactiveList.__slots__:
            raise AttributeError(name)
        return getattr(self._items, name)

    # --- Write operations (notify) ---

    def append(self, item: Any) -> None:
        self._items.append(item)
        self._changed()

    def prepend(self, item: Any) -> None:
        self._items.insert(0, item)
        self._changed()

    def extend(self, items: Iterable) -> None:
        self._items.extend(items)
        self._changed()

    def insert(self, index: int, item: Any) -> None:
        self._items.insert(index, item)
        self._changed()

    def pop(self, index: int = -1) -> Any:
        result = self._items.pop(index)
        self._changed()
        return result

    def remove(self, item: Any) -> None:
        self._items.remove(item)
        self._changed()

    def clear(self) -> None:
        self._items.clear()
        self._changed()

    def splice(self, start: int, delete_count: int | None = None, *items: Any) -> list:
        """Remove delete_count items at start, insert items there.

        Returns the removed items. delete_count=None removes through the end.
        """
        size = len(self._items)
        start = max(size + start, 0) if start < 0 else min(start, size)
        end = size if delete_count is None else start + max(delete_count, 0)
        removed = self._items[start:end]
        self._items[start:end] = items
        self._changed()
        return removed

    def sort(self, *, key: Callable | None = None, reverse: bool = False) -> None:
        self._items.sort(key=key, reverse=reverse)
        self._changed()

    def reverse(self) -> None:
        self._items.reverse()
        self._changed()

    def __setitem__(self, index, value) -> None:
        self._items[index] = value
        self._changed()

    def __delitem__(self, index) -> None:
        del self._items[index]
        self._changed()

    def __iadd__(self, items: Iterable) -> ReactiveList:
        self.extend(items)
        return self

    def __imul__(self, count: int) -> ReactiveList:
        self._items *= count
        self._changed()
        return self

    def __repr__(self) -> str:
        return f"ReactiveList({self._items!r})"


def _plain(value: Any) -> Any:
    return value._items if isinstance(value, ReactiveList) else value


def wrap(data: dict[str, Any] | ReactiveObject | None = None, /, **fields: Any) -> ReactiveObject:
    """Make a plain dict reactive. The dict is adopted, not copied.

    Usage:
        inventory = wrap({
            "items": ["one"],
            "itemList": computed("items", get=lambda self, *_: ", ".join(self.items)),
        })
        inventory.items.append("two")
        inventory.itemList  # "one, two"

    Keyword fields are written through set() after wrapping, so they land in
    the caller's dict too. Wrapping a dict that already has a live view, or a
    ReactiveObject, returns that same view.
    """
    view = data if isinstance(data, ReactiveObject) else ReactiveObject(data)
    for name, value in fields.items():
        view.set(name, value)
    return view
