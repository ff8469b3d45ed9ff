"""Computed fields — derived values with declared dependency paths.

A ComputedField is assigned to a slot on a ReactiveObject. Its getter runs
only when the field is dirty (a declared dependency changed) or volatile;
otherwise the cached value is returned as-is.

Computed fields are lazy: they only recompute when read.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterable

from computedproxy import _bindings

if TYPE_CHECKING:
    from computedproxy.reactive import ReactiveObject

Getter = Callable[["ReactiveObject", str, Any], Any]
Setter = Callable[["ReactiveObject", str, Any, Any], Any]


class ReadOnlyFieldError(AttributeError):
    """Raised when writing to a computed field that has no setter."""

    def __init__(self, field: str) -> None:
        super().__init__(
            f"{field} is read only. Supply a set function to make this property settable."
        )
        self.field = field


def _no_value(obj: ReactiveObject, name: str, previous: Any) -> None:
    return None


class ComputedField:
    """A cached derived value that is invalidated by its dependency paths."""

    __slots__ = (
        "_paths",
        "_get",
        "_set",
        "_cache",
        "_dirty",
        "_volatile",
        "_owner",
        "_name",
        "_registrations",
    )

    def __init__(
        self,
        paths: Iterable[str],
        get: Getter | None = None,
        set: Setter | None = None,
    ) -> None:
        self._paths: tuple[str, ...] = tuple(paths)
        self._get: Getter = get or _no_value
        self._set: Setter | None = set
        self._cache: Any = None
        self._dirty = True
        self._volatile = False
        self._owner: ReactiveObject | None = None
        self._name: str | None = None
        self._registrations: list[tuple[_bindings.BindingTable, str, _bindings.Callback]] = []

    @property
    def paths(self) -> tuple[str, ...]:
        return self._paths

    @property
    def cache(self) -> Any:
        return self._cache

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    @property
    def is_volatile(self) -> bool:
        return self._volatile

    @property
    def is_read_only(self) -> bool:
        return self._set is None

    def volatile(self) -> ComputedField:
        """Recompute on every read. Returns self so it can be chained."""
        self._volatile = True
        return self

    # --- Driven by ReactiveObject ---

    def _evaluate(self, receiver: ReactiveObject, name: str) -> Any:
        """Return the cached value, recomputing first if dirty or volatile."""
        if self._dirty or self._volatile:
            self._cache = self._get(receiver, name, self._cache)
            self._dirty = False
        return self._cache

    def _assign(self, receiver: ReactiveObject, name: str, value: Any) -> Any:
        """Run the setter, cache what it returns and hand it back."""
        if self._set is None:
            raise ReadOnlyFieldError(name)
        self._cache = self._set(receiver, name, value, self._cache)
        self._dirty = False
        return self._cache

    def _attach(self, owner: ReactiveObject, name: str) -> None:
        """Install into owner's slot `name` and index the dependency paths."""
        if self._owner is not None and (self._owner is not owner or self._name != name):
            self._detach()
        self._owner = owner
        self._name = name
        self._dirty = True
        owner._index(self)

    def _detach(self) -> None:
        """Leave the slot. Remaining callbacks become inert."""
        self._owner = None
        self._name = None
        if _bindings.is_strict():
            self._evict()

    def _bind(self, table: _bindings.BindingTable, key: str, callback: _bindings.Callback) -> None:
        if _bindings.register(table, key, callback):
            self._registrations.append((table, key, callback))

    def _evict(self) -> int:
        return _bindings.evict(self._registrations)

    # --- Binding callbacks ---

    def _mark_dirty(self, name: str) -> None:
        """Invalidate the cache.

        On a clean -> dirty transition, computed fields that depend on this
        one are notified as well. Detached fields never propagate.
        """
        if self._dirty:
            return
        self._dirty = True
        if self._owner is not None:
            self._owner.notify_property_change(self._name)

    def _reindex(self, name: str) -> None:
        """Something along a dependency path was replaced or restructured.

        Re-walk the paths from the owner so bindings reach the new nodes,
        then invalidate.
        """
        if self._owner is None:
            return
        self._owner._index(self)
        self._mark_dirty(name)

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else f"cached={self._cache!r}"
        if self._volatile:
            state += ", volatile"
        return f"ComputedField({list(self._paths)!r}, {state})"


def computed(*paths: str | Iterable[str], get: Getter | None = None, set: Setter | None = None) -> ComputedField:
    """Declare a computed field. Assign the result to a reactive object's slot.

    Usage:
        person = wrap({
            "lastName": "Robinson Young",
            "fullName": computed(
                "firstName", "lastName",
                get=lambda self, name, previous: f"{self.firstName} {self.lastName}",
            ),
        })
        person.firstName = "Kyle"
        person.fullName  # "Kyle Robinson Young"

    Paths may also be given as a single list: computed(["a", "b"], get=...).
    Leave out `set` to make the field read-only.
    """
    if len(paths) == 1 and not isinstance(paths[0], str):
        paths = tuple(paths[0])
    return ComputedField(paths, get=get, set=set)
