"""Binding tables and change dispatch — the heart of computedproxy.

Every reactive object owns a binding table: a dict mapping a field name (or
path segment) to the ordered list of callbacks that mark dependent computed
fields dirty. Notifying a name on an object runs those callbacks.

Strict mode: each computed field remembers what it registered, and those
registrations are evicted when the field is re-indexed or detached. With
strict mode off, stale callbacks are left in place. They only flip dirty
flags, so a later read recomputes from live state and stays correct.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger("computedproxy.bindings")

Callback = Callable[[str], None]
BindingTable = dict[str, list[Callback]]

# Path segments that mean "every element of this sequence".
WILDCARDS = frozenset({"[]", "@each"})

_strict: bool = True


def set_strict(enabled: bool) -> None:
    """Choose whether stale bindings are evicted (True) or left to accumulate.

    Call once at startup:
        computedproxy.set_strict(False)
    """
    global _strict
    _strict = bool(enabled)


def is_strict() -> bool:
    return _strict


def register(table: BindingTable, key: str, callback: Callback) -> bool:
    """Add callback under key unless it is already there.

    Returns True if the table changed.
    """
    callbacks = table.setdefault(key, [])
    if callback in callbacks:
        return False
    callbacks.append(callback)
    return True


def evict(registrations: list[tuple[BindingTable, str, Callback]]) -> int:
    """Remove previously registered callbacks. Returns how many were removed."""
    removed = 0
    for table, key, callback in registrations:
        callbacks = table.get(key)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)
            removed += 1
            if not callbacks:
                del table[key]
    registrations.clear()
    if removed:
        logger.debug("Evicted %d stale bindings", removed)
    return removed


def notify(table: BindingTable, name: str) -> None:
    """Run every callback bound to name, in registration order."""
    callbacks = table.get(name)
    if not callbacks:
        return
    # Snapshot: callbacks may re-index and touch this list while we iterate.
    for callback in list(callbacks):
        callback(name)
