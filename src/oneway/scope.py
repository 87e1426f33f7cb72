"""Scope propagation — reach the nearest provided store without passing it down.

provide(store) makes a store current for everything called inside the block;
current_store() resolves it. Scopes nest, and the inner one wins until its
block exits. Built on contextvars: asyncio tasks inherit the scope they were
created in; threads follow the interpreter's contextvars rules.

// [LAW:no-shared-mutable-globals] No default store. Each scope owns the store
//   it provides, so independent stores coexist (tests, parallel apps).
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Iterator, TypeVar

from oneway.errors import NoStoreError

if TYPE_CHECKING:
    from oneway.store import Store

R = TypeVar("R")

_current_store: contextvars.ContextVar[Store | None] = contextvars.ContextVar(
    "current_store", default=None
)


@contextmanager
def provide(store: Store) -> Iterator[Store]:
    """Make store the nearest enclosing store inside the block.

    Usage:
        with provide(store):
            render_app()   # anything in here can call current_store()
    """
    token = _current_store.set(store)
    try:
        yield store
    finally:
        _current_store.reset(token)


def with_scope(store: Store, subtree: Callable[..., R], *args, **kwargs) -> R:
    """Call subtree(*args, **kwargs) with store provided. Returns its result."""
    with provide(store):
        return subtree(*args, **kwargs)


def current_store() -> Store:
    """The nearest enclosing provided store."""
    store = _current_store.get()
    if store is None:
        raise NoStoreError(
            "No store in scope. Wrap the caller in provide(store) or "
            "with_scope(store, ...), or pass the store explicitly."
        )
    return store
