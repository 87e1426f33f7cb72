"""Connector — binds one consumer to a store.

A Connection derives props from the store's state with a selector and binds
action creators to dispatch. On every store notification it re-runs the
selector; the consumer's change signal fires only when the new props are not
shallow-equal to the previous ones, so changes to unrelated slices cost the
consumer nothing.

connect(selector, binder) turns any callable consumer (props -> anything) into
a ConnectedConsumer that can be mounted against a store.
"""

from __future__ import annotations

import functools
from collections.abc import Mapping
from typing import Any, Callable, Union

from oneway.actions import bind_action_creators
from oneway.errors import SelectorError
from oneway.scope import current_store
from oneway.store import Store

Props = Mapping[str, Any]
Selector = Callable[[Any], Props]
Binder = Union[Mapping[str, Callable[..., Any]], Callable[[Callable[[Any], Any]], Props]]
OnChange = Callable[[Props], Any]

# Immutable scalars compare by value; everything else by identity.
_VALUE_TYPES = (int, float, complex, str, bytes, bool, type(None))


def _same(a: object, b: object) -> bool:
    if a is b:
        return True
    return type(a) is type(b) and isinstance(a, _VALUE_TYPES) and a == b


def shallow_equal(a: object, b: object) -> bool:
    """True if a is b, or both are mappings with the same keys and identical values."""
    if a is b:
        return True
    if not isinstance(a, Mapping) or not isinstance(b, Mapping):
        return False
    if len(a) != len(b):
        return False
    for key, value in a.items():
        if key not in b or not _same(value, b[key]):
            return False
    return True


def _bind(binder: Binder | None, dispatch: Callable[[Any], Any]) -> Props:
    if binder is None:
        return {"dispatch": dispatch}
    if isinstance(binder, Mapping):
        return bind_action_creators(binder, dispatch)
    if callable(binder):
        bound = binder(dispatch)
        if not isinstance(bound, Mapping):
            raise TypeError(
                f"Binder {binder!r} must return a mapping, got {type(bound).__name__}"
            )
        return bound
    raise TypeError(f"Binder must be a mapping or a callable, got {binder!r}")


class Connection:
    """One consumer's live binding to a store.

    Subscribes on creation; call dispose() (or leave the ``with`` block) when
    the consumer is retired, otherwise the listener stays registered.
    """

    def __init__(
        self,
        store: Store,
        selector: Selector | None = None,
        binder: Binder | None = None,
        on_change: OnChange | None = None,
    ) -> None:
        self._store = store
        self._selector = selector
        self._on_change = on_change
        self._disposed = False
        self._unsubscribe = None
        self.bound_actions = _bind(binder, store.dispatch)
        self.props: Props = {}
        # Without a selector there is nothing to recompute.
        if selector is not None:
            self._unsubscribe = store.subscribe_with_state(self._run, self._prime)

    @property
    def merged_props(self) -> dict[str, Any]:
        """Derived props with bound actions layered on top."""
        return {**self.props, **self.bound_actions}

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _select(self, state: Any) -> Props:
        if self._selector is None:
            return {}
        try:
            props = self._selector(state)
        except Exception as exc:
            raise SelectorError(
                f"Selector {getattr(self._selector, '__qualname__', self._selector)!r} "
                f"raised {exc!r}"
            ) from exc
        if not isinstance(props, Mapping):
            raise TypeError(
                f"Selector must return a mapping, got {type(props).__name__}"
            )
        return props

    def _prime(self, state: Any) -> None:
        self.props = self._select(state)

    def _run(self) -> None:
        """Store listener: recompute props, signal only if they changed."""
        if self._disposed:
            # still in the snapshot of the round that retired us
            return
        props = self._select(self._store.get_state())
        if shallow_equal(props, self.props):
            return
        self.props = props
        if self._on_change is not None:
            self._on_change(self.merged_props)

    def dispose(self) -> None:
        """Unsubscribe from the store. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        return f"Connection(props={dict(self.props)!r}, {state})"


class ConnectedConsumer:
    """A consumer paired with a selector and binder, ready to mount."""

    def __init__(
        self,
        consumer: Callable[[Props], Any],
        selector: Selector | None,
        binder: Binder | None,
    ) -> None:
        functools.update_wrapper(self, consumer, updated=())
        self.consumer = consumer
        self.selector = selector
        self.binder = binder

    def mount(
        self, store: Store | None = None, on_change: OnChange | None = None
    ) -> Connection:
        """Render the consumer once and keep it bound to the store.

        The store defaults to the nearest provided one. on_change is the
        re-render signal; by default the consumer itself is called again with
        the new props.
        """
        if store is None:
            store = current_store()
        connection = Connection(
            store, self.selector, self.binder, on_change or self.consumer
        )
        try:
            self.consumer(connection.merged_props)
        except BaseException:
            connection.dispose()
            raise
        return connection

    def __repr__(self) -> str:
        name = getattr(self.consumer, "__qualname__", repr(self.consumer))
        return f"ConnectedConsumer({name})"


def connect(
    selector: Selector | None = None, binder: Binder | None = None
) -> Callable[[Callable[[Props], Any]], ConnectedConsumer]:
    """Configure a connector; the result wraps a consumer.

    Usage:
        @connect(
            lambda state: {"count": state["count"]},
            {"increment": lambda: {"type": "INCREMENT"}},
        )
        def counter_view(props):
            print(props["count"])

        with provide(store):
            connection = counter_view.mount()
        connection.dispose()
    """

    def wrap(consumer: Callable[[Props], Any]) -> ConnectedConsumer:
        if not callable(consumer):
            raise TypeError(f"Expected the consumer to be callable, got {consumer!r}")
        return ConnectedConsumer(consumer, selector, binder)

    return wrap
