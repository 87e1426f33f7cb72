"""Store — the single owner of application state.

State changes only through dispatch(action): the reducer computes the next
state from (state, action), the store commits it, then calls every listener
registered when the round began, in registration order.

Dispatch runs to completion before returning. A dispatch attempted while
another one is running on the same thread (from inside the reducer or a
listener) is rejected, not queued. Dispatches from other threads block on the
store's lock and are applied one after another.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Generic, TypeVar

from oneway.actions import ActionTypes, action_type
from oneway.errors import ReentrantDispatchError, UndefinedStateError

S = TypeVar("S")

Reducer = Callable[[Any, Any], Any]
Listener = Callable[[], None]
Unsubscribe = Callable[[], None]
StoreCreator = Callable[..., "Store"]
Enhancer = Callable[[StoreCreator], StoreCreator]

logger = logging.getLogger("oneway.store")


def _name(fn: object) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


class Store(Generic[S]):
    """Holds the current state, the reducer and the listener registry."""

    def __init__(self, reducer: Reducer, preloaded_state: S | None = None) -> None:
        if not callable(reducer):
            raise TypeError(f"Expected the reducer to be callable, got {reducer!r}")
        self._reducer = reducer
        self._state = preloaded_state
        # insertion order is registration order; keys keep duplicates distinct
        self._listeners: dict[int, Listener] = {}
        self._listener_ids = itertools.count(1)
        self._lock = threading.RLock()
        self._dispatching = False
        self.dispatch({"type": ActionTypes.INIT})

    def get_state(self) -> S:
        """Return the current state.

        Lock-free: the state is a single reference, swapped only by dispatch.
        """
        return self._state

    def dispatch(self, action: Any) -> S:
        """Apply action through the reducer, commit, notify. Returns the new state."""
        kind = action_type(action)
        with self._lock:
            if self._dispatching:
                raise ReentrantDispatchError(
                    f"Cannot dispatch {kind!r} while another dispatch is in progress. "
                    "Reducers and listeners may not dispatch."
                )
            self._dispatching = True
            try:
                next_state = self._reducer(self._state, action)
                if next_state is None:
                    raise UndefinedStateError(
                        f"Reducer {_name(self._reducer)} returned None for action "
                        f"{kind!r}. Return the previous state for actions it does "
                        "not handle."
                    )
                self._state = next_state
                logger.debug("Dispatched %r", kind)
                # Snapshot: (un)subscribing during the round affects the next one.
                for listener in tuple(self._listeners.values()):
                    listener()
            finally:
                self._dispatching = False
            return next_state

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register listener. Returns a function that removes it (idempotent)."""
        if not callable(listener):
            raise TypeError(f"Expected the listener to be callable, got {listener!r}")
        with self._lock:
            key = next(self._listener_ids)
            self._listeners[key] = listener

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(key, None)

        return unsubscribe

    def subscribe_with_state(
        self, listener: Listener, prime: Callable[[S], None]
    ) -> Unsubscribe:
        """Call prime(state) and register listener with no dispatch in between.

        Another thread dispatching meanwhile waits until both are done, so the
        listener sees every state after the one prime was given. If prime
        raises, nothing is registered.
        """
        with self._lock:
            prime(self._state)
            return self.subscribe(listener)

    def replace_reducer(self, next_reducer: Reducer) -> None:
        """Swap the reducer, then dispatch REPLACE so new slices get initialized."""
        if not callable(next_reducer):
            raise TypeError(
                f"Expected the next reducer to be callable, got {next_reducer!r}"
            )
        with self._lock:
            if self._dispatching:
                raise ReentrantDispatchError(
                    "Cannot replace the reducer while a dispatch is in progress."
                )
            self._reducer = next_reducer
            logger.info("Reducer replaced with %s", _name(next_reducer))
            self.dispatch({"type": ActionTypes.REPLACE})

    @property
    def listener_count(self) -> int:
        """Number of registered listeners. Useful for testing."""
        with self._lock:
            return len(self._listeners)

    def __repr__(self) -> str:
        return f"Store({_name(self._reducer)}, state={self._state!r})"


def create_store(
    reducer: Reducer,
    preloaded_state: Any = None,
    enhancer: Enhancer | None = None,
) -> Store:
    """Create a store.

    With no preloaded_state, the reducer produces the initial state from the
    INIT action (state argument None). An enhancer such as apply_middleware()
    wraps store creation.

    Usage:
        def counter(state, action):
            if state is None:
                state = {"count": 0}
            if action["type"] == "INCREMENT":
                return {**state, "count": state["count"] + 1}
            return state

        store = create_store(counter)
        store.dispatch({"type": "INCREMENT"})
        store.get_state()   # {"count": 1}
    """
    if enhancer is not None:
        if not callable(enhancer):
            raise TypeError(f"Expected the enhancer to be callable, got {enhancer!r}")
        return enhancer(create_store)(reducer, preloaded_state)
    return Store(reducer, preloaded_state)
