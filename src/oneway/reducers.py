"""Reducer helpers — declaring initial state and composing named slices."""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping
from typing import Any, Callable, TypeVar

from oneway.actions import ActionTypes
from oneway.errors import UndefinedStateError
from oneway.store import Reducer

S = TypeVar("S")

logger = logging.getLogger("oneway.reducers")


def reducer(initial: S) -> Callable[[Callable[[S, Any], S]], Reducer]:
    """Decorator: declare a reducer's initial state.

    The wrapped function never sees None: a missing state is replaced by
    ``initial`` before the call. combine_reducers also hands ``initial`` to
    the reducer when its slice is missing from the combined state.

    Usage:
        @reducer(initial=0)
        def count(state, action):
            if action["type"] == "INCREMENT":
                return state + 1
            return state
    """

    def decorate(fn: Callable[[S, Any], S]) -> Reducer:
        @functools.wraps(fn)
        def wrapper(state, action):
            return fn(initial if state is None else state, action)

        wrapper.initial_state = initial
        return wrapper

    return decorate


def _assert_reducer_shape(key: str, sub: Reducer) -> None:
    if sub(None, {"type": ActionTypes.INIT}) is None:
        raise UndefinedStateError(
            f"Reducer for key {key!r} returned None during initialization. "
            "It must return its initial state when the state argument is None."
        )
    if sub(None, {"type": ActionTypes.probe_unknown_action()}) is None:
        raise UndefinedStateError(
            f"Reducer for key {key!r} returned None for an unknown action type. "
            "Do not handle the reserved @@oneway action types."
        )


def combine_reducers(reducers: Mapping[str, Reducer]) -> Reducer:
    """Build one reducer whose state is a mapping of independently reduced slices.

    Each sub-reducer gets its own slice and the full action. A missing slice is
    the sub-reducer's ``initial_state`` attribute if it declares one (see
    reducer()), else None. When no slice
    changes (every sub-reducer returns its input object), the combined reducer
    returns the input state object itself, so consumers comparing by identity
    see "unchanged".
    """
    for key, sub in reducers.items():
        if not callable(sub):
            raise TypeError(f"Reducer for key {key!r} is not callable: {sub!r}")
    final = dict(reducers)
    for key, sub in final.items():
        _assert_reducer_shape(key, sub)
    warned: set[str] = set()

    def combination(state, action):
        if state is None:
            state = {}
        elif not isinstance(state, Mapping):
            raise TypeError(
                "combine_reducers expects the state to be a mapping, got "
                f"{type(state).__name__}"
            )

        for key in state:
            if key not in final and key not in warned:
                warned.add(key)
                logger.warning(
                    "Unexpected key %r in state; expected one of %s. It will be dropped.",
                    key, sorted(final),
                )

        changed = False
        next_state = {}
        for key, sub in final.items():
            previous = state[key] if key in state else getattr(sub, "initial_state", None)
            value = sub(previous, action)
            if value is None:
                raise UndefinedStateError(
                    f"Reducer for key {key!r} returned None while handling {action!r}. "
                    "Return the previous slice for actions it does not handle."
                )
            next_state[key] = value
            changed = changed or value is not previous or key not in state
        changed = changed or len(final) != len(state)
        return next_state if changed else state

    return combination
