"""Actions — inert records describing what happened.

An action is anything carrying a ``type`` discriminator: a mapping with a
``"type"`` key, or an object with a ``type`` attribute. ``Action`` is the
frozen dataclass shipped for convenience.
"""

from __future__ import annotations

import functools
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from oneway.errors import InvalidActionError


@dataclass(frozen=True)
class Action:
    """Typed action with an optional payload mapping."""

    type: Any
    payload: Mapping[str, Any] | None = None


class ActionTypes:
    """Action types reserved by the store. Reducers must not handle them."""

    INIT = "@@oneway/INIT"
    REPLACE = "@@oneway/REPLACE"

    @staticmethod
    def probe_unknown_action() -> str:
        """A fresh type that no reducer can know about."""
        return f"@@oneway/PROBE_UNKNOWN_ACTION.{secrets.token_hex(4)}"


_MISSING = object()


def action_type(action: object) -> Any:
    """Return the discriminator of an action.

    Raises InvalidActionError if there is none (or it is None).
    """
    if isinstance(action, Mapping):
        kind = action.get("type", _MISSING)
    else:
        kind = getattr(action, "type", _MISSING)
    if kind is _MISSING or kind is None:
        raise InvalidActionError(
            f"Actions must have a 'type' that is not None; got {action!r}"
        )
    return kind


def _bind_one(creator: Callable[..., object], dispatch: Callable[[object], object]):
    @functools.wraps(creator)
    def bound(*args, **kwargs):
        return dispatch(creator(*args, **kwargs))

    return bound


def bind_action_creators(creators, dispatch):
    """Wrap action creators so that calling them dispatches their result.

    Accepts a single creator (returns one bound callable) or a mapping of
    names to creators (returns a dict of bound callables). Non-callable
    entries in the mapping are skipped.

    Usage:
        increment = lambda by=1: {"type": "INCREMENT", "by": by}
        bound = bind_action_creators({"increment": increment}, store.dispatch)
        bound["increment"](2)   # store.dispatch({"type": "INCREMENT", "by": 2})
    """
    if callable(creators):
        return _bind_one(creators, dispatch)
    if not isinstance(creators, Mapping):
        raise TypeError(
            "bind_action_creators expected a callable or a mapping of "
            f"callables, got {type(creators).__name__}"
        )
    return {
        name: _bind_one(creator, dispatch)
        for name, creator in creators.items()
        if callable(creator)
    }
