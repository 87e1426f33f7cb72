"""Middleware — synchronous hooks around dispatch.

A middleware is ``middleware(api)(next_dispatch)(action)``. ``api`` exposes
get_state() and dispatch(); next_dispatch hands the action on to the next
middleware, and finally to the store.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from oneway.errors import OnewayError
from oneway.store import Enhancer, StoreCreator

Dispatch = Callable[[Any], Any]
Middleware = Callable[["MiddlewareAPI"], Callable[[Dispatch], Dispatch]]


def compose(*funcs: Callable) -> Callable:
    """Compose single-argument functions right to left.

    compose(f, g, h)(x) == f(g(h(x))). The rightmost function may take any
    arguments. With no functions, returns the identity.
    """
    if not funcs:
        return lambda arg: arg
    if len(funcs) == 1:
        return funcs[0]

    def composed(*args, **kwargs):
        result = funcs[-1](*args, **kwargs)
        for fn in reversed(funcs[:-1]):
            result = fn(result)
        return result

    return composed


class MiddlewareAPI:
    """The store surface visible to middleware."""

    __slots__ = ("get_state", "_dispatch")

    def __init__(self, get_state: Callable[[], Any], dispatch: Callable[[], Dispatch]) -> None:
        self.get_state = get_state
        self._dispatch = dispatch

    def dispatch(self, action: Any) -> Any:
        """Dispatch through the whole middleware chain."""
        return self._dispatch()(action)


def apply_middleware(*middlewares: Middleware) -> Enhancer:
    """Store enhancer running each dispatch through middlewares, left to right."""

    def enhancer(create: StoreCreator) -> StoreCreator:
        def create_store(reducer, preloaded_state=None):
            store = create(reducer, preloaded_state)

            def dispatch_while_building(action):
                raise OnewayError(
                    "Dispatching while constructing middleware is not allowed."
                )

            current = [dispatch_while_building]
            api = MiddlewareAPI(store.get_state, lambda: current[0])
            chain = [middleware(api) for middleware in middlewares]
            current[0] = compose(*chain)(store.dispatch)
            setattr(store, "dispatch", current[0])
            return store

        return create_store

    return enhancer


def logging_middleware(
    logger: logging.Logger | None = None, level: int = logging.DEBUG
) -> Middleware:
    """Middleware that logs each action and the state it produced."""
    log = logger or logging.getLogger("oneway.middleware")

    def middleware(api: MiddlewareAPI):
        def wrap(next_dispatch: Dispatch) -> Dispatch:
            def dispatch(action):
                log.log(level, "action %r", action)
                result = next_dispatch(action)
                log.log(level, "next state %r", api.get_state())
                return result

            return dispatch

        return wrap

    return middleware
