"""oneway: unidirectional state container with a connector layer."""

from importlib.metadata import version as _version

__version__ = _version("oneway")

from oneway.errors import (
    OnewayError,
    InvalidActionError,
    UndefinedStateError,
    ReentrantDispatchError,
    SelectorError,
    NoStoreError,
)
from oneway.actions import Action, ActionTypes, action_type, bind_action_creators
from oneway.store import Store, create_store
from oneway.reducers import combine_reducers, reducer
from oneway.middleware import MiddlewareAPI, apply_middleware, compose, logging_middleware
from oneway.scope import current_store, provide, with_scope
from oneway.connect import ConnectedConsumer, Connection, connect, shallow_equal
# textual NOT auto-imported — opt-in only

__all__ = [
    "OnewayError",
    "InvalidActionError",
    "UndefinedStateError",
    "ReentrantDispatchError",
    "SelectorError",
    "NoStoreError",
    "Action",
    "ActionTypes",
    "action_type",
    "bind_action_creators",
    "Store",
    "create_store",
    "combine_reducers",
    "reducer",
    "MiddlewareAPI",
    "apply_middleware",
    "compose",
    "logging_middleware",
    "current_store",
    "provide",
    "with_scope",
    "Connection",
    "ConnectedConsumer",
    "connect",
    "shallow_equal",
]
