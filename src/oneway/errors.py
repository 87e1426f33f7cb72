"""Exception types for the store, reducers, connector and scope lookup.

All of these signal programmer errors. None are retried or swallowed by the
library: they surface at the call that caused them.
"""


class OnewayError(Exception):
    """Base class for every error raised by oneway."""


class InvalidActionError(OnewayError, TypeError):
    """Raised when a dispatched value has no ``type`` discriminator."""


class UndefinedStateError(OnewayError):
    """Raised when a reducer returns None instead of a state."""


class ReentrantDispatchError(OnewayError, RuntimeError):
    """Raised when dispatch is called while a dispatch is already running."""


class SelectorError(OnewayError):
    """Raised when a connection's selector fails. The original is __cause__."""


class NoStoreError(OnewayError, LookupError):
    """Raised when no store has been provided in the enclosing scope."""
