"""Textual integration for oneway. Opt-in — requires textual.

connect() mounts a Connection whose change signal drives Textual widgets.
The effect sees the connection's merged props (selected state plus bound
actions) and only for rounds where the selected props changed; rounds that
leave them shallow-equal never reach the app.

A dispatch holds the store lock for its whole notification round, so the
signal never waits on the UI thread. A change raised on another thread is
handed over with app.call_later, which goes through the app's thread-safe
message queue and returns at once. The effect then runs on the UI thread.

While an app is paused (widgets being replaced) the latest props of each
connection are held back and delivered when the pause ends. NoMatches from
widget queries inside the effect is ignored.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from oneway.connect import Connection
from oneway.scope import current_store

# id(app) while inside pause(app).
_paused_apps: set[int] = set()

# id(app) -> {signal: latest props held back during the pause}
_held: dict[int, dict] = {}


@contextmanager
def pause(app):
    """Hold back change effects for app; deliver the latest ones on exit."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)
        for signal, props in _held.pop(key, {}).items():
            signal.deliver(props)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


class _Signal:
    """Change signal of one connection, delivered on the app's thread."""

    __slots__ = ("app", "effect", "connection", "_thread", "_version")

    def __init__(self, app, effect) -> None:
        self.app = app
        self.effect = effect
        self.connection: Connection | None = None
        self._thread = threading.get_ident()
        # bumped per change; a queued delivery older than this is stale
        self._version = 0

    def __call__(self, props) -> None:
        self._version += 1
        if threading.get_ident() != self._thread:
            # Must not block: the dispatching thread holds the store lock.
            self.app.call_later(self._deliver_queued, props, self._version)
        else:
            self.deliver(props)

    def _deliver_queued(self, props, version) -> None:
        if version == self._version:
            self.deliver(props)

    def deliver(self, props) -> None:
        if self.connection is not None and self.connection.disposed:
            return
        if id(self.app) in _paused_apps:
            _held.setdefault(id(self.app), {})[self] = props
            return
        if not self.app.is_running:
            return
        try:
            self.effect(props)
        except NoMatches:
            pass


def connect(app, selector, effect, *, binder=None, store=None, fire_immediately=False):
    """Connection whose prop changes are applied to app's widgets.

    Call it from the app's thread (e.g. in on_mount); that is the thread the
    effect runs on. The store defaults to the nearest provided one. With
    fire_immediately the effect also runs once with the initial props.
    Dispose the returned connection when the screen or app goes away.

    Usage:
        class CounterApp(App):
            def on_mount(self):
                self._connection = stx.connect(
                    self,
                    lambda state: {"count": state["count"]},
                    lambda props: self.query_one("#count", Label).update(str(props["count"])),
                    store=self.store,
                    fire_immediately=True,
                )

            def on_unmount(self):
                self._connection.dispose()
    """
    if store is None:
        store = current_store()
    signal = _Signal(app, effect)
    connection = Connection(store, selector, binder, signal)
    signal.connection = connection
    if fire_immediately:
        signal(connection.merged_props)
    return connection
