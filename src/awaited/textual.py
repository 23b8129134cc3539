"""Textual integration for awaited. Opt-in — requires textual.

bind() turns a controller into a Textual-aware host: it re-subscribes on every
cycle and hands the record to a widget-updating effect, but only while the
widget tree can be queried.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from awaited.reaction import autorun as _autorun

# Module-owned pause state, keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def bind(app, controller, supplier, effect, deps=None):
    """Drive controller from an autorun and push each record into effect.

    deps is either a sequence or a zero-argument callable evaluated every
    cycle; observables read by the callable re-run the host when they change.

    The subscription keeps running while the app is paused or stopped; only
    effect is skipped. Off-thread cycles are marshaled via call_from_thread
    and NoMatches from widget queries is ignored.

    Returns the reaction. Use unbind() to stop it and tear the controller down.
    """
    _main = threading.get_ident()

    def _host():
        current_deps = deps() if callable(deps) else deps
        record = controller.subscribe(supplier, current_deps)
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, record)
        else:
            _safe(record)

    def _safe(record):
        try:
            effect(record)
        except NoMatches:
            pass

    return _autorun(_host)


def unbind(host, controller) -> None:
    """Dispose a bound host and tear down its controller."""
    host.dispose()
    controller.teardown()
