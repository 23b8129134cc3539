"""Tests for awaited.textual — Textual host bridge."""

import threading

import pytest

pytest.importorskip("textual")
from textual.css.query import NoMatches

from awaited import Awaited, Observable
from awaited import textual as atx


class _MockApp:
    """Minimal mock matching the Textual App interface atx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


def _fetch(token):
    return f"gen-{token.generation}"


class TestBind:
    def test_pushes_records_when_safe(self):
        app = _MockApp()
        ctl = Awaited()
        effects = []
        atx.bind(app, ctl, _fetch, effects.append, deps=[1])

        # No event loop: the plain value settles during the first cycle.
        assert effects[-1].state == "resolved"
        assert effects[-1].data == "gen-1"

    def test_skips_effect_when_not_running(self):
        app = _MockApp(is_running=False)
        ctl = Awaited()
        effects = []
        atx.bind(app, ctl, _fetch, effects.append, deps=[1])
        assert effects == []
        # The subscription still ran.
        assert ctl.record.data == "gen-1"

    def test_skips_effect_during_pause(self):
        app = _MockApp()
        ctl = Awaited()
        effects = []
        atx.bind(app, ctl, _fetch, effects.append, deps=[1])
        effects.clear()

        with atx.pause(app):
            ctl.force_refresh()
        assert effects == []
        assert ctl.generation == 2

    def test_callable_deps_restart_on_change(self):
        app = _MockApp()
        ctl = Awaited()
        user_id = Observable(1)
        effects = []
        atx.bind(app, ctl, _fetch, effects.append, deps=lambda: [user_id.get()])

        user_id.set(2)
        assert ctl.generation == 2
        assert effects[-1].data == "gen-2"

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        ctl = Awaited()
        calls = [0]

        def _effect(record):
            calls[0] += 1
            raise NoMatches("StatusFooter")

        atx.bind(app, ctl, _fetch, _effect, deps=[1])
        ctl.force_refresh()
        assert calls[0] == 2

    def test_propagates_real_errors(self):
        app = _MockApp()
        ctl = Awaited()

        def _effect(record):
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            atx.bind(app, ctl, _fetch, _effect, deps=[1])

    def test_thread_marshal(self):
        """Cycles triggered from a background thread use call_from_thread."""
        app = _MockApp()
        ctl = Awaited()
        effects = []
        atx.bind(app, ctl, _fetch, effects.append, deps=[1])

        t = threading.Thread(target=ctl.force_refresh)
        t.start()
        t.join()

        assert effects[-1].data == "gen-2"
        assert len(app._call_from_thread_log) >= 1

    def test_unbind_stops_host_and_controller(self):
        app = _MockApp()
        ctl = Awaited()
        effects = []
        host = atx.bind(app, ctl, _fetch, effects.append, deps=[1])
        count = len(effects)

        atx.unbind(host, ctl)
        ctl.force_refresh()

        assert len(effects) == count
        assert host.disposed
        assert ctl.torn_down
        assert ctl.token.signaled


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert atx.is_safe(app)

        with pytest.raises(RuntimeError):
            with atx.pause(app):
                assert not atx.is_safe(app)
                raise RuntimeError("oops")

        assert atx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        app = _MockApp()
        attrs_before = set(vars(app))
        with atx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with atx.pause(app_a):
            assert not atx.is_safe(app_a)
            assert atx.is_safe(app_b)
