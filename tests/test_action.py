"""Tests for action batching and transaction context manager."""

from awaited import Awaited, Observable, action, autorun, transaction


def _fetch(token):
    return token.generation


class TestAction:
    def test_batches_updates(self):
        a = Observable(0)
        b = Observable(0)
        log = []
        autorun(lambda: log.append((a.get(), b.get())))
        assert log == [(0, 0)]

        @action
        def update_both():
            a.set(1)
            b.set(2)

        update_both()
        # (1, 2), never the intermediate (1, 0)
        assert log == [(0, 0), (1, 2)]

    def test_preserves_return_value(self):
        @action
        def compute():
            return 42

        assert compute() == 42

    def test_refresh_several_controllers_in_one_pass(self):
        users, orders = Awaited(), Awaited()
        runs = []

        def host():
            runs.append((users.subscribe(_fetch, []).data, orders.subscribe(_fetch, []).data))

        autorun(host)
        runs.clear()

        @action
        def refresh_all():
            users.force_refresh()
            orders.force_refresh()

        refresh_all()
        # One host pass restarted both; their plain values settle right away without a loop.
        assert runs[0] == (2, 2)
        assert users.generation == 2
        assert orders.generation == 2


class TestTransaction:
    def test_nested_transactions(self):
        o = Observable(0)
        log = []
        autorun(lambda: log.append(o.get()))

        with transaction():
            o.set(1)
            with transaction():
                o.set(2)
            o.set(3)

        assert log == [0, 3]

    def test_repeated_force_refresh_restarts_once(self):
        ctl = Awaited()
        host = autorun(lambda: ctl.subscribe(_fetch, [1]))
        assert ctl.generation == 1

        with transaction():
            ctl.force_refresh()
            ctl.force_refresh()

        assert ctl.generation == 2
        host.dispose()
