# app/core/test_optimistic.py
import pytest

from app.core.optimistic import OptimisticState, OptimisticUpdate


class Counter:
    def __init__(self):
        self.value = 0


def make_increment(counter):
    def apply():
        counter.value += 1

    def revert():
        counter.value -= 1
    return apply, revert


def test_apply_runs_immediately():
    counter = Counter()
    update = OptimisticUpdate(*make_increment(counter))
    assert counter.value == 1
    assert update.state is OptimisticState.APPLIED


def test_resolve_confirms_on_success():
    counter = Counter()
    update = OptimisticUpdate(*make_increment(counter))
    assert update.resolve(lambda: "ok") == "ok"
    assert update.state is OptimisticState.CONFIRMED
    assert update.result == "ok"
    assert counter.value == 1


def test_resolve_reverts_and_reraises_on_failure():
    counter = Counter()
    update = OptimisticUpdate(*make_increment(counter), label="like:p1")

    def fail():
        raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        update.resolve(fail)
    assert update.state is OptimisticState.REVERTED
    assert isinstance(update.error, ConnectionError)
    assert counter.value == 0


def test_terminal_states_cannot_transition():
    counter = Counter()
    update = OptimisticUpdate(*make_increment(counter))
    update.revert()
    with pytest.raises(RuntimeError):
        update.confirm()
    with pytest.raises(RuntimeError):
        update.revert()
    assert counter.value == 0
