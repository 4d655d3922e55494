import pytest

from plantservant.events import Signal


def test_emit_calls_handlers_in_order_with_args():
    signal = Signal()
    calls = []
    signal.connect(lambda *a: calls.append(("first", a)))
    signal.connect(lambda *a: calls.append(("second", a)))
    signal.emit(True, {"k": 1})
    assert calls == [("first", (True, {"k": 1})), ("second", (True, {"k": 1}))]


def test_connect_returns_handler_for_decorator_use():
    signal = Signal()
    seen = []

    def handler(value):
        seen.append(value)

    returned = signal.connect(handler)
    assert returned is handler
    assert len(signal) == 1

    signal.emit("x")
    assert seen == ["x"]


def test_disconnect_stops_delivery():
    signal = Signal()
    seen = []
    handler = seen.append
    signal.connect(handler)
    signal.disconnect(handler)
    signal.emit(1)
    assert seen == []
    assert len(signal) == 0


def test_disconnect_unknown_handler_raises():
    signal = Signal()
    with pytest.raises(ValueError):
        signal.disconnect(print)


def test_handler_added_during_emit_waits_for_next_emit():
    signal = Signal()
    seen = []

    def late(value):
        seen.append(("late", value))

    def adder(value):
        seen.append(("adder", value))
        signal.connect(late)

    signal.connect(adder)
    assert len(signal) == 1
    signal.emit(1)
    assert seen == [("adder", 1)]
    assert len(signal) == 2
    signal.emit(2)
    assert seen == [("adder", 1), ("adder", 2), ("late", 2)]