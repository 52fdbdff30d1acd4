"""
Unit tests for BatchAccumulator.
"""

import threading

import pytest

from loganalytics_output.coordinator import BatchAccumulator


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def test_add_returns_batch_size_per_key():
    acc = BatchAccumulator[int]()
    assert acc.add("a", 1) == 1
    assert acc.add("a", 2) == 2
    assert acc.add("b", 3) == 1
    assert acc.size("a") == 2
    assert len(acc) == 3


def test_should_flush_at_threshold():
    acc = BatchAccumulator[int](flush_items=2)
    acc.add("a", 1)
    assert not acc.should_flush("a")
    acc.add("a", 2)
    assert acc.should_flush("a")
    assert not acc.should_flush("b")


def test_without_threshold_never_count_flushes():
    acc = BatchAccumulator[int]()
    for i in range(1000):
        acc.add("a", i)
    assert not acc.should_flush("a")


def test_invalid_threshold():
    with pytest.raises(ValueError):
        BatchAccumulator[int](flush_items=0)


def test_drain_returns_in_order_and_resets():
    acc = BatchAccumulator[int](flush_items=10)
    for i in range(5):
        acc.add("a", i)
    acc.add("b", 99)

    assert acc.drain("a") == [0, 1, 2, 3, 4]
    assert acc.size("a") == 0
    assert acc.drain("a") == []
    assert acc.keys() == ["b"]

    acc.add("a", 5)
    assert acc.drain("a") == [5]


def test_drain_unknown_key_is_empty():
    assert BatchAccumulator[int]().drain("nope") == []


def test_drain_all_keeps_first_seen_order():
    acc = BatchAccumulator[str]()
    acc.add("y", "y1")
    acc.add("x", "x1")
    acc.add("y", "y2")
    out = acc.drain_all()
    assert list(out) == ["y", "x"]
    assert out == {"y": ["y1", "y2"], "x": ["x1"]}
    assert len(acc) == 0
    assert acc.drain_all() == {}


def test_age_tracking_uses_first_document_since_drain():
    clock = FakeClock(100.0)
    acc = BatchAccumulator[int](clock=clock)
    assert acc.seconds_until_due(5.0) is None

    acc.add("a", 1)
    clock.t = 102.0
    acc.add("a", 2)  # does not reopen the batch
    acc.add("b", 3)
    assert acc.seconds_until_due(5.0) == pytest.approx(3.0)
    assert acc.due_keys(5.0) == []

    clock.t = 105.0
    assert acc.due_keys(5.0) == ["a"]

    acc.drain("a")
    assert acc.due_keys(5.0) == []
    clock.t = 107.0
    assert acc.due_keys(5.0) == ["b"]
    assert acc.seconds_until_due(5.0) == 0.0


def test_concurrent_producers_never_lose_or_duplicate():
    """N producer threads racing a draining thread: every document drained once."""
    acc = BatchAccumulator[tuple]()
    producers, per_producer = 8, 2000
    drained: list = []
    stop = threading.Event()

    def produce(pid: int) -> None:
        for i in range(per_producer):
            acc.add("k", (pid, i))

    def drain_loop() -> None:
        while not stop.is_set():
            drained.extend(acc.drain("k"))

    drainer = threading.Thread(target=drain_loop)
    drainer.start()
    threads = [threading.Thread(target=produce, args=(p,)) for p in range(producers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    stop.set()
    drainer.join()
    drained.extend(acc.drain("k"))

    assert len(drained) == producers * per_producer
    assert len(set(drained)) == producers * per_producer
    # per-producer arrival order survives draining
    for pid in range(producers):
        seq = [i for p, i in drained if p == pid]
        assert seq == list(range(per_producer))


def test_drained_keys_are_forgotten():
    """One-off templated keys do not leave empty entries behind."""
    acc = BatchAccumulator[int]()
    for i in range(10):
        acc.add(f"k{i}", i)
        acc.drain(f"k{i}")
    acc.add("x", 1)
    acc.add("y", 2)
    acc.drain_all()

    assert acc._batches == {}
    assert acc._opened_at == {}


def test_excluded_keys_are_not_due():
    clock = FakeClock(0.0)
    acc = BatchAccumulator[int](clock=clock)
    acc.add("busy", 1)
    clock.t = 1.0
    acc.add("idle", 2)

    clock.t = 5.0
    assert acc.due_keys(5.0, exclude={"busy"}) == []
    assert acc.seconds_until_due(5.0, exclude={"busy"}) == pytest.approx(1.0)
    assert acc.seconds_until_due(5.0, exclude={"busy", "idle"}) is None
    clock.t = 6.0
    assert acc.due_keys(5.0, exclude={"busy"}) == ["idle"]
