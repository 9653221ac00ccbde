"""Tests for per-item failure isolation"""

from creative_cache.utils.batch import failures, run_isolated, successes


def test_failures_do_not_abort_batch():
    def invert(n):
        return 1 / n

    outcomes = run_isolated([1, 0, 4], invert)

    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[0].value == 1.0
    assert isinstance(outcomes[1].error, ZeroDivisionError)
    assert outcomes[2].value == 0.25
    assert [o.item for o in successes(outcomes)] == [1, 4]
    assert [o.item for o in failures(outcomes)] == [0]


def test_empty_batch():
    assert run_isolated([], lambda item: item) == []


def test_failures_are_logged(caplog):
    def boom(item):
        raise RuntimeError(f"bad {item}")

    run_isolated(["x"], boom, describe=lambda item: f"item {item}")

    assert "Skipping item x: bad x" in caplog.text
