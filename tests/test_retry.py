import pytest

from ibcrelay.retry import RETRY_ATTEMPTS, Unrecoverable, retry


def _flaky(failures, result="done"):
    calls = {"count": 0}

    def fn():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise RuntimeError(f"failure {calls['count']}")
        return result

    return fn, calls


def test_returns_value_on_first_success():
    fn, calls = _flaky(0, result=42)
    assert retry(fn, attempts=3, delay=0) == 42
    assert calls["count"] == 1


def test_retries_until_success_and_reports_attempts():
    fn, calls = _flaky(2)
    seen = []
    assert retry(fn, attempts=5, delay=0, on_retry=lambda n, err: seen.append((n, str(err)))) == "done"
    assert calls["count"] == 3
    assert seen == [(0, "failure 1"), (1, "failure 2")]


def test_raises_last_error_when_exhausted():
    fn, calls = _flaky(10)
    seen = []
    with pytest.raises(RuntimeError, match="failure 3"):
        retry(fn, attempts=3, delay=0, on_retry=lambda n, err: seen.append(n))
    assert calls["count"] == 3
    assert seen == [0, 1, 2]


def test_default_attempts():
    fn, calls = _flaky(100)
    with pytest.raises(RuntimeError):
        retry(fn, delay=0)
    assert calls["count"] == RETRY_ATTEMPTS


def test_unrecoverable_stops_immediately():
    calls = {"count": 0}
    seen = []

    def fn():
        calls["count"] += 1
        raise Unrecoverable(KeyError("stop"))

    with pytest.raises(KeyError):
        retry(fn, attempts=5, delay=0, on_retry=lambda n, err: seen.append(n))
    assert calls["count"] == 1
    assert seen == []


def test_attempts_must_be_positive():
    with pytest.raises(ValueError):
        retry(lambda: 1, attempts=0)