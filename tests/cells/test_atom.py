"""Tests for Atom and RetryPolicy."""

import threading as _threading

import pytest as _pytest

import nestmap.cells as cells
import nestmap.config as config
import nestmap.errors as errors
import nestmap.maps as maps


def _increment(n: int) -> int:
    return n + 1


class TestAtomBasics:
    """Reading and unconditional writes."""

    def test_deref_and_value(self) -> None:
        """deref() and .value return the current value."""
        atom = cells.Atom(maps.Map(a=1))

        assert atom.deref() == {"a": 1}
        assert atom.value is atom.deref()

    def test_default_value_is_none(self) -> None:
        """An atom created without a value holds None."""
        assert cells.Atom().deref() is None

    def test_reset(self) -> None:
        """reset installs the new value and returns it."""
        atom = cells.Atom(1)

        assert atom.reset(2) == 2
        assert atom.deref() == 2

    def test_reset_vals(self) -> None:
        """reset_vals returns (old, new)."""
        atom = cells.Atom("a")

        assert atom.reset_vals("b") == ("a", "b")

    def test_repr(self) -> None:
        """repr shows the class and the value."""
        assert repr(cells.Atom(5)) == "<Atom 5>"


class TestAtomSwap:
    """swap applies a function atomically."""

    def test_swap_returns_new_value(self) -> None:
        """swap passes the current value and extra arguments to fn."""
        atom = cells.Atom(maps.Map())

        result = atom.swap(maps.assoc_in, ["author", "name"], "Ada")

        assert result == {"author": {"name": "Ada"}}
        assert atom.deref() is result

    def test_swap_vals_returns_pair(self) -> None:
        """swap_vals returns the value fn saw and the installed value."""
        atom = cells.Atom(10)

        assert atom.swap_vals(_increment) == (10, 11)

    def test_swap_keyword_arguments(self) -> None:
        """Keyword arguments are forwarded to fn."""
        atom = cells.Atom(maps.Map())

        atom.swap(maps.update_in, ["counts"], maps.assoc, "hits", 1)

        assert atom.deref() == {"counts": {"hits": 1}}

    def test_previous_value_untouched(self) -> None:
        """Values held earlier are not changed by later swaps."""
        atom = cells.Atom(maps.freeze({"a": {"b": 1}}))
        before = atom.deref()

        atom.swap(maps.assoc_in, ["a", "b"], 2)

        assert before == {"a": {"b": 1}}
        assert atom.deref() == {"a": {"b": 2}}

    def test_fn_error_leaves_value(self) -> None:
        """An exception from fn propagates and nothing is installed."""
        atom = cells.Atom(1)

        with _pytest.raises(ZeroDivisionError):
            atom.swap(lambda n: n / 0)

        assert atom.deref() == 1

    def test_concurrent_increments(self) -> None:
        """No increment is lost under contention."""
        atom = cells.Atom(0)
        threads_count = 8
        per_thread = 250

        def work() -> None:
            for _ in range(per_thread):
                atom.swap(_increment)

        threads = [_threading.Thread(target=work) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert atom.deref() == threads_count * per_thread

    def test_concurrent_nested_updates(self) -> None:
        """Concurrent update_in calls on different keys all land."""
        atom = cells.Atom(maps.Map())

        def work(name: str) -> None:
            for _ in range(100):
                atom.swap(maps.update_in, ["hits", name], lambda n: (n or 0) + 1)

        threads = [
            _threading.Thread(target=work, args=(f"t{i}",)) for i in range(4)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert atom.deref()["hits"] == {"t0": 100, "t1": 100, "t2": 100, "t3": 100}


class TestAtomCompareAndSet:
    """compare_and_set compares by identity."""

    def test_succeeds_on_current_value(self) -> None:
        """The value is replaced when old is the current value."""
        current = maps.Map(a=1)
        atom = cells.Atom(current)

        assert atom.compare_and_set(current, maps.Map(a=2)) is True
        assert atom.deref() == {"a": 2}

    def test_fails_on_equal_but_distinct_value(self) -> None:
        """An equal but different object does not match."""
        atom = cells.Atom(maps.Map(a=1))

        assert atom.compare_and_set(maps.Map(a=1), maps.Map(a=2)) is False
        assert atom.deref() == {"a": 1}


class TestAtomContention:
    """Retry limits."""

    def test_contention_error_after_retries(self) -> None:
        """A swap that always loses the race gives up after max_retries."""
        atom = cells.Atom([], retry=cells.RetryPolicy(max_retries=2))
        calls = 0

        def meddle(value: list[int]) -> list[int]:
            nonlocal calls
            calls += 1
            atom.reset([])
            return value + [1]

        with _pytest.raises(errors.ContentionError) as exc_info:
            atom.swap(meddle)

        assert exc_info.value.attempts == 3
        assert calls == 3

    def test_unbounded_by_default(self) -> None:
        """Without a limit the swap keeps retrying until it wins."""
        atom = cells.Atom(0)
        losses = 5

        def meddle(value: int) -> int:
            nonlocal losses
            if losses:
                losses -= 1
                atom.reset(object())
                return 0
            return 42

        assert atom.swap(meddle) == 42

    def test_backoff_sleeps_between_retries(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Retry n sleeps n * backoff_seconds."""
        sleeps: list[float] = []
        monkeypatch.setattr("time.sleep", sleeps.append)
        atom = cells.Atom([], retry=cells.RetryPolicy(max_retries=3, backoff_seconds=0.5))

        def meddle(value: list[int]) -> list[int]:
            atom.reset([])
            return value

        with _pytest.raises(errors.ContentionError):
            atom.swap(meddle)

        assert sleeps == [0.5, 1.0, 1.5]


class TestRetryPolicy:
    """RetryPolicy validation and construction."""

    def test_defaults(self) -> None:
        """Default policy retries forever without sleeping."""
        policy = cells.RetryPolicy()

        assert policy.max_retries is None
        assert policy.backoff_seconds == 0.0
        assert not policy.exhausted(10_000)

    @_pytest.mark.parametrize(
        "kwargs",
        [{"max_retries": -1}, {"backoff_seconds": -0.1}],
    )
    def test_rejects_negative(self, kwargs: dict[str, float]) -> None:
        """Negative limits are invalid."""
        with _pytest.raises(ValueError):
            cells.RetryPolicy(**kwargs)  # type: ignore[arg-type]

    def test_from_settings(self) -> None:
        """Limits are read from the cells section."""
        settings = config.Settings(cells={"max_retries": 7, "backoff_seconds": 0.25})

        policy = cells.RetryPolicy.from_settings(settings)

        assert policy == cells.RetryPolicy(max_retries=7, backoff_seconds=0.25)


class TestAtomValidation:
    """Validators guard every write."""

    def test_initial_value_checked(self) -> None:
        """A rejected initial value raises."""
        with _pytest.raises(errors.InvalidStateError):
            cells.Atom(-1, validator=lambda n: n >= 0)

    def test_swap_rejected(self) -> None:
        """A rejected swap result is not installed."""
        atom = cells.Atom(0, validator=lambda n: n >= 0)

        with _pytest.raises(errors.InvalidStateError):
            atom.swap(lambda n: n - 1)

        assert atom.deref() == 0

    def test_reset_rejected(self) -> None:
        """reset is validated too."""
        atom = cells.Atom(0, validator=lambda n: n >= 0)

        with _pytest.raises(errors.InvalidStateError):
            atom.reset(-5)

    def test_set_validator_checks_current(self) -> None:
        """A new validator must accept the current value."""
        atom = cells.Atom(5)

        with _pytest.raises(errors.InvalidStateError):
            atom.set_validator(lambda n: n < 5)

        atom.set_validator(lambda n: n <= 5)
        assert atom.validator is not None


class TestAtomWatches:
    """Watches run after every change."""

    def test_watch_receives_change(self) -> None:
        """fn(key, cell, old, new) is called after a swap."""
        atom = cells.Atom(1)
        seen: list[tuple[object, object, object, object]] = []
        atom.add_watch("log", lambda *args: seen.append(args))

        atom.swap(_increment)

        assert seen == [("log", atom, 1, 2)]

    def test_remove_watch(self) -> None:
        """Removed watches are not called."""
        atom = cells.Atom(1)
        seen: list[object] = []
        atom.add_watch("log", lambda *args: seen.append(args))
        atom.remove_watch("log").remove_watch("unknown")

        atom.reset(2)

        assert seen == []
        assert atom.watches == {}

    def test_watch_not_called_on_failed_cas(self) -> None:
        """A failed compare_and_set notifies nobody."""
        atom = cells.Atom(maps.Map())
        seen: list[object] = []
        atom.add_watch("log", lambda *args: seen.append(args))

        atom.compare_and_set(maps.Map(), maps.Map(a=1))

        assert seen == []
