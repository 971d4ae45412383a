"""Tests for timeout-bounded repository calls."""

import threading

import pytest

from rentals.application.bounded_call import call_with_timeout
from rentals.domain.exceptions import (
    EntityNotFoundError,
    PersistenceError,
    PersistenceTimeoutError,
)


class TestCallWithTimeout:

    def test_returns_result(self):
        assert call_with_timeout(lambda a, b=0: a + b, 2, b=3, timeout=1) == 5

    def test_slow_call_times_out(self):
        gate = threading.Event()
        try:
            with pytest.raises(PersistenceTimeoutError, match="did not answer"):
                call_with_timeout(gate.wait, 5, timeout=0.05)
        finally:
            gate.set()

    def test_domain_errors_propagate(self):
        def fetch():
            raise EntityNotFoundError("Order 7 not found")

        with pytest.raises(EntityNotFoundError):
            call_with_timeout(fetch, timeout=1)

    def test_other_errors_wrapped(self):
        def fetch():
            raise OSError("disk unplugged")

        with pytest.raises(PersistenceError, match="disk unplugged"):
            call_with_timeout(fetch, timeout=1)
