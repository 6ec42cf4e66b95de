"""
Tests for retry backoff.
"""

import pytest

from mongo_queue.message_queue.backoff import compute_backoff_ms


class TestComputeBackoff:

    def test_zero_base_is_immediate(self):
        assert compute_backoff_ms(3, retry_limit=10, backoff_ms=0, backoff_coefficient=1.5) == 0

    @pytest.mark.parametrize("retry_count,expected", [
        (1, 1000.0),
        (2, 2828.43),
        (3, 5196.15),
        (4, 8000.0),
    ])
    def test_default_coefficient_growth(self, retry_count, expected):
        delay = compute_backoff_ms(retry_count, retry_limit=10, backoff_ms=1000, backoff_coefficient=1.5)
        assert delay == pytest.approx(expected, abs=0.01)

    def test_custom_coefficient(self):
        assert compute_backoff_ms(3, retry_limit=10, backoff_ms=100, backoff_coefficient=2) == 900

    def test_budget_exhausting_failure_is_immediate(self):
        assert compute_backoff_ms(5, retry_limit=5, backoff_ms=1000, backoff_coefficient=1.5) == 0

    def test_unlimited_retries_always_back_off(self):
        assert compute_backoff_ms(1, retry_limit=-1, backoff_ms=50, backoff_coefficient=1.5) == 50
