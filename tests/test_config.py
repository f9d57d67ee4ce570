"""
Tests for settings loading.
"""

from decimal import Decimal

import pytest

from money_buddy.config import read_rate


class TestReadRate:

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("TRANSACTION_FEE_RATE", raising=False)
        assert read_rate("TRANSACTION_FEE_RATE", "0.03") == Decimal("0.03")

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("EARLY_WITHDRAWAL_PENALTY_RATE", "0.1")
        assert read_rate("EARLY_WITHDRAWAL_PENALTY_RATE", "0.05") == Decimal("0.1")

    def test_bounds_are_inclusive(self, monkeypatch):
        monkeypatch.setenv("TRANSACTION_FEE_RATE", "0")
        assert read_rate("TRANSACTION_FEE_RATE", "0.03") == Decimal("0")
        monkeypatch.setenv("TRANSACTION_FEE_RATE", "1")
        assert read_rate("TRANSACTION_FEE_RATE", "0.03") == Decimal("1")

    def test_rate_above_one_rejected(self, monkeypatch):
        monkeypatch.setenv("EARLY_WITHDRAWAL_PENALTY_RATE", "1.5")
        with pytest.raises(ValueError, match="between 0 and 1"):
            read_rate("EARLY_WITHDRAWAL_PENALTY_RATE", "0.05")

    def test_negative_rate_rejected(self, monkeypatch):
        monkeypatch.setenv("TRANSACTION_FEE_RATE", "-0.01")
        with pytest.raises(ValueError, match="between 0 and 1"):
            read_rate("TRANSACTION_FEE_RATE", "0.03")
