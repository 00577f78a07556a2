"""Tests for structured logging helpers."""

import pytest

from pennyekart.utils.logging import (
    correlation_context,
    get_correlation_id,
    log_timing,
    mask_mobile,
    mask_sensitive_data,
)
from pennyekart.utils.settings import get_hierarchy_max_depth


@pytest.mark.unit
def test_mask_mobile():
    assert mask_mobile("9876543210") == "******3210"
    assert mask_mobile("123") == "***"
    assert mask_mobile(None) is None


@pytest.mark.unit
def test_mask_sensitive_data():
    text = 'duplicate key (mobile)=(9876543210) x-admin-token: eyJhZG1pbl9pZCI6ImEifQ.abcdef'

    masked = mask_sensitive_data(text)

    assert "9876543210" not in masked
    assert "3210" in masked
    assert "eyJhZG1pbl9pZCI6ImEifQ" not in masked
    assert "[REDACTED]" in masked


@pytest.mark.unit
def test_correlation_context_restores_previous():
    assert get_correlation_id() is None

    with correlation_context("req-outer") as outer:
        assert outer == "req-outer"
        with correlation_context() as inner:
            assert inner.startswith("req_")
            assert get_correlation_id() == inner
        assert get_correlation_id() == "req-outer"

    assert get_correlation_id() is None


@pytest.mark.unit
def test_log_timing_reraises():
    with pytest.raises(RuntimeError):
        with log_timing("failing_operation"):
            raise RuntimeError("boom")


@pytest.mark.unit
@pytest.mark.parametrize("raw,expected", [("", 16), ("4", 4), ("zero", 16), ("-2", 16)])
def test_hierarchy_max_depth_setting(monkeypatch, raw, expected):
    monkeypatch.setenv("HIERARCHY_MAX_DEPTH", raw)

    assert get_hierarchy_max_depth() == expected
