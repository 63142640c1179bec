"""
Tests for RiskThresholds defaults and environment overrides.
"""

import dataclasses

import pytest

from cosmic_hub.config import DEFAULT_THRESHOLDS, RiskThresholds, get_thresholds


class TestRiskThresholds:
    def test_defaults(self):
        t = RiskThresholds()
        assert t.work_hours_per_day == 8.0
        assert t.overrun_estimate_floor == 0.25
        assert t.overrun_logged_floor == 0.15
        assert t.anomaly_high_ratio == 1.5
        assert t.anomaly_critical_ratio == 2.0
        assert t.blocked_high_days == 3
        assert t.stale_medium_days == 5
        assert t.unassigned_high_stars == 3

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_THRESHOLDS.work_hours_per_day = 6

    def test_to_dict(self):
        d = DEFAULT_THRESHOLDS.to_dict()
        assert d["pending_high_days"] == 7
        assert len(d) == len(dataclasses.fields(RiskThresholds))


class TestGetThresholds:
    def test_no_overrides_returns_defaults(self):
        assert get_thresholds({}) is DEFAULT_THRESHOLDS

    def test_float_override(self):
        t = get_thresholds({"COSMIC_HUB_WORK_HOURS_PER_DAY": "6.5"})
        assert t.work_hours_per_day == 6.5
        assert t.anomaly_high_ratio == 1.5

    def test_int_override(self):
        t = get_thresholds({"COSMIC_HUB_UNASSIGNED_HIGH_STARS": "4"})
        assert t.unassigned_high_stars == 4
        assert isinstance(t.unassigned_high_stars, int)

    def test_invalid_override_ignored(self, caplog):
        with caplog.at_level("WARNING"):
            t = get_thresholds({"COSMIC_HUB_STALE_HIGH_DAYS": "ten"})
        assert t is DEFAULT_THRESHOLDS
        assert "stale_high_days" in caplog.text

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("COSMIC_HUB_LOW_DAYS", "21")
        assert get_thresholds().low_days == 21
