"""
Tests for the red flag generators and the merged feed ordering.
"""

from datetime import timedelta

import pytest

from cosmic_hub.dashboard.red_flags_engine import (
    UNKNOWN_PROJECT,
    get_project_name,
    merge_and_sort_red_flags,
    process_anomaly_flags,
    process_blocker_flags,
    process_deadline_flags,
    process_pending_approval_flags,
    process_stale_flags,
    process_unassigned_flags,
)
from cosmic_hub.dashboard.types import (
    DeadlineRisk,
    FlagSeverity,
    FlagType,
    RedFlag,
    RelatedEntity,
    RiskLevel,
)
from tests.fixtures import NOW, days_from_now, iso, make_subtask

WORKER = {"id": "u-w1", "full_name": "Wanda Worker"}


def make_flag(id, severity, created_at):
    return RedFlag(
        id=id,
        type=FlagType.STALE,
        severity=severity,
        title=id,
        description="",
        related_entity=RelatedEntity(type="subtask", id=id, name=id),
        project_name="Apollo",
        created_at=created_at,
    )


def blocked(id="s-1", days=0.0, **kw):
    return make_subtask(id, f"Blocked {id}", status="blocked", updated_at=days_from_now(-days), **kw)


def severities(flags):
    return [f.severity for f in flags]


class TestProjectName:
    def test_nested_parent_task(self):
        assert get_project_name(make_subtask(parent_id="t-2")) == "Gemini"

    def test_direct_project(self):
        assert get_project_name({"project": {"name": "Direct"}}) == "Direct"

    def test_module_project(self):
        assert get_project_name({"module": {"project": {"name": "Via module"}}}) == "Via module"

    def test_fallback(self):
        assert get_project_name(make_subtask(parent_id=None)) == UNKNOWN_PROJECT


class TestDeadlineFlags:
    def test_keeps_only_critical_and_high(self):
        items = [
            {"subtask": make_subtask("s-1"), "risk": DeadlineRisk(level=RiskLevel.CRITICAL, reason="Overdue by 2 days")},
            {"subtask": make_subtask("s-2"), "risk": DeadlineRisk(level=RiskLevel.HIGH, reason="Due in 2 days")},
            {"subtask": make_subtask("s-3"), "risk": DeadlineRisk(level=RiskLevel.MEDIUM, reason="Due in 6 days")},
            {"subtask": make_subtask("s-4"), "risk": DeadlineRisk(level=RiskLevel.LOW, reason="on track")},
            {"subtask": make_subtask("s-5"), "risk": DeadlineRisk()},
        ]
        flags = process_deadline_flags(items)
        assert [f.id for f in flags] == ["deadline-s-1", "deadline-s-2"]
        assert severities(flags) == [FlagSeverity.CRITICAL, FlagSeverity.HIGH]

    def test_flag_shape(self):
        row = make_subtask(
            "s-9", "Ship it", assigned_user=WORKER, updated_at=days_from_now(-1)
        )
        risk = DeadlineRisk(
            level=RiskLevel.CRITICAL,
            reason="Overdue by 2 days",
            hours_logged=6,
            estimated_hours=8,
            effort_percent=75,
            days_left=-2.0,
        )
        (flag,) = process_deadline_flags([{"subtask": row, "risk": risk}])

        assert flag.type == FlagType.DEADLINE
        assert "Overdue by 2 days" in flag.description
        assert flag.title == "Ship it"
        assert flag.related_entity.to_dict() == {"type": "subtask", "id": "s-9", "name": "Ship it"}
        assert flag.project_name == "Apollo"
        assert flag.assigned_to.name == "Wanda Worker"
        assert flag.metrics.estimated == 8
        assert flag.metrics.percent == 75
        assert flag.metrics.days_left == -2.0
        assert flag.created_at == days_from_now(-1)

    def test_missing_updated_at_uses_now(self):
        risk = DeadlineRisk(level=RiskLevel.HIGH, reason="Due in 2 days")
        (flag,) = process_deadline_flags([{"subtask": make_subtask("s-1"), "risk": risk}], now=NOW)
        assert flag.created_at == iso(NOW)

    def test_empty(self):
        assert process_deadline_flags([]) == []


class TestAnomalyFlags:
    def test_description_shows_logged_hours_and_overrun(self):
        row = make_subtask("s-1", "Build form", estimated_hours=20)
        (flag,) = process_anomaly_flags(
            [{"subtask": row, "hours_logged": 35, "severity": FlagSeverity.HIGH}], now=NOW
        )
        assert flag.type == FlagType.ANOMALY
        assert flag.severity == FlagSeverity.HIGH
        assert "35" in flag.description
        assert "175" in flag.description
        assert "+75%" in flag.description
        assert flag.metrics.percent == 175
        assert flag.created_at == iso(NOW)

    def test_one_flag_per_item(self):
        items = [
            {"subtask": make_subtask(f"s-{i}", estimated_hours=10), "hours_logged": 12, "severity": "medium"}
            for i in range(3)
        ]
        flags = process_anomaly_flags(items, now=NOW)
        assert len(flags) == 3
        assert all(f.severity == FlagSeverity.MEDIUM for f in flags)


class TestBlockerFlags:
    def test_exactly_three_days_is_medium(self):
        (flag,) = process_blocker_flags([blocked(days=3)], now=NOW)
        assert flag.severity == FlagSeverity.MEDIUM

    def test_just_past_three_days_is_high(self):
        row = blocked()
        row["updated_at"] = iso(NOW - timedelta(days=3, hours=1))
        (flag,) = process_blocker_flags([row], now=NOW)
        assert flag.severity == FlagSeverity.HIGH

    def test_seven_days_is_high(self):
        (flag,) = process_blocker_flags([blocked(days=7)], now=NOW)
        assert flag.severity == FlagSeverity.HIGH

    def test_past_seven_days_is_critical(self):
        (flag,) = process_blocker_flags([blocked(days=7.5)], now=NOW)
        assert flag.severity == FlagSeverity.CRITICAL

    def test_ignores_non_blocked(self):
        rows = [make_subtask("s-1", status="in_progress"), make_subtask("s-2", status="done")]
        assert process_blocker_flags(rows, now=NOW) == []

    def test_description_names_blockers(self):
        deps = {
            "s-1": [
                {"dependent_task_id": "s-1", "depends_on_subtask": {"id": "s-7", "name": "Write copy"}},
                {"dependent_task_id": "s-1", "depends_on_subtask": {"id": "s-8", "name": "Legal sign-off"}},
            ]
        }
        (flag,) = process_blocker_flags([blocked("s-1", days=4)], deps, now=NOW)
        assert flag.description == "Blocked by: Write copy, Legal sign-off (4 days)"

    def test_description_without_dependencies(self):
        (flag,) = process_blocker_flags([blocked("s-1", days=2)], now=NOW)
        assert flag.description == "Blocked for 2 days"
        assert flag.metrics.days_left == -2.0

    def test_half_day_label_rounds_up(self):
        (flag,) = process_blocker_flags([blocked("s-1", days=4.5)], now=NOW)
        assert flag.description == "Blocked for 5 days"

    def test_missing_updated_at(self):
        row = make_subtask("s-1", status="blocked")
        (flag,) = process_blocker_flags([row], now=NOW)
        assert flag.severity == FlagSeverity.MEDIUM
        assert flag.created_at == iso(NOW)


class TestStaleFlags:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (4.9, None),
            (5, FlagSeverity.MEDIUM),
            (9.9, FlagSeverity.MEDIUM),
            (10, FlagSeverity.HIGH),
            (30, FlagSeverity.HIGH),
        ],
    )
    def test_severity_by_idle_days(self, days, expected):
        flags = process_stale_flags([{"subtask": make_subtask(), "days_without_activity": days}])
        assert severities(flags) == ([expected] if expected else [])

    def test_description(self):
        (flag,) = process_stale_flags([{"subtask": make_subtask(), "days_without_activity": 12}])
        assert flag.type == FlagType.STALE
        assert flag.description == "No activity for 12 days"

    def test_half_day_label_rounds_up(self):
        (flag,) = process_stale_flags([{"subtask": make_subtask(), "days_without_activity": 12.5}])
        assert flag.description == "No activity for 13 days"

    def test_created_at_never_empty(self):
        (flag,) = process_stale_flags(
            [{"subtask": make_subtask(updated_at=None), "days_without_activity": 6}], now=NOW
        )
        assert flag.created_at == iso(NOW)

        row = make_subtask(updated_at=days_from_now(-6))
        (flag,) = process_stale_flags([{"subtask": row, "days_without_activity": 6}], now=NOW)
        assert flag.created_at == days_from_now(-6)


class TestUnassignedFlags:
    @pytest.mark.parametrize(
        "stars,expected",
        [
            (0, None),
            (1, None),
            (None, None),
            (2, FlagSeverity.MEDIUM),
            (3, FlagSeverity.HIGH),
            (5, FlagSeverity.HIGH),
        ],
    )
    def test_severity_by_priority(self, stars, expected):
        row = make_subtask()
        row["priority_stars"] = stars
        flags = process_unassigned_flags([row], now=NOW)
        assert severities(flags) == ([expected] if expected else [])

    def test_assigned_work_never_flags(self):
        row = make_subtask(priority_stars=5, assigned_user=WORKER)
        assert process_unassigned_flags([row], now=NOW) == []

    def test_flag_shape(self):
        (flag,) = process_unassigned_flags([make_subtask("s-4", priority_stars=3)], now=NOW)
        assert flag.id == "unassigned-s-4"
        assert flag.assigned_to is None
        assert flag.created_at == iso(NOW)


class TestPendingApprovalFlags:
    def request(self, days, id="r-1"):
        return {
            "id": id,
            "task_name": "New landing page",
            "created_at": days_from_now(-days),
            "module": {"name": "Web", "project": {"id": "p-1", "name": "Apollo"}},
        }

    @pytest.mark.parametrize(
        "days,expected",
        [
            (2.9, None),
            (3, FlagSeverity.MEDIUM),
            (5, FlagSeverity.MEDIUM),
            (7, FlagSeverity.MEDIUM),
            (7.5, FlagSeverity.HIGH),
        ],
    )
    def test_severity_by_age(self, days, expected):
        flags = process_pending_approval_flags([self.request(days)], now=NOW)
        assert severities(flags) == ([expected] if expected else [])

    def test_flag_shape(self):
        (flag,) = process_pending_approval_flags([self.request(9)], now=NOW)
        assert flag.type == FlagType.PENDING_APPROVAL
        assert flag.related_entity.type == "task"
        assert flag.project_name == "Apollo"
        assert flag.description == "Pending for 9 days"

    def test_half_day_label_rounds_up(self):
        (flag,) = process_pending_approval_flags([self.request(8.5)], now=NOW)
        assert flag.description == "Pending for 9 days"

    def test_missing_created_at_skipped(self):
        req = self.request(9)
        req["created_at"] = None
        assert process_pending_approval_flags([req], now=NOW) == []


class TestMergeAndSort:
    def test_severity_first(self):
        flags = [
            make_flag("m", FlagSeverity.MEDIUM, days_from_now(0)),
            make_flag("c", FlagSeverity.CRITICAL, days_from_now(-9)),
            make_flag("h", FlagSeverity.HIGH, days_from_now(-1)),
        ]
        assert [f.id for f in merge_and_sort_red_flags(flags)] == ["c", "h", "m"]

    def test_most_recent_first_within_tier(self):
        flags = [
            make_flag("old", FlagSeverity.HIGH, days_from_now(-5)),
            make_flag("new", FlagSeverity.HIGH, days_from_now(-1)),
            make_flag("mid", FlagSeverity.HIGH, days_from_now(-3)),
        ]
        assert [f.id for f in merge_and_sort_red_flags(flags)] == ["new", "mid", "old"]

    def test_unparseable_timestamps_last_in_tier(self):
        flags = [
            make_flag("blank", FlagSeverity.HIGH, ""),
            make_flag("dated", FlagSeverity.HIGH, days_from_now(-30)),
            make_flag("crit", FlagSeverity.CRITICAL, "not-a-date"),
        ]
        assert [f.id for f in merge_and_sort_red_flags(flags)] == ["crit", "dated", "blank"]

    def test_input_untouched(self):
        flags = [
            make_flag("m", FlagSeverity.MEDIUM, days_from_now(0)),
            make_flag("c", FlagSeverity.CRITICAL, days_from_now(0)),
        ]
        before = list(flags)
        merged = merge_and_sort_red_flags(flags)
        assert flags == before
        assert merged is not flags

    def test_empty(self):
        assert merge_and_sort_red_flags([]) == []
