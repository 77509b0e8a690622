"""
Tests for period arithmetic and period plans.
"""

from datetime import date, datetime, timedelta

import pytest
import pytz

from recapbot.aggregation.calendar import (
    GenerationStage, PlanDecision, PlanStep, iso_week_number, iso_weeks_of, iso_year,
    month_of, month_period, months_of, plan_month, plan_year, week_of, weeks_overlapping,
    year_of,
)
from recapbot.exceptions import InvalidInputError
from recapbot.models.summary import SummaryKind


class TestWeekOf:
    """Tests for week_of."""

    @pytest.mark.parametrize("day", [
        date(2025, 1, 6), date(2025, 1, 8), date(2025, 1, 12),
        date(2024, 2, 29), date(2024, 12, 31), date(2025, 12, 28),
    ])
    def test_monday_to_sunday(self, day):
        week = week_of(day)
        assert week.first_day.weekday() == 0
        assert week.last_day.weekday() == 6
        assert week.last_day - week.first_day == timedelta(days=6)
        assert week.contains(day)

    def test_mid_week(self):
        week = week_of(date(2025, 1, 8))
        assert week.first_day == date(2025, 1, 6)
        assert week.last_day == date(2025, 1, 12)
        assert week.render() == "2025/01/06 〜 2025/01/12"

    def test_end_is_last_instant_of_sunday(self):
        week = week_of(date(2025, 1, 8))
        assert week.contains(datetime(2025, 1, 12, 23, 59, 59, tzinfo=pytz.UTC))
        assert not week.contains(datetime(2025, 1, 13, 0, 0, tzinfo=pytz.UTC))

    def test_aware_datetime_uses_period_timezone(self):
        # Sunday 20:00 UTC is already Monday in Tokyo
        instant = datetime(2025, 1, 12, 20, 0, tzinfo=pytz.UTC)
        assert week_of(instant, "UTC").first_day == date(2025, 1, 6)
        assert week_of(instant, "Asia/Tokyo").first_day == date(2025, 1, 13)

    def test_rejects_non_dates(self):
        with pytest.raises(InvalidInputError):
            week_of("2025-01-08")


class TestMonthsAndYears:
    """Tests for month and year periods."""

    def test_month_of(self):
        month = month_of(date(2025, 2, 14))
        assert month.first_day == date(2025, 2, 1)
        assert month.last_day == date(2025, 2, 28)

    def test_leap_february(self):
        assert month_period(2024, 2).last_day == date(2024, 2, 29)

    def test_month_out_of_range(self):
        with pytest.raises(InvalidInputError):
            month_period(2025, 13)
        with pytest.raises(InvalidInputError):
            month_period(2025, 0)

    def test_months_of_are_contiguous(self):
        months = months_of(2025)
        assert len(months) == 12
        assert months[0].first_day == date(2025, 1, 1)
        assert months[-1].last_day == date(2025, 12, 31)
        for previous, current in zip(months, months[1:]):
            assert current.first_day == previous.last_day + timedelta(days=1)

    def test_year_of(self):
        year = year_of(2025)
        assert year.first_day == date(2025, 1, 1)
        assert year.last_day == date(2025, 12, 31)


class TestIsoWeeks:
    """Tests for ISO week numbering around New Year."""

    def test_boundary_week_belongs_to_next_iso_year(self):
        assert iso_week_number(date(2024, 12, 30)) == 1
        assert iso_year(date(2024, 12, 30)) == 2025

    def test_boundary_week_overlaps_both_years(self):
        week = week_of(date(2024, 12, 31))
        assert week.first_day == date(2024, 12, 30)
        assert week.last_day == date(2025, 1, 5)
        assert week.overlaps(month_period(2024, 12))
        assert week.overlaps(month_period(2025, 1))

    def test_iso_weeks_of_52_week_year(self):
        weeks = iso_weeks_of(2025)
        assert len(weeks) == 52
        assert weeks[0].first_day == date(2024, 12, 30)
        assert weeks[-1].first_day == date(2025, 12, 22)

    def test_iso_weeks_of_53_week_year(self):
        weeks = iso_weeks_of(2020)
        assert len(weeks) == 53
        assert iso_week_number(weeks[-1].first_day) == 53

    def test_weeks_overlapping_month(self):
        weeks = weeks_overlapping(month_period(2025, 1))
        assert [w.first_day for w in weeks] == [
            date(2024, 12, 30), date(2025, 1, 6), date(2025, 1, 13),
            date(2025, 1, 20), date(2025, 1, 27),
        ]


class TestPlanStep:
    """Tests for PlanStep decisions."""

    def test_collected_posts_mark_generate(self, post_factory):
        step = PlanStep(period=week_of(date(2025, 1, 8)))
        step.mark_collected([post_factory(2025, 1, 7)])
        assert step.decision == PlanDecision.GENERATE
        assert step.stage == GenerationStage.COLLECTING

    def test_no_posts_mark_skip(self):
        step = PlanStep(period=week_of(date(2025, 1, 8)))
        step.mark_collected([])
        assert step.decision == PlanDecision.SKIP
        assert step.skip_reason == "no_posts"
        assert step.stage == GenerationStage.DONE

    def test_week_number(self):
        assert PlanStep(period=week_of(date(2025, 1, 8))).week_number == 2


class TestPlans:
    """Tests for monthly and yearly plans."""

    def test_plan_month_includes_boundary_weeks(self):
        plan = plan_month(2025, 1)
        assert plan.kind == SummaryKind.MONTHLY
        assert plan.child_kind == SummaryKind.WEEKLY
        assert len(plan.steps) == 5
        assert plan.steps[0].period.first_day == date(2024, 12, 30)
        assert all(step.decision == PlanDecision.PENDING for step in plan.steps)

    def test_december_plan_shares_boundary_week(self):
        december = plan_month(2024, 12)
        january = plan_month(2025, 1)
        assert december.steps[-1].period == january.steps[0].period

    def test_plan_year_keeps_trailing_boundary_week(self):
        plan = plan_year(2025)
        assert len(plan.steps) == 53
        assert plan.skipped == []
        assert len(plan.pending) == 53
        assert plan.steps[-1].period.first_day == date(2025, 12, 29)
        assert plan.steps[-1].period.last_day == date(2026, 1, 4)
        assert plan.child_kind == SummaryKind.MONTHLY

    def test_plan_year_keeps_leading_boundary_week(self):
        plan = plan_year(2021)
        assert plan.steps[0].period.first_day == date(2020, 12, 28)
        assert plan.steps[0].decision == PlanDecision.PENDING
        assert plan.steps[0].week_number == 53

    def test_every_plan_year_step_overlaps_the_year(self):
        plan = plan_year(2020)
        assert all(step.period.overlaps(plan.period) for step in plan.steps)
        assert plan.steps[0].period.first_day <= date(2020, 1, 1)
        assert plan.steps[-1].period.last_day >= date(2020, 12, 31)

    def test_plan_has_activity(self, post_factory):
        plan = plan_month(2025, 1)
        assert not plan.has_activity
        plan.steps[2].mark_collected([post_factory(2025, 1, 15)])
        assert plan.has_activity
        assert plan.to_generate == [plan.steps[2]]

    def test_plan_to_dict(self):
        data = plan_month(2025, 1).to_dict()
        assert data["kind"] == "monthly"
        assert data["period"] == "2025/01/01 〜 2025/01/31"
        assert len(data["steps"]) == 5
