"""
Tests for the data models.
"""

from datetime import date, datetime

import pytest
import pytz

from recapbot.exceptions import GatewayError, InvalidInputError
from recapbot.models.channel import ChannelRef
from recapbot.models.period import Period
from recapbot.models.post import Post
from recapbot.models.result import GenerationResult
from recapbot.models.summary import Summary, SummaryKind


def week_period():
    return Period.for_days(date(2025, 1, 6), date(2025, 1, 12))


class TestPeriod:
    """Tests for Period."""

    def test_start_after_end_rejected(self):
        with pytest.raises(InvalidInputError):
            Period.for_days(date(2025, 1, 12), date(2025, 1, 6))

    def test_naive_bounds_rejected(self):
        with pytest.raises(InvalidInputError):
            Period(start=datetime(2025, 1, 6), end=datetime(2025, 1, 12))

    def test_single_day(self):
        period = Period.for_days(date(2025, 1, 6), date(2025, 1, 6))
        assert period.first_day == period.last_day == date(2025, 1, 6)

    def test_contains_is_inclusive(self):
        period = week_period()
        assert period.contains(period.start)
        assert period.contains(period.end)
        assert period.contains(date(2025, 1, 12))
        assert not period.contains(date(2025, 1, 13))

    def test_contains_naive_datetime_read_as_local(self):
        period = Period.for_days(date(2025, 1, 6), date(2025, 1, 12), "Asia/Tokyo")
        assert period.contains(datetime(2025, 1, 6, 0, 30))
        assert not period.contains(datetime(2025, 1, 5, 23, 30))

    def test_contains_aware_datetime_in_other_zone(self):
        period = Period.for_days(date(2025, 1, 6), date(2025, 1, 12), "Asia/Tokyo")
        assert period.contains(datetime(2025, 1, 5, 15, 0, tzinfo=pytz.UTC))
        assert not period.contains(datetime(2025, 1, 5, 14, 59, tzinfo=pytz.UTC))

    def test_overlaps(self):
        january = Period.for_days(date(2025, 1, 1), date(2025, 1, 31))
        boundary = Period.for_days(date(2024, 12, 30), date(2025, 1, 5))
        february = Period.for_days(date(2025, 2, 1), date(2025, 2, 28))
        assert january.overlaps(boundary)
        assert boundary.overlaps(january)
        assert not january.overlaps(february)

    def test_days(self):
        assert week_period().days == 7
        assert Period.for_year(2024).days == 366

    def test_render_with_separator(self):
        assert week_period().render("~") == "2025/01/06 ~ 2025/01/12"

    def test_unknown_timezone(self):
        with pytest.raises(InvalidInputError):
            Period.for_days(date(2025, 1, 6), date(2025, 1, 12), "Mars/Olympus")


class TestSummary:
    """Tests for Summary invariants and identity."""

    def test_weekly_requires_week_number_only(self):
        with pytest.raises(InvalidInputError):
            Summary(kind=SummaryKind.WEEKLY, content="x", period=week_period(), year=2025)
        with pytest.raises(InvalidInputError):
            Summary(kind=SummaryKind.WEEKLY, content="x", period=week_period(), year=2025,
                    week_number=2, month=1)

    def test_week_number_range(self):
        with pytest.raises(InvalidInputError):
            Summary.weekly("x", week_period(), 2025, week_number=54)

    def test_monthly_month_range(self):
        month = Period.for_days(date(2025, 1, 1), date(2025, 1, 31))
        assert Summary.monthly("x", month, 2025, 1).month == 1
        with pytest.raises(InvalidInputError):
            Summary.monthly("x", month, 2025, 13)

    def test_yearly_takes_neither(self):
        year = Period.for_days(date(2025, 1, 1), date(2025, 12, 31))
        with pytest.raises(InvalidInputError):
            Summary(kind=SummaryKind.YEARLY, content="x", period=year, year=2025, month=1)

    def test_with_id(self):
        summary = Summary.weekly("x", week_period(), 2025, week_number=2)
        posted = summary.with_id("1.2")
        assert not summary.is_posted
        assert posted.is_posted
        assert posted.id == "1.2"
        assert posted.content == "x"

    def test_equality_by_id(self):
        a = Summary.weekly("a", week_period(), 2025, week_number=2, id="1.1")
        b = Summary.weekly("b", week_period(), 2025, week_number=2, id="1.1")
        c = Summary.weekly("a", week_period(), 2025, week_number=2, id="1.2")
        assert a == b
        assert a != c

    def test_equality_by_period_without_id(self):
        a = Summary.weekly("a", week_period(), 2025, week_number=2)
        b = Summary.weekly("b", week_period(), 2025, week_number=2)
        assert a == b

    def test_overlaps_month(self):
        boundary = Period.for_days(date(2024, 12, 30), date(2025, 1, 5))
        summary = Summary.weekly("x", boundary, 2025, week_number=1)
        assert summary.overlaps_month(2024, 12)
        assert summary.overlaps_month(2025, 1)
        assert not summary.overlaps_month(2025, 2)

    def test_kind_ordering(self):
        assert SummaryKind.WEEKLY < SummaryKind.MONTHLY < SummaryKind.YEARLY
        assert SummaryKind.YEARLY.child == SummaryKind.MONTHLY
        assert SummaryKind.WEEKLY.child is None
        assert SummaryKind.MONTHLY.label == "Monthly"


class TestPost:
    """Tests for Post."""

    def test_from_search_match(self):
        post = Post.from_slack_message({
            "ts": "1736251200.000100",
            "user": "U1",
            "text": "shipped the release",
            "channel": {"id": "C1", "name": "general"},
        })
        assert post.channel_id == "C1"
        assert post.timestamp.replace(microsecond=0) == datetime(2025, 1, 7, 12, 0, tzinfo=pytz.UTC)
        assert post.to_summary_format() == "[2025-01-07] shipped the release"
        assert not post.is_in_thread


class TestChannelRef:
    """Tests for ChannelRef."""

    def test_blank_channel_rejected(self):
        with pytest.raises(InvalidInputError):
            ChannelRef("  ")

    def test_require_thread(self):
        assert ChannelRef.for_thread("D1", "1.2").require_thread() == "1.2"
        with pytest.raises(InvalidInputError):
            ChannelRef("D1").require_thread()

    def test_for_thread_needs_ts(self):
        with pytest.raises(InvalidInputError):
            ChannelRef.for_thread("D1", "")

    def test_str(self):
        assert str(ChannelRef("D1", "1.2")) == "D1:1.2"
        assert str(ChannelRef("D1")) == "D1"


class TestGenerationResult:
    """Tests for GenerationResult."""

    def test_success_message(self):
        summary = Summary.weekly("x", week_period(), 2025, week_number=2, id="1.1")
        result = GenerationResult.success(summary)
        assert result.ok
        assert result.message == "Weekly summary posted (2025/01/06 〜 2025/01/12)"
        assert result.unwrap() is summary

    def test_failure_keeps_sub_summaries(self):
        summary = Summary.weekly("x", week_period(), 2025, week_number=2, id="1.1")
        error = GatewayError("post failed")
        result = GenerationResult.failure(error, [summary])
        assert not result.ok
        assert result.sub_summaries == [summary]
        assert result.message == "Slack API error: post failed"
        with pytest.raises(GatewayError):
            result.unwrap()
