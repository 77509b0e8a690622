"""
Calendar arithmetic and period plans for hierarchical summaries.

All functions here are pure. A week belongs to a month or year when it
overlaps it, not only when it is fully contained, so boundary weeks such as
2024/12/30 - 2025/01/05 appear in both December 2024 and January 2025.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..models.period import (
    DEFAULT_TIMEZONE, DateLike, Period, to_local_date, validate_month, validate_year,
)
from ..models.post import Post
from ..models.summary import SummaryKind

logger = logging.getLogger(__name__)


def week_of(value: DateLike, timezone: str = DEFAULT_TIMEZONE) -> Period:
    """Monday 00:00 to Sunday end-of-day containing `value`."""
    return Period.for_week(value, timezone)


def month_of(value: DateLike, timezone: str = DEFAULT_TIMEZONE) -> Period:
    """First to last calendar day of the month containing `value`."""
    return Period.for_month(value, timezone)


def month_period(year: int, month: int, timezone: str = DEFAULT_TIMEZONE) -> Period:
    validate_year(year)
    validate_month(month)
    return Period.for_month(date(year, month, 1), timezone)


def year_of(year: int, timezone: str = DEFAULT_TIMEZONE) -> Period:
    """Jan 1 to Dec 31 of `year`."""
    return Period.for_year(year, timezone)


def iso_week_number(value: DateLike, timezone: str = DEFAULT_TIMEZONE) -> int:
    """ISO-8601 week number (week 1 holds the year's first Thursday)."""
    return to_local_date(value, timezone).isocalendar()[1]


def iso_year(value: DateLike, timezone: str = DEFAULT_TIMEZONE) -> int:
    """ISO-8601 week-numbering year, which differs from the calendar year
    for a few days around New Year."""
    return to_local_date(value, timezone).isocalendar()[0]


def weeks_overlapping(period: Period) -> List[Period]:
    """Every Monday-start week intersecting `period`, earliest first."""
    first = period.first_day
    monday = first - timedelta(days=first.weekday())
    weeks = []
    while monday <= period.last_day:
        weeks.append(Period.for_week(monday, period.timezone))
        monday += timedelta(days=7)
    return weeks


def months_of(year: int, timezone: str = DEFAULT_TIMEZONE) -> List[Period]:
    """The twelve months of `year`, in order."""
    validate_year(year)
    return [month_period(year, month, timezone) for month in range(1, 13)]


def iso_weeks_of(year: int, timezone: str = DEFAULT_TIMEZONE) -> List[Period]:
    """The 52 or 53 ISO weeks of `year`."""
    return [
        week for week in weeks_overlapping(year_of(year, timezone))
        if iso_year(week.first_day) == year
    ]


class PlanDecision(Enum):
    """What to do with one sub-period of a plan."""
    PENDING = "pending"
    GENERATE = "generate"
    SKIP = "skip"


class GenerationStage(Enum):
    """Progress of one sub-period through a generate call."""
    COLLECTING = "collecting"
    GENERATING = "generating"
    POSTING = "posting"
    DONE = "done"


@dataclass
class PlanStep:
    """One sub-period of a plan together with its decision and progress."""
    period: Period
    decision: PlanDecision = PlanDecision.PENDING
    stage: GenerationStage = GenerationStage.COLLECTING
    skip_reason: Optional[str] = None
    posts: List[Post] = field(default_factory=list)

    @property
    def week_number(self) -> int:
        return iso_week_number(self.period.first_day)

    @property
    def label(self) -> str:
        return self.period.render()

    def mark_collected(self, posts: Sequence[Post]) -> None:
        """Record fetched posts and decide between generating and skipping."""
        self.posts = list(posts)
        if self.posts:
            self.decision = PlanDecision.GENERATE
        else:
            self.skip("no_posts")

    def skip(self, reason: str) -> None:
        self.decision = PlanDecision.SKIP
        self.skip_reason = reason
        self.stage = GenerationStage.DONE

    def advance(self, stage: GenerationStage) -> None:
        logger.debug(f"{self.label}: {self.stage.value} -> {stage.value}")
        self.stage = stage


@dataclass
class PeriodPlan:
    """Ordered sub-periods of a parent period, computed before any I/O."""
    kind: SummaryKind
    period: Period
    year: int
    steps: List[PlanStep] = field(default_factory=list)

    @property
    def child_kind(self) -> Optional[SummaryKind]:
        """Kind of the summaries read back to build this plan's summary."""
        return self.kind.child

    @property
    def pending(self) -> List[PlanStep]:
        return [s for s in self.steps if s.decision == PlanDecision.PENDING]

    @property
    def to_generate(self) -> List[PlanStep]:
        return [s for s in self.steps if s.decision == PlanDecision.GENERATE]

    @property
    def skipped(self) -> List[PlanStep]:
        return [s for s in self.steps if s.decision == PlanDecision.SKIP]

    @property
    def has_activity(self) -> bool:
        return bool(self.to_generate)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "period": self.period.render(),
            "year": self.year,
            "steps": [
                {
                    "period": s.label,
                    "decision": s.decision.value,
                    "stage": s.stage.value,
                    "skip_reason": s.skip_reason,
                    "post_count": len(s.posts),
                }
                for s in self.steps
            ],
        }


def plan_month(year: int, month: int, timezone: str = DEFAULT_TIMEZONE) -> PeriodPlan:
    """Plan a monthly summary: one step per week overlapping the month."""
    period = month_period(year, month, timezone)
    steps = [PlanStep(period=week) for week in weeks_overlapping(period)]
    return PeriodPlan(kind=SummaryKind.MONTHLY, period=period, year=year, steps=steps)


def plan_year(year: int, timezone: str = DEFAULT_TIMEZONE) -> PeriodPlan:
    """Plan a yearly summary over every week overlapping the calendar year.

    Boundary weeks such as 2025/12/29 - 2026/01/04 are included and tagged
    with `year`, whatever ISO year they are numbered in.
    """
    period = year_of(year, timezone)
    steps = [PlanStep(period=week) for week in weeks_overlapping(period)]
    return PeriodPlan(kind=SummaryKind.YEARLY, period=period, year=year, steps=steps)
