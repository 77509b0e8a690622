"""
Summary-related data models.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

import pytz

from .period import Period, validate_month, validate_year
from ..exceptions import InvalidInputError


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


class SummaryKind(Enum):
    """Summary granularity, ordered weekly < monthly < yearly."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def rank(self) -> int:
        return _KIND_RANK[self]

    @property
    def child(self) -> Optional["SummaryKind"]:
        """Kind this one is aggregated from (None for weekly)."""
        return _KIND_CHILD[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def __lt__(self, other: "SummaryKind") -> bool:
        if not isinstance(other, SummaryKind):
            return NotImplemented
        return self.rank < other.rank


_KIND_RANK = {SummaryKind.WEEKLY: 0, SummaryKind.MONTHLY: 1, SummaryKind.YEARLY: 2}
_KIND_CHILD = {
    SummaryKind.WEEKLY: None,
    SummaryKind.MONTHLY: SummaryKind.WEEKLY,
    SummaryKind.YEARLY: SummaryKind.MONTHLY,
}


@dataclass(eq=False)
class Summary:
    """One generated summary, posted or about to be posted.

    `id` stays None until the messaging platform assigns one on posting.
    Exactly one of `month` / `week_number` is set for monthly / weekly
    summaries, and neither for yearly ones.
    """
    kind: SummaryKind
    content: str
    period: Period
    year: int
    month: Optional[int] = None
    week_number: Optional[int] = None
    id: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        validate_year(self.year)
        if self.kind == SummaryKind.WEEKLY:
            if self.week_number is None or self.month is not None:
                raise InvalidInputError("Weekly summary needs a week number and no month")
            if not 1 <= self.week_number <= 53:
                raise InvalidInputError(f"ISO week number out of range: {self.week_number}")
        elif self.kind == SummaryKind.MONTHLY:
            if self.month is None or self.week_number is not None:
                raise InvalidInputError("Monthly summary needs a month and no week number")
            validate_month(self.month)
        elif self.month is not None or self.week_number is not None:
            raise InvalidInputError("Yearly summary takes neither month nor week number")

    @classmethod
    def weekly(cls, content: str, period: Period, year: int, week_number: int,
               id: Optional[str] = None) -> "Summary":
        return cls(kind=SummaryKind.WEEKLY, content=content, period=period,
                   year=year, week_number=week_number, id=id)

    @classmethod
    def monthly(cls, content: str, period: Period, year: int, month: int,
                id: Optional[str] = None) -> "Summary":
        return cls(kind=SummaryKind.MONTHLY, content=content, period=period,
                   year=year, month=month, id=id)

    @classmethod
    def yearly(cls, content: str, period: Period, year: int,
               id: Optional[str] = None) -> "Summary":
        return cls(kind=SummaryKind.YEARLY, content=content, period=period,
                   year=year, id=id)

    def with_id(self, summary_id: str) -> "Summary":
        """Copy of this summary carrying the id assigned on posting."""
        return replace(self, id=summary_id)

    @property
    def is_posted(self) -> bool:
        return self.id is not None

    def overlaps_month(self, year: int, month: int) -> bool:
        month_period = Period.for_month(datetime(year, validate_month(month), 1),
                                        self.period.timezone)
        return self.period.overlaps(month_period)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Summary):
            return NotImplemented
        if self.id and other.id:
            return self.id == other.id
        return self.kind == other.kind and self.period == other.period

    __hash__ = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "content": self.content,
            "period": self.period.to_dict(),
            "year": self.year,
            "month": self.month,
            "week_number": self.week_number,
            "created_at": self.created_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"Summary({self.kind.value}, {self.period.render()}, id={self.id})"
