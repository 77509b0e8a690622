"""
Period arithmetic, summary message codec and the aggregation engine.
"""

from .calendar import (
    GenerationStage, PeriodPlan, PlanDecision, PlanStep, iso_week_number, iso_weeks_of,
    iso_year, month_of, month_period, months_of, plan_month, plan_year, week_of,
    weeks_overlapping, year_of,
)
from .codec import MessageCodec, detect_kind, tag_for
from .engine import AggregationEngine

__all__ = [
    "AggregationEngine",
    "MessageCodec",
    "detect_kind",
    "tag_for",
    "GenerationStage",
    "PeriodPlan",
    "PlanDecision",
    "PlanStep",
    "iso_week_number",
    "iso_weeks_of",
    "iso_year",
    "month_of",
    "month_period",
    "months_of",
    "plan_month",
    "plan_year",
    "week_of",
    "weeks_overlapping",
    "year_of",
]
