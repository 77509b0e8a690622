"""
Hierarchical summary aggregation.

Generates weekly summaries from raw posts, monthly summaries from weekly ones
and a yearly summary from monthly ones. Every summary is persisted by posting
it to the summary thread; roll-ups read their inputs back from that thread.
"""

import logging
from typing import Awaitable, Callable, Dict, Hashable, List, Optional, Sequence, TypeVar

from .calendar import (
    GenerationStage, PeriodPlan, PlanStep, months_of, plan_month, plan_year, week_of,
)
from .codec import MessageCodec
from ..exceptions import (
    ErrorContext, GatewayError, GenerationError, InvalidInputError, NoActivityFoundError,
    NoPriorSummaryFoundError, RecapBotError, create_error_context, handle_unexpected_error,
)
from ..models.channel import ChannelRef
from ..models.period import DateLike, Period, validate_month, validate_year
from ..models.result import GenerationResult
from ..models.summary import Summary, SummaryKind
from ..slack.base import MessagingGateway
from ..summarization.base import GenerationBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AggregationEngine:
    """Orchestrates weekly, monthly and yearly summary generation.

    Sub-periods are processed one at a time, earliest first, so the thread
    order of posted summaries matches period order. Nothing is rolled back on
    failure: sub-summaries posted before an error stay in the thread and are
    reported on the result.
    """

    def __init__(self,
                 gateway: MessagingGateway,
                 backend: GenerationBackend,
                 codec: Optional[MessageCodec] = None):
        """Initialize the engine.

        Args:
            gateway: Messaging gateway acting as the user
            backend: Generation backend
            codec: Message codec; also fixes the timezone periods are built in
        """
        self.gateway = gateway
        self.backend = backend
        self.codec = codec or MessageCodec()
        self.timezone = self.codec.timezone

    async def generate_weekly(self,
                              user_id: str,
                              target_date: DateLike,
                              year: int,
                              channel: ChannelRef,
                              channel_ids: Optional[Sequence[str]] = None) -> GenerationResult:
        """Summarize the user's posts for the week containing `target_date`."""
        kind = SummaryKind.WEEKLY
        posted: List[Summary] = []
        context = create_error_context(operation="generate_weekly", user_id=user_id,
                                       channel_id=channel.channel_id, summary_kind=kind.value)
        try:
            validate_year(year)
            channel.require_thread()
            step = PlanStep(period=week_of(target_date, self.timezone))
            context.period = step.label

            await self._collect(step, user_id, channel_ids, context)
            if not step.posts:
                raise NoActivityFoundError(step.label, context=context)

            summary = await self._generate_week(step, year, channel, posted, context)
            logger.info(f"Weekly summary posted for {step.label} (id={summary.id})")
            return GenerationResult.success(summary)

        except Exception as e:
            return self._fail(e, kind, posted, context)

    async def generate_monthly(self,
                               year: int,
                               month: int,
                               channel: ChannelRef,
                               user_id: str) -> GenerationResult:
        """Generate missing weekly summaries for the month, then roll them up."""
        kind = SummaryKind.MONTHLY
        posted: List[Summary] = []
        context = create_error_context(operation="generate_monthly", user_id=user_id,
                                       channel_id=channel.channel_id, summary_kind=kind.value)
        try:
            validate_year(year)
            validate_month(month)
            channel.require_thread()
            plan = plan_month(year, month, self.timezone)
            context.period = plan.period.render()

            await self._collect_plan(plan, user_id, context)
            if not plan.has_activity:
                raise NoActivityFoundError(plan.period.render(), context=context)
            await self._generate_weeks(plan, channel, posted, context)

            weekly = await self._read_thread(channel, plan.child_kind, year, context)
            selected = self._select_weekly(weekly, year, month)
            if not selected:
                raise NoPriorSummaryFoundError("weekly", f"{year}/{month}", context=context)

            summary = await self._generate_month(year, month, plan.period, selected,
                                                 channel, posted, context)
            logger.info(f"Monthly summary posted for {year}/{month:02d} (id={summary.id}, "
                        f"from {len(selected)} weekly summaries)")
            return GenerationResult.success(summary, posted[:-1])

        except Exception as e:
            return self._fail(e, kind, posted, context)

    async def generate_yearly(self,
                              year: int,
                              channel: ChannelRef,
                              user_id: str) -> GenerationResult:
        """Generate weekly and monthly summaries for the year, then the yearly
        roll-up, broadcast to the channel."""
        kind = SummaryKind.YEARLY
        posted: List[Summary] = []
        context = create_error_context(operation="generate_yearly", user_id=user_id,
                                       channel_id=channel.channel_id, summary_kind=kind.value)
        try:
            validate_year(year)
            channel.require_thread()
            plan = plan_year(year, self.timezone)
            context.period = plan.period.render()

            await self._collect_plan(plan, user_id, context)
            if not plan.has_activity:
                raise NoActivityFoundError(plan.period.render(), context=context)
            await self._generate_weeks(plan, channel, posted, context)

            weekly = await self._read_thread(channel, SummaryKind.WEEKLY, year, context)
            for month_period in months_of(year, self.timezone):
                month = month_period.first_day.month
                selected = self._select_weekly(weekly, year, month)
                if not selected:
                    logger.info(f"No weekly summaries for {year}/{month:02d}, skipping month")
                    continue
                await self._generate_month(year, month, month_period, selected,
                                           channel, posted, context)

            monthly = await self._read_thread(channel, plan.child_kind, year, context)
            monthly = sorted(self._latest_by(monthly, lambda s: s.month), key=lambda s: s.month)
            if not monthly:
                raise NoPriorSummaryFoundError("monthly", str(year), context=context)

            content = await self._call_backend(
                self.backend.summarize_from_summaries(monthly, kind), plan.period, context)
            summary = await self._post(Summary.yearly(content, plan.period, year),
                                       channel, context, broadcast=True)
            logger.info(f"Yearly summary broadcast for {year} (id={summary.id}, "
                        f"from {len(monthly)} monthly summaries)")
            return GenerationResult.success(summary, posted)

        except Exception as e:
            return self._fail(e, kind, posted, context)

    async def _collect(self, step: PlanStep, user_id: str,
                       channel_ids: Optional[Sequence[str]],
                       context: ErrorContext) -> None:
        posts = await self._call_gateway(
            "fetch_user_posts",
            lambda: self.gateway.fetch_user_posts(user_id, step.period, channel_ids),
            step.period, context,
        )
        step.mark_collected(posts)
        if step.posts:
            logger.info(f"{step.label}: {len(step.posts)} posts")
        else:
            logger.info(f"{step.label}: no posts, skipping")

    async def _collect_plan(self, plan: PeriodPlan, user_id: str,
                            context: ErrorContext) -> None:
        for step in plan.pending:
            await self._collect(step, user_id, None, context)
        logger.info(f"{plan.kind.value} plan {plan.period.render()}: "
                    f"{len(plan.to_generate)} weeks with posts, {len(plan.skipped)} skipped")

    async def _generate_weeks(self, plan: PeriodPlan, channel: ChannelRef,
                              posted: List[Summary], context: ErrorContext) -> None:
        for step in plan.to_generate:
            await self._generate_week(step, plan.year, channel, posted, context)

    async def _generate_week(self, step: PlanStep, year: int, channel: ChannelRef,
                             posted: List[Summary], context: ErrorContext) -> Summary:
        step.advance(GenerationStage.GENERATING)
        content = await self._call_backend(
            self.backend.summarize_from_posts(step.posts), step.period, context)
        summary = Summary.weekly(content, step.period, year, week_number=step.week_number)

        step.advance(GenerationStage.POSTING)
        summary = await self._post(summary, channel, context)
        posted.append(summary)
        step.advance(GenerationStage.DONE)
        return summary

    async def _generate_month(self, year: int, month: int, period: Period,
                              weekly: List[Summary], channel: ChannelRef,
                              posted: List[Summary], context: ErrorContext) -> Summary:
        content = await self._call_backend(
            self.backend.summarize_from_summaries(weekly, SummaryKind.MONTHLY), period, context)
        summary = await self._post(Summary.monthly(content, period, year, month),
                                   channel, context)
        posted.append(summary)
        return summary

    def _select_weekly(self, weekly: List[Summary], year: int, month: int) -> List[Summary]:
        """Weekly summaries overlapping the month, one per week, oldest first."""
        overlapping = [s for s in weekly if s.overlaps_month(year, month)]
        latest = self._latest_by(overlapping, lambda s: (s.period.start, s.period.end))
        return sorted(latest, key=lambda s: s.period.start)

    @staticmethod
    def _latest_by(entries: List[Summary], key: Callable[[Summary], Hashable]) -> List[Summary]:
        """Keep the last entry in thread order for each key."""
        latest: Dict[Hashable, Summary] = {}
        for entry in entries:
            latest[key(entry)] = entry
        return list(latest.values())

    async def _read_thread(self, channel: ChannelRef, kind: SummaryKind, year: int,
                           context: ErrorContext) -> List[Summary]:
        entries = await self._call_gateway(
            "fetch_thread_entries",
            lambda: self.gateway.fetch_thread_entries(channel, kind, year),
            None, context,
        )
        logger.info(f"Read {len(entries)} {kind.value} summaries for {year} from thread")
        return list(entries)

    async def _post(self, summary: Summary, channel: ChannelRef, context: ErrorContext,
                    broadcast: bool = False) -> Summary:
        text = self.codec.render(summary)
        if broadcast:
            operation, post = "post_broadcast_reply", self.gateway.post_broadcast_reply
        else:
            operation, post = "post_reply", self.gateway.post_reply
        summary_id = await self._call_gateway(
            operation, lambda: post(channel, text), summary.period, context)
        if not summary_id:
            raise GatewayError(f"{operation} returned no message id for "
                               f"{summary.kind.value} {summary.period.render()}",
                               context=context)
        return summary.with_id(summary_id)

    async def _call_gateway(self, operation: str, call: Callable[[], Awaitable[T]],
                            period: Optional[Period], context: ErrorContext) -> T:
        try:
            return await call()
        except RecapBotError:
            raise
        except Exception as e:
            where = f" for {period.render()}" if period else ""
            raise GatewayError(f"{operation} failed{where}: {e}", context=context, cause=e)

    async def _call_backend(self, call: Awaitable[str], period: Period,
                            context: ErrorContext) -> str:
        try:
            content = await call
        except RecapBotError:
            raise
        except Exception as e:
            raise GenerationError(f"generation failed for {period.render()}: {e}",
                                  context=context, cause=e)
        if not content or not content.strip():
            raise GenerationError(f"generation returned no text for {period.render()}",
                                  context=context)
        return content

    def _fail(self, error: Exception, kind: SummaryKind, posted: List[Summary],
              context: ErrorContext) -> GenerationResult:
        wrapped = handle_unexpected_error(error, context)
        if isinstance(wrapped, (InvalidInputError, NoActivityFoundError, NoPriorSummaryFoundError)):
            logger.warning(f"{kind.value} summary not generated: {wrapped.to_log_string()}")
        else:
            logger.error(f"{kind.value} summary generation failed: {wrapped.to_log_string()}")
        if posted:
            logger.warning(f"{len(posted)} sub-summaries posted before the failure remain "
                           f"in the thread")
        return GenerationResult.failure(wrapped, posted)
