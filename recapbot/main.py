"""
Application wiring for Recap Bot.

Builds the codec, Slack gateways, generation backend and aggregation engine
from configuration, and exposes one coroutine per command.
"""

import logging
import sys
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .aggregation import AggregationEngine, MessageCodec
from .config import BotConfig, ConfigValidator, EnvironmentLoader
from .exceptions import ConfigurationError, RecapBotError, handle_unexpected_error
from .models.channel import ChannelRef
from .models.period import get_timezone
from .models.result import GenerationResult
from .slack import SlackBotGateway, SlackUserGateway, create_client
from .summarization import (
    ClaudeClient, ClaudeGenerationBackend, PromptBuilder, load_prompt_templates,
)

logger = logging.getLogger(__name__)

DEFAULT_THREAD_TEXT = "📝 Activity summaries for {year}"


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@dataclass
class CommandResult:
    """User-visible outcome of one command."""
    success: bool
    message: str
    summary_id: Optional[str] = None


class RecapBotApp:
    """Runs summary commands against one configured user and thread."""

    def __init__(self,
                 config: BotConfig,
                 user_gateway: SlackUserGateway,
                 bot_gateway: SlackBotGateway,
                 backend: ClaudeGenerationBackend,
                 codec: MessageCodec):
        self.config = config
        self.user_gateway = user_gateway
        self.bot_gateway = bot_gateway
        self.backend = backend
        self.codec = codec

    @classmethod
    def from_config(cls, config: BotConfig) -> "RecapBotApp":
        """Validate `config` and build every component from it.

        Raises:
            ConfigurationError: if validation reports any error
        """
        errors = ConfigValidator.validate_config(config)
        if errors:
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(errors)}",
                user_message="Configuration is invalid:\n" + "\n".join(f"- {e}" for e in errors),
            )

        codec = MessageCodec(locale=config.locale, timezone=config.timezone)
        user_gateway = SlackUserGateway(
            client=create_client(config.slack.effective_user_token,
                                 config.slack.max_rate_limit_retries),
            codec=codec,
            workspace=config.workspace,
            page_delay=config.slack.page_delay,
        )
        bot_gateway = SlackBotGateway(
            create_client(config.slack.bot_token, config.slack.max_rate_limit_retries)
        )

        claude_client = ClaudeClient(
            api_key=config.ai.api_key,
            base_url=config.ai.base_url,
            default_timeout=config.ai.timeout,
            max_retries=config.ai.max_retries,
        )
        prompt_builder = PromptBuilder(
            locale=config.locale,
            templates=load_prompt_templates(config.ai.prompts_dir),
        )
        backend = ClaudeGenerationBackend(claude_client, config.ai, prompt_builder)

        logger.info(f"Recap Bot configured: {config.to_dict()}")
        return cls(config, user_gateway, bot_gateway, backend, codec)

    @property
    def target_year(self) -> int:
        return self.config.target_year or self._now().year

    def summary_channel(self) -> ChannelRef:
        """The configured summary thread."""
        if not self.config.slack.dm_channel_id:
            raise ConfigurationError("DM_CHANNEL_ID is not configured")
        return ChannelRef(self.config.slack.dm_channel_id, self.config.slack.thread_ts)

    def engine(self, include_private: Optional[bool] = None) -> AggregationEngine:
        """Engine whose gateway applies the workspace settings, with the
        private-channel setting overridden for this call when given."""
        workspace = self.config.workspace.with_private(include_private)
        return AggregationEngine(self.user_gateway.with_workspace(workspace),
                                 self.backend, self.codec)

    async def run_weekly(self, user_id: str, target_date: Optional[date] = None,
                         include_private: Optional[bool] = None) -> CommandResult:
        target_date = target_date or self._now().date()
        result = await self._run(
            "weekly",
            lambda channel: self.engine(include_private).generate_weekly(
                user_id, target_date, self.target_year, channel),
        )
        if not result.ok:
            return self._failed("weekly", result)
        period = result.summary.period.render()
        return CommandResult(
            success=True,
            message=f"Weekly summary created ({period}){self._private_note(include_private)}",
            summary_id=result.summary.id,
        )

    async def run_monthly(self, user_id: str, month: Optional[int] = None,
                          include_private: Optional[bool] = None) -> CommandResult:
        month = self._now().month if month is None else month
        if not 1 <= month <= 12:
            return CommandResult(success=False, message="Month must be between 1 and 12")

        result = await self._run(
            "monthly",
            lambda channel: self.engine(include_private).generate_monthly(
                self.target_year, month, channel, user_id),
        )
        if not result.ok:
            return self._failed("monthly", result)
        return CommandResult(
            success=True,
            message=f"Monthly summary for {month} created{self._private_note(include_private)}",
            summary_id=result.summary.id,
        )

    async def run_yearly(self, user_id: str,
                         include_private: Optional[bool] = None) -> CommandResult:
        result = await self._run(
            "yearly",
            lambda channel: self.engine(include_private).generate_yearly(
                self.target_year, channel, user_id),
        )
        if not result.ok:
            return self._failed("yearly", result)
        return CommandResult(
            success=True,
            message=f"Yearly summary for {self.target_year} created"
                    f"{self._private_note(include_private)}",
            summary_id=result.summary.id,
        )

    async def start_thread(self, user_id: str, text: Optional[str] = None) -> CommandResult:
        """Open the bot DM with `user_id` and post the root of a new summary thread."""
        try:
            channel_id = await self.bot_gateway.open_dm_channel(user_id)
            thread = await self.bot_gateway.start_thread(
                channel_id, text or DEFAULT_THREAD_TEXT.format(year=self.target_year))
        except Exception as e:
            error = handle_unexpected_error(e)
            logger.error(f"Failed to start summary thread: {error.to_log_string()}")
            return CommandResult(success=False,
                                 message=f"Failed to start summary thread: {error.message}")
        return CommandResult(
            success=True,
            message=f"Summary thread started in {thread.channel_id} "
                    f"(set DM_CHANNEL_ID={thread.channel_id} THREAD_TS={thread.thread_ts})",
            summary_id=thread.thread_ts,
        )

    async def close(self):
        await self.backend.claude_client.close()

    async def _run(self, kind: str, call) -> GenerationResult:
        try:
            channel = self.summary_channel()
        except RecapBotError as e:
            return GenerationResult.failure(e)
        logger.info(f"Running {kind} summary for {self.target_year} in {channel}")
        return await call(channel)

    @staticmethod
    def _failed(kind: str, result: GenerationResult) -> CommandResult:
        if result.sub_summaries:
            logger.info(f"{len(result.sub_summaries)} sub-summaries were posted before "
                        f"the {kind} summary failed")
        return CommandResult(
            success=False,
            message=f"Failed to generate {kind} summary: {result.error.message}",
        )

    @staticmethod
    def _private_note(include_private: Optional[bool]) -> str:
        return " (including private channels)" if include_private else ""

    def _now(self) -> datetime:
        return datetime.now(get_timezone(self.config.timezone))


def create_app(env_file: Optional[str] = None) -> RecapBotApp:
    """Load configuration from the environment and build the app."""
    config = EnvironmentLoader.load_config(env_file)
    setup_logging(config.log_level.value)
    return RecapBotApp.from_config(config)
