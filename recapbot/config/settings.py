"""
Configuration data models for Recap Bot.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from .constants import DEFAULT_LOCALE, DEFAULT_SUMMARIZATION_MODEL
from ..models.period import DEFAULT_TIMEZONE
from ..models.summary import SummaryKind


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class SlackConfig:
    """Slack credentials and the summary thread location."""
    bot_token: str
    user_token: str = ""
    dm_channel_id: Optional[str] = None
    thread_ts: Optional[str] = None
    page_delay: float = 1.5
    max_rate_limit_retries: int = 3

    @property
    def effective_user_token(self) -> str:
        """User token, or the bot token when no user token is configured."""
        return self.user_token or self.bot_token


@dataclass
class WorkspaceConfig:
    """Which of the user's conversations count as activity."""
    include_channels: List[str] = field(default_factory=list)
    exclude_channels: List[str] = field(default_factory=list)
    include_private_channels: bool = True
    include_direct_messages: bool = False
    include_group_messages: bool = False

    def channel_types(self) -> str:
        """`types` argument for users.conversations."""
        types = ["public_channel"]
        if self.include_private_channels:
            types.append("private_channel")
        if self.include_direct_messages:
            types.append("im")
        if self.include_group_messages:
            types.append("mpim")
        return ",".join(types)

    def allows(self, channel_id: str, name: str = "", is_private: bool = False) -> bool:
        """Exclusions win over inclusions; an empty include list allows all."""
        keys = {channel_id, name} - {""}
        if keys & set(self.exclude_channels):
            return False
        if self.include_channels and not keys & set(self.include_channels):
            return False
        if is_private and not self.include_private_channels:
            return False
        return True

    def with_private(self, include_private: Optional[bool]) -> "WorkspaceConfig":
        """Copy with the private-channel setting overridden, when given."""
        if include_private is None:
            return self
        return replace(self, include_private_channels=include_private)


@dataclass
class GenerationConfig:
    """Sampling parameters for one generation request."""
    max_tokens: int = 4096
    temperature: float = 0.7
    top_p: Optional[float] = 0.9
    top_k: Optional[int] = None
    stop_sequences: List[str] = field(default_factory=list)

    def merged(self, overrides: Dict[str, Any]) -> "GenerationConfig":
        """Copy with known keys from `overrides` applied."""
        known = {k: v for k, v in overrides.items() if k in self.__dataclass_fields__}
        return replace(self, **known)


@dataclass
class AIConfig:
    """Anthropic client settings and per-kind generation parameters."""
    api_key: str = ""
    base_url: Optional[str] = None
    model: str = DEFAULT_SUMMARIZATION_MODEL
    max_retries: int = 2
    timeout: float = 120.0
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    summary_overrides: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    prompts_dir: Optional[str] = None

    def generation_for(self, kind: SummaryKind) -> GenerationConfig:
        """Generation parameters for `kind`, with its overrides applied."""
        overrides = self.summary_overrides.get(kind.value) or {}
        return self.generation.merged(overrides)

    def model_for(self, kind: SummaryKind) -> str:
        overrides = self.summary_overrides.get(kind.value) or {}
        return overrides.get("model") or self.model


@dataclass
class BotConfig:
    """Complete application configuration."""
    slack: SlackConfig
    ai: AIConfig
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    target_year: Optional[int] = None
    locale: str = DEFAULT_LOCALE
    timezone: str = DEFAULT_TIMEZONE
    log_level: LogLevel = LogLevel.INFO
    environment: str = "development"

    def to_dict(self) -> Dict[str, Any]:
        """Configuration without secrets, for logging."""
        return {
            "slack": {
                "dm_channel_id": self.slack.dm_channel_id,
                "thread_ts": self.slack.thread_ts,
                "user_token_set": bool(self.slack.user_token),
            },
            "ai": {
                "model": self.ai.model,
                "base_url": self.ai.base_url,
                "max_tokens": self.ai.generation.max_tokens,
                "prompts_dir": self.ai.prompts_dir,
            },
            "workspace": {
                "include_channels": self.workspace.include_channels,
                "exclude_channels": self.workspace.exclude_channels,
                "types": self.workspace.channel_types(),
            },
            "target_year": self.target_year,
            "locale": self.locale,
            "timezone": self.timezone,
            "log_level": self.log_level.value,
            "environment": self.environment,
        }
