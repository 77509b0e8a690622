"""
Configuration validation for Recap Bot.
"""

import re
from typing import List

import pytz

from .constants import SUPPORTED_LOCALES
from .settings import AIConfig, BotConfig, GenerationConfig, SlackConfig, WorkspaceConfig
from ..models.period import MAX_YEAR, MIN_YEAR


class ConfigValidator:
    """Validates configuration settings."""

    @staticmethod
    def validate_config(config: BotConfig) -> List[str]:
        """Validate the entire bot configuration."""
        errors = []

        errors.extend(ConfigValidator._validate_slack_config(config.slack))
        errors.extend(ConfigValidator._validate_ai_config(config.ai))
        errors.extend(ConfigValidator._validate_workspace_config(config.workspace))

        if config.locale not in SUPPORTED_LOCALES:
            errors.append(f"Unsupported locale: {config.locale}. "
                          f"Supported locales: {', '.join(SUPPORTED_LOCALES)}")

        if config.timezone not in pytz.all_timezones_set:
            errors.append(f"Unknown timezone: {config.timezone}")

        if config.target_year is not None and not (MIN_YEAR <= config.target_year <= MAX_YEAR):
            errors.append(f"Target year {config.target_year} is out of range")

        return errors

    @staticmethod
    def _validate_slack_config(slack: SlackConfig) -> List[str]:
        errors = []

        if not slack.bot_token:
            errors.append("SLACK_BOT_TOKEN is required")
        elif not slack.bot_token.startswith('xoxb-'):
            errors.append("Slack bot token should start with 'xoxb-'")

        if slack.user_token and not slack.user_token.startswith('xoxp-'):
            errors.append("Slack user token should start with 'xoxp-'")

        if slack.thread_ts and not re.match(r'^\d+\.\d+$', slack.thread_ts):
            errors.append(f"Invalid THREAD_TS: {slack.thread_ts}")

        if slack.dm_channel_id and not re.match(r'^[CDG][A-Z0-9]+$', slack.dm_channel_id):
            errors.append(f"Invalid DM channel ID: {slack.dm_channel_id}")

        if slack.page_delay < 0:
            errors.append("Slack page delay cannot be negative")

        return errors

    @staticmethod
    def _validate_ai_config(ai: AIConfig) -> List[str]:
        errors = []

        if not ai.api_key:
            errors.append("ANTHROPIC_API_KEY is required")

        if not ai.model:
            errors.append("AI model must not be empty")

        if ai.max_retries < 0:
            errors.append("Max retries cannot be negative")

        errors.extend(ConfigValidator._validate_generation(ai.generation, "generation"))
        for kind in ai.summary_overrides:
            if kind not in ('weekly', 'monthly', 'yearly'):
                errors.append(f"Unknown summary override: {kind}")
                continue
            errors.extend(ConfigValidator._validate_generation(
                ai.generation.merged(ai.summary_overrides[kind]), f"summary_overrides.{kind}"
            ))

        return errors

    @staticmethod
    def _validate_generation(generation: GenerationConfig, where: str) -> List[str]:
        errors = []

        if generation.max_tokens < 1:
            errors.append(f"{where}: max tokens must be at least 1")
        if generation.max_tokens > 200000:
            errors.append(f"{where}: max tokens cannot exceed 200,000")

        if not (0.0 <= generation.temperature <= 1.0):
            errors.append(f"{where}: temperature {generation.temperature} must be between 0.0 and 1.0")

        if generation.top_p is not None and not (0.0 < generation.top_p <= 1.0):
            errors.append(f"{where}: top_p {generation.top_p} must be between 0.0 and 1.0")

        if generation.top_k is not None and generation.top_k < 1:
            errors.append(f"{where}: top_k must be at least 1")

        return errors

    @staticmethod
    def _validate_workspace_config(workspace: WorkspaceConfig) -> List[str]:
        errors = []

        conflicts = set(workspace.include_channels) & set(workspace.exclude_channels)
        if conflicts:
            errors.append(f"Channels cannot be both included and excluded: "
                          f"{', '.join(sorted(conflicts))}")

        return errors
