"""
Environment variable handling for Recap Bot configuration.
"""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from .constants import DEFAULT_LOCALE, DEFAULT_SUMMARIZATION_MODEL
from .settings import (
    AIConfig, BotConfig, GenerationConfig, LogLevel, SlackConfig, WorkspaceConfig,
)
from ..models.period import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

# camelCase keys accepted in AI config files alongside snake_case
_GENERATION_KEYS = {
    "maxTokens": "max_tokens",
    "topP": "top_p",
    "topK": "top_k",
    "stopSequences": "stop_sequences",
    "maxRetries": "max_retries",
}


class EnvironmentLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load_config(env_file: Optional[str] = None) -> BotConfig:
        """Load configuration from environment variables and `.env`."""
        load_dotenv(env_file)

        slack_config = SlackConfig(
            bot_token=os.getenv('SLACK_BOT_TOKEN', ''),
            user_token=os.getenv('SLACK_USER_TOKEN', ''),
            dm_channel_id=os.getenv('DM_CHANNEL_ID') or None,
            thread_ts=os.getenv('THREAD_TS') or None,
            page_delay=float(os.getenv('SLACK_PAGE_DELAY', '1.5')),
        )

        ai_config = EnvironmentLoader._load_ai_config(os.getenv('AI_CONFIG_PATH'))
        ai_config.api_key = os.getenv('ANTHROPIC_API_KEY', '')
        ai_config.base_url = os.getenv('ANTHROPIC_BASE_URL') or None
        ai_config.prompts_dir = os.getenv('PROMPTS_DIR') or None
        if os.getenv('AI_MODEL'):
            ai_config.model = os.getenv('AI_MODEL')
        if os.getenv('AI_MAX_TOKENS'):
            ai_config.generation.max_tokens = int(os.getenv('AI_MAX_TOKENS'))

        workspace_config = WorkspaceConfig(
            include_channels=EnvironmentLoader._parse_list(os.getenv('INCLUDE_CHANNELS', '')),
            exclude_channels=EnvironmentLoader._parse_list(os.getenv('EXCLUDE_CHANNELS', '')),
            include_private_channels=os.getenv('INCLUDE_PRIVATE_CHANNELS', 'true').lower() != 'false',
            include_direct_messages=os.getenv('INCLUDE_DIRECT_MESSAGES', 'false').lower() == 'true',
            include_group_messages=os.getenv('INCLUDE_GROUP_MESSAGES', 'false').lower() == 'true',
        )

        log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
        log_level = LogLevel.INFO
        try:
            log_level = LogLevel(log_level_str)
        except ValueError:
            logger.warning(f"Unknown LOG_LEVEL {log_level_str}, using INFO")

        target_year = os.getenv('TARGET_YEAR')

        return BotConfig(
            slack=slack_config,
            ai=ai_config,
            workspace=workspace_config,
            target_year=int(target_year) if target_year else datetime.now().year,
            locale=os.getenv('LOCALE', DEFAULT_LOCALE),
            timezone=os.getenv('TIMEZONE', DEFAULT_TIMEZONE),
            log_level=log_level,
            environment=os.getenv('ENVIRONMENT', 'development'),
        )

    @staticmethod
    def _load_ai_config(path: Optional[str]) -> AIConfig:
        """AI config from a YAML file, merged over the defaults.

        A missing or unparsable file yields the defaults with a warning.
        """
        if not path:
            return AIConfig()
        try:
            with open(path, encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("top level must be a mapping")
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning(f"Failed to load AI config from {path}, using defaults: {e}")
            return AIConfig()
        return EnvironmentLoader.parse_ai_config(data)

    @staticmethod
    def parse_ai_config(data: Dict[str, Any]) -> AIConfig:
        """Build an AIConfig from the parsed YAML mapping."""
        config = AIConfig()

        model = data.get('model')
        if isinstance(model, dict):
            model = model.get('id')
        config.model = model or DEFAULT_SUMMARIZATION_MODEL

        generation = EnvironmentLoader._normalize_keys(data.get('generation') or {})
        if 'max_retries' in generation:
            config.max_retries = int(generation['max_retries'])
        config.generation = GenerationConfig().merged(generation)

        overrides = data.get('summary_overrides') or data.get('summaryOverrides') or {}
        config.summary_overrides = {
            kind: EnvironmentLoader._normalize_keys(values or {})
            for kind, values in overrides.items()
        }
        return config

    @staticmethod
    def _normalize_keys(values: Dict[str, Any]) -> Dict[str, Any]:
        return {_GENERATION_KEYS.get(key, key): value for key, value in values.items()}

    @staticmethod
    def _parse_list(value: str, delimiter: str = ',') -> List[str]:
        """Parse a comma-separated string into a list."""
        if not value:
            return []
        return [item.strip() for item in value.split(delimiter) if item.strip()]
