"""
Tests for configuration loading and validation.
"""

from datetime import datetime

import pytest

from recapbot.config.environment import EnvironmentLoader
from recapbot.config.settings import (
    AIConfig, BotConfig, GenerationConfig, LogLevel, SlackConfig, WorkspaceConfig,
)
from recapbot.config.validation import ConfigValidator
from recapbot.models.summary import SummaryKind

ENV_VARS = [
    'SLACK_BOT_TOKEN', 'SLACK_USER_TOKEN', 'DM_CHANNEL_ID', 'THREAD_TS', 'SLACK_PAGE_DELAY',
    'AI_CONFIG_PATH', 'ANTHROPIC_API_KEY', 'ANTHROPIC_BASE_URL', 'PROMPTS_DIR', 'AI_MODEL',
    'AI_MAX_TOKENS', 'INCLUDE_CHANNELS', 'EXCLUDE_CHANNELS', 'INCLUDE_PRIVATE_CHANNELS',
    'INCLUDE_DIRECT_MESSAGES', 'INCLUDE_GROUP_MESSAGES', 'LOG_LEVEL', 'TARGET_YEAR',
    'LOCALE', 'TIMEZONE', 'ENVIRONMENT',
]

AI_YAML = """
model:
  id: claude-sonnet-4-5
generation:
  maxTokens: 2048
  temperature: 0.3
  topP: 0.8
  maxRetries: 4
summaryOverrides:
  yearly:
    maxTokens: 8192
"""


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # set first so values written by load_dotenv are undone at teardown
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return str(tmp_path / ".env")


def valid_config(**overrides):
    config = BotConfig(
        slack=SlackConfig(bot_token="xoxb-1", user_token="xoxp-1", dm_channel_id="D0123ABC",
                          thread_ts="1735689600.000100"),
        ai=AIConfig(api_key="sk-ant-key"),
    )
    for name, value in overrides.items():
        setattr(config, name, value)
    return config


class TestEnvironmentLoader:
    """Tests for EnvironmentLoader."""

    def test_defaults(self, clean_env):
        config = EnvironmentLoader.load_config(clean_env)

        assert config.slack.bot_token == ""
        assert config.slack.dm_channel_id is None
        assert config.slack.page_delay == 1.5
        assert config.ai.model == "claude-sonnet-4-5"
        assert config.ai.generation.max_tokens == 4096
        assert config.workspace.include_private_channels
        assert not config.workspace.include_direct_messages
        assert config.target_year == datetime.now().year
        assert config.locale == "en_US"
        assert config.timezone == "UTC"
        assert config.log_level == LogLevel.INFO

    def test_values_from_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv('SLACK_BOT_TOKEN', 'xoxb-abc')
        monkeypatch.setenv('THREAD_TS', '1735689600.000100')
        monkeypatch.setenv('INCLUDE_CHANNELS', 'general, dev ,,')
        monkeypatch.setenv('INCLUDE_PRIVATE_CHANNELS', 'false')
        monkeypatch.setenv('TARGET_YEAR', '2024')
        monkeypatch.setenv('LOCALE', 'ja_JP')
        monkeypatch.setenv('LOG_LEVEL', 'debug')

        config = EnvironmentLoader.load_config(clean_env)

        assert config.slack.bot_token == 'xoxb-abc'
        assert config.slack.thread_ts == '1735689600.000100'
        assert config.workspace.include_channels == ['general', 'dev']
        assert not config.workspace.include_private_channels
        assert config.target_year == 2024
        assert config.locale == 'ja_JP'
        assert config.log_level == LogLevel.DEBUG

    def test_env_file(self, clean_env, monkeypatch, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text("DM_CHANNEL_ID=D0123ABC\nTIMEZONE=Asia/Tokyo\n", encoding="utf-8")

        config = EnvironmentLoader.load_config(str(env_file))

        assert config.slack.dm_channel_id == 'D0123ABC'
        assert config.timezone == 'Asia/Tokyo'

    def test_unknown_log_level(self, clean_env, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'LOUD')
        assert EnvironmentLoader.load_config(clean_env).log_level == LogLevel.INFO

    def test_ai_config_file(self, clean_env, monkeypatch, tmp_path):
        path = tmp_path / "ai.yaml"
        path.write_text(AI_YAML, encoding="utf-8")
        monkeypatch.setenv('AI_CONFIG_PATH', str(path))

        config = EnvironmentLoader.load_config(clean_env)

        assert config.ai.model == 'claude-sonnet-4-5'
        assert config.ai.generation.max_tokens == 2048
        assert config.ai.generation.temperature == 0.3
        assert config.ai.generation.top_p == 0.8
        assert config.ai.max_retries == 4
        assert config.ai.generation_for(SummaryKind.YEARLY).max_tokens == 8192
        assert config.ai.generation_for(SummaryKind.WEEKLY).max_tokens == 2048

    def test_environment_overrides_file(self, clean_env, monkeypatch, tmp_path):
        path = tmp_path / "ai.yaml"
        path.write_text(AI_YAML, encoding="utf-8")
        monkeypatch.setenv('AI_CONFIG_PATH', str(path))
        monkeypatch.setenv('AI_MODEL', 'claude-opus-4-1')
        monkeypatch.setenv('AI_MAX_TOKENS', '1000')

        config = EnvironmentLoader.load_config(clean_env)

        assert config.ai.model == 'claude-opus-4-1'
        assert config.ai.generation.max_tokens == 1000

    @pytest.mark.parametrize("content", ["model: [unclosed", "- just\n- a list\n"])
    def test_bad_ai_config_falls_back(self, clean_env, monkeypatch, tmp_path, content):
        path = tmp_path / "ai.yaml"
        path.write_text(content, encoding="utf-8")
        monkeypatch.setenv('AI_CONFIG_PATH', str(path))

        config = EnvironmentLoader.load_config(clean_env)

        assert config.ai.generation == GenerationConfig()

    def test_missing_ai_config_falls_back(self, clean_env, monkeypatch, tmp_path):
        monkeypatch.setenv('AI_CONFIG_PATH', str(tmp_path / "missing.yaml"))
        assert EnvironmentLoader.load_config(clean_env).ai.model == 'claude-sonnet-4-5'

    def test_parse_ai_config_plain_model(self):
        config = EnvironmentLoader.parse_ai_config({'model': 'claude-haiku-4-5',
                                                    'summary_overrides': {'weekly': None}})
        assert config.model == 'claude-haiku-4-5'
        assert config.summary_overrides == {'weekly': {}}


class TestConfigValidator:
    """Tests for ConfigValidator."""

    def test_valid(self):
        assert ConfigValidator.validate_config(valid_config()) == []

    def test_missing_credentials(self):
        config = valid_config(slack=SlackConfig(bot_token=""), ai=AIConfig())
        errors = ConfigValidator.validate_config(config)
        assert "SLACK_BOT_TOKEN is required" in errors
        assert "ANTHROPIC_API_KEY is required" in errors

    def test_token_prefixes(self):
        config = valid_config(slack=SlackConfig(bot_token="xoxp-1", user_token="xoxb-1"))
        errors = ConfigValidator.validate_config(config)
        assert "Slack bot token should start with 'xoxb-'" in errors
        assert "Slack user token should start with 'xoxp-'" in errors

    def test_thread_and_channel_format(self):
        config = valid_config(slack=SlackConfig(bot_token="xoxb-1", dm_channel_id="general",
                                                thread_ts="yesterday"))
        errors = ConfigValidator.validate_config(config)
        assert "Invalid THREAD_TS: yesterday" in errors
        assert "Invalid DM channel ID: general" in errors

    def test_generation_ranges(self):
        ai = AIConfig(api_key="k", generation=GenerationConfig(max_tokens=0, temperature=1.5,
                                                               top_p=0.0, top_k=0))
        errors = ConfigValidator.validate_config(valid_config(ai=ai))
        assert len(errors) == 4
        assert all(e.startswith("generation:") for e in errors)

    def test_overrides_checked(self):
        ai = AIConfig(api_key="k", summary_overrides={
            "yearly": {"max_tokens": 500000},
            "daily": {},
        })
        errors = ConfigValidator.validate_config(valid_config(ai=ai))
        assert "summary_overrides.yearly: max tokens cannot exceed 200,000" in errors
        assert "Unknown summary override: daily" in errors

    def test_workspace_conflict(self):
        workspace = WorkspaceConfig(include_channels=["dev"], exclude_channels=["dev"])
        errors = ConfigValidator.validate_config(valid_config(workspace=workspace))
        assert errors == ["Channels cannot be both included and excluded: dev"]

    def test_locale_timezone_year(self):
        errors = ConfigValidator.validate_config(
            valid_config(locale="fr_FR", timezone="Mars/Olympus", target_year=0))
        assert len(errors) == 3


class TestWorkspaceConfig:
    """Tests for WorkspaceConfig channel rules."""

    def test_channel_types(self):
        assert WorkspaceConfig().channel_types() == "public_channel,private_channel"
        assert WorkspaceConfig(include_private_channels=False, include_group_messages=True) \
            .channel_types() == "public_channel,mpim"

    def test_allows(self):
        workspace = WorkspaceConfig(include_channels=["general", "C2"], exclude_channels=["C2"])
        assert workspace.allows("C1", "general")
        assert not workspace.allows("C2", "random")
        assert not workspace.allows("C3", "random")

    def test_private_channels(self):
        assert WorkspaceConfig().allows("G1", "secret", is_private=True)
        assert not WorkspaceConfig(include_private_channels=False).allows("G1", is_private=True)

    def test_with_private(self):
        workspace = WorkspaceConfig(include_private_channels=False)
        assert workspace.with_private(None) is workspace
        assert workspace.with_private(True).include_private_channels
        assert not workspace.include_private_channels


class TestBotConfig:
    """Tests for BotConfig."""

    def test_to_dict_hides_secrets(self):
        data = valid_config().to_dict()
        assert data["slack"]["user_token_set"] is True
        assert "xoxb-1" not in str(data)
        assert "sk-ant-key" not in str(data)
