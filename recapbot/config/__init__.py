"""
Configuration management for Recap Bot.
"""

from .settings import (
    AIConfig, BotConfig, GenerationConfig, LogLevel, SlackConfig, WorkspaceConfig,
)
from .environment import EnvironmentLoader
from .validation import ConfigValidator

__all__ = [
    'AIConfig',
    'BotConfig',
    'GenerationConfig',
    'LogLevel',
    'SlackConfig',
    'WorkspaceConfig',
    'EnvironmentLoader',
    'ConfigValidator',
]
