"""
Summary text generation for Recap Bot.
"""

from .base import GenerationBackend
from .claude_client import ClaudeClient, ClaudeOptions, ClaudeResponse, UsageStats
from .engine import ClaudeGenerationBackend
from .prompt_builder import (
    DEFAULT_PROMPT_TEMPLATES, PromptBuilder, PromptTemplate, SummarizationPrompt,
    build_prompt, load_prompt_template, load_prompt_templates,
)

__all__ = [
    'GenerationBackend',
    'ClaudeClient',
    'ClaudeOptions',
    'ClaudeResponse',
    'UsageStats',
    'ClaudeGenerationBackend',
    'DEFAULT_PROMPT_TEMPLATES',
    'PromptBuilder',
    'PromptTemplate',
    'SummarizationPrompt',
    'build_prompt',
    'load_prompt_template',
    'load_prompt_templates',
]
