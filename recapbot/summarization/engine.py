"""
Claude-backed generation backend.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from .base import GenerationBackend
from .claude_client import ClaudeClient, ClaudeOptions
from .prompt_builder import PromptBuilder, SummarizationPrompt
from ..config.settings import AIConfig
from ..exceptions import GenerationError, RecapBotError, create_error_context
from ..models.post import Post
from ..models.summary import Summary, SummaryKind

logger = logging.getLogger(__name__)


class ClaudeGenerationBackend(GenerationBackend):
    """Generates summary text with the Claude Messages API."""

    def __init__(self,
                 claude_client: ClaudeClient,
                 ai_config: Optional[AIConfig] = None,
                 prompt_builder: Optional[PromptBuilder] = None):
        """Initialize the backend.

        Args:
            claude_client: Claude API client
            ai_config: Model and per-kind generation parameters
            prompt_builder: Prompt builder; defaults to built-in en_US prompts
        """
        self.claude_client = claude_client
        self.ai_config = ai_config or AIConfig()
        self.prompt_builder = prompt_builder or PromptBuilder()

    async def summarize_from_posts(self, posts: Sequence[Post]) -> str:
        prompt = self.prompt_builder.build_weekly_prompt(posts)
        return await self._generate(prompt)

    async def summarize_from_summaries(self, summaries: Sequence[Summary],
                                       kind: SummaryKind) -> str:
        prompt = self.prompt_builder.build_roll_up_prompt(summaries, kind)
        return await self._generate(prompt)

    def options_for(self, kind: SummaryKind) -> ClaudeOptions:
        generation = self.ai_config.generation_for(kind)
        return ClaudeOptions(
            model=self.ai_config.model_for(kind),
            max_tokens=generation.max_tokens,
            temperature=generation.temperature,
            top_p=generation.top_p,
            top_k=generation.top_k,
            stop_sequences=list(generation.stop_sequences),
        )

    async def _generate(self, prompt: SummarizationPrompt) -> str:
        options = self.options_for(prompt.kind)
        logger.info(f"Generating {prompt.kind.value} summary from {prompt.item_count} items: "
                    f"model={options.model}, max_tokens={options.max_tokens}")
        logger.debug(f"System prompt length: {len(prompt.system_prompt)} chars, "
                     f"user prompt length: {len(prompt.user_prompt)} chars")

        try:
            response = await self.claude_client.create_message(
                prompt=prompt.user_prompt,
                system_prompt=prompt.system_prompt,
                options=options,
            )
        except RecapBotError:
            raise
        except Exception as e:
            raise GenerationError(
                f"{prompt.kind.value} generation failed: {e}",
                context=create_error_context(operation="generate",
                                             summary_kind=prompt.kind.value),
                cause=e,
            )

        content = response.content.strip()
        if not content:
            raise GenerationError(
                f"{prompt.kind.value} generation returned no text",
                context=create_error_context(operation="generate",
                                             summary_kind=prompt.kind.value),
            )
        return content

    def health_info(self) -> Dict[str, Any]:
        return {
            "model": self.ai_config.model,
            "locale": self.prompt_builder.locale,
            "usage_stats": self.claude_client.get_usage_stats().to_dict(),
        }
