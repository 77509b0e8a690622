"""
Generation backend interface consumed by the aggregation engine.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from ..models.post import Post
from ..models.summary import Summary, SummaryKind


class GenerationBackend(ABC):
    """Turns posts or lower-level summaries into generated text."""

    @abstractmethod
    async def summarize_from_posts(self, posts: Sequence[Post]) -> str:
        """Weekly text from raw posts."""

    @abstractmethod
    async def summarize_from_summaries(self, summaries: Sequence[Summary],
                                       kind: SummaryKind) -> str:
        """Text of `kind` (monthly or yearly) from the ordered child summaries."""
