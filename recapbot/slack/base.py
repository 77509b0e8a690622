"""
Messaging gateway interface consumed by the aggregation engine.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models.channel import ChannelRef
from ..models.period import Period
from ..models.post import Post
from ..models.summary import Summary, SummaryKind


class MessagingGateway(ABC):
    """Read posts and thread history, and post replies, on behalf of the user.

    Implementations must be safe to reuse sequentially across calls; they do
    not need to be safe for concurrent use.
    """

    @abstractmethod
    async def fetch_user_posts(self, user_id: str, period: Period,
                               channel_ids: Optional[Sequence[str]] = None) -> List[Post]:
        """Posts by `user_id` inside `period`, oldest first."""

    @abstractmethod
    async def fetch_thread_entries(self, channel: ChannelRef, kind: SummaryKind,
                                   year: int) -> List[Summary]:
        """Decoded summaries of `kind` and `year` from the thread, in thread
        order. Entries that do not decode are dropped."""

    @abstractmethod
    async def post_reply(self, channel: ChannelRef, text: str) -> str:
        """Post `text` as a thread reply and return the new message id."""

    @abstractmethod
    async def post_broadcast_reply(self, channel: ChannelRef, text: str) -> str:
        """Post a thread reply that is also shown in the channel."""
