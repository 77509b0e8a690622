"""
Shared fixtures: an in-memory Slack thread and a deterministic backend.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import pytest
import pytz

from recapbot.aggregation.codec import MessageCodec
from recapbot.models.channel import ChannelRef
from recapbot.models.period import Period
from recapbot.models.post import Post
from recapbot.models.summary import Summary, SummaryKind
from recapbot.slack.base import MessagingGateway
from recapbot.summarization.base import GenerationBackend

THREAD_TS = "1735689600.000100"


class FakeGateway(MessagingGateway):
    """Stores posted messages as text and decodes them on read, like Slack."""

    def __init__(self, posts: Optional[List[Post]] = None, codec: Optional[MessageCodec] = None):
        self.posts = list(posts or [])
        self.codec = codec or MessageCodec()
        self.thread: List[Tuple[str, str]] = []
        self.broadcasts: List[str] = []
        self.fetch_calls: List[Period] = []
        self._counter = 0

    async def fetch_user_posts(self, user_id: str, period: Period,
                               channel_ids: Optional[Sequence[str]] = None) -> List[Post]:
        self.fetch_calls.append(period)
        return [p for p in self.posts if p.user_id == user_id and period.contains(p.timestamp)]

    async def fetch_thread_entries(self, channel: ChannelRef, kind: SummaryKind,
                                   year: int) -> List[Summary]:
        entries = []
        for ts, text in self.thread:
            summary = self.codec.parse(text, year, message_id=ts)
            if summary is not None and summary.kind == kind:
                entries.append(summary)
        return entries

    async def post_reply(self, channel: ChannelRef, text: str) -> str:
        return self._append(text)

    async def post_broadcast_reply(self, channel: ChannelRef, text: str) -> str:
        ts = self._append(text)
        self.broadcasts.append(ts)
        return ts

    def seed(self, summary: Summary) -> str:
        """Put an already posted summary into the thread."""
        return self._append(self.codec.render(summary))

    def _append(self, text: str) -> str:
        self._counter += 1
        ts = f"1740000000.{self._counter:06d}"
        self.thread.append((ts, text))
        return ts

    def texts(self) -> List[str]:
        return [text for _, text in self.thread]


class FakeBackend(GenerationBackend):
    """Returns text describing its inputs and records every call."""

    def __init__(self):
        self.post_calls: List[List[Post]] = []
        self.summary_calls: List[Tuple[SummaryKind, List[Summary]]] = []

    async def summarize_from_posts(self, posts: Sequence[Post]) -> str:
        self.post_calls.append(list(posts))
        return f"weekly from {len(posts)} posts"

    async def summarize_from_summaries(self, summaries: Sequence[Summary],
                                       kind: SummaryKind) -> str:
        self.summary_calls.append((kind, list(summaries)))
        return f"{kind.value} from {len(summaries)} summaries"


def make_post(year: int, month: int, day: int, text: str = "did things", hour: int = 12,
              user_id: str = "U1", channel_id: str = "C1") -> Post:
    timestamp = datetime(year, month, day, hour, tzinfo=pytz.UTC)
    return Post(
        id=f"{timestamp.timestamp():.6f}",
        user_id=user_id,
        text=text,
        timestamp=timestamp,
        channel_id=channel_id,
    )


@pytest.fixture
def post_factory():
    return make_post


@pytest.fixture
def thread_channel():
    return ChannelRef.for_thread("D1", THREAD_TS)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def gateway_factory():
    return FakeGateway
