"""
Raw user activity as read from the messaging platform.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import pytz


def ts_to_datetime(ts: str) -> datetime:
    """Convert a Slack message timestamp (`"1736150400.000200"`) to UTC."""
    return datetime.fromtimestamp(float(ts), tz=pytz.UTC)


@dataclass(frozen=True)
class Post:
    """A single message written by the user."""
    id: str
    user_id: str
    text: str
    timestamp: datetime
    channel_id: str
    thread_ts: Optional[str] = None

    @classmethod
    def from_slack_message(cls, message: Dict[str, Any],
                           channel_id: Optional[str] = None) -> "Post":
        """Build a Post from a Slack API message or search match."""
        channel = message.get("channel")
        if isinstance(channel, dict):
            channel = channel.get("id")
        return cls(
            id=message["ts"],
            user_id=message.get("user", ""),
            text=message.get("text", ""),
            timestamp=ts_to_datetime(message["ts"]),
            channel_id=channel_id or channel or "",
            thread_ts=message.get("thread_ts"),
        )

    @property
    def is_in_thread(self) -> bool:
        return self.thread_ts is not None

    def to_summary_format(self) -> str:
        """One-line form used in generation prompts."""
        return f"[{self.timestamp.strftime('%Y-%m-%d')}] {self.text}"
