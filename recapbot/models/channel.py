"""
Reference to the conversation (and optionally thread) summaries live in.
"""

from dataclasses import dataclass
from typing import Optional

from ..exceptions import InvalidInputError


@dataclass(frozen=True)
class ChannelRef:
    """A channel id plus the `thread_ts` of the summary thread, if any."""
    channel_id: str
    thread_ts: Optional[str] = None

    def __post_init__(self):
        if not self.channel_id or not self.channel_id.strip():
            raise InvalidInputError("Channel ID is required", field_name="channel_id")
        if self.thread_ts is not None and not self.thread_ts.strip():
            raise InvalidInputError("thread_ts must not be blank", field_name="thread_ts")

    @classmethod
    def for_thread(cls, channel_id: str, thread_ts: str) -> "ChannelRef":
        """Reference that can be used for reply-style operations."""
        if not thread_ts:
            raise InvalidInputError("thread_ts is required for thread replies",
                                    field_name="thread_ts")
        return cls(channel_id=channel_id, thread_ts=thread_ts)

    @property
    def is_thread(self) -> bool:
        return self.thread_ts is not None

    def require_thread(self) -> str:
        """Return the thread ts or raise if this reference has none."""
        if self.thread_ts is None:
            raise InvalidInputError(
                f"Channel {self.channel_id} has no thread_ts; replies need a thread",
                field_name="thread_ts",
            )
        return self.thread_ts

    def __str__(self) -> str:
        return f"{self.channel_id}:{self.thread_ts}" if self.thread_ts else self.channel_id
