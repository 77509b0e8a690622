"""
Slack Web API gateways.

The user gateway acts with the user token: it searches the user's messages,
reads the summary thread and posts summaries into it. The bot gateway acts
with the bot token and only sets the thread up.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Set

from slack_sdk.errors import SlackApiError
from slack_sdk.http_retry.builtin_async_handlers import AsyncRateLimitErrorRetryHandler
from slack_sdk.web.async_client import AsyncWebClient

from .base import MessagingGateway
from ..aggregation.codec import MessageCodec
from ..config.constants import (
    SLACK_CONVERSATIONS_PAGE_SIZE, SLACK_RATE_LIMIT_DELAY, SLACK_REPLIES_PAGE_SIZE,
    SLACK_SEARCH_PAGE_SIZE,
)
from ..config.settings import WorkspaceConfig
from ..exceptions import GatewayError, GatewayPermissionError, GatewayRateLimitError
from ..models.channel import ChannelRef
from ..models.period import Period
from ..models.post import Post
from ..models.summary import Summary, SummaryKind

logger = logging.getLogger(__name__)

PERMISSION_ERRORS = {
    "missing_scope", "not_authed", "invalid_auth", "account_inactive", "token_revoked",
    "no_permission", "not_in_channel", "restricted_action", "channel_not_found",
}


def create_client(token: str, max_rate_limit_retries: int = 3) -> AsyncWebClient:
    """AsyncWebClient that retries HTTP 429 responses after Retry-After."""
    client = AsyncWebClient(token=token)
    client.retry_handlers.append(
        AsyncRateLimitErrorRetryHandler(max_retry_count=max_rate_limit_retries)
    )
    return client


def _slack_error_code(error: SlackApiError) -> str:
    response = getattr(error, "response", None)
    if response is None:
        return ""
    data = getattr(response, "data", None)
    if isinstance(data, dict):
        return data.get("error") or ""
    return ""


class SlackClientBase:
    """Shared call wrapper mapping Slack errors to gateway errors."""

    def __init__(self, client: AsyncWebClient):
        self.client = client

    async def _call(self, operation: str, call: Awaitable[Any]) -> Any:
        try:
            response = await call
        except SlackApiError as e:
            raise self._map_error(operation, e)

        if not response.get("ok", False):
            error_code = response.get("error", "unknown_error")
            raise GatewayError(f"{operation} failed: {error_code}", platform_error=error_code)
        return response

    @staticmethod
    def _map_error(operation: str, error: SlackApiError) -> GatewayError:
        error_code = _slack_error_code(error) or "unknown_error"
        message = f"{operation} failed: {error_code}"
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)

        if status == 429 or error_code == "ratelimited":
            headers = getattr(response, "headers", None) or {}
            retry_after = headers.get("Retry-After") or headers.get("retry-after")
            return GatewayRateLimitError(
                message, retry_after=int(retry_after) if retry_after else None,
                platform_error=error_code, cause=error,
            )
        if error_code in PERMISSION_ERRORS:
            return GatewayPermissionError(message, platform_error=error_code, cause=error)
        return GatewayError(message, platform_error=error_code, cause=error)


class SlackUserGateway(SlackClientBase, MessagingGateway):
    """MessagingGateway backed by the Slack Web API and a user token."""

    def __init__(self,
                 client: AsyncWebClient,
                 codec: MessageCodec,
                 workspace: Optional[WorkspaceConfig] = None,
                 page_delay: float = SLACK_RATE_LIMIT_DELAY):
        super().__init__(client)
        self.codec = codec
        self.workspace = workspace or WorkspaceConfig()
        self.page_delay = page_delay
        self._allowed_channels: Dict[str, Set[str]] = {}

    def with_workspace(self, workspace: WorkspaceConfig) -> "SlackUserGateway":
        """Gateway sharing this client but filtering with `workspace`."""
        return SlackUserGateway(self.client, self.codec, workspace, self.page_delay)

    async def fetch_user_posts(self, user_id: str, period: Period,
                               channel_ids: Optional[Sequence[str]] = None) -> List[Post]:
        matches = await self._search_user_messages(user_id, period)

        if channel_ids is not None:
            allowed = set(channel_ids)
        else:
            allowed = await self.allowed_channel_ids(user_id)

        posts = []
        for match in matches:
            post = Post.from_slack_message(match)
            if post.user_id != user_id or not post.text:
                continue
            if not period.contains(post.timestamp):
                continue
            if post.channel_id not in allowed:
                continue
            posts.append(post)

        posts.sort(key=lambda p: p.timestamp)
        logger.info(f"{len(posts)} of {len(matches)} search matches kept for "
                    f"{user_id} in {period.render()}")
        return posts

    async def _search_user_messages(self, user_id: str, period: Period) -> List[Dict[str, Any]]:
        # after:/before: exclude the named day, so widen by one day each side
        after = (period.first_day - timedelta(days=1)).isoformat()
        before = (period.last_day + timedelta(days=1)).isoformat()
        query = f"from:<@{user_id}> after:{after} before:{before}"
        logger.debug(f"Searching messages: {query}")

        matches: List[Dict[str, Any]] = []
        page, pages = 1, 1
        while page <= pages:
            if page > 1:
                await asyncio.sleep(self.page_delay)
            response = await self._call("search.messages", self.client.search_messages(
                query=query, sort="timestamp", sort_dir="asc",
                count=SLACK_SEARCH_PAGE_SIZE, page=page,
            ))
            messages = response.get("messages") or {}
            page_matches = messages.get("matches") or []
            pages = (messages.get("paging") or {}).get("pages", 1) or 1
            logger.debug(f"search.messages page {page}/{pages}: {len(page_matches)} matches")
            matches.extend(page_matches)
            page += 1
        return matches

    async def allowed_channel_ids(self, user_id: str) -> Set[str]:
        """Ids of the user's conversations the workspace settings allow."""
        if user_id in self._allowed_channels:
            return self._allowed_channels[user_id]

        allowed: Set[str] = set()
        total = 0
        cursor = None
        while True:
            response = await self._call("users.conversations", self.client.users_conversations(
                user=user_id, types=self.workspace.channel_types(),
                exclude_archived=False, limit=SLACK_CONVERSATIONS_PAGE_SIZE, cursor=cursor,
            ))
            for channel in response.get("channels") or []:
                total += 1
                is_private = bool(channel.get("is_private")) and not (
                    channel.get("is_im") or channel.get("is_mpim"))
                if self.workspace.allows(channel["id"], channel.get("name", ""), is_private):
                    allowed.add(channel["id"])
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
            await asyncio.sleep(self.page_delay)

        logger.info(f"{len(allowed)} of {total} conversations allowed for {user_id}")
        self._allowed_channels[user_id] = allowed
        return allowed

    async def fetch_thread_entries(self, channel: ChannelRef, kind: SummaryKind,
                                   year: int) -> List[Summary]:
        thread_ts = channel.require_thread()
        entries: List[Summary] = []
        scanned = 0
        cursor = None
        while True:
            response = await self._call("conversations.replies", self.client.conversations_replies(
                channel=channel.channel_id, ts=thread_ts,
                limit=SLACK_REPLIES_PAGE_SIZE, cursor=cursor,
            ))
            for message in response.get("messages") or []:
                scanned += 1
                summary = self.codec.parse(message.get("text", ""), year,
                                           message_id=message.get("ts"))
                if summary is not None and summary.kind == kind:
                    entries.append(summary)
            cursor = (response.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
            await asyncio.sleep(self.page_delay)

        logger.debug(f"Decoded {len(entries)} {kind.value} entries for {year} "
                     f"from {scanned} thread messages")
        return entries

    async def post_reply(self, channel: ChannelRef, text: str) -> str:
        return await self._post(channel, text, broadcast=False)

    async def post_broadcast_reply(self, channel: ChannelRef, text: str) -> str:
        return await self._post(channel, text, broadcast=True)

    async def _post(self, channel: ChannelRef, text: str, broadcast: bool) -> str:
        thread_ts = channel.require_thread()
        kwargs: Dict[str, Any] = {"channel": channel.channel_id, "thread_ts": thread_ts,
                                  "text": text}
        if broadcast:
            kwargs["reply_broadcast"] = True
        response = await self._call("chat.postMessage", self.client.chat_postMessage(**kwargs))
        ts = response.get("ts")
        if not ts:
            raise GatewayError("chat.postMessage returned no ts")
        logger.debug(f"Posted reply {ts} to {channel}")
        return ts


class SlackBotGateway(SlackClientBase):
    """Bot-token operations used to create the summary thread."""

    async def open_dm_channel(self, user_id: str) -> str:
        response = await self._call("conversations.open",
                                    self.client.conversations_open(users=user_id))
        channel_id = (response.get("channel") or {}).get("id")
        if not channel_id:
            raise GatewayError("conversations.open returned no channel")
        return channel_id

    async def start_thread(self, channel_id: str, text: str) -> ChannelRef:
        """Post a root message and return a reference to its thread."""
        response = await self._call("chat.postMessage",
                                    self.client.chat_postMessage(channel=channel_id, text=text))
        ts = response.get("ts")
        if not ts:
            raise GatewayError("chat.postMessage returned no ts")
        logger.info(f"Started summary thread {ts} in {channel_id}")
        return ChannelRef.for_thread(channel_id, ts)
