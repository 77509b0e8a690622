"""
Claude API client used by the generation backend.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import anthropic
from anthropic import AsyncAnthropic

from ..config.constants import DEFAULT_SUMMARIZATION_MODEL
from ..exceptions import (
    AuthenticationError, ClaudeAPIError, NetworkError, RateLimitError, TimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 30


@dataclass
class ClaudeOptions:
    """Options for one Messages API request."""
    model: str = DEFAULT_SUMMARIZATION_MODEL
    max_tokens: int = 4096
    temperature: float = 0.7
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stop_sequences: List[str] = field(default_factory=list)


@dataclass
class ClaudeResponse:
    """Text and usage returned by the API."""
    content: str
    model: str
    usage: Dict[str, int]
    stop_reason: str
    response_id: str = ""

    @property
    def input_tokens(self) -> int:
        return self.usage.get("input_tokens", 0)

    @property
    def output_tokens(self) -> int:
        return self.usage.get("output_tokens", 0)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def is_complete(self) -> bool:
        """False when generation stopped at the token limit."""
        return self.stop_reason != "max_tokens"


@dataclass
class UsageStats:
    """Claude API usage statistics."""
    total_requests: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    errors_count: int = 0
    rate_limit_hits: int = 0
    last_request_time: Optional[datetime] = None

    def add_request(self, response: ClaudeResponse):
        self.total_requests += 1
        self.total_input_tokens += response.input_tokens
        self.total_output_tokens += response.output_tokens
        self.last_request_time = datetime.utcnow()

    def add_error(self, is_rate_limit: bool = False):
        self.errors_count += 1
        if is_rate_limit:
            self.rate_limit_hits += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "total_input_tokens": self.total_input_tokens,
            "total_output_tokens": self.total_output_tokens,
            "errors_count": self.errors_count,
            "rate_limit_hits": self.rate_limit_hits,
            "last_request_time": self.last_request_time.isoformat() if self.last_request_time else None,
        }


class ClaudeClient:
    """Client for the Anthropic Messages API with retries and usage tracking."""

    def __init__(self, api_key: str, base_url: Optional[str] = None,
                 default_timeout: float = 120, max_retries: int = 2,
                 client: Optional[AsyncAnthropic] = None):
        """Initialize Claude client.

        Args:
            api_key: Anthropic API key
            base_url: Optional custom base URL
            default_timeout: Default request timeout in seconds
            max_retries: Retries for rate limit, timeout and connection failures
            client: Pre-built AsyncAnthropic client
        """
        self.api_key = api_key
        self.base_url = base_url
        self.default_timeout = default_timeout
        self.max_retries = max_retries
        self.usage_stats = UsageStats()

        if client is None:
            client_kwargs: Dict[str, Any] = {
                "api_key": api_key,
                "timeout": default_timeout,
                # retries are handled here so they show up in usage stats
                "max_retries": 0,
            }
            if base_url:
                client_kwargs["base_url"] = base_url
            client = AsyncAnthropic(**client_kwargs)
        self._client = client

        if api_key and len(api_key) > 10:
            logger.info(f"ClaudeClient initialized with API key: {api_key[:7]}...{api_key[-4:]}, "
                        f"base_url: {base_url}")

    async def close(self):
        await self._client.close()

    async def create_message(self, prompt: str, system_prompt: str,
                             options: ClaudeOptions) -> ClaudeResponse:
        """Send one prompt and return the generated text.

        Raises:
            RateLimitError, TimeoutError, NetworkError: after retries run out
            AuthenticationError: if the API key is rejected
            ClaudeAPIError: for any other API failure
        """
        params = self._build_request_params(prompt, system_prompt, options)
        retry_after = DEFAULT_RETRY_AFTER

        for attempt in range(self.max_retries + 1):
            try:
                response = await self._client.messages.create(**params)
                claude_response = self._process_response(response, options.model)
                self.usage_stats.add_request(claude_response)
                logger.info(
                    f"Message created: model={claude_response.model}, "
                    f"tokens={claude_response.input_tokens} in + "
                    f"{claude_response.output_tokens} out"
                )
                if not claude_response.is_complete():
                    logger.warning("Response truncated at max_tokens")
                return claude_response

            except anthropic.RateLimitError as e:
                self.usage_stats.add_error(is_rate_limit=True)
                retry_after = self._extract_retry_after(e)
                if attempt < self.max_retries:
                    logger.warning(f"Claude rate limited, retrying in {retry_after}s "
                                   f"(attempt {attempt + 1}/{self.max_retries})")
                    await asyncio.sleep(retry_after)
                    continue
                raise RateLimitError(api_name="Claude", retry_after=retry_after,
                                     limit_type="requests", cause=e)

            except anthropic.AuthenticationError as e:
                self.usage_stats.add_error()
                raise AuthenticationError("Claude", str(e), cause=e)

            except anthropic.APITimeoutError as e:
                self.usage_stats.add_error()
                if attempt < self.max_retries:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise TimeoutError("Claude", self.default_timeout, cause=e)

            except anthropic.APIConnectionError as e:
                self.usage_stats.add_error()
                if attempt < self.max_retries:
                    await asyncio.sleep(2 ** attempt)
                    continue
                raise NetworkError("Claude", str(e), cause=e)

            except anthropic.BadRequestError as e:
                self.usage_stats.add_error()
                error_message = str(e)
                if "context length" in error_message.lower() or "too long" in error_message.lower():
                    raise ClaudeAPIError("Prompt exceeds maximum context length",
                                         api_error_code="context_length_exceeded", cause=e)
                raise ClaudeAPIError(f"Bad request: {error_message}",
                                     api_error_code="bad_request", cause=e)

            except anthropic.APIStatusError as e:
                self.usage_stats.add_error()
                raise ClaudeAPIError(f"API error {e.status_code}: {e}",
                                     api_error_code=str(e.status_code), cause=e)

        raise ClaudeAPIError("Max retries exceeded", api_error_code="max_retries_exceeded")

    def get_usage_stats(self) -> UsageStats:
        return self.usage_stats

    def _build_request_params(self, prompt: str, system_prompt: str,
                              options: ClaudeOptions) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": options.model,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            params["system"] = system_prompt
        if options.top_p is not None:
            params["top_p"] = options.top_p
        if options.top_k is not None:
            params["top_k"] = options.top_k
        if options.stop_sequences:
            params["stop_sequences"] = options.stop_sequences
        return params

    def _process_response(self, response: Any, model: str) -> ClaudeResponse:
        """Join the text blocks of a Messages API response."""
        blocks = getattr(response, "content", None) or []
        content = "".join(
            getattr(block, "text", "") for block in blocks
            if getattr(block, "type", "text") == "text"
        )

        usage = {}
        if getattr(response, "usage", None) is not None:
            usage = {
                "input_tokens": getattr(response.usage, "input_tokens", 0),
                "output_tokens": getattr(response.usage, "output_tokens", 0),
            }

        return ClaudeResponse(
            content=content,
            model=getattr(response, "model", None) or model,
            usage=usage,
            stop_reason=getattr(response, "stop_reason", None) or "end_turn",
            response_id=getattr(response, "id", "") or "",
        )

    @staticmethod
    def _extract_retry_after(error: Exception) -> int:
        """Seconds to wait, from the retry-after header or the error text."""
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
        if headers is not None:
            value = headers.get("retry-after")
            if value:
                try:
                    return max(1, int(float(value)))
                except ValueError:
                    pass

        match = re.search(r"retry.+?(\d+).+?second", str(error), re.IGNORECASE)
        if match:
            return int(match.group(1))
        return DEFAULT_RETRY_AFTER
