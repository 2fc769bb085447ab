"""
DeepSeek LLM provider wrapper (OpenAI-compatible chat completions)

One request per agent round: the whole conversation plus the tool catalog
go out, exactly one assistant Turn comes back. The provider does not
interpret tool semantics.
"""
from openai import OpenAI
import openai
import httpx
from typing import Optional, Dict, Any, List
import asyncio
import json
import logging
import time

from app.agent.types import Turn, ToolRequest
from app.config import settings

logger = logging.getLogger(__name__)


class ReasoningServiceError(Exception):
    """Base class for reasoning service failures"""


class ReasoningTransportError(ReasoningServiceError):
    """The service could not be reached or did not answer in time"""


class ReasoningStatusError(ReasoningServiceError):
    """The service answered with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ReasoningResponseError(ReasoningServiceError):
    """The service answered, but the body is not a usable assistant message"""


class DeepSeekProvider:
    """DeepSeek API wrapper using the OpenAI-compatible client"""

    DEEPSEEK_CHAT = "deepseek-chat"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """Initialize the client; the loop never retries, so neither does the SDK"""
        self.api_key = api_key or settings.AI_API_KEY
        if not self.api_key:
            raise ValueError("AI API key not configured")

        self.model = model or settings.AI_MODEL or self.DEEPSEEK_CHAT
        timeout = timeout_seconds or settings.AI_TIMEOUT_SECONDS
        self.client = OpenAI(
            api_key=self.api_key,
            base_url=base_url or settings.AI_BASE_URL,
            timeout=httpx.Timeout(timeout, connect=min(10.0, timeout)),
            max_retries=0,
        )

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
    ) -> Turn:
        """
        Ask the service for the next assistant turn.

        Args:
            messages: Conversation in chat-completions wire format
            tools: Static tool catalog

        Returns:
            A final-answer Turn or a tool-request Turn

        Raises:
            ReasoningTransportError, ReasoningStatusError, ReasoningResponseError
        """
        start_time = time.time()
        payload = {
            "model": self.model,
            "messages": messages,
            "tools": tools,
            "tool_choice": "auto",
        }

        try:
            response = await asyncio.to_thread(self.client.chat.completions.create, **payload)
        except openai.APIConnectionError as e:
            logger.error(f"Reasoning service unreachable: {e}")
            raise ReasoningTransportError(f"Reasoning service unreachable: {e}") from e
        except openai.APIStatusError as e:
            logger.error(f"Reasoning service returned HTTP {e.status_code}: {e}")
            raise ReasoningStatusError(
                f"Reasoning service returned HTTP {e.status_code}", status_code=e.status_code
            ) from e
        except openai.APIError as e:
            logger.error(f"Reasoning service response invalid: {e}")
            raise ReasoningResponseError(f"Reasoning service response invalid: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)
        turn = self.parse_response(response)
        logger.debug(
            f"Reasoning call done in {latency_ms}ms: {turn.role.value}, "
            f"{len(turn.tool_requests)} tool request(s)"
        )
        return turn

    @staticmethod
    def parse_response(response) -> Turn:
        """Turn a chat-completions response into exactly one assistant Turn"""
        choices = getattr(response, "choices", None)
        if not choices:
            raise ReasoningResponseError("Reasoning service response has no choices")

        message = getattr(choices[0], "message", None)
        if message is None:
            raise ReasoningResponseError("Reasoning service response has no message")

        content = getattr(message, "content", None) or ""
        tool_calls = getattr(message, "tool_calls", None) or []

        if tool_calls:
            requests = [DeepSeekProvider._parse_tool_call(call) for call in tool_calls]
            return Turn.tool_requests_turn(requests, text=content)

        if not content.strip():
            raise ReasoningResponseError("Reasoning service returned neither content nor tool calls")
        return Turn.assistant(content)

    @staticmethod
    def _parse_tool_call(call) -> ToolRequest:
        function = getattr(call, "function", None)
        call_id = getattr(call, "id", None)
        name = getattr(function, "name", None) if function is not None else None
        if not call_id or not name:
            raise ReasoningResponseError("Tool call is missing its id or function name")

        raw = getattr(function, "arguments", None) or "{}"
        try:
            arguments = json.loads(raw)
        except (TypeError, ValueError):
            arguments = None

        if not isinstance(arguments, dict):
            return ToolRequest(id=call_id, name=name, raw_arguments=str(raw))
        return ToolRequest(id=call_id, name=name, arguments=arguments)


# Singleton instance
_deepseek_provider = None


def get_deepseek_provider() -> DeepSeekProvider:
    """Get or create DeepSeek provider instance"""
    global _deepseek_provider
    if _deepseek_provider is None:
        _deepseek_provider = DeepSeekProvider()
    return _deepseek_provider
