# src/llm_client/client.py

import logging
from time import monotonic
from typing import Any, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

from llm_client.observability import names
from llm_client.observability.base import MetricsHook, NoOpMetricsHook

from ._request import decode_response, send_request
from .errors import DecodeError, MaxRetriesExceededError, RetryableHTTPError
from .retry import compute_backoff, should_retry
from .schema import generate_schema, parse_structured
from .types import ChatRequest, ChatResponse, Message, Role

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _wait_backoff(retry_state: RetryCallState) -> float:
    # attempt_number counts finished attempts; the first wait uses index 0
    return compute_backoff(retry_state.attempt_number - 1)


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, RetryableHTTPError):
        return should_retry(status_code=error.status_code)
    return should_retry(error)


class ChatClient:
    """Client for OpenAI-compatible chat completion APIs.

    Works with OpenAI, OpenRouter, Groq, Ollama, LM Studio and anything
    else serving ``POST {base_url}/chat/completions``.

    Configuration is fixed at construction, so one instance can be shared
    by concurrent tasks. Each call keeps its own retry state.

    Example:
        >>> async with ChatClient("https://api.openai.com/v1", key, "gpt-4o") as client:
        ...     answer = await client.simple_request("Be brief.", "Hi!")
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        max_retries: int = 3,
        timeout: float = 30.0,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        """
        Args:
            base_url: API root, e.g. ``https://api.openai.com/v1``.
            api_key: Bearer token. May be empty for local servers.
            model: Default model, used when a request leaves ``model`` empty.
            http_client: Custom transport. Takes precedence over ``timeout``
                and is never closed by this client.
            max_retries: Extra attempts after the first one.
            timeout: Per-request timeout for the internally created transport.
            metrics_hook: Optional metrics sink.
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")

        self._base_url = base_url
        self._api_key = api_key
        self._model = model
        self._max_retries = max_retries
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self.metrics_hook = metrics_hook
        self._log_before_sleep = before_sleep_log(logger, logging.WARNING)
        logger.info(
            "Initialized ChatClient with base_url=%s, model=%s, max_retries=%d",
            base_url,
            model,
            max_retries,
        )

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Send a chat completion request, retrying transient failures.

        Transport errors, 429 and 5xx are retried up to ``max_retries``
        times, waiting 1s, 2s, 4s, ... between attempts. Any other outcome
        ends the loop at once.

        Args:
            request: The request. An empty ``model`` gets the client default.

        Returns:
            Decoded response with at least one choice.

        Raises:
            SerializationError: Request could not be encoded.
            TransportError: Only via MaxRetriesExceededError's cause.
            TerminalHTTPError: Non-retryable, non-200 status.
            DecodeError: Body was not a completion or had no choices.
            MaxRetriesExceededError: Every attempt failed with a retryable
                error. Chained to the last one.

        Note:
            Cancellation (``task.cancel()``, ``asyncio.timeout``) is never
            retried and propagates immediately, also during backoff.
        """
        if not request.model:
            request = request.model_copy(update={"model": self._model})

        start = monotonic()
        labels = {"model": request.model}
        self.metrics_hook.increment(names.LLM_REQUESTS_TOTAL, labels=labels)

        try:
            response = await self._send_with_retries(request)
        except Exception as e:
            self.metrics_hook.increment(
                names.LLM_ERRORS_TOTAL, labels={**labels, "error": type(e).__name__}
            )
            raise

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.LLM_COMPLETION_DURATION, elapsed_ms, labels=labels
        )
        self.metrics_hook.increment(names.LLM_TOKENS_PROMPT, response.usage.prompt_tokens)
        self.metrics_hook.increment(
            names.LLM_TOKENS_COMPLETION, response.usage.completion_tokens
        )
        self.metrics_hook.increment(names.LLM_TOKENS_TOTAL, response.usage.total_tokens)

        logger.info(
            "Chat completion: model=%s, finish=%s, tokens=%d, latency=%.0fms",
            request.model,
            response.choices[0].finish_reason,
            response.usage.total_tokens,
            elapsed_ms,
        )
        return response

    async def _send_with_retries(self, request: ChatRequest) -> ChatResponse:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries + 1),
            wait=_wait_backoff,
            retry=retry_if_exception(_is_retryable),
            before_sleep=self._before_sleep,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(request)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            attempts = e.last_attempt.attempt_number
            logger.error(
                "Giving up on model=%s after %d attempts: %s",
                request.model,
                attempts,
                last_error,
            )
            raise MaxRetriesExceededError(attempts, last_error) from last_error

    async def _attempt(self, request: ChatRequest) -> ChatResponse:
        response = await send_request(
            self._http_client, self._base_url, self._api_key, request
        )
        if should_retry(status_code=response.status_code):
            raise RetryableHTTPError(response.status_code, response.text)
        return decode_response(response)

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        self.metrics_hook.increment(names.LLM_RETRIES_TOTAL)
        self._log_before_sleep(retry_state)

    async def simple_request(self, system_prompt: str, user_prompt: str) -> str:
        """Single-turn chat. Returns the first choice's content.

        The system message is only sent when ``system_prompt`` is non-empty.
        """
        messages: list[Message] = []
        if system_prompt:
            messages.append(Message(role=Role.SYSTEM, content=system_prompt))
        messages.append(Message(role=Role.USER, content=user_prompt))

        response = await self.chat(ChatRequest(messages=messages))
        if not response.choices:
            raise DecodeError("no choices in response")
        return response.choices[0].message.content

    async def request_with_schema(
        self, system_prompt: str, user_prompt: str, target: type[T]
    ) -> T:
        """Ask for output constrained by ``target``'s JSON Schema and parse it.

        Args:
            system_prompt: Sent as the system message, even when empty.
            user_prompt: Sent as the user message.
            target: Dataclass or pydantic model describing the expected output.

        Returns:
            An instance of ``target`` built from the model's reply.

        Raises:
            SchemaGenerationError: ``target`` has no schema. No request is sent.
            ResultUnmarshalError: The reply did not parse into ``target``.
            Any error raised by chat().
        """
        schema = generate_schema(target)

        request = ChatRequest(
            messages=[
                Message(role=Role.SYSTEM, content=system_prompt),
                Message(role=Role.USER, content=user_prompt),
            ],
            json_schema=schema,
        )

        response = await self.chat(request)
        if not response.choices:
            raise DecodeError("no choices in response")

        return parse_structured(target, response.choices[0].message.content)
