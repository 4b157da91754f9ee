# src/llm_client/_request.py

"""Internal module: one HTTP round trip for a chat completion.

Encodes the request, posts it, and decodes the response. Retry decisions
are made by the caller, never here.
"""

import json
import logging

import httpx
from pydantic import ValidationError

from .errors import DecodeError, SerializationError, TerminalHTTPError, TransportError
from .types import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"

# Sent even when empty; everything else is dropped at its zero value
_ALWAYS_SENT = frozenset({"model", "messages"})


def serialize_request(request: ChatRequest) -> bytes:
    """Encode a request as the JSON body expected by the API.

    Raises:
        SerializationError: If any field cannot be represented as JSON.
    """
    try:
        payload = request.model_dump(mode="json")
        body = {
            key: value
            for key, value in payload.items()
            if key in _ALWAYS_SENT or value
        }
        return json.dumps(body, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to marshal request: {e}") from e


async def send_request(
    http_client: httpx.AsyncClient,
    base_url: str,
    api_key: str,
    request: ChatRequest,
) -> httpx.Response:
    """POST the request to ``{base_url}/chat/completions``.

    Args:
        http_client: Transport used for the call. Its timeout and pooling apply.
        base_url: API root, e.g. ``https://api.openai.com/v1``.
        api_key: Sent as a bearer token.
        request: Request to send. Must already carry a model.

    Returns:
        The raw response, whatever its status.

    Raises:
        SerializationError: If the body cannot be encoded.
        TransportError: If no response was received.
    """
    body = serialize_request(request)
    url = base_url.rstrip("/") + CHAT_COMPLETIONS_PATH
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }

    logger.debug("POST %s: model=%s, bytes=%d", url, request.model, len(body))

    try:
        return await http_client.post(url, content=body, headers=headers)
    except httpx.RequestError as e:
        raise TransportError(f"request to {url} failed: {e!r}") from e


def decode_response(response: httpx.Response) -> ChatResponse:
    """Decode a response into a ChatResponse.

    Raises:
        TerminalHTTPError: If the status is not 200. The body text is kept.
        DecodeError: If the body is not a chat completion or has no choices.
    """
    if response.status_code != httpx.codes.OK:
        raise TerminalHTTPError(response.status_code, response.text)

    try:
        result = ChatResponse.model_validate_json(response.content)
    except ValidationError as e:
        raise DecodeError(f"failed to decode response: {e}") from e

    if not result.choices:
        raise DecodeError("no choices in response")

    return result
