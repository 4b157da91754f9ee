# tests/unit/test_request_with_schema.py

import json
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx
import pytest

from llm_client.client import ChatClient
from llm_client.errors import (
    DecodeError,
    MaxRetriesExceededError,
    ResultUnmarshalError,
    UnsupportedTypeError,
)


@dataclass
class Sentiment:
    label: str = field(
        metadata={"json": "label", "schema": "description=positive, negative or neutral"}
    )
    confidence: float = field(default=0.0, metadata={"json": "confidence,omitempty"})


@dataclass
class Unsupported:
    scores: dict[str, float]


def _reply(content: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "choices": [
                {
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ],
            "usage": {"prompt_tokens": 30, "completion_tokens": 9, "total_tokens": 39},
        },
    )


class RecordingHandler:
    def __init__(self, respond: Callable[[], httpx.Response]) -> None:
        self.respond = respond
        self.bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.bodies.append(json.loads(request.content))
        return self.respond()


def _client(handler: RecordingHandler) -> ChatClient:
    return ChatClient(
        "https://api.test/v1",
        "test-key",
        "gpt-4o-mini",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.asyncio
async def test_populates_target_from_reply() -> None:
    handler = RecordingHandler(lambda: _reply('{"label": "positive", "confidence": 0.92}'))
    client = _client(handler)

    result = await client.request_with_schema(
        "Classify sentiment.", "I love this!", Sentiment
    )

    assert result == Sentiment(label="positive", confidence=0.92)


@pytest.mark.asyncio
async def test_sends_schema_and_both_messages() -> None:
    handler = RecordingHandler(lambda: _reply('{"label": "neutral"}'))
    client = _client(handler)

    await client.request_with_schema("", "It is a chair.", Sentiment)

    body = handler.bodies[0]
    # The system message is sent even when empty
    assert body["messages"] == [
        {"role": "system", "content": ""},
        {"role": "user", "content": "It is a chair."},
    ]
    assert body["model"] == "gpt-4o-mini"
    assert body["json_schema"] == {
        "type": "object",
        "properties": {
            "label": {
                "type": "string",
                "description": "positive, negative or neutral",
            },
            "confidence": {"type": "number"},
        },
        "required": ["label"],
    }


@pytest.mark.asyncio
async def test_fenced_reply_is_accepted() -> None:
    handler = RecordingHandler(lambda: _reply('```json\n{"label": "negative"}\n```'))
    client = _client(handler)

    result = await client.request_with_schema("", "Meh.", Sentiment)

    assert result.label == "negative"


@pytest.mark.asyncio
async def test_malformed_reply_raises_unmarshal_error() -> None:
    handler = RecordingHandler(lambda: _reply("I think it is positive."))
    client = _client(handler)

    with pytest.raises(ResultUnmarshalError):
        await client.request_with_schema("", "I love this!", Sentiment)

    # chat itself succeeded on the first attempt
    assert len(handler.bodies) == 1


@pytest.mark.asyncio
async def test_wrong_shape_raises_unmarshal_error() -> None:
    handler = RecordingHandler(lambda: _reply('{"confidence": 0.5}'))
    client = _client(handler)

    with pytest.raises(ResultUnmarshalError):
        await client.request_with_schema("", "Hmm", Sentiment)


@pytest.mark.asyncio
async def test_unsupported_target_fails_before_sending() -> None:
    handler = RecordingHandler(lambda: _reply("{}"))
    client = _client(handler)

    with pytest.raises(UnsupportedTypeError, match="scores"):
        await client.request_with_schema("", "Score these", Unsupported)

    assert handler.bodies == []


@pytest.mark.asyncio
async def test_chat_errors_propagate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("llm_client.client.compute_backoff", lambda attempt_index: 0.0)
    handler = RecordingHandler(lambda: httpx.Response(500, text="down"))
    client = _client(handler)

    with pytest.raises(MaxRetriesExceededError):
        await client.request_with_schema("", "Hi", Sentiment)


@pytest.mark.asyncio
async def test_empty_choices_is_decode_error() -> None:
    handler = RecordingHandler(lambda: httpx.Response(200, json={"choices": []}))
    client = _client(handler)

    with pytest.raises(DecodeError):
        await client.request_with_schema("", "Hi", Sentiment)
