# tests/unit/test_types.py

import pytest
from pydantic import ValidationError

from llm_client.types import (
    ChatRequest,
    ChatResponse,
    Message,
    ResponseMessage,
    Role,
    Usage,
)


def test_null_content_decodes_as_empty() -> None:
    message = Message.model_validate({"role": "assistant", "content": None})
    assert message.content == ""


def test_unknown_role_rejected() -> None:
    with pytest.raises(ValidationError):
        Message.model_validate({"role": "narrator", "content": "Once upon a time"})


def test_response_ignores_provider_extras() -> None:
    response = ChatResponse.model_validate(
        {
            "id": "gen-123",
            "created": 1700000000,
            "system_fingerprint": "fp_1",
            "choices": [
                {"message": {"role": "assistant", "content": "4"}, "finish_reason": "stop"}
            ],
        }
    )

    assert response.content == "4"
    assert response.usage.total_tokens == 0


def test_content_empty_without_choices() -> None:
    assert ChatResponse().content == ""


def test_request_is_immutable() -> None:
    request = ChatRequest(messages=[Message(role=Role.USER, content="Hi")])
    with pytest.raises(ValidationError):
        request.model = "gpt-4o"  # type: ignore[misc]


def test_role_values() -> None:
    assert [r.value for r in Role] == ["system", "user", "assistant"]


def test_null_usage_decodes_as_zero() -> None:
    response = ChatResponse.model_validate_json(
        '{"choices": [{"message": {"role": "assistant", "content": "x"},'
        ' "finish_reason": "stop"}], "usage": null}'
    )

    assert response.content == "x"
    assert response.usage == Usage()


def test_response_keeps_unknown_roles() -> None:
    response = ChatResponse.model_validate(
        {"choices": [{"message": {"role": "tool", "content": "42"}}]}
    )

    assert response.choices[0].message.role == "tool"
    assert response.content == "42"


def test_response_known_roles_are_enum_members() -> None:
    message = ResponseMessage.model_validate({"role": "assistant", "content": "hi"})
    assert message.role is Role.ASSISTANT
