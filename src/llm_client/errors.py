# src/llm_client/errors.py

"""Exceptions raised by llm-client.

Every failure names the stage that produced it, so callers can tell
"ask again differently" (schema / unmarshal) from "infrastructure is down"
(transport / retry exhaustion). Caller cancellation is not wrapped: it
surfaces as ``asyncio.CancelledError`` (or the ``TimeoutError`` raised by
``asyncio.timeout``).
"""


class LLMClientError(Exception):
    """Base class for all llm-client errors."""


class SerializationError(LLMClientError):
    """The request body could not be encoded. Never retried."""


class TransportError(LLMClientError):
    """Network-level failure before a status code was received."""


class HTTPStatusError(LLMClientError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error: status {status_code}, body: {body}")


class RetryableHTTPError(HTTPStatusError):
    """429 or 5xx. Retried until the budget runs out."""


class TerminalHTTPError(HTTPStatusError):
    """Any other non-200 status. Surfaced immediately."""


class MaxRetriesExceededError(LLMClientError):
    """All attempts failed with retryable errors."""

    def __init__(self, attempts: int, last_error: BaseException | None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"max retries exceeded after {attempts} attempts: {last_error}")


class DecodeError(LLMClientError):
    """The response body was not a valid chat completion, or had no choices."""


class SchemaGenerationError(LLMClientError):
    """A JSON Schema could not be derived from the target type."""


class UnsupportedTypeError(SchemaGenerationError):
    """A field's type has no JSON Schema mapping."""

    def __init__(self, kind: str, path: tuple[str, ...] = ()) -> None:
        self.kind = kind
        self.path = path
        if path:
            message = f"unsupported type {kind} in field '{'.'.join(path)}'"
        else:
            message = f"unsupported type {kind}"
        super().__init__(message)

    def with_parent(self, field_name: str) -> "UnsupportedTypeError":
        return UnsupportedTypeError(self.kind, (field_name, *self.path))


class ResultUnmarshalError(LLMClientError):
    """The model's content did not parse into the requested type."""
