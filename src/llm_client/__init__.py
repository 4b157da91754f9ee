# src/llm_client/__init__.py

"""Async client for OpenAI-compatible chat completion APIs.

Design principles:
- Stateless: Every call receives the full message list
- Transport only: Retries only on network errors, 429 and 5xx
- No leakage: Raw HTTP responses never escape the client
- Typed: Requests, responses and errors are explicit types

Example:
    >>> from llm_client import ChatRequest, ClientConfig, Message, Role, create_chat_client
    >>>
    >>> client = create_chat_client(ClientConfig(model="gpt-4o", api_key="sk-..."))
    >>> response = await client.chat(
    ...     ChatRequest(messages=[Message(role=Role.USER, content="Hello!")])
    ... )
    >>> print(response.content)
"""

# Client
from .client import ChatClient
from .config import PROVIDER_BASE_URLS, ClientConfig
from .factory import create_chat_client

# Errors
from .errors import (
    DecodeError,
    HTTPStatusError,
    LLMClientError,
    MaxRetriesExceededError,
    ResultUnmarshalError,
    RetryableHTTPError,
    SchemaGenerationError,
    SerializationError,
    TerminalHTTPError,
    TransportError,
    UnsupportedTypeError,
)

# Observability
from .observability import MetricsHook, NoOpMetricsHook

# Retry policy
from .retry import compute_backoff, should_retry

# Schema
from .schema import clean_json_response, generate_schema, parse_structured

# Types
from .types import (
    ChatRequest,
    ChatResponse,
    Choice,
    Message,
    ResponseMessage,
    Role,
    Usage,
)

__all__ = [
    # Client
    "ChatClient",
    "ClientConfig",
    "PROVIDER_BASE_URLS",
    "create_chat_client",
    # Errors
    "DecodeError",
    "HTTPStatusError",
    "LLMClientError",
    "MaxRetriesExceededError",
    "ResultUnmarshalError",
    "RetryableHTTPError",
    "SchemaGenerationError",
    "SerializationError",
    "TerminalHTTPError",
    "TransportError",
    "UnsupportedTypeError",
    # Observability
    "MetricsHook",
    "NoOpMetricsHook",
    # Retry policy
    "compute_backoff",
    "should_retry",
    # Schema
    "clean_json_response",
    "generate_schema",
    "parse_structured",
    # Types
    "ChatRequest",
    "ChatResponse",
    "Choice",
    "Message",
    "ResponseMessage",
    "Role",
    "Usage",
]
