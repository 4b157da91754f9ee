# src/llm_client/factory.py

import httpx

from llm_client.observability.base import MetricsHook, NoOpMetricsHook

from .client import ChatClient
from .config import PROVIDER_BASE_URLS, ClientConfig


def create_chat_client(
    config: ClientConfig,
    http_client: httpx.AsyncClient | None = None,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> ChatClient:
    """Create a chat client from config.

    Args:
        config: Provider, model, credentials and retry budget.
        http_client: Optional custom transport (own timeout/pooling policy).
        metrics_hook: Optional metrics hook for observability.

    Returns:
        Configured ChatClient.

    Raises:
        ValueError: If the provider is unknown and no base_url is given.

    Example:
        >>> config = ClientConfig(provider="groq", model="llama-3.1-8b-instant", api_key=key)
        >>> client = create_chat_client(config)
        >>> text = await client.simple_request("", "Hello!")
    """
    base_url = config.base_url or PROVIDER_BASE_URLS.get(config.provider)
    if base_url is None:
        raise ValueError(f"Unknown LLM provider: {config.provider}")

    return ChatClient(
        base_url=base_url,
        api_key=config.api_key,
        model=config.model,
        http_client=http_client,
        max_retries=config.max_retries,
        timeout=config.timeout,
        metrics_hook=metrics_hook,
    )
