# tests/unit/test_factory.py

from unittest.mock import patch

import httpx
import pytest

from llm_client import ChatClient, ClientConfig, create_chat_client
from llm_client.config import PROVIDER_BASE_URLS


class TestFactory:
    @pytest.mark.parametrize("provider", sorted(PROVIDER_BASE_URLS))
    def test_provider_presets(self, provider: str) -> None:
        """Test that each provider maps to its OpenAI-compatible endpoint."""
        with patch("llm_client.client.httpx.AsyncClient"):
            client = create_chat_client(ClientConfig(provider=provider, model="m"))  # type: ignore[arg-type]

        assert isinstance(client, ChatClient)
        assert client._base_url == PROVIDER_BASE_URLS[provider]

    def test_base_url_overrides_provider(self) -> None:
        with patch("llm_client.client.httpx.AsyncClient"):
            config = ClientConfig(
                provider="ollama", model="llama3", base_url="http://gpu-box:11434/v1"
            )
            client = create_chat_client(config)

        assert client._base_url == "http://gpu-box:11434/v1"

    def test_unknown_provider_raises(self) -> None:
        config = ClientConfig(provider="unknown", model="model")  # type: ignore[arg-type]
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            create_chat_client(config)

    def test_unknown_provider_with_base_url_allowed(self) -> None:
        with patch("llm_client.client.httpx.AsyncClient"):
            config = ClientConfig(
                provider="custom", model="m", base_url="https://llm.internal/v1"  # type: ignore[arg-type]
            )
            client = create_chat_client(config)

        assert client._base_url == "https://llm.internal/v1"

    def test_config_values_passed_through(self) -> None:
        """Test that config values are passed to client."""
        with patch("llm_client.client.httpx.AsyncClient") as mock_http:
            config = ClientConfig(
                provider="groq",
                model="llama-3.1-8b-instant",
                api_key="my-key",
                timeout=60.0,
                max_retries=5,
            )
            client = create_chat_client(config)

            assert client._model == "llama-3.1-8b-instant"
            assert client._api_key == "my-key"
            assert client._max_retries == 5
            mock_http.assert_called_once_with(timeout=60.0)

    def test_custom_http_client_used(self) -> None:
        http_client = httpx.AsyncClient()
        client = create_chat_client(ClientConfig(model="gpt-4o"), http_client=http_client)

        assert client._http_client is http_client
        assert client._owns_http_client is False

    def test_config_is_immutable(self) -> None:
        config = ClientConfig(model="gpt-4o")
        with pytest.raises(AttributeError):
            config.model = "other"  # type: ignore[misc]
