# src/llm_client/config.py

from dataclasses import dataclass
from typing import Literal

Provider = Literal["openai", "openrouter", "groq", "ollama", "lmstudio"]

# OpenAI-compatible endpoints; base_url in ClientConfig overrides these
PROVIDER_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "openrouter": "https://openrouter.ai/api/v1",
    "groq": "https://api.groq.com/openai/v1",
    "ollama": "http://localhost:11434/v1",
    "lmstudio": "http://localhost:1234/v1",
}


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for chat clients.

    Immutable. Explicit. No magic defaults from environment.
    """

    model: str
    provider: Provider = "openai"
    api_key: str = ""  # Local servers (Ollama, LM Studio) accept any token
    base_url: str | None = None  # Overrides the provider preset
    timeout: float = 30.0
    max_retries: int = 3
