"""LLM client factory keyed by provider tag ("ollama" | "groq")."""
import logging
from typing import Optional, Protocol

from config import settings
from integrations.groq_client import GroqClient
from integrations.ollama_client import OllamaClient

logger = logging.getLogger(__name__)


class LLMClient(Protocol):
    name: str
    model: str

    def generate(self, prompt: str, max_retries: Optional[int] = None) -> str: ...

    def is_healthy(self) -> tuple[bool, Optional[str]]: ...


PROVIDERS = ("ollama", "groq")


def get_llm_client(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> LLMClient:
    """Build the configured client; unknown providers fall back to Ollama."""
    provider = (provider or settings.AI_PROVIDER).lower()
    if provider == "groq":
        return GroqClient(api_key=api_key, model=model)
    if provider != "ollama":
        logger.warning("Unknown AI provider %r; falling back to Ollama", provider)
    return OllamaClient(model=model)
