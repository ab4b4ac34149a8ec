"""
Ollama REST API client.
Wraps POST /api/generate for text completion with retry logic.
"""
import logging
import time
from typing import Optional
import httpx

from config import settings

logger = logging.getLogger(__name__)


class OllamaClient:
    """Thin client for the Ollama local LLM server."""

    name = "Ollama"

    def __init__(
        self,
        host: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.host = (host or settings.OLLAMA_HOST).rstrip("/")
        self.model = model or settings.OLLAMA_MODEL
        self.timeout = timeout or settings.OLLAMA_TIMEOUT_SECONDS

    def is_healthy(self) -> tuple[bool, Optional[str]]:
        """Returns (True, model_name) if Ollama is reachable, (False, error) otherwise."""
        try:
            resp = httpx.get(f"{self.host}/api/tags", timeout=5)
            resp.raise_for_status()
            return True, self.model
        except httpx.HTTPError as e:
            return False, str(e)

    def generate(self, prompt: str, max_retries: Optional[int] = None) -> str:
        """
        Call Ollama /api/generate and return the raw text response.
        Retries up to max_retries times on failure.
        """
        max_retries = max_retries or settings.LLM_MAX_RETRIES
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "num_ctx": 4096,
                "temperature": 0.1,
                "top_p": 0.9,
            },
        }
        last_err: Optional[Exception] = None
        for attempt in range(1, max_retries + 1):
            try:
                logger.debug("Ollama generate attempt %d", attempt)
                resp = httpx.post(
                    f"{self.host}/api/generate",
                    json=payload,
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                text = resp.json().get("response", "").strip()
                logger.debug("Ollama response length: %d chars", len(text))
                return text
            except (httpx.HTTPError, ValueError) as e:
                last_err = e
                logger.warning("Ollama attempt %d/%d failed: %s", attempt, max_retries, e)
                if attempt < max_retries:
                    time.sleep(2 ** attempt)  # exponential back-off: 2s, 4s
        raise RuntimeError(f"Ollama failed after {max_retries} attempts: {last_err}")
