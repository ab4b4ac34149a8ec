"""
Groq REST API client (OpenAI-compatible chat completions).
Same generate() contract as OllamaClient so the two are interchangeable.
"""
import logging
import time
from typing import Optional
import httpx

from config import settings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a SQL expert. You write optimized SQL queries that match the user's request."


class GroqClient:
    """Thin client for the hosted Groq inference API."""

    name = "Groq"

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.api_key = api_key or settings.GROQ_API_KEY
        if not self.api_key:
            raise ValueError("A Groq API key is required (set GROQ_API_KEY).")
        self.endpoint = (endpoint or settings.GROQ_ENDPOINT).rstrip("/")
        self.model = model or settings.GROQ_MODEL
        self.timeout = timeout or settings.GROQ_TIMEOUT_SECONDS

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def is_healthy(self) -> tuple[bool, Optional[str]]:
        try:
            resp = httpx.get(f"{self.endpoint}/models", headers=self._headers(), timeout=5)
            resp.raise_for_status()
            return True, self.model
        except httpx.HTTPError as e:
            return False, str(e)

    def generate(self, prompt: str, max_retries: Optional[int] = None) -> str:
        """
        Call /chat/completions with a fixed system prompt and return the reply text.
        Retries up to max_retries times on failure.
        """
        max_retries = max_retries or settings.LLM_MAX_RETRIES
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 2048,
            "temperature": 0.1,
        }
        last_err: Optional[Exception] = None
        for attempt in range(1, max_retries + 1):
            try:
                resp = httpx.post(
                    f"{self.endpoint}/chat/completions",
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
                resp.raise_for_status()
                choices = resp.json().get("choices") or []
                if not choices:
                    raise ValueError("Groq returned no choices")
                return choices[0]["message"]["content"].strip()
            except (httpx.HTTPError, ValueError, KeyError) as e:
                last_err = e
                logger.warning("Groq attempt %d/%d failed: %s", attempt, max_retries, e)
                if attempt < max_retries:
                    time.sleep(2 ** attempt)
        raise RuntimeError(f"Groq failed after {max_retries} attempts: {last_err}")
