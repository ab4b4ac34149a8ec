import httpx
import pytest
from unittest.mock import MagicMock, patch

from integrations.groq_client import GroqClient
from integrations.llm_factory import get_llm_client
from integrations.ollama_client import OllamaClient


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


def test_ollama_generate_retries_then_succeeds():
    client = OllamaClient(host="http://ollama:11434/", model="m")
    attempts = [httpx.ConnectError("down"), _response({"response": "  SQL:\nSELECT 1  "})]
    with patch("integrations.ollama_client.httpx.post", side_effect=attempts) as post, \
         patch("integrations.ollama_client.time.sleep") as sleep:
        assert client.generate("prompt", max_retries=3) == "SQL:\nSELECT 1"
    assert post.call_count == 2
    assert post.call_args.args[0] == "http://ollama:11434/api/generate"
    assert post.call_args.kwargs["json"]["model"] == "m"
    sleep.assert_called_once_with(2)


def test_ollama_generate_gives_up():
    client = OllamaClient(model="m")
    with patch("integrations.ollama_client.httpx.post", side_effect=httpx.ConnectError("down")), \
         patch("integrations.ollama_client.time.sleep"):
        with pytest.raises(RuntimeError, match="Ollama failed after 2 attempts"):
            client.generate("prompt", max_retries=2)


def test_ollama_health():
    client = OllamaClient(model="m")
    with patch("integrations.ollama_client.httpx.get", return_value=_response({})):
        assert client.is_healthy() == (True, "m")
    with patch("integrations.ollama_client.httpx.get", side_effect=httpx.ConnectError("refused")):
        ok, err = client.is_healthy()
        assert ok is False and "refused" in err


def test_groq_requires_key():
    with patch("integrations.groq_client.settings.GROQ_API_KEY", ""):
        with pytest.raises(ValueError, match="GROQ_API_KEY"):
            GroqClient()


def test_groq_generate():
    client = GroqClient(api_key="k", endpoint="https://groq.test/v1", model="g")
    reply = _response({"choices": [{"message": {"content": " SQL:\nSELECT 2 "}}]})
    with patch("integrations.groq_client.httpx.post", return_value=reply) as post:
        assert client.generate("prompt") == "SQL:\nSELECT 2"
    assert post.call_args.args[0] == "https://groq.test/v1/chat/completions"
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer k"
    assert post.call_args.kwargs["json"]["messages"][1] == {"role": "user", "content": "prompt"}


def test_groq_empty_choices_is_failure():
    client = GroqClient(api_key="k")
    with patch("integrations.groq_client.httpx.post", return_value=_response({"choices": []})), \
         patch("integrations.groq_client.time.sleep"):
        with pytest.raises(RuntimeError, match="Groq failed after 1 attempts"):
            client.generate("prompt", max_retries=1)


def test_factory_selects_provider():
    assert isinstance(get_llm_client("ollama"), OllamaClient)
    assert isinstance(get_llm_client("OLLAMA", model="x"), OllamaClient)
    assert isinstance(get_llm_client("groq", api_key="k"), GroqClient)
    assert isinstance(get_llm_client("mystery"), OllamaClient)
