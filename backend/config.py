"""Application settings loaded from .env file."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # AI provider: "ollama" or "groq"
    AI_PROVIDER: str = "ollama"
    LLM_MAX_RETRIES: int = 3

    # Ollama
    OLLAMA_HOST: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.2"
    OLLAMA_TIMEOUT_SECONDS: int = 120

    # Groq (OpenAI-compatible)
    GROQ_ENDPOINT: str = "https://api.groq.com/openai/v1"
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    GROQ_API_KEY: str = ""
    GROQ_TIMEOUT_SECONDS: int = 60

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8080"

    # Schema sources
    DEFAULT_DB_TYPE: str = "mysql"
    DB_CONNECT_TIMEOUT_SECONDS: int = 60

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
