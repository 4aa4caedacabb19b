from pydantic_settings import BaseSettings


# Models that require max_completion_tokens instead of max_tokens
_MAX_COMPLETION_TOKENS_MODELS = {"gpt-5.2", "gpt-5", "o1", "o3", "o3-mini", "o1-mini"}


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/codeassist"
    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o"
    openai_classifier_model: str = "gpt-4o-mini"
    generation_temperature: float = 0.1
    generation_max_tokens: int = 32768
    classifier_max_tokens: int = 500
    app_env: str = "development"
    cors_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Recovery ladder thresholds
    parser_streaming_min_chars: int = 100
    parser_truncated_tail_max_chars: int = 200
    parser_scan_min_chars: int = 1000
    parser_diagnostic_preview_chars: int = 500

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def max_tokens_param(self, n: int, model: str | None = None) -> dict:
        """Return the right max-tokens kwarg for the given (or default) model."""
        if (model or self.openai_model) in _MAX_COMPLETION_TOKENS_MODELS:
            return {"max_completion_tokens": n}
        return {"max_tokens": n}

    @property
    def ai_configured(self) -> bool:
        return bool(self.openai_api_key)


settings = Settings()
