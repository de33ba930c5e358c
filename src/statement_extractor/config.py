from dataclasses import dataclass
from datetime import date
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # LLM providers (priority: Mistral -> Hugging Face -> OpenAI)
    mistral_api_key: str | None = None
    huggingface_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("huggingface_api_key", "hf_token"),
    )
    openai_api_key: str | None = None
    prefer_openai: bool = False
    huggingface_enabled: bool = True

    mistral_model: str = "mistral-small-latest"
    mistral_url: str = "https://api.mistral.ai/v1/chat/completions"
    huggingface_model: str = "mistralai/Mistral-7B-Instruct-v0.2"
    huggingface_router_url: str = "https://router.huggingface.co/models"
    huggingface_legacy_url: str = "https://api-inference.huggingface.co/models"
    openai_model: str = "gpt-4o-mini"
    openai_url: str = "https://api.openai.com/v1/chat/completions"

    llm_temperature: float = 0.1
    llm_max_tokens: int = 4000
    llm_timeout_seconds: float = 60.0

    # Extraction
    extraction_mode: str = "auto"
    year_correction: str = "always"
    year_correction_grace_days: int = 31
    infer_categories: bool = False
    max_text_chars: int = 500_000

    # PDF upload
    pdf_max_size_mb: int = 10


settings = Settings()


@dataclass(frozen=True)
class ExtractionConfig:
    """Per-call extraction knobs, derived from settings.

    `reference_date` stands in for "today" when a statement period cannot be
    resolved; it is injected so extraction is reproducible in tests.
    """

    reference_date: date
    year_correction: str = "always"
    year_correction_grace_days: int = 31
    infer_categories: bool = False

    @classmethod
    def from_settings(cls, source: Settings, reference_date: date | None = None) -> "ExtractionConfig":
        return cls(
            reference_date=reference_date or date.today(),
            year_correction=source.year_correction,
            year_correction_grace_days=source.year_correction_grace_days,
            infer_categories=source.infer_categories,
        )
