import sys
from datetime import date
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

sys.path.append(str(Path(__file__).parents[1] / "src"))

from statement_extractor.api.deps import get_extraction_config, get_settings
from statement_extractor.config import ExtractionConfig, Settings
from statement_extractor.main import app

# Fixed "today" so year inference is reproducible.
REFERENCE_DATE = date(2025, 3, 15)


def build_settings(**overrides) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    values = {
        "mistral_api_key": None,
        "huggingface_api_key": None,
        "openai_api_key": None,
        "prefer_openai": False,
        "huggingface_enabled": True,
        "extraction_mode": "auto",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture
def extraction_config() -> ExtractionConfig:
    return ExtractionConfig(reference_date=REFERENCE_DATE)


@pytest.fixture
def make_settings():
    """Factory for isolated Settings with keyword overrides."""
    return build_settings


@pytest.fixture
def test_settings() -> Settings:
    """Pattern-only settings: no keys, Hugging Face disabled."""
    return build_settings(huggingface_enabled=False, extraction_mode="pattern")


@pytest.fixture
async def client(test_settings: Settings):
    """Provide test client with settings and reference date overrides."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_extraction_config] = lambda: ExtractionConfig.from_settings(
        test_settings, reference_date=REFERENCE_DATE
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

