"""FastAPI dependency injection for the extraction engine."""

from datetime import date

from fastapi import Depends

from statement_extractor.config import ExtractionConfig, Settings, settings
from statement_extractor.parsers.pdf_text import PDFTextExtractor
from statement_extractor.services.extraction import ExtractionOrchestrator


def get_settings() -> Settings:
    return settings


def get_extraction_config(app_settings: Settings = Depends(get_settings)) -> ExtractionConfig:
    """
    Build the per-request extraction config.

    "Today" is read here, at the edge, and injected into the engine.
    """
    return ExtractionConfig.from_settings(app_settings, reference_date=date.today())


def get_orchestrator(
    config: ExtractionConfig = Depends(get_extraction_config),
    app_settings: Settings = Depends(get_settings),
) -> ExtractionOrchestrator:
    """
    Get an extraction orchestrator instance.

    Args:
        config: Extraction config with the injected reference date
        app_settings: Application settings

    Returns:
        ExtractionOrchestrator instance
    """
    return ExtractionOrchestrator(config, app_settings=app_settings)


def get_pdf_text_extractor() -> PDFTextExtractor:
    return PDFTextExtractor()
