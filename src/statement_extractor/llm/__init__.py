"""LLM extraction path.

Builds the extraction prompt, walks the Mistral -> Hugging Face -> OpenAI
provider chain over httpx, and decodes the JSON answer into candidates.
"""

from statement_extractor.llm.extractor import LLMExtractor, parse_content
from statement_extractor.llm.prompt import build_prompt
from statement_extractor.llm.providers import (
    HuggingFaceProvider,
    LLMProvider,
    MistralProvider,
    OpenAIProvider,
)

__all__ = [
    "LLMExtractor",
    "LLMProvider",
    "MistralProvider",
    "HuggingFaceProvider",
    "OpenAIProvider",
    "build_prompt",
    "parse_content",
]
