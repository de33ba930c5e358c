"""Error codes and user-friendly messages.

This module defines the error catalog for transaction extraction.
Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

# Error catalog for transaction extraction
ERROR_CATALOG: dict[str, dict] = {
    "INPUT_001": {
        "code": "INPUT_001",
        "message": "Request text is missing or blank",
        "user_message": "Text is required",
        "suggestion": "Send the statement text in the 'text' field.",
        "retry_allowed": False,
    },
    "INPUT_002": {
        "code": "INPUT_002",
        "message": "Request text exceeds the configured maximum length",
        "user_message": "The statement text is too long to process.",
        "suggestion": "Split the statement into smaller parts and try again.",
        "retry_allowed": False,
    },
    "INPUT_003": {
        "code": "INPUT_003",
        "message": "PREFER_OPENAI is set but OPENAI_API_KEY is missing",
        "user_message": "OpenAI API key required when PREFER_OPENAI is set",
        "suggestion": "Set OPENAI_API_KEY or unset PREFER_OPENAI.",
        "retry_allowed": False,
    },
    "INPUT_004": {
        "code": "INPUT_004",
        "message": "Unknown extraction mode requested",
        "user_message": "Unsupported extraction mode.",
        "suggestion": "Use one of: pattern, llm, auto.",
        "retry_allowed": False,
    },
    "LLM_001": {
        "code": "LLM_001",
        "message": "LLM provider rate limit reached",
        "user_message": "Rate limit reached. Please wait a moment and try again, "
        "or add HUGGINGFACE_API_KEY for higher limits.",
        "suggestion": "Add an API key for higher limits.",
        "retry_allowed": True,
    },
    "LLM_002": {
        "code": "LLM_002",
        "message": "LLM model is still loading",
        "user_message": "Model is loading. Please try again in 10-20 seconds.",
        "suggestion": "Retry in 10-20 seconds.",
        "retry_allowed": True,
    },
    "LLM_003": {
        "code": "LLM_003",
        "message": "LLM provider endpoint is deprecated",
        "user_message": "Hugging Face API endpoint is deprecated. Please add OPENAI_API_KEY "
        "or HUGGINGFACE_API_KEY for updated endpoints.",
        "suggestion": "Configure another LLM provider or use pattern extraction.",
        "retry_allowed": False,
    },
    "LLM_004": {
        "code": "LLM_004",
        "message": "LLM provider endpoint not found",
        "user_message": "Hugging Face API endpoint not found. Please add OPENAI_API_KEY "
        "or check HUGGINGFACE_API_KEY configuration.",
        "suggestion": "Configure another LLM provider or use pattern extraction.",
        "retry_allowed": False,
    },
    "LLM_005": {
        "code": "LLM_005",
        "message": "Every configured LLM provider failed",
        "user_message": "All LLM providers failed. Please use pattern parsing.",
        "suggestion": "Retry with mode=pattern.",
        "retry_allowed": True,
    },
    "LLM_006": {
        "code": "LLM_006",
        "message": "LLM provider returned a non-retryable error",
        "user_message": "Failed to parse with LLM",
        "suggestion": "Retry with mode=pattern.",
        "retry_allowed": False,
    },
    "LLM_007": {
        "code": "LLM_007",
        "message": "No LLM provider is configured",
        "user_message": "No LLM provider is configured.",
        "suggestion": "Set MISTRAL_API_KEY or OPENAI_API_KEY, or use pattern parsing.",
        "retry_allowed": False,
    },
    "PARSE_001": {
        "code": "PARSE_001",
        "message": "LLM response contained no content",
        "user_message": "No content from LLM",
        "suggestion": "Retry with mode=pattern.",
        "retry_allowed": True,
    },
    "PARSE_002": {
        "code": "PARSE_002",
        "message": "LLM response could not be decoded as a transaction list",
        "user_message": "Failed to parse LLM response",
        "suggestion": "Retry with mode=pattern.",
        "retry_allowed": True,
    },
    "PDF_001": {
        "code": "PDF_001",
        "message": "PDF text extraction failed: corrupted or invalid file",
        "user_message": "This PDF appears to be corrupted or damaged.",
        "suggestion": "Try downloading the statement again from your bank's website.",
        "retry_allowed": True,
    },
    "PDF_002": {
        "code": "PDF_002",
        "message": "PDF is password-protected",
        "user_message": "This statement requires a password.",
        "suggestion": "Provide the PDF password in the X-PDF-Password header.",
        "retry_allowed": True,
    },
    "PDF_003": {
        "code": "PDF_003",
        "message": "Incorrect password provided for encrypted PDF",
        "user_message": "The password you provided is incorrect.",
        "suggestion": "Check your password and try again.",
        "retry_allowed": True,
    },
    "PDF_004": {
        "code": "PDF_004",
        "message": "PDF contains no extractable text",
        "user_message": "No readable text was found in the PDF.",
        "suggestion": "Make sure the PDF contains text, not scanned images.",
        "retry_allowed": False,
    },
    "API_001": {
        "code": "API_001",
        "message": "Invalid file type uploaded",
        "user_message": "Please upload a PDF file",
        "suggestion": "Send the PDF as the raw request body with Content-Type: application/pdf.",
        "retry_allowed": False,
    },
    "API_002": {
        "code": "API_002",
        "message": "File size exceeds maximum limit",
        "user_message": "File size must be less than the configured limit.",
        "suggestion": "Upload a smaller statement file.",
        "retry_allowed": False,
    },
    "API_003": {
        "code": "API_003",
        "message": "Invalid PDF magic bytes",
        "user_message": "This file appears to be corrupt or is not a valid PDF.",
        "suggestion": "Please ensure you're uploading an actual PDF file, not a renamed file.",
        "retry_allowed": False,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request body failed validation",
        "user_message": "Invalid request",
        "suggestion": "Check the request fields and try again.",
        "retry_allowed": False,
    },
    "SYS_001": {
        "code": "SYS_001",
        "message": "Unexpected server error",
        "user_message": "Internal server error",
        "suggestion": "Please try again later or contact support.",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details
    """
    if error_code not in ERROR_CATALOG:
        # Return a generic error if code not found
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def get_user_message(error_code: str) -> str:
    """Get user-friendly message for an error code."""
    return get_error(error_code)["user_message"]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
