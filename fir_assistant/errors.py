"""
Error types for the FIR assistant.

Only failures that callers are expected to recover from get a dedicated type.
Everything else uses built-in exceptions (ValueError, TypeError, RuntimeError).

Recovery policy:
- ConfigurationError: raised by build_client() only. Startup code calls
  validate_config() first and reports the strings instead of raising.
- ProviderError: recovered by the extractor/classifier (deterministic fallback)
- ResponseParseError: recovered identically to ProviderError
"""

from typing import Optional


class ConfigurationError(ValueError):
    """Provider configuration is incomplete (missing key or endpoint)"""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid provider configuration")


class ProviderError(RuntimeError):
    """
    Text-generation provider failed.

    Covers non-2xx HTTP status, transport failures, timeouts and response
    bodies that do not have the expected shape.

    Attributes:
        provider: Provider name ('openai', 'anthropic', 'custom', 'huggingface')
        status_code: HTTP status if the provider answered, else None
    """

    def __init__(self, message: str, provider: str = "unknown", status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ResponseParseError(ValueError):
    """Model output did not contain a usable JSON object"""

    def __init__(self, message: str, raw_output: Optional[str] = None):
        super().__init__(message)
        self.raw_output = raw_output
