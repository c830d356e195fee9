"""
Text generation client interface and shared HTTP plumbing

Responsibilities:
- Define the single capability the core needs: generate_text(prompt) -> str
- Provide HTTP POST with timeout and status checking for remote backends
- Convert every transport/HTTP/body failure into ProviderError

Design principles:
- Dependency injection (no singleton, no global provider switch)
- One attempt per call, retries are the caller's concern
- Non-2xx status is distinguishable (ProviderError.status_code)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from fir_assistant.config import ProviderConfig
from fir_assistant.errors import ProviderError

logger = logging.getLogger(__name__)


class TextGenerationClient(ABC):
    """Anything that turns a prompt into text"""

    provider_name = "unknown"

    @abstractmethod
    def generate_text(self, prompt: str) -> str:
        """
        Generate a completion for a plain-text prompt

        Raises:
            ProviderError: On any provider failure
        """

    def describe(self) -> Dict[str, Any]:
        return {'provider': self.provider_name}


class HTTPTextGenerationClient(TextGenerationClient):
    """Base for backends reached over HTTP POST"""

    def __init__(self, config: ProviderConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.model = config.resolved_model
        self.timeout = config.timeout
        self.session = session or requests.Session()

    def _post_json(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON payload and return the decoded JSON body

        Args:
            url: Target URL
            headers: Request headers
            payload: JSON-serializable body

        Returns:
            dict: Decoded response body

        Raises:
            ProviderError: Transport failure, timeout, non-2xx status or
                non-JSON body
        """
        try:
            response = self.session.post(url, headers=headers, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            logger.warning(f"{self.provider_name} request timed out after {self.timeout}s")
            raise ProviderError(
                f"{self.provider_name} request timed out after {self.timeout}s",
                provider=self.provider_name
            ) from e
        except requests.RequestException as e:
            logger.warning(f"{self.provider_name} transport error: {type(e).__name__} - {e}")
            raise ProviderError(
                f"{self.provider_name} transport error: {e}",
                provider=self.provider_name
            ) from e

        if not 200 <= response.status_code < 300:
            logger.warning(f"{self.provider_name} API error: {response.status_code}")
            raise ProviderError(
                f"{self.provider_name} API error: {response.status_code}",
                provider=self.provider_name,
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.provider_name} returned a non-JSON body",
                provider=self.provider_name,
                status_code=response.status_code
            ) from e

        if not isinstance(body, dict):
            raise ProviderError(
                f"{self.provider_name} returned {type(body).__name__}, expected object",
                provider=self.provider_name,
                status_code=response.status_code
            )

        return body

    def describe(self) -> Dict[str, Any]:
        return {
            'provider': self.provider_name,
            'model': self.model,
            'timeout': self.timeout,
        }
