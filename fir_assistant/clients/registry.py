"""
Client registry - provider name to client variant

Adding a backend means adding an entry here. Call sites only ever see a
TextGenerationClient.
"""

import logging
from typing import Callable, Dict

from fir_assistant.clients.base import TextGenerationClient
from fir_assistant.clients.http_clients import (
    AnthropicStyleClient,
    CustomHTTPClient,
    OpenAIStyleClient,
)
from fir_assistant.config import (
    PROVIDER_ANTHROPIC,
    PROVIDER_CUSTOM,
    PROVIDER_HUGGINGFACE,
    PROVIDER_OPENAI,
    ProviderConfig,
    validate_config,
)
from fir_assistant.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _load_huggingface(config: ProviderConfig) -> TextGenerationClient:
    # torch/transformers are an optional extra
    from fir_assistant.clients.hf_client import HuggingFaceClient
    return HuggingFaceClient(config)


CLIENT_REGISTRY: Dict[str, Callable[[ProviderConfig], TextGenerationClient]] = {
    PROVIDER_OPENAI: OpenAIStyleClient,
    PROVIDER_ANTHROPIC: AnthropicStyleClient,
    PROVIDER_CUSTOM: CustomHTTPClient,
    PROVIDER_HUGGINGFACE: _load_huggingface,
}


def build_client(config: ProviderConfig) -> TextGenerationClient:
    """
    Construct the client variant for config.provider

    Args:
        config: Provider configuration

    Returns:
        TextGenerationClient: Ready-to-use client

    Raises:
        ConfigurationError: If validate_config() reports any error
    """
    errors = validate_config(config)
    if errors:
        raise ConfigurationError(errors)

    factory = CLIENT_REGISTRY[config.provider]
    client = factory(config)
    logger.info(f"Built text generation client: {client.describe()}")
    return client
