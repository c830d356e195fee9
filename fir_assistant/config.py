"""
Provider configuration - explicit value passed into clients and controller

Responsibilities:
- Hold provider selection and credentials (no process-wide registry)
- Build configuration from environment variables
- Validate configuration into human-readable error strings

Design principles:
- Immutable value object (frozen dataclass)
- Validation reports, never raises (startup shows the list to the user)
- confidence_threshold is advisory only: nothing in the fallback logic reads it
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_CUSTOM = "custom"
PROVIDER_HUGGINGFACE = "huggingface"

SUPPORTED_PROVIDERS = (
    PROVIDER_OPENAI,
    PROVIDER_ANTHROPIC,
    PROVIDER_CUSTOM,
    PROVIDER_HUGGINGFACE,
)

DEFAULT_MODELS = {
    PROVIDER_OPENAI: "gpt-4",
    PROVIDER_ANTHROPIC: "claude-3-sonnet-20240229",
    PROVIDER_CUSTOM: "custom-model",
    PROVIDER_HUGGINGFACE: "mistralai/Mistral-7B-Instruct-v0.2",
}

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT_SECONDS = 20.0

TRUE_VALUES = {'true', 'yes', 'y', '1', 't', 'on'}


@dataclass(frozen=True)
class VoiceConfig:
    """Speech output options forwarded to the synthesizer"""
    enabled: bool = True
    auto_speak: bool = False
    language: str = "en-US"
    rate: float = 0.9
    pitch: float = 1.0
    volume: float = 0.8

    def speak_options(self) -> Dict[str, object]:
        return {
            'lang': self.language,
            'rate': self.rate,
            'pitch': self.pitch,
            'volume': self.volume,
        }


@dataclass(frozen=True)
class ProviderConfig:
    """
    Text-generation provider configuration.

    Attributes:
        provider: One of SUPPORTED_PROVIDERS
        api_key: Credential for openai/anthropic
        endpoint: URL for the custom provider
        base_url: OpenAI-compatible base URL
        headers: Extra headers for the custom provider
        model: Model identifier (provider default if None)
        timeout: Seconds before an HTTP call is abandoned
        confidence_threshold: Advisory only, not used by any rule
        enable_fallback: Use deterministic logic when the provider fails
        classify_every_turn: Run the classifier after every user turn
        voice: Speech output options
    """
    provider: str = PROVIDER_CUSTOM
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    base_url: str = DEFAULT_OPENAI_BASE_URL
    headers: Dict[str, str] = field(default_factory=dict)
    model: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    confidence_threshold: float = 0.7
    enable_fallback: bool = True
    classify_every_turn: bool = True
    voice: VoiceConfig = field(default_factory=VoiceConfig)

    @property
    def resolved_model(self) -> str:
        return self.model or DEFAULT_MODELS.get(self.provider, "custom-model")

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ProviderConfig":
        """
        Build configuration from environment variables

        Args:
            environ: Mapping to read (defaults to os.environ)

        Returns:
            ProviderConfig: Not validated - call validate_config()
        """
        env = os.environ if environ is None else environ
        provider = env.get('FIR_PROVIDER', PROVIDER_CUSTOM).strip().lower()

        api_key = None
        model = None
        if provider == PROVIDER_OPENAI:
            api_key = env.get('OPENAI_API_KEY')
            model = env.get('OPENAI_MODEL')
        elif provider == PROVIDER_ANTHROPIC:
            api_key = env.get('ANTHROPIC_API_KEY')
            model = env.get('ANTHROPIC_MODEL')
        elif provider == PROVIDER_CUSTOM:
            model = env.get('FIR_CUSTOM_MODEL')
        elif provider == PROVIDER_HUGGINGFACE:
            model = env.get('FIR_HF_MODEL')

        headers = {}
        custom_auth = env.get('FIR_CUSTOM_AUTH')
        if custom_auth:
            headers['Authorization'] = custom_auth

        timeout = _parse_float(env.get('FIR_PROVIDER_TIMEOUT'), DEFAULT_TIMEOUT_SECONDS)

        config = cls(
            provider=provider,
            api_key=api_key or None,
            endpoint=env.get('FIR_CUSTOM_ENDPOINT') or None,
            base_url=env.get('OPENAI_BASE_URL') or DEFAULT_OPENAI_BASE_URL,
            headers=headers,
            model=model or None,
            timeout=timeout,
            enable_fallback=_parse_bool(env.get('FIR_ENABLE_FALLBACK'), True),
            classify_every_turn=_parse_bool(env.get('FIR_CLASSIFY_EVERY_TURN'), True),
        )
        logger.info(f"Loaded provider config from environment (provider={provider})")
        return config


def validate_config(config: ProviderConfig) -> List[str]:
    """
    Check that the selected provider has what it needs.

    Args:
        config: Configuration to check

    Returns:
        list: Human-readable error strings (empty when valid)
    """
    errors = []

    if config.provider not in SUPPORTED_PROVIDERS:
        errors.append(f"Unknown provider: {config.provider}")
        return errors

    if config.provider == PROVIDER_OPENAI and not config.api_key:
        errors.append("OpenAI API key is required")

    if config.provider == PROVIDER_ANTHROPIC and not config.api_key:
        errors.append("Anthropic API key is required")

    if config.provider == PROVIDER_CUSTOM and not config.endpoint:
        errors.append("Custom provider endpoint is required")

    if config.provider == PROVIDER_HUGGINGFACE and not config.resolved_model:
        errors.append("HuggingFace model name is required")

    if config.timeout <= 0:
        errors.append("Provider timeout must be positive")

    return errors


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in TRUE_VALUES


def _parse_float(value: Optional[str], default: float) -> float:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric timeout '{value}', using {default}")
        return default
