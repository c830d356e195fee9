"""
Unit tests for provider configuration and HTTP clients

Tests config validation, env loading, wire shapes and error mapping with a fake session
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import requests

from fir_assistant.clients.http_clients import (
    ANTHROPIC_MESSAGES_URL,
    AnthropicStyleClient,
    CustomHTTPClient,
    OpenAIStyleClient,
)
from fir_assistant.clients.registry import build_client
from fir_assistant.config import ProviderConfig, validate_config
from fir_assistant.errors import ConfigurationError, ProviderError


# ========================
# Fake HTTP session
# ========================

class FakeResponse:
    def __init__(self, status_code=200, body=None, invalid_json=False):
        self.status_code = status_code
        self.body = body
        self.invalid_json = invalid_json

    def json(self):
        if self.invalid_json:
            raise ValueError("No JSON object could be decoded")
        return self.body


class FakeSession:
    """Records POSTs and returns a canned response (or raises)"""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.requests.append({'url': url, 'headers': headers, 'json': json, 'timeout': timeout})
        if self.error is not None:
            raise self.error
        return self.response


# ========================
# Configuration
# ========================

def test_validate_config_messages():
    assert validate_config(ProviderConfig(provider='openai')) == ["OpenAI API key is required"]
    assert validate_config(ProviderConfig(provider='anthropic')) == ["Anthropic API key is required"]
    assert validate_config(ProviderConfig(provider='custom')) == ["Custom provider endpoint is required"]
    assert validate_config(ProviderConfig(provider='gemini')) == ["Unknown provider: gemini"]
    assert validate_config(ProviderConfig(provider='openai', api_key='k')) == []


def test_non_positive_timeout_rejected():
    config = ProviderConfig(provider='custom', endpoint='http://llm.local', timeout=0)

    assert "Provider timeout must be positive" in validate_config(config)


def test_from_env():
    config = ProviderConfig.from_env({
        'FIR_PROVIDER': 'OpenAI',
        'OPENAI_API_KEY': 'sk-test',
        'FIR_PROVIDER_TIMEOUT': '5',
        'FIR_ENABLE_FALLBACK': 'false',
        'FIR_CLASSIFY_EVERY_TURN': 'no',
    })

    assert config.provider == 'openai'
    assert config.api_key == 'sk-test'
    assert config.timeout == 5.0
    assert config.enable_fallback is False
    assert config.classify_every_turn is False
    assert config.resolved_model == 'gpt-4'


def test_from_env_defaults():
    config = ProviderConfig.from_env({})

    assert config.provider == 'custom'
    assert config.timeout == 20.0
    assert config.enable_fallback is True


def test_build_client_rejects_invalid_config():
    with pytest.raises(ConfigurationError) as exc_info:
        build_client(ProviderConfig(provider='anthropic'))

    assert exc_info.value.errors == ["Anthropic API key is required"]


def test_build_client_selects_variant():
    assert isinstance(build_client(ProviderConfig(provider='openai', api_key='k')), OpenAIStyleClient)
    assert isinstance(build_client(ProviderConfig(provider='anthropic', api_key='k')), AnthropicStyleClient)
    assert isinstance(build_client(ProviderConfig(provider='custom', endpoint='http://x')), CustomHTTPClient)


# ========================
# Wire shapes
# ========================

def test_openai_request_and_response():
    session = FakeSession(FakeResponse(body={'choices': [{'message': {'content': '{"a": 1}'}}]}))
    client = OpenAIStyleClient(ProviderConfig(provider='openai', api_key='sk-test'), session=session)

    assert client.generate_text("hello") == '{"a": 1}'

    sent = session.requests[0]
    assert sent['url'] == 'https://api.openai.com/v1/chat/completions'
    assert sent['headers']['Authorization'] == 'Bearer sk-test'
    assert sent['json']['messages'][-1] == {'role': 'user', 'content': 'hello'}
    assert sent['json']['temperature'] == 0.1
    assert sent['timeout'] == 20.0


def test_anthropic_request_and_response():
    session = FakeSession(FakeResponse(body={'content': [{'type': 'text', 'text': 'result'}]}))
    client = AnthropicStyleClient(ProviderConfig(provider='anthropic', api_key='ak'), session=session)

    assert client.generate_text("hello") == 'result'

    sent = session.requests[0]
    assert sent['url'] == ANTHROPIC_MESSAGES_URL
    assert sent['headers']['x-api-key'] == 'ak'
    assert sent['headers']['anthropic-version'] == '2023-06-01'
    assert sent['json']['max_tokens'] == 1000


@pytest.mark.parametrize("body,expected", [
    ({'response': 'r'}, 'r'),
    ({'content': 'c'}, 'c'),
    ({'text': 't'}, 't'),
    ({'response': 'r', 'text': 't'}, 'r'),
])
def test_custom_response_field_order(body, expected):
    session = FakeSession(FakeResponse(body=body))
    config = ProviderConfig(endpoint='http://llm.local/generate', headers={'Authorization': 'Token x'})
    client = CustomHTTPClient(config, session=session)

    assert client.generate_text("p") == expected
    assert session.requests[0]['json'] == {'prompt': 'p', 'model': 'custom-model'}
    assert session.requests[0]['headers']['Authorization'] == 'Token x'


# ========================
# Error mapping
# ========================

def make_custom_client(session):
    return CustomHTTPClient(ProviderConfig(endpoint='http://llm.local'), session=session)


def test_non_2xx_status_is_provider_error():
    client = make_custom_client(FakeSession(FakeResponse(status_code=503, body={})))

    with pytest.raises(ProviderError) as exc_info:
        client.generate_text("p")

    assert exc_info.value.status_code == 503
    assert exc_info.value.provider == 'custom'


def test_timeout_is_provider_error():
    client = make_custom_client(FakeSession(error=requests.Timeout("slow")))

    with pytest.raises(ProviderError) as exc_info:
        client.generate_text("p")

    assert exc_info.value.status_code is None
    assert 'timed out' in str(exc_info.value)


def test_connection_error_is_provider_error():
    client = make_custom_client(FakeSession(error=requests.ConnectionError("refused")))

    with pytest.raises(ProviderError):
        client.generate_text("p")


def test_non_json_body_is_provider_error():
    client = make_custom_client(FakeSession(FakeResponse(invalid_json=True)))

    with pytest.raises(ProviderError):
        client.generate_text("p")


def test_missing_response_field_is_provider_error():
    client = make_custom_client(FakeSession(FakeResponse(body={'result': 'x'})))

    with pytest.raises(ProviderError):
        client.generate_text("p")


def test_openai_missing_choices_is_provider_error():
    session = FakeSession(FakeResponse(body={'choices': []}))
    client = OpenAIStyleClient(ProviderConfig(provider='openai', api_key='k'), session=session)

    with pytest.raises(ProviderError):
        client.generate_text("p")
