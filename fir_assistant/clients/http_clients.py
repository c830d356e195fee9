"""
Remote text generation backends

Three wire shapes:
- OpenAIStyleClient: chat completion, bearer token, choices[0].message.content
- AnthropicStyleClient: messages API, x-api-key, content[0].text
- CustomHTTPClient: generic POST {prompt, model}, response|content|text field
"""

import logging

from fir_assistant.clients.base import HTTPTextGenerationClient
from fir_assistant.config import PROVIDER_ANTHROPIC, PROVIDER_CUSTOM, PROVIDER_OPENAI
from fir_assistant.errors import ProviderError

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = "You are a legal AI assistant for FIR analysis."

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

# Custom provider body keys, tried in this order
CUSTOM_RESPONSE_KEYS = ("response", "content", "text")


class OpenAIStyleClient(HTTPTextGenerationClient):
    """OpenAI-compatible chat completion endpoint"""

    provider_name = PROVIDER_OPENAI

    def __init__(self, config, session=None, temperature: float = 0.1) -> None:
        super().__init__(config, session)
        self.base_url = config.base_url.rstrip('/')
        self.api_key = config.api_key
        self.temperature = temperature

    def generate_text(self, prompt: str) -> str:
        body = self._post_json(
            url=f"{self.base_url}/chat/completions",
            headers={
                'Authorization': f"Bearer {self.api_key}",
                'Content-Type': 'application/json',
            },
            payload={
                'model': self.model,
                'messages': [
                    {'role': 'system', 'content': SYSTEM_MESSAGE},
                    {'role': 'user', 'content': prompt},
                ],
                'temperature': self.temperature,
            }
        )

        try:
            content = body['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                "openai response missing choices[0].message.content",
                provider=self.provider_name
            ) from e

        if not isinstance(content, str):
            raise ProviderError("openai message content is not text", provider=self.provider_name)
        return content


class AnthropicStyleClient(HTTPTextGenerationClient):
    """Anthropic messages endpoint"""

    provider_name = PROVIDER_ANTHROPIC

    def __init__(self, config, session=None, max_tokens: int = 1000) -> None:
        super().__init__(config, session)
        self.api_key = config.api_key
        self.max_tokens = max_tokens

    def generate_text(self, prompt: str) -> str:
        body = self._post_json(
            url=ANTHROPIC_MESSAGES_URL,
            headers={
                'x-api-key': self.api_key,
                'Content-Type': 'application/json',
                'anthropic-version': ANTHROPIC_VERSION,
            },
            payload={
                'model': self.model,
                'max_tokens': self.max_tokens,
                'messages': [{'role': 'user', 'content': prompt}],
            }
        )

        try:
            text = body['content'][0]['text']
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                "anthropic response missing content[0].text",
                provider=self.provider_name
            ) from e

        if not isinstance(text, str):
            raise ProviderError("anthropic content block is not text", provider=self.provider_name)
        return text


class CustomHTTPClient(HTTPTextGenerationClient):
    """Generic JSON-over-POST endpoint"""

    provider_name = PROVIDER_CUSTOM

    def __init__(self, config, session=None) -> None:
        super().__init__(config, session)
        self.endpoint = config.endpoint
        self.headers = dict(config.headers)

    def generate_text(self, prompt: str) -> str:
        headers = {'Content-Type': 'application/json'}
        headers.update(self.headers)

        body = self._post_json(
            url=self.endpoint,
            headers=headers,
            payload={'prompt': prompt, 'model': self.model}
        )

        for key in CUSTOM_RESPONSE_KEYS:
            value = body.get(key)
            if value:
                if not isinstance(value, str):
                    raise ProviderError(
                        f"custom provider field '{key}' is not text",
                        provider=self.provider_name
                    )
                return value

        raise ProviderError(
            f"custom provider body has none of {list(CUSTOM_RESPONSE_KEYS)}",
            provider=self.provider_name
        )
