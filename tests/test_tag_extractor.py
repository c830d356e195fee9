"""
Unit tests for TagExtractor

Tests provider parsing, quarantine warnings and fallback behavior with mock clients
"""

import json
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from fir_assistant.contracts import ConversationTurn, Speaker
from fir_assistant.core.tag_extractor import TagExtractor
from fir_assistant.errors import ProviderError

SCENARIO = "Someone broke into my house at night and stole my jewelry"


# ========================
# Mock Clients
# ========================

class MockClient:
    """Returns a canned response and records prompts"""

    def __init__(self, response):
        self.response = response
        self.prompts = []

    def generate_text(self, prompt):
        self.prompts.append(prompt)
        return self.response


class FailingClient:
    """Raises ProviderError like a timed-out HTTP backend"""

    def __init__(self, status_code=None):
        self.status_code = status_code
        self.calls = 0

    def generate_text(self, prompt):
        self.calls += 1
        raise ProviderError("custom request timed out after 20.0s",
                            provider="custom", status_code=self.status_code)


class BrokenClient:
    """Raises an unexpected exception type"""

    def generate_text(self, prompt):
        raise KeyError("boom")


# ========================
# Tests
# ========================

def test_provider_success():
    client = MockClient(json.dumps({
        'intent': ['dishonest_intent_to_take'],
        'location': ['house'],
        'time': [],
    }))
    extractor = TagExtractor(client)

    result = extractor.extract_with_metadata("thief took my bag from home")

    assert result['outcome'] == 'success'
    assert result['tags'].get('intent') == frozenset({'dishonest_intent_to_take'})
    assert result['tags'].get('location') == frozenset({'house'})
    assert result['parse_metadata']['validation_warnings'] == []
    assert len(client.prompts) == 1


def test_json_wrapped_in_prose_and_fences():
    client = MockClient('Sure! ```json\n{"method": ["force"]}\n``` Hope this helps.')
    extractor = TagExtractor(client)

    tags = extractor.extract("they forced the lock")

    assert tags.get('method') == frozenset({'force'})


def test_out_of_taxonomy_tags_quarantined_with_warning():
    client = MockClient(json.dumps({'location': ['house', 'moon_base']}))
    extractor = TagExtractor(client)

    result = extractor.extract_with_metadata("at home")

    assert result['outcome'] == 'success'
    assert result['tags'].get('location') == frozenset({'house'})
    assert result['tags'].quarantined == {'location': frozenset({'moon_base'})}
    warnings = result['parse_metadata']['validation_warnings']
    assert warnings[0]['value'] == 'moon_base'
    assert warnings[0]['issue'] == 'not_in_taxonomy'
    assert result['parse_metadata']['quarantined_count'] == 1


def test_string_category_value_accepted():
    client = MockClient('{"time": "night_time"}')

    tags = TagExtractor(client).extract("late")

    assert tags.get('time') == frozenset({'night_time'})


def test_invalid_category_value_warns():
    client = MockClient('{"time": 5, "location": ["house"]}')

    result = TagExtractor(client).extract_with_metadata("x")

    assert result['tags'].get('location') == frozenset({'house'})
    assert result['parse_metadata']['validation_warnings'][0]['issue'] == 'invalid_category_value'


@pytest.mark.parametrize("response", ["", "I could not find anything", "[1, 2, 3]", "{not json}"])
def test_unusable_output_falls_back_to_keywords(response):
    extractor = TagExtractor(MockClient(response))

    result = extractor.extract_with_metadata(SCENARIO)

    assert result['outcome'] == 'fallback'
    assert result['tags'].has('method', 'unauthorized_entry')
    assert result['parse_metadata']['error_type'] == 'ResponseParseError'


def test_provider_error_falls_back_to_keywords():
    client = FailingClient(status_code=503)
    extractor = TagExtractor(client)

    result = extractor.extract_with_metadata(SCENARIO)

    assert result['outcome'] == 'fallback'
    assert result['tags'].has('location', 'house')
    assert result['parse_metadata']['error_type'] == 'ProviderError'
    assert client.calls == 1


def test_unexpected_client_exception_falls_back():
    result = TagExtractor(BrokenClient()).extract_with_metadata(SCENARIO)

    assert result['outcome'] == 'fallback'
    assert result['tags'].has('intent', 'dishonest_intent_to_take')


def test_fallback_disabled_returns_empty():
    extractor = TagExtractor(FailingClient(), enable_fallback=False)

    result = extractor.extract_with_metadata(SCENARIO)

    assert result['outcome'] == 'extraction_failed'
    assert result['tags'].is_empty()


def test_no_client_uses_keywords():
    result = TagExtractor().extract_with_metadata(SCENARIO)

    assert result['outcome'] == 'fallback'
    assert result['parse_metadata']['error_type'] == 'NoClient'
    assert result['tags'].count() == 7


def test_history_window_is_last_five_turns():
    client = MockClient('{}')
    history = [ConversationTurn(Speaker.USER, f"turn-{i}") for i in range(8)]

    TagExtractor(client).extract("now", history)

    prompt = client.prompts[0]
    assert 'turn-2' not in prompt
    for i in range(3, 8):
        assert f"turn-{i}" in prompt


def test_non_string_utterance_rejected():
    with pytest.raises(TypeError):
        TagExtractor().extract(None)


def test_client_without_generate_text_rejected():
    with pytest.raises(TypeError):
        TagExtractor(client=object())
