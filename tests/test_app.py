"""
Integration tests for the Flask API

Uses the Flask test client with offline controllers (no provider)
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from app import create_app
from fir_assistant.config import ProviderConfig
from fir_assistant.core.conversation_controller import ConversationController

SCENARIO = "Someone broke into my house at night and stole my jewelry"


@pytest.fixture
def client():
    app = create_app(
        config=ProviderConfig(),
        controller_factory=lambda: ConversationController()
    )
    app.config['TESTING'] = True
    return app.test_client()


def start_conversation(client):
    response = client.post('/api/conversations')
    assert response.status_code == 201
    return response.get_json()['conversation_id']


def test_create_conversation(client):
    response = client.post('/api/conversations')
    data = response.get_json()

    assert data['success']
    assert data['history'][0]['speaker'] == 'assistant'
    assert data['provider_health']['status'] == 'ready'


def test_submit_utterance(client):
    conversation_id = start_conversation(client)

    response = client.post(f'/api/conversations/{conversation_id}/utterances', json={'text': SCENARIO})
    data = response.get_json()

    assert response.status_code == 200
    assert data['reply'].startswith("I've extracted 7 data points")
    assert data['form_state']['incident']['type'] == 'Theft'
    assert data['classification']['severity_tier'] == 'high'
    assert data['extracted_tags']['method'] == ['unauthorized_entry']


def test_empty_utterance_is_400(client):
    conversation_id = start_conversation(client)

    response = client.post(f'/api/conversations/{conversation_id}/utterances', json={'text': ''})

    assert response.status_code == 400
    assert not response.get_json()['success']


def test_unknown_conversation_is_404(client):
    response = client.get('/api/conversations/does-not-exist')

    assert response.status_code == 404


def test_edit_field_and_read_back(client):
    conversation_id = start_conversation(client)

    response = client.put(
        f'/api/conversations/{conversation_id}/fields',
        json={'section': 'incident', 'field': 'location', 'value': 'Sector 5 market'}
    )
    assert response.status_code == 200

    client.post(f'/api/conversations/{conversation_id}/utterances', json={'text': SCENARIO})
    data = client.get(f'/api/conversations/{conversation_id}').get_json()

    assert data['form_state']['incident']['location'] == 'Sector 5 market'
    statuses = {entry['key']: entry for entry in data['field_status']['fields']}
    assert statuses['incident.location']['is_user_edited']


def test_invalid_edit_is_400(client):
    conversation_id = start_conversation(client)

    response = client.put(
        f'/api/conversations/{conversation_id}/fields',
        json={'section': 'incident', 'field': 'weapon', 'value': 'knife'}
    )

    assert response.status_code == 400


def test_classify(client):
    conversation_id = start_conversation(client)
    client.post(f'/api/conversations/{conversation_id}/utterances', json={'text': SCENARIO})

    data = client.post(f'/api/conversations/{conversation_id}/classify').get_json()

    assert len(data['classification']['applicable_sections']) == 3


def test_conversations_are_independent(client):
    first = start_conversation(client)
    second = start_conversation(client)

    client.post(f'/api/conversations/{first}/utterances', json={'text': SCENARIO})
    data = client.get(f'/api/conversations/{second}').get_json()

    assert data['form_state']['incident']['type'] is None


def test_invalid_provider_config_reported():
    app = create_app(config=ProviderConfig(provider='openai'))
    client = app.test_client()

    data = client.post('/api/conversations').get_json()

    assert data['provider_health']['status'] == 'error'
    assert data['config_errors'] == ["OpenAI API key is required"]


def test_delete_conversation(client):
    conversation_id = start_conversation(client)

    response = client.delete(f'/api/conversations/{conversation_id}')

    assert response.status_code == 200
    assert client.get(f'/api/conversations/{conversation_id}').status_code == 404
    assert client.delete(f'/api/conversations/{conversation_id}').status_code == 404


def test_http_provider_session_per_conversation():
    app = create_app(config=ProviderConfig(provider='custom', endpoint='http://llm.local/generate'))
    client = app.test_client()

    first = start_conversation(client)
    second = start_conversation(client)

    conversations = app.extensions['fir_conversations']
    first_client = conversations[first].client
    second_client = conversations[second].client
    assert first_client is not None
    assert first_client is not second_client
    assert first_client.session is not second_client.session
