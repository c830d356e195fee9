"""
Flask Web Application for the FIR Assistant

JSON API over per-conversation ConversationControllers. Each conversation
has its own form, tags, history and classification; nothing is shared
between conversations.
"""

import logging
import threading
import uuid

from dotenv import load_dotenv
from flask import Flask, jsonify, request

from fir_assistant.clients.registry import build_client
from fir_assistant.config import PROVIDER_HUGGINGFACE, ProviderConfig, validate_config
from fir_assistant.contracts import Classification
from fir_assistant.core.conversation_controller import ConversationController
from fir_assistant.results import IllegalCommand

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config=None, controller_factory=None):
    """
    Build the Flask app

    Args:
        config: ProviderConfig for new conversations (default: from env)
        controller_factory: Callable returning a ConversationController
            (tests inject controllers with mock clients)
    """
    app = Flask(__name__)

    provider_config = config or ProviderConfig.from_env()

    if controller_factory is not None:
        factory = controller_factory
    elif provider_config.provider == PROVIDER_HUGGINGFACE:
        # Local model loads once; HTTP clients own a requests.Session each
        shared_client = None
        if not validate_config(provider_config):
            try:
                shared_client = build_client(provider_config)
            except Exception as e:
                logger.error(f"Provider client unavailable: {type(e).__name__} - {e}")
        factory = lambda: ConversationController(config=provider_config, client=shared_client)
    else:
        factory = lambda: ConversationController(config=provider_config)

    conversations = {}
    conversations_lock = threading.Lock()
    app.extensions['fir_conversations'] = conversations

    def get_controller(conversation_id):
        with conversations_lock:
            return conversations.get(conversation_id)

    def not_found(conversation_id):
        return jsonify({
            'success': False,
            'error': f'Unknown conversation: {conversation_id}'
        }), 404

    @app.route('/api/conversations', methods=['POST'])
    def create_conversation():
        """Start a new conversation"""
        controller = factory()
        conversation_id = uuid.uuid4().hex
        with conversations_lock:
            conversations[conversation_id] = controller

        logger.info(f"New conversation created: {conversation_id}")
        return jsonify({
            'success': True,
            'conversation_id': conversation_id,
            **controller.snapshot()
        }), 201

    @app.route('/api/conversations/<conversation_id>', methods=['GET'])
    def get_conversation(conversation_id):
        controller = get_controller(conversation_id)
        if controller is None:
            return not_found(conversation_id)
        return jsonify({'success': True, 'conversation_id': conversation_id, **controller.snapshot()})

    @app.route('/api/conversations/<conversation_id>', methods=['DELETE'])
    def delete_conversation(conversation_id):
        """End a conversation and release its state"""
        with conversations_lock:
            controller = conversations.pop(conversation_id, None)
        if controller is None:
            return not_found(conversation_id)

        logger.info(f"Conversation deleted: {conversation_id}")
        return jsonify({'success': True, 'conversation_id': conversation_id})

    @app.route('/api/conversations/<conversation_id>/utterances', methods=['POST'])
    def submit_utterance(conversation_id):
        """Process one user utterance"""
        controller = get_controller(conversation_id)
        if controller is None:
            return not_found(conversation_id)

        data = request.get_json(silent=True) or {}
        result = controller.submit_utterance(data.get('text', ''))

        if isinstance(result, IllegalCommand):
            return jsonify({'success': False, 'error': result.reason}), 400

        return jsonify({
            'success': True,
            'reply': result.reply,
            'extracted_tags': result.extracted.to_dict(),
            **controller.snapshot()
        })

    @app.route('/api/conversations/<conversation_id>/fields', methods=['PUT'])
    def edit_field(conversation_id):
        """Direct user edit of a form field"""
        controller = get_controller(conversation_id)
        if controller is None:
            return not_found(conversation_id)

        data = request.get_json(silent=True) or {}
        result = controller.edit_field(data.get('section', ''), data.get('field', ''), data.get('value'))

        if isinstance(result, IllegalCommand):
            return jsonify({'success': False, 'error': result.reason}), 400

        return jsonify({'success': True, **controller.snapshot()})

    @app.route('/api/conversations/<conversation_id>/classify', methods=['POST'])
    def classify(conversation_id):
        """Classify the accumulated tags now"""
        controller = get_controller(conversation_id)
        if controller is None:
            return not_found(conversation_id)

        classification: Classification = controller.reclassify()
        return jsonify({'success': True, 'classification': classification.to_dict()})

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({
            'success': True,
            'provider': provider_config.provider,
            'conversations': len(conversations)
        })

    return app


if __name__ == '__main__':
    load_dotenv()
    app = create_app()

    print("\n" + "=" * 60)
    print("FIR ASSISTANT - WEB API")
    print("=" * 60)
    print("\nServer starting on http://localhost:5000")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 60 + "\n")

    app.run(debug=False, host='0.0.0.0', port=5000)
