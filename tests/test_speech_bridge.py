"""
Unit tests for SpeechBridge

Tests that only final transcripts reach the controller and speech output options
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fir_assistant.config import VoiceConfig
from fir_assistant.core.conversation_controller import ConversationController
from fir_assistant.speech import SpeechBridge, SpeechEvent, SpeechEventType


# ========================
# Mock Modules
# ========================

class MockRecognizer:
    def __init__(self):
        self.started = 0
        self.stopped = 0

    def start(self):
        self.started += 1

    def stop(self):
        self.stopped += 1


class MockSynthesizer:
    def __init__(self):
        self.spoken = []

    def speak(self, text, options):
        self.spoken.append((text, options))


def create_bridge(**kwargs):
    controller = ConversationController(greet=False)
    return controller, SpeechBridge(controller, **kwargs)


# ========================
# Tests
# ========================

def test_only_final_result_submitted():
    controller, bridge = create_bridge()

    bridge.publish(SpeechEvent(SpeechEventType.STARTED))
    bridge.publish(SpeechEvent(SpeechEventType.INTERIM_RESULT, "someone broke"))
    bridge.publish(SpeechEvent(SpeechEventType.INTERIM_RESULT, "someone broke into my house"))

    assert bridge.process_pending() == []
    assert bridge.is_listening
    assert bridge.interim_transcript == "someone broke into my house"
    assert controller.history == ()

    bridge.publish(SpeechEvent(SpeechEventType.FINAL_RESULT, "someone broke into my house"))
    bridge.publish(SpeechEvent(SpeechEventType.ENDED))
    results = bridge.process_pending()

    assert len(results) == 1
    assert controller.history[0].text == "someone broke into my house"
    assert controller.tag_set.has('method', 'unauthorized_entry')
    assert bridge.interim_transcript == ""
    assert not bridge.is_listening


def test_empty_final_result_ignored():
    controller, bridge = create_bridge()

    bridge.publish(SpeechEvent(SpeechEventType.FINAL_RESULT, "   "))

    assert bridge.process_pending() == []
    assert controller.history == ()


def test_error_event_stops_listening():
    _, bridge = create_bridge()

    bridge.handle_event(SpeechEvent(SpeechEventType.STARTED))
    bridge.handle_event(SpeechEvent(SpeechEventType.ERROR, error='no-speech'))

    assert not bridge.is_listening
    assert bridge.last_error == 'no-speech'


def test_start_without_recognizer():
    _, bridge = create_bridge()

    assert not bridge.is_supported
    assert bridge.start_listening() is False


def test_start_and_stop_recognizer():
    recognizer = MockRecognizer()
    _, bridge = create_bridge(recognizer=recognizer)

    assert bridge.start_listening()
    bridge.handle_event(SpeechEvent(SpeechEventType.STARTED))
    bridge.stop_listening()

    assert recognizer.started == 1
    assert recognizer.stopped == 1


def test_speak_uses_voice_options():
    synthesizer = MockSynthesizer()
    _, bridge = create_bridge(synthesizer=synthesizer)

    assert bridge.speak("hello", rate=1.2)

    text, options = synthesizer.spoken[0]
    assert text == "hello"
    assert options == {'lang': 'en-US', 'rate': 1.2, 'pitch': 1.0, 'volume': 0.8}


def test_speak_disabled():
    synthesizer = MockSynthesizer()
    _, bridge = create_bridge(synthesizer=synthesizer, voice_config=VoiceConfig(enabled=False))

    assert not bridge.speak("hello")
    assert synthesizer.spoken == []


def test_auto_speak_reply():
    synthesizer = MockSynthesizer()
    _, bridge = create_bridge(synthesizer=synthesizer, voice_config=VoiceConfig(auto_speak=True))

    result = bridge.handle_event(SpeechEvent(SpeechEventType.FINAL_RESULT, "hello"))

    assert synthesizer.spoken[0][0] == result.reply
