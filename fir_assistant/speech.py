"""
Speech Bridge - connects a speech recognizer/synthesizer to a conversation

Recognition results arrive as SpeechEvents on a queue.Queue channel. Only a
non-empty FINAL_RESULT is submitted to the controller as an utterance;
interim transcripts are kept for display and never processed.

The recognizer and synthesizer are platform services and are injected.
Anything with start()/stop() works as a recognizer, anything with
speak(text, options) works as a synthesizer.
"""

import logging
import queue
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from fir_assistant.config import VoiceConfig
from fir_assistant.results import IllegalCommand, TurnResult

logger = logging.getLogger(__name__)


class SpeechEventType(Enum):
    STARTED = "started"
    INTERIM_RESULT = "interim_result"
    FINAL_RESULT = "final_result"
    ENDED = "ended"
    ERROR = "error"


@dataclass(frozen=True)
class SpeechEvent:
    """
    One recognizer event.

    Attributes:
        type: Event kind
        text: Transcript for INTERIM_RESULT / FINAL_RESULT
        error: Error kind for ERROR (e.g. 'no-speech', 'not-allowed')
    """
    type: SpeechEventType
    text: str = ""
    error: Optional[str] = None


class SpeechBridge:
    """Routes recognizer events into a ConversationController"""

    def __init__(
        self,
        controller,
        channel: Optional["queue.Queue[SpeechEvent]"] = None,
        recognizer=None,
        synthesizer=None,
        voice_config: Optional[VoiceConfig] = None
    ):
        """
        Args:
            controller: ConversationController receiving final transcripts
            channel: Event queue (created if not given)
            recognizer: Object with start()/stop(), or None if unsupported
            synthesizer: Object with speak(text, options), or None
            voice_config: Speech output options
        """
        self.controller = controller
        self.channel = channel if channel is not None else queue.Queue()
        self.recognizer = recognizer
        self.synthesizer = synthesizer
        self.voice_config = voice_config or VoiceConfig()

        self.is_listening = False
        self.interim_transcript = ""
        self.last_error: Optional[str] = None

    @property
    def is_supported(self) -> bool:
        return self.recognizer is not None

    def start_listening(self) -> bool:
        """Start recognition. Returns False when no recognizer is available."""
        if not self.is_supported:
            logger.warning("Speech recognition not supported")
            return False
        if not self.is_listening:
            self.recognizer.start()
        return True

    def stop_listening(self) -> None:
        if self.is_supported and self.is_listening:
            self.recognizer.stop()

    def publish(self, event: SpeechEvent) -> None:
        """Enqueue an event (called from the recognizer's thread)"""
        self.channel.put(event)

    def process_pending(self) -> List[TurnResult]:
        """
        Drain the channel and handle every queued event

        Returns:
            TurnResults for each final transcript submitted
        """
        results = []
        while True:
            try:
                event = self.channel.get_nowait()
            except queue.Empty:
                break
            result = self.handle_event(event)
            if result is not None:
                results.append(result)
        return results

    def handle_event(self, event: SpeechEvent) -> Optional[TurnResult]:
        """Apply one event; returns a TurnResult only for a submitted transcript"""
        if event.type == SpeechEventType.STARTED:
            self.is_listening = True
            self.last_error = None
            return None

        if event.type == SpeechEventType.ENDED:
            self.is_listening = False
            self.interim_transcript = ""
            return None

        if event.type == SpeechEventType.ERROR:
            logger.warning(f"Speech recognition error: {event.error}")
            self.is_listening = False
            self.last_error = event.error or "unknown"
            return None

        if event.type == SpeechEventType.INTERIM_RESULT:
            self.interim_transcript = event.text
            return None

        # FINAL_RESULT
        self.interim_transcript = ""
        text = event.text.strip()
        if not text:
            return None

        result = self.controller.submit_utterance(text)
        if isinstance(result, IllegalCommand):
            return None

        if self.voice_config.auto_speak:
            self.speak(result.reply)
        return result

    def speak(self, text: str, **options: Any) -> bool:
        """
        Speak text through the synthesizer

        Args:
            text: Text to speak
            **options: Overrides for lang/rate/pitch/volume

        Returns:
            bool: True if handed to the synthesizer
        """
        if not self.voice_config.enabled or self.synthesizer is None or not text:
            return False
        speak_options: Dict[str, Any] = self.voice_config.speak_options()
        speak_options.update(options)
        self.synthesizer.speak(text, speak_options)
        return True
