"""
Conversation Controller - per-conversation turn orchestration

Responsibilities:
- Own one conversation's FormState, TagSet, history, classification and
  provider health
- Run each user turn: extract -> merge -> reconcile -> classify -> reply
- Apply direct user edits
- Turn any failure into the fixed apology reply plus an error health flag

State machine:
    READY -> PROCESSING -> {READY, ERROR}
    ERROR -> READY on the next successful turn

Design principles:
- Commands are the only write entry points (commands.py)
- Turns are serialized with a per-controller lock: a turn submitted while
  another is running waits for it, never interleaves
- No rollback: mutations committed before a failure stay committed
- Conversations share nothing; one controller per conversation
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple, Union

from fir_assistant.clients.base import TextGenerationClient
from fir_assistant.clients.registry import build_client
from fir_assistant.commands import Command, EditField, Reclassify, SubmitUtterance
from fir_assistant.config import ProviderConfig, validate_config
from fir_assistant.contracts import (
    Classification,
    ConversationTurn,
    HealthStatus,
    ProviderHealth,
    Speaker,
)
from fir_assistant.core.field_mapper import apply_user_edit, field_statuses, reconcile_with_changes
from fir_assistant.core.form_state import FormState
from fir_assistant.core.legal_classifier import LegalClassifier
from fir_assistant.core.tag_extractor import TagExtractor
from fir_assistant.core.tag_set import TagSet
from fir_assistant.core.taxonomy import Taxonomy, get_default_taxonomy
from fir_assistant.results import EditResult, IllegalCommand, TurnResult
from fir_assistant.utils.field_patterns import match_field_patterns
from fir_assistant.utils.reply_rules import APOLOGY_REPLY, build_reply

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I'm your GenAI assistant. I'll help you fill out the FIR and extract structured "
    "information from our conversation. You can type or use voice input to describe the incident."
)


class ConversationController:
    """Orchestrates one FIR conversation"""

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        client: Optional[TextGenerationClient] = None,
        taxonomy: Optional[Taxonomy] = None,
        initial_form: Optional[FormState] = None,
        extractor: Optional[TagExtractor] = None,
        classifier: Optional[LegalClassifier] = None,
        greet: bool = True
    ) -> None:
        """
        Initialize controller

        Args:
            config: Provider configuration (validated here; errors are
                reported through provider_health, never raised)
            client: Pre-built client (skips building from config)
            taxonomy: Categories/tags (default: bundled IPC taxonomy)
            initial_form: Pre-seeded form
            extractor: Custom extractor (default built from client)
            classifier: Custom classifier (default built from client)
            greet: Start history with the assistant greeting
        """
        self.config = config or ProviderConfig()
        self.taxonomy = taxonomy or get_default_taxonomy()
        self.classify_every_turn = self.config.classify_every_turn

        self._config_errors: Tuple[str, ...] = ()
        if client is None and extractor is None and classifier is None and config is not None:
            client = self._build_client(config)

        self.client = client
        self.extractor = extractor or TagExtractor(
            client, self.taxonomy, enable_fallback=self.config.enable_fallback
        )
        self.classifier = classifier or LegalClassifier(client, self.taxonomy)

        self._form = initial_form or FormState()
        self._tags = TagSet()
        self._history: List[ConversationTurn] = []
        self._classification: Optional[Classification] = None
        self._health = ProviderHealth(
            status=HealthStatus.ERROR if self._config_errors else HealthStatus.READY,
            last_errors=self._config_errors
        )
        self._lock = threading.Lock()

        if greet:
            self._history.append(ConversationTurn(Speaker.ASSISTANT, GREETING))

        logger.info(
            f"Conversation controller initialized (provider={self.config.provider}, "
            f"client={'yes' if self.client else 'none'}, health={self._health.status.value})"
        )

    def _build_client(self, config: ProviderConfig) -> Optional[TextGenerationClient]:
        errors = validate_config(config)
        if errors:
            logger.warning(f"Provider configuration invalid: {errors}")
            self._config_errors = tuple(errors)
            return None
        try:
            return build_client(config)
        except Exception as e:
            # Local model load failures land here; fallback logic stays usable
            logger.error(f"Failed to build provider client: {type(e).__name__} - {e}")
            self._config_errors = (f"Failed to initialize {config.provider} provider: {e}",)
            return None

    # ========================
    # Read models
    # ========================

    @property
    def form_state(self) -> FormState:
        return self._form

    @property
    def tag_set(self) -> TagSet:
        return self._tags

    @property
    def classification(self) -> Optional[Classification]:
        return self._classification

    @property
    def provider_health(self) -> ProviderHealth:
        return self._health

    @property
    def config_errors(self) -> Tuple[str, ...]:
        return self._config_errors

    @property
    def history(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._history)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe view of every read model"""
        return {
            'form_state': self._form.to_dict(),
            'tag_set': self._tags.to_dict(self.taxonomy),
            'quarantined_tags': self._tags.quarantine_dict(),
            'classification': self._classification.to_dict() if self._classification else None,
            'provider_health': self._health.to_dict(),
            'config_errors': list(self._config_errors),
            'history': [turn.to_dict() for turn in self._history],
            'field_status': field_statuses(self._form, self._tags, self.taxonomy),
        }

    # ========================
    # Commands
    # ========================

    def handle(self, command: Command) -> Union[TurnResult, EditResult, Classification, IllegalCommand]:
        """
        Dispatch a command

        Returns:
            TurnResult | EditResult | Classification | IllegalCommand
        """
        if isinstance(command, SubmitUtterance):
            return self.submit_utterance(command.text)
        if isinstance(command, EditField):
            return self.edit_field(command.section, command.field, command.value)
        if isinstance(command, Reclassify):
            return self.reclassify()
        return IllegalCommand(
            reason=f"Unsupported command: {type(command).__name__}",
            command_type=type(command).__name__
        )

    def submit_utterance(self, text: str) -> Union[TurnResult, IllegalCommand]:
        """
        Process one user utterance

        Args:
            text: Typed text or final speech transcript

        Returns:
            TurnResult (also on internal failure, with the apology reply),
            or IllegalCommand for empty text
        """
        if not isinstance(text, str) or not text.strip():
            return IllegalCommand(reason="Utterance is empty", command_type="SubmitUtterance")

        with self._lock:
            return self._process_turn(text.strip())

    def _process_turn(self, text: str) -> TurnResult:
        self._health = ProviderHealth(status=HealthStatus.PROCESSING)

        prior_history = list(self._history)
        self._history.append(ConversationTurn(Speaker.USER, text))

        extracted = TagSet()
        debug: Dict[str, Any] = {}

        try:
            extraction = self.extractor.extract_with_metadata(text, prior_history)
            extracted = extraction['tags']
            debug['extraction_outcome'] = extraction['outcome']
            debug['parse_metadata'] = extraction['parse_metadata']

            self._tags = self._tags.merge(extracted)

            self._form, changes = reconcile_with_changes(self._form, self._tags, text, self.taxonomy)
            debug['form_changes'] = changes

            if self.classify_every_turn:
                self._classification = self.classifier.classify(self._tags)

            applied = {f"{c['section']}.{c['field']}" for c in changes}
            reply = build_reply(match_field_patterns(text), applied, extracted.count())

        except Exception as e:
            logger.exception(f"Turn processing failed: {type(e).__name__} - {e}")
            self._health = ProviderHealth(status=HealthStatus.ERROR, last_errors=(str(e),))
            self._history.append(ConversationTurn(Speaker.ASSISTANT, APOLOGY_REPLY))
            debug['error'] = f"{type(e).__name__}: {e}"
            return self._turn_result(APOLOGY_REPLY, extracted, debug)

        self._history.append(ConversationTurn(Speaker.ASSISTANT, reply))

        provider_error = debug['parse_metadata'].get('error_message')
        self._health = ProviderHealth(
            status=HealthStatus.READY,
            last_errors=(provider_error,) if provider_error and self.client is not None else ()
        )

        logger.info(
            f"Turn processed: {extracted.count()} new tags, "
            f"{self._tags.count()} total, outcome={debug['extraction_outcome']}"
        )
        return self._turn_result(reply, extracted, debug)

    def _turn_result(self, reply: str, extracted: TagSet, debug: Dict[str, Any]) -> TurnResult:
        return TurnResult(
            reply=reply,
            extracted=extracted,
            tag_set=self._tags,
            form_state=self._form,
            classification=self._classification,
            provider_health=self._health,
            debug=debug
        )

    def edit_field(self, section: str, field: str, value: Optional[str]) -> Union[EditResult, IllegalCommand]:
        """
        Direct user edit (bypasses fill-if-empty, never auto-overwritten)
        """
        with self._lock:
            try:
                self._form = apply_user_edit(self._form, section, field, value)
            except ValueError as e:
                return IllegalCommand(reason=str(e), command_type="EditField")
            return EditResult(form_state=self._form, section=section, field=field)

    def reclassify(self) -> Classification:
        """Classify the current TagSet now"""
        with self._lock:
            self._classification = self.classifier.classify(self._tags)
            return self._classification
