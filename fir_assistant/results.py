"""
Result types returned by ConversationController.handle()
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fir_assistant.contracts import Classification, ProviderHealth
from fir_assistant.core.form_state import FormState
from fir_assistant.core.tag_set import TagSet


@dataclass(frozen=True)
class TurnResult:
    """
    Result of one user turn.

    Attributes:
        reply: Assistant utterance appended to history
        extracted: Tags extracted from this utterance alone
        tag_set: Accumulated tags after merge
        form_state: Form after reconciliation
        classification: Latest classification (None if deferred and never run)
        provider_health: Health after the turn
        debug: Extraction outcome, form changes, errors
    """
    reply: str
    extracted: TagSet
    tag_set: TagSet
    form_state: FormState
    classification: Optional[Classification]
    provider_health: ProviderHealth
    debug: Dict[str, Any]

    @property
    def failed(self) -> bool:
        return 'error' in self.debug


@dataclass(frozen=True)
class EditResult:
    """Form after a direct user edit"""
    form_state: FormState
    section: str
    field: str


@dataclass(frozen=True)
class IllegalCommand:
    """
    Command rejected by the controller.

    Attributes:
        reason: Human-readable explanation
        command_type: Name of rejected command type
    """
    reason: str
    command_type: str
