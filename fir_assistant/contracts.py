"""
Semantic contracts for the FIR assistant.

Immutable data structures passed between modules. These define shape and
semantics; they do not validate.

Contents:
- ConversationTurn: one utterance in the append-only history
- LegalSection: an applicable section with its justification
- Classification: derived legal classification of a TagSet
- ProviderHealth: per-conversation provider status

Usage:
    from fir_assistant.contracts import ConversationTurn, Classification
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class SeverityTier(str, Enum):
    """Classification severity (section-count based)"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class HealthStatus(str, Enum):
    READY = "ready"
    PROCESSING = "processing"
    ERROR = "error"


@dataclass(frozen=True)
class ConversationTurn:
    """
    One turn of the conversation.

    Attributes:
        speaker: Speaker.USER or Speaker.ASSISTANT
        text: Utterance text as submitted or generated
    """
    speaker: Speaker
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {'speaker': self.speaker.value, 'text': self.text}


@dataclass(frozen=True)
class LegalSection:
    """
    A legal section judged applicable to the facts.

    Attributes:
        label: Section label, e.g. 'Section 378 - Theft'
        justification: Human-readable reason the section applies
    """
    label: str
    justification: str

    def to_dict(self) -> Dict[str, str]:
        return {'label': self.label, 'justification': self.justification}


@dataclass(frozen=True)
class Classification:
    """
    Legal classification derived from a TagSet.

    Recomputed from scratch every time the classifier runs; never patched.

    Attributes:
        applicable_sections: Ordered sections (rule order, not sorted)
        supplementary_reasoning: Justifications not tied to a new section
            (e.g. victim is the lawful owner)
        severity_tier: Section-count tier
        recommendations: Investigation recommendations for the tier
        punishment_range: Free-text punishment description
        bailable: Whether the offence set is treated as bailable
        source: 'provider' or 'fallback'
    """
    applicable_sections: Tuple[LegalSection, ...] = ()
    supplementary_reasoning: Tuple[str, ...] = ()
    severity_tier: SeverityTier = SeverityTier.LOW
    recommendations: Tuple[str, ...] = ()
    punishment_range: str = ""
    bailable: bool = True
    source: str = "fallback"

    @property
    def section_labels(self) -> Tuple[str, ...]:
        return tuple(s.label for s in self.applicable_sections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'applicable_sections': [s.to_dict() for s in self.applicable_sections],
            'supplementary_reasoning': list(self.supplementary_reasoning),
            'severity_tier': self.severity_tier.value,
            'recommendations': list(self.recommendations),
            'punishment_range': self.punishment_range,
            'bailable': self.bailable,
            'source': self.source,
        }


@dataclass(frozen=True)
class ProviderHealth:
    """
    Provider status as seen by the UI.

    Attributes:
        status: READY, PROCESSING or ERROR
        last_errors: Most recent error messages (configuration or turn errors)
    """
    status: HealthStatus = HealthStatus.READY
    last_errors: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {'status': self.status.value, 'last_errors': list(self.last_errors)}
