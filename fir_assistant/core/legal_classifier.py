"""
Legal Classifier - derive applicable sections from an accumulated TagSet

Responsibilities:
- Ask the provider for a legal analysis JSON object
- Parse sections, reasoning, severity, recommendations, punishment, bail
- Fall back to the deterministic rule table on any failure
- Tier severity and recommendations by section count

Design principles:
- Stateless and idempotent: same TagSet (and same provider answer) gives
  the same Classification; never touches form or history
- Recomputed from scratch, never patched
- Section-count tiering is independent of the form severity factors
  (field_mapper.derive_form_severity); the two are not unified
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from fir_assistant.clients.base import TextGenerationClient
from fir_assistant.contracts import Classification, LegalSection, SeverityTier
from fir_assistant.core.tag_set import TagSet
from fir_assistant.core.taxonomy import Taxonomy, get_default_taxonomy
from fir_assistant.errors import ProviderError, ResponseParseError
from fir_assistant.utils.json_repair import extract_json_object
from fir_assistant.utils.legal_rules import (
    DEFAULT_PUNISHMENT_RANGE,
    IPC_RULES,
    SEVERITY_TIERS,
    LegalRule,
)
from fir_assistant.utils.prompt_builder import build_legal_analysis_prompt

logger = logging.getLogger(__name__)

SOURCE_PROVIDER = "provider"
SOURCE_FALLBACK = "fallback"

VALID_TIERS = {tier.value for tier in SeverityTier}


def classification_severity(section_count: int) -> Tuple[SeverityTier, Tuple[str, ...]]:
    """
    Severity tier and recommendations for a number of applicable sections

    >=4 high, 2-3 medium, <=1 low.
    """
    for minimum, tier, recommendations in SEVERITY_TIERS:
        if section_count >= minimum:
            return SeverityTier(tier), recommendations
    return SeverityTier.LOW, SEVERITY_TIERS[-1][2]


def apply_rules(tags: TagSet, rules: Tuple[LegalRule, ...] = IPC_RULES) -> Classification:
    """
    Deterministic classification from the rule table

    Labels are emitted once, but tiering counts every matched section rule:
    dwelling and night-time both count toward Section 380.

    Args:
        tags: Accumulated tags (quarantined tags never match)
        rules: Ordered rule table

    Returns:
        Classification: source='fallback'
    """
    sections: List[LegalSection] = []
    seen_labels = set()
    reasoning: List[str] = []
    matched_sections = 0

    for rule in rules:
        if not rule.matches(tags):
            continue
        if rule.section is not None:
            matched_sections += 1
        if rule.section is None or rule.section in seen_labels:
            reasoning.append(rule.justification)
            continue
        seen_labels.add(rule.section)
        sections.append(LegalSection(label=rule.section, justification=rule.justification))

    tier, recommendations = classification_severity(matched_sections)
    return Classification(
        applicable_sections=tuple(sections),
        supplementary_reasoning=tuple(reasoning),
        severity_tier=tier,
        recommendations=recommendations,
        punishment_range=DEFAULT_PUNISHMENT_RANGE,
        bailable=tier != SeverityTier.HIGH,
        source=SOURCE_FALLBACK
    )


class LegalClassifier:
    """Classify a TagSet into legal sections"""

    def __init__(
        self,
        client: Optional[TextGenerationClient] = None,
        taxonomy: Optional[Taxonomy] = None,
        rules: Tuple[LegalRule, ...] = IPC_RULES
    ) -> None:
        """
        Args:
            client: Text generation client, or None for rule-table only
            taxonomy: Category order for the prompt
            rules: Fallback rule table

        Raises:
            TypeError: If client lacks a callable generate_text()
        """
        if client is not None and not callable(getattr(client, 'generate_text', None)):
            raise TypeError("client must have callable generate_text() method")

        self.client = client
        self.taxonomy = taxonomy or get_default_taxonomy()
        self.rules = rules

    def classify(self, tags: TagSet) -> Classification:
        """
        Classify accumulated tags

        Never raises for provider or parse failures.
        """
        if self.client is None:
            return apply_rules(tags, self.rules)

        prompt = build_legal_analysis_prompt(tags, self.taxonomy)
        try:
            raw_output = self.client.generate_text(prompt)
            parsed = extract_json_object(raw_output)
            classification = self._from_provider(parsed)
        except (ProviderError, ResponseParseError) as e:
            logger.warning(f"Legal analysis failed, using rule table: {type(e).__name__} - {e}")
            return apply_rules(tags, self.rules)
        except Exception as e:
            logger.error(f"Unexpected legal analysis failure: {type(e).__name__} - {e}")
            return apply_rules(tags, self.rules)

        logger.info(
            f"Provider classification: {len(classification.applicable_sections)} sections, "
            f"severity={classification.severity_tier.value}"
        )
        return classification

    def _from_provider(self, parsed: Dict[str, Any]) -> Classification:
        """
        Convert the provider's JSON object into a Classification

        Raises:
            ResponseParseError: If applicable_sections is missing or malformed
        """
        raw_sections = parsed.get('applicable_sections')
        if not isinstance(raw_sections, list):
            raise ResponseParseError("applicable_sections must be a list")

        raw_reasoning = parsed.get('reasoning') or []
        if isinstance(raw_reasoning, str):
            raw_reasoning = [raw_reasoning]
        reasoning = [r for r in raw_reasoning if isinstance(r, str)] if isinstance(raw_reasoning, list) else []

        sections: List[LegalSection] = []
        seen_labels = set()
        for index, entry in enumerate(raw_sections):
            if isinstance(entry, str):
                label = entry.strip()
                justification = reasoning[index] if index < len(reasoning) else ""
            elif isinstance(entry, dict):
                label = str(entry.get('label') or entry.get('section') or "").strip()
                justification = str(entry.get('justification') or "")
            else:
                raise ResponseParseError(f"Unexpected section entry: {entry!r}")
            if label and label not in seen_labels:
                seen_labels.add(label)
                sections.append(LegalSection(label=label, justification=justification))

        supplementary = tuple(reasoning[len(raw_sections):])

        default_tier, default_recommendations = classification_severity(len(sections))
        severity = parsed.get('severity')
        if isinstance(severity, str) and severity.strip().lower() in VALID_TIERS:
            tier = SeverityTier(severity.strip().lower())
        else:
            tier = default_tier

        recommendations = parsed.get('recommendations')
        if isinstance(recommendations, list) and all(isinstance(r, str) for r in recommendations) and recommendations:
            recommendations = tuple(recommendations)
        else:
            recommendations = default_recommendations

        punishment = parsed.get('punishment_range')
        if not isinstance(punishment, str) or not punishment.strip():
            punishment = DEFAULT_PUNISHMENT_RANGE

        bailable = parsed.get('bailable')
        if not isinstance(bailable, bool):
            bailable = tier != SeverityTier.HIGH

        return Classification(
            applicable_sections=tuple(sections),
            supplementary_reasoning=supplementary,
            severity_tier=tier,
            recommendations=recommendations,
            punishment_range=punishment,
            bailable=bailable,
            source=SOURCE_PROVIDER
        )
