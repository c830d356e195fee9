"""
Legal Rules - deterministic IPC rule table

Ordered (tag predicate) -> (section label, justification) rules. Each rule is
evaluated independently and contributes zero or one section; output order is
table order. Rules with section=None contribute reasoning only.

Note: Section 380 is reachable from both the dwelling and the night-time
rule. The classifier emits a label once and keeps the second rule's
justification as supplementary reasoning; both matches count toward the
severity tier.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from fir_assistant.core.tag_set import TagSet
from fir_assistant.core.taxonomy import (
    EVENT_CONDITION,
    INTENT,
    LOCATION,
    METHOD,
    OFFENDER_ATTRIBUTE,
    TIME,
    VICTIM_CONTEXT,
)


@dataclass(frozen=True)
class LegalRule:
    """
    Attributes:
        category: Taxonomy category tested
        any_of: Rule fires if any of these tags is present
        section: Section label, or None for reasoning-only rules
        justification: Why the rule applies
    """
    category: str
    any_of: Tuple[str, ...]
    section: Optional[str]
    justification: str

    def matches(self, tags: TagSet) -> bool:
        return tags.has_any(self.category, self.any_of)


IPC_RULES: Tuple[LegalRule, ...] = (
    LegalRule(INTENT, ('dishonest_intent_to_take',),
              'Section 378 - Theft',
              'Dishonest intention to take property establishes the mens rea required for theft'),
    LegalRule(METHOD, ('unauthorized_entry',),
              'Section 451 - House-trespass',
              'Unauthorized entry into a dwelling constitutes house-trespass'),
    LegalRule(METHOD, ('without_consent',),
              'Section 425 - Mischief',
              'Entry without consent violates property rights'),
    LegalRule(LOCATION, ('house', 'residence'),
              'Section 380 - Theft in dwelling house',
              'Property was taken from a building used as a human dwelling'),
    LegalRule(TIME, ('night_time', 'sunset_to_sunrise'),
              'Section 380 - Theft in dwelling house',
              'Offence committed between sunset and sunrise'),
    LegalRule(VICTIM_CONTEXT, ('house_owner',),
              None,
              'Victim is the lawful owner, establishing clear property rights'),
    LegalRule(OFFENDER_ATTRIBUTE, ('repeat_offender',),
              'Section 75 - Enhanced punishment for repeat offenders',
              'Repeat offender status warrants enhanced punishment'),
    LegalRule(EVENT_CONDITION, ('property_taken',),
              None,
              'Property was actually taken, completing the actus reus'),
    LegalRule(EVENT_CONDITION, ('property_known_to_be_stolen',),
              'Section 411 - Dishonestly receiving stolen property',
              'Knowledge of stolen property status adds to criminal liability'),
)

# Section-count tiers: (minimum sections, tier, recommendations)
SEVERITY_TIERS: Tuple[Tuple[int, str, Tuple[str, ...]], ...] = (
    (4, 'high', ('Consider non-bailable offense', 'Immediate investigation required')),
    (2, 'medium', ('Standard investigation procedures',)),
    (0, 'low', ('Basic investigation sufficient',)),
)

DEFAULT_PUNISHMENT_RANGE = "Standard punishment as per IPC"
