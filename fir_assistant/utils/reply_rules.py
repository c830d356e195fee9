"""
Reply Rules - assistant reply templates keyed by field pattern rule

Priority follows FIELD_PATTERN_RULES order: the first pattern that matched
the utterance picks the reply. Templates confirm the field and ask for the
next one.
"""

from typing import Dict, Iterable, Optional, Tuple

from fir_assistant.utils.field_patterns import PatternMatch

# rule name -> (confirmation template, next question)
REPLY_TEMPLATES: Dict[str, Tuple[str, str]] = {
    'complainant_name': ('I\'ve updated the complainant name to "{value}".', "What's the complainant's age?"),
    'complainant_age': ("I've updated the complainant age to {value}.", "What's the complainant's gender?"),
    'complainant_gender': ("I've updated the complainant gender to {value}.", "What's the complainant's address?"),
    'complainant_address': ("I've updated the complainant address.", "What's the complainant's phone number?"),
    'complainant_phone': ("I've updated the complainant phone number.", "When did the incident occur?"),
    'complainant_email': ("I've updated the complainant email.", "When did the incident occur?"),
    'incident_date': ("I've updated the incident date.", "What time did it occur?"),
    'incident_time': ("I've updated the incident time.", "Where did the incident occur?"),
    'incident_location': ("I've updated the incident location.", "Can you describe what happened?"),
    'incident_description': (
        "I've updated the incident description.",
        "What type of incident was this? (e.g., theft, assault, fraud)"
    ),
}

ALREADY_SET_TEMPLATE = "I already have the {label} on file, so I kept the existing value."

EXTRACTED_TEMPLATE = (
    "I've extracted {count} data points from your description and auto-populated the form. "
    "Please provide more specific details so I can help you complete the remaining fields."
)

GENERIC_REPLY = (
    "I understand. Please provide more specific details so I can help you fill out the form "
    "correctly and extract relevant information. You can tell me about the complainant's "
    "information, incident details, or ask me to help with any specific field."
)

APOLOGY_REPLY = (
    "I apologize, but I encountered an error processing your request. "
    "Please try again or check your GenAI configuration."
)


def build_reply(matches: Iterable[PatternMatch], applied_fields: Iterable[str], tags_extracted: int) -> str:
    """
    Pick the assistant reply for a turn

    Args:
        matches: Pattern matches for the utterance, in priority order
        applied_fields: 'section.field' keys written by this turn
        tags_extracted: Number of tags extracted from this utterance

    Returns:
        str: Reply text
    """
    applied = set(applied_fields)

    first: Optional[PatternMatch] = next(iter(matches), None)
    if first is not None and first.rule.name in REPLY_TEMPLATES:
        confirmation, next_question = REPLY_TEMPLATES[first.rule.name]
        key = f"{first.rule.section}.{first.rule.field}"
        if key in applied:
            return f"{confirmation.format(value=first.value)} {next_question}"
        label = f"{first.rule.section} {first.rule.field}"
        return f"{ALREADY_SET_TEMPLATE.format(label=label)} {next_question}"

    if tags_extracted > 0:
        return EXTRACTED_TEMPLATE.format(count=tags_extracted)

    return GENERIC_REPLY
