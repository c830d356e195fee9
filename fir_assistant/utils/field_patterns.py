"""
Field Patterns - ordered rule table for raw utterance parsing

Each rule is (trigger predicate, capture function, target field). Rules are
independent: several may fire on the same utterance. Order matters only for
reply priority (see reply_rules.py); the Field Mapper applies all of them.

Design principles:
- Rules are data, not inline conditionals
- Triggers look at the lower-cased utterance, captures at the original text
- Capture returns None when the trigger fired but nothing usable was found
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from fir_assistant.core.form_state import SECTION_COMPLAINANT, SECTION_INCIDENT

NAME_PATTERN = re.compile(r"(?:name|call|am) (?:is )?([a-zA-Z\s]+)", re.IGNORECASE)
DIGITS_PATTERN = re.compile(r"(\d+)")
PHONE_PATTERN = re.compile(r"(\d{10,})")
EMAIL_PATTERN = re.compile(r"([\w.+-]+@[\w-]+(?:\.[\w-]+)+)")
DATE_PATTERN = re.compile(r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})")
CLOCK_TIME_PATTERN = re.compile(r"(\d{1,2}:\d{2})")

ADDRESS_WORDS = re.compile(r"(?:address|live|residing|staying)", re.IGNORECASE)
LOCATION_WORDS = re.compile(r"(?:where|location|place|occurred|happened)", re.IGNORECASE)
DESCRIPTION_WORDS = re.compile(r"(?:describe|what happened|details|tell me about)", re.IGNORECASE)


@dataclass(frozen=True)
class FieldPatternRule:
    """
    Attributes:
        name: Rule identifier (also keys the reply table)
        trigger: Predicate over the lower-cased utterance
        capture: Extracts a value from the original utterance, or None
        section: Target form section
        field: Target field
    """
    name: str
    trigger: Callable[[str], bool]
    capture: Callable[[str], Optional[str]]
    section: str
    field: str


@dataclass(frozen=True)
class PatternMatch:
    rule: FieldPatternRule
    value: str


def _contains_all(*words: str) -> Callable[[str], bool]:
    return lambda text: all(w in text for w in words)


def _contains_any(*words: str) -> Callable[[str], bool]:
    return lambda text: any(w in text for w in words)


def _regex_group(pattern: re.Pattern) -> Callable[[str], Optional[str]]:
    def capture(text: str) -> Optional[str]:
        match = pattern.search(text)
        if not match:
            return None
        value = match.group(1).strip()
        return value or None
    return capture


def _stripped_remainder(words: re.Pattern, min_length: int) -> Callable[[str], Optional[str]]:
    # Utterance with trigger words removed, kept only if longer than min_length
    def capture(text: str) -> Optional[str]:
        remainder = words.sub('', text).strip()
        return remainder if len(remainder) > min_length else None
    return capture


def _capture_gender(text: str) -> Optional[str]:
    lowered = text.lower()
    # 'female' contains 'male', so test it first
    if 'female' in lowered:
        return 'Female'
    if 'male' in lowered:
        return 'Male'
    return None


def _incident_date_trigger(text: str) -> bool:
    return (
        any(w in text for w in ('incident', 'happened', 'occurred'))
        and any(w in text for w in ('date', 'when'))
    )


FIELD_PATTERN_RULES: Tuple[FieldPatternRule, ...] = (
    FieldPatternRule('complainant_name', _contains_all('name', 'complainant'),
                     _regex_group(NAME_PATTERN), SECTION_COMPLAINANT, 'name'),
    FieldPatternRule('complainant_age', _contains_all('age', 'complainant'),
                     _regex_group(DIGITS_PATTERN), SECTION_COMPLAINANT, 'age'),
    FieldPatternRule('complainant_gender', _contains_all('gender', 'complainant'),
                     _capture_gender, SECTION_COMPLAINANT, 'gender'),
    FieldPatternRule('complainant_address', _contains_any('address', 'live'),
                     _stripped_remainder(ADDRESS_WORDS, 5), SECTION_COMPLAINANT, 'address'),
    FieldPatternRule('complainant_phone', _contains_any('phone', 'number', 'contact'),
                     _regex_group(PHONE_PATTERN), SECTION_COMPLAINANT, 'phone'),
    FieldPatternRule('complainant_email', _contains_any('email', 'mail'),
                     _regex_group(EMAIL_PATTERN), SECTION_COMPLAINANT, 'email'),
    FieldPatternRule('incident_date', _incident_date_trigger,
                     _regex_group(DATE_PATTERN), SECTION_INCIDENT, 'date'),
    FieldPatternRule('incident_time', _contains_any('time', 'hour'),
                     _regex_group(CLOCK_TIME_PATTERN), SECTION_INCIDENT, 'time'),
    FieldPatternRule('incident_location', _contains_any('where', 'location', 'place'),
                     _stripped_remainder(LOCATION_WORDS, 3), SECTION_INCIDENT, 'location'),
    FieldPatternRule('incident_description', _contains_any('describe', 'what happened', 'details'),
                     _stripped_remainder(DESCRIPTION_WORDS, 10), SECTION_INCIDENT, 'description'),
)


def match_field_patterns(utterance: str) -> List[PatternMatch]:
    """
    Evaluate every rule against an utterance

    Args:
        utterance: Raw user text

    Returns:
        list: PatternMatch per rule that fired and captured, in table order
    """
    lowered = utterance.lower()
    matches = []
    for rule in FIELD_PATTERN_RULES:
        if not rule.trigger(lowered):
            continue
        value = rule.capture(utterance)
        if value:
            matches.append(PatternMatch(rule=rule, value=value))
    return matches
