"""
Field Mapper - reconcile extracted tags and utterance patterns with the form

Responsibilities:
- Apply raw-utterance pattern rules (field_patterns.py)
- Apply TagSet-derived defaults (type, time, location, description)
- Re-derive form severity from the TagSet on every update
- Apply direct user edits (always win)
- Report field completion status

Write policy (fill-if-empty):
- A derived value is written only if the field is empty AND was never
  directly edited by the user
- Severity is the single exception: recomputed from scratch on every
  reconcile, unless the user edited it

Design principles:
- Pure functions; FormState is never mutated in place
- Pattern rules first, tag defaults second, severity last
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from fir_assistant.core.form_state import (
    SECTION_COMPLAINANT,
    SECTION_FIELDS,
    SECTION_INCIDENT,
    FormState,
    validate_field,
)
from fir_assistant.core.tag_set import TagSet
from fir_assistant.core.taxonomy import (
    EVENT_CONDITION,
    INTENT,
    LOCATION,
    METHOD,
    OFFENDER_ATTRIBUTE,
    TIME,
    Taxonomy,
    get_default_taxonomy,
)
from fir_assistant.utils.field_patterns import match_field_patterns

logger = logging.getLogger(__name__)

FieldChange = Dict[str, Any]

SEVERITY_HIGH = "High"
SEVERITY_MEDIUM = "Medium"
SEVERITY_LOW = "Low"

# (category, tag) risk factors counted by derive_form_severity
FORM_SEVERITY_FACTORS: Tuple[Tuple[str, str], ...] = (
    (INTENT, 'dishonest_intent_to_take'),
    (METHOD, 'unauthorized_entry'),
    (TIME, 'night_time'),
    (OFFENDER_ATTRIBUTE, 'repeat_offender'),
    (LOCATION, 'house'),
)

# Fixed clause order for the synthesized description
DESCRIPTION_CLAUSES: Tuple[Tuple[str, str, str], ...] = (
    (INTENT, 'dishonest_intent_to_take', 'Theft incident'),
    (METHOD, 'unauthorized_entry', 'involved unauthorized entry'),
    (LOCATION, 'house', 'into residential property'),
    (TIME, 'night_time', 'during night time'),
    (OFFENDER_ATTRIBUTE, 'repeat_offender', 'by a repeat offender'),
    (EVENT_CONDITION, 'property_taken', 'resulting in property being taken'),
)

# Fields counted by completion_percentage (severity and email are optional)
REQUIRED_FIELDS: Tuple[Tuple[str, str], ...] = (
    (SECTION_COMPLAINANT, 'name'),
    (SECTION_COMPLAINANT, 'age'),
    (SECTION_COMPLAINANT, 'gender'),
    (SECTION_COMPLAINANT, 'address'),
    (SECTION_COMPLAINANT, 'phone'),
    (SECTION_INCIDENT, 'date'),
    (SECTION_INCIDENT, 'time'),
    (SECTION_INCIDENT, 'location'),
    (SECTION_INCIDENT, 'description'),
    (SECTION_INCIDENT, 'type'),
)


def derive_form_severity(tags: TagSet) -> str:
    """
    Form severity from five fixed risk factors

    >=4 factors -> High, >=2 -> Medium, else Low. Pure function of the TagSet.
    Deliberately independent of classification_severity() in the classifier.
    """
    factors = sum(1 for category, tag in FORM_SEVERITY_FACTORS if tags.has(category, tag))
    if factors >= 4:
        return SEVERITY_HIGH
    if factors >= 2:
        return SEVERITY_MEDIUM
    return SEVERITY_LOW


def generate_description(tags: TagSet) -> Optional[str]:
    """Fixed-order clause description, or None if no clause applies"""
    parts = [clause for category, tag, clause in DESCRIPTION_CLAUSES if tags.has(category, tag)]
    if not parts:
        return None
    return " ".join(parts) + "."


def derive_tag_defaults(tags: TagSet, taxonomy: Optional[Taxonomy] = None) -> List[Tuple[str, str, str]]:
    """
    Tag-derived (section, field, value) candidates in application order
    """
    taxonomy = taxonomy or get_default_taxonomy()
    candidates = []

    if tags.has(INTENT, 'dishonest_intent_to_take'):
        candidates.append((SECTION_INCIDENT, 'type', 'Theft'))

    if tags.get(TIME):
        label = 'Night time' if tags.has(TIME, 'night_time') else 'Day time'
        candidates.append((SECTION_INCIDENT, 'time', label))

    if tags.get(LOCATION):
        candidates.append((SECTION_INCIDENT, 'location', ", ".join(tags.ordered(LOCATION, taxonomy))))

    description = generate_description(tags)
    if description:
        candidates.append((SECTION_INCIDENT, 'description', description))

    return candidates


def _fill_if_empty(form: FormState, section: str, field_name: str, value: str,
                   source: str, changes: List[FieldChange]) -> FormState:
    if form.is_user_edited(section, field_name) or not form.is_empty(section, field_name):
        return form
    changes.append({'section': section, 'field': field_name, 'value': value, 'source': source})
    return form.with_value(section, field_name, value)


def reconcile_with_changes(
    form: FormState,
    tags: TagSet,
    utterance: str = "",
    taxonomy: Optional[Taxonomy] = None
) -> Tuple[FormState, List[FieldChange]]:
    """
    Reconcile form with new tags and utterance, reporting what changed

    Args:
        form: Current form state
        tags: Accumulated TagSet (after merge)
        utterance: Raw user text for pattern rules
        taxonomy: Used for location ordering

    Returns:
        tuple: (updated FormState, list of change dicts with source
            'pattern:<rule>', 'tags' or 'severity')
    """
    changes: List[FieldChange] = []
    updated = form

    for match in match_field_patterns(utterance or ""):
        updated = _fill_if_empty(
            updated, match.rule.section, match.rule.field, match.value,
            f"pattern:{match.rule.name}", changes
        )

    for section, field_name, value in derive_tag_defaults(tags, taxonomy):
        updated = _fill_if_empty(updated, section, field_name, value, 'tags', changes)

    if not updated.is_user_edited(SECTION_INCIDENT, 'severity'):
        severity = derive_form_severity(tags)
        if updated.incident.severity != severity:
            changes.append({
                'section': SECTION_INCIDENT,
                'field': 'severity',
                'value': severity,
                'source': 'severity'
            })
            updated = updated.with_value(SECTION_INCIDENT, 'severity', severity)

    if changes:
        logger.debug(f"Form reconcile applied {len(changes)} changes")
    return updated, changes


def reconcile(form: FormState, tags: TagSet, utterance: str = "",
              taxonomy: Optional[Taxonomy] = None) -> FormState:
    return reconcile_with_changes(form, tags, utterance, taxonomy)[0]


def apply_user_edit(form: FormState, section: str, field_name: str, value: Optional[str]) -> FormState:
    """
    Direct user edit: bypasses fill-if-empty and pins the field

    Raises:
        ValueError: If section/field unknown
    """
    validate_field(section, field_name)
    logger.info(f"User edit: {section}.{field_name}")
    return form.with_value(section, field_name, value, user_edit=True)


def completion_percentage(form: FormState) -> int:
    completed = sum(1 for section, name in REQUIRED_FIELDS if not form.is_empty(section, name))
    return round(completed * 100 / len(REQUIRED_FIELDS))


def field_statuses(form: FormState, tags: TagSet, taxonomy: Optional[Taxonomy] = None) -> Dict[str, Any]:
    """
    Completion status of every form field and tag category

    Returns:
        dict: {'fields': [...], 'completion_percentage': int,
               'quarantined_tag_count': int}
    """
    taxonomy = taxonomy or get_default_taxonomy()
    entries = []

    for section, names in SECTION_FIELDS.items():
        for name in names:
            value = form.get(section, name)
            entries.append({
                'key': f"{section}.{name}",
                'title': f"{section.title()} {name.title()}",
                'value': value,
                'is_completed': bool(value),
                'is_extracted': False,
                'is_user_edited': form.is_user_edited(section, name),
            })

    for category in taxonomy.categories:
        values = tags.ordered(category, taxonomy)
        entries.append({
            'key': f"extracted.{category}",
            'title': category.replace('_', ' ').title(),
            'value': ", ".join(values) if values else None,
            'is_completed': bool(values),
            'is_extracted': True,
            'is_user_edited': False,
        })

    return {
        'fields': entries,
        'completion_percentage': completion_percentage(form),
        'quarantined_tag_count': tags.quarantined_count,
    }
