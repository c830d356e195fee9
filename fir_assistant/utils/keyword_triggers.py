"""
Keyword Triggers - deterministic fallback extraction table

Responsibilities:
- Map lower-cased substrings in an utterance to taxonomy tags
- Single source of truth for the offline extractor

Design principles:
- Ordered table, evaluated top to bottom, every row independent
- Substring matching on the lower-cased utterance (no regex, no stemming)
- Past-tense forms listed explicitly ("stole", "broke into")
- Every emitted tag must exist in the reference taxonomy
  (tests/test_keyword_fallback.py enforces this)

Note: This is a simple lookup table. The provider-backed extractor handles
anything the table misses.
"""

from typing import Dict, List, Tuple

# (trigger substrings, category, tags emitted)
KEYWORD_TRIGGERS: Tuple[Tuple[Tuple[str, ...], str, Tuple[str, ...]], ...] = (
    # Intent
    (('steal', 'stole', 'theft', 'robbery', 'robbed', 'burglary'),
     'intent', ('dishonest_intent_to_take',)),
    (('fraud', 'cheated', 'scam', 'forged'),
     'intent', ('fraudulent_intent',)),
    (('attacked', 'assault', 'beat me', 'threatened to kill'),
     'intent', ('violent_intent',)),

    # Method
    (('break in', 'broke in', 'break into', 'broke into', 'broken into',
      'entered', 'unauthorized', 'trespass'),
     'method', ('unauthorized_entry',)),
    (('without permission', 'no consent', 'without consent', 'without my consent'),
     'method', ('without_consent',)),
    (('forced open', 'forcibly', 'by force', 'smashed'),
     'method', ('force',)),
    (('tricked', 'deceived', 'pretended', 'lied to'),
     'method', ('deception',)),

    # Location
    (('house', 'home', 'residence'),
     'location', ('house', 'residence')),
    (('road', 'street', 'public'),
     'location', ('public_road',)),
    (('shop', 'office', 'warehouse', 'showroom'),
     'location', ('commercial_premises',)),
    (('vehicle', 'my car', 'motorcycle', 'scooter'),
     'location', ('vehicle',)),

    # Time
    (('night', 'dark', 'evening'),
     'time', ('night_time', 'sunset_to_sunrise')),
    (('morning', 'afternoon', 'daytime', 'during the day'),
     'time', ('day_time',)),
    (("o'clock", ' am ', ' pm '),
     'time', ('specific_time',)),

    # Victim context
    (('owner', 'house owner'),
     'victim_context', ('house_owner',)),
    (('individual', 'person'),
     'victim_context', ('individual',)),
    (('my business', 'my shop', 'my store'),
     'victim_context', ('business_owner',)),
    (('employee', 'my employer', 'i work at'),
     'victim_context', ('employee',)),

    # Offender attributes
    (('repeat', 'again', 'before'),
     'offender_attribute', ('repeat_offender',)),
    (('neighbour', 'neighbor', 'i know him', 'i know her', 'known to me'),
     'offender_attribute', ('known_offender',)),
    (('stranger', 'unknown person', 'unidentified'),
     'offender_attribute', ('unknown_offender',)),
    (('knife', 'gun', 'weapon', 'armed'),
     'offender_attribute', ('armed',)),

    # Event conditions
    (('taken', 'stolen', 'stole', 'missing'),
     'event_condition', ('property_taken',)),
    (('damaged', 'destroyed', 'vandal'),
     'event_condition', ('property_damaged',)),
    (('known to be stolen', 'knew it was stolen', 'knowing it was stolen', 'received stolen'),
     'event_condition', ('property_known_to_be_stolen',)),
    (('injured', 'injury', 'wounded', 'bleeding'),
     'event_condition', ('injury_caused',)),
)


def match_keywords(utterance: str) -> Dict[str, List[str]]:
    """
    Run the trigger table against an utterance

    Args:
        utterance: Raw user text (any case)

    Returns:
        dict: category -> tags in table order (categories with no match omitted)
    """
    lowered = f" {utterance.lower()} "
    matched: Dict[str, List[str]] = {}

    for triggers, category, tags in KEYWORD_TRIGGERS:
        if any(trigger in lowered for trigger in triggers):
            bucket = matched.setdefault(category, [])
            for tag in tags:
                if tag not in bucket:
                    bucket.append(tag)

    return matched
