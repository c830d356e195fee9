"""
Tag Extractor - turn one utterance into a TagSet

Responsibilities:
- Build the extraction prompt (utterance + last 5 turns)
- Call the text generation client (single attempt, no retries)
- Parse the JSON object out of the model output
- Quarantine out-of-taxonomy tags with validation warnings
- Fall back to deterministic keyword matching on any failure

Contract:
    extract_with_metadata() -> {
        'outcome': 'success' | 'fallback' | 'extraction_failed',
        'tags': TagSet,
        'parse_metadata': {...}
    }

Design principles:
- Polymorphic over generate_text(); does not know which backend it talks to
- Missing categories are empty, not an error
- Validation warnings, not failures
- Total: never raises for provider or parse problems
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from fir_assistant.clients.base import TextGenerationClient
from fir_assistant.contracts import ConversationTurn
from fir_assistant.core.tag_set import TagSet
from fir_assistant.core.taxonomy import Taxonomy, get_default_taxonomy
from fir_assistant.errors import ProviderError, ResponseParseError
from fir_assistant.utils.json_repair import extract_json_object
from fir_assistant.utils.keyword_triggers import match_keywords
from fir_assistant.utils.prompt_builder import build_extraction_prompt

logger = logging.getLogger(__name__)

ExtractionResult = Dict[str, Any]

OUTCOME_SUCCESS = "success"
OUTCOME_FALLBACK = "fallback"
OUTCOME_EXTRACTION_FAILED = "extraction_failed"


def fallback_extract(utterance: str, taxonomy: Optional[Taxonomy] = None) -> TagSet:
    """
    Deterministic keyword extraction

    Total: always returns a TagSet whose tags all belong to the taxonomy.
    """
    taxonomy = taxonomy or get_default_taxonomy()
    matched = match_keywords(utterance or "")
    accepted = {
        category: [tag for tag in tags if taxonomy.is_valid_tag(category, tag)]
        for category, tags in matched.items()
    }
    return TagSet(accepted)


class TagExtractor:
    """Extract taxonomy tags from user utterances"""

    def __init__(
        self,
        client: Optional[TextGenerationClient] = None,
        taxonomy: Optional[Taxonomy] = None,
        enable_fallback: bool = True
    ) -> None:
        """
        Args:
            client: Text generation client, or None for keyword-only mode
            taxonomy: Permitted categories/tags (default: bundled IPC taxonomy)
            enable_fallback: Use keyword extraction when the client fails

        Raises:
            TypeError: If client lacks a callable generate_text()
        """
        if client is not None and not callable(getattr(client, 'generate_text', None)):
            raise TypeError("client must have callable generate_text() method")

        self.client = client
        self.taxonomy = taxonomy or get_default_taxonomy()
        self.enable_fallback = enable_fallback

        logger.info(
            f"Tag extractor initialized (client={'yes' if client else 'none'}, "
            f"fallback={enable_fallback})"
        )

    def extract(self, utterance: str, history: Sequence[ConversationTurn] = ()) -> TagSet:
        return self.extract_with_metadata(utterance, history)['tags']

    def extract_with_metadata(
        self,
        utterance: str,
        history: Sequence[ConversationTurn] = ()
    ) -> ExtractionResult:
        """
        Extract tags from one utterance

        Args:
            utterance: User text
            history: Prior conversation turns (last 5 are sent as context)

        Returns:
            ExtractionResult: outcome, tags and parse_metadata

        Raises:
            TypeError: If utterance is not a string
        """
        if not isinstance(utterance, str):
            raise TypeError(f"utterance must be string, got {type(utterance).__name__}")

        parse_metadata = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'raw_llm_output': None,
            'error_message': None,
            'error_type': None,
            'validation_warnings': [],
            'quarantined_count': 0,
        }

        if self.client is None:
            parse_metadata['error_message'] = "No text generation client configured"
            parse_metadata['error_type'] = 'NoClient'
            return self._recover(utterance, parse_metadata)

        prompt = build_extraction_prompt(self.taxonomy, utterance, history)

        try:
            raw_output = self.client.generate_text(prompt)
            parse_metadata['raw_llm_output'] = raw_output
            parsed = extract_json_object(raw_output)
        except (ProviderError, ResponseParseError) as e:
            logger.warning(f"Extraction call failed: {type(e).__name__} - {e}")
            parse_metadata['error_message'] = str(e)
            parse_metadata['error_type'] = type(e).__name__
            return self._recover(utterance, parse_metadata)
        except Exception as e:
            # Misbehaving client (unexpected exception type)
            logger.error(f"Unexpected extraction failure: {type(e).__name__} - {e}")
            parse_metadata['error_message'] = str(e)
            parse_metadata['error_type'] = type(e).__name__
            return self._recover(utterance, parse_metadata)

        raw_tags = self._normalize_categories(parsed, parse_metadata)
        tags = TagSet.from_raw(raw_tags, self.taxonomy)

        for category, values in tags.quarantine_dict().items():
            for value in values:
                parse_metadata['validation_warnings'].append({
                    'category': category,
                    'value': value,
                    'issue': 'not_in_taxonomy',
                    'expected': list(self.taxonomy.permitted_tags(category))
                })
                logger.warning(f"Quarantined out-of-taxonomy tag {category}:{value}")
        parse_metadata['quarantined_count'] = tags.quarantined_count

        logger.info(f"Extracted {tags.count()} tags via provider")
        return {
            'outcome': OUTCOME_SUCCESS,
            'tags': tags,
            'parse_metadata': parse_metadata
        }

    def _recover(self, utterance: str, parse_metadata: Dict[str, Any]) -> ExtractionResult:
        if not self.enable_fallback:
            logger.info("Fallback disabled, returning empty extraction")
            return {
                'outcome': OUTCOME_EXTRACTION_FAILED,
                'tags': TagSet(),
                'parse_metadata': parse_metadata
            }

        tags = fallback_extract(utterance, self.taxonomy)
        logger.info(f"Keyword fallback extracted {tags.count()} tags")
        return {
            'outcome': OUTCOME_FALLBACK,
            'tags': tags,
            'parse_metadata': parse_metadata
        }

    def _normalize_categories(
        self,
        parsed: Dict[str, Any],
        parse_metadata: Dict[str, Any]
    ) -> Dict[str, List[str]]:
        """
        Coerce parsed JSON values into category -> list of strings

        Mutates parse_metadata['validation_warnings'] for values that cannot
        be used.
        """
        normalized: Dict[str, List[str]] = {}

        for key, value in parsed.items():
            if not isinstance(key, str) or key.startswith('_'):
                continue

            if value is None:
                continue
            if isinstance(value, str):
                values = [value]
            elif isinstance(value, list):
                values = [v for v in value if isinstance(v, str)]
                if len(values) != len(value):
                    parse_metadata['validation_warnings'].append({
                        'category': key,
                        'value': value,
                        'issue': 'non_string_tags_dropped',
                    })
            else:
                parse_metadata['validation_warnings'].append({
                    'category': key,
                    'value': value,
                    'issue': 'invalid_category_value',
                })
                logger.warning(f"Category '{key}': ignoring value of type {type(value).__name__}")
                continue

            cleaned = [v.strip() for v in values if v.strip()]
            if cleaned:
                normalized[key] = cleaned

        return normalized
