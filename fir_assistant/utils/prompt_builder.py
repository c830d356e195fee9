"""
Prompt Builder - extraction and legal analysis prompts

Responsibilities:
- Render the taxonomy and recent history into the extraction prompt
- Render a TagSet into the legal analysis prompt

NOT responsible for:
- Provider calls
- Response parsing

Design principles:
- Prompt content is data-driven (categories come from the Taxonomy)
- Deterministic output for the same inputs
- Plain text only; model-specific formatting belongs to the client
"""

import json
import logging
from typing import Sequence

from fir_assistant.contracts import ConversationTurn
from fir_assistant.core.tag_set import TagSet
from fir_assistant.core.taxonomy import Taxonomy

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 5


def recent_history(history: Sequence[ConversationTurn], window: int = HISTORY_WINDOW) -> Sequence[ConversationTurn]:
    if window <= 0:
        return ()
    return list(history)[-window:]


def build_extraction_prompt(
    taxonomy: Taxonomy,
    utterance: str,
    history: Sequence[ConversationTurn] = ()
) -> str:
    """
    Build the tag extraction prompt

    Args:
        taxonomy: Categories and permitted values to offer the model
        utterance: Current user utterance
        history: Conversation so far (only the last HISTORY_WINDOW turns used)

    Returns:
        str: Plain text prompt
    """
    context_turns = recent_history(history)

    schema = ",\n".join(f'  "{category}": ["..."]' for category in taxonomy.categories)
    valid_values = "\n".join(
        f"- {category}: {json.dumps(list(taxonomy.permitted_tags(category)))}"
        for category in taxonomy.categories
    )

    prompt = (
        "You are a legal AI assistant analyzing FIR (First Information Report) data. "
        "Extract structured information from the user input.\n\n"
        f'User Input: "{utterance}"\n'
    )

    if context_turns:
        context = "\n".join(f"{turn.speaker.value}: {turn.text}" for turn in context_turns)
        prompt += f"\nPrevious conversation:\n{context}\n"

    prompt += (
        "\nExtract and return ONLY a JSON object with the following structure:\n"
        f"{{\n{schema}\n}}\n\n"
        f"Valid values for each category:\n{valid_values}\n\n"
        "Rules:\n"
        "- Use only the valid values listed above\n"
        "- Use an empty array when a category is not mentioned\n"
        "- Return ONLY the JSON object, no additional text."
    )
    return prompt


def build_legal_analysis_prompt(tags: TagSet, taxonomy: Taxonomy) -> str:
    """
    Build the legal analysis prompt for an accumulated TagSet

    Args:
        tags: Accumulated tags (quarantined tags are not sent)
        taxonomy: Used for category order in the serialized TagSet

    Returns:
        str: Plain text prompt
    """
    extracted = json.dumps(tags.to_dict(taxonomy), indent=2)

    return (
        "You are a legal expert analyzing FIR data. "
        "Based on the extracted information, provide legal analysis.\n\n"
        f"Extracted Data: {extracted}\n\n"
        "Provide analysis in the following JSON format:\n"
        "{\n"
        '  "applicable_sections": ["list_of_legal_sections"],\n'
        '  "reasoning": ["one justification per section, same order"],\n'
        '  "severity": "high|medium|low",\n'
        '  "recommendations": ["list_of_investigation_recommendations"],\n'
        '  "punishment_range": "description_of_punishment",\n'
        '  "bailable": true\n'
        "}\n\n"
        "Focus on Indian Penal Code (IPC) sections and provide detailed legal justification.\n"
        "Return ONLY the JSON object."
    )
