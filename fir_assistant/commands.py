"""
Command types for ConversationController.

Commands are the write entry points of a conversation. Read models are
exposed as controller properties.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class SubmitUtterance:
    """
    Process one user utterance (typed, or a final speech transcript).

    Returns: TurnResult, or IllegalCommand for empty text.
    """
    text: str


@dataclass(frozen=True)
class EditField:
    """
    Direct user edit of a form field. Always wins over auto-population.

    Returns: EditResult, or IllegalCommand for unknown section/field.
    """
    section: str
    field: str
    value: Optional[str]


@dataclass(frozen=True)
class Reclassify:
    """
    Run the classifier on the current TagSet (used when
    classify_every_turn is disabled).

    Returns: Classification
    """
    pass


Command = Union[SubmitUtterance, EditField, Reclassify]
