"""
Taxonomy - fixed catalog of fact categories and permitted tags

Responsibilities:
- Load categories and permitted tags from a jurisdiction data file
- Answer permitted_tags() and is_valid_tag() lookups

Design principles:
- Pure data, no behavior beyond lookups
- Immutable after load (tuples and frozensets)
- New jurisdictions/categories are new JSON files, not new code
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TAXONOMY_PATH = Path(__file__).resolve().parent.parent / "data" / "taxonomy_ipc.json"

# Category names used by rule tables (reference configuration)
INTENT = "intent"
METHOD = "method"
LOCATION = "location"
TIME = "time"
VICTIM_CONTEXT = "victim_context"
OFFENDER_ATTRIBUTE = "offender_attribute"
EVENT_CONDITION = "event_condition"


class Taxonomy:
    """Immutable category -> ordered permitted tags mapping"""

    def __init__(self, categories: Dict[str, Tuple[str, ...]], jurisdiction: str = "unknown",
                 version: str = "unknown") -> None:
        """
        Args:
            categories: Category name -> ordered permitted tags
            jurisdiction: Jurisdiction code (e.g. 'IN')
            version: Data file version

        Raises:
            ValueError: If categories is empty or a tag list is malformed
        """
        if not categories:
            raise ValueError("Taxonomy must define at least one category")

        ordered = {}
        for category, tags in categories.items():
            if not isinstance(category, str) or not category:
                raise ValueError(f"Invalid category name: {category!r}")
            if isinstance(tags, str) or not all(isinstance(t, str) for t in tags):
                raise ValueError(f"Category '{category}' must list string tags")
            # Keep first occurrence order, drop duplicates
            ordered[category] = tuple(dict.fromkeys(tags))

        self._categories = ordered
        self._lookup = {c: frozenset(t) for c, t in ordered.items()}
        self.jurisdiction = jurisdiction
        self.version = version

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Taxonomy":
        """
        Load taxonomy from a JSON data file

        Args:
            path: Path to taxonomy JSON (default: bundled IPC file)

        Returns:
            Taxonomy

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file lacks a 'categories' object
        """
        taxonomy_file = Path(path) if path else DEFAULT_TAXONOMY_PATH
        if not taxonomy_file.exists():
            raise FileNotFoundError(f"Taxonomy file not found: {taxonomy_file}")

        with open(taxonomy_file, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict) or not isinstance(data.get('categories'), dict):
            raise ValueError(f"Taxonomy file {taxonomy_file} must contain a 'categories' object")

        taxonomy = cls(
            categories=data['categories'],
            jurisdiction=data.get('jurisdiction', 'unknown'),
            version=data.get('version', 'unknown')
        )
        logger.info(
            f"Taxonomy loaded ({taxonomy.jurisdiction} v{taxonomy.version}, "
            f"{len(taxonomy.categories)} categories)"
        )
        return taxonomy

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self._categories)

    def permitted_tags(self, category: str) -> Tuple[str, ...]:
        """Ordered permitted tags for category (empty for unknown category)"""
        return self._categories.get(category, ())

    def is_valid_tag(self, category: str, tag: str) -> bool:
        return tag in self._lookup.get(category, frozenset())

    def __contains__(self, category: object) -> bool:
        return category in self._categories

    def __repr__(self) -> str:
        return f"Taxonomy(jurisdiction={self.jurisdiction!r}, categories={list(self._categories)})"


_default_taxonomy: Optional[Taxonomy] = None


def get_default_taxonomy() -> Taxonomy:
    """Bundled reference taxonomy, loaded once per process (read-only)"""
    global _default_taxonomy
    if _default_taxonomy is None:
        _default_taxonomy = Taxonomy.load()
    return _default_taxonomy
