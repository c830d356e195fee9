"""
TagSet - accumulated categorized facts

Invariants:
- Accepted tags belong to the taxonomy's permitted set for their category
- Out-of-taxonomy tags are quarantined: kept for diagnostics, never seen
  by rule predicates
- Merge is category-wise union (associative, commutative, idempotent)
- Merging never removes a tag; facts are never retracted automatically

Design:
- Immutable value object; merge() returns a new TagSet
- Absent category == empty category
"""

from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from fir_assistant.core.taxonomy import Taxonomy


def _freeze(mapping: Optional[Mapping[str, Iterable[str]]]) -> Dict[str, FrozenSet[str]]:
    frozen = {}
    for category, tags in (mapping or {}).items():
        values = frozenset(tags)
        if values:
            frozen[category] = values
    return frozen


class TagSet:
    """Category -> set of tags, plus quarantined out-of-taxonomy tags"""

    __slots__ = ('_tags', '_quarantined')

    def __init__(
        self,
        tags: Optional[Mapping[str, Iterable[str]]] = None,
        quarantined: Optional[Mapping[str, Iterable[str]]] = None
    ) -> None:
        self._tags = _freeze(tags)
        self._quarantined = _freeze(quarantined)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Iterable[str]], taxonomy: Taxonomy) -> "TagSet":
        """
        Partition raw category -> tags into accepted and quarantined

        Tags in unknown categories are quarantined under that category name.
        """
        accepted: Dict[str, set] = {}
        quarantined: Dict[str, set] = {}
        for category, tags in raw.items():
            for tag in tags:
                if taxonomy.is_valid_tag(category, tag):
                    accepted.setdefault(category, set()).add(tag)
                else:
                    quarantined.setdefault(category, set()).add(tag)
        return cls(accepted, quarantined)

    # ========================
    # Queries
    # ========================

    def get(self, category: str) -> FrozenSet[str]:
        return self._tags.get(category, frozenset())

    def has(self, category: str, tag: str) -> bool:
        return tag in self._tags.get(category, ())

    def has_any(self, category: str, tags: Iterable[str]) -> bool:
        present = self._tags.get(category, frozenset())
        return any(tag in present for tag in tags)

    def ordered(self, category: str, taxonomy: Optional[Taxonomy] = None) -> List[str]:
        """
        Tags of category in taxonomy order (alphabetical without taxonomy)
        """
        present = self._tags.get(category, frozenset())
        if taxonomy is None:
            return sorted(present)
        order = {tag: i for i, tag in enumerate(taxonomy.permitted_tags(category))}
        return sorted(present, key=lambda t: (order.get(t, len(order)), t))

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(sorted(self._tags))

    @property
    def quarantined(self) -> Dict[str, FrozenSet[str]]:
        return dict(self._quarantined)

    @property
    def quarantined_count(self) -> int:
        return sum(len(tags) for tags in self._quarantined.values())

    def count(self) -> int:
        """Number of accepted tags across all categories"""
        return sum(len(tags) for tags in self._tags.values())

    def is_empty(self) -> bool:
        return not self._tags

    def issuperset(self, other: "TagSet") -> bool:
        return all(tags <= self.get(category) for category, tags in other._tags.items())

    # ========================
    # Combination
    # ========================

    def merge(self, other: "TagSet") -> "TagSet":
        """Category-wise union of accepted and quarantined tags"""
        tags = {c: set(t) for c, t in self._tags.items()}
        for category, values in other._tags.items():
            tags.setdefault(category, set()).update(values)

        quarantined = {c: set(t) for c, t in self._quarantined.items()}
        for category, values in other._quarantined.items():
            quarantined.setdefault(category, set()).update(values)

        return TagSet(tags, quarantined)

    __or__ = merge

    # ========================
    # Serialization
    # ========================

    def to_dict(self, taxonomy: Optional[Taxonomy] = None) -> Dict[str, List[str]]:
        """
        JSON-safe dict of accepted tags

        With a taxonomy, every taxonomy category is present (possibly empty)
        and tags follow taxonomy order.
        """
        if taxonomy is None:
            return {category: sorted(self._tags[category]) for category in sorted(self._tags)}
        return {category: self.ordered(category, taxonomy) for category in taxonomy.categories}

    def quarantine_dict(self) -> Dict[str, List[str]]:
        return {c: sorted(t) for c, t in sorted(self._quarantined.items())}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TagSet):
            return NotImplemented
        return self._tags == other._tags and self._quarantined == other._quarantined

    def __hash__(self) -> int:
        return hash((
            frozenset(self._tags.items()),
            frozenset(self._quarantined.items())
        ))

    def __repr__(self) -> str:
        body = ", ".join(f"{c}={sorted(t)}" for c, t in sorted(self._tags.items()))
        if self._quarantined:
            body += f", quarantined={self.quarantined_count}"
        return f"TagSet({body})"
