"""
Resolution of detected pattern ids to feature records.

A pattern id is looked up in the knowledge base through an ordered chain
of candidate ids. When nothing matches, a placeholder record is
synthesised from the pattern's risk level so every detection still
yields a usable record.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Union

from baseline_navigator.core.knowledge_base import FeatureKnowledgeBase
from baseline_navigator.core.models import Baseline, FeatureRecord, PatternDefinition
from baseline_navigator.core.patterns import PatternRegistry

RISK_LEVEL_BASELINES = {
    "safe": Baseline.WIDELY,
    "moderate": Baseline.NEWLY,
    "experimental": Baseline.LIMITED,
}


@dataclass(frozen=True)
class Resolved:
    """A record found in the dataset."""

    feature: FeatureRecord
    synthesized = False


@dataclass(frozen=True)
class Synthesized:
    """A heuristic placeholder for a pattern missing from the dataset."""

    feature: FeatureRecord
    synthesized = True


Resolution = Union[Resolved, Synthesized]


def candidate_ids(pattern_id: str, pattern: Optional[PatternDefinition]) -> Iterator[str]:
    """Lookup order: the pattern id, each alias, then the ``css-`` prefixed id."""
    yield pattern_id
    if pattern is not None:
        yield from pattern.aliases
    yield f"css-{pattern_id}"


def synthesize_feature(pattern_id: str, pattern: Optional[PatternDefinition]) -> FeatureRecord:
    """Placeholder record whose baseline is guessed from the risk level."""
    if pattern is None:
        return FeatureRecord(id=pattern_id, name=pattern_id.replace("-", " "))

    return FeatureRecord(
        id=pattern_id,
        name=pattern.description or pattern_id.replace("-", " "),
        description=pattern.description or "",
        baseline=RISK_LEVEL_BASELINES.get(pattern.risk_level, Baseline.UNKNOWN),
        groups=(pattern.subcategory,) if pattern.subcategory else (),
    )


def resolve_feature(
    pattern_id: str,
    registry: PatternRegistry,
    knowledge_base: FeatureKnowledgeBase,
) -> Resolution:
    """Resolve a detected pattern id to the first matching dataset record."""
    pattern = registry.get_pattern(pattern_id)
    for candidate in candidate_ids(pattern_id, pattern):
        feature = knowledge_base.get_feature(candidate)
        if feature is not None:
            return Resolved(feature)
    return Synthesized(synthesize_feature(pattern_id, pattern))
