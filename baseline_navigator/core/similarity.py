"""
Multi-metric similarity between feature records.

Six independent sub-metrics, each in [0, 1], are combined with a weight
profile into a composite score. The specialised queries reuse the
composite scorer with their own candidate filters, weights and
thresholds. The engine is stateless.
"""

import re
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from baseline_navigator.core.models import (
    Baseline,
    FeatureRecord,
    SimilarityScore,
    parse_version,
)
from baseline_navigator.utils.errors import ConfigurationError

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class SimilarityWeights:
    """Weight profile for the composite score."""

    name: float = 0.25
    description: float = 0.15
    category: float = 0.25
    browser_support: float = 0.15
    baseline: float = 0.10
    temporal: float = 0.10

    def as_dict(self) -> Dict[str, float]:
        return {
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'browser_support': self.browser_support,
            'baseline': self.baseline,
            'temporal': self.temporal,
        }


DEFAULT_WEIGHTS = SimilarityWeights()
ALTERNATIVE_WEIGHTS = SimilarityWeights(
    name=0.3, description=0.2, category=0.4, browser_support=0.05, baseline=0.05, temporal=0.0
)
UPGRADE_WEIGHTS = SimilarityWeights(
    name=0.5, description=0.2, category=0.3, browser_support=0.0, baseline=0.0, temporal=0.0
)
COMPLEMENTARY_WEIGHTS = SimilarityWeights(
    name=0.1, description=0.15, category=0.5, browser_support=0.15, baseline=0.05, temporal=0.05
)

# (sub-metric, threshold, reason); baseline only counts on an exact match
_REASONS = (
    ('name', 0.7, "Similar name"),
    ('category', 0.7, "Same category"),
    ('browser_support', 0.7, "Similar browser support"),
    ('baseline', 0.999999, "Same baseline status"),
    ('description', 0.5, "Related functionality"),
    ('temporal', 0.7, "Similar release timeframe"),
)


def _words(text: str) -> set:
    return {w for w in _WHITESPACE_RE.split(text.lower()) if w}


def jaccard_similarity(text1: str, text2: str) -> float:
    """Jaccard index of whitespace-separated word sets."""
    words1 = _words(text1)
    words2 = _words(text2)
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance keeping only the previous row of the DP table."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            if c1 == c2:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current

    return previous[-1]


def levenshtein_similarity(s1: str, s2: str) -> float:
    max_len = max(len(s1), len(s2))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(s1, s2) / max_len


class SimilarityEngine:
    """Stateless scorer between two FeatureRecords."""

    def name_similarity(self, f1: FeatureRecord, f2: FeatureRecord) -> float:
        name1 = f1.display_name.lower()
        name2 = f2.display_name.lower()

        if name1 == name2 or f1.id == f2.id:
            return 1.0
        if name1 in name2 or name2 in name1:
            return 0.8

        return 0.6 * jaccard_similarity(name1, name2) + 0.4 * levenshtein_similarity(name1, name2)

    def description_similarity(self, f1: FeatureRecord, f2: FeatureRecord) -> float:
        desc1 = f1.description or f1.description_html
        desc2 = f2.description or f2.description_html
        if not desc1 or not desc2:
            return 0.0

        return jaccard_similarity(_TAG_RE.sub(" ", desc1), _TAG_RE.sub(" ", desc2))

    def category_similarity(self, f1: FeatureRecord, f2: FeatureRecord) -> float:
        if f1.category and f2.category and f1.category == f2.category:
            return 1.0
        if f1.groups and f2.groups and f1.groups == f2.groups:
            return 0.8

        if f1.tags and f2.tags:
            overlap = len(f1.tags & f2.tags)
            if overlap:
                return 0.6 * overlap / max(len(f1.tags), len(f2.tags))

        return 0.0

    def browser_support_similarity(self, f1: FeatureRecord, f2: FeatureRecord) -> float:
        """
        Average per-browser version closeness over common browsers,
        scaled by how much of the larger support set is shared.
        """
        support1, support2 = f1.support, f2.support
        if not support1 or not support2:
            return 0.0

        common = [b for b in support1 if support2.get(b)]
        if not common:
            return 0.0

        total = 0.0
        for browser in common:
            v1 = parse_version(support1[browser])
            v2 = parse_version(support2[browser])
            if v1 is None or v2 is None:
                # Counted as common, contributes nothing
                continue
            total += max(0.0, 1.0 - abs(v1 - v2) / 50)

        average = total / len(common)
        overlap = len(common) / max(len(support1), len(support2))
        return average * overlap

    def baseline_similarity(self, f1: FeatureRecord, f2: FeatureRecord) -> float:
        if f1.baseline == f2.baseline:
            return 1.0
        no_baseline = (Baseline.LIMITED, Baseline.UNKNOWN)
        if f1.baseline in no_baseline and f2.baseline in no_baseline:
            return 0.8
        return 0.0

    def temporal_similarity(self, f1: FeatureRecord, f2: FeatureRecord) -> float:
        if f1.baseline_low_date is None or f2.baseline_low_date is None:
            return 0.0

        days = abs((f1.baseline_low_date - f2.baseline_low_date).days)
        if days < 365:
            return 1.0
        if days < 730:
            return 0.7
        if days < 1095:
            return 0.4
        return 0.0

    def calculate_similarity(
        self,
        f1: FeatureRecord,
        f2: FeatureRecord,
        weights: Optional[SimilarityWeights] = None,
    ) -> SimilarityScore:
        """
        Composite similarity of f2 against f1.

        Returns:
            SimilarityScore for f2, with the per-metric breakdown and the
            human-readable reasons whose thresholds were crossed
        """
        w = weights or DEFAULT_WEIGHTS
        if f1 == f2:
            # A record compared with itself saturates every metric, even
            # those that score 0 on missing data (dates, support)
            breakdown = dict.fromkeys(w.as_dict(), 1.0)
        else:
            breakdown = self._breakdown(f1, f2)

        weight_map = w.as_dict()
        total = sum(breakdown[key] * weight_map[key] for key in breakdown)
        # Float noise must not push identical records off 1.0
        score = round(min(1.0, max(0.0, total)), 6)

        reasons = [reason for key, threshold, reason in _REASONS if breakdown[key] > threshold]

        return SimilarityScore(feature_id=f2.id, score=score, reasons=reasons, breakdown=breakdown)

    def _breakdown(self, f1: FeatureRecord, f2: FeatureRecord) -> Dict[str, float]:
        return {
            'name': self.name_similarity(f1, f2),
            'description': self.description_similarity(f1, f2),
            'category': self.category_similarity(f1, f2),
            'browser_support': self.browser_support_similarity(f1, f2),
            'baseline': self.baseline_similarity(f1, f2),
            'temporal': self.temporal_similarity(f1, f2),
        }

    def _rank(
        self,
        target: FeatureRecord,
        candidates: Iterable[FeatureRecord],
        weights: SimilarityWeights,
        min_score: float,
        max_results: int,
    ) -> List[SimilarityScore]:
        scores = [
            self.calculate_similarity(target, candidate, weights)
            for candidate in candidates
            if candidate.id != target.id
        ]
        scores = [s for s in scores if s.score >= min_score]
        scores.sort(key=lambda s: s.score, reverse=True)
        return scores[:max_results]

    def find_similar(
        self,
        target: FeatureRecord,
        candidates: Iterable[FeatureRecord],
        min_score: float = 0.3,
        max_results: int = 10,
        weights: Optional[SimilarityWeights] = None,
    ) -> List[SimilarityScore]:
        return self._rank(target, candidates, weights or DEFAULT_WEIGHTS, min_score, max_results)

    def find_better_alternatives(
        self,
        target: FeatureRecord,
        candidates: Iterable[FeatureRecord],
        max_results: int = 5,
    ) -> List[SimilarityScore]:
        """Widely-available features similar to a not-yet-widely-available target."""
        if target.baseline == Baseline.WIDELY:
            return []

        widely = (c for c in candidates if c.baseline == Baseline.WIDELY)
        return self._rank(target, widely, ALTERNATIVE_WEIGHTS, 0.4, max_results)

    def find_upgrade_paths(
        self,
        target: FeatureRecord,
        candidates: Iterable[FeatureRecord],
        max_results: int = 3,
    ) -> List[SimilarityScore]:
        """Closely named features that became Baseline strictly later than the target."""
        if target.baseline_low_date is None:
            return []

        newer = (
            c for c in candidates
            if c.baseline_low_date is not None and c.baseline_low_date > target.baseline_low_date
        )
        return self._rank(target, newer, UPGRADE_WEIGHTS, 0.6, max_results)

    def find_complementary(
        self,
        target: FeatureRecord,
        candidates: Iterable[FeatureRecord],
        max_results: int = 5,
    ) -> List[SimilarityScore]:
        """Widely-available features from the same area as the target."""
        widely = (c for c in candidates if c.baseline == Baseline.WIDELY)
        return self._rank(target, widely, COMPLEMENTARY_WEIGHTS, 0.4, max_results)


def weights_from_config(config: Optional[Dict[str, float]] = None) -> SimilarityWeights:
    """Build a weight profile from a dict, missing keys keep the defaults."""
    if not config:
        return DEFAULT_WEIGHTS
    known = DEFAULT_WEIGHTS.as_dict()
    unknown = set(config) - set(known)
    if unknown:
        raise ConfigurationError(
            f"Unknown similarity weights: {', '.join(sorted(unknown))}",
            config_key="similarity.weights",
        )
    return replace(DEFAULT_WEIGHTS, **{k: float(v) for k, v in config.items()})
