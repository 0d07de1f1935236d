"""
Recommendation engine.

Combines the curated relationships of the pattern catalog with
similarity scores into a ranked, cached list of suggestions for one
feature.
"""

import logging
from typing import Dict, Iterable, List, Optional

from baseline_navigator.core.cache import TTLCache, create_cache
from baseline_navigator.core.knowledge_base import FeatureKnowledgeBase
from baseline_navigator.core.models import (
    FeatureRecord,
    PatternDefinition,
    Recommendation,
    RecommendationContext,
    RecommendationType,
)
from baseline_navigator.core.patterns import PatternRegistry, language_family
from baseline_navigator.core.similarity import SimilarityEngine
from baseline_navigator.utils.config import BaselineSettings
from baseline_navigator.utils.errors import ReadinessTimeoutError

MAX_RECOMMENDATIONS = 10
MAX_CONTEXTUAL = 2

# Confidence levels
CURATED_ALTERNATIVE_CONFIDENCE = 0.95
ALGORITHMIC_ALTERNATIVE_CAP = 0.85
CURATED_UPGRADE_CONFIDENCE = 0.9
ALGORITHMIC_UPGRADE_CAP = 0.8
CURATED_COMPLEMENTARY_CONFIDENCE = 0.85
ALGORITHMIC_COMPLEMENTARY_CAP = 0.75
CONTEXTUAL_CONFIDENCE = 0.6

MODERN_FEATURES = {
    "css": ("grid", "flexbox", "custom-properties", "clamp"),
    "js": ("promises", "async-await", "es6-modules", "fetch"),
}

CONTEXTUAL_REASONS = {
    "css": "Modern CSS feature for better layouts",
    "js": "Modern JavaScript feature",
}


def _with_reasons(prefix: str, reasons: List[str]) -> str:
    return f"{prefix}: {', '.join(reasons)}" if reasons else prefix


def rank_recommendations(
    recommendations: Iterable[Recommendation],
    limit: int = MAX_RECOMMENDATIONS,
) -> List[Recommendation]:
    """
    Deduplicate and order recommendations.

    One entry per feature id survives (the highest confidence; the first
    one on ties). Type priority always dominates confidence.
    """
    unique: Dict[str, Recommendation] = {}
    for rec in recommendations:
        existing = unique.get(rec.feature.id)
        if existing is None or rec.confidence > existing.confidence:
            unique[rec.feature.id] = rec

    ranked = sorted(
        unique.values(),
        key=lambda r: (r.type.priority, r.confidence),
        reverse=True,
    )
    return ranked[:limit]


class RecommendationEngine:
    """
    Five-stage recommendation pipeline.

    Stages, in order: curated alternatives, algorithmic alternatives
    (limited/unknown features only), upgrade paths, complementary
    features, contextual suggestions for the document's language.
    """

    def __init__(
        self,
        knowledge_base: FeatureKnowledgeBase,
        registry: Optional[PatternRegistry] = None,
        similarity: Optional[SimilarityEngine] = None,
        settings: Optional[BaselineSettings] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.knowledge_base = knowledge_base
        self.registry = registry or PatternRegistry()
        self.similarity = similarity or SimilarityEngine()
        self.settings = settings or knowledge_base.settings
        self.cache: TTLCache = cache if cache is not None else create_cache(
            {"ttl": self.settings.cache_ttl, "name": "recommendations"}
        )
        self.logger = logging.getLogger("recommendations")

    async def get_recommendations(self, context: RecommendationContext) -> List[Recommendation]:
        """
        Ranked recommendations (at most 10) for the context's feature.

        Never raises for an unready knowledge base or an unknown feature;
        both yield an empty list.
        """
        try:
            await self.knowledge_base.wait_for_ready()
        except ReadinessTimeoutError as e:
            self.logger.warning(f"No recommendations for {context.current_feature}: {e}")
            return []

        cache_key = context.cache_key
        cached = self.cache.get(cache_key)
        if cached is not None:
            # Callers get their own list; the cached one stays intact
            return list(cached)

        current = self.knowledge_base.get_feature(context.current_feature)
        if current is None:
            self.logger.debug(f"Unknown feature '{context.current_feature}'")
            return []

        all_features = self.knowledge_base.get_all_features()
        pattern = self.registry.get_pattern(current.id)

        candidates: List[Recommendation] = []
        candidates.extend(self._curated_alternatives(current, pattern))
        if current.has_limited_support:
            candidates.extend(self._algorithmic_alternatives(current, all_features))
        candidates.extend(self._upgrade_paths(current, pattern, all_features))
        candidates.extend(self._complementary(current, pattern, all_features))
        candidates.extend(self._contextual(current, pattern, context))

        ranked = rank_recommendations(candidates)
        self.logger.debug(
            f"{len(ranked)} recommendations for {current.id} "
            f"({len(candidates)} candidates)"
        )

        self.cache.set(cache_key, ranked)
        return list(ranked)

    def _widely_supported(self, feature_id: str) -> Optional[FeatureRecord]:
        feature = self.knowledge_base.get_feature(feature_id)
        if feature is not None and feature.is_widely_supported:
            return feature
        return None

    def _curated_alternatives(
        self, current: FeatureRecord, pattern: Optional[PatternDefinition]
    ) -> List[Recommendation]:
        if pattern is None:
            return []

        recommendations = []
        for alt_id in pattern.alternatives:
            alternative = self._widely_supported(alt_id)
            if alternative is not None:
                recommendations.append(Recommendation(
                    feature=alternative,
                    reason=f"Better browser support than {current.display_name}",
                    confidence=CURATED_ALTERNATIVE_CONFIDENCE,
                    type=RecommendationType.ALTERNATIVE,
                ))
        return recommendations

    def _algorithmic_alternatives(
        self, current: FeatureRecord, all_features: List[FeatureRecord]
    ) -> List[Recommendation]:
        recommendations = []
        for match in self.similarity.find_better_alternatives(current, all_features, max_results=3):
            recommendations.append(Recommendation(
                feature=self.knowledge_base.require_feature(match.feature_id),
                reason=_with_reasons("Similar functionality with better support", match.reasons),
                confidence=min(ALGORITHMIC_ALTERNATIVE_CAP, match.score),
                type=RecommendationType.ALTERNATIVE,
            ))
        return recommendations

    def _upgrade_paths(
        self,
        current: FeatureRecord,
        pattern: Optional[PatternDefinition],
        all_features: List[FeatureRecord],
    ) -> List[Recommendation]:
        recommendations: List[Recommendation] = []

        if pattern is not None and pattern.upgrade_to:
            upgrade = self._widely_supported(pattern.upgrade_to)
            if upgrade is not None:
                recommendations.append(Recommendation(
                    feature=upgrade,
                    reason=f"Modern replacement for {current.display_name}",
                    confidence=CURATED_UPGRADE_CONFIDENCE,
                    type=RecommendationType.UPGRADE,
                ))

        seen = {r.feature.id for r in recommendations}
        for match in self.similarity.find_upgrade_paths(current, all_features, max_results=2):
            if match.feature_id in seen:
                continue
            seen.add(match.feature_id)
            recommendations.append(Recommendation(
                feature=self.knowledge_base.require_feature(match.feature_id),
                reason=_with_reasons("Newer version with enhanced features", match.reasons),
                confidence=min(ALGORITHMIC_UPGRADE_CAP, match.score),
                type=RecommendationType.UPGRADE,
            ))

        return recommendations

    def _complementary(
        self,
        current: FeatureRecord,
        pattern: Optional[PatternDefinition],
        all_features: List[FeatureRecord],
    ) -> List[Recommendation]:
        recommendations: List[Recommendation] = []

        if pattern is not None:
            for comp_id in pattern.complementary[:3]:
                companion = self._widely_supported(comp_id)
                if companion is not None:
                    recommendations.append(Recommendation(
                        feature=companion,
                        reason=f"Works well with {current.display_name}",
                        confidence=CURATED_COMPLEMENTARY_CONFIDENCE,
                        type=RecommendationType.COMPLEMENTARY,
                    ))

        areas = _areas(current)
        if not areas:
            return recommendations

        same_area = [
            f for f in all_features
            if f.id != current.id and f.is_widely_supported and areas & _areas(f)
        ]
        seen = {r.feature.id for r in recommendations}
        for match in self.similarity.find_complementary(current, same_area, max_results=5):
            if match.feature_id in seen:
                continue
            seen.add(match.feature_id)
            recommendations.append(Recommendation(
                feature=self.knowledge_base.require_feature(match.feature_id),
                reason=_with_reasons("Related feature", match.reasons),
                confidence=min(ALGORITHMIC_COMPLEMENTARY_CAP, match.score),
                type=RecommendationType.COMPLEMENTARY,
            ))

        return recommendations

    def _contextual(
        self,
        current: FeatureRecord,
        pattern: Optional[PatternDefinition],
        context: RecommendationContext,
    ) -> List[Recommendation]:
        family = language_family(context.document_language)
        if family not in MODERN_FEATURES:
            # HTML-family or unknown documents: follow the feature itself
            family = pattern.category if pattern is not None else None
        if family not in MODERN_FEATURES:
            return []

        recommendations = []
        for feature_id in MODERN_FEATURES[family]:
            if feature_id == current.id:
                continue
            modern = self._widely_supported(feature_id)
            if modern is not None:
                recommendations.append(Recommendation(
                    feature=modern,
                    reason=CONTEXTUAL_REASONS[family],
                    confidence=CONTEXTUAL_CONFIDENCE,
                    type=RecommendationType.CONTEXTUAL,
                ))
            if len(recommendations) == MAX_CONTEXTUAL:
                break
        return recommendations

    def clear_cache(self) -> None:
        self.cache.clear()


def _areas(feature: FeatureRecord) -> set:
    """Dataset category, or the groups when no category is set."""
    if feature.category:
        return {feature.category}
    return set(feature.groups)


def create_recommendation_engine(
    knowledge_base: FeatureKnowledgeBase,
    registry: Optional[PatternRegistry] = None,
    settings: Optional[BaselineSettings] = None,
) -> RecommendationEngine:
    """Factory function wiring an engine with a cache sized from settings."""
    settings = settings or knowledge_base.settings
    return RecommendationEngine(
        knowledge_base,
        registry=registry,
        settings=settings,
        cache=create_cache({"ttl": settings.cache_ttl, "name": "recommendations"}),
    )
