"""
Project-wide feature usage analysis.

Applies the pattern catalog to a corpus of already-read documents,
aggregates usage per resolved feature, scores overall compatibility and
drafts human-readable suggestions.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np

from baseline_navigator.core.cache import TTLCache, create_cache
from baseline_navigator.core.knowledge_base import FeatureKnowledgeBase
from baseline_navigator.core.models import (
    Baseline,
    Document,
    ProjectAnalysis,
    ProjectFeatureUsage,
    UsageLocation,
)
from baseline_navigator.core.patterns import PatternRegistry
from baseline_navigator.core.resolution import Resolution, resolve_feature
from baseline_navigator.utils.config import BaselineSettings
from baseline_navigator.utils.errors import DocumentAnalysisError
from baseline_navigator.utils.logging import create_logger_with_context

# Per-feature score by baseline tier; anything unrecognised scores 50
BASELINE_SCORES = {
    Baseline.WIDELY: 100,
    Baseline.NEWLY: 70,
    Baseline.LIMITED: 30,
    Baseline.UNKNOWN: 30,
}
UNRECOGNIZED_SCORE = 50

MAX_RISK_SUGGESTIONS = 5
MAX_HEURISTIC_ALTERNATIVES = 3


@dataclass(frozen=True)
class _Contribution:
    """One detected pattern's share of a single document."""

    pattern_id: str
    resolution: Resolution
    match_count: int
    locations: List[UsageLocation]


def compatibility_score(usages: Sequence[ProjectFeatureUsage]) -> int:
    """
    Usage-weighted average of per-feature tier scores.

    Each feature is weighted by ln(usage_count + 1); with nothing to
    weigh the score is 100.
    """
    if not usages:
        return 100

    scores = np.array(
        [BASELINE_SCORES.get(u.feature.baseline, UNRECOGNIZED_SCORE) for u in usages],
        dtype=float,
    )
    weights = np.log1p(np.array([u.usage_count for u in usages], dtype=float))
    if weights.sum() <= 0:
        return 100

    # Half-up rounding
    return int(np.floor(np.average(scores, weights=weights) + 0.5))


class ProjectAnalyzer:
    """
    Turns documents into a ProjectAnalysis.

    Documents are processed one at a time with a yield to the event loop
    in between. A failing document is logged and skipped; the batch goes
    on. Results are cached per workspace-root set when roots are given.
    """

    def __init__(
        self,
        knowledge_base: FeatureKnowledgeBase,
        registry: Optional[PatternRegistry] = None,
        settings: Optional[BaselineSettings] = None,
        cache: Optional[TTLCache] = None,
    ):
        self.knowledge_base = knowledge_base
        self.registry = registry or PatternRegistry()
        self.settings = settings or knowledge_base.settings
        self.cache: TTLCache = cache if cache is not None else create_cache(
            {"ttl": self.settings.cache_ttl, "name": "analysis"}
        )
        self.logger = logging.getLogger("project_analyzer")

    @staticmethod
    def cache_key(workspace_roots: Sequence[str]) -> str:
        return "analysis_" + "_".join(sorted(workspace_roots))

    async def analyze_project(
        self,
        documents: Iterable[Document],
        total_files: Optional[int] = None,
        workspace_roots: Optional[Sequence[str]] = None,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ) -> ProjectAnalysis:
        """
        Analyze a corpus of documents.

        Args:
            documents: (text, language_id, filename) documents
            total_files: Number of enumerated files for coverage
                         (default: number of documents)
            workspace_roots: Roots identifying the project; enables caching
            progress_callback: Optional callback(current, total, filename)

        Returns:
            ProjectAnalysis

        Raises:
            ReadinessTimeoutError: If the knowledge base never becomes ready
        """
        key = self.cache_key(workspace_roots) if workspace_roots else None
        if key is not None:
            cached = self.cache.get(key)
            if cached is not None:
                self.logger.info("Returning cached analysis")
                return cached

        await self.knowledge_base.wait_for_ready()

        run_logger = create_logger_with_context(
            "project_analyzer", {"workspace": key or "unscoped"}
        )

        docs = list(documents)
        analysis = ProjectAnalysis(total_files=len(docs) if total_files is None else total_files)

        for index, document in enumerate(docs, start=1):
            if progress_callback:
                progress_callback(index, len(docs), document.filename)

            try:
                contributions = self._analyze_document(document)
            except Exception as e:
                error = DocumentAnalysisError(document.filename, e)
                analysis.skipped_files.append(document.filename)
                run_logger.error(f"{error.message}: {e}")
            else:
                self._merge(analysis, document.filename, contributions)
                analysis.analyzed_files += 1

            # Let other tasks run between documents
            await asyncio.sleep(0)

        self._calculate_compatibility(analysis)
        analysis.suggestions = await self._generate_suggestions(analysis)

        run_logger.info(
            f"Analysis complete: {len(analysis.features)} features, "
            f"{len(analysis.safe_features)} safe, {len(analysis.risk_features)} risky, "
            f"score {analysis.compatibility_score}"
        )

        if key is not None:
            self.cache.set(key, analysis)

        return analysis

    def _analyze_document(self, document: Document) -> List[_Contribution]:
        """Detect and resolve everything in one document without touching shared state."""
        detected = self.registry.detect_features(document.text, document.language_id)

        contributions = []
        for pattern_id, match_count in detected.items():
            resolution = resolve_feature(pattern_id, self.registry, self.knowledge_base)
            locations = [
                UsageLocation(
                    file=document.filename,
                    line=match.line,
                    column=match.column,
                    matched_text=match.matched_text,
                )
                for match in self.registry.find_matches(pattern_id, document.text)
            ]
            contributions.append(_Contribution(pattern_id, resolution, match_count, locations))
            self.logger.debug(
                f"Found feature: {resolution.feature.id} "
                f"({match_count} matches in {document.filename})"
            )
        return contributions

    def _merge(
        self,
        analysis: ProjectAnalysis,
        filename: str,
        contributions: List[_Contribution],
    ) -> None:
        for contribution in contributions:
            feature = contribution.resolution.feature
            usage = analysis.features.get(feature.id)
            if usage is None:
                usage = ProjectFeatureUsage(
                    feature=feature,
                    synthesized=contribution.resolution.synthesized,
                )
                analysis.features[feature.id] = usage
            usage.record(
                filename,
                contribution.match_count,
                contribution.locations,
                pattern_id=contribution.pattern_id,
            )

    def _calculate_compatibility(self, analysis: ProjectAnalysis) -> None:
        usages = list(analysis.features.values())
        analysis.compatibility_score = compatibility_score(usages)

        by_usage = sorted(usages, key=lambda u: u.usage_count, reverse=True)
        analysis.safe_features = [u for u in by_usage if u.feature.baseline == Baseline.WIDELY]
        analysis.risk_features = [u for u in by_usage if u.feature.baseline != Baseline.WIDELY]

    async def _alternatives_for(self, usage: ProjectFeatureUsage) -> List[str]:
        """Curated alternatives first, else widely-available features of the same category."""
        for pattern_id in sorted(usage.pattern_ids) or [usage.feature.id]:
            curated = self.registry.get_alternatives(pattern_id)
            if curated:
                return curated

        same_category = await self.knowledge_base.get_by_category(usage.feature.category_key)
        return [
            f.id for f in same_category
            if f.id != usage.feature.id and f.is_widely_supported
        ][:MAX_HEURISTIC_ALTERNATIVES]

    async def _generate_suggestions(self, analysis: ProjectAnalysis) -> List[str]:
        suggestions: List[str] = []
        score = analysis.compatibility_score

        if score >= 90:
            suggestions.append("Excellent! Your project has great browser compatibility.")
        elif score >= 70:
            suggestions.append("Good compatibility, but some features may need fallbacks.")
        else:
            suggestions.append(
                "Several compatibility issues found. Consider adding polyfills or alternatives."
            )

        if analysis.risk_features:
            suggestions.append(
                f"Found {len(analysis.risk_features)} features with limited support:"
            )
            for usage in analysis.risk_features[:MAX_RISK_SUGGESTIONS]:
                suggestions.append(
                    f"  • {usage.feature.display_name}: Used {usage.usage_count} times "
                    f"in {len(usage.files)} file(s)"
                )
                alternatives = await self._alternatives_for(usage)
                if alternatives:
                    suggestions.append(f"    → Alternatives: {', '.join(alternatives)}")

        suggestions.extend(self._modernization_hints(analysis))

        if analysis.safe_features:
            suggestions.append(
                f"You're safely using {len(analysis.safe_features)} widely supported features."
            )

        suggestions.append(
            f"Analyzed {analysis.analyzed_files} of {analysis.total_files} files "
            f"({analysis.coverage:.1f}% coverage)"
        )
        return suggestions

    def _modernization_hints(self, analysis: ProjectAnalysis) -> List[str]:
        present = set(analysis.features)
        for usage in analysis.features.values():
            present.update(usage.pattern_ids)

        hints = []
        for usage in analysis.features.values():
            for pattern_id in sorted(usage.pattern_ids):
                upgrade = self.registry.get_upgrade_path(pattern_id)
                if upgrade and upgrade not in present:
                    hints.append(
                        f"Consider {upgrade} as a modern replacement for "
                        f"{usage.feature.display_name}"
                    )
        return hints

    def clear_cache(self) -> None:
        self.cache.clear()


def create_project_analyzer(
    knowledge_base: FeatureKnowledgeBase,
    registry: Optional[PatternRegistry] = None,
    settings: Optional[BaselineSettings] = None,
) -> ProjectAnalyzer:
    """Factory function wiring an analyzer with a cache sized from settings."""
    settings = settings or knowledge_base.settings
    return ProjectAnalyzer(
        knowledge_base,
        registry=registry,
        settings=settings,
        cache=create_cache({"ttl": settings.cache_ttl, "name": "analysis"}),
    )
