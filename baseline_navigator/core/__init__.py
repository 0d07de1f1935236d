"""
Core module: feature knowledge base, pattern catalog, project analysis,
similarity scoring and recommendations.
"""

from baseline_navigator.core.models import (
    Baseline,
    CompatibilityReport,
    Document,
    FeatureRecord,
    Finding,
    MatchLocation,
    PatternDefinition,
    ProjectAnalysis,
    ProjectFeatureUsage,
    Recommendation,
    RecommendationContext,
    RecommendationType,
    SimilarityScore,
    UsageLocation,
    normalize_baseline,
    validate_confidence,
)
from baseline_navigator.core.cache import TTLCache, create_cache
from baseline_navigator.core.patterns import PatternRegistry, create_pattern_registry, language_family
from baseline_navigator.core.knowledge_base import (
    FeatureKnowledgeBase,
    create_knowledge_base,
    load_feature_dataset,
    read_feature_dataset,
)
from baseline_navigator.core.resolution import Resolved, Synthesized, resolve_feature
from baseline_navigator.core.similarity import SimilarityEngine, SimilarityWeights
from baseline_navigator.core.recommendations import (
    RecommendationEngine,
    create_recommendation_engine,
    rank_recommendations,
)
from baseline_navigator.core.project_analyzer import ProjectAnalyzer, create_project_analyzer
from baseline_navigator.core.compatibility import CompatibilityChecker
from baseline_navigator.core.result_writer import (
    JSONReportWriter,
    ReportWriter,
    TextReportWriter,
    create_report_writer,
)

__all__ = [
    # Models
    "Baseline",
    "CompatibilityReport",
    "Document",
    "FeatureRecord",
    "Finding",
    "MatchLocation",
    "PatternDefinition",
    "ProjectAnalysis",
    "ProjectFeatureUsage",
    "Recommendation",
    "RecommendationContext",
    "RecommendationType",
    "SimilarityScore",
    "UsageLocation",
    "normalize_baseline",
    "validate_confidence",
    # Components
    "TTLCache",
    "create_cache",
    "PatternRegistry",
    "create_pattern_registry",
    "language_family",
    "FeatureKnowledgeBase",
    "create_knowledge_base",
    "load_feature_dataset",
    "read_feature_dataset",
    "Resolved",
    "Synthesized",
    "resolve_feature",
    "SimilarityEngine",
    "SimilarityWeights",
    "RecommendationEngine",
    "create_recommendation_engine",
    "rank_recommendations",
    "ProjectAnalyzer",
    "create_project_analyzer",
    "CompatibilityChecker",
    # Output
    "ReportWriter",
    "TextReportWriter",
    "JSONReportWriter",
    "create_report_writer",
]
