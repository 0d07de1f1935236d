"""
Core data models for Baseline Navigator.

Feature records are immutable once loaded; usage records and analyses
are rebuilt on every analysis pass; recommendations are produced fresh
per query.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Pattern, Set, Tuple


class Baseline(str, Enum):
    """Browser-support maturity tier, ordered from safest to riskiest."""

    WIDELY = "widely"
    NEWLY = "newly"
    LIMITED = "limited"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        """Risk order: lower is safer."""
        return _BASELINE_RANK[self]

    @property
    def label(self) -> str:
        return _BASELINE_LABELS[self]


_BASELINE_RANK = {
    Baseline.WIDELY: 0,
    Baseline.NEWLY: 1,
    Baseline.LIMITED: 2,
    Baseline.UNKNOWN: 3,
}

_BASELINE_LABELS = {
    Baseline.WIDELY: "Widely Available",
    Baseline.NEWLY: "Newly Available",
    Baseline.LIMITED: "Limited Support",
    Baseline.UNKNOWN: "Unknown",
}


class RecommendationType(str, Enum):
    """Kinds of recommendation, in ranking priority order."""

    ALTERNATIVE = "alternative"
    UPGRADE = "upgrade"
    COMPLEMENTARY = "complementary"
    CONTEXTUAL = "contextual"

    @property
    def priority(self) -> int:
        return _TYPE_PRIORITY[self]


_TYPE_PRIORITY = {
    RecommendationType.ALTERNATIVE: 4,
    RecommendationType.UPGRADE: 3,
    RecommendationType.COMPLEMENTARY: 2,
    RecommendationType.CONTEXTUAL: 1,
}


def normalize_baseline(raw: Any) -> Baseline:
    """
    Map a raw dataset baseline value onto the four-tier taxonomy.

    "high"/"low" are the older web-features spellings; False means the
    feature is not Baseline in any browser set.
    """
    if raw is False:
        return Baseline.LIMITED
    if isinstance(raw, Baseline):
        return raw
    if not isinstance(raw, str):
        return Baseline.UNKNOWN

    value = raw.strip().lower()
    if value in ("widely", "high"):
        return Baseline.WIDELY
    if value in ("newly", "low"):
        return Baseline.NEWLY
    if value in ("limited", "false"):
        return Baseline.LIMITED
    return Baseline.UNKNOWN


def parse_baseline_date(raw: Any) -> Optional[date]:
    """Parse "YYYY-MM-DD" (optionally prefixed with a ranged marker like "≤")."""
    if not raw or not isinstance(raw, str):
        return None
    try:
        return date.fromisoformat(raw.lstrip("≤<= ").strip()[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class FeatureRecord:
    """A web-platform feature loaded from the bundled dataset."""

    id: str
    name: str
    description: str = ""
    description_html: str = ""
    baseline: Baseline = Baseline.UNKNOWN
    baseline_low_date: Optional[date] = None
    baseline_high_date: Optional[date] = None
    support: Dict[str, str] = field(default_factory=dict)  # browser -> min version
    category: Optional[str] = None  # dataset category
    groups: Tuple[str, ...] = ()
    tags: FrozenSet[str] = frozenset()
    mdn_url: Optional[str] = None
    caniuse: Optional[str] = None
    spec_links: Tuple[str, ...] = ()

    @classmethod
    def from_raw(cls, feature_id: str, raw: Dict[str, Any]) -> "FeatureRecord":
        """Build a record from one web-features style dataset entry."""
        status = raw.get("status") or {}
        spec = raw.get("spec") or {}
        if isinstance(spec, (str, list)):
            spec = {"links": spec}

        links = spec.get("links") or []
        if isinstance(links, str):
            links = [links]

        groups = raw.get("group") or []
        if isinstance(groups, str):
            groups = [groups]

        return cls(
            id=feature_id,
            name=raw.get("name") or feature_id,
            description=raw.get("description") or "",
            description_html=raw.get("description_html") or "",
            baseline=normalize_baseline(status.get("baseline", status.get("baseline_status"))),
            baseline_low_date=parse_baseline_date(status.get("baseline_low_date")),
            baseline_high_date=parse_baseline_date(status.get("baseline_high_date")),
            support={str(k): str(v) for k, v in (status.get("support") or {}).items()},
            category=spec.get("category"),
            groups=tuple(str(g) for g in groups),
            tags=frozenset(str(t) for t in raw.get("tags") or []),
            mdn_url=raw.get("mdn_url"),
            caniuse=raw.get("caniuse"),
            spec_links=tuple(str(link) for link in links),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def category_key(self) -> str:
        """Key used by the category index."""
        if self.category:
            return self.category
        if self.groups:
            return self.groups[0]
        return "general"

    @property
    def is_widely_supported(self) -> bool:
        return self.baseline == Baseline.WIDELY

    @property
    def has_limited_support(self) -> bool:
        """Limited or unknown support: candidates for better alternatives."""
        return self.baseline in (Baseline.LIMITED, Baseline.UNKNOWN)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'baseline': self.baseline.value,
            'baseline_low_date': self.baseline_low_date.isoformat() if self.baseline_low_date else None,
            'baseline_high_date': self.baseline_high_date.isoformat() if self.baseline_high_date else None,
            'support': dict(self.support),
            'category': self.category,
            'groups': list(self.groups),
            'tags': sorted(self.tags),
            'mdn_url': self.mdn_url,
            'caniuse': self.caniuse,
            'spec_links': list(self.spec_links),
        }


@dataclass(frozen=True)
class PatternDefinition:
    """A detection rule for one feature."""

    id: str
    aliases: Tuple[str, ...]
    patterns: Tuple[Pattern[str], ...]
    category: str  # css | js | html | api
    risk_level: str  # safe | moderate | experimental
    subcategory: Optional[str] = None
    alternatives: Tuple[str, ...] = ()
    upgrade_to: Optional[str] = None
    complementary: Tuple[str, ...] = ()
    supersedes: Tuple[str, ...] = ()
    description: Optional[str] = None
    common_use_cases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Document:
    """One already-read source document handed in by the host."""

    text: str
    language_id: str
    filename: str


@dataclass(frozen=True)
class MatchLocation:
    """A single regex hit, 1-based line and column."""

    line: int
    column: int
    end_line: int
    end_column: int
    matched_text: str
    offset: int = 0


@dataclass(frozen=True)
class UsageLocation:
    """Where a feature is used inside the project."""

    file: str
    line: int
    column: int
    matched_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'file': self.file,
            'line': self.line,
            'column': self.column,
            'matched_text': self.matched_text,
        }


@dataclass
class ProjectFeatureUsage:
    """Aggregated usage of one feature across an analysis pass."""

    feature: FeatureRecord
    synthesized: bool = False
    usage_count: int = 0
    files: Set[str] = field(default_factory=set)
    locations: List[UsageLocation] = field(default_factory=list)
    pattern_ids: Set[str] = field(default_factory=set)

    def record(
        self,
        filename: str,
        match_count: int,
        locations: List[UsageLocation],
        pattern_id: Optional[str] = None,
    ) -> None:
        """Add one document's matches; counts only ever grow."""
        if match_count < 0:
            raise ValueError(f"match_count must be >= 0, got {match_count}")
        self.usage_count += match_count
        self.files.add(filename)
        self.locations.extend(locations)
        if pattern_id:
            self.pattern_ids.add(pattern_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature': self.feature.to_dict(),
            'synthesized': self.synthesized,
            'usage_count': self.usage_count,
            'files': sorted(self.files),
            'patterns': sorted(self.pattern_ids),
            'locations': [loc.to_dict() for loc in self.locations],
        }


@dataclass
class ProjectAnalysis:
    """Result of one project-wide analysis pass."""

    features: Dict[str, ProjectFeatureUsage] = field(default_factory=dict)
    total_files: int = 0
    analyzed_files: int = 0
    skipped_files: List[str] = field(default_factory=list)
    compatibility_score: int = 100
    risk_features: List[ProjectFeatureUsage] = field(default_factory=list)
    safe_features: List[ProjectFeatureUsage] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def coverage(self) -> float:
        """Percentage of enumerated files that were analyzed."""
        if self.total_files == 0:
            return 0.0
        return self.analyzed_files / self.total_files * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'timestamp': self.timestamp.isoformat(),
            'total_files': self.total_files,
            'analyzed_files': self.analyzed_files,
            'skipped_files': list(self.skipped_files),
            'compatibility_score': self.compatibility_score,
            'features': {fid: usage.to_dict() for fid, usage in self.features.items()},
            'risk_features': [u.feature.id for u in self.risk_features],
            'safe_features': [u.feature.id for u in self.safe_features],
            'suggestions': list(self.suggestions),
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)


@dataclass(frozen=True)
class RecommendationContext:
    """What the caller is looking at when asking for recommendations."""

    current_feature: str
    document_language: str
    project_type: Optional[str] = None
    target_browsers: Tuple[str, ...] = ()

    @property
    def cache_key(self) -> str:
        return f"{self.current_feature}_{self.document_language}_{self.project_type or 'default'}"


@dataclass(frozen=True)
class Recommendation:
    """A ranked remediation suggestion."""

    feature: FeatureRecord
    reason: str
    confidence: float  # [0.0, 1.0]
    type: RecommendationType

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'feature_id': self.feature.id,
            'name': self.feature.display_name,
            'baseline': self.feature.baseline.value,
            'reason': self.reason,
            'confidence': self.confidence,
            'type': self.type.value,
        }


@dataclass(frozen=True)
class SimilarityScore:
    """Composite similarity of a candidate against a target feature."""

    feature_id: str
    score: float
    reasons: List[str] = field(default_factory=list)
    breakdown: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class CompatibilityReport:
    """How well a feature covers the configured browser targets."""

    feature: FeatureRecord
    compatibility: str  # full | partial | none
    missing_browsers: List[str]
    suggestion: Optional[str] = None


@dataclass(frozen=True)
class Finding:
    """An editor-neutral compatibility finding inside one document."""

    filename: str
    feature_id: str
    feature_name: str
    baseline: Baseline
    severity: str
    message: str
    location: MatchLocation
    support_info: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'filename': self.filename,
            'feature_id': self.feature_id,
            'baseline': self.baseline.value,
            'severity': self.severity,
            'message': self.message,
            'line': self.location.line,
            'column': self.location.column,
            'end_line': self.location.end_line,
            'end_column': self.location.end_column,
            'support': self.support_info,
        }


# Validation helpers

def validate_confidence(confidence: float) -> None:
    """Validate confidence score is in valid range."""
    if not (0.0 <= confidence <= 1.0):
        raise ValueError(f"Confidence must be in [0.0, 1.0], got {confidence}")


_VERSION_PREFIX = re.compile(r'^\s*(\d+(?:\.\d+)?)')


def parse_version(raw: Any) -> Optional[float]:
    """
    Leading numeric part of a browser version string.

    Returns None for ranged values such as "≤79" or non-numeric values.
    """
    if raw is None:
        return None
    match = _VERSION_PREFIX.match(str(raw))
    if not match:
        return None
    return float(match.group(1))
