"""
Compatibility checks against the configured browser targets.

Produces editor-neutral findings for single documents and per-feature
compatibility reports. Rendering them (diagnostics, hovers) is left to
the host.
"""

import logging
from typing import List, Optional

from baseline_navigator.core.knowledge_base import FeatureKnowledgeBase
from baseline_navigator.core.models import (
    Baseline,
    CompatibilityReport,
    Document,
    FeatureRecord,
    Finding,
    parse_version,
)
from baseline_navigator.core.patterns import PatternRegistry, language_family
from baseline_navigator.core.resolution import resolve_feature
from baseline_navigator.utils.config import BaselineSettings

FINDING_MESSAGES = {
    Baseline.LIMITED: '"{name}" has limited browser support',
    Baseline.NEWLY: '"{name}" is newly available (may not work in older browsers)',
    Baseline.UNKNOWN: '"{name}" has unknown support status',
}

# Only stylesheet and script documents are checked
CHECKED_FAMILIES = ("css", "js")


class CompatibilityChecker:
    """Checks features and documents against BaselineSettings targets."""

    def __init__(
        self,
        registry: PatternRegistry,
        knowledge_base: FeatureKnowledgeBase,
        settings: Optional[BaselineSettings] = None,
    ):
        self.registry = registry
        self.knowledge_base = knowledge_base
        self.settings = settings or knowledge_base.settings
        self.logger = logging.getLogger("compatibility")

    def missing_browsers(self, feature: FeatureRecord) -> List[str]:
        """Target browsers whose required version is unknown or above the minimum."""
        missing = []
        for browser, minimum in self.settings.browser_targets():
            supported = parse_version(feature.support.get(browser))
            target = parse_version(minimum)
            if supported is None or (target is not None and supported > target):
                missing.append(browser)
        return missing

    def report(self, feature: FeatureRecord) -> CompatibilityReport:
        """Full/partial/none coverage of the target browsers."""
        missing = self.missing_browsers(feature)
        targets = self.settings.target_browsers

        if not missing:
            return CompatibilityReport(feature=feature, compatibility="full", missing_browsers=[])

        compatibility = "none" if len(missing) == len(targets) else "partial"
        alternatives = [
            alt for alt in self.registry.get_alternatives(feature.id)
            if self.knowledge_base.get_feature(alt) is not None
        ]
        if alternatives:
            suggestion = f"Consider {', '.join(alternatives)} for {', '.join(missing)}"
        else:
            suggestion = f"Add a fallback or polyfill for {', '.join(missing)}"

        return CompatibilityReport(
            feature=feature,
            compatibility=compatibility,
            missing_browsers=missing,
            suggestion=suggestion,
        )

    def support_info(self, feature: FeatureRecord) -> str:
        """Supported versions for the target browsers only."""
        parts = [
            f"{browser}: {version}+"
            for browser, version in feature.support.items()
            if browser in self.settings.target_browsers
        ]
        return ", ".join(parts) or "Not available for your target browsers"

    def check_document(self, document: Document) -> List[Finding]:
        """
        Findings for every regex hit of a feature worth warning about.

        Features missing from the dataset produce no findings.
        """
        if language_family(document.language_id) not in CHECKED_FAMILIES:
            return []

        findings: List[Finding] = []
        detected = self.registry.detect_features(document.text, document.language_id)

        for pattern_id in detected:
            resolution = resolve_feature(pattern_id, self.registry, self.knowledge_base)
            if resolution.synthesized:
                continue

            feature = resolution.feature
            if not self.settings.should_warn_for_feature(feature.baseline.value):
                continue

            message = FINDING_MESSAGES.get(feature.baseline, FINDING_MESSAGES[Baseline.UNKNOWN])
            severity = self.settings.severity_for(feature.baseline.value)
            support = self.support_info(feature)

            for location in self.registry.find_matches(pattern_id, document.text):
                findings.append(Finding(
                    filename=document.filename,
                    feature_id=feature.id,
                    feature_name=feature.display_name,
                    baseline=feature.baseline,
                    severity=severity,
                    message=message.format(name=feature.display_name),
                    location=location,
                    support_info=support,
                ))

        self.logger.debug(f"{len(findings)} findings in {document.filename}")
        return findings
