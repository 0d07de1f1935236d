"""Tests for ProjectAnalyzer."""

import re
from unittest.mock import MagicMock, patch

import pytest

from baseline_navigator.core.cache import TTLCache
from baseline_navigator.core.knowledge_base import FeatureKnowledgeBase
from baseline_navigator.core.models import (
    Baseline,
    Document,
    FeatureRecord,
    PatternDefinition,
    ProjectFeatureUsage,
)
from baseline_navigator.core.patterns import PatternRegistry
from baseline_navigator.core.project_analyzer import (
    ProjectAnalyzer,
    compatibility_score,
    create_project_analyzer,
)
from baseline_navigator.utils.errors import ReadinessTimeoutError


@pytest.fixture
def analyzer(kb, registry, settings, clock):
    return ProjectAnalyzer(
        kb, registry=registry, settings=settings, cache=TTLCache(ttl=300, clock=clock)
    )


def _usage(baseline, count):
    return ProjectFeatureUsage(
        feature=FeatureRecord(id=f"f-{baseline.value}-{count}", name="f", baseline=baseline),
        usage_count=count,
    )


class TestCompatibilityScore:
    def test_empty_is_perfect(self):
        assert compatibility_score([]) == 100

    def test_equal_weights(self):
        usages = [_usage(Baseline.WIDELY, 1), _usage(Baseline.LIMITED, 1)]
        assert compatibility_score(usages) == 65

    def test_usage_weighting(self):
        # ln(4) = 2 * ln(2), so newly counts twice as much as widely
        usages = [_usage(Baseline.NEWLY, 3), _usage(Baseline.WIDELY, 1)]
        assert compatibility_score(usages) == 80

    def test_unknown_scores_like_limited(self):
        assert compatibility_score([_usage(Baseline.UNKNOWN, 2)]) == 30

    def test_zero_usage_counts(self):
        assert compatibility_score([_usage(Baseline.LIMITED, 0)]) == 100


class TestAnalyzeProject:
    @pytest.mark.asyncio
    async def test_empty_project(self, analyzer):
        analysis = await analyzer.analyze_project([])

        assert analysis.compatibility_score == 100
        assert analysis.features == {}
        assert analysis.suggestions[0].startswith("Excellent!")
        assert analysis.suggestions[-1] == "Analyzed 0 of 0 files (0.0% coverage)"

    @pytest.mark.asyncio
    async def test_grid_and_gap(self, analyzer):
        analysis = await analyzer.analyze_project(
            [Document("display: grid; gap: 10px;", "css", "layout.css")]
        )

        assert set(analysis.features) == {"grid", "gap"}
        assert analysis.features["grid"].usage_count == 1
        assert analysis.features["gap"].usage_count == 1
        assert analysis.compatibility_score == 100
        assert len(analysis.safe_features) == 2
        assert analysis.risk_features == []
        assert "You're safely using 2 widely supported features." in analysis.suggestions

    @pytest.mark.asyncio
    async def test_limited_feature_is_a_risk(self, analyzer):
        analysis = await analyzer.analyze_project(
            [Document(":has(.child) { color: red; }", "css", "parent.css")]
        )

        assert [u.feature.id for u in analysis.risk_features] == ["has"]
        assert analysis.compatibility_score == 30
        assert analysis.suggestions[0].startswith("Several compatibility issues found")
        assert "Found 1 features with limited support:" in analysis.suggestions
        assert "  • :has(): Used 1 times in 1 file(s)" in analysis.suggestions
        assert "    → Alternatives: css-not, css-is, css-where" in analysis.suggestions

    @pytest.mark.asyncio
    async def test_usage_aggregated_across_files(self, analyzer):
        docs = [
            Document(".a { display: grid; }", "css", "a.css"),
            Document(".b { display: grid; }\n.c { display: grid; }", "scss", "b.scss"),
        ]
        analysis = await analyzer.analyze_project(docs)

        usage = analysis.features["grid"]
        assert usage.usage_count == 3
        assert usage.files == {"a.css", "b.scss"}
        assert [(loc.file, loc.line) for loc in usage.locations] == [
            ("a.css", 1), ("b.scss", 1), ("b.scss", 2),
        ]
        assert analysis.analyzed_files == 2

    @pytest.mark.asyncio
    async def test_alias_resolution(self, analyzer):
        analysis = await analyzer.analyze_project(
            [Document("header { position: sticky; }", "css", "header.css")]
        )
        usage = analysis.features["sticky"]
        assert usage.synthesized is False
        assert usage.pattern_ids == {"position-sticky"}

    @pytest.mark.asyncio
    async def test_missing_feature_is_synthesized(self, analyzer):
        analysis = await analyzer.analyze_project(
            [Document("items.map(x => x * 2)", "javascript", "app.js")]
        )
        usage = analysis.features["array-methods"]
        assert usage.synthesized is True
        assert usage.feature.baseline == Baseline.WIDELY
        assert analysis.compatibility_score == 100

    @pytest.mark.asyncio
    async def test_modernization_hint(self, analyzer):
        analysis = await analyzer.analyze_project(
            [Document("const p = new Promise(resolve => resolve());", "javascript", "p.js")]
        )
        assert "Consider async-await as a modern replacement for Promise" in analysis.suggestions

    @pytest.mark.asyncio
    async def test_no_hint_when_upgrade_already_used(self, analyzer):
        text = "const p = new Promise(r => r());\nasync function go() { await p; }"
        analysis = await analyzer.analyze_project([Document(text, "javascript", "p.js")])
        assert not any(s.startswith("Consider async-await") for s in analysis.suggestions)

    @pytest.mark.asyncio
    async def test_heuristic_alternatives_from_category(self):
        anchor = PatternDefinition(
            id="anchor-positioning",
            aliases=(),
            patterns=(re.compile(r"anchor-name:"),),
            category="css",
            risk_level="experimental",
        )
        kb = FeatureKnowledgeBase.from_features({
            "anchor-positioning": {
                "name": "Anchor positioning",
                "status": {"baseline": False},
                "spec": {"category": "positioning"},
            },
            "sticky": {
                "name": "Sticky positioning",
                "status": {"baseline": "high"},
                "spec": {"category": "positioning"},
            },
        })
        analyzer = ProjectAnalyzer(kb, registry=PatternRegistry([anchor]))

        analysis = await analyzer.analyze_project(
            [Document(".a { anchor-name: --menu; }", "css", "menu.css")]
        )

        assert "    → Alternatives: sticky" in analysis.suggestions

    @pytest.mark.asyncio
    async def test_failing_document_is_skipped(self, analyzer, registry):
        original = registry.detect_features

        def flaky(text, language_id=None):
            if "boom" in text:
                raise RuntimeError("regex engine exploded")
            return original(text, language_id)

        docs = [
            Document("boom", "css", "bad.css"),
            Document("display: grid;", "css", "good.css"),
        ]
        with patch.object(registry, "detect_features", side_effect=flaky):
            analysis = await analyzer.analyze_project(docs)

        assert analysis.skipped_files == ["bad.css"]
        assert analysis.analyzed_files == 1
        assert analysis.total_files == 2
        assert set(analysis.features) == {"grid"}
        assert analysis.suggestions[-1] == "Analyzed 1 of 2 files (50.0% coverage)"

    @pytest.mark.asyncio
    async def test_total_files_for_coverage(self, analyzer):
        analysis = await analyzer.analyze_project(
            [Document("display: grid;", "css", "a.css")], total_files=4
        )
        assert analysis.coverage == 25.0

    @pytest.mark.asyncio
    async def test_progress_callback(self, analyzer):
        callback = MagicMock()
        docs = [Document("", "css", "a.css"), Document("", "css", "b.css")]

        await analyzer.analyze_project(docs, progress_callback=callback)

        assert callback.call_count == 2
        callback.assert_called_with(2, 2, "b.css")

    @pytest.mark.asyncio
    async def test_readiness_timeout_propagates(self, hanging_loader, slow_settings):
        kb = FeatureKnowledgeBase(loader=hanging_loader, settings=slow_settings)
        analyzer = ProjectAnalyzer(kb)
        try:
            with pytest.raises(ReadinessTimeoutError):
                await analyzer.analyze_project([Document("display: grid;", "css", "a.css")],
                                               workspace_roots=["/site"])
            assert len(analyzer.cache) == 0
        finally:
            await kb.shutdown()


class TestCaching:
    def test_cache_key_sorts_roots(self):
        assert ProjectAnalyzer.cache_key(["/b", "/a"]) == "analysis_/a_/b"

    def test_injected_empty_cache_is_used(self, kb, clock):
        cache = TTLCache(ttl=300, clock=clock)
        analyzer = ProjectAnalyzer(kb, cache=cache)
        assert analyzer.cache is cache

    @pytest.mark.asyncio
    async def test_injected_clock_governs_expiry(self, analyzer, clock):
        first = await analyzer.analyze_project([], workspace_roots=["/site"])
        clock.advance(299)
        assert await analyzer.analyze_project([], workspace_roots=["/site"]) is first

    @pytest.mark.asyncio
    async def test_cached_per_workspace_roots(self, analyzer):
        docs = [Document("display: grid;", "css", "a.css")]
        first = await analyzer.analyze_project(docs, workspace_roots=["/site"])
        second = await analyzer.analyze_project([], workspace_roots=["/site"])
        assert second is first

    @pytest.mark.asyncio
    async def test_not_cached_without_roots(self, analyzer):
        await analyzer.analyze_project([Document("display: grid;", "css", "a.css")])
        assert len(analyzer.cache) == 0

    @pytest.mark.asyncio
    async def test_cache_expires(self, analyzer, clock):
        first = await analyzer.analyze_project([], workspace_roots=["/site"])
        clock.advance(300)
        second = await analyzer.analyze_project([], workspace_roots=["/site"])
        assert second is not first

    @pytest.mark.asyncio
    async def test_clear_cache(self, analyzer):
        first = await analyzer.analyze_project([], workspace_roots=["/site"])
        analyzer.clear_cache()
        assert await analyzer.analyze_project([], workspace_roots=["/site"]) is not first


class TestFactory:
    def test_uses_settings_ttl(self, kb, registry, settings):
        analyzer = create_project_analyzer(kb, registry, settings)
        assert analyzer.cache.ttl == settings.cache_ttl
        assert analyzer.cache.name == "analysis"
        assert isinstance(analyzer.cache, TTLCache)
