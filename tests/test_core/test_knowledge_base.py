"""Tests for FeatureKnowledgeBase."""

import json

import pytest

from baseline_navigator.core.knowledge_base import (
    FeatureKnowledgeBase,
    create_knowledge_base,
    extract_tags,
    read_feature_dataset,
)
from baseline_navigator.core.models import Baseline
from baseline_navigator.utils.errors import (
    DatasetUnavailableError,
    ReadinessTimeoutError,
    UnknownFeatureError,
)


SMALL_DATASET = {
    "grid": {
        "name": "Grid",
        "description": "Two-dimensional grid layout",
        "status": {"baseline": "high", "support": {"chrome": "57", "safari": "10.1"}},
        "spec": {"category": "layout"},
    },
    "has": {
        "name": ":has()",
        "description": "Relational pseudo-class selector",
        "status": {"baseline": False, "support": {"chrome": "105", "safari": "15.4"}},
        "spec": {"category": "selectors"},
    },
}


class TestReadFeatureDataset:
    def test_bundled_dataset(self, raw_dataset):
        assert "grid" in raw_dataset
        assert "has" in raw_dataset

    def test_bare_mapping(self, tmp_path):
        path = tmp_path / "features.json"
        path.write_text(json.dumps(SMALL_DATASET))
        assert set(read_feature_dataset(path)) == {"grid", "has"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetUnavailableError) as exc_info:
            read_feature_dataset(tmp_path / "missing.json")
        assert exc_info.value.path.endswith("missing.json")

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "features.json"
        path.write_text("{not json")
        with pytest.raises(DatasetUnavailableError):
            read_feature_dataset(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "features.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(DatasetUnavailableError):
            read_feature_dataset(path)


class TestExtractTags:
    def test_keywords_from_name_and_description(self):
        tags = extract_tags("Container queries", "Responsive styling based on container size")
        assert "container" in tags
        assert "query" not in tags  # "queries" does not contain "query"
        assert "responsive" in tags

    def test_empty(self):
        assert extract_tags("", "") == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_initialize_with_loader(self):
        async def loader():
            return SMALL_DATASET

        kb = FeatureKnowledgeBase(loader=loader)
        assert not kb.is_ready

        await kb.wait_for_ready()
        assert kb.is_ready
        assert len(kb) == 2

    @pytest.mark.asyncio
    async def test_failed_load_is_ready_and_empty(self, failing_loader):
        kb = FeatureKnowledgeBase(loader=failing_loader)

        await kb.wait_for_ready()

        assert kb.is_ready
        assert len(kb) == 0
        assert isinstance(kb.load_error, OSError)
        assert await kb.search("grid") == []

    @pytest.mark.asyncio
    async def test_timeout_when_loader_hangs(self, hanging_loader, slow_settings):
        kb = FeatureKnowledgeBase(loader=hanging_loader, settings=slow_settings)
        try:
            with pytest.raises(ReadinessTimeoutError) as exc_info:
                await kb.wait_for_ready()
            assert exc_info.value.timeout == 0.05
            assert not kb.is_ready
        finally:
            await kb.shutdown()

    @pytest.mark.asyncio
    async def test_explicit_timeout_overrides_settings(self, hanging_loader):
        kb = FeatureKnowledgeBase(loader=hanging_loader)
        try:
            with pytest.raises(ReadinessTimeoutError):
                await kb.wait_for_ready(timeout=0.01)
        finally:
            await kb.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_without_pending_load(self, kb):
        await kb.shutdown()
        assert kb.is_ready

    @pytest.mark.asyncio
    async def test_factory_reads_configured_path(self, tmp_path):
        path = tmp_path / "features.json"
        path.write_text(json.dumps({"features": SMALL_DATASET}))

        kb = create_knowledge_base({"dataset_path": str(path)})
        await kb.wait_for_ready()

        assert len(kb) == 2
        assert kb.load_error is None

    @pytest.mark.asyncio
    async def test_factory_with_missing_path_degrades(self, tmp_path):
        kb = create_knowledge_base({"dataset_path": str(tmp_path / "nope.json")})
        await kb.wait_for_ready()

        assert len(kb) == 0
        assert isinstance(kb.load_error, DatasetUnavailableError)

    def test_malformed_entries_skipped(self):
        kb = FeatureKnowledgeBase.from_features({"grid": SMALL_DATASET["grid"], "bad": "oops"})
        assert len(kb) == 1


class TestLookups:
    def test_get_feature(self, kb):
        feature = kb.get_feature("grid")
        assert feature.name == "Grid"
        assert feature.baseline == Baseline.WIDELY

    def test_get_feature_unknown(self, kb):
        assert kb.get_feature("blink-tag") is None

    def test_require_feature_raises(self, kb):
        with pytest.raises(UnknownFeatureError) as exc_info:
            kb.require_feature("blink-tag")
        assert exc_info.value.feature_id == "blink-tag"

    def test_stats(self, kb):
        stats = kb.stats()
        assert stats["ready"] is True
        assert stats["features"] == len(kb)
        assert "chrome" in stats["browsers"]
        assert stats["load_error"] is None


class TestQueries:
    @pytest.mark.asyncio
    async def test_search_exact_id_first(self, kb):
        results = await kb.search("grid")
        ids = [f.id for f in results]
        assert ids[0] == "grid"
        assert "subgrid" in ids
        assert len(ids) == len(set(ids))

    @pytest.mark.asyncio
    async def test_search_by_name(self, kb):
        results = await kb.search(":has()")
        assert results[0].id == "has"

    @pytest.mark.asyncio
    async def test_search_by_tag(self, kb):
        ids = [f.id for f in await kb.search("viewport")]
        assert "container-queries" in ids

    @pytest.mark.asyncio
    async def test_search_blank_query(self, kb):
        assert await kb.search("   ") == []

    @pytest.mark.asyncio
    async def test_get_by_baseline_normalizes(self, kb):
        widely = {f.id for f in await kb.get_by_baseline("high")}
        assert {"grid", "gap", "css-is"} <= widely
        assert "has" not in widely

        limited = {f.id for f in await kb.get_by_baseline("limited")}
        assert "has" in limited

        unknown = {f.id for f in await kb.get_by_baseline("unknown")}
        assert unknown == {"masonry"}

    @pytest.mark.asyncio
    async def test_get_by_category(self, kb):
        ids = {f.id for f in await kb.get_by_category("selectors")}
        assert ids == {"has", "css-is", "css-where", "css-not", "focus-visible"}

    @pytest.mark.asyncio
    async def test_get_supported_in(self, kb):
        ids = {f.id for f in await kb.get_supported_in("safari", 14)}
        assert "css-is" in ids
        assert "gap" in ids  # "14.1" indexes as 14
        assert "has" not in ids

    @pytest.mark.asyncio
    async def test_get_supported_in_unknown_browser(self, kb):
        assert await kb.get_supported_in("netscape", 4) == []

    @pytest.mark.asyncio
    async def test_similar_features_prefer_category(self, kb):
        similar = await kb.get_similar_features("has")
        assert {f.id for f in similar[:4]} == {"css-is", "css-where", "css-not", "focus-visible"}
        assert len(similar) <= 10
        assert "has" not in {f.id for f in similar}

    @pytest.mark.asyncio
    async def test_similar_features_unknown(self, kb):
        assert await kb.get_similar_features("blink-tag") == []
