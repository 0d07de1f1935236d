"""
Feature knowledge base.

Loads the bundled web-features dataset once, builds lookup indices and
exposes an async query API. A failed load never propagates: the base
reports itself ready with an empty index and callers see zero results.
"""

import asyncio
import contextlib
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

from baseline_navigator.core.models import Baseline, FeatureRecord, normalize_baseline
from baseline_navigator.utils.config import BaselineSettings
from baseline_navigator.utils.errors import (
    DatasetUnavailableError,
    ReadinessTimeoutError,
    UnknownFeatureError,
)

DEFAULT_DATASET_PATH = Path(__file__).resolve().parent.parent / "data" / "features.json"

# Keywords matched as substrings of name + description for the tag index
TAG_KEYWORDS = (
    "css", "grid", "flex", "animation", "transform", "shadow",
    "gradient", "variable", "custom", "container", "query",
    "selector", "pseudo", "media", "viewport", "responsive",
)

READY_POLL_INTERVAL = 0.1

FeatureLoader = Callable[[], Awaitable[Mapping[str, Dict[str, Any]]]]

logger = logging.getLogger("knowledge_base")


def read_feature_dataset(path: Optional[Union[str, Path]] = None) -> Dict[str, Dict[str, Any]]:
    """
    Read a web-features style dataset from disk.

    Accepts either a bare ``id -> feature`` mapping or the packaged layout
    with a top-level ``features`` key.

    Raises:
        DatasetUnavailableError: If the file is missing or not valid JSON
    """
    dataset_path = Path(path) if path is not None else DEFAULT_DATASET_PATH

    try:
        with open(dataset_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise DatasetUnavailableError(
            f"Feature dataset not found: {dataset_path}", path=str(dataset_path)
        )
    except (OSError, json.JSONDecodeError) as e:
        raise DatasetUnavailableError(
            f"Failed to read feature dataset: {e}", path=str(dataset_path)
        )

    if isinstance(data, dict) and isinstance(data.get("features"), dict):
        data = data["features"]
    if not isinstance(data, dict):
        raise DatasetUnavailableError(
            "Feature dataset root must be a mapping", path=str(dataset_path)
        )

    return data


async def load_feature_dataset(path: Optional[Union[str, Path]] = None) -> Dict[str, Dict[str, Any]]:
    """Async dataset loader; the blocking read runs in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, read_feature_dataset, path)


def extract_tags(name: str, description: str) -> List[str]:
    """Keywords from TAG_KEYWORDS that occur in the name or description."""
    text = f"{name or ''} {description or ''}".lower()
    return [keyword for keyword in TAG_KEYWORDS if keyword in text]


class FeatureKnowledgeBase:
    """
    In-memory index over web-platform feature records.

    Indices:
    - baseline status -> ids
    - browser -> integer version -> ids
    - category (dataset category, else first group, else "general") -> ids
    - keyword tag -> ids
    - lowercase name -> id

    Initialisation is asynchronous and starts on the first wait_for_ready()
    (or an explicit initialize()). Hosts that already hold the raw data can
    use from_features() to get a ready instance synchronously.
    """

    def __init__(
        self,
        loader: Optional[FeatureLoader] = None,
        settings: Optional[BaselineSettings] = None,
    ):
        self._loader: FeatureLoader = loader or load_feature_dataset
        self.settings = settings or BaselineSettings()

        self._features: Dict[str, FeatureRecord] = {}
        self._baseline_index: Dict[Baseline, List[str]] = {}
        self._browser_index: Dict[str, Dict[int, List[str]]] = {}
        self._category_index: Dict[str, List[str]] = {}
        self._tag_index: Dict[str, List[str]] = {}
        self._name_index: Dict[str, str] = {}

        self._ready = False
        self._init_task: Optional["asyncio.Future[None]"] = None
        self.load_error: Optional[Exception] = None

    @classmethod
    def from_features(
        cls,
        raw_features: Mapping[str, Dict[str, Any]],
        settings: Optional[BaselineSettings] = None,
    ) -> "FeatureKnowledgeBase":
        """Build a ready knowledge base from an ``id -> raw fields`` mapping."""
        kb = cls(settings=settings)
        kb._build_indices(raw_features)
        kb._ready = True
        return kb

    @property
    def is_ready(self) -> bool:
        return self._ready

    def __len__(self) -> int:
        return len(self._features)

    # Lifecycle

    async def initialize(self) -> None:
        """
        Load the dataset and build the indices.

        Any loader failure is logged and leaves the base ready but empty.
        """
        if self._ready:
            return

        try:
            raw = await self._loader()
            self._build_indices(raw)
            logger.info(f"Feature knowledge base ready with {len(self._features)} features")
        except Exception as e:
            self.load_error = e
            self._clear_indices()
            logger.error(
                f"Failed to load feature dataset, continuing with an empty index: {e}"
            )

        self._ready = True

    def start(self) -> None:
        """Schedule initialisation on the running loop if not already scheduled."""
        if self._ready or self._init_task is not None:
            return
        self._init_task = asyncio.ensure_future(self.initialize())

    async def wait_for_ready(self, timeout: Optional[float] = None) -> None:
        """
        Wait until the knowledge base is ready, polling every 100ms.

        Args:
            timeout: Seconds to wait (default: settings.ready_timeout)

        Raises:
            ReadinessTimeoutError: If not ready within the budget
        """
        if self._ready:
            return

        budget = self.settings.ready_timeout if timeout is None else timeout
        self.start()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + budget
        while not self._ready:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ReadinessTimeoutError(budget)
            await asyncio.sleep(min(READY_POLL_INTERVAL, remaining))

    async def shutdown(self) -> None:
        """Cancel a pending initialisation, if any."""
        task = self._init_task
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._init_task = None
        logger.debug("Pending knowledge base initialisation cancelled")

    # Index construction

    def _clear_indices(self) -> None:
        self._features = {}
        self._baseline_index = {}
        self._browser_index = {}
        self._category_index = {}
        self._tag_index = {}
        self._name_index = {}

    def _build_indices(self, raw_features: Mapping[str, Dict[str, Any]]) -> None:
        self._clear_indices()

        for feature_id, raw in raw_features.items():
            if not isinstance(raw, dict):
                logger.warning(f"Skipping malformed feature entry: {feature_id}")
                continue
            self._add(FeatureRecord.from_raw(feature_id, raw))

    def _add(self, feature: FeatureRecord) -> None:
        fid = feature.id
        self._features[fid] = feature

        self._baseline_index.setdefault(feature.baseline, []).append(fid)

        for browser, version in feature.support.items():
            try:
                version_number = int(version.split(".")[0])
            except ValueError:
                # Ranged values such as "≤79" have no exact version
                continue
            self._browser_index.setdefault(browser, {}).setdefault(version_number, []).append(fid)

        self._category_index.setdefault(feature.category_key, []).append(fid)

        for tag in extract_tags(feature.name, feature.description):
            self._tag_index.setdefault(tag, []).append(fid)

        if feature.name:
            self._name_index[feature.name.lower()] = fid

    # Queries

    def get_feature(self, feature_id: str) -> Optional[FeatureRecord]:
        """O(1) lookup by exact id."""
        return self._features.get(feature_id)

    def require_feature(self, feature_id: str) -> FeatureRecord:
        """
        Lookup that fails loudly.

        Raises:
            UnknownFeatureError: If the id is not in the dataset
        """
        feature = self._features.get(feature_id)
        if feature is None:
            raise UnknownFeatureError(feature_id)
        return feature

    def get_all_features(self) -> List[FeatureRecord]:
        return list(self._features.values())

    def _records(self, ids: Iterable[str]) -> List[FeatureRecord]:
        return [self._features[fid] for fid in ids]

    async def search(self, query: str) -> List[FeatureRecord]:
        """
        Union of exact id, exact name, id/name substring and tag matches.

        Results keep that order and contain each feature once.
        """
        await self.wait_for_ready()
        needle = query.strip().lower()
        if not needle:
            return []

        results: Dict[str, None] = {}

        if needle in self._features:
            results[needle] = None
        if needle in self._name_index:
            results[self._name_index[needle]] = None

        for fid, feature in self._features.items():
            if needle in fid.lower() or needle in feature.name.lower():
                results[fid] = None

        for fid in self._tag_index.get(needle, []):
            results[fid] = None

        return self._records(results)

    async def get_by_baseline(self, status: Union[str, Baseline]) -> List[FeatureRecord]:
        await self.wait_for_ready()
        return self._records(self._baseline_index.get(normalize_baseline(status), []))

    async def get_by_category(self, category: str) -> List[FeatureRecord]:
        await self.wait_for_ready()
        return self._records(self._category_index.get(category, []))

    async def get_supported_in(self, browser: str, version: int) -> List[FeatureRecord]:
        """Features whose minimum version for ``browser`` is at most ``version``."""
        await self.wait_for_ready()
        by_version = self._browser_index.get(browser.lower(), {})
        ids: Dict[str, None] = {}
        for minimum in sorted(by_version):
            if minimum > version:
                break
            for fid in by_version[minimum]:
                ids[fid] = None
        return self._records(ids)

    async def get_similar_features(self, feature_id: str) -> List[FeatureRecord]:
        """
        Coarse related-features listing.

        Same category scores 3, same baseline scores 1; top 10 by score.
        """
        await self.wait_for_ready()
        feature = self._features.get(feature_id)
        if feature is None:
            return []

        scores: Dict[str, int] = {}

        if feature.category or feature.groups:
            for fid in self._category_index.get(feature.category_key, []):
                if fid != feature_id:
                    scores[fid] = scores.get(fid, 0) + 3

        for fid in self._baseline_index.get(feature.baseline, []):
            if fid != feature_id:
                scores[fid] = scores.get(fid, 0) + 1

        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)[:10]
        return [self._features[fid] for fid, _ in ranked]

    def stats(self) -> Dict[str, Any]:
        """Index sizes, for diagnostics."""
        return {
            'ready': self._ready,
            'features': len(self._features),
            'by_baseline': {b.value: len(ids) for b, ids in self._baseline_index.items()},
            'categories': len(self._category_index),
            'browsers': sorted(self._browser_index),
            'tags': len(self._tag_index),
            'load_error': str(self.load_error) if self.load_error else None,
        }


def create_knowledge_base(
    config: Optional[Dict[str, Any]] = None,
    settings: Optional[BaselineSettings] = None,
) -> FeatureKnowledgeBase:
    """
    Factory function to create a FeatureKnowledgeBase.

    Args:
        config: Optional dict; 'dataset_path' overrides the bundled dataset
        settings: Injected baseline settings

    Returns:
        FeatureKnowledgeBase: Not yet initialised; first wait_for_ready() loads it
    """
    dataset_path = (config or {}).get('dataset_path')

    async def loader() -> Dict[str, Dict[str, Any]]:
        return await load_feature_dataset(dataset_path)

    return FeatureKnowledgeBase(loader=loader, settings=settings)
