"""Shared fixtures for Baseline Navigator tests."""

import asyncio

import pytest

from baseline_navigator.core.knowledge_base import FeatureKnowledgeBase, read_feature_dataset
from baseline_navigator.core.patterns import PatternRegistry
from baseline_navigator.utils.config import BaselineSettings


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced time source for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def _hanging_loader():
    await asyncio.Event().wait()


async def _failing_loader():
    raise OSError("disk on fire")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_dataset():
    """The bundled feature dataset, read once per session."""
    return read_feature_dataset()


@pytest.fixture
def settings():
    """Default BaselineSettings."""
    return BaselineSettings()


@pytest.fixture
def registry():
    """PatternRegistry over the default catalog."""
    return PatternRegistry()


@pytest.fixture
def kb(raw_dataset, settings):
    """Ready knowledge base over the bundled dataset."""
    return FeatureKnowledgeBase.from_features(raw_dataset, settings=settings)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def slow_settings():
    """Settings with a short readiness budget for timeout tests."""
    return BaselineSettings(ready_timeout=0.05)


@pytest.fixture
def hanging_loader():
    """Dataset loader that never completes."""
    return _hanging_loader


@pytest.fixture
def failing_loader():
    """Dataset loader that always raises."""
    return _failing_loader
