"""Shared fixtures for docforge tests."""

import pytest

from docforge.config import EngineConfig
from docforge.validation import RuleEngine, RuleRegistry, clear_cache


@pytest.fixture(autouse=True)
def reset_registry():
    """Restore built-in rules and drop cached descriptors around each test."""
    RuleRegistry.reset()
    clear_cache()
    yield
    RuleRegistry.reset()
    clear_cache()


@pytest.fixture
def engine():
    return RuleEngine(config=EngineConfig())


@pytest.fixture
def strict_engine():
    return RuleEngine(config=EngineConfig(strict_rules=True))
