"""
VendorPulse API Dependencies

Dependency injection for the clock, LLM client, knowledge store and the
per-action busy flags. Tests override these via ``app.dependency_overrides``.
"""

from datetime import datetime
from functools import lru_cache

from assistant.client import LLMClient, build_default_client
from assistant.guard import InFlightGuard
from core.config import get_settings
from knowledge.store import KnowledgeStore

_guard = InFlightGuard()


def get_clock() -> datetime:
    """Reference "now" for past-due and trend-window computations."""
    return datetime.now()


@lru_cache
def _default_llm_client() -> LLMClient:
    return build_default_client()


def get_llm_client() -> LLMClient:
    return _default_llm_client()


def get_knowledge_store() -> KnowledgeStore:
    return KnowledgeStore(get_settings().knowledge_store_path)


def get_guard() -> InFlightGuard:
    return _guard
