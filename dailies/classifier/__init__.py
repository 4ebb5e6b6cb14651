"""Klassifizierung: Signale, Confidence, Resolver, Cache und Orchestrator."""

from dailies.classifier.cache import ClassificationCache
from dailies.classifier.orchestrator import (
    ClassificationOrchestrator,
    ClassificationResult,
    ConsensusInfo,
)
from dailies.classifier.resolver import CategoryResolution, CategoryResolver, MatchType

__all__ = [
    "CategoryResolution",
    "CategoryResolver",
    "ClassificationCache",
    "ClassificationOrchestrator",
    "ClassificationResult",
    "ConsensusInfo",
    "MatchType",
]
