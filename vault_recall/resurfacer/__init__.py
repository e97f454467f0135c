"""
Smart resurfacing of forgotten notes.

Components:
- scoring: Relevance, staleness and connectivity sub-scores + composite
- resurfacer: Daily digest and contextual "related notes" queries
"""

from .scoring import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    composite,
    connectivity_boost,
    relevance,
    staleness,
)
from .resurfacer import Resurfacer, ResurfacedNote

__all__ = [
    "DEFAULT_WEIGHTS",
    "ScoringWeights",
    "composite",
    "connectivity_boost",
    "relevance",
    "staleness",
    "Resurfacer",
    "ResurfacedNote",
]
