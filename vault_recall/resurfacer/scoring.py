"""
Scoring functions for the resurfacer.

Combines topical relevance, staleness and connectivity into one composite
score used to rank "forgotten" notes.

Formula:
    composite = w_r × relevance + w_s × staleness + w_c × connectivity_boost

Default weights: relevance 0.5, staleness 0.35, connectivity 0.15 (sum 1.0).
All functions are pure.
"""

import math
import time
from dataclasses import dataclass
from typing import Optional

from ..utils import days_since

# Time constant (days) of the staleness curve 1 - e^(-days / τ)
# - 7 days: ~0.30
# - 14 days: ~0.50
# - 30 days: ~0.78
# - 90 days: ~0.99
STALENESS_TIME_CONSTANT_DAYS = 20.0


@dataclass(frozen=True)
class ScoringWeights:
    """Linear weights of the composite score (should sum to 1.0)"""
    relevance: float = 0.5
    staleness: float = 0.35
    connectivity: float = 0.15

    @property
    def total(self) -> float:
        return self.relevance + self.staleness + self.connectivity


DEFAULT_WEIGHTS = ScoringWeights()


def relevance(similarity: float) -> float:
    """Clamp a similarity value to [0, 1]"""
    return min(max(similarity, 0.0), 1.0)


def staleness(
    last_modified: float,
    now: Optional[float] = None,
    time_constant_days: float = STALENESS_TIME_CONSTANT_DAYS,
) -> float:
    """
    Staleness score: 0 for a note modified just now, approaching 1 with age.

    Args:
        last_modified: Modification time (epoch seconds)
        now: Reference time (epoch seconds, default: current time)
        time_constant_days: Decay time constant τ in days

    Returns:
        1 - e^(-days / τ); timestamps in the future count as 0 days
    """
    if now is None:
        now = time.time()
    days = max(days_since(last_modified, now), 0.0)
    return 1.0 - math.exp(-days / time_constant_days)


def connectivity_boost(backlink_count: int) -> float:
    """
    Boost for poorly connected notes (rewards isolation, not popularity).

    0 backlinks → 1.0, 1 → 0.5, 2-3 → 0.2, 4+ → 0.0
    """
    if backlink_count <= 0:
        return 1.0
    if backlink_count == 1:
        return 0.5
    if backlink_count <= 3:
        return 0.2
    return 0.0


def composite(
    relevance_score: float,
    staleness_score: float,
    boost: float,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Weighted linear sum of the three sub-scores"""
    return (
        relevance_score * weights.relevance
        + staleness_score * weights.staleness
        + boost * weights.connectivity
    )
