"""
Unit tests for resurfacing score functions.
"""

import math

import pytest
from vault_recall.resurfacer.scoring import (
    DEFAULT_WEIGHTS,
    STALENESS_TIME_CONSTANT_DAYS,
    ScoringWeights,
    composite,
    connectivity_boost,
    relevance,
    staleness,
)

DAY = 24 * 60 * 60


class TestRelevance:
    """Test similarity clamping"""
    
    @pytest.mark.parametrize("similarity,expected", [
        (-0.5, 0.0),
        (0.0, 0.0),
        (0.42, 0.42),
        (1.0, 1.0),
        (1.7, 1.0),
    ])
    def test_clamped(self, similarity, expected):
        assert relevance(similarity) == expected


class TestStaleness:
    """Test the 1 - e^(-days/20) staleness curve"""
    
    def test_reference_points(self, now):
        """~0.3 after a week, ~0.5 after two weeks, >0.95 after 90 days"""
        assert staleness(now - 7 * DAY, now) == pytest.approx(0.3, abs=0.01)
        assert staleness(now - 14 * DAY, now) == pytest.approx(0.5, abs=0.01)
        assert staleness(now - 90 * DAY, now) > 0.95
    
    def test_just_modified(self, now):
        assert staleness(now, now) == 0.0
    
    def test_future_timestamp(self, now):
        """Clock skew never produces negative staleness"""
        assert staleness(now + 3 * DAY, now) == 0.0
    
    def test_monotonic(self, now):
        """Older notes are always staler"""
        values = [staleness(now - days * DAY, now) for days in (0, 1, 7, 30, 90, 365)]
        assert values == sorted(values)
        assert all(0.0 <= v < 1.0 for v in values)
    
    def test_formula(self, now):
        expected = 1 - math.exp(-30 / STALENESS_TIME_CONSTANT_DAYS)
        assert staleness(now - 30 * DAY, now) == pytest.approx(expected)
    
    def test_tunable_time_constant(self, now):
        """A longer time constant decays more slowly"""
        slow = staleness(now - 10 * DAY, now, time_constant_days=40)
        fast = staleness(now - 10 * DAY, now, time_constant_days=10)
        assert slow < fast


class TestConnectivityBoost:
    """Test the backlink step function"""
    
    @pytest.mark.parametrize("backlinks,expected", [
        (0, 1.0),
        (1, 0.5),
        (2, 0.2),
        (3, 0.2),
        (4, 0.0),
        (50, 0.0),
    ])
    def test_steps(self, backlinks, expected):
        assert connectivity_boost(backlinks) == expected


class TestComposite:
    """Test weighted composite score"""
    
    def test_default_weights(self):
        """Defaults are 0.5 / 0.35 / 0.15 and sum to 1"""
        assert DEFAULT_WEIGHTS == ScoringWeights(relevance=0.5, staleness=0.35, connectivity=0.15)
        assert DEFAULT_WEIGHTS.total == pytest.approx(1.0)
    
    def test_weighted_sum(self):
        score = composite(0.4, 0.6, 1.0)
        assert score == pytest.approx(0.4 * 0.5 + 0.6 * 0.35 + 1.0 * 0.15)
    
    def test_extremes(self):
        assert composite(0.0, 0.0, 0.0) == 0.0
        assert composite(1.0, 1.0, 1.0) == pytest.approx(1.0)
    
    def test_custom_weights(self):
        """Weights are configurable"""
        only_staleness = ScoringWeights(relevance=0.0, staleness=1.0, connectivity=0.0)
        assert composite(0.9, 0.25, 1.0, only_staleness) == pytest.approx(0.25)
