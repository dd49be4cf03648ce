"""Tests for core.healing_trend module."""

from datetime import datetime, timedelta

import pytest

from core.healing_trend import (
    HealingTrendPredictor,
    prediction_confidence,
    trend_from_areas,
)
from core.utils import HealingTrend, PhotoRecord

DAY0 = datetime(2026, 1, 1, 10, 0)


def photo(day, area=None):
    return PhotoRecord(date_taken=DAY0 + timedelta(days=day), wound_area_cm2=area)


class TestInsufficientData:
    @pytest.mark.parametrize("history", [[], [photo(0, 5.0)], None])
    def test_zero_or_one_entry(self, history):
        result = HealingTrendPredictor.predict(history)
        assert result.predicted_healing_days == 0
        assert result.confidence_level == 0.0
        assert result.trend == HealingTrend.INSUFFICIENT_DATA
        assert result.trend_analysis == "Insufficient data for prediction"

    def test_entries_without_area_ignored(self):
        result = HealingTrendPredictor.predict([photo(0, 5.0), photo(3), photo(6)])
        assert result.trend == HealingTrend.INSUFFICIENT_DATA


class TestPrediction:
    def test_reference_case(self):
        result = HealingTrendPredictor.predict([photo(0, 10.0), photo(10, 5.0)])
        assert result.daily_reduction_rate == pytest.approx(0.5)
        assert result.predicted_healing_days == 10
        assert result.confidence_level == 0.5
        assert result.trend == HealingTrend.EXCELLENT
        assert result.trend_analysis == "Excellent healing progress"

    def test_unsorted_history_is_sorted(self):
        result = HealingTrendPredictor.predict([photo(10, 5.0), photo(0, 10.0)])
        assert result.daily_reduction_rate == pytest.approx(0.5)
        assert result.predicted_healing_days == 10

    def test_short_span_uses_one_day_minimum(self):
        history = [
            PhotoRecord(DAY0, 4.0),
            PhotoRecord(DAY0 + timedelta(hours=2), 3.0),
        ]
        result = HealingTrendPredictor.predict(history)
        assert result.daily_reduction_rate == pytest.approx(1.0)
        assert result.predicted_healing_days == 3

    def test_zero_reduction_is_slow_not_excellent(self):
        result = HealingTrendPredictor.predict([photo(0, 6.0), photo(7, 6.0)])
        assert result.trend in (HealingTrend.SLOW, HealingTrend.WORSENING)
        assert result.trend != HealingTrend.EXCELLENT
        assert result.daily_reduction_rate == 0.0
        # flat trend extrapolates to an inconclusive, very large value
        assert result.predicted_healing_days == 6000

    def test_growing_wound(self):
        result = HealingTrendPredictor.predict([photo(0, 4.0), photo(4, 6.0)])
        assert result.daily_reduction_rate == pytest.approx(-0.5)
        assert result.trend == HealingTrend.WORSENING
        assert result.predicted_healing_days >= 0

    def test_healed_wound(self):
        result = HealingTrendPredictor.predict([photo(0, 4.0), photo(4, 0.0)])
        assert result.predicted_healing_days == 0
        assert result.trend == HealingTrend.EXCELLENT


class TestTrendBands:
    @pytest.mark.parametrize("areas,expected", [
        ([10.0, 6.0], HealingTrend.EXCELLENT),
        ([10.0, 8.0], HealingTrend.GOOD),
        ([10.0, 9.3], HealingTrend.MODERATE),
        ([10.0, 9.8], HealingTrend.SLOW),
        ([10.0, 10.0], HealingTrend.SLOW),
        ([10.0, 10.5], HealingTrend.WORSENING),
        ([10.0], HealingTrend.INSUFFICIENT_DATA),
    ])
    def test_bands(self, areas, expected):
        assert trend_from_areas(areas) == expected

    def test_zero_first_area(self):
        assert trend_from_areas([0.0, 0.0]) == HealingTrend.SLOW
        assert trend_from_areas([0.0, 1.0]) == HealingTrend.WORSENING


class TestConfidence:
    def test_default_below_three(self):
        assert prediction_confidence([5.0, 4.0]) == 0.5

    def test_perfectly_consistent_is_capped(self):
        assert prediction_confidence([10.0, 8.0, 6.0, 4.0]) == 0.95

    def test_inconsistent_has_lower_confidence(self):
        # differences 1 and 5 -> variance 4 -> 1/5
        assert prediction_confidence([10.0, 9.0, 4.0]) == pytest.approx(0.2)

    def test_floor(self):
        assert prediction_confidence([10.0, 0.0, 10.0, 0.0]) == 0.1

    def test_reported_by_predictor(self):
        history = [photo(0, 10.0), photo(5, 9.0), photo(10, 4.0)]
        result = HealingTrendPredictor.predict(history)
        assert result.confidence_level == pytest.approx(0.2)


class TestAsyncPredict:
    @pytest.mark.asyncio
    async def test_predict_healing(self):
        result = await HealingTrendPredictor().predict_healing([photo(0, 10.0), photo(10, 5.0)])
        assert result.predicted_healing_days == 10
