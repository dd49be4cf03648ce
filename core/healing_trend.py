"""Healing trajectory from the wound's photo history.

Predictions are extrapolations of a linear area trend. Very large day counts
mean the trend is flat or worsening and should be read as inconclusive.
"""

import logging
from typing import List, Sequence

import numpy as np

from core import constants
from core.utils import HealingPrediction, HealingTrend, PhotoRecord, clamp

logger = logging.getLogger("woundscan.healing_trend")

SECONDS_PER_DAY = 86400.0


def trend_from_areas(areas: Sequence[float]) -> HealingTrend:
    """Band the percentage reduction from first to last measurement."""
    if len(areas) < 2:
        return HealingTrend.INSUFFICIENT_DATA

    first, last = areas[0], areas[-1]
    if first <= 0:
        return HealingTrend.SLOW if last <= first else HealingTrend.WORSENING

    reduction_pct = (first - last) / first * 100
    for minimum, trend in constants.TREND_BANDS:
        if reduction_pct >= minimum:
            return HealingTrend(trend)
    return HealingTrend.WORSENING


def prediction_confidence(areas: Sequence[float]) -> float:
    """Consistency of successive area changes: 1 / (1 + variance), bounded."""
    if len(areas) < 3:
        return constants.DEFAULT_TREND_CONFIDENCE

    differences = -np.diff(np.asarray(areas, dtype=np.float64))
    variance = float(np.var(differences))
    low, high = constants.TREND_CONFIDENCE_BOUNDS
    return clamp(1.0 / (1.0 + variance), low, high)


class HealingTrendPredictor:
    async def predict_healing(self, history: Sequence[PhotoRecord]) -> HealingPrediction:
        try:
            return self.predict(history)
        except Exception as e:
            logger.warning("Healing prediction failed: %s", e)
            return HealingPrediction.fallback(str(e))

    @staticmethod
    def predict(history: Sequence[PhotoRecord]) -> HealingPrediction:
        from i18n import t

        measured: List[PhotoRecord] = sorted(
            (p for p in history or () if p.wound_area_cm2 is not None),
            key=lambda p: p.date_taken,
        )
        if len(measured) < 2:
            return HealingPrediction.insufficient_data()

        areas = [float(p.wound_area_cm2) for p in measured]
        elapsed_days = (
            measured[-1].date_taken - measured[0].date_taken
        ).total_seconds() / SECONDS_PER_DAY

        daily_rate = (areas[0] - areas[-1]) / max(elapsed_days, constants.MIN_ELAPSED_DAYS)
        predicted_days = areas[-1] / max(daily_rate, constants.MIN_DAILY_RATE)
        trend = trend_from_areas(areas)

        logger.debug("Healing rate %.4f cm²/day over %d measurements", daily_rate, len(areas))
        return HealingPrediction(
            predicted_healing_days=max(0, int(round(predicted_days))),
            confidence_level=prediction_confidence(areas),
            trend=trend,
            trend_analysis=t(f"trend.{trend.value}"),
            daily_reduction_rate=daily_rate,
        )
