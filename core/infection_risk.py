"""Infection risk from image color heuristics and the latest symptom log.

Both contributions are clamped separately, summed, and clamped again to [0, 1].
Recommendations depend only on the resulting level.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from core import constants
from core.image_preprocessor import ImagePreprocessor
from core.utils import (
    InfectionRiskAssessment,
    PhotoRecord,
    RiskLevel,
    SymptomLog,
    clamp,
    risk_level_from_score,
)

logger = logging.getLogger("woundscan.infection_risk")


def color_fractions(
    tensor: np.ndarray, margin: float = constants.COLOR_DOMINANCE_MARGIN
) -> Dict[str, float]:
    """Fraction of pixels that are red-dominant and yellow (red+green over blue)."""
    rgb = ImagePreprocessor.to_rgb(tensor)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    redness = (r > g + margin) & (r > b + margin)
    slough = (r > b + margin) & (g > b + margin) & ~redness
    total = float(r.size) or 1.0
    return {
        "redness": float(np.count_nonzero(redness)) / total,
        "slough": float(np.count_nonzero(slough)) / total,
    }


def heuristic_score(fractions: Dict[str, float]) -> Tuple[float, List[str]]:
    """Score color fractions against COLOR_RISK_RULES."""
    from i18n import t

    score = 0.0
    factors = []
    for name, (threshold, weight) in constants.COLOR_RISK_RULES.items():
        fraction = fractions.get(name, 0.0)
        if fraction > threshold:
            score += min(weight, fraction)
            factors.append(t(f"risk.factor.image_{name}", pct=round(fraction * 100)))
    return clamp(score, 0.0, constants.HEURISTIC_MAX), factors


def symptom_score(log: Optional[SymptomLog]) -> Tuple[float, List[str]]:
    """Score symptom flags. No log means no signal, not "no risk"."""
    from i18n import t

    if log is None:
        return 0.0, []

    flags = {
        "redness": log.has_redness,
        "swelling": log.has_swelling,
        "purulent_drainage": log.has_purulent_drainage,
    }
    score = 0.0
    factors = []
    for name, present in flags.items():
        if present:
            score += constants.SYMPTOM_WEIGHTS[name]
            factors.append(t(f"risk.factor.{name}"))
    return clamp(score), factors


def recommendations_for(level: RiskLevel) -> List[str]:
    from i18n import t
    return [t(key) for key in constants.RECOMMENDATION_KEYS[level.value]]


class InfectionRiskAssessor:
    async def assess_risk(
        self,
        tensor: np.ndarray,
        latest_log: Optional[SymptomLog] = None,
        previous: Optional[PhotoRecord] = None,
    ) -> InfectionRiskAssessment:
        try:
            fractions = await asyncio.to_thread(color_fractions, tensor)
            return self.combine(fractions, latest_log, previous)
        except Exception as e:
            logger.warning("Infection risk assessment failed: %s", e)
            return InfectionRiskAssessment.fallback(str(e))

    @staticmethod
    def combine(
        fractions: Dict[str, float],
        latest_log: Optional[SymptomLog] = None,
        previous: Optional[PhotoRecord] = None,
    ) -> InfectionRiskAssessment:
        from i18n import t

        image_score, image_factors = heuristic_score(fractions)
        log_score, log_factors = symptom_score(latest_log)
        score = clamp(image_score + log_score)
        level = risk_level_from_score(score)
        factors = image_factors + log_factors

        if (
            previous is not None
            and previous.infection_risk_score is not None
            and score - previous.infection_risk_score > constants.RISK_INCREASE_MARGIN
        ):
            factors.append(t(
                "risk.factor.risk_increased",
                previous=f"{previous.infection_risk_score:.2f}",
                current=f"{score:.2f}",
            ))

        logger.debug("Infection risk %.2f (%s), image=%.2f log=%.2f",
                     score, level.value, image_score, log_score)
        return InfectionRiskAssessment(
            risk_score=score,
            risk_level=level,
            risk_factors=factors,
            recommendations=recommendations_for(level),
        )
