"""Wound type classification stage."""

import asyncio
import logging

import numpy as np

from core.inference_engine import InferenceEngine
from core.utils import ResourceUnavailableError, WoundClassification, WoundType

logger = logging.getLogger("woundscan.classification")


def stable_softmax(logits: np.ndarray) -> np.ndarray:
    """Softmax with the maximum logit subtracted first to avoid overflow."""
    shifted = np.asarray(logits, dtype=np.float64) - np.max(logits)
    exp = np.exp(shifted)
    return exp / exp.sum()


class WoundClassifier:
    """Maps classification model output to a WoundClassification."""

    def __init__(self, engine: InferenceEngine):
        self._engine = engine

    async def classify(self, tensor: np.ndarray) -> WoundClassification:
        """Classify a preprocessed tensor. Never raises; degrades to a fallback."""
        from i18n import t

        try:
            logits = await asyncio.to_thread(self._engine.run_classification, tensor)
        except ResourceUnavailableError as e:
            logger.warning("Classification skipped: %s", e)
            return WoundClassification.fallback(t("classification.model_unavailable"))
        except Exception as e:
            logger.warning("Classification inference failed: %s", e)
            return WoundClassification.fallback(t("classification.inference_failed", error=e))

        return self.interpret(logits)

    @staticmethod
    def interpret(logits: np.ndarray) -> WoundClassification:
        """Turn raw logits into a primary type, confidence and alternatives."""
        from i18n import t

        labels = WoundType.model_labels()
        logits = np.asarray(logits, dtype=np.float64).reshape(-1)
        if logits.size == 0 or not np.all(np.isfinite(logits)):
            return WoundClassification.fallback(
                t("classification.inference_failed", error="invalid model output")
            )

        probs = stable_softmax(logits)
        index = int(np.argmax(probs))
        if index >= len(labels):
            logger.warning("Classification index %d out of range", index)
            return WoundClassification.fallback(
                t("classification.index_out_of_range", index=index, count=len(labels))
            )

        primary = labels[index]
        alternatives = {
            labels[i]: float(p)
            for i, p in enumerate(probs[: len(labels)])
            if i != index
        }
        logger.debug("Classified as %s (%.3f)", primary.value, probs[index])
        return WoundClassification(
            primary_type=primary,
            confidence=float(probs[index]),
            alternative_types=alternatives,
        )
