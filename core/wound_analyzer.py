"""Wound photo analysis: type, area, infection risk and healing trend.

Preprocessing runs once per photo. Classification, area estimation and
infection risk then run concurrently on the shared read-only tensor, while the
healing trend is computed from history alone. Scores are approximate and are
not a clinical assessment.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Optional, Sequence

from core.area_estimator import AreaEstimator
from core.classification import WoundClassifier
from core.healing_trend import HealingTrendPredictor
from core.image_preprocessor import ImagePreprocessor
from core.inference_engine import InferenceEngine
from core.infection_risk import InfectionRiskAssessor
from core.model_manager import ModelProvisioner
from core.utils import (
    AnalysisConfig,
    HealingPrediction,
    InfectionRiskAssessment,
    PhotoRecord,
    ProcessingError,
    ProgressCallback,
    SymptomLog,
    WoundAnalysisResult,
    WoundClassification,
    clamp,
    require_image_path,
)

logger = logging.getLogger("woundscan.wound_analyzer")


def overall_confidence(
    classification: WoundClassification, infection_risk: InfectionRiskAssessment
) -> float:
    """Average of classification confidence and how decisive the risk score is.

    A risk score of 0.5 contributes nothing; 0.0 or 1.0 contribute fully.
    A stage that fell back contributes nothing either.
    """
    confidence = 0.0 if classification.error_message else classification.confidence
    if infection_risk.error_message:
        decisiveness = 0.0
    else:
        decisiveness = abs(infection_risk.risk_score - 0.5) * 2
    return clamp((confidence + decisiveness) / 2)


class WoundAnalyzer:
    """Public entry point of the analysis pipeline."""

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        engine: Optional[InferenceEngine] = None,
        provisioner: Optional[ModelProvisioner] = None,
    ):
        self.config = config or AnalysisConfig()
        self.engine = engine or InferenceEngine(
            provisioner=provisioner,
            classification_model=self.config.classification_model,
            segmentation_model=self.config.segmentation_model,
        )
        self._classifier = WoundClassifier(self.engine)
        self._area_estimator = AreaEstimator(
            self.engine,
            fallback_delay_s=self.config.fallback_delay_s,
            seed=self.config.random_seed,
        )
        self._risk_assessor = InfectionRiskAssessor()
        self._trend_predictor = HealingTrendPredictor()

    async def analyze(
        self,
        wound_id: int,
        history: Optional[Sequence[PhotoRecord]],
        primary_image_path: str,
        latest_log: Optional[SymptomLog] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> WoundAnalysisResult:
        """Analyze one wound photo.

        Raises InputError if the image path is empty or the file does not
        exist. Every other failure is reported through error_message on an
        otherwise valid result. A photo that cannot be decoded still gets a
        healing prediction and a fallback area.
        """
        from i18n import t

        def report(step, total, msg):
            if on_progress:
                on_progress(step, total, msg)

        image_path = str(require_image_path(primary_image_path))
        history = list(history or ())
        start_time = time.time()

        try:
            trend_task = asyncio.ensure_future(
                self._trend_predictor.predict_healing(history)
            )
            try:
                report(1, 3, t("progress.preprocessing"))
                error_message = ""
                try:
                    tensor = await asyncio.to_thread(
                        ImagePreprocessor.preprocess,
                        image_path,
                        self.config.input_width,
                        self.config.input_height,
                    )
                except ProcessingError as e:
                    logger.warning("Wound %s photo not decoded: %s", wound_id, e)
                    tensor = None
                    error_message = t("analysis.decode_failed", error=e)

                report(2, 3, t("progress.analyzing"))
                if tensor is None:
                    classification = WoundClassification.fallback(error_message)
                    infection_risk = InfectionRiskAssessment.fallback(error_message)
                    area, estimated = await self._area_estimator.fallback_area(), True
                else:
                    previous = max(history, key=lambda p: p.date_taken) if history else None
                    classification, (area, estimated), infection_risk = await asyncio.gather(
                        self._classifier.classify(tensor),
                        self._area_estimator.estimate_area_detailed(tensor),
                        self._risk_assessor.assess_risk(tensor, latest_log, previous),
                    )
                healing = await trend_task
            finally:
                if not trend_task.done():
                    trend_task.cancel()

            report(3, 3, t("progress.done"))
            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.info(
                "Wound %s analyzed in %d ms: %s (%.2f), %.2f cm², risk %s",
                wound_id, elapsed_ms, classification.primary_type.value,
                classification.confidence, area, infection_risk.risk_level.value,
            )

            return WoundAnalysisResult(
                wound_id=wound_id,
                wound_area_cm2=area,
                classification=classification,
                infection_risk=infection_risk,
                healing_prediction=healing,
                confidence_score=overall_confidence(classification, infection_risk),
                analysis_date=datetime.now(),
                error_message=error_message,
                area_is_estimated=estimated,
                processing_time_ms=elapsed_ms,
                model_name=self.config.classification_model,
                input_path=image_path,
            )

        except Exception as e:
            logger.exception("Wound %s analysis failed", wound_id)
            message = t("analysis.failed", error=e)
            return WoundAnalysisResult(
                wound_id=wound_id,
                classification=WoundClassification.fallback(message),
                infection_risk=InfectionRiskAssessment.fallback(message),
                healing_prediction=HealingPrediction.fallback(message),
                confidence_score=0.0,
                analysis_date=datetime.now(),
                error_message=message,
                processing_time_ms=int((time.time() - start_time) * 1000),
                model_name=self.config.classification_model,
                input_path=image_path,
            )
