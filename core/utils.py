"""Shared utilities, dataclasses, errors, and platform-specific paths."""

import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from core import constants


# --- Type aliases ---

ProgressCallback = Callable[[int, int, str], None]  # (step, total, message)


# --- Errors ---

class WoundAnalysisError(Exception):
    """Base class for pipeline errors."""


class InputError(WoundAnalysisError):
    """Caller misuse: missing image path or file. Always propagated."""


class ResourceUnavailableError(WoundAnalysisError):
    """A model or the inference engine is not available."""


class ProcessingError(WoundAnalysisError):
    """Decode or inference failure inside a single stage."""


class DecodeError(ProcessingError):
    """Image format unrecognized or file corrupt."""


# --- Enums ---

class WoundType(Enum):
    # Declaration order is the classification model's output order
    ABRASIONS = "Abrasions"
    BRUISES = "Bruises"
    BURNS = "Burns"
    CUT = "Cut"
    DIABETIC_WOUNDS = "Diabetic Wounds"
    LACERATION = "Laceration"
    NORMAL = "Normal"
    PRESSURE_WOUNDS = "Pressure Wounds"
    SURGICAL_WOUNDS = "Surgical Wounds"
    VENOUS_WOUNDS = "Venous Wounds"
    UNKNOWN = "Unknown"  # fallback only, never a model output

    @classmethod
    def model_labels(cls) -> List["WoundType"]:
        """Labels indexed by classification model output position."""
        return [t for t in cls if t is not cls.UNKNOWN]


class RiskLevel(Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    UNKNOWN = "unknown"


class HealingTrend(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    SLOW = "slow"
    WORSENING = "worsening"
    INSUFFICIENT_DATA = "insufficient_data"


class HealingStage(Enum):
    INITIAL = "initial"
    INFLAMMATORY = "inflammatory"
    PROLIFERATIVE = "proliferative"
    MATURATION = "maturation"
    STALLED = "stalled"
    IMPROVING = "improving"


# --- Inputs owned by the surrounding application ---

@dataclass(frozen=True)
class PhotoRecord:
    """A previously captured wound photo."""
    date_taken: datetime
    wound_area_cm2: Optional[float] = None
    infection_risk_score: Optional[float] = None
    photo_path: str = ""


@dataclass(frozen=True)
class SymptomLog:
    """Latest symptom observations for a wound."""
    date: datetime
    has_redness: bool = False
    has_swelling: bool = False
    has_drainage: bool = False
    drainage_type: str = ""  # "Clear", "Bloody", "Pus"
    pain_level: int = 0  # 0-10 scale
    stage: Optional[HealingStage] = None

    @property
    def has_purulent_drainage(self) -> bool:
        return self.has_drainage and self.drainage_type == constants.PURULENT_DRAINAGE_TYPE


# --- Configuration ---

@dataclass
class AnalysisConfig:
    """Configuration for a wound analyzer."""
    input_width: int = constants.INPUT_WIDTH
    input_height: int = constants.INPUT_HEIGHT
    classification_model: str = constants.CLASSIFICATION_MODEL_NAME
    segmentation_model: str = constants.SEGMENTATION_MODEL_NAME
    fallback_delay_s: float = constants.FALLBACK_DELAY_S
    random_seed: Optional[int] = None


# --- Results ---

@dataclass(frozen=True)
class WoundClassification:
    """Wound type prediction with per-label confidences."""
    primary_type: WoundType = WoundType.UNKNOWN
    confidence: float = 0.0
    alternative_types: Mapping[WoundType, float] = field(default_factory=dict)
    error_message: str = ""

    def __post_init__(self):
        object.__setattr__(
            self, "alternative_types", MappingProxyType(dict(self.alternative_types))
        )

    @classmethod
    def fallback(cls, message: str) -> "WoundClassification":
        return cls(error_message=message)


@dataclass(frozen=True)
class InfectionRiskAssessment:
    """Weighted infection risk with human-readable factors."""
    risk_score: float = 0.0
    risk_level: RiskLevel = RiskLevel.UNKNOWN
    risk_factors: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    error_message: str = ""

    def __post_init__(self):
        object.__setattr__(self, "risk_factors", tuple(self.risk_factors))
        object.__setattr__(self, "recommendations", tuple(self.recommendations))

    @classmethod
    def fallback(cls, message: str) -> "InfectionRiskAssessment":
        from i18n import t

        keys = constants.RECOMMENDATION_KEYS[RiskLevel.UNKNOWN.value]
        return cls(
            risk_factors=(t("risk.factor.analysis_error", error=message),),
            recommendations=tuple(t(k) for k in keys),
            error_message=message,
        )


@dataclass(frozen=True)
class HealingPrediction:
    """Healing trajectory derived from area history."""
    predicted_healing_days: int = 0
    confidence_level: float = 0.0
    trend: HealingTrend = HealingTrend.INSUFFICIENT_DATA
    trend_analysis: str = ""
    daily_reduction_rate: float = 0.0
    prediction_date: datetime = field(default_factory=datetime.now)
    error_message: str = ""

    @classmethod
    def insufficient_data(cls) -> "HealingPrediction":
        from i18n import t
        return cls(trend_analysis=t("trend.insufficient_data"))

    @classmethod
    def fallback(cls, message: str) -> "HealingPrediction":
        from i18n import t
        return cls(
            trend_analysis=t("trend.error", error=message),
            error_message=message,
        )


def _disclaimer() -> str:
    from i18n import t
    return t("result.disclaimer")


@dataclass(frozen=True)
class WoundAnalysisResult:
    """Aggregated result of one wound analysis."""
    wound_id: int
    wound_area_cm2: float = 0.0
    classification: WoundClassification = field(default_factory=WoundClassification)
    infection_risk: InfectionRiskAssessment = field(default_factory=InfectionRiskAssessment)
    healing_prediction: HealingPrediction = field(default_factory=HealingPrediction)
    confidence_score: float = 0.0
    analysis_date: datetime = field(default_factory=datetime.now)
    error_message: str = ""
    area_is_estimated: bool = True
    processing_time_ms: int = 0
    model_name: str = ""
    input_path: str = ""
    disclaimer: str = field(default_factory=_disclaimer)

    def to_dict(self) -> Dict[str, object]:
        """Plain, JSON-serializable view of the result."""
        c = self.classification
        r = self.infection_risk
        h = self.healing_prediction
        return {
            "wound_id": self.wound_id,
            "wound_area_cm2": self.wound_area_cm2,
            "area_is_estimated": self.area_is_estimated,
            "classification": {
                "primary_type": c.primary_type.value,
                "confidence": c.confidence,
                "alternative_types": {k.value: v for k, v in c.alternative_types.items()},
                "error_message": c.error_message,
            },
            "infection_risk": {
                "risk_score": r.risk_score,
                "risk_level": r.risk_level.value,
                "risk_factors": list(r.risk_factors),
                "recommendations": list(r.recommendations),
                "error_message": r.error_message,
            },
            "healing_prediction": {
                "predicted_healing_days": h.predicted_healing_days,
                "confidence_level": h.confidence_level,
                "trend": h.trend.value,
                "trend_analysis": h.trend_analysis,
                "daily_reduction_rate": h.daily_reduction_rate,
                "error_message": h.error_message,
            },
            "confidence_score": self.confidence_score,
            "analysis_date": self.analysis_date.isoformat(),
            "error_message": self.error_message,
            "processing_time_ms": self.processing_time_ms,
            "model_name": self.model_name,
            "input_path": self.input_path,
            "disclaimer": self.disclaimer,
        }


# --- Level mapping ---

def risk_level_from_score(score: float) -> RiskLevel:
    """Map a clamped risk score to its categorical level."""
    for lower, level in constants.RISK_LEVEL_BANDS:
        if score >= lower:
            return RiskLevel(level)
    return RiskLevel.VERY_LOW


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


# --- Platform-specific paths ---

def get_data_dir() -> Path:
    """Get the platform-specific application data directory."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support" / "WoundScan"
    elif sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home())) / "WoundScan"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "woundscan"
    base.mkdir(parents=True, exist_ok=True)
    return base


def get_models_dir() -> Path:
    """Get the writable cache directory for provisioned models."""
    models_dir = get_data_dir() / "models"
    models_dir.mkdir(parents=True, exist_ok=True)
    return models_dir


# --- Asset paths ---

def get_asset_path(relative_path: str) -> str:
    """Get absolute path to a packaged asset, handling PyInstaller frozen apps."""
    if getattr(sys, "frozen", False):
        base = Path(sys._MEIPASS)
    else:
        base = Path(__file__).parent.parent
    return str(base / relative_path)


# --- Validation ---

def require_image_path(file_path: Optional[str]) -> Path:
    """Return the image path or raise InputError if it is empty or missing."""
    from i18n import t

    if not file_path:
        raise InputError(t("validation.no_file"))

    path = Path(file_path)
    if not path.is_file():
        raise InputError(t("validation.file_not_found", path=file_path))
    return path
