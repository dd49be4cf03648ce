"""Tunable constants and lookup tables for the wound analysis pipeline.

Numeric placeholders (calibration, color thresholds) are uncalibrated and can be
overridden through environment variables.
"""

import os

# ============================================================================
# LOGGING / LOCALE
# ============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEFAULT_LANGUAGE = os.getenv("WOUNDSCAN_LANG", "en")

# ============================================================================
# MODEL ARTIFACTS
# ============================================================================
CLASSIFICATION_MODEL_NAME = os.getenv("WOUNDSCAN_CLASSIFICATION_MODEL", "wound-classifier.pt")
SEGMENTATION_MODEL_NAME = os.getenv("WOUNDSCAN_SEGMENTATION_MODEL", "wound-segmenter.pt")

# ============================================================================
# PREPROCESSING
# ============================================================================
INPUT_WIDTH = int(os.getenv("WOUNDSCAN_INPUT_WIDTH", "224"))
INPUT_HEIGHT = int(os.getenv("WOUNDSCAN_INPUT_HEIGHT", "224"))
INPUT_CHANNELS = 3
# Per-channel (R, G, B) means the paired models were trained with
CHANNEL_MEANS = (123.68, 116.78, 103.94)

# ============================================================================
# AREA ESTIMATION
# ============================================================================
MASK_THRESHOLD = 0.5
# Assumes a fixed camera distance, no reference object
PIXELS_PER_CM2 = float(os.getenv("WOUNDSCAN_PIXELS_PER_CM2", "1000.0"))
MIN_AREA_CM2 = 0.01
FALLBACK_AREA_RANGE_CM2 = (0.5, 10.0)
FALLBACK_DELAY_S = float(os.getenv("WOUNDSCAN_FALLBACK_DELAY_S", "0.5"))

# ============================================================================
# INFECTION RISK
# ============================================================================
# Minimum margin (0-255 scale) for one channel to "dominate" another
COLOR_DOMINANCE_MARGIN = float(os.getenv("WOUNDSCAN_COLOR_MARGIN", "30.0"))

# name -> (fraction threshold, max contribution)
COLOR_RISK_RULES = {
    "redness": (0.15, 0.30),
    "slough": (0.10, 0.20),
}
HEURISTIC_MAX = 0.5

# Symptom flag -> score increment
SYMPTOM_WEIGHTS = {
    "redness": 0.3,
    "swelling": 0.2,
    "purulent_drainage": 0.4,
}
PURULENT_DRAINAGE_TYPE = "Pus"

# Previous score must be lower by this much to flag an increase
RISK_INCREASE_MARGIN = 0.1

# (lower bound, level value), checked top-down
RISK_LEVEL_BANDS = (
    (0.7, "high"),
    (0.4, "moderate"),
    (0.2, "low"),
    (0.0, "very_low"),
)

RECOMMENDATION_KEYS = {
    "high": ("risk.rec.seek_attention", "risk.rec.monitor_worsening"),
    "moderate": ("risk.rec.consult_provider", "risk.rec.increase_monitoring"),
    "low": ("risk.rec.continue_care", "risk.rec.monitor_changes"),
    "very_low": ("risk.rec.continue_care", "risk.rec.monitor_changes"),
    "unknown": ("risk.rec.consult_professional",),
}

# ============================================================================
# HEALING TREND
# ============================================================================
MIN_DAILY_RATE = 0.001
MIN_ELAPSED_DAYS = 1.0
DEFAULT_TREND_CONFIDENCE = 0.5
TREND_CONFIDENCE_BOUNDS = (0.1, 0.95)

# (minimum % area reduction, trend value), checked top-down
TREND_BANDS = (
    (30.0, "excellent"),
    (15.0, "good"),
    (5.0, "moderate"),
    (0.0, "slow"),
)
