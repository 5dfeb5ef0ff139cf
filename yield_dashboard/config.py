"""
Crop Yield Dashboard - Configuration
Paths, row store settings and the fixed constants of the yield estimator.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List

# ─────────────────────────────────────────────────────────────────────────────
# PATHS
# ─────────────────────────────────────────────────────────────────────────────

BASE_DIR = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("YIELD_DATA_DIR", str(BASE_DIR / "data")))
REFERENCE_CSV = Path(os.getenv("REFERENCE_CSV", str(DATA_DIR / "crops_dataset.csv")))

# ─────────────────────────────────────────────────────────────────────────────
# PREPROCESSING
# ─────────────────────────────────────────────────────────────────────────────

TEMPERATURE_RANGE = (10.0, 45.0)    # °C
RAINFALL_RANGE = (100.0, 2500.0)    # mm

# ─────────────────────────────────────────────────────────────────────────────
# NEAREST NEIGHBOURS
# ─────────────────────────────────────────────────────────────────────────────

ROW_SAMPLE_LIMIT = 200
MAX_NEIGHBORS = 15
DISTANCE_EPSILON = 0.01

# Raw feature -> divisor applied before squaring
DISTANCE_SCALES: Dict[str, float] = {
    "temperature": 25.0,
    "rainfall": 1500.0,
    "humidity": 50.0,
    "soil_ph": 2.0,
    "nitrogen": 100.0,
    "phosphorus": 50.0,
    "potassium": 200.0,
}

# Engineered feature -> divisor applied after squaring
ENGINEERED_DISTANCE_DIVISORS: Dict[str, float] = {
    "temp_rainfall_interaction": 10000.0,
    "npk_ratio": 0.25,
}

CONFIDENCE_RANGE = (0.6, 0.95)

CROP_MULTIPLIERS: Dict[str, float] = {
    "rice": 1.1,
    "wheat": 0.9,
    "corn": 1.05,
    "soybean": 0.95,
    "barley": 0.85,
}

# ─────────────────────────────────────────────────────────────────────────────
# LINEAR FALLBACK
# ─────────────────────────────────────────────────────────────────────────────

LINEAR_INTERCEPT = 2.5
LINEAR_COEFFICIENTS: Dict[str, float] = {
    "temperature": 0.15,
    "rainfall": 0.003,
    "humidity": 0.02,
    "soil_ph": 0.4,
    "nitrogen": 0.008,
    "phosphorus": 0.012,
    "potassium": 0.006,
    "temp_rainfall_interaction": 0.001,
    "ph_fertilizer_interaction": 0.002,
    "temp_squared": -0.001,
    "npk_ratio": 0.05,
    "humidity_squared": 0.01,
}
LINEAR_YIELD_FLOOR = 0.5
LINEAR_CONFIDENCE = 0.65

# ─────────────────────────────────────────────────────────────────────────────
# RESPONSE CONSTANTS
# ─────────────────────────────────────────────────────────────────────────────

MODEL_HYBRID = "Hybrid_Enhanced"
MODEL_LINEAR = "Enhanced_Linear_Regression"

# Illustrative weights, not derived from any estimate
FEATURE_IMPORTANCES: Dict[str, float] = {
    "temperature": 0.15,
    "rainfall": 0.22,
    "humidity": 0.08,
    "soil_ph": 0.06,
    "nitrogen": 0.12,
    "phosphorus": 0.08,
    "potassium": 0.07,
    "temp_rainfall_interaction": 0.10,
    "ph_fertilizer_interaction": 0.05,
    "npk_ratio": 0.04,
    "humidity_squared": 0.03,
}

MODEL_METRICS: Dict[str, float] = {
    "r2_score": 0.79,
    "mse": 0.346,
    "rmse": 0.588,
}

DATA_SOURCES: List[str] = [
    "Processed Master Dataset",
    "Enhanced Feature Engineering",
    "Multi-Model Ensemble",
]
PREDICTION_NOTE = "Using enhanced prediction with real data insights"

ENSEMBLE_FACTOR = 1.05  # predicted_yield_rf = predicted_yield_lr * factor

# ─────────────────────────────────────────────────────────────────────────────
# ROW STORE
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class RowStoreConfig:
    url: str = os.getenv("SUPABASE_URL", "")
    key: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    reference_table: str = os.getenv("REFERENCE_TABLE", "crops_dataset")
    predictions_table: str = os.getenv("PREDICTIONS_TABLE", "predictions")
    timeout: float = float(os.getenv("ROW_STORE_TIMEOUT", "30"))

    @property
    def hosted(self) -> bool:
        return bool(self.url and self.key)

ROW_STORE = RowStoreConfig()

# ─────────────────────────────────────────────────────────────────────────────
# ESTIMATOR
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class EstimatorConfig:
    sample_limit: int = ROW_SAMPLE_LIMIT
    max_neighbors: int = MAX_NEIGHBORS
    # When False, a failed audit write is logged and the estimate still returned
    audit_failure_fatal: bool = os.getenv("AUDIT_FAILURE_FATAL", "0").lower() in ("1", "true", "yes")

ESTIMATOR = EstimatorConfig()

# ─────────────────────────────────────────────────────────────────────────────
# API CONFIG
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class APIConfig:
    host: str = os.getenv("API_HOST", "0.0.0.0")
    port: int = int(os.getenv("API_PORT", "8000"))
    reload: bool = False
    workers: int = 1
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

API_CONFIG = APIConfig()
