"""
Data structures for yield prediction.

FeatureVector is the caller's input, ReferenceRow one historical observation
read from the row store, PredictionResult the estimator output and
PredictionRecord the audit row appended after each prediction.
"""
import json
import math
from dataclasses import dataclass, field, asdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Mapping, Optional

from .config import (
    DATA_SOURCES,
    ENSEMBLE_FACTOR,
    FEATURE_IMPORTANCES,
    MODEL_METRICS,
    PREDICTION_NOTE,
)
from .errors import ReferenceRowError

NUMERIC_FIELDS = (
    "temperature", "rainfall", "humidity", "soil_ph",
    "nitrogen", "phosphorus", "potassium",
)
ENGINEERED_FIELDS = ("temp_rainfall_interaction", "npk_ratio")


def to_number(value: Any) -> float:
    """Read a value as float; anything unreadable becomes NaN."""
    if isinstance(value, bool):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def round_half_up(value: float, places: int = 2) -> Optional[float]:
    """Round exact halves away from zero; non-finite values become None."""
    if not math.isfinite(value):
        return None
    step = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(step, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class FeatureVector:
    """Weather and soil conditions for one prediction request."""
    crop: str
    temperature: float
    rainfall: float
    humidity: float
    soil_ph: float
    nitrogen: float
    phosphorus: float
    potassium: float


@dataclass(frozen=True)
class ReferenceRow:
    """Historical observation used only for comparison."""
    temperature: float
    rainfall: float
    humidity: float
    soil_ph: float
    nitrogen: float
    phosphorus: float
    potassium: float
    yield_: float
    temp_rainfall_interaction: float = 0.0
    npk_ratio: float = 0.0

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ReferenceRow":
        """Build a row from a raw store record.

        Required fields must be present and finite numbers. Missing engineered
        fields fall back to zero.
        """
        required = NUMERIC_FIELDS + ("yield",)
        missing = [k for k in required if record.get(k) is None]
        if missing:
            raise ReferenceRowError(f"Reference row missing {', '.join(missing)}")

        values = {k: to_number(record[k]) for k in required}
        invalid = [k for k, v in values.items() if not math.isfinite(v)]
        if invalid:
            raise ReferenceRowError(f"Reference row has non-numeric {', '.join(invalid)}")

        engineered = {}
        for name in ENGINEERED_FIELDS:
            value = to_number(record.get(name))
            engineered[name] = value if value and not math.isnan(value) else 0.0

        yield_ = values.pop("yield")
        return cls(yield_=yield_, **values, **engineered)


@dataclass
class PredictionResult:
    predicted_yield: float
    confidence: float
    best_model: str
    neighbors: int = 0
    feature_importances: Dict[str, float] = field(default_factory=lambda: dict(FEATURE_IMPORTANCES))
    model_metrics: Dict[str, float] = field(default_factory=lambda: dict(MODEL_METRICS))

    def to_response(self, crop: str) -> Dict[str, Any]:
        """Public response body; yield and confidence rounded to 2 decimals."""
        return {
            "predicted_crop": crop,
            "predicted_yield": round_half_up(self.predicted_yield),
            "confidence": round_half_up(self.confidence),
            "best_model": self.best_model,
            "feature_importances": dict(self.feature_importances),
            "model_metrics": dict(self.model_metrics),
            "data_sources": list(DATA_SOURCES),
            "note": PREDICTION_NOTE,
        }


@dataclass
class PredictionRecord:
    """Audit row for the predictions table. Inputs are stored unclamped."""
    crop: str
    temperature: float
    rainfall: float
    humidity: float
    soil_ph: float
    nitrogen: float
    phosphorus: float
    potassium: float
    predicted_yield_lr: float
    predicted_yield_rf: float
    best_model: str
    feature_importances: str
    confidence_score: float

    @classmethod
    def from_prediction(cls, features: FeatureVector, result: PredictionResult) -> "PredictionRecord":
        return cls(
            crop=features.crop,
            temperature=features.temperature,
            rainfall=features.rainfall,
            humidity=features.humidity,
            soil_ph=features.soil_ph,
            nitrogen=features.nitrogen,
            phosphorus=features.phosphorus,
            potassium=features.potassium,
            predicted_yield_lr=result.predicted_yield,
            predicted_yield_rf=result.predicted_yield * ENSEMBLE_FACTOR,
            best_model=result.best_model,
            feature_importances=json.dumps(result.feature_importances),
            confidence_score=result.confidence,
        )

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)
