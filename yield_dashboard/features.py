"""Input preprocessing: range clamping and engineered features."""
from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np

from .config import TEMPERATURE_RANGE, RAINFALL_RANGE
from .models import FeatureVector


def clamp(value: float, low: float, high: float) -> float:
    """Force value into [low, high]. NaN stays NaN."""
    return float(np.clip(value, low, high))


def clamp_temperature(temperature: float) -> float:
    return clamp(temperature, *TEMPERATURE_RANGE)


def clamp_rainfall(rainfall: float) -> float:
    return clamp(rainfall, *RAINFALL_RANGE)


# ─────────────────────────────────────────────────────────────────────────────
# ENGINEERED FEATURES
# ─────────────────────────────────────────────────────────────────────────────

def temp_rainfall_interaction(temperature: float, rainfall: float) -> float:
    return temperature * rainfall / 1000


def ph_fertilizer_interaction(soil_ph: float, nitrogen: float, phosphorus: float, potassium: float) -> float:
    return soil_ph * (nitrogen + phosphorus + potassium) / 100


def temp_squared(temperature: float) -> float:
    return (temperature / 10) ** 2


def npk_ratio(nitrogen: float, phosphorus: float, potassium: float) -> float:
    # P + K == -1 gives inf/NaN instead of raising
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.float64(nitrogen) / (phosphorus + potassium + 1))


def humidity_squared(humidity: float) -> float:
    return (humidity / 50) ** 2


@dataclass(frozen=True)
class PreparedFeatures:
    """Model-ready view of a FeatureVector.

    Temperature and rainfall are clamped; every engineered feature is derived
    from the clamped values.
    """
    temperature: float
    rainfall: float
    humidity: float
    soil_ph: float
    nitrogen: float
    phosphorus: float
    potassium: float
    temp_rainfall_interaction: float
    ph_fertilizer_interaction: float
    temp_squared: float
    npk_ratio: float
    humidity_squared: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def prepare(features: FeatureVector) -> PreparedFeatures:
    temp = clamp_temperature(features.temperature)
    rain = clamp_rainfall(features.rainfall)
    n, p, k = features.nitrogen, features.phosphorus, features.potassium

    return PreparedFeatures(
        temperature=temp,
        rainfall=rain,
        humidity=features.humidity,
        soil_ph=features.soil_ph,
        nitrogen=n,
        phosphorus=p,
        potassium=k,
        temp_rainfall_interaction=temp_rainfall_interaction(temp, rain),
        ph_fertilizer_interaction=ph_fertilizer_interaction(features.soil_ph, n, p, k),
        temp_squared=temp_squared(temp),
        npk_ratio=npk_ratio(n, p, k),
        humidity_squared=humidity_squared(features.humidity),
    )
