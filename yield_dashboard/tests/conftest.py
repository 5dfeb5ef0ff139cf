"""Shared fixtures for the yield dashboard tests."""
import json

import pytest

from yield_dashboard.features import prepare
from yield_dashboard.models import FeatureVector


RECORDS = [
    {"year": 2020, "state": "Punjab", "crop": "Rice", "yield": 4.0, "temperature_avg": 27.0,
     "precipitation": 800, "humidity": 70, "soil_ph": 6.8, "nitrogen": 120, "phosphorus": 45, "potassium": 60},
    {"year": 2020, "state": "Punjab", "crop": "Rice", "yield": 5.0, "temperature_avg": 28.0,
     "precipitation": 820, "humidity": 72, "soil_ph": 6.9, "nitrogen": 125, "phosphorus": 48, "potassium": 62},
    {"year": 2021, "state": "Punjab", "crop": "Wheat", "yield": 4.8, "temperature_avg": 18.0,
     "precipitation": 520, "humidity": 55, "soil_ph": 7.1, "nitrogen": 130, "phosphorus": 50, "potassium": 40},
    {"year": 2021, "state": "Uttar Pradesh", "crop": "Rice", "yield": 2.6, "temperature_avg": 29.0,
     "precipitation": 1050, "humidity": 76, "soil_ph": 6.6, "nitrogen": 110, "phosphorus": 45, "potassium": 55},
    {"year": 2022, "state": "Haryana", "crop": "Barley", "yield": 3.2, "temperature_avg": 17.5,
     "precipitation": 420, "humidity": 50, "soil_ph": 7.6, "nitrogen": 80, "phosphorus": 40, "potassium": 35},
]

METADATA = {
    "total_records": 5,
    "crops": ["Barley", "Rice", "Wheat"],
    "states": ["Haryana", "Punjab", "Uttar Pradesh"],
    "years": {"min": 2020, "max": 2022},
    "yield_range": {"min": 2.6, "max": 5.0},
    "features": {"weather": ["temperature_avg"], "soil": ["soil_ph"], "satellite": []},
    "data_sources": ["Processed Master Dataset"],
    "processing_date": "2024-01-15",
}


@pytest.fixture
def wheat_features():
    return FeatureVector(
        crop="wheat", temperature=30, rainfall=900, humidity=60,
        soil_ph=6.5, nitrogen=100, phosphorus=40, potassium=150,
    )


@pytest.fixture
def dataset_dir(tmp_path):
    """Directory with the static dataset documents."""
    (tmp_path / "dataset_metadata.json").write_text(json.dumps(METADATA))
    (tmp_path / "crop_yield_sample.json").write_text(json.dumps(RECORDS))
    rice = [r for r in RECORDS if r["crop"] == "Rice"]
    (tmp_path / "crop_yield_rice.json").write_text(json.dumps(rice))
    up = [r for r in RECORDS if r["state"] == "Uttar Pradesh"]
    (tmp_path / "crop_yield_uttar_pradesh.json").write_text(json.dumps(up))
    return tmp_path


def matching_row(features: FeatureVector, yield_: float) -> dict:
    """Reference record identical to the clamped, engineered input."""
    p = prepare(features)
    return {
        "temperature": p.temperature,
        "rainfall": p.rainfall,
        "humidity": p.humidity,
        "soil_ph": p.soil_ph,
        "nitrogen": p.nitrogen,
        "phosphorus": p.phosphorus,
        "potassium": p.potassium,
        "yield": yield_,
        "temp_rainfall_interaction": p.temp_rainfall_interaction,
        "npk_ratio": p.npk_ratio,
    }


@pytest.fixture
def make_matching_row():
    return matching_row
