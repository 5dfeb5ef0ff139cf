"""
Static dataset repository for the dashboard views.

Reads the pre-generated JSON documents under DATA_DIR:
    dataset_metadata.json        dataset description
    crop_yield_sample.json       all sample records
    crop_yield_<crop>.json       records for one crop
    crop_yield_<state>.json      records for one state

Metadata and the full sample are loaded once and reused across filtered
queries until invalidate() is called. The repository is built once and passed
to whoever needs it.

Usage:
    repo = CropDatasetRepository(DATA_DIR)
    df = repo.filtered(crop="Rice", year_range=(2020, 2022))
    print(repo.summary())
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .config import DATA_DIR
from .errors import DatasetError

log = logging.getLogger(__name__)

METADATA_FILE = "dataset_metadata.json"
SAMPLE_FILE = "crop_yield_sample.json"

RECORD_COLUMNS = [
    "year", "state", "crop", "yield", "temperature_avg", "precipitation",
    "humidity", "soil_ph", "nitrogen", "phosphorus", "potassium",
]


def to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame -> list of dicts with NaN replaced by None."""
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


class CropDatasetRepository:
    """Load-once access to the static crop yield dataset."""

    def __init__(self, data_dir: Path = DATA_DIR):
        self.data_dir = Path(data_dir)
        self._metadata: Optional[Dict[str, Any]] = None
        self._records: Optional[pd.DataFrame] = None

    def invalidate(self) -> None:
        """Drop cached metadata and records; the next call reloads from disk."""
        self._metadata = None
        self._records = None
        log.info("Dataset cache invalidated")

    def _read_json(self, name: str) -> Any:
        path = self.data_dir / name
        if not path.exists():
            log.error(f"Dataset file not found: {path}")
            raise DatasetError(f"Failed to load {name}")
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.error(f"Error loading {path}: {e}")
            raise DatasetError(f"Failed to load {name}") from e

    def _read_records(self, name: str) -> pd.DataFrame:
        data = self._read_json(name)
        if not isinstance(data, list):
            raise DatasetError(f"{name} does not contain a record list")
        df = pd.DataFrame(data, columns=None if data else RECORD_COLUMNS)
        log.info(f"Loaded {len(df)} records from {name}")
        return df

    # ─────────────────────────────────────────────────────────────────────
    # LOADERS
    # ─────────────────────────────────────────────────────────────────────

    def load_metadata(self) -> Dict[str, Any]:
        if self._metadata is None:
            self._metadata = self._read_json(METADATA_FILE)
        return self._metadata

    def load_all(self) -> pd.DataFrame:
        if self._records is None:
            self._records = self._read_records(SAMPLE_FILE)
        return self._records.copy()

    def load_by_crop(self, crop: str) -> pd.DataFrame:
        return self._read_records(f"crop_yield_{crop.lower()}.json")

    def load_by_state(self, state: str) -> pd.DataFrame:
        # Only the first space is replaced: "Uttar Pradesh" -> "uttar_pradesh"
        return self._read_records(f"crop_yield_{state.lower().replace(' ', '_', 1)}.json")

    # ─────────────────────────────────────────────────────────────────────
    # FILTER OPTIONS
    # ─────────────────────────────────────────────────────────────────────

    def available_crops(self) -> List[str]:
        return list(self.load_metadata().get("crops", []))

    def available_states(self) -> List[str]:
        return list(self.load_metadata().get("states", []))

    def year_range(self) -> Dict[str, int]:
        return dict(self.load_metadata().get("years", {}))

    # ─────────────────────────────────────────────────────────────────────
    # QUERIES
    # ─────────────────────────────────────────────────────────────────────

    def filtered(
        self,
        crop: Optional[str] = None,
        state: Optional[str] = None,
        year: Optional[int] = None,
        year_range: Optional[Tuple[int, int]] = None,
    ) -> pd.DataFrame:
        """Records matching every given filter. Year range is inclusive."""
        df = self.load_all()
        if df.empty:
            return df

        if crop:
            df = df[df["crop"] == crop]
        if state:
            df = df[df["state"] == state]
        if year is not None:
            df = df[df["year"] == year]
        if year_range is not None:
            lo, hi = year_range
            df = df[(df["year"] >= lo) & (df["year"] <= hi)]

        return df.reset_index(drop=True)

    def summary(self) -> Dict[str, Any]:
        df = self.load_all()
        if df.empty:
            return {
                "total_records": 0,
                "avg_yield": None,
                "yield_range": {"min": None, "max": None},
                "crops_count": 0,
                "states_count": 0,
            }

        yields = pd.to_numeric(df["yield"], errors="coerce")
        return {
            "total_records": int(len(df)),
            "avg_yield": float(yields.mean()),
            "yield_range": {"min": float(yields.min()), "max": float(yields.max())},
            "crops_count": int(df["crop"].nunique()),
            "states_count": int(df["state"].nunique()),
        }

    # ─────────────────────────────────────────────────────────────────────
    # CHART SERIES
    # ─────────────────────────────────────────────────────────────────────

    def yield_trend(self, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        """Mean yield per (year, crop) with record counts."""
        df = self.load_all() if df is None else df
        if df.empty:
            return pd.DataFrame(columns=["year", "crop", "yield", "temperature", "precipitation", "count"])

        trend = df.groupby(["year", "crop"]).agg(
            yield_=("yield", "mean"),
            temperature=("temperature_avg", "mean"),
            precipitation=("precipitation", "mean"),
            count=("yield", "size"),
        ).reset_index()
        return trend.rename(columns={"yield_": "yield"}).sort_values(["year", "crop"]).reset_index(drop=True)

    def weather_yield(self, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        df = self.load_all() if df is None else df
        out = df.reindex(columns=["yield", "temperature_avg", "precipitation", "humidity"])
        return out.rename(columns={"temperature_avg": "temperature"})

    def soil_yield(self, df: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        df = self.load_all() if df is None else df
        out = df.reindex(columns=["yield", "nitrogen", "phosphorus", "potassium"]).copy()
        out["np_ratio"] = out["nitrogen"] / (out["phosphorus"] + 0.1)
        return out
