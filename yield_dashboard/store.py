"""
Row store access for reference rows and the prediction log.

A row store reads up to N rows from one table and appends single rows to it.
Two implementations:
- InMemoryRowStore: list-backed, for local runs and tests
- SupabaseRowStore: hosted Postgres through its PostgREST endpoint

Usage:
    from yield_dashboard.store import build_row_stores

    reference, predictions = build_row_stores()
    rows = reference.read(200)
"""
import logging
import math
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import requests

from .config import ROW_STORE, REFERENCE_CSV, RowStoreConfig
from .errors import RowStoreError

log = logging.getLogger(__name__)

# CSV header aliases -> reference row field names
COLUMN_MAP = {
    "temperature_avg": "temperature",
    "temp_mean_c": "temperature",
    "precipitation": "rainfall",
    "rainfall_mm": "rainfall",
    "humidity_pct": "humidity",
    "ph": "soil_ph",
    "n": "nitrogen",
    "p": "phosphorus",
    "k": "potassium",
    "yield_t_ha": "yield",
}


class RowStore:
    """Interface: bounded read and single-row append."""

    def read(self, limit: int) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def write(self, row: Dict[str, Any]) -> None:
        raise NotImplementedError


class InMemoryRowStore(RowStore):
    """Row store backed by a Python list."""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, name: str = "memory"):
        self.rows = list(rows or [])
        self.name = name

    @property
    def written(self) -> List[Dict[str, Any]]:
        return self.rows

    def read(self, limit: int) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.rows[:limit]]

    def write(self, row: Dict[str, Any]) -> None:
        self.rows.append(dict(row))
        log.debug(f"Appended row to {self.name} ({len(self.rows)} rows)")

    def __len__(self) -> int:
        return len(self.rows)


class SupabaseRowStore(RowStore):
    """Row store for one table behind a Supabase/PostgREST endpoint."""

    def __init__(
        self,
        url: str,
        key: str,
        table: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self.table = table
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    def read(self, limit: int) -> List[Dict[str, Any]]:
        params = {"select": "*", "limit": limit}
        try:
            response = self.session.get(self.endpoint, params=params, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            rows = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            log.error(f"Read from {self.table} failed: {e}")
            raise RowStoreError(f"Failed to read {self.table}: {e}") from e

        if not isinstance(rows, list):
            raise RowStoreError(f"Unexpected response from {self.table}")
        log.info(f"Read {len(rows)} rows from {self.table}")
        return rows

    def write(self, row: Dict[str, Any]) -> None:
        payload = {k: _json_safe(v) for k, v in row.items()}
        headers = {**self.headers, "Prefer": "return=minimal"}
        try:
            response = self.session.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            log.error(f"Insert into {self.table} failed: {e}")
            raise RowStoreError(f"Failed to insert into {self.table}: {e}") from e


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _norm(name: str) -> str:
    s = name.strip().lower()
    s = re.sub(r"[%()/ -]+", "_", s)
    return re.sub(r"_+", "_", s).strip("_")


# ─────────────────────────────────────────────────────────────────────────────
# CSV SEEDING
# ─────────────────────────────────────────────────────────────────────────────

def load_rows_csv(path: str) -> List[Dict[str, Any]]:
    """Load reference rows from a CSV, normalising column names."""
    df = pd.read_csv(path)
    if df.empty:
        return []

    df = df.rename(columns=_norm)
    df = df.rename(columns={c: COLUMN_MAP[c] for c in df.columns if c in COLUMN_MAP})

    if "yield" not in df.columns:
        raise ValueError(f"No yield column in {path}")
    df["yield"] = pd.to_numeric(df["yield"], errors="coerce")
    df = df.dropna(subset=["yield"])

    # NaN -> None so missing engineered fields read as absent
    df = df.astype(object).where(df.notna(), None)
    rows = df.to_dict(orient="records")
    log.info(f"Loaded {len(rows)} reference rows from {Path(path).name}")
    return rows


# ─────────────────────────────────────────────────────────────────────────────
# FACTORY
# ─────────────────────────────────────────────────────────────────────────────

def build_row_stores(config: RowStoreConfig = ROW_STORE) -> Tuple[RowStore, RowStore]:
    """Return (reference store, prediction log store) for the configuration."""
    if config.hosted:
        log.info(f"Using hosted row store at {config.url}")
        session = requests.Session()
        return (
            SupabaseRowStore(config.url, config.key, config.reference_table, config.timeout, session),
            SupabaseRowStore(config.url, config.key, config.predictions_table, config.timeout, session),
        )

    rows = []
    if REFERENCE_CSV.exists():
        rows = load_rows_csv(str(REFERENCE_CSV))
    else:
        log.warning("SUPABASE_URL not set and no reference CSV found; predictions use the linear fallback")
    return (
        InMemoryRowStore(rows, name=config.reference_table),
        InMemoryRowStore(name=config.predictions_table),
    )
