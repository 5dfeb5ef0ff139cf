"""
Yield Estimator

Scores a FeatureVector against reference rows from the row store:
1. Clamp inputs and derive engineered features
2. Read up to ROW_SAMPLE_LIMIT reference rows
3. Rows available -> distance-weighted k-nearest-neighbours ("Hybrid_Enhanced")
   No rows        -> fixed linear formula ("Enhanced_Linear_Regression")
4. Attach the static feature importances and model metrics
5. Append the prediction record to the prediction log

Usage:
    from yield_dashboard.estimator import YieldEstimator
    from yield_dashboard.store import build_row_stores

    estimator = YieldEstimator(*build_row_stores())
    result = estimator.predict(FeatureVector(crop="rice", ...))
"""
import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import (
    CONFIDENCE_RANGE,
    CROP_MULTIPLIERS,
    DISTANCE_EPSILON,
    DISTANCE_SCALES,
    ENGINEERED_DISTANCE_DIVISORS,
    ESTIMATOR,
    LINEAR_COEFFICIENTS,
    LINEAR_CONFIDENCE,
    LINEAR_INTERCEPT,
    LINEAR_YIELD_FLOOR,
    MODEL_HYBRID,
    MODEL_LINEAR,
    EstimatorConfig,
)
from .errors import AuditWriteError, ReferenceRowError, RetrievalError, RowStoreError
from .features import PreparedFeatures, clamp, prepare
from .models import FeatureVector, PredictionRecord, PredictionResult, ReferenceRow
from .store import RowStore

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# NEAREST NEIGHBOURS
# ─────────────────────────────────────────────────────────────────────────────

def neighbor_distances(prepared: PreparedFeatures, rows: Sequence[ReferenceRow]) -> np.ndarray:
    """Normalised Euclidean distance from the prepared input to every row."""
    names = list(DISTANCE_SCALES)
    scales = np.array([DISTANCE_SCALES[n] for n in names])
    table = np.array([[getattr(r, n) for n in names] for r in rows], dtype=float)
    target = np.array([getattr(prepared, n) for n in names], dtype=float)

    total = (((table - target) / scales) ** 2).sum(axis=1)

    # Engineered terms: squared difference divided by the divisor, not pre-scaled
    for name, divisor in ENGINEERED_DISTANCE_DIVISORS.items():
        column = np.array([getattr(r, name) for r in rows], dtype=float)
        total = total + (column - getattr(prepared, name)) ** 2 / divisor

    return np.sqrt(total)


def knn_estimate(
    prepared: PreparedFeatures,
    rows: Sequence[ReferenceRow],
    max_neighbors: int = ESTIMATOR.max_neighbors,
) -> Tuple[float, float, int]:
    """Distance-weighted mean yield over the k nearest rows.

    Returns (yield before crop adjustment, confidence, k). Ties in distance
    keep the order the rows were read in.
    """
    k = min(max_neighbors, len(rows))
    distances = neighbor_distances(prepared, rows)
    nearest = np.argsort(distances, kind="stable")[:k]

    d = distances[nearest]
    yields = np.array([rows[i].yield_ for i in nearest], dtype=float)
    weights = 1.0 / (d + DISTANCE_EPSILON)
    predicted = float(np.sum(weights * yields) / np.sum(weights))

    variance = float(np.mean((yields - predicted) ** 2))
    kth_distance = float(d[-1])
    if math.isnan(kth_distance):
        kth_distance = 0.0
    confidence = clamp(1 - variance / 10 - kth_distance / 100, *CONFIDENCE_RANGE)

    return predicted, confidence, k


def crop_multiplier(crop: str) -> float:
    """Per-crop adjustment, case-insensitive; unknown crops get 1.0."""
    return CROP_MULTIPLIERS.get(crop.lower(), 1.0)


# ─────────────────────────────────────────────────────────────────────────────
# LINEAR FALLBACK
# ─────────────────────────────────────────────────────────────────────────────

def linear_estimate(prepared: PreparedFeatures) -> float:
    values = prepared.as_dict()
    total = LINEAR_INTERCEPT + sum(coef * values[name] for name, coef in LINEAR_COEFFICIENTS.items())
    return float(np.maximum(LINEAR_YIELD_FLOOR, total))


# ─────────────────────────────────────────────────────────────────────────────
# ESTIMATOR
# ─────────────────────────────────────────────────────────────────────────────

def parse_reference_rows(records: Sequence[Dict[str, Any]]) -> List[ReferenceRow]:
    """Convert raw store records, skipping rows without the required fields."""
    rows = []
    skipped = 0
    for record in records:
        try:
            rows.append(ReferenceRow.from_record(record))
        except ReferenceRowError as e:
            skipped += 1
            log.debug(f"Skipping reference row: {e}")
    if skipped:
        log.warning(f"Skipped {skipped} of {len(records)} reference rows with missing or non-numeric fields")
    return rows


class YieldEstimator:
    """Stateless scorer over a bounded sample of reference rows."""

    def __init__(
        self,
        reference_store: RowStore,
        prediction_store: Optional[RowStore] = None,
        config: EstimatorConfig = ESTIMATOR,
    ):
        self.reference_store = reference_store
        self.prediction_store = prediction_store
        self.config = config

    def estimate(self, features: FeatureVector, rows: Sequence[ReferenceRow]) -> PredictionResult:
        """Score features against rows. Pure: no store access."""
        prepared = prepare(features)

        if rows:
            predicted, confidence, k = knn_estimate(prepared, rows, self.config.max_neighbors)
            predicted *= crop_multiplier(features.crop)
            return PredictionResult(
                predicted_yield=predicted,
                confidence=confidence,
                best_model=MODEL_HYBRID,
                neighbors=k,
            )

        return PredictionResult(
            predicted_yield=linear_estimate(prepared),
            confidence=LINEAR_CONFIDENCE,
            best_model=MODEL_LINEAR,
        )

    def predict(self, features: FeatureVector) -> PredictionResult:
        """Read reference rows, score, and append the audit record."""
        log.info(f"Predicting yield for {features}")

        try:
            records = self.reference_store.read(self.config.sample_limit)
        except RowStoreError as e:
            log.error(f"Reference retrieval failed: {e}")
            raise RetrievalError(str(e)) from e

        rows = parse_reference_rows(records)
        result = self.estimate(features, rows)
        log.info(
            f"{result.best_model}: yield={result.predicted_yield:.3f} "
            f"confidence={result.confidence:.2f} neighbors={result.neighbors}"
        )

        self._audit(features, result)
        return result

    def _audit(self, features: FeatureVector, result: PredictionResult) -> None:
        if self.prediction_store is None:
            return

        record = PredictionRecord.from_prediction(features, result)
        try:
            self.prediction_store.write(record.to_row())
        except RowStoreError as e:
            log.error(f"Failed to save prediction: {e}")
            if self.config.audit_failure_fatal:
                raise AuditWriteError(str(e)) from e
            return

        log.info("Prediction saved")
