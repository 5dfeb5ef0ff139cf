"""
FastAPI Application for the Crop Yield Dashboard

Endpoints:
- POST /predict-yield     yield prediction from weather/soil inputs
- GET  /                  health check
- GET  /dataset/...       static dataset queries for the dashboard views
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from . import __version__
from .config import API_CONFIG, DATA_DIR
from .dataset import CropDatasetRepository, to_records
from .errors import DatasetError, YieldDashboardError
from .estimator import YieldEstimator
from .models import FeatureVector, to_number
from .store import build_row_stores

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# PYDANTIC MODELS
# ═══════════════════════════════════════════════════════════════════════════════

class PredictionRequest(BaseModel):
    crop: str = Field(..., description="Crop label", examples=["Rice"])
    temperature: float = Field(..., description="Average temperature (°C)")
    rainfall: float = Field(..., description="Rainfall (mm)")
    humidity: float = Field(..., description="Relative humidity (%)")
    soil_ph: float = Field(..., description="Soil pH")
    nitrogen: float = Field(..., description="Nitrogen (kg/ha)")
    phosphorus: float = Field(..., description="Phosphorus (kg/ha)")
    potassium: float = Field(..., description="Potassium (kg/ha)")

    model_config = {
        "json_schema_extra": {
            "examples": [{
                "crop": "Wheat",
                "temperature": 30,
                "rainfall": 900,
                "humidity": 60,
                "soil_ph": 6.5,
                "nitrogen": 100,
                "phosphorus": 40,
                "potassium": 150,
            }]
        }
    }

    @field_validator("crop", mode="before")
    @classmethod
    def _crop_text(cls, value: Any) -> str:
        return str(value)

    # Values are not range-checked; unreadable numbers become NaN
    @field_validator(
        "temperature", "rainfall", "humidity", "soil_ph",
        "nitrogen", "phosphorus", "potassium",
        mode="before",
    )
    @classmethod
    def _lenient_number(cls, value: Any) -> float:
        return to_number(value)


class PredictionResponse(BaseModel):
    predicted_crop: str
    predicted_yield: Optional[float]
    confidence: Optional[float]
    best_model: str
    feature_importances: Dict[str, float]
    model_metrics: Dict[str, float]
    data_sources: List[str]
    note: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str = __version__
    timestamp: str


# ═══════════════════════════════════════════════════════════════════════════════
# DEPENDENCIES
# ═══════════════════════════════════════════════════════════════════════════════

def get_estimator(request: Request) -> YieldEstimator:
    return request.app.state.estimator


def get_dataset(request: Request) -> CropDatasetRepository:
    return request.app.state.dataset


# ═══════════════════════════════════════════════════════════════════════════════
# APPLICATION
# ═══════════════════════════════════════════════════════════════════════════════

def create_app(
    estimator: Optional[YieldEstimator] = None,
    dataset: Optional[CropDatasetRepository] = None,
) -> FastAPI:
    """Build the API around an estimator and dataset repository."""
    app = FastAPI(
        title="Crop Yield Dashboard API",
        description="Yield predictions from weather/soil inputs and crop yield dataset queries.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=API_CONFIG.cors_origins,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    app.state.estimator = estimator or YieldEstimator(*build_row_stores())
    app.state.dataset = dataset or CropDatasetRepository(DATA_DIR)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        fields = sorted({".".join(str(p) for p in e["loc"][1:]) for e in exc.errors()} - {""})
        message = f"Invalid request fields: {', '.join(fields)}" if fields else "Invalid request body"
        log.error(message)
        return JSONResponse(status_code=422, content={"error": message})

    @app.exception_handler(DatasetError)
    async def dataset_error(request: Request, exc: DatasetError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(YieldDashboardError)
    async def dashboard_error(request: Request, exc: YieldDashboardError):
        log.error(f"Error: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc)})

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:

    @app.get("/", response_model=HealthResponse, tags=["Health"])
    def health():
        """Health check endpoint."""
        return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat())

    @app.post("/predict-yield", response_model=PredictionResponse, tags=["Prediction"])
    def predict_yield(body: PredictionRequest, estimator: YieldEstimator = Depends(get_estimator)):
        """
        Predict crop yield from weather and soil conditions.

        Uses nearest reference rows when available, otherwise a fixed linear
        formula. Every prediction is appended to the prediction log.
        """
        features = FeatureVector(**body.model_dump())
        result = estimator.predict(features)
        return JSONResponse(result.to_response(features.crop))

    # ─────────────────────────────────────────────────────────────────────
    # DATASET
    # ─────────────────────────────────────────────────────────────────────

    @app.get("/dataset/metadata", tags=["Dataset"])
    def dataset_metadata(dataset: CropDatasetRepository = Depends(get_dataset)):
        return dataset.load_metadata()

    @app.get("/dataset/crops", tags=["Dataset"])
    def dataset_crops(dataset: CropDatasetRepository = Depends(get_dataset)):
        return {"crops": dataset.available_crops()}

    @app.get("/dataset/states", tags=["Dataset"])
    def dataset_states(dataset: CropDatasetRepository = Depends(get_dataset)):
        return {"states": dataset.available_states()}

    @app.get("/dataset/years", tags=["Dataset"])
    def dataset_years(dataset: CropDatasetRepository = Depends(get_dataset)):
        return dataset.year_range()

    @app.get("/dataset/summary", tags=["Dataset"])
    def dataset_summary(dataset: CropDatasetRepository = Depends(get_dataset)):
        return dataset.summary()

    @app.get("/dataset/records", tags=["Dataset"])
    def dataset_records(
        crop: Optional[str] = Query(None),
        state: Optional[str] = Query(None),
        year: Optional[int] = Query(None),
        year_min: Optional[int] = Query(None),
        year_max: Optional[int] = Query(None),
        dataset: CropDatasetRepository = Depends(get_dataset),
    ):
        """Records matching all given filters."""
        year_range = None
        if year_min is not None or year_max is not None:
            year_range = (
                year_min if year_min is not None else -10**9,
                year_max if year_max is not None else 10**9,
            )
        df = dataset.filtered(crop=crop, state=state, year=year, year_range=year_range)
        return {"count": len(df), "records": to_records(df)}

    @app.get("/dataset/trend", tags=["Dataset"])
    def dataset_trend(
        crop: Optional[str] = Query(None),
        state: Optional[str] = Query(None),
        dataset: CropDatasetRepository = Depends(get_dataset),
    ):
        """Chart series: yield trend, weather vs yield, soil vs yield."""
        df = dataset.filtered(crop=crop, state=state)
        return {
            "yield_trend": to_records(dataset.yield_trend(df)),
            "weather_yield": to_records(dataset.weather_yield(df)),
            "soil_yield": to_records(dataset.soil_yield(df)),
        }

    @app.get("/dataset/crops/{crop}", tags=["Dataset"])
    def dataset_by_crop(crop: str, dataset: CropDatasetRepository = Depends(get_dataset)):
        df = dataset.load_by_crop(crop)
        return {"crop": crop, "count": len(df), "records": to_records(df)}

    @app.get("/dataset/states/{state}", tags=["Dataset"])
    def dataset_by_state(state: str, dataset: CropDatasetRepository = Depends(get_dataset)):
        df = dataset.load_by_state(state)
        return {"state": state, "count": len(df), "records": to_records(df)}


app = create_app()


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════════

def run_server(host: str = API_CONFIG.host, port: int = API_CONFIG.port, reload: bool = API_CONFIG.reload):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "yield_dashboard.api:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    run_server()
