from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, Field

from zodiac_predictor import __version__
from zodiac_predictor import database as db
from zodiac_predictor.config import get_lottery_types
from zodiac_predictor.engine import InsufficientData
from zodiac_predictor.loader import sync_lottery
from zodiac_predictor.notifier import TelegramNotifier
from zodiac_predictor.predictor import Predictor


# Pydantic models for response
class Recommendations(BaseModel):
    combined_zodiacs: List[str] = Field(..., description="Top zodiac labels by combined score")
    combined_numbers: List[int] = Field(..., description="Member numbers of the top labels, ascending")


class PredictionReportModel(BaseModel):
    generated_at: str
    based_on_records: int = Field(..., description="Usable draws the report was computed from")
    rejected_records: int = Field(0, description="Draws excluded for lacking a resolvable special number")
    recommendations: Recommendations
    analysis_details: Dict[str, Any]


class StoredPredictionModel(BaseModel):
    id: int
    lottery_type: str
    created_at: Optional[str] = None
    prediction_data: PredictionReportModel


# Global component references (created lazily, replaceable in tests)
predictor: Optional[Predictor] = None


def set_predictor(pred: Optional[Predictor]):
    global predictor
    predictor = pred


def get_predictor_instance() -> Predictor:
    global predictor
    if predictor is None:
        predictor = Predictor()
    return predictor


def _resolve_lottery_type(lottery_type: Optional[str]) -> str:
    """Validate a lottery type key against the configured types."""
    if not lottery_type:
        raise HTTPException(status_code=400, detail="Query parameter `type` is required.")
    key = lottery_type.strip().upper()
    if key not in get_lottery_types():
        raise HTTPException(status_code=400, detail=f"Unknown lottery type '{lottery_type}'.")
    return key


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    if not db.initialize_database():
        raise RuntimeError("Database initialization failed")
    yield
    logger.info("Application shutdown...")


data_router = APIRouter(prefix="/api", tags=["draws"])
prediction_router = APIRouter(prefix="/api", tags=["predictions"])


@data_router.get("/health")
async def health_check():
    """Health check endpoint with timestamp"""
    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "lottery_types": get_lottery_types(),
    }


@data_router.get("/data")
async def get_data(type: Optional[str] = Query(None, description="Lottery type key"),
                   limit: Optional[int] = Query(None, ge=1, le=1000)):
    """Stored draw records of a lottery type, newest first."""
    lottery_type = _resolve_lottery_type(type)
    try:
        return db.get_records(lottery_type, limit=limit)
    except Exception as e:
        logger.error(f"[API /data] Query failed for type={lottery_type}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch records from the database.")


@data_router.post("/sync/{lottery_type}")
async def sync_data(lottery_type: str):
    """Pull the remote feed of a lottery type into storage."""
    key = _resolve_lottery_type(lottery_type)
    result = sync_lottery(key)
    if not result.success:
        raise HTTPException(status_code=502, detail=result.to_dict())
    return result.to_dict()


@data_router.delete("/records/{record_id}")
async def delete_record(record_id: int):
    if not db.delete_record(record_id):
        raise HTTPException(status_code=404, detail=f"Record {record_id} not found.")
    return {"status": "deleted", "id": record_id}


@prediction_router.get("/lottery/{lottery_type}", response_model=PredictionReportModel)
async def preview_prediction(lottery_type: str):
    """Prediction computed from stored draws without persisting it."""
    key = _resolve_lottery_type(lottery_type)
    try:
        result = get_predictor_instance().generate_for_type(key, persist=False)
    except Exception as e:
        logger.error(f"[API /lottery] Prediction failed for type={key}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to generate prediction: {str(e)}")

    if isinstance(result, InsufficientData):
        raise HTTPException(status_code=422, detail=result.to_dict())
    return result.to_dict()


@prediction_router.post("/predictions/{lottery_type}", response_model=PredictionReportModel)
async def create_prediction(lottery_type: str,
                            notify: bool = Query(True, description="Send the report to the configured chat")):
    """Generate, store and optionally announce a new prediction."""
    key = _resolve_lottery_type(lottery_type)
    try:
        result = get_predictor_instance().generate_for_type(key, persist=True)
    except Exception as e:
        logger.error(f"[API /predictions] Prediction failed for type={key}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to generate prediction: {str(e)}")

    if isinstance(result, InsufficientData):
        raise HTTPException(status_code=422, detail=result.to_dict())

    payload = result.to_dict()
    if notify:
        notifier = TelegramNotifier.from_env()
        if notifier and not notifier.send_report(payload, get_lottery_types()[key]):
            logger.warning(f"Prediction for {key} stored but chat notification failed")
    return payload


@prediction_router.get("/predictions", response_model=StoredPredictionModel)
async def get_latest_prediction(type: Optional[str] = Query(None, description="Lottery type key")):
    """Latest stored prediction report of a lottery type."""
    lottery_type = _resolve_lottery_type(type)
    latest = get_predictor_instance().get_latest_for_type(lottery_type)
    if latest is None:
        raise HTTPException(
            status_code=404,
            detail=f"No prediction found for type '{lottery_type}'. Please generate one first.",
        )
    return latest


# --- Application Initialization ---
logger.info("Initializing FastAPI application...")
app = FastAPI(
    title="Zodiac Predictor API",
    description="Statistical zodiac and number forecasts from historical draws.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(data_router)
app.include_router(prediction_router)
