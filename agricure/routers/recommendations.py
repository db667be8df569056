"""
Soil Health & Fertilizer Recommendation Router.
Provides endpoints for soil scoring, fallback selection and full recommendations.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from agricure.schemas.recommendation_schemas import (
    SensorReadingInput,
    FarmInput,
    RecommendationRequest,
    FallbackRequest,
    FertilizerChoiceResponse,
    SoilHealthResponse,
    SensorStatusResponse,
    RecommendationResponse,
    CropListResponse,
    FertilizerListResponse,
    MLHealthResponse,
)
from agricure.services.fallback_selector import select_fertilizer
from agricure.services.fertilizer_catalog import (
    get_crop_options,
    get_fertilizer_info,
    get_fertilizer_names,
    resolve_crop_type,
)
from agricure.services.ml_client import MLBackendClient
from agricure.services.recommendation_composer import FarmProfile, ValidationError
from agricure.services.recommendation_service import RecommendationService
from agricure.services.sensor_feed import SensorFeedError, ThingSpeakFeed
from agricure.services.sensor_thresholds import summarize
from agricure.services.soil_health_scorer import SensorReading, score

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


def get_recommendation_service() -> RecommendationService:
    return RecommendationService(MLBackendClient())


def get_sensor_feed() -> ThingSpeakFeed:
    return ThingSpeakFeed()


def reading_input_to_data(reading: SensorReadingInput) -> SensorReading:
    """Convert request schema to scorer data class."""
    return SensorReading(
        nitrogen=reading.nitrogen,
        phosphorus=reading.phosphorus,
        potassium=reading.potassium,
        ph=reading.ph,
        soil_moisture=reading.soil_moisture,
        ambient_temperature=reading.ambient_temperature,
        humidity=reading.humidity,
        soil_temperature=reading.soil_temperature,
        electrical_conductivity=reading.electrical_conductivity,
        sunlight_intensity=reading.sunlight_intensity,
    )


def farm_input_to_data(farm: FarmInput) -> FarmProfile:
    return FarmProfile(
        field_name=farm.field_name,
        field_size=farm.field_size,
        size_unit=farm.size_unit.value,
        crop_type=farm.crop_type,
        sowing_date=farm.sowing_date,
    )


@router.post("/soil-health", response_model=SoilHealthResponse)
async def calculate_soil_health(reading: SensorReadingInput):
    """
    Calculate the weighted 0-100 soil health index, its category, per-parameter
    status and the independent nutrient deficiency list.
    """
    result = score(reading_input_to_data(reading))
    return SoilHealthResponse(**result.to_dict())


@router.post("/sensor-status", response_model=SensorStatusResponse)
async def get_sensor_status(reading: SensorReadingInput):
    """OPTIMAL / WARNING / CRITICAL status and gauge position per sensor channel."""
    return SensorStatusResponse(channels=summarize(reading_input_to_data(reading).sensor_channels()))


@router.post("/fallback", response_model=FertilizerChoiceResponse)
async def get_fallback_fertilizer(request: FallbackRequest):
    """Rule-based fertilizer prediction, same shape as the ML backend response."""
    choice = select_fertilizer(
        resolve_crop_type(request.crop_type),
        request.nitrogen,
        request.phosphorus,
        request.potassium,
    )
    return FertilizerChoiceResponse(**choice.to_dict())


@router.post("", response_model=RecommendationResponse)
def create_recommendation(
    request: RecommendationRequest,
    service: RecommendationService = Depends(get_recommendation_service),
):
    """
    Full fertilizer recommendation: ML prediction (or fallback rules when the
    ML backend is unavailable), quantities, costs, timing and soil diagnosis.
    """
    try:
        outcome = service.recommend(
            farm_input_to_data(request.farm),
            reading_input_to_data(request.reading),
            use_ml=request.use_ml,
            use_llm=request.use_llm,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": "Please check your inputs", "errors": e.errors},
        )

    return RecommendationResponse(**outcome.to_dict())


@router.get("/crops", response_model=CropListResponse)
async def list_crops():
    """Crop type options for dropdowns."""
    return {"crops": get_crop_options()}


@router.get("/fertilizers", response_model=FertilizerListResponse)
async def list_fertilizers():
    """Fertilizer catalog."""
    fertilizers = [
        {"name": name, **get_fertilizer_info(name)}
        for name in get_fertilizer_names()
    ]
    return {"fertilizers": fertilizers}


@router.get("/ml-health", response_model=MLHealthResponse)
def get_ml_health(service: RecommendationService = Depends(get_recommendation_service)):
    """Health of the external ML backend."""
    return service.ml_client.health_check()


@router.get("/sensor-feed/latest", response_model=SoilHealthResponse)
def score_latest_sensor_feed(feed: ThingSpeakFeed = Depends(get_sensor_feed)):
    """Fetch the latest sensor feed entry and score it."""
    try:
        reading = feed.fetch_latest()
    except SensorFeedError as e:
        logger.error(f"[SensorFeed] {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return SoilHealthResponse(**score(reading).to_dict())
