"""
Pydantic schemas for the soil health and fertilizer recommendation API.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any, Union
from enum import Enum

from agricure.services.recommendation_rules import MAX_FIELD_SIZE


# ==================== ENUMS ====================

class SizeUnitEnum(str, Enum):
    """Field size units."""
    ACRES = "acres"
    BIGHA = "bigha"
    HECTARES = "hectares"


# ==================== REQUEST SCHEMAS ====================

class SensorReadingInput(BaseModel):
    """Soil and environment sensor reading."""
    nitrogen: float = Field(..., allow_inf_nan=False, description="N mg/kg")
    phosphorus: float = Field(..., allow_inf_nan=False, description="P mg/kg")
    potassium: float = Field(..., allow_inf_nan=False, description="K mg/kg")
    ph: float = Field(..., allow_inf_nan=False, description="Soil pH")
    soil_moisture: float = Field(..., allow_inf_nan=False, description="Soil moisture %")
    ambient_temperature: float = Field(..., allow_inf_nan=False, description="Air temperature °C")
    humidity: float = Field(..., allow_inf_nan=False, description="Relative humidity %")
    soil_temperature: Optional[float] = Field(None, allow_inf_nan=False, description="Soil temperature °C")
    electrical_conductivity: Optional[float] = Field(None, allow_inf_nan=False, description="EC µS/cm")
    sunlight_intensity: Optional[float] = Field(None, allow_inf_nan=False, description="Sunlight lux")


class FarmInput(BaseModel):
    """Field metadata."""
    field_name: str = Field(default="", max_length=100)
    field_size: float = Field(..., gt=0, le=MAX_FIELD_SIZE, allow_inf_nan=False, description="Field size in size_unit")
    size_unit: SizeUnitEnum = SizeUnitEnum.HECTARES
    crop_type: Union[int, str, None] = Field(None, description="Crop type id or crop name")
    sowing_date: Optional[str] = None


class RecommendationRequest(BaseModel):
    """Request schema for a full fertilizer recommendation."""
    farm: FarmInput
    reading: SensorReadingInput
    use_ml: bool = Field(default=True, description="Query the ML backend before falling back to rules")
    use_llm: bool = Field(default=False, description="Attach the LLM-enhanced report when available")


class FallbackRequest(BaseModel):
    """Request schema for the rule-based fertilizer selector."""
    crop_type: Union[int, str, None] = None
    nitrogen: float = Field(..., allow_inf_nan=False)
    phosphorus: float = Field(..., allow_inf_nan=False)
    potassium: float = Field(..., allow_inf_nan=False)


# ==================== RESPONSE SCHEMAS ====================

class FertilizerChoiceResponse(BaseModel):
    fertilizer: str
    confidence: float
    source: str = "fallback"


class SoilHealthResponse(BaseModel):
    """Soil health index with independent deficiency flags."""
    overall_score: int = Field(..., ge=0, le=100)
    category: str
    display_label: str
    parameter_scores: Dict[str, int] = Field(default_factory=dict)
    parameter_status: Dict[str, str] = Field(default_factory=dict)
    deficient_nutrients: List[str] = Field(default_factory=list)
    recommendation: str = ""


class SensorStatusItem(BaseModel):
    value: float
    status: str
    gauge: float


class SensorStatusResponse(BaseModel):
    channels: Dict[str, SensorStatusItem]


class FertilizerItemResponse(BaseModel):
    name: str
    amount_kg: int
    amount: str
    reason: str
    application_method: str
    npk: Optional[str] = None


class OrganicOptionResponse(BaseModel):
    name: str
    amount_kg: int
    amount: str
    benefits: str
    application_timing: str


class CostEstimateResponse(BaseModel):
    primary: int
    secondary: int
    organic: int
    total: int
    currency: str
    formatted: Dict[str, str] = Field(default_factory=dict)


class SoilConditionResponse(BaseModel):
    ph_status: str
    moisture_status: str
    nutrient_deficiency: List[str]
    recommendations: List[str]


class RecommendationResponse(BaseModel):
    """Response schema for a full recommendation."""
    field_name: str
    crop_name: str
    field_size_hectares: float
    primary_fertilizer: FertilizerItemResponse
    secondary_fertilizer: FertilizerItemResponse
    organic_options: List[OrganicOptionResponse]
    application_timing: Dict[str, str]
    cost_estimate: CostEstimateResponse
    soil_condition: SoilConditionResponse
    soil_health: SoilHealthResponse
    ml_prediction: FertilizerChoiceResponse
    prediction_source: str
    llm_enhanced: Optional[Dict[str, Any]] = None


class CropOption(BaseModel):
    value: str
    label: str
    id: int


class CropListResponse(BaseModel):
    crops: List[CropOption]


class FertilizerInfoResponse(BaseModel):
    name: str
    description: str
    application: str
    benefits: str
    precautions: str
    npk: str


class FertilizerListResponse(BaseModel):
    fertilizers: List[FertilizerInfoResponse]


class MLHealthResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    status: str
    model_loaded: bool
    model_type: str
    timestamp: str
