"""
Soil Health Scorer.

Combines normalized per-parameter scores into a weighted 0-100 soil health
index and a qualitative category, plus two independent discrete layers:
- per-parameter status labels (Low / Optimal / High)
- nutrient deficiency flags from fixed mg/kg thresholds

A farm can score high on the index and still carry a flagged deficiency.
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any

from agricure.services.soil_normalizer import normalize, clamp01
from agricure.services.recommendation_rules import (
    SOIL_HEALTH_WEIGHTS,
    CATEGORY_THRESHOLDS,
    VERY_POOR_DISPLAY_THRESHOLD,
    PH_LOW_BELOW,
    PH_HIGH_ABOVE,
    MOISTURE_LOW_BELOW,
    MOISTURE_HIGH_ABOVE,
    TEMPERATURE_LOW_BELOW,
    TEMPERATURE_HIGH_ABOVE,
    HUMIDITY_LOW_BELOW,
    HUMIDITY_HIGH_ABOVE,
    DEFICIENCY_THRESHOLDS,
)


class SoilHealthCategory(str, Enum):
    """Qualitative soil health category."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    MODERATE = "Moderate"
    POOR = "Poor"
    VERY_POOR = "Very Poor"


class ParameterStatus(str, Enum):
    LOW = "Low"
    OPTIMAL = "Optimal"
    HIGH = "High"


CATEGORY_ADVICE = {
    SoilHealthCategory.EXCELLENT: "Maintain current soil management practices",
    SoilHealthCategory.GOOD: "Apply balanced fertilizer to sustain soil fertility",
    SoilHealthCategory.MODERATE: "Add organic matter to improve soil structure and fertility",
    SoilHealthCategory.POOR: "Rebuild soil health with organic amendments and targeted fertilization",
}


@dataclass(frozen=True)
class SensorReading:
    """One soil + environment sensor reading."""
    nitrogen: float  # mg/kg
    phosphorus: float  # mg/kg
    potassium: float  # mg/kg
    ph: float
    soil_moisture: float  # %
    ambient_temperature: float  # °C
    humidity: float  # %
    soil_temperature: Optional[float] = None  # °C
    electrical_conductivity: Optional[float] = None
    sunlight_intensity: Optional[float] = None  # lux
    timestamp: Optional[str] = None

    def scoring_inputs(self) -> Dict[str, float]:
        """Raw values keyed by the scorer's parameter names."""
        return {
            "nitrogen": self.nitrogen,
            "phosphorus": self.phosphorus,
            "potassium": self.potassium,
            "ph": self.ph,
            "soil_moisture": self.soil_moisture,
            "temperature": self.ambient_temperature,
            "humidity": self.humidity,
        }

    def sensor_channels(self) -> Dict[str, Optional[float]]:
        """Raw values keyed by sensor card channel."""
        return {
            "nitrogen": self.nitrogen,
            "phosphorus": self.phosphorus,
            "potassium": self.potassium,
            "ph": self.ph,
            "soil_moisture": self.soil_moisture,
            "electrical_conductivity": self.electrical_conductivity,
            "soil_temperature": self.soil_temperature,
            "ambient_temperature": self.ambient_temperature,
            "humidity": self.humidity,
            "sunlight_intensity": self.sunlight_intensity,
        }


@dataclass(frozen=True)
class SoilHealthResult:
    """Result of a soil health evaluation. Built fresh for every reading."""
    overall_score: int
    category: SoilHealthCategory
    parameter_scores: Dict[str, int] = field(default_factory=dict)
    parameter_status: Dict[str, ParameterStatus] = field(default_factory=dict)
    deficient_nutrients: List[str] = field(default_factory=list)
    recommendation: str = ""

    @property
    def display_label(self) -> str:
        return display_label(self.overall_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "category": self.category.value,
            "display_label": self.display_label,
            "parameter_scores": dict(self.parameter_scores),
            "parameter_status": {k: v.value for k, v in self.parameter_status.items()},
            "deficient_nutrients": list(self.deficient_nutrients),
            "recommendation": self.recommendation,
        }


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def classify_score(overall_score: int) -> SoilHealthCategory:
    """Map a 0-100 index to its category (lower bounds inclusive)."""
    for lower_bound, label in CATEGORY_THRESHOLDS:
        if overall_score >= lower_bound:
            return SoilHealthCategory(label)
    return SoilHealthCategory.POOR


def display_label(overall_score: int) -> str:
    """Category label for UI text, with the extra Very Poor tier."""
    if overall_score < VERY_POOR_DISPLAY_THRESHOLD:
        return SoilHealthCategory.VERY_POOR.value
    return classify_score(overall_score).value


def _band(value: float, low_below: float, high_above: float) -> ParameterStatus:
    if value < low_below:
        return ParameterStatus.LOW
    if value > high_above:
        return ParameterStatus.HIGH
    return ParameterStatus.OPTIMAL


def get_ph_status(ph: float) -> str:
    """Acidic / Alkaline / Optimal wording used in soil diagnosis text."""
    if ph < PH_LOW_BELOW:
        return "Acidic"
    if ph > PH_HIGH_ABOVE:
        return "Alkaline"
    return "Optimal"


def get_moisture_status(moisture: float) -> str:
    return _band(moisture, MOISTURE_LOW_BELOW, MOISTURE_HIGH_ABOVE).value


def get_deficient_nutrients(nitrogen: float, phosphorus: float, potassium: float) -> List[str]:
    """Nutrients below their fixed mg/kg deficiency thresholds, in N-P-K order."""
    values = {"Nitrogen": nitrogen, "Phosphorus": phosphorus, "Potassium": potassium}
    return [
        nutrient for nutrient, threshold in DEFICIENCY_THRESHOLDS.items()
        if values[nutrient] < threshold
    ]


def get_parameter_status(reading: SensorReading) -> Dict[str, ParameterStatus]:
    deficient = get_deficient_nutrients(reading.nitrogen, reading.phosphorus, reading.potassium)

    def nutrient_status(name: str) -> ParameterStatus:
        return ParameterStatus.LOW if name in deficient else ParameterStatus.OPTIMAL

    return {
        "nitrogen": nutrient_status("Nitrogen"),
        "phosphorus": nutrient_status("Phosphorus"),
        "potassium": nutrient_status("Potassium"),
        "ph": _band(reading.ph, PH_LOW_BELOW, PH_HIGH_ABOVE),
        "soil_moisture": _band(reading.soil_moisture, MOISTURE_LOW_BELOW, MOISTURE_HIGH_ABOVE),
        "temperature": _band(reading.ambient_temperature, TEMPERATURE_LOW_BELOW, TEMPERATURE_HIGH_ABOVE),
        "humidity": _band(reading.humidity, HUMIDITY_LOW_BELOW, HUMIDITY_HIGH_ABOVE),
    }


def score(reading: SensorReading) -> SoilHealthResult:
    """
    Calculate the soil health index for a reading.

    overall = 100 * clamp01(sum(weight_i * normalized_i)), rounded half-up
    and clamped to [0, 100].
    """
    normalized = {
        parameter: normalize(parameter, value)
        for parameter, value in reading.scoring_inputs().items()
    }

    weighted = sum(SOIL_HEALTH_WEIGHTS[p] * normalized[p] for p in SOIL_HEALTH_WEIGHTS)
    overall_score = max(0, min(100, round_half_up(100 * clamp01(weighted))))
    category = classify_score(overall_score)

    return SoilHealthResult(
        overall_score=overall_score,
        category=category,
        parameter_scores={p: round_half_up(s * 100) for p, s in normalized.items()},
        parameter_status=get_parameter_status(reading),
        deficient_nutrients=get_deficient_nutrients(
            reading.nitrogen, reading.phosphorus, reading.potassium
        ),
        recommendation=CATEGORY_ADVICE[category],
    )
