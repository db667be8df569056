"""
Deterministic agronomic rules and thresholds for soil scoring and fertilizer
recommendations.

Scoring, fallback selection and recommendation composition all read their
thresholds and business constants from here.
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

# Weighted soil health index (sum = 1.0)
SOIL_HEALTH_WEIGHTS = {
    "nitrogen": 0.20,
    "phosphorus": 0.15,
    "potassium": 0.15,
    "ph": 0.15,
    "soil_moisture": 0.15,
    "temperature": 0.10,
    "humidity": 0.10,
}

# Category lower bounds, highest first
CATEGORY_THRESHOLDS = (
    (80, "Excellent"),
    (60, "Good"),
    (40, "Moderate"),
)
VERY_POOR_DISPLAY_THRESHOLD = 20

# Discrete per-parameter bands: (low_below, high_above)
PH_LOW_BELOW = 6.0
PH_HIGH_ABOVE = 7.5
MOISTURE_LOW_BELOW = 40.0
MOISTURE_HIGH_ABOVE = 80.0
TEMPERATURE_LOW_BELOW = 18.0
TEMPERATURE_HIGH_ABOVE = 30.0
HUMIDITY_LOW_BELOW = 50.0
HUMIDITY_HIGH_ABOVE = 70.0

# Nutrient deficiency flags (mg/kg), independent of the overall index
DEFICIENCY_THRESHOLDS = {
    "Nitrogen": 30.0,
    "Phosphorus": 15.0,
    "Potassium": 120.0,
}

# Field size conversion factors to hectares
UNIT_TO_HECTARES = {
    "acres": 0.404686,
    "bigha": 0.1338,
    "hectares": 1.0,
}

# Largest accepted field size, in the request's own unit
MAX_FIELD_SIZE = 1_000_000.0

DEFAULT_ML_PH = 6.5
DEFAULT_ML_CROP_NAME = "Wheat"


@dataclass(frozen=True)
class RecommendationConfig:
    """Business constants for fallback confidence, quantities and costs."""
    fallback_confidence: float = 92.0
    primary_rate_kg_ha: float = 100.0
    primary_cost_per_ha: float = 4000.0
    secondary_cost_per_ha: float = 2500.0
    organic_cost_per_ha: float = 2000.0
    # Secondary fertilizer rates by the deficiency that selected them
    secondary_rates_kg_ha: Dict[str, float] = field(default_factory=lambda: {
        "DAP": 50.0,
        "Potassium sulfate": 40.0,
        "Organic Compost": 1000.0,
    })
    # (name, kg/ha, benefits, timing)
    organic_options: Tuple[Tuple[str, float, str, str], ...] = (
        ("Vermicompost", 1000.0,
         "Rich in nutrients, improves soil structure and water retention",
         "Apply 3-4 weeks before planting"),
        ("Neem Cake", 200.0,
         "Natural pest deterrent and slow-release nitrogen source",
         "Apply at the time of land preparation"),
        ("Bone Meal", 150.0,
         "Excellent source of phosphorus and calcium",
         "Apply as basal dose before sowing"),
    )
    currency: str = "INR"
    currency_symbol: str = "₹"


DEFAULT_RECOMMENDATION_CONFIG = RecommendationConfig()
