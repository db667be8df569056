"""
Recommendation Composer.

Turns farm metadata, a sensor reading and a fertilizer prediction (ML or
fallback) into a farmer-facing recommendation:
- primary / secondary / organic fertilizers with quantities
- per-hectare cost estimate
- application timing
- soil condition diagnosis

Quantities and costs scale with field size converted to hectares. Required
numeric inputs are re-validated here so NaN never reaches cost fields.
"""
import logging
import math
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Dict, List, Optional, Tuple, Union

from agricure.services.fallback_selector import FertilizerChoice
from agricure.services.fertilizer_catalog import (
    get_fertilizer_info,
    resolve_crop_type,
    crop_name_for_id,
)
from agricure.services.recommendation_rules import (
    UNIT_TO_HECTARES,
    MAX_FIELD_SIZE,
    RecommendationConfig,
    DEFAULT_RECOMMENDATION_CONFIG,
)
from agricure.services.soil_health_scorer import (
    SensorReading,
    SoilHealthResult,
    score,
    round_half_up,
    get_ph_status,
    get_moisture_status,
    get_deficient_nutrients,
)

logger = logging.getLogger(__name__)

UNIT_ALIASES = {
    "acre": "acres",
    "hectare": "hectares",
    "ha": "hectares",
}

APPLICATION_TIMING = {
    "primary": "Apply 1-2 weeks before planting for optimal nutrient availability",
    "secondary": "Apply during active growth phase or as recommended for specific fertilizer",
    "organic": "Apply 3-4 weeks before planting to allow decomposition",
}

SECONDARY_DETAILS = {
    "DAP": (
        "Addresses phosphorus deficiency identified in soil analysis",
        "Apply as basal dose during soil preparation",
    ),
    "Potassium sulfate": (
        "Addresses potassium deficiency for better fruit quality",
        "Apply during fruit development stage",
    ),
    "Organic Compost": (
        "Improves soil structure and provides slow-release nutrients",
        "Apply 2-3 weeks before planting and incorporate into soil",
    ),
}


class ValidationError(Exception):
    """Raised when required numeric inputs are missing or not finite numbers."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Please check your inputs: " + "; ".join(errors))


@dataclass
class FarmProfile:
    """Field metadata supplied with a recommendation request."""
    field_name: str = ""
    field_size: Union[float, str, None] = 1.0
    size_unit: str = "hectares"
    crop_type: Union[int, str, None] = None
    sowing_date: Optional[str] = None


@dataclass
class FertilizerItem:
    name: str
    amount_kg: int
    amount: str
    reason: str
    application_method: str
    npk: Optional[str] = None


@dataclass
class OrganicOption:
    name: str
    amount_kg: int
    amount: str
    benefits: str
    application_timing: str


@dataclass
class CostEstimate:
    """Integer currency costs; total is always the sum of the three parts."""
    primary: int
    secondary: int
    organic: int
    total: int
    currency: str
    formatted: Dict[str, str] = field(default_factory=dict)


@dataclass
class SoilConditionAnalysis:
    ph_status: str
    moisture_status: str
    nutrient_deficiency: List[str]
    recommendations: List[str]


@dataclass
class Recommendation:
    field_name: str
    crop_name: str
    field_size_hectares: float
    primary_fertilizer: FertilizerItem
    secondary_fertilizer: FertilizerItem
    organic_options: List[OrganicOption]
    application_timing: Dict[str, str]
    cost_estimate: CostEstimate
    soil_condition: SoilConditionAnalysis
    soil_health: SoilHealthResult
    ml_prediction: FertilizerChoice

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_name": self.field_name,
            "crop_name": self.crop_name,
            "field_size_hectares": self.field_size_hectares,
            "primary_fertilizer": asdict(self.primary_fertilizer),
            "secondary_fertilizer": asdict(self.secondary_fertilizer),
            "organic_options": [asdict(o) for o in self.organic_options],
            "application_timing": dict(self.application_timing),
            "cost_estimate": asdict(self.cost_estimate),
            "soil_condition": asdict(self.soil_condition),
            "soil_health": self.soil_health.to_dict(),
            "ml_prediction": self.ml_prediction.to_dict(),
        }


def _conversion_factor(unit: Optional[str], unit_conversion: Optional[Dict[str, float]]) -> float:
    factors = unit_conversion or UNIT_TO_HECTARES
    key = (unit or "hectares").strip().lower()
    key = UNIT_ALIASES.get(key, key)
    factor = factors.get(key)
    if factor is None:
        logger.warning(f"[Composer] Unknown field unit '{unit}' - treating size as hectares")
        return 1.0
    return factor


def convert_to_hectares(
    size: float,
    unit: Optional[str],
    unit_conversion: Optional[Dict[str, float]] = None,
) -> float:
    """Convert a field size in acres, bigha or hectares to hectares."""
    return size * _conversion_factor(unit, unit_conversion)


def convert_from_hectares(
    hectares: float,
    unit: Optional[str],
    unit_conversion: Optional[Dict[str, float]] = None,
) -> float:
    """Inverse of convert_to_hectares."""
    return hectares / _conversion_factor(unit, unit_conversion)


def format_currency(amount: int, symbol: str = "₹") -> str:
    """Format an integer amount with Indian digit grouping (1,23,456)."""
    sign = "-" if amount < 0 else ""
    digits = str(abs(int(amount)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}{symbol}{digits}"


def _coerce_number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise ValueError("missing")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError("not finite")
    return number


def validate_inputs(farm: FarmProfile, reading: SensorReading) -> Tuple[float, SensorReading]:
    """
    Re-validate required numeric inputs.

    Returns:
        Tuple of (field size as float, reading with float fields)

    Raises:
        ValidationError: listing every missing or non-numeric field
    """
    errors = []
    values = {}

    required = {
        "field_size": farm.field_size,
        "nitrogen": reading.nitrogen,
        "phosphorus": reading.phosphorus,
        "potassium": reading.potassium,
        "ph": reading.ph,
        "soil_moisture": reading.soil_moisture,
        "ambient_temperature": reading.ambient_temperature,
        "humidity": reading.humidity,
    }
    for name, raw in required.items():
        try:
            values[name] = _coerce_number(raw)
        except (TypeError, ValueError):
            errors.append(f"{name} must be a finite number (got {raw!r})")

    if "field_size" in values and values["field_size"] <= 0:
        errors.append(f"field_size must be greater than 0 (got {farm.field_size!r})")
    elif "field_size" in values and values["field_size"] > MAX_FIELD_SIZE:
        errors.append(f"field_size must be at most {MAX_FIELD_SIZE:g} (got {farm.field_size!r})")

    if errors:
        logger.warning(f"[Composer] Rejected request: {errors}")
        raise ValidationError(errors)

    field_size = values.pop("field_size")
    return field_size, replace(reading, **values)


def _check_scaled_amounts(hectares: float, config: RecommendationConfig):
    """Reject areas whose quantities or costs would not be finite."""
    rates = [
        config.primary_rate_kg_ha,
        config.primary_cost_per_ha,
        config.secondary_cost_per_ha,
        config.organic_cost_per_ha,
    ]
    rates.extend(config.secondary_rates_kg_ha.values())
    rates.extend(rate for _, rate, _, _ in config.organic_options)

    if not all(math.isfinite(hectares * rate) for rate in rates):
        error = f"field size of {hectares!r} hectares is too large to price"
        logger.warning(f"[Composer] Rejected request: {error}")
        raise ValidationError([error])


def build_soil_condition(reading: SensorReading) -> SoilConditionAnalysis:
    ph_status = get_ph_status(reading.ph)
    moisture_status = get_moisture_status(reading.soil_moisture)
    deficiency = get_deficient_nutrients(reading.nitrogen, reading.phosphorus, reading.potassium)

    if ph_status == "Acidic":
        ph_advice = "Adjust soil pH using lime"
    elif ph_status == "Alkaline":
        ph_advice = "Adjust soil pH using sulfur"
    else:
        ph_advice = "Maintain current pH levels"

    if moisture_status == "Low":
        moisture_advice = "Increase irrigation frequency"
    elif moisture_status == "High":
        moisture_advice = "Improve drainage"
    else:
        moisture_advice = "Maintain current moisture levels"

    if deficiency:
        nutrient_advice = f"Address {', '.join(deficiency)} deficiency"
    else:
        nutrient_advice = "Nutrient levels are adequate"

    return SoilConditionAnalysis(
        ph_status=ph_status,
        moisture_status=moisture_status,
        nutrient_deficiency=deficiency,
        recommendations=[
            ph_advice,
            moisture_advice,
            nutrient_advice,
            "Regular soil testing every 6 months is recommended",
            "Consider crop rotation to maintain soil health",
        ],
    )


def select_secondary_fertilizer(deficient_nutrients: List[str]) -> str:
    """Secondary choice from the deficiency list, independent of the primary selector."""
    if "Phosphorus" in deficient_nutrients:
        return "DAP"
    if "Potassium" in deficient_nutrients:
        return "Potassium sulfate"
    return "Organic Compost"


def compose(
    farm: FarmProfile,
    reading: SensorReading,
    fertilizer_choice: FertilizerChoice,
    unit_conversion: Optional[Dict[str, float]] = None,
    config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
) -> Recommendation:
    """
    Build the farmer-facing recommendation.

    Args:
        farm: Field metadata (size, unit, crop)
        reading: Sensor reading for the field
        fertilizer_choice: Primary fertilizer from the ML backend or fallback
        unit_conversion: Optional unit -> hectare factor table override
        config: Business constants (rates, cost multipliers, currency)

    Raises:
        ValidationError: if required numeric inputs are invalid
    """
    field_size, reading = validate_inputs(farm, reading)
    hectares = convert_to_hectares(field_size, farm.size_unit, unit_conversion)
    _check_scaled_amounts(hectares, config)

    crop_type_id = resolve_crop_type(farm.crop_type)
    crop_name = crop_name_for_id(crop_type_id) or "Unknown"

    soil_health = score(reading)
    soil_condition = build_soil_condition(reading)

    info = get_fertilizer_info(fertilizer_choice.fertilizer)
    primary_kg = round_half_up(config.primary_rate_kg_ha * hectares)
    primary = FertilizerItem(
        name=fertilizer_choice.fertilizer,
        amount_kg=primary_kg,
        amount=f"{primary_kg} kg",
        reason=info["description"] if info else f"ML model recommends this fertilizer for {crop_name}",
        application_method=info["application"] if info else "Apply as per standard agricultural practices",
        npk=info["npk"] if info else None,
    )

    secondary_name = select_secondary_fertilizer(soil_condition.nutrient_deficiency)
    secondary_kg = round_half_up(config.secondary_rates_kg_ha[secondary_name] * hectares)
    secondary_reason, secondary_method = SECONDARY_DETAILS[secondary_name]
    secondary_info = get_fertilizer_info(secondary_name)
    secondary = FertilizerItem(
        name=secondary_name,
        amount_kg=secondary_kg,
        amount=f"{secondary_kg} kg",
        reason=secondary_reason,
        application_method=secondary_method,
        npk=secondary_info["npk"] if secondary_info else None,
    )

    organic_options = []
    for name, rate, benefits, timing in config.organic_options:
        kg = round_half_up(rate * hectares)
        organic_options.append(OrganicOption(
            name=name,
            amount_kg=kg,
            amount=f"{kg} kg",
            benefits=benefits,
            application_timing=timing,
        ))

    primary_cost = round_half_up(hectares * config.primary_cost_per_ha)
    secondary_cost = round_half_up(hectares * config.secondary_cost_per_ha)
    organic_cost = round_half_up(hectares * config.organic_cost_per_ha)
    total_cost = primary_cost + secondary_cost + organic_cost

    cost_estimate = CostEstimate(
        primary=primary_cost,
        secondary=secondary_cost,
        organic=organic_cost,
        total=total_cost,
        currency=config.currency,
        formatted={
            "primary": format_currency(primary_cost, config.currency_symbol),
            "secondary": format_currency(secondary_cost, config.currency_symbol),
            "organic": format_currency(organic_cost, config.currency_symbol),
            "total": format_currency(total_cost, config.currency_symbol),
        },
    )

    logger.info(
        f"[Composer] {farm.field_name or 'field'}: {hectares:.3f} ha, crop={crop_name}, "
        f"primary={primary.name} {primary_kg} kg, secondary={secondary_name}, total={total_cost}"
    )

    return Recommendation(
        field_name=farm.field_name,
        crop_name=crop_name,
        field_size_hectares=hectares,
        primary_fertilizer=primary,
        secondary_fertilizer=secondary,
        organic_options=organic_options,
        application_timing=dict(APPLICATION_TIMING),
        cost_estimate=cost_estimate,
        soil_condition=soil_condition,
        soil_health=soil_health,
        ml_prediction=fertilizer_choice,
    )
