"""
Recommendation Service - ML prediction with rule-based fallback.

Flow:
1. Validate inputs (composer rules)
2. Ask the ML backend for a fertilizer prediction
3. On UpstreamUnavailable, use the fallback decision table
4. Compose the farmer-facing recommendation
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from agricure.services.fallback_selector import FertilizerChoice, select_fertilizer
from agricure.services.fertilizer_catalog import resolve_crop_type
from agricure.services.ml_client import (
    MLBackendClient,
    UpstreamUnavailable,
    build_prediction_features,
)
from agricure.services.recommendation_composer import (
    FarmProfile,
    Recommendation,
    compose,
    validate_inputs,
)
from agricure.services.recommendation_rules import (
    RecommendationConfig,
    DEFAULT_RECOMMENDATION_CONFIG,
)
from agricure.services.soil_health_scorer import SensorReading

logger = logging.getLogger(__name__)


@dataclass
class RecommendationOutcome:
    recommendation: Recommendation
    prediction_source: str
    llm_enhanced: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.recommendation.to_dict()
        data["prediction_source"] = self.prediction_source
        data["llm_enhanced"] = self.llm_enhanced
        return data


class RecommendationService:
    """Produces recommendations, falling back to local rules when ML is down."""

    def __init__(
        self,
        ml_client: Optional[MLBackendClient] = None,
        config: RecommendationConfig = DEFAULT_RECOMMENDATION_CONFIG,
    ):
        self.ml_client = ml_client or MLBackendClient()
        self.config = config

    def predict(self, farm: FarmProfile, reading: SensorReading, use_ml: bool = True) -> FertilizerChoice:
        """Primary fertilizer from the ML backend, or the fallback rules."""
        if use_ml:
            try:
                return self.ml_client.predict(build_prediction_features(reading, farm.crop_type))
            except UpstreamUnavailable as e:
                logger.warning(f"[Recommendation] ML backend unavailable, using fallback rules: {e}")

        return select_fertilizer(
            resolve_crop_type(farm.crop_type),
            reading.nitrogen,
            reading.phosphorus,
            reading.potassium,
            config=self.config,
        )

    def _llm_report(self, farm: FarmProfile, reading: SensorReading, field_size: float) -> Optional[Dict[str, Any]]:
        try:
            return self.ml_client.predict_llm_enhanced(
                build_prediction_features(reading, farm.crop_type),
                field_size=field_size,
                field_unit=farm.size_unit,
                sowing_date=farm.sowing_date,
            )
        except UpstreamUnavailable as e:
            logger.warning(f"[Recommendation] LLM-enhanced report unavailable: {e}")
            return None

    def recommend(
        self,
        farm: FarmProfile,
        reading: SensorReading,
        use_ml: bool = True,
        use_llm: bool = False,
    ) -> RecommendationOutcome:
        """
        Build a full recommendation for a field.

        Raises:
            ValidationError: if required numeric inputs are invalid. Network
                errors never propagate.
        """
        field_size, reading = validate_inputs(farm, reading)

        choice = self.predict(farm, reading, use_ml=use_ml)
        recommendation = compose(farm, reading, choice, config=self.config)

        llm_enhanced = None
        if use_llm:
            llm_enhanced = self._llm_report(farm, reading, field_size)

        return RecommendationOutcome(
            recommendation=recommendation,
            prediction_source=choice.source,
            llm_enhanced=llm_enhanced,
        )
