"""
ML Backend Client - httpx client for the external fertilizer prediction service.

Endpoints consumed:
- POST /predict               -> {fertilizer, confidence, prediction_info}
- POST /predict-llm-enhanced  -> LLM-enhanced report (passed through as dict)
- GET  /health
- GET  /model-info

Each request uses a timeout and is retried once. Any failure surfaces as
UpstreamUnavailable, the trigger for the fallback path.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

import httpx

from agricure import config
from agricure.services.fallback_selector import FertilizerChoice
from agricure.services.fertilizer_catalog import crop_name_for_id, resolve_crop_type
from agricure.services.recommendation_rules import DEFAULT_ML_PH, DEFAULT_ML_CROP_NAME
from agricure.services.soil_health_scorer import SensorReading

logger = logging.getLogger(__name__)


class UpstreamUnavailable(Exception):
    """Raised when the ML backend cannot produce a usable response."""
    pass


def build_prediction_features(
    reading: SensorReading,
    crop_type: Union[int, str, None],
) -> Dict[str, Any]:
    """Map a reading and crop to the backend's feature payload."""
    crop_name = crop_name_for_id(resolve_crop_type(crop_type)) or DEFAULT_ML_CROP_NAME
    return {
        "Temperature": reading.ambient_temperature,
        "Humidity": reading.humidity,
        "Moisture": reading.soil_moisture,
        "Crop_Type": crop_name,
        "Nitrogen": reading.nitrogen,
        "Potassium": reading.potassium,
        "Phosphorous": reading.phosphorus,
        "pH": reading.ph if reading.ph else DEFAULT_ML_PH,
    }


class MLBackendClient:
    """Thin synchronous client for the fertilizer prediction backend."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or config.ML_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.ML_TIMEOUT_SECONDS
        self.retries = max(0, retries if retries is not None else config.ML_RETRIES)
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    def _request(self, method: str, path: str, payload: Optional[Dict] = None) -> Dict[str, Any]:
        last_error: Optional[Exception] = None

        with self._client() as client:
            for attempt in range(1, self.retries + 2):
                try:
                    response = client.request(method, path, json=payload)
                    response.raise_for_status()
                    data = response.json()
                    if not isinstance(data, dict):
                        raise ValueError(f"expected JSON object, got {type(data).__name__}")
                    return data
                except (httpx.HTTPError, ValueError) as e:
                    last_error = e
                    logger.warning(f"[MLClient] {method} {path} attempt {attempt} failed: {e}")

        raise UpstreamUnavailable(f"{method} {path} failed: {last_error}") from last_error

    def predict(self, features: Dict[str, Any]) -> FertilizerChoice:
        """
        Get a fertilizer prediction.

        Raises:
            UpstreamUnavailable: on transport errors, non-2xx status or a
                payload without fertilizer/confidence
        """
        data = self._request("POST", "/predict", features)
        fertilizer = data.get("fertilizer")
        confidence = data.get("confidence")

        if not isinstance(fertilizer, str) or not fertilizer:
            raise UpstreamUnavailable("prediction response has no fertilizer")
        try:
            confidence = float(confidence)
        except (TypeError, ValueError):
            raise UpstreamUnavailable(f"prediction response has invalid confidence: {confidence!r}")

        logger.info(f"[MLClient] Prediction: {fertilizer} ({confidence:.1f}%)")
        return FertilizerChoice(fertilizer=fertilizer, confidence=confidence, source="ml")

    def predict_llm_enhanced(
        self,
        features: Dict[str, Any],
        field_size: float = 1.0,
        field_unit: str = "hectares",
        sowing_date: Optional[str] = None,
        bulk_density: float = 1.3,
        sampling_depth_cm: float = 15.0,
    ) -> Dict[str, Any]:
        """Get the LLM-enhanced report for the same features plus field metadata."""
        payload = dict(features)
        payload.update({
            "Sowing_Date": sowing_date,
            "Field_Size": field_size,
            "Field_Unit": field_unit,
            "Bulk_Density_g_cm3": bulk_density,
            "Sampling_Depth_cm": sampling_depth_cm,
        })
        return self._request("POST", "/predict-llm-enhanced", payload)

    def model_info(self) -> Dict[str, Any]:
        return self._request("GET", "/model-info")

    def health_check(self) -> Dict[str, Any]:
        """Backend health; never raises."""
        try:
            data = self._request("GET", "/health")
        except UpstreamUnavailable as e:
            logger.warning(f"[MLClient] Health check failed: {e}")
            return {
                "status": "unhealthy",
                "model_loaded": False,
                "model_type": "Unknown",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

        return {
            "status": data.get("status") or "healthy",
            "model_loaded": bool(data.get("model_loaded", False)),
            "model_type": data.get("model_type") or "Unknown",
            "timestamp": data.get("timestamp") or datetime.now(timezone.utc).isoformat(),
        }
