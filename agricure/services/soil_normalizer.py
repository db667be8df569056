"""
Soil Normalizer - maps raw sensor readings to agronomic desirability scores.

Each parameter has its own piecewise curve on the unit interval:
- Nutrients (N, P, K): trapezoid (ramp up, plateau, decay)
- pH, moisture, temperature, humidity: triangle around an optimum

Every score is clamped to [0, 1]. Non-finite input scores 0.
"""
import math
from typing import Callable, Dict


class UnknownParameterError(KeyError):
    """Raised when a parameter name has no normalization curve."""
    pass


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _trapezoid(value: float, ramp_end: float, plateau_end: float, decay_end: float) -> float:
    """Linear ramp over [0, ramp_end], plateau to plateau_end, decay to 0 at decay_end."""
    if value <= 0:
        return 0.0
    if value <= ramp_end:
        return clamp01(value / ramp_end)
    if value <= plateau_end:
        return 1.0
    if value <= decay_end:
        return clamp01(1.0 - (value - plateau_end) / (decay_end - plateau_end))
    return 0.0


def _triangle(value: float, peak: float, half_width: float) -> float:
    return clamp01(1.0 - abs(value - peak) / half_width)


def normalize_nitrogen(value: float) -> float:
    return _trapezoid(value, 80.0, 180.0, 240.0)


def normalize_phosphorus(value: float) -> float:
    return _trapezoid(value, 110.0, 350.0, 400.0)


def normalize_potassium(value: float) -> float:
    return _trapezoid(value, 110.0, 350.0, 400.0)


def normalize_ph(value: float) -> float:
    # Peak at 6.75, zero outside [5.0, 8.5]
    return _triangle(value, 6.75, 1.75)


def normalize_moisture(value: float) -> float:
    return _triangle(value, 30.0, 20.0)


def normalize_temperature(value: float) -> float:
    return _triangle(value, 25.0, 10.0)


def normalize_humidity(value: float) -> float:
    return _triangle(value, 60.0, 20.0)


NORMALIZERS: Dict[str, Callable[[float], float]] = {
    "nitrogen": normalize_nitrogen,
    "phosphorus": normalize_phosphorus,
    "potassium": normalize_potassium,
    "ph": normalize_ph,
    "soil_moisture": normalize_moisture,
    "temperature": normalize_temperature,
    "humidity": normalize_humidity,
}

PARAMETER_ALIASES = {
    "n": "nitrogen",
    "p": "phosphorus",
    "k": "potassium",
    "moisture": "soil_moisture",
    "soilmoisture": "soil_moisture",
    "ambient_temperature": "temperature",
}


def normalize_parameter_name(parameter: str) -> str:
    key = parameter.strip().lower()
    return PARAMETER_ALIASES.get(key, key)


def normalize(parameter: str, raw_value: float) -> float:
    """
    Normalize a raw reading for the named parameter to [0, 1].

    Args:
        parameter: Parameter name (nitrogen, phosphorus, potassium, ph,
            soil_moisture, temperature, humidity) or a short alias.
        raw_value: Raw sensor value in the parameter's native unit.

    Returns:
        Desirability score between 0 and 1.

    Raises:
        UnknownParameterError: if the parameter has no curve.
    """
    key = normalize_parameter_name(parameter)
    curve = NORMALIZERS.get(key)
    if curve is None:
        raise UnknownParameterError(parameter)

    try:
        value = float(raw_value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0

    return clamp01(curve(value))
