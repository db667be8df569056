"""
Sensor threshold bands for the live sensor cards.

Each channel has OPTIMAL / WARNING / CRITICAL ranges (inclusive). Values that
fall in no OPTIMAL or WARNING band are CRITICAL. gauge_position maps a value
onto a 0-100 display scale.
"""
import math
from enum import Enum
from typing import Dict, List, Optional, Tuple

INF = float("inf")

Band = Tuple[float, float]


class SensorStatus(str, Enum):
    OPTIMAL = "OPTIMAL"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


# channel -> (optimal band, warning bands)
SENSOR_THRESHOLDS: Dict[str, Tuple[Band, List[Band]]] = {
    "nitrogen": ((120, 250), [(60, 119)]),
    "phosphorus": ((10, 25), [(5, 9), (26, 60)]),
    "potassium": ((150, 300), [(80, 149)]),
    "ph": ((6.0, 7.5), [(5.5, 5.9), (7.6, 8.0)]),
    "soil_moisture": ((40, 60), [(25, 39), (61, 75)]),
    "electrical_conductivity": ((0, 800), [(800, 2000)]),
    "soil_temperature": ((18, 30), [(10, 17), (31, 35)]),
    "ambient_temperature": ((20, 30), [(15, 19), (31, 35)]),
    "humidity": ((50, 70), [(30, 49), (71, 85)]),
    "sunlight_intensity": ((10000, 50000), [(3000, 9999)]),
}

# channel -> (display min, display max)
GAUGE_RANGES: Dict[str, Band] = {
    "nitrogen": (0, 300),
    "phosphorus": (0, 80),
    "potassium": (0, 350),
    "ph": (0, 14),
    "soil_moisture": (0, 100),
    "electrical_conductivity": (0, 3000),
    "soil_temperature": (-10, 50),
    "ambient_temperature": (-10, 50),
    "humidity": (0, 100),
    "sunlight_intensity": (0, 100000),
}


def _in_band(value: float, band: Band) -> bool:
    return band[0] <= value <= band[1]


def classify(channel: str, value: float) -> SensorStatus:
    """
    Classify a sensor value for its channel.

    Raises:
        KeyError: if the channel is unknown
    """
    optimal, warnings = SENSOR_THRESHOLDS[channel]
    if value is None or not math.isfinite(value):
        return SensorStatus.CRITICAL
    if _in_band(value, optimal):
        return SensorStatus.OPTIMAL
    if any(_in_band(value, band) for band in warnings):
        return SensorStatus.WARNING
    return SensorStatus.CRITICAL


def gauge_position(channel: str, value: float) -> float:
    """Position of value on the channel's 0-100 display gauge."""
    low, high = GAUGE_RANGES[channel]
    if value is None or math.isnan(value):
        return 0.0
    position = (value - low) / (high - low) * 100
    return max(0.0, min(100.0, position))


def summarize(readings: Dict[str, Optional[float]]) -> Dict[str, Dict[str, object]]:
    """Status and gauge position for every known channel present in readings."""
    summary = {}
    for channel, value in readings.items():
        if channel not in SENSOR_THRESHOLDS or value is None:
            continue
        summary[channel] = {
            "value": value,
            "status": classify(channel, value).value,
            "gauge": round(gauge_position(channel, value), 1),
        }
    return summary
