"""
Sensor Feed Client - latest readings from a ThingSpeak channel pair.

Soil channel fields:        field1..field7 = N, P, K, pH, EC, moisture, soil temperature
Environment channel fields: field1..field3 = sunlight intensity, temperature, humidity
"""
import logging
from typing import Any, Dict, Optional

import httpx

from agricure import config
from agricure.services.soil_health_scorer import SensorReading

logger = logging.getLogger(__name__)

SOIL_FIELDS = {
    "field1": "nitrogen",
    "field2": "phosphorus",
    "field3": "potassium",
    "field4": "ph",
    "field5": "electrical_conductivity",
    "field6": "soil_moisture",
    "field7": "soil_temperature",
}

ENV_FIELDS = {
    "field1": "sunlight_intensity",
    "field2": "ambient_temperature",
    "field3": "humidity",
}


class SensorFeedError(Exception):
    """Raised when the sensor feed is unreachable or returns unusable data."""
    pass


def parse_feed_entry(feed: Dict[str, Any], field_map: Dict[str, str]) -> Dict[str, float]:
    """
    Parse one ThingSpeak feed entry into named float values.

    Raises:
        SensorFeedError: if a mapped field is missing or not numeric
    """
    values = {}
    for feed_key, name in field_map.items():
        raw = feed.get(feed_key)
        try:
            values[name] = float(raw)
        except (TypeError, ValueError):
            raise SensorFeedError(f"{feed_key} ({name}) is not numeric: {raw!r}")
    return values


def _latest_entry(payload: Dict[str, Any]) -> Dict[str, Any]:
    feeds = payload.get("feeds") or []
    if not feeds:
        raise SensorFeedError("channel returned no feed entries")
    return feeds[-1]


class ThingSpeakFeed:
    """Reads the most recent soil and environment entries."""

    def __init__(
        self,
        soil_channel_id: Optional[str] = None,
        soil_api_key: Optional[str] = None,
        env_channel_id: Optional[str] = None,
        env_api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.soil_channel_id = soil_channel_id or config.THINGSPEAK_SOIL_CHANNEL_ID
        self.soil_api_key = soil_api_key or config.THINGSPEAK_SOIL_API_KEY
        self.env_channel_id = env_channel_id or config.THINGSPEAK_ENV_CHANNEL_ID
        self.env_api_key = env_api_key or config.THINGSPEAK_ENV_API_KEY
        self.base_url = (base_url or config.THINGSPEAK_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.THINGSPEAK_TIMEOUT_SECONDS
        self._transport = transport

    def _fetch_channel(self, client: httpx.Client, channel_id: str, api_key: str) -> Dict[str, Any]:
        if not channel_id:
            raise SensorFeedError("ThingSpeak channel id is not configured")
        try:
            response = client.get(
                f"/channels/{channel_id}/feeds.json",
                params={"api_key": api_key, "results": 1},
            )
            response.raise_for_status()
            return _latest_entry(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise SensorFeedError(f"channel {channel_id} unavailable: {e}") from e

    def fetch_latest(self) -> SensorReading:
        """
        Fetch and merge the latest soil and environment entries.

        Raises:
            SensorFeedError: on transport failure or unparseable fields
        """
        with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
            soil_entry = self._fetch_channel(client, self.soil_channel_id, self.soil_api_key)
            env_entry = self._fetch_channel(client, self.env_channel_id, self.env_api_key)

        soil = parse_feed_entry(soil_entry, SOIL_FIELDS)
        env = parse_feed_entry(env_entry, ENV_FIELDS)
        logger.info(f"[SensorFeed] Latest soil entry at {soil_entry.get('created_at')}")

        return SensorReading(
            nitrogen=soil["nitrogen"],
            phosphorus=soil["phosphorus"],
            potassium=soil["potassium"],
            ph=soil["ph"],
            soil_moisture=soil["soil_moisture"],
            ambient_temperature=env["ambient_temperature"],
            humidity=env["humidity"],
            soil_temperature=soil["soil_temperature"],
            electrical_conductivity=soil["electrical_conductivity"],
            sunlight_intensity=env["sunlight_intensity"],
            timestamp=soil_entry.get("created_at"),
        )
