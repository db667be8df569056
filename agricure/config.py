"""
Runtime settings for the AgriCure backend.

Values are read from the environment once at import time. Business constants
(thresholds, cost multipliers) live in services/recommendation_rules.py.
"""
import os

ML_API_URL = os.environ.get("AGRICURE_ML_API_URL", "http://localhost:8000")
ML_TIMEOUT_SECONDS = float(os.environ.get("AGRICURE_ML_TIMEOUT_SECONDS", "10"))
ML_RETRIES = int(os.environ.get("AGRICURE_ML_RETRIES", "1"))

THINGSPEAK_BASE_URL = os.environ.get("AGRICURE_THINGSPEAK_BASE_URL", "https://api.thingspeak.com")
THINGSPEAK_SOIL_CHANNEL_ID = os.environ.get("AGRICURE_THINGSPEAK_SOIL_CHANNEL_ID", "")
THINGSPEAK_SOIL_API_KEY = os.environ.get("AGRICURE_THINGSPEAK_SOIL_API_KEY", "")
THINGSPEAK_ENV_CHANNEL_ID = os.environ.get("AGRICURE_THINGSPEAK_ENV_CHANNEL_ID", "")
THINGSPEAK_ENV_API_KEY = os.environ.get("AGRICURE_THINGSPEAK_ENV_API_KEY", "")
THINGSPEAK_TIMEOUT_SECONDS = float(os.environ.get("AGRICURE_THINGSPEAK_TIMEOUT_SECONDS", "10"))

LOG_LEVEL = os.environ.get("AGRICURE_LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("AGRICURE_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
