"""
Analysis and sensor constants shared across the KebunPintar backend.

Config values in ``app.config`` override the timing constants at runtime;
the thresholds below are fixed contracts of the fallback report.
"""

# ==================== SENSOR RANGES ====================

MOISTURE_MIN = 0.0
MOISTURE_MAX = 100.0
RAW_ADC_MIN = 0
RAW_ADC_MAX = 4095  # ESP32 12-bit ADC

# ==================== ANALYSIS ====================

DEFAULT_TIME_RANGE_LABEL = "24 jam terakhir"
DEFAULT_TIME_RANGE_SECONDS = 24 * 60 * 60

ANALYSIS_CACHE_TTL_SECONDS = 30 * 60
ANALYSIS_MIN_INTERVAL_SECONDS = 15
ANALYSIS_SAMPLE_SIZE = 20
ANALYSIS_MAX_READINGS = 1000

# First/last slice length used to classify the moisture trend
TREND_SLICE_SIZE = 10

HISTORY_DEFAULT_LIMIT = 20
HISTORY_MAX_LIMIT = 50

# ==================== FALLBACK REPORT THRESHOLDS ====================

SOIL_HEALTH_VERY_GOOD_MIN = 70.0
SOIL_HEALTH_GOOD_MIN = 50.0
SOIL_HEALTH_ADEQUATE_MIN = 30.0

PUMP_TOO_FREQUENT_ABOVE = 50.0
PUMP_OPTIMAL_ABOVE = 30.0
PUMP_ACCEPTABLE_ABOVE = 10.0

SHORT_TERM_WATERING_BELOW = 40.0

# ==================== LOCALE ====================

# Dashboard users read Western Indonesia Time
DISPLAY_TIMEZONE = "Asia/Jakarta"

# ==================== WEATHER ====================

OPENWEATHER_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
FORECAST_DAYS = 5
