from enum import Enum


class PumpStatus(str, Enum):
    """Relay state reported by the microcontroller alongside every reading."""

    ON = "ON"
    OFF = "OFF"

    @classmethod
    def parse(cls, value: object) -> "PumpStatus":
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.ON if value else cls.OFF
        if isinstance(value, str) and value.strip().upper() == "ON":
            return cls.ON
        return cls.OFF


class MoistureTrend(str, Enum):
    """Direction of soil moisture across an analysis window."""

    INCREASING = "meningkat"
    DECREASING = "menurun"
    STABLE = "stabil"


class AnalysisSource(str, Enum):
    """Where the report text of an analysis result came from."""

    LLM = "llm"
    FALLBACK = "fallback"
    CACHE = "cache"


class SoilHealth(str, Enum):
    """Soil health band of the rule-based report, keyed on mean moisture."""

    VERY_GOOD = "sangat_baik"
    GOOD = "baik"
    ADEQUATE = "cukup"
    NEEDS_ATTENTION = "perlu_perhatian"


class PumpEfficiency(str, Enum):
    """Pump duty band of the rule-based report, keyed on pump-on percentage."""

    TOO_FREQUENT = "terlalu_sering"
    OPTIMAL = "optimal"
    ACCEPTABLE = "cukup_baik"
    RARE = "jarang"


class ShortTermAction(str, Enum):
    INCREASE_WATERING = "tingkatkan_penyiraman"
    ROUTINE_MONITORING = "monitoring_rutin"


class ScheduleInterval(str, Enum):
    """Automatic analysis cadence selectable from the dashboard."""

    MANUAL = "manual"
    HOURS_3 = "3h"
    HOURS_6 = "6h"
    HOURS_12 = "12h"
    HOURS_24 = "24h"
    DAYS_3 = "3d"
    DAYS_7 = "7d"
    DAYS_30 = "30d"

    @property
    def seconds(self) -> int:
        return _INTERVAL_SECONDS[self]

    @property
    def label(self) -> str:
        return _INTERVAL_LABELS[self]


_HOUR = 60 * 60
_DAY = 24 * _HOUR

_INTERVAL_SECONDS = {
    ScheduleInterval.MANUAL: 0,
    ScheduleInterval.HOURS_3: 3 * _HOUR,
    ScheduleInterval.HOURS_6: 6 * _HOUR,
    ScheduleInterval.HOURS_12: 12 * _HOUR,
    ScheduleInterval.HOURS_24: 24 * _HOUR,
    ScheduleInterval.DAYS_3: 3 * _DAY,
    ScheduleInterval.DAYS_7: 7 * _DAY,
    ScheduleInterval.DAYS_30: 30 * _DAY,
}

_INTERVAL_LABELS = {
    ScheduleInterval.MANUAL: "Manual",
    ScheduleInterval.HOURS_3: "3 Jam",
    ScheduleInterval.HOURS_6: "6 Jam",
    ScheduleInterval.HOURS_12: "12 Jam",
    ScheduleInterval.HOURS_24: "24 Jam",
    ScheduleInterval.DAYS_3: "3 Hari",
    ScheduleInterval.DAYS_7: "7 Hari",
    ScheduleInterval.DAYS_30: "1 Bulan",
}
