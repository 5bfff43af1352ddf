"""
Rule-Based Fallback Report
==========================
Deterministic substitute for the language-model analysis. Used whenever the
provider fails, times out, returns nothing, or no provider is configured.

The report has the same five sections the model is asked to produce, so the
dashboard renders either source identically. Branch selection is a pure
function of the statistics:

================  ===========================  ==================
Section           Condition                    Band
================  ===========================  ==================
Soil health       mean >= 70                   very good
                  50 <= mean < 70              good
                  30 <= mean < 50              adequate
                  mean < 30                    needs attention
Pump efficiency   pump% > 50                   too frequent
                  30 < pump% <= 50             optimal
                  10 < pump% <= 30             acceptable
                  pump% <= 10                  rare
Short term        mean < 40                    increase watering
                  mean >= 40                   routine monitoring
================  ===========================  ==================

Comparisons are written so that a non-finite input lands in the lowest band
instead of raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from app.constants import (
    PUMP_ACCEPTABLE_ABOVE,
    PUMP_OPTIMAL_ABOVE,
    PUMP_TOO_FREQUENT_ABOVE,
    SHORT_TERM_WATERING_BELOW,
    SOIL_HEALTH_ADEQUATE_MIN,
    SOIL_HEALTH_GOOD_MIN,
    SOIL_HEALTH_VERY_GOOD_MIN,
)
from app.domain.soil_statistics import MoistureStatistics, PumpUsage
from app.enums.common import MoistureTrend, PumpEfficiency, ShortTermAction, SoilHealth
from app.utils.time import format_local, utc_now


@dataclass(frozen=True)
class FallbackAssessment:
    soil_health: SoilHealth
    pump_efficiency: PumpEfficiency
    short_term: ShortTermAction


def classify_soil_health(mean: float) -> SoilHealth:
    if mean >= SOIL_HEALTH_VERY_GOOD_MIN:
        return SoilHealth.VERY_GOOD
    if mean >= SOIL_HEALTH_GOOD_MIN:
        return SoilHealth.GOOD
    if mean >= SOIL_HEALTH_ADEQUATE_MIN:
        return SoilHealth.ADEQUATE
    return SoilHealth.NEEDS_ATTENTION


def classify_pump_efficiency(percentage: float) -> PumpEfficiency:
    if percentage > PUMP_TOO_FREQUENT_ABOVE:
        return PumpEfficiency.TOO_FREQUENT
    if percentage > PUMP_OPTIMAL_ABOVE:
        return PumpEfficiency.OPTIMAL
    if percentage > PUMP_ACCEPTABLE_ABOVE:
        return PumpEfficiency.ACCEPTABLE
    return PumpEfficiency.RARE


def classify_short_term_action(mean: float) -> ShortTermAction:
    if mean >= SHORT_TERM_WATERING_BELOW:
        return ShortTermAction.ROUTINE_MONITORING
    return ShortTermAction.INCREASE_WATERING


def assess(statistics: MoistureStatistics, pump_usage: PumpUsage) -> FallbackAssessment:
    return FallbackAssessment(
        soil_health=classify_soil_health(statistics.mean),
        pump_efficiency=classify_pump_efficiency(pump_usage.percentage),
        short_term=classify_short_term_action(statistics.mean),
    )


# ---------------------------------------------------------------------------
# Section text
# ---------------------------------------------------------------------------

_SOIL_HEALTH_TEXT: dict[SoilHealth, tuple[str, str]] = {
    SoilHealth.VERY_GOOD: (
        "SANGAT BAIK",
        "Kelembaban rata-rata {mean}% menunjukkan kondisi tanah yang sangat optimal "
        "dengan kadar air yang cukup untuk pertumbuhan tanaman.",
    ),
    SoilHealth.GOOD: (
        "BAIK",
        "Kelembaban rata-rata {mean}% dalam kondisi baik. Kadar air mencukupi, "
        "tetap lakukan monitoring berkala.",
    ),
    SoilHealth.ADEQUATE: (
        "CUKUP",
        "Kelembaban rata-rata {mean}% masih dalam batas wajar namun perlu perhatian. "
        "Pertimbangkan menambah frekuensi penyiraman.",
    ),
    SoilHealth.NEEDS_ATTENTION: (
        "PERLU PERHATIAN",
        "Kelembaban rata-rata {mean}% tergolong rendah. Penyiraman perlu segera "
        "ditingkatkan untuk mencegah kekeringan.",
    ),
}

_TREND_TEXT: dict[MoistureTrend, str] = {
    MoistureTrend.INCREASING: (
        "Kelembaban cenderung naik; irigasi bekerja efektif atau terjadi peningkatan curah hujan."
    ),
    MoistureTrend.DECREASING: (
        "Kelembaban cenderung turun. Periksa kinerja pompa dan kemungkinan kenaikan suhu lingkungan."
    ),
    MoistureTrend.STABLE: "Kelembaban stabil; penyiraman dan penguapan berada dalam keseimbangan.",
}

_PUMP_TEXT: dict[PumpEfficiency, list[str]] = {
    PumpEfficiency.TOO_FREQUENT: [
        "Pompa terlalu sering aktif (>50%). Pertimbangkan untuk:",
        "  - Menaikkan ambang batas minimum kelembaban",
        "  - Memeriksa kebocoran pada jalur irigasi",
        "  - Mengevaluasi kapasitas pompa",
    ],
    PumpEfficiency.OPTIMAL: ["Frekuensi aktivasi pompa optimal (30-50%)."],
    PumpEfficiency.ACCEPTABLE: ["Frekuensi aktivasi pompa cukup baik (10-30%)."],
    PumpEfficiency.RARE: [
        "Pompa jarang aktif (<=10%). Periksa apakah:",
        "  - Kelembaban alami memang sudah mencukupi",
        "  - Sensor kelembaban bekerja dengan baik",
        "  - Ambang batas tidak terlalu rendah",
    ],
}

_SHORT_TERM_TEXT: dict[ShortTermAction, list[str]] = {
    ShortTermAction.INCREASE_WATERING: [
        "- **PRIORITAS**: Tingkatkan frekuensi penyiraman",
        "- Monitoring intensif setiap 6 jam",
        "- Pertimbangkan penyiraman manual tambahan",
    ],
    ShortTermAction.ROUTINE_MONITORING: [
        "- Pertahankan jadwal monitoring rutin",
        "- Amati tren kelembaban harian",
        "- Catat perubahan cuaca di sekitar lahan",
    ],
}

_LONG_TERM_LINES = [
    "- Aktifkan analisis AI untuk rekomendasi yang lebih kontekstual",
    "- Integrasikan data prakiraan cuaca ke jadwal penyiraman",
    "- Siapkan pompa cadangan untuk redundansi",
    "- Tinjau data bulanan untuk melihat pola musiman",
]


def _number(value: float) -> str:
    """Render integral floats without a trailing ``.0`` (``45`` not ``45.0``)."""
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _one_decimal(value: float) -> str:
    return f"{value:.1f}"


def generate_fallback_report(
    statistics: MoistureStatistics,
    pump_usage: PumpUsage,
    total_readings: int,
    *,
    generated_at: datetime | None = None,
) -> str:
    """
    Build the multi-section markdown report for one analysis window.

    Parameters
    ----------
    statistics:
        Moisture aggregate of the window.
    pump_usage:
        Pump-on count and share of the window.
    total_readings:
        Window size, echoed in the footer.
    generated_at:
        Timestamp printed in the footer; defaults to now. Pass a fixed value
        for byte-identical output.
    """
    result = assess(statistics, pump_usage)
    health_title, health_body = _SOIL_HEALTH_TEXT[result.soil_health]
    mean_text = _one_decimal(statistics.mean)

    lines: list[str] = [
        "# ANALISIS OTOMATIS SISTEM IRIGASI",
        "",
        "_Analisis ini dibuat oleh algoritma lokal karena layanan AI tidak tersedia._",
        "",
        "## 1. Status Kesehatan Tanah",
        "",
        f"**Status: {health_title}**",
        "",
        health_body.format(mean=mean_text),
        "",
        "## 2. Analisis Pola & Tren",
        "",
        f"- **Tren Kelembaban**: {statistics.trend.value}",
        f"- **Rentang Kelembaban**: {_number(statistics.minimum)}% - {_number(statistics.maximum)}%",
        f"- **Variasi**: {_one_decimal(statistics.spread)}%",
        "",
        _TREND_TEXT.get(statistics.trend, _TREND_TEXT[MoistureTrend.STABLE]),
        "",
        "## 3. Efisiensi Pompa",
        "",
        f"- **Aktivasi Pompa**: {pump_usage.activations} kali ({_one_decimal(pump_usage.percentage)}%)",
        f"- **Evaluasi**: {_PUMP_TEXT[result.pump_efficiency][0]}",
        *_PUMP_TEXT[result.pump_efficiency][1:],
        "",
        "## 4. Rekomendasi Tindakan",
        "",
        "### Jangka Pendek (1-7 hari):",
        *_SHORT_TERM_TEXT[result.short_term],
        "",
        "### Jangka Panjang:",
        *_LONG_TERM_LINES,
        "",
        "## 5. Informasi Sistem",
        "",
        "**Mode Analisis**: statistik dan aturan berbasis ambang batas.",
        "- Tidak memerlukan koneksi ke layanan AI",
        "- Cukup akurat untuk evaluasi dasar sistem irigasi",
        "",
        "---",
        "",
        f"_Analisis otomatis dihasilkan pada {format_local(generated_at or utc_now())}_",
        f"_Total {total_readings} data points dianalisis_",
    ]
    return "\n".join(lines)
