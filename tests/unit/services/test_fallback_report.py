from datetime import datetime, timezone

import pytest

from app.domain.soil_statistics import MoistureStatistics, PumpUsage
from app.enums.common import MoistureTrend, PumpEfficiency, ShortTermAction, SoilHealth
from app.services.ai.fallback_report import (
    assess,
    classify_pump_efficiency,
    classify_short_term_action,
    classify_soil_health,
    generate_fallback_report,
)

GENERATED_AT = datetime(2026, 10, 19, 7, 5, 9, tzinfo=timezone.utc)


def _stats(mean: float, trend: MoistureTrend = MoistureTrend.STABLE, low: float = 0, high: float = 100):
    return MoistureStatistics(mean=mean, minimum=low, maximum=high, trend=trend)


@pytest.mark.parametrize(
    ("mean", "expected"),
    [
        (100.0, SoilHealth.VERY_GOOD),
        (70.0, SoilHealth.VERY_GOOD),
        (69.9, SoilHealth.GOOD),
        (50.0, SoilHealth.GOOD),
        (49.9, SoilHealth.ADEQUATE),
        (30.0, SoilHealth.ADEQUATE),
        (29.9, SoilHealth.NEEDS_ATTENTION),
        (0.0, SoilHealth.NEEDS_ATTENTION),
    ],
)
def test_soil_health_bands(mean, expected):
    assert classify_soil_health(mean) is expected


@pytest.mark.parametrize(
    ("percentage", "expected"),
    [
        (100.0, PumpEfficiency.TOO_FREQUENT),
        (50.1, PumpEfficiency.TOO_FREQUENT),
        (50.0, PumpEfficiency.OPTIMAL),
        (30.1, PumpEfficiency.OPTIMAL),
        (30.0, PumpEfficiency.ACCEPTABLE),
        (10.1, PumpEfficiency.ACCEPTABLE),
        (10.0, PumpEfficiency.RARE),
        (0.0, PumpEfficiency.RARE),
    ],
)
def test_pump_efficiency_bands(percentage, expected):
    assert classify_pump_efficiency(percentage) is expected


def test_short_term_threshold_at_40():
    assert classify_short_term_action(39.9) is ShortTermAction.INCREASE_WATERING
    assert classify_short_term_action(40.0) is ShortTermAction.ROUTINE_MONITORING


def test_nan_inputs_land_in_lowest_bands():
    nan = float("nan")
    result = assess(_stats(nan), PumpUsage(activations=0, percentage=nan))

    assert result.soil_health is SoilHealth.NEEDS_ATTENTION
    assert result.pump_efficiency is PumpEfficiency.RARE
    assert result.short_term is ShortTermAction.INCREASE_WATERING


def test_single_dry_reading_with_pump_on():
    result = assess(_stats(15.0, low=15, high=15), PumpUsage(activations=1, percentage=100.0))

    assert result.soil_health is SoilHealth.NEEDS_ATTENTION
    assert result.pump_efficiency is PumpEfficiency.TOO_FREQUENT


def test_report_sections_for_healthy_soil():
    report = generate_fallback_report(
        _stats(72.4, MoistureTrend.INCREASING, low=60, high=80.5),
        PumpUsage(activations=8, percentage=40.0),
        20,
        generated_at=GENERATED_AT,
    )

    for heading in (
        "## 1. Status Kesehatan Tanah",
        "## 2. Analisis Pola & Tren",
        "## 3. Efisiensi Pompa",
        "## 4. Rekomendasi Tindakan",
        "## 5. Informasi Sistem",
    ):
        assert heading in report

    assert "**Status: SANGAT BAIK**" in report
    assert "Kelembaban rata-rata 72.4%" in report
    assert "- **Tren Kelembaban**: meningkat" in report
    assert "- **Rentang Kelembaban**: 60% - 80.5%" in report
    assert "- **Variasi**: 20.5%" in report
    assert "- **Aktivasi Pompa**: 8 kali (40.0%)" in report
    assert "Frekuensi aktivasi pompa optimal" in report
    assert "Pertahankan jadwal monitoring rutin" in report
    # 07:05:09 UTC is 14:05:09 in Jakarta
    assert "19/10/2026, 14.05.09" in report
    assert report.rstrip().endswith("_Total 20 data points dianalisis_")


def test_report_for_dry_soil_prioritises_watering():
    report = generate_fallback_report(
        _stats(22.0, MoistureTrend.DECREASING, low=18, high=25),
        PumpUsage(activations=1, percentage=5.0),
        20,
        generated_at=GENERATED_AT,
    )

    assert "**Status: PERLU PERHATIAN**" in report
    assert "**PRIORITAS**: Tingkatkan frekuensi penyiraman" in report
    assert "Pompa jarang aktif" in report
    assert "Kelembaban cenderung turun" in report


def test_report_is_deterministic_for_fixed_timestamp():
    args = (_stats(55.0), PumpUsage(activations=3, percentage=15.0), 20)
    assert generate_fallback_report(*args, generated_at=GENERATED_AT) == generate_fallback_report(
        *args, generated_at=GENERATED_AT
    )
