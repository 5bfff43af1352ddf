"""
Soil Analysis Provider
======================
Turns a window's statistics into a prompt for the configured
:class:`~app.services.ai.llm_backends.LLMBackend` and normalises every
outcome into :class:`ProviderSuccess` or :class:`ProviderFailure`.

``analyze`` never raises. Timeouts, quota errors, SDK exceptions, an
unconfigured backend and blank completions all come back as a failure
carrying a short reason that the orchestrator logs before falling back to
the rule-based report.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from app.constants import ANALYSIS_SAMPLE_SIZE
from app.domain.analysis import ProviderFailure, ProviderOutcome, ProviderSuccess
from app.domain.soil_reading import SoilReading
from app.domain.soil_statistics import MoistureStatistics, PumpUsage
from app.utils.time import format_local_epoch_ms

if TYPE_CHECKING:
    from app.services.ai.llm_backends import LLMBackend

logger = logging.getLogger(__name__)


_SYSTEM_PROMPT = (
    "Kamu adalah ahli agrikultur dan sistem irigasi pintar. Jawab dalam bahasa Indonesia "
    "yang profesional namun mudah dipahami petani dan pengguna sistem IoT."
)

_TASKS = """\
TUGAS ANALISIS:
1. **Status Kesehatan Tanah**: evaluasi kondisi kelembaban secara keseluruhan (sangat baik/baik/cukup/buruk/sangat buruk)
2. **Analisis Pola & Tren**: pola kelembaban, penyebab tren, efektivitas irigasi otomatis
3. **Efisiensi Pompa**: frekuensi aktivasi (terlalu sering/optimal/jarang), potensi pemborosan atau kekurangan air
4. **Rekomendasi Tindakan Jangka Pendek** (1-7 hari): tindakan konkret, penyesuaian threshold pompa, jadwal monitoring
5. **Rekomendasi Berkelanjutan**: optimalisasi irigasi, penghematan air, perawatan sistem, faktor musim/cuaca
6. **Peringatan & Perhatian Khusus**: masalah potensial, anomali data, langkah preventif

Susun jawaban dengan judul bagian dan poin-poin yang jelas."""


def build_prompt(
    statistics: MoistureStatistics,
    pump_usage: PumpUsage,
    window: Sequence[SoilReading],
    time_range_label: str,
    *,
    sample_size: int = ANALYSIS_SAMPLE_SIZE,
) -> str:
    """Render the user prompt: aggregates, then the most recent *sample_size* readings."""
    sample = list(window)[-sample_size:] if sample_size > 0 else []
    sample_lines = [
        f"{index}. Moisture: {reading.moisture:g}%, ADC: {reading.raw_adc}, "
        f"Pompa: {reading.pump_status.value}, Waktu: {format_local_epoch_ms(reading.timestamp)}"
        for index, reading in enumerate(sample, start=1)
    ]

    return "\n".join(
        [
            "Analisis data kelembaban tanah berikut dan berikan rekomendasi yang detail dan praktis.",
            "",
            f"DATA ANALISIS ({time_range_label}):",
            f"- Total pembacaan: {len(window)}",
            f"- Kelembaban rata-rata: {statistics.mean:.1f}%",
            f"- Kelembaban minimum: {statistics.minimum:g}%",
            f"- Kelembaban maksimum: {statistics.maximum:g}%",
            f"- Tren kelembaban: {statistics.trend.value}",
            f"- Aktivasi pompa: {pump_usage.activations} kali ({pump_usage.percentage:.1f}% dari total pembacaan)",
            "",
            "SAMPLE DATA TERBARU:",
            *sample_lines,
            "",
            _TASKS,
        ]
    )


class SoilAnalysisProvider:
    """
    Language-model analysis of one soil moisture window.

    Parameters
    ----------
    backend:
        Initialised backend, or ``None`` when no provider is configured.
    max_tokens:
        Maximum completion tokens.
    temperature:
        Sampling temperature.
    sample_size:
        How many of the newest readings are listed verbatim in the prompt.
    """

    def __init__(
        self,
        backend: "LLMBackend" | None = None,
        *,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        sample_size: int = ANALYSIS_SAMPLE_SIZE,
    ):
        self._backend = backend
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._sample_size = sample_size

    @property
    def is_available(self) -> bool:
        return self._backend is not None and self._backend.is_available

    @property
    def provider_name(self) -> str:
        return self._backend.name if self._backend is not None else "none"

    @property
    def model_name(self) -> str:
        return self._backend.model if self._backend is not None else ""

    def analyze(
        self,
        statistics: MoistureStatistics,
        pump_usage: PumpUsage,
        window: Sequence[SoilReading],
        time_range_label: str,
    ) -> ProviderOutcome:
        if not self.is_available:
            return ProviderFailure(reason="LLM provider not configured", provider=self.provider_name)

        prompt = build_prompt(statistics, pump_usage, window, time_range_label, sample_size=self._sample_size)
        logger.info(
            "Requesting soil analysis from %s (%s) for %d readings",
            self.provider_name,
            self.model_name,
            len(window),
        )

        try:
            response = self._backend.generate(  # type: ignore[union-attr]
                system_prompt=_SYSTEM_PROMPT,
                user_prompt=prompt,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except Exception as exc:
            logger.warning("Soil analysis provider %s failed: %s", self.provider_name, exc)
            return ProviderFailure(reason=f"{type(exc).__name__}: {exc}", provider=self.provider_name)

        text = (response.text or "").strip()
        if not text:
            logger.warning("Soil analysis provider %s returned an empty completion", self.provider_name)
            return ProviderFailure(reason="empty response", provider=self.provider_name)

        logger.info("Soil analysis received from %s in %.0f ms", self.provider_name, response.latency_ms)
        return ProviderSuccess(
            text=text,
            model=response.model or self.model_name,
            provider=self.provider_name,
            latency_ms=response.latency_ms,
        )
