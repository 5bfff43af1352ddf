"""
AI Services
===========
Language-model analysis of soil moisture windows.

Services:
- llm_backends: OpenRouter / OpenAI / Anthropic chat completion clients
- SoilAnalysisProvider: prompt construction and outcome normalisation
- fallback_report: deterministic rule-based report used when the model fails

All public symbols are importable via ``from app.services.ai import X``.
Imports are **lazy**: each submodule is loaded only when one of its symbols
is first accessed, so importing the package never pulls in the LLM SDKs.
"""

from __future__ import annotations

import importlib
from typing import Any

# ── Symbol → submodule mapping ──────────────────────────────────────
_LAZY_IMPORTS: dict[str, str] = {
    # fallback_report
    "FallbackAssessment": "app.services.ai.fallback_report",
    "assess": "app.services.ai.fallback_report",
    "classify_pump_efficiency": "app.services.ai.fallback_report",
    "classify_short_term_action": "app.services.ai.fallback_report",
    "classify_soil_health": "app.services.ai.fallback_report",
    "generate_fallback_report": "app.services.ai.fallback_report",
    # llm_backends
    "AnthropicBackend": "app.services.ai.llm_backends",
    "LLMBackend": "app.services.ai.llm_backends",
    "LLMResponse": "app.services.ai.llm_backends",
    "OpenAIBackend": "app.services.ai.llm_backends",
    "OpenRouterBackend": "app.services.ai.llm_backends",
    "create_backend": "app.services.ai.llm_backends",
    # soil_analysis_provider
    "SoilAnalysisProvider": "app.services.ai.soil_analysis_provider",
    "build_prompt": "app.services.ai.soil_analysis_provider",
}

__all__ = list(_LAZY_IMPORTS.keys())


def __getattr__(name: str) -> Any:
    """Lazy-load symbols on first access."""
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(module_path)
    value = getattr(module, name)
    # Cache on the module so subsequent accesses skip __getattr__
    globals()[name] = value
    return value
