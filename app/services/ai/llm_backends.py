"""
LLM Backend Abstraction Layer
==============================
Pluggable chat-completion backends used by the soil analysis provider.

Supported backends
------------------
* **OpenAIBackend**: any OpenAI-compatible Chat Completions endpoint via
  the ``openai`` SDK (api.openai.com, Azure, local proxies).
* **OpenRouterBackend**: OpenRouter's free Llama 3.3 70B tier, which is
  OpenAI-compatible and only needs a different ``base_url``.
* **AnthropicBackend**: Claude via the ``anthropic`` SDK.

SDKs are imported on ``initialize()`` so an unused provider's client is
never constructed.

Quick-start
-----------
::

    from app.services.ai.llm_backends import create_backend

    backend = create_backend("openrouter", api_key="sk-or-...")
    if backend is not None:
        reply = backend.generate(
            system_prompt="Kamu adalah ahli agrikultur.",
            user_prompt="Kelembaban rata-rata 42%...",
        )
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_DEFAULT_MODEL = "meta-llama/llama-3.3-70b-instruct:free"
OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
ANTHROPIC_DEFAULT_MODEL = "claude-3-5-haiku-latest"


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """Standardised wrapper around every backend response."""

    text: str
    model: str
    usage: dict[str, int] = field(default_factory=dict)  # prompt_tokens, completion_tokens, total_tokens
    latency_ms: float = 0.0
    raw: Any = None


# ---------------------------------------------------------------------------
# Abstract backend
# ---------------------------------------------------------------------------


class LLMBackend(ABC):
    """
    Abstract base for every LLM backend.

    Subclasses must implement :meth:`initialize`, :meth:`generate`,
    :attr:`name` and :attr:`is_available`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier for this backend (e.g. ``"openrouter"``)."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier sent with each request."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """``True`` when the backend has been initialised and is ready."""

    @abstractmethod
    def initialize(self) -> bool:
        """
        Construct the SDK client.

        Returns ``True`` on success.
        """

    @abstractmethod
    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int = 2048,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Generate a text completion.

        Parameters
        ----------
        system_prompt:
            Role / persona instruction.
        user_prompt:
            The concrete request.
        max_tokens:
            Upper-bound on generated tokens.
        temperature:
            Sampling temperature.

        Returns
        -------
        LLMResponse

        Raises whatever the SDK raises (timeouts, auth, quota); callers
        decide how to degrade.
        """

    def _timed(self, fn, *args, **kwargs):
        """Call *fn* and return ``(result, elapsed_ms)``."""
        t0 = time.perf_counter()
        result = fn(*args, **kwargs)
        return result, (time.perf_counter() - t0) * 1000


# ---------------------------------------------------------------------------
# OpenAI-compatible backend
# ---------------------------------------------------------------------------


class OpenAIBackend(LLMBackend):
    """
    Backend for any OpenAI-compatible Chat Completions API.

    Parameters
    ----------
    api_key:
        API key for the endpoint.
    model:
        Model identifier.
    base_url:
        Optional custom endpoint.
    timeout:
        Request timeout in seconds, enforced by the SDK client.
    """

    default_model = OPENAI_DEFAULT_MODEL

    def __init__(
        self,
        api_key: str,
        model: str = "",
        base_url: str | None = None,
        timeout: float = 45,
    ):
        self._api_key = api_key
        self._model = model or self.default_model
        self._base_url = base_url
        self._timeout = timeout
        self._client: Any = None

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def _client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "api_key": self._api_key,
            "timeout": self._timeout,
            "max_retries": 0,
        }
        if self._base_url:
            kwargs["base_url"] = self._base_url
        return kwargs

    def initialize(self) -> bool:
        if not self._api_key:
            logger.warning("%s backend: no API key provided", self.name)
            return False
        try:
            import openai

            self._client = openai.OpenAI(**self._client_kwargs())
            logger.info("%s backend initialised (model=%s)", self.name, self._model)
            return True
        except Exception as exc:
            logger.error("%s backend init failed: %s", self.name, exc)
        return False

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int = 2048,
        temperature: float = 0.7,
    ) -> LLMResponse:
        if not self.is_available:
            raise RuntimeError(f"{self.name} backend not initialised")

        messages = [{"role": "user", "content": user_prompt}]
        if system_prompt:
            messages.insert(0, {"role": "system", "content": system_prompt})

        response, latency = self._timed(
            self._client.chat.completions.create,
            model=self._model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""

        return LLMResponse(
            text=text,
            model=response.model or self._model,
            usage=usage,
            latency_ms=latency,
            raw=response,
        )


class OpenRouterBackend(OpenAIBackend):
    """OpenRouter speaks the OpenAI wire protocol; only the endpoint differs."""

    default_model = OPENROUTER_DEFAULT_MODEL

    def __init__(
        self,
        api_key: str,
        model: str = "",
        base_url: str | None = None,
        timeout: float = 45,
        app_title: str = "KebunPintar Dashboard",
    ):
        super().__init__(api_key, model=model, base_url=base_url or OPENROUTER_BASE_URL, timeout=timeout)
        self._app_title = app_title

    @property
    def name(self) -> str:
        return "openrouter"

    def _client_kwargs(self) -> dict[str, Any]:
        kwargs = super()._client_kwargs()
        # Attribution headers shown on the OpenRouter usage dashboard
        kwargs["default_headers"] = {"X-Title": self._app_title}
        return kwargs


# ---------------------------------------------------------------------------
# Anthropic backend  (Claude)
# ---------------------------------------------------------------------------


class AnthropicBackend(LLMBackend):
    """
    Backend for Anthropic's Messages API.

    Parameters
    ----------
    api_key:
        Anthropic API key.
    model:
        Model identifier (default ``claude-3-5-haiku-latest``).
    timeout:
        Request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "",
        timeout: float = 45,
    ):
        self._api_key = api_key
        self._model = model or ANTHROPIC_DEFAULT_MODEL
        self._timeout = timeout
        self._client: Any = None

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def initialize(self) -> bool:
        if not self._api_key:
            logger.warning("Anthropic backend: no API key provided")
            return False
        try:
            import anthropic

            self._client = anthropic.Anthropic(
                api_key=self._api_key,
                timeout=self._timeout,
                max_retries=0,
            )
            logger.info("Anthropic backend initialised (model=%s)", self._model)
            return True
        except Exception as exc:
            logger.error("Anthropic backend init failed: %s", exc)
        return False

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int = 2048,
        temperature: float = 0.7,
    ) -> LLMResponse:
        if not self.is_available:
            raise RuntimeError("Anthropic backend not initialised")

        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        # Anthropic takes the system prompt as a top-level parameter
        if system_prompt:
            kwargs["system"] = system_prompt

        response, latency = self._timed(self._client.messages.create, **kwargs)

        text = "".join(getattr(block, "text", "") for block in (response.content or []))

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens,
            }

        return LLMResponse(
            text=text,
            model=response.model,
            usage=usage,
            latency_ms=latency,
            raw=response,
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_backend(
    provider: str,
    *,
    api_key: str = "",
    model: str = "",
    base_url: str | None = None,
    timeout: float = 45,
) -> LLMBackend | None:
    """
    Create and initialise a backend from a provider name.

    Parameters
    ----------
    provider:
        One of ``"openrouter"``, ``"openai"``, ``"anthropic"`` or ``"none"``.

    Returns
    -------
    An initialised :class:`LLMBackend`, or ``None`` if the provider is
    ``"none"`` or initialisation fails. ``None`` sends every analysis
    down the rule-based fallback path.
    """
    provider = (provider or "").strip().lower()

    if provider in ("none", ""):
        logger.info("LLM provider set to 'none'; analyses will use the rule-based report")
        return None

    backend: LLMBackend
    if provider == "openrouter":
        backend = OpenRouterBackend(api_key=api_key, model=model, base_url=base_url, timeout=timeout)
    elif provider == "openai":
        backend = OpenAIBackend(api_key=api_key, model=model, base_url=base_url, timeout=timeout)
    elif provider == "anthropic":
        backend = AnthropicBackend(api_key=api_key, model=model, timeout=timeout)
    else:
        logger.error("Unknown LLM provider '%s'", provider)
        return None

    if backend.initialize():
        return backend

    logger.warning("LLM backend '%s' failed to initialise; analyses will use the rule-based report", provider)
    return None
