"""
Gemini text generation provider.

Thin wrapper around ``google-generativeai`` exposing the one call the
enrichment layer needs: prompt in, text out. Failures are not retried
here; EnrichmentClient owns retry and caching.
"""

import logging
from typing import Optional, Protocol

import google.generativeai as genai

from skyatlas.config import config
from skyatlas.errors import ProviderUnavailable

logger = logging.getLogger(__name__)


class InsightProvider(Protocol):
    """Anything that can turn a prompt into generated text."""

    @property
    def is_available(self) -> bool: ...

    def generate_text(self, prompt: str) -> str: ...


class GeminiProvider:
    """
    Generative text backend on Google Gemini.

    Without an API key, or if the SDK refuses the configuration, the
    provider stays unavailable and every call raises ProviderUnavailable
    without touching the network.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = 'gemini-2.5-flash'):
        self.model_name = model
        self._model = None

        if not api_key or not api_key.strip():
            logger.warning('Gemini API key not configured - AI features disabled')
            return

        try:
            genai.configure(api_key=api_key)
            self._model = genai.GenerativeModel(model)
        except Exception as e:
            logger.error(f'Gemini initialization failed: {e}')
            self._model = None
            return

        logger.info(f'Gemini provider initialized with model {model}')

    @classmethod
    def from_config(cls) -> 'GeminiProvider':
        """Create provider from application configuration."""
        return cls(api_key=config.gemini.api_key, model=config.gemini.model)

    @property
    def is_available(self) -> bool:
        return self._model is not None

    def generate_text(self, prompt: str) -> str:
        """
        Run one generation call.

        Raises:
            ProviderUnavailable if the provider was never initialized
            Whatever the SDK raises on network, quota or auth failures
        """
        if self._model is None:
            raise ProviderUnavailable('Gemini provider not initialized')

        response = self._model.generate_content(prompt)
        return response.text
