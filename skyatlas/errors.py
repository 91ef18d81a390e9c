"""
Error taxonomy for the enrichment and live-feed layer.

None of these cross a public service operation: every client method
catches them and converts them into its documented fallback value
or ``None``.
"""


class SkyAtlasError(Exception):
    """Base class for all SkyAtlas errors."""


class EnrichmentError(SkyAtlasError):
    """Generated content could not be produced or understood."""


class ProviderUnavailable(EnrichmentError):
    """The generative provider was never initialized (no credential or init refused)."""


class GenerationFailed(EnrichmentError):
    """A remote generation call failed on every attempt."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class MalformedResponse(EnrichmentError):
    """The provider answered, but not with the expected JSON shape."""


class FeedUnavailable(SkyAtlasError):
    """The live flight feed is not configured, failed, or returned an error payload."""
