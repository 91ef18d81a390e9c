"""
Enrichment models - AI-generated country content.

Plain dataclasses rather than ORM rows: generated content lives only in
the in-memory cache for the lifetime of the process.

Field limits mirror what the prompt asks the model for. Values coming back
from the model are clipped to those limits rather than rejected.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional

CULTURAL_FACT_MAX_CHARS = 80
GEOGRAPHY_MAX_CHARS = 80
DESCRIPTION_MAX_CHARS = 70
MAX_RECOMMENDATIONS = 10


def clip(text: Optional[str], limit: int) -> str:
    """Trim whitespace and cut ``text`` to at most ``limit`` characters."""
    text = (text or '').strip()
    if len(text) <= limit:
        return text
    return text[:limit - 1].rstrip() + '…'


class PlaceCategory(str, Enum):
    """Kind of place a travel recommendation points at."""
    LANDMARK = 'landmark'
    NATURE = 'nature'
    CULTURAL = 'cultural'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'PlaceCategory':
        """Map a free-form category string onto a member, defaulting to LANDMARK."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.LANDMARK


@dataclass(frozen=True)
class CountryInsight:
    """
    Short AI summary of a country for the info panel.

    ``is_fallback`` is True when the static placeholder was returned
    instead of generated content.
    """
    capital: str
    population_summary: str
    cultural_fact: str
    geography: str
    is_fallback: bool = False

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return asdict(self)


@dataclass(frozen=True)
class PlaceRecommendation:
    """One entry of a country's must-visit list."""
    name: str
    description: str
    category: PlaceCategory

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'description': self.description,
            'category': self.category.value,
        }


@dataclass(frozen=True)
class Interaction:
    """A single recorded hover or visit on a country."""
    country_key: str
    duration: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> 'Interaction':
        """Build from an API payload item: ``{"country": ..., "duration": ...}``."""
        key = data.get('country') or data.get('country_key')
        if not key or not isinstance(key, str):
            raise ValueError('interaction is missing a country')
        return cls(country_key=key, duration=float(data.get('duration') or 0))


@dataclass(frozen=True)
class InteractionSummary:
    """Locally computed statistics over an interaction history."""
    total_interactions: int
    unique_keys: int
    most_frequent: Optional[str]
    mean_duration: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class InteractionAnalysis:
    """Model-generated reading of a user's browsing pattern."""
    insights: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'insights': list(self.insights),
            'suggestions': list(self.suggestions),
        }
