"""
Enrichment service - AI-generated country content.

Wraps a generative text provider with:
- TTL caching keyed by request purpose and entity (``insight:France``)
- Retry with linearly increasing back-off around the remote call
- Extraction and validation of the JSON embedded in the model's answer
- Deterministic fallbacks so callers never handle errors themselves

Every public operation is total: it returns a value (possibly a fallback,
possibly None where documented) and never raises for provider, network or
parsing problems.
"""

import json
import logging
import time
from collections import Counter
from typing import Any, Callable, Iterable, List, Optional, Sequence

from skyatlas.cache import TTLCache
from skyatlas.config import config
from skyatlas.errors import (
    EnrichmentError,
    GenerationFailed,
    MalformedResponse,
    ProviderUnavailable,
)
from skyatlas.models import (
    CountryInsight,
    Interaction,
    InteractionAnalysis,
    InteractionSummary,
    PlaceCategory,
    PlaceRecommendation,
)
from skyatlas.models.insight import (
    CULTURAL_FACT_MAX_CHARS,
    DESCRIPTION_MAX_CHARS,
    GEOGRAPHY_MAX_CHARS,
    MAX_RECOMMENDATIONS,
    clip,
)
from skyatlas.parsing import Shape, extract_json, parse_structured
from skyatlas.services.gemini_provider import GeminiProvider, InsightProvider

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 5
MAX_SEARCH_CANDIDATES = 50

COUNTRY_INSIGHT_PROMPT = """\
You are a travel expert. Provide brief AI insights about {country}.

Return ONLY valid JSON (no markdown, no code blocks) with this exact structure:
{{
  "population": "actual population with capital city name",
  "capital": "capital city name only",
  "culturalFact": "one fascinating cultural or historical fact (max 80 chars)",
  "geography": "one interesting geographical feature (max 80 chars)"
}}

Be specific, engaging, and concise."""

TRAVEL_RECOMMENDATIONS_PROMPT = """\
You are a top travel expert. List the TOP 10 MUST-VISIT places in {country} for travelers.

Return ONLY valid JSON array (no markdown, no code blocks):
[
  {{
    "name": "place name",
    "description": "why visit (max 70 chars)",
    "type": "landmark" or "nature" or "cultural"
  }}
]

Be specific with actual place names. Make descriptions exciting and brief."""

SEARCH_PROMPT = """\
Given this search query: "{query}" and this list of countries: {candidates}
Return the top 5 most relevant country names as a JSON array. Consider:
- Direct name matches
- Regional references
- Cultural keywords
- Geographic features
Only return country names that exist in the provided list."""

ANALYSIS_PROMPT = """\
Analyze this user interaction data: {summary}
Provide 2-3 insights about user interests and suggest 2 countries they might enjoy exploring.
Return as JSON: {{ "insights": [string array], "suggestions": [country names] }}"""


def fallback_insight(country_key: str) -> CountryInsight:
    """Static placeholder shown when no generated insight is available."""
    return CountryInsight(
        capital=country_key,
        population_summary='Data temporarily unavailable',
        cultural_fact='Fascinating history and culture',
        geography='Beautiful landscapes and landmarks',
        is_fallback=True,
    )


def substring_search(query: str, candidate_keys: Iterable[str], limit: int = MAX_SEARCH_RESULTS) -> List[str]:
    """Case-insensitive substring filter over ``candidate_keys``, in input order."""
    needle = query.strip().lower()
    if not needle:
        return []
    return [key for key in candidate_keys if needle in key.lower()][:limit]


def summarize_interactions(history: Sequence[Interaction]) -> InteractionSummary:
    """
    Compute count, distinct keys, most frequent key and mean duration.

    Ties for most frequent go to the key seen first.
    """
    if not history:
        return InteractionSummary(0, 0, None, 0.0)

    counts = Counter(item.country_key for item in history)
    # Counter keeps first-seen order and max() keeps the first maximum
    most_frequent = max(counts, key=counts.get)
    mean_duration = sum(item.duration for item in history) / len(history)

    return InteractionSummary(
        total_interactions=len(history),
        unique_keys=len(counts),
        most_frequent=most_frequent,
        mean_duration=mean_duration,
    )


def _as_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ''
    return str(value).strip()


class EnrichmentClient:
    """
    Client for AI-generated country insights.

    Dependencies are injected so tests can substitute fakes: the provider,
    the cache (whose TTL is fixed at construction), and the ``sleep`` used
    between retries.
    """

    def __init__(
        self,
        provider: Optional[InsightProvider],
        cache: Optional[TTLCache] = None,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._cache = cache if cache is not None else TTLCache(config.gemini.cache_ttl_seconds)
        self._sleep = sleep

    @classmethod
    def from_config(cls) -> 'EnrichmentClient':
        """Create client from application configuration."""
        return cls(
            provider=GeminiProvider.from_config(),
            cache=TTLCache(config.gemini.cache_ttl_seconds),
            max_retries=config.gemini.max_retries,
            retry_delay=config.gemini.retry_delay_seconds,
        )

    @property
    def is_available(self) -> bool:
        return self.provider is not None and self.provider.is_available

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate(self, prompt: str, cache_key: Optional[str] = None, max_retries: Optional[int] = None) -> str:
        """
        Generate text for ``prompt``, served from cache when fresh.

        Makes up to ``max_retries + 1`` provider calls, pausing
        ``attempt * retry_delay`` seconds after each failed attempt.
        The first success is cached under ``cache_key`` (the prompt itself
        if omitted).

        Raises:
            ProviderUnavailable if the provider is not initialized
            GenerationFailed when every attempt failed
        """
        if not self.is_available:
            raise ProviderUnavailable('AI provider not initialized')

        cache_key = cache_key or prompt
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug(f'Cache hit: {cache_key}')
            return cached

        if max_retries is None:
            max_retries = self.max_retries

        last_error: Optional[Exception] = None
        for attempt in range(1, max_retries + 2):
            try:
                text = self.provider.generate_text(prompt)
                if not isinstance(text, str):
                    raise MalformedResponse(f'Provider returned {type(text).__name__}, expected text')
            except Exception as e:
                last_error = e
                logger.warning(f'AI generation attempt {attempt} failed: {e}')
                if attempt <= max_retries:
                    self._sleep(attempt * self.retry_delay)
                continue

            self._cache.set(cache_key, text)
            return text

        logger.error(f'AI generation failed after {max_retries + 1} attempts: {last_error}')
        raise GenerationFailed(
            f'Generation failed after {max_retries + 1} attempts',
            attempts=max_retries + 1,
        ) from last_error

    # -------------------------------------------------------------------------
    # Country insight
    # -------------------------------------------------------------------------

    def get_country_insight(self, country_key: str) -> CountryInsight:
        """
        Get a short AI summary of a country.

        Returns the static fallback insight (``is_fallback=True``) on
        any failure.
        """
        prompt = COUNTRY_INSIGHT_PROMPT.format(country=country_key)
        try:
            text = self.generate(prompt, cache_key=f'insight:{country_key}')
            return self._parse_insight(text, country_key)
        except EnrichmentError as e:
            logger.warning(f'Using fallback insight for {country_key}: {e}')
            return fallback_insight(country_key)

    def _parse_insight(self, text: str, country_key: str) -> CountryInsight:
        result = extract_json(text, Shape.OBJECT)
        if not result.ok:
            raise MalformedResponse('No JSON object in insight response')

        data = result.value
        capital = _as_text(data.get('capital'))
        population = _as_text(
            data.get('population') or data.get('populationSummary') or data.get('population_summary')
        )
        cultural_fact = _as_text(data.get('culturalFact') or data.get('cultural_fact'))
        geography = _as_text(data.get('geography'))

        if not any((capital, population, cultural_fact, geography)):
            raise MalformedResponse('Insight response has none of the expected fields')

        # Partial answers keep what the model gave and fill the gaps
        fallback = fallback_insight(country_key)
        return CountryInsight(
            capital=capital or fallback.capital,
            population_summary=population or fallback.population_summary,
            cultural_fact=clip(cultural_fact or fallback.cultural_fact, CULTURAL_FACT_MAX_CHARS),
            geography=clip(geography or fallback.geography, GEOGRAPHY_MAX_CHARS),
        )

    # -------------------------------------------------------------------------
    # Travel recommendations
    # -------------------------------------------------------------------------

    def get_travel_recommendations(self, country_key: str) -> List[PlaceRecommendation]:
        """
        Get up to 10 must-visit places for a country.

        Returns an empty list on any failure.
        """
        prompt = TRAVEL_RECOMMENDATIONS_PROMPT.format(country=country_key)
        try:
            text = self.generate(prompt, cache_key=f'recommendations:{country_key}')
        except EnrichmentError as e:
            logger.warning(f'No travel recommendations for {country_key}: {e}')
            return []

        items = parse_structured(text, Shape.ARRAY)
        if items is None:
            logger.warning(f'Travel recommendations for {country_key} were not a JSON array')
            return []

        places = []
        for item in items:
            if not isinstance(item, dict):
                continue
            name = _as_text(item.get('name'))
            if not name:
                continue
            places.append(PlaceRecommendation(
                name=name,
                description=clip(_as_text(item.get('description')), DESCRIPTION_MAX_CHARS),
                category=PlaceCategory.parse(item.get('type') or item.get('category')),
            ))

        return places[:MAX_RECOMMENDATIONS]

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search_entities(self, query: str, candidate_keys: Sequence[str]) -> List[str]:
        """
        Rank ``candidate_keys`` against a natural-language query.

        Returns at most 5 names, always drawn from ``candidate_keys``. When
        the model cannot help, falls back to a case-insensitive substring
        match so callers always get a result list.
        """
        query = (query or '').strip()
        if not query:
            return []

        candidates = list(candidate_keys)
        prompt = SEARCH_PROMPT.format(
            query=query,
            candidates=', '.join(candidates[:MAX_SEARCH_CANDIDATES]),
        )

        try:
            text = self.generate(prompt, cache_key=f'search:{query}', max_retries=1)
            return self._match_candidates(text, candidates)
        except EnrichmentError as e:
            logger.info(f'AI search unavailable for {query!r}, using substring match: {e}')
            return substring_search(query, candidates)

    def _match_candidates(self, text: str, candidates: List[str]) -> List[str]:
        result = extract_json(text, Shape.ARRAY)
        if not result.ok:
            raise MalformedResponse('No JSON array in search response')

        canonical = {key.lower(): key for key in candidates}
        matches: List[str] = []
        for item in result.value:
            if not isinstance(item, str):
                continue
            key = canonical.get(item.strip().lower())
            if key and key not in matches:
                matches.append(key)
            if len(matches) == MAX_SEARCH_RESULTS:
                break

        if not matches:
            raise MalformedResponse('Search response named no known candidates')
        return matches

    # -------------------------------------------------------------------------
    # Interaction analysis
    # -------------------------------------------------------------------------

    def analyze_interactions(self, history: Sequence[Interaction]) -> Optional[InteractionAnalysis]:
        """
        Ask the model to interpret a user's browsing history.

        Unlike the other operations there is no placeholder: returns None
        when the history is empty or no usable analysis comes back.
        """
        summary = summarize_interactions(history)
        if summary.total_interactions == 0:
            logger.debug('No interactions to analyze')
            return None

        prompt = ANALYSIS_PROMPT.format(summary=json.dumps(summary.to_dict()))
        cache_key = f'analysis:{summary.unique_keys}:{summary.total_interactions}:{summary.most_frequent}'

        try:
            text = self.generate(prompt, cache_key=cache_key, max_retries=1)
            return self._parse_analysis(text)
        except EnrichmentError as e:
            logger.warning(f'Interaction analysis unavailable: {e}')
            return None

    def _parse_analysis(self, text: str) -> InteractionAnalysis:
        result = extract_json(text, Shape.OBJECT)
        if not result.ok:
            raise MalformedResponse('No JSON object in analysis response')

        insights = result.value.get('insights')
        suggestions = result.value.get('suggestions', [])
        if not isinstance(insights, list) or not isinstance(suggestions, list):
            raise MalformedResponse('Analysis response is missing insights or suggestions')

        return InteractionAnalysis(
            insights=[_as_text(item) for item in insights if _as_text(item)],
            suggestions=[_as_text(item) for item in suggestions if _as_text(item)],
        )

    # -------------------------------------------------------------------------
    # Cache management
    # -------------------------------------------------------------------------

    def clear_cache(self) -> None:
        """Drop every cached generation."""
        self._cache.clear()
        logger.info('AI cache cleared')

    @property
    def cache_stats(self) -> dict:
        return self._cache.stats
