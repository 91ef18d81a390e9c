"""Tests for the enrichment client - caching, retries, parsing and fallbacks."""

import json

import pytest

from skyatlas.errors import GenerationFailed, ProviderUnavailable
from skyatlas.models import (
    CountryInsight,
    Interaction,
    InteractionAnalysis,
    PlaceCategory,
)
from skyatlas.services.enrichment import (
    EnrichmentClient,
    fallback_insight,
    substring_search,
    summarize_interactions,
)
from tests.conftest import FakeProvider

FRANCE_JSON = json.dumps({
    'population': 'About 68 million, capital Paris',
    'capital': 'Paris',
    'culturalFact': 'France is the most visited country in the world.',
    'geography': 'Mont Blanc is the highest peak in Western Europe.',
})


def _places(count: int) -> str:
    return json.dumps([
        {'name': f'Place {i}', 'description': f'Reason {i}', 'type': 'nature'}
        for i in range(count)
    ])


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_success_is_cached(self, make_enrichment):
        provider = FakeProvider('hello')
        client = make_enrichment(provider)

        assert client.generate('prompt', cache_key='k') == 'hello'
        assert client.generate('prompt', cache_key='k') == 'hello'
        assert provider.calls == 1

    def test_prompt_is_default_cache_key(self, make_enrichment):
        provider = FakeProvider('a')
        client = make_enrichment(provider)

        client.generate('same prompt')
        client.generate('same prompt')
        assert provider.calls == 1

    def test_expired_cache_calls_provider_again(self, make_enrichment, clock):
        provider = FakeProvider('first', 'second')
        client = make_enrichment(provider, ttl=60)

        assert client.generate('p', cache_key='k') == 'first'
        clock.advance(60)
        assert client.generate('p', cache_key='k') == 'second'
        assert provider.calls == 2

    def test_always_failing_provider_makes_max_retries_plus_one_attempts(self, make_enrichment, sleeps):
        provider = FakeProvider(RuntimeError('quota exceeded'))
        client = make_enrichment(provider)

        with pytest.raises(GenerationFailed) as excinfo:
            client.generate('p', cache_key='k', max_retries=2)

        assert provider.calls == 3
        assert excinfo.value.attempts == 3
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_backoff_grows_linearly(self, make_enrichment, sleeps):
        client = make_enrichment(FakeProvider(RuntimeError('down')))

        with pytest.raises(GenerationFailed):
            client.generate('p', max_retries=3)

        # No pause after the final attempt
        assert sleeps == [1.0, 2.0, 3.0]

    def test_recovers_after_transient_failures(self, make_enrichment, sleeps):
        provider = FakeProvider(RuntimeError('network'), RuntimeError('network'), 'ok')
        client = make_enrichment(provider)

        assert client.generate('p', cache_key='k') == 'ok'
        assert provider.calls == 3
        assert sleeps == [1.0, 2.0]

    def test_failures_are_not_cached(self, make_enrichment):
        provider = FakeProvider(RuntimeError('down'), 'ok')
        client = make_enrichment(provider, max_retries=0)

        with pytest.raises(GenerationFailed):
            client.generate('p', cache_key='k')
        assert client.generate('p', cache_key='k') == 'ok'

    def test_unavailable_provider_short_circuits(self, make_enrichment):
        provider = FakeProvider('never', available=False)
        client = make_enrichment(provider)

        with pytest.raises(ProviderUnavailable):
            client.generate('p')
        assert provider.calls == 0

    def test_missing_provider_is_unavailable(self, make_enrichment):
        client = make_enrichment(None)
        assert client.is_available is False
        with pytest.raises(ProviderUnavailable):
            client.generate('p')

    def test_non_text_response_counts_as_failure(self, make_enrichment):
        provider = FakeProvider(None)
        client = make_enrichment(provider, max_retries=1)

        with pytest.raises(GenerationFailed):
            client.generate('p')
        assert provider.calls == 2


# ---------------------------------------------------------------------------
# get_country_insight
# ---------------------------------------------------------------------------


class TestCountryInsight:
    def test_parses_generated_insight(self, make_enrichment):
        client = make_enrichment(FakeProvider(f'```json\n{FRANCE_JSON}\n```'))

        insight = client.get_country_insight('France')

        assert insight == CountryInsight(
            capital='Paris',
            population_summary='About 68 million, capital Paris',
            cultural_fact='France is the most visited country in the world.',
            geography='Mont Blanc is the highest peak in Western Europe.',
            is_fallback=False,
        )

    def test_repeated_requests_hit_the_cache(self, make_enrichment):
        provider = FakeProvider(FRANCE_JSON)
        client = make_enrichment(provider)

        first = client.get_country_insight('France')
        second = client.get_country_insight('France')

        assert provider.calls == 1
        assert first == second

    def test_prompt_embeds_country(self, make_enrichment):
        provider = FakeProvider(FRANCE_JSON)
        make_enrichment(provider).get_country_insight('Japan')

        assert 'Japan' in provider.prompts[0]

    def test_long_fields_are_clipped(self, make_enrichment):
        payload = json.dumps({
            'capital': 'Paris',
            'population': '68M',
            'culturalFact': 'x' * 200,
            'geography': 'y' * 81,
        })
        insight = make_enrichment(FakeProvider(payload)).get_country_insight('France')

        assert len(insight.cultural_fact) <= 80
        assert len(insight.geography) <= 80

    def test_partial_answer_is_completed_from_fallback(self, make_enrichment):
        payload = json.dumps({'capital': 'Madrid'})
        insight = make_enrichment(FakeProvider(payload)).get_country_insight('Spain')

        assert insight.capital == 'Madrid'
        assert insight.population_summary == fallback_insight('Spain').population_summary
        assert insight.is_fallback is False

    def test_failing_provider_returns_fallback(self, make_enrichment):
        client = make_enrichment(FakeProvider(RuntimeError('boom')))

        insight = client.get_country_insight('France')

        assert isinstance(insight, CountryInsight)
        assert insight.is_fallback is True
        assert insight.capital == 'France'
        assert insight.cultural_fact
        assert insight.geography

    def test_unparseable_response_returns_fallback(self, make_enrichment):
        client = make_enrichment(FakeProvider('Sorry, I cannot answer that.'))
        assert client.get_country_insight('France') == fallback_insight('France')

    def test_object_without_expected_fields_returns_fallback(self, make_enrichment):
        client = make_enrichment(FakeProvider('{"unrelated": 1}'))
        assert client.get_country_insight('France').is_fallback is True

    def test_unavailable_provider_returns_fallback(self, make_enrichment):
        provider = FakeProvider(FRANCE_JSON, available=False)
        insight = make_enrichment(provider).get_country_insight('France')

        assert insight.is_fallback is True
        assert provider.calls == 0


# ---------------------------------------------------------------------------
# get_travel_recommendations
# ---------------------------------------------------------------------------


class TestTravelRecommendations:
    def test_parses_places(self, make_enrichment):
        payload = json.dumps([
            {'name': 'Eiffel Tower', 'description': 'Iconic iron lattice', 'type': 'landmark'},
            {'name': 'Gorges du Verdon', 'description': 'Turquoise canyon', 'type': 'Nature'},
            {'name': 'Louvre', 'description': 'Art treasures', 'type': 'cultural'},
        ])
        places = make_enrichment(FakeProvider(payload)).get_travel_recommendations('France')

        assert [p.name for p in places] == ['Eiffel Tower', 'Gorges du Verdon', 'Louvre']
        assert [p.category for p in places] == [
            PlaceCategory.LANDMARK,
            PlaceCategory.NATURE,
            PlaceCategory.CULTURAL,
        ]

    def test_fifteen_places_truncated_to_ten(self, make_enrichment):
        places = make_enrichment(FakeProvider(_places(15))).get_travel_recommendations('France')

        assert len(places) == 10
        assert places[-1].name == 'Place 9'

    def test_short_list_is_not_padded(self, make_enrichment):
        places = make_enrichment(FakeProvider(_places(4))).get_travel_recommendations('France')
        assert len(places) == 4

    def test_invalid_items_skipped_and_fields_normalized(self, make_enrichment):
        payload = json.dumps([
            'not an object',
            {'description': 'no name'},
            {'name': 'Lascaux', 'description': 'z' * 120, 'type': 'prehistoric'},
        ])
        places = make_enrichment(FakeProvider(payload)).get_travel_recommendations('France')

        assert len(places) == 1
        assert places[0].category is PlaceCategory.LANDMARK
        assert len(places[0].description) <= 70

    def test_failing_provider_returns_empty_list(self, make_enrichment):
        client = make_enrichment(FakeProvider(RuntimeError('boom')))
        assert client.get_travel_recommendations('France') == []

    def test_unparseable_response_returns_empty_list(self, make_enrichment):
        client = make_enrichment(FakeProvider('No list for you'))
        assert client.get_travel_recommendations('France') == []

    def test_uses_its_own_cache_slot(self, make_enrichment):
        provider = FakeProvider(FRANCE_JSON, _places(3))
        client = make_enrichment(provider)

        client.get_country_insight('France')
        places = client.get_travel_recommendations('France')

        assert provider.calls == 2
        assert len(places) == 3


# ---------------------------------------------------------------------------
# search_entities
# ---------------------------------------------------------------------------


CANDIDATES = ['France', 'Germany', 'Spain']


class TestSearch:
    def test_failing_provider_falls_back_to_substring(self, make_enrichment):
        client = make_enrichment(FakeProvider(RuntimeError('boom')))
        assert client.search_entities('ger', CANDIDATES) == ['Germany']

    def test_search_retries_once(self, make_enrichment):
        provider = FakeProvider(RuntimeError('boom'))
        make_enrichment(provider).search_entities('ger', CANDIDATES)
        assert provider.calls == 2

    def test_model_ranking_is_used(self, make_enrichment):
        client = make_enrichment(FakeProvider('["spain", "France", "Atlantis"]'))
        assert client.search_entities('sunny beaches', CANDIDATES) == ['Spain', 'France']

    def test_unparseable_response_falls_back(self, make_enrichment):
        client = make_enrichment(FakeProvider('Germany is great'))
        assert client.search_entities('GER', CANDIDATES) == ['Germany']

    def test_response_without_known_names_falls_back(self, make_enrichment):
        client = make_enrichment(FakeProvider('["Narnia"]'))
        assert client.search_entities('a', CANDIDATES) == ['France', 'Germany', 'Spain']

    def test_results_capped_at_five(self, make_enrichment):
        candidates = [f'Land {i}' for i in range(10)]
        client = make_enrichment(FakeProvider(json.dumps(candidates)))
        assert len(client.search_entities('land', candidates)) == 5

    def test_blank_query_returns_nothing(self, make_enrichment):
        provider = FakeProvider('["France"]')
        assert make_enrichment(provider).search_entities('   ', CANDIDATES) == []
        assert provider.calls == 0

    def test_substring_search_cap_and_order(self):
        candidates = ['Mali', 'Malta', 'Malawi', 'Malaysia', 'Maldives', 'Somalia', 'Guatemala']
        assert substring_search('MAL', candidates) == ['Mali', 'Malta', 'Malawi', 'Malaysia', 'Maldives']


# ---------------------------------------------------------------------------
# analyze_interactions
# ---------------------------------------------------------------------------


HISTORY = [
    Interaction('France', 2.0),
    Interaction('Japan', 4.0),
    Interaction('Japan', 1.0),
    Interaction('France', 5.0),
    Interaction('Peru', 3.0),
]


class TestInteractionSummary:
    def test_summary_statistics(self):
        summary = summarize_interactions(HISTORY)

        assert summary.total_interactions == 5
        assert summary.unique_keys == 3
        # France and Japan tie at two; France was seen first
        assert summary.most_frequent == 'France'
        assert summary.mean_duration == pytest.approx(3.0)

    def test_empty_history(self):
        summary = summarize_interactions([])
        assert summary.total_interactions == 0
        assert summary.most_frequent is None


class TestAnalyzeInteractions:
    def test_parses_analysis(self, make_enrichment):
        payload = '{"insights": ["Likes Europe", "Long visits"], "suggestions": ["Italy", "Chile"]}'
        provider = FakeProvider(payload)

        analysis = make_enrichment(provider).analyze_interactions(HISTORY)

        assert analysis == InteractionAnalysis(
            insights=['Likes Europe', 'Long visits'],
            suggestions=['Italy', 'Chile'],
        )
        assert '"most_frequent": "France"' in provider.prompts[0]

    def test_failing_provider_returns_none(self, make_enrichment):
        client = make_enrichment(FakeProvider(RuntimeError('boom')))
        assert client.analyze_interactions(HISTORY) is None

    def test_malformed_response_returns_none(self, make_enrichment):
        client = make_enrichment(FakeProvider('{"insights": "not a list"}'))
        assert client.analyze_interactions(HISTORY) is None

    def test_empty_history_skips_provider(self, make_enrichment):
        provider = FakeProvider('{"insights": [], "suggestions": []}')
        assert make_enrichment(provider).analyze_interactions([]) is None
        assert provider.calls == 0


# ---------------------------------------------------------------------------
# cache management
# ---------------------------------------------------------------------------


class TestCacheManagement:
    def test_clear_cache_forces_new_generation(self, make_enrichment):
        provider = FakeProvider(FRANCE_JSON)
        client = make_enrichment(provider)

        client.get_country_insight('France')
        client.clear_cache()
        client.get_country_insight('France')

        assert provider.calls == 2
        assert client.cache_stats['entries'] == 1

    def test_default_cache_uses_configured_ttl(self):
        client = EnrichmentClient(provider=FakeProvider('x'))
        assert client.cache_stats['ttl_seconds'] > 0
