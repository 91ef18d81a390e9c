"""
AI insight API endpoints.

Provides endpoints for:
- GET /api/insights/countries/<name> - Country summary
- GET /api/insights/countries/<name>/recommendations - Top 10 places
- POST /api/insights/search - Natural-language country search
- POST /api/insights/analysis - Interpretation of a browsing history
- DELETE /api/insights/cache - Drop cached generations

Generation failures never surface as HTTP errors here: the enrichment
client already degrades to fallback content. Only malformed requests
get a 400.
"""

import logging
import time

from flask import Blueprint, current_app, jsonify, request

from skyatlas.models import Interaction
from skyatlas.services import EnrichmentClient

logger = logging.getLogger(__name__)

insights_bp = Blueprint('insights', __name__, url_prefix='/api/insights')


def _client() -> EnrichmentClient:
    return current_app.config['ENRICHMENT_CLIENT']


@insights_bp.route('/countries/<name>', methods=['GET'])
def get_country_insight(name: str):
    """Get the AI summary for a country (fallback text if AI is unavailable)."""
    start_time = time.perf_counter()

    insight = _client().get_country_insight(name)

    query_time_ms = (time.perf_counter() - start_time) * 1000
    return jsonify({
        'country': name,
        'insight': insight.to_dict(),
        'query_time_ms': round(query_time_ms, 2),
    })


@insights_bp.route('/countries/<name>/recommendations', methods=['GET'])
def get_recommendations(name: str):
    """Get up to 10 must-visit places. Empty list when AI is unavailable."""
    start_time = time.perf_counter()

    places = _client().get_travel_recommendations(name)

    query_time_ms = (time.perf_counter() - start_time) * 1000
    return jsonify({
        'country': name,
        'recommendations': [place.to_dict() for place in places],
        'count': len(places),
        'query_time_ms': round(query_time_ms, 2),
    })


@insights_bp.route('/search', methods=['POST'])
def search_countries():
    """
    Search countries by natural-language query.

    Body: {"query": str, "candidates": [str, ...]}
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required'}), 400

    query = data.get('query')
    candidates = data.get('candidates')

    if not isinstance(query, str):
        return jsonify({'error': 'query must be a string'}), 400
    if not isinstance(candidates, list) or not all(isinstance(c, str) for c in candidates):
        return jsonify({'error': 'candidates must be a list of strings'}), 400

    results = _client().search_entities(query, candidates)
    return jsonify({
        'query': query,
        'results': results,
        'count': len(results),
    })


@insights_bp.route('/analysis', methods=['POST'])
def analyze_interactions():
    """
    Analyze a user's interaction history.

    Body: {"interactions": [{"country": str, "duration": float}, ...]}

    Returns {"analysis": null} when no analysis could be produced.
    """
    data = request.get_json(silent=True)
    if not data or not isinstance(data.get('interactions'), list):
        return jsonify({'error': 'interactions list required'}), 400

    try:
        history = [Interaction.from_dict(item) for item in data['interactions']]
    except (AttributeError, TypeError, ValueError) as e:
        return jsonify({'error': f'Invalid interaction: {e}'}), 400

    analysis = _client().analyze_interactions(history)
    return jsonify({
        'analysis': analysis.to_dict() if analysis else None,
        'interaction_count': len(history),
    })


@insights_bp.route('/cache', methods=['DELETE'])
def clear_cache():
    """Clear the AI response cache."""
    _client().clear_cache()
    return jsonify({'success': True, 'message': 'AI cache cleared'})
