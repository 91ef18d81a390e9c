"""
Flight data API endpoints.

Provides endpoints for:
- GET /api/flights - Latest flight snapshot for the map
- GET /api/flights/<flight_number> - Single flight details from the live feed
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from skyatlas.services import LiveFeedClient

logger = logging.getLogger(__name__)

flights_bp = Blueprint('flights', __name__, url_prefix='/api/flights')


def _client() -> LiveFeedClient:
    return current_app.config['LIVE_FEED_CLIENT']


@flights_bp.route('', methods=['GET'])
def list_flights():
    """
    List all currently tracked flights.

    Serves the snapshot last pushed by the polling subscription when one
    is running, otherwise fetches one (cache, feed, or synthetic).

    Response includes query timing for latency awareness.
    """
    start_time = time.perf_counter()

    latest = current_app.config.get('LATEST_SNAPSHOT')
    if latest is not None:
        flights = latest['flights']
        snapshot_time = latest['received_at']
        source = 'polling'
    else:
        flights = _client().fetch_snapshot()
        snapshot_time = datetime.now(timezone.utc)
        source = 'direct'

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'flights': [f.to_dict() for f in flights],
        'count': len(flights),
        'synthetic': any(f.synthetic for f in flights),
        'source': source,
        'timestamp': snapshot_time.isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })


@flights_bp.route('/<flight_number>', methods=['GET'])
def get_flight(flight_number: str):
    """
    Get detailed information for a single flight.

    Only real feed data is returned; without a feed the answer is 404.
    """
    start_time = time.perf_counter()

    flight = _client().fetch_entity_detail(flight_number)
    if flight is None:
        return jsonify({'error': 'Flight not found'}), 404

    result = flight.to_dict()
    query_time_ms = (time.perf_counter() - start_time) * 1000
    result['query_time_ms'] = round(query_time_ms, 2)

    return jsonify(result)
