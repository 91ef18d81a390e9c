"""
Metrics API endpoints.

Provides endpoints for:
- GET /api/metrics/status - Service availability, cache and polling status
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from skyatlas.config import config

logger = logging.getLogger(__name__)

metrics_bp = Blueprint('metrics', __name__, url_prefix='/api/metrics')


@metrics_bp.route('/status', methods=['GET'])
def get_system_status():
    """
    Get system health and status information.

    Returns:
    - AI provider availability and cache statistics
    - Live feed mode (live or synthetic), polling state and cache statistics
    - Configuration info

    Status is 'degraded' whenever either client runs on fallback data.
    """
    start_time = time.perf_counter()

    enrichment = current_app.config['ENRICHMENT_CLIENT']
    live_feed = current_app.config['LIVE_FEED_CLIENT']

    ai_ok = enrichment.is_available
    feed_ok = live_feed.is_feed_configured

    latest = current_app.config.get('LATEST_SNAPSHOT')

    query_time_ms = (time.perf_counter() - start_time) * 1000

    return jsonify({
        'status': 'healthy' if (ai_ok and feed_ok) else 'degraded',
        'ai': {
            'available': ai_ok,
            'model': config.gemini.model,
            'cache': enrichment.cache_stats,
        },
        'live_feed': {
            'mode': 'live' if feed_ok else 'synthetic',
            'last_snapshot': latest['received_at'].isoformat() if latest else None,
            **live_feed.stats,
        },
        'config': {
            'poll_interval': live_feed.default_interval,
            'ai_cache_ttl_seconds': config.gemini.cache_ttl_seconds,
            'feed_cache_ttl_seconds': config.live_feed.cache_ttl_seconds,
        },
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'query_time_ms': round(query_time_ms, 2),
    })
