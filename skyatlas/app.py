"""
SkyAtlas Flask Application.

Main entry point for the web application. Initializes:
- Enrichment client (Gemini-backed country insights)
- Live feed client (AviationStack or synthetic flights)
- Background polling that keeps the latest flight snapshot warm
- API routes

The two clients are created here and nowhere else; blueprints reach them
through ``app.config``.

Usage:
    python -m skyatlas.app

Or with gunicorn:
    gunicorn 'skyatlas.app:create_app()'
"""

import logging
import os
from datetime import datetime, timezone
from typing import List, Optional

from flask import Flask
from flask_cors import CORS

from skyatlas.api import flights_bp, insights_bp, metrics_bp
from skyatlas.config import config
from skyatlas.models import LiveFlight
from skyatlas.services import EnrichmentClient, LiveFeedClient

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    enrichment_client: Optional[EnrichmentClient] = None,
    live_feed_client: Optional[LiveFeedClient] = None,
    start_polling: bool = True,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        enrichment_client: Client for AI insights (built from config if None)
        live_feed_client: Client for flight snapshots (built from config if None)
        start_polling: Whether to start the background flight polling.
                       Set to False for testing.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    enrichment_client = enrichment_client or EnrichmentClient.from_config()
    live_feed_client = live_feed_client or LiveFeedClient.from_config()

    app.config['ENRICHMENT_CLIENT'] = enrichment_client
    app.config['LIVE_FEED_CLIENT'] = live_feed_client
    app.config['LATEST_SNAPSHOT'] = None

    # Register API blueprints
    app.register_blueprint(insights_bp)
    app.register_blueprint(flights_bp)
    app.register_blueprint(metrics_bp)

    if start_polling:
        def on_snapshot(flights: List[LiveFlight]) -> None:
            app.config['LATEST_SNAPSHOT'] = {
                'flights': flights,
                'received_at': datetime.now(timezone.utc),
            }
            logger.debug(f'Snapshot updated with {len(flights)} flights')

        live_feed_client.start_polling(on_snapshot)
        logger.info(f'Flight polling started (interval={live_feed_client.default_interval}s)')

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok'}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {'error': 'Method not allowed'}, 405

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    # Get port from environment or default
    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting SkyAtlas on http://localhost:{port}')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to prevent duplicate polling threads
    )


if __name__ == '__main__':
    run_development_server()
