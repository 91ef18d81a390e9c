"""
Live flight data sources for SkyAtlas.

Handles the AviationStack feed, the synthetic fallback generator, and the
periodic polling subscription that pushes snapshots to consumers.
"""

from skyatlas.ingestion.aviationstack_client import AviationStackClient
from skyatlas.ingestion.geo import calculate_heading
from skyatlas.ingestion.poller import PollingSubscription
from skyatlas.ingestion.synthetic import generate_mock_flights

__all__ = [
    'AviationStackClient',
    'PollingSubscription',
    'calculate_heading',
    'generate_mock_flights',
]
