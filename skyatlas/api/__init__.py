"""
API module for SkyAtlas.

Provides REST endpoints for:
- AI country insights, recommendations, search and analysis
- Live flight snapshots and single-flight details
- System status
"""

from skyatlas.api.flights import flights_bp
from skyatlas.api.insights import insights_bp
from skyatlas.api.metrics import metrics_bp

__all__ = ['flights_bp', 'insights_bp', 'metrics_bp']
