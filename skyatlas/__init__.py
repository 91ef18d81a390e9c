"""
SkyAtlas Backend Package.

Data layer for an interactive world map: AI-generated travel content and
live (or simulated) flight positions, built with Flask, requests and
Google Gemini.

Modules:
    api/         REST endpoints for insights, flights, and system status
    models/      Dataclasses for insights and live flights
    ingestion/   AviationStack client, synthetic flights, polling subscription
    services/    Enrichment and live-feed clients, Gemini provider
    cache.py     Thread-safe in-memory TTL cache
    parsing.py   JSON extraction from free-form model output
    errors.py    Error taxonomy
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
