"""
Synthetic flight generator.

Used whenever the live feed is unavailable: no API key, an HTTP error,
an error payload, or an unreadable response. The route table is fixed,
so every snapshot has the same flights with the same ids; only the
progress along each route (and the derived position) is randomized per
call, which makes the flights appear to move between polls.
"""

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from skyatlas.ingestion.geo import calculate_heading, interpolate_position
from skyatlas.models import Coordinate, LiveFlight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MockRoute:
    """A fixed origin/destination pair flown by a named flight."""
    origin: Coordinate
    destination: Coordinate
    airline: str
    flight: str


# City centre coordinates, (lon, lat)
CITY_COORDINATES: Dict[str, Coordinate] = {
    'New York': (-74.0060, 40.7128),
    'London': (-0.1278, 51.5074),
    'Paris': (2.3522, 48.8566),
    'Los Angeles': (-118.2437, 34.0522),
    'Tokyo': (139.6917, 35.6895),
    'Seattle': (-122.3321, 47.6062),
    'Sydney': (151.2093, -33.8688),
    'Singapore': (103.8198, 1.3521),
    'Shanghai': (121.4737, 31.2304),
    'Hong Kong': (114.1095, 22.3964),
    'Delhi': (77.1025, 28.7041),
    'Dubai': (55.2708, 25.2048),
    'Madrid': (-3.7038, 40.4168),
    'Rome': (12.4964, 41.9028),
    'Berlin': (13.4050, 52.5200),
    'Moscow': (37.6173, 55.7558),
    'Chicago': (-87.6298, 41.8781),
    'Kansas': (-95.7129, 37.0902),
    'Mexico City': (-99.1332, 19.4326),
    'Buenos Aires': (-58.3816, -34.6037),
    'São Paulo': (-46.6333, -23.5505),
    'Rio de Janeiro': (-43.1729, -22.9068),
    'Lima': (-77.0428, -12.0464),
}

_CITY_BY_COORDINATES = {coords: name for name, coords in CITY_COORDINATES.items()}


def _route(origin: str, destination: str, airline: str, flight: str) -> MockRoute:
    return MockRoute(CITY_COORDINATES[origin], CITY_COORDINATES[destination], airline, flight)


MOCK_ROUTES: List[MockRoute] = [
    # Transatlantic
    _route('New York', 'London', 'British Airways', 'BA117'),
    _route('London', 'New York', 'American Airlines', 'AA100'),
    _route('Paris', 'New York', 'Air France', 'AF006'),

    # Transpacific
    _route('Los Angeles', 'Tokyo', 'Japan Airlines', 'JL061'),
    _route('Tokyo', 'Seattle', 'ANA', 'NH178'),
    _route('Sydney', 'Los Angeles', 'Qantas', 'QF11'),

    # Asia
    _route('Singapore', 'Tokyo', 'Singapore Airlines', 'SQ12'),
    _route('Shanghai', 'Hong Kong', 'China Eastern', 'MU501'),
    _route('Delhi', 'Dubai', 'Emirates', 'EK512'),

    # Europe
    _route('Madrid', 'Rome', 'Iberia', 'IB3253'),
    _route('Berlin', 'Moscow', 'Lufthansa', 'LH1444'),

    # Americas
    _route('New York', 'Chicago', 'United', 'UA1234'),
    _route('Los Angeles', 'Kansas', 'Southwest', 'WN1234'),
    _route('Mexico City', 'Buenos Aires', 'Aeromexico', 'AM021'),

    # South America
    _route('São Paulo', 'Rio de Janeiro', 'LATAM', 'LA3001'),
    _route('Buenos Aires', 'Lima', 'LATAM', 'LA2401'),
]


def city_for(coordinates: Coordinate) -> str:
    """Name of the city at ``coordinates``, or 'Unknown'."""
    return _CITY_BY_COORDINATES.get(tuple(coordinates), 'Unknown')


def generate_mock_flights(rng: Optional[random.Random] = None) -> List[LiveFlight]:
    """
    Build one snapshot of synthetic flights, one per route in MOCK_ROUTES.

    Each flight sits at a random fraction of its route with a cruise-like
    altitude (30,000-40,000 ft) and speed (400-550 kts). Heading is the
    great-circle bearing from origin to destination.
    """
    rng = rng or random.Random()
    flights = []

    for index, route in enumerate(MOCK_ROUTES):
        progress = rng.random()
        position = interpolate_position(route.origin, route.destination, progress)

        flights.append(LiveFlight(
            id=f'mock_{index}_{route.flight}',
            label=route.flight,
            airline=route.airline,
            position=position,
            altitude=30000 + rng.random() * 10000,
            speed=400 + rng.random() * 150,
            heading=calculate_heading(route.origin, route.destination),
            origin_key=city_for(route.origin),
            destination_key=city_for(route.destination),
            route_path=(route.origin, position, route.destination),
            synthetic=True,
        ))

    logger.debug(f'Generated {len(flights)} synthetic flights')
    return flights
