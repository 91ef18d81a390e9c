"""
AviationStack API client.

Handles communication with the AviationStack REST API:
- Active-flight listing for map snapshots
- Single-flight lookup by IATA flight number
- Translation of flight records into LiveFlight objects

The API authenticates with an ``access_key`` query parameter. Errors come
back either as HTTP status codes or as a 200 response carrying an
``{"error": {...}}`` payload; both are raised as FeedUnavailable.

Flight record format (fields used here):
    flight_status          - scheduled, active, landed, ...
    flight.iata / .icao    - flight number, e.g. BA117 / BAW117
    airline.name / .iata   - operating airline
    departure.iata / .airport, arrival.iata / .airport
    live.latitude / .longitude / .altitude / .speed_horizontal / .direction
         (only present while the flight is airborne and tracked)
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from skyatlas.config import config
from skyatlas.errors import FeedUnavailable
from skyatlas.ingestion.geo import calculate_heading
from skyatlas.models import Coordinate, LiveFlight

logger = logging.getLogger(__name__)

# Airport coordinates by IATA code, (lon, lat)
AIRPORT_COORDINATES: Dict[str, Coordinate] = {
    'JFK': (-73.7781, 40.6413),
    'LAX': (-118.4085, 33.9416),
    'LHR': (-0.4543, 51.4700),
    'CDG': (2.5479, 49.0097),
    'NRT': (140.3929, 35.7720),
    'DXB': (55.3644, 25.2532),
    'SIN': (103.9915, 1.3644),
    'HKG': (113.9145, 22.3080),
    'FRA': (8.5706, 50.0379),
    'AMS': (4.7639, 52.3105),
    'ORD': (-87.9048, 41.9742),
    'DFW': (-97.0403, 32.8998),
    'ATL': (-84.4279, 33.6407),
    'SFO': (-122.3750, 37.6213),
    'SEA': (-122.3088, 47.4502),
    'MIA': (-80.2906, 25.7959),
    'BOS': (-71.0096, 42.3656),
    'IAD': (-77.4565, 38.9531),
    'EWR': (-74.1745, 40.6895),
    'LGA': (-73.8740, 40.7769),
    'SYD': (151.1772, -33.9461),
    'MEL': (144.8432, -37.6690),
    'PEK': (116.5974, 40.0799),
    'PVG': (121.8058, 31.1443),
    'ICN': (126.4506, 37.4602),
    'BKK': (100.7501, 13.6900),
    'DEL': (77.1025, 28.5665),
    'BOM': (72.8679, 19.0896),
}


def airport_coordinates(iata_code: Optional[str]) -> Optional[Coordinate]:
    """Get airport coordinates by IATA code, or None if unknown."""
    if not iata_code:
        return None
    return AIRPORT_COORDINATES.get(iata_code.upper())


def record_to_flight(record: Dict[str, Any], index: int = 0) -> Optional[LiveFlight]:
    """
    Convert one AviationStack flight record into a LiveFlight.

    Returns None when the record has no live position. The id is derived
    from the flight number so it stays stable across snapshots.
    """
    live = record.get('live') or {}
    latitude = live.get('latitude')
    longitude = live.get('longitude')
    if latitude is None or longitude is None:
        return None

    flight = record.get('flight') or {}
    airline = record.get('airline') or {}
    departure = record.get('departure') or {}
    arrival = record.get('arrival') or {}

    number = flight.get('iata') or flight.get('icao') or f'FL{index}'
    position = (float(longitude), float(latitude))
    origin = airport_coordinates(departure.get('iata'))
    destination = airport_coordinates(arrival.get('iata'))

    heading = live.get('direction')
    if heading is None:
        # Point at the destination when the feed omits a track
        heading = calculate_heading(position, destination) if destination else 0.0

    route = tuple(point for point in (origin, position, destination) if point is not None)

    return LiveFlight(
        id=f'flight_{number}',
        label=number,
        airline=airline.get('name') or 'Unknown Airline',
        position=position,
        altitude=float(live.get('altitude') or 0),
        speed=float(live.get('speed_horizontal') or 0),
        heading=float(heading) % 360.0,
        origin_key=departure.get('iata') or departure.get('icao') or 'Unknown',
        destination_key=arrival.get('iata') or arrival.get('icao') or 'Unknown',
        route_path=route,
        status=record.get('flight_status') or 'active',
    )


def records_to_flights(records: List[Dict[str, Any]]) -> List[LiveFlight]:
    """Convert a list of flight records, dropping the ones without a live position."""
    flights = []
    for index, record in enumerate(records):
        try:
            flight = record_to_flight(record, index)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f'Skipping malformed flight record #{index}: {e}')
            continue
        if flight is not None:
            flights.append(flight)
    return flights


class AviationStackClient:
    """
    Client for the AviationStack flights endpoint.

    Handles:
    - GET requests to /flights with the access key
    - Error payload detection
    - Timeouts (no retries: the caller falls back instead)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = 'http://api.aviationstack.com/v1',
        limit: int = 100,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.limit = limit
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls) -> Optional['AviationStackClient']:
        """
        Create client from application configuration.

        Returns None when no API key is configured, which puts the
        live feed into permanent synthetic mode.
        """
        if not config.aviationstack.is_configured:
            logger.warning('AviationStack API key not configured - live feed will use mock data')
            return None
        return cls(
            api_key=config.aviationstack.api_key,
            base_url=config.aviationstack.base_url,
            limit=config.aviationstack.limit,
        )

    def _get_flights(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Call /flights and return the raw ``data`` list.

        Raises:
            FeedUnavailable on network errors, HTTP errors, error payloads
            and undecodable bodies
        """
        if not self.api_key:
            raise FeedUnavailable('AviationStack API key not configured')

        url = f'{self.base_url}/flights'
        query = {'access_key': self.api_key}
        query.update(params)

        logger.debug(f'Fetching flights: {url} params={params}')

        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout as e:
            logger.error('AviationStack API timeout')
            raise FeedUnavailable('AviationStack API timeout') from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else 'unknown'
            logger.error(f'AviationStack API error: {status}')
            raise FeedUnavailable(f'AviationStack API error: {status}') from e
        except requests.exceptions.RequestException as e:
            logger.error(f'AviationStack request failed: {e}')
            raise FeedUnavailable(f'AviationStack request failed: {e}') from e
        except ValueError as e:
            logger.error(f'AviationStack returned invalid JSON: {e}')
            raise FeedUnavailable('AviationStack returned invalid JSON') from e

        if not isinstance(data, dict):
            raise FeedUnavailable('AviationStack returned an unexpected payload')

        if data.get('error'):
            logger.warning(f'AviationStack API error: {data["error"]}')
            raise FeedUnavailable(f'AviationStack API error: {data["error"]}')

        records = data.get('data') or []
        if not isinstance(records, list):
            raise FeedUnavailable('AviationStack returned an unexpected payload')

        logger.info(f'Received {len(records)} flight records from AviationStack')
        return records

    def get_active_flights(self) -> List[LiveFlight]:
        """Fetch currently active flights that carry a live position."""
        records = self._get_flights({'limit': self.limit, 'flight_status': 'active'})
        flights = records_to_flights(records)
        logger.debug(f'Parsed {len(flights)} flights with live positions')
        return flights

    def get_flight(self, flight_number: str) -> Optional[LiveFlight]:
        """
        Fetch a single flight by IATA flight number.

        Returns None when the feed has no record for it, or the record
        has no live position.
        """
        records = self._get_flights({'flight_iata': flight_number})
        if not records:
            logger.debug(f'No flight data found for {flight_number}')
            return None
        try:
            return record_to_flight(records[0])
        except (TypeError, ValueError, AttributeError) as e:
            raise FeedUnavailable(f'Malformed flight record for {flight_number}: {e}') from e
