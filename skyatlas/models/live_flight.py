"""
LiveFlight model - one positioned flight in a snapshot.

Snapshots are regenerated wholesale on every refresh, so the model is
frozen: consumers receive the same objects the cache holds and must not
be able to change them.

Coordinates are (longitude, latitude) pairs, the order the map layer uses.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

Coordinate = Tuple[float, float]


@dataclass(frozen=True)
class LiveFlight:
    """
    Current state of a flight as drawn on the map.

    ``synthetic`` marks flights produced by the mock generator rather
    than the upstream feed.
    """
    id: str
    label: str
    position: Coordinate
    altitude: float
    speed: float
    heading: float
    origin_key: str
    destination_key: str
    route_path: Tuple[Coordinate, ...] = field(default_factory=tuple)
    airline: Optional[str] = None
    status: str = 'active'
    synthetic: bool = False

    @property
    def longitude(self) -> float:
        return self.position[0]

    @property
    def latitude(self) -> float:
        return self.position[1]

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return {
            'id': self.id,
            'label': self.label,
            'airline': self.airline,
            'position': list(self.position),
            'altitude': round(self.altitude, 1),
            'speed': round(self.speed, 1),
            'heading': round(self.heading, 1) % 360.0,
            'origin': self.origin_key,
            'destination': self.destination_key,
            'route': [list(point) for point in self.route_path],
            'status': self.status,
            'synthetic': self.synthetic,
        }
