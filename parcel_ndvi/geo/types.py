from dataclasses import dataclass

from shapely.geometry import box, mapping


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    @classmethod
    def parse(cls, value: str | tuple | list) -> "GeoPoint":
        """Build a point from ``"lat,lng"`` or a ``(lat, lng)`` pair."""
        if isinstance(value, str):
            parts = [p.strip() for p in value.split(",")]
        else:
            parts = list(value)
        if len(parts) != 2:
            raise ValueError(f"Expected 'lat,lng', got {value!r}")
        latitude, longitude = float(parts[0]), float(parts[1])
        if not -90 <= latitude <= 90:
            raise ValueError(f"Latitude out of bounds [-90, 90]: {latitude}")
        if not -180 <= longitude <= 180:
            raise ValueError(f"Longitude out of bounds [-180, 180]: {longitude}")
        return cls(latitude, longitude)

    def as_pair(self) -> list[float]:
        return [self.latitude, self.longitude]


@dataclass(frozen=True)
class GeoRectangle:
    """Lat/lng aligned rectangle spanned by two opposite corners.

    ``start`` and ``end`` may be given in any order; every derived corner is
    computed from the per-axis min/max, so the rectangle is always normalized.
    """

    start: GeoPoint
    end: GeoPoint

    @property
    def south(self) -> float:
        return min(self.start.latitude, self.end.latitude)

    @property
    def north(self) -> float:
        return max(self.start.latitude, self.end.latitude)

    @property
    def west(self) -> float:
        return min(self.start.longitude, self.end.longitude)

    @property
    def east(self) -> float:
        return max(self.start.longitude, self.end.longitude)

    @property
    def north_west(self) -> GeoPoint:
        return GeoPoint(self.north, self.west)

    @property
    def north_east(self) -> GeoPoint:
        return GeoPoint(self.north, self.east)

    @property
    def south_west(self) -> GeoPoint:
        return GeoPoint(self.south, self.west)

    @property
    def south_east(self) -> GeoPoint:
        return GeoPoint(self.south, self.east)

    @property
    def center(self) -> GeoPoint:
        return GeoPoint((self.south + self.north) / 2, (self.west + self.east) / 2)

    def normalized(self) -> "GeoRectangle":
        return GeoRectangle(self.south_west, self.north_east)

    def bounds_payload(self) -> dict[str, list[float]]:
        return {
            "northWest": self.north_west.as_pair(),
            "northEast": self.north_east.as_pair(),
            "southWest": self.south_west.as_pair(),
            "southEast": self.south_east.as_pair(),
            "center": self.center.as_pair(),
        }

    def to_geojson(self) -> dict:
        # GeoJSON is lng/lat ordered.
        return mapping(box(self.west, self.south, self.east, self.north))


@dataclass(frozen=True)
class TileCoordinate:
    x: int
    y: int
    z: int
