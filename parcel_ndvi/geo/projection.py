"""
Rectangle -> tile projection and the per-request tile budget.

Tile math follows the spherical Web Mercator scheme used by slippy maps:
global pixel coordinates scale with ``tile_size * 2**zoom`` and tile indices
are the floored pixel coordinates divided by the tile size.
"""

import math

from parcel_ndvi.config import settings
from parcel_ndvi.geo.layers import TileLayer
from parcel_ndvi.geo.types import GeoPoint, GeoRectangle, TileCoordinate

MAX_LATITUDE = 85.0511287798


def clamp_zoom(
    zoom: float, min_zoom: int | None = None, max_zoom: int | None = None
) -> int:
    """Clamp a (possibly fractional) map zoom into the supported sampling range."""
    min_zoom = settings.MIN_ZOOM if min_zoom is None else min_zoom
    max_zoom = settings.MAX_ZOOM if max_zoom is None else max_zoom
    return int(max(min_zoom, min(int(zoom), max_zoom)))


def project(point: GeoPoint, zoom: int, tile_size: int = 256) -> tuple[float, float]:
    """Project a lat/lng point into global pixel space at ``zoom``."""
    scale = tile_size * 2**zoom
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, point.latitude))
    sin_lat = math.sin(math.radians(lat))

    x = scale * (point.longitude / 360.0 + 0.5)
    y = scale * (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi))
    return x, y


def tiles_for_bounds(
    rect: GeoRectangle, zoom: int, layer: TileLayer | None
) -> list[TileCoordinate]:
    """Enumerate every tile at ``zoom`` touched by ``rect``.

    Tiles are returned x-major (all y for the first column, then the next
    column). With no tile layer there is nothing to sample and the result is
    empty.
    """
    if layer is None:
        return []

    tile_size = layer.tile_size
    nw_x, nw_y = project(rect.north_west, zoom, tile_size)
    se_x, se_y = project(rect.south_east, zoom, tile_size)

    last_index = 2**zoom - 1

    def _index(pixel: float) -> int:
        return max(0, min(last_index, math.floor(pixel / tile_size)))

    x_min, x_max = _index(min(nw_x, se_x)), _index(max(nw_x, se_x))
    y_min, y_max = _index(min(nw_y, se_y)), _index(max(nw_y, se_y))

    return [
        TileCoordinate(x, y, zoom)
        for x in range(x_min, x_max + 1)
        for y in range(y_min, y_max + 1)
    ]


def limit_tiles(
    tiles: list[TileCoordinate], max_tiles: int | None = None
) -> list[TileCoordinate]:
    """Cap the tile list with a uniform stride so the sample stays spread out."""
    max_tiles = settings.MAX_SELECTION_TILES if max_tiles is None else max_tiles
    if max_tiles <= 0:
        raise ValueError(f"max_tiles must be positive, got {max_tiles}")
    if len(tiles) <= max_tiles:
        return list(tiles)

    stride = math.ceil(len(tiles) / max_tiles)
    return [tile for idx, tile in enumerate(tiles) if idx % stride == 0][:max_tiles]
