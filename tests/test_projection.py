"""Tests for rectangle -> tile projection and the tile budget."""

import math
import random

import pytest

from parcel_ndvi.geo.layers import MAP_LAYERS, get_layer
from parcel_ndvi.geo.projection import (
    clamp_zoom,
    limit_tiles,
    project,
    tiles_for_bounds,
)
from parcel_ndvi.geo.types import GeoPoint, GeoRectangle, TileCoordinate

SAT = MAP_LAYERS["SAT"]


def _make_tiles(n: int, z: int = 14) -> list[TileCoordinate]:
    return [TileCoordinate(i, i * 2, z) for i in range(n)]


class TestProject:
    def test_origin_maps_to_world_center(self):
        assert project(GeoPoint(0.0, 0.0), 0) == pytest.approx((128.0, 128.0))

    def test_scale_doubles_per_zoom(self):
        x0, y0 = project(GeoPoint(40.0, -100.0), 5)
        x1, y1 = project(GeoPoint(40.0, -100.0), 6)
        assert x1 == pytest.approx(2 * x0)
        assert y1 == pytest.approx(2 * y0)

    def test_known_tile(self):
        # London at zoom 10 is OSM tile 511/340
        x, y = project(GeoPoint(51.5074, -0.1278), 10)
        assert (math.floor(x / 256), math.floor(y / 256)) == (511, 340)

    def test_latitude_is_clamped(self):
        x, y = project(GeoPoint(89.9, 0.0), 2)
        assert y == pytest.approx(0.0, abs=1e-6)


class TestClampZoom:
    def test_within_range(self):
        assert clamp_zoom(12) == 12

    def test_clamped(self):
        assert clamp_zoom(3) == 6
        assert clamp_zoom(19) == 16

    def test_fractional_zoom_floors(self):
        assert clamp_zoom(13.7) == 13


class TestTilesForBounds:
    def test_no_layer_is_empty(self):
        rect = GeoRectangle(GeoPoint(36.72, -119.80), GeoPoint(36.75, -119.77))
        assert tiles_for_bounds(rect, 14, None) == []

    def test_point_gives_one_tile(self):
        point = GeoPoint(36.7378, -119.7871)
        tiles = tiles_for_bounds(GeoRectangle(point, point), 14, SAT)
        assert len(tiles) == 1
        assert tiles[0].z == 14

    def test_cross_product_x_major(self):
        rect = GeoRectangle(GeoPoint(36.72, -119.80), GeoPoint(36.75, -119.77))
        tiles = tiles_for_bounds(rect, 14, SAT)
        xs = sorted({t.x for t in tiles})
        ys = sorted({t.y for t in tiles})
        assert len(tiles) == len(xs) * len(ys)
        assert tiles == [TileCoordinate(x, y, 14) for x in xs for y in ys]

    def test_corner_order_does_not_matter(self):
        a, b = GeoPoint(36.72, -119.80), GeoPoint(36.75, -119.77)
        assert tiles_for_bounds(GeoRectangle(a, b), 13, SAT) == tiles_for_bounds(
            GeoRectangle(b, a), 13, SAT
        )

    def test_tiles_stay_inside_grid(self):
        rect = GeoRectangle(GeoPoint(-89.0, -180.0), GeoPoint(89.0, 180.0))
        tiles = tiles_for_bounds(rect, 6, SAT)
        assert len(tiles) == 64 * 64
        assert all(0 <= t.x < 64 and 0 <= t.y < 64 for t in tiles)

    def test_covers_projected_extent(self):
        """Every pixel of the projected rectangle falls in an enumerated tile."""
        rng = random.Random(7)
        for _ in range(50):
            lat = rng.uniform(-60, 60)
            lng = rng.uniform(-170, 170)
            rect = GeoRectangle(
                GeoPoint(lat, lng),
                GeoPoint(lat + rng.uniform(-0.1, 0.1), lng + rng.uniform(-0.1, 0.1)),
            )
            zoom = rng.randint(6, 16)
            tiles = {(t.x, t.y) for t in tiles_for_bounds(rect, zoom, SAT)}

            nw_x, nw_y = project(rect.north_west, zoom)
            se_x, se_y = project(rect.south_east, zoom)
            for i in range(11):
                for j in range(11):
                    px = nw_x + (se_x - nw_x) * i / 10
                    py = nw_y + (se_y - nw_y) * j / 10
                    assert (math.floor(px / 256), math.floor(py / 256)) in tiles


class TestLimitTiles:
    def test_small_input_unchanged(self):
        tiles = _make_tiles(12)
        assert limit_tiles(tiles, 12) == tiles

    def test_stride_sampling(self):
        tiles = _make_tiles(30)
        limited = limit_tiles(tiles, 12)
        # stride = ceil(30 / 12) = 3
        assert limited == tiles[::3]

    def test_truncated_to_max(self):
        tiles = _make_tiles(100)
        limited = limit_tiles(tiles, 12)
        assert len(limited) == 12
        assert limited == tiles[::9][:12]

    def test_never_exceeds_max_and_preserves_order(self):
        for n in range(0, 60):
            tiles = _make_tiles(n)
            for k in (1, 5, 12):
                limited = limit_tiles(tiles, k)
                assert len(limited) <= k
                positions = [tiles.index(t) for t in limited]
                assert positions == sorted(positions)

    def test_deterministic(self):
        tiles = _make_tiles(47)
        assert limit_tiles(tiles, 12) == limit_tiles(tiles, 12)

    def test_default_budget(self):
        # stride ceil(40 / 12) = 4 keeps indices 0, 4, ..., 36
        tiles = _make_tiles(40)
        assert limit_tiles(tiles) == tiles[::4]
        assert len(limit_tiles(tiles)) == 10

    def test_default_budget_truncates(self):
        # stride ceil(23 / 12) = 2 yields 12 indices, all kept
        tiles = _make_tiles(23)
        assert limit_tiles(tiles) == tiles[::2][:12]
        assert len(limit_tiles(tiles)) == 12

    def test_rejects_non_positive_budget(self):
        with pytest.raises(ValueError):
            limit_tiles(_make_tiles(3), 0)


class TestLayers:
    def test_sat_url_is_z_y_x(self):
        url = SAT.tile_url(TileCoordinate(5, 7, 9))
        assert url.endswith("/tile/9/7/5")

    def test_osm_uses_subdomains(self):
        url = MAP_LAYERS["OSM"].tile_url(TileCoordinate(1, 1, 3))
        assert url == "https://c.tile.openstreetmap.org/3/1/1.png"

    def test_get_layer(self):
        assert get_layer("osm").id == "OSM"
        assert get_layer().id == "SAT"
        with pytest.raises(ValueError):
            get_layer("nope")
