"""Pytest configuration and fixtures for parcel_ndvi tests."""

import pytest
from PIL import Image

from parcel_ndvi.geo.types import GeoPoint, GeoRectangle, TileCoordinate
from parcel_ndvi.sampling.tiles import TileFetchError

GREEN = (20, 200, 30)
RED = (200, 40, 30)


class FakeFetcher:
    """Stands in for TileFetcher: serves in-memory images, optionally failing."""

    def __init__(self, color=GREEN, size: int = 64, fail_on: set | None = None):
        self.color = color
        self.size = size
        self.fail_on = fail_on or set()
        self.calls: list[TileCoordinate] = []

    def fetch(self, coord: TileCoordinate) -> Image.Image:
        self.calls.append(coord)
        if coord in self.fail_on:
            raise TileFetchError(coord, "simulated outage")
        color = self.color(coord) if callable(self.color) else self.color
        return Image.new("RGB", (self.size, self.size), color)


@pytest.fixture
def make_tile():
    """Factory for solid-colour tile images."""

    def _make(color=GREEN, size: int = 256) -> Image.Image:
        return Image.new("RGB", (size, size), color)

    return _make


@pytest.fixture
def fake_fetcher_cls():
    return FakeFetcher


@pytest.fixture
def fresno_rect() -> GeoRectangle:
    """Small rectangle over farmland near Fresno, CA."""
    return GeoRectangle(GeoPoint(36.74, -119.79), GeoPoint(36.73, -119.78))
