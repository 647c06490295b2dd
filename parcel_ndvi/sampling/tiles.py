import io
import os
from collections.abc import Iterator
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import requests
from filelock import FileLock
from PIL import Image, UnidentifiedImageError
from rich import print

from parcel_ndvi.config import settings
from parcel_ndvi.geo.layers import TileLayer
from parcel_ndvi.geo.types import TileCoordinate

# Added to the denominator so black pixels (r = g = 0) do not divide by zero.
PROXY_EPSILON = 0.001


class TileFetchError(Exception):
    """A tile could not be downloaded or decoded."""

    def __init__(self, coord: TileCoordinate, message: str):
        self.coord = coord
        super().__init__(f"Tile {coord.z}/{coord.x}/{coord.y}: {message}")


class TileFetcher:
    """Resolves tile coordinates to decoded RGB images for one tile layer.

    Downloaded tiles are optionally kept on disk under
    ``<cache_dir>/tiles/<layer>/<z>/<x>/<y>`` so repeated selections over the
    same area do not hit the tile server again.
    """

    def __init__(
        self,
        layer: TileLayer,
        session: requests.Session | None = None,
        timeout: float | None = None,
        cache_dir: str | Path | None = None,
        use_cache: bool | None = None,
    ):
        self.layer = layer
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", settings.USER_AGENT)
        self.timeout = settings.TILE_FETCH_TIMEOUT if timeout is None else timeout
        self.use_cache = settings.TILE_CACHE_ENABLED if use_cache is None else use_cache
        self.cache_dir = Path(cache_dir or settings.CACHE_DIR) / "tiles" / layer.id

    def _cache_path(self, coord: TileCoordinate) -> Path:
        return self.cache_dir / str(coord.z) / str(coord.x) / str(coord.y)

    def _download(self, coord: TileCoordinate) -> bytes:
        url = self.layer.tile_url(coord)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TileFetchError(coord, f"failed to download {url}: {e}") from e
        return response.content

    @staticmethod
    def _decode(coord: TileCoordinate, content: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(content)) as img:
                return img.convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise TileFetchError(coord, f"failed to decode image: {e}") from e

    def _load_cached(self, coord: TileCoordinate) -> Image.Image | None:
        cache_path = self._cache_path(coord)
        if not cache_path.exists():
            return None
        try:
            with FileLock(str(cache_path) + ".lock"):
                content = cache_path.read_bytes()
            return self._decode(coord, content)
        except (OSError, TileFetchError) as e:
            # Drop the bad entry and fall through to a fresh download
            print(f"[yellow][CACHE] Discarding {cache_path}: {e}[/yellow]")
            cache_path.unlink(missing_ok=True)
            return None

    def _store(self, coord: TileCoordinate, content: bytes) -> None:
        cache_path = self._cache_path(coord)
        tmp_path = cache_path.with_name(cache_path.name + ".tmp")
        try:
            cache_path.parent.mkdir(parents=True, exist_ok=True)
            with FileLock(str(cache_path) + ".lock"):
                tmp_path.write_bytes(content)
                os.replace(tmp_path, cache_path)
        except OSError as e:
            print(f"[yellow][CACHE] Failed to write {cache_path}: {e}[/yellow]")

    def fetch(self, coord: TileCoordinate) -> Image.Image:
        """Return the decoded tile, from the disk cache when possible.

        Only bytes that decode as an image are written to the cache.
        """
        if self.use_cache:
            cached = self._load_cached(coord)
            if cached is not None:
                return cached

        content = self._download(coord)
        image = self._decode(coord, content)
        if self.use_cache:
            self._store(coord, content)
        return image


def extract_proxy_values(
    image: Image.Image, step: int | None = None
) -> Iterator[float]:
    """Yield the vegetation-index proxy for every ``step``-th pixel of ``image``.

    The proxy is ``(G - R) / (G + R + eps)`` clamped to [-1, 1]. This is a
    visible-light stand-in for NDVI, which needs a near-infrared band that
    ordinary RGB tiles do not carry.

    Pixels are visited row by row (every ``step``-th row, every ``step``-th
    column). The generator holds a reference to the pixel buffer until it is
    exhausted and cannot be restarted.
    """
    step = settings.PIXEL_SAMPLE_STEP if step is None else step
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")

    pixels = np.asarray(image.convert("RGB"), dtype=np.float32)
    for row in pixels[::step, ::step]:
        red = row[:, 0]
        green = row[:, 1]
        proxy = np.clip((green - red) / (green + red + PROXY_EPSILON), -1.0, 1.0)
        yield from proxy.tolist()


@dataclass
class TileSampleResult:
    tiles: list[TileCoordinate]
    values: list[float] = field(default_factory=list)
    representative_image: Image.Image | None = None


def _sample_single(
    fetcher: TileFetcher, coord: TileCoordinate, step: int
) -> tuple[Image.Image, list[float]]:
    image = fetcher.fetch(coord)
    return image, list(extract_proxy_values(image, step))


def sample_tiles(
    tiles: list[TileCoordinate],
    fetcher: TileFetcher,
    step: int | None = None,
    max_workers: int | None = None,
) -> TileSampleResult:
    """Fetch and sample every tile concurrently, all-or-nothing.

    Results are only returned once every tile has succeeded. The first failing
    tile cancels whatever has not started yet and its ``TileFetchError`` is
    re-raised. The representative image is the last tile of ``tiles``.
    """
    step = settings.PIXEL_SAMPLE_STEP if step is None else step
    max_workers = settings.MAX_TILE_WORKERS if max_workers is None else max_workers
    result = TileSampleResult(tiles=list(tiles))
    if not tiles:
        return result

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(tiles)))) as executor:
        futures = [
            executor.submit(_sample_single, fetcher, coord, step) for coord in tiles
        ]
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        failed = [f for f in futures if f in done and f.exception() is not None]
        if failed:
            for future in not_done:
                future.cancel()
            raise failed[0].exception()

        for future in futures:
            image, values = future.result()
            result.values.extend(values)
            result.representative_image = image

    return result
