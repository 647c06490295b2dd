import asyncio
from dataclasses import dataclass, field

from PIL import Image
from rich import print

from parcel_ndvi.geo.layers import TileLayer
from parcel_ndvi.geo.projection import clamp_zoom, limit_tiles, tiles_for_bounds
from parcel_ndvi.geo.types import GeoRectangle, TileCoordinate
from parcel_ndvi.sampling.classify import Classification, classify_land, unavailable
from parcel_ndvi.sampling.stats import Statistics, compute_statistics
from parcel_ndvi.sampling.tiles import TileFetcher, TileFetchError, sample_tiles


@dataclass
class AreaAnalysis:
    """Outcome of one sampling run over a selected rectangle.

    On failure ``statistics`` is ``None`` and ``classification`` carries the
    ``Unavailable`` label with an explanation; partial statistics are never
    exposed.
    """

    rectangle: GeoRectangle
    zoom: int
    classification: Classification
    tiles: list[TileCoordinate] = field(default_factory=list)
    total_tiles: int = 0
    statistics: Statistics | None = None
    representative_image: Image.Image | None = None

    @property
    def ok(self) -> bool:
        return self.statistics is not None


def analyze_area(
    rect: GeoRectangle,
    zoom: float,
    layer: TileLayer | None,
    fetcher: TileFetcher | None = None,
    max_tiles: int | None = None,
    step: int | None = None,
) -> AreaAnalysis:
    """Project, sample, aggregate and classify ``rect`` at ``zoom``.

    Never raises for pipeline failures: missing tiles, fetch/decode errors and
    empty samples all come back as an ``Unavailable`` classification.
    """
    rect = rect.normalized()
    zoom = clamp_zoom(zoom)
    analysis = AreaAnalysis(rectangle=rect, zoom=zoom, classification=unavailable())

    try:
        all_tiles = tiles_for_bounds(rect, zoom, layer)
        tiles = limit_tiles(all_tiles, max_tiles)
    except ValueError as e:
        print(f"[red]Invalid tile selection: {e}[/red]")
        analysis.classification = unavailable(f"Invalid tile selection: {e}")
        return analysis
    analysis.tiles = tiles
    analysis.total_tiles = len(all_tiles)

    if not tiles:
        print("[yellow]Warning: No imagery tiles found for selected area.[/yellow]")
        analysis.classification = unavailable(
            "No imagery tiles found for selected area."
        )
        return analysis

    if fetcher is None:
        fetcher = TileFetcher(layer)

    try:
        sampled = sample_tiles(tiles, fetcher, step=step)
    except TileFetchError as e:
        print(f"[yellow]Warning: Area NDVI processing failed. {e}[/yellow]")
        analysis.classification = unavailable(
            f"Unable to process NDVI for this area ({e}). "
            "Try SAT layer or a smaller selection."
        )
        return analysis
    except Exception as e:
        print(f"[red]Area NDVI processing failed unexpectedly: {e}[/red]")
        analysis.classification = unavailable()
        return analysis

    if not sampled.values:
        print("[yellow]Warning: No NDVI samples extracted from selected area.[/yellow]")
        analysis.classification = unavailable(
            "No NDVI samples extracted from selected area."
        )
        return analysis

    stats = compute_statistics(sampled.values)
    analysis.statistics = stats
    analysis.classification = classify_land(stats)
    analysis.representative_image = sampled.representative_image
    return analysis


async def analyze_area_async(
    rect: GeoRectangle,
    zoom: float,
    layer: TileLayer | None,
    fetcher: TileFetcher | None = None,
) -> AreaAnalysis:
    """Run ``analyze_area`` in a worker thread so the event loop stays free."""
    return await asyncio.to_thread(analyze_area, rect, zoom, layer, fetcher)
