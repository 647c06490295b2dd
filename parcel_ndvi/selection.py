"""
Two-click rectangle selection and the state owned by one map session.

    Idle --click--> CornerPicked(p) --click--> Complete(rect) --click--> CornerPicked(q)
      ^                                                                       |
      +------------------------------- clear() -------------------------------+

Completing a rectangle schedules one sampling run. Every run is tagged with
the session generation at the time it started; ``clear()`` and new runs bump
the generation so a late result from an older run is dropped instead of
overwriting the current selection.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from PIL import Image
from rich import print

from parcel_ndvi.analysis.prompts import location_prompt
from parcel_ndvi.analysis.verify import LandReport, verify_land
from parcel_ndvi.geo.layers import TileLayer, get_layer
from parcel_ndvi.geo.presets import PRESETS, RegionPreset
from parcel_ndvi.geo.types import GeoPoint, GeoRectangle
from parcel_ndvi.pipeline import AreaAnalysis, analyze_area_async
from parcel_ndvi.sampling.classify import Classification, unavailable
from parcel_ndvi.sampling.stats import Statistics


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class CornerPicked:
    point: GeoPoint


@dataclass(frozen=True)
class Complete:
    rectangle: GeoRectangle


SelectionState = Idle | CornerPicked | Complete

Analyzer = Callable[[GeoRectangle], Awaitable[AreaAnalysis]]


class SelectionSession:
    def __init__(
        self,
        layer: TileLayer | None = None,
        zoom: float = 14,
        region: RegionPreset | None = None,
        analyzer: Analyzer | None = None,
    ):
        self.layer = layer if layer is not None else get_layer()
        self.zoom = zoom
        self.region = region or PRESETS[0]
        self._analyzer = analyzer or (
            lambda rect: analyze_area_async(rect, self.zoom, self.layer)
        )

        self.state: SelectionState = Idle()
        self.generation = 0
        self.in_flight = False
        self._task: asyncio.Task | None = None

        self.analysis: AreaAnalysis | None = None
        self.report: LandReport | None = None

    # -- derived views ---------------------------------------------------------

    @property
    def statistics(self) -> Statistics | None:
        return self.analysis.statistics if self.analysis else None

    @property
    def classification(self) -> Classification | None:
        return self.analysis.classification if self.analysis else None

    @property
    def representative_image(self) -> Image.Image | None:
        return self.analysis.representative_image if self.analysis else None

    @property
    def rectangle(self) -> GeoRectangle | None:
        return self.state.rectangle if isinstance(self.state, Complete) else None

    def status_message(self) -> str:
        if isinstance(self.state, CornerPicked):
            return "Corner A selected. Click opposite corner to complete diagonal."
        if isinstance(self.state, Complete):
            return "Area selected. NDVI calculated from selected rectangle."
        return "Click map to select first corner of area."

    # -- transitions -----------------------------------------------------------

    def _clear_results(self) -> None:
        self.analysis = None
        self.report = None

    def click(self, point: GeoPoint) -> asyncio.Task | None:
        """Handle a map click; returns the sampling task when a rectangle completes.

        Clicks are ignored while a run is in flight. Completing a rectangle
        must happen inside a running event loop.
        """
        if self.in_flight:
            return None

        self.report = None
        if not isinstance(self.state, CornerPicked):
            self.state = CornerPicked(point)
            self._clear_results()
            return None

        # Raises before any state changes when there is no running loop
        loop = asyncio.get_running_loop()
        rect = GeoRectangle(self.state.point, point)
        self.state = Complete(rect)
        self.generation += 1
        self.in_flight = True
        self._task = loop.create_task(self._run(rect, self.generation))
        return self._task

    def clear(self) -> None:
        """Return to ``Idle`` from any state, dropping any in-flight result."""
        self.generation += 1
        self.in_flight = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.state = Idle()
        self._clear_results()

    def load_region(self, region: RegionPreset) -> None:
        """Switch base region; any selection on the previous region is discarded."""
        self.clear()
        self.region = region

    async def _run(self, rect: GeoRectangle, generation: int) -> AreaAnalysis | None:
        try:
            analysis = await self._analyzer(rect)
        except Exception as e:
            print(f"[yellow]Warning: Area NDVI processing failed. {e}[/yellow]")
            analysis = AreaAnalysis(
                rectangle=rect, zoom=int(self.zoom), classification=unavailable()
            )
        finally:
            if generation == self.generation:
                self.in_flight = False

        if generation != self.generation:
            # Selection was cleared or replaced while this run was in flight
            return None
        self.analysis = analysis
        return analysis

    # -- AI verification -------------------------------------------------------

    async def verify(self) -> LandReport | None:
        """Ask the AI collaborator for a report on the current result.

        Needs a successful analysis with a representative image; otherwise
        nothing is sent and ``None`` is returned.
        """
        analysis = self.analysis
        if self.in_flight or analysis is None or not analysis.ok:
            return None
        if analysis.representative_image is None:
            return None

        generation = self.generation
        self.in_flight = True
        try:
            report = await verify_land(
                analysis.representative_image,
                location_prompt(self.rectangle, self.region),
                {"NDVI": analysis.statistics.to_summary()},
            )
        finally:
            if generation == self.generation:
                self.in_flight = False

        if generation != self.generation:
            return None
        self.report = report
        return report
