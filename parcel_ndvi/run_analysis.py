import asyncio
import json
from pathlib import Path

import fire
from rich import print
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TimeElapsedColumn
from rich.table import Table

from parcel_ndvi.analysis.verify import LandReport, get_general_insights
from parcel_ndvi.geo.layers import MAP_LAYERS, get_layer
from parcel_ndvi.geo.presets import PRESETS, get_preset
from parcel_ndvi.geo.types import GeoPoint
from parcel_ndvi.pipeline import AreaAnalysis
from parcel_ndvi.selection import SelectionSession
from parcel_ndvi.utils import format_coord
from parcel_ndvi.viz import save_histogram_chart

console = Console()


def print_analysis(analysis: AreaAnalysis) -> None:
    """Pretty-print the statistics and land classification of one run."""
    rect = analysis.rectangle
    console.print(
        f"[bold]Selection[/bold] NW {format_coord(rect.north_west)} "
        f"SE {format_coord(rect.south_east)}  zoom {analysis.zoom}  "
        f"tiles {len(analysis.tiles)}/{analysis.total_tiles}"
    )

    stats = analysis.statistics
    if stats is not None:
        table = Table(title="NDVI Proxy Statistics")
        table.add_column("Samples", justify="right")
        table.add_column("Min", justify="right")
        table.add_column("Max", justify="right")
        table.add_column("Mean", justify="right")
        table.add_column("StdDev", justify="right")
        table.add_row(
            str(stats.total),
            f"{stats.min:.3f}",
            f"{stats.max:.3f}",
            f"{stats.mean:.3f}",
            f"{stats.std_dev:.3f}",
        )
        console.print(table)

        hist = Table(title="NDVI Distribution")
        hist.add_column("Bucket", style="bold cyan")
        hist.add_column("Count", justify="right")
        for bucket in stats.histogram:
            hist.add_row(f"{bucket.bin_lower_bound:.1f}", str(bucket.count))
        console.print(hist)

    c = analysis.classification
    colour = "red" if c.confidence == 0 else "green"
    console.print(f"[bold {colour}]Land Type: {c.label}[/bold {colour}]")
    console.print(c.reason)
    if c.confidence > 0:
        console.print(f"Confidence: {c.confidence}%")


def print_report(report: LandReport) -> None:
    table = Table(title="Verification Report", show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Land Use", report.land_use)
    table.add_row("Score", f"{report.suitability_score}/100")
    table.add_row("Soil", report.soil_type_estimation)
    table.add_row("Crops", ", ".join(report.crop_recommendations) or "-")
    table.add_row("Risks", ", ".join(report.risks) or "-")
    table.add_row("Summary", report.summary)
    console.print(table)


async def _analyze(
    session: SelectionSession, start: GeoPoint, end: GeoPoint, verify: bool
) -> tuple[AreaAnalysis | None, LandReport | None]:
    session.click(start)
    with Progress(
        SpinnerColumn(),
        "[bold blue]{task.description}",
        BarColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Processing NDVI...", total=None)
        analysis = await session.click(end)
        progress.update(task_id, completed=1, total=1)

    report = None
    if verify and analysis is not None and analysis.ok:
        with console.status("Running AI verification..."):
            report = await session.verify()
    return analysis, report


def analyze(
    start=None,
    end=None,
    preset: str | int | None = None,
    zoom: int = 14,
    layer: str | None = None,
    verify: bool = False,
    chart_path: str | None = None,
    output: str | None = None,
) -> None:
    """Sample a rectangle and classify its land cover.

    Args:
        start: First corner as ``lat,lng``.
        end: Opposite corner as ``lat,lng``.
        preset: Use the bounds of a built-in region instead of start/end.
        zoom: Map zoom to sample at (clamped to the supported range).
        layer: Tile layer id (see ``layers``).
        verify: Also request an AI verification report.
        chart_path: Save the histogram chart to this image path.
        output: Write the analysis (and report) as JSON to this path.
    """
    region = get_preset(preset) if preset is not None else PRESETS[0]
    if start is None or end is None:
        if region.bounds is None:
            raise ValueError(
                f"Preset '{region.name}' has no bounds; pass --start and --end."
            )
        start_point, end_point = region.bounds.start, region.bounds.end
    else:
        start_point, end_point = GeoPoint.parse(start), GeoPoint.parse(end)

    session = SelectionSession(layer=get_layer(layer), zoom=zoom, region=region)
    analysis, report = asyncio.run(_analyze(session, start_point, end_point, verify))
    if analysis is None:
        print("[red]Selection was discarded before the analysis finished.[/red]")
        return

    print_analysis(analysis)
    if report is not None:
        print_report(report)

    if chart_path and analysis.statistics is not None:
        saved = save_histogram_chart(
            analysis.statistics, chart_path, analysis.classification
        )
        print(f"Chart saved to {saved}")

    if output:
        payload = {
            "bounds": analysis.rectangle.bounds_payload(),
            "geometry": analysis.rectangle.to_geojson(),
            "zoom": analysis.zoom,
            "tiles": [[t.x, t.y, t.z] for t in analysis.tiles],
            "statistics": analysis.statistics.to_summary() if analysis.statistics else None,
            "classification": {
                "label": analysis.classification.label,
                "confidence": analysis.classification.confidence,
                "reason": analysis.classification.reason,
            },
            "report": report.model_dump() if report else None,
        }
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w") as f:
            json.dump(payload, f, indent=2)
        print(f"Analysis saved to {output_path}")


def layers() -> None:
    table = Table(title="Tile Layers")
    table.add_column("Id", style="bold cyan")
    table.add_column("Name")
    table.add_column("URL")
    for layer in MAP_LAYERS.values():
        table.add_row(layer.id, layer.name, layer.url_template)
    console.print(table)


def presets() -> None:
    table = Table(title="Regions")
    table.add_column("Id", justify="right")
    table.add_column("Name", style="bold cyan")
    table.add_column("Center")
    table.add_column("Bounds")
    for p in PRESETS:
        bounds = (
            f"{format_coord(p.bounds.north_west)} to {format_coord(p.bounds.south_east)}"
            if p.bounds
            else "-"
        )
        table.add_row(str(p.id), p.name, format_coord(p.center), bounds)
    console.print(table)


def insights(query: str) -> None:
    print(asyncio.run(get_general_insights(query)))


if __name__ == "__main__":
    fire.Fire(
        {
            "analyze": analyze,
            "layers": layers,
            "presets": presets,
            "insights": insights,
        }
    )
