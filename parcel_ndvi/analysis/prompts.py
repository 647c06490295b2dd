import json

from parcel_ndvi.geo.presets import RegionPreset
from parcel_ndvi.geo.types import GeoRectangle
from parcel_ndvi.utils import format_coord

INSTRUCTIONS = """
You are an agronomist and remote sensing analyst verifying land parcels from aerial imagery.

You will be given:
- One satellite/aerial image tile from inside the parcel
- A description of where the parcel is
- Summary statistics of a vegetation index computed over the whole parcel

## About the vegetation index

The "NDVI" statistics are NOT true NDVI. They come from a visible-light proxy, (Green - Red) / (Green + Red), sampled from RGB map tiles, because the tiles carry no near-infrared band. Treat them as a relative greenness signal:
- Values above ~0.4 usually mean dense green canopy or healthy crops
- Values between ~0.1 and ~0.4 usually mean grass, shrubs or sparse crops
- Values around 0 usually mean bare soil, rock or built-up surfaces
- Negative values often mean water, wet surfaces or reddish soil/roofs

The histogram has ten buckets over [-1, 1]; each entry is the lower bound of the bucket and its sample count.

## What to produce

Combine what you see in the image with the statistics and report:
- suitability_score: 0-100, how suitable the parcel is for agriculture
- land_use: the dominant land use, e.g. "Agricultural", "Urban", "Forest"
- crop_recommendations: 3 suitable crops if the land is agricultural, otherwise ["N/A"]
- risks: e.g. "Flood risk", "Erosion"
- soil_type_estimation: your best estimate of the soil type
- summary: at most 50 words
"""


def location_prompt(rect: GeoRectangle | None, region: RegionPreset | None) -> str:
    if rect is not None:
        return (
            "Analyze land for the selected rectangular parcel with corners "
            f"NW {format_coord(rect.north_west)} and SE {format_coord(rect.south_east)}."
        )
    if region is not None:
        return f"Analyze the land parcel located at {format_coord(region.center)}."
    return "Analyze the land parcel shown in the image."


def build_user_message(location: str, stats_by_index: dict[str, dict]) -> str:
    return f"""Analyze this satellite/aerial view of land.
{location}

Vegetation index statistics for the parcel:
{json.dumps(stats_by_index, indent=2)}
"""
