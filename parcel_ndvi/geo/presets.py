from dataclasses import dataclass

from parcel_ndvi.geo.types import GeoPoint, GeoRectangle


@dataclass(frozen=True)
class RegionPreset:
    id: int
    name: str
    center: GeoPoint
    bounds: GeoRectangle | None = None


PRESETS: list[RegionPreset] = [
    RegionPreset(
        id=1,
        name="Agricultural Zone",
        center=GeoPoint(36.7378, -119.7871),
        bounds=GeoRectangle(GeoPoint(36.72, -119.80), GeoPoint(36.75, -119.77)),
    ),
    RegionPreset(
        id=2,
        name="Urban Reserve",
        center=GeoPoint(34.0522, -118.2437),
    ),
    RegionPreset(
        id=3,
        name="Forest Reserve",
        center=GeoPoint(44.0521, -121.3153),
        bounds=GeoRectangle(GeoPoint(44.04, -121.33), GeoPoint(44.06, -121.30)),
    ),
]


def get_preset(name_or_id: str | int) -> RegionPreset:
    """Find a preset by id or by case-insensitive name."""
    for preset in PRESETS:
        if str(preset.id) == str(name_or_id):
            return preset
        if preset.name.lower() == str(name_or_id).strip().lower():
            return preset
    raise ValueError(
        f"Unknown preset '{name_or_id}'. Available: {[p.name for p in PRESETS]}"
    )
