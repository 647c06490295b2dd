from dataclasses import dataclass

from parcel_ndvi.config import settings
from parcel_ndvi.geo.types import TileCoordinate


@dataclass(frozen=True)
class TileLayer:
    """An XYZ raster tile source.

    ``url_template`` uses the usual slippy-map placeholders: ``{s}`` for the
    subdomain, ``{z}``, ``{x}`` and ``{y}`` for the tile address.
    """

    id: str
    name: str
    url_template: str
    attribution: str
    subdomains: tuple[str, ...] = ()
    tile_size: int = 256
    max_zoom: int = 19

    def tile_url(self, coord: TileCoordinate) -> str:
        subdomain = ""
        if self.subdomains:
            subdomain = self.subdomains[abs(coord.x + coord.y) % len(self.subdomains)]
        return self.url_template.format(s=subdomain, z=coord.z, x=coord.x, y=coord.y)


MAP_LAYERS: dict[str, TileLayer] = {
    "OSM": TileLayer(
        id="OSM",
        name="OpenStreetMap",
        url_template="https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        attribution="© OpenStreetMap contributors",
        subdomains=("a", "b", "c"),
        tile_size=settings.TILE_SIZE,
    ),
    "SAT": TileLayer(
        id="SAT",
        name="Satellite (Esri)",
        url_template="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attribution=(
            "Tiles © Esri — Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, "
            "Getmapping, Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community"
        ),
        tile_size=settings.TILE_SIZE,
    ),
}


def get_layer(layer_id: str | None = None) -> TileLayer:
    """Look up a built-in layer, falling back to the configured default."""
    layer_id = (layer_id or settings.DEFAULT_LAYER).upper()
    if layer_id not in MAP_LAYERS:
        raise ValueError(
            f"Unknown tile layer '{layer_id}'. Expected one of: {list(MAP_LAYERS)}"
        )
    return MAP_LAYERS[layer_id]
