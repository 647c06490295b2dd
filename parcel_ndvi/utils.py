import base64
import io

from PIL import Image

from parcel_ndvi.geo.types import GeoPoint


def encode_image_pil(img: Image.Image) -> str:
    """Encode a PIL image as base64 JPEG."""
    with io.BytesIO() as output:
        img.convert("RGB").save(output, format="JPEG")
        return base64.b64encode(output.getvalue()).decode("utf-8")


def format_coord(point: GeoPoint | None) -> str:
    """Format a point as ``lat, lng`` with five decimals, ``NA`` when unset."""
    if point is None:
        return "NA"
    return f"{point.latitude:.5f}, {point.longitude:.5f}"
