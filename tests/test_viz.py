"""Tests for histogram chart rendering."""

from PIL import Image

from parcel_ndvi.sampling.classify import classify_land
from parcel_ndvi.sampling.stats import compute_statistics, empty_statistics
from parcel_ndvi.viz import render_histogram_chart, save_histogram_chart


def test_render_returns_image():
    stats = compute_statistics([0.1, 0.3, 0.5, 0.7, -0.2])
    chart = render_histogram_chart(stats, classify_land(stats))
    assert isinstance(chart, Image.Image)
    assert chart.width > 100 and chart.height > 100


def test_render_empty_statistics():
    chart = render_histogram_chart(empty_statistics())
    assert isinstance(chart, Image.Image)


def test_save_creates_parent_dirs(tmp_path):
    stats = compute_statistics([0.5] * 20)
    path = save_histogram_chart(stats, tmp_path / "charts" / "hist.png")
    assert path.exists()
    with Image.open(path) as img:
        assert img.format == "PNG"
