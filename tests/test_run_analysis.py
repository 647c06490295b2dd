"""Tests for the command line entry points."""

import json

import pytest

from parcel_ndvi import pipeline, run_analysis
from parcel_ndvi.sampling.classify import FOREST

GREEN = (20, 200, 30)


@pytest.fixture
def fake_tiles(monkeypatch, fake_fetcher_cls):
    """Route the pipeline's default fetcher to in-memory green tiles."""
    fetchers = []

    def _factory(layer, *args, **kwargs):
        fetcher = fake_fetcher_cls(color=GREEN, size=18)
        fetchers.append(fetcher)
        return fetcher

    monkeypatch.setattr(pipeline, "TileFetcher", _factory)
    return fetchers


class TestAnalyze:
    def test_writes_json_and_chart(self, tmp_path, fake_tiles):
        out = tmp_path / "out" / "analysis.json"
        chart = tmp_path / "chart.png"

        run_analysis.analyze(
            start="36.74,-119.79",
            end="36.73,-119.78",
            output=str(out),
            chart_path=str(chart),
        )

        payload = json.loads(out.read_text())
        assert payload["classification"]["label"] == FOREST
        assert payload["zoom"] == 14
        assert payload["bounds"]["northWest"] == [36.74, -119.79]
        assert payload["geometry"]["type"] == "Polygon"
        assert payload["statistics"]["samples"] > 0
        assert len(payload["statistics"]["histogram"]) == 10
        assert 1 <= len(payload["tiles"]) <= 12
        assert payload["report"] is None
        assert chart.exists()
        assert len(fake_tiles) == 1

    def test_preset_bounds_are_used(self, tmp_path, fake_tiles):
        out = tmp_path / "forest.json"
        run_analysis.analyze(preset="Forest Reserve", zoom=12, output=str(out))
        payload = json.loads(out.read_text())
        assert payload["bounds"]["southWest"] == [44.04, -121.33]
        assert payload["zoom"] == 12

    def test_preset_without_bounds_needs_corners(self, fake_tiles):
        with pytest.raises(ValueError):
            run_analysis.analyze(preset="Urban Reserve")


def test_layers_and_presets_listings(capsys):
    run_analysis.layers()
    run_analysis.presets()
    out = capsys.readouterr().out
    assert "OSM" in out and "SAT" in out
    assert "Agricultural" in out
