import io
from pathlib import Path

import matplotlib
import matplotlib.pyplot as plt
from PIL import Image

from parcel_ndvi.sampling.classify import Classification
from parcel_ndvi.sampling.stats import Statistics

# Headless backend; charts are rendered from worker threads and the CLI.
matplotlib.use("Agg")

NDVI_PALETTE = [
    "#d7191c",  # red (negative / water, bare)
    "#fdae61",  # orange
    "#ffffbf",  # pale yellow
    "#a6d96a",  # light green
    "#1a9641",  # green (dense vegetation)
]


def render_histogram_chart(
    stats: Statistics,
    classification: Classification | None = None,
    width: int = 640,
    height: int = 320,
) -> Image.Image:
    """Bar chart of the ten proxy-NDVI buckets."""
    labels = [f"{b.bin_lower_bound:.1f}" for b in stats.histogram]
    counts = [b.count for b in stats.histogram]
    colors = [NDVI_PALETTE[i % len(NDVI_PALETTE)] for i in range(len(counts))]

    fig, ax = plt.subplots(figsize=(width / 100, height / 100), dpi=100)
    ax.bar(labels, counts, color=colors, edgecolor="black", linewidth=0.5)
    ax.set_xlabel("NDVI proxy (bucket lower bound)")
    ax.set_ylabel("Samples")

    title = f"NDVI Distribution  mean={stats.mean:.3f}  stdDev={stats.std_dev:.3f}"
    if classification is not None:
        title += f"\n{classification.label} ({classification.confidence}%)"
    ax.set_title(title, fontsize=10, fontweight="bold")
    for spine in ("top", "right"):
        ax.spines[spine].set_visible(False)

    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=100, facecolor="white", bbox_inches="tight")
    plt.close(fig)
    buf.seek(0)
    chart = Image.open(buf)
    chart.load()
    return chart


def save_histogram_chart(
    stats: Statistics,
    output_path: str | Path,
    classification: Classification | None = None,
) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    render_histogram_chart(stats, classification).convert("RGB").save(output_path)
    return output_path
