"""
Exporter: read-only snapshot artifacts of the editor state.

Three independent exports, none of which mutate the editor:
- JSON document  {floorPlan, layers, scale}
- CSV of Room layers  (header "Room Name, X, Y, Width, Height")
- PNG raster of the canvas at EXPORT_PIXEL_RATIO x the canvas pixel size

The ``*_text``/``export_document`` functions build the artifact in memory;
``export_json``/``export_csv``/``export_image`` also write it and report an
ExportResult instead of raising on I/O failure.
"""

# Standard library imports
import csv
import io
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

# Third-party imports
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
import numpy as np
import pandas as pd
from PIL import Image

# Plancanvas imports
from plancanvas import config
from plancanvas.floorplans import FloorPlan
from plancanvas.layers import Layer, Room
from plancanvas.renderer import StyleTemplate, draw_primitives, get_style_template, render

logger = logging.getLogger(__name__)

CSV_HEADER   = "Room Name, X, Y, Width, Height"
ROOM_COLUMNS = ["name", "x", "y", "width", "height"]


@dataclass(frozen=True)
class ExportResult:
    ok:         bool
    path:       Optional[Path]
    message:    str


# -----------------------------------------------------------------------------
# JSON
# -----------------------------------------------------------------------------

def export_document(floor_plan: Optional[FloorPlan], layers: Iterable[Layer], scale: Optional[float]) -> dict:
    """Structured snapshot: ``{floorPlan, layers, scale}``."""
    return {
        "floorPlan": floor_plan.to_dict() if floor_plan is not None else None,
        "layers":    [layer.to_dict() for layer in layers],
        "scale":     scale,
    }


def export_json_text(floor_plan: Optional[FloorPlan], layers: Iterable[Layer], scale: Optional[float]) -> str:
    return json.dumps(export_document(floor_plan, layers, scale), indent=2)


def export_json(
    path: Union[Path, str], floor_plan: Optional[FloorPlan], layers: Iterable[Layer], scale: Optional[float],
) -> ExportResult:
    return _write_text(Path(path), export_json_text(floor_plan, layers, scale), "JSON")


# -----------------------------------------------------------------------------
# CSV
# -----------------------------------------------------------------------------

def room_table(layers: Iterable[Layer]) -> pd.DataFrame:
    """Flat table of Room layers only: name, x, y, width, height."""
    records = [
        {"name": layer.name, "x": layer.x, "y": layer.y, "width": layer.width, "height": layer.height}
        for layer in layers if isinstance(layer, Room)
    ]
    return pd.DataFrame(records, columns=ROOM_COLUMNS)


def _format_cell(value) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def export_csv_text(layers: Iterable[Layer]) -> str:
    """CSV text of Room layers; header only when there are none.

    Names containing commas or quotes are quoted by the csv writer.
    """
    table = room_table(layers)
    buffer = io.StringIO()
    buffer.write(CSV_HEADER + "\n")
    writer = csv.writer(buffer, lineterminator="\n")
    for row in table.itertuples(index=False):
        writer.writerow([_format_cell(v) for v in row])
    return buffer.getvalue()[:-1]


def export_csv(path: Union[Path, str], layers: Iterable[Layer]) -> ExportResult:
    return _write_text(Path(path), export_csv_text(layers), "CSV")


# -----------------------------------------------------------------------------
# Image
# -----------------------------------------------------------------------------

def load_image(path: Union[Path, str, None]) -> Optional[np.ndarray]:
    """Load a background image as an RGB float array in [0, 1], or None on failure."""
    if path is None:
        return None
    try:
        with Image.open(path) as pil_img:
            return np.asarray(pil_img.convert('RGB'), dtype=np.float32) / 255.0
    except (OSError, ValueError) as exc:
        logger.warning(f"Could not load image {path}: {exc}")
        return None


def render_figure(
    layers: Iterable[Layer],
    selection: Optional[str] = None,
    style: Optional[StyleTemplate] = None,
    background: Optional[np.ndarray] = None,
    canvas_size: Tuple[int, int] = (config.CANVAS_WIDTH, config.CANVAS_HEIGHT),
) -> Figure:
    """Off-screen figure of exactly ``canvas_size`` pixels at CANVAS_DPI."""
    width, height = canvas_size
    dpi = config.CANVAS_DPI
    fig = Figure(figsize=(width / dpi, height / dpi), dpi=dpi, facecolor='white')
    FigureCanvasAgg(fig)
    ax = fig.add_axes((0, 0, 1, 1))
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.axis('off')
    if background is not None:
        ax.imshow(background, extent=(0, width, height, 0), zorder=1, aspect='auto')
    style = style or get_style_template(config.DEFAULT_STYLE)
    draw_primitives(ax, render(layers, selection, style))
    return fig


def export_image(
    path: Union[Path, str],
    layers: Iterable[Layer],
    selection: Optional[str] = None,
    style: Optional[StyleTemplate] = None,
    background: Optional[np.ndarray] = None,
    canvas_size: Tuple[int, int] = (config.CANVAS_WIDTH, config.CANVAS_HEIGHT),
    pixel_ratio: int = config.EXPORT_PIXEL_RATIO,
) -> ExportResult:
    """Rasterize the canvas (committed layers only) to a PNG."""
    path = Path(path)
    fig = render_figure(list(layers), selection, style, background, canvas_size)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=config.CANVAS_DPI * pixel_ratio, format='png')
    except OSError as exc:
        logger.error(f"Image export to {path} failed: {exc}")
        return ExportResult(False, path, f"Image export failed: {exc}")
    w, h = canvas_size
    logger.info(f"Exported canvas image to {path}")
    return ExportResult(True, path, f"Exported image ({w * pixel_ratio}x{h * pixel_ratio})")


def _write_text(path: Path, text: str, label: str) -> ExportResult:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
    except OSError as exc:
        logger.error(f"{label} export to {path} failed: {exc}")
        return ExportResult(False, path, f"{label} export failed: {exc}")
    logger.info(f"Exported {label} to {path}")
    return ExportResult(True, path, f"Exported {label} to {path.name}")
