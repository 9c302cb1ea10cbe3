"""
Renderer: layers + selection + style + tool overlay -> drawable primitives.

``render`` is a pure projection; it never touches the layer store. Each layer
kind maps to exactly one primitive (rectangle, polyline, closed polygon or
label). In-progress tool overlays are appended after the committed layers so
they draw on top. ``draw_primitives`` paints a primitive list onto a
matplotlib Axes whose y axis points down (canvas convention).
"""

# Standard library imports
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

# Third-party imports
from matplotlib.colors import to_rgba
from matplotlib.lines import Line2D
from matplotlib.patches import Circle, Polygon, Rectangle
import numpy as np

# Plancanvas imports
from plancanvas.layers import CustomRegion, Furniture, Layer, Room, Text, Wall
from plancanvas.tool_modes import ToolOverlay


# -----------------------------------------------------------------------------
# Styles
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class LayerStyle:
    fill:           str     = "none"
    selected_fill:  str     = "none"
    stroke:         str     = "#000000"
    stroke_width:   float   = 2.0
    fill_alpha:     float   = 1.0
    font_size:      float   = 18.0


@dataclass(frozen=True)
class StyleTemplate:
    """Named palette applied at render time only."""

    name:           str
    room:           LayerStyle
    furniture:      LayerStyle
    wall:           LayerStyle
    custom:         LayerStyle
    text:           LayerStyle
    highlight:      str     = "#f97316"
    scale_overlay:  str     = "#ef4444"
    lasso_overlay:  str     = "#10b981"
    anchor_overlay: str     = "#3b82f6"

    def for_layer(self, layer: Layer) -> LayerStyle:
        return getattr(self, layer.kind)


STYLE_TEMPLATES: Dict[str, StyleTemplate] = {
    "default": StyleTemplate(
        name="default",
        room=LayerStyle(fill="#e0e7ef", selected_fill="#c7e0ff", stroke="#3b82f6", stroke_width=2, fill_alpha=0.7),
        furniture=LayerStyle(fill="#f3f4f6", selected_fill="#fef08a", stroke="#f59e42", stroke_width=2, fill_alpha=0.8),
        wall=LayerStyle(stroke="#6366f1", stroke_width=4),
        custom=LayerStyle(fill="#d1fae5", selected_fill="#a7f3d0", stroke="#10b981", stroke_width=2, fill_alpha=0.5),
        text=LayerStyle(stroke="#222222", font_size=18),
    ),
    "blueprint": StyleTemplate(
        name="blueprint",
        room=LayerStyle(fill="#1e3a8a", selected_fill="#2563eb", stroke="#ffffff", stroke_width=1.5, fill_alpha=0.5),
        furniture=LayerStyle(fill="#1e40af", selected_fill="#3b82f6", stroke="#bfdbfe", stroke_width=1, fill_alpha=0.5),
        wall=LayerStyle(stroke="#ffffff", stroke_width=4),
        custom=LayerStyle(fill="#0ea5e9", selected_fill="#38bdf8", stroke="#e0f2fe", stroke_width=1.5, fill_alpha=0.4),
        text=LayerStyle(stroke="#ffffff", font_size=16),
        highlight="#facc15",
    ),
    "monochrome": StyleTemplate(
        name="monochrome",
        room=LayerStyle(fill="#f5f5f5", selected_fill="#d4d4d4", stroke="#171717", stroke_width=2, fill_alpha=0.6),
        furniture=LayerStyle(fill="#e5e5e5", selected_fill="#a3a3a3", stroke="#404040", stroke_width=1),
        wall=LayerStyle(stroke="#000000", stroke_width=4),
        custom=LayerStyle(fill="#fafafa", selected_fill="#d4d4d4", stroke="#262626", stroke_width=1.5, fill_alpha=0.5),
        text=LayerStyle(stroke="#000000", font_size=18),
        highlight="#525252",
        scale_overlay="#000000",
        lasso_overlay="#404040",
        anchor_overlay="#000000",
    ),
}


def get_style_template(name: str) -> StyleTemplate:
    try:
        return STYLE_TEMPLATES[name]
    except KeyError:
        raise KeyError(f"Unknown style template '{name}'. Available: {sorted(STYLE_TEMPLATES)}") from None


# -----------------------------------------------------------------------------
# Primitives
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RectPrimitive:
    x: float
    y: float
    width: float
    height: float
    fill: str
    stroke: str
    stroke_width: float
    fill_alpha: float = 1.0
    layer_id: Optional[str] = None
    selected: bool = False


@dataclass(frozen=True)
class PolylinePrimitive:
    points: Tuple[float, ...]
    stroke: str
    stroke_width: float
    dashed: bool = False
    layer_id: Optional[str] = None
    selected: bool = False


@dataclass(frozen=True)
class PolygonPrimitive:
    points: Tuple[float, ...]
    fill: str
    stroke: str
    stroke_width: float
    fill_alpha: float = 1.0
    layer_id: Optional[str] = None
    selected: bool = False


@dataclass(frozen=True)
class LabelPrimitive:
    x: float
    y: float
    text: str
    color: str
    font_size: float
    layer_id: Optional[str] = None
    selected: bool = False


@dataclass(frozen=True)
class MarkerPrimitive:
    x: float
    y: float
    color: str
    radius: float = 4.0


Primitive = Union[RectPrimitive, PolylinePrimitive, PolygonPrimitive, LabelPrimitive, MarkerPrimitive]


def render(
    layers: Iterable[Layer],
    selection: Optional[str],
    style: StyleTemplate,
    overlay: Optional[ToolOverlay] = None,
) -> List[Primitive]:
    """Project the editor state to an ordered list of primitives."""
    primitives: List[Primitive] = [_layer_primitive(layer, layer.id == selection, style) for layer in layers]
    if overlay is not None:
        primitives.extend(_overlay_primitives(overlay, style))
    return primitives


def _layer_primitive(layer: Layer, selected: bool, style: StyleTemplate) -> Primitive:
    ls = style.for_layer(layer)

    if isinstance(layer, (Room, Furniture)):
        return RectPrimitive(
            x=layer.x, y=layer.y,
            width=layer.width or 0.0, height=layer.height or 0.0,
            fill=ls.selected_fill if selected else ls.fill,
            stroke=ls.stroke, stroke_width=ls.stroke_width, fill_alpha=ls.fill_alpha,
            layer_id=layer.id, selected=selected,
        )
    if isinstance(layer, Wall):
        return PolylinePrimitive(
            points=tuple(layer.points),
            stroke=style.highlight if selected else ls.stroke,
            stroke_width=ls.stroke_width,
            layer_id=layer.id, selected=selected,
        )
    if isinstance(layer, CustomRegion):
        return PolygonPrimitive(
            points=tuple(layer.points),
            fill=ls.selected_fill if selected else ls.fill,
            stroke=ls.stroke, stroke_width=ls.stroke_width, fill_alpha=ls.fill_alpha,
            layer_id=layer.id, selected=selected,
        )
    if isinstance(layer, Text):
        return LabelPrimitive(
            x=layer.x, y=layer.y, text=layer.name,
            color=style.highlight if selected else ls.stroke,
            font_size=ls.font_size,
            layer_id=layer.id, selected=selected,
        )
    raise TypeError(f"No primitive for layer type {type(layer).__name__}")


def _overlay_primitives(overlay: ToolOverlay, style: StyleTemplate) -> List[Primitive]:
    out: List[Primitive] = []

    if overlay.scale_points:
        out.extend(MarkerPrimitive(x, y, style.scale_overlay) for x, y in overlay.scale_points)
        if len(overlay.scale_points) >= 2:
            out.append(PolylinePrimitive(
                points=_flatten(overlay.scale_points[:2]), stroke=style.scale_overlay, stroke_width=2, dashed=True,
            ))

    if overlay.lasso_points:
        out.extend(MarkerPrimitive(x, y, style.lasso_overlay, radius=3.0) for x, y in overlay.lasso_points)
        if len(overlay.lasso_points) >= 2:
            out.append(PolylinePrimitive(
                points=_flatten(overlay.lasso_points), stroke=style.lasso_overlay, stroke_width=2, dashed=True,
            ))

    if overlay.anchor is not None:
        out.append(MarkerPrimitive(overlay.anchor[0], overlay.anchor[1], style.anchor_overlay))

    return out


def _flatten(points: Sequence[Tuple[float, float]]) -> Tuple[float, ...]:
    return tuple(coord for xy in points for coord in xy)


# -----------------------------------------------------------------------------
# Matplotlib painting
# -----------------------------------------------------------------------------

def draw_primitives(ax, primitives: Iterable[Primitive]) -> list:
    """Add artists for ``primitives`` to ``ax`` in order; returns the artists.

    Expects canvas coordinates (origin top-left, y down), i.e. an Axes with
    an inverted y axis.
    """
    artists = []
    for z, prim in enumerate(primitives, start=2):
        if isinstance(prim, RectPrimitive):
            artist = Rectangle(
                (prim.x, prim.y), prim.width, prim.height,
                facecolor=_rgba(prim.fill, prim.fill_alpha), edgecolor=prim.stroke,
                linewidth=prim.stroke_width, zorder=z,
            )
            ax.add_patch(artist)
        elif isinstance(prim, PolygonPrimitive):
            artist = Polygon(
                _xy(prim.points), closed=True,
                facecolor=_rgba(prim.fill, prim.fill_alpha), edgecolor=prim.stroke,
                linewidth=prim.stroke_width, zorder=z,
            )
            ax.add_patch(artist)
        elif isinstance(prim, PolylinePrimitive):
            xy = _xy(prim.points)
            artist = Line2D(
                xy[:, 0], xy[:, 1], color=prim.stroke, linewidth=prim.stroke_width,
                linestyle='--' if prim.dashed else '-', solid_capstyle='round', zorder=z,
            )
            ax.add_line(artist)
        elif isinstance(prim, LabelPrimitive):
            artist = ax.text(
                prim.x, prim.y, prim.text, color=prim.color, fontsize=prim.font_size * 0.75,
                ha='left', va='top', zorder=z,
                fontweight='bold' if prim.selected else 'normal',
            )
        elif isinstance(prim, MarkerPrimitive):
            artist = Circle(
                (prim.x, prim.y), prim.radius, facecolor=prim.color, edgecolor='white',
                linewidth=1, zorder=z,
            )
            ax.add_patch(artist)
        else:
            raise TypeError(f"Cannot draw {type(prim).__name__}")
        artists.append(artist)
    return artists


def _xy(points: Sequence[float]) -> np.ndarray:
    return np.asarray(points, dtype=float).reshape(-1, 2)


def _rgba(color: str, alpha: float):
    if color == "none":
        return "none"
    return to_rgba(color, alpha)
