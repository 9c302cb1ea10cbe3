"""
Tool-Mode Controller for the floor plan canvas.

The armed tool is a single value drawn from a closed set of mode types
(Idle, ManualScale, AutoScale, DrawRoom, Lasso), each carrying only its own
in-progress state. Arming a tool replaces the current mode value, so two
tools can never be armed at once and a discarded tool's points are gone.

Input events handled here, one at a time:
    toggle(tool)                Arm a tool, or disarm it if already armed
    canvas_click(point)         Interpreted by the armed tool
    canvas_double_click(point)  Commits a lasso region (>= 3 points)
    layer_click(id, pointer)    Dimension pick (auto scale) or select + rename
    commit_rename(name)         Apply the open rename prompt
    run_segmentation(image)     Replace all layers with a segmentation proposal
"""

# Standard library imports
import logging
from dataclasses import dataclass
from typing import Callable, ClassVar, Dict, Optional, Tuple, Union

# Plancanvas imports
from plancanvas.calibration import (
    ScaleCalibration,
    extract_dimension as default_extract_dimension,
    parse_real_distance,
    pixel_distance,
)
from plancanvas.errors import InputValidationError
from plancanvas.layers import CustomRegion, Layer, LayerStore, Room, Text
from plancanvas.segmentation import SegmentationAdapter, SegmentationState

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


# -----------------------------------------------------------------------------
# Modes
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    name: ClassVar[str] = "idle"


@dataclass(frozen=True)
class ManualScale:
    name: ClassVar[str] = "manual_scale"
    points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class AutoScale:
    """Auto scale: pick a dimension label first, then two reference points."""

    name: ClassVar[str] = "auto_scale"
    real_value: Optional[float] = None
    points: Tuple[Point, ...] = ()

    @property
    def awaiting_dimension(self) -> bool:
        return self.real_value is None


@dataclass(frozen=True)
class DrawRoom:
    name: ClassVar[str] = "draw_room"
    anchor: Optional[Point] = None


@dataclass(frozen=True)
class Lasso:
    name: ClassVar[str] = "lasso"
    points: Tuple[Point, ...] = ()


ToolMode = Union[Idle, ManualScale, AutoScale, DrawRoom, Lasso]

TOOLS: Dict[str, type] = {cls.name: cls for cls in (ManualScale, AutoScale, DrawRoom, Lasso)}

MIN_LASSO_POINTS = 3


@dataclass(frozen=True)
class RenamePrompt:
    """Open rename affordance for one layer, anchored at the pointer."""

    layer_id: str
    value: str
    anchor: Optional[Point] = None


@dataclass(frozen=True)
class ToolOverlay:
    """In-progress gesture state for drawing above committed layers."""

    scale_points: Tuple[Point, ...] = ()
    lasso_points: Tuple[Point, ...] = ()
    anchor: Optional[Point] = None

    @property
    def is_empty(self) -> bool:
        return not (self.scale_points or self.lasso_points or self.anchor)


# -----------------------------------------------------------------------------
# Controller
# -----------------------------------------------------------------------------

class ToolModeController:
    """Interprets canvas and layer input according to the armed tool.

    Args:
        store: Layer store mutated by drawing and segmentation.
        calibration: Holder of the editor-wide pixels-per-unit value.
        segmentation: Adapter for the external segmentation step.
        request_distance: Asks the user for a real-world distance; returns the
            raw text, or None if the user cancelled.
        extract_dimension: Reads a numeric dimension from a text label.
    """

    def __init__(
        self,
        store:              Optional[LayerStore]                    = None,
        calibration:        Optional[ScaleCalibration]              = None,
        segmentation:       Optional[SegmentationAdapter]           = None,
        request_distance:   Optional[Callable[[], Optional[str]]]   = None,
        extract_dimension:  Callable[[str], Optional[float]]        = default_extract_dimension,
    ):
        self.store                                      = store if store is not None else LayerStore()
        self.calibration                                = calibration if calibration is not None else ScaleCalibration()
        self.segmentation                               = segmentation if segmentation is not None else SegmentationAdapter()
        self.request_distance                           = request_distance or (lambda: None)
        self.extract_dimension                          = extract_dimension

        self.mode:              ToolMode                = Idle()
        self.rename_prompt:     Optional[RenamePrompt]  = None
        self.status:            str                     = ""

    # -------------------------------------------------------------------------
    # Mode arming
    # -------------------------------------------------------------------------

    @property
    def mode_name(self) -> str:
        return self.mode.name

    def toggle(self, tool: str) -> ToolMode:
        """Arm ``tool``; toggling the armed tool again returns to Idle."""
        cls = TOOLS.get(tool)
        if cls is None:
            raise ValueError(f"Unknown tool '{tool}'. Expected one of {sorted(TOOLS)}")
        if isinstance(self.mode, cls):
            self._set_mode(Idle(), "Tool disarmed")
        else:
            self._set_mode(cls(), _ARM_MESSAGES[tool])
        return self.mode

    def cancel(self) -> None:
        """Drop whatever tool is armed, with its progress."""
        self._set_mode(Idle(), "Ready")

    def _set_mode(self, mode: ToolMode, status: Optional[str] = None) -> None:
        if type(mode) is not type(self.mode):
            logger.info(f"Tool mode: {self.mode.name} -> {mode.name}")
            self.rename_prompt = None
        self.mode = mode
        if status is not None:
            self.status = status

    # -------------------------------------------------------------------------
    # Canvas input
    # -------------------------------------------------------------------------

    def canvas_click(self, point: Point) -> None:
        point = (float(point[0]), float(point[1]))
        mode = self.mode

        if isinstance(mode, ManualScale):
            self._manual_scale_click(mode, point)
        elif isinstance(mode, AutoScale):
            self._auto_scale_click(mode, point)
        elif isinstance(mode, DrawRoom):
            self._draw_room_click(mode, point)
        elif isinstance(mode, Lasso):
            self.mode = Lasso(points=mode.points + (point,))
            self.status = f"Lasso: {len(self.mode.points)} point(s), double-click to close"
        else:
            self.store.select(None)
            self.rename_prompt = None

    def canvas_double_click(self, point: Point) -> None:
        """Close the lasso into a CustomRegion when enough points exist."""
        mode = self.mode
        if not isinstance(mode, Lasso):
            return
        # The first press of a double-click arrives as a plain click on the same spot
        points = list(mode.points)
        while len(points) > 1 and points[-1] == points[-2]:
            points.pop()
        if len(points) < MIN_LASSO_POINTS:
            self.mode = Lasso(points=tuple(points))
            logger.debug(f"Lasso commit ignored: {len(points)} point(s)")
            return

        flat = [coord for xy in points for coord in xy]
        x0, y0 = points[0]
        region = CustomRegion(
            name=f"Region {self._count(CustomRegion) + 1}", x=x0, y=y0, points=flat,
        )
        self.store.add(region)
        self._set_mode(Idle(), f"Added '{region.name}' ({len(points)} points)")

    def _manual_scale_click(self, mode: ManualScale, point: Point) -> None:
        points = mode.points + (point,)
        if len(points) < 2:
            self.mode = ManualScale(points=points)
            self.status = "Scale: click the second reference point"
            return

        p1, p2 = points
        text = self.request_distance()
        try:
            value = parse_real_distance(text)
        except InputValidationError as exc:
            logger.info(f"Manual scale aborted: {exc}")
            self._set_mode(Idle(), f"Scale not changed: {exc}")
            return

        ratio = self.calibration.apply(p1, p2, value)
        self._set_mode(Idle(), self._scale_message(ratio, pixel_distance(p1, p2), value))

    def _auto_scale_click(self, mode: AutoScale, point: Point) -> None:
        if mode.awaiting_dimension:
            logger.debug("Auto scale: canvas click ignored while waiting for a dimension label")
            return

        points = mode.points + (point,)
        if len(points) < 2:
            self.mode = AutoScale(real_value=mode.real_value, points=points)
            self.status = "Auto scale: click the second reference point"
            return

        p1, p2 = points
        ratio = self.calibration.apply(p1, p2, mode.real_value)
        self._set_mode(Idle(), self._scale_message(ratio, pixel_distance(p1, p2), mode.real_value))

    def _draw_room_click(self, mode: DrawRoom, point: Point) -> None:
        if mode.anchor is None:
            self.mode = DrawRoom(anchor=point)
            self.status = "Draw room: click the opposite corner"
            return

        (ax, ay), (bx, by) = mode.anchor, point
        room = Room(
            name=f"Room {self._count(Room) + 1}",
            x=min(ax, bx),
            y=min(ay, by),
            width=abs(bx - ax),
            height=abs(by - ay),
        )
        self.store.add(room)
        self._set_mode(Idle(), f"Added '{room.name}' ({room.width:.0f} x {room.height:.0f} px)")

    # -------------------------------------------------------------------------
    # Layer input
    # -------------------------------------------------------------------------

    def layer_click(self, layer_id: str, pointer: Optional[Point] = None) -> None:
        layer = self.store.find(layer_id)
        if layer is None:
            return

        mode = self.mode
        if isinstance(mode, AutoScale) and mode.awaiting_dimension:
            self._pick_dimension(layer)
            return

        self.store.select(layer.id)
        self.rename_prompt = RenamePrompt(layer_id=layer.id, value=layer.name, anchor=pointer)
        self.status = f"Selected: {layer.name}"

    def _pick_dimension(self, layer: Layer) -> None:
        if not isinstance(layer, Text):
            logger.debug(f"Auto scale: '{layer.name}' is not a text layer")
            return
        value = self.extract_dimension(layer.name)
        if value is None:
            logger.debug(f"Auto scale: no dimension in '{layer.name}'")
            return
        self.mode = AutoScale(real_value=value)
        self.status = f"Auto scale: {value:g} units, click the two ends of the dimension"

    def commit_rename(self, new_name: str) -> None:
        prompt = self.rename_prompt
        if prompt is None:
            return
        self.store.rename(prompt.layer_id, new_name)
        self.rename_prompt = None
        self.status = f"Renamed to '{new_name}'"

    def cancel_rename(self) -> None:
        self.rename_prompt = None

    def delete_selected(self) -> Optional[Layer]:
        layer = self.store.remove_selected()
        if layer is None:
            self.status = "No layer selected to delete"
            return None
        if self.rename_prompt is not None and self.rename_prompt.layer_id == layer.id:
            self.rename_prompt = None
        self.status = f"Deleted '{layer.name}'"
        return layer

    # -------------------------------------------------------------------------
    # Segmentation
    # -------------------------------------------------------------------------

    def run_segmentation(self, image_ref: str) -> bool:
        """Start a segmentation run; any armed tool is cancelled first.

        Returns False when a run is already in flight.
        """
        if self.segmentation.is_running:
            self.status = "Segmentation already running"
            return False
        self._set_mode(Idle())
        self.rename_prompt = None
        started = self.segmentation.invoke(image_ref, self._apply_segmentation)
        if started:
            self.status = self.segmentation.message
        return started

    def _apply_segmentation(self, layers) -> None:
        self.store.replace_all(layers)
        self.rename_prompt = None

    def poll(self, now: Optional[float] = None) -> SegmentationState:
        """Pick up segmentation results; call regularly from the UI loop."""
        before = self.segmentation.state
        state = self.segmentation.poll(now)
        if state is not before and self.segmentation.message:
            self.status = self.segmentation.message
        return state

    # -------------------------------------------------------------------------
    # Rendering support
    # -------------------------------------------------------------------------

    def overlay(self) -> ToolOverlay:
        mode = self.mode
        if isinstance(mode, (ManualScale, AutoScale)):
            return ToolOverlay(scale_points=mode.points)
        if isinstance(mode, Lasso):
            return ToolOverlay(lasso_points=mode.points)
        if isinstance(mode, DrawRoom):
            return ToolOverlay(anchor=mode.anchor)
        return ToolOverlay()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _count(self, cls: type) -> int:
        return sum(1 for layer in self.store if isinstance(layer, cls))

    @staticmethod
    def _scale_message(ratio: Optional[float], pixels: float, real_value: float) -> str:
        if ratio is None:
            return "Scale not changed"
        return f"Scale set: {pixels:.1f} px = {real_value:g} units ({ratio:.4f} px/unit)"


_ARM_MESSAGES = {
    "manual_scale": "Scale: click the first reference point",
    "auto_scale":   "Auto scale: click a dimension label",
    "draw_room":    "Draw room: click the first corner",
    "lasso":        "Lasso: click to add points, double-click to close",
}
