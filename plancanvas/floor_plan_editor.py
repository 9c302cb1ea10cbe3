"""
Interactive Floor Plan Editor.

Shows an uploaded floor plan image with its annotation layers and lets the
user calibrate scale, draw rooms and freeform regions, rename or delete
layers, replace everything with a segmentation proposal, and export.

Controls:
    m             Manual scale (click two points, enter the real distance)
    a             Auto scale (click a dimension label, then its two ends)
    r             Draw room (click two opposite corners)
    l             Lasso region (click points, double-click to close)
    g             Run segmentation (replaces all layers)
    Left-click    Select layer / use armed tool
    Right-click   Select layer and rename, even while a tool is armed
    d             Delete selected layer
    Escape        Cancel armed tool
    j / c / p     Export JSON / CSV / PNG
    q             Quit
"""

# fmt: off
# autopep8: off

# Standard library imports
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Union

# Third-party imports
import matplotlib.pyplot as plt
from matplotlib.path import Path as MplPath
from matplotlib.widgets import Button, TextBox
import numpy as np

# Plancanvas imports
from plancanvas import config, exporter
from plancanvas.calibration import ScaleCalibration
from plancanvas.floorplans import FloorPlan
from plancanvas.layers import CustomRegion, Furniture, Layer, LayerStore, Room, Text, Wall, sample_layers
from plancanvas.renderer import draw_primitives, get_style_template, render
from plancanvas.segmentation import SegmentationAdapter, SegmentationState, Segmenter, canned_segmenter
from plancanvas.tool_modes import AutoScale, Idle, ToolModeController

# Configure basic logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
)

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Hit testing
# -----------------------------------------------------------------------------

def _point_to_segment_dist(px, py, ax, ay, bx, by) -> float:
    """Distance from point P to segment A->B."""
    dx, dy     = bx - ax, by - ay
    seg_len_sq = dx*dx + dy*dy
    if seg_len_sq == 0:
        return float(np.hypot(px - ax, py - ay))
    t = max(0.0, min(1.0, ((px - ax)*dx + (py - ay)*dy) / seg_len_sq))
    return float(np.hypot(px - (ax + t*dx), py - (ay + t*dy)))


def layer_at(layers: Iterable[Layer], x: float, y: float, tolerance: float = config.HIT_TOLERANCE_PX,
             font_size: float = 18.0) -> Optional[Layer]:
    """Topmost layer under canvas point (x, y), or None."""
    for layer in reversed(list(layers)):
        if isinstance(layer, (Room, Furniture)):
            w, h = layer.width or 0.0, layer.height or 0.0
            if layer.x <= x <= layer.x + w and layer.y <= y <= layer.y + h:
                return layer
        elif isinstance(layer, CustomRegion):
            pts = layer.point_pairs()
            if len(pts) >= 3 and MplPath(np.array(pts)).contains_point((x, y)):
                return layer
        elif isinstance(layer, Wall):
            pts = layer.point_pairs()
            for (ax_, ay_), (bx_, by_) in zip(pts, pts[1:]):
                if _point_to_segment_dist(x, y, ax_, ay_, bx_, by_) <= tolerance:
                    return layer
        elif isinstance(layer, Text):
            # Approximate label box: ~0.6 em per character
            w = max(len(layer.name), 1) * font_size * 0.6
            if layer.x - tolerance <= x <= layer.x + w and layer.y - tolerance <= y <= layer.y + font_size:
                return layer
    return None


# -----------------------------------------------------------------------------
# Editor window
# -----------------------------------------------------------------------------

class FloorPlanEditor:
    """Matplotlib front end wiring mouse/keyboard input to a ToolModeController.

    Args:
        floor_plan: Identity of the plan being edited (included in JSON export).
        layers: Initial layers. Defaults to the sample set.
        background_path: Local image file drawn under the layers.
        style_name: Style template used for drawing and image export.
        segmenter: Segmentation callable; defaults to the canned stand-in.
        export_dir: Where exports are written.
    """

    _WINDOW_TITLE = "Floor Plan Editor"

    def __init__(
        self,
        floor_plan:         Optional[FloorPlan]         = None,
        layers:             Optional[List[Layer]]       = None,
        background_path:    Optional[Union[Path, str]]  = None,
        style_name:         str                         = config.DEFAULT_STYLE,
        segmenter:          Segmenter                   = canned_segmenter,
        export_dir:         Union[Path, str]            = config.EXPORT_DIR,
    ):
        self.floor_plan                                 = floor_plan
        self.background_path                            = Path(background_path) if background_path else None
        self.style                                      = get_style_template(style_name)
        self.export_dir                                 = Path(export_dir)

        self.controller = ToolModeController(
            store=LayerStore(layers if layers is not None else sample_layers()),
            calibration=ScaleCalibration(),
            segmentation=SegmentationAdapter(segmenter=segmenter),
            request_distance=self._ask_distance,
        )

        self.canvas_width:      int                     = config.CANVAS_WIDTH
        self.canvas_height:     int                     = config.CANVAS_HEIGHT
        self._background:       Optional[np.ndarray]    = exporter.load_image(self.background_path)
        self._layer_artists:    list                    = []
        self._last_seg_state:   SegmentationState       = SegmentationState.IDLE

    @property
    def store(self) -> LayerStore:
        return self.controller.store

    # -------------------------------------------------------------------------
    # Layout helper — top-left coordinate system
    # -------------------------------------------------------------------------

    def _axes(self, x, y, w, h):
        """Create figure axes at (x, y) measured from the top-left corner."""
        return self.fig.add_axes((x, 1.0 - y - h, w, h))

    def launch(self):
        """Open the interactive editor window."""
        self.fig = plt.figure(figsize=(13, 6.5), facecolor='#F5F5F0')
        self.fig.canvas.manager.set_window_title(self._WINDOW_TITLE)

        # Main canvas (right), image pixels with y pointing down
        self.ax = self._axes(0.26, 0.06, 0.72, 0.88)
        self.ax.set_xlim(0, self.canvas_width)
        self.ax.set_ylim(self.canvas_height, 0)
        self.ax.set_aspect('equal', adjustable='box')
        self.ax.tick_params(left=False, bottom=False, labelleft=False, labelbottom=False)
        self.ax.set_facecolor('white')
        if self._background is not None:
            self.ax.imshow(self._background, extent=(0, self.canvas_width, self.canvas_height, 0),
                           zorder=1, aspect='auto')
        title = self.floor_plan.name if self.floor_plan else "Untitled floor plan"
        self.ax.set_title(title, fontsize=11, color='#404040')

        self._setup_side_panel()

        self.fig.canvas.mpl_connect('button_press_event', self._on_button_press)
        self.fig.canvas.mpl_connect('key_press_event', self._on_key_press)

        self._poll_timer = self.fig.canvas.new_timer(interval=config.SEGMENTATION_POLL_MS)
        self._poll_timer.add_callback(self._on_poll)
        self._poll_timer.start()

        self._refresh()

        print(f"\n=== {self._WINDOW_TITLE} ===")
        print(f"{len(self.store)} layer(s) loaded for '{title}'")
        print("m: scale | a: auto scale | r: room | l: lasso | g: segment | d: delete | q: quit")
        print("=" * (len(self._WINDOW_TITLE) + 8) + "\n")
        plt.show()
        self.controller.segmentation.shutdown()

    # -------------------------------------------------------------------------
    # UI setup
    # -------------------------------------------------------------------------

    def _setup_side_panel(self):
        pl, pw   = 0.02, 0.20
        btn_h    = 0.05
        gap      = 0.012
        self._btn_color = '#E8E8E0'
        self._btn_hover = '#D8D8D0'

        def button(y, label, callback):
            btn = Button(self._axes(pl, y, pw, btn_h), label, color=self._btn_color, hovercolor=self._btn_hover)
            btn.label.set_fontsize(9)
            btn.on_clicked(callback)
            return btn

        y = 0.06
        self.btn_scale    = button(y, 'Scale (m)',      lambda e: self._on_tool('manual_scale')); y += btn_h + gap
        self.btn_auto     = button(y, 'Auto Scale (a)', lambda e: self._on_tool('auto_scale'));   y += btn_h + gap
        self.btn_room     = button(y, 'Draw Room (r)',  lambda e: self._on_tool('draw_room'));    y += btn_h + gap
        self.btn_lasso    = button(y, 'Lasso (l)',      lambda e: self._on_tool('lasso'));        y += btn_h + gap
        self.btn_segment  = button(y, 'Segment (g)',    self._on_segment_click);                  y += btn_h + gap
        self.btn_delete   = button(y, 'Delete (d)',     self._on_delete_click);                   y += btn_h + gap * 3

        half = (pw - gap) / 3
        self.btn_json = Button(self._axes(pl, y, half, btn_h), 'JSON', color=self._btn_color, hovercolor=self._btn_hover)
        self.btn_csv  = Button(self._axes(pl + half + gap / 2, y, half, btn_h), 'CSV', color=self._btn_color, hovercolor=self._btn_hover)
        self.btn_png  = Button(self._axes(pl + 2 * (half + gap / 2), y, half, btn_h), 'PNG', color=self._btn_color, hovercolor=self._btn_hover)
        self.btn_json.on_clicked(self._on_export_json)
        self.btn_csv.on_clicked(self._on_export_csv)
        self.btn_png.on_clicked(self._on_export_png)
        y += btn_h + gap * 3

        self.name_textbox = TextBox(self._axes(pl, y, pw, btn_h), 'Name ', initial='')
        self.name_textbox.on_submit(self._on_rename_submit)
        y += btn_h + gap * 2

        ax_status = self._axes(pl, y, pw, 0.2)
        ax_status.axis('off')
        self.mode_text   = ax_status.text(0, 0.95, "", fontsize=9, fontweight='bold', color='#404040',
                                          transform=ax_status.transAxes, va='top')
        self.scale_text  = ax_status.text(0, 0.75, "", fontsize=9, color='#404040',
                                          transform=ax_status.transAxes, va='top')
        self.status_text = ax_status.text(0, 0.55, "Status: Ready", fontsize=9, color='blue',
                                          transform=ax_status.transAxes, va='top', wrap=True)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _refresh(self):
        """Redraw layers and tool overlay, and sync the side panel."""
        for artist in self._layer_artists:
            artist.remove()
        primitives = render(self.store, self.store.selected_id, self.style, self.controller.overlay())
        self._layer_artists = draw_primitives(self.ax, primitives)

        scale = self.controller.calibration.value
        self.mode_text.set_text(f"Tool: {self.controller.mode_name.replace('_', ' ')}")
        self.scale_text.set_text(f"Scale: {scale:.4f} px/unit" if scale else "Scale: not set")
        if self.controller.status:
            self._update_status(self.controller.status)

        prompt = self.controller.rename_prompt
        self.name_textbox.set_val(prompt.value if prompt else '')
        self.fig.canvas.draw_idle()

    def _update_status(self, message: str, color: str = 'blue'):
        if hasattr(self, 'status_text') and self.status_text is not None:
            self.status_text.set_text(f"Status: {message}")
            self.status_text.set_color(color)
            self.fig.canvas.draw_idle()

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def _routes_to_layers(self) -> bool:
        """Left-clicks reach layers only when no drawing gesture is in progress."""
        mode = self.controller.mode
        return isinstance(mode, Idle) or (isinstance(mode, AutoScale) and mode.awaiting_dimension)

    def _on_button_press(self, event):
        if event.inaxes != self.ax or event.button not in (1, 3) or event.xdata is None:
            return
        x, y = float(event.xdata), float(event.ydata)

        if event.button == 3:
            # Right-click selects the layer under the pointer in any mode
            hit = layer_at(self.store, x, y, font_size=self.style.text.font_size)
            if hit is None:
                return
            self.controller.layer_click(hit.id, (x, y))
        elif event.dblclick:
            self.controller.canvas_double_click((x, y))
        else:
            hit = layer_at(self.store, x, y, font_size=self.style.text.font_size) if self._routes_to_layers() else None
            if hit is not None:
                self.controller.layer_click(hit.id, (x, y))
            else:
                self.controller.canvas_click((x, y))
        self._refresh()

    def _on_key_press(self, event):
        tools = {'m': 'manual_scale', 'a': 'auto_scale', 'r': 'draw_room', 'l': 'lasso'}
        if event.key in tools:
            self._on_tool(tools[event.key])
        elif event.key == 'g':
            self._on_segment_click(None)
        elif event.key == 'd':
            self._on_delete_click(None)
        elif event.key == 'escape':
            self.controller.cancel()
            self.controller.cancel_rename()
            self._refresh()
        elif event.key == 'j':
            self._on_export_json(None)
        elif event.key == 'c':
            self._on_export_csv(None)
        elif event.key == 'p':
            self._on_export_png(None)
        elif event.key == 'q':
            plt.close(self.fig)

    def _on_tool(self, tool: str):
        self.controller.toggle(tool)
        self._refresh()

    def _on_rename_submit(self, text):
        if self.controller.rename_prompt is None:
            return
        if text == self.controller.rename_prompt.value:
            return
        self.controller.commit_rename(text)
        self._refresh()

    def _on_delete_click(self, event):
        self.controller.delete_selected()
        self._refresh()

    def _on_segment_click(self, event):
        image_ref = self.floor_plan.image_url if self.floor_plan else str(self.background_path or "")
        if self.controller.run_segmentation(image_ref):
            self.btn_segment.label.set_text('Segmenting...')
        self._refresh()

    def _on_poll(self):
        state = self.controller.poll()
        if state is self._last_seg_state:
            return
        self._last_seg_state = state
        labels = {
            SegmentationState.RUNNING: 'Segmenting...',
            SegmentationState.DONE:    'Done!',
            SegmentationState.IDLE:    'Segment (g)',
        }
        self.btn_segment.label.set_text(labels[state])
        self._refresh()
        error = self.controller.segmentation.last_error
        if state is SegmentationState.IDLE and error is not None:
            self._update_status(f"Segmentation failed: {error}", 'red')
            print(f"Segmentation error: {error}")

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def _export_path(self, suffix: str) -> Path:
        stem = self.floor_plan.id if self.floor_plan else "floorplan"
        return self.export_dir / f"{stem}{suffix}"

    def _report(self, result: exporter.ExportResult):
        self._update_status(result.message, 'green' if result.ok else 'red')
        print(result.message)

    def _on_export_json(self, event):
        self._report(exporter.export_json(
            self._export_path('.json'), self.floor_plan, self.store.snapshot(), self.controller.calibration.value,
        ))

    def _on_export_csv(self, event):
        self._report(exporter.export_csv(self._export_path('.csv'), self.store.snapshot()))

    def _on_export_png(self, event):
        self._report(exporter.export_image(
            self._export_path('.png'), self.store.snapshot(), self.store.selected_id, self.style,
            background=self._background, canvas_size=(self.canvas_width, self.canvas_height),
        ))

    # -------------------------------------------------------------------------
    # Dialogs
    # -------------------------------------------------------------------------

    @staticmethod
    def _ask_distance() -> Optional[str]:
        """Ask for the real-world distance between the two scale points."""
        import tkinter as tk
        from tkinter import simpledialog

        root = tk.Tk()
        root.withdraw()
        try:
            return simpledialog.askstring("Scale", "Real-world distance between the points:", parent=root)
        finally:
            root.destroy()
