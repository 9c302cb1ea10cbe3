"""
Plancanvas: Interactive Floor Plan Editor

Opens a floor plan from the catalog (inputs/catalog.json) and lets you
calibrate scale, annotate rooms and regions, and export the result.
With no catalog, the bundled sample layers are shown on a blank canvas.

Controls:
    m             Manual scale: click two points, type the real distance
    a             Auto scale: click a dimension label (e.g. 12'-0"), then its two ends
    r             Draw room: click two opposite corners
    l             Lasso: click points, double-click to close the region
    g             Segment: replace all layers with the segmentation proposal
    Left-click    Select a layer (opens rename box) or use the armed tool
    Right-click   Select a layer while a tool is armed, keeping its points
    d             Delete selected layer
    Escape        Cancel the armed tool
    j / c / p     Export JSON / CSV / PNG to outputs/export
    q             Quit

Usage:
    python examples/floor_plan_editor.py [FLOOR_PLAN_ID]
"""

# fmt: off
# autopep8: off

import sys

from plancanvas import config
from plancanvas.errors import ExternalServiceFailure
from plancanvas.floor_plan_editor import FloorPlanEditor
from plancanvas.floorplans import JsonFloorPlanRepository, LocalUploadStore, UserContext


if __name__ == "__main__":
    user        = UserContext(user_id=config.DEFAULT_USER_ID)
    repository  = JsonFloorPlanRepository(config.CATALOG_PATH)
    uploads     = LocalUploadStore(config.UPLOADS_DIR)

    floor_plan  = None
    background  = None
    if len(sys.argv) > 1:
        try:
            floor_plan = repository.get(sys.argv[1], user)
            background = uploads.resolve(floor_plan.image_url)
        except ExternalServiceFailure as exc:
            print(f"Could not open floor plan: {exc}")
            sys.exit(1)
    else:
        projects = repository.list_projects(user)
        plans = [fp for p in projects for fp in p.floor_plans]
        if plans:
            floor_plan = plans[0]
            background = uploads.resolve(floor_plan.image_url)

    editor = FloorPlanEditor(floor_plan=floor_plan, background_path=background)
    editor.launch()
