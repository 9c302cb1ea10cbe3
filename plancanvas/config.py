"""
Plancanvas Configuration Module
===============================

Centralized configuration for project paths, canvas geometry and editor timing.
This module provides consistent references throughout the codebase.
"""

# fmt: off
# autopep8: off

import os
from pathlib import Path

# Root directory of the project
PROJECT_ROOT        = Path(__file__).parent.parent

# Input/Output directories
# Users can set PLANCANVAS_OUTPUTS_DIR / PLANCANVAS_UPLOADS_DIR to relocate them
INPUTS_DIR          = PROJECT_ROOT / "inputs"
OUTPUTS_DIR         = Path(os.getenv("PLANCANVAS_OUTPUTS_DIR", str(PROJECT_ROOT / "outputs")))
EXAMPLES_DIR        = PROJECT_ROOT / "examples"
UPLOADS_DIR         = Path(os.getenv("PLANCANVAS_UPLOADS_DIR", str(INPUTS_DIR / "uploads")))

# Output subdirectories
EXPORT_DIR          = OUTPUTS_DIR / "export"

# Floor plan catalog (projects + floor plans per user)
CATALOG_PATH        = Path(os.getenv("PLANCANVAS_CATALOG", str(INPUTS_DIR / "catalog.json")))

# ============================================================================
# CANVAS
# ============================================================================
CANVAS_WIDTH        = 600
CANVAS_HEIGHT       = 400
CANVAS_DPI          = 100

# Exported rasters are written at this multiple of the canvas pixel size
EXPORT_PIXEL_RATIO  = 2

# Accepted upload formats
UPLOAD_EXTENSIONS   = (".jpg", ".jpeg", ".png", ".svg", ".pdf")

# ============================================================================
# SEGMENTATION
# ============================================================================
# Seconds the "done" state stays visible before reverting to idle
SEGMENTATION_DONE_DISPLAY_S = 2.0

# Artificial latency of the bundled stand-in segmenter
SEGMENTATION_CANNED_DELAY_S = float(os.getenv("PLANCANVAS_SEGMENT_DELAY", "1.5"))

# Poll interval (ms) for the editor timer that drains segmentation results
SEGMENTATION_POLL_MS        = 200

# ============================================================================
# EDITOR DEFAULTS
# ============================================================================
DEFAULT_STYLE       = "default"
DEFAULT_USER_ID     = "demo-user"

# Pixel tolerance for hit-testing wall polylines and text labels
HIT_TOLERANCE_PX    = 6.0
