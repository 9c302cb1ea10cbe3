from .layers import LayerStore, Layer, Room, Furniture, Wall, CustomRegion, Text
from .calibration import ScaleCalibration, calibrate, extract_dimension
from .segmentation import SegmentationAdapter, SegmentationState
from .tool_modes import ToolModeController
from .floorplans import FloorPlan, UserContext, JsonFloorPlanRepository, LocalUploadStore
from . import config, exporter, renderer
