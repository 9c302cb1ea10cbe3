"""Exception types shared across the editor core."""


class PlanCanvasError(Exception):
    """Base class for all plancanvas errors."""


class InputValidationError(PlanCanvasError, ValueError):
    """User supplied a value that cannot be used (e.g. a calibration distance)."""


class CalibrationRejected(InputValidationError):
    """A calibration could not be derived from the given reference values."""


class ExternalServiceFailure(PlanCanvasError):
    """A collaborator (segmentation, persistence, upload) failed to answer."""
