"""
Scale calibration: pixel distance to real-world units.

Pure helpers turn two reference points and a real-world length into a
pixels-per-unit ratio. ScaleCalibration holds the single editor-wide value,
which is overwritten (never merged) each time a calibration completes.
"""

# Standard library imports
import logging
import math
import re
from numbers import Real
from typing import Optional, Sequence

# Third-party imports
import numpy as np

# Plancanvas imports
from plancanvas.errors import CalibrationRejected, InputValidationError

logger = logging.getLogger(__name__)

# Leading number, optional sign and decimals: "12'-0\"" -> "12", "7.5'" -> "7.5"
_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))")
_FOOT_INCH_MARKS = "'\"′″"


def pixel_distance(p1: Sequence[float], p2: Sequence[float]) -> float:
    """Euclidean distance between two canvas points."""
    return float(np.hypot(p2[0] - p1[0], p2[1] - p1[1]))


def _is_positive_finite(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value) and value > 0


def calibrate(p1: Sequence[float], p2: Sequence[float], real_value: float) -> float:
    """Return pixels per real-world unit for a known distance between two points.

    Args:
        p1, p2: The two reference points in canvas pixels.
        real_value: Real-world length between them.

    Raises:
        CalibrationRejected: If ``real_value`` is not a finite positive number,
            or the two points coincide.
    """
    if not _is_positive_finite(real_value):
        raise CalibrationRejected(f"Real-world distance must be a positive number, got {real_value!r}")
    pixels = pixel_distance(p1, p2)
    if not pixels > 0:
        raise CalibrationRejected("Reference points coincide; pick two distinct points")
    return pixels / float(real_value)


def parse_real_distance(text: Optional[str]) -> float:
    """Parse the real-world distance typed by the user.

    Raises:
        InputValidationError: On empty, non-numeric, non-finite or non-positive input.
    """
    if text is None or not str(text).strip():
        raise InputValidationError("No distance entered")
    try:
        value = float(str(text).strip())
    except ValueError:
        raise InputValidationError(f"'{text}' is not a number") from None
    if not _is_positive_finite(value):
        raise InputValidationError(f"Distance must be greater than zero, got '{text}'")
    return value


def extract_dimension(label: Optional[str]) -> Optional[float]:
    """Read a dimension from a text label such as ``12'-0"``.

    Strips a trailing foot/inch mark and returns the leading numeric token,
    or None when the label does not start with a positive number.
    """
    if not label:
        return None
    text = label.strip().rstrip(_FOOT_INCH_MARKS)
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return value if _is_positive_finite(value) else None


class ScaleCalibration:
    """Holds the current pixels-per-unit ratio (None until calibrated)."""

    def __init__(self, value: Optional[float] = None):
        self.value: Optional[float] = value

    @property
    def is_set(self) -> bool:
        return self.value is not None

    def apply(self, p1, p2, real_value) -> Optional[float]:
        """Calibrate from two points; on rejection the previous value is kept."""
        try:
            ratio = calibrate(p1, p2, real_value)
        except CalibrationRejected as exc:
            logger.info(f"Calibration rejected: {exc}")
            return None
        self.value = ratio
        logger.info(f"Scale set to {ratio:.4f} px/unit")
        return ratio

    def to_real(self, pixels: float) -> Optional[float]:
        """Convert a pixel length to real-world units, if calibrated."""
        if not self.value:
            return None
        return pixels / self.value

    def __repr__(self) -> str:
        return f"ScaleCalibration(value={self.value!r})"
