"""
Segmentation Adapter: asynchronous boundary to an external segmentation step.

The segmenter is any callable taking an image reference and returning a full
replacement layer list (Layer objects or their wire dicts). It runs on a
single worker thread; the owning thread picks up the result by calling
``poll()``, which is where the atomic replace happens. A result is either
applied whole or not at all.

State cycle: IDLE -> RUNNING -> DONE -> IDLE (DONE reverts after a short
display interval). A failed call goes straight back to IDLE with a message.
"""

# Standard library imports
import copy
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

# Plancanvas imports
from plancanvas import config
from plancanvas.errors import ExternalServiceFailure
from plancanvas.layers import Furniture, Layer, Room, Text, Wall, layer_from_dict

logger = logging.getLogger(__name__)

Segmenter = Callable[[str], Sequence[Union[Layer, dict]]]


class SegmentationState(str, Enum):
    IDLE    = "idle"
    RUNNING = "running"
    DONE    = "done"


def canned_segmenter(image_ref: str) -> List[Layer]:
    """Stand-in for a real segmentation service: fixed proposal after a delay."""
    time.sleep(config.SEGMENTATION_CANNED_DELAY_S)
    logger.info(f"Canned segmentation for {image_ref}")
    return [
        Room(name="Living Room", x=40, y=40, width=260, height=180),
        Room(name="Kitchen", x=300, y=40, width=160, height=180),
        Room(name="Bedroom", x=40, y=220, width=220, height=140),
        Wall(name="North Wall", x=40, y=40, points=[40, 40, 460, 40]),
        Wall(name="Partition", x=300, y=40, points=[300, 40, 300, 220]),
        Furniture(name="Sofa", x=80, y=160, width=120, height=40),
        Text(name="14'-6\"", x=120, y=24),
    ]


def coerce_layers(result) -> List[Layer]:
    """Validate a segmenter result into a list of Layers.

    Raises:
        ExternalServiceFailure: If the result is not a list of layers or
            layer dicts. Nothing is partially accepted.
    """
    if isinstance(result, (str, bytes, dict)) or not isinstance(result, (list, tuple)):
        raise ExternalServiceFailure(f"Segmentation returned {type(result).__name__}, expected a layer list")
    layers: List[Layer] = []
    for idx, item in enumerate(result):
        if isinstance(item, Layer):
            layers.append(copy.deepcopy(item))
        elif isinstance(item, dict):
            try:
                layers.append(layer_from_dict(item))
            except (TypeError, ValueError) as exc:
                raise ExternalServiceFailure(f"Segmentation layer {idx} is malformed: {exc}") from exc
        else:
            raise ExternalServiceFailure(f"Segmentation layer {idx} has unsupported type {type(item).__name__}")
    return layers


class SegmentationAdapter:
    """Runs one segmentation call at a time and applies its result on poll.

    Args:
        segmenter: Callable ``image_ref -> layers``. Defaults to the canned stand-in.
        done_display_s: Seconds DONE is held before reverting to IDLE.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        segmenter:          Segmenter                   = canned_segmenter,
        done_display_s:     float                       = config.SEGMENTATION_DONE_DISPLAY_S,
        clock:              Callable[[], float]         = time.monotonic,
    ):
        self.segmenter                                  = segmenter
        self.done_display_s                             = done_display_s
        self.clock                                      = clock

        self.state:             SegmentationState       = SegmentationState.IDLE
        self.message:           str                     = ""
        self.last_error:        Optional[ExternalServiceFailure] = None

        self._executor:         Optional[ThreadPoolExecutor] = None
        self._future:           Optional[Future]        = None
        self._on_result:        Optional[Callable[[List[Layer]], None]] = None
        self._done_at:          Optional[float]         = None
        self._closed:           bool                    = False

    @property
    def is_running(self) -> bool:
        return self.state is SegmentationState.RUNNING

    def invoke(self, image_ref: str, on_result: Callable[[List[Layer]], None]) -> bool:
        """Dispatch a segmentation call.

        Returns False (and does nothing) while a call is already running or
        after shutdown. DONE counts as idle for this purpose.
        """
        if self.is_running or self._closed:
            logger.debug("Segmentation invocation refused (running or closed)")
            return False

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="segmentation")

        self._on_result = on_result
        self._done_at   = None
        self.last_error = None
        self.state      = SegmentationState.RUNNING
        self.message    = "Segmenting..."
        self._future    = self._executor.submit(self.segmenter, image_ref)
        logger.info(f"Segmentation started for {image_ref}")
        return True

    def poll(self, now: Optional[float] = None) -> SegmentationState:
        """Apply a finished result and drive the DONE -> IDLE revert.

        Must be called from the thread that owns the layer store.
        """
        now = self.clock() if now is None else now

        if self.state is SegmentationState.RUNNING and self._future is not None and self._future.done():
            future, self._future = self._future, None
            try:
                layers = coerce_layers(future.result())
                self._on_result(layers)
            except Exception as exc:
                failure = exc if isinstance(exc, ExternalServiceFailure) else ExternalServiceFailure(str(exc))
                self.last_error = failure
                self.state      = SegmentationState.IDLE
                self.message    = f"Segmentation failed: {failure}"
                logger.error(self.message)
            else:
                self.state      = SegmentationState.DONE
                self._done_at   = now
                self.message    = f"Segmentation applied ({len(layers)} layers)"
                logger.info(self.message)
            return self.state

        if self.state is SegmentationState.DONE and now - self._done_at >= self.done_display_s:
            self.state   = SegmentationState.IDLE
            self.message = ""
        return self.state

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the in-flight call finishes (scripts and tests)."""
        if self._future is None:
            return True
        done, _ = wait([self._future], timeout=timeout)
        return bool(done)

    def shutdown(self) -> None:
        """Stop accepting calls; an in-flight result is never applied."""
        self._closed = True
        self._future = None
        if self.state is SegmentationState.RUNNING:
            self.state = SegmentationState.IDLE
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
