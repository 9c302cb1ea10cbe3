"""
Layer model and Layer Store for the floor plan canvas.

This module contains:
- Layer and its variants (Room, Furniture, Wall, CustomRegion, Text)
- LayerStore: the canonical ordered collection of placed layers plus the
  single selected layer id.

Every LayerStore operation is total: operations on an id that is not in the
store are silent no-ops rather than errors.
"""

# Standard library imports
import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class Layer:
    """One placed annotation on the floor plan.

    Attributes:
        name: Human readable name. For Text layers this is the label itself.
        x, y: Anchor position in canvas pixels.
        id: Store-assigned identifier. Empty until the layer is added.
    """

    kind: ClassVar[str] = ""

    name:   str     = ""
    x:      float   = 0.0
    y:      float   = 0.0
    id:     str     = ""

    def to_dict(self) -> dict:
        """Wire form used by the JSON export and the segmentation contract."""
        return {
            "id":   self.id,
            "type": self.kind,
            "name": self.name,
            "x":    self.x,
            "y":    self.y,
        }


@dataclass
class _BoxLayer(Layer):
    width:  Optional[float] = None
    height: Optional[float] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.width is not None:
            data["width"] = self.width
        if self.height is not None:
            data["height"] = self.height
        return data


@dataclass
class _PointsLayer(Layer):
    # Flattened [x0, y0, x1, y1, ...]
    points: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["points"] = list(self.points)
        return data

    def point_pairs(self) -> List[tuple]:
        return list(zip(self.points[0::2], self.points[1::2]))


@dataclass
class Room(_BoxLayer):
    kind: ClassVar[str] = "room"


@dataclass
class Furniture(_BoxLayer):
    kind: ClassVar[str] = "furniture"


@dataclass
class Wall(_PointsLayer):
    kind: ClassVar[str] = "wall"


@dataclass
class CustomRegion(_PointsLayer):
    kind: ClassVar[str] = "custom"


@dataclass
class Text(Layer):
    kind: ClassVar[str] = "text"

    @property
    def label(self) -> str:
        return self.name


LAYER_TYPES: Dict[str, type] = {
    cls.kind: cls for cls in (Room, Furniture, Wall, CustomRegion, Text)
}


def layer_from_dict(data: dict) -> Layer:
    """Build a Layer from its wire form.

    Raises:
        ValueError: If ``type`` is missing or not a known layer kind, or if a
            coordinate is not numeric.
    """
    kind = data.get("type")
    cls = LAYER_TYPES.get(kind)
    if cls is None:
        raise ValueError(f"Unknown layer type: {kind!r}")

    kwargs = {
        "id":   str(data.get("id") or ""),
        "name": str(data.get("name", "")),
        "x":    float(data.get("x", 0.0)),
        "y":    float(data.get("y", 0.0)),
    }
    if issubclass(cls, _BoxLayer):
        for key in ("width", "height"):
            value = data.get(key)
            kwargs[key] = float(value) if value is not None else None
    elif issubclass(cls, _PointsLayer):
        points = [float(v) for v in data.get("points", [])]
        if len(points) % 2:
            raise ValueError(f"Layer {kwargs['name']!r} has an odd number of point coordinates")
        kwargs["points"] = points
    return cls(**kwargs)


def sample_layers() -> List[Layer]:
    """Demo annotation set shown for a floor plan with no saved layers."""
    return [
        Room(id="r1", name="Room 1", x=100, y=100, width=200, height=150),
        Wall(id="w1", name="Wall 1", x=100, y=100, points=[100, 100, 300, 100]),
        Furniture(id="f1", name="Bed", x=150, y=180, width=60, height=30),
        Text(id="t1", name="12'-0\"", x=120, y=90),
    ]


class LayerStore:
    """Ordered collection of layers with at most one selected layer."""

    def __init__(self, layers: Optional[Iterable[Layer]] = None):
        self._layers:       List[Layer]     = []
        self._selected_id:  Optional[str]   = None
        if layers is not None:
            self.replace_all(layers)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(list(self._layers))

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def ids(self) -> List[str]:
        return [layer.id for layer in self._layers]

    def find(self, layer_id: Optional[str]) -> Optional[Layer]:
        for layer in self._layers:
            if layer.id == layer_id:
                return layer
        return None

    def selected(self) -> Optional[Layer]:
        return self.find(self._selected_id)

    def snapshot(self) -> List[Layer]:
        """Deep copy of the current layers, safe to hand to readers."""
        return copy.deepcopy(self._layers)

    def rooms(self) -> List[Room]:
        return [layer for layer in self._layers if isinstance(layer, Room)]

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add(self, layer: Layer) -> Layer:
        """Append a layer, giving it an id unique within the store.

        An id the layer already carries is kept when it does not collide.
        Selection is left untouched.
        """
        taken = set(self.ids())
        if not layer.id or layer.id in taken:
            layer.id = _new_id(layer.kind, taken)
        self._layers.append(layer)
        logger.info(f"Added {layer.kind} layer '{layer.name}' ({layer.id})")
        return layer

    def remove(self, layer_id: Optional[str]) -> None:
        layer = self.find(layer_id)
        if layer is None:
            logger.debug(f"remove: no layer with id {layer_id!r}")
            return
        self._layers.remove(layer)
        if self._selected_id == layer_id:
            self._selected_id = None
        logger.info(f"Removed layer '{layer.name}' ({layer_id})")

    def remove_selected(self) -> Optional[Layer]:
        """Delete the selected layer, if any, and return it."""
        layer = self.selected()
        if layer is not None:
            self.remove(layer.id)
        return layer

    def rename(self, layer_id: Optional[str], new_name: str) -> None:
        layer = self.find(layer_id)
        if layer is None:
            logger.debug(f"rename: no layer with id {layer_id!r}")
            return
        logger.info(f"Renamed layer {layer_id}: '{layer.name}' -> '{new_name}'")
        layer.name = new_name

    def replace_all(self, layers: Iterable[Layer]) -> None:
        """Swap in a whole new layer set and clear the selection.

        The incoming set is fully built (ids de-duplicated) before it replaces
        the current one, so a failure while building leaves the store as is.
        """
        incoming: List[Layer] = []
        taken: set = set()
        for layer in layers:
            if not layer.id or layer.id in taken:
                layer.id = _new_id(layer.kind, taken)
            taken.add(layer.id)
            incoming.append(layer)

        self._layers = incoming
        self._selected_id = None
        logger.info(f"Replaced layer set ({len(incoming)} layers)")

    def select(self, layer_id: Optional[str]) -> None:
        """Select a layer by id; ``None`` or an unknown id clears the selection."""
        if layer_id is not None and self.find(layer_id) is None:
            logger.debug(f"select: no layer with id {layer_id!r}")
            layer_id = None
        self._selected_id = layer_id


def _new_id(kind: str, taken: set) -> str:
    prefix = kind[:1] or "l"
    while True:
        candidate = f"{prefix}-{uuid.uuid4().hex[:12]}"
        if candidate not in taken:
            return candidate
