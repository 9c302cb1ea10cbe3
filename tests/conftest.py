# Third-party imports
import matplotlib

matplotlib.use("Agg")

import pytest

# Plancanvas imports
from plancanvas.layers import Furniture, LayerStore, Room, Text, Wall


@pytest.fixture
def store():
    """Layer store seeded with one layer of each drawn kind"""
    return LayerStore([
        Room(id="r1", name="Room 1", x=100, y=100, width=200, height=150),
        Wall(id="w1", name="Wall 1", x=100, y=100, points=[100, 100, 300, 100]),
        Furniture(id="f1", name="Bed", x=150, y=180, width=60, height=30),
        Text(id="t1", name="12'-0\"", x=120, y=90),
    ])
