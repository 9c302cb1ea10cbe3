# Standard library imports
import random

# Third-party imports
import pytest

# Plancanvas imports
from plancanvas.layers import (
    CustomRegion,
    Furniture,
    LayerStore,
    Room,
    Text,
    Wall,
    layer_from_dict,
    sample_layers,
)


class TestLayerStoreAdd:
    """Tests for LayerStore.add"""

    def test_add_assigns_id_when_missing(self):
        """Test that a layer without an id gets one"""
        store = LayerStore()
        room = store.add(Room(name="Hall", x=0, y=0, width=10, height=10))
        assert room.id
        assert store.find(room.id) is room

    def test_add_replaces_colliding_id(self, store):
        """Test that a colliding id is replaced with a fresh one"""
        room = store.add(Room(id="r1", name="Copy", x=0, y=0, width=1, height=1))
        assert room.id != "r1"
        assert len(set(store.ids())) == len(store)

    def test_add_keeps_selection(self, store):
        """Test that adding leaves the current selection in place"""
        store.select("f1")
        store.add(Text(name="Note"))
        assert store.selected_id == "f1"

    def test_ids_unique_over_random_add_remove(self):
        """Test that ids stay unique across an arbitrary add/remove sequence"""
        rng = random.Random(7)
        store = LayerStore()
        for _ in range(300):
            if len(store) and rng.random() < 0.4:
                store.remove(rng.choice(store.ids()))
            else:
                existing = store.ids()
                reused = rng.choice(existing) if existing and rng.random() < 0.5 else ""
                store.add(Room(id=reused, name="R", width=1, height=1))
            assert len(set(store.ids())) == len(store)


class TestLayerStoreMutations:
    """Tests for remove/rename/select/replace_all"""

    def test_remove_clears_selection_of_removed_layer(self, store):
        store.select("r1")
        store.remove("r1")
        assert store.find("r1") is None
        assert store.selected_id is None

    def test_remove_other_layer_keeps_selection(self, store):
        store.select("r1")
        store.remove("w1")
        assert store.selected_id == "r1"

    def test_remove_absent_is_noop(self, store):
        store.remove("missing")
        assert len(store) == 4

    def test_remove_selected(self, store):
        store.select("f1")
        removed = store.remove_selected()
        assert removed.name == "Bed"
        assert store.find("f1") is None
        assert store.remove_selected() is None

    def test_rename(self, store):
        store.rename("r1", "Lounge")
        assert store.find("r1").name == "Lounge"

    def test_rename_absent_is_noop(self, store):
        store.rename("missing", "X")
        assert [l.name for l in store] == ["Room 1", "Wall 1", "Bed", "12'-0\""]

    def test_select_unknown_clears(self, store):
        store.select("r1")
        store.select("nope")
        assert store.selected_id is None

    def test_replace_all_swaps_and_clears_selection(self, store):
        """Test that replace_all is a full replacement, never a union"""
        store.select("r1")
        store.replace_all([Room(name="Only", width=5, height=5)])
        assert [l.name for l in store] == ["Only"]
        assert store.selected_id is None

    def test_replace_all_deduplicates_ids(self):
        store = LayerStore()
        store.replace_all([Room(id="x", name="A"), Room(id="x", name="B"), Text(name="C")])
        ids = store.ids()
        assert len(set(ids)) == 3
        assert ids[0] == "x"

    def test_snapshot_is_independent_copy(self, store):
        snap = store.snapshot()
        snap[0].name = "Changed"
        assert store.find("r1").name == "Room 1"

    def test_rooms_only_returns_rooms(self, store):
        assert [r.id for r in store.rooms()] == ["r1"]


class TestLayerWireFormat:
    """Tests for Layer.to_dict and layer_from_dict"""

    def test_room_to_dict(self):
        room = Room(id="r1", name="Room 1", x=1, y=2, width=3, height=4)
        assert room.to_dict() == {
            "id": "r1", "type": "room", "name": "Room 1", "x": 1, "y": 2, "width": 3, "height": 4,
        }

    def test_room_without_dimensions_omits_keys(self):
        assert "width" not in Room(id="r", name="R").to_dict()

    def test_text_has_no_geometry_keys(self):
        data = Text(id="t", name="Hi", x=1, y=1).to_dict()
        assert set(data) == {"id", "type", "name", "x", "y"}

    def test_custom_region_points(self):
        region = CustomRegion(id="c", name="Zone", points=[0, 0, 10, 0, 10, 10])
        assert region.to_dict()["type"] == "custom"
        assert region.point_pairs() == [(0, 0), (10, 0), (10, 10)]

    def test_from_dict_builds_variants(self):
        wall = layer_from_dict({"id": "w", "type": "wall", "name": "W", "x": 0, "y": 0, "points": [0, 0, 5, 5]})
        assert isinstance(wall, Wall)
        assert wall.points == [0.0, 0.0, 5.0, 5.0]
        furn = layer_from_dict({"type": "furniture", "name": "Desk", "x": 1, "y": 1, "width": 2})
        assert isinstance(furn, Furniture)
        assert furn.height is None

    def test_from_dict_unknown_type(self):
        with pytest.raises(ValueError):
            layer_from_dict({"type": "door", "name": "D"})

    def test_from_dict_odd_points(self):
        with pytest.raises(ValueError):
            layer_from_dict({"type": "wall", "name": "W", "points": [0, 0, 1]})

    def test_sample_layers(self):
        kinds = [layer.kind for layer in sample_layers()]
        assert kinds == ["room", "wall", "furniture", "text"]
