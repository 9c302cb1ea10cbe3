# Standard library imports
import itertools

# Third-party imports
import pytest

# Plancanvas imports
from plancanvas.calibration import ScaleCalibration
from plancanvas.layers import CustomRegion, LayerStore, Room, Text
from plancanvas.segmentation import SegmentationAdapter
from plancanvas.tool_modes import (
    AutoScale,
    DrawRoom,
    Idle,
    Lasso,
    ManualScale,
    RenamePrompt,
    ToolModeController,
    ToolOverlay,
)


class DistancePrompt:
    """Scripted stand-in for the distance dialog"""

    def __init__(self, answer):
        self.answer = answer
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.answer


@pytest.fixture
def prompt():
    return DistancePrompt("2.0")


@pytest.fixture
def controller(store, prompt):
    return ToolModeController(
        store=store,
        calibration=ScaleCalibration(),
        segmentation=SegmentationAdapter(segmenter=lambda ref: []),
        request_distance=prompt,
    )


class TestModeArming:
    """Tests for mutual exclusion of tool modes"""

    def test_starts_idle(self, controller):
        assert isinstance(controller.mode, Idle)

    def test_toggle_arms_and_disarms(self, controller):
        controller.toggle("lasso")
        assert isinstance(controller.mode, Lasso)
        controller.toggle("lasso")
        assert isinstance(controller.mode, Idle)

    def test_arming_discards_other_progress(self, controller):
        controller.toggle("lasso")
        controller.canvas_click((1, 1))
        controller.canvas_click((2, 2))
        controller.toggle("manual_scale")
        assert controller.mode == ManualScale()
        controller.toggle("lasso")
        assert controller.mode == Lasso()

    def test_unknown_tool(self, controller):
        with pytest.raises(ValueError):
            controller.toggle("eraser")

    def test_exactly_one_mode_over_transition_sequences(self, controller):
        """Test that every reachable state holds exactly one mode value"""
        actions = [
            lambda c: c.toggle("manual_scale"),
            lambda c: c.toggle("auto_scale"),
            lambda c: c.toggle("draw_room"),
            lambda c: c.toggle("lasso"),
            lambda c: c.canvas_click((5, 5)),
            lambda c: c.canvas_double_click((5, 5)),
            lambda c: c.layer_click("t1", (0, 0)),
            lambda c: c.cancel(),
        ]
        for seq in itertools.product(range(len(actions)), repeat=3):
            c = ToolModeController(store=LayerStore([Text(id="t1", name="10'")]),
                                   request_distance=lambda: "1")
            for idx in seq:
                actions[idx](c)
                assert isinstance(c.mode, (Idle, ManualScale, AutoScale, DrawRoom, Lasso))

    def test_cancel_returns_to_idle(self, controller):
        controller.toggle("draw_room")
        controller.canvas_click((10, 10))
        controller.cancel()
        assert isinstance(controller.mode, Idle)
        assert controller.overlay().is_empty


class TestManualScale:
    """Tests for the manual two-point calibration"""

    def test_two_points_and_distance_sets_scale(self, controller, prompt):
        controller.toggle("manual_scale")
        controller.canvas_click((0, 0))
        assert prompt.calls == 0
        controller.canvas_click((100, 0))
        assert prompt.calls == 1
        assert controller.calibration.value == 50.0
        assert isinstance(controller.mode, Idle)

    @pytest.mark.parametrize("answer", ["abc", "0", "-2", "", None])
    def test_invalid_distance_keeps_previous_scale(self, store, answer):
        cal = ScaleCalibration(7.0)
        c = ToolModeController(store=store, calibration=cal, request_distance=DistancePrompt(answer))
        c.toggle("manual_scale")
        c.canvas_click((0, 0))
        c.canvas_click((100, 0))
        assert cal.value == 7.0
        assert isinstance(c.mode, Idle)

    def test_coincident_points_keep_previous_scale(self, store, prompt):
        cal = ScaleCalibration(50.0)
        c = ToolModeController(store=store, calibration=cal, request_distance=prompt)
        c.toggle("manual_scale")
        c.canvas_click((10, 10))
        c.canvas_click((10, 10))
        assert cal.value == 50.0
        assert isinstance(c.mode, Idle)

    def test_overlay_shows_collected_points(self, controller):
        controller.toggle("manual_scale")
        controller.canvas_click((3, 4))
        assert controller.overlay() == ToolOverlay(scale_points=((3.0, 4.0),))


class TestAutoScale:
    """Tests for dimension-label assisted calibration"""

    def test_label_then_points(self, controller):
        controller.toggle("auto_scale")
        controller.layer_click("t1", (120, 90))
        assert controller.mode == AutoScale(real_value=12.0)
        controller.canvas_click((0, 0))
        controller.canvas_click((50, 0))
        assert controller.calibration.value == pytest.approx(50 / 12)
        assert isinstance(controller.mode, Idle)

    def test_coincident_points_keep_previous_scale(self, store):
        cal = ScaleCalibration(50.0)
        c = ToolModeController(store=store, calibration=cal)
        c.toggle("auto_scale")
        c.layer_click("t1")
        c.canvas_click((5, 5))
        c.canvas_click((5, 5))
        assert cal.value == 50.0
        assert isinstance(c.mode, Idle)

    def test_canvas_clicks_ignored_while_awaiting_dimension(self, controller):
        controller.toggle("auto_scale")
        controller.canvas_click((0, 0))
        controller.canvas_click((50, 0))
        assert controller.mode == AutoScale()
        assert controller.calibration.value is None

    def test_non_text_layer_is_noop(self, controller):
        controller.toggle("auto_scale")
        controller.layer_click("r1", (150, 150))
        assert controller.mode == AutoScale()
        assert controller.store.selected_id is None

    def test_unparsable_label_is_noop(self, store, controller):
        store.add(Text(id="t2", name="Kitchen"))
        controller.toggle("auto_scale")
        controller.layer_click("t2", (0, 0))
        assert controller.mode == AutoScale()

    def test_injected_extractor(self, store):
        c = ToolModeController(store=store, extract_dimension=lambda label: 3.0)
        c.toggle("auto_scale")
        c.layer_click("t1")
        assert c.mode.real_value == 3.0

    def test_layer_click_after_dimension_selects(self, controller):
        controller.toggle("auto_scale")
        controller.layer_click("t1")
        controller.layer_click("r1", (5, 5))
        assert controller.store.selected_id == "r1"
        assert controller.mode == AutoScale(real_value=12.0)


class TestDrawRoom:
    """Tests for two-click room drawing"""

    def test_rectangle_normalized_from_anchor(self, controller):
        controller.toggle("draw_room")
        controller.canvas_click((10, 10))
        assert controller.overlay().anchor == (10.0, 10.0)
        controller.canvas_click((5, 40))
        room = controller.store.rooms()[-1]
        assert (room.x, room.y, room.width, room.height) == (5, 10, 5, 30)
        assert isinstance(controller.mode, Idle)

    def test_new_room_named_sequentially(self, controller):
        controller.toggle("draw_room")
        controller.canvas_click((0, 0))
        controller.canvas_click((10, 10))
        assert controller.store.rooms()[-1].name == "Room 2"

    def test_does_not_change_selection(self, controller):
        controller.store.select("f1")
        controller.toggle("draw_room")
        controller.canvas_click((0, 0))
        controller.canvas_click((10, 10))
        assert controller.store.selected_id == "f1"


class TestLasso:
    """Tests for freeform region capture"""

    def test_commit_with_three_points(self, controller):
        controller.toggle("lasso")
        for p in [(0, 0), (10, 0), (10, 10)]:
            controller.canvas_click(p)
        before = len(controller.store)
        controller.canvas_double_click((10, 10))
        assert len(controller.store) == before + 1
        region = list(controller.store)[-1]
        assert isinstance(region, CustomRegion)
        assert region.points == [0, 0, 10, 0, 10, 10]
        assert isinstance(controller.mode, Idle)

    def test_commit_with_two_points_is_noop(self, controller):
        controller.toggle("lasso")
        controller.canvas_click((0, 0))
        controller.canvas_click((10, 0))
        before = len(controller.store)
        controller.canvas_double_click((10, 0))
        assert len(controller.store) == before
        assert controller.mode == Lasso(points=((0.0, 0.0), (10.0, 0.0)))

    def test_repeated_last_point_is_not_a_vertex(self, controller):
        controller.toggle("lasso")
        for p in [(0, 0), (10, 0), (10, 10), (10, 10)]:
            controller.canvas_click(p)
        controller.canvas_double_click((10, 10))
        assert list(controller.store)[-1].points == [0, 0, 10, 0, 10, 10]

    def test_two_points_plus_repeat_is_noop(self, controller):
        controller.toggle("lasso")
        for p in [(0, 0), (10, 0), (10, 0)]:
            controller.canvas_click(p)
        before = len(controller.store)
        controller.canvas_double_click((10, 0))
        assert len(controller.store) == before
        assert controller.mode == Lasso(points=((0.0, 0.0), (10.0, 0.0)))

    def test_single_clicks_never_commit(self, controller):
        controller.toggle("lasso")
        before = len(controller.store)
        for i in range(6):
            controller.canvas_click((i, i * 2))
        assert len(controller.store) == before
        assert len(controller.overlay().lasso_points) == 6

    def test_double_click_outside_lasso_is_noop(self, controller):
        before = len(controller.store)
        controller.canvas_double_click((1, 1))
        assert len(controller.store) == before


class TestSelectionAndRename:
    """Tests for idle clicks, layer selection and renaming"""

    def test_layer_click_selects_and_opens_rename(self, controller):
        controller.layer_click("r1", (130, 140))
        assert controller.store.selected_id == "r1"
        assert controller.rename_prompt == RenamePrompt("r1", "Room 1", (130, 140))

    def test_commit_rename(self, controller):
        controller.layer_click("f1")
        controller.commit_rename("King Bed")
        assert controller.store.find("f1").name == "King Bed"
        assert controller.rename_prompt is None

    def test_commit_rename_without_prompt_is_noop(self, controller):
        controller.commit_rename("X")
        assert [l.name for l in controller.store][0] == "Room 1"

    def test_idle_canvas_click_clears_selection_and_prompt(self, controller):
        controller.layer_click("r1")
        controller.canvas_click((0, 0))
        assert controller.store.selected_id is None
        assert controller.rename_prompt is None

    def test_unknown_layer_click_is_noop(self, controller):
        controller.layer_click("missing")
        assert controller.store.selected_id is None

    def test_delete_selected(self, controller):
        controller.layer_click("w1")
        deleted = controller.delete_selected()
        assert deleted.id == "w1"
        assert controller.store.find("w1") is None
        assert controller.rename_prompt is None

    def test_delete_without_selection(self, controller):
        assert controller.delete_selected() is None
        assert len(controller.store) == 4

    def test_arming_tool_closes_rename_prompt(self, controller):
        controller.layer_click("r1")
        controller.toggle("lasso")
        assert controller.rename_prompt is None
