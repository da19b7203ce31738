"""Widget tests: slider bar, master slider, filters, grid view, zoom and image viewer."""
import pytest
from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QKeyEvent
from PySide6.QtWidgets import QLabel

from core.dimensions import Dimension, DimensionType
from core.grid_builder import GridCell, build_grid
from core.keyboard_ownership import scrub_registry, viewer_registry
from gui.components.collapsible_section import CollapsibleSection
from gui.dimension_filter import MultiValueFilter, SingleValueFilter
from gui.image_cell import ImageCell
from gui.image_viewer import ImageViewer
from gui.master_slider import MasterSlider
from gui.slider_bar import SliderBar
from gui.xy_grid import EMPTY_TEXT, XYGridView
from gui.zoom_control import ZoomControl, clamp_cell_size


def _key(key, modifiers=Qt.NoModifier):
    return QKeyEvent(QEvent.Type.KeyPress, key, modifiers)


class StubLoader:
    """Image loader stand-in that never touches disk."""

    def __init__(self):
        self.requested = []

    def pixmap(self, relative_path):
        self.requested.append(relative_path)
        return None


# ===================================================================
# SliderBar
# ===================================================================

class TestSliderBar:
    def test_arrows_step_without_wrap(self, qapp):
        bar = SliderBar(("3", "5", "7"), "5")
        emitted = []
        bar.value_changed.connect(emitted.append)
        bar.keyPressEvent(_key(Qt.Key_Right))
        bar.keyPressEvent(_key(Qt.Key_Up))
        assert emitted == ["7"]
        bar.keyPressEvent(_key(Qt.Key_Left))
        bar.keyPressEvent(_key(Qt.Key_Down))
        bar.keyPressEvent(_key(Qt.Key_Down))
        assert emitted == ["7", "5", "3"]
        assert bar.slider.value() == 0

    def test_set_current_is_silent(self, qapp):
        bar = SliderBar(("3", "5", "7"))
        emitted = []
        bar.value_changed.connect(emitted.append)
        bar.set_current("7")
        assert emitted == []
        assert bar.slider.value() == 2
        assert bar.value_label.text() == "7"

    def test_dragging_emits(self, qapp):
        bar = SliderBar(("3", "5", "7"))
        emitted = []
        bar.value_changed.connect(emitted.append)
        bar.slider.setValue(1)
        assert emitted == ["5"]

    def test_single_value_disables_slider(self, qapp):
        assert not SliderBar(("3",)).slider.isEnabled()


# ===================================================================
# MasterSlider
# ===================================================================

class TestMasterSlider:
    def test_registers_and_newest_owns_keys(self, qapp, config):
        first = MasterSlider("cfg", ("3", "7"), config_manager=config)
        second = MasterSlider("step", ("500", "1000"), config_manager=config)
        assert scrub_registry.count == 2
        assert scrub_registry.is_active(second)
        first.claim()
        assert scrub_registry.is_active(first)

    def test_focus_claims_ownership(self, qapp, config):
        first = MasterSlider("cfg", ("3", "7"), config_manager=config)
        MasterSlider("step", ("500", "1000"), config_manager=config)
        first.eventFilter(first.slider_bar.slider, QEvent(QEvent.Type.FocusIn))
        assert scrub_registry.is_active(first)

    def test_key_actions_step_without_wrap(self, qapp, config):
        slider = MasterSlider("cfg", ("3", "7"), config_manager=config)
        emitted = []
        slider.value_changed.connect(emitted.append)
        assert scrub_registry.dispatch("next") is True
        assert scrub_registry.dispatch("next") is True
        assert emitted == ["7"]
        assert slider.handle_key_action("zoom") is False

    def test_shutdown_deregisters_and_promotes_previous(self, qapp, config):
        first = MasterSlider("cfg", ("3", "7"), config_manager=config)
        second = MasterSlider("step", ("500", "1000"), config_manager=config)
        second.shutdown()
        assert scrub_registry.active is first

    def test_play_button_drives_autoplay(self, qapp, config, fake_timers):
        slider = MasterSlider("cfg", ("3", "5", "7"), config_manager=config, timer_factory=fake_timers)
        emitted, playing = [], []
        slider.value_changed.connect(emitted.append)
        slider.playing_changed.connect(playing.append)
        slider.play_button.click()
        assert slider.is_playing
        fake_timers.created[-1].advance(1000)
        assert emitted == ["5"]
        assert slider.slider_bar.current_value == "5"
        slider.play_button.click()
        assert playing == [True, False]

    def test_single_value_cannot_play(self, qapp, config):
        slider = MasterSlider("cfg", ("3",), config_manager=config)
        assert not slider.play_button.isEnabled()

    def test_speed_combo_sets_scheduler_speed(self, qapp, config, fake_timers):
        slider = MasterSlider("cfg", ("3", "7"), config_manager=config, timer_factory=fake_timers)
        slider.speed_combo.setCurrentIndex(slider.speed_combo.findData(500))
        assert slider.scheduler.speed_ms == 500

    def test_loop_checkbox(self, qapp, config):
        slider = MasterSlider("cfg", ("3", "7"), config_manager=config)
        slider.loop_checkbox.setChecked(True)
        assert slider.scheduler.loop is True


# ===================================================================
# Dimension filters
# ===================================================================

@pytest.fixture()
def sampler():
    return Dimension("sampler", DimensionType.STRING, ("ddim", "euler", "heun"))


class TestDimensionFilters:
    def test_single_defaults_to_first(self, qapp, sampler):
        widget = SingleValueFilter(sampler)
        assert widget.current_value == "ddim"

    def test_single_emits_selection(self, qapp, sampler):
        widget = SingleValueFilter(sampler)
        emitted = []
        widget.value_selected.connect(emitted.append)
        widget.combo.setCurrentIndex(2)
        assert emitted == ["heun"]

    def test_multi_buttons_disabled_at_extremes(self, qapp, sampler):
        widget = MultiValueFilter(sampler)
        assert not widget.all_button.isEnabled()
        assert widget.none_button.isEnabled()
        widget.set_selected([])
        assert widget.all_button.isEnabled()
        assert not widget.none_button.isEnabled()
        assert widget.selected_values() == frozenset()

    def test_multi_reports_requests(self, qapp, sampler):
        widget = MultiValueFilter(sampler, ["ddim"])
        toggled, soloed = [], []
        widget.value_toggled.connect(toggled.append)
        widget.value_soloed.connect(soloed.append)
        widget.checkboxes["euler"].click()
        assert toggled == ["euler"]
        assert soloed == []


# ===================================================================
# XYGridView
# ===================================================================

class TestXYGridView:
    def test_empty_state(self, qapp, config, sample_artifacts, sample_dims):
        view = XYGridView(StubLoader(), config)
        view.set_grid(build_grid(sample_artifacts, sample_dims["seed"], None, effective_sets={"seed": frozenset()}), "seed")
        assert view.is_empty
        assert view.empty_text == EMPTY_TEXT

    def test_cells_and_navigation(self, qapp, config, sample_artifacts, sample_dims):
        loader = StubLoader()
        view = XYGridView(loader, config)
        result = build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"])
        view.set_grid(result, "seed", "step", "cfg")
        assert set(view.cells) == {"42|500", "123|500", "42|1000", "123|1000"}
        assert view.cell("123|1000").is_missing
        assert view.cell("42|500").slider_bar is not None
        assert [key for key, _ in view.navigation_list()] == ["42|500", "123|500", "42|1000"]
        assert len(loader.requested) == 3

    def test_cell_slider_and_click_signals(self, qapp, config, sample_artifacts, sample_dims):
        view = XYGridView(StubLoader(), config)
        view.set_grid(build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"]),
                      "seed", "step", "cfg")
        slider_changes, clicks = [], []
        view.slider_value_changed.connect(lambda key, value: slider_changes.append((key, value)))
        view.cell_clicked.connect(lambda key, path: clicks.append((key, path)))
        view.cell("42|500").slider_bar.step(1)
        view._on_cell_clicked(view.cell("42|500"))
        assert slider_changes == [("42|500", "7")]
        assert clicks == [("42|500", "ckpt/seed=42&step=500&cfg=3&_00001_.png")]

    def test_same_shape_updates_in_place(self, qapp, config, sample_artifacts, sample_dims):
        view = XYGridView(StubLoader(), config)
        args = (sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"])
        view.set_grid(build_grid(*args), "seed", "step", "cfg")
        widget = view.cell("42|500")
        view.set_grid(build_grid(*args, slider_overrides={"42|500": "7"}), "seed", "step", "cfg")
        assert view.cell("42|500") is widget
        assert widget.cell.slider_value == "7"
        assert widget.slider_bar.current_value == "7"

    def test_set_cell_size_rebuilds_cells(self, qapp, config, sample_artifacts, sample_dims):
        view = XYGridView(StubLoader(), config)
        view.set_grid(build_grid(sample_artifacts, sample_dims["seed"], sample_dims["step"], sample_dims["cfg"]),
                      "seed", "step", "cfg")
        widget = view.cell("42|500")
        view.set_cell_size(200)
        assert view.cell("42|500") is not widget
        assert view.cell("42|500").image_label.size == 200
        assert view.cell("42|500").slider_bar.maximumWidth() == 200

    def test_flat_mode(self, qapp, config, sample_artifacts):
        view = XYGridView(StubLoader(), config)
        view.set_grid(build_grid(sample_artifacts, None, None))
        assert len(view.navigation_list()) == 5
        assert view.cells == {}


# ===================================================================
# ImageViewer
# ===================================================================

ENTRIES = [("42|500", "a.png"), ("123|500", "b.png"), ("42|1000", "c.png")]


class TestImageViewer:
    def test_open_registers_and_close_deregisters(self, qapp):
        viewer = ImageViewer(StubLoader())
        closed = []
        viewer.closeRequested.connect(lambda: closed.append(True))
        viewer.open(ENTRIES, "b.png")
        assert viewer_registry.is_active(viewer)
        assert viewer.current_key == "123|500"
        assert viewer_registry.dispatch("close") is True
        assert viewer_registry.active is None
        assert closed == [True]

    def test_left_right_wrap(self, qapp):
        viewer = ImageViewer(StubLoader())
        viewer.open(ENTRIES, "c.png")
        viewer.handle_key_action("next_image")
        assert viewer.current_path == "a.png"
        viewer.handle_key_action("previous_image")
        assert viewer.current_path == "c.png"

    def test_up_down_request_slider_steps(self, qapp):
        viewer = ImageViewer(StubLoader())
        steps = []
        viewer.sliderStepRequested.connect(lambda key, direction: steps.append((key, direction)))
        viewer.open(ENTRIES, "a.png")
        assert viewer.handle_key_action("slider_next") is True
        assert viewer.handle_key_action("slider_previous") is True
        assert steps == [("42|500", 1), ("42|500", -1)]

    def test_set_entries_keeps_position_when_key_gone(self, qapp):
        viewer = ImageViewer(StubLoader())
        viewer.open(ENTRIES, "b.png")
        viewer.set_entries([("42|500", "a.png"), ("42|1000", "c.png")], key="123|500")
        assert viewer.current_path == "c.png"


# ===================================================================
# CollapsibleSection
# ===================================================================

class TestCollapsibleSection:
    def test_toggle_emits_once_per_change(self, qapp):
        section = CollapsibleSection("Filter")
        states = []
        section.toggled.connect(states.append)
        section.set_collapsed(True)
        section.set_collapsed(True)
        section.set_collapsed(False)
        assert states == [True, False]

    def test_set_body_replaces_content(self, qapp):
        section = CollapsibleSection("Filter", collapsed=True)
        first, second = QLabel("a"), QLabel("b")
        section.set_body(first)
        section.set_body(second)
        assert section.body_widget is second
        section.set_summary("2/3")
        assert section.summary == "2/3"
        assert section.is_collapsed


# ===================================================================
# ImageCell
# ===================================================================

def _cell(slider_value):
    return GridCell(row=0, column=0, x_value="42", y_value=None, key="42|",
                    slider_value=slider_value, artifact=None)


class TestImageCell:
    def _changes(self, cell_widget):
        changes = []
        cell_widget.slider_changed.connect(lambda key, value: changes.append((key, value)))
        return changes

    def test_right_at_last_value_wraps_to_first(self, qapp):
        widget = ImageCell(_cell("7"), 128, {}, slider_values=("3", "7"), slider_name="cfg")
        changes = self._changes(widget)
        widget.keyPressEvent(_key(Qt.Key_Right))
        assert changes == [("42|", "3")]

    def test_left_at_first_value_wraps_to_last(self, qapp):
        widget = ImageCell(_cell("3"), 128, {}, slider_values=("3", "5", "7"))
        changes = self._changes(widget)
        widget.keyPressEvent(_key(Qt.Key_Left))
        widget.keyPressEvent(_key(Qt.Key_Up))
        assert changes == [("42|", "7"), ("42|", "5")]

    def test_embedded_slider_leaves_arrows_to_cell(self, qapp):
        widget = ImageCell(_cell("7"), 128, {}, slider_values=("3", "7"))
        changes = self._changes(widget)
        widget.slider_bar.keyPressEvent(_key(Qt.Key_Right))
        assert changes == []
        assert widget.focusPolicy() == Qt.StrongFocus
        assert widget.slider_bar.slider.focusPolicy() == Qt.NoFocus

    def test_cell_without_slider_ignores_arrows(self, qapp):
        widget = ImageCell(_cell(None), 128, {})
        changes = self._changes(widget)
        widget.keyPressEvent(_key(Qt.Key_Right))
        assert changes == []
        assert widget.slider_bar is None


# ===================================================================
# ZoomControl
# ===================================================================

class TestZoomControl:
    def test_range_step_and_label(self, qapp):
        zoom = ZoomControl(300)
        assert zoom.label.text() == "Zoom"
        assert (zoom.slider.minimum(), zoom.slider.maximum()) == (100, 600)
        assert zoom.slider.singleStep() == 10
        assert zoom.value == 300
        assert zoom.value_label.text() == "300px"

    def test_moving_slider_emits_size(self, qapp):
        zoom = ZoomControl(200)
        sizes = []
        zoom.zoom_changed.connect(sizes.append)
        zoom.slider.setValue(600)
        zoom.slider.setValue(100)
        assert sizes == [600, 100]
        assert zoom.value_label.text() == "100px"

    def test_drag_between_steps_snaps(self, qapp):
        zoom = ZoomControl(200)
        sizes = []
        zoom.zoom_changed.connect(sizes.append)
        zoom.slider.setValue(347)
        assert sizes == [350]
        assert zoom.slider.value() == 350

    def test_set_value_is_silent(self, qapp):
        zoom = ZoomControl(200)
        sizes = []
        zoom.zoom_changed.connect(sizes.append)
        zoom.set_value(420)
        assert sizes == []
        assert zoom.value == 420

    def test_clamp_cell_size(self):
        assert clamp_cell_size(64) == 100
        assert clamp_cell_size(9000) == 600
        assert clamp_cell_size(251) == 250
        assert clamp_cell_size("big") == 100
