from typing import Dict, Optional
from PySide6.QtWidgets import QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QStackedWidget, QSplitter, QFileDialog
from PySide6.QtCore import Qt, QSettings
from PySide6.QtGui import QAction, QKeySequence
import logging
import os
import time

from core.dataset_scanner import DatasetScanner
from core.dimensions import Dataset, FilterMode, Role, RoleAssignment
from core.event_system import (
    event_system, EventType, DatasetLoadedEventData, RoleChangedEventData, FilterModeChangedEventData,
    SelectionChangedEventData, SliderValueChangedEventData, PlaybackStateEventData,
    HeaderClickedEventData, CellClickedEventData, StatusMessageEventData,
)
from core.filter_engine import FilterState
from core.grid_builder import FLAT_CELL_KEY, GridResult, build_grid, resolve_slider_value
from core.preload import preload_order
from core.scrub import step_value
from .dimension_panel import DimensionPanel
from .hotkey_manager import HotkeyManager
from .image_loader import ImageLoader
from .image_viewer import ImageViewer
from .master_slider import MasterSlider
from .status_bar import CustomStatusBar
from .xy_grid import XYGridView
from .zoom_control import ZoomControl, clamp_cell_size


class MainWindow(QMainWindow):
    """Owns the loaded dataset plus its role, filter and slider state.

    Every change goes through the same path: update state, publish the
    matching event, rebuild the grid.
    """

    def __init__(self, config_manager, timer_factory=None):
        super().__init__()
        self.config_manager = config_manager
        self.scanner = DatasetScanner(config_manager)
        self.image_loader = ImageLoader(config_manager, self)
        self._timer_factory = timer_factory

        self.root: Optional[str] = None
        self.dataset = Dataset()
        self.roles = RoleAssignment()
        self.filters = FilterState()
        self.slider_overrides: Dict[str, str] = {}
        self.default_slider_value: Optional[str] = None
        self.grid_result = GridResult()
        self.master_slider: Optional[MasterSlider] = None

        self._setup_ui()
        self._setup_actions()
        self._setup_event_subscriptions()
        self.hotkey_manager = HotkeyManager(self, self.config_manager.get("hotkeys", {}))

        self.setAcceptDrops(True)
        self.setWindowTitle("SampleGrid")
        settings = QSettings("SampleGrid", "MainWindow")
        geometry = settings.value("geometry")
        if geometry:
            self.restoreGeometry(geometry)
        else:
            self.resize(1200, 800)

    def _setup_ui(self):
        self.dimension_panel = DimensionPanel()
        self.dimension_panel.role_requested.connect(self._on_role_requested)
        self.dimension_panel.mode_requested.connect(self._on_mode_requested)
        self.dimension_panel.value_toggled.connect(lambda name, value: self._apply_selection(name, self.filters.toggle, value))
        self.dimension_panel.value_soloed.connect(lambda name, value: self._apply_selection(name, self.filters.solo, value))
        self.dimension_panel.value_selected.connect(lambda name, value: self._apply_selection(name, self.filters.set_selection, [value]))
        self.dimension_panel.all_requested.connect(lambda name: self._apply_selection(name, self.filters.select_all))
        self.dimension_panel.none_requested.connect(lambda name: self._apply_selection(name, self.filters.select_none))

        self.grid_page = QWidget()
        grid_layout = QVBoxLayout(self.grid_page)
        grid_layout.setContentsMargins(0, 0, 0, 0)
        grid_layout.setSpacing(0)
        controls = QHBoxLayout()
        controls.setContentsMargins(0, 0, 0, 0)
        self.master_slider_container = QWidget()
        self._master_layout = QVBoxLayout(self.master_slider_container)
        self._master_layout.setContentsMargins(0, 0, 0, 0)
        controls.addWidget(self.master_slider_container, 1)
        self.zoom_control = ZoomControl(clamp_cell_size(self.config_manager.get("gui.cell_size", 250)))
        self.zoom_control.zoom_changed.connect(self.set_cell_size)
        controls.addWidget(self.zoom_control)
        grid_layout.addLayout(controls)

        self.grid_view = XYGridView(self.image_loader, self.config_manager)
        self.grid_view.header_clicked.connect(self._on_header_clicked)
        self.grid_view.cell_clicked.connect(self._on_cell_clicked)
        self.grid_view.slider_value_changed.connect(self._on_cell_slider_changed)
        grid_layout.addWidget(self.grid_view, 1)
        self.grid_view.set_cell_size(self.zoom_control.value)

        self.image_viewer = ImageViewer(self.image_loader, self.config_manager)
        self.image_viewer.closeRequested.connect(self.close_image_viewer)
        self.image_viewer.sliderStepRequested.connect(self.step_cell_slider)

        self.stacked_widget = QStackedWidget()
        self.stacked_widget.addWidget(self.grid_page)
        self.stacked_widget.addWidget(self.image_viewer)

        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(self.dimension_panel)
        splitter.addWidget(self.stacked_widget)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        self.status_bar = CustomStatusBar(self.config_manager, self)
        self.setStatusBar(self.status_bar)

    def _setup_actions(self):
        file_menu = self.menuBar().addMenu("&File")
        open_action = QAction("&Open Directory…", self)
        open_action.setShortcut(QKeySequence.Open)
        open_action.triggered.connect(self.open_directory_dialog)
        file_menu.addAction(open_action)
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

    def _setup_event_subscriptions(self):
        event_system.subscribe(EventType.STATUS_MESSAGE, self._handle_status_message)

    def _handle_status_message(self, event_data: StatusMessageEventData):
        self.status_bar.setProcessMessage(event_data.message, event_data.timeout)

    def _publish(self, event_cls, event_type: EventType, **fields):
        event_system.publish(event_cls(event_type=event_type, source="main_window", timestamp=time.time(), **fields))

    # ------------------------------------------------------------------
    # Dataset loading
    # ------------------------------------------------------------------

    def open_directory_dialog(self):
        start = self.config_manager.get("dataset.last_directory", "") or os.path.expanduser("~")
        directory = QFileDialog.getExistingDirectory(self, "Open Dataset Directory", start)
        if directory:
            self.load_directory(directory)

    def load_directory(self, directory_path: str):
        logging.info(f"MainWindow: loading dataset from {directory_path}")
        dataset = self.scanner.scan(directory_path)
        self.set_dataset(dataset, directory_path)
        if not dataset.is_empty:
            self.config_manager.set("dataset.last_directory", directory_path)

    def set_dataset(self, dataset: Dataset, root: Optional[str] = None):
        self.close_image_viewer()
        self.dataset = dataset
        self.root = root
        dimensions = list(dataset.dimensions)
        self.roles.reset(dimensions)
        self.filters.reset(dimensions)
        self.slider_overrides.clear()
        self.default_slider_value = None
        self.image_loader.set_root(root)
        self.dimension_panel.set_dimensions(dimensions)
        self._publish(DatasetLoadedEventData, EventType.DATASET_LOADED, root=root or "",
                      artifact_count=len(dataset.artifacts), dimension_count=len(dimensions))
        if dataset.is_empty:
            self._publish(StatusMessageEventData, EventType.STATUS_MESSAGE,
                          message=f"No images found in {root}" if root else "No dataset loaded", timeout=5000)
        self.refresh()
        self._start_preload()

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def _on_role_requested(self, dimension: str, role_value: str):
        self.assign_role(dimension, Role(role_value))

    def assign_role(self, dimension: str, role: Role):
        previous = (self.roles.x, self.roles.y, self.roles.slider)
        changes = self.roles.assign(dimension, role)
        if not changes:
            return
        if self.roles.slider != previous[2]:
            self.slider_overrides.clear()
            self.default_slider_value = None
        elif (self.roles.x, self.roles.y) != previous[:2]:
            # Cell keys change with the axes; per-cell values no longer apply.
            self.slider_overrides.clear()
        for name, new_role in changes.items():
            self._publish(RoleChangedEventData, EventType.ROLE_ASSIGNMENT_CHANGED, dimension=name, role=new_role.value)
        self.refresh()
        self._start_preload()

    def _on_mode_requested(self, dimension: str, mode_value: str):
        self.set_filter_mode(dimension, FilterMode(mode_value))

    def set_filter_mode(self, dimension: str, mode: FilterMode):
        if not self.filters.set_mode(dimension, mode):
            return
        self._publish(FilterModeChangedEventData, EventType.FILTER_MODE_CHANGED, dimension=dimension, mode=mode.value)
        self.refresh()
        self._start_preload()

    def _apply_selection(self, dimension: str, operation, *args):
        selected = operation(dimension, *args)
        self._publish(SelectionChangedEventData, EventType.SELECTION_CHANGED,
                      dimension=dimension, selected_values=frozenset(selected))
        self.refresh()
        self._start_preload()

    def _on_header_clicked(self, dimension: str, value: str):
        self._publish(HeaderClickedEventData, EventType.HEADER_CLICKED, dimension=dimension, value=value)
        if self.filters.mode_of(dimension) != FilterMode.MULTI:
            self.filters.set_mode(dimension, FilterMode.MULTI)
            self._publish(FilterModeChangedEventData, EventType.FILTER_MODE_CHANGED,
                          dimension=dimension, mode=FilterMode.MULTI.value)
        self._apply_selection(dimension, self.filters.solo, value)

    def _on_cell_slider_changed(self, key: str, value: str):
        self.set_cell_slider_value(key, value)

    def set_cell_slider_value(self, key: str, value: str):
        if key == FLAT_CELL_KEY:
            self.set_master_slider_value(value)
            return
        self.slider_overrides[key] = value
        self._publish(SliderValueChangedEventData, EventType.SLIDER_VALUE_CHANGED, cell_key=key, value=value)
        self.refresh()

    def _on_master_value_changed(self, value: str):
        self.set_master_slider_value(value)

    def set_master_slider_value(self, value: str):
        self.default_slider_value = value
        self.slider_overrides.clear()
        if self.master_slider is not None and self.master_slider.current_value != value:
            self.master_slider.set_current(value)
        self._publish(SliderValueChangedEventData, EventType.SLIDER_VALUE_CHANGED, cell_key=None, value=value)
        self.refresh()

    def step_cell_slider(self, key: str, direction: int):
        """Move one cell's slider a step without wrapping."""
        slider_dim = self.roles.slider
        if slider_dim is None:
            return
        cell = self.grid_result.cell_by_key(key)
        if cell is not None:
            current = cell.slider_value
        else:
            current = resolve_slider_value(key, slider_dim, self.slider_overrides, self.default_slider_value)
        value = step_value(self.grid_result.slider_values, current, direction, loop=False)
        if value is not None:
            self.set_cell_slider_value(key, value)

    def set_cell_size(self, size: int):
        if self.zoom_control.value != size:
            self.zoom_control.set_value(size)
        self.grid_view.set_cell_size(self.zoom_control.value)
        self.config_manager.set("gui.cell_size", self.zoom_control.value)
        logging.debug(f"MainWindow: cell size {self.zoom_control.value}px")

    def _on_playing_changed(self, playing: bool):
        self._update_scrub_status()
        self._publish(PlaybackStateEventData, EventType.PLAYBACK_STATE_CHANGED, playing=playing)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def refresh(self):
        """Rebuild the grid from the current state and push it to every view."""
        x_dim, y_dim, slider_dim = self.roles.x, self.roles.y, self.roles.slider
        self.grid_result = build_grid(
            self.dataset.artifacts,
            x_dim,
            y_dim,
            slider_dim,
            effective_sets=self.filters.effective_sets(),
            slider_overrides=self.slider_overrides,
            default_slider_value=self.default_slider_value,
        )
        self.dimension_panel.refresh(self.roles, self.filters)
        self.grid_view.set_grid(
            self.grid_result,
            x_dim.name if x_dim else None,
            y_dim.name if y_dim else None,
            slider_dim.name if slider_dim else None,
        )
        self._update_master_slider()
        self.status_bar.setSummary(self._summary_text())
        self._update_scrub_status()
        if self.stacked_widget.currentWidget() is self.image_viewer:
            key = None if self.grid_result.is_flat else self.image_viewer.current_key
            self.image_viewer.set_entries(self.grid_view.navigation_list(), key=key)

    def _update_master_slider(self):
        slider_dim = self.roles.slider
        if slider_dim is None:
            self._remove_master_slider()
            return
        if self.master_slider is not None and self.master_slider.dimension_name != slider_dim.name:
            self._remove_master_slider()

        values = self.grid_result.slider_values
        current = resolve_slider_value(FLAT_CELL_KEY, slider_dim, {}, self.default_slider_value)
        if self.master_slider is None:
            self.master_slider = MasterSlider(slider_dim.name, values, current, self.config_manager,
                                              timer_factory=self._timer_factory)
            self.master_slider.value_changed.connect(self._on_master_value_changed)
            self.master_slider.playing_changed.connect(self._on_playing_changed)
            self._master_layout.addWidget(self.master_slider)
        elif tuple(self.master_slider.values) != tuple(values):
            self.master_slider.set_values(values, current)
        elif self.master_slider.current_value != current:
            self.master_slider.set_current(current)

    def _remove_master_slider(self):
        if self.master_slider is None:
            return
        self.master_slider.shutdown()
        self._master_layout.removeWidget(self.master_slider)
        self.master_slider.deleteLater()
        self.master_slider = None

    def _update_scrub_status(self):
        slider = self.master_slider
        if slider is None:
            self.status_bar.setScrubState(None)
        else:
            self.status_bar.setScrubState(slider.dimension_name, slider.current_value, slider.is_playing)

    def _summary_text(self) -> str:
        result = self.grid_result
        if self.dataset.is_empty:
            return ""
        if result.is_flat:
            return f"{len(result.flat)} of {len(self.dataset.artifacts)} images"
        if result.is_empty:
            return "No images to display"
        return (f"{result.column_count}×{result.row_count} grid: "
                f"{result.filled_count} filled, {result.missing_count} missing")

    def _start_preload(self):
        if self.dataset.is_empty:
            self.image_loader.cancel_preload()
            return
        self.image_loader.preload(preload_order(self.dataset.artifacts, self.roles.slider, self.filters.effective_sets()))

    # ------------------------------------------------------------------
    # Image viewer
    # ------------------------------------------------------------------

    def _on_cell_clicked(self, key: str, relative_path: str):
        self._publish(CellClickedEventData, EventType.CELL_CLICKED, cell_key=key, relative_path=relative_path)
        self.open_image_viewer(relative_path)

    def open_image_viewer(self, relative_path: str):
        self.image_viewer.open(self.grid_view.navigation_list(), relative_path)
        self.stacked_widget.setCurrentWidget(self.image_viewer)
        self.image_viewer.setFocus()

    def close_image_viewer(self):
        if self.stacked_widget.currentWidget() is not self.image_viewer:
            return
        # close_viewer() re-emits closeRequested; switch pages first so it is a no-op.
        self.stacked_widget.setCurrentWidget(self.grid_page)
        self.image_viewer.close_viewer()
        self.grid_view.setFocus()

    # ------------------------------------------------------------------
    # Window events
    # ------------------------------------------------------------------

    def dragEnterEvent(self, event):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()

    def dropEvent(self, event):
        urls = event.mimeData().urls()
        if not urls:
            return
        path = urls[0].toLocalFile()
        if path and os.path.isdir(path):
            self.load_directory(path)

    def closeEvent(self, event):
        logging.info("GUI close requested.")
        self.image_loader.cancel_preload()
        self._remove_master_slider()
        self.close_image_viewer()
        self.hotkey_manager.shutdown()
        event_system.unsubscribe(EventType.STATUS_MESSAGE, self._handle_status_message)
        settings = QSettings("SampleGrid", "MainWindow")
        settings.setValue("geometry", self.saveGeometry())
        settings.sync()
        event.accept()
