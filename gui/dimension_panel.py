from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QComboBox, QFrame, QScrollArea
from PySide6.QtCore import Qt, Signal
from typing import Dict, List, Optional
import logging

from core.dimensions import Dimension, FilterMode, Role, RoleAssignment
from core.filter_engine import FilterState
from .components.collapsible_section import CollapsibleSection
from .dimension_filter import MultiValueFilter, SingleValueFilter

_ROLE_LABELS = [
    (Role.NONE, "None"),
    (Role.X, "X axis"),
    (Role.Y, "Y axis"),
    (Role.SLIDER, "Slider"),
]

_MODE_LABELS = [
    (FilterMode.MULTI, "Multi"),
    (FilterMode.SINGLE, "Single"),
    (FilterMode.HIDE, "Hide"),
]


class DimensionRow(QFrame):
    """Role selector, value count and filter controls for one dimension."""

    role_requested = Signal(str, str)  # dimension, Role value
    mode_requested = Signal(str, str)  # dimension, FilterMode value
    value_toggled = Signal(str, str)
    value_soloed = Signal(str, str)
    value_selected = Signal(str, str)
    all_requested = Signal(str)
    none_requested = Signal(str)

    def __init__(self, dimension: Dimension, parent=None):
        super().__init__(parent)
        self.dimension = dimension
        self._shown_mode: Optional[FilterMode] = None
        self.filter_widget: Optional[QWidget] = None

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        header = QHBoxLayout()
        self.name_label = QLabel(dimension.name)
        self.name_label.setStyleSheet("font-weight: bold;")
        self.count_label = QLabel(f"{len(dimension)} values")
        self.count_label.setStyleSheet("color: #8c8c8c;")
        header.addWidget(self.name_label)
        header.addWidget(self.count_label)
        header.addStretch()

        self.role_combo = QComboBox()
        for role, text in _ROLE_LABELS:
            self.role_combo.addItem(text, role.value)
        self.role_combo.activated.connect(self._on_role_activated)
        header.addWidget(self.role_combo)

        self.mode_combo = QComboBox()
        for mode, text in _MODE_LABELS:
            self.mode_combo.addItem(text, mode.value)
        self.mode_combo.activated.connect(self._on_mode_activated)
        header.addWidget(self.mode_combo)
        layout.addLayout(header)

        self.section = CollapsibleSection("Filter")
        layout.addWidget(self.section)

    def _on_role_activated(self, index: int):
        self.role_requested.emit(self.dimension.name, self.role_combo.itemData(index))

    def _on_mode_activated(self, index: int):
        self.mode_requested.emit(self.dimension.name, self.mode_combo.itemData(index))

    def refresh(self, role: Role, filters: FilterState):
        name = self.dimension.name
        self._set_combo(self.role_combo, role.value)

        mode = filters.mode_of(name)
        self._set_combo(self.mode_combo, mode.value)
        self.section.setVisible(mode != FilterMode.HIDE)
        shown = len(filters.effective(name))
        self.section.set_summary(f"{shown}/{len(self.dimension.values)}")

        if mode != self._shown_mode:
            self._rebuild_filter(mode, filters)
        elif isinstance(self.filter_widget, MultiValueFilter):
            self.filter_widget.set_selected(filters.effective(name))

    def _rebuild_filter(self, mode: FilterMode, filters: FilterState):
        name = self.dimension.name
        self._shown_mode = mode
        widget: Optional[QWidget] = None
        if mode == FilterMode.SINGLE:
            current = next(iter(filters.effective(name)), None)
            widget = SingleValueFilter(self.dimension, current)
            widget.value_selected.connect(lambda value: self.value_selected.emit(name, value))
        elif mode == FilterMode.MULTI:
            widget = MultiValueFilter(self.dimension, filters.effective(name))
            widget.value_toggled.connect(lambda value: self.value_toggled.emit(name, value))
            widget.value_soloed.connect(lambda value: self.value_soloed.emit(name, value))
            widget.all_requested.connect(lambda: self.all_requested.emit(name))
            widget.none_requested.connect(lambda: self.none_requested.emit(name))
        self.filter_widget = widget
        self.section.set_body(widget)

    @staticmethod
    def _set_combo(combo: QComboBox, data: str):
        index = combo.findData(data)
        if index >= 0 and index != combo.currentIndex():
            combo.blockSignals(True)
            combo.setCurrentIndex(index)
            combo.blockSignals(False)


class DimensionPanel(QScrollArea):
    """Side panel listing every dimension of the loaded dataset.

    The panel only reports requests; the main window applies them to the
    role assignment and filter state and then calls ``refresh``.
    """

    role_requested = Signal(str, str)
    mode_requested = Signal(str, str)
    value_toggled = Signal(str, str)
    value_soloed = Signal(str, str)
    value_selected = Signal(str, str)
    all_requested = Signal(str)
    none_requested = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.rows: Dict[str, DimensionRow] = {}
        self.setWidgetResizable(True)
        self.setMinimumWidth(260)
        self._set_container()

    def _set_container(self):
        container = QWidget()
        self._layout = QVBoxLayout(container)
        self._layout.setContentsMargins(4, 4, 4, 4)
        self._layout.setSpacing(6)
        self._layout.setAlignment(Qt.AlignTop)
        self.setWidget(container)

    def set_dimensions(self, dimensions: List[Dimension]):
        self.rows = {}
        self._set_container()
        for dimension in dimensions:
            row = DimensionRow(dimension)
            for signal_name in ("role_requested", "mode_requested", "value_toggled", "value_soloed",
                                "value_selected", "all_requested", "none_requested"):
                getattr(row, signal_name).connect(getattr(self, signal_name))
            self._layout.addWidget(row)
            self.rows[dimension.name] = row
        logging.debug(f"DimensionPanel: {len(self.rows)} dimensions")

    def refresh(self, roles: RoleAssignment, filters: FilterState):
        for name, row in self.rows.items():
            row.refresh(roles.role_of(name), filters)
