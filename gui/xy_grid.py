from PySide6.QtWidgets import QGridLayout, QLabel, QScrollArea, QWidget
from PySide6.QtCore import Qt, Signal, QTimer
from typing import Dict, List, Optional, Tuple
import logging

from core.grid_builder import FLAT_CELL_KEY, GridCell, GridResult
from .components.grid_layout_manager import calculate_columns
from .image_cell import ImageCell

EMPTY_TEXT = "No images to display"


class HeaderLabel(QLabel):
    """Axis header; clicking it solos its value."""

    clicked = Signal(str, str)  # dimension, value

    def __init__(self, dimension: str, value: str, color: str):
        super().__init__(value)
        self.dimension = dimension
        self.value = value
        self.setAlignment(Qt.AlignCenter)
        self.setCursor(Qt.PointingHandCursor)
        self.setToolTip(f"{dimension} = {value} (click to solo)")
        self.setStyleSheet(f"color: {color}; font-weight: bold; padding: 2px 6px;")

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self.clicked.emit(self.dimension, self.value)
            event.accept()
        else:
            super().mousePressEvent(event)


class XYGridView(QScrollArea):
    """Renders a GridResult: header row and column, one ImageCell per position.

    With neither axis assigned the matching images flow left to right in as
    many columns as fit the viewport.
    """

    header_clicked = Signal(str, str)  # dimension, value
    cell_clicked = Signal(str, str)  # cell key, relative path
    slider_value_changed = Signal(str, str)  # cell key, value

    def __init__(self, image_loader, config_manager=None, parent=None):
        super().__init__(parent)
        self.image_loader = image_loader
        self.config_manager = config_manager
        self.cell_size = int(self._config("gui.cell_size", 250))
        self.spacing = int(self._config("gui.spacing", 4))
        self.cell_config = {
            "placeholder_color": self._config("gui.placeholder_color", "#2a2a2a"),
            "active_border_color": self._config("gui.active_border_color", "#2d59b6"),
        }
        self.header_color = self._config("gui.header_color", "#8cb4ff")

        self.result: Optional[GridResult] = None
        self.x_name: Optional[str] = None
        self.y_name: Optional[str] = None
        self.slider_name: Optional[str] = None
        self.cells: Dict[str, ImageCell] = {}
        self._flat_cells: List[ImageCell] = []
        self._columns = 0

        self.setWidgetResizable(True)
        self.setStyleSheet(f"QScrollArea {{ background-color: {self._config('gui.background_color', '#1e1e1e')}; border: none; }}")

        self._resize_timer = QTimer(self)
        self._resize_timer.setSingleShot(True)
        self._resize_timer.setInterval(50)
        self._resize_timer.timeout.connect(self._relayout_flat)

        self._container = None
        self._layout = None
        self._empty_label = None
        self._reset_container()

    def _config(self, key, default):
        if self.config_manager is None:
            return default
        return self.config_manager.get(key, default)

    def _reset_container(self):
        self.cells = {}
        self._flat_cells = []
        self._empty_label = None
        container = QWidget()
        layout = QGridLayout(container)
        layout.setSpacing(self.spacing)
        layout.setContentsMargins(self.spacing, self.spacing, self.spacing, self.spacing)
        layout.setAlignment(Qt.AlignTop | Qt.AlignLeft)
        self.setWidget(container)  # deletes the previous container
        self._container = container
        self._layout = layout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return self._empty_label is not None

    @property
    def empty_text(self) -> str:
        return self._empty_label.text() if self._empty_label is not None else ""

    def set_grid(self, result: GridResult, x_name: Optional[str] = None,
                 y_name: Optional[str] = None, slider_name: Optional[str] = None):
        """Show *result*. Cells are updated in place when the grid shape is unchanged."""
        if self._same_shape(result, x_name, y_name, slider_name):
            self.result = result
            self._update_cells_in_place(result)
            return

        self.result = result
        self.x_name, self.y_name, self.slider_name = x_name, y_name, slider_name
        self._reset_container()

        if result.is_empty:
            self._show_empty()
        elif result.is_flat:
            self._build_flat(result)
        else:
            self._build_grid(result)
        logging.debug(f"XYGridView: rebuilt ({len(self.cells) or len(self._flat_cells)} cells)")

    def set_cell_size(self, size: int):
        """Rebuild the current grid with cells of *size* pixels."""
        size = int(size)
        if size == self.cell_size:
            return
        self.cell_size = size
        if self.result is None:
            return
        result = self.result
        self.result = None  # forces a full rebuild
        self.set_grid(result, self.x_name, self.y_name, self.slider_name)

    def navigation_list(self) -> List[Tuple[str, str]]:
        """(cell key, relative path) of every shown image in reading order."""
        if self.result is None:
            return []
        if self.result.is_flat:
            return [(FLAT_CELL_KEY, artifact.relative_path) for artifact in self.result.flat]
        return [(cell.key, cell.artifact.relative_path) for cell in self.result.cells if not cell.is_missing]

    def cell(self, key: str) -> Optional[ImageCell]:
        return self.cells.get(key)

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def _same_shape(self, result: GridResult, x_name, y_name, slider_name) -> bool:
        current = self.result
        if current is None or current.is_flat or result.is_flat or not self.cells:
            return False
        return ((x_name, y_name, slider_name) == (self.x_name, self.y_name, self.slider_name)
                and current.x_values == result.x_values
                and current.y_values == result.y_values
                and current.slider_values == result.slider_values)

    def _show_empty(self):
        self._empty_label = QLabel(EMPTY_TEXT)
        self._empty_label.setAlignment(Qt.AlignCenter)
        self._empty_label.setStyleSheet("color: #8c8c8c; font-size: 16px; padding: 40px;")
        self._layout.setAlignment(Qt.AlignCenter)
        self._layout.addWidget(self._empty_label, 0, 0)

    def _build_grid(self, result: GridResult):
        column_offset = 1 if self.y_name else 0
        row_offset = 1 if self.x_name else 0

        if self.x_name:
            for column, value in enumerate(result.x_values):
                header = HeaderLabel(self.x_name, value, self.header_color)
                header.clicked.connect(self.header_clicked)
                self._layout.addWidget(header, 0, column + column_offset)
        if self.y_name:
            for row, value in enumerate(result.y_values):
                header = HeaderLabel(self.y_name, value, self.header_color)
                header.clicked.connect(self.header_clicked)
                self._layout.addWidget(header, row + row_offset, 0)

        for grid_cell in result.cells:
            widget = self._make_cell(grid_cell, result.slider_values)
            self.cells[grid_cell.key] = widget
            self._layout.addWidget(widget, grid_cell.row + row_offset, grid_cell.column + column_offset)

    def _build_flat(self, result: GridResult):
        for index, artifact in enumerate(result.flat):
            grid_cell = GridCell(
                row=0,
                column=index,
                x_value=None,
                y_value=None,
                key=FLAT_CELL_KEY,
                slider_value=artifact.value_of(self.slider_name) if self.slider_name else None,
                artifact=artifact,
            )
            self._flat_cells.append(self._make_cell(grid_cell, ()))
        self._columns = 0
        self._relayout_flat()

    def _make_cell(self, grid_cell: GridCell, slider_values) -> ImageCell:
        widget = ImageCell(grid_cell, self.cell_size, self.cell_config,
                           slider_values=slider_values,
                           slider_name=self.slider_name or "")
        widget.clicked.connect(lambda _key, w=widget: self._on_cell_clicked(w))
        widget.slider_changed.connect(self.slider_value_changed)
        if grid_cell.artifact is not None:
            widget.set_pixmap(self.image_loader.pixmap(grid_cell.artifact.relative_path))
        return widget

    def _update_cells_in_place(self, result: GridResult):
        for grid_cell in result.cells:
            widget = self.cells.get(grid_cell.key)
            if widget is None:
                continue
            previous = widget.cell.artifact
            widget.cell = grid_cell
            if widget.slider_bar is not None:
                widget.slider_bar.set_current(grid_cell.slider_value)
            if grid_cell.artifact != previous:
                widget.set_pixmap(self.image_loader.pixmap(grid_cell.artifact.relative_path) if grid_cell.artifact else None)

    def _relayout_flat(self):
        if not self._flat_cells:
            return
        columns = calculate_columns(self.viewport().width(), self.cell_size, self.spacing)
        if columns == self._columns:
            return
        self._columns = columns
        for index, widget in enumerate(self._flat_cells):
            self._layout.addWidget(widget, index // columns, index % columns)

    def _on_cell_clicked(self, widget: ImageCell):
        if widget.cell.artifact is None:
            return
        self.cell_clicked.emit(widget.cell.key, widget.cell.artifact.relative_path)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self._flat_cells:
            self._resize_timer.start()
