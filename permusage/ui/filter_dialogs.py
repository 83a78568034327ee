"""Dialogs for choosing the permission group and time window filters."""
from PyQt5.QtWidgets import (
    QDialog, QVBoxLayout, QLabel, QRadioButton, QButtonGroup, QWidget
)
from PyQt5.QtCore import Qt
from typing import List, Optional
from ..models import FilterOption, TimeFilterOption


def apps_subtitle(count: int) -> str:
    return "1 app" if count == 1 else f"{count} apps"


class PermissionFilterDialog(QDialog):
    """Single-choice list of permission groups with how many apps used each."""

    def __init__(self, options: List[FilterOption], parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Filter by")
        self.setWindowFlags(self.windowFlags() & ~Qt.WindowContextHelpButtonHint)  # pyright: ignore[reportUnknownMemberType, reportAttributeAccessIssue, reportUnknownArgumentType]
        self.setMinimumWidth(300)

        self.options = options
        self.selected_group: Optional[str] = None

        layout = QVBoxLayout()
        self.setLayout(layout)
        layout.addWidget(QLabel("<b>Filter by</b>"))

        self.button_group = QButtonGroup(self)
        for i, option in enumerate(options):
            radio = QRadioButton(option.label)
            radio.setChecked(option.selected)
            self.button_group.addButton(radio, i)
            layout.addWidget(radio)

            subtitle = QLabel(apps_subtitle(option.count))
            subtitle.setStyleSheet("color: gray; font-size: 10px; margin-left: 22px;")
            layout.addWidget(subtitle)

        self.button_group.buttonClicked[int].connect(self._on_clicked)  # pyright: ignore[reportUnknownMemberType]

    def _on_clicked(self, index: int) -> None:
        self.selected_group = self.options[index].group_name
        self.accept()


class TimeFilterDialog(QDialog):
    """Single-choice list of the catalog's time windows."""

    def __init__(self, options: List[TimeFilterOption], parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Filter by")
        self.setWindowFlags(self.windowFlags() & ~Qt.WindowContextHelpButtonHint)  # pyright: ignore[reportUnknownMemberType, reportAttributeAccessIssue, reportUnknownArgumentType]
        self.setMinimumWidth(250)

        self.selected_index: int = next((i for i, o in enumerate(options) if o.selected), 0)

        layout = QVBoxLayout()
        self.setLayout(layout)

        self.button_group = QButtonGroup(self)
        for i, option in enumerate(options):
            radio = QRadioButton(option.label)
            radio.setChecked(option.selected)
            self.button_group.addButton(radio, i)
            layout.addWidget(radio)

        self.button_group.buttonClicked[int].connect(self._on_clicked)  # pyright: ignore[reportUnknownMemberType]

    def _on_clicked(self, index: int) -> None:
        self.selected_index = index
        self.accept()
