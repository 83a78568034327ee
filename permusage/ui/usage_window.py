"""Permission usage window."""
from PyQt5.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QTreeWidget,
    QTreeWidgetItem, QToolButton, QMenu, QAction, QProgressBar, QDialog
)
from PyQt5.QtGui import QCloseEvent
from PyQt5.QtCore import QObject, QTimer, pyqtSignal
from typing import Callable, Dict, List, Optional
from ..config import REFRESH_INTERVAL
from ..events import (
    AppInfoContext, Event, LoadingContext, MenuStateContext, ViewModelContext
)
from ..models import SortMode
from ..services.state_store import StateStore
from ..services.usage_controller import UsageController
from .filter_dialogs import PermissionFilterDialog, TimeFilterDialog


class MainThreadDispatcher(QObject):
    """
    Runs callbacks posted from worker threads on the thread that owns it.

    Pass `post` as the controller's dispatch function.
    """
    posted = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.posted.connect(self._run)

    def post(self, callback: Callable[[], None]) -> None:
        self.posted.emit(callback)

    def _run(self, callback: Callable[[], None]) -> None:
        callback()


class UsageWindow(QWidget):
    """
    Draws whatever the controller derives: one expandable row per app
    group, one child row per permission group access.
    """

    def __init__(self, controller: UsageController, state_store: Optional[StateStore] = None) -> None:
        super().__init__()
        self.controller = controller
        self.state_store = state_store
        self.app_items: Dict[str, List[QTreeWidgetItem]] = {}

        self.setWindowTitle("Permission usage")
        self.setMinimumWidth(420)
        self.setMinimumHeight(500)

        self.main_layout = QVBoxLayout()
        self.main_layout.setContentsMargins(8, 8, 8, 8)
        self.setLayout(self.main_layout)

        self._create_toolbar()
        self._create_header()

        self.list_title = QLabel()
        self.main_layout.addWidget(self.list_title)

        self.progress = QProgressBar()
        self.progress.setRange(0, 0)
        self.progress.setMaximumHeight(4)
        self.progress.setTextVisible(False)
        self.progress.hide()
        self.main_layout.addWidget(self.progress)

        self.tree = QTreeWidget()
        self.tree.setColumnCount(2)
        self.tree.setHeaderLabels(["App", "Details"])
        self.main_layout.addWidget(self.tree)

        self.empty_label = QLabel("No permission usages")
        self.empty_label.setStyleSheet("color: gray;")
        self.empty_label.hide()
        self.main_layout.addWidget(self.empty_label)

        events = controller.events
        events.subscribe(Event.VIEW_MODEL_READY, self.on_view_model_ready)
        events.subscribe(Event.MENU_STATE_CHANGED, self.on_menu_state_changed)
        events.subscribe(Event.LOADING_CHANGED, self.on_loading_changed)
        events.subscribe(Event.APP_INFO_READY, self.on_app_info_ready)

        # Periodic refresh
        self.timer = QTimer(self)
        self.timer.timeout.connect(self.controller.reload)
        self.timer.start(REFRESH_INTERVAL)

        self.on_menu_state_changed(MenuStateContext(controller.menu_state))
        self.list_title.setText(f"<b>{controller.time_window.list_title}</b>")
        self.controller.reload()

    def _create_toolbar(self) -> None:
        toolbar = QHBoxLayout()
        toolbar.addStretch()

        self.refresh_button = QPushButton("Refresh")
        self.refresh_button.clicked.connect(self.controller.reload)
        toolbar.addWidget(self.refresh_button)

        self.menu = QMenu(self)
        self.sort_by_app_action: QAction = self.menu.addAction("Sort by app")  # pyright: ignore[reportUnknownMemberType, reportAssignmentType]
        self.sort_by_app_action.triggered.connect(lambda: self.controller.set_sort_mode(SortMode.RECENT_APPS))
        self.sort_by_time_action: QAction = self.menu.addAction("Sort by time")  # pyright: ignore[reportUnknownMemberType, reportAssignmentType]
        self.sort_by_time_action.triggered.connect(lambda: self.controller.set_sort_mode(SortMode.RECENT))

        filter_perms_action: QAction = self.menu.addAction("Filter by permissions")  # pyright: ignore[reportUnknownMemberType, reportAssignmentType]
        filter_perms_action.triggered.connect(self.show_permission_filter_dialog)
        filter_time_action: QAction = self.menu.addAction("Filter by time")  # pyright: ignore[reportUnknownMemberType, reportAssignmentType]
        filter_time_action.triggered.connect(self.show_time_filter_dialog)

        self.show_system_action: QAction = self.menu.addAction("Show system")  # pyright: ignore[reportUnknownMemberType, reportAssignmentType]
        self.show_system_action.triggered.connect(lambda: self.controller.set_show_system(True))
        self.hide_system_action: QAction = self.menu.addAction("Hide system")  # pyright: ignore[reportUnknownMemberType, reportAssignmentType]
        self.hide_system_action.triggered.connect(lambda: self.controller.set_show_system(False))

        menu_button = QToolButton()
        menu_button.setText("⋮")
        menu_button.setPopupMode(QToolButton.InstantPopup)
        menu_button.setMenu(self.menu)
        toolbar.addWidget(menu_button)

        self.main_layout.addLayout(toolbar)

    def _create_header(self) -> None:
        self.header_widget = QWidget()
        header_layout = QHBoxLayout()
        header_layout.setContentsMargins(0, 0, 0, 0)
        self.header_widget.setLayout(header_layout)

        self.header_label = QLabel()
        header_layout.addWidget(self.header_label)
        header_layout.addStretch()

        remove_button = QPushButton("Remove filter")
        remove_button.clicked.connect(self.controller.clear_group_filter)
        header_layout.addWidget(remove_button)

        self.header_widget.hide()
        self.main_layout.addWidget(self.header_widget)

    # Controller events

    def on_view_model_ready(self, ctx: ViewModelContext) -> None:
        view_model = ctx.view_model

        if ctx.header:
            self.header_label.setText(ctx.header)
            self.header_widget.show()
        else:
            self.header_widget.hide()

        if view_model.time_window:
            self.list_title.setText(f"<b>{view_model.time_window.list_title}</b>")

        self.tree.clear()
        self.app_items = {}
        labels = self.controller.app_labels

        for group in view_model.groups:
            app_key = group.app.app_key
            parent = QTreeWidgetItem([labels.get(app_key, group.app.display_label),
                                      group.time_label or group.summary])
            parent.setToolTip(1, group.summary)
            for access in group.accesses:
                child = QTreeWidgetItem([access.record.group.label, access.access_time_label])
                parent.addChild(child)
            self.tree.addTopLevelItem(parent)
            self.app_items.setdefault(app_key, []).append(parent)

        self.tree.setVisible(not view_model.is_empty)
        self.empty_label.setVisible(view_model.is_empty)

    def on_menu_state_changed(self, ctx: MenuStateContext) -> None:
        state = ctx.menu_state
        self.sort_by_app_action.setVisible(state.sort_by_app_visible)
        self.sort_by_time_action.setVisible(state.sort_by_time_visible)
        self.show_system_action.setVisible(state.show_system_visible)
        self.hide_system_action.setVisible(state.hide_system_visible)

    def on_loading_changed(self, ctx: LoadingContext) -> None:
        self.progress.setVisible(ctx.loading and ctx.show_progress)
        if ctx.unavailable and self.controller.view_model is None:
            self.tree.hide()
            self.empty_label.show()

    def on_app_info_ready(self, ctx: AppInfoContext) -> None:
        for app_key, label in ctx.as_mapping().items():
            if not label:
                continue
            for item in self.app_items.get(app_key, []):
                item.setText(0, label)

    # Dialogs

    def show_permission_filter_dialog(self) -> None:
        dialog = PermissionFilterDialog(self.controller.permission_filter_options(), self)
        if dialog.exec_() == QDialog.Accepted:
            self.controller.set_group_filter(dialog.selected_group)

    def show_time_filter_dialog(self) -> None:
        dialog = TimeFilterDialog(self.controller.time_filter_options(), self)
        if dialog.exec_() == QDialog.Accepted:
            self.controller.set_time_index(dialog.selected_index)

    def closeEvent(self, a0: Optional[QCloseEvent]) -> None:
        if self.state_store is not None:
            try:
                self.state_store.save(self.controller.save_state())
            except OSError as e:
                print(f"Failed to save state: {e}")
        super().closeEvent(a0)
