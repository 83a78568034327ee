"""Filter/sort state machine driving the permission usage list."""
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from ..config import settings
from ..events import (
    AppInfoContext, DatasetReplacedContext, Event, EventBus, LoadingContext,
    MenuStateContext, ViewModelContext
)
from ..formatting import collation_key
from ..log import debug_log
from ..models import (
    ANY_TIME, AppUsage, FilterOption, MenuState, SortMode, TimeFilterOption,
    TimeWindow, UsageFlag, ViewModel, ViewParameters
)
from .aggregation_service import AggregationEngine
from .time_windows import TimeWindowCatalog
from .usage_index import UsageIndex
from .usage_loader import UsageLoader

ANY_PERMISSION_LABEL = "Any permission"

Dispatch = Callable[[Callable[[], None]], None]


class ControllerState(Enum):
    LOADING = "loading"
    READY = "ready"


def now_millis() -> int:
    return int(time.time() * 1000)


def call_now(callback: Callable[[], None]) -> None:
    callback()


class UsageController:
    """
    Owns the view parameters and the loaded dataset, and re-runs the
    aggregation engine whenever either changes.

    Parameter changes re-derive synchronously from the loaded dataset.
    Changing the time window or refreshing goes back to the data source,
    since the window bounds the query.

    Loads and app-info lookups may complete on another thread; their
    results go through `dispatch` so they are applied on the thread that
    owns the controller. Results from superseded requests are dropped.
    """

    def __init__(self, loader: Optional[UsageLoader] = None,
                 events: Optional[EventBus] = None,
                 engine: Optional[AggregationEngine] = None,
                 group_name: Optional[str] = None,
                 min_duration_millis: Optional[int] = None,
                 saved_state: Optional[Dict[str, Any]] = None,
                 clock: Callable[[], int] = now_millis,
                 dispatch: Dispatch = call_now,
                 sync: bool = False,
                 enrich: bool = True) -> None:
        self.loader = loader or UsageLoader()
        self.events = events or EventBus()
        self.engine = engine or AggregationEngine()
        self.catalog: TimeWindowCatalog = self.engine.catalog
        self.clock = clock
        self.dispatch = dispatch
        self.sync = sync
        self.enrich = enrich

        self.dataset: Optional[List[AppUsage]] = None
        self.view_model: Optional[ViewModel] = None
        self.menu_state = MenuState()
        self.app_labels: Dict[str, str] = {}
        self.finished_initial_load = False

        self._lock = threading.Lock()
        self._load_epoch = 0
        self._derive_epoch = 0
        self._loading = False

        if min_duration_millis is None:
            min_duration_millis = settings.default_duration_millis
        _, time_index = self.catalog.initialize(min_duration_millis)
        self.params = ViewParameters(time_index=time_index, sort_mode=SortMode.RECENT_APPS)

        # Only consulted when the first dataset arrives
        self._saved_group_name: Optional[str] = None
        if saved_state:
            self._restore(saved_state)
        if self._saved_group_name is None:
            self._saved_group_name = group_name

    # State

    @property
    def state(self) -> ControllerState:
        if self._loading or self.dataset is None:
            return ControllerState.LOADING
        return ControllerState.READY

    @property
    def time_window(self) -> TimeWindow:
        return self.catalog[self.params.time_index]

    def _restore(self, state: Dict[str, Any]) -> None:
        self.params.show_system = bool(state.get("show_system", False))
        self.finished_initial_load = bool(state.get("finished_initial_load", False))

        group = state.get("filter_group")
        self._saved_group_name = str(group) if group is not None else None

        time_index = state.get("time_index")
        if isinstance(time_index, int) and self.catalog.is_valid_index(time_index):
            self.params.time_index = time_index
        elif time_index is not None:
            print(f"Ignoring saved time index {time_index!r}")

        sort = state.get("sort")
        if sort is not None:
            try:
                self.params.sort_mode = SortMode(int(sort))
            except (TypeError, ValueError):
                print(f"Unexpected sort option: {sort!r}")

    def save_state(self) -> Dict[str, Any]:
        """State that must survive a restart, restorable via saved_state."""
        group = self.params.group_filter
        if group is None:
            group = self._saved_group_name
        return {
            "show_system": self.params.show_system,
            "filter_group": group,
            "time_index": self.params.time_index,
            "sort": int(self.params.sort_mode),
            "finished_initial_load": self.finished_initial_load,
        }

    # Loading

    def reload(self) -> None:
        """
        Query the data source for the current time window.

        Safe to call while a load is outstanding; only the latest
        request's result is applied.
        """
        with self._lock:
            self._load_epoch += 1
            epoch = self._load_epoch
            self._loading = True

        start = TimeWindowCatalog.window_start(self.time_window, self.clock())
        self.events.emit(Event.LOADING_CHANGED,
                         LoadingContext(loading=True, show_progress=self.finished_initial_load))

        def deliver(dataset: Optional[List[AppUsage]]) -> None:
            self.dispatch(lambda: self.on_usages_changed(dataset, epoch))

        self.loader.load(None, None, start, ANY_TIME,
                         UsageFlag.LAST | UsageFlag.HISTORICAL, deliver, sync=self.sync)

    def on_usages_changed(self, dataset: Optional[List[AppUsage]],
                          epoch: Optional[int] = None) -> None:
        """
        Replace the dataset wholesale and re-derive.

        A failed delivery (None) keeps the current view model. An empty
        dataset is valid and derives an empty list for the window.
        """
        with self._lock:
            if epoch is not None and epoch != self._load_epoch:
                debug_log(f"dropping stale load {epoch} (current {self._load_epoch})")
                return
            self._loading = False

        if dataset is None:
            print("No permission usage data available")
            self.events.emit(Event.LOADING_CHANGED, LoadingContext(loading=False, unavailable=True))
            return

        self.dataset = list(dataset)
        self.events.emit(Event.DATASET_REPLACED, DatasetReplacedContext(self.dataset))
        self._adopt_saved_group()
        self.update()
        self.events.emit(Event.LOADING_CHANGED, LoadingContext(loading=False))

    def _adopt_saved_group(self) -> None:
        """Use the restored or passed group filter if the fresh data has it."""
        name = self._saved_group_name
        if name is None or self.params.group_filter is not None or not self.dataset:
            # Nothing to check against yet
            return

        index = UsageIndex.from_dataset(self.dataset, self.engine.platform_group_names())
        if index.get_group_for(name) is not None:
            self.params.group_filter = name
        else:
            debug_log(f"saved group filter '{name}' not in dataset, showing all groups")
        self._saved_group_name = None

    # Derivation

    def update(self) -> Optional[ViewModel]:
        """Re-derive the view model from the loaded dataset."""
        if self.dataset is None:
            return None

        with self._lock:
            self._derive_epoch += 1
            epoch = self._derive_epoch
            view_model = self.engine.derive(self.dataset, self.params, self.clock())

        self.view_model = view_model
        self.finished_initial_load = True
        self.menu_state = MenuState(
            has_system_apps=view_model.has_system_apps,
            show_system=self.params.show_system,
            sort_mode=self.params.sort_mode,
        )

        self.events.emit(Event.VIEW_MODEL_READY, ViewModelContext(view_model, self.header_label()))
        self.events.emit(Event.MENU_STATE_CHANGED, MenuStateContext(self.menu_state))

        if self.enrich:
            self._load_app_info(view_model, epoch)
        return view_model

    def _load_app_info(self, view_model: ViewModel, epoch: int) -> None:
        app_keys = view_model.app_keys()
        if not app_keys:
            return

        def deliver(labels: Optional[List[str]]) -> None:
            self.dispatch(lambda: self._on_app_info(app_keys, labels, epoch))

        self.loader.load_app_info(app_keys, deliver, sync=self.sync)

    def _on_app_info(self, app_keys: List[str], labels: Optional[List[str]], epoch: int) -> None:
        with self._lock:
            if epoch != self._derive_epoch:
                debug_log(f"dropping app info for derivation {epoch} (current {self._derive_epoch})")
                return
        if labels is None:
            return
        if len(labels) != len(app_keys):
            print(f"App info size mismatch: {len(labels)} labels for {len(app_keys)} apps")
            return

        self.app_labels = {key: label for key, label in zip(app_keys, labels) if label}
        self.events.emit(Event.APP_INFO_READY, AppInfoContext(app_keys, labels))

    # Mutations

    def set_sort_mode(self, sort_mode: SortMode) -> None:
        """Raises ValueError for a value that is not a SortMode."""
        self.params.sort_mode = SortMode(sort_mode)
        self.update()

    def set_show_system(self, show_system: bool) -> None:
        # Data is already loaded, no reload needed
        self.params.show_system = show_system
        self.update()

    def set_group_filter(self, group_name: Optional[str]) -> None:
        self.params.group_filter = group_name
        self._saved_group_name = None
        self.update()

    def clear_group_filter(self) -> None:
        self.set_group_filter(None)

    def set_time_index(self, index: int) -> None:
        """Select a time window and reload data for it."""
        if not self.catalog.is_valid_index(index):
            raise ValueError(f"Time index {index} out of range (0-{len(self.catalog) - 1})")
        self.params.time_index = index
        self.reload()

    # Dialog and header data

    def permission_filter_options(self) -> List[FilterOption]:
        """
        Rows for the permission filter dialog.

        "Any permission" is always first; the remaining groups follow in
        locale order. A filter that names no listed group selects "Any".
        """
        index = self.engine.index
        groups = sorted(index.distinct_groups, key=lambda g: collation_key(g.label))
        current = self.params.group_filter
        matched = any(g.name == current for g in groups)

        options = [FilterOption(ANY_PERMISSION_LABEL, None, index.count_for(None), not matched)]
        for group in groups:
            options.append(FilterOption(group.label, group.name, index.count_for(group.name),
                                        group.name == current))
        return options

    def time_filter_options(self) -> List[TimeFilterOption]:
        return [TimeFilterOption(window.label, i == self.params.time_index)
                for i, window in enumerate(self.catalog.windows)]

    def header_label(self) -> Optional[str]:
        """Header text for an active group filter, or None to hide it."""
        if self.params.group_filter is None:
            return None
        group = self.engine.index.get_group_for(self.params.group_filter)
        if group is None:
            return None
        return f"Filtered by {group.label}"
