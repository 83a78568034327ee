"""Event system connecting the usage controller to its consumers."""
from enum import Enum
from typing import Callable, Any, Dict, List, Optional, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from ..models import AppUsage, MenuState, ViewModel


class Event(Enum):
    """Application-wide events."""
    DATASET_REPLACED = "dataset_replaced"
    VIEW_MODEL_READY = "view_model_ready"
    MENU_STATE_CHANGED = "menu_state_changed"
    LOADING_CHANGED = "loading_changed"
    APP_INFO_READY = "app_info_ready"


class EventContext:
    """Base context for event handlers."""
    pass


class DatasetReplacedContext(EventContext):
    """Context passed to DATASET_REPLACED handlers."""
    def __init__(self, dataset: List['AppUsage']) -> None:
        self.dataset = dataset


class ViewModelContext(EventContext):
    """Context passed to VIEW_MODEL_READY handlers."""
    def __init__(self, view_model: 'ViewModel', header: Optional[str] = None) -> None:
        self.view_model = view_model
        self.header = header


class MenuStateContext(EventContext):
    """Context passed to MENU_STATE_CHANGED handlers."""
    def __init__(self, menu_state: 'MenuState') -> None:
        self.menu_state = menu_state


class LoadingContext(EventContext):
    """
    Context passed to LOADING_CHANGED handlers.

    show_progress is set for refreshes after the first load, where the
    existing list stays visible under a progress bar.
    """
    def __init__(self, loading: bool, show_progress: bool = False, unavailable: bool = False) -> None:
        self.loading = loading
        self.show_progress = show_progress
        self.unavailable = unavailable


class AppInfoContext(EventContext):
    """Context passed to APP_INFO_READY handlers, labels aligned with app_keys."""
    def __init__(self, app_keys: List[str], labels: List[str]) -> None:
        self.app_keys = app_keys
        self.labels = labels

    def as_mapping(self) -> Dict[str, str]:
        return dict(zip(self.app_keys, self.labels))


ContextT = TypeVar('ContextT', bound=EventContext)


class EventBus:
    """Central event dispatcher."""

    def __init__(self) -> None:
        # Store handlers with Any type to allow different context subtypes
        self._handlers: Dict[Event, List[Callable[[Any], None]]] = {}

    def subscribe(self, event: Event, handler: Callable[[ContextT], None]) -> None:
        """Subscribe to an event with a typed handler."""
        if event not in self._handlers:
            self._handlers[event] = []
        self._handlers[event].append(handler)  # type: ignore[arg-type]

    def unsubscribe(self, event: Event, handler: Callable[[ContextT], None]) -> None:
        """Remove a handler; unknown handlers are ignored."""
        try:
            self._handlers.get(event, []).remove(handler)  # type: ignore[arg-type]
        except ValueError:
            pass

    def emit(self, event: Event, context: EventContext) -> None:
        """Emit an event to all subscribers."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(context)
            except Exception as e:
                print(f"Event handler error ({event.value}): {e}")


__all__ = [
    "Event", "EventContext", "EventBus", "DatasetReplacedContext", "ViewModelContext",
    "MenuStateContext", "LoadingContext", "AppInfoContext",
]
