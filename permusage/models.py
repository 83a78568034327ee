"""
Data models for the application.
"""
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, Dict, List, Optional, Tuple

# Duration of the "any time" window, same bound as a signed 64-bit millis value
ANY_TIME: int = 2 ** 63 - 1


class SortMode(IntEnum):
    """Sort orders offered by the usage list."""
    RECENT = 1
    RECENT_APPS = 2


class UsageFlag(IntFlag):
    """Which kinds of usage rows the data source should return."""
    LAST = 1
    HISTORICAL = 2


@dataclass(frozen=True)
class PermissionGroup:
    """A permission group as shown in the filter dialog and header."""
    name: str
    label: str


@dataclass(frozen=True)
class UsageRecord:
    """One app's aggregated access to one permission group."""
    app_key: str
    group_name: str
    last_access_millis: int
    access_count: int
    user_sensitive: bool = True
    group_label: str = ""

    @property
    def group(self) -> PermissionGroup:
        return PermissionGroup(self.group_name, self.group_label or self.group_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_key": self.app_key,
            "group_name": self.group_name,
            "group_label": self.group.label,
            "last_access_millis": self.last_access_millis,
            "access_count": self.access_count,
            "user_sensitive": self.user_sensitive,
        }


@dataclass(frozen=True)
class AppUsage:
    """All usage records a single app produced in the current dataset."""
    app_key: str
    label: str = ""
    records: Tuple[UsageRecord, ...] = ()

    @property
    def display_label(self) -> str:
        return self.label or self.app_key

    @property
    def last_access_millis(self) -> int:
        """Most recent access over all of this app's records."""
        if not self.records:
            return 0
        return max(r.last_access_millis for r in self.records)


@dataclass(frozen=True)
class TimeWindow:
    """A selectable recency window."""
    duration_millis: int
    label: str
    list_title: str

    @property
    def is_any_time(self) -> bool:
        return self.duration_millis >= ANY_TIME


@dataclass
class ViewParameters:
    """User-controlled filter and sort configuration."""
    time_index: int = 0
    group_filter: Optional[str] = None
    show_system: bool = False
    sort_mode: SortMode = SortMode.RECENT_APPS


@dataclass(frozen=True)
class GroupAccessEntry:
    """An (app, record) pair that survived the active filters."""
    app: AppUsage
    record: UsageRecord
    ingest_index: int
    app_index: int
    access_time_label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = self.record.to_dict()
        data["access_time_label"] = self.access_time_label
        return data


@dataclass(frozen=True)
class AppAccessGroup:
    """One header row of the list with the accesses nested under it."""
    app: AppUsage
    accesses: Tuple[GroupAccessEntry, ...]
    summary: str
    time_label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_key": self.app.app_key,
            "app_label": self.app.display_label,
            "summary": self.summary,
            "time_label": self.time_label,
            "accesses": [a.to_dict() for a in self.accesses],
        }


@dataclass(frozen=True)
class MenuState:
    """Declarative menu state recomputed on every derivation."""
    has_system_apps: bool = False
    show_system: bool = False
    sort_mode: SortMode = SortMode.RECENT_APPS

    @property
    def show_system_visible(self) -> bool:
        return self.has_system_apps and not self.show_system

    @property
    def hide_system_visible(self) -> bool:
        return self.has_system_apps and self.show_system

    @property
    def sort_by_app_visible(self) -> bool:
        return self.sort_mode != SortMode.RECENT_APPS

    @property
    def sort_by_time_visible(self) -> bool:
        return self.sort_mode != SortMode.RECENT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "has_system_apps": self.has_system_apps,
            "show_system": self.show_system,
            "sort_mode": self.sort_mode.name,
        }


@dataclass(frozen=True)
class ViewModel:
    """Derived, ephemeral output of one derivation."""
    groups: Tuple[AppAccessGroup, ...] = ()
    has_system_apps: bool = False
    group_counts: Dict[Optional[str], int] = field(default_factory=dict)
    time_window: Optional[TimeWindow] = None
    group_filter: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def app_keys(self) -> List[str]:
        """Distinct app keys in display order."""
        seen: Dict[str, None] = {}
        for group in self.groups:
            seen.setdefault(group.app.app_key, None)
        return list(seen)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "has_system_apps": self.has_system_apps,
            "group_counts": {("" if k is None else k): v for k, v in self.group_counts.items()},
            "list_title": self.time_window.list_title if self.time_window else None,
            "group_filter": self.group_filter,
        }


@dataclass(frozen=True)
class FilterOption:
    """A row of the permission filter dialog."""
    label: str
    group_name: Optional[str]
    count: int
    selected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "group_name": self.group_name,
            "count": self.count,
            "selected": self.selected,
        }


@dataclass(frozen=True)
class TimeFilterOption:
    """A row of the time filter dialog."""
    label: str
    selected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "selected": self.selected}
