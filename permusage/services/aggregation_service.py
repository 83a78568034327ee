"""Service turning raw permission usage into the grouped list view model."""
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from ..config import settings
from ..formatting import format_access_time, join_labels
from ..log import debug_log
from ..models import (
    AppAccessGroup, AppUsage, GroupAccessEntry, SortMode, UsageRecord,
    ViewModel, ViewParameters
)
from .time_windows import TimeWindowCatalog
from .usage_index import UsageIndex

TimeFormatter = Callable[[int, int], str]
SortKey = Tuple[int, ...]


class AggregationEngine:
    """
    Filters, sorts and groups permission usage for display.

    derive() is deterministic for identical inputs. The only state it
    touches is self.index, which it rebuilds on every run.
    """

    def __init__(self, catalog: Optional[TimeWindowCatalog] = None,
                 time_formatter: TimeFormatter = format_access_time,
                 separator: Optional[str] = None,
                 platform_groups: Optional[Iterable[str]] = None) -> None:
        self.catalog = catalog or TimeWindowCatalog()
        self.time_formatter = time_formatter
        self.separator = separator
        self.platform_groups = list(platform_groups) if platform_groups is not None else None
        self.index = UsageIndex()

    def derive(self, raw_dataset: Sequence[AppUsage], params: ViewParameters,
               now_millis: int) -> ViewModel:
        """
        Build the view model for one set of view parameters.

        Steps: time/validity filter (tracking system apps), system filter,
        index rebuild, group filter, sort, grouping.

        Raises:
            IndexError: if params.time_index is outside the catalog
        """
        window = self.catalog[params.time_index]
        cutoff = None if window.is_any_time else now_millis - window.duration_millis

        has_system_apps = False
        visible: List[GroupAccessEntry] = []
        app_recency: Dict[int, int] = {}
        ingest_index = 0

        for app_index, app in enumerate(raw_dataset):
            for record in app.records:
                position = ingest_index
                ingest_index += 1

                if self._is_well_formed(record, now_millis):
                    app_recency[app_index] = max(app_recency.get(app_index, record.last_access_millis),
                                                 record.last_access_millis)

                if not self._is_used(record, cutoff, now_millis):
                    continue

                if not record.user_sensitive:
                    has_system_apps = True
                    if not params.show_system:
                        continue

                visible.append(GroupAccessEntry(
                    app=app,
                    record=record,
                    ingest_index=position,
                    app_index=app_index,
                    access_time_label=self.time_formatter(record.last_access_millis, now_millis),
                ))

        # Counts cover every group, not just the selected one
        self.index = UsageIndex.build(visible, raw_dataset, self.platform_group_names())

        if params.group_filter is not None:
            visible = [e for e in visible if e.record.group_name == params.group_filter]

        ordered = self._sort(visible, params.sort_mode, app_recency)
        groups = self._group(ordered, params.sort_mode)

        debug_log(
            f"derive: {ingest_index} records -> {len(ordered)} entries in {len(groups)} groups "
            f"(window={window.label}, filter={params.group_filter}, "
            f"system={params.show_system}, sort={params.sort_mode!r})"
        )

        return ViewModel(
            groups=tuple(groups),
            has_system_apps=has_system_apps,
            group_counts=dict(self.index.group_counts),
            time_window=window,
            group_filter=params.group_filter,
        )

    @staticmethod
    def _is_well_formed(record: UsageRecord, now_millis: int) -> bool:
        return record.access_count > 0 and record.last_access_millis <= now_millis

    @classmethod
    def _is_used(cls, record: UsageRecord, cutoff: Optional[int], now_millis: int) -> bool:
        """A record counts as used if it is well formed and inside the window."""
        if not cls._is_well_formed(record, now_millis):
            return False
        return cutoff is None or record.last_access_millis >= cutoff

    @staticmethod
    def recent_key(entry: GroupAccessEntry) -> SortKey:
        """Most recent access first; ingestion order breaks ties."""
        return (-entry.record.last_access_millis, entry.ingest_index)

    @staticmethod
    def recent_apps_key(entry: GroupAccessEntry, app_recency: Dict[int, int]) -> SortKey:
        """
        Apps by their own most recent access, then each app's accesses by recency.

        app_index keeps two apps with equal recency from interleaving.
        """
        return (
            -app_recency.get(entry.app_index, entry.record.last_access_millis),
            entry.app_index,
            -entry.record.last_access_millis,
            entry.ingest_index,
        )

    def _sort(self, entries: List[GroupAccessEntry], sort_mode: SortMode,
              app_recency: Dict[int, int]) -> List[GroupAccessEntry]:
        if sort_mode == SortMode.RECENT:
            return sorted(entries, key=self.recent_key)
        return sorted(entries, key=lambda e: self.recent_apps_key(e, app_recency))

    def _group(self, entries: List[GroupAccessEntry], sort_mode: SortMode) -> List[AppAccessGroup]:
        """
        Split the sorted entries into header rows.

        A new row starts when the app changes, or, when sorting by time,
        when the formatted access time differs from the previous entry's.
        """
        groups: List[AppAccessGroup] = []
        bucket: List[GroupAccessEntry] = []
        last_label: Optional[str] = None

        for entry in entries:
            if bucket and (entry.app.app_key != bucket[0].app.app_key
                           or (sort_mode == SortMode.RECENT
                               and entry.access_time_label != last_label)):
                groups.append(self._close_group(bucket, sort_mode))
                bucket = []

            bucket.append(entry)
            last_label = entry.access_time_label

        if bucket:
            groups.append(self._close_group(bucket, sort_mode))

        return groups

    def _close_group(self, bucket: List[GroupAccessEntry], sort_mode: SortMode) -> AppAccessGroup:
        separator = self.separator if self.separator is not None else settings.item_separator
        return AppAccessGroup(
            app=bucket[0].app,
            accesses=tuple(bucket),
            summary=join_labels((e.record.group.label for e in bucket), separator),
            time_label=bucket[0].access_time_label if sort_mode == SortMode.RECENT else None,
        )

    def platform_group_names(self) -> List[str]:
        if self.platform_groups is not None:
            return self.platform_groups
        return settings.platform_groups
