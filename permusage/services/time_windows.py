"""Catalog of selectable recency windows."""
from typing import List, Tuple
from ..models import ANY_TIME, TimeWindow

MINUTE_MILLIS = 60_000
HOUR_MILLIS = 60 * MINUTE_MILLIS
DAY_MILLIS = 24 * HOUR_MILLIS

# Start of the loader's query range never goes before the epoch
EPOCH_MILLIS = 0


class TimeWindowCatalog:
    """Fixed, ordered catalog from "any time" down to the shortest window."""

    WINDOWS: Tuple[TimeWindow, ...] = (
        TimeWindow(ANY_TIME, "Any time", "Used at any time"),
        TimeWindow(7 * DAY_MILLIS, "Last 7 days", "Used in the last 7 days"),
        TimeWindow(DAY_MILLIS, "Last 24 hours", "Used in the last 24 hours"),
        TimeWindow(HOUR_MILLIS, "Last hour", "Used in the last hour"),
        TimeWindow(15 * MINUTE_MILLIS, "Last 15 minutes", "Used in the last 15 minutes"),
        TimeWindow(MINUTE_MILLIS, "Last minute", "Used in the last minute"),
    )

    def __init__(self) -> None:
        self.windows: List[TimeWindow] = list(self.WINDOWS)

    def __len__(self) -> int:
        return len(self.windows)

    def __getitem__(self, index: int) -> TimeWindow:
        return self.windows[index]

    def initialize(self, min_duration_millis: int) -> Tuple[List[TimeWindow], int]:
        """
        Pick the smallest window that still covers the requested duration.

        Returns:
            The catalog and the index of the tightest window whose duration is
            >= min_duration_millis, or 0 ("any time") if none qualifies.
        """
        supremum = ANY_TIME
        supremum_index = -1
        for i, window in enumerate(self.windows):
            if min_duration_millis <= window.duration_millis <= supremum:
                supremum = window.duration_millis
                supremum_index = i

        return list(self.windows), max(supremum_index, 0)

    def is_valid_index(self, index: int) -> bool:
        return 0 <= index < len(self.windows)

    @staticmethod
    def window_start(window: TimeWindow, now_millis: int) -> int:
        """Lower bound for a data source query, clamped to the epoch."""
        if window.is_any_time:
            return EPOCH_MILLIS
        return max(now_millis - window.duration_millis, EPOCH_MILLIS)
