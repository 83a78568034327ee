"""Asynchronous delivery of permission usage datasets and app info."""
import sqlite3
import threading
from typing import Callable, Iterable, List, Optional
from ..db.usage_repository import UsageRepository
from ..log import debug_log
from ..models import AppUsage, UsageFlag

DatasetCallback = Callable[[Optional[List[AppUsage]]], None]
LabelsCallback = Callable[[Optional[List[str]]], None]


class UsageLoader:
    """
    Runs repository queries off the UI thread and hands back whole results.

    A failed query is delivered as None so callers can keep what they have.
    Callbacks run on the worker thread unless sync=True; callers that need
    the UI thread must marshal the result themselves.
    """

    def __init__(self, repo: Optional[UsageRepository] = None) -> None:
        self.repo = repo or UsageRepository()

    def load(self, filter_package: Optional[str], filter_groups: Optional[Iterable[str]],
             start: int, end: int, flags: UsageFlag, callback: DatasetCallback,
             sync: bool = False) -> Optional[threading.Thread]:
        """
        Load usages in [start, end] and pass the dataset to callback.

        Returns:
            The worker thread, or None when run synchronously
        """
        groups = list(filter_groups) if filter_groups is not None else None
        args = (filter_package, groups, start, end, flags, callback)
        if sync:
            self._run_load(*args)
            return None

        thread = threading.Thread(target=self._run_load, args=args, daemon=True)
        thread.start()
        return thread

    def _run_load(self, filter_package: Optional[str], filter_groups: Optional[List[str]],
                  start: int, end: int, flags: UsageFlag, callback: DatasetCallback) -> None:
        try:
            dataset: Optional[List[AppUsage]] = self.repo.load_usages(
                filter_package, filter_groups, start, end, flags
            )
        except (sqlite3.Error, OSError) as e:
            print(f"Failed to load permission usage: {e}")
            dataset = None
        else:
            debug_log(f"loaded {len(dataset)} apps for [{start}, {end}] flags={int(flags)}")
        callback(dataset)

    def load_app_info(self, app_keys: List[str], callback: LabelsCallback,
                      sync: bool = False) -> Optional[threading.Thread]:
        """Resolve app labels for an already ordered list of app keys."""
        keys = list(app_keys)
        if sync:
            self._run_app_info(keys, callback)
            return None

        thread = threading.Thread(target=self._run_app_info, args=(keys, callback), daemon=True)
        thread.start()
        return thread

    def _run_app_info(self, app_keys: List[str], callback: LabelsCallback) -> None:
        try:
            labels: Optional[List[str]] = self.repo.find_app_labels(app_keys)
        except (sqlite3.Error, OSError) as e:
            print(f"Failed to resolve app labels: {e}")
            labels = None
        callback(labels)
