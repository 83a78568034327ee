"""Index of observable permission groups and per-group app counts."""
from typing import Dict, Iterable, List, Optional, Set
from ..models import AppUsage, GroupAccessEntry, PermissionGroup


class UsageIndex:
    """
    Rebuilt from scratch on every derivation; never patched incrementally.

    Attributes:
        distinct_groups: observable groups in first-occurrence order
        group_counts: group name -> number of distinct apps, with the
            None key holding the "any group" tally
    """

    def __init__(self) -> None:
        self.distinct_groups: List[PermissionGroup] = []
        self.group_counts: Dict[Optional[str], int] = {}

    @classmethod
    def build(cls, surviving: Iterable[GroupAccessEntry],
              dataset: Optional[Iterable[AppUsage]] = None,
              platform_groups: Optional[Iterable[str]] = None) -> "UsageIndex":
        """
        Count distinct apps per group over the surviving entries.

        Args:
            surviving: entries left after the time and system filters
            dataset: full raw dataset; when given, every group it contains
                is observable even if no entry for it survived
            platform_groups: if non-empty, only these group names are listed
        """
        index = cls()
        allowed = set(platform_groups or ())
        seen: Set[str] = set()
        apps_per_group: Dict[Optional[str], Set[str]] = {}

        def observe(group: PermissionGroup) -> None:
            if allowed and group.name not in allowed:
                return
            if group.name not in seen:
                seen.add(group.name)
                index.distinct_groups.append(group)

        for entry in surviving:
            group_name = entry.record.group_name
            apps_per_group.setdefault(group_name, set()).add(entry.app.app_key)
            apps_per_group.setdefault(None, set()).add(entry.app.app_key)
            if dataset is None:
                observe(entry.record.group)

        if dataset is not None:
            for app in dataset:
                for record in app.records:
                    observe(record.group)

        index.group_counts = {name: len(apps) for name, apps in apps_per_group.items()}
        index.group_counts.setdefault(None, 0)
        return index

    @classmethod
    def from_dataset(cls, dataset: Iterable[AppUsage],
                     platform_groups: Optional[Iterable[str]] = None) -> "UsageIndex":
        """Index listing the dataset's groups, with no counts."""
        return cls.build((), dataset, platform_groups)

    def get_group_for(self, name: str) -> Optional[PermissionGroup]:
        """Find an observable group by name, or None if it is absent."""
        for group in self.distinct_groups:
            if group.name == name:
                return group
        return None

    def count_for(self, name: Optional[str]) -> int:
        return self.group_counts.get(name, 0)
