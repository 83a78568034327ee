"""Repository for permission usage data access."""
from typing import Dict, Iterable, List, Optional, Tuple
from ..models import AppUsage, UsageFlag, UsageRecord
from .connection import get_cursor


class UsageRepository:
    """Repository for permission usage rows."""

    # Row kinds stored in the 'kind' column
    KIND_LAST = 'last'
    KIND_HISTORICAL = 'historical'

    @staticmethod
    def insert(package_name: str, group_name: str, access_time: int,
               access_count: int = 1, user_sensitive: bool = True,
               kind: str = KIND_LAST, app_label: str = "", group_label: str = "") -> None:
        """Insert a usage row. access_time is in epoch milliseconds."""
        if kind not in (UsageRepository.KIND_LAST, UsageRepository.KIND_HISTORICAL):
            raise ValueError(f"Unknown usage kind '{kind}'")

        with get_cursor() as cur:
            cur.execute("""
                INSERT INTO permission_usage
                    (package_name, app_label, group_name, group_label,
                     access_time, access_count, user_sensitive, kind)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (package_name, app_label, group_name, group_label,
                  access_time, access_count, int(user_sensitive), kind))

    @staticmethod
    def kinds_for(flags: UsageFlag) -> Tuple[str, ...]:
        kinds: List[str] = []
        if flags & UsageFlag.LAST:
            kinds.append(UsageRepository.KIND_LAST)
        if flags & UsageFlag.HISTORICAL:
            kinds.append(UsageRepository.KIND_HISTORICAL)
        return tuple(kinds)

    @staticmethod
    def load_usages(filter_package: Optional[str], filter_groups: Optional[Iterable[str]],
                    start: int, end: int,
                    flags: UsageFlag = UsageFlag.LAST | UsageFlag.HISTORICAL) -> List[AppUsage]:
        """
        Aggregate usage per (package, group) inside [start, end].

        Each record carries the latest access time and the summed access
        count. Apps and their records keep first-ingestion order.
        """
        kinds = UsageRepository.kinds_for(flags)
        if not kinds:
            return []

        clauses = ["access_time >= ?", "access_time <= ?",
                   "kind IN ({})".format(','.join('?' * len(kinds)))]
        params: List[object] = [start, end, *kinds]

        if filter_package is not None:
            clauses.append("package_name = ?")
            params.append(filter_package)

        groups = tuple(filter_groups) if filter_groups is not None else None
        if groups is not None:
            if not groups:
                return []
            clauses.append("group_name IN ({})".format(','.join('?' * len(groups))))
            params.extend(groups)

        with get_cursor() as cur:
            cur.execute("""
                SELECT package_name,
                       MAX(app_label) AS app_label,
                       group_name,
                       MAX(group_label) AS group_label,
                       MAX(access_time) AS last_access,
                       SUM(access_count) AS access_count,
                       MAX(user_sensitive) AS user_sensitive,
                       MIN(id) AS first_id
                FROM permission_usage
                WHERE {}
                GROUP BY package_name, group_name
                ORDER BY first_id ASC
            """.format(" AND ".join(clauses)), params)
            rows = cur.fetchall()

        labels: Dict[str, str] = {}
        records: Dict[str, List[UsageRecord]] = {}
        for row in rows:
            package = row["package_name"]
            if package not in records:
                records[package] = []
            if row["app_label"] and package not in labels:
                labels[package] = row["app_label"]
            records[package].append(UsageRecord(
                app_key=package,
                group_name=row["group_name"],
                last_access_millis=row["last_access"],
                access_count=row["access_count"],
                user_sensitive=bool(row["user_sensitive"]),
                group_label=row["group_label"] or "",
            ))

        return [AppUsage(app_key=package, label=labels.get(package, ""), records=tuple(recs))
                for package, recs in records.items()]

    @staticmethod
    def find_app_labels(app_keys: List[str]) -> List[str]:
        """Labels for the given packages, positionally aligned; '' if unknown."""
        if not app_keys:
            return []
        with get_cursor() as cur:
            cur.execute("""
                SELECT package_name, MAX(app_label) AS app_label
                FROM permission_usage
                WHERE package_name IN ({})
                GROUP BY package_name
            """.format(','.join('?' * len(app_keys))), app_keys)
            found = {row["package_name"]: row["app_label"] or "" for row in cur.fetchall()}
        return [found.get(key, "") for key in app_keys]
