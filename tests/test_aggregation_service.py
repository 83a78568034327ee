"""Unit tests for AggregationEngine."""
import unittest
from typing import Dict, List, Tuple
from permusage.models import AppUsage, SortMode, UsageRecord, ViewParameters
from permusage.services.aggregation_service import AggregationEngine
from permusage.services.time_windows import HOUR_MILLIS

ANY_TIME_INDEX = 0
LAST_HOUR_INDEX = 3


def make_dataset(*records: UsageRecord) -> List[AppUsage]:
    """Group records by app, keeping first-appearance order."""
    by_app: Dict[str, List[UsageRecord]] = {}
    for record in records:
        by_app.setdefault(record.app_key, []).append(record)
    return [AppUsage(app_key=key, label=key.upper(), records=tuple(recs))
            for key, recs in by_app.items()]


def rec(app: str, group: str, t: int, count: int = 1, sensitive: bool = True) -> UsageRecord:
    return UsageRecord(app, group, t, count, sensitive, group_label=group.title())


def shape(view_model) -> List[Tuple[str, List[Tuple[str, int]]]]:
    """(app, [(group, time), ...]) per header row."""
    return [
        (g.app.app_key, [(a.record.group_name, a.record.last_access_millis) for a in g.accesses])
        for g in view_model.groups
    ]


class TestAggregationEngine(unittest.TestCase):
    """Test filtering, counting, sorting and grouping."""

    def setUp(self) -> None:
        self.engine = AggregationEngine(time_formatter=lambda t, now: str(t), separator=", ",
                                        platform_groups=[])
        self.now = 1000
        self.raw = make_dataset(
            rec("A", "camera", 100),
            rec("A", "mic", 50),
            rec("B", "camera", 200, sensitive=False),
        )

    def derive(self, raw: List[AppUsage], now: int = 1000, **params) -> object:
        return self.engine.derive(raw, ViewParameters(**params), now)

    def test_hides_system_records_but_reports_them(self) -> None:
        """System-only app is hidden, still flags has_system_apps."""
        vm = self.derive(self.raw, time_index=ANY_TIME_INDEX, show_system=False,
                         sort_mode=SortMode.RECENT_APPS)

        self.assertEqual(shape(vm), [("A", [("camera", 100), ("mic", 50)])])
        self.assertTrue(vm.has_system_apps)
        self.assertEqual(vm.group_counts, {None: 1, "camera": 1, "mic": 1})

    def test_show_system_orders_apps_by_their_latest_access(self) -> None:
        vm = self.derive(self.raw, time_index=ANY_TIME_INDEX, show_system=True,
                         sort_mode=SortMode.RECENT_APPS)

        self.assertEqual(shape(vm), [
            ("B", [("camera", 200)]),
            ("A", [("camera", 100), ("mic", 50)]),
        ])
        self.assertEqual(vm.group_counts, {None: 2, "camera": 2, "mic": 1})

    def test_empty_dataset(self) -> None:
        vm = self.derive([], time_index=ANY_TIME_INDEX)

        self.assertTrue(vm.is_empty)
        self.assertFalse(vm.has_system_apps)
        self.assertEqual(vm.group_counts, {None: 0})

    def test_everything_outside_window(self) -> None:
        """Old records in a one-hour window give an empty list, not an error."""
        now = 10 * HOUR_MILLIS
        raw = make_dataset(rec("A", "camera", now - 2 * HOUR_MILLIS))

        vm = self.derive(raw, now=now, time_index=LAST_HOUR_INDEX)

        self.assertTrue(vm.is_empty)
        self.assertFalse(vm.has_system_apps)

    def test_window_cutoff_is_inclusive(self) -> None:
        now = 10 * HOUR_MILLIS
        raw = make_dataset(
            rec("A", "camera", now - HOUR_MILLIS),
            rec("A", "mic", now - HOUR_MILLIS - 1),
        )

        vm = self.derive(raw, now=now, time_index=LAST_HOUR_INDEX)

        self.assertEqual(shape(vm), [("A", [("camera", now - HOUR_MILLIS)])])

    def test_malformed_records_dropped(self) -> None:
        """Zero or negative counts and future timestamps are not usage."""
        raw = make_dataset(
            rec("A", "camera", 100, count=0),
            rec("A", "mic", 100, count=-3),
            rec("A", "location", 5000),
            rec("A", "contacts", 10),
        )

        vm = self.derive(raw, time_index=ANY_TIME_INDEX)

        self.assertEqual(shape(vm), [("A", [("contacts", 10)])])
        self.assertEqual(vm.group_counts, {None: 1, "contacts": 1})

    def test_group_filter_keeps_counts_for_all_groups(self) -> None:
        raw = make_dataset(
            rec("A", "camera", 100),
            rec("A", "mic", 300),
            rec("B", "mic", 200),
        )

        vm = self.derive(raw, time_index=ANY_TIME_INDEX, group_filter="camera")

        self.assertEqual(shape(vm), [("A", [("camera", 100)])])
        self.assertEqual(vm.group_counts, {None: 2, "camera": 1, "mic": 2})
        self.assertEqual(vm.group_filter, "camera")

    def test_unknown_group_filter_is_empty(self) -> None:
        vm = self.derive(self.raw, time_index=ANY_TIME_INDEX, group_filter="sensors")

        self.assertTrue(vm.is_empty)
        self.assertTrue(vm.has_system_apps)

    def test_system_flag_ignores_group_filter(self) -> None:
        """has_system_apps is decided before the group filter."""
        vm = self.derive(self.raw, time_index=ANY_TIME_INDEX, group_filter="mic")

        self.assertEqual(shape(vm), [("A", [("mic", 50)])])
        self.assertTrue(vm.has_system_apps)

    def test_app_counted_once_per_group(self) -> None:
        raw = [AppUsage("A", records=(rec("A", "camera", 100), rec("A", "camera", 90)))]

        vm = self.derive(raw, time_index=ANY_TIME_INDEX)

        self.assertEqual(vm.group_counts, {None: 1, "camera": 1})
        self.assertEqual(len(vm.groups[0].accesses), 2)

    def test_recent_sort_interleaves_apps(self) -> None:
        raw = make_dataset(
            rec("A", "camera", 300),
            rec("A", "mic", 100),
            rec("B", "camera", 200),
        )

        vm = self.derive(raw, time_index=ANY_TIME_INDEX, sort_mode=SortMode.RECENT)

        self.assertEqual(shape(vm), [
            ("A", [("camera", 300)]),
            ("B", [("camera", 200)]),
            ("A", [("mic", 100)]),
        ])

    def test_recent_sort_ties_use_ingestion_order(self) -> None:
        raw = make_dataset(
            rec("B", "camera", 100),
            rec("A", "camera", 100),
            rec("C", "camera", 100),
        )

        vm = self.derive(raw, time_index=ANY_TIME_INDEX, sort_mode=SortMode.RECENT)

        self.assertEqual([g.app.app_key for g in vm.groups], ["B", "A", "C"])
        self.assertEqual(sum(len(g.accesses) for g in vm.groups), 3)

    def test_recent_grouping_splits_on_time_label(self) -> None:
        """Same app, different time bucket -> separate rows; same bucket -> merged."""
        engine = AggregationEngine(time_formatter=lambda t, now: f"bucket{t // 100}",
                                   separator=" + ", platform_groups=[])
        raw = make_dataset(
            rec("A", "camera", 550),
            rec("A", "mic", 520),
            rec("A", "location", 410),
            rec("B", "camera", 300),
        )

        vm = engine.derive(raw, ViewParameters(time_index=ANY_TIME_INDEX,
                                               sort_mode=SortMode.RECENT), 1000)

        self.assertEqual(shape(vm), [
            ("A", [("camera", 550), ("mic", 520)]),
            ("A", [("location", 410)]),
            ("B", [("camera", 300)]),
        ])
        self.assertEqual(vm.groups[0].summary, "Camera + Mic")
        self.assertEqual(vm.groups[0].time_label, "bucket5")
        self.assertEqual(vm.groups[1].time_label, "bucket4")

    def test_recent_grouping_never_merges_different_apps(self) -> None:
        engine = AggregationEngine(time_formatter=lambda t, now: "today", platform_groups=[])
        raw = make_dataset(rec("A", "camera", 300), rec("B", "camera", 200))

        vm = engine.derive(raw, ViewParameters(time_index=ANY_TIME_INDEX,
                                               sort_mode=SortMode.RECENT), 1000)

        self.assertEqual([g.app.app_key for g in vm.groups], ["A", "B"])

    def test_recent_apps_keeps_apps_contiguous(self) -> None:
        raw = make_dataset(
            rec("A", "camera", 100),
            rec("B", "camera", 400),
            rec("A", "mic", 300),
            rec("B", "mic", 50),
            rec("C", "camera", 300),
        )

        vm = self.derive(raw, time_index=ANY_TIME_INDEX, sort_mode=SortMode.RECENT_APPS)

        self.assertEqual(shape(vm), [
            ("B", [("camera", 400), ("mic", 50)]),
            ("A", [("mic", 300), ("camera", 100)]),
            ("C", [("camera", 300)]),
        ])
        self.assertIsNone(vm.groups[0].time_label)
        self.assertEqual(vm.groups[0].summary, "Camera, Mic")

    def test_recent_apps_equal_recency_does_not_interleave(self) -> None:
        raw = make_dataset(
            rec("A", "camera", 300),
            rec("A", "mic", 100),
            rec("B", "camera", 300),
            rec("B", "mic", 200),
        )

        vm = self.derive(raw, time_index=ANY_TIME_INDEX, sort_mode=SortMode.RECENT_APPS)

        self.assertEqual([g.app.app_key for g in vm.groups], ["A", "B"])

    def test_derive_is_idempotent(self) -> None:
        params = ViewParameters(time_index=ANY_TIME_INDEX, show_system=True,
                                sort_mode=SortMode.RECENT)

        first = self.engine.derive(self.raw, params, self.now)
        second = self.engine.derive(self.raw, params, self.now)

        self.assertEqual(first, second)

    def test_filter_soundness(self) -> None:
        now = 10 * HOUR_MILLIS
        raw = make_dataset(
            rec("A", "camera", now - 10),
            rec("A", "mic", now - 2 * HOUR_MILLIS),
            rec("B", "camera", now - 20, sensitive=False),
            rec("C", "camera", now - 30, count=0),
            rec("D", "mic", now - 40),
        )

        for show_system in (False, True):
            for group_filter in (None, "camera", "mic"):
                vm = self.derive(raw, now=now, time_index=LAST_HOUR_INDEX,
                                 show_system=show_system, group_filter=group_filter)
                for group in vm.groups:
                    for access in group.accesses:
                        record = access.record
                        self.assertGreaterEqual(record.last_access_millis, now - HOUR_MILLIS)
                        self.assertGreater(record.access_count, 0)
                        if not show_system:
                            self.assertTrue(record.user_sensitive)
                        if group_filter is not None:
                            self.assertEqual(record.group_name, group_filter)

    def test_index_lists_groups_from_whole_dataset(self) -> None:
        """Groups stay selectable in the dialog even when nothing survives for them."""
        self.derive(self.raw, time_index=ANY_TIME_INDEX, show_system=False)

        names = [g.name for g in self.engine.index.distinct_groups]
        self.assertEqual(names, ["camera", "mic"])
        self.assertEqual(self.engine.index.get_group_for("mic").label, "Mic")

    def test_platform_groups_restrict_listed_groups(self) -> None:
        engine = AggregationEngine(time_formatter=lambda t, now: "", platform_groups=["mic"])

        engine.derive(self.raw, ViewParameters(time_index=ANY_TIME_INDEX), self.now)

        self.assertEqual([g.name for g in engine.index.distinct_groups], ["mic"])
        self.assertIsNone(engine.index.get_group_for("camera"))


if __name__ == "__main__":
    unittest.main()
