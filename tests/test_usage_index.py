"""Unit tests for UsageIndex."""
import unittest
from permusage.models import AppUsage, GroupAccessEntry, UsageRecord
from permusage.services.usage_index import UsageIndex


def entry(app_key: str, group: str, index: int = 0) -> GroupAccessEntry:
    record = UsageRecord(app_key, group, 100, 1, group_label=group.upper())
    return GroupAccessEntry(AppUsage(app_key, records=(record,)), record, index, index)


class TestUsageIndex(unittest.TestCase):
    """Test distinct group listing and app counting."""

    def test_empty(self) -> None:
        index = UsageIndex.build([])

        self.assertEqual(index.distinct_groups, [])
        self.assertEqual(index.group_counts, {None: 0})
        self.assertEqual(index.count_for("camera"), 0)

    def test_counts_distinct_apps(self) -> None:
        index = UsageIndex.build([
            entry("a", "camera"),
            entry("a", "camera"),
            entry("b", "camera"),
            entry("a", "mic"),
        ])

        self.assertEqual(index.group_counts, {None: 2, "camera": 2, "mic": 1})
        self.assertEqual([g.name for g in index.distinct_groups], ["camera", "mic"])

    def test_dataset_lists_groups_without_survivors(self) -> None:
        dataset = [AppUsage("a", records=(UsageRecord("a", "sensors", 1, 1),))]

        index = UsageIndex.build([entry("b", "camera")], dataset)

        self.assertEqual([g.name for g in index.distinct_groups], ["sensors"])
        self.assertEqual(index.count_for("camera"), 1)
        self.assertEqual(index.count_for("sensors"), 0)

    def test_platform_groups_allowlist(self) -> None:
        index = UsageIndex.build([entry("a", "camera"), entry("a", "legacy")],
                                 platform_groups=["camera"])

        self.assertEqual([g.name for g in index.distinct_groups], ["camera"])
        # Counts are not restricted
        self.assertEqual(index.count_for("legacy"), 1)

    def test_get_group_for(self) -> None:
        index = UsageIndex.build([entry("a", "camera")])

        group = index.get_group_for("camera")
        self.assertIsNotNone(group)
        self.assertEqual(group.label, "CAMERA")
        self.assertIsNone(index.get_group_for("mic"))

    def test_label_falls_back_to_name(self) -> None:
        dataset = [AppUsage("a", records=(UsageRecord("a", "camera", 1, 1),))]

        index = UsageIndex.from_dataset(dataset)

        self.assertEqual(index.get_group_for("camera").label, "camera")
        self.assertEqual(index.group_counts, {None: 0})


if __name__ == "__main__":
    unittest.main()
