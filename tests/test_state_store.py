"""Unit tests for StateStore and Config loading."""
import json
import os
import tempfile
import unittest
from permusage.config import Config
from permusage.services.state_store import StateStore


class TestStateStore(unittest.TestCase):
    """Test saving and restoring controller state."""

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "nested", "state.json")
        self.store = StateStore(self.path)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_missing_file(self) -> None:
        self.assertEqual(self.store.load(), {})

    def test_round_trip(self) -> None:
        state = {"show_system": True, "filter_group": "camera", "time_index": 2,
                 "sort": 1, "finished_initial_load": True}

        self.store.save(state)

        self.assertEqual(self.store.load(), state)

    def test_unknown_keys_dropped(self) -> None:
        self.store.save({"sort": 2, "window_geometry": [1, 2]})

        loaded = self.store.load()

        self.assertEqual(loaded["sort"], 2)
        self.assertNotIn("window_geometry", loaded)

    def test_corrupt_file(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, 'w') as f:
            f.write("{not json")

        self.assertEqual(self.store.load(), {})

    def test_non_object_file(self) -> None:
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, 'w') as f:
            json.dump([1, 2, 3], f)

        self.assertEqual(self.store.load(), {})

    def test_clear(self) -> None:
        self.store.save({"sort": 1})

        self.store.clear()
        self.store.clear()

        self.assertFalse(os.path.exists(self.path))


class TestConfig(unittest.TestCase):
    """Test user config overrides."""

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "settings.json")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_defaults_without_file(self) -> None:
        config = Config(self.path)

        self.assertEqual(config.default_duration_millis, 24 * 60 * 60_000)
        self.assertEqual(config.item_separator, ", ")
        self.assertEqual(config.platform_groups, [])

    def test_overrides_and_reload(self) -> None:
        config = Config(self.path)
        with open(self.path, 'w') as f:
            json.dump({"default_duration_minutes": 60, "item_separator": " / ",
                       "platform_groups": ["camera"]}, f)

        config.reload()

        self.assertEqual(config.default_duration_millis, 60 * 60_000)
        self.assertEqual(config.item_separator, " / ")
        self.assertEqual(config.platform_groups, ["camera"])


if __name__ == "__main__":
    unittest.main()
