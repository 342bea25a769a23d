import json
import tempfile
import unittest
from pathlib import Path

from s3_admin.settings import AppSettings, SettingsStorage


class SettingsStorageTests(unittest.TestCase):
    def test_load_returns_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            storage = SettingsStorage(path)

            settings = storage.load()

            self.assertEqual(AppSettings(), settings)
            self.assertFalse(settings.tree_view_enabled)
            self.assertEqual(3, settings.max_folder_depth)

    def test_load_returns_defaults_for_corrupt_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            path.write_text("{not json", encoding="utf-8")

            self.assertEqual(AppSettings(), SettingsStorage(path).load())

    def test_load_sanitizes_invalid_values(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            payload = {
                "tree_view_enabled": "yes",
                "max_folder_depth": -1,
                "remember_last_bucket": 1,
                "last_bucket": 123,
                "last_connection": None,
            }
            path.write_text(json.dumps(payload), encoding="utf-8")
            storage = SettingsStorage(path)

            settings = storage.load()

            self.assertFalse(settings.tree_view_enabled)
            self.assertEqual(AppSettings.max_folder_depth, settings.max_folder_depth)
            self.assertFalse(settings.remember_last_bucket)
            self.assertEqual("", settings.last_bucket)
            self.assertEqual("", settings.last_connection)

    def test_save_and_load_round_trip(self):
        with tempfile.TemporaryDirectory() as tmp:
            storage = SettingsStorage(Path(tmp) / "nested" / "settings.json")
            settings = AppSettings(
                tree_view_enabled=True,
                max_folder_depth=10,
                remember_last_bucket=True,
                last_bucket="bucket",
                last_connection="conn",
            )

            storage.save(settings)

            self.assertEqual(settings, storage.load())

    def test_save_clamps_folder_depth(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.json"
            storage = SettingsStorage(path)

            storage.save(AppSettings(max_folder_depth=0))

            saved = json.loads(path.read_text(encoding="utf-8"))
            self.assertEqual(1, saved["max_folder_depth"])


if __name__ == "__main__":
    unittest.main()
