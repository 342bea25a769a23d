import tempfile
import unittest
from pathlib import Path
from unittest import mock

from s3_admin.connections import ConnectionManager, NotConnectedError
from s3_admin.profiles import ConnectionProfile
from s3_admin.settings import AppSettings, SettingsStorage


class FakeProfileStorage:
    def __init__(self, profiles=None):
        self._profiles = list(profiles or [])
        self.saved_snapshots: list[list[ConnectionProfile]] = []

    def load(self):
        return list(self._profiles)

    def save(self, profiles):
        snapshot = [ConnectionProfile(**profile.__dict__) for profile in profiles]
        self.saved_snapshots.append(snapshot)
        self._profiles = snapshot


class FakeStore:
    def __init__(self, profile):
        self.profile = profile


def make_profile(name="alpha", **overrides):
    values = {
        "name": name,
        "endpoint_url": "https://one",
        "access_key": "a",
        "secret_key": "b",
    }
    values.update(overrides)
    return ConnectionProfile(**values)


class ConnectionManagerTests(unittest.TestCase):
    def setUp(self):
        self.storage = FakeProfileStorage()
        self.manager = ConnectionManager(self.storage, store_factory=FakeStore)

    def test_store_requires_connection(self):
        self.assertFalse(self.manager.is_connected)
        with self.assertRaises(NotConnectedError):
            self.manager.store

    def test_loads_profiles_from_storage_on_init(self):
        profiles = [make_profile()]
        manager = ConnectionManager(FakeProfileStorage(profiles), store_factory=FakeStore)

        self.assertEqual(profiles, manager.list_profiles())

    def test_save_profile_creates_and_updates_profiles(self):
        profile = make_profile()
        self.manager.save_profile(profile)
        self.assertEqual([profile], self.manager.list_profiles())

        updated = make_profile(endpoint_url="https://two", default_bucket="media")
        self.manager.save_profile(updated)
        self.assertEqual([updated], self.manager.list_profiles())
        self.assertEqual("media", self.storage._profiles[0].default_bucket)

    def test_save_profile_supports_renaming(self):
        self.manager.save_profile(make_profile())
        renamed = make_profile("beta")

        self.manager.save_profile(renamed, original_name="alpha")

        self.assertEqual([renamed], self.manager.list_profiles())

    def test_delete_profile_removes_and_disconnects(self):
        self.manager.save_profile(make_profile())
        self.manager.connect_with_profile("alpha")

        self.manager.delete_profile("alpha")

        self.assertEqual([], self.manager.list_profiles())
        self.assertEqual([], self.storage._profiles)
        self.assertFalse(self.manager.is_connected)
        self.assertIsNone(self.manager.selected_profile)
        with self.assertRaises(ValueError):
            self.manager.delete_profile("missing")

    def test_connect_with_profile_opens_store(self):
        profile = make_profile(endpoint_url="https://example")
        self.manager.save_profile(profile)

        store = self.manager.connect_with_profile("alpha")

        self.assertIs(store, self.manager.store)
        self.assertEqual(profile, store.profile)
        self.assertEqual("alpha", self.manager.selected_profile)

    def test_connect_with_unknown_profile_raises(self):
        with self.assertRaises(ValueError):
            self.manager.connect_with_profile("missing")

    def test_connect_with_profile_remembers_connection(self):
        with tempfile.TemporaryDirectory() as tmp:
            settings_storage = SettingsStorage(Path(tmp) / "settings.json")
            settings_storage.save(AppSettings(remember_last_bucket=True))
            manager = ConnectionManager(
                FakeProfileStorage([make_profile()]),
                settings_storage=settings_storage,
                store_factory=FakeStore,
            )

            manager.connect_with_profile("alpha")

            self.assertEqual("alpha", settings_storage.load().last_connection)

    def test_connection_is_not_remembered_when_last_bucket_is_not(self):
        with tempfile.TemporaryDirectory() as tmp:
            settings_storage = SettingsStorage(Path(tmp) / "settings.json")
            settings_storage.save(AppSettings(remember_last_bucket=False))
            manager = ConnectionManager(
                FakeProfileStorage([make_profile()]),
                settings_storage=settings_storage,
                store_factory=FakeStore,
            )

            manager.connect_with_profile("alpha")

            self.assertTrue(manager.is_connected)
            self.assertEqual("", settings_storage.load().last_connection)

    def test_connect_from_env(self):
        environ = {"S3_ENDPOINT_URL": "https://env", "S3_ACCESS_KEY_ID": "key"}
        with mock.patch.dict("os.environ", environ, clear=True):
            store = self.manager.connect_from_env()

        self.assertEqual("https://env", store.profile.endpoint_url)
        self.assertEqual("env", self.manager.selected_profile)

    def test_connect_from_env_requires_variables(self):
        with mock.patch.dict("os.environ", {}, clear=True):
            with self.assertRaises(NotConnectedError):
                self.manager.connect_from_env()


if __name__ == "__main__":
    unittest.main()
