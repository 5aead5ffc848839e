"""Display timezone persistence and resolution."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from logview.services.timezone_store import TimezoneStore
from logview.utils.timezones import resolve_display_timezone


class TestTimezoneStore:
    def test_defaults_when_file_missing(self, tmp_path):
        store = TimezoneStore(tmp_path / "timezone.txt")
        assert store.get_timezone() == "UTC"
        assert store.get_timezone("Asia/Tokyo") == "Asia/Tokyo"

    def test_set_persists_and_reloads(self, tmp_path):
        path = tmp_path / "nested" / "timezone.txt"
        assert TimezoneStore(path).set_timezone("  America/New_York ") == "America/New_York"
        assert TimezoneStore(path).get_timezone() == "America/New_York"

    @pytest.mark.parametrize("value", ["", "   ", "Nowhere/Special", "../etc/passwd"])
    def test_rejects_invalid_names(self, tmp_path, value):
        store = TimezoneStore(tmp_path / "timezone.txt")
        with pytest.raises(ValueError):
            store.set_timezone(value)
        assert not (tmp_path / "timezone.txt").exists()


class TestResolveDisplayTimezone:
    def test_uses_stored_zone(self, tmp_path, monkeypatch):
        store = TimezoneStore(tmp_path / "timezone.txt")
        store.set_timezone("Europe/Paris")
        monkeypatch.setattr("logview.utils.timezones.get_timezone_store", lambda: store)
        assert resolve_display_timezone() == ZoneInfo("Europe/Paris")

    def test_falls_back_on_corrupt_file(self, tmp_path, monkeypatch):
        path = tmp_path / "timezone.txt"
        path.write_text("Not/AZone", encoding="utf-8")
        store = TimezoneStore(path)
        monkeypatch.setattr("logview.utils.timezones.get_timezone_store", lambda: store)
        assert resolve_display_timezone() == datetime.now().astimezone().tzinfo
        assert resolve_display_timezone("UTC") == ZoneInfo("UTC")

    def test_unset_preference_uses_local_time(self, tmp_path, monkeypatch):
        store = TimezoneStore(tmp_path / "timezone.txt")
        monkeypatch.setattr("logview.utils.timezones.get_timezone_store", lambda: store)
        assert resolve_display_timezone() == datetime.now().astimezone().tzinfo
