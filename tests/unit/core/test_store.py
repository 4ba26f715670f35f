from __future__ import annotations

import json
from pathlib import Path

import pytest

from helpers.fake_listener import FakeServe
from lighthttp.core.exceptions import ConfigIOError
from lighthttp.core.server.models import ServerDescriptor
from lighthttp.core.store import ServerListStore


def test_default_path_lives_in_home(lighthttp_home: Path) -> None:
    assert ServerListStore().path == (lighthttp_home / "config.json").resolve()


def test_store_path_follows_settings(lighthttp_home: Path, project_settings) -> None:
    project_settings("store", {"store": {"path": "lists/servers.json"}})
    assert ServerListStore().path == (lighthttp_home / "lists" / "servers.json").resolve()


def test_missing_file_is_an_empty_list(tmp_path: Path) -> None:
    store = ServerListStore(tmp_path / "absent.json")
    assert store.load_raw() == {"serverList": []}
    assert store.load() == []


def test_save_then_load_fleet(tmp_path: Path) -> None:
    store = ServerListStore(tmp_path / "config.json")
    store.save([ServerDescriptor("docs", "/srv/docs", 8080, None, True)])

    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert on_disk == {
        "serverList": [
            {"name": "docs", "path": "/srv/docs", "port": {"http": 8080, "https": None}, "autoStart": True}
        ]
    }

    fleet = store.load_fleet(serve=FakeServe())
    entry = fleet.get("docs")
    assert entry.auto_start is True
    assert entry.server.http_port == 8080

    fleet.set_auto_start("docs", False)
    store.save(fleet)
    assert store.load()[0].auto_start is False


def test_invalid_json_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigIOError, match="does not contain valid JSON") as excinfo:
        ServerListStore(path).load()
    assert excinfo.value.path == path.resolve()


def test_schema_violation_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"serverList": [{"name": "x", "port": {"http": "eighty"}}]}), encoding="utf-8")
    with pytest.raises(ConfigIOError, match="Invalid configuration file"):
        ServerListStore(path).load()


def test_duplicate_names_are_reported(tmp_path: Path) -> None:
    store = ServerListStore(tmp_path / "config.json")
    store.save({"serverList": [{"name": "a", "port": {"http": 1}}, {"name": "a", "port": {"http": 2}}]})
    with pytest.raises(ConfigIOError, match="Invalid server list"):
        store.load_fleet(serve=FakeServe())


def test_unwritable_location_is_reported(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    store = ServerListStore(blocker / "config.json")
    with pytest.raises(ConfigIOError, match="Unable to write"):
        store.save({"serverList": []})
