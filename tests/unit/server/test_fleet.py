from __future__ import annotations

import asyncio

import pytest

from helpers.fake_listener import FakeServe
from lighthttp.core.exceptions import StartupError, ValidationError
from lighthttp.core.server.fleet import ServerFleet, server_id
from lighthttp.core.server.models import ServerDescriptor


def fleet_of(*descriptors: ServerDescriptor, serve: FakeServe | None = None) -> ServerFleet:
    return ServerFleet.from_descriptors(
        descriptors, serve=serve or FakeServe(), host="127.0.0.1", first_free_port=8080
    )


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("main http", "server_main_http"),
        ("WM.Editor", "server_wm_editor"),
        ("playerAssets", "server_player_assets"),
        ("0", "server_0"),
    ],
)
def test_server_id(name: str, expected: str) -> None:
    assert server_id(name) == expected


def test_server_id_requires_usable_characters() -> None:
    with pytest.raises(ValidationError):
        server_id("!!!")


class TestBookkeeping:
    def test_add_and_lookup_by_name_or_id(self) -> None:
        fleet = fleet_of(ServerDescriptor("Docs Site", "/srv/docs", 8080))
        entry = fleet.get("Docs Site")
        assert entry.id == "server_docs_site"
        assert fleet.get("server_docs_site") is entry
        assert "Docs Site" in fleet
        assert len(fleet) == 1

    def test_unknown_name_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            fleet_of().get("nope")

    def test_duplicate_names_and_ids_are_rejected(self) -> None:
        fleet = fleet_of(ServerDescriptor("docs", ".", 8080))
        with pytest.raises(ValidationError, match="already exists"):
            fleet.add(ServerDescriptor("docs", ".", 8081))
        with pytest.raises(ValidationError, match="collides"):
            fleet.add(ServerDescriptor("Docs", ".", 8081))

    def test_create_assigns_next_name_and_port(self) -> None:
        fleet = fleet_of()
        first = fleet.create("/srv/a")
        second = fleet.create("/srv/b")
        assert (first.name, first.server.http_port) == ("0", 8080)
        assert (second.name, second.server.http_port) == ("1", 8081)

    def test_create_skips_taken_names(self) -> None:
        fleet = fleet_of(ServerDescriptor("1", ".", 9000))
        entry = fleet.create("/srv/a")
        assert entry.name == "2"
        assert entry.server.http_port == 8081

    def test_rename_updates_id(self) -> None:
        fleet = fleet_of(ServerDescriptor("a", ".", 8080), ServerDescriptor("b", ".", 8081))
        entry = fleet.rename("a", "Alpha")
        assert entry.id == "server_alpha"
        assert fleet.get("Alpha") is entry
        with pytest.raises(ValidationError):
            fleet.rename("Alpha", "b")

    def test_remove(self) -> None:
        fleet = fleet_of(ServerDescriptor("a", ".", 8080))
        fleet.remove("a")
        assert len(fleet) == 0

    def test_to_config_preserves_order_and_flags(self) -> None:
        fleet = fleet_of(
            ServerDescriptor("b", "/b", 8081, auto_start=True),
            ServerDescriptor("a", "/a", None, 8443),
        )
        fleet.set_auto_start("a", True)
        fleet.set_auto_start("b", False)
        assert fleet.to_config() == {
            "serverList": [
                {"name": "b", "path": "/b", "port": {"http": 8081, "https": None}, "autoStart": False},
                {"name": "a", "path": "/a", "port": {"http": None, "https": 8443}, "autoStart": True},
            ]
        }


class TestLifecycle:
    def test_autostart_collects_failures_without_raising(self) -> None:
        async def scenario():
            serve = FakeServe(fail_ports={8081: OSError("in use")})
            fleet = fleet_of(
                ServerDescriptor("ok", ".", 8080, auto_start=True),
                ServerDescriptor("broken", ".", 8081, auto_start=True),
                ServerDescriptor("manual", ".", 8082),
                serve=serve,
            )
            failures = await fleet.autostart()
            alive = {entry.name: entry.server.alive for entry in fleet}
            warnings = {entry.name: entry.warning for entry in fleet}
            await fleet.shutdown()
            return failures, alive, warnings, serve

        failures, alive, warnings, serve = asyncio.run(scenario())
        assert [f.server_name for f in failures] == ["broken"]
        assert alive == {"ok": True, "broken": False, "manual": False}
        assert warnings["broken"] is failures[0]
        assert warnings["ok"] is None
        assert serve.open_listeners() == []

    def test_start_failure_is_recorded_then_cleared(self) -> None:
        async def scenario():
            serve = FakeServe(fail_ports={8080: OSError("in use")})
            fleet = fleet_of(ServerDescriptor("a", ".", 8080), serve=serve)
            with pytest.raises(StartupError):
                await fleet.start("a")
            recorded = fleet.get("a").warning
            serve.fail_ports.clear()
            await fleet.start("a")
            cleared = fleet.get("a").warning
            await fleet.shutdown()
            return recorded, cleared

        recorded, cleared = asyncio.run(scenario())
        assert isinstance(recorded, StartupError)
        assert cleared is None

    def test_set_path_restarts_running_server(self) -> None:
        async def scenario():
            serve = FakeServe()
            fleet = fleet_of(ServerDescriptor("a", "/old", 8080), serve=serve)
            await fleet.start("a")
            await fleet.set_path("a", "/new")
            await fleet.shutdown()
            return serve

        serve = asyncio.run(scenario())
        assert [str(c.directory) for c in serve.configs] == ["/old", "/new"]

    def test_stop_and_restart(self) -> None:
        async def scenario():
            serve = FakeServe()
            fleet = fleet_of(ServerDescriptor("a", ".", 8080), serve=serve)
            await fleet.start("a")
            await fleet.restart("a")
            restarted = fleet.get("a").server.alive
            fleet.stop("a")
            stopped = fleet.get("a").server.alive
            await fleet.shutdown()
            return serve, restarted, stopped

        serve, restarted, stopped = asyncio.run(scenario())
        assert restarted is True
        assert stopped is False
        assert len(serve.listeners) == 2
