from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path

import pytest

from helpers.fake_listener import FakeServe
from lighthttp.core.exceptions import PreconditionError, StartupError, ValidationError
from lighthttp.core.server.instance import ServerInstance
from lighthttp.core.server.models import ServerDescriptor, ServerState, TLSMaterial

TLS = TLSMaterial(certfile=Path("/tmp/cert.pem"), keyfile=Path("/tmp/key.pem"))


def make(name: str = "main", http_port=None, https_port=None, *, serve: FakeServe, **kwargs) -> ServerInstance:
    return ServerInstance(name, "public", http_port, https_port, host="127.0.0.1", tls=TLS, serve=serve, **kwargs)


class TestConfiguration:
    def test_defaults_are_disabled(self) -> None:
        server = ServerInstance("main")
        assert server.http_port is None and server.https_port is None
        assert not server.http and not server.https
        assert server.port is None
        assert server.state is ServerState.CONFIGURED
        assert not server.alive
        assert server.listen_url is None

    def test_enable_uses_configured_defaults(self) -> None:
        server = ServerInstance("main").enable_http().enable_https()
        assert server.http_port == 80
        assert server.https_port == 443
        assert server.port == 80

    def test_enable_defaults_follow_project_settings(self, project_settings) -> None:
        project_settings("server", {"server": {"default_http_port": 8000}})
        assert ServerInstance("main").enable_http().http_port == 8000

    def test_disable_and_chain(self) -> None:
        server = ServerInstance("main", ".", 8080, 8443).disable_http()
        assert server.http_port is None
        assert server.port == 8443
        assert server.disable_https().https_port is None

    def test_invalid_values_are_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ServerInstance("")
        with pytest.raises(ValidationError):
            ServerInstance("main", "")
        with pytest.raises(ValidationError):
            ServerInstance("main").enable_http(70000)

    def test_descriptor_round_trip(self) -> None:
        server = ServerInstance.from_descriptor(ServerDescriptor("docs", "/srv/docs", 8080, None, True))
        assert server.name == "docs"
        assert server.path == Path("/srv/docs")
        assert server.to_descriptor(auto_start=True) == ServerDescriptor("docs", "/srv/docs", 8080, None, True)

    def test_add_rewrite_accepts_any_target(self) -> None:
        server = ServerInstance("main").add_rewrite("/old/(.*)", "/new/$1")
        assert [str(r) for r in server.rewrite_rules] == ["/old/(.*) -> /new/$1"]


class TestAliasPath:
    def test_dead_target_is_rejected_without_side_effects(self) -> None:
        serve = FakeServe()
        main = make(http_port=0, serve=serve)
        player = make("player", http_port=0, serve=serve)

        with pytest.raises(PreconditionError, match="player must be alive"):
            main.add_alias_path("mt", player)

        assert main.rewrite_rules == ()
        assert player.rewrite_rules == ()
        assert serve.listeners == []

    def test_alias_to_live_target_captures_its_url(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="lighthttp")

        async def scenario() -> ServerInstance:
            serve = FakeServe()
            player = make("player", http_port=8001, serve=serve)
            await player.connect()
            main = make(http_port=80, serve=serve)
            main.add_alias_path("assets", player)
            player.disconnect()
            await player.wait_closed()
            return main

        main = asyncio.run(scenario())
        assert [str(r) for r in main.rewrite_rules] == ["/assets/(.*) -> http://127.0.0.1:8001/$1"]
        assert "A path alias has been added to main server" in caplog.text

    def test_alias_to_url(self) -> None:
        main = ServerInstance("main").add_alias_path("docs", "https://example.test/base/")
        assert [str(r) for r in main.rewrite_rules] == ["/docs/(.*) -> https://example.test/base/$1"]

    def test_invalid_prefix_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ServerInstance("main").add_alias_path("..", "http://127.0.0.1:1")


class TestConnect:
    def test_no_enabled_protocol_is_a_no_op(self) -> None:
        serve = FakeServe()
        server = make(serve=serve)
        asyncio.run(server.connect())
        assert serve.listeners == []
        assert server.state is ServerState.CONFIGURED
        assert not server.alive

    def test_connect_passes_settings_to_each_listener(self) -> None:
        async def scenario():
            serve = FakeServe()
            server = make(http_port=0, https_port=0, serve=serve, proxy_timeout_seconds=5.0)
            server.add_rewrite("/a/(.*)", "/b/$1")
            await server.connect()
            return serve, server

        serve, server = asyncio.run(scenario())
        http_cfg, https_cfg = serve.configs
        assert (http_cfg.tls, https_cfg.tls) == (False, True)
        assert http_cfg.host == "127.0.0.1"
        assert http_cfg.directory == Path("public")
        assert http_cfg.rewrite == ("/a/(.*) -> /b/$1",)
        assert http_cfg.proxy_timeout_seconds == 5.0
        assert https_cfg.certfile == TLS.certfile and https_cfg.keyfile == TLS.keyfile
        assert http_cfg.certfile is None

        assert server.state is ServerState.RUNNING
        assert server.alive
        assert server.listen_addresses == ("http://127.0.0.1:40001", "https://127.0.0.1:40002")
        assert server.listen_url == "http://127.0.0.1:40001"

    def test_tls_material_is_generated_off_the_event_loop(self, monkeypatch: pytest.MonkeyPatch) -> None:
        threads: list[threading.Thread] = []

        def fake_ensure() -> TLSMaterial:
            threads.append(threading.current_thread())
            return TLS

        monkeypatch.setattr("lighthttp.core.server.tls.ensure_tls_material", fake_ensure)

        async def scenario():
            serve = FakeServe()
            server = ServerInstance("secure", "public", None, 0, host="127.0.0.1", serve=serve)
            await server.connect()
            await server.reconnect()
            return serve

        serve = asyncio.run(scenario())
        assert len(threads) == 1
        assert threads[0] is not threading.main_thread()
        assert {cfg.certfile for cfg in serve.configs} == {TLS.certfile}

    def test_tls_failure_is_a_startup_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken() -> TLSMaterial:
            raise OSError("read-only home")

        monkeypatch.setattr("lighthttp.core.server.tls.ensure_tls_material", broken)
        serve = FakeServe()
        server = ServerInstance("secure", "public", None, 0, host="127.0.0.1", serve=serve)
        with pytest.raises(StartupError):
            asyncio.run(server.connect())
        assert serve.listeners == []
        assert server.state is ServerState.CONFIGURED

    def test_partial_failure_tears_down_bound_listener(self) -> None:
        async def scenario():
            serve = FakeServe(fail_ports={8443: OSError("address already in use")})
            server = make(http_port=8080, https_port=8443, serve=serve)
            with pytest.raises(StartupError) as excinfo:
                await server.connect()
            await server.wait_closed()
            return serve, server, excinfo.value

        serve, server, error = asyncio.run(scenario())
        assert error.server_name == "main"
        assert "Unable to start the server main" in str(error)
        assert isinstance(error.cause, OSError)
        assert error.__cause__ is error.cause
        assert not server.alive
        assert server.state is ServerState.CONFIGURED
        assert serve.open_listeners() == []

    def test_serve_raising_is_reported_as_startup_error(self) -> None:
        async def scenario():
            serve = FakeServe(raise_on={8443})
            server = make(http_port=8080, https_port=8443, serve=serve)
            with pytest.raises(StartupError):
                await server.connect()
            await server.wait_closed()
            return serve, server

        serve, server = asyncio.run(scenario())
        assert len(serve.listeners) == 1
        assert serve.open_listeners() == []
        assert not server.alive

    def test_disconnect_is_idempotent(self) -> None:
        async def scenario():
            serve = FakeServe()
            server = make(http_port=0, serve=serve)
            await server.connect()
            server.disconnect()
            server.disconnect()
            await server.wait_closed()
            return serve, server

        serve, server = asyncio.run(scenario())
        assert server.state is ServerState.CONFIGURED
        assert not server.alive
        assert serve.listeners[0].closed
        assert serve.listeners[0].close_calls == 1

    def test_disconnect_then_connect_again(self) -> None:
        async def scenario():
            serve = FakeServe()
            server = make(http_port=0, serve=serve)
            for _ in range(2):
                await server.connect()
                assert server.alive
                server.disconnect()
                await server.wait_closed()
            return serve, server

        serve, server = asyncio.run(scenario())
        assert len(serve.listeners) == 2
        assert serve.open_listeners() == []


class TestReconnect:
    def test_reconnect_of_stopped_server_does_nothing(self) -> None:
        serve = FakeServe()
        server = make(http_port=0, serve=serve)
        asyncio.run(server.reconnect())
        assert serve.listeners == []
        assert server.state is ServerState.CONFIGURED

    def test_reconnect_applies_new_settings(self) -> None:
        async def scenario():
            serve = FakeServe()
            server = make(http_port=0, serve=serve)
            await server.connect()
            server.set_path("other")
            await server.reconnect()
            return serve, server

        serve, server = asyncio.run(scenario())
        first, second = serve.listeners
        assert first.closed
        assert not second.closed
        assert second.config.directory == Path("other")
        assert server.listen_url == second.address


class TestUnexpectedClose:
    def test_one_listener_closing_stops_the_whole_server(self) -> None:
        async def scenario():
            serve = FakeServe()
            server = make(http_port=0, https_port=0, serve=serve)
            await server.connect()
            http_listener, https_listener = serve.listeners
            http_listener.crash()
            await https_listener.wait_closed()
            return server, https_listener

        server, sibling = asyncio.run(scenario())
        assert not server.alive
        assert server.state is ServerState.CONFIGURED
        assert sibling.closed
