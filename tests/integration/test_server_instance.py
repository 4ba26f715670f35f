"""ServerInstance driving real listeners on 127.0.0.1."""
from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from helpers.net import free_port, local_client, occupied_port, port_is_free
from lighthttp.core.exceptions import StartupError
from lighthttp.core.server.instance import ServerInstance
from lighthttp.core.server.models import ServerState

TIMEOUT = 30


def run(coro):
    return asyncio.run(asyncio.wait_for(coro, TIMEOUT))


@pytest.fixture
def player_dir(tmp_path: Path) -> Path:
    root = tmp_path / "player"
    root.mkdir()
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\nplayer-logo")
    (root / "player.js").write_text("console.log('player')", encoding="utf-8")
    return root


def test_http_server_serves_files(site_dir: Path) -> None:
    async def scenario():
        server = ServerInstance("site", site_dir, 0, host="127.0.0.1")
        await server.connect()
        url = server.listen_url
        async with local_client() as client:
            response = await client.get(f"{url}/img/logo.png")
        server.disconnect()
        await server.wait_closed()
        return url, response, server

    url, response, server = run(scenario())
    assert url.startswith("http://127.0.0.1:")
    assert response.status_code == 200
    assert response.content.endswith(b"main-logo")
    assert server.state is ServerState.CONFIGURED


def test_https_server_uses_generated_certificate(site_dir: Path, lighthttp_home: Path) -> None:
    async def scenario():
        server = ServerInstance("secure", site_dir, None, 0, host="127.0.0.1")
        await server.connect()
        async with local_client(verify=False) as client:
            response = await client.get(f"{server.listen_url}/hello.txt")
        server.disconnect()
        await server.wait_closed()
        return server, response

    server, response = run(scenario())
    assert response.text == "hello world"
    assert (lighthttp_home / "tls" / "localhost.crt").is_file()


def test_missing_file_and_wrong_method_get_client_errors(site_dir: Path) -> None:
    async def scenario():
        server = ServerInstance("site", site_dir, 0, host="127.0.0.1")
        await server.connect()
        async with local_client() as client:
            missing = await client.get(f"{server.listen_url}/nope.txt")
            posted = await client.post(f"{server.listen_url}/hello.txt", content=b"x")
        server.disconnect()
        await server.wait_closed()
        return missing, posted

    missing, posted = run(scenario())
    assert missing.status_code == 404
    assert posted.status_code == 405


def test_alias_proxies_to_player_server(site_dir: Path, player_dir: Path) -> None:
    async def scenario():
        player = ServerInstance("player assets", player_dir, 0, host="127.0.0.1")
        await player.connect()
        main = ServerInstance("main http", site_dir, 0, host="127.0.0.1")
        main.add_alias_path("mt", player)
        await main.connect()
        async with local_client() as client:
            aliased = await client.get(f"{main.listen_url}/mt/logo.png")
            local = await client.get(f"{main.listen_url}/img/logo.png")
            missing = await client.get(f"{main.listen_url}/mt/absent.png")
        for server in (main, player):
            server.disconnect()
            await server.wait_closed()
        return aliased, local, missing

    aliased, local, missing = run(scenario())
    assert aliased.status_code == 200
    assert aliased.content.endswith(b"player-logo")
    assert local.content.endswith(b"main-logo")
    assert missing.status_code == 404


def test_stale_alias_target_gives_bad_gateway(site_dir: Path, player_dir: Path) -> None:
    async def scenario():
        player = ServerInstance("player assets", player_dir, 0, host="127.0.0.1")
        await player.connect()
        main = ServerInstance("main http", site_dir, 0, host="127.0.0.1")
        main.add_alias_path("mt", player)
        player.disconnect()
        await player.wait_closed()
        await main.connect()
        async with local_client() as client:
            response = await client.get(f"{main.listen_url}/mt/logo.png")
        main.disconnect()
        await main.wait_closed()
        return response

    assert run(scenario()).status_code == 502


def test_occupied_port_fails_and_releases_the_other_listener(site_dir: Path) -> None:
    https_port = free_port()

    async def scenario(http_port: int):
        server = ServerInstance("main", site_dir, http_port, https_port, host="127.0.0.1")
        with pytest.raises(StartupError) as excinfo:
            await server.connect()
        await server.wait_closed()
        return server, excinfo.value

    with occupied_port() as http_port:
        server, error = run(scenario(http_port))

    assert error.server_name == "main"
    assert isinstance(error.cause, OSError)
    assert not server.alive
    assert server.listen_url is None
    assert server.state is ServerState.CONFIGURED
    assert port_is_free(https_port)


def test_missing_directory_fails_to_start(tmp_path: Path) -> None:
    async def scenario():
        server = ServerInstance("ghost", tmp_path / "absent", 0, host="127.0.0.1")
        with pytest.raises(StartupError) as excinfo:
            await server.connect()
        await server.wait_closed()
        return excinfo.value

    assert isinstance(run(scenario()).cause, FileNotFoundError)


def test_same_port_survives_repeated_cycles(site_dir: Path) -> None:
    port = free_port()

    async def scenario():
        server = ServerInstance("cycle", site_dir, port, host="127.0.0.1")
        statuses = []
        for _ in range(2):
            await server.connect()
            async with local_client() as client:
                statuses.append((await client.get(f"{server.listen_url}/hello.txt")).status_code)
            server.disconnect()
            await server.wait_closed()
        return statuses

    assert run(scenario()) == [200, 200]
    assert port_is_free(port)


def test_reconnect_picks_up_new_directory(site_dir: Path, player_dir: Path) -> None:
    port = free_port()

    async def scenario():
        server = ServerInstance("switch", site_dir, port, host="127.0.0.1")
        await server.connect()
        server.set_path(player_dir)
        await server.reconnect()
        async with local_client() as client:
            response = await client.get(f"{server.listen_url}/player.js")
        server.disconnect()
        await server.wait_closed()
        return response

    assert run(scenario()).text == "console.log('player')"
