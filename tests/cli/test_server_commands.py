from __future__ import annotations

import json
from pathlib import Path

import pytest

from helpers.net import occupied_port
from lighthttp.cli._dispatcher import main


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "servers.json"


def run_cli(capsys: pytest.CaptureFixture[str], *argv: str) -> tuple[int, str, str]:
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def stored(config_file: Path) -> list[dict]:
    return json.loads(config_file.read_text(encoding="utf-8"))["serverList"]


def test_add_assigns_first_free_port(capsys, config_file: Path, site_dir: Path) -> None:
    code, out, _ = run_cli(capsys, "server", "add", "docs", str(site_dir), "--config-file", str(config_file), "--json")
    assert code == 0
    payload = json.loads(out)
    assert payload["status"] == "success"
    assert payload["server"]["id"] == "server_docs"
    assert payload["server"]["port"] == {"http": 8080, "https": None}

    code, _, _ = run_cli(capsys, "server", "add", "blog", str(site_dir), "--config-file", str(config_file))
    assert code == 0
    assert [(s["name"], s["port"]["http"]) for s in stored(config_file)] == [("docs", 8080), ("blog", 8081)]
    assert stored(config_file)[0]["path"] == str(site_dir.resolve())


def test_add_rejects_duplicate_name(capsys, config_file: Path, site_dir: Path) -> None:
    run_cli(capsys, "server", "add", "docs", str(site_dir), "--config-file", str(config_file))
    code, _, err = run_cli(
        capsys, "server", "add", "docs", str(site_dir), "--config-file", str(config_file), "--json"
    )
    assert code == 1
    payload = json.loads(err)
    assert payload["code"] == "ValidationError"
    assert len(stored(config_file)) == 1


def test_list_text_and_json(capsys, config_file: Path, site_dir: Path) -> None:
    code, out, _ = run_cli(capsys, "server", "list", "--config-file", str(config_file))
    assert code == 0
    assert "No servers configured" in out

    run_cli(
        capsys, "server", "add", "docs", str(site_dir), "--https-port", "8443", "--auto-start",
        "--config-file", str(config_file),
    )
    code, out, _ = run_cli(capsys, "server", "list", "--config-file", str(config_file))
    assert "docs (https:8443) [auto-start]" in out
    assert "id: server_docs" in out

    code, out, _ = run_cli(capsys, "server", "list", "--config-file", str(config_file), "--json")
    servers = json.loads(out)["servers"]
    assert servers[0]["autoStart"] is True
    assert servers[0]["alive"] is False


def test_edit_ports_path_and_name(capsys, config_file: Path, site_dir: Path, tmp_path: Path) -> None:
    run_cli(capsys, "server", "add", "docs", str(site_dir), "--config-file", str(config_file))
    other = tmp_path / "other"
    other.mkdir()

    code, _, _ = run_cli(
        capsys, "server", "edit", "server_docs", "--no-http", "--https-port", "9443",
        "--path", str(other), "--rename", "Docs Site", "--config-file", str(config_file),
    )
    assert code == 0
    assert stored(config_file) == [
        {"name": "Docs Site", "path": str(other.resolve()), "port": {"http": None, "https": 9443}, "autoStart": False}
    ]


def test_edit_unknown_server(capsys, config_file: Path) -> None:
    code, _, err = run_cli(capsys, "server", "edit", "ghost", "--no-http", "--config-file", str(config_file))
    assert code == 1
    assert "Unknown server: ghost" in err


def test_autostart_and_remove(capsys, config_file: Path, site_dir: Path) -> None:
    run_cli(capsys, "server", "add", "docs", str(site_dir), "--config-file", str(config_file))

    code, out, _ = run_cli(capsys, "server", "autostart", "docs", "on", "--config-file", str(config_file))
    assert code == 0
    assert "Auto-start on for docs" in out
    assert stored(config_file)[0]["autoStart"] is True

    code, _, _ = run_cli(capsys, "server", "remove", "docs", "--config-file", str(config_file))
    assert code == 0
    assert stored(config_file) == []

    code, _, err = run_cli(capsys, "server", "remove", "docs", "--config-file", str(config_file))
    assert code == 1
    assert "Unknown server: docs" in err


def test_corrupt_server_list_is_reported(capsys, config_file: Path) -> None:
    config_file.write_text("{oops", encoding="utf-8")
    code, _, err = run_cli(capsys, "server", "list", "--config-file", str(config_file), "--json")
    assert code == 1
    payload = json.loads(err)
    assert payload["error"] == "server_list_error"
    assert payload["code"] == "ConfigIOError"


def test_run_rejects_unknown_names(capsys, config_file: Path) -> None:
    code, _, err = run_cli(capsys, "server", "run", "ghost", "--config-file", str(config_file))
    assert code == 1
    assert "Unknown server: ghost" in err


def test_run_fails_when_no_server_starts(
    capsys, config_file: Path, site_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("LIGHTHTTP_server__bind_host", "127.0.0.1")
    with occupied_port() as port:
        run_cli(
            capsys, "server", "add", "docs", str(site_dir), "--http-port", str(port), "--auto-start",
            "--config-file", str(config_file),
        )
        code, _, err = run_cli(capsys, "server", "run", "--config-file", str(config_file))

    assert code == 1
    assert "Warning: Unable to start the server docs" in err
    assert "No server started" in err
