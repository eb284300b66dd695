from __future__ import annotations

import json
from pathlib import Path

import pytest

from maturity_engine.infrastructure.config import reset_settings
from scripts import run_server


@pytest.fixture
def server_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "data" / "engine.db"
    monkeypatch.setenv("APP_HOST", "127.0.0.1")
    monkeypatch.setenv("APP_PORT", "9100")
    monkeypatch.setenv("APP_RELOAD", "false")
    monkeypatch.setenv("DB_BACKEND", "sqlite")
    monkeypatch.setenv("DB_SQLITE_PATH", str(db_path))
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    reset_settings()
    yield db_path
    reset_settings()


@pytest.fixture
def launches(monkeypatch: pytest.MonkeyPatch) -> dict[str, list]:
    recorded: dict[str, list] = {"uvicorn": [], "log_levels": []}

    def fake_run(app: str, **kwargs) -> None:
        recorded["uvicorn"].append((app, kwargs))

    monkeypatch.setattr(run_server.uvicorn, "run", fake_run)
    monkeypatch.setattr(
        run_server, "configure_logging", lambda config: recorded["log_levels"].append(config.level)
    )
    return recorded


def test_main_runs_uvicorn_with_settings(server_env: Path, launches) -> None:
    run_server.main([])

    assert launches["uvicorn"] == [
        ("maturity_engine.web.main:app", {"host": "127.0.0.1", "port": 9100, "reload": False})
    ]
    assert launches["log_levels"] == ["ERROR"]
    assert server_env.parent.is_dir()


def test_main_applies_config_file(server_env: Path, launches, tmp_path: Path) -> None:
    # Every key the file sets was registered with monkeypatch by server_env.
    config_file = tmp_path / "server.json"
    config_file.write_text(
        json.dumps({"app": {"port": 9200}, "log": {"level": "WARNING"}}), encoding="utf-8"
    )

    run_server.main(["--config", str(config_file)])

    _, options = launches["uvicorn"][0]
    assert options["port"] == 9200
    assert launches["log_levels"] == ["WARNING"]


def test_main_rejects_missing_config_file(server_env: Path, launches, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        run_server.main(["--config", str(tmp_path / "absent.json")])
    assert launches["uvicorn"] == []
