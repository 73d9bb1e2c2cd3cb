from __future__ import annotations

import json
from pathlib import Path

from judgearena.utils.config_manager import ConfigManager


def test_defaults(tmp_path: Path) -> None:
    config = ConfigManager(str(tmp_path / "absent.json"))
    assert config.get("sandbox.memory_mb") == 64
    assert config.get("sandbox.run_timeout_s") == 2
    assert config.get("sandbox.compile_timeout_s") == 5
    assert config.get("scoring.points_per_problem") == 100
    assert config.get("missing.key", "fallback") == "fallback"


def test_file_values_are_merged(tmp_path: Path) -> None:
    path = tmp_path / "server_config.json"
    path.write_text(json.dumps({"sandbox": {"memory_mb": 128}}), encoding="utf-8")

    config = ConfigManager(str(path))

    assert config.get("sandbox.memory_mb") == 128
    # Untouched keys keep their defaults
    assert config.get("sandbox.docker_image") == "c-judge-env"


def test_environment_overrides_file(tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "server_config.json"
    path.write_text(json.dumps({"server": {"port": 9000}}), encoding="utf-8")
    monkeypatch.setenv("JUDGEARENA_PORT", "9100")
    monkeypatch.setenv("JUDGEARENA_DOCKER_IMAGE", "judge:latest")

    config = ConfigManager(str(path))

    assert config.get("server.port") == 9100
    assert config.get("sandbox.docker_image") == "judge:latest"


def test_broken_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "server_config.json"
    path.write_text("{not json", encoding="utf-8")
    config = ConfigManager(str(path))
    assert config.get("server.port") == 8080


def test_set_overrides_nested_value(tmp_path: Path) -> None:
    config = ConfigManager(str(tmp_path / "absent.json"), overrides={"db": {"path": ":memory:"}})
    config.set("auth.jwt_secret", "s3cret")
    config.set("sandbox.max_output_bytes", 4096)

    assert config.get("auth.jwt_secret") == "s3cret"
    assert config.get("sandbox.max_output_bytes") == 4096
    assert config.get_section("db") == {"path": ":memory:"}


def test_output_cap_from_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("JUDGEARENA_MAX_OUTPUT_BYTES", "2048")
    config = ConfigManager(str(tmp_path / "absent.json"))
    assert config.get("sandbox.max_output_bytes") == 2048
