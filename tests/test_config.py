"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import yaml

from mural.config import Config


def test_defaults(tmp_path: Path) -> None:
    config = Config(workspace_path=tmp_path)
    assert config.min_description_length == 200
    assert config.reserved_domains == ["mksolution.com"]
    assert config.staff_emails == []
    assert config.db_path == tmp_path / "mural.db"


def test_save_and_load_round_trip(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("MURAL_WORKSPACE", raising=False)
    monkeypatch.delenv("MURAL_LOG_LEVEL", raising=False)
    config = Config(workspace_path=tmp_path, staff_emails=["gestor@mksolution.com"], read_retries=5)
    config.save()

    loaded = Config.load(tmp_path)
    assert loaded.staff_emails == ["gestor@mksolution.com"]
    assert loaded.read_retries == 5
    assert loaded.workspace_path == tmp_path


def test_yaml_overrides(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("MURAL_WORKSPACE", raising=False)
    (tmp_path / "config.yaml").write_text(
        yaml.dump({"reserved_domains": ["interno.io"], "retry_delay": 0.5, "unknown": 1})
    )
    config = Config.load(tmp_path)
    assert config.reserved_domains == ["interno.io"]
    assert config.retry_delay == 0.5
    assert not hasattr(config, "unknown")


def test_env_overrides(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("MURAL_WORKSPACE", str(tmp_path / "env"))
    monkeypatch.setenv("MURAL_LOG_LEVEL", "DEBUG")
    config = Config.load()
    assert config.workspace_path == tmp_path / "env"
    assert config.log_level == "DEBUG"


def test_lists_normalized(tmp_path: Path) -> None:
    config = Config(
        workspace_path=tmp_path,
        reserved_domains=["@Interno.IO"],
        staff_emails="Gestor@MKSolution.com, outra@mksolution.com",
    )
    assert config.reserved_domains == ["interno.io"]
    assert config.staff_emails == ["gestor@mksolution.com", "outra@mksolution.com"]


def test_yaml_bool_strings(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("MURAL_WORKSPACE", raising=False)
    (tmp_path / "config.yaml").write_text("wal_mode: 'off'\nstaff_emails: a@x.com,b@x.com\n")
    config = Config.load(tmp_path)
    assert config.wal_mode is False
    assert config.staff_emails == ["a@x.com", "b@x.com"]


def test_env_staff_override_file(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("MURAL_WORKSPACE", raising=False)
    Config(workspace_path=tmp_path, staff_emails=["file@mksolution.com"]).save()
    monkeypatch.setenv("MURAL_STAFF_EMAILS", "env@mksolution.com")

    assert Config.load(tmp_path).staff_emails == ["env@mksolution.com"]


def test_save_omits_workspace(tmp_path: Path) -> None:
    config = Config(workspace_path=tmp_path)
    config.save()
    data = yaml.safe_load(config.config_file.read_text())
    assert "workspace_path" not in data
    assert data["min_description_length"] == 200
