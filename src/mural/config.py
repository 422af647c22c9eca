"""Mural configuration: defaults, then <workspace>/config.yaml, then env vars."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "config.yaml"


def _as_list(value: Any) -> list[str]:
    """Accept a YAML list or a comma-separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


@dataclass
class Config:
    """Board settings shared by the server and the CLI."""

    workspace_path: Path = field(default_factory=lambda: Path.home() / ".mural")
    log_level: str = "INFO"
    wal_mode: bool = True
    pagination_default: int = 20
    pagination_max: int = 100

    # Submissions
    min_description_length: int = 200
    reserved_domains: list[str] = field(default_factory=lambda: ["mksolution.com"])

    # Identities allowed to change status and pins
    staff_emails: list[str] = field(default_factory=list)

    # Store failures on reads: attempts after the first, and base backoff in seconds
    read_retries: int = 3
    retry_delay: float = 0.05

    def __post_init__(self) -> None:
        self.workspace_path = Path(self.workspace_path)
        self.reserved_domains = [d.lower().lstrip("@") for d in _as_list(self.reserved_domains)]
        self.staff_emails = [e.lower() for e in _as_list(self.staff_emails)]

    @classmethod
    def load(cls, workspace_path: Path | None = None) -> Config:
        """Build the effective config for a workspace.

        MURAL_WORKSPACE wins over the workspace_path argument. The YAML file in
        the resulting workspace overrides defaults; MURAL_LOG_LEVEL and
        MURAL_STAFF_EMAILS override the file.
        """
        env_path = os.environ.get("MURAL_WORKSPACE")
        workspace = Path(env_path) if env_path else workspace_path

        values: dict[str, Any] = {}
        if workspace:
            values["workspace_path"] = workspace
            config_file = Path(workspace) / CONFIG_FILENAME
            if config_file.exists():
                with open(config_file) as f:
                    values.update(cls._coerce(yaml.safe_load(f) or {}))

        if os.environ.get("MURAL_LOG_LEVEL"):
            values["log_level"] = os.environ["MURAL_LOG_LEVEL"]
        if os.environ.get("MURAL_STAFF_EMAILS"):
            values["staff_emails"] = os.environ["MURAL_STAFF_EMAILS"]

        return cls(**values)

    @classmethod
    def _coerce(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Keep known keys from a YAML mapping, cast to each field's default type."""
        defaults = cls()
        known = {f.name for f in fields(cls)} - {"workspace_path"}
        coerced: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            current = getattr(defaults, key)
            if isinstance(current, list):
                coerced[key] = _as_list(value)
            elif isinstance(current, bool) and isinstance(value, str):
                coerced[key] = value.strip().lower() in ("1", "true", "yes", "on")
            else:
                coerced[key] = type(current)(value)
        return coerced

    @property
    def db_path(self) -> Path:
        return self.workspace_path / "mural.db"

    @property
    def config_file(self) -> Path:
        return self.workspace_path / CONFIG_FILENAME

    def save(self) -> None:
        """Write every setting except the workspace location to config.yaml."""
        self.workspace_path.mkdir(parents=True, exist_ok=True)
        data = asdict(self)
        data.pop("workspace_path")
        with open(self.config_file, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
