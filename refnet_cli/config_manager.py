"""Settings loader for the referral network builder using TOML files."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config
from .errors import ConfigError
from .recruiters import is_valid_label_template


@dataclass
class Settings:
    """Resolved settings for one build."""
    order: str = config.DEFAULT_ORDER
    virtual_label: str = config.DEFAULT_VIRTUAL_LABEL
    include_directory: bool = False
    base_url: str = ""
    recruiters: Dict[str, str] = field(default_factory=dict)


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections).

    Returns an empty dict when the file does not exist.

    Raises:
        ConfigError: if the file exists but is not valid TOML.
    """
    path = path or config.CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (toml.TomlDecodeError, OSError) as exc:
        raise ConfigError(f"Cannot read settings from {path}: {exc}") from exc


def load_settings(path: Optional[Path] = None) -> Settings:
    """Build a :class:`Settings` from the ``[build]``, ``[directory]`` and
    ``[recruiters]`` sections, falling back to defaults for anything missing.
    """
    full = load_full_config(path)
    build = full.get("build", {})
    directory = full.get("directory", {})
    recruiters = full.get("recruiters", {})

    order = str(build.get("order", config.DEFAULT_ORDER))
    if order not in config.ORDERS:
        raise ConfigError(f"Unknown order '{order}'. Expected one of: {', '.join(config.ORDERS)}")

    virtual_label = str(build.get("virtual_label", config.DEFAULT_VIRTUAL_LABEL))
    if not is_valid_label_template(virtual_label):
        raise ConfigError(f"Invalid virtual_label '{virtual_label}'. Only the {{code}} field is supported")

    return Settings(
        order=order,
        virtual_label=virtual_label,
        include_directory=bool(build.get("include_directory", False)),
        base_url=str(directory.get("base_url", "")),
        recruiters={str(code): str(name) for code, name in recruiters.items()},
    )


def save_settings(settings: Settings, path: Optional[Path] = None) -> None:
    """Write settings to TOML, preserving unrelated sections."""
    path = path or config.CONFIG_FILE
    full = load_full_config(path)
    full["build"] = {
        "order": settings.order,
        "virtual_label": settings.virtual_label,
        "include_directory": settings.include_directory,
    }
    full["directory"] = {"base_url": settings.base_url}
    full["recruiters"] = dict(settings.recruiters)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(full, f)
