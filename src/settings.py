"""Settings loader for ActionForge.

Loads the per-invocation configuration from configs/actionforge.yaml.
The resulting Settings object is built once by the CLI and handed to the
lifecycle manager; nothing else reads configuration.

Usage:
    from settings import load_settings

    settings = load_settings()
    settings = settings.with_overrides(install_root="/tmp/Actions")
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from paths import ACTIONS_DIR, DEFAULT_INSTALL_ROOT, PROJECT_ROOT, SETTINGS_PATH, USER_TRASH_DIR


@dataclass(frozen=True)
class Settings:
    """Configuration for a single ActionForge invocation."""
    actions_dir: Path = ACTIONS_DIR
    install_root: Path = DEFAULT_INSTALL_ROOT
    definition_suffix: str = ".action"
    bundle_suffix: str = ".app"
    compiler: str = "osacompile"
    use_trash: bool = True
    trash_dir: Path = USER_TRASH_DIR
    assume_yes: bool = False

    def effective_trash_dir(self) -> Path | None:
        """Trash directory to use for removals, or None for permanent deletion."""
        if not self.use_trash:
            return None
        return self.trash_dir

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with the non-None overrides applied.

        Relative override paths are taken relative to the working directory,
        the way a user typing them on the command line expects.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        for key in changes.keys() & _PATH_KEYS:
            changes[key] = Path(changes[key]).expanduser().absolute()
        return dataclasses.replace(self, **changes)


_PATH_KEYS = {"actions_dir", "install_root", "trash_dir"}
_KNOWN_KEYS = {f.name for f in dataclasses.fields(Settings)}


def _resolve_path(value: str | Path) -> Path:
    """Expand ~ and resolve relative paths against the project root."""
    p = Path(value).expanduser()
    if not p.is_absolute():
        p = PROJECT_ROOT / p
    return p


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from YAML config.

    Args:
        config_path: Path to config file. Defaults to configs/actionforge.yaml.
            When the default file is absent, built-in defaults are used.

    Returns:
        Settings with every key from the file applied.

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist.
        ValueError: If config is malformed or has unknown keys.
    """
    path = Path(config_path) if config_path else SETTINGS_PATH

    if not path.exists():
        if config_path is None:
            return Settings()
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        return Settings()
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid settings file: expected a mapping in {path}")

    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"Unknown settings in {path}: {unknown}")

    values: dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            raise ValueError(f"'{key}' in {path} has no value")
        if key in _PATH_KEYS:
            values[key] = _resolve_path(value)
        elif key in ("use_trash", "assume_yes"):
            values[key] = bool(value)
        else:
            values[key] = str(value)

    for key in ("definition_suffix", "bundle_suffix"):
        if key in values and not values[key].startswith("."):
            raise ValueError(f"'{key}' must start with '.', got {values[key]!r}")

    return Settings(**values)
