"""
ActionForge Action Repository.

A flat directory of action definitions, one `<Display Name>.action/`
directory per action. Each definition may override any of:

  main.applescript   launch entry compiled into the bundle
  script             shell payload run when the bundle is opened
  applet.icns        bundle icon
  install            custom install procedure (replaces the default build)
  uninstall          custom uninstall procedure
  artifacts          glob patterns, one per line, naming what install creates

Missing launch entry, payload, or icon fall back to `Default.action/`,
which must supply all three. The Default definition is never listed or
installed itself.

Installed state is read from the install root only: an action is installed
when `<install_root>/<Display Name>.app` exists, or, for definitions with an
`artifacts` file, when any of its patterns matches there.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from action_errors import MissingArgument, NotFound, RepositoryError
from identifiers import id_to_name, looks_like_name, name_to_id

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Default"

LAUNCH_ENTRY_FILE = "main.applescript"
PAYLOAD_FILE = "script"
ICON_FILE = "applet.icns"
INSTALL_HOOK_FILE = "install"
UNINSTALL_HOOK_FILE = "uninstall"
ARTIFACTS_FILE = "artifacts"


# ── Data Classes ─────────────────────────────────────────────────


@dataclass(frozen=True)
class ActionDefinition:
    """One action definition directory and the overrides it supplies."""

    action_id: str
    display_name: str
    directory: Path
    launch_script: Path | None = None
    payload_script: Path | None = None
    icon: Path | None = None
    install_hook: Path | None = None
    uninstall_hook: Path | None = None
    artifact_patterns: tuple[str, ...] = ()


@dataclass(frozen=True)
class DefaultDefinition:
    """The shared fallback trio."""

    directory: Path
    launch_script: Path
    payload_script: Path
    icon: Path


def _optional_file(directory: Path, filename: str) -> Path | None:
    candidate = directory / filename
    return candidate if candidate.is_file() else None


def _read_patterns(path: Path) -> tuple[str, ...]:
    """Glob patterns from an `artifacts` file. Blank and # lines are skipped."""
    if not path.is_file():
        return ()
    patterns = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "/" in line or line.startswith(".."):
            raise RepositoryError(
                f"{path}: pattern '{line}' must name entries directly in the install root"
            )
        patterns.append(line)
    return tuple(patterns)


# ── Repository ───────────────────────────────────────────────────


class ActionRepository:
    """Looks up action definitions and reports their installed state."""

    def __init__(
        self,
        root: str | Path,
        install_root: str | Path,
        definition_suffix: str = ".action",
        bundle_suffix: str = ".app",
    ):
        self.root = Path(root)
        self.install_root = Path(install_root)
        self.definition_suffix = definition_suffix
        self.bundle_suffix = bundle_suffix
        self._defaults: DefaultDefinition | None = None

    def __repr__(self) -> str:
        return f"ActionRepository(root={str(self.root)!r}, install_root={str(self.install_root)!r})"

    # ── Lookup ──

    def resolve(self, id_or_name: str) -> ActionDefinition:
        """Find the definition for an action id or display name.

        Input containing any uppercase character is taken as a display name;
        anything else is an id and converted to its display name first.
        Directory names match case-insensitively, and the definition takes
        its display name from the directory that matched.

        Raises:
            MissingArgument: If the input is empty.
            NotFound: If no definition directory matches.
        """
        if id_or_name is None or not id_or_name.strip():
            raise MissingArgument("An action id is required")

        value = id_or_name.strip()
        if "/" in value or os.sep in value or value.startswith("."):
            raise NotFound(f"Invalid action id: '{value}'")

        name = value if looks_like_name(value) else id_to_name(value)
        logger.debug("Resolving %r -> %s%s", id_or_name, name, self.definition_suffix)

        directory = self._find_directory(name)
        if directory is None:
            raise NotFound(f"No action named '{name}' in {self.root}")
        if self._name_of(directory) == DEFAULT_NAME:
            raise NotFound(f"'{DEFAULT_NAME}' holds shared defaults and is not an action")

        return self._load(directory)

    def _find_directory(self, name: str) -> Path | None:
        if not self.root.is_dir():
            raise RepositoryError(f"Action directory not found: {self.root}")

        wanted = f"{name}{self.definition_suffix}"
        folded: list[str] = []
        with os.scandir(self.root) as entries:
            for entry in entries:
                if not entry.is_dir():
                    continue
                if entry.name == wanted:
                    return self.root / entry.name
                if entry.name.casefold() == wanted.casefold():
                    folded.append(entry.name)
        if folded:
            return self.root / sorted(folded)[0]
        return None

    def _name_of(self, directory: Path) -> str:
        return directory.name[: -len(self.definition_suffix)]

    def _load(self, directory: Path) -> ActionDefinition:
        name = self._name_of(directory)
        return ActionDefinition(
            action_id=name_to_id(name),
            display_name=name,
            directory=directory,
            launch_script=_optional_file(directory, LAUNCH_ENTRY_FILE),
            payload_script=_optional_file(directory, PAYLOAD_FILE),
            icon=_optional_file(directory, ICON_FILE),
            install_hook=_optional_file(directory, INSTALL_HOOK_FILE),
            uninstall_hook=_optional_file(directory, UNINSTALL_HOOK_FILE),
            artifact_patterns=_read_patterns(directory / ARTIFACTS_FILE),
        )

    def defaults(self) -> DefaultDefinition:
        """Load the Default definition, which must supply all three files.

        Raises:
            RepositoryError: If the directory or any of its files is missing.
        """
        if self._defaults is not None:
            return self._defaults

        directory = self.root / f"{DEFAULT_NAME}{self.definition_suffix}"
        if not directory.is_dir():
            raise RepositoryError(f"Default definition not found: {directory}")

        missing = [
            filename
            for filename in (LAUNCH_ENTRY_FILE, PAYLOAD_FILE, ICON_FILE)
            if not (directory / filename).is_file()
        ]
        if missing:
            raise RepositoryError(
                f"Default definition {directory} is missing: {', '.join(missing)}"
            )

        self._defaults = DefaultDefinition(
            directory=directory,
            launch_script=directory / LAUNCH_ENTRY_FILE,
            payload_script=directory / PAYLOAD_FILE,
            icon=directory / ICON_FILE,
        )
        return self._defaults

    # ── Override resolution ──

    def launch_script_for(self, definition: ActionDefinition) -> Path:
        return definition.launch_script or self.defaults().launch_script

    def payload_for(self, definition: ActionDefinition) -> Path:
        return definition.payload_script or self.defaults().payload_script

    def icon_for(self, definition: ActionDefinition) -> Path:
        return definition.icon or self.defaults().icon

    # ── Installed state ──

    def artifact_path(self, action: ActionDefinition | str) -> Path:
        """Path of the bundle the default build produces for an action."""
        if isinstance(action, ActionDefinition):
            name = action.display_name
        else:
            name = action if looks_like_name(action) else id_to_name(action)
        return self.install_root / f"{name}{self.bundle_suffix}"

    def installed_artifacts(self, definition: ActionDefinition) -> list[Path]:
        """Everything currently in the install root that belongs to `definition`.

        Definitions with an `artifacts` file own whatever its patterns match;
        all others own the single `<Display Name>.app`.
        """
        if not definition.artifact_patterns:
            target = self.artifact_path(definition)
            return [target] if target.exists() else []
        if not self.install_root.is_dir():
            return []
        found: set[Path] = set()
        for pattern in definition.artifact_patterns:
            found.update(self.install_root.glob(pattern))
        return sorted(found)

    def is_installed(self, action: ActionDefinition | str) -> bool:
        definition = action if isinstance(action, ActionDefinition) else self.resolve(action)
        return bool(self.installed_artifacts(definition))

    def list(self) -> list[tuple[str, bool]]:
        """Every action definition as (action_id, installed).

        Order follows directory enumeration and is not guaranteed.
        """
        if not self.root.is_dir():
            raise RepositoryError(f"Action directory not found: {self.root}")

        results: list[tuple[str, bool]] = []
        with os.scandir(self.root) as entries:
            for entry in entries:
                if entry.name.startswith(".") or not entry.is_dir():
                    continue
                if not entry.name.endswith(self.definition_suffix):
                    continue
                name = entry.name[: -len(self.definition_suffix)]
                if not name or name == DEFAULT_NAME:
                    continue
                definition = self._load(self.root / entry.name)
                results.append((definition.action_id, self.is_installed(definition)))
        logger.debug("Listed %d action(s) in %s", len(results), self.root)
        return results
