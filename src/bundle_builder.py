"""
ActionForge Bundle Builder.

Turns a resolved action definition into an installed `.app` bundle:

  1. remove any bundle already at the target path (to the trash when enabled)
  2. copy the launch entry (override or default) into a temporary .applescript
  3. compile it with `osacompile -o <target> <source>`
  4. drop the payload into Contents/Resources/script and mark it executable
  5. drop the icon into Contents/Resources/applet.icns

REQUIRES: macOS for the real compiler. Anything implementing BundleCompiler
can stand in for it.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Protocol

from action_errors import BuildError
from action_repository import ActionDefinition, ActionRepository

logger = logging.getLogger(__name__)

RESOURCES_SUBPATH = Path("Contents") / "Resources"
PAYLOAD_SLOT = RESOURCES_SUBPATH / "script"
ICON_SLOT = RESOURCES_SUBPATH / "applet.icns"
PAYLOAD_MODE = 0o755


# ── Compiler ─────────────────────────────────────────────────────


class BundleCompiler(Protocol):
    """Produces a launchable bundle at `target` from a script source."""

    def compile(self, source: Path, target: Path) -> None:
        ...


class OsacompileCompiler:
    """Compile AppleScript into an applet bundle with macOS `osacompile`."""

    def __init__(self, executable: str = "osacompile"):
        self.executable = executable

    def available(self) -> bool:
        return shutil.which(self.executable) is not None

    def compile(self, source: Path, target: Path) -> None:
        if not self.available():
            raise BuildError(
                f"'{self.executable}' is not available. "
                "Building bundles requires macOS."
            )

        cmd = [self.executable, "-o", str(target), str(source)]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as exc:
            raise BuildError(
                f"'{self.executable}' is not available. "
                "Building bundles requires macOS."
            ) from exc

        if result.returncode != 0 or not target.exists():
            raise BuildError(
                f"Compiling {target.name} failed.\nCommand: {' '.join(cmd)}\n"
                f"stderr: {result.stderr}\nstdout: {result.stdout}"
            )


# ── Removal ──────────────────────────────────────────────────────


def _trash_destination(path: Path, trash_dir: Path) -> Path:
    """Pick a free name in the trash, the way Finder suffixes duplicates."""
    destination = trash_dir / path.name
    if not destination.exists():
        return destination
    stamp = time.strftime("%H.%M.%S")
    candidate = trash_dir / f"{path.stem} {stamp}{path.suffix}"
    counter = 2
    while candidate.exists():
        candidate = trash_dir / f"{path.stem} {stamp} {counter}{path.suffix}"
        counter += 1
    return candidate


def remove_artifact(path: str | Path, trash_dir: str | Path | None = None) -> Path | None:
    """
    Remove an installed bundle.

    Moves it into `trash_dir` when that directory is given and exists, so an
    accidental uninstall can be undone from Finder. Otherwise deletes it.

    Returns: where the bundle went in the trash, or None if deleted.
    """
    path = Path(path)
    if trash_dir is not None and Path(trash_dir).is_dir():
        destination = _trash_destination(path, Path(trash_dir))
        logger.debug("Moving %s to %s", path, destination)
        shutil.move(str(path), str(destination))
        return destination

    logger.debug("Deleting %s", path)
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
    return None


# ── Builder ──────────────────────────────────────────────────────


class BundleBuilder:
    """Builds installed bundles for definitions from one repository."""

    def __init__(
        self,
        repository: ActionRepository,
        compiler: BundleCompiler,
        trash_dir: str | Path | None = None,
    ):
        self.repository = repository
        self.compiler = compiler
        self.trash_dir = Path(trash_dir) if trash_dir is not None else None

    def build(self, definition: ActionDefinition) -> Path:
        """Build (or rebuild) the bundle for `definition`.

        Returns: the installed bundle path.
        Raises: BuildError if compiling or populating the bundle fails.
        """
        target = self.repository.artifact_path(definition)

        # Resolve every source up front so a broken Default fails before
        # anything is removed.
        launch_script = self.repository.launch_script_for(definition)
        payload = self.repository.payload_for(definition)
        icon = self.repository.icon_for(definition)

        if target.exists() or target.is_symlink():
            remove_artifact(target, self.trash_dir)

        if not target.parent.is_dir():
            raise BuildError(f"Install root does not exist: {target.parent}")

        self._compile(launch_script, target)
        self._inject(payload, target / PAYLOAD_SLOT, mode=PAYLOAD_MODE)
        self._inject(icon, target / ICON_SLOT)

        logger.debug("Built %s", target)
        return target

    def _compile(self, launch_script: Path, target: Path) -> None:
        fd, source_path = tempfile.mkstemp(prefix="actionforge-", suffix=".applescript")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(launch_script.read_bytes())
            logger.debug("Compiling %s (from %s) -> %s", source_path, launch_script, target)
            self.compiler.compile(Path(source_path), target)
        finally:
            os.unlink(source_path)

        if not target.exists():
            raise BuildError(f"Compiler produced no bundle at {target}")

    @staticmethod
    def _inject(source: Path, slot: Path, mode: int | None = None) -> None:
        try:
            slot.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, slot)
            if mode is not None:
                os.chmod(slot, mode)
        except OSError as exc:
            raise BuildError(f"Could not write {slot}: {exc}") from exc
