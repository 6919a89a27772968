"""
Install/uninstall procedures for an action.

DefaultProcedure builds and removes bundles with the BundleBuilder.
CustomProcedure runs a definition's `install`/`uninstall` hook as a
separate process; hooks are never sourced or imported. A hook sees:

  ACTION_ID      login-window
  ACTION_NAME    Login Window
  ACTION_DIR     the definition directory
  DEFAULT_DIR    the Default definition directory
  INSTALL_ROOT   where bundles are installed
  BUNDLE_SUFFIX  .app
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from action_errors import BuildError, HookError
from action_repository import ActionDefinition, ActionRepository
from bundle_builder import BundleBuilder, remove_artifact

logger = logging.getLogger(__name__)


@dataclass
class ProcedureContext:
    """Everything a procedure needs to act on one definition."""

    definition: ActionDefinition
    repository: ActionRepository
    builder: BundleBuilder

    def hook_environment(self) -> dict[str, str]:
        env = os.environ.copy()
        env.update(
            {
                "ACTION_ID": self.definition.action_id,
                "ACTION_NAME": self.definition.display_name,
                "ACTION_DIR": str(self.definition.directory),
                "DEFAULT_DIR": str(self.repository.defaults().directory),
                "INSTALL_ROOT": str(self.repository.install_root),
                "BUNDLE_SUFFIX": self.repository.bundle_suffix,
            }
        )
        return env


class Procedure(Protocol):
    """How one action is installed and uninstalled."""

    def install(self, context: ProcedureContext) -> Path | None:
        ...

    def uninstall(self, context: ProcedureContext) -> Path | None:
        ...


class DefaultProcedure:
    """Build into, and remove from, the install root."""

    def install(self, context: ProcedureContext) -> Path | None:
        return context.builder.build(context.definition)

    def uninstall(self, context: ProcedureContext) -> Path | None:
        removed = None
        for artifact in context.repository.installed_artifacts(context.definition):
            remove_artifact(artifact, context.builder.trash_dir)
            removed = removed or artifact
        return removed

    def __repr__(self) -> str:
        return "DefaultProcedure()"


class CustomProcedure:
    """Delegate to a hook executable shipped inside the definition."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"CustomProcedure({str(self.path)!r})"

    def _command(self) -> list[str]:
        if os.access(self.path, os.X_OK):
            return [str(self.path)]
        return ["/bin/sh", str(self.path)]

    def _run(self, context: ProcedureContext) -> subprocess.CompletedProcess:
        cmd = self._command()
        logger.debug("Running hook: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                cwd=str(context.definition.directory),
                env=context.hook_environment(),
            )
        except OSError as exc:
            raise HookError(f"Could not run hook {self.path}: {exc}") from exc

    def install(self, context: ProcedureContext) -> Path | None:
        result = self._run(context)
        if result.returncode != 0:
            raise BuildError(
                f"Install hook for '{context.definition.action_id}' failed "
                f"(exit {result.returncode})"
            )
        return None

    def uninstall(self, context: ProcedureContext) -> Path | None:
        result = self._run(context)
        if result.returncode != 0:
            raise HookError(
                f"Uninstall hook for '{context.definition.action_id}' failed "
                f"(exit {result.returncode})"
            )
        return None


def select_procedure(definition: ActionDefinition, operation: str) -> Procedure:
    """Pick the procedure for `operation` ("install" or "uninstall")."""
    if operation == "install":
        hook = definition.install_hook
    elif operation == "uninstall":
        hook = definition.uninstall_hook
    else:
        raise ValueError(f"Unknown operation: {operation!r}")

    if hook is not None:
        return CustomProcedure(hook)
    return DefaultProcedure()
