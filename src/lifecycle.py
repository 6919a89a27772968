"""
ActionForge Lifecycle Manager: install, uninstall, and list actions.

Single entry point for the CLI. Each operation walks a small state machine:

  install:   IDLE → RESOLVING → BUILDING → INSTALLED
  uninstall: IDLE → RESOLVING → UNINSTALLING → REMOVED

and lands in FAILED when any step raises. Failures are re-raised to the
caller, never swallowed. Installed state is read from the install root on
every call; nothing is cached between operations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Iterator

from action_errors import ActionForgeError, BuildError, NotInstalled, SetupDeclined
from action_repository import ActionDefinition, ActionRepository
from bundle_builder import BundleBuilder, BundleCompiler, OsacompileCompiler
from procedures import DefaultProcedure, ProcedureContext, select_procedure
from settings import Settings

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


# ── Data Structures ────────────────────────────────────────────────────


class LifecycleState(Enum):
    """States an action passes through during one operation."""
    IDLE = auto()
    RESOLVING = auto()
    BUILDING = auto()
    INSTALLED = auto()
    UNINSTALLING = auto()
    REMOVED = auto()
    FAILED = auto()


@dataclass
class OperationResult:
    """Outcome of a single install or uninstall."""

    action_id: str
    state: LifecycleState = LifecycleState.IDLE
    path: Path | None = None
    custom: bool = False
    transitions: list[LifecycleState] = field(default_factory=lambda: [LifecycleState.IDLE])

    def advance(self, state: LifecycleState) -> None:
        logger.debug("%s: %s -> %s", self.action_id, self.state.name, state.name)
        self.state = state
        self.transitions.append(state)


# ── Manager ────────────────────────────────────────────────────────────


class LifecycleManager:
    """Runs install/uninstall/list against one repository and install root.

    Args:
        settings: Per-invocation configuration.
        compiler: Bundle compiler. Defaults to `osacompile` from settings.
        confirm: Asked before creating a missing install root. Returning
            False aborts with SetupDeclined. Skipped when settings.assume_yes.
    """

    def __init__(
        self,
        settings: Settings,
        compiler: BundleCompiler | None = None,
        confirm: ConfirmFn | None = None,
    ):
        self.settings = settings
        self.repository = ActionRepository(
            settings.actions_dir,
            settings.install_root,
            definition_suffix=settings.definition_suffix,
            bundle_suffix=settings.bundle_suffix,
        )
        self.builder = BundleBuilder(
            self.repository,
            compiler or OsacompileCompiler(settings.compiler),
            trash_dir=settings.effective_trash_dir(),
        )
        self._confirm = confirm

    # ── Operations ──

    def install(self, id_or_name: str) -> OperationResult:
        """Build the action's bundle, replacing any existing one."""
        result = OperationResult(action_id=id_or_name)
        try:
            result.advance(LifecycleState.RESOLVING)
            definition = self.repository.resolve(id_or_name)
            result.action_id = definition.action_id

            self.ensure_install_root()

            procedure = select_procedure(definition, "install")
            result.custom = not isinstance(procedure, DefaultProcedure)
            result.advance(LifecycleState.BUILDING)
            result.path = procedure.install(self._context(definition))
            result.advance(LifecycleState.INSTALLED)
        except SetupDeclined:
            raise
        except ActionForgeError:
            result.advance(LifecycleState.FAILED)
            raise
        except OSError as exc:
            result.advance(LifecycleState.FAILED)
            raise BuildError(f"Installing '{result.action_id}' failed: {exc}") from exc
        return result

    def uninstall(self, id_or_name: str) -> OperationResult:
        """Remove the action's bundle.

        Raises:
            NotInstalled: If nothing the action owns is in the install root.
                No procedure runs and the filesystem is left untouched.
        """
        result = OperationResult(action_id=id_or_name)
        try:
            result.advance(LifecycleState.RESOLVING)
            definition = self.repository.resolve(id_or_name)
            result.action_id = definition.action_id

            procedure = select_procedure(definition, "uninstall")
            result.custom = not isinstance(procedure, DefaultProcedure)
            if not self.repository.is_installed(definition):
                raise NotInstalled(f"'{definition.action_id}' is not installed")

            result.advance(LifecycleState.UNINSTALLING)
            result.path = procedure.uninstall(self._context(definition))
            result.advance(LifecycleState.REMOVED)
        except ActionForgeError:
            result.advance(LifecycleState.FAILED)
            raise
        except OSError as exc:
            result.advance(LifecycleState.FAILED)
            raise ActionForgeError(f"Uninstalling '{result.action_id}' failed: {exc}") from exc
        return result

    def list(self) -> list[tuple[str, bool]]:
        return self.repository.list()

    def install_all(self) -> Iterator[OperationResult]:
        """Install every action in sorted id order, yielding each result.

        Stops at the first failure; results already yielded stay valid.
        """
        for action_id, _ in sorted(self.list()):
            yield self.install(action_id)

    def uninstall_all(self) -> Iterator[OperationResult]:
        """Uninstall every installed action, yielding each result."""
        for action_id, installed in sorted(self.list()):
            if installed:
                yield self.uninstall(action_id)

    # ── Helpers ──

    def ensure_install_root(self) -> Path:
        """Create the install root on first use, after confirmation."""
        root = self.settings.install_root
        if root.is_dir():
            return root

        if not self.settings.assume_yes:
            prompt = f"{root} does not exist. Create it?"
            if self._confirm is None or not self._confirm(prompt):
                raise SetupDeclined(f"Not creating {root}")

        logger.debug("Creating install root %s", root)
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BuildError(f"Could not create {root}: {exc}") from exc
        return root

    def _context(self, definition: ActionDefinition) -> ProcedureContext:
        return ProcedureContext(
            definition=definition,
            repository=self.repository,
            builder=self.builder,
        )
