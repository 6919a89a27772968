"""Error kinds raised by ActionForge.

Library modules raise these; only the CLI catches them.
"""

from __future__ import annotations


class ActionForgeError(Exception):
    """Base class for every ActionForge failure."""


class NotFound(ActionForgeError):
    """No action definition matches the given id or name."""


class BuildError(ActionForgeError):
    """The bundle could not be compiled or populated."""


class NotInstalled(ActionForgeError):
    """Uninstall was requested for an action with no installed bundle."""


class MissingArgument(ActionForgeError):
    """A subcommand was invoked without a required action id."""


class RepositoryError(ActionForgeError):
    """The action repository is unusable (e.g. an incomplete Default definition)."""


class HookError(ActionForgeError):
    """A custom uninstall procedure exited with an error."""


class SetupDeclined(ActionForgeError):
    """The operator declined to create the install root. Not a failure."""
