"""Centralized path resolution for ActionForge.

All modules should import paths from here rather than computing them locally.
This module resolves paths relative to the project root (parent of src/).
"""

from __future__ import annotations

from pathlib import Path

# Project root: parent of the src/ directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Core directories
CONFIGS_DIR = PROJECT_ROOT / "configs"

# Action definitions shipped with the project
ACTIONS_DIR = PROJECT_ROOT / "actions"

# Key config files
SETTINGS_PATH = CONFIGS_DIR / "actionforge.yaml"

# Where installed bundles land when no config overrides it
DEFAULT_INSTALL_ROOT = Path("/Applications/Actions")

# The user's Finder trash
USER_TRASH_DIR = Path.home() / ".Trash"
