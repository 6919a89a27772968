"""Tests for action_repository.py — definition lookup, defaults, and listing."""

import sys
import tempfile
import unittest
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from action_errors import MissingArgument, NotFound, RepositoryError
from action_repository import ActionDefinition, ActionRepository
from paths import ACTIONS_DIR


def _make_definition(root: Path, name: str, files: dict | None = None) -> Path:
    directory = root / f"{name}.action"
    directory.mkdir(parents=True)
    for filename, content in (files or {}).items():
        (directory / filename).write_bytes(content)
    return directory


def _make_default(root: Path) -> Path:
    return _make_definition(
        root,
        "Default",
        {
            "main.applescript": b"-- default entry\n",
            "script": b"#!/bin/sh\nexit 0\n",
            "applet.icns": b"icns-default",
        },
    )


class RepositoryTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        base = Path(self._tmp.name)
        self.root = base / "actions"
        self.install_root = base / "Applications"
        self.root.mkdir()
        self.install_root.mkdir()
        _make_default(self.root)
        self.repo = ActionRepository(self.root, self.install_root)

    def tearDown(self):
        self._tmp.cleanup()


class TestResolve(RepositoryTestCase):
    def test_resolve_by_id(self):
        _make_definition(self.root, "Login Window")
        definition = self.repo.resolve("login-window")
        self.assertIsInstance(definition, ActionDefinition)
        self.assertEqual(definition.action_id, "login-window")
        self.assertEqual(definition.display_name, "Login Window")
        self.assertEqual(definition.directory, self.root / "Login Window.action")

    def test_resolve_by_name(self):
        _make_definition(self.root, "Log Out")
        definition = self.repo.resolve("Log Out")
        self.assertEqual(definition.action_id, "log-out")

    def test_name_with_acronym_keeps_given_name(self):
        _make_definition(self.root, "USB Eject")
        definition = self.repo.resolve("USB Eject")
        self.assertEqual(definition.action_id, "usb-eject")
        self.assertEqual(definition.display_name, "USB Eject")

    def test_overrides_detected(self):
        _make_definition(self.root, "Sleep", {"script": b"pmset sleepnow", "install": b"exit 0"})
        definition = self.repo.resolve("sleep")
        self.assertEqual(definition.payload_script, self.root / "Sleep.action" / "script")
        self.assertEqual(definition.install_hook, self.root / "Sleep.action" / "install")
        self.assertIsNone(definition.launch_script)
        self.assertIsNone(definition.icon)
        self.assertIsNone(definition.uninstall_hook)

    def test_unknown_action(self):
        with self.assertRaises(NotFound):
            self.repo.resolve("unknown-action")

    def test_default_is_not_an_action(self):
        with self.assertRaises(NotFound):
            self.repo.resolve("default")

    def test_file_instead_of_directory(self):
        (self.root / "Sleep.action").write_text("not a directory")
        with self.assertRaises(NotFound):
            self.repo.resolve("sleep")

    def test_empty_input(self):
        with self.assertRaises(MissingArgument):
            self.repo.resolve("")
        with self.assertRaises(MissingArgument):
            self.repo.resolve("   ")

    def test_name_comes_from_directory(self):
        _make_definition(self.root, "Log Out")
        definition = self.repo.resolve("LOG OUT")
        self.assertEqual(definition.display_name, "Log Out")
        self.assertEqual(definition.action_id, "log-out")
        self.assertEqual(self.repo.artifact_path(definition), self.install_root / "Log Out.app")

    def test_acronym_found_by_id(self):
        _make_definition(self.root, "USB Eject")
        definition = self.repo.resolve("usb-eject")
        self.assertEqual(definition.display_name, "USB Eject")
        self.assertEqual(definition.directory, self.root / "USB Eject.action")

    def test_exact_match_preferred(self):
        _make_definition(self.root, "Sleep")
        if (self.root / "SLEEP.action").exists():
            self.skipTest("case-insensitive filesystem")
        _make_definition(self.root, "SLEEP")
        self.assertEqual(self.repo.resolve("SLEEP").display_name, "SLEEP")
        self.assertEqual(self.repo.resolve("sleep").display_name, "Sleep")

    def test_paths_outside_root_rejected(self):
        outside = Path(self._tmp.name) / "x.action"
        outside.mkdir()
        for value in ("../x", "Sub/Dir", ".hidden"):
            with self.subTest(value=value):
                with self.assertRaises(NotFound):
                    self.repo.resolve(value)


class TestDefaults(RepositoryTestCase):
    def test_fallbacks(self):
        _make_definition(self.root, "Login Window", {"applet.icns": b"icns-login"})
        definition = self.repo.resolve("login-window")
        default_dir = self.root / "Default.action"
        self.assertEqual(self.repo.launch_script_for(definition), default_dir / "main.applescript")
        self.assertEqual(self.repo.payload_for(definition), default_dir / "script")
        self.assertEqual(self.repo.icon_for(definition), definition.directory / "applet.icns")

    def test_incomplete_default(self):
        (self.root / "Default.action" / "applet.icns").unlink()
        repo = ActionRepository(self.root, self.install_root)
        with self.assertRaises(RepositoryError) as ctx:
            repo.defaults()
        self.assertIn("applet.icns", str(ctx.exception))

    def test_missing_default(self):
        other = Path(self._tmp.name) / "empty"
        other.mkdir()
        with self.assertRaises(RepositoryError):
            ActionRepository(other, self.install_root).defaults()


class TestInstalledState(RepositoryTestCase):
    def test_artifact_path(self):
        self.assertEqual(
            self.repo.artifact_path("login-window"),
            self.install_root / "Login Window.app",
        )

    def test_is_installed_follows_filesystem(self):
        _make_definition(self.root, "Sleep")
        self.assertFalse(self.repo.is_installed("sleep"))
        (self.install_root / "Sleep.app").mkdir()
        self.assertTrue(self.repo.is_installed("sleep"))
        self.assertTrue(self.repo.is_installed(self.repo.resolve("sleep")))

    def test_artifact_patterns(self):
        _make_definition(
            self.root,
            "Switch User",
            {"artifacts": b"# per user\n\nSwitch To *.app\n  Guest Login.app  \n"},
        )
        definition = self.repo.resolve("switch-user")
        self.assertEqual(definition.artifact_patterns, ("Switch To *.app", "Guest Login.app"))
        self.assertFalse(self.repo.is_installed(definition))

        (self.install_root / "Switch User.app").mkdir()
        self.assertFalse(self.repo.is_installed(definition))

        (self.install_root / "Switch To Guest.app").mkdir()
        (self.install_root / "Guest Login.app").mkdir()
        self.assertEqual(
            self.repo.installed_artifacts(definition),
            [self.install_root / "Guest Login.app", self.install_root / "Switch To Guest.app"],
        )
        self.assertTrue(self.repo.is_installed("switch-user"))

    def test_artifact_patterns_stay_in_install_root(self):
        _make_definition(self.root, "Switch User", {"artifacts": b"../*.app\n"})
        with self.assertRaises(RepositoryError):
            self.repo.resolve("switch-user")

    def test_artifact_patterns_without_install_root(self):
        _make_definition(self.root, "Switch User", {"artifacts": b"Switch To *.app\n"})
        repo = ActionRepository(self.root, Path(self._tmp.name) / "missing")
        self.assertEqual(repo.list(), [("switch-user", False)])


class TestList(RepositoryTestCase):
    def test_list_reports_installed_flags(self):
        _make_definition(self.root, "A")
        _make_definition(self.root, "B")
        (self.install_root / "A.app").mkdir()
        self.assertEqual(set(self.repo.list()), {("a", True), ("b", False)})

    def test_list_skips_default_files_and_hidden(self):
        _make_definition(self.root, "Login Window")
        (self.root / "README.md").write_text("notes")
        (self.root / ".cache.action").mkdir()
        (self.root / "Scratch").mkdir()
        self.assertEqual(self.repo.list(), [("login-window", False)])

    def test_list_empty_repository(self):
        self.assertEqual(self.repo.list(), [])

    def test_list_missing_root(self):
        repo = ActionRepository(Path(self._tmp.name) / "missing", self.install_root)
        with self.assertRaises(RepositoryError):
            repo.list()

    def test_custom_suffixes(self):
        (self.root / "Sleep.recipe").mkdir()
        (self.install_root / "Sleep.bundle").mkdir()
        repo = ActionRepository(
            self.root, self.install_root, definition_suffix=".recipe", bundle_suffix=".bundle"
        )
        self.assertEqual(repo.list(), [("sleep", True)])


class TestShippedActions(unittest.TestCase):
    """The definitions under actions/ that ship with the project."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.repo = ActionRepository(ACTIONS_DIR, self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_default_is_complete(self):
        defaults = self.repo.defaults()
        for path in (defaults.launch_script, defaults.payload_script, defaults.icon):
            self.assertTrue(path.is_file(), path)

    def test_listed_ids(self):
        self.assertEqual(
            set(self.repo.list()),
            {
                ("login-window", False),
                ("sleep", False),
                ("log-out", False),
                ("switch-user", False),
            },
        )

    def test_every_action_resolves(self):
        for action_id, _ in self.repo.list():
            with self.subTest(action_id=action_id):
                definition = self.repo.resolve(action_id)
                self.assertEqual(definition.action_id, action_id)
                self.assertTrue(self.repo.launch_script_for(definition).is_file())
                self.assertTrue(self.repo.payload_for(definition).is_file())
                self.assertTrue(self.repo.icon_for(definition).is_file())

    def test_switch_user_declares_artifacts(self):
        definition = self.repo.resolve("switch-user")
        self.assertIsNotNone(definition.install_hook)
        self.assertIsNotNone(definition.uninstall_hook)
        self.assertEqual(definition.artifact_patterns, ("Switch To *.app",))


if __name__ == "__main__":
    unittest.main()
