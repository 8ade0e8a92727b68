import os
import shutil
import subprocess
import tempfile
import unittest
from unittest.mock import patch, MagicMock

from uwu import context
from uwu.config import ContextConfig


class TestEnvironmentContext(unittest.TestCase):
    """Tests for `get_environment_context`."""

    @patch.dict(os.environ, {"SHELL": "/bin/zsh"})
    @patch("uwu.context._memory_mb", return_value=("16000", "8000"))
    def test_contains_machine_details(self, mock_memory):
        result = context.get_environment_context()

        self.assertIn("Operating System:", result)
        self.assertIn("Shell: /bin/zsh", result)
        self.assertIn(f"Current Working Directory: {os.getcwd()}", result)
        self.assertIn("Total Memory: 16000 MB", result)
        self.assertIn("Free Memory: 8000 MB", result)

    @patch.dict(os.environ, {}, clear=True)
    @patch("uwu.context._memory_mb", return_value=("unknown", "unknown"))
    def test_unknown_shell(self, mock_memory):
        self.assertIn("Shell: unknown", context.get_environment_context())


class TestDirectoryListing(unittest.TestCase):
    """Tests for `get_directory_listing`."""

    @patch("uwu.context.sys.platform", "linux")
    @patch("subprocess.run")
    def test_posix_uses_ls(self, mock_run):
        mock_run.return_value = MagicMock(stdout="a.txt\nb.txt\n")

        command, output = context.get_directory_listing()

        self.assertEqual(command, "ls")
        self.assertEqual(output, "a.txt\nb.txt\n")
        self.assertEqual(mock_run.call_args.args[0], ["ls"])

    @patch("uwu.context.sys.platform", "win32")
    @patch("subprocess.run")
    def test_windows_uses_dir(self, mock_run):
        mock_run.return_value = MagicMock(stdout="a.txt\n")

        command, _ = context.get_directory_listing()

        self.assertEqual(command, "dir /b")
        self.assertEqual(mock_run.call_args.args[0], ["cmd", "/c", "dir", "/b"])

    @patch("uwu.context.sys.platform", "linux")
    @patch("subprocess.run", side_effect=subprocess.CalledProcessError(2, ["ls"]))
    def test_failure_yields_placeholder(self, mock_run):
        command, output = context.get_directory_listing()

        self.assertEqual(command, "ls")
        self.assertEqual(output, "Unable to get directory listing")


class TestHistory(unittest.TestCase):
    """Tests for shell history parsing and the history context block."""

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmp_dir, ignore_errors=True)
        self.history_path = os.path.join(self.tmp_dir, "history")

    def _write_history(self, text: str):
        with open(self.history_path, "w") as f:
            f.write(text)

    def test_parse_zsh_extended_line(self):
        self.assertEqual(context.parse_history_line(": 1700000000:0;git status"), "git status")
        self.assertEqual(context.parse_history_line(": 1700000000:0;echo a; echo b"), "echo a; echo b")

    def test_parse_plain_line(self):
        self.assertEqual(context.parse_history_line("  ls -la  "), "ls -la")
        self.assertEqual(context.parse_history_line(": not;zsh"), ": not;zsh")

    def test_read_recent_commands_keeps_last_entries(self):
        self._write_history("#1700000000\nls\n\ncd /tmp\n: 1700000001:0;make test\npwd\n")

        commands = context.read_recent_commands(self.history_path, 2)

        self.assertEqual(commands, ["make test", "pwd"])

    def test_read_recent_commands_zero_limit(self):
        self._write_history("ls\n")

        self.assertEqual(context.read_recent_commands(self.history_path, 0), [])

    def test_disabled_history_is_empty(self):
        self.assertEqual(context.build_context_history(ContextConfig(enabled=False)), "")

    def test_enabled_history_renders_block(self):
        self._write_history("ls\ngit status\n")

        with patch.dict(os.environ, {"HISTFILE": self.history_path}):
            result = context.build_context_history(ContextConfig(enabled=True, max_history_commands=5))

        self.assertIn("--- RECENT COMMAND HISTORY ---", result)
        self.assertIn("ls\ngit status", result)

    def test_missing_history_file_is_empty(self):
        missing = os.path.join(self.tmp_dir, "missing")

        with patch.dict(os.environ, {"HISTFILE": missing}):
            self.assertEqual(context.build_context_history(ContextConfig(enabled=True)), "")

    @patch.dict(os.environ, {"SHELL": "/usr/bin/zsh"})
    @patch("os.path.expanduser", side_effect=lambda p: p.replace("~", "/home/test"))
    def test_history_file_follows_shell(self, mock_expanduser):
        os.environ.pop("HISTFILE", None)

        self.assertEqual(context.get_history_file(), os.path.join("/home/test", ".zsh_history"))


if __name__ == "__main__":
    unittest.main()
