"""Tests for the cleaner implementations."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, call, patch

import pytest

from devsweep.cleaners import (
    CleanerResult,
    CommandCleaner,
    CompositeCleaner,
    DependencySweep,
    PathCleaner,
    SnapRevisionCleaner,
    classify_failure,
    elevate,
    parse_disabled_revisions,
)
from devsweep.errors import ErrorKind

SNAP_LIST_OUTPUT = """\
Name      Version    Rev    Tracking       Publisher   Notes
core20    20240111   2105   latest/stable  canonical✓  base,disabled
core20    20240227   2264   latest/stable  canonical✓  base
firefox   123.0-1    3836   latest/stable  mozilla✓    disabled
firefox   124.0-2    4033   latest/stable  mozilla✓    -
"""


def completed(returncode=0, stdout="", stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestCleanerResult:
    def test_status_labels(self):
        assert CleanerResult(actions=["removed x"]).status == "cleaned"
        assert CleanerResult().status == "nothing to clean"
        assert CleanerResult.declined("no").status == "skipped"
        assert CleanerResult.not_found().status == "nothing to clean"
        assert CleanerResult.failure(ErrorKind.TOOL_MISSING).status == "tool missing"

    def test_not_found_is_not_a_failure(self):
        result = CleanerResult.not_found("gone")
        assert result.ok is True
        assert result.error == ErrorKind.PATH_NOT_FOUND

    def test_missing_tool_is_not_a_failure(self):
        result = CleanerResult.tool_missing("npm not found")
        assert result.ok is True
        assert result.status == "tool missing"


class TestElevate:
    @patch("devsweep.cleaners.os.geteuid", return_value=1000)
    def test_prefixes_sudo_for_regular_user(self, mock_euid):
        assert elevate(["apt-get", "clean"], sudo=True) == ["sudo", "apt-get", "clean"]

    @patch("devsweep.cleaners.os.geteuid", return_value=0)
    def test_no_sudo_for_root(self, mock_euid):
        assert elevate(["apt-get", "clean"], sudo=True) == ["apt-get", "clean"]

    def test_sudo_disabled(self):
        assert elevate(["apt-get", "clean"], sudo=False) == ["apt-get", "clean"]


class TestClassifyFailure:
    def test_permission_denied(self):
        stderr = "E: Could not open lock file /var/cache/apt/archives/lock - open (13: Permission denied)"
        assert classify_failure(stderr) == ErrorKind.PERMISSION_DENIED

    def test_sudo_password_refused(self):
        assert classify_failure("sudo: a password is required") == ErrorKind.PERMISSION_DENIED

    def test_other_failure(self):
        assert classify_failure("npm ERR! something broke") == ErrorKind.COMMAND_FAILED

    def test_empty_stderr(self):
        assert classify_failure("") == ErrorKind.COMMAND_FAILED


class TestPathCleaner:
    def test_removes_directories_and_files(self, tmp_path):
        caches = tmp_path / ".gradle" / "caches"
        (caches / "modules").mkdir(parents=True)
        (caches / "modules" / "a.jar").write_bytes(b"x" * 100)
        daemon_log = tmp_path / ".gradle" / "daemon.log"
        daemon_log.write_text("log")

        result = PathCleaner([caches, daemon_log]).run()

        assert result.ok is True
        assert result.status == "cleaned"
        assert result.freed_bytes == 103
        assert not caches.exists()
        assert not daemon_log.exists()
        assert (tmp_path / ".gradle").exists()

    def test_absent_paths_are_noop(self, tmp_path):
        result = PathCleaner([tmp_path / "missing", tmp_path / "also-missing"]).run()

        assert result.ok is True
        assert result.error == ErrorKind.PATH_NOT_FOUND
        assert result.actions == []

    def test_contents_only_keeps_directory_and_hidden_entries(self, tmp_path):
        cache = tmp_path / ".cache"
        (cache / "pip").mkdir(parents=True)
        (cache / "thumbnail.png").write_bytes(b"png")
        (cache / ".keep").write_text("")

        result = PathCleaner([cache], contents_only=True).run()

        assert result.ok is True
        assert cache.is_dir()
        assert sorted(p.name for p in cache.iterdir()) == [".keep"]

    def test_contents_only_skips_excluded_children(self, tmp_path):
        cache = tmp_path / ".cache"
        (cache / "metro").mkdir(parents=True)
        (cache / "pip").mkdir()

        result = PathCleaner([cache], contents_only=True, exclude=[cache / "metro"]).run()

        assert result.actions == [f"removed {cache / 'pip'}"]
        assert (cache / "metro").is_dir()

    def test_contents_only_on_empty_dir(self, tmp_path):
        cache = tmp_path / ".cache"
        cache.mkdir()

        result = PathCleaner([cache], contents_only=True).run()

        assert result.ok is True
        assert result.error is None
        assert result.status == "nothing to clean"

    def test_symlink_is_unlinked_not_followed(self, tmp_path):
        target = tmp_path / "real"
        target.mkdir()
        (target / "keep.txt").write_text("keep")
        link = tmp_path / ".expo"
        link.symlink_to(target)

        PathCleaner([link]).run()

        assert not link.exists() and not link.is_symlink()
        assert (target / "keep.txt").exists()

    def test_dry_run_removes_nothing(self, tmp_path):
        expo = tmp_path / ".expo"
        expo.mkdir()
        (expo / "state.json").write_text("{}")

        result = PathCleaner([expo], dry_run=True).run()

        assert expo.exists()
        assert result.actions and result.actions[0].startswith("would remove")

    def test_permission_error_is_reported(self, tmp_path):
        cache = tmp_path / "locked"
        cache.mkdir()

        with patch("devsweep.cleaners.shutil.rmtree", side_effect=PermissionError("denied")):
            result = PathCleaner([cache]).run()

        assert result.ok is False
        assert result.error == ErrorKind.PERMISSION_DENIED


class TestCommandCleaner:
    def test_empty_argv_rejected(self):
        with pytest.raises(ValueError):
            CommandCleaner([])

    @patch("devsweep.cleaners.subprocess.run")
    @patch("devsweep.cleaners.shutil.which", return_value=None)
    def test_missing_tool_is_soft_failure(self, mock_which, mock_run):
        result = CommandCleaner(["yarn", "cache", "clean"]).run()

        assert result.error == ErrorKind.TOOL_MISSING
        assert result.ok is True
        mock_run.assert_not_called()

    @patch("devsweep.cleaners.subprocess.run", return_value=completed(0))
    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/npm")
    def test_success(self, mock_which, mock_run):
        result = CommandCleaner(["npm", "cache", "clean", "--force"]).run()

        assert result.ok is True
        assert result.status == "cleaned"
        mock_run.assert_called_once_with(
            ["npm", "cache", "clean", "--force"], capture_output=True, text=True
        )

    @patch("devsweep.cleaners.os.geteuid", return_value=1000)
    @patch("devsweep.cleaners.subprocess.run", return_value=completed(0))
    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/x")
    def test_sudo_prefix(self, mock_which, mock_run, mock_euid):
        CommandCleaner(["journalctl", "--vacuum-time=7d"], sudo=True).run()

        mock_run.assert_called_once_with(
            ["sudo", "journalctl", "--vacuum-time=7d"], capture_output=True, text=True
        )

    @patch("devsweep.cleaners.os.geteuid", return_value=1000)
    @patch("devsweep.cleaners.subprocess.run")
    def test_missing_sudo_is_tool_missing(self, mock_run, mock_euid):
        with patch("devsweep.cleaners.shutil.which", side_effect=lambda name: None if name == "sudo" else "/usr/bin/" + name):
            result = CommandCleaner(["apt-get", "clean"], sudo=True).run()

        assert result.error == ErrorKind.TOOL_MISSING
        assert "sudo" in result.detail
        mock_run.assert_not_called()

    @patch("devsweep.cleaners.subprocess.run", return_value=completed(1, stderr="sudo: 3 incorrect password attempts"))
    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/x")
    def test_rejected_elevation(self, mock_which, mock_run):
        result = CommandCleaner(["apt-get", "clean"], sudo=True).run()

        assert result.ok is False
        assert result.error == ErrorKind.PERMISSION_DENIED

    @patch("devsweep.cleaners.subprocess.run", return_value=completed(2, stderr="boom\nlast line"))
    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/x")
    def test_non_zero_exit(self, mock_which, mock_run):
        result = CommandCleaner(["yarn", "cache", "clean"]).run()

        assert result.error == ErrorKind.COMMAND_FAILED
        assert result.detail == "last line"

    @patch("devsweep.cleaners.subprocess.run", side_effect=FileNotFoundError)
    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/x")
    def test_vanished_executable(self, mock_which, mock_run):
        result = CommandCleaner(["npm", "cache", "clean"]).run()

        assert result.error == ErrorKind.TOOL_MISSING

    @patch("devsweep.cleaners.subprocess.run")
    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/x")
    def test_dry_run(self, mock_which, mock_run):
        result = CommandCleaner(["npm", "cache", "clean"], dry_run=True).run()

        mock_run.assert_not_called()
        assert result.actions == ["would run: npm cache clean"]


class TestSnapRevisions:
    def test_parse_disabled_revisions(self):
        assert parse_disabled_revisions(SNAP_LIST_OUTPUT) == [("core20", "2105"), ("firefox", "3836")]

    def test_parse_empty_output(self):
        assert parse_disabled_revisions("") == []

    @patch("devsweep.cleaners.subprocess.run")
    @patch("devsweep.cleaners.shutil.which", return_value=None)
    def test_missing_snap(self, mock_which, mock_run):
        result = SnapRevisionCleaner().run()

        assert result.error == ErrorKind.TOOL_MISSING
        mock_run.assert_not_called()

    @patch("devsweep.cleaners.os.geteuid", return_value=1000)
    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/snap")
    @patch("devsweep.cleaners.subprocess.run")
    def test_removes_each_disabled_revision(self, mock_run, mock_which, mock_euid):
        mock_run.side_effect = [completed(0, stdout=SNAP_LIST_OUTPUT), completed(0), completed(0)]

        result = SnapRevisionCleaner(sudo=True).run()

        assert result.ok is True
        assert mock_run.call_args_list == [
            call(["snap", "list", "--all"], capture_output=True, text=True),
            call(["sudo", "snap", "remove", "core20", "--revision=2105"], capture_output=True, text=True),
            call(["sudo", "snap", "remove", "firefox", "--revision=3836"], capture_output=True, text=True),
        ]

    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/snap")
    @patch("devsweep.cleaners.subprocess.run")
    def test_continues_after_failed_removal(self, mock_run, mock_which):
        mock_run.side_effect = [
            completed(0, stdout=SNAP_LIST_OUTPUT),
            completed(1, stderr="error: access denied"),
            completed(0),
        ]

        result = SnapRevisionCleaner(sudo=False).run()

        assert mock_run.call_count == 3
        assert result.ok is False
        assert result.error == ErrorKind.PERMISSION_DENIED
        assert "core20" in result.detail

    @patch("devsweep.cleaners.shutil.which", return_value="/usr/bin/snap")
    @patch("devsweep.cleaners.subprocess.run", return_value=completed(1, stderr="cannot communicate with server"))
    def test_listing_failure(self, mock_run, mock_which):
        result = SnapRevisionCleaner().run()

        assert result.error == ErrorKind.COMMAND_FAILED


class TestCompositeCleaner:
    def test_all_missing_paths(self, tmp_path):
        result = CompositeCleaner([PathCleaner([tmp_path / "a"]), PathCleaner([tmp_path / "b"])]).run()

        assert result.error == ErrorKind.PATH_NOT_FOUND

    @patch("devsweep.cleaners.shutil.which", return_value=None)
    def test_missing_tool_does_not_mask_path_cleanup(self, mock_which, tmp_path):
        target = tmp_path / "x"
        target.mkdir()

        result = CompositeCleaner([CommandCleaner(["npm", "cache", "clean"]), PathCleaner([target])]).run()

        assert result.ok is True
        assert result.error is None
        assert result.status == "cleaned"
        assert not target.exists()
        assert result.actions == [f"removed {target}"]

    @patch("devsweep.cleaners.subprocess.run", return_value=completed(0))
    @patch("devsweep.cleaners.shutil.which", side_effect=lambda tool: None if tool == "npm" else f"/usr/bin/{tool}")
    def test_one_tool_missing_other_runs(self, mock_which, mock_run):
        result = CompositeCleaner([
            CommandCleaner(["npm", "cache", "clean", "--force"]),
            CommandCleaner(["yarn", "cache", "clean"]),
        ]).run()

        assert result.ok is True
        assert result.status == "cleaned"
        assert result.actions == ["ran yarn cache clean"]
        mock_run.assert_called_once()

    @patch("devsweep.cleaners.shutil.which", return_value=None)
    def test_all_tools_missing(self, mock_which):
        result = CompositeCleaner([CommandCleaner(["npm", "cache", "clean"]), CommandCleaner(["yarn", "cache", "clean"])]).run()

        assert result.ok is True
        assert result.error == ErrorKind.TOOL_MISSING
        assert result.detail == "npm not found; yarn not found"

    @patch("devsweep.cleaners.subprocess.run", return_value=completed(1, stderr="E: Could not open lock file - Permission denied"))
    @patch("devsweep.cleaners.shutil.which", side_effect=lambda tool: None if tool == "npm" else f"/usr/bin/{tool}")
    def test_real_failure_wins_over_missing_tool(self, mock_which, mock_run):
        result = CompositeCleaner([
            CommandCleaner(["npm", "cache", "clean", "--force"]),
            CommandCleaner(["apt-get", "clean"]),
        ]).run()

        assert result.ok is False
        assert result.error == ErrorKind.PERMISSION_DENIED


class TestDependencySweep:
    def _home(self, tmp_path: Path) -> Path:
        for proj in ("proj1", "proj2"):
            deps = tmp_path / proj / "node_modules"
            deps.mkdir(parents=True)
            (deps / "index.js").write_text("module.exports = 1")
        (tmp_path / "proj1" / "package.json").write_text("{}")
        return tmp_path

    def test_plan_lists_matches_and_asks(self, tmp_path):
        sweep = DependencySweep(self._home(tmp_path), ["node_modules"])

        question = sweep.plan()

        assert question is not None and "node_modules" in question
        assert [m.path.parent.name for m in sweep.matches] == ["proj1", "proj2"]

    def test_plan_without_matches(self, tmp_path):
        sweep = DependencySweep(tmp_path, ["node_modules"])

        assert sweep.plan() is None
        assert sweep.run().error == ErrorKind.PATH_NOT_FOUND

    def test_run_removes_only_listed_matches(self, tmp_path):
        home = self._home(tmp_path)
        sweep = DependencySweep(home, ["node_modules"])
        sweep.plan()

        late = home / "proj3" / "node_modules"
        late.mkdir(parents=True)
        result = sweep.run()

        assert result.ok is True
        assert not (home / "proj1" / "node_modules").exists()
        assert not (home / "proj2" / "node_modules").exists()
        assert late.exists()
        assert (home / "proj1" / "package.json").exists()

    def test_dry_run_keeps_everything(self, tmp_path):
        home = self._home(tmp_path)
        sweep = DependencySweep(home, ["node_modules"], dry_run=True)
        sweep.plan()

        result = sweep.run()

        assert len(result.actions) == 2
        assert (home / "proj1" / "node_modules").exists()
