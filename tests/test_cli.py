"""Tests for the command line programs."""

import pytest

from cfhooks.cli import main as cli_main
from cfhooks.cli.apply_format import execute_apply_format
from cfhooks.cli.argument_parser import parse_apply_format_args, parse_hook_args
from cfhooks.cli.pre_commit import execute_pre_commit, run_hook
from cfhooks.exceptions import (
    CommitCancelledError,
    ConfigurationError,
    ExternalToolError,
    InvalidArgumentError,
    NotInvokedAsHookError,
    ToolNotFoundError,
)
from cfhooks.types.enums import FormatMode

from conftest import make_executable


class TestApplyFormatArguments:
    """Test apply-format argument parsing."""

    def test_defaults(self):
        args = parse_apply_format_args([])
        assert args.mode is FormatMode.DIFF
        assert not args.staged
        assert not args.in_place
        assert args.style is None
        assert args.ignore_regex == []
        assert args.paths == []
        assert args.git_args == []

    @pytest.mark.parametrize("flag", ["--staged", "--cached"])
    def test_staged_aliases(self, flag):
        assert parse_apply_format_args([flag]).staged

    @pytest.mark.parametrize("argv", [["--style=Google"], ["--style", "Google"]])
    def test_style_forms(self, argv):
        assert parse_apply_format_args(argv).style == "Google"

    def test_repeated_ignore_regex(self):
        args = parse_apply_format_args([
            "--internal-opt-ignore-regex=vendor/",
            "--internal-opt-ignore-regex", "gen/",
        ])
        assert args.ignore_regex == ["vendor/", "gen/"]

    def test_separator_is_forwarded(self):
        """Test that everything after -- goes to git diff untouched."""
        args = parse_apply_format_args(["-i", "HEAD~1", "--", "-weird-file.c", "--staged"])
        assert args.in_place
        assert not args.staged
        assert args.paths == ["HEAD~1"]
        assert args.git_args == ["--", "-weird-file.c", "--staged"]

    def test_modes(self):
        assert parse_apply_format_args(["--apply-to-staged"]).mode is FormatMode.APPLY_TO_STAGED
        assert parse_apply_format_args(["-f", "a.c"]).mode is FormatMode.WHOLE_FILE
        assert parse_apply_format_args(["--whole-file", "a.c"]).mode is FormatMode.WHOLE_FILE

    @pytest.mark.parametrize(
        "argv",
        [
            ["-f"],
            ["-f", "--staged", "a.c"],
            ["--whole-file", "--apply-to-staged", "a.c"],
            ["-f", "a.c", "--", "b.c"],
            ["--unknown-option"],
        ],
    )
    def test_invalid_combinations(self, argv):
        with pytest.raises(InvalidArgumentError):
            parse_apply_format_args(argv)

    @pytest.mark.parametrize("flag", ["-h", "-?", "--help"])
    def test_help(self, flag, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_apply_format_args([flag])
        assert exc_info.value.code == 0
        assert "--apply-to-staged" in capsys.readouterr().out


class TestHookArguments:
    """Test git-pre-commit-format argument parsing."""

    @pytest.mark.parametrize("argv, action", [([], None), (["install"], "install"), (["uninstall"], "uninstall")])
    def test_actions(self, argv, action):
        assert parse_hook_args(argv).action == action

    def test_unknown_action(self):
        with pytest.raises(InvalidArgumentError):
            parse_hook_args(["reinstall"])


class TestSafeExecution:
    """Test the mapping of failures to exit statuses."""

    def test_success(self):
        assert cli_main.execute_command_safely("test", lambda: 0) == 0

    def test_cfhooks_error(self, capsys):
        def command():
            raise ConfigurationError("The clang-format style cannot be empty.", suggested_fix="Set a style.")

        assert cli_main.execute_command_safely("test", command) == 1
        err = capsys.readouterr().err
        assert "error: The clang-format style cannot be empty." in err
        assert "Set a style." in err

    def test_cancel_exits_one(self, capsys):
        def command():
            raise CommitCancelledError()

        assert cli_main.execute_command_safely("test", command) == 1
        assert "Commit aborted" in capsys.readouterr().err

    @pytest.mark.parametrize("exit_code, expected", [(2, 2), (5, 5), (1, 1), (None, 1)])
    def test_tool_status_is_forwarded(self, exit_code, expected):
        def command():
            raise ExternalToolError("clang-format-diff failed.", exit_code=exit_code)

        assert cli_main.execute_command_safely("test", command) == expected

    def test_keyboard_interrupt(self):
        def command():
            raise KeyboardInterrupt

        assert cli_main.execute_command_safely("test", command) == 130

    def test_run_exits_with_status(self, monkeypatch):
        monkeypatch.setattr(cli_main, "_setup_signal_handlers", lambda: None)
        with pytest.raises(SystemExit) as exc_info:
            cli_main.run("test", lambda: 3)
        assert exc_info.value.code == 3


class TestPreCommitCommand:
    """Test git-pre-commit-format."""

    def test_direct_invocation_is_refused(self, tmp_path):
        with pytest.raises(NotInvokedAsHookError) as exc_info:
            run_hook(tmp_path, environ={})
        assert "git-pre-commit-format install" in exc_info.value.suggested_fix

    def test_install_and_uninstall(self, git_repo, tmp_path, capsys):
        script = make_executable(tmp_path / "bin" / "git-pre-commit-format")
        subdir = git_repo / "src"
        subdir.mkdir()

        assert execute_pre_commit(["install"], script, cwd=subdir) == 0
        hook = git_repo / ".git" / "hooks" / "pre-commit"
        assert hook.is_symlink()
        assert hook.resolve() == script.resolve()
        assert "installed" in capsys.readouterr().out

        assert execute_pre_commit(["uninstall"], script, cwd=subdir) == 0
        assert not hook.is_symlink()


class TestApplyFormatCommand:
    """Test apply-format against stand-in tools."""

    def test_missing_tools_fail_before_diff(self, git_repo, monkeypatch, tmp_path):
        monkeypatch.setenv("CLANG_FORMAT", str(tmp_path / "missing" / "clang-format"))

        with pytest.raises(ToolNotFoundError):
            execute_apply_format(["--staged"], cwd=git_repo)
