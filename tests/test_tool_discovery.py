"""Tests for formatter tool discovery."""

import sys

import pytest

from cfhooks.exceptions import ToolNotFoundError
from cfhooks.services.tool_discovery import (
    EnvironmentOverride,
    FixedPaths,
    PathLookup,
    VersionedGlob,
    command_for,
    diff_tool_strategies,
    find_clang_format,
    find_clang_format_diff,
    find_tool,
    first_match,
    require_tool,
    version_key,
)

from conftest import make_executable


class TestVersionKey:
    """Test version ordering."""

    def test_numeric_ordering(self):
        paths = [
            "/usr/lib/llvm-9/share/clang/clang-format-diff.py",
            "/usr/lib/llvm-14/share/clang/clang-format-diff.py",
            "/usr/lib/llvm-10/share/clang/clang-format-diff.py",
        ]
        newest = sorted(paths, key=version_key, reverse=True)[0]
        assert "llvm-14" in newest

    def test_dotted_versions(self):
        assert version_key("/Cellar/clang-format/15.0.7/x") > version_key("/Cellar/clang-format/15.0.2/x")


class TestStrategies:
    """Test the individual lookup strategies."""

    def test_environment_override_file(self, tmp_path):
        tool = make_executable(tmp_path / "my-diff")
        strategy = EnvironmentOverride("CLANG_FORMAT_DIFF", "clang-format-diff", {"CLANG_FORMAT_DIFF": str(tool)})
        assert strategy.find() == str(tool)

    def test_environment_override_unset(self):
        strategy = EnvironmentOverride("CLANG_FORMAT_DIFF", "clang-format-diff", {})
        assert strategy.find() is None

    def test_environment_override_missing_is_an_error(self, tmp_path):
        """Test that a broken override does not fall through silently."""
        environ = {"CLANG_FORMAT_DIFF": str(tmp_path / "nope"), "PATH": str(tmp_path)}
        strategy = EnvironmentOverride("CLANG_FORMAT_DIFF", "clang-format-diff", environ)
        with pytest.raises(ToolNotFoundError) as exc_info:
            strategy.find()
        assert "CLANG_FORMAT_DIFF" in exc_info.value.suggested_fix

    def test_environment_override_command_name(self, tmp_path):
        """Test that a bare command name is looked up on the PATH."""
        tool = make_executable(tmp_path / "clang-format-17")
        environ = {"CLANG_FORMAT": "clang-format-17", "PATH": str(tmp_path)}
        assert EnvironmentOverride("CLANG_FORMAT", "clang-format", environ).find() == str(tool)

    def test_versioned_glob_prefers_newest(self, tmp_path):
        for version in ("9", "14", "10"):
            make_executable(tmp_path / f"llvm-{version}" / "share" / "clang" / "clang-format-diff.py")
        strategy = VersionedGlob([str(tmp_path / "llvm-*" / "share" / "clang" / "clang-format-diff.py")])

        assert strategy.find() == str(tmp_path / "llvm-14" / "share" / "clang" / "clang-format-diff.py")

    def test_path_lookup_order(self, tmp_path):
        """Test that names are tried in order."""
        make_executable(tmp_path / "clang-format-diff.py")
        strategy = PathLookup(["clang-format-diff", "clang-format-diff.py"], {"PATH": str(tmp_path)})
        assert strategy.find() == str(tmp_path / "clang-format-diff.py")

        make_executable(tmp_path / "clang-format-diff")
        assert strategy.find() == str(tmp_path / "clang-format-diff")

    def test_fixed_paths_skip_missing(self, tmp_path):
        existing = make_executable(tmp_path / "share" / "clang-format-diff.py")
        strategy = FixedPaths([str(tmp_path / "missing.py"), str(existing)])
        assert strategy.find() == str(existing)

    def test_first_match_is_lazy(self, tmp_path):
        """Test that later strategies are not evaluated after a match."""
        tool = make_executable(tmp_path / "tool")

        class Exploding(FixedPaths):
            def candidates(self):
                raise AssertionError("evaluated after a match")

        assert first_match([FixedPaths([str(tool)]), Exploding([])]) == str(tool)

    @pytest.mark.parametrize("system", ["Darwin", "Linux"])
    def test_chain_order(self, system):
        strategies = diff_tool_strategies({}, system=system)
        assert [type(s) for s in strategies] == [EnvironmentOverride, VersionedGlob, PathLookup, FixedPaths]

    def test_chain_without_package_locations(self):
        strategies = diff_tool_strategies({}, system="FreeBSD")
        assert [type(s) for s in strategies] == [EnvironmentOverride, PathLookup, FixedPaths]


class TestFindTools:
    """Test the public lookup functions."""

    def test_find_clang_format_override(self, tool_environ, tool_dir):
        assert find_clang_format(tool_environ) == str(tool_dir / "clang-format")

    def test_find_clang_format_on_path(self, tool_dir):
        assert find_clang_format({"PATH": str(tool_dir)}) == str(tool_dir / "clang-format")

    def test_clang_format_not_found(self, tmp_path):
        with pytest.raises(ToolNotFoundError) as exc_info:
            find_clang_format({"PATH": str(tmp_path)})
        assert exc_info.value.env_var == "CLANG_FORMAT"
        assert "CLANG_FORMAT" in exc_info.value.get_user_message()

    def test_clang_format_diff_not_found(self):
        with pytest.raises(ToolNotFoundError) as exc_info:
            find_clang_format_diff({}, strategies=[FixedPaths([])])
        assert exc_info.value.env_var == "CLANG_FORMAT_DIFF"
        assert "CLANG_FORMAT_DIFF" in exc_info.value.get_user_message()

    def test_clang_format_diff_executable(self, tool_environ, tool_dir):
        assert find_clang_format_diff(tool_environ) == [str(tool_dir / "clang-format-diff")]

    def test_non_executable_script_runs_through_python(self, tmp_path):
        script = tmp_path / "clang-format-diff.py"
        script.write_text("print('hi')\n")
        script.chmod(0o644)

        assert command_for(str(script)) == [sys.executable, str(script)]
        assert find_clang_format_diff({}, strategies=[FixedPaths([str(script)])]) == [sys.executable, str(script)]

    def test_helper_tools(self, tool_dir):
        environ = {"PATH": str(tool_dir)}
        assert find_tool("patch", environ) == str(tool_dir / "patch")
        assert find_tool("colordiff", environ) is None
        with pytest.raises(ToolNotFoundError):
            require_tool("colordiff", environ)
