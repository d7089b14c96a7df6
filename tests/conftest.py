"""pytest configuration and shared fixtures for cfhooks tests."""

import shutil
import stat
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pytest

from cfhooks.settings.config import HookConfig


@dataclass
class Call:
    """A command recorded by :class:`FakeRunner`."""
    args: List[str]
    cwd: Optional[str]
    input: Optional[str]


class FakeRunner:
    """Command runner returning canned results.

    Responses are matched on a command prefix; the first registered match
    wins and unmatched commands succeed with no output.
    """

    def __init__(self):
        self.calls: List[Call] = []
        self._responses = []

    def add(self, prefix, returncode=0, stdout="", stderr=""):
        prefix = [str(part) for part in prefix]
        self._responses.append(
            (prefix, subprocess.CompletedProcess(prefix, returncode, stdout, stderr))
        )
        return self

    def run(self, args, cwd=None, input=None, env=None, encoding=None, errors=None):
        command = [str(arg) for arg in args]
        self.calls.append(Call(command, str(cwd) if cwd is not None else None, input))
        for prefix, result in self._responses:
            if command[:len(prefix)] == prefix:
                return result
        return subprocess.CompletedProcess(command, 0, "", "")

    def commands(self, program: Optional[str] = None) -> List[List[str]]:
        """Recorded commands, optionally only those running ``program``."""
        return [
            call.args for call in self.calls
            if program is None or Path(call.args[0]).name == program
        ]


def make_executable(path: Path, content: str = "#!/bin/sh\nexit 0\n") -> Path:
    """Write an executable file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def git(*args, cwd) -> str:
    """Run git in ``cwd`` and return its stripped output."""
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


@pytest.fixture
def fake_runner():
    """A fresh FakeRunner."""
    return FakeRunner()


@pytest.fixture
def tool_dir(tmp_path):
    """Directory with executable stand-ins for the external tools."""
    bin_dir = tmp_path / "tools"
    make_executable(bin_dir / "clang-format")
    make_executable(bin_dir / "clang-format-diff")
    make_executable(bin_dir / "patch")
    return bin_dir


@pytest.fixture
def tool_environ(tool_dir):
    """Environment pointing the tool lookups at ``tool_dir`` only."""
    return {
        "PATH": str(tool_dir),
        "CLANG_FORMAT": str(tool_dir / "clang-format"),
        "CLANG_FORMAT_DIFF": str(tool_dir / "clang-format-diff"),
    }


@pytest.fixture
def hook_config(tool_environ, tmp_path):
    """Interactive configuration reading answers from ``tmp_path/tty``."""
    return HookConfig(
        style="file",
        interactive=True,
        tty_path=str(tmp_path / "tty"),
        environ=tool_environ,
    )


@pytest.fixture
def git_env(monkeypatch, tmp_path):
    """Isolate git from the user's global configuration."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    for name in ("GIT_DIR", "GIT_INDEX_FILE", "GIT_WORK_TREE"):
        monkeypatch.delenv(name, raising=False)
    return home


def init_repo(path: Path) -> Path:
    """Create a repository with one commit."""
    path.mkdir(parents=True, exist_ok=True)
    git("init", "-q", cwd=path)
    git("config", "commit.gpgsign", "false", cwd=path)
    (path / "README").write_text("readme\n")
    git("add", "README", cwd=path)
    git("commit", "-q", "-m", "initial", cwd=path)
    return path


@pytest.fixture
def git_repo(git_env, tmp_path):
    """A throwaway repository with one commit."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    return init_repo(tmp_path / "repo")


@pytest.fixture
def chdir(monkeypatch):
    """Change the working directory for the duration of a test."""
    def _chdir(path: Path) -> Path:
        monkeypatch.chdir(path)
        return path
    return _chdir


