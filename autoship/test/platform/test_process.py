"""Tests for autoship.platform.process."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from autoship.core.result import Err, Ok
from autoship.platform.process import ProcessError, run


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("git", "status"), returncode=1, stdout="", stderr="fatal")
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(command=("gh", "api", "--method", "GET", "x"), returncode=1, stdout="", stderr="")
        assert str(error) == "gh api --method ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import sys; sys.exit(3)"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 3

    def test_input_text_is_fed_to_stdin(self, tmp_path: Path) -> None:
        code = "import sys; print(sys.stdin.read().upper())"
        result = run([sys.executable, "-c", code], cwd=tmp_path, input_text="body")

        assert isinstance(result, Ok)
        assert result.value.strip() == "BODY"

    def test_missing_program(self, tmp_path: Path) -> None:
        result = run(["definitely-not-a-real-program-xyz"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)

        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr
