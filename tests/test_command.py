"""Tests for command library."""

from pathlib import Path

import pytest

from kube_components.command import Command, run
from kube_components.exceptions import CommandException, HelmException


def test_command() -> None:
    """Test stdout parsing of a command."""
    result = run(Command(["echo", "Hello"]))
    assert result == "Hello\n"


def test_command_env_and_cwd(tmp_path: Path) -> None:
    """Test the environment and working directory of a command."""
    result = run(
        Command(["sh", "-c", 'echo "$GREETING $(pwd)"'], cwd=tmp_path, env={"GREETING": "hi"})
    )
    assert result == f"hi {tmp_path.resolve()}\n"


def test_failed_command() -> None:
    """Test a failing command."""
    with pytest.raises(CommandException, match="return code 1"):
        run(Command(["/bin/false"]))


def test_failed_command_exception_type() -> None:
    """Test that the configured exception type is raised."""
    with pytest.raises(HelmException):
        run(Command(["/bin/false"], exc=HelmException))


def test_missing_binary() -> None:
    """Test a command that can't be started."""
    with pytest.raises(CommandException, match="failed to start"):
        run(Command(["/nonexistent/binary"]))
