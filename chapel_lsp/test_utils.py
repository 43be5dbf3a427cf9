import os
import subprocess
from unittest.mock import MagicMock

import pytest

from .core_types import CompilerNotFoundError, CompilerTimeoutError
from .utils import ProcessManager, uri_to_path


# --- Fixtures ---


@pytest.fixture
def process_manager():
    """Fixture for a ProcessManager instance."""
    return ProcessManager()


@pytest.fixture
def mock_subprocess_run(mocker):
    """Fixture to mock subprocess.run."""
    mock_run = mocker.patch("subprocess.run")
    # Default successful result
    mock_run.return_value = MagicMock(
        returncode=0, stdout=b"mock stdout", stderr=b"mock stderr"
    )
    return mock_run


# --- Tests for uri_to_path ---


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("file:///home/user/proj/main.chpl", "/home/user/proj/main.chpl"),
        ("file:///home/user/my%20proj/a.chpl", "/home/user/my proj/a.chpl"),
        ("file:///C:/work/a.chpl", "C:/work/a.chpl"),
        ("/already/a/path.chpl", "/already/a/path.chpl"),
        ("relative/path.chpl", "relative/path.chpl"),
    ],
)
def test_uri_to_path(uri, expected):
    assert uri_to_path(uri) == expected


# --- Tests for ProcessManager ---


def test_run_command_success(process_manager, mock_subprocess_run):
    """Test successful synchronous command execution."""
    command = ["chpl", "a.chpl"]
    result = process_manager.run_command(command)

    mock_subprocess_run.assert_called_once_with(
        command,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        timeout=None,
        cwd=None,
        env=os.environ.copy(),
        text=False,
    )
    assert result.success is True
    assert result.return_code == 0
    assert result.stdout == "mock stdout"
    assert result.stderr == "mock stderr"
    assert result.command == command
    assert result.failed is False


def test_run_command_failure_is_not_raised(process_manager, mock_subprocess_run):
    """Test that a non-zero exit is reported through the result."""
    mock_subprocess_run.return_value = MagicMock(
        returncode=1, stdout=b"", stderr=b"  a.chpl:1:error:oops \n"
    )

    result = process_manager.run_command(["chpl", "a.chpl"])

    assert result.success is False
    assert result.return_code == 1
    assert result.stderr == "a.chpl:1:error:oops"
    assert result.command_str == "chpl a.chpl"


def test_run_command_merges_env(process_manager, mock_subprocess_run):
    process_manager.run_command(["chpl"], env={"CHPL_HOME": "/opt/chapel"})

    _, kwargs = mock_subprocess_run.call_args
    assert kwargs["env"]["CHPL_HOME"] == "/opt/chapel"


@pytest.mark.parametrize("error", [FileNotFoundError("chpl"), PermissionError("chpl")])
def test_run_command_launch_failure(process_manager, mock_subprocess_run, error):
    mock_subprocess_run.side_effect = error

    with pytest.raises(CompilerNotFoundError) as exc_info:
        process_manager.run_command(["chpl", "a.chpl"])
    assert exc_info.value.error_code == "COMPILER_NOT_FOUND"


def test_run_command_timeout(process_manager, mock_subprocess_run):
    mock_subprocess_run.side_effect = subprocess.TimeoutExpired(["chpl"], 2.0)

    with pytest.raises(CompilerTimeoutError) as exc_info:
        process_manager.run_command(["chpl", "a.chpl"], timeout=2.0)
    assert exc_info.value.timeout == 2.0
    assert exc_info.value.command == ["chpl", "a.chpl"]


def test_run_command_logs_through_given_logger(process_manager, mock_subprocess_run):
    log = MagicMock()
    process_manager.run_command(["chpl", "a.chpl"], log=log)

    messages = [args[0] for args, _ in log.debug.call_args_list]
    assert messages[0] == "Executing command: chpl a.chpl"
    assert messages[1].startswith("Command completed successfully")
