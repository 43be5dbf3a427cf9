from unittest.mock import MagicMock

import pytest

from .api import diagnose
from .config import ChapelLspSettings
from .core_types import ChapelDiagnostic, CompilerNotFoundError


# --- Fixtures ---


@pytest.fixture
def project(tmp_path):
    """A project with a manifest, a module directory and a file to check."""
    (tmp_path / ".chapel_lsp").write_text("lib\n")
    (tmp_path / "src" / "util").mkdir(parents=True)
    (tmp_path / "src" / "util" / "Util.chpl").write_text("module Util {}\n")
    target = tmp_path / "src" / "main.chpl"
    target.write_text("use Util;\n")
    return tmp_path


@pytest.fixture
def mock_subprocess_run(mocker):
    """Fixture to mock subprocess.run with a failing compile."""
    mock_run = mocker.patch("subprocess.run")
    mock_run.return_value = MagicMock(returncode=1, stdout=b"", stderr=b"")
    return mock_run


def compiled_command(mock_run):
    args, _ = mock_run.call_args
    return args[0]


def test_diagnose_end_to_end(project, mock_subprocess_run):
    target = project / "src" / "main.chpl"
    mock_subprocess_run.return_value.stderr = (
        f"{target}:1:error:cannot find module 'Util'\n"
        f"{target}:1:note:searched: {project}/lib\n"
        "$CHPL_HOME/modules/standard/IO.chpl:42:warning:stdlib noise\n"
    ).encode()

    diagnostics = diagnose(str(target))

    assert diagnostics == [
        ChapelDiagnostic(
            "error",
            str(target),
            1,
            f"cannot find module 'Util' searched: {project}/lib",
        )
    ]
    command = compiled_command(mock_subprocess_run)
    assert command[:4] == ["chpl", str(target), "--no-codegen", "--baseline"]
    assert command[4:] == [
        "-M",
        str(project / "lib"),
        "-M",
        str(project / "src"),
        "-M",
        str(project / "src" / "util"),
    ]


def test_diagnose_success_returns_nothing(project, mock_subprocess_run):
    """Test that exit code zero yields no diagnostics despite stray stderr."""
    mock_subprocess_run.return_value = MagicMock(
        returncode=0, stdout=b"", stderr=b"x.chpl:1:warning:ignored\n"
    )

    assert diagnose(str(project / "src" / "main.chpl")) == []


def test_diagnose_accepts_uris(project, mock_subprocess_run):
    target = project / "src" / "main.chpl"

    diagnose(f"file://{target}", known_root=f"file://{project}")

    assert compiled_command(mock_subprocess_run)[1] == str(target)


def test_diagnose_known_root_is_used(project, tmp_path_factory, mock_subprocess_run):
    """Test that a supplied root replaces discovery when collecting paths."""
    other_root = tmp_path_factory.mktemp("other")
    (other_root / ".chapel_lsp").write_text("vendor\n")

    diagnose(str(project / "src" / "main.chpl"), known_root=str(other_root))

    command = compiled_command(mock_subprocess_run)
    assert command[4:] == ["-M", str(other_root / "vendor")]


def test_diagnose_without_root(tmp_path, mock_subprocess_run):
    (tmp_path / ".git").mkdir()
    target = tmp_path / "lonely.chpl"
    target.write_text("")

    diagnose(str(target))

    assert compiled_command(mock_subprocess_run) == [
        "chpl",
        str(target),
        "--no-codegen",
        "--baseline",
    ]


def test_diagnose_extra_include_paths(tmp_path, mock_subprocess_run):
    (tmp_path / ".git").mkdir()
    target = tmp_path / "a.chpl"
    target.write_text("")
    settings = ChapelLspSettings(extra_include_paths=["/opt/chapel-mods"])

    diagnose(str(target), settings=settings)

    assert compiled_command(mock_subprocess_run)[4:] == ["-M", "/opt/chapel-mods"]


def test_diagnose_missing_compiler(project, mocker):
    mocker.patch("subprocess.run", side_effect=FileNotFoundError("chpl"))

    with pytest.raises(CompilerNotFoundError):
        diagnose(str(project / "src" / "main.chpl"))
