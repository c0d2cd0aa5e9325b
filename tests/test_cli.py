# tests/test_cli.py
import json
import shutil
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from flint import __version__
from flint.cli import app

FIXTURES = Path(__file__).parent / "fixtures"

runner = CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """
    Isolated cwd with a quiet config: logs under tmp, no console control.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FLINT_SERVER", raising=False)
    monkeypatch.delenv("FLINT_CLIENT", raising=False)

    cfg = {
        "log": {"dir": str(tmp_path / "logs"), "level": "DEBUG", "console": False},
        "server": {"client": "local"},
        "run": {"sync_timeout": 1.0, "assert_settle": 0.0},
        "control": {"console_control": False},
    }
    (tmp_path / "flint.yml").write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return tmp_path


def _run(workdir, *args):
    return runner.invoke(app, ["run", *args, "--config", str(workdir / "flint.yml")])


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_run_fixture_directory_passes(workdir):
    tests_dir = workdir / "suite"
    shutil.copytree(FIXTURES, tests_dir)

    result = _run(workdir, str(tests_dir))

    assert result.exit_code == 0, result.stdout
    assert "basic_place" in result.stdout
    assert "lever_toggle" in result.stdout
    assert "2 passed" in result.stdout


def test_run_parallel_mode(workdir):
    result = _run(workdir, str(FIXTURES), "--parallel")

    assert result.exit_code == 0, result.stdout


def test_failing_assertion_gives_exit_code_1(workdir):
    doc = {
        "flintVersion": "0.1",
        "name": "wrong_block",
        "timeline": [
            {"at": 0, "do": "place", "pos": [0, 64, 0], "block": "stone"},
            {"at": 1, "do": "assert", "checks": [{"pos": [0, 64, 0], "is": "dirt"}]},
        ],
    }
    path = workdir / "wrong_block.json"
    path.write_text(json.dumps(doc), encoding="utf-8")

    result = _run(workdir, str(path))

    assert result.exit_code == 1
    assert "wrong_block" in result.stdout


def test_only_invalid_documents_gives_exit_code_2(workdir):
    path = workdir / "broken.json"
    path.write_text(json.dumps({"name": "broken", "timeline": [{"at": 0, "do": "explode"}]}), encoding="utf-8")

    result = _run(workdir, str(path))

    assert result.exit_code == 2
    assert "broken" in result.stdout


def test_missing_target_is_a_usage_error(workdir):
    result = _run(workdir, str(workdir / "nope"))

    assert result.exit_code == 2


def test_missing_config_file(workdir):
    result = runner.invoke(app, ["run", str(FIXTURES), "--config", str(workdir / "absent.yml")])

    assert result.exit_code == 2


def test_unknown_client_is_a_usage_error(workdir):
    result = _run(workdir, str(FIXTURES), "--client", "no_such_module:Client")

    assert result.exit_code == 2


def test_error_message_keeps_brackets(workdir):
    result = _run(workdir, str(FIXTURES), "--client", "[nope]")

    assert result.exit_code == 2
    assert "'[nope]'" in result.stdout


def test_local_client_with_server_address_warns(workdir):
    result = _run(workdir, str(FIXTURES), "--server", "mc.example.org:25570")

    assert result.exit_code == 0, result.stdout
    assert "ignores mc.example.org:25570" in result.stdout
    assert "in-memory simulation" in result.stdout


def test_local_client_with_default_address_is_quiet(workdir):
    result = _run(workdir, str(FIXTURES))

    assert "in-memory simulation" not in result.stdout
