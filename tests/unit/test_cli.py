import json
import textwrap

import pytest
from typer.testing import CliRunner

import formflow.persistence as persistence
from formflow.cli import app
from formflow.persistence import MemoryStorageAdapter

FLOWS_MODULE = textwrap.dedent(
    """
    from pydantic import BaseModel

    from formflow import create_flow, define_transition, silent_logger


    class Name(BaseModel):
        name: str


    class Choice(BaseModel):
        type: str


    signup = create_flow(
        "signup",
        {
            "start": {
                "schema": Choice,
                "next": define_transition(
                    lambda data, all_data: "personal" if data["type"] == "p" else "business",
                    ["personal", "business"],
                ),
            },
            "personal": {"schema": Name, "next": "confirm"},
            "business": {"schema": Name, "next": "confirm"},
            "confirm": {"schema": Name, "next": None},
        },
        "start",
        logger=silent_logger,
    )

    orphaned = create_flow(
        "orphaned",
        {"a": {"schema": Name, "next": None}, "b": {"schema": Name}},
        "a",
        logger=silent_logger,
    )


    def build():
        return signup
    """
)


@pytest.fixture
def flows_module(tmp_path, monkeypatch):
    (tmp_path / "cli_flows.py").write_text(FLOWS_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    return "cli_flows"


@pytest.fixture
def adapter(monkeypatch, tmp_path):
    adapter = MemoryStorageAdapter()
    monkeypatch.setattr(persistence, "_adapter_instance", adapter)
    monkeypatch.setenv("FORMFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("FORMFLOW_STORAGE", raising=False)
    return adapter


def test_check_valid_flow(flows_module):
    runner = CliRunner()
    result = runner.invoke(app, ["check", f"{flows_module}:signup"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "Flow 'signup' is valid" in result.stdout
    assert 'warning: Step "confirm" has no next step defined' in result.stdout


def test_check_reports_errors(flows_module):
    runner = CliRunner()
    result = runner.invoke(app, ["check", f"{flows_module}:orphaned"])
    assert result.exit_code == 1
    assert '[unreachable_step] Step "b" is unreachable' in result.stdout


def test_check_accepts_factory(flows_module):
    runner = CliRunner()
    result = runner.invoke(app, ["check", f"{flows_module}:build"])
    assert result.exit_code == 0
    assert "Flow 'signup' is valid" in result.stdout


def test_check_unknown_target(flows_module):
    runner = CliRunner()
    result = runner.invoke(app, ["check", f"{flows_module}:missing"])
    assert result.exit_code == 2

    result = runner.invoke(app, ["check", "no-colon"])
    assert result.exit_code == 2


def test_path_command(flows_module):
    runner = CliRunner()
    result = runner.invoke(
        app, ["path", f"{flows_module}:signup", "--data", json.dumps({"start": {"type": "p"}})]
    )
    assert result.exit_code == 0
    assert result.stdout.strip() == "start -> personal"

    result = runner.invoke(
        app,
        ["path", f"{flows_module}:signup", "--data", json.dumps({"start": {"type": "b"}}), "--full"],
    )
    assert result.stdout.strip() == "start -> business -> confirm"


def test_path_rejects_bad_data(flows_module):
    runner = CliRunner()
    result = runner.invoke(app, ["path", f"{flows_module}:signup", "--data", "[1, 2]"])
    assert result.exit_code == 2
    assert "Invalid data" in result.stdout


def test_storage_show_and_clear(adapter):
    record = {"version": 2, "timestamp": 0, "data": {"start": {"type": "p"}}}
    adapter.set_item("formflow:signup", json.dumps(record))

    runner = CliRunner()
    result = runner.invoke(app, ["storage", "show", "signup"])
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "Key: formflow:signup" in result.stdout
    assert "Version: 2" in result.stdout
    assert "Saved at: 1970-01-01T00:00:00+00:00" in result.stdout
    assert 'start: {"type": "p"}' in result.stdout

    result = runner.invoke(app, ["storage", "clear", "signup"])
    assert result.exit_code == 0
    assert "Cleared formflow:signup" in result.stdout
    assert adapter.get_item("formflow:signup") is None


def test_storage_show_missing_and_malformed(adapter):
    runner = CliRunner()
    result = runner.invoke(app, ["storage", "show", "signup"])
    assert result.exit_code == 1
    assert "No record stored under formflow:signup" in result.stdout

    adapter.set_item("formflow:signup", "{broken")
    result = runner.invoke(app, ["storage", "show", "signup"])
    assert result.exit_code == 1
    assert "Malformed record" in result.stdout
