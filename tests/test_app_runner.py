import json
import os
from unittest.mock import patch

import pytest

from expense_engine.app_runner import AppRunner
from expense_engine.main import main

from conftest import build_message

CONFIG_KEYS = (
    "EXTRACTION_RULES_FILE", "MAX_PART_DEPTH", "EXPENSE_TIMEZONE",
    "GMAIL_LINK_TEMPLATE", "LOG_LEVEL", "LOG_FILE", "LOG_FORMAT",
    "MAX_MESSAGES_PER_BATCH", "BANK_FILTER",
)


@pytest.fixture(autouse=True)
def isolated_env():
    with patch.dict(os.environ):
        for key in CONFIG_KEYS:
            os.environ.pop(key, None)
        yield


@pytest.fixture
def workspace(tmp_path):
    env_file = tmp_path / "test.env"
    env_file.write_text("EXPENSE_TIMEZONE=UTC\n")
    messages = tmp_path / "messages.json"
    messages.write_text(json.dumps([
        build_message(subject="Debit Alert", body="Rs. 250.00 debited at ZOMATO today", message_id="m1"),
        build_message(
            subject="Credit Alert", body="INR 900.00 credited to your a/c",
            sender="alerts@sbi.co.in", message_id="m2",
        ),
        build_message(subject="Newsletter", body="No money here", message_id="m3"),
    ]))
    return tmp_path, env_file, messages


def test_parse_arguments(workspace):
    _, env_file, messages = workspace
    runner = AppRunner([
        "expense-engine", str(messages), "--config", str(env_file),
        "--bank", "hdfc", "--bank", "sbi", "--max-results", "10",
    ])

    assert runner.config_file == str(env_file)
    assert runner.options.paths == [str(messages)]
    assert runner.options.banks == ["hdfc", "sbi"]
    assert runner.options.max_results == 10


def test_run_prints_records_as_json(workspace, capsys):
    _, env_file, messages = workspace
    exit_code = AppRunner(["expense-engine", str(messages), "--config", str(env_file)]).run()

    assert exit_code == 0
    captured = capsys.readouterr()
    records = json.loads(captured.out)
    assert {r["id"] for r in records} == {"m1", "m2"}
    by_id = {r["id"]: r for r in records}
    assert by_id["m1"]["merchant"] == "ZOMATO"
    assert by_id["m1"]["transactionType"] == "debit"
    assert by_id["m2"]["transactionType"] == "credit"
    assert "Expense Extraction Pipeline" in captured.err


def test_bank_option_filters(workspace, capsys):
    _, env_file, messages = workspace
    exit_code = AppRunner([
        "expense-engine", str(messages), "--config", str(env_file), "--bank", "HDFC",
    ]).run()

    assert exit_code == 0
    assert [r["id"] for r in json.loads(capsys.readouterr().out)] == ["m1"]


def test_missing_config_file(workspace, capsys):
    tmp_path, _, messages = workspace
    exit_code = AppRunner([
        "expense-engine", str(messages), "--config", str(tmp_path / "nope.env"),
    ]).run()

    assert exit_code == 1
    assert "not found" in capsys.readouterr().err


def test_invalid_config(workspace, capsys):
    _, env_file, messages = workspace
    env_file.write_text("MAX_MESSAGES_PER_BATCH=0\n")

    exit_code = AppRunner(["expense-engine", str(messages), "--config", str(env_file)]).run()

    assert exit_code == 1
    assert "Configuration Error" in capsys.readouterr().err


def test_unusable_rules_file(workspace, capsys):
    tmp_path, env_file, messages = workspace
    rules = tmp_path / "rules.json"
    rules.write_text(json.dumps({"debit_keywords": []}))
    env_file.write_text(f"EXTRACTION_RULES_FILE={rules}\n")

    exit_code = AppRunner(["expense-engine", str(messages), "--config", str(env_file)]).run()

    assert exit_code == 1
    assert "Could not load extraction rules" in capsys.readouterr().err


def test_invalid_max_results(workspace, capsys):
    _, env_file, messages = workspace
    exit_code = AppRunner([
        "expense-engine", str(messages), "--config", str(env_file), "--max-results", "0",
    ]).run()

    assert exit_code == 1
    assert "max_results" in capsys.readouterr().err


def test_main_exits_with_runner_code(workspace, capsys):
    _, env_file, messages = workspace
    argv = ["expense-engine", str(messages), "--config", str(env_file)]

    with patch("sys.argv", argv), pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 0
    assert len(json.loads(capsys.readouterr().out)) == 2


def test_warns_when_nothing_extracted(tmp_path, capsys):
    env_file = tmp_path / "test.env"
    env_file.write_text("")
    messages = tmp_path / "messages.json"
    messages.write_text(json.dumps([
        build_message(subject="Newsletter", body="No money here", message_id="n1"),
    ]))

    exit_code = AppRunner(["expense-engine", str(messages), "--config", str(env_file)]).run()

    assert exit_code == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out) == []
    assert "No expense records extracted" in captured.err
