"""
Unit tests for the typer CLI.
"""

import gzip
import json

import pytest
from typer.testing import CliRunner

from loganalytics_output import LogAnalyticsOutput, cli


runner = CliRunner()

CREDS = ["--customer-id", "workspace-id", "--shared-key", "top-secret", "--log-type", "CliLog"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, restore_logger):
    for var in ("LA_CUSTOMER_ID", "LA_SHARED_KEY", "LA_LOG_TYPE", "LA_MODE"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def injected_client(monkeypatch, fake_client):
    monkeypatch.setattr(
        cli, "make_output", lambda settings: LogAnalyticsOutput(settings, client=fake_client)
    )
    return fake_client


def _write_ndjson(path, records, compress=False):
    text = "\n".join(json.dumps(r) for r in records) + "\n\n"
    if compress:
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(text)
    else:
        path.write_text(text, encoding="utf-8")
    return str(path)


def test_check_config_redacts_shared_key():
    result = runner.invoke(
        cli.app, ["check-config", *CREDS, "--key-name", "a", "--key-type", "a=Double"]
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["shared_key"] == "***"
    assert data["key_types"] == {"a": "double"}
    assert "top-secret" not in result.stdout


def test_check_config_bad_log_type_exits_2():
    result = runner.invoke(
        cli.app,
        ["check-config", "--customer-id", "w", "--shared-key", "k", "--log-type", "bad-name"],
    )
    assert result.exit_code == 2


def test_check_config_bad_key_type_pair():
    result = runner.invoke(cli.app, ["check-config", *CREDS, "--key-type", "nodelimiter"])
    assert result.exit_code != 0


def test_ship_windowed(tmp_path, injected_client):
    records = [{"n": i, "noise": "x"} for i in range(5)]
    path = _write_ndjson(tmp_path / "in.ndjson", records)

    result = runner.invoke(
        cli.app,
        ["ship", path, *CREDS, "--key-name", "n", "--flush-items", "2", "--log-level", "ERROR"],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["read"] == 5
    assert injected_client.documents("CliLog") == [{"n": i} for i in range(5)]
    assert [len(docs) for _, docs, _ in injected_client.calls] == [2, 2, 1]


def test_ship_batch_mode_groups(tmp_path, injected_client):
    records = [{"n": i} for i in range(5)]
    path = _write_ndjson(tmp_path / "in.ndjson.gz", records, compress=True)

    result = runner.invoke(
        cli.app,
        ["ship", path, *CREDS, "--mode", "batch", "--group-size", "2", "--log-level", "ERROR"],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["mode"] == "batch"
    assert [len(docs) for _, docs, _ in injected_client.calls] == [2, 2, 1]


def test_ship_help_mentions_unsigned_requests():
    result = runner.invoke(cli.app, ["ship", "--help"])
    assert result.exit_code == 0
    assert "unsigned" in result.output
