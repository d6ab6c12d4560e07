from __future__ import annotations

import json
from pathlib import Path

import pytest
from db.client import dispose_engine
from sqlalchemy.exc import OperationalError
from typer.testing import CliRunner

import home_finance.people as people_mod
from home_finance.cli import app
from tests.helpers.db import seed_basic

runner = CliRunner()


def _invoke(db_url: str, *args: str):
    return runner.invoke(app, ["--database-url", db_url, *args])


def test_no_arguments_shows_usage():
    result = runner.invoke(app, [])
    assert "Usage" in result.output


def test_init_db_creates_schema(tmp_path: Path):
    dispose_engine()
    url = f"sqlite+pysqlite:///{tmp_path / 'fresh.db'}"
    try:
        result = runner.invoke(app, ["--database-url", url, "init-db"])
        assert result.exit_code == 0, result.output
        assert "Schema created." in result.output

        listed = runner.invoke(app, ["--database-url", url, "people", "list"])
        assert listed.exit_code == 0, listed.output
    finally:
        dispose_engine()


def test_missing_database_url_is_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    dispose_engine()
    monkeypatch.chdir(tmp_path)  # no .env here
    result = runner.invoke(app, ["people", "list"])
    assert result.exit_code == 1
    assert "DATABASE_URL" in result.output


def test_people_create_prints_json(db_url: str):
    result = _invoke(db_url, "people", "create", "--name", "  pedro  ", "--age", "20")

    assert result.exit_code == 0, result.output
    body = json.loads(result.stdout)
    assert body["name"] == "Pedro"
    assert body["isMinor"] is False


def test_people_rule_error_exits_1(db_url: str):
    _invoke(db_url, "people", "create", "--name", "joão silva", "--age", "30")

    result = _invoke(db_url, "people", "create", "--name", "João Silva", "--age", "31")

    assert result.exit_code == 1
    assert "Error: A person named 'João Silva' already exists" in result.output


def test_people_update_show_and_delete(db_url: str):
    seeded = seed_basic(database_url=db_url)
    pid = seeded["minor"].id

    updated = _invoke(db_url, "people", "update", str(pid), "--age", "18")
    assert updated.exit_code == 0, updated.output
    assert json.loads(updated.stdout)["isMinor"] is False

    shown = _invoke(db_url, "people", "show", str(pid), "--detail")
    assert json.loads(shown.stdout)["transactions"] == []

    assert _invoke(db_url, "people", "delete", str(pid)).exit_code == 0
    missing = _invoke(db_url, "people", "show", str(pid))
    assert missing.exit_code == 1
    assert f"Person with id {pid} not found" in missing.output


def test_people_list_filters(db_url: str):
    seed_basic(database_url=db_url)

    minors = _invoke(db_url, "people", "list", "--minors")
    assert minors.exit_code == 0, minors.output
    assert "Isac" in minors.stdout
    assert "Pedro" not in minors.stdout

    both = _invoke(db_url, "people", "list", "--minors", "--adults")
    assert both.exit_code == 1


def test_categories_commands(db_url: str):
    created = _invoke(
        db_url, "categories", "create", "--description", "Salary", "--purpose", "income"
    )
    assert created.exit_code == 0, created.output
    cid = json.loads(created.stdout)["id"]

    listed = _invoke(db_url, "categories", "list", "--purpose", "Income")
    assert "Salary" in listed.stdout

    shown = _invoke(db_url, "categories", "show", str(cid))
    assert json.loads(shown.stdout)["purposeDescription"] == "Income"

    bad = _invoke(db_url, "categories", "create", "--description", "X", "--purpose", "sometimes")
    assert bad.exit_code == 1
    assert "Error: Invalid purpose" in bad.output


def test_transactions_commands_enforce_rules(db_url: str):
    seeded = seed_basic(database_url=db_url)
    common = ["--date", "2026-01-08", "--person-id", str(seeded["adult"].id)]

    created = _invoke(
        db_url, "transactions", "create", "--description", "Groceries", "--amount", "80.5",
        "--type", "expense", "--category-id", str(seeded["groceries"].id), *common,
    )
    assert created.exit_code == 0, created.output
    tx = json.loads(created.stdout)
    assert tx["amount"] == "80.50"

    rejected = _invoke(db_url, "transactions", "update", str(tx["id"]), "--type", "income")
    assert rejected.exit_code == 1
    assert "cannot be used for income" in rejected.output

    moved = _invoke(
        db_url, "transactions", "update", str(tx["id"]),
        "--type", "income", "--category-id", str(seeded["salary"].id),
    )
    assert moved.exit_code == 0, moved.output
    assert json.loads(moved.stdout)["type"] == 1

    minor = _invoke(
        db_url, "transactions", "create", "--description", "Allowance", "--amount", "10",
        "--date", "2026-01-08", "--type", "income",
        "--category-id", str(seeded["other"].id), "--person-id", str(seeded["minor"].id),
    )
    assert minor.exit_code == 1
    assert "minor" in minor.output

    listed = _invoke(db_url, "transactions", "list")
    assert listed.exit_code == 0, listed.output
    assert "Groceries" in listed.stdout

    assert _invoke(db_url, "transactions", "delete", str(tx["id"])).exit_code == 0
    assert _invoke(db_url, "transactions", "show", str(tx["id"])).exit_code == 1


def test_seed_and_reports(db_url: str):
    seeded = _invoke(db_url, "seed")
    assert seeded.exit_code == 0, seeded.output
    assert "Seeded 5 categories, 6 people, 9 transactions." in seeded.output

    again = _invoke(db_url, "seed")
    assert "nothing seeded" in again.output

    people = _invoke(db_url, "reports", "people")
    assert people.exit_code == 0, people.output
    assert "1069.50" in people.stdout
    assert "1469.50" in people.stdout

    cats = _invoke(db_url, "reports", "categories")
    assert cats.exit_code == 0, cats.output
    assert "1950.00" in cats.stdout


def test_database_failure_message_hides_statement(db_url: str, monkeypatch: pytest.MonkeyPatch):
    def _boom(_session):
        raise OperationalError("SELECT * FROM hf_people", {}, Exception("disk I/O error"))

    monkeypatch.setattr(people_mod, "list_people", _boom)

    result = _invoke(db_url, "people", "list")

    assert result.exit_code == 1
    errors = [line for line in result.output.splitlines() if line.startswith("Error:")]
    assert errors == ["Error: database failure; see the log for details"]
