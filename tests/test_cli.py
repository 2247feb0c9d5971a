from __future__ import annotations

import pytest

from expense_sharing.cli import main


@pytest.fixture()
def cli_args(data_dir, seed_dir, tmp_path):
    db_url = f"sqlite:///{(tmp_path / 'cli.db').as_posix()}"
    return ["--data-dir", str(data_dir), "--seed-dir", str(seed_dir), "--database-url", db_url]


def test_expense_commands(cli_args, capsys):
    assert main(cli_args + ["expense", "reset"]) == 0
    assert "2 records" in capsys.readouterr().out

    assert main(cli_args + ["expense", "add", "2024-01-05", "Lunch", "Alice", "12.5"]) == 0
    assert "Expense added" in capsys.readouterr().out

    assert main(cli_args + ["expense", "list"]) == 0
    out = capsys.readouterr().out
    assert "Found 3 expenses" in out
    assert "Payer: Alice | Description: Lunch" in out

    assert main(cli_args + ["expense", "show", "2"]) == 0
    assert "Payer: Bob" in capsys.readouterr().out

    assert main(cli_args + ["expense", "delete", "1"]) == 0
    assert main(cli_args + ["expense", "delete", "1"]) == 1
    assert "not found" in capsys.readouterr().err

    assert main(cli_args + ["expense", "show", "1"]) == 1
    assert "not found" in capsys.readouterr().err


def test_expense_list_empty(cli_args, capsys):
    assert main(cli_args + ["expense", "list"]) == 0
    assert "No expenses found." in capsys.readouterr().out


def test_rejects_bad_amount(cli_args):
    with pytest.raises(SystemExit):
        main(cli_args + ["expense", "add", "2024-01-05", "Lunch", "Alice", "free"])


def test_reset_without_seed(data_dir, tmp_path, capsys):
    args = ["--data-dir", str(data_dir), "--seed-dir", str(tmp_path / "missing")]
    assert main(args + ["expense", "reset"]) == 1
    assert "Seed error" in capsys.readouterr().err


def test_topup_commands(cli_args, capsys):
    assert main(cli_args + ["topup", "add", "Bob", "20"]) == 0
    assert main(cli_args + ["topup", "list"]) == 0
    assert "Bob +20" in capsys.readouterr().out


def test_ledger_commands(cli_args, capsys):
    assert main(cli_args + ["ledger", "init"]) == 0
    assert "Ledger seeded." in capsys.readouterr().out

    assert main(cli_args + ["ledger", "init"]) == 0
    assert "already holds data" in capsys.readouterr().out

    assert main(cli_args + ["ledger", "users"]) == 0
    assert "<alice@example.com>" in capsys.readouterr().out

    assert main(cli_args + ["ledger", "transactions"]) == 0
    out = capsys.readouterr().out
    assert "transfer 20.00 paid by Bob -> Alice" in out
    assert "expense 60.00 paid by Alice -> Charlie, Alice, Bob" in out
