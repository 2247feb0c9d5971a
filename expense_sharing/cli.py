"""Console interface for the expense sharing record stores."""

from __future__ import annotations

import argparse
import os
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

from sharing.exceptions import (
    RecordNotFoundError,
    SeedUnavailable,
    StorageUnavailable,
    ValidationError,
)
from sharing.services import (
    ExpenseService,
    LedgerService,
    TopUpService,
    build_database,
    build_expense_service,
    seed_ledger,
)
from sharing.storage import JSONStorage


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite() or amount <= 0:
        raise argparse.ArgumentTypeError("Amount must be greater than zero")
    return value


def _format_expense(expense: Dict[str, Any]) -> str:
    return (
        f"[{expense['id']}] {expense['date']} {expense['amount']:.2f}\n"
        f"  Payer: {expense['payer']} | Description: {expense['description']}\n"
    )


def _format_topup(topup: Dict[str, Any]) -> str:
    return f"[{topup['id']}] {topup['date']} {topup['user']} +{topup['amount']}"


def _format_transaction(transaction: Dict[str, Any]) -> str:
    participants = ", ".join(user["name"] for user in transaction["participants"]) or "-"
    return (
        f"[{transaction['id']}] {transaction['date']} {transaction['kind']} "
        f"{transaction['amount']:.2f} paid by {transaction['payer']['name']} -> {participants}\n"
        f"  {transaction['description']}\n"
    )


def _seed_dir(args: argparse.Namespace) -> Path:
    return args.seed_dir or args.data_dir / "seeds"


def _database_url(args: argparse.Namespace) -> str:
    if args.database_url:
        return args.database_url
    args.data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{(args.data_dir / 'ledger.db').as_posix()}"


def handle_expense(args: argparse.Namespace, service: ExpenseService) -> None:
    if args.command == "add":
        payload = {
            "date": args.date,
            "description": args.description,
            "payer": args.payer,
            "amount": args.amount,
        }
        expense = service.add(payload)
        print("Expense added:\n" + _format_expense(expense.to_dict()))
    elif args.command == "list":
        expenses = service.list()
        if not expenses:
            print("No expenses found.")
            return
        print(f"Found {len(expenses)} expenses:")
        for expense in expenses:
            print(_format_expense(expense.to_dict()))
    elif args.command == "show":
        print(_format_expense(service.get(args.id).to_dict()))
    elif args.command == "delete":
        if not service.delete(args.id):
            raise RecordNotFoundError(f"Expense {args.id} not found")
        print(f"Expense {args.id} deleted.")
    elif args.command == "reset":
        expenses = service.reset()
        print(f"Expenses reset to seed data ({len(expenses)} records).")


def handle_topup(args: argparse.Namespace, service: TopUpService) -> None:
    if args.command == "add":
        topup = service.add({"user": args.user, "amount": args.amount})
        print("Top-up added: " + _format_topup(topup.to_dict()))
    elif args.command == "list":
        topups = service.list()
        if not topups:
            print("No top-ups found.")
            return
        for topup in topups:
            print(_format_topup(topup.to_dict()))


def handle_ledger(args: argparse.Namespace, ledger: LedgerService) -> None:
    if args.command == "init":
        if not args.replace and not ledger.is_empty():
            print("Ledger already holds data; use --replace to reseed.")
            return
        seed_ledger(ledger, JSONStorage(_seed_dir(args), create=False), replace=args.replace)
        print("Ledger seeded.")
    elif args.command == "users":
        for user in ledger.list_users():
            data = user.to_dict()
            print(f"[{data['id']}] {data['name']} <{data['email']}>")
    elif args.command == "transactions":
        transactions = ledger.list_transactions()
        if not transactions:
            print("No transactions found.")
            return
        for transaction in transactions:
            print(_format_transaction(transaction.to_dict()))


def handle_serve(args: argparse.Namespace) -> None:
    from api.app import create_app

    app = create_app(args.data_dir, _seed_dir(args), _database_url(args))
    app.run(host=args.host, port=args.port, debug=args.debug)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expense Sharing CLI")
    parser.add_argument(
        "--data-dir",
        default=Path(os.getenv("EXPENSE_SHARING_DATA_DIR", "data")),
        type=Path,
        help="Directory holding the live JSON collections (default: ./data)",
    )
    parser.add_argument(
        "--seed-dir",
        type=Path,
        default=os.getenv("EXPENSE_SHARING_SEED_DIR"),
        help="Directory holding seed datasets (default: <data-dir>/seeds)",
    )
    parser.add_argument(
        "--database-url",
        default=os.getenv("EXPENSE_SHARING_DATABASE_URL"),
        help="SQLAlchemy URL for top-ups and the ledger (default: sqlite in data dir)",
    )

    subparsers = parser.add_subparsers(dest="entity", required=True)

    expense_parser = subparsers.add_parser("expense", help="Manage expenses")
    expense_sub = expense_parser.add_subparsers(dest="command", required=True)

    expense_add = expense_sub.add_parser("add", help="Add a new expense")
    expense_add.add_argument("date")
    expense_add.add_argument("description")
    expense_add.add_argument("payer")
    expense_add.add_argument("amount", type=_parse_amount)

    expense_sub.add_parser("list", help="List expenses")

    expense_show = expense_sub.add_parser("show", help="Show one expense")
    expense_show.add_argument("id")

    expense_delete = expense_sub.add_parser("delete", help="Delete an expense")
    expense_delete.add_argument("id")

    expense_sub.add_parser("reset", help="Replace all expenses with the seed data")

    topup_parser = subparsers.add_parser("topup", help="Manage top-ups")
    topup_sub = topup_parser.add_subparsers(dest="command", required=True)

    topup_add = topup_sub.add_parser("add", help="Record a top-up")
    topup_add.add_argument("user")
    topup_add.add_argument("amount", type=_parse_amount)

    topup_sub.add_parser("list", help="List top-ups")

    ledger_parser = subparsers.add_parser("ledger", help="Users, transactions and transfers")
    ledger_sub = ledger_parser.add_subparsers(dest="command", required=True)

    ledger_init = ledger_sub.add_parser("init", help="Load the ledger seed data")
    ledger_init.add_argument("--replace", action="store_true", help="Delete existing rows first")
    ledger_sub.add_parser("users", help="List users")
    ledger_sub.add_parser("transactions", help="List transactions")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=5000)
    serve_parser.add_argument("--debug", action="store_true")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.entity == "expense":
            handle_expense(args, build_expense_service(args.data_dir, _seed_dir(args)))
        elif args.entity == "topup":
            handle_topup(args, TopUpService(build_database(_database_url(args))))
        elif args.entity == "ledger":
            handle_ledger(args, LedgerService(build_database(_database_url(args))))
        elif args.entity == "serve":
            handle_serve(args)
        else:  # pragma: no cover - argparse should prevent this
            parser.error(f"Unknown entity: {args.entity}")
            return 2
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except SeedUnavailable as exc:
        print(f"Seed error: {exc}", file=sys.stderr)
        return 1
    except StorageUnavailable as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
