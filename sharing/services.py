"""Framework-agnostic business services for the expense sharing app."""

from __future__ import annotations

from datetime import datetime
from decimal import InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from .database import Database
from .exceptions import RecordNotFoundError, SeedUnavailable, StorageUnavailable, ValidationError
from .models import Expense, RecordId, utcnow
from .orm import TRANSACTION_KINDS, Participation, TopUp, Transaction, User
from .records import FileRecordStore
from .storage import JSONStorage
from .validators import (
    parse_amount,
    require_mapping,
    validate_datetime,
    validate_legacy_amount,
    validate_optional_str,
    validate_positive_int,
    validate_required_str,
)


class ExpenseService:
    """Validates expense payloads and mediates the file-backed collection."""

    def __init__(self, store: FileRecordStore, collection: str = "expenses") -> None:
        self._store = store
        self._collection = collection

    # Public API -----------------------------------------------------------
    def list(self) -> List[Expense]:
        return self._hydrate(self._store.list_all(self._collection))

    def get(self, expense_id: RecordId) -> Expense:
        """Return an expense or raise if it does not exist."""
        return self._hydrate([self._store.get(self._collection, expense_id)])[0]

    def add(self, payload: object) -> Expense:
        data = self._validate_payload(require_mapping(payload))
        stored = self._store.create(self._collection, data)
        return self._hydrate([stored])[0]

    def delete(self, expense_id: RecordId) -> bool:
        return self._store.delete_by_id(self._collection, expense_id)

    def reset(self) -> List[Expense]:
        """Replace the live collection with its seed snapshot."""
        return self._hydrate(self._store.reset(self._collection))

    # Internal helpers -----------------------------------------------------
    def _hydrate(self, records: Iterable[Dict[str, Any]]) -> List[Expense]:
        try:
            return [Expense.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise StorageUnavailable(f"Malformed record in {self._collection}") from exc

    @staticmethod
    def _validate_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "date": validate_required_str(payload.get("date"), "date", 40),
            "description": validate_required_str(payload.get("description"), "description", 200),
            "payer": validate_required_str(payload.get("payer"), "payer", 100),
            "amount": float(parse_amount(payload.get("amount"), "amount")),
        }


class TopUpService:
    """Append-only top-up collection; each call is a single-row statement."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def add(self, payload: object) -> TopUp:
        data = require_mapping(payload)
        topup = TopUp(
            user=validate_required_str(data.get("user"), "user", 100),
            amount=validate_legacy_amount(data.get("amount"), "amount"),
            date=utcnow(),
        )
        with self._database.session_scope() as session:
            session.add(topup)
            session.flush()
        return topup

    def list(self) -> List[TopUp]:
        with self._database.session_scope() as session:
            return list(session.scalars(select(TopUp).order_by(TopUp.id)))


class LedgerService:
    """Users, expense transactions and transfers for the shared ledger."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def list_users(self) -> List[User]:
        with self._database.session_scope() as session:
            return list(session.scalars(select(User).order_by(User.id)))

    def list_transactions(self) -> List[Transaction]:
        """Newest first; ties broken by id so the order is stable."""
        stmt = select(Transaction).order_by(Transaction.date.desc(), Transaction.id.desc())
        with self._database.session_scope() as session:
            return list(session.scalars(stmt).unique())

    def get_expense(self, expense_id: int) -> Transaction:
        with self._database.session_scope() as session:
            transaction = session.get(Transaction, expense_id)
            if transaction is None or transaction.kind != "expense":
                raise RecordNotFoundError(f"Expense {expense_id} not found")
            return transaction

    def create_transfer(self, payload: object) -> Transaction:
        """Record money sent from one user to exactly one recipient."""
        data = require_mapping(payload)
        source_id = validate_positive_int(data.get("sourceId"), "sourceId")
        target_id = validate_positive_int(data.get("targetId"), "targetId")
        if source_id == target_id:
            raise ValidationError("sourceId and targetId must be different users")
        amount = parse_amount(data.get("amount"), "amount")
        description = validate_optional_str(data.get("description"), "description", 200)
        with self._database.session_scope() as session:
            transaction = Transaction(
                kind="transfer",
                description=description or "Transfer",
                amount=amount,
                date=self._optional_date(data.get("date")),
                payer=self._require_user(session, source_id, "sourceId"),
            )
            transaction.participants.append(self._require_user(session, target_id, "targetId"))
            session.add(transaction)
            session.flush()
            return transaction

    def is_empty(self) -> bool:
        with self._database.session_scope() as session:
            return not session.scalar(select(func.count()).select_from(User))

    def load_seed(
        self,
        users: Iterable[Mapping[str, Any]],
        transactions: Iterable[Mapping[str, Any]],
        *,
        replace: bool = False,
    ) -> None:
        """Insert seed users and transactions in one transaction.

        With ``replace`` the existing ledger is deleted first; otherwise seed
        rows are added next to whatever is already stored.
        """
        with self._database.session_scope() as session:
            if replace:
                session.execute(delete(Participation))
                session.execute(delete(Transaction))
                session.execute(delete(User))
            for raw in users:
                session.add(
                    User(
                        id=raw.get("id"),
                        name=validate_required_str(raw.get("name"), "name", 100),
                        email=validate_required_str(raw.get("email"), "email", 255),
                        bank_account=raw.get("bankAccount"),
                    )
                )
            session.flush()
            for raw in transactions:
                session.add(self._seed_transaction(session, raw))

    # Internal helpers -----------------------------------------------------
    def _seed_transaction(self, session: Session, raw: Mapping[str, Any]) -> Transaction:
        kind = raw.get("kind")
        if kind not in TRANSACTION_KINDS:
            raise ValidationError(f"kind must be one of: {', '.join(TRANSACTION_KINDS)}")
        participant_ids = list(raw.get("participantIds") or [])
        if kind == "transfer" and len(participant_ids) != 1:
            raise ValidationError("a transfer must have exactly one recipient")
        if not participant_ids:
            raise ValidationError("an expense needs at least one participant")
        transaction = Transaction(
            kind=kind,
            description=str(raw.get("description") or ""),
            amount=parse_amount(raw.get("amount"), "amount"),
            date=self._optional_date(raw.get("date")),
            payer=self._require_user(session, raw.get("payerId"), "payerId"),
        )
        for user_id in participant_ids:
            transaction.participants.append(self._require_user(session, user_id, "participantIds"))
        return transaction

    @staticmethod
    def _require_user(session: Session, raw_id: object, field: str) -> User:
        user_id = validate_positive_int(raw_id, field)
        user = session.get(User, user_id)
        if user is None:
            raise ValidationError(f"{field} refers to unknown user {user_id}")
        return user

    @staticmethod
    def _optional_date(raw: object) -> datetime:
        if raw is None:
            return utcnow()
        return validate_datetime(raw, "date")


def seed_ledger(ledger: LedgerService, seeds: JSONStorage, *, replace: bool = False) -> None:
    """Load ``users.json`` and ``transactions.json`` from the seed directory."""
    try:
        users = seeds.load("users.json", missing_ok=False)
        transactions = seeds.load("transactions.json", missing_ok=False)
    except StorageUnavailable as exc:
        raise SeedUnavailable("Ledger seed data is unavailable") from exc
    ledger.load_seed(users, transactions, replace=replace)


def build_expense_service(data_dir: Path, seed_dir: Path) -> ExpenseService:
    return ExpenseService(FileRecordStore(JSONStorage(data_dir), JSONStorage(seed_dir, create=False)))


def build_database(url: str, *, create: bool = True) -> Database:
    database = Database(url)
    if create:
        database.create_all()
    return database


__all__ = [
    "ExpenseService",
    "LedgerService",
    "TopUpService",
    "build_database",
    "build_expense_service",
    "seed_ledger",
]
