from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests

from api.app import create_app
from sharing.database import Database
from sharing.records import FileRecordStore
from sharing.services import ExpenseService, LedgerService, TopUpService
from sharing.storage import JSONStorage

SEED_EXPENSES: List[Dict[str, Any]] = [
    {"id": 1, "date": "2024-01-01", "description": "Groceries", "payer": "Alice", "amount": 40.0},
    {"id": 2, "date": "2024-01-02", "description": "Taxi", "payer": "Bob", "amount": 18.5},
]

SEED_USERS: List[Dict[str, Any]] = [
    {"id": 1, "name": "Alice", "email": "alice@example.com", "bankAccount": "FR76 1234"},
    {"id": 2, "name": "Bob", "email": "bob@example.com", "bankAccount": None},
    {"id": 3, "name": "Charlie", "email": "charlie@example.com", "bankAccount": None},
]

SEED_TRANSACTIONS: List[Dict[str, Any]] = [
    {
        "kind": "expense",
        "description": "Dinner",
        "amount": 60,
        "date": "2024-02-01T19:00:00Z",
        "payerId": 1,
        "participantIds": [3, 1, 2],
    },
    {
        "kind": "transfer",
        "description": "Paying back dinner",
        "amount": 20,
        "date": "2024-02-03T08:00:00Z",
        "payerId": 2,
        "participantIds": [1],
    },
]


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture()
def seed_dir(tmp_path: Path) -> Path:
    seeds = tmp_path / "seeds"
    write_json(seeds / "expenses.json", SEED_EXPENSES)
    write_json(seeds / "users.json", SEED_USERS)
    write_json(seeds / "transactions.json", SEED_TRANSACTIONS)
    return seeds


@pytest.fixture()
def store(data_dir: Path, seed_dir: Path) -> FileRecordStore:
    return FileRecordStore(JSONStorage(data_dir), JSONStorage(seed_dir, create=False))


@pytest.fixture()
def expense_service(store: FileRecordStore) -> ExpenseService:
    return ExpenseService(store)


@pytest.fixture()
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture()
def topup_service(database: Database) -> TopUpService:
    return TopUpService(database)


@pytest.fixture()
def ledger(database: Database) -> LedgerService:
    service = LedgerService(database)
    service.load_seed(SEED_USERS, SEED_TRANSACTIONS)
    return service


@pytest.fixture()
def app(data_dir: Path, seed_dir: Path):
    flask_app = create_app(data_dir=data_dir, seed_dir=seed_dir, database_url="sqlite://")
    flask_app.config.update(TESTING=True)
    yield flask_app
    flask_app.extensions["expense_sharing.database"].dispose()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def seeded_client(app, client):
    LedgerService(app.extensions["expense_sharing.database"]).load_seed(
        SEED_USERS, SEED_TRANSACTIONS
    )
    return client


class FlaskSession:
    """Stands in for ``requests.Session`` by routing calls to a Flask test client."""

    def __init__(self, test_client) -> None:
        self.test_client = test_client
        self.calls: List[str] = []
        self.fail_next: Optional[Exception] = None

    def request(self, method: str, url: str, json: Any = None, timeout: Any = None) -> requests.Response:
        self.calls.append(f"{method} {url}")
        if self.fail_next is not None:
            exc, self.fail_next = self.fail_next, None
            raise exc
        path = url.split("://", 1)[-1]
        path = path[path.index("/"):]
        flask_response = self.test_client.open(path, method=method, json=json)
        response = requests.Response()
        response.status_code = flask_response.status_code
        response._content = flask_response.get_data()
        response.encoding = "utf-8"
        response.url = url
        return response


@pytest.fixture()
def http_session(client) -> FlaskSession:
    return FlaskSession(client)
