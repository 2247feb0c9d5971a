"""Flask REST API exposing the expense sharing record stores."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS

from sharing.exceptions import (
    RecordNotFoundError,
    SeedUnavailable,
    StorageUnavailable,
    ValidationError,
)
from sharing.services import (
    LedgerService,
    TopUpService,
    build_database,
    build_expense_service,
)

DEFAULT_ORIGINS = ["http://localhost:5173", re.compile(r"^https://.*\.onrender\.com$")]


def create_app(
    data_dir: Optional[Path] = None,
    seed_dir: Optional[Path] = None,
    database_url: Optional[str] = None,
) -> Flask:
    app = Flask(__name__)

    env_name = os.getenv("EXPENSE_SHARING_ENV", "prod").lower()
    if env_name in {"dev", "development"}:
        CORS(app, resources={r"/api/*": {"origins": "*"}})
    else:
        allowed_origins = os.getenv("EXPENSE_SHARING_ALLOWED_ORIGINS")
        if allowed_origins:
            origins = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
            CORS(app, resources={r"/api/*": {"origins": origins}})
        else:
            CORS(app, resources={r"/api/*": {"origins": DEFAULT_ORIGINS}})

    data_path = Path(data_dir or os.getenv("EXPENSE_SHARING_DATA_DIR", "data"))
    seed_path = Path(seed_dir or os.getenv("EXPENSE_SHARING_SEED_DIR", data_path / "seeds"))
    db_url = database_url or os.getenv(
        "EXPENSE_SHARING_DATABASE_URL", f"sqlite:///{(data_path / 'ledger.db').as_posix()}"
    )

    expense_service = build_expense_service(data_path, seed_path)
    database = build_database(db_url)
    topup_service = TopUpService(database)
    ledger = LedgerService(database)
    app.extensions["expense_sharing.database"] = database

    def _success(payload: Any, status: int = 200):
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(SeedUnavailable)
    def handle_seed_unavailable(exc: SeedUnavailable):
        return _handle_error(exc, 500, "Seed data unavailable")

    @app.errorhandler(StorageUnavailable)
    def handle_storage_unavailable(exc: StorageUnavailable):
        return _handle_error(exc, 500, "Storage unavailable")

    def _json_body() -> Any:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError("Malformed JSON body")
        return data

    @app.get("/api/health")
    def health():
        return _success({"status": "ok"})

    # Expenses (JSON file) ---------------------------------------------------
    @app.get("/api/expenses")
    def list_expenses():
        return _success([expense.to_dict() for expense in expense_service.list()])

    @app.post("/api/expenses")
    def create_expense():
        expense = expense_service.add(_json_body())
        return _success(expense.to_dict(), 201)

    @app.post("/api/expenses/reset")
    def reset_expenses():
        expenses = expense_service.reset()
        app.logger.warning("Expense collection reset to seed (%d records)", len(expenses))
        return _success({"data": [expense.to_dict() for expense in expenses]})

    @app.delete("/api/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        if expense_service.delete(expense_id):
            return _success({"deleted": True})
        return _success({"deleted": False, "error": f"Expense {expense_id} not found"}, 404)

    # Top-ups (database) -----------------------------------------------------
    @app.get("/api/topups")
    def list_topups():
        return _success([topup.to_dict() for topup in topup_service.list()])

    @app.post("/api/topups")
    def create_topup():
        topup = topup_service.add(_json_body())
        return _success(topup.to_dict(), 201)

    @app.get("/api/topup/list")
    def list_topups_legacy():
        app.logger.warning("GET /api/topup/list is deprecated; use GET /api/topups")
        return list_topups()

    @app.post("/api/topup/add")
    def create_topup_legacy():
        app.logger.warning("POST /api/topup/add is deprecated; use POST /api/topups")
        return create_topup()

    # Ledger (database) ------------------------------------------------------
    @app.get("/api/users")
    def list_users():
        return _success([user.to_dict() for user in ledger.list_users()])

    @app.get("/api/transactions")
    def list_transactions():
        return _success([transaction.to_dict() for transaction in ledger.list_transactions()])

    @app.get("/api/expenses/<int:expense_id>")
    def get_ledger_expense(expense_id: int):
        """Expense detail with payer and participants as full users."""
        return _success(ledger.get_expense(expense_id).to_expense_dict())

    @app.post("/api/transfers")
    def create_transfer():
        transfer = ledger.create_transfer(_json_body())
        return _success(transfer.to_transfer_dict(), 201)

    return app
