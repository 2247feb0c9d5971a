"""Core record stores and services for the expense sharing app."""

from .database import Database
from .exceptions import RecordNotFoundError, SeedUnavailable, StorageUnavailable, ValidationError
from .models import Expense
from .records import FileRecordStore
from .services import ExpenseService, LedgerService, TopUpService
from .storage import JSONStorage

__all__ = [
    "Database",
    "Expense",
    "ExpenseService",
    "FileRecordStore",
    "JSONStorage",
    "LedgerService",
    "RecordNotFoundError",
    "SeedUnavailable",
    "StorageUnavailable",
    "TopUpService",
    "ValidationError",
]
