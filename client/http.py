"""HTTP client for talking with the expense sharing API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class NetworkOrHttpError(RuntimeError):
    """Any transport failure or non-success status, as one user-facing message."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ApiClient:
    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 5,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, body: Any = None) -> Any:
        url = f"{self.base_url}/api/{path}"
        try:
            response = self.session.request(method, url, json=body, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            logger.error("API request failed: %s %s -> %s", method, url, status)
            raise NetworkOrHttpError(f"HTTP error! status: {status}", status) from exc
        except (requests.RequestException, ValueError) as exc:
            logger.error("API request failed: %s %s: %s", method, url, exc)
            raise NetworkOrHttpError("An error occurred while contacting the server") from exc

    # Expenses
    def list_expenses(self) -> List[Dict[str, Any]]:
        return self._request("GET", "expenses")

    def create_expense(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "expenses", payload)

    def delete_expense(self, expense_id: Any) -> bool:
        return bool(self._request("DELETE", f"expenses/{expense_id}")["deleted"])

    def reset_expenses(self) -> List[Dict[str, Any]]:
        return self._request("POST", "expenses/reset")["data"]

    # Top-ups
    def list_topups(self) -> List[Dict[str, Any]]:
        return self._request("GET", "topups")

    def create_topup(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "topups", payload)

    # Ledger
    def list_users(self) -> List[Dict[str, Any]]:
        return self._request("GET", "users")

    def list_transactions(self) -> List[Dict[str, Any]]:
        return self._request("GET", "transactions")

    def get_expense(self, expense_id: int) -> Dict[str, Any]:
        """Ledger expense with payer and participants expanded to users."""
        return self._request("GET", f"expenses/{expense_id}")

    def create_transfer(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "transfers", payload)
