"""HTTP client used by staff screens and scripts to talk to the ledger API."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx


class LedgerClientError(Exception):
    """API call failed; ``code`` mirrors the ledger error code when there is one."""

    def __init__(self, status_code: int, message: str, code: Optional[str] = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.detail = detail


class LedgerClient:
    def __init__(
        self,
        token: str,
        base_url: str = "http://localhost:8000",
        *,
        timeout: float = 15.0,
        http: Optional[httpx.Client] = None,
    ):
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"}

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "LedgerClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        resp = self._http.request(method, path, headers=self._headers, **kwargs)
        if resp.is_success:
            return resp.json()
        try:
            detail = resp.json().get("detail")
        except ValueError:
            detail = resp.text
        if isinstance(detail, dict):
            raise LedgerClientError(resp.status_code, detail.get("message", str(detail)), detail.get("code"), detail)
        raise LedgerClientError(resp.status_code, str(detail or resp.reason_phrase), detail=detail)

    def list_transactions(self, **filters) -> Dict[str, Any]:
        params = {key: value for key, value in filters.items() if value is not None}
        return self._request("GET", "/transactions", params=params)

    def create_charge(
        self,
        category: Any,
        amount: Any,
        *,
        room_id: Optional[str] = None,
        qr_payload: Optional[str] = None,
        description: Optional[str] = None,
        guest_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "room_id": room_id,
            "qr_payload": qr_payload,
            "category": category,
            "amount": amount,
            "description": description,
            "guest_name": guest_name,
        }
        return self._request("POST", "/transactions", json=payload)

    def set_admin_status(self, transaction_id: int, admin_status: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            f"/transactions/{transaction_id}/admin-status",
            json={"admin_status": admin_status},
        )

    def set_status(self, transaction_id: int, status: str) -> Dict[str, Any]:
        return self._request("POST", f"/transactions/{transaction_id}/status", json={"status": status})

    def bulk_set_status(self, transaction_ids: Iterable[int], status: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/transactions/bulk-status",
            json={"transaction_ids": list(transaction_ids), "status": status},
        )

    def history(self, transaction_id: int) -> List[Dict[str, Any]]:
        return self._request("GET", f"/transactions/{transaction_id}/history")["history"]

    def room_balance(self, room_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/rooms/{room_id}/balance")

    def clear_room(self, room_id: str, notes: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/rooms/{room_id}/clear", json={"notes": notes})

    def list_clearings(self, room_id: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {key: value for key, value in (("room_id", room_id), ("limit", limit)) if value is not None}
        return self._request("GET", "/clearings", params=params)

    def list_all_transactions(self, page_size: int = 500, **filters) -> List[Dict[str, Any]]:
        """Every matching transaction, following ``offset`` until ``total`` is reached."""
        rows: List[Dict[str, Any]] = []
        while True:
            page = self.list_transactions(limit=page_size, offset=len(rows), **filters)
            rows.extend(page["transactions"])
            if not page["transactions"] or len(rows) >= page["total"]:
                return rows

    def fetcher(self, page_size: int = 500, **filters) -> Callable[[], List[Dict[str, Any]]]:
        """Callable suitable as ``TransactionBoard(fetch=...)``; fetches the full list."""

        def fetch() -> List[Dict[str, Any]]:
            return self.list_all_transactions(page_size, **filters)

        return fetch
