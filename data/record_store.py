"""
data/record_store.py
Thin client for the hosted database's REST API (PostgREST dialect).

Only the handful of calls the services need:
get / select / upsert / update / rpc.
Anything that goes wrong on the wire becomes a PersistenceError.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import requests

from config import SUPABASE_URL, SUPABASE_KEY, REQUEST_TIMEOUT_SECONDS
from services.errors import PersistenceError

logger = logging.getLogger(__name__)

# {"id": 5} means eq; {"publish_date": ("lte", "2025-01-01")} picks the operator.
FilterValue = Union[Any, Tuple[str, Any]]
Filters = Dict[str, FilterValue]

_OPERATORS = {"eq", "neq", "lt", "lte", "gt", "gte"}


def _filter_params(filters: Optional[Filters]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for column, value in (filters or {}).items():
        op = "eq"
        if isinstance(value, tuple):
            op, value = value
            if op not in _OPERATORS:
                raise ValueError(f"Unsupported filter operator: {op}")
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[column] = f"{op}.{value}"
    return params


def _order_param(order: Sequence[Tuple[str, bool]]) -> str:
    # [("publish_date", False), ("id", False)] -> "publish_date.desc,id.desc"
    return ",".join(f"{col}.{'asc' if ascending else 'desc'}" for col, ascending in order)


class RecordStore:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    # --------------------------------------------------
    # Transport
    # --------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        if not self.base_url:
            raise PersistenceError("Record store URL is not configured.")

        headers = {"Prefer": prefer} if prefer else None
        url = f"{self.base_url}/rest/v1/{path}"

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("record store %s %s unreachable: %s", method, path, e)
            raise PersistenceError(f"Record store unreachable: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = (body.get("message") if isinstance(body, dict) else None) or response.text
            logger.warning(
                "record store %s %s failed (%s): %s",
                method, path, response.status_code, detail,
            )
            raise PersistenceError(
                detail or f"Record store returned {response.status_code}.",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PersistenceError("Record store returned malformed JSON.") from e

    @staticmethod
    def _first(rows: Any) -> Optional[Dict[str, Any]]:
        if isinstance(rows, list):
            return rows[0] if rows else None
        return rows if isinstance(rows, dict) else None

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------

    def select(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order: Optional[Sequence[Tuple[str, bool]]] = None,
        limit: Optional[int] = None,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        params = _filter_params(filters)
        params["select"] = columns
        if order:
            params["order"] = _order_param(order)
        if limit is not None:
            params["limit"] = str(limit)

        rows = self._request("GET", table, params=params)
        return rows if isinstance(rows, list) else []

    def get(self, table: str, filters: Filters, columns: str = "*") -> Optional[Dict[str, Any]]:
        """
        Return the single matching row, or None when nothing matches.
        """
        return self._first(self.select(table, filters, limit=1, columns=columns))

    def upsert(
        self,
        table: str,
        record: Dict[str, Any],
        on_conflict: str,
        ignore_duplicates: bool = False,
    ) -> Optional[Dict[str, Any]]:
        resolution = "ignore-duplicates" if ignore_duplicates else "merge-duplicates"
        rows = self._request(
            "POST",
            table,
            params={"on_conflict": on_conflict},
            json_body=record,
            prefer=f"resolution={resolution},return=representation",
        )
        return self._first(rows)

    def update(self, table: str, fields: Dict[str, Any], filters: Filters) -> Optional[Dict[str, Any]]:
        """
        Patch matching rows and return the first updated row as stored.
        """
        rows = self._request(
            "PATCH",
            table,
            params=_filter_params(filters),
            json_body=fields,
            prefer="return=representation",
        )
        return self._first(rows)

    def rpc(self, name: str, args: Dict[str, Any]) -> Any:
        return self._request("POST", f"rpc/{name}", json_body=args)


_STORE: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    global _STORE
    if _STORE is None:
        _STORE = RecordStore(SUPABASE_URL, SUPABASE_KEY, timeout=REQUEST_TIMEOUT_SECONDS)
    return _STORE
