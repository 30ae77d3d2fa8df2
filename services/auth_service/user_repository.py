"""
User repository - row-level access to the backend ``users`` table.

Talks to the Supabase PostgREST API over HTTP. Every call returns a
BackendResponse: the rows on success, or a BackendError carrying the
backend's error code. Nothing here raises for backend or network failures;
mapping codes to user-facing errors is the AuthManager's job.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from config.app_config import BackendConfig, get_backend_config
from utils.logging_config import get_logger, log_execution_time


# PostgREST / Postgres error codes the auth flow cares about
NO_ROWS_CODE = "PGRST116"
TABLE_MISSING_CODES = ("PGRST205", "42P01")
NETWORK_ERROR_CODE = "NETWORK_ERROR"


@dataclass
class BackendError:
    """Error reported by the backend or by the transport"""
    code: str
    message: str = ""
    details: Optional[str] = None
    hint: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def is_no_rows(self) -> bool:
        return self.code == NO_ROWS_CODE

    @property
    def is_table_missing(self) -> bool:
        return self.code in TABLE_MISSING_CODES


@dataclass
class BackendResponse:
    """Normalized result of a table operation"""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[BackendError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None


def _error_from_response(response: httpx.Response) -> BackendError:
    """Build a BackendError from a PostgREST error body"""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("code"):
        return BackendError(
            code=str(body["code"]),
            message=body.get("message") or "",
            details=body.get("details"),
            hint=body.get("hint"),
            status_code=response.status_code,
        )

    return BackendError(
        code=f"HTTP_{response.status_code}",
        message=response.text or response.reason_phrase,
        status_code=response.status_code,
    )


class UserRepository:
    """
    Repository for user rows stored in the managed backend.

    A fresh AsyncClient is opened per call so the repository can be driven
    from separate event loops (Streamlit runs each submit in its own loop).
    """

    def __init__(
        self,
        config: BackendConfig,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize user repository

        Args:
            config: Backend connection settings
            api_key: Key to send instead of the anon key (e.g. the service role key)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.config = config
        self.api_key = api_key or config.supabase_anon_key
        self.transport = transport
        self.table = config.users_table
        self.logger = get_logger(__name__)

    def _headers(self) -> Dict[str, str]:
        key = self.api_key
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        params: Dict[str, str],
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> BackendResponse:
        headers = self._headers()
        if prefer:
            headers["Prefer"] = prefer

        try:
            with log_execution_time(self.logger, f"{method} /{self.table}", method=method, table=self.table):
                async with httpx.AsyncClient(
                    base_url=self.config.rest_url,
                    headers=headers,
                    timeout=self.config.request_timeout_seconds,
                    transport=self.transport,
                ) as client:
                    response = await client.request(method, f"/{self.table}", params=params, json=json)
        except httpx.HTTPError as e:
            self.logger.error(f"Backend request failed: {method} {self.table}: {e}")
            return BackendResponse(error=BackendError(
                code=NETWORK_ERROR_CODE,
                message=str(e) or type(e).__name__,
            ))

        if response.is_error:
            error = _error_from_response(response)
            self.logger.debug(f"Backend error {error.code} on {method} {self.table}: {error.message}")
            return BackendResponse(error=error)

        if not response.content:
            return BackendResponse(rows=[])

        try:
            body = response.json()
        except ValueError:
            return BackendResponse(error=BackendError(
                code="INVALID_RESPONSE",
                message="Backend returned a non-JSON body",
                status_code=response.status_code,
            ))

        if isinstance(body, list):
            return BackendResponse(rows=body)
        if isinstance(body, dict):
            return BackendResponse(rows=[body])
        return BackendResponse(rows=[])

    async def find_by_username(self, username: str, columns: str = "*") -> BackendResponse:
        """
        Look up a single user by exact username

        Returns:
            BackendResponse with one row, or error code PGRST116 when none matched
        """
        response = await self._request("GET", {"select": columns, "username": f"eq.{username}"})
        if response.ok and not response.rows:
            return BackendResponse(error=BackendError(
                code=NO_ROWS_CODE,
                message="JSON object requested, multiple (or no) rows returned",
                status_code=406,
            ))
        return response

    async def insert(self, values: Dict[str, Any]) -> BackendResponse:
        """Insert one user row and return it as stored"""
        return await self._request(
            "POST",
            {"select": "*"},
            json=[values],
            prefer="return=representation",
        )

    async def update(self, user_id: Any, values: Dict[str, Any], columns: str = "*") -> BackendResponse:
        """Update the row with the given id and return the updated rows"""
        return await self._request(
            "PATCH",
            {"id": f"eq.{user_id}", "select": columns},
            json=values,
            prefer="return=representation",
        )

    async def probe(self) -> BackendResponse:
        """Cheap query that fails with a table-missing code if the table is absent"""
        return await self._request("GET", {"select": "id", "limit": "1"})


# Global user repository instance
_user_repository: Optional[UserRepository] = None


def get_user_repository() -> UserRepository:
    """Get the global user repository instance"""
    global _user_repository
    if _user_repository is None:
        _user_repository = UserRepository(get_backend_config())
    return _user_repository
