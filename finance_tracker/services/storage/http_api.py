"""
REST Backend Storage Implementation

Talks to the tracker API:
- GET  /tracker/{year}  -> 200 record | 404
- POST /tracker         -> 201 record | 409
- PUT  /tracker/{year}  -> 200 record (full replace)
- POST /auth/login, POST /auth/register -> {"token": ...}

All tracker calls carry "Authorization: Bearer <token>". A 401/403 means
the user has to log in again; it is never retried.

TRADEOFFS:
- Reads retry transport failures a few times (tenacity) because a failed
  initial load blocks the whole view
- Writes are NOT retried here: the debounced saver drops failures and the
  next edit re-sends the full state anyway
"""

from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.config import ApiSettings, get_settings
from finance_tracker.models.year_record import YearRecord
from finance_tracker.services.storage.interface import (
    AuthenticationError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    StorageError,
    TrackerStorageInterface,
)


def _error_message(response: httpx.Response) -> str:
    """The backend puts a human-readable reason in {"message": ...}."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


class HttpTrackerStorage(TrackerStorageInterface):
    """
    httpx implementation of tracker storage.

    The client is created lazily; pass one in to share a connection pool
    or to plug in a mock transport.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        settings: Optional[ApiSettings] = None,
    ):
        self._settings = settings or get_settings().api
        self._token = token if token is not None else self._settings.token
        self._client = client

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        """Replace the bearer credential (after login, or None on logout)."""
        self._token = token

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url,
                timeout=self._settings.timeout_seconds,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        headers = {}
        if authenticated:
            if not self._token:
                raise AuthenticationError("Authorization token is required.")
            headers["Authorization"] = f"Bearer {self._token}"

        try:
            response = await self._get_client().request(
                method, path, json=json, headers=headers
            )
        except httpx.RequestError as e:
            raise ConnectionError(
                f"Could not connect to the server ({method} {path}): {e}"
            ) from e

        if response.status_code in (401, 403):
            raise AuthenticationError(_error_message(response))
        if response.status_code == 404:
            raise NotFoundError(_error_message(response))
        if response.status_code == 409:
            raise ConflictError(_error_message(response))
        if response.status_code >= 500:
            raise ConnectionError(
                f"Server error {response.status_code}: {_error_message(response)}"
            )
        if response.is_error:
            raise StorageError(
                f"Request failed with {response.status_code}: {_error_message(response)}"
            )
        return response

    def _parse_record(self, response: httpx.Response) -> YearRecord:
        try:
            return YearRecord.from_wire(response.json())
        except (ValueError, KeyError, TypeError) as e:
            # pydantic's ValidationError is a ValueError
            raise StorageError(f"Malformed tracker document: {e}") from e

    # -------------------------------------------------------------------------
    # Tracker endpoints
    # -------------------------------------------------------------------------

    @retry(
        retry=retry_if_exception_type(ConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def fetch_year(self, year: int) -> YearRecord:
        """Retrieve the record for a year."""
        response = await self._request("GET", f"/tracker/{year}")
        return self._parse_record(response)

    async def create_year(self, record: YearRecord) -> YearRecord:
        """Store a new record (POST /tracker)."""
        response = await self._request("POST", "/tracker", json=record.to_wire())
        return self._parse_record(response)

    async def replace_year(self, record: YearRecord) -> YearRecord:
        """
        Overwrite the stored record (PUT /tracker/{year}).

        The echoed document is not parsed: a successful write returns the
        record that was sent.
        """
        await self._request("PUT", f"/tracker/{record.year}", json=record.to_wire())
        return record

    # -------------------------------------------------------------------------
    # Credential endpoints
    # -------------------------------------------------------------------------

    async def _obtain_token(self, path: str, username: str, password: str) -> str:
        if not username or not password:
            raise AuthenticationError("Username and password are required.")
        try:
            response = await self._request(
                "POST",
                path,
                json={"username": username, "password": password},
                authenticated=False,
            )
        except (AuthenticationError, ConflictError, ConnectionError):
            raise
        except StorageError as e:
            # The backend answers bad credentials with 400 or 404
            raise AuthenticationError(str(e)) from e

        try:
            body = response.json()
        except ValueError as e:
            raise AuthenticationError(f"Malformed token response: {e}") from e
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise AuthenticationError("Server did not return a token.")
        self._token = token
        return token

    async def login(self, username: str, password: str) -> str:
        """Log in, keep the returned token for later calls and return it."""
        return await self._obtain_token("/auth/login", username, password)

    async def register(self, username: str, password: str) -> str:
        """
        Create an account and log in.

        Raises:
            ConflictError: If the username is taken
        """
        return await self._obtain_token("/auth/register", username, password)
