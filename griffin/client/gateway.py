"""API gateway — the single place the client talks HTTP to the Griffin backend."""

from typing import Any, Optional

import httpx
import structlog

from griffin.client.token_holder import TokenHolder
from griffin.core.exceptions import AuthError, RemoteError

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class ApiGateway:
    """Thin JSON-over-HTTP facade.

    Every call goes to `base_url + path`. Authenticated calls attach the token
    from the token holder and fail with AuthError before any request when no
    token is stored. Non-2xx answers become RemoteError carrying the server's
    `message` and the response status. No retries.
    """

    def __init__(
        self,
        base_url: str,
        token_holder: TokenHolder,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_holder = token_holder
        self.timeout = timeout
        self.transport = transport
        self.headers = {"Content-Type": "application/json"}

    def _auth_headers(self) -> dict:
        token = self.token_holder.get()
        if not token:
            raise AuthError("Authentication required. Please log in.")
        return {**self.headers, "Authorization": f"Bearer {token}"}

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict] = None,
        authenticated: bool = True,
    ) -> Any:
        headers = self._auth_headers() if authenticated else dict(self.headers)
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, json=json, params=params, headers=headers)
        except httpx.TransportError as e:
            logger.warning("API request failed", method=method, path=path, error=str(e))
            raise RemoteError(f"Network error: {e}", status_code=503) from e

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                logger.warning("API response was not JSON", method=method, path=path, status_code=response.status_code)
                raise RemoteError(
                    "Invalid JSON in server response", status_code=502, details={"status_code": response.status_code},
                ) from e

        message = f"HTTP error! status: {response.status_code} {response.reason_phrase}".rstrip()
        details: dict = {}
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or message
            details = body

        logger.info("API error response", method=method, path=path, status_code=response.status_code)
        raise RemoteError(message, status_code=response.status_code, details=details)

    async def get(self, path: str, params: Optional[dict] = None, authenticated: bool = True) -> Any:
        return await self.request("GET", path, params=params, authenticated=authenticated)

    async def post(self, path: str, json: Any = None, authenticated: bool = True) -> Any:
        return await self.request("POST", path, json=json, authenticated=authenticated)

    async def put(self, path: str, json: Any = None, authenticated: bool = True) -> Any:
        return await self.request("PUT", path, json=json, authenticated=authenticated)

    async def delete(self, path: str, authenticated: bool = True) -> Any:
        return await self.request("DELETE", path, authenticated=authenticated)
