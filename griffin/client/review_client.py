"""Review client — authenticate, submit code for review and follow the job."""

import asyncio
import time
from typing import Any, Dict, Optional

import structlog

from griffin.client.gateway import ApiGateway
from griffin.core.exceptions import (
    AppError,
    AuthError,
    ForbiddenError,
    NotFoundError,
    PollingTimeoutError,
    RemoteError,
    ValidationError,
)
from griffin.domain.schemas.review import JobRead

logger = structlog.get_logger(__name__)


def _translate(error: RemoteError) -> Exception:
    """Map a RemoteError to the matching application error by HTTP status."""
    errors = error.details.get("errors") if error.details else None
    if error.status_code == 401:
        return AuthError(error.message)
    if error.status_code in (400, 409, 422):
        return ValidationError(error.message, errors=errors, status_code=error.status_code)
    if error.status_code == 403:
        return ForbiddenError(error.message)
    if error.status_code == 404:
        return NotFoundError(error.message)
    return error


class ReviewClient:
    def __init__(self, gateway: ApiGateway):
        self.gateway = gateway

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        try:
            return await self.gateway.request(method, path, **kwargs)
        except RemoteError as e:
            raise _translate(e) from e

    # --- Auth ---

    async def register(self, username: str, email: str, password: str, profile: Optional[dict] = None) -> Dict[str, Any]:
        body = {"username": username, "email": email, "password": password}
        if profile:
            body["profile"] = profile
        response = await self._call("POST", "/api/auth/register", json=body, authenticated=False)
        data = response["data"]
        self.gateway.token_holder.set(data["token"])
        return data["user"]

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        response = await self._call(
            "POST", "/api/auth/login", json={"email": email, "password": password}, authenticated=False,
        )
        data = response["data"]
        self.gateway.token_holder.set(data["token"])
        logger.info("Logged in", user=data["user"].get("username"))
        return data["user"]

    async def logout(self) -> None:
        """Revoke the token server-side, then forget it locally whatever happens."""
        try:
            if self.gateway.token_holder.get():
                await self._call("POST", "/api/auth/logout")
        except AppError as e:
            logger.warning("Server-side logout failed", error=str(e))
        finally:
            self.gateway.token_holder.clear()

    async def me(self) -> Dict[str, Any]:
        response = await self._call("GET", "/api/auth/me")
        return response["data"]["user"]

    # --- Reviews ---

    async def submit(
        self,
        code: str,
        language: Optional[str] = None,
        filename: Optional[str] = None,
        priority: Optional[int] = None,
    ) -> str:
        """Submit code for review and return the job id."""
        if not self.gateway.token_holder.get():
            raise AuthError("Authentication required. Please log in.")
        if not code or not code.strip():
            raise ValidationError("Code is required", errors=[{"field": "code", "message": "Code is required"}])
        if not language and not filename:
            raise ValidationError(
                "Language is required", errors=[{"field": "language", "message": "Language or filename is required"}],
            )

        body: Dict[str, Any] = {"code": code}
        if language:
            body["language"] = language
        if filename:
            body["filename"] = filename
        if priority is not None:
            body["priority"] = priority

        response = await self._call("POST", "/api/review/submit", json=body)
        job_id = response.get("jobId") or response.get("data", {}).get("jobId")
        if not job_id:
            raise RemoteError("Submission response did not include a job id", status_code=502, details=response)
        for warning in response.get("warnings") or []:
            logger.warning("Submission warning", job_id=job_id, warning=warning)
        return job_id

    async def poll_status(self, job_id: str) -> JobRead:
        response = await self._call("GET", f"/api/review/jobs/{job_id}/status/immediate")
        return JobRead.model_validate(response["data"])

    async def wait_for_completion(
        self,
        job_id: str,
        timeout: float = 120.0,
        initial_interval: float = 1.0,
        max_interval: float = 10.0,
        multiplier: float = 1.5,
    ) -> JobRead:
        """Poll until the job is completed or failed.

        Raises PollingTimeoutError once `timeout` seconds have passed. The job
        itself keeps running on the server.
        """
        deadline = time.monotonic() + timeout
        interval = initial_interval
        while True:
            job = await self.poll_status(job_id)
            if job.is_terminal:
                return job
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise PollingTimeoutError(
                    f"Job {job_id} did not finish within {timeout} seconds",
                    details={"job_id": job_id, "last_status": job.status.value, "progress": job.progress},
                )
            await asyncio.sleep(min(interval, remaining))
            interval = min(interval * multiplier, max_interval)

    async def list_jobs(self, page: int = 1, limit: int = 10, status: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        response = await self._call("GET", "/api/review/jobs", params=params)
        return response["data"]

    # --- AI ---

    async def explain_code(self, code: str, language: str, level: str = "intermediate", focus: Optional[str] = None) -> Dict[str, Any]:
        body = {"code": code, "language": language, "level": level}
        if focus:
            body["focus"] = focus
        response = await self._call("POST", "/api/ai/explain", json=body)
        return response["data"]
