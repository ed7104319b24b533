"""HTTP client for the hosted serverless functions.

Every call carries an explicit client-side timeout. Cancelling the awaiting
task cancels the request; the function may still finish remotely.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from nudge.config import Settings
from nudge.errors import ExternalService, RemoteServiceError, RemoteTimeoutError

logger = logging.getLogger(__name__)


class FunctionsClient:
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        parse_timeout: float = 180.0,
        demo_posts_timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
            headers["apikey"] = api_key
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=base_url, headers=headers)
        self.parse_timeout = parse_timeout
        self.demo_posts_timeout = demo_posts_timeout

    @classmethod
    def from_settings(cls, settings: Settings, http_client: httpx.AsyncClient | None = None) -> FunctionsClient:
        return cls(
            settings.functions_base_url,
            settings.functions_api_key,
            parse_timeout=settings.parse_syllabus_timeout_seconds,
            demo_posts_timeout=settings.demo_posts_timeout_seconds,
            http_client=http_client,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def invoke(self, service: ExternalService, body: dict[str, Any], timeout: float) -> dict[str, Any]:
        """POST ``body`` to the function named by ``service``.

        Raises:
            RemoteTimeoutError: no response within ``timeout`` seconds.
            RemoteServiceError: transport failure, non-2xx status, or an
                ``error`` field in the JSON body.
        """
        try:
            response = await asyncio.wait_for(self._http.post(f"/{service.value}", json=body), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Function %s timed out after %.0fs", service.value, timeout)
            raise RemoteTimeoutError(service, timeout) from None
        except httpx.HTTPError as e:
            raise RemoteServiceError(service, f"{service.value} request failed: {e}") from e

        if response.is_error:
            raise RemoteServiceError(service, f"{service.value} returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteServiceError(service, f"{service.value} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise RemoteServiceError(service, f"{service.value} returned an unexpected payload")
        if data.get("error"):
            details = data.get("details")
            message = f"{data['error']}: {details}" if details else str(data["error"])
            raise RemoteServiceError(service, message)
        return data

    async def parse_syllabus(
        self,
        class_id: str,
        syllabus_url: str,
        user_id: str,
        weekday_hours: str | None = None,
        weekend_hours: str | None = None,
    ) -> dict[str, Any]:
        """Run the syllabus parser. The function writes topics, assignments and blocks itself."""
        body: dict[str, Any] = {"classId": class_id, "syllabusUrl": syllabus_url, "userId": user_id}
        if weekday_hours is not None:
            body["weekdayHours"] = weekday_hours
        if weekend_hours is not None:
            body["weekendHours"] = weekend_hours
        return await self.invoke(ExternalService.PARSE_SYLLABUS, body, self.parse_timeout)

    async def create_demo_posts(self, user_id: str, class_ids: list[str]) -> int:
        """Generate demo feed posts. Returns how many were created."""
        data = await self.invoke(
            ExternalService.CREATE_DEMO_POSTS,
            {"userId": user_id, "classIds": class_ids},
            self.demo_posts_timeout,
        )
        return int(data.get("postsCreated", 0))
