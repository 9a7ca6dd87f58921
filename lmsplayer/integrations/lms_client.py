"""
LMS Platform Client

HTTP client implementing the LMSApi protocol against the LMS platform.
Reads retry with exponential backoff on timeouts, connection errors and 5xx
responses; writes are sent once and map every failure to PersistenceFailure
so the caller can retry the whole operation.

Usage:
    async with LMSClient(settings.api) as client:
        course = await client.fetch_course(course_id)
        await client.persist_progress(course_id, 40)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from lmsplayer.config import ApiConfig
from lmsplayer.core.errors import NotFound, PersistenceFailure
from lmsplayer.core.models import Course, Enrollment, Module, PrintablePage, Test, TestResult


@dataclass
class AuthResult:
    """Result of authentication."""

    success: bool
    learner_id: str | None = None
    token: str | None = None
    error: str | None = None


class LMSClient:
    """
    Async HTTP client for the LMS platform API.

    Supports:
    - Credential login (bearer token) or a static API key
    - Course, module, enrollment and test reads
    - Progress and test submission writes
    - Printable CMS pages
    """

    def __init__(self, config: ApiConfig):
        self.config = config
        self._client: httpx.AsyncClient | None = None
        self._token: str | None = None
        self._learner_id: str | None = None

    async def __aenter__(self) -> "LMSClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.config.api_key:
                headers["X-API-Key"] = self.config.api_key
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"

            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=headers,
                timeout=self.config.timeout_seconds,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self, user_id: str, password: str) -> AuthResult:
        """Exchange learner credentials for a session token."""
        try:
            client = await self._ensure_client()
            response = await client.post(
                self.config.auth_endpoint,
                json={"userId": user_id, "password": password},
            )
        except httpx.RequestError as e:
            logger.error(f"Connection error during auth: {e}")
            return AuthResult(success=False, error=str(e))

        if response.status_code != 200:
            logger.warning(f"Authentication failed: {response.status_code}")
            return AuthResult(success=False, error="Incorrect User ID or Password.")

        data = response.json()
        self._token = data.get("token")
        self._learner_id = data.get("learnerId")
        if self._client and self._token:
            self._client.headers["Authorization"] = f"Bearer {self._token}"

        logger.info(f"Authenticated as learner: {self._learner_id}")
        return AuthResult(success=True, learner_id=self._learner_id, token=self._token)

    async def is_authenticated(self) -> bool:
        """Check if we have a session token."""
        return self._token is not None

    # =========================================================================
    # Reads
    # =========================================================================

    async def _get_once(self, client: httpx.AsyncClient, path: str) -> httpx.Response:
        response = await client.get(path)
        if response.status_code == 404:
            return response
        response.raise_for_status()
        return response

    async def _get(self, path: str) -> httpx.Response:
        """
        GET with retry logic. 404 responses are returned to the caller.

        Raises:
            httpx.HTTPError: On 4xx responses or after all retries are exhausted
        """
        client = await self._ensure_client()
        attempts = max(1, self.config.retry_attempts)

        for attempt in range(attempts - 1):
            try:
                return await self._get_once(client, path)

            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    # Don't retry on 4xx client errors
                    logger.error(f"GET {path}: client error {e.response.status_code}")
                    raise
                logger.warning(
                    f"GET {path}: server error {e.response.status_code} on attempt {attempt + 1}/{attempts}"
                )

            except httpx.RequestError as e:
                # Includes timeouts
                logger.warning(f"GET {path}: {type(e).__name__} on attempt {attempt + 1}/{attempts}: {e}")

            await asyncio.sleep(self.config.retry_backoff_seconds * 2 ** attempt)

        try:
            return await self._get_once(client, path)
        except httpx.HTTPError as e:
            logger.error(f"GET {path} failed after {attempts} attempts: {e}")
            raise

    async def fetch_course(self, course_id: str) -> Course:
        response = await self._get(f"{self.config.courses_endpoint}/{course_id}")
        if response.status_code == 404:
            raise NotFound("Course", course_id)
        return Course.model_validate(response.json())

    async def fetch_modules(self, course_id: str) -> list[Module]:
        response = await self._get(f"{self.config.courses_endpoint}/{course_id}/modules")
        if response.status_code == 404:
            raise NotFound("Course", course_id)
        data = response.json()
        if isinstance(data, dict):
            data = data.get("modules", [])
        modules = [Module.model_validate(item) for item in data]
        logger.debug(f"Fetched {len(modules)} modules for course {course_id}")
        return modules

    async def fetch_enrollment(self, course_id: str) -> Enrollment | None:
        response = await self._get(f"{self.config.enrollments_endpoint}/{course_id}")
        if response.status_code == 404:
            return None
        data = response.json()
        if not data:
            return None
        data.setdefault("courseId", course_id)
        return Enrollment.model_validate(data)

    async def fetch_test(self, test_id: str) -> Test:
        response = await self._get(f"{self.config.tests_endpoint}/{test_id}")
        if response.status_code == 404:
            raise NotFound("Test", test_id)
        return Test.model_validate(response.json())

    async def fetch_page(self, node_id: str) -> PrintablePage:
        response = await self._get(f"{self.config.pages_endpoint}/{node_id}")
        if response.status_code == 404:
            raise NotFound("Page", node_id)
        return PrintablePage.model_validate(response.json())

    # =========================================================================
    # Writes
    # =========================================================================

    async def persist_progress(self, course_id: str, progress: int) -> None:
        """Store enrollment progress. Raises PersistenceFailure."""
        if not 0 <= progress <= 100:
            raise ValueError(f"Progress {progress} outside 0..100")
        try:
            client = await self._ensure_client()
            response = await client.put(
                f"{self.config.enrollments_endpoint}/{course_id}/progress",
                json={"progress": progress},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to persist progress {progress} for course {course_id}: {e}")
            raise PersistenceFailure(f"Progress for course {course_id} was not saved: {e}") from e

        logger.debug(f"Persisted progress {progress}% for course {course_id}")

    async def submit_test_answers(
        self,
        test_id: str,
        answers: dict[str, Any],
        elapsed_seconds: int,
    ) -> TestResult:
        """Submit a finished attempt and return the platform's result. Raises PersistenceFailure."""
        try:
            client = await self._ensure_client()
            response = await client.post(
                f"{self.config.tests_endpoint}/{test_id}/submissions",
                json={"answers": answers, "elapsedSeconds": elapsed_seconds},
            )
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            data.setdefault("testId", test_id)
            result = TestResult.model_validate(data)
        except (httpx.HTTPError, ValueError) as e:
            # ValidationError and JSON decode errors are ValueErrors
            logger.error(f"Failed to submit answers for test {test_id}: {e}")
            raise PersistenceFailure(f"Answers for test {test_id} were not submitted: {e}") from e

        logger.info(f"Submitted {len(answers)} answers for test {test_id}")
        return result
