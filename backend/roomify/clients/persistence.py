"""Project persistence clients.

``create_project`` returns the saved record, or None when the project could
not be created. Callers treat None as terminal for that attempt.
"""

from __future__ import annotations

from typing import Protocol

import httpx
import structlog

from roomify.config import Settings, settings
from roomify.models.contracts import CreateProjectRequest, ProjectRecord

logger = structlog.get_logger()


class PersistenceClient(Protocol):
    async def create_project(self, request: CreateProjectRequest) -> ProjectRecord | None: ...


class HttpPersistenceClient:
    """Creates projects through the hosting API's ``POST /projects``."""

    def __init__(self, http_client: httpx.AsyncClient, base_url: str, timeout: float) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @classmethod
    def create(cls, config: Settings | None = None) -> HttpPersistenceClient:
        cfg = config or settings
        return cls(
            http_client=httpx.AsyncClient(),
            base_url=cfg.persistence_base_url,
            timeout=cfg.persistence_timeout_seconds,
        )

    async def create_project(self, request: CreateProjectRequest) -> ProjectRecord | None:
        url = f"{self._base_url}/projects"
        try:
            response = await self._http.post(
                url,
                json=request.model_dump(mode="json", by_alias=True),
                timeout=self._timeout,
            )
        except httpx.TimeoutException:
            logger.warning("project_create_timeout", project_id=request.item.id)
            return None
        except httpx.RequestError as exc:
            logger.warning(
                "project_create_network_error",
                project_id=request.item.id,
                error_type=type(exc).__name__,
            )
            return None

        if response.status_code >= 400:
            logger.warning(
                "project_create_rejected",
                project_id=request.item.id,
                status_code=response.status_code,
            )
            return None

        try:
            return ProjectRecord.model_validate(response.json())
        except ValueError:  # bad JSON or pydantic ValidationError
            logger.warning("project_create_bad_response", project_id=request.item.id)
            return None

    async def close(self) -> None:
        await self._http.aclose()


class InMemoryPersistenceClient:
    """Keeps created projects in a dict; used for local runs and tests."""

    def __init__(self) -> None:
        self.projects: dict[str, ProjectRecord] = {}
        self.visibility: dict[str, str] = {}

    async def create_project(self, request: CreateProjectRequest) -> ProjectRecord | None:
        saved = request.item.model_copy()
        self.projects[saved.id] = saved
        self.visibility[saved.id] = request.visibility
        return saved

    async def close(self) -> None:
        pass
