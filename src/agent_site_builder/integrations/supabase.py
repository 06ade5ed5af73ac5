"""Project log stored in a Supabase table, through its REST (PostgREST) API."""

import logging
from typing import Any

import requests
from pydantic import BaseModel, ValidationError

from agent_site_builder.errors import ConfigError, ProjectLogError

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "projects"


class ProjectLog(BaseModel):
    """One generated-and-deployed site."""

    prompt: str
    url: str
    ntl: Any = None
    agent_name: str | None = None
    agent_capabilities: list[str] | None = None
    neural_seek_response: Any = None
    generation_time: int | None = None  # milliseconds
    component_count: int | None = None
    created_at: str | None = None
    id: int | None = None


class ProjectStore:
    """Inserts and lists rows of the ``projects`` table."""

    def __init__(
        self,
        url: str | None,
        key: str | None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ):
        if not url or not key:
            raise ConfigError("SUPABASE_URL and SUPABASE_KEY environment variables are required")
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{PROJECTS_TABLE}"
        self.key = key
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self, **extra: str) -> dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            **extra,
        }

    def insert(self, log: ProjectLog) -> None:
        row = log.model_dump(mode="json", exclude_none=True)
        try:
            response = self.session.post(
                self.endpoint,
                json=[row],
                headers=self._headers(Prefer="return=minimal"),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProjectLogError(f"Failed to log project: {e}") from e
        if not response.ok:
            raise ProjectLogError(f"Failed to log project: {response.status_code} {response.text[:500]}")
        logger.info("Logged project %s", log.url)

    def list_projects(self) -> list[ProjectLog]:
        """All logged projects, newest first."""
        try:
            response = self.session.get(
                self.endpoint,
                params={"select": "*", "order": "created_at.desc"},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProjectLogError(f"Failed to fetch projects: {e}") from e
        if not response.ok:
            raise ProjectLogError(f"Failed to fetch projects: {response.status_code} {response.text[:500]}")
        try:
            return [ProjectLog.model_validate(row) for row in response.json()]
        except (ValueError, TypeError, ValidationError) as e:
            raise ProjectLogError(f"Failed to fetch projects: unexpected response ({e})") from e
