"""Client registry for domain-specific Timesheet clients.

Provides get_registry() / set_registry() instead of a module-level singleton.
Tests inject mocks via set_registry().
"""

from __future__ import annotations

from dataclasses import dataclass, field

from _config import Settings
from auth import TokenStore
from clients._base import BaseTimesheetClient
from clients.projects import ProjectsClient
from clients.rates import RatesClient
from clients.reports import ReportsClient
from clients.tags import TagsClient
from clients.tasks import TasksClient
from clients.teams import TeamsClient

__all__ = ["ClientRegistry", "get_registry", "set_registry"]


@dataclass
class ClientRegistry:
    """Holds domain client instances. One registry per server lifecycle."""

    base: BaseTimesheetClient
    settings: Settings
    tokens: TokenStore = field(default_factory=TokenStore)
    teams: TeamsClient = field(init=False)
    projects: ProjectsClient = field(init=False)
    tasks: TasksClient = field(init=False)
    tags: TagsClient = field(init=False)
    rates: RatesClient = field(init=False)
    reports: ReportsClient = field(init=False)

    def __post_init__(self) -> None:
        self.teams = TeamsClient(self.base)
        self.projects = ProjectsClient(self.base)
        self.tasks = TasksClient(self.base)
        self.tags = TagsClient(self.base)
        self.rates = RatesClient(self.base)
        self.reports = ReportsClient(self.base)

    @classmethod
    def from_settings(cls, settings: Settings) -> ClientRegistry:
        base = BaseTimesheetClient(
            settings.api_base_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
        )
        return cls(base=base, settings=settings)

    async def close(self) -> None:
        await self.base.close()


_registry: ClientRegistry | None = None


def get_registry() -> ClientRegistry:
    """Return the active registry, or raise if not initialized."""
    if _registry is None:
        raise RuntimeError("ClientRegistry not initialized. Server lifespan has not started.")
    return _registry


def set_registry(registry: ClientRegistry | None) -> None:
    """Set (or clear) the global registry. Used by lifespan and tests."""
    global _registry
    _registry = registry
