import asyncio

import structlog

from app.config import settings
from app.exceptions import ConfigurationError
from app.models import ProjectTrigger
from app.providers.base import (
    OrganizationDirectory,
    PlatformContext,
    Project,
    PullRequestState,
    RepositoryChecker,
)
from app.providers.github import GitHubRepository
from app.services.coordinator import Coordinator, CoordinatorBuilder
from app.services.trigger_store import (
    PullRequestStore,
    StoredTriggerConfig,
    load_triggers,
)

logger = structlog.get_logger(__name__)


class TriggerRegistry:
    """Owns the active Coordinators and their polling loops."""

    def __init__(
        self,
        platform: PlatformContext | None = None,
        directory: OrganizationDirectory | None = None,
        store: PullRequestStore | None = None,
        interval: float | None = None,
    ):
        self.platform = platform or PlatformContext(root_url=settings.base_url)
        self.directory = directory
        self.store = store or PullRequestStore()
        self.interval = interval if interval is not None else settings.check_interval
        self._coordinators: dict[str, Coordinator] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    @property
    def coordinators(self) -> list[Coordinator]:
        return list(self._coordinators.values())

    def get(self, project_name: str) -> Coordinator | None:
        return self._coordinators.get(project_name)

    def find_by_repository(self, full_name: str) -> Coordinator | None:
        full_name = full_name.lower()
        for coordinator in self._coordinators.values():
            if coordinator.full_name.lower() == full_name:
                return coordinator
        return None

    def _repository_factory(
        self,
        owner: str,
        repo: str,
        coordinator: Coordinator,
        pulls: dict[int, PullRequestState],
    ) -> RepositoryChecker:
        return GitHubRepository(owner, repo, coordinator, pulls, store=self.store)

    async def start(
        self, trigger: ProjectTrigger, poll: bool = True
    ) -> Coordinator | None:
        name = trigger.project_name

        try:
            pulls = await self.store.load(name)
            builder = CoordinatorBuilder(
                self.platform,
                directory=self.directory,
                repository_factory=self._repository_factory,
            )
            coordinator = await (
                builder.set_trigger(StoredTriggerConfig.from_model(trigger))
                .set_project(Project(name=name, project_url=trigger.project_url))
                .set_pulls(pulls)
                .build()
            )
        except ConfigurationError as e:
            logger.error(
                "Project trigger is not active",
                project=name,
                error=str(e),
            )
            return None
        except Exception as e:
            logger.error(
                "Unexpected error starting project trigger",
                project=name,
                error=str(e),
                exc_info=True,
            )
            return None

        # The running coordinator stays active until its replacement is built
        if name in self._coordinators:
            await self.stop(name)

        self._coordinators[name] = coordinator
        if poll:
            self._tasks[name] = asyncio.create_task(self._poll(coordinator))
        return coordinator

    async def _poll(self, coordinator: Coordinator) -> None:
        while not coordinator.lifecycle.is_stopped:
            try:
                await coordinator.tick()
            except Exception as e:
                logger.error(
                    "Scheduled tick failed",
                    project=coordinator.project_name,
                    error=str(e),
                    exc_info=True,
                )
            await asyncio.sleep(self.interval)

    async def stop(self, project_name: str) -> bool:
        coordinator = self._coordinators.pop(project_name, None)
        task = self._tasks.pop(project_name, None)
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if coordinator is None:
            return False
        coordinator.stop()
        return True

    async def start_all(self) -> int:
        triggers = await load_triggers()
        started = 0
        for trigger in triggers:
            if await self.start(trigger):
                started += 1
        logger.info("Started project triggers", started=started, total=len(triggers))
        return started

    async def stop_all(self) -> None:
        for project_name in list(self._coordinators):
            await self.stop(project_name)
