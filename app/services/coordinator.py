import re
from collections.abc import Callable
from typing import Any

import structlog

from app.config import Settings, settings
from app.exceptions import ConfigurationError
from app.providers.base import (
    BuildTracker,
    OrganizationDirectory,
    PlatformContext,
    Project,
    PullRequestState,
    RepositoryChecker,
    TriggerConfigSource,
)
from app.providers.builds import WorkflowBuilds
from app.providers.github import GitHubRepository
from app.services.access import AccessPolicy
from app.services.lifecycle import TriggerLifecycle
from app.services.phrases import CommentClassification, PhraseMatcher
from app.utils.github import get_github_client

logger = structlog.get_logger(__name__)

HOOK_PATH = "/ghprbhook"

GITHUB_USER_REPO_PATTERN = re.compile(r"^(https?://[^/]*)/([^/]*)/([^/]*).*")

RepositoryFactory = Callable[
    [str, str, "Coordinator", dict[int, PullRequestState]], RepositoryChecker
]
BuildsFactory = Callable[[TriggerConfigSource, RepositoryChecker], BuildTracker]


class Coordinator:
    """Per-project trigger state: who may build, which comments are
    commands, and whether a scheduled tick checks the repository."""

    def __init__(
        self,
        project_name: str,
        trigger: TriggerConfigSource,
        platform: PlatformContext,
        policy: AccessPolicy,
        phrases: PhraseMatcher,
        lifecycle: TriggerLifecycle,
        github_server: str,
        owner: str,
        repo: str,
    ):
        self.project_name = project_name
        self.trigger = trigger
        self.platform = platform
        self.policy = policy
        self.phrases = phrases
        self.lifecycle = lifecycle
        self.github_server = github_server
        self.owner = owner
        self.repo = repo
        self.repository: RepositoryChecker | None = None
        self.builds: BuildTracker | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def hook_url(self) -> str:
        return f"{self.platform.root_url.rstrip('/')}{HOOK_PATH}/"

    def is_admin(self, user: str) -> bool:
        return self.policy.is_admin(user)

    async def is_authorized(self, user: str) -> bool:
        return await self.policy.is_authorized(user)

    async def grant_whitelist(self, user: str) -> bool:
        return await self.policy.grant_whitelist(user)

    def classify(self, comment: str) -> CommentClassification:
        return self.phrases.classify(comment)

    def is_retest_phrase(self, comment: str) -> bool:
        return self.phrases.is_retest(comment)

    def is_whitelist_phrase(self, comment: str) -> bool:
        return self.phrases.is_whitelist_phrase(comment)

    def is_ok_to_test_phrase(self, comment: str) -> bool:
        return self.phrases.is_ok_to_test(comment)

    async def handle_comment(
        self, pull: PullRequestState, sender: str, body: str
    ) -> bool:
        """Apply a comment's commands to ``pull``; True means build it."""
        phrases = self.classify(body)
        if not phrases.is_command:
            return False

        should_run = False

        if phrases.is_whitelist_request and self.is_admin(sender):
            if not await self.is_authorized(pull.author):
                await self.grant_whitelist(pull.author)
            pull.accepted = True
            should_run = True

        if phrases.is_ok_to_test and self.is_admin(sender):
            pull.accepted = True
            should_run = True

        if phrases.is_retest:
            if self.is_admin(sender):
                should_run = True
            elif pull.accepted and await self.is_authorized(sender):
                should_run = True

        logger.info(
            "Processed pull request command",
            project=self.project_name,
            repo=self.full_name,
            pr_number=pull.number,
            sender=sender,
            should_run=should_run,
        )
        return should_run

    async def tick(self) -> bool:
        """Called by the scheduler at every polling interval."""
        if not await self.lifecycle.advance():
            return False

        repository = self.repository
        if repository is None:
            return False

        try:
            await repository.check_now()
        except Exception as e:
            logger.error(
                "Repository check failed",
                project=self.project_name,
                repo=self.full_name,
                error=str(e),
            )
            return False
        return True

    def stop(self) -> None:
        self.lifecycle.stop()
        self.repository = None
        self.builds = None
        logger.info("Stopped trigger", project=self.project_name, repo=self.full_name)

    def status(self) -> dict[str, Any]:
        return {
            "project": self.project_name,
            "repo": self.full_name,
            "github_server": self.github_server,
            "use_hooks": self.lifecycle.use_hooks,
            "state": self.lifecycle.state.value,
            "hook_url": self.hook_url,
        }


def parse_project_url(url: str, project: str | None = None) -> tuple[str, str, str]:
    match = GITHUB_USER_REPO_PATTERN.match(url)
    if not match or not all(match.groups()):
        raise ConfigurationError(f"Invalid github project url: {url}", project)
    server, owner, repo = match.groups()
    return server, owner, repo


class CoordinatorBuilder:
    """Stage the inputs of a Coordinator, raising on the first invalid one."""

    def __init__(
        self,
        platform: PlatformContext,
        directory: OrganizationDirectory | None = None,
        repository_factory: RepositoryFactory | None = None,
        builds_factory: BuildsFactory | None = None,
        config: Settings = settings,
    ):
        self.platform = platform
        self.directory = directory or get_github_client()
        self.repository_factory = repository_factory
        self.builds_factory = builds_factory
        self.config = config
        self.trigger: TriggerConfigSource | None = None
        self.project: Project | None = None
        self.pulls: dict[int, PullRequestState] | None = None
        self.github_server: str | None = None
        self.owner: str | None = None
        self.repo: str | None = None

    def set_trigger(
        self, trigger: TriggerConfigSource | None
    ) -> "CoordinatorBuilder":
        if trigger is None:
            raise ConfigurationError("A trigger configuration is required.")
        self.trigger = trigger
        return self

    def set_project(self, project: Project) -> "CoordinatorBuilder":
        if not project.project_url:
            logger.warning("A github project url is required.", project=project.name)
            raise ConfigurationError(
                "A github project url is required.", project.name
            )

        try:
            server, owner, repo = parse_project_url(
                project.project_url, project.name
            )
        except ConfigurationError:
            logger.warning(
                "Invalid github project url",
                project=project.name,
                url=project.project_url,
            )
            raise

        self.project = project
        self.github_server, self.owner, self.repo = server, owner, repo
        return self

    def set_pulls(
        self, pulls: dict[int, PullRequestState] | None
    ) -> "CoordinatorBuilder":
        self.pulls = pulls
        return self

    async def build(self) -> Coordinator:
        if self.trigger is None:
            raise ConfigurationError("A trigger configuration is required.")
        if self.project is None:
            raise ConfigurationError("A project is required.")

        project_name = self.project.name
        if self.pulls is None:
            raise ConfigurationError(
                "Known pull requests are required.", project_name
            )

        coordinator = Coordinator(
            project_name=project_name,
            trigger=self.trigger,
            platform=self.platform,
            policy=AccessPolicy(
                admins=self.trigger.admin_list,
                whitelisted=self.trigger.whitelist,
                organizations=self.trigger.orgs_list,
                directory=self.directory,
                config_source=self.trigger,
                permit_all=self.trigger.permit_all,
            ),
            phrases=PhraseMatcher(
                self.config.retest_phrase,
                self.config.whitelist_phrase,
                self.config.ok_to_test_phrase,
            ),
            lifecycle=TriggerLifecycle(use_hooks=self.trigger.use_github_hooks),
            github_server=self.github_server,
            owner=self.owner,
            repo=self.repo,
        )

        repository_factory = self.repository_factory or GitHubRepository
        builds_factory = self.builds_factory or WorkflowBuilds

        try:
            repository = repository_factory(
                self.owner, self.repo, coordinator, self.pulls
            )
            await repository.initialize()
            if self.trigger.use_github_hooks:
                await repository.register_webhook()
            builds = builds_factory(self.trigger, repository)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(
                "Failed to set up repository trigger",
                project=project_name,
                repo=coordinator.full_name,
                error=str(e),
            )
            raise ConfigurationError(
                f"Failed to set up trigger for {coordinator.full_name}: {e}",
                project_name,
            ) from e

        coordinator.repository = repository
        coordinator.builds = builds
        logger.info(
            "Started trigger",
            project=project_name,
            repo=coordinator.full_name,
            use_hooks=self.trigger.use_github_hooks,
        )
        return coordinator

