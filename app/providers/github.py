import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from app.config import settings
from app.exceptions import RepositoryError
from app.providers.base import PullRequestState, RepositoryChecker
from app.utils.github import GitHubAPIClient, get_github_client

if TYPE_CHECKING:
    from app.services.coordinator import Coordinator
    from app.services.trigger_store import PullRequestStore

logger = structlog.get_logger(__name__)

WEBHOOK_EVENTS = ["issue_comment", "pull_request"]


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GitHubRepository(RepositoryChecker):
    def __init__(
        self,
        owner: str,
        repo: str,
        coordinator: "Coordinator",
        pulls: dict[int, PullRequestState],
        client: GitHubAPIClient | None = None,
        store: "PullRequestStore | None" = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.coordinator = coordinator
        self.pulls = pulls
        self.client = client or get_github_client()
        self.store = store
        self.default_branch = "main"
        self.html_url = f"{coordinator.github_server}/{owner}/{repo}"
        self._lock = asyncio.Lock()

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    async def initialize(self) -> None:
        data = await self.client.get_repository(self.owner, self.repo)
        if data is None:
            raise RepositoryError(f"Could not access repository {self.full_name}")
        self.default_branch = data.get("default_branch") or self.default_branch
        self.html_url = data.get("html_url") or self.html_url

    async def register_webhook(self) -> None:
        hook_url = self.coordinator.hook_url
        hooks = await self.client.list_hooks(self.owner, self.repo)
        if hooks is None:
            raise RepositoryError(f"Could not list webhooks of {self.full_name}")

        for hook in hooks:
            if hook.get("config", {}).get("url") == hook_url:
                logger.info(
                    "Webhook already registered",
                    repo=self.full_name,
                    hook_url=hook_url,
                )
                return

        created = await self.client.create_hook(
            self.owner,
            self.repo,
            hook_url,
            WEBHOOK_EVENTS,
            secret=settings.github_webhook_secret or None,
        )
        if created is None:
            raise RepositoryError(f"Could not create webhook on {self.full_name}")

    async def check_now(self) -> None:
        async with self._lock:
            open_pulls = await self.client.list_open_pulls(self.owner, self.repo)
            if open_pulls is None:
                raise RepositoryError(
                    f"Could not list open pull requests of {self.full_name}"
                )

            open_numbers = set()
            for data in open_pulls:
                pull, changed = self._track(data)
                open_numbers.add(pull.number)
                if changed:
                    await self._on_new_head(pull)
                await self._check_comments(pull)

            for number in set(self.pulls) - open_numbers:
                logger.info(
                    "Forgetting closed pull request",
                    repo=self.full_name,
                    pr_number=number,
                )
                del self.pulls[number]

            await self._save()

    async def on_pull_request(self, payload: dict[str, Any]) -> None:
        action = payload.get("action", "")
        data = payload.get("pull_request", {})
        number = data.get("number")
        if number is None:
            return

        async with self._lock:
            if action == "closed":
                self.pulls.pop(number, None)
            elif action in ("opened", "reopened", "synchronize"):
                pull, changed = self._track(data)
                if changed:
                    await self._on_new_head(pull)
            else:
                return
            await self._save()

    async def on_issue_comment(self, payload: dict[str, Any]) -> None:
        if payload.get("action") != "created":
            return

        issue = payload.get("issue", {})
        if not issue.get("pull_request"):
            return

        comment = payload.get("comment", {})
        sender = comment.get("user", {}).get("login", "")
        body = comment.get("body", "")
        number = issue.get("number")
        if number is None or not sender:
            return

        async with self._lock:
            pull = self.pulls.get(number)
            if pull is None:
                data = await self.client.get_pull(self.owner, self.repo, number)
                if data is None:
                    logger.warning(
                        "Ignoring comment on unknown pull request",
                        repo=self.full_name,
                        pr_number=number,
                    )
                    return
                pull, changed = self._track(data)
                if changed:
                    await self._on_new_head(pull)

            await self._process_comment(pull, sender, body)
            created_at = parse_timestamp(comment.get("created_at"))
            if created_at and (
                pull.comments_checked_at is None
                or created_at > pull.comments_checked_at
            ):
                pull.comments_checked_at = created_at
            await self._save()

    def _track(self, data: dict[str, Any]) -> tuple[PullRequestState, bool]:
        number = data["number"]
        head_sha = data.get("head", {}).get("sha", "")
        pull = self.pulls.get(number)

        if pull is None:
            pull = PullRequestState(
                number=number,
                author=data.get("user", {}).get("login", ""),
                head_sha=head_sha,
                title=data.get("title", ""),
                comments_checked_at=parse_timestamp(data.get("updated_at")),
            )
            self.pulls[number] = pull
            logger.info(
                "Tracking new pull request",
                repo=self.full_name,
                pr_number=number,
                author=pull.author,
            )
            return pull, True

        pull.title = data.get("title", pull.title)
        if head_sha and head_sha != pull.head_sha:
            pull.head_sha = head_sha
            return pull, True
        return pull, False

    async def _on_new_head(self, pull: PullRequestState) -> None:
        if pull.accepted or await self.coordinator.is_authorized(pull.author):
            pull.accepted = True
            await self._build(pull, "new commits")
        elif not pull.testing_requested:
            if await self.client.create_pr_comment(
                self.owner, self.repo, pull.number, settings.request_testing_phrase
            ):
                pull.testing_requested = True

    async def _check_comments(self, pull: PullRequestState) -> None:
        comments = await self.client.list_issue_comments(
            self.owner, self.repo, pull.number, since=pull.comments_checked_at
        )
        if not comments:
            return

        for comment in comments:
            created_at = parse_timestamp(comment.get("created_at"))
            if created_at is None:
                continue
            if pull.comments_checked_at and created_at <= pull.comments_checked_at:
                continue

            sender = comment.get("user", {}).get("login", "")
            await self._process_comment(pull, sender, comment.get("body", ""))
            pull.comments_checked_at = created_at

    async def _process_comment(
        self, pull: PullRequestState, sender: str, body: str
    ) -> None:
        if await self.coordinator.handle_comment(pull, sender, body):
            await self._build(pull, f"requested by @{sender}", force=True)

    async def _build(
        self, pull: PullRequestState, reason: str, force: bool = False
    ) -> None:
        builds = self.coordinator.builds
        if builds is None:
            return
        await builds.build(pull, reason, force=force)

    async def _save(self) -> None:
        if self.store is None:
            return
        try:
            await self.store.save(self.coordinator.project_name, self.pulls)
        except Exception as e:
            logger.error(
                "Failed to store pull request state",
                repo=self.full_name,
                error=str(e),
            )
