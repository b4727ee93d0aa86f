import structlog

from app.providers.base import (
    BuildTracker,
    PullRequestState,
    RepositoryChecker,
    TriggerConfigSource,
)
from app.utils.github import GitHubAPIClient, get_github_client

logger = structlog.get_logger(__name__)


class WorkflowBuilds(BuildTracker):
    """Run pull request builds as GitHub Actions workflow dispatches."""

    def __init__(
        self,
        trigger: TriggerConfigSource,
        repository: RepositoryChecker,
        client: GitHubAPIClient | None = None,
    ) -> None:
        self.trigger = trigger
        self.repository = repository
        self.client = client or get_github_client()

    async def build(
        self, pull: PullRequestState, reason: str, force: bool = False
    ) -> bool:
        owner, repo = self.repository.owner, self.repository.repo

        if not force and pull.last_built_sha == pull.head_sha:
            logger.debug(
                "Head commit already built, skipping",
                repo=f"{owner}/{repo}",
                pr_number=pull.number,
                sha=pull.head_sha,
            )
            return False

        workflow_id = self.trigger.build_workflow
        if not workflow_id:
            logger.warning(
                "No build workflow configured, skipping build",
                repo=f"{owner}/{repo}",
                pr_number=pull.number,
            )
            return False

        dispatched = await self.client.dispatch_workflow(
            owner,
            repo,
            workflow_id,
            ref=self.repository.default_branch,
            inputs={
                "pr_number": str(pull.number),
                "sha": pull.head_sha,
                "reason": reason,
            },
        )
        if not dispatched:
            return False

        pull.last_built_sha = pull.head_sha
        logger.info(
            "Build triggered",
            repo=f"{owner}/{repo}",
            pr_number=pull.number,
            sha=pull.head_sha,
            reason=reason,
        )

        target_url = f"{self.repository.html_url}/actions/workflows/{workflow_id}"
        await self.client.update_commit_status(
            owner,
            repo,
            pull.head_sha,
            "pending",
            description="Build triggered",
            target_url=target_url,
        )
        await self.client.create_pr_comment(
            owner,
            repo,
            pull.number,
            f"🚧 Build [triggered]({target_url}) ({reason}).",
        )
        return True
