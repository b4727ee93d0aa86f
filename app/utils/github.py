from datetime import datetime
from typing import Any

import httpx
import structlog

from app.config import settings
from app.providers.base import OrganizationDirectory

logger = structlog.get_logger(__name__)


class GitHubAPIClient(OrganizationDirectory):
    """Reusable async HTTP client for GitHub REST API."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Accept": "application/vnd.github.v3+json",
            "Authorization": f"token {token}",
        }

    async def request(
        self,
        method: str,
        path: str,
        context: dict | None = None,
        **kwargs,
    ) -> httpx.Response | None:
        """Execute request with standard error handling."""
        context = context or {}
        url = f"{self.base_url}{path}"
        kwargs.setdefault("timeout", self.timeout)

        try:
            async with httpx.AsyncClient() as client:
                response = await getattr(client, method)(
                    url, headers=self.headers, **kwargs
                )
                response.raise_for_status()
                return response
        except httpx.RequestError as e:
            logger.error("Request error", url=url, error=str(e), **context)
        except httpx.HTTPStatusError as e:
            logger.error(
                "HTTP error",
                url=url,
                status_code=e.response.status_code,
                response_text=e.response.text,
                **context,
            )
        except Exception as e:
            logger.error("Unexpected error", url=url, error=str(e), **context)
        return None

    async def is_organization_member(self, org: str, user: str) -> bool:
        """Check public or private membership of ``user`` in ``org``.

        GitHub answers 204 for members, 404 for non-members and 302 when the
        token cannot see private membership. Transport errors are raised to
        the caller.
        """
        url = f"{self.base_url}/orgs/{org}/members/{user}"
        async with httpx.AsyncClient() as client:
            response = await client.get(
                url,
                headers=self.headers,
                timeout=self.timeout,
                follow_redirects=False,
            )

        if response.status_code == 204:
            return True
        if response.status_code in (302, 404):
            return False

        response.raise_for_status()
        logger.warning(
            "Unexpected response checking organization membership",
            org=org,
            user=user,
            status_code=response.status_code,
        )
        return False

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any] | None:
        response = await self.request(
            "get", f"/repos/{owner}/{repo}", context={"owner": owner, "repo": repo}
        )
        if response:
            return response.json()
        return None

    async def list_hooks(self, owner: str, repo: str) -> list[dict[str, Any]] | None:
        response = await self.request(
            "get",
            f"/repos/{owner}/{repo}/hooks",
            context={"owner": owner, "repo": repo},
        )
        if response:
            return response.json()
        return None

    async def create_hook(
        self,
        owner: str,
        repo: str,
        url: str,
        events: list[str],
        secret: str | None = None,
    ) -> dict[str, Any] | None:
        config: dict[str, Any] = {"url": url, "content_type": "json"}
        if secret:
            config["secret"] = secret

        response = await self.request(
            "post",
            f"/repos/{owner}/{repo}/hooks",
            json={"name": "web", "active": True, "events": events, "config": config},
            context={"owner": owner, "repo": repo, "hook_url": url},
        )
        if response:
            logger.info(
                "Successfully created repository webhook",
                owner=owner,
                repo=repo,
                hook_url=url,
            )
            return response.json()
        return None

    async def list_open_pulls(
        self, owner: str, repo: str
    ) -> list[dict[str, Any]] | None:
        response = await self.request(
            "get",
            f"/repos/{owner}/{repo}/pulls",
            params={"state": "open", "per_page": 100},
            context={"owner": owner, "repo": repo},
        )
        if response:
            return response.json()
        return None

    async def get_pull(
        self, owner: str, repo: str, number: int
    ) -> dict[str, Any] | None:
        response = await self.request(
            "get",
            f"/repos/{owner}/{repo}/pulls/{number}",
            context={"owner": owner, "repo": repo, "pr_number": number},
        )
        if response:
            return response.json()
        return None

    async def list_issue_comments(
        self,
        owner: str,
        repo: str,
        number: int,
        since: datetime | None = None,
    ) -> list[dict[str, Any]] | None:
        params: dict[str, Any] = {"per_page": 100}
        if since:
            params["since"] = since.isoformat()

        response = await self.request(
            "get",
            f"/repos/{owner}/{repo}/issues/{number}/comments",
            params=params,
            context={"owner": owner, "repo": repo, "pr_number": number},
        )
        if response:
            return response.json()
        return None

    async def create_pr_comment(
        self, owner: str, repo: str, pr_number: int, comment: str
    ) -> bool:
        if not pr_number:
            logger.error("Missing PR number. Skipping PR comment.")
            return False

        response = await self.request(
            "post",
            f"/repos/{owner}/{repo}/issues/{pr_number}/comments",
            json={"body": comment},
            context={"owner": owner, "repo": repo, "pr_number": pr_number},
        )
        if response:
            logger.info(
                "Successfully created PR comment",
                owner=owner,
                repo=repo,
                pr_number=pr_number,
            )
            return True
        return False

    async def update_commit_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        state: str,
        description: str | None = None,
        target_url: str | None = None,
        context: str = "ci/pr-trigger",
    ) -> bool:
        if not sha:
            logger.error("Missing commit SHA. Skipping status update.")
            return False

        if state not in ["error", "failure", "pending", "success"]:
            logger.error(f"Invalid state '{state}'. Skipping status update.")
            return False

        payload = {"state": state, "context": context}
        if description:
            payload["description"] = description
        if target_url:
            payload["target_url"] = target_url

        response = await self.request(
            "post",
            f"/repos/{owner}/{repo}/statuses/{sha}",
            json=payload,
            context={"owner": owner, "repo": repo, "commit": sha},
        )
        return response is not None

    async def dispatch_workflow(
        self,
        owner: str,
        repo: str,
        workflow_id: str,
        ref: str,
        inputs: dict[str, Any],
    ) -> bool:
        response = await self.request(
            "post",
            f"/repos/{owner}/{repo}/actions/workflows/{workflow_id}/dispatches",
            json={"ref": ref, "inputs": inputs},
            context={"owner": owner, "repo": repo, "workflow_id": workflow_id},
        )
        if response:
            logger.info(
                "Dispatched workflow",
                owner=owner,
                repo=repo,
                workflow_id=workflow_id,
                ref=ref,
            )
            return True
        return False


_github_client: GitHubAPIClient | None = None


def get_github_client() -> GitHubAPIClient:
    """Get or create the GitHub API client."""
    global _github_client
    if _github_client is None:
        _github_client = GitHubAPIClient(
            settings.github_token,
            base_url=settings.github_api_url,
            timeout=settings.github_request_timeout,
        )
    return _github_client
