from unittest.mock import AsyncMock

import pytest

from app.providers.base import PullRequestState
from app.providers.builds import WorkflowBuilds
from app.utils.github import GitHubAPIClient
from tests.conftest import FakeRepository, FakeTriggerConfig


@pytest.fixture
def github_client():
    client = AsyncMock(spec=GitHubAPIClient)
    client.dispatch_workflow.return_value = True
    client.update_commit_status.return_value = True
    client.create_pr_comment.return_value = True
    return client


@pytest.fixture
def builds(github_client):
    return WorkflowBuilds(
        FakeTriggerConfig(build_workflow="pr.yml"),
        FakeRepository("acme", "widget"),
        client=github_client,
    )


@pytest.fixture
def pull():
    return PullRequestState(number=7, author="bob", head_sha="abc123")


@pytest.mark.asyncio
async def test_build_dispatches_workflow(builds, github_client, pull):
    assert await builds.build(pull, "new commits") is True

    github_client.dispatch_workflow.assert_called_once_with(
        "acme",
        "widget",
        "pr.yml",
        ref="main",
        inputs={"pr_number": "7", "sha": "abc123", "reason": "new commits"},
    )
    assert pull.last_built_sha == "abc123"


@pytest.mark.asyncio
async def test_build_reports_pending_status_and_comment(builds, github_client, pull):
    await builds.build(pull, "requested by @alice", force=True)

    target_url = "https://github.com/acme/widget/actions/workflows/pr.yml"
    github_client.update_commit_status.assert_called_once_with(
        "acme",
        "widget",
        "abc123",
        "pending",
        description="Build triggered",
        target_url=target_url,
    )
    github_client.create_pr_comment.assert_called_once_with(
        "acme",
        "widget",
        7,
        f"🚧 Build [triggered]({target_url}) (requested by @alice).",
    )


@pytest.mark.asyncio
async def test_build_skips_already_built_head(builds, github_client, pull):
    pull.last_built_sha = "abc123"

    assert await builds.build(pull, "new commits") is False

    github_client.dispatch_workflow.assert_not_called()


@pytest.mark.asyncio
async def test_forced_build_rebuilds_same_head(builds, github_client, pull):
    pull.last_built_sha = "abc123"

    assert await builds.build(pull, "requested by @alice", force=True) is True

    github_client.dispatch_workflow.assert_called_once()


@pytest.mark.asyncio
async def test_build_without_workflow(github_client, pull):
    builds = WorkflowBuilds(
        FakeTriggerConfig(build_workflow=None),
        FakeRepository("acme", "widget"),
        client=github_client,
    )

    assert await builds.build(pull, "new commits") is False

    github_client.dispatch_workflow.assert_not_called()


@pytest.mark.asyncio
async def test_failed_dispatch_leaves_pull_unbuilt(builds, github_client, pull):
    github_client.dispatch_workflow.return_value = False

    assert await builds.build(pull, "new commits") is False

    assert pull.last_built_sha is None
    github_client.update_commit_status.assert_not_called()
    github_client.create_pr_comment.assert_not_called()
