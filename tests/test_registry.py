import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from app.models import ProjectTrigger
from app.providers.base import OrganizationDirectory, PlatformContext
from app.services.registry import TriggerRegistry
from tests.conftest import FakeRepository


def make_trigger(name="widget", url="https://github.com/acme/widget", hooks=False):
    return ProjectTrigger(
        project_name=name,
        project_url=url,
        admin_list="alice",
        whitelist="",
        orgs_list="",
        use_github_hooks=hooks,
        permit_all=False,
        build_workflow="ci.yml",
        enabled=True,
    )


@pytest.fixture
def store():
    store = AsyncMock()
    store.load.return_value = {}
    return store


@pytest.fixture
def registry(store):
    return TriggerRegistry(
        platform=PlatformContext(root_url="https://ci.example.com"),
        directory=AsyncMock(spec=OrganizationDirectory),
        store=store,
        interval=0,
    )


@pytest.fixture(autouse=True)
def fake_repository():
    repositories = []

    def factory(owner, repo, coordinator, pulls, store=None):
        repository = FakeRepository(owner, repo)
        repositories.append(repository)
        return repository

    with patch("app.services.registry.GitHubRepository", side_effect=factory):
        yield repositories


@pytest.mark.asyncio
async def test_start_registers_coordinator(registry, store):
    coordinator = await registry.start(make_trigger(), poll=False)

    assert coordinator is not None
    assert registry.get("widget") is coordinator
    assert registry.find_by_repository("ACME/Widget") is coordinator
    assert registry.find_by_repository("acme/other") is None
    store.load.assert_called_once_with("widget")


@pytest.mark.asyncio
async def test_start_with_invalid_url_is_inactive(registry):
    coordinator = await registry.start(make_trigger(url="nope"), poll=False)

    assert coordinator is None
    assert registry.coordinators == []


@pytest.mark.asyncio
async def test_start_with_store_failure_is_inactive(registry, store):
    store.load.side_effect = RuntimeError("database unavailable")

    assert await registry.start(make_trigger(), poll=False) is None


@pytest.mark.asyncio
async def test_restart_stops_previous_coordinator(registry):
    first = await registry.start(make_trigger(), poll=False)
    second = await registry.start(make_trigger(), poll=False)

    assert first is not second
    assert first.lifecycle.is_stopped is True
    assert registry.coordinators == [second]


@pytest.mark.asyncio
async def test_failed_restart_keeps_running_coordinator(registry):
    first = await registry.start(make_trigger(), poll=False)

    assert await registry.start(make_trigger(url="nope"), poll=False) is None

    assert registry.get("widget") is first
    assert first.lifecycle.is_stopped is False
    assert first.repository is not None


@pytest.mark.asyncio
async def test_poll_ticks_until_stopped(registry, fake_repository):
    coordinator = await registry.start(make_trigger())

    for _ in range(10):
        await asyncio.sleep(0)

    assert fake_repository[0].checks >= 1
    assert await registry.stop("widget") is True
    assert coordinator.lifecycle.is_stopped is True
    assert registry.get("widget") is None


@pytest.mark.asyncio
async def test_stop_unknown_project(registry):
    assert await registry.stop("unknown") is False


@pytest.mark.asyncio
async def test_start_all_and_stop_all(registry):
    triggers = [make_trigger("widget"), make_trigger("broken", url=None)]
    with patch(
        "app.services.registry.load_triggers", AsyncMock(return_value=triggers)
    ):
        started = await registry.start_all()

    assert started == 1
    assert [c.project_name for c in registry.coordinators] == ["widget"]

    await registry.stop_all()

    assert registry.coordinators == []
