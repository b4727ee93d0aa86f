import os
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Force SQLite and keep the scheduler out of tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENABLE_SCHEDULER"] = "false"

from app.models import Base
from app.providers.base import (
    BuildTracker,
    PullRequestState,
    RepositoryChecker,
    TriggerConfigSource,
)


class FakeTriggerConfig(TriggerConfigSource):
    def __init__(
        self,
        admin_list: str = "",
        whitelist: str = "",
        orgs_list: str = "",
        use_github_hooks: bool = False,
        permit_all: bool = False,
        build_workflow: str | None = "ci.yml",
        fail_persist: bool = False,
    ):
        self.admin_list = admin_list
        self.whitelist = whitelist
        self.orgs_list = orgs_list
        self.use_github_hooks = use_github_hooks
        self.permit_all = permit_all
        self.build_workflow = build_workflow
        self.fail_persist = fail_persist
        self.persisted: list[str] = []

    async def persist_whitelist_addition(self, user: str) -> None:
        if self.fail_persist:
            raise RuntimeError("database unavailable")
        self.persisted.append(user)


class FakeRepository(RepositoryChecker):
    def __init__(
        self,
        owner: str,
        repo: str,
        fail_initialize: bool = False,
        fail_webhook: bool = False,
        fail_check: bool = False,
    ):
        self.owner = owner
        self.repo = repo
        self.default_branch = "main"
        self.html_url = f"https://github.com/{owner}/{repo}"
        self.fail_initialize = fail_initialize
        self.fail_webhook = fail_webhook
        self.fail_check = fail_check
        self.initialized = False
        self.webhook_registered = False
        self.checks = 0

    async def initialize(self) -> None:
        if self.fail_initialize:
            raise RuntimeError("repository not found")
        self.initialized = True

    async def register_webhook(self) -> None:
        if self.fail_webhook:
            raise RuntimeError("hook creation refused")
        self.webhook_registered = True

    async def check_now(self) -> None:
        self.checks += 1
        if self.fail_check:
            raise RuntimeError("rate limited")


class FakeBuilds(BuildTracker):
    def __init__(self, trigger: TriggerConfigSource, repository: RepositoryChecker):
        self.trigger = trigger
        self.repository = repository
        self.builds: list[tuple[int, str, bool]] = []

    async def build(
        self, pull: PullRequestState, reason: str, force: bool = False
    ) -> bool:
        self.builds.append((pull.number, reason, force))
        return True


@pytest.fixture
def trigger_config():
    return FakeTriggerConfig(admin_list="alice")


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_maker(db_engine):
    return async_sessionmaker(bind=db_engine, expire_on_commit=False)


def create_mock_get_db(session_maker):
    @asynccontextmanager
    async def mock_get_db():
        async with session_maker() as session:
            yield session

    return mock_get_db
