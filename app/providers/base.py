from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class PullRequestState:
    number: int
    author: str
    head_sha: str
    title: str = ""
    accepted: bool = False
    testing_requested: bool = False
    comments_checked_at: datetime | None = None
    last_built_sha: str | None = None


@dataclass(frozen=True)
class Project:
    name: str
    project_url: str | None


@dataclass(frozen=True)
class PlatformContext:
    root_url: str


class OrganizationDirectory(ABC):
    @abstractmethod
    async def is_organization_member(self, org: str, user: str) -> bool:
        pass


class TriggerConfigSource(ABC):
    admin_list: str
    whitelist: str
    orgs_list: str
    use_github_hooks: bool
    permit_all: bool
    build_workflow: str | None

    @abstractmethod
    async def persist_whitelist_addition(self, user: str) -> None:
        pass


class RepositoryChecker(ABC):
    owner: str
    repo: str
    default_branch: str
    html_url: str

    @abstractmethod
    async def initialize(self) -> None:
        pass

    @abstractmethod
    async def register_webhook(self) -> None:
        pass

    @abstractmethod
    async def check_now(self) -> None:
        pass

    async def on_pull_request(self, payload: dict[str, Any]) -> None:
        pass

    async def on_issue_comment(self, payload: dict[str, Any]) -> None:
        pass


class BuildTracker(ABC):
    @abstractmethod
    async def build(
        self, pull: PullRequestState, reason: str, force: bool = False
    ) -> bool:
        pass
