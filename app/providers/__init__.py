from app.providers.base import (
    BuildTracker,
    OrganizationDirectory,
    PlatformContext,
    Project,
    PullRequestState,
    RepositoryChecker,
    TriggerConfigSource,
)

__all__ = [
    "BuildTracker",
    "OrganizationDirectory",
    "PlatformContext",
    "Project",
    "PullRequestState",
    "RepositoryChecker",
    "TriggerConfigSource",
]
