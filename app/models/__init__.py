"""Models module."""

from app.models.project_trigger import Base, ProjectTrigger
from app.models.pull_request import TrackedPullRequest

__all__ = [
    "Base",
    "ProjectTrigger",
    "TrackedPullRequest",
]
