from datetime import datetime, timezone

import structlog
from sqlalchemy import select

from app.database import get_db
from app.models import ProjectTrigger, TrackedPullRequest
from app.providers.base import PullRequestState, TriggerConfigSource

logger = structlog.get_logger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops the timezone of stored timestamps
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class StoredTriggerConfig(TriggerConfigSource):
    """Snapshot of a project_trigger row that writes whitelist grants back."""

    def __init__(
        self,
        project_name: str,
        admin_list: str = "",
        whitelist: str = "",
        orgs_list: str = "",
        use_github_hooks: bool = False,
        permit_all: bool = False,
        build_workflow: str | None = None,
    ) -> None:
        self.project_name = project_name
        self.admin_list = admin_list or ""
        self.whitelist = whitelist or ""
        self.orgs_list = orgs_list or ""
        self.use_github_hooks = use_github_hooks
        self.permit_all = permit_all
        self.build_workflow = build_workflow

    @classmethod
    def from_model(cls, trigger: ProjectTrigger) -> "StoredTriggerConfig":
        return cls(
            project_name=trigger.project_name,
            admin_list=trigger.admin_list,
            whitelist=trigger.whitelist,
            orgs_list=trigger.orgs_list,
            use_github_hooks=trigger.use_github_hooks,
            permit_all=trigger.permit_all,
            build_workflow=trigger.build_workflow,
        )

    async def persist_whitelist_addition(self, user: str) -> None:
        async with get_db() as db:
            stmt = (
                select(ProjectTrigger)
                .where(ProjectTrigger.project_name == self.project_name)
                .with_for_update()
            )
            result = await db.execute(stmt)
            trigger = result.scalar_one_or_none()
            if trigger is None:
                raise LookupError(f"No trigger stored for {self.project_name}")

            names = (trigger.whitelist or "").split()
            if user not in names:
                names.append(user)
                trigger.whitelist = " ".join(names)
                await db.commit()

        self.whitelist = " ".join(names)
        logger.info(
            "Stored whitelist addition", project=self.project_name, user=user
        )


async def load_triggers() -> list[ProjectTrigger]:
    async with get_db() as db:
        result = await db.execute(
            select(ProjectTrigger)
            .where(ProjectTrigger.enabled.is_(True))
            .order_by(ProjectTrigger.project_name)
        )
        return list(result.scalars().all())


async def get_trigger(project_name: str) -> ProjectTrigger | None:
    async with get_db() as db:
        result = await db.execute(
            select(ProjectTrigger).where(ProjectTrigger.project_name == project_name)
        )
        return result.scalar_one_or_none()


class PullRequestStore:
    """Persists the known pull request map of each project."""

    async def load(self, project_name: str) -> dict[int, PullRequestState]:
        async with get_db() as db:
            result = await db.execute(
                select(TrackedPullRequest).where(
                    TrackedPullRequest.project_name == project_name
                )
            )
            rows = result.scalars().all()

        return {
            row.number: PullRequestState(
                number=row.number,
                author=row.author,
                head_sha=row.head_sha,
                title=row.title,
                accepted=row.accepted,
                testing_requested=row.testing_requested,
                comments_checked_at=_as_utc(row.comments_checked_at),
                last_built_sha=row.last_built_sha,
            )
            for row in rows
        }

    async def save(
        self, project_name: str, pulls: dict[int, PullRequestState]
    ) -> None:
        async with get_db() as db:
            result = await db.execute(
                select(TrackedPullRequest).where(
                    TrackedPullRequest.project_name == project_name
                )
            )
            existing = {row.number: row for row in result.scalars().all()}

            for number, row in existing.items():
                if number not in pulls:
                    await db.delete(row)

            for number, pull in pulls.items():
                row = existing.get(number)
                if row is None:
                    row = TrackedPullRequest(project_name=project_name, number=number)
                    db.add(row)
                row.author = pull.author
                row.head_sha = pull.head_sha
                row.title = pull.title
                row.accepted = pull.accepted
                row.testing_requested = pull.testing_requested
                row.comments_checked_at = pull.comments_checked_at
                row.last_built_sha = pull.last_built_sha

            await db.commit()
