import uuid
from datetime import datetime

from sqlalchemy import Boolean, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.project_trigger import Base


class TrackedPullRequest(Base):
    __tablename__ = "tracked_pull_request"
    __table_args__ = (UniqueConstraint("project_name", "number"),)

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    project_name: Mapped[str] = mapped_column(String(255), index=True)
    number: Mapped[int] = mapped_column()
    author: Mapped[str] = mapped_column(String(255))
    head_sha: Mapped[str] = mapped_column(String(64))
    title: Mapped[str] = mapped_column(String(1024), default="")
    accepted: Mapped[bool] = mapped_column(Boolean, default=False)
    testing_requested: Mapped[bool] = mapped_column(Boolean, default=False)
    comments_checked_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_built_sha: Mapped[str | None] = mapped_column(String(64), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<TrackedPullRequest(project_name='{self.project_name}', number={self.number})>"
