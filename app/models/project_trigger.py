import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    type_annotation_map = {
        datetime: DateTime(timezone=True),
        uuid.UUID: UUID(as_uuid=True),
    }


class ProjectTrigger(Base):
    __tablename__ = "project_trigger"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, index=True
    )
    project_name: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    project_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    admin_list: Mapped[str] = mapped_column(Text, default="")
    whitelist: Mapped[str] = mapped_column(Text, default="")
    orgs_list: Mapped[str] = mapped_column(Text, default="")
    use_github_hooks: Mapped[bool] = mapped_column(Boolean, default=False)
    permit_all: Mapped[bool] = mapped_column(Boolean, default=False)
    build_workflow: Mapped[str | None] = mapped_column(String(255), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<ProjectTrigger(project_name='{self.project_name}', project_url='{self.project_url}')>"
