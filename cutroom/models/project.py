from typing import Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from cutroom.models.base import Base, TimestampMixin

# JSONB on PostgreSQL (containment queries), plain JSON elsewhere
DocumentJSON = JSON().with_variant(JSONB(), "postgresql")


class ProjectRecord(Base, TimestampMixin):
    """One row per project: the whole document plus denormalized index fields."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    data: Mapped[dict[str, Any]] = mapped_column(DocumentJSON, nullable=False)

    # Bumped on every write. Informational only: writes are last-write-wins
    # and never compare it.
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<ProjectRecord {self.id} owner={self.owner_id}>"
