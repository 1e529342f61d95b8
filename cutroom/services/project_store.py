"""Project document store.

Create/read/update/delete of whole project documents keyed by project id.
Every write is its own unit of work and replaces the full document; there is
no locking and no compare-and-swap, so concurrent writers to the same project
are last-write-wins. Authorization is the caller's job.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import Row, delete, or_, select, type_coerce
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from cutroom.exceptions import CorruptDocumentError, NotInitializedError, StoreUnavailableError
from cutroom.models.project import ProjectRecord
from cutroom.schemas.project import Project

logger = logging.getLogger(__name__)

_UNDEFINED_TABLE = "42P01"

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

_COLUMNS = (
    ProjectRecord.id,
    ProjectRecord.owner_id,
    ProjectRecord.data,
    ProjectRecord.created_at,
    ProjectRecord.updated_at,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_missing_table(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == _UNDEFINED_TABLE:
        return True
    text = str(orig).lower()
    return "no such table" in text or ("relation" in text and "does not exist" in text)


class ProjectStore:
    """Project documents persisted in the ``projects`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    @asynccontextmanager
    async def _backend(self, operation: str) -> AsyncIterator[None]:
        """Map backend failures onto NotInitialized / StoreUnavailable."""
        try:
            yield
        except DBAPIError as e:
            await self.db.rollback()
            if _is_missing_table(e):
                logger.error(f"Project store {operation} failed: projects table is missing")
                raise NotInitializedError() from e
            if isinstance(e, (OperationalError, InterfaceError)) or e.connection_invalidated:
                logger.warning(f"Project store {operation} failed: {e}")
                raise StoreUnavailableError() from e
            logger.error(f"Project store {operation} was rejected by the backend: {e}")
            raise StoreUnavailableError() from e
        except (PoolTimeoutError, OSError) as e:
            await self.db.rollback()
            logger.warning(f"Project store {operation} failed: {e}")
            raise StoreUnavailableError() from e

    @staticmethod
    def _to_project(row: Row) -> Project:
        document = dict(row.data or {})
        # Index columns are authoritative over the copies inside the document
        document["id"] = row.id
        document["ownerId"] = row.owner_id
        project = Project.model_validate(document)
        project.created_at = _aware(row.created_at)
        project.updated_at = _aware(row.updated_at)
        return project

    def _load_rows(self, rows: Sequence[Row]) -> list[Project]:
        """Decode scanned rows, skipping documents that no longer validate."""
        projects = []
        for row in rows:
            try:
                projects.append(self._to_project(row))
            except ValidationError as e:
                logger.warning(
                    f"Skipping project {row.id}: stored document is invalid ({e.error_count()} errors)"
                )
        return projects

    async def get(self, project_id: str) -> Project | None:
        async with self._backend("get"):
            result = await self.db.execute(select(*_COLUMNS).where(ProjectRecord.id == project_id))
            row = result.one_or_none()
        if row is None:
            return None
        try:
            return self._to_project(row)
        except ValidationError as e:
            logger.error(f"Project {project_id} has an invalid stored document: {e}")
            raise CorruptDocumentError(project_id) from e

    async def list_for(self, identity_id: str) -> list[Project]:
        """Projects owned by the identity or listing it in their team."""
        async with self._backend("list"):
            if self.dialect == "postgresql":
                result = await self.db.execute(
                    select(*_COLUMNS)
                    .where(
                        or_(
                            ProjectRecord.owner_id == identity_id,
                            type_coerce(ProjectRecord.data, JSONB).contains(
                                {"team": [{"id": identity_id}]}
                            ),
                        )
                    )
                    .order_by(ProjectRecord.updated_at.desc())
                )
                return self._load_rows(result.all())

            # JSON containment is postgres-only; filter the scan here instead
            result = await self.db.execute(
                select(*_COLUMNS).order_by(ProjectRecord.updated_at.desc())
            )
            projects = self._load_rows(result.all())
        return [
            p for p in projects
            if p.owner_id == identity_id or p.member_index(identity_id) is not None
        ]

    async def list_all(self) -> list[Project]:
        async with self._backend("scan"):
            result = await self.db.execute(select(*_COLUMNS).order_by(ProjectRecord.created_at))
            return self._load_rows(result.all())

    async def upsert(self, project: Project) -> Project:
        """Insert or replace the whole document.

        ``updated_at`` is stamped with the server time (never earlier than the
        loaded value); ``created_at`` is kept when the row already exists.
        """
        stamp = utcnow()
        if project.updated_at is not None and project.updated_at > stamp:
            stamp = project.updated_at
        document = project.to_document()

        async with self._backend("upsert"):
            insert = _INSERTS.get(self.dialect)
            if insert is None:
                created_at, updated_at = await self._upsert_orm(project, document, stamp)
            else:
                stmt = insert(ProjectRecord).values(
                    id=project.id,
                    owner_id=project.owner_id,
                    data=document,
                    created_at=stamp,
                    updated_at=stamp,
                    revision=1,
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["id"],
                    set_={
                        "owner_id": stmt.excluded.owner_id,
                        "data": stmt.excluded.data,
                        "updated_at": stmt.excluded.updated_at,
                        "revision": ProjectRecord.revision + 1,
                    },
                ).returning(ProjectRecord.created_at, ProjectRecord.updated_at)
                row = (await self.db.execute(stmt)).one()
                created_at, updated_at = row.created_at, row.updated_at
            await self.db.commit()

        return project.model_copy(
            update={"created_at": _aware(created_at), "updated_at": _aware(updated_at)}
        )

    async def _upsert_orm(
        self, project: Project, document: dict, stamp: datetime
    ) -> tuple[datetime, datetime]:
        record = await self.db.get(ProjectRecord, project.id, populate_existing=True)
        if record is None:
            record = ProjectRecord(
                id=project.id,
                owner_id=project.owner_id,
                data=document,
                created_at=stamp,
                updated_at=stamp,
                revision=1,
            )
            self.db.add(record)
        else:
            record.owner_id = project.owner_id
            record.data = document
            record.updated_at = stamp
            record.revision += 1
        await self.db.flush()
        return record.created_at, record.updated_at

    async def delete(self, project_id: str, requester_id: str) -> bool:
        """Delete the project if ``requester_id`` owns it. False when no row matched."""
        async with self._backend("delete"):
            result = await self.db.execute(
                delete(ProjectRecord).where(
                    ProjectRecord.id == project_id,
                    ProjectRecord.owner_id == requester_id,
                )
            )
            await self.db.commit()
        return result.rowcount > 0
