from fastapi import APIRouter

from cutroom.api.deps import Collaboration, CurrentIdentity, Projects
from cutroom.schemas.project import (
    CommentActionRequest,
    CommentActionResult,
    DeleteResult,
    Project,
    SyncResult,
)

router = APIRouter()


@router.get("", response_model=list[Project], response_model_exclude_none=True)
async def list_projects(identity: CurrentIdentity, projects: Projects) -> list[Project]:
    """List every project the identity owns or is a team member of."""
    return await projects.list_projects(identity)


@router.post("", response_model=SyncResult)
async def sync_projects(
    body: list[Project],
    identity: CurrentIdentity,
    projects: Projects,
) -> SyncResult:
    """Save a batch of project documents.

    Projects the identity may not write are skipped and reported, not failed.
    """
    return await projects.upsert_projects(identity, body)


@router.get("/{project_id}", response_model=Project, response_model_exclude_none=True)
async def get_project(project_id: str, identity: CurrentIdentity, projects: Projects) -> Project:
    return await projects.get_project(project_id, identity)


@router.delete("/{project_id}", response_model=DeleteResult)
async def delete_project(
    project_id: str, identity: CurrentIdentity, projects: Projects
) -> DeleteResult:
    """Delete a project. Only its owner can; anyone else gets deleted=false."""
    deleted = await projects.delete_project(project_id, identity)
    return DeleteResult(deleted=deleted)


@router.post("/{project_id}/join", response_model=Project, response_model_exclude_none=True)
async def join_project(
    project_id: str, identity: CurrentIdentity, collaboration: Collaboration
) -> Project:
    """Join a project's team by id (invite link)."""
    return await collaboration.join(project_id, identity)


@router.post(
    "/{project_id}/comments",
    response_model=CommentActionResult,
    response_model_exclude_none=True,
)
async def mutate_comment(
    project_id: str,
    request: CommentActionRequest,
    identity: CurrentIdentity,
    collaboration: Collaboration,
) -> CommentActionResult:
    return await collaboration.mutate_comment(
        project_id,
        request.asset_id,
        request.version_id,
        request.action,
        request.payload,
        identity,
    )
