"""FastAPI actor role administration.

GET    /v1/actors/{actor_id}/role — current workflow role (null if none)
PUT    /v1/actors/{actor_id}/role — assign or replace the role
DELETE /v1/actors/{actor_id}/role — revoke the role
GET    /v1/actors?role=...        — actors holding a role
GET    /v1/actors/{actor_id}/stats — queue, returned items and activity for one actor
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from src.api.dependencies import get_actor_role_repo, get_workflow_stats
from src.models.common import ReviewRole
from src.repositories.actors import ActorRoleRepository
from src.workflow.stats import ActorStats, WorkflowStats

router = APIRouter(prefix="/v1/actors", tags=["actors"])


class RoleAssignmentRequest(BaseModel):
    role: ReviewRole
    display_name: str = Field(default="", max_length=200)


class ActorRoleResponse(BaseModel):
    actor_id: str
    role: ReviewRole | None
    display_name: str = ""


@router.get("", response_model=list[ActorRoleResponse])
async def list_actors(
    role: ReviewRole,
    repo: ActorRoleRepository = Depends(get_actor_role_repo),
) -> list[ActorRoleResponse]:
    rows = await repo.list_by_role(role)
    return [
        ActorRoleResponse(actor_id=r.actor_id, role=ReviewRole(r.role), display_name=r.display_name)
        for r in rows
    ]


@router.get("/{actor_id}/role", response_model=ActorRoleResponse)
async def get_role(
    actor_id: str,
    repo: ActorRoleRepository = Depends(get_actor_role_repo),
) -> ActorRoleResponse:
    return ActorRoleResponse(actor_id=actor_id, role=await repo.role_of(actor_id))


@router.put("/{actor_id}/role", response_model=ActorRoleResponse)
async def assign_role(
    actor_id: str,
    body: RoleAssignmentRequest,
    repo: ActorRoleRepository = Depends(get_actor_role_repo),
) -> ActorRoleResponse:
    """Assign a role; an actor holds at most one, so any previous role is replaced."""
    row = await repo.assign(actor_id, body.role, display_name=body.display_name)
    return ActorRoleResponse(
        actor_id=row.actor_id, role=ReviewRole(row.role), display_name=row.display_name,
    )


@router.delete("/{actor_id}/role", status_code=204)
async def revoke_role(
    actor_id: str,
    repo: ActorRoleRepository = Depends(get_actor_role_repo),
) -> None:
    if not await repo.remove(actor_id):
        raise HTTPException(status_code=404, detail=f"Actor {actor_id} holds no role.")


@router.get("/{actor_id}/stats", response_model=ActorStats)
async def get_actor_stats(
    actor_id: str,
    days: int = Query(default=30, ge=1, le=90),
    stats: WorkflowStats = Depends(get_workflow_stats),
) -> ActorStats:
    """Dashboard numbers for one actor, scoped to the queue of their current role."""
    return await stats.for_actor(actor_id, days=days)
