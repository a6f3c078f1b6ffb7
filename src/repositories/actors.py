"""Actor role repository — database-backed identity provider.

Roles are assigned by administrators; the workflow core only calls
``role_of``. An actor holds at most one workflow role (PK on actor_id).
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import ActorRoleRow
from src.models.common import ReviewRole, utc_now


class ActorRoleRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def role_of(self, actor_id: str) -> ReviewRole | None:
        row = await self._session.get(ActorRoleRow, actor_id)
        return ReviewRole(row.role) if row is not None else None

    async def assign(
        self, actor_id: str, role: ReviewRole, *, display_name: str = "",
    ) -> ActorRoleRow:
        """Give ``actor_id`` the role, replacing any role it held."""
        row = await self._session.get(ActorRoleRow, actor_id)
        if row is None:
            row = ActorRoleRow(
                actor_id=actor_id, role=role,
                display_name=display_name, assigned_at=utc_now(),
            )
            self._session.add(row)
        else:
            row.role = role
            row.display_name = display_name or row.display_name
            row.assigned_at = utc_now()
        await self._session.flush()
        return row

    async def remove(self, actor_id: str) -> bool:
        """Revoke the actor's role. Returns True if one was held."""
        result = await self._session.execute(
            delete(ActorRoleRow).where(ActorRoleRow.actor_id == actor_id)
        )
        await self._session.flush()
        return result.rowcount > 0

    async def list_by_role(self, role: ReviewRole) -> list[ActorRoleRow]:
        result = await self._session.execute(
            select(ActorRoleRow)
            .where(ActorRoleRow.role == role)
            .order_by(ActorRoleRow.actor_id)
        )
        return list(result.scalars().all())
