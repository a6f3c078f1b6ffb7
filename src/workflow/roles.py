"""Role registry — who may act on which review state.

The single authorization table lives here. The engine asks
``can_act(role, status)`` and never re-derives the policy.
Role assignment itself belongs to the identity provider; this module only
reads it.
"""

from collections.abc import Mapping
from typing import Protocol

from src.models.common import ReviewRole, ReviewStatus
from src.workflow.config import WorkflowConfig

DEFAULT_STATE_ROLES: dict[ReviewStatus, ReviewRole] = {
    ReviewStatus.PENDING_A: ReviewRole.INTERVIEWER_A,
    ReviewStatus.PENDING_B: ReviewRole.SUPERVISOR_B,
    ReviewStatus.PENDING_C: ReviewRole.EXAMINER_C,
}


class IdentityProvider(Protocol):
    """Resolves an actor to their workflow role, or None."""

    async def role_of(self, actor_id: str) -> ReviewRole | None:
        ...


class StaticIdentityProvider:
    """Fixed actor → role mapping, for scripts and tests."""

    def __init__(self, roles: Mapping[str, ReviewRole] | None = None) -> None:
        self._roles = dict(roles or {})

    async def role_of(self, actor_id: str) -> ReviewRole | None:
        return self._roles.get(actor_id)


class RoleRegistry:
    """Read-only view over actor roles and the state → role table."""

    def __init__(
        self,
        identity: IdentityProvider,
        config: WorkflowConfig | None = None,
    ) -> None:
        self._identity = identity
        overrides = config.state_role_overrides if config is not None else {}
        self._state_roles = {**DEFAULT_STATE_ROLES, **overrides}

    async def role_of(self, actor_id: str) -> ReviewRole | None:
        return await self._identity.role_of(actor_id)

    def authorized_role(self, status: ReviewStatus) -> ReviewRole | None:
        """The role that owns ``status``; None for terminal states."""
        if status.is_terminal:
            return None
        return self._state_roles[status]

    def can_act(self, role: ReviewRole | None, status: ReviewStatus) -> bool:
        if role is None:
            return False
        return self.authorized_role(status) == role

    def states_for(self, role: ReviewRole) -> list[ReviewStatus]:
        """States whose queue belongs to ``role``."""
        return [s for s, r in self._state_roles.items() if r == role]
