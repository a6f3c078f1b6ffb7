"""Workflow statistics for the dashboard.

``snapshot`` gives the global picture: counts per status and per queue.
``for_actor`` gives one reviewer's view: what waits in their role's queue,
what came back to them after a reject, and what they have done, per action
and per day.
"""

from datetime import date, datetime, time, timedelta, timezone

from pydantic import Field

from src.models.audit import AuditEntry
from src.models.common import ReviewAction, ReviewBase, ReviewRole, ReviewStatus, utc_now
from src.repositories.audit import AuditTrailRepository
from src.repositories.records import RecordRepository
from src.workflow.roles import RoleRegistry


class WorkflowSnapshot(ReviewBase):
    total: int
    by_status: dict[ReviewStatus, int] = Field(default_factory=dict)
    by_role: dict[ReviewRole, int] = Field(default_factory=dict)
    completion_rate: float = Field(..., ge=0.0, le=1.0)


class DailyActivity(ReviewBase):
    day: date
    transitions: int = 0


class ActorStats(ReviewBase):
    """One actor's dashboard. Queue counts are zero for an actor with no role."""

    actor_id: str
    role: ReviewRole | None = None
    queue_states: list[ReviewStatus] = Field(default_factory=list)
    pending: int = 0
    returned: int = 0
    completed_today: int = 0
    actions: dict[ReviewAction, int] = Field(default_factory=dict)
    daily_activity: list[DailyActivity] = Field(default_factory=list)
    recent: list[AuditEntry] = Field(default_factory=list)


class WorkflowStats:
    def __init__(
        self,
        records: RecordRepository,
        audit: AuditTrailRepository,
        roles: RoleRegistry,
    ) -> None:
        self._records = records
        self._audit = audit
        self._roles = roles

    async def snapshot(self) -> WorkflowSnapshot:
        """Zero-filled counts; completion_rate is the terminal share of all records."""
        counts = await self._records.count_by_status()
        by_status = {status: counts.get(status, 0) for status in ReviewStatus}
        queues = await self._records.count_by_role()
        by_role = {role: queues.get(role, 0) for role in ReviewRole}

        total = sum(by_status.values())
        done = sum(count for status, count in by_status.items() if status.is_terminal)
        return WorkflowSnapshot(
            total=total,
            by_status=by_status,
            by_role=by_role,
            completion_rate=done / total if total else 0.0,
        )

    async def daily_activity(
        self, *, days: int = 30, actor_id: str | None = None,
    ) -> list[DailyActivity]:
        """Transitions per UTC day for the last ``days`` days, today last, gaps as zero."""
        today = utc_now().date()
        first_day = today - timedelta(days=days - 1)
        since = datetime.combine(first_day, time.min, tzinfo=timezone.utc)
        counts = await self._audit.daily_counts(since, actor_id=actor_id)
        return [
            DailyActivity(day=day, transitions=counts.get(day, 0))
            for day in (first_day + timedelta(days=offset) for offset in range(days))
        ]

    async def for_actor(
        self, actor_id: str, *, days: int = 30, recent: int = 10,
    ) -> ActorStats:
        role = await self._roles.role_of(actor_id)
        states = self._roles.states_for(role) if role is not None else []
        pending = returned = 0
        if states:
            pending = await self._records.count_queue(states, actor_id=actor_id)
            returned = await self._records.count_returned(states, actor_id=actor_id)

        performed = await self._audit.count_by_action(actor_id)
        daily = await self.daily_activity(days=days, actor_id=actor_id)
        return ActorStats(
            actor_id=actor_id,
            role=role,
            queue_states=states,
            pending=pending,
            returned=returned,
            completed_today=daily[-1].transitions,
            actions={action: performed.get(action, 0) for action in ReviewAction},
            daily_activity=daily,
            recent=await self._audit.list_by_actor(actor_id, limit=recent),
        )
