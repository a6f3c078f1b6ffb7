"""Seed script — load demo actors and survey records into the review database.

Creates:
1. One actor per workflow role (Interviewer-A, Supervisor-B, Examiner-C)
2. A demo household survey with 12 imported responses, all in PENDING_A

Idempotent: actor roles are upserts and responses are deduplicated by
(survey_id, response_id), so running twice adds nothing.

Usage:
    python -m scripts.seed          # against DATABASE_URL from .env
    pytest tests/scripts/test_seed.py  # against aiosqlite in-memory
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.common import ReviewRole
from src.models.record import ImportedResponse, ImportSummary
from src.repositories.actors import ActorRoleRepository
from src.repositories.records import RecordRepository
from src.workflow.config import get_workflow_config
from src.workflow.importer import RecordImporter
from src.workflow.roles import RoleRegistry

DEMO_SURVEY_ID = "HH-DEMO-2026"

DEMO_ACTORS: list[tuple[str, ReviewRole, str]] = [
    ("enum-01", ReviewRole.INTERVIEWER_A, "Field Interviewer 01"),
    ("sup-01", ReviewRole.SUPERVISOR_B, "District Supervisor 01"),
    ("exam-01", ReviewRole.EXAMINER_C, "Central Examiner 01"),
]

_DISTRICTS = ["North", "South", "East", "West"]


def demo_responses(count: int = 12) -> list[ImportedResponse]:
    """Deterministic household answers; response ids are stable across runs."""
    return [
        ImportedResponse(
            response_id=f"resp-{i:03d}",
            payload={
                "household_size": 2 + i % 5,
                "district": _DISTRICTS[i % len(_DISTRICTS)],
                "has_electricity": i % 3 != 0,
                "monthly_income": 1500 + 250 * i,
            },
        )
        for i in range(1, count + 1)
    ]


async def seed_actors(session: AsyncSession) -> int:
    """Assign the demo roles. Returns the number of actors seeded."""
    repo = ActorRoleRepository(session)
    for actor_id, role, display_name in DEMO_ACTORS:
        await repo.assign(actor_id, role, display_name=display_name)
    return len(DEMO_ACTORS)


async def seed_records(session: AsyncSession) -> ImportSummary:
    actors = ActorRoleRepository(session)
    importer = RecordImporter(
        records=RecordRepository(session),
        roles=RoleRegistry(actors, get_workflow_config()),
    )
    return await importer.import_batch(DEMO_SURVEY_ID, demo_responses())


async def seed_demo(session: AsyncSession) -> dict:
    """Seed actors and records. Does not commit."""
    actor_count = await seed_actors(session)
    summary = await seed_records(session)
    return {
        "survey_id": DEMO_SURVEY_ID,
        "actor_count": actor_count,
        "created": summary.created,
        "skipped": summary.skipped,
        "already_seeded": summary.created == 0,
    }


async def _run_seed() -> None:
    """Entry point: seed using the real database session."""
    from src.db.session import async_session_factory

    async with async_session_factory() as session:
        result = await seed_demo(session)
        await session.commit()

    if result["already_seeded"]:
        print(f"Demo survey {DEMO_SURVEY_ID} already seeded. Nothing imported.")
        return

    print("Seed complete.")
    print(f"  Survey:   {result['survey_id']}")
    print(f"  Actors:   {result['actor_count']}")
    print(f"  Records:  {result['created']} created, {result['skipped']} skipped")
    print()
    print(f"  {'Actor':<10} {'Role':<15} Name")
    print(f"  {'─' * 10} {'─' * 15} {'─' * 24}")
    for actor_id, role, display_name in DEMO_ACTORS:
        print(f"  {actor_id:<10} {role.value:<15} {display_name}")


if __name__ == "__main__":
    asyncio.run(_run_seed())
