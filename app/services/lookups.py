import uuid
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import Issue


async def missing_ids(db: AsyncSession, model, ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
    """Ids from `ids` that have no row in `model`'s table."""
    wanted = set(ids)
    if not wanted:
        return set()
    result = await db.scalars(select(model.id).where(model.id.in_(wanted)))
    return wanted - set(result.all())


def not_found_issues(
    path: str,
    ids: Sequence[uuid.UUID],
    missing: set[uuid.UUID],
    label: str,
) -> list[Issue]:
    """One issue per position in `ids` whose value is in `missing`."""
    return [
        Issue(path=f"{path}.{index}", rule="not_found", message=f"{label} {value} does not exist")
        for index, value in enumerate(ids)
        if value in missing
    ]
