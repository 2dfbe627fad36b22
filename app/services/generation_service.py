import logging
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import atomic
from app.errors import ConflictError, NotFoundError
from app.models import Generation, Pokemon
from app.schemas import GenerationCreate, GenerationUpdate

logger = logging.getLogger(__name__)


async def list_generations(db: AsyncSession) -> list[Generation]:
    result = await db.execute(select(Generation).order_by(Generation.number.asc()))
    return list(result.scalars().all())


async def get_generation(db: AsyncSession, generation_id: uuid.UUID) -> Generation:
    generation = await db.get(Generation, generation_id)
    if generation is None:
        raise NotFoundError("Generation not found")
    return generation


async def create_generation(db: AsyncSession, data: GenerationCreate) -> Generation:
    async with atomic(db):
        generation = Generation(
            name=data.name,
            number=data.number,
            description=data.description,
            released_at=data.released_at,
        )
        db.add(generation)

    await db.refresh(generation)
    logger.info("Created generation %s (%s)", generation.number, generation.id)
    return generation


async def update_generation(
    db: AsyncSession,
    generation_id: uuid.UUID,
    data: GenerationUpdate,
) -> Generation:
    generation = await get_generation(db, generation_id)

    async with atomic(db):
        # Only fields present in the body are written
        for field in data.model_fields_set:
            setattr(generation, field, getattr(data, field))

    await db.refresh(generation)
    logger.info("Updated generation %s", generation.id)
    return generation


async def delete_generation(db: AsyncSession, generation_id: uuid.UUID) -> None:
    """Refuses with ConflictError while any Pokémon belongs to the generation."""
    await get_generation(db, generation_id)

    usage_count = await db.scalar(
        select(func.count()).select_from(Pokemon).where(Pokemon.generation_id == generation_id)
    )
    if usage_count:
        raise ConflictError("Generation is associated with Pokémon and cannot be deleted")

    async with atomic(db):
        await db.execute(delete(Generation).where(Generation.id == generation_id))

    logger.info("Deleted generation %s", generation_id)
