import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import require_admin_role
from app.db import get_db
from app.mappers import map_generation
from app.responses import json_success, no_content
from app.schemas import GenerationCreate, GenerationUpdate
from app.services import generation_service

router = APIRouter(prefix="/generations", tags=["generations"])


@router.get("")
async def list_generations(db: AsyncSession = Depends(get_db)):
    """All generations ordered by number."""
    generations = await generation_service.list_generations(db)
    return json_success([map_generation(g) for g in generations])


@router.post("", dependencies=[Depends(require_admin_role)])
async def create_generation(data: GenerationCreate, db: AsyncSession = Depends(get_db)):
    generation = await generation_service.create_generation(db, data)
    return json_success(map_generation(generation), status_code=201)


@router.get("/{generation_id}")
async def get_generation(generation_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    generation = await generation_service.get_generation(db, generation_id)
    return json_success(map_generation(generation))


@router.put("/{generation_id}", dependencies=[Depends(require_admin_role)])
async def update_generation(
    generation_id: uuid.UUID,
    data: GenerationUpdate,
    db: AsyncSession = Depends(get_db),
):
    generation = await generation_service.update_generation(db, generation_id, data)
    return json_success(map_generation(generation))


@router.delete("/{generation_id}", dependencies=[Depends(require_admin_role)])
async def delete_generation(generation_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """
    204 on success, 409 while Pokémon still belong to the generation.
    """
    await generation_service.delete_generation(db, generation_id)
    return no_content()
