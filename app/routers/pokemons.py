import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import require_admin_role
from app.db import get_db
from app.mappers import map_pokemon
from app.responses import json_success, no_content
from app.schemas import PokemonCreate, PokemonPage, PokemonQuery, PokemonUpdate
from app.services import pokemon_service
from app.session_client import SessionUser

router = APIRouter(prefix="/pokemons", tags=["pokemons"])


@router.get("")
async def list_pokemons(
    search: str | None = Query(None),
    generation_id: uuid.UUID | None = Query(None, alias="generationId"),
    type_id: uuid.UUID | None = Query(None, alias="typeId"),
    weak_to_type_id: uuid.UUID | None = Query(None, alias="weakToTypeId"),
    strong_against_type_id: uuid.UUID | None = Query(None, alias="strongAgainstTypeId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
):
    """
    Paginated Pokémon listing.

    Query params (all optional, combinable):
      - search: case-insensitive substring of the name
      - generationId, typeId: exact match
      - weakToTypeId: holds a type the given type is STRONG_AGAINST
      - strongAgainstTypeId: holds a type that is STRONG_AGAINST the given type
      - page (default 1), pageSize (default 20, max 100)
    """
    query = PokemonQuery(
        search=search,
        generation_id=generation_id,
        type_id=type_id,
        weak_to_type_id=weak_to_type_id,
        strong_against_type_id=strong_against_type_id,
        page=page,
        page_size=page_size,
    )
    total, pokemons = await pokemon_service.list_pokemon(db, query)
    return json_success(
        PokemonPage(
            total=total,
            page=page,
            page_size=page_size,
            results=[map_pokemon(p) for p in pokemons],
        )
    )


@router.post("")
async def create_pokemon(
    data: PokemonCreate,
    user: SessionUser = Depends(require_admin_role),
    db: AsyncSession = Depends(get_db),
):
    pokemon = await pokemon_service.create_pokemon(db, data, user)
    return json_success(map_pokemon(pokemon), status_code=201)


@router.get("/{pokemon_id}")
async def get_pokemon(pokemon_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    pokemon = await pokemon_service.load_pokemon(db, pokemon_id)
    return json_success(map_pokemon(pokemon))


@router.put("/{pokemon_id}")
async def update_pokemon(
    pokemon_id: uuid.UUID,
    data: PokemonUpdate,
    user: SessionUser = Depends(require_admin_role),
    db: AsyncSession = Depends(get_db),
):
    pokemon = await pokemon_service.update_pokemon(db, pokemon_id, data, user)
    return json_success(map_pokemon(pokemon))


@router.delete("/{pokemon_id}", dependencies=[Depends(require_admin_role)])
async def delete_pokemon(pokemon_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await pokemon_service.delete_pokemon(db, pokemon_id)
    return no_content()
