import logging
import uuid
from typing import Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db import atomic
from app.errors import Issue, NotFoundError, ValidationError
from app.models import (
    Generation,
    MediaKind,
    Pokemon,
    PokemonEvolution,
    PokemonMedia,
    PokemonType,
    TypeRelation,
    TypeRelationship,
)
from app.schemas import BaseStatsInput, MediaInput, PokemonCreate, PokemonQuery, PokemonUpdate
from app.services.lookups import missing_ids, not_found_issues
from app.services.type_service import check_type_ids
from app.session_client import SessionUser
from app.utils import dedupe, slugify

logger = logging.getLogger(__name__)

POKEMON_LOAD_OPTIONS = (
    selectinload(Pokemon.generation),
    selectinload(Pokemon.type_slots).selectinload(PokemonType.type),
    selectinload(Pokemon.media),
    selectinload(Pokemon.primary_image_media),
    selectinload(Pokemon.primary_audio_media),
    selectinload(Pokemon.evolutions_from).selectinload(PokemonEvolution.to_pokemon),
    selectinload(Pokemon.evolutions_to).selectinload(PokemonEvolution.from_pokemon),
)

# baseStats key -> pokemon column
STAT_COLUMNS = {
    "hp": "base_hp",
    "attack": "base_attack",
    "defense": "base_defense",
    "sp_attack": "base_sp_attack",
    "sp_defense": "base_sp_defense",
    "speed": "base_speed",
}

SCALAR_FIELDS = (
    "name",
    "index_number",
    "generation_id",
    "classification",
    "description",
    "height_meters",
    "weight_kilograms",
    "is_legendary",
    "is_mythical",
)


# ---- Listing ----
def build_filters(query: PokemonQuery) -> list:
    """WHERE clauses for the listing; every filter given is ANDed."""
    filters = []

    if query.search:
        filters.append(Pokemon.name.icontains(query.search, autoescape=True))

    if query.generation_id:
        filters.append(Pokemon.generation_id == query.generation_id)

    if query.type_id:
        filters.append(Pokemon.type_slots.any(PokemonType.type_id == query.type_id))

    if query.weak_to_type_id:
        # Types that the given type is STRONG_AGAINST
        targets = select(TypeRelationship.target_type_id).where(
            TypeRelationship.source_type_id == query.weak_to_type_id,
            TypeRelationship.relation == TypeRelation.STRONG_AGAINST,
        )
        filters.append(Pokemon.type_slots.any(PokemonType.type_id.in_(targets)))

    if query.strong_against_type_id:
        # Types with a STRONG_AGAINST edge pointing at the given type
        sources = select(TypeRelationship.source_type_id).where(
            TypeRelationship.target_type_id == query.strong_against_type_id,
            TypeRelationship.relation == TypeRelation.STRONG_AGAINST,
        )
        filters.append(Pokemon.type_slots.any(PokemonType.type_id.in_(sources)))

    return filters


async def list_pokemon(db: AsyncSession, query: PokemonQuery) -> tuple[int, list[Pokemon]]:
    """
    Returns (total matches, requested page), ordered by generation number
    then index number.
    """
    filters = build_filters(query)

    total = await db.scalar(select(func.count()).select_from(Pokemon).where(*filters))

    result = await db.execute(
        select(Pokemon)
        .join(Pokemon.generation)
        .where(*filters)
        .order_by(Generation.number.asc(), Pokemon.index_number.asc())
        .offset((query.page - 1) * query.page_size)
        .limit(query.page_size)
        .options(*POKEMON_LOAD_OPTIONS)
    )
    return total or 0, list(result.scalars().all())


async def load_pokemon(db: AsyncSession, pokemon_id: uuid.UUID) -> Pokemon:
    """Pokémon with everything the view mapper needs, refreshed from the database."""
    result = await db.execute(
        select(Pokemon)
        .where(Pokemon.id == pokemon_id)
        .options(*POKEMON_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    pokemon = result.scalar_one_or_none()
    if pokemon is None:
        raise NotFoundError("Pokémon not found")
    return pokemon


# ---- Write helpers ----
def select_primary_media(items: Sequence[MediaInput]) -> dict[MediaKind, int]:
    """
    Position of the primary item for each media kind present in `items`.

    The first item flagged `is_primary` wins; without a flag, the first item
    of that kind does. Only input order matters, never storage order.
    """
    chosen: dict[MediaKind, int] = {}
    flagged: set[MediaKind] = set()
    for index, item in enumerate(items):
        if item.kind in flagged:
            continue
        if item.is_primary:
            chosen[item.kind] = index
            flagged.add(item.kind)
        elif item.kind not in chosen:
            chosen[item.kind] = index
    return chosen


def _stat_values(stats: BaseStatsInput | None) -> dict:
    return {column: getattr(stats, key) if stats else None for key, column in STAT_COLUMNS.items()}


async def _replace_types(db: AsyncSession, pokemon_id: uuid.UUID, type_ids: list[uuid.UUID]) -> None:
    await db.execute(delete(PokemonType).where(PokemonType.pokemon_id == pokemon_id))
    db.add_all(
        [
            PokemonType(pokemon_id=pokemon_id, type_id=type_id, slot=slot)
            for slot, type_id in enumerate(type_ids, start=1)
        ]
    )


async def _replace_media(db: AsyncSession, pokemon: Pokemon, items: list[MediaInput]) -> None:
    # Drop the pointers first so no row references media about to be deleted
    pokemon.primary_image_media_id = None
    pokemon.primary_audio_media_id = None
    await db.flush()
    await db.execute(delete(PokemonMedia).where(PokemonMedia.pokemon_id == pokemon.id))

    primary = select_primary_media(items)
    rows = [
        PokemonMedia(
            pokemon_id=pokemon.id,
            kind=item.kind,
            url=item.url,
            title=item.title,
            is_primary=primary.get(item.kind) == index,
            position=index,
        )
        for index, item in enumerate(items)
    ]
    db.add_all(rows)
    await db.flush()

    if MediaKind.IMAGE in primary:
        pokemon.primary_image_media_id = rows[primary[MediaKind.IMAGE]].id
    if MediaKind.AUDIO in primary:
        pokemon.primary_audio_media_id = rows[primary[MediaKind.AUDIO]].id


async def _replace_evolutions(
    db: AsyncSession,
    pokemon_id: uuid.UUID,
    pre_evolution_id: uuid.UUID | None,
    next_evolution_ids: list[uuid.UUID] | None,
) -> None:
    """Rebuild every edge touching the Pokémon from the two payload fields."""
    await db.execute(
        delete(PokemonEvolution).where(
            or_(
                PokemonEvolution.from_pokemon_id == pokemon_id,
                PokemonEvolution.to_pokemon_id == pokemon_id,
            )
        )
    )

    next_ids = dedupe(next_evolution_ids or [])
    rows = []
    if pre_evolution_id:
        rows.append(PokemonEvolution(from_pokemon_id=pre_evolution_id, to_pokemon_id=pokemon_id))
    rows += [PokemonEvolution(from_pokemon_id=pokemon_id, to_pokemon_id=next_id) for next_id in next_ids]
    db.add_all(rows)


async def _check_references(
    db: AsyncSession,
    pokemon_id: uuid.UUID | None,
    fields: set[str],
    data: PokemonCreate | PokemonUpdate,
) -> list[Issue]:
    """Cross-row checks that a schema alone cannot express."""
    issues = []

    if "generation_id" in fields and data.generation_id:
        if await missing_ids(db, Generation, [data.generation_id]):
            issues.append(
                Issue(path="generationId", rule="not_found", message="Generation does not exist")
            )

    if "type_ids" in fields and data.type_ids:
        seen = set()
        for index, type_id in enumerate(data.type_ids):
            if type_id in seen:
                issues.append(
                    Issue(path=f"typeIds.{index}", rule="duplicate", message="Type listed more than once")
                )
            seen.add(type_id)
        issues += await check_type_ids(db, data.type_ids, "typeIds")

    next_ids = data.next_evolution_ids or []
    pre_id = data.pre_evolution_id
    if pre_id:
        if pre_id == pokemon_id:
            issues.append(
                Issue(path="preEvolutionId", rule="self_reference", message="A Pokémon cannot evolve from itself")
            )
        elif await missing_ids(db, Pokemon, [pre_id]):
            issues.append(Issue(path="preEvolutionId", rule="not_found", message="Pokémon does not exist"))
        if pre_id in next_ids:
            issues.append(
                Issue(
                    path="preEvolutionId",
                    rule="conflict",
                    message="A Pokémon cannot be both pre-evolution and evolution",
                )
            )

    if next_ids:
        for index, next_id in enumerate(next_ids):
            if next_id == pokemon_id:
                issues.append(
                    Issue(
                        path=f"nextEvolutionIds.{index}",
                        rule="self_reference",
                        message="A Pokémon cannot evolve into itself",
                    )
                )
        others = [next_id for next_id in next_ids if next_id != pokemon_id]
        missing = await missing_ids(db, Pokemon, others)
        issues += not_found_issues("nextEvolutionIds", next_ids, missing, "Pokémon")

        # A Pokémon has a single pre-evolution; one owned by another Pokémon is not taken over
        claimed = await _claimed_targets(db, pokemon_id, others)
        issues += [
            Issue(
                path=f"nextEvolutionIds.{index}",
                rule="conflict",
                message="Pokémon already evolves from another Pokémon",
            )
            for index, next_id in enumerate(next_ids)
            if next_id in claimed
        ]

    if pre_id and next_ids and pre_id != pokemon_id:
        ancestors = await _ancestors(db, pre_id, pokemon_id)
        issues += [
            Issue(
                path=f"nextEvolutionIds.{index}",
                rule="cycle",
                message="Evolution chain would loop back on itself",
            )
            for index, next_id in enumerate(next_ids)
            if next_id in ancestors and next_id != pre_id
        ]

    return issues


async def _claimed_targets(
    db: AsyncSession,
    pokemon_id: uuid.UUID | None,
    target_ids: list[uuid.UUID],
) -> set[uuid.UUID]:
    """Targets among `target_ids` whose incoming edge comes from another Pokémon."""
    if not target_ids:
        return set()
    stmt = select(PokemonEvolution.to_pokemon_id).where(PokemonEvolution.to_pokemon_id.in_(target_ids))
    if pokemon_id is not None:
        stmt = stmt.where(PokemonEvolution.from_pokemon_id != pokemon_id)
    return set((await db.scalars(stmt)).all())


async def _ancestors(
    db: AsyncSession,
    start_id: uuid.UUID,
    pokemon_id: uuid.UUID | None,
) -> set[uuid.UUID]:
    """
    Every Pokémon `start_id` evolves from, directly or not, plus `start_id`.

    Edges touching `pokemon_id` are skipped: they are about to be rebuilt.
    """
    seen = {start_id}
    current = start_id
    while True:
        stmt = select(PokemonEvolution.from_pokemon_id).where(PokemonEvolution.to_pokemon_id == current)
        if pokemon_id is not None:
            stmt = stmt.where(PokemonEvolution.from_pokemon_id != pokemon_id)
        parent = (await db.scalars(stmt)).first()
        if parent is None or parent in seen:
            return seen
        seen.add(parent)
        current = parent


# ---- Operations ----
async def create_pokemon(db: AsyncSession, data: PokemonCreate, user: SessionUser) -> Pokemon:
    slug = slugify(data.slug or data.name)
    issues = [] if slug else [
        Issue(path="slug" if data.slug else "name", rule="invalid_slug", message="Must contain at least one letter or digit")
    ]
    issues += await _check_references(db, None, set(PokemonCreate.model_fields), data)
    if issues:
        raise ValidationError(issues)

    async with atomic(db):
        pokemon = Pokemon(
            name=data.name,
            slug=slug,
            index_number=data.index_number,
            generation_id=data.generation_id,
            classification=data.classification,
            description=data.description,
            height_meters=data.height_meters,
            weight_kilograms=data.weight_kilograms,
            is_legendary=data.is_legendary,
            is_mythical=data.is_mythical,
            created_by_id=user.id,
            updated_by_id=user.id,
            **_stat_values(data.base_stats),
        )
        db.add(pokemon)
        await db.flush()

        await _replace_types(db, pokemon.id, data.type_ids)
        if data.media:
            await _replace_media(db, pokemon, data.media)
        if data.pre_evolution_id or data.next_evolution_ids:
            await _replace_evolutions(db, pokemon.id, data.pre_evolution_id, data.next_evolution_ids)

    logger.info("Created Pokémon #%d %s (%s)", pokemon.index_number, pokemon.slug, pokemon.id)
    return await load_pokemon(db, pokemon.id)


async def update_pokemon(
    db: AsyncSession,
    pokemon_id: uuid.UUID,
    data: PokemonUpdate,
    user: SessionUser,
) -> Pokemon:
    """
    Field-level partial update.

    Absent fields are kept. `typeIds` and `media` replace every existing
    row when present. `preEvolutionId` / `nextEvolutionIds`: when either is
    present, all edges touching the Pokémon are rebuilt from the two
    fields, an absent one counting as empty.
    """
    pokemon = await db.get(Pokemon, pokemon_id)
    if pokemon is None:
        raise NotFoundError("Pokémon not found")

    fields = data.model_fields_set
    issues = []

    new_slug = None
    slug_source = data.slug or (data.name if "name" in fields else None)
    if slug_source:
        new_slug = slugify(slug_source)
        if not new_slug:
            issues.append(
                Issue(path="slug" if data.slug else "name", rule="invalid_slug", message="Must contain at least one letter or digit")
            )

    issues += await _check_references(db, pokemon_id, fields, data)
    if issues:
        raise ValidationError(issues)

    async with atomic(db):
        for field in SCALAR_FIELDS:
            if field in fields:
                setattr(pokemon, field, getattr(data, field))
        if new_slug:
            pokemon.slug = new_slug

        if "base_stats" in fields:
            if data.base_stats is None:
                stat_values = _stat_values(None)
            else:
                stat_values = {
                    STAT_COLUMNS[key]: getattr(data.base_stats, key)
                    for key in data.base_stats.model_fields_set
                }
            for column, value in stat_values.items():
                setattr(pokemon, column, value)

        pokemon.updated_by_id = user.id

        if "type_ids" in fields:
            await _replace_types(db, pokemon_id, data.type_ids)
        if "media" in fields:
            await _replace_media(db, pokemon, data.media or [])
        if "pre_evolution_id" in fields or "next_evolution_ids" in fields:
            await _replace_evolutions(db, pokemon_id, data.pre_evolution_id, data.next_evolution_ids)

    logger.info("Updated Pokémon %s", pokemon_id)
    return await load_pokemon(db, pokemon_id)


async def delete_pokemon(db: AsyncSession, pokemon_id: uuid.UUID) -> None:
    """Removes media, type slots and evolution edges, then the Pokémon itself."""
    pokemon = await db.get(Pokemon, pokemon_id)
    if pokemon is None:
        raise NotFoundError("Pokémon not found")

    async with atomic(db):
        pokemon.primary_image_media_id = None
        pokemon.primary_audio_media_id = None
        await db.flush()
        await db.execute(delete(PokemonMedia).where(PokemonMedia.pokemon_id == pokemon_id))
        await db.execute(delete(PokemonType).where(PokemonType.pokemon_id == pokemon_id))
        await db.execute(
            delete(PokemonEvolution).where(
                or_(
                    PokemonEvolution.from_pokemon_id == pokemon_id,
                    PokemonEvolution.to_pokemon_id == pokemon_id,
                )
            )
        )
        await db.execute(delete(Pokemon).where(Pokemon.id == pokemon_id))

    logger.info("Deleted Pokémon %s", pokemon_id)
