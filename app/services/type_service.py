import logging
import uuid

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db import atomic
from app.errors import ConflictError, Issue, NotFoundError, ValidationError
from app.models import PokemonType, Type, TypeRelation, TypeRelationship
from app.schemas import TypeCreate, TypeRelationsInput, TypeUpdate
from app.services.lookups import missing_ids, not_found_issues
from app.utils import dedupe, normalize_color, slugify

logger = logging.getLogger(__name__)

TYPE_LOAD_OPTIONS = (
    selectinload(Type.relationships_from).selectinload(TypeRelationship.target_type),
    selectinload(Type.relationships_to).selectinload(TypeRelationship.source_type),
)

# (request field, JSON name, stored relation)
RELATION_FIELDS = (
    ("strong_against", "strongAgainst", TypeRelation.STRONG_AGAINST),
    ("weak_against", "weakAgainst", TypeRelation.WEAK_AGAINST),
    ("immune_to", "immuneTo", TypeRelation.IMMUNE_TO),
)


async def list_types(db: AsyncSession) -> list[Type]:
    result = await db.execute(
        select(Type).order_by(Type.name.asc()).options(*TYPE_LOAD_OPTIONS)
    )
    return list(result.scalars().all())


async def load_type(db: AsyncSession, type_id: uuid.UUID) -> Type:
    """Type with both edge directions loaded, refreshed from the database."""
    result = await db.execute(
        select(Type)
        .where(Type.id == type_id)
        .options(*TYPE_LOAD_OPTIONS)
        .execution_options(populate_existing=True)
    )
    type_ = result.scalar_one_or_none()
    if type_ is None:
        raise NotFoundError("Type not found")
    return type_


async def check_type_ids(db: AsyncSession, type_ids: list[uuid.UUID], path: str) -> list[Issue]:
    missing = await missing_ids(db, Type, type_ids)
    return not_found_issues(path, type_ids, missing, "Type")


async def _check_relations(db: AsyncSession, relations: TypeRelationsInput) -> list[Issue]:
    issues = []
    for field, json_name, _ in RELATION_FIELDS:
        issues += await check_type_ids(db, getattr(relations, field), f"relations.{json_name}")
    return issues


def _relation_rows(type_id: uuid.UUID, relations: TypeRelationsInput) -> list[TypeRelationship]:
    rows = []
    for field, _, relation in RELATION_FIELDS:
        for target_id in dedupe(getattr(relations, field)):
            rows.append(
                TypeRelationship(
                    source_type_id=type_id,
                    target_type_id=target_id,
                    relation=relation,
                )
            )
    return rows


def _slug_issue(field: str) -> Issue:
    return Issue(path=field, rule="invalid_slug", message="Must contain at least one letter or digit")


async def create_type(db: AsyncSession, data: TypeCreate) -> Type:
    slug = slugify(data.slug or data.name)
    issues = [] if slug else [_slug_issue("slug" if data.slug else "name")]
    issues += await _check_relations(db, data.relations)
    if issues:
        raise ValidationError(issues)

    async with atomic(db):
        type_ = Type(
            name=data.name,
            slug=slug,
            description=data.description,
            color_hex=normalize_color(data.color_hex),
        )
        db.add(type_)
        await db.flush()
        db.add_all(_relation_rows(type_.id, data.relations))

    logger.info("Created type %s (%s)", type_.slug, type_.id)
    return await load_type(db, type_.id)


async def update_type(db: AsyncSession, type_id: uuid.UUID, data: TypeUpdate) -> Type:
    """
    Partial update. When `relations` is present every outgoing edge of the
    type is replaced; incoming edges belong to the other types and stay.
    """
    type_ = await db.get(Type, type_id)
    if type_ is None:
        raise NotFoundError("Type not found")

    fields = data.model_fields_set
    issues = []

    new_slug = None
    if data.slug:
        new_slug = slugify(data.slug)
        if not new_slug:
            issues.append(_slug_issue("slug"))
    elif "name" in fields:
        new_slug = slugify(data.name)
        if not new_slug:
            issues.append(_slug_issue("name"))

    relations = None
    if "relations" in fields:
        relations = data.relations or TypeRelationsInput()
        issues += await _check_relations(db, relations)

    if issues:
        raise ValidationError(issues)

    async with atomic(db):
        if "name" in fields:
            type_.name = data.name
        if new_slug:
            type_.slug = new_slug
        if "description" in fields:
            type_.description = data.description
        if "color_hex" in fields:
            type_.color_hex = normalize_color(data.color_hex)

        if relations is not None:
            await db.execute(
                delete(TypeRelationship).where(TypeRelationship.source_type_id == type_id)
            )
            db.add_all(_relation_rows(type_id, relations))

    logger.info("Updated type %s", type_id)
    return await load_type(db, type_id)


async def delete_type(db: AsyncSession, type_id: uuid.UUID) -> None:
    """Refuses with ConflictError while any Pokémon holds the type."""
    type_ = await db.get(Type, type_id)
    if type_ is None:
        raise NotFoundError("Type not found")

    usage_count = await db.scalar(
        select(func.count()).select_from(PokemonType).where(PokemonType.type_id == type_id)
    )
    if usage_count:
        raise ConflictError("Type is in use by Pokémon and cannot be deleted")

    async with atomic(db):
        await db.execute(
            delete(TypeRelationship).where(
                or_(
                    TypeRelationship.source_type_id == type_id,
                    TypeRelationship.target_type_id == type_id,
                )
            )
        )
        await db.execute(delete(Type).where(Type.id == type_id))

    logger.info("Deleted type %s", type_id)
