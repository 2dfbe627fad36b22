import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import require_admin_role
from app.db import get_db
from app.mappers import map_type
from app.responses import json_success, no_content
from app.schemas import TypeCreate, TypeUpdate
from app.services import type_service

router = APIRouter(prefix="/types", tags=["types"])


@router.get("")
async def list_types(db: AsyncSession = Depends(get_db)):
    types = await type_service.list_types(db)
    return json_success([map_type(t) for t in types])


@router.post("", dependencies=[Depends(require_admin_role)])
async def create_type(data: TypeCreate, db: AsyncSession = Depends(get_db)):
    type_ = await type_service.create_type(db, data)
    return json_success(map_type(type_), status_code=201)


@router.get("/{type_id}")
async def get_type(type_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    type_ = await type_service.load_type(db, type_id)
    return json_success(map_type(type_))


@router.put("/{type_id}", dependencies=[Depends(require_admin_role)])
async def update_type(
    type_id: uuid.UUID,
    data: TypeUpdate,
    db: AsyncSession = Depends(get_db),
):
    type_ = await type_service.update_type(db, type_id, data)
    return json_success(map_type(type_))


@router.delete("/{type_id}", dependencies=[Depends(require_admin_role)])
async def delete_type(type_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await type_service.delete_type(db, type_id)
    return no_content()
