from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import require_editor_role
from app.db import get_db
from app.models import Generation, Pokemon, Type
from app.responses import json_success
from app.schemas import DashboardSummary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", dependencies=[Depends(require_editor_role)])
async def dashboard_summary(db: AsyncSession = Depends(get_db)):
    """Row counts shown on the dashboard overview. Editors and admins only."""
    generations = await db.scalar(select(func.count()).select_from(Generation))
    types = await db.scalar(select(func.count()).select_from(Type))
    pokemons = await db.scalar(select(func.count()).select_from(Pokemon))
    return json_success(
        DashboardSummary(
            generations=generations or 0,
            types=types or 0,
            pokemons=pokemons or 0,
        )
    )
