import logging
import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from app.auth import close_session_client
from app.config import LOG_LEVEL, UPLOAD_DIR
from app.db import engine, run_migrations
from app.errors import register_exception_handlers
from app.routers import dashboard, generations, pokemons, types, uploads
from app.storage import UPLOAD_URL_PREFIX

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=LOG_LEVEL,
)

app = FastAPI(
    title="Pokédex CMS API",
    description="Admin backend for generations, types and Pokémon.",
)

register_exception_handlers(app)

app.include_router(generations.router)
app.include_router(types.router)
app.include_router(pokemons.router)
app.include_router(uploads.router)
app.include_router(dashboard.router)

# Uploaded files are served back from the same directory they are written to
app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


@app.on_event("startup")
async def on_startup():
    """
    Application startup hook.

    This runs before the app starts serving requests.
    Creates the upload directory and any missing tables.
    """
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    await run_migrations()


@app.on_event("shutdown")
async def on_shutdown():
    await close_session_client()
    await engine.dispose()


@app.get("/health")
async def health_check():
    """
    Health endpoint.

    Checks:
    - App is running
    - Database is reachable (simple SELECT 1)
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {e!s}"

    return {
        "status": "ok",
        "db": db_status,
    }
