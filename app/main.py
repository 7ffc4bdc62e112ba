# app/main.py
import sys
import asyncio

# Boucle compatible sous Windows (sans effet ailleurs)
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from contextlib import asynccontextmanager
import json
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import RequestIdMiddleware, setup_logging
from app.api.v1.router import api_router
from app.db.session import engine
from app.db.base import Base
from app.db import models as _models  # noqa: F401  (enregistre toutes les tables sur Base.metadata)


def _normalize_origins(value) -> list[str]:
    """Accepte une liste, une chaîne JSON ou du CSV et renvoie la liste des origines."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(o).strip() for o in value if str(o).strip()]
    if isinstance(value, str):
        try:
            as_json = json.loads(value)
            if isinstance(as_json, (list, tuple)):
                return [str(o).strip() for o in as_json if str(o).strip()]
        except ValueError:
            pass
        # sinon: CSV
        return [o.strip() for o in value.split(",") if o.strip()]
    return [str(value).strip()]


def _is_postgres(db_url) -> bool:
    if not db_url:
        return False
    try:
        return make_url(db_url).get_backend_name() == "postgresql"
    except ArgumentError:
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    En dev, crée les tables automatiquement **uniquement** sur Postgres;
    en prod le schéma est géré côté Supabase.
    """
    env = (settings.ENVIRONMENT or "").lower().strip()
    if env == "dev" and _is_postgres(settings.DATABASE_URL):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


setup_logging()

# --- App ---
app = FastAPI(title="Waste Manager API", lifespan=lifespan)

# --- CORS (avant les routers) ---
origins = _normalize_origins(getattr(settings, "CORS_ORIGINS", None))

# défauts utiles en dev (front Next.js)
if not origins:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,      # liste explicite car allow_credentials=True (cookies Supabase)
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestIdMiddleware)

register_exception_handlers(app)


# Healthcheck simple
@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


# --- API (après le CORS) ---
app.include_router(api_router, prefix=settings.API_PREFIX)
