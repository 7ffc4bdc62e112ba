from functools import lru_cache
from typing import Any, AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import AsyncSessionLocal
from app.core.config import settings
from app.core.errors import ValidationFailed
from app.core.guard import Actor, require_profile, require_role, require_session
from app.core.security import AuthSession, default_cookie_name
from app.core.validation import BODY_NOT_OBJECT
from app.integrations.supabase_auth import SupabaseAuthClient


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


@lru_cache
def get_identity_provider() -> SupabaseAuthClient:
    return SupabaseAuthClient(
        base_url=settings.SUPABASE_URL,
        anon_key=settings.SUPABASE_ANON_KEY,
        service_role_key=settings.SUPABASE_SERVICE_ROLE_KEY,
        jwt_secret=settings.SUPABASE_JWT_SECRET,
        timeout=settings.AUTH_TIMEOUT_SECONDS,
    )


async def get_session(
    request: Request,
    provider: SupabaseAuthClient = Depends(get_identity_provider),
) -> AuthSession:
    cookie_name = settings.SESSION_COOKIE_NAME or default_cookie_name(settings.SUPABASE_URL)
    return await require_session(request.headers, request.cookies, provider, cookie_name)


async def get_current_actor(
    session: AuthSession = Depends(get_session),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    return await require_profile(db, session)


def with_auth(*roles: str, message: str | None = None):
    """session -> profil -> rôle; sans rôle, tout acteur authentifié passe."""

    async def _guard(actor: Actor = Depends(get_current_actor)) -> Actor:
        if roles:
            require_role(actor, roles, message)
        return actor

    return _guard


async def get_json_body(request: Request) -> dict[str, Any]:
    """
    Corps JSON lu par dépendance: déclaré après ``with_auth`` dans la signature
    d'une route, il n'est décodé qu'une fois la garde passée (401 avant 400).
    """
    try:
        body = await request.json()
    except ValueError:
        raise ValidationFailed(["Le corps de la requête doit être un JSON valide"])
    if not isinstance(body, dict):
        raise ValidationFailed([BODY_NOT_OBJECT])
    return body
