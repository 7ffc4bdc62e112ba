# app/core/guard.py
"""
Garde d'autorisation: qui appelle, avec quel rôle, et sur quoi il a le droit
d'agir. Lecture seule vis-à-vis de la base (users, clients).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol

import structlog
from sqlalchemy import Select, false, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, ProfileMissing, Unauthenticated
from app.core.security import AuthSession, extract_access_token
from app.modules.clients.models import Client
from app.modules.users.models import User

logger = structlog.get_logger(__name__)

ADMIN = "admin"
STAFF = "staff"
CLIENT = "client"


@dataclass(frozen=True)
class Actor:
    id: str
    role: str
    email: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


class SessionProvider(Protocol):
    async def get_session(self, access_token: str) -> Optional[AuthSession]: ...


async def require_session(
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    provider: SessionProvider,
    cookie_name: Optional[str] = None,
) -> AuthSession:
    token = extract_access_token(headers, cookies, cookie_name)
    if not token:
        raise Unauthenticated()
    session = await provider.get_session(token)
    if session is None:
        raise Unauthenticated()
    return session


async def require_profile(db: AsyncSession, session: AuthSession) -> Actor:
    res = await db.execute(select(User).where(User.id == session.user_id))
    user = res.scalar_one_or_none()
    if not user:
        # identité connue côté auth mais sans ligne users
        logger.warning("profile_missing", user_id=session.user_id)
        raise ProfileMissing()
    return Actor(id=user.id, role=user.role, email=user.email, full_name=user.full_name)


def require_role(actor: Actor, allowed_roles: Iterable[str], message: Optional[str] = None) -> None:
    if actor.role not in tuple(allowed_roles):
        raise Forbidden(message)


def _owner_of(resource: Any, owner_field: str) -> Any:
    if isinstance(resource, Mapping):
        return resource.get(owner_field)
    return getattr(resource, owner_field, None)


def require_ownership_or_role(
    actor: Actor,
    resource: Any,
    owner_field: str,
    allowed_roles: Iterable[str],
    message: Optional[str] = None,
) -> None:
    if actor.role in tuple(allowed_roles):
        return
    owner = _owner_of(resource, owner_field)
    if owner is not None and str(owner) == actor.id:
        return
    raise Forbidden(message)


async def client_id_for(db: AsyncSession, actor: Actor) -> Optional[str]:
    res = await db.execute(select(Client.id).where(Client.user_id == actor.id).limit(1))
    return res.scalar_one_or_none()


async def scope_query_by_role(db: AsyncSession, actor: Actor, stmt: Select, model: Any) -> Select:
    """
    Restreint une requête de liste au périmètre visible par l'acteur.

    - admin: aucune restriction
    - client: lignes dont client_id est le client rattaché à l'utilisateur
      (aucun client rattaché => résultat vide)
    - staff: missions assignées à lui ou non assignées; rien sur les
      ressources sans colonne assigned_staff_id (paiements)
    """
    if actor.role == ADMIN:
        return stmt
    if actor.role == CLIENT:
        client_id = await client_id_for(db, actor)
        if client_id is None:
            return stmt.where(false())
        return stmt.where(model.client_id == client_id)
    if actor.role == STAFF:
        assigned = getattr(model, "assigned_staff_id", None)
        if assigned is None:
            return stmt.where(false())
        return stmt.where(or_(assigned == actor.id, assigned.is_(None)))
    return stmt.where(false())
