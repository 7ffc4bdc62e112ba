# app/modules/staff/service.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    Forbidden,
    ResourceConflict,
    ResourceNotFound,
    StateConflict,
    ValidationFailed,
)
from app.core.guard import ADMIN, CLIENT, Actor, client_id_for, require_ownership_or_role, require_role
from app.db.base import utcnow
from app.integrations.supabase_auth import SupabaseAuthError
from app.modules.missions.models import Mission
from app.modules.users.models import User
from app.services.aggregates import active_missions_count, average_rating
from .crud import get_staff, get_staff_or_404, staff_query
from .models import Rating, StaffProfile
from .validators import SELF_MUTABLE_FIELDS, validate_rating, validate_staff, with_staff_defaults

logger = structlog.get_logger(__name__)

LIST_FILTERS = ("department", "position", "status")


def with_aggregates(staff: StaffProfile) -> dict[str, Any]:
    """Champs calculés ajoutés à la sortie StaffOut."""
    ratings = staff.ratings_received or []
    return {
        "average_rating": average_rating(ratings),
        "total_ratings": len(ratings),
        "active_missions": active_missions_count(staff.missions_assigned or []),
    }


async def list_staff(
    db: AsyncSession,
    filters: Optional[Mapping[str, Any]] = None,
    limit: Optional[int] = None,
) -> Sequence[StaffProfile]:
    filters = filters or {}
    stmt = staff_query()
    for name in LIST_FILTERS:
        if filters.get(name):
            stmt = stmt.where(getattr(StaffProfile, name) == filters[name])
    stmt = stmt.order_by(StaffProfile.hire_date.desc(), StaffProfile.created_at.desc())

    skill = filters.get("skills")
    if limit and not skill:
        stmt = stmt.limit(limit)
    rows = (await db.execute(stmt)).scalars().all()

    if skill:
        # colonne JSON: filtrage "contient" côté Python pour rester portable (sqlite/postgres)
        rows = [s for s in rows if skill in (s.skills or [])]
        if limit:
            rows = rows[:limit]
    return rows


async def create_staff(db: AsyncSession, actor: Actor, provider, payload: Mapping[str, Any]) -> StaffProfile:
    require_role(actor, (ADMIN,))
    result = validate_staff(payload)
    if not result.is_valid:
        raise ValidationFailed(result.errors)

    staff_id = payload.get("id") if isinstance(payload, Mapping) else None
    if not staff_id:
        raise ValidationFailed(["id est requis"], "ID utilisateur (auth.users) requis")
    staff_id = str(staff_id)

    try:
        await provider.get_user_by_id(staff_id)
    except SupabaseAuthError as e:
        logger.info("staff_identity_unknown", staff_id=staff_id, error=e.message)
        raise ResourceNotFound("Utilisateur non trouvé dans le système d'authentification") from e

    user = (await db.execute(select(User.id).where(User.id == staff_id))).scalar_one_or_none()
    if user is None:
        raise ResourceNotFound("Utilisateur non trouvé")

    existing = (await db.execute(select(StaffProfile.id).where(StaffProfile.id == staff_id))).scalar_one_or_none()
    if existing is not None:
        raise ResourceConflict("Un profil personnel existe déjà pour cet utilisateur")

    values = with_staff_defaults(result.data)

    staff = StaffProfile(id=staff_id, **values)
    db.add(staff)
    await db.commit()
    logger.info("staff_created", staff_id=staff_id, actor_id=actor.id)
    return await get_staff(db, staff_id, fresh=True)


async def update_staff(
    db: AsyncSession,
    actor: Actor,
    staff_id: Optional[str],
    payload: Mapping[str, Any],
) -> StaffProfile:
    if not staff_id:
        raise ValidationFailed(["id est requis"], "ID du profil requis")
    staff = await get_staff_or_404(db, staff_id)
    require_ownership_or_role(actor, staff, "id", (ADMIN,))

    result = validate_staff(payload, partial=True)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    changes = result.data

    if not actor.is_admin:
        for k in set(changes) - SELF_MUTABLE_FIELDS:
            if getattr(staff, k) == changes[k]:
                changes.pop(k)
        refused = sorted(set(changes) - SELF_MUTABLE_FIELDS)
        if refused:
            raise Forbidden("Champs non modifiables: " + ", ".join(refused))

    for k, val in changes.items():
        setattr(staff, k, val)
    staff.updated_at = utcnow()
    await db.commit()
    logger.info("staff_updated", staff_id=staff_id, actor_id=actor.id, fields=sorted(changes))
    return await get_staff(db, staff_id, fresh=True)


async def delete_staff(db: AsyncSession, actor: Actor, staff_id: Optional[str]) -> None:
    require_role(actor, (ADMIN,))
    if not staff_id:
        raise ValidationFailed(["id est requis"], "ID du profil requis")
    staff = await get_staff_or_404(db, staff_id)
    # les missions seulement assignées retournent en attente
    for mission in staff.missions_assigned:
        if mission.status == "assigned":
            mission.status = "pending"
            mission.updated_at = utcnow()
    await db.delete(staff)
    await db.commit()
    logger.info("staff_deleted", staff_id=staff_id, actor_id=actor.id)


async def rate_staff(db: AsyncSession, actor: Actor, staff_id: str, payload: Mapping[str, Any]) -> Rating:
    require_role(actor, (ADMIN, CLIENT))
    await get_staff_or_404(db, staff_id)

    result = validate_rating(payload)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    values = result.data

    res = await db.execute(select(Mission).where(Mission.id == values["mission_id"]))
    mission = res.scalar_one_or_none()
    if not mission:
        raise ResourceNotFound("Mission non trouvée")
    if actor.role == CLIENT and mission.client_id != await client_id_for(db, actor):
        raise Forbidden()
    if mission.assigned_staff_id != staff_id:
        raise StateConflict("Ce membre du personnel n'était pas assigné à cette mission")
    if mission.status != "completed":
        raise StateConflict("Seule une mission terminée peut être évaluée")

    rating = Rating(
        staff_id=staff_id,
        mission_id=mission.id,
        client_id=mission.client_id,
        rating=values["rating"],
        comment=values.get("comment"),
    )
    db.add(rating)
    await db.commit()
    await db.refresh(rating, attribute_names=["mission", "client"])
    logger.info("staff_rated", staff_id=staff_id, mission_id=mission.id, rating=rating.rating)
    return rating
