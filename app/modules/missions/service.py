# app/modules/missions/service.py
"""
Opérations missions partagées par /missions et /requests:
garde -> validation -> lectures de pré-condition -> écriture -> rechargement.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, ResourceNotFound, StateConflict, ValidationFailed
from app.core.guard import (
    ADMIN,
    CLIENT,
    Actor,
    client_id_for,
    require_ownership_or_role,
    require_role,
    scope_query_by_role,
)
from app.db.base import utcnow
from app.modules.clients.models import Client
from app.modules.staff.models import StaffProfile
from .crud import get_mission, get_mission_or_404, missions_query
from .models import Comment, Mission, MissionUpdate
from .validators import (
    ASSIGNEE_MUTABLE_FIELDS,
    validate_comment,
    validate_mission,
    validate_mission_update,
)

logger = structlog.get_logger(__name__)

# transitions explicites; assigned -> pending n'arrive que par désassignation
MISSION_TRANSITIONS = {
    "pending": {"assigned", "cancelled"},
    "assigned": {"in_progress", "cancelled"},
    "in_progress": {"completed"},
    "completed": set(),
    "cancelled": set(),
}
DELETABLE_STATUSES = ("pending", "assigned", "cancelled")
ASSIGNABLE_STATUSES = ("pending", "assigned")

LIST_FILTERS = ("client_id", "assigned_staff_id", "status", "service_type", "priority", "zone")


def can_transition(current: str, target: str) -> bool:
    return current == target or target in MISSION_TRANSITIONS.get(current, set())


async def list_missions(
    db: AsyncSession,
    actor: Actor,
    filters: Optional[Mapping[str, Any]] = None,
    limit: Optional[int] = None,
) -> Sequence[Mission]:
    stmt = await scope_query_by_role(db, actor, missions_query(), Mission)
    for name, value in (filters or {}).items():
        if name in LIST_FILTERS and value:
            stmt = stmt.where(getattr(Mission, name) == value)
    stmt = stmt.order_by(Mission.created_at.desc())
    if limit:
        stmt = stmt.limit(limit)
    res = await db.execute(stmt)
    return res.scalars().all()


async def _active_staff_or_error(db: AsyncSession, staff_id: str) -> StaffProfile:
    res = await db.execute(select(StaffProfile).where(StaffProfile.id == staff_id))
    staff = res.scalar_one_or_none()
    if not staff:
        raise ResourceNotFound("Membre du personnel non trouvé")
    if staff.status != "active":
        raise StateConflict("Le membre du personnel n'est pas actif")
    return staff


async def create_mission(db: AsyncSession, actor: Actor, payload: Mapping[str, Any]) -> Mission:
    require_role(actor, (ADMIN, CLIENT))
    data = dict(payload)

    if actor.role == CLIENT:
        if data.get("assigned_staff_id"):
            raise Forbidden("Seul un administrateur peut assigner une mission.")
        own_client = await client_id_for(db, actor)
        if not own_client:
            raise Forbidden("Impossible de trouver le profil client associé à cet utilisateur.")
        # un client ne crée que pour lui-même
        data["client_id"] = own_client

    result = validate_mission(data)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    values = result.data

    client = await db.execute(select(Client.id).where(Client.id == values["client_id"]))
    if client.scalar_one_or_none() is None:
        raise ResourceNotFound("Client non trouvé")

    staff_id = values.get("assigned_staff_id")
    if staff_id:
        await _active_staff_or_error(db, staff_id)

    values["priority"] = values.get("priority") or "medium"
    values["status"] = "assigned" if staff_id else "pending"
    mission = Mission(**values)
    db.add(mission)
    await db.commit()
    logger.info("mission_created", mission_id=mission.id, actor_id=actor.id, status=mission.status)
    return await get_mission(db, mission.id, fresh=True)


async def update_mission(
    db: AsyncSession,
    actor: Actor,
    mission_id: Optional[str],
    payload: Mapping[str, Any],
) -> Mission:
    if not mission_id:
        raise ValidationFailed(["id est requis"], "ID de la mission requis")
    mission = await get_mission_or_404(db, mission_id)
    require_ownership_or_role(actor, mission, "assigned_staff_id", (ADMIN,))

    result = validate_mission(payload, partial=True)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    changes = result.data

    if not actor.is_admin:
        # champs renvoyés inchangés tolérés (le front renvoie l'objet complet)
        for k in set(changes) - ASSIGNEE_MUTABLE_FIELDS:
            if getattr(mission, k) == changes[k]:
                changes.pop(k)
        refused = sorted(set(changes) - ASSIGNEE_MUTABLE_FIELDS)
        if refused:
            raise Forbidden("Champs non modifiables: " + ", ".join(refused))

    new_status = changes.pop("status", None)
    explicit_status = new_status is not None
    new_status = new_status or mission.status
    unassigning = False

    if "assigned_staff_id" in changes and changes["assigned_staff_id"] != mission.assigned_staff_id:
        if mission.status not in ASSIGNABLE_STATUSES:
            raise StateConflict("Impossible de réassigner une mission en cours, terminée ou annulée")
        if changes["assigned_staff_id"]:
            await _active_staff_or_error(db, changes["assigned_staff_id"])
            if not explicit_status and mission.status == "pending":
                new_status = "assigned"
        else:
            unassigning = True
            if not explicit_status:
                new_status = "pending"

    if new_status != mission.status:
        allowed = can_transition(mission.status, new_status) or (
            unassigning and mission.status == "assigned" and new_status == "pending"
        )
        if not allowed:
            raise StateConflict(f"Transition de statut impossible: {mission.status} -> {new_status}")

    assignee = changes.get("assigned_staff_id", mission.assigned_staff_id)
    if new_status == "assigned" and not assignee:
        raise StateConflict("Une mission assignée doit avoir un membre du personnel")

    for k, val in changes.items():
        setattr(mission, k, val)
    mission.status = new_status
    mission.updated_at = utcnow()
    await db.commit()
    logger.info("mission_updated", mission_id=mission.id, actor_id=actor.id, fields=sorted(changes), status=new_status)
    return await get_mission(db, mission.id, fresh=True)


async def delete_mission(db: AsyncSession, actor: Actor, mission_id: Optional[str]) -> None:
    require_role(actor, (ADMIN,))
    if not mission_id:
        raise ValidationFailed(["id est requis"], "ID de la mission requis")
    # relations chargées: la cascade ORM (updates, commentaires) en a besoin
    mission = await get_mission_or_404(db, mission_id)
    if mission.status not in DELETABLE_STATUSES:
        raise StateConflict("Impossible de supprimer une mission en cours ou terminée")
    await db.delete(mission)
    await db.commit()
    logger.info("mission_deleted", mission_id=mission_id, actor_id=actor.id)


async def ensure_visible(db: AsyncSession, actor: Actor, mission_id: str) -> None:
    stmt = await scope_query_by_role(db, actor, select(Mission.id).where(Mission.id == mission_id), Mission)
    if (await db.execute(stmt)).scalar_one_or_none() is None:
        raise Forbidden()


async def add_comment(db: AsyncSession, actor: Actor, mission_id: str, payload: Mapping[str, Any]) -> Comment:
    await get_mission_or_404(db, mission_id)
    await ensure_visible(db, actor, mission_id)
    result = validate_comment(payload)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    comment = Comment(mission_id=mission_id, user_id=actor.id, content=result.data["content"])
    db.add(comment)
    await db.commit()
    await db.refresh(comment, attribute_names=["user"])
    return comment


async def add_mission_update(
    db: AsyncSession,
    actor: Actor,
    mission_id: str,
    payload: Mapping[str, Any],
) -> MissionUpdate:
    mission = await get_mission_or_404(db, mission_id)
    require_ownership_or_role(actor, mission, "assigned_staff_id", (ADMIN,))
    result = validate_mission_update(payload)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    update = MissionUpdate(
        mission_id=mission_id,
        staff_id=mission.assigned_staff_id if actor.is_admin else actor.id,
        update_type=result.data.get("update_type") or "note",
        content=result.data["content"],
        photo_url=result.data.get("photo_url"),
    )
    db.add(update)
    await db.commit()
    return update
