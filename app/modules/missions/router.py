# app/modules/missions/router.py
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_json_body, with_auth
from app.core.guard import ADMIN, CLIENT, Actor
from app.services.aggregates import count_by
from . import service
from .schemas import (
    CommentEnvelope,
    CommentOut,
    MessageOut,
    MissionEnvelope,
    MissionListOut,
    MissionOut,
    MissionStatistics,
    MissionUpdateEnvelope,
    MissionUpdateOut,
)

router = APIRouter()  # inclus avec prefix "/missions"


def _envelope(mission, message: str) -> MissionEnvelope:
    out = MissionOut.model_validate(mission)
    return MissionEnvelope(mission=out, request=out, message=message)


# LIST
@router.get("", response_model=MissionListOut)
async def list_missions(
    client_id: Optional[str] = None,
    assigned_staff_id: Optional[str] = None,
    status_: Optional[str] = Query(None, alias="status"),
    service_type: Optional[str] = None,
    priority: Optional[str] = None,
    zone: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
):
    filters = {
        "client_id": client_id,
        "assigned_staff_id": assigned_staff_id,
        "status": status_,
        "service_type": service_type,
        "priority": priority,
        "zone": zone,
    }
    rows = await service.list_missions(db, actor, filters, limit)
    missions = [MissionOut.model_validate(m) for m in rows]
    stats = MissionStatistics(
        status_counts=count_by(rows, "status"),
        priority_counts=count_by(rows, "priority"),
        total=len(rows),
    )
    echoed = {k: v for k, v in filters.items() if v}
    if limit:
        echoed["limit"] = limit
    return MissionListOut(
        missions=missions,
        requests=missions,
        count=len(missions),
        statistics=stats,
        filters=echoed,
    )


# CREATE
@router.post("", response_model=MissionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_mission(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN, CLIENT)),
    payload: dict[str, Any] = Depends(get_json_body),
):
    mission = await service.create_mission(db, actor, payload)
    return _envelope(mission, "Mission créée avec succès")


# UPDATE (id dans le corps)
@router.put("", response_model=MissionEnvelope)
async def update_mission(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
    payload: dict[str, Any] = Depends(get_json_body),
):
    mission_id = payload.get("id")
    mission = await service.update_mission(db, actor, mission_id and str(mission_id), payload)
    return _envelope(mission, "Mission mise à jour avec succès")


# DELETE ?id=
@router.delete("", response_model=MessageOut)
async def delete_mission(
    id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN)),
):
    await service.delete_mission(db, actor, id)
    return MessageOut(message="Mission supprimée avec succès")


# COMMENTAIRES
@router.post("/{mission_id}/comments", response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
async def add_comment(
    mission_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
    payload: dict[str, Any] = Depends(get_json_body),
):
    comment = await service.add_comment(db, actor, mission_id, payload)
    return CommentEnvelope(comment=CommentOut.model_validate(comment), message="Commentaire ajouté")


# SUIVI TERRAIN
@router.post("/{mission_id}/updates", response_model=MissionUpdateEnvelope, status_code=status.HTTP_201_CREATED)
async def add_mission_update(
    mission_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
    payload: dict[str, Any] = Depends(get_json_body),
):
    update = await service.add_mission_update(db, actor, mission_id, payload)
    return MissionUpdateEnvelope(update=MissionUpdateOut.model_validate(update), message="Suivi ajouté")
