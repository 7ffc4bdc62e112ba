# app/modules/requests/router.py
"""Vue "demandes" du front: mêmes règles que /missions, id dans le chemin."""
from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_json_body, with_auth
from app.core.guard import ADMIN, CLIENT, Actor
from app.modules.missions import service
from app.modules.missions.schemas import MessageOut, MissionEnvelope, MissionOut

router = APIRouter()  # inclus avec prefix "/requests"


@router.get("", response_model=List[MissionOut])
async def list_requests(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
):
    return await service.list_missions(db, actor)


@router.post("", response_model=MissionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_request(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN, CLIENT)),
    payload: dict[str, Any] = Depends(get_json_body),
):
    mission = await service.create_mission(db, actor, payload)
    out = MissionOut.model_validate(mission)
    return MissionEnvelope(mission=out, request=out, message="Demande créée avec succès")


@router.put("/{request_id}", response_model=MissionEnvelope)
async def update_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
    payload: dict[str, Any] = Depends(get_json_body),
):
    mission = await service.update_mission(db, actor, request_id, payload)
    out = MissionOut.model_validate(mission)
    return MissionEnvelope(mission=out, request=out, message="Demande mise à jour avec succès")


@router.delete("/{request_id}", response_model=MessageOut)
async def delete_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN)),
):
    await service.delete_mission(db, actor, request_id)
    return MessageOut(message="Demande supprimée avec succès")
