# app/modules/staff/router.py
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_identity_provider, get_json_body, with_auth
from app.core.guard import ADMIN, CLIENT, Actor
from app.modules.missions.schemas import MessageOut
from app.services.aggregates import count_by
from . import service
from .schemas import RatingEnvelope, RatingOut, StaffEnvelope, StaffListOut, StaffOut, StaffStatistics

router = APIRouter()  # inclus avec prefix "/staff"


def _out(staff) -> StaffOut:
    return StaffOut.model_validate(staff).model_copy(update=service.with_aggregates(staff))


# LIST
@router.get("", response_model=StaffListOut)
async def list_staff(
    department: Optional[str] = None,
    position: Optional[str] = None,
    status_: Optional[str] = Query(None, alias="status"),
    skills: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
):
    filters = {"department": department, "position": position, "status": status_, "skills": skills}
    rows = await service.list_staff(db, filters, limit)
    echoed = {k: v for k, v in filters.items() if v}
    if limit:
        echoed["limit"] = limit
    return StaffListOut(
        staff=[_out(s) for s in rows],
        count=len(rows),
        statistics=StaffStatistics(
            status_counts=count_by(rows, "status"),
            department_counts=count_by(rows, "department"),
            total=len(rows),
        ),
        filters=echoed,
    )


# CREATE
@router.post("", response_model=StaffEnvelope, status_code=status.HTTP_201_CREATED)
async def create_staff(
    db: AsyncSession = Depends(get_db),
    provider=Depends(get_identity_provider),
    actor: Actor = Depends(with_auth(ADMIN)),
    payload: dict[str, Any] = Depends(get_json_body),
):
    staff = await service.create_staff(db, actor, provider, payload)
    return StaffEnvelope(staff=_out(staff), message="Profil personnel créé avec succès")


# UPDATE (id dans le corps)
@router.put("", response_model=StaffEnvelope)
async def update_staff(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
    payload: dict[str, Any] = Depends(get_json_body),
):
    staff_id = payload.get("id")
    staff = await service.update_staff(db, actor, staff_id and str(staff_id), payload)
    return StaffEnvelope(staff=_out(staff), message="Profil personnel mis à jour avec succès")


@router.put("/{staff_id}", response_model=StaffEnvelope)
async def update_staff_by_id(
    staff_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
    payload: dict[str, Any] = Depends(get_json_body),
):
    staff = await service.update_staff(db, actor, staff_id, payload)
    return StaffEnvelope(staff=_out(staff), message="Profil personnel mis à jour avec succès")


# DELETE ?id= et /{id}
@router.delete("", response_model=MessageOut)
async def delete_staff(
    id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN)),
):
    await service.delete_staff(db, actor, id)
    return MessageOut(message="Profil personnel supprimé avec succès")


@router.delete("/{staff_id}", response_model=MessageOut)
async def delete_staff_by_id(
    staff_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN)),
):
    await service.delete_staff(db, actor, staff_id)
    return MessageOut(message="Profil personnel supprimé avec succès")


# ÉVALUATIONS
@router.post("/{staff_id}/ratings", response_model=RatingEnvelope, status_code=status.HTTP_201_CREATED)
async def rate_staff(
    staff_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN, CLIENT)),
    payload: dict[str, Any] = Depends(get_json_body),
):
    rating = await service.rate_staff(db, actor, staff_id, payload)
    return RatingEnvelope(rating=RatingOut.model_validate(rating), message="Évaluation enregistrée")
