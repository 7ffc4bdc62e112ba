# app/modules/payments/router.py
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_json_body, with_auth
from app.core.guard import ADMIN, Actor
from app.modules.missions.schemas import MessageOut
from app.services.aggregates import count_by, total_amount
from . import service
from .schemas import PaymentEnvelope, PaymentListOut, PaymentOut, PaymentStatistics

router = APIRouter()  # inclus avec prefix "/payments"

ADMIN_ONLY = "Accès non autorisé. Seuls les administrateurs peuvent effectuer cette action."


@router.get("", response_model=PaymentListOut)
async def list_payments(
    payment_status: Optional[str] = None,
    payment_method: Optional[str] = None,
    client_id: Optional[str] = None,
    mission_id: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
):
    filters = {
        "payment_status": payment_status,
        "payment_method": payment_method,
        "client_id": client_id if actor.is_admin else None,
        "mission_id": mission_id,
    }
    rows = await service.list_payments(db, actor, filters, limit)
    echoed = {k: v for k, v in filters.items() if v}
    if limit:
        echoed["limit"] = limit
    return PaymentListOut(
        payments=[PaymentOut.model_validate(p) for p in rows],
        count=len(rows),
        statistics=PaymentStatistics(status_counts=count_by(rows, "payment_status"), total_amount=total_amount(rows)),
        filters=echoed,
    )


@router.post("", response_model=PaymentEnvelope, status_code=status.HTTP_201_CREATED)
async def create_payment(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN, message=ADMIN_ONLY)),
    payload: dict[str, Any] = Depends(get_json_body),
):
    payment = await service.create_payment(db, actor, payload)
    return PaymentEnvelope(payment=PaymentOut.model_validate(payment), message="Paiement créé avec succès.")


@router.put("/{payment_id}", response_model=PaymentEnvelope)
async def update_payment(
    payment_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN, message=ADMIN_ONLY)),
    payload: dict[str, Any] = Depends(get_json_body),
):
    payment = await service.update_payment(db, actor, payment_id, payload)
    return PaymentEnvelope(payment=PaymentOut.model_validate(payment), message="Paiement mis à jour avec succès.")


@router.delete("/{payment_id}", response_model=MessageOut)
async def delete_payment(
    payment_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN, message=ADMIN_ONLY)),
):
    await service.delete_payment(db, actor, payment_id)
    return MessageOut(message="Paiement supprimé avec succès.")
