# app/modules/payments/service.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ResourceNotFound, StateConflict, ValidationFailed
from app.core.guard import ADMIN, Actor, require_role, scope_query_by_role
from app.db.base import utcnow
from app.modules.clients.models import Client
from app.modules.missions.models import Mission
from .crud import get_payment, get_payment_or_404, payments_query
from .models import Payment
from .validators import validate_payment

logger = structlog.get_logger(__name__)

PAYMENT_TRANSITIONS = {
    "pending": {"completed", "failed"},
    "completed": {"refunded"},
    "failed": set(),
    "refunded": set(),
}

LIST_FILTERS = ("payment_status", "payment_method", "mission_id")


def can_transition(current: str, target: str) -> bool:
    return current == target or target in PAYMENT_TRANSITIONS.get(current, set())


async def list_payments(
    db: AsyncSession,
    actor: Actor,
    filters: Optional[Mapping[str, Any]] = None,
    limit: Optional[int] = None,
) -> Sequence[Payment]:
    filters = filters or {}
    stmt = await scope_query_by_role(db, actor, payments_query(), Payment)
    for name in LIST_FILTERS:
        if filters.get(name):
            stmt = stmt.where(getattr(Payment, name) == filters[name])
    # filtre client réservé à l'admin (les clients sont déjà restreints)
    if actor.is_admin and filters.get("client_id"):
        stmt = stmt.where(Payment.client_id == filters["client_id"])
    stmt = stmt.order_by(Payment.created_at.desc())
    if limit:
        stmt = stmt.limit(limit)
    res = await db.execute(stmt)
    return res.scalars().all()


async def create_payment(db: AsyncSession, actor: Actor, payload: Mapping[str, Any]) -> Payment:
    require_role(actor, (ADMIN,))
    result = validate_payment(payload)
    if not result.is_valid:
        raise ValidationFailed(result.errors, "Données manquantes (mission_id, amount, payment_method).")
    values = result.data

    res = await db.execute(select(Mission.client_id).where(Mission.id == values["mission_id"]))
    row = res.first()
    if row is None:
        raise ResourceNotFound("Mission non trouvée.")
    mission_client = row[0]

    client_id = values.get("client_id") or mission_client
    if not client_id:
        raise StateConflict("La mission n'est rattachée à aucun client")
    if client_id != mission_client:
        raise StateConflict("Le client du paiement ne correspond pas à celui de la mission")
    client = await db.execute(select(Client.id).where(Client.id == client_id))
    if client.scalar_one_or_none() is None:
        raise ResourceNotFound("Client non trouvé")

    values["client_id"] = client_id
    values["currency"] = values.get("currency") or "EUR"
    payment = Payment(**values, payment_status="pending")
    db.add(payment)
    await db.commit()
    logger.info("payment_created", payment_id=payment.id, mission_id=payment.mission_id, amount=payment.amount)
    return await get_payment(db, payment.id, fresh=True)


async def update_payment(
    db: AsyncSession,
    actor: Actor,
    payment_id: str,
    payload: Mapping[str, Any],
) -> Payment:
    require_role(actor, (ADMIN,))
    payment = await get_payment_or_404(db, payment_id)

    result = validate_payment(payload, partial=True)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    changes = result.data

    new_status = changes.pop("payment_status", payment.payment_status)
    if not can_transition(payment.payment_status, new_status):
        raise StateConflict(f"Transition de statut impossible: {payment.payment_status} -> {new_status}")
    if payment.payment_status != "pending" and ("amount" in changes or "currency" in changes):
        if changes.get("amount", payment.amount) != payment.amount or changes.get("currency", payment.currency) != payment.currency:
            raise StateConflict("Le montant d'un paiement réglé ne peut plus être modifié")

    for k, val in changes.items():
        setattr(payment, k, val)
    if new_status == "completed" and payment.paid_at is None:
        payment.paid_at = utcnow()
    payment.payment_status = new_status
    payment.updated_at = utcnow()
    await db.commit()
    logger.info("payment_updated", payment_id=payment_id, actor_id=actor.id, status=new_status)
    return await get_payment(db, payment_id, fresh=True)


async def delete_payment(db: AsyncSession, actor: Actor, payment_id: str) -> None:
    require_role(actor, (ADMIN,))
    payment = await get_payment_or_404(db, payment_id)
    if payment.payment_status == "completed":
        raise StateConflict("Impossible de supprimer un paiement réglé")
    await db.delete(payment)
    await db.commit()
    logger.info("payment_deleted", payment_id=payment_id, actor_id=actor.id)
