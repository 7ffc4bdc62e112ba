# app/modules/payments/crud.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ResourceNotFound
from app.modules.clients.models import Client
from .models import Payment

PAYMENT_LOAD = (
    selectinload(Payment.mission),
    selectinload(Payment.client).selectinload(Client.user),
)


def payments_query():
    return select(Payment).options(*PAYMENT_LOAD)


async def get_payment(db: AsyncSession, payment_id: str, *, fresh: bool = False) -> Optional[Payment]:
    stmt = payments_query().where(Payment.id == payment_id)
    if fresh:
        stmt = stmt.execution_options(populate_existing=True)
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def get_payment_or_404(db: AsyncSession, payment_id: str) -> Payment:
    payment = await get_payment(db, payment_id)
    if not payment:
        raise ResourceNotFound("Paiement introuvable.")
    return payment
