# app/modules/staff/crud.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ResourceNotFound
from .models import Rating, StaffProfile

STAFF_LOAD = (
    selectinload(StaffProfile.missions_assigned),
    selectinload(StaffProfile.ratings_received).selectinload(Rating.mission),
    selectinload(StaffProfile.ratings_received).selectinload(Rating.client),
)


def staff_query():
    return select(StaffProfile).options(*STAFF_LOAD)


async def get_staff(db: AsyncSession, staff_id: str, *, fresh: bool = False) -> Optional[StaffProfile]:
    stmt = staff_query().where(StaffProfile.id == staff_id)
    if fresh:
        stmt = stmt.execution_options(populate_existing=True)
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def get_staff_or_404(db: AsyncSession, staff_id: str) -> StaffProfile:
    staff = await get_staff(db, staff_id)
    if not staff:
        raise ResourceNotFound("Profil personnel non trouvé")
    return staff
