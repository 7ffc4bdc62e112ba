# app/modules/missions/crud.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import ResourceNotFound
from app.modules.clients.models import Client
from .models import Mission, Comment

# relations exposées par MissionOut
MISSION_LOAD = (
    selectinload(Mission.client).selectinload(Client.user),
    selectinload(Mission.assigned_staff),
    selectinload(Mission.mission_updates),
    selectinload(Mission.comments).selectinload(Comment.user),
)


def missions_query():
    return select(Mission).options(*MISSION_LOAD)


async def get_mission(db: AsyncSession, mission_id: str, *, fresh: bool = False) -> Optional[Mission]:
    stmt = missions_query().where(Mission.id == mission_id)
    if fresh:
        stmt = stmt.execution_options(populate_existing=True)
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


async def get_mission_or_404(db: AsyncSession, mission_id: str) -> Mission:
    mission = await get_mission(db, mission_id)
    if not mission:
        raise ResourceNotFound("Mission non trouvée")
    return mission
