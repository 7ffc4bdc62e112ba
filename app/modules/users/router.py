# app/modules/users/router.py
from __future__ import annotations

from typing import Any, List

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_identity_provider, get_json_body, with_auth
from app.core.errors import ResourceNotFound, StateConflict, ValidationFailed
from app.core.guard import ADMIN, Actor
from app.integrations.supabase_auth import SupabaseAuthError
from app.modules.missions.schemas import MessageOut
from app.services.provisioning import identity_error, provision_user
from .models import User
from .schemas import UserEnvelope, UserOut
from .validators import validate_user

logger = structlog.get_logger(__name__)

router = APIRouter()  # inclus avec prefix "/users"

ADMIN_ONLY = "Cette porte ne s'ouvre qu'aux âmes autorisées…"


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    res = await db.execute(select(User).where(User.id == user_id))
    user = res.scalar_one_or_none()
    if not user:
        raise ResourceNotFound("Utilisateur non trouvé")
    return user


@router.get("", response_model=List[UserOut])
async def list_users(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth(ADMIN, message=ADMIN_ONLY)),
):
    res = await db.execute(select(User).order_by(User.created_at.desc()))
    return res.scalars().all()


@router.get("/me", response_model=UserOut)
async def read_me(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(with_auth()),
):
    return await _get_user_or_404(db, actor.id)


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_user(
    db: AsyncSession = Depends(get_db),
    provider=Depends(get_identity_provider),
    actor: Actor = Depends(with_auth(ADMIN, message=ADMIN_ONLY)),
    payload: dict[str, Any] = Depends(get_json_body),
):
    result = validate_user(payload)
    if not result.is_valid:
        raise ValidationFailed(result.errors, "Données manquantes pour la création de l'utilisateur.")
    data = result.data
    user = await provision_user(
        db,
        provider,
        email=data["email"],
        password=data["password"],
        full_name=data["full_name"],
        role=data["role"],
        profile=data.get("profile"),
    )
    logger.info("user_created", user_id=user.id, actor_id=actor.id)
    return UserEnvelope(user=UserOut.model_validate(user), message="Utilisateur créé avec succès.")


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    provider=Depends(get_identity_provider),
    actor: Actor = Depends(with_auth(ADMIN, message=ADMIN_ONLY)),
    payload: dict[str, Any] = Depends(get_json_body),
):
    result = validate_user(payload, partial=True)
    if not result.is_valid:
        raise ValidationFailed(result.errors, "Données manquantes pour la mise à jour.")
    user = await _get_user_or_404(db, user_id)
    changes = result.data

    # métadonnées de l'identité d'abord, puis la ligne users
    metadata = {"full_name": changes.get("full_name", user.full_name), "role": changes.get("role", user.role)}
    try:
        await provider.update_user_by_id(user_id, {"user_metadata": metadata})
    except SupabaseAuthError as e:
        logger.error("identity_update_failed", user_id=user_id, error=e.message)
        raise identity_error(e) from e

    for k, val in changes.items():
        setattr(user, k, val)
    await db.commit()
    await db.refresh(user)
    logger.info("user_updated", user_id=user_id, actor_id=actor.id, fields=sorted(changes))
    return UserEnvelope(user=UserOut.model_validate(user), message="Utilisateur mis à jour avec succès.")


@router.delete("/{user_id}", response_model=MessageOut)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    provider=Depends(get_identity_provider),
    actor: Actor = Depends(with_auth(ADMIN, message=ADMIN_ONLY)),
):
    if user_id == actor.id:
        raise StateConflict("Un administrateur ne peut pas se supprimer lui-même.")
    user = await _get_user_or_404(db, user_id)

    try:
        await provider.delete_user(user_id)
    except SupabaseAuthError as e:
        logger.error("identity_delete_failed", user_id=user_id, error=e.message)
        raise identity_error(e) from e

    await db.delete(user)
    await db.commit()
    logger.info("user_deleted", user_id=user_id, actor_id=actor.id)
    return MessageOut(message="Utilisateur supprimé avec succès.")
