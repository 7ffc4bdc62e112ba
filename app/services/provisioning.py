# app/services/provisioning.py
"""
Création d'un acteur (identité Supabase + ligne users + profil staff/client).

Les deux systèmes ne partagent pas de transaction: la séquence est une saga
explicite. L'identité est créée d'abord; si l'écriture en base échoue, la
session est annulée puis l'identité supprimée (compensation). Un échec de la
compensation est journalisé et laisse une identité orpheline à nettoyer.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    ApiError,
    ResourceConflict,
    ResourceNotFound,
    StateConflict,
    StoreFailure,
    UnexpectedError,
    ValidationFailed,
)
from app.core.validation import validate_payload
from app.integrations.supabase_auth import SupabaseAuthError
from app.modules.clients.schemas import ClientProfileIn
from app.modules.clients.models import Client
from app.modules.staff.models import StaffProfile
from app.modules.staff.validators import validate_staff, with_staff_defaults
from app.modules.users.models import User

logger = structlog.get_logger(__name__)

DEFAULT_POSITION = "Agent de collecte"


def identity_error(e: SupabaseAuthError) -> ApiError:
    """Traduit un refus du fournisseur d'identité en erreur HTTP."""
    if e.status_code == 404:
        return ResourceNotFound("Utilisateur non trouvé dans le système d'authentification")
    if e.status_code in (409, 422) and "registered" in e.message.lower():
        return ResourceConflict(e.message)
    if e.status_code is not None and 400 <= e.status_code < 500:
        return StateConflict(e.message)
    return UnexpectedError("Le service d'authentification est indisponible.", details=e.message)


def _split_name(full_name: str) -> tuple[str, str]:
    parts = full_name.split(None, 1)
    if len(parts) == 2:
        return parts[0], parts[1]
    return full_name, full_name


def _staff_profile(user_id: str, full_name: str, profile: Dict[str, Any]) -> StaffProfile:
    first, last = _split_name(full_name)
    data = {"first_name": first, "last_name": last, "position": DEFAULT_POSITION, **profile}
    result = validate_staff(data)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    values = with_staff_defaults(result.data)
    return StaffProfile(id=user_id, **values)


def _client_profile(user_id: str, full_name: str, profile: Dict[str, Any]) -> Client:
    result = validate_payload(ClientProfileIn, profile)
    if not result.is_valid:
        raise ValidationFailed(result.errors)
    values = result.data
    values["company_name"] = values.get("company_name") or full_name
    values["contact_person"] = values.get("contact_person") or full_name
    return Client(user_id=user_id, **values)


async def _compensate(provider, user_id: str, email: str) -> None:
    try:
        await provider.delete_user(user_id)
    except SupabaseAuthError as e:
        logger.error("provision_compensation_failed", user_id=user_id, email=email, error=e.message)
        raise StoreFailure(
            "Erreur lors de la finalisation de la création de l'utilisateur.",
            details="identité orpheline: " + user_id,
        ) from e
    logger.warning("provision_compensated", user_id=user_id, email=email)


async def provision_user(
    db: AsyncSession,
    provider,
    *,
    email: str,
    password: str,
    full_name: str,
    role: str,
    profile: Optional[Dict[str, Any]] = None,
) -> User:
    profile = profile or {}
    email = email.lower()

    # idempotence sur l'e-mail: un second appel ne crée pas de deuxième identité
    exists = await db.execute(select(User.id).where(func.lower(User.email) == email))
    if exists.scalar_one_or_none() is not None:
        raise ResourceConflict("Un utilisateur avec cet e-mail existe déjà.")

    # profil validé avant tout effet de bord
    if role == "staff":
        pending_profile = _staff_profile("", full_name, profile)
    elif role == "client":
        pending_profile = _client_profile("", full_name, profile)
    else:
        pending_profile = None

    try:
        identity = await provider.create_user(
            email=email,
            password=password,
            email_confirm=True,
            user_metadata={"full_name": full_name, "role": role},
        )
    except SupabaseAuthError as e:
        logger.info("provision_identity_refused", email=email, error=e.message)
        raise identity_error(e) from e

    identity = identity.get("user", identity)
    user_id = str(identity["id"])

    user = User(id=user_id, full_name=full_name, email=email, role=role)
    db.add(user)
    if isinstance(pending_profile, StaffProfile):
        pending_profile.id = user_id
        db.add(pending_profile)
    elif isinstance(pending_profile, Client):
        pending_profile.user_id = user_id
        db.add(pending_profile)

    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("provision_store_failed", user_id=user_id, email=email, error=str(getattr(e, "orig", e)))
        await _compensate(provider, user_id, email)
        raise StoreFailure("Erreur lors de la finalisation de la création de l'utilisateur.") from e

    logger.info("user_provisioned", user_id=user_id, role=role)
    return user
