# app/modules/auth/router.py
from typing import Optional
from urllib.parse import urlencode

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from app.core.dependencies import get_identity_provider
from app.integrations.supabase_auth import SupabaseAuthError

logger = structlog.get_logger(__name__)

router = APIRouter()

# paramètres propres à la vérification, jamais renvoyés au front
_VERIFY_PARAMS = ("token_hash", "type")


def _safe_path(next_path: Optional[str]) -> str:
    # chemin relatif uniquement (pas de redirection ouverte)
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return "/"
    return next_path


def _redirect(request: Request, path: str, params: dict) -> RedirectResponse:
    query = urlencode(params)
    url = str(request.base_url).rstrip("/") + path + (f"?{query}" if query else "")
    return RedirectResponse(url, status_code=307)


@router.get("/callback")
async def email_callback(
    request: Request,
    token_hash: Optional[str] = None,
    type: Optional[str] = None,
    next: Optional[str] = None,
    provider=Depends(get_identity_provider),
):
    """Lien de confirmation d'e-mail: vérifie le jeton puis redirige vers le front."""
    if token_hash and type == "email":
        try:
            await provider.verify_otp(type, token_hash)
        except SupabaseAuthError as e:
            logger.info("email_verification_failed", error=e.message)
        else:
            logger.info("email_verified")
            return _redirect(request, _safe_path(next), {"message": "email-verified"})

    kept = {k: v for k, v in request.query_params.items() if k not in _VERIFY_PARAMS}
    return _redirect(request, "/error", kept)
