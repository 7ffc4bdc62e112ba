# app/integrations/supabase_auth.py
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from app.core.security import AuthSession, session_from_claims


class SupabaseAuthError(RuntimeError):
    def __init__(self, code: str, data: Any, status_code: Optional[int] = None):
        super().__init__(code)
        self.code = code
        self.data = data
        self.status_code = status_code

    @property
    def message(self) -> str:
        if isinstance(self.data, dict):
            for k in ("msg", "message", "error_description", "error"):
                if self.data.get(k):
                    return str(self.data[k])
        return self.code


class SupabaseAuthClient:
    """Client HTTP minimal pour GoTrue (Supabase Auth)."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: str = "",
        jwt_secret: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") + "/auth/v1"
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self.jwt_secret = jwt_secret
        self._timeout = timeout
        self._transport = transport

    def _headers(self, bearer: Optional[str] = None, admin: bool = False) -> Dict[str, str]:
        key = self.service_role_key if admin else self.anon_key
        return {
            "accept": "application/json",
            "content-type": "application/json",
            "apikey": key,
            "Authorization": f"Bearer {bearer or key}",
        }

    async def _request(
        self,
        method: str,
        path: str,
        code: str,
        *,
        headers: Dict[str, str],
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                r = await client.request(method, f"{self.base_url}{path}", json=json, headers=headers)
            except httpx.HTTPError as e:
                raise SupabaseAuthError(code, {"error": str(e)}) from e
        if r.status_code >= 400:
            try:
                data = r.json()
            except ValueError:
                data = {"error": r.text}
            raise SupabaseAuthError(code, data, status_code=r.status_code)
        if not r.content:
            return {}
        return r.json()

    # --- session ---
    async def get_user(self, access_token: str) -> Dict[str, Any]:
        return await self._request("GET", "/user", "get_user_failed", headers=self._headers(bearer=access_token))

    async def get_session(self, access_token: str) -> Optional[AuthSession]:
        # vérification locale si le secret JWT est connu, sinon on demande au serveur
        if self.jwt_secret:
            return session_from_claims(access_token, self.jwt_secret)
        try:
            user = await self.get_user(access_token)
        except SupabaseAuthError as e:
            if e.status_code in (401, 403):
                return None
            raise
        if not user.get("id"):
            return None
        return AuthSession(user_id=str(user["id"]), email=user.get("email"), access_token=access_token)

    async def verify_otp(self, type: str, token_hash: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/verify", "verify_otp_failed",
            headers=self._headers(),
            json={"type": type, "token_hash": token_hash},
        )

    # --- admin ---
    async def create_user(
        self,
        *,
        email: str,
        password: str,
        email_confirm: bool = True,
        user_metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload = {
            "email": email,
            "password": password,
            "email_confirm": email_confirm,
            "user_metadata": user_metadata or {},
        }
        return await self._request("POST", "/admin/users", "create_user_failed", headers=self._headers(admin=True), json=payload)

    async def get_user_by_id(self, user_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/admin/users/{user_id}", "get_user_failed", headers=self._headers(admin=True))

    async def update_user_by_id(self, user_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "PUT", f"/admin/users/{user_id}", "update_user_failed",
            headers=self._headers(admin=True), json=attributes,
        )

    async def delete_user(self, user_id: str) -> None:
        await self._request("DELETE", f"/admin/users/{user_id}", "delete_user_failed", headers=self._headers(admin=True))
