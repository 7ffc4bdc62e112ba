# app/core/security.py
from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from jose import JWTError, jwt

SECRET_ALG = "HS256"
SUPABASE_AUDIENCE = "authenticated"
BASE64_PREFIX = "base64-"


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: Optional[str]
    access_token: str


def default_cookie_name(supabase_url: str) -> str:
    # @supabase/ssr: sb-<project-ref>-auth-token
    host = urlparse(supabase_url).hostname or "localhost"
    ref = host.split(".")[0]
    return f"sb-{ref}-auth-token"


def _join_chunks(cookies: Mapping[str, str], name: str) -> Optional[str]:
    if name in cookies:
        return cookies[name]
    chunks = []
    i = 0
    while f"{name}.{i}" in cookies:
        chunks.append(cookies[f"{name}.{i}"])
        i += 1
    return "".join(chunks) or None


def _access_token_from_cookie(raw: str) -> Optional[str]:
    value = raw.strip()
    if value.startswith(BASE64_PREFIX):
        try:
            padded = value[len(BASE64_PREFIX):]
            padded += "=" * (-len(padded) % 4)
            value = base64.urlsafe_b64decode(padded).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
    if value.count(".") == 2 and not value.startswith(("{", "[")):
        return value  # JWT brut
    try:
        data = json.loads(value)
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("access_token")
    # ancien format: [access_token, refresh_token, ...]
    if isinstance(data, list) and data and isinstance(data[0], str):
        return data[0]
    return None


def extract_access_token(
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    cookie_name: Optional[str] = None,
) -> Optional[str]:
    """Bearer d'abord, puis cookie de session Supabase (éventuellement découpé)."""
    auth = headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token

    names = [cookie_name] if cookie_name else []
    names += sorted({k.rsplit(".", 1)[0] for k in cookies if k.startswith("sb-") and "-auth-token" in k})
    for name in names:
        raw = _join_chunks(cookies, name)
        if raw:
            token = _access_token_from_cookie(raw)
            if token:
                return token
    return None


def decode_token(token: str, secret_key: str) -> dict[str, Any]:
    return jwt.decode(token, secret_key, algorithms=[SECRET_ALG], audience=SUPABASE_AUDIENCE)


def session_from_claims(token: str, secret_key: str) -> Optional[AuthSession]:
    try:
        payload = decode_token(token, secret_key)
    except JWTError:
        return None
    sub = payload.get("sub")
    if not sub:
        return None
    return AuthSession(user_id=str(sub), email=payload.get("email"), access_token=token)

