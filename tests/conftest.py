from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.dependencies import get_db, get_identity_provider
from app.core.security import AuthSession
from app.db.base import Base, new_id
from app.integrations.supabase_auth import SupabaseAuthError
from app.main import app
from app.modules.clients.models import Client
from app.modules.staff.models import StaffProfile
from app.modules.users.models import User


class FakeIdentityProvider:
    """Fournisseur d'identité en mémoire: jetons opaques et admin users."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.tokens: dict[str, str] = {}
        self.deleted: list[str] = []
        self.fail_delete = False

    def login(self, user_id: str, email: Optional[str] = None) -> dict[str, str]:
        token = f"token-{user_id}"
        self.tokens[token] = user_id
        self.users.setdefault(user_id, {"id": user_id, "email": email, "user_metadata": {}})
        return {"Authorization": f"Bearer {token}"}

    async def get_session(self, access_token: str) -> Optional[AuthSession]:
        user_id = self.tokens.get(access_token)
        if not user_id:
            return None
        return AuthSession(user_id=user_id, email=self.users[user_id].get("email"), access_token=access_token)

    async def verify_otp(self, type: str, token_hash: str) -> dict[str, Any]:
        if token_hash != "valid-hash":
            raise SupabaseAuthError("verify_otp_failed", {"msg": "Token has expired or is invalid"}, status_code=403)
        return {"user": {"id": "verified"}}

    async def create_user(self, *, email, password, email_confirm=True, user_metadata=None) -> dict[str, Any]:
        if any(u.get("email") == email for u in self.users.values()):
            raise SupabaseAuthError(
                "create_user_failed",
                {"msg": "A user with this email address has already been registered"},
                status_code=422,
            )
        user_id = new_id()
        self.users[user_id] = {"id": user_id, "email": email, "user_metadata": dict(user_metadata or {})}
        return self.users[user_id]

    async def get_user_by_id(self, user_id: str) -> dict[str, Any]:
        if user_id not in self.users:
            raise SupabaseAuthError("get_user_failed", {"msg": "User not found"}, status_code=404)
        return self.users[user_id]

    async def update_user_by_id(self, user_id: str, attributes: dict[str, Any]) -> dict[str, Any]:
        user = await self.get_user_by_id(user_id)
        user["user_metadata"].update(attributes.get("user_metadata") or {})
        return user

    async def delete_user(self, user_id: str) -> None:
        if self.fail_delete:
            raise SupabaseAuthError("delete_user_failed", {"msg": "boom"}, status_code=500)
        self.users.pop(user_id, None)
        self.deleted.append(user_id)


@dataclass
class Api:
    client: TestClient
    provider: FakeIdentityProvider
    session_factory: async_sessionmaker
    ids: dict[str, str] = field(default_factory=dict)

    def seed(self, *objs: Any) -> None:
        async def _run() -> None:
            async with self.session_factory() as db:
                db.add_all(objs)
                await db.commit()

        asyncio.run(_run())

    def fetch(self, model: Any, obj_id: str) -> Any:
        async def _run() -> Any:
            async with self.session_factory() as db:
                return await db.get(model, obj_id)

        return asyncio.run(_run())

    def count(self, model: Any) -> int:
        async def _run() -> int:
            async with self.session_factory() as db:
                res = await db.execute(select(model))
                return len(res.scalars().all())

        return asyncio.run(_run())

    def as_user(self, key: str) -> dict[str, str]:
        return self.provider.login(self.ids[key])


def _user(full_name: str, email: str, role: str) -> User:
    return User(id=new_id(), full_name=full_name, email=email, role=role)


@pytest.fixture
def api(tmp_path) -> Api:
    url = f"sqlite+aiosqlite:///{(tmp_path / 'test.db').as_posix()}"
    engine = create_async_engine(url, poolclass=NullPool)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    async def _create_all() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create_all())

    async def override_get_db():  # noqa: ANN202
        async with session_factory() as session:
            yield session

    provider = FakeIdentityProvider()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: provider

    harness = Api(client=TestClient(app), provider=provider, session_factory=session_factory)
    _seed_world(harness)
    try:
        yield harness
    finally:
        app.dependency_overrides.clear()
        asyncio.run(engine.dispose())


def _seed_world(api: Api) -> None:
    """admin, deux clients (avec fiche client) et deux membres du personnel."""
    admin = _user("Alice Admin", "admin@example.com", "admin")
    client_user = _user("Claire Client", "client@example.com", "client")
    other_client_user = _user("Olivier Autre", "other@example.com", "client")
    staff_user = _user("Sam Terrain", "staff@example.com", "staff")
    idle_user = _user("Ines Inactive", "idle@example.com", "staff")
    api.seed(admin, client_user, other_client_user, staff_user, idle_user)

    client = Client(id=new_id(), user_id=client_user.id, company_name="Recyclerie Paris", contact_person="Claire")
    other = Client(id=new_id(), user_id=other_client_user.id, company_name="Lyon Déchets")
    staff = StaffProfile(
        id=staff_user.id, first_name="Sam", last_name="Terrain", position="Chauffeur",
        department="Collecte", status="active", skills=["poids lourd"], hire_date=date(2023, 5, 1),
    )
    idle = StaffProfile(
        id=idle_user.id, first_name="Ines", last_name="Inactive", position="Trieuse",
        department="Tri", status="inactive", skills=[], hire_date=date(2021, 1, 10),
    )
    api.seed(client, other, staff, idle)

    api.ids.update(
        admin=admin.id,
        client_user=client_user.id,
        other_client_user=other_client_user.id,
        staff=staff_user.id,
        idle_staff=idle_user.id,
        client=client.id,
        other_client=other.id,
    )
