# scripts/create_admin.py
"""Crée le premier administrateur (identité Supabase + ligne users)."""
import sys, asyncio
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from getpass import getpass

from app.core.dependencies import get_identity_provider
from app.core.errors import ApiError
from app.core.logging import setup_logging
from app.db import models  # noqa: F401
from app.db.session import AsyncSessionLocal, engine
from app.modules.users.validators import validate_user
from app.services.provisioning import provision_user


async def main():
    setup_logging()
    full_name = input("Nom complet: ").strip() or "Administrateur"
    email = input("E-mail: ").strip().lower()
    password = getpass("Mot de passe: ")

    result = validate_user({"email": email, "password": password, "full_name": full_name, "role": "admin"})
    if not result.is_valid:
        print("Données invalides: " + "; ".join(result.errors))
        return 1

    async with AsyncSessionLocal() as db:
        try:
            user = await provision_user(
                db,
                get_identity_provider(),
                email=result.data["email"],
                password=password,
                full_name=full_name,
                role="admin",
            )
        except ApiError as e:
            print(f"Échec: {e.message}")
            return 1
    await engine.dispose()
    print(f"Admin créé: {user.id} ({user.email})")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
