# app/asgi.py
import sys, asyncio

# Change la boucle sous Windows AVANT d'importer le reste (psycopg async)
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from app.main import app  # noqa: E402,F401
