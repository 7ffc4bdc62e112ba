# app/api/v1/router.py
from fastapi import APIRouter
from app.modules.auth.router import router as auth_router
from app.modules.missions.router import router as missions_router
from app.modules.requests.router import router as requests_router
from app.modules.staff.router import router as staff_router
from app.modules.users.router import router as users_router
from app.modules.payments.router import router as payments_router

api_router = APIRouter()

api_router.include_router(auth_router,     prefix="/auth",     tags=["auth"])
api_router.include_router(missions_router, prefix="/missions", tags=["missions"])
api_router.include_router(requests_router, prefix="/requests", tags=["requests"])
api_router.include_router(staff_router,    prefix="/staff",    tags=["staff"])
api_router.include_router(users_router,    prefix="/users",    tags=["users"])
api_router.include_router(payments_router, prefix="/payments", tags=["payments"])
