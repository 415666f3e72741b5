from fastapi import APIRouter
from wallet_auth.api.v1.health import router as health_router
from wallet_auth.api.v1.auth import router as auth_router


api_router = APIRouter()
api_router.include_router(health_router, prefix="/v1", tags=["health"])
api_router.include_router(auth_router, prefix="/v1", tags=["auth"])
