from fastapi import APIRouter

from wallet_auth.core.config import settings

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok", "store": settings.auth_store_backend}
