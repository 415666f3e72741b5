import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from wallet_auth.api.router import api_router
from wallet_auth.core.config import settings
from wallet_auth.core.deps import get_expiry_sweeper
from wallet_auth.core.exceptions import AuthError
from wallet_auth.schemas.auth import ErrorResponse

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.include_router(api_router, prefix="/api")


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.code, message=exc.message).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error="MalformedRequest",
            message=f"Missing or invalid fields: {', '.join(fields)}",
        ).model_dump(),
    )


@app.on_event("startup")
def start_expiry_sweeper():
    get_expiry_sweeper().start()


@app.on_event("shutdown")
def stop_expiry_sweeper():
    get_expiry_sweeper().stop()
    logger.info("Expiry sweeper stopped")
