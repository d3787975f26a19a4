import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.api.v1.router import router as v1_router
from app.core.config import settings
from app.core.telemetry import setup_telemetry
from app.services.auth import close_token_verifier
from app.services.errors import InvalidArgumentError, ParkingError

logging.basicConfig(level=settings.log_level.upper())
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_token_verifier()


app = FastAPI(title="Parking API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = InvalidArgumentError("Invalid request", errors=jsonable_encoder(exc.errors()))
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "code": "internal", "detail": {"error": str(exc)}},
    )


setup_telemetry(app)
app.include_router(v1_router)
app.mount(settings.uploads_url_prefix, StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")
