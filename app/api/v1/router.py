from fastapi import APIRouter

from app.api.v1.endpoints.health import router as health_router
from app.api.v1.endpoints.parkings import router as parkings_router


router = APIRouter(prefix="/v1")
router.include_router(health_router, tags=["health"])
router.include_router(parkings_router, tags=["parkings"])
