"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.orders import router as orders_router
from api.v1.routes.products import router as products_router
from api.v1.routes.profile import router as profile_router

router = APIRouter()
router.include_router(profile_router)
router.include_router(products_router)
router.include_router(orders_router)
