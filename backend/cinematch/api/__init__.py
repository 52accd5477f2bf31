from fastapi import APIRouter
from cinematch.api.routers.content import router as content_router
from cinematch.api.routers.simulations import router as simulations_router


router = APIRouter()
router.include_router(content_router, tags=["content"])
router.include_router(simulations_router, tags=["simulations"])
