from fastapi import APIRouter

from promptrepeat.api.v1.optimize import router as optimize_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(optimize_router)
