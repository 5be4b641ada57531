from fastapi import APIRouter

from sqlbridge.api.v1.routes.commands import router as commands_router

api_router = APIRouter()

api_router.include_router(commands_router)


__all__ = ["api_router"]
