from fastapi import APIRouter

from signaling.api.endpoints import ice, rooms

api_router = APIRouter()

api_router.include_router(ice.router)
api_router.include_router(rooms.router)
