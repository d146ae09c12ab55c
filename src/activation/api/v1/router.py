from fastapi import APIRouter

from src.activation.api.v1 import activation, invitations

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(activation.router)
api_router.include_router(invitations.router)
