"""API routes."""
from fastapi import APIRouter

from webstrate_assets.api import assets

api_router = APIRouter()

api_router.include_router(
    assets.router,
    prefix="/webstrates/{webstrate_id}/assets",
    tags=["Assets"],
)
