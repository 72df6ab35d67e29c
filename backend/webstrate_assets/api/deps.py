"""Shared API dependencies."""
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from webstrate_assets.context import AssetContext
from webstrate_assets.database import get_db
from webstrate_assets.services.asset_service import AssetService
from webstrate_assets.utils.security import get_user_id_from_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_context(request: Request) -> AssetContext:
    """Asset context built in the application lifespan."""
    return request.app.state.assets


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """Id of the calling user, anonymous without a valid token."""
    return get_user_id_from_token(credentials.credentials if credentials else None)


DbSession = Annotated[AsyncSession, Depends(get_db)]
Context = Annotated[AssetContext, Depends(get_context)]
CurrentUserId = Annotated[str, Depends(get_current_user_id)]


def get_asset_service(db: DbSession, context: Context) -> AssetService:
    return AssetService(db, context)


Assets = Annotated[AssetService, Depends(get_asset_service)]
