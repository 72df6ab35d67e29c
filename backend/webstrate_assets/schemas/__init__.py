"""Pydantic schemas."""
from webstrate_assets.schemas.asset import (
    AssetSummary,
    AssetTeardownResponse,
    CopyAssetsRequest,
    RestoreAssetsRequest,
)

__all__ = [
    "AssetSummary",
    "AssetTeardownResponse",
    "CopyAssetsRequest",
    "RestoreAssetsRequest",
]
