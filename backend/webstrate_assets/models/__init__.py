"""Database models."""
from webstrate_assets.models.asset import AssetRecord

__all__ = ["AssetRecord"]
