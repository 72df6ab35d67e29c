"""Handles shared by asset operations for the lifetime of the process."""
from dataclasses import dataclass

from webstrate_assets.config import Settings
from webstrate_assets.services.documents import DocumentServiceClient
from webstrate_assets.services.notifications import NotificationClient
from webstrate_assets.services.search import SearchIndexClient
from webstrate_assets.utils.background import drain
from webstrate_assets.utils.storage import ContentStore


@dataclass
class AssetContext:
    """Content store and collaborator clients, built once at startup."""

    settings: Settings
    storage: ContentStore
    documents: DocumentServiceClient
    notifier: NotificationClient
    indexer: SearchIndexClient

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetContext":
        return cls(
            settings=settings,
            storage=ContentStore(settings.upload_dir, settings.hash_algorithm),
            documents=DocumentServiceClient(
                settings.document_service_url, settings.collaborator_timeout
            ),
            notifier=NotificationClient(
                settings.notification_service_url, settings.collaborator_timeout
            ),
            indexer=SearchIndexClient(
                settings.search_service_url, settings.collaborator_timeout
            ),
        )

    async def close(self) -> None:
        """Let pending blob discards and announcements finish."""
        await drain()
