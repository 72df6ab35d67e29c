"""Announce new assets to clients connected to a document."""
import httpx

from webstrate_assets.utils.background import spawn


class NotificationClient:
    """Fire-and-forget client for the real-time notification channel."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self.transport = transport

    async def send(self, webstrate_id: str, asset: dict) -> None:
        """
        Deliver an asset announcement.

        API Endpoint: POST /webstrates/{webstrate_id}/assets
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            response = await client.post(f"/webstrates/{webstrate_id}/assets", json=asset)
            response.raise_for_status()

    def announce(self, webstrate_id: str, asset: dict) -> None:
        """Schedule an announcement without waiting for it."""
        spawn(self.send(webstrate_id, asset), name=f"announce-{webstrate_id}")
