"""CSV search indexer client."""
import httpx


class SearchIndexClient:
    """Client for the service that makes CSV assets searchable.

    Rows are keyed by asset record id. Copies share the rows of their root
    record (`AssetRecord.original_id`).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def index_csv(self, record_id: int, blob_path: str) -> None:
        """
        Index a CSV blob. Returns once indexing has finished.

        API Endpoint: POST /searchables
        """
        async with self._client() as client:
            response = await client.post(
                "/searchables",
                json={"assetId": record_id, "path": blob_path},
            )
            response.raise_for_status()

    async def delete_index(self, record_id: int) -> bool:
        """
        Drop the indexed rows of a record.

        API Endpoint: DELETE /searchables/{record_id}

        Returns:
            False if nothing was indexed for the record
        """
        async with self._client() as client:
            response = await client.delete(f"/searchables/{record_id}")
            if response.status_code == 404:
                return False
            response.raise_for_status()
            return True
