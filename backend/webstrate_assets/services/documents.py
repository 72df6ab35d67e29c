"""Document service client: versions, tags and write permissions."""
import httpx
from pydantic import BaseModel

from webstrate_assets.exceptions import NotFoundError


class VersionResponse(BaseModel):
    """Version of a document, current or behind a tag."""
    version: int


class PermissionsResponse(BaseModel):
    """Permissions a user holds on a document."""
    exists: bool = True
    permissions: str = ""


class DocumentServiceClient:
    """Client for the document versioning engine.

    Owns version numbers and tags; this service only reads them.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
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

    async def get_current_version(self, webstrate_id: str) -> int:
        """
        Get the current version of a document.

        API Endpoint: GET /webstrates/{webstrate_id}/version
        """
        async with self._client() as client:
            response = await client.get(f"/webstrates/{webstrate_id}/version")
            if response.status_code == 404:
                raise NotFoundError("Document doesn't exist.", details={"webstrateId": webstrate_id})
            response.raise_for_status()
            return VersionResponse(**response.json()).version

    async def resolve_tag(self, webstrate_id: str, tag: str) -> int:
        """
        Get the version a tag points at.

        API Endpoint: GET /webstrates/{webstrate_id}/tags/{tag}

        Raises:
            NotFoundError: unknown document or tag
        """
        async with self._client() as client:
            response = await client.get(f"/webstrates/{webstrate_id}/tags/{tag}")
            if response.status_code == 404:
                raise NotFoundError(
                    f"Tag '{tag}' not found.",
                    details={"webstrateId": webstrate_id, "tag": tag},
                )
            response.raise_for_status()
            return VersionResponse(**response.json()).version

    async def can_write(self, user_id: str, webstrate_id: str) -> bool:
        """
        Whether `user_id` holds write permission on the document.

        API Endpoint: GET /webstrates/{webstrate_id}/permissions?userId=...

        Raises:
            NotFoundError: the document doesn't exist
        """
        async with self._client() as client:
            response = await client.get(
                f"/webstrates/{webstrate_id}/permissions",
                params={"userId": user_id},
            )
            if response.status_code == 404:
                raise NotFoundError("Document doesn't exist.", details={"webstrateId": webstrate_id})
            response.raise_for_status()
            permissions = PermissionsResponse(**response.json())
        if not permissions.exists:
            raise NotFoundError("Document doesn't exist.", details={"webstrateId": webstrate_id})
        return "w" in permissions.permissions
