"""Content store for uploaded asset blobs."""
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from webstrate_assets.exceptions import StorageInconsistencyError
from webstrate_assets.utils.background import spawn
from webstrate_assets.utils.hashing import hash_file
from webstrate_assets.utils.logging import logger


class ContentStore:
    """Append-only local blob storage keyed by an opaque identifier.

    Blobs are written once under a fresh key and never overwritten.
    """

    def __init__(self, base_dir: str | Path, hash_algorithm: str = "sha256"):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.hash_algorithm = hash_algorithm

    def _generate_key(self) -> str:
        return uuid.uuid4().hex

    def get_absolute_path(self, key: str) -> Path:
        """Get absolute filesystem path for a blob."""
        return self.base_dir / key

    async def store(self, content: bytes) -> str:
        """
        Save bytes under a new key.

        Returns:
            The storage key.
        """
        key = self._generate_key()
        async with aiofiles.open(self.get_absolute_path(key), "wb") as f:
            await f.write(content)
        return key

    async def exists(self, key: str) -> bool:
        if not key:
            return False
        return await aiofiles.os.path.isfile(self.get_absolute_path(key))

    async def delete(self, key: str) -> bool:
        """
        Delete a blob.

        Returns False if there was nothing to delete.

        Raises:
            StorageInconsistencyError: the blob exists but could not be removed.
        """
        if not await self.exists(key):
            return False
        try:
            await aiofiles.os.remove(self.get_absolute_path(key))
        except OSError as exc:
            raise StorageInconsistencyError(key, str(exc)) from exc
        return True

    async def hash(self, key: str) -> str:
        """Content digest of a stored blob."""
        return await hash_file(self.get_absolute_path(key), self.hash_algorithm)

    def discard(self, key: str) -> None:
        """Delete a redundant blob in the background. Failures only cost disk space."""
        spawn(self._discard(key), name=f"discard-{key}")

    async def _discard(self, key: str) -> None:
        try:
            await self.delete(key)
        except StorageInconsistencyError as exc:
            logger.warning("Redundant blob left behind: {}", exc.message)
