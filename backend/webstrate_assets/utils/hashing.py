"""Content digests for duplicate detection."""
import hashlib
from pathlib import Path

import aiofiles

CHUNK_SIZE = 64 * 1024


async def hash_file(path: Path | str, algorithm: str = "sha256") -> str:
    """Return the hex digest of the file at `path`, read in chunks."""
    digest = hashlib.new(algorithm)
    async with aiofiles.open(path, "rb") as f:
        while True:
            chunk = await f.read(CHUNK_SIZE)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()
