"""
Content digests for files under observation.
"""

import hashlib

import aiofiles

CHUNK_SIZE = 1024 * 1024


async def sha256_checksum(file_path: str, chunk_size: int = CHUNK_SIZE) -> str:
    """
    Stream a file through SHA-256.

    Args:
        file_path: Path of the file to hash
        chunk_size: Bytes read per iteration

    Returns:
        Lower-case hex digest

    Raises:
        OSError: If the file cannot be opened or read
    """
    digest = hashlib.sha256()
    async with aiofiles.open(file_path, "rb") as f:
        while True:
            chunk = await f.read(chunk_size)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()
