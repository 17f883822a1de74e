"""Disk-backed storage for uploaded file bytes."""

import asyncio
import secrets
from pathlib import Path
from typing import Iterable, Tuple

import aiofiles
import aiofiles.os
from loguru import logger

from pocket_drive.services.exceptions import FileOperationError

MAX_SUFFIX_LENGTH = 16


class FileService:
    """Stores file bytes under <base_path>/<pocket_id>/<random name><ext>.

    Stored paths are opaque to everything outside this class; items only
    keep the string returned by write_file().
    """

    def __init__(self, base_path: Path, delete_timeout: float = 10.0):
        self.base_path = base_path.resolve()
        self.delete_timeout = delete_timeout

    def pocket_dir(self, pocket_id: str) -> Path:
        return self.base_path / pocket_id

    @staticmethod
    def _stored_name(original_name: str) -> str:
        suffix = Path(original_name).suffix
        if len(suffix) > MAX_SUFFIX_LENGTH or not suffix[1:].isalnum():
            suffix = ""
        return f"{secrets.token_hex(16)}{suffix}"

    async def write_file(self, pocket_id: str, original_name: str, content: bytes) -> Tuple[str, int]:
        """Write bytes for a new file.

        Args:
            pocket_id: Pocket the file belongs to
            original_name: Client file name, only used for its extension
            content: File bytes

        Returns:
            (stored path, size in bytes)

        Raises:
            FileOperationError: If the bytes can't be written
        """
        directory = self.pocket_dir(pocket_id)
        path = directory / self._stored_name(original_name)
        try:
            await aiofiles.os.makedirs(directory, exist_ok=True)
            async with aiofiles.open(path, mode="wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Failed to write file {path}: {e}")
            raise FileOperationError(f"Failed to store file {original_name}") from e

        logger.debug(f"Stored {len(content)} bytes for '{original_name}' at {path}")
        return str(path), len(content)

    async def exists(self, path: str | Path | None) -> bool:
        if not path:
            return False
        return await aiofiles.os.path.exists(path)

    async def delete_file(self, path: str | Path) -> bool:
        """Remove a stored file. Returns False if it was already gone."""
        try:
            await aiofiles.os.remove(path)
            return True
        except FileNotFoundError:
            return False

    async def delete_files(self, paths: Iterable[str]) -> int:
        """Best-effort removal of stored files after their rows are gone.

        Each removal is bounded by delete_timeout. Failures are logged and
        never raised: the rows are already deleted, so the tree is consistent
        and a leftover file is only wasted space.

        Returns:
            Number of files actually removed
        """

        async def _remove(path: str) -> bool:
            try:
                return await asyncio.wait_for(self.delete_file(path), timeout=self.delete_timeout)
            except TimeoutError:
                logger.warning(f"Timed out removing stored file {path}")
            except OSError as e:
                logger.warning(f"Failed to remove stored file {path}: {e}")
            return False

        results = await asyncio.gather(*(_remove(p) for p in paths))
        return sum(1 for removed in results if removed)
