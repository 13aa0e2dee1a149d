"""
Cached directory listing and file reading.
"""
import asyncio
import logging
import os
from typing import List, Optional

import aiofiles

from .cache import PathCache, normalize_key
from .error.exceptions import ErrorContext, ListingError, ReadError

logger = logging.getLogger(__name__)

ENCODING = "utf-8"

def walk_templates(dir_path: str, extname: str) -> List[str]:
    """
    List files under ``dir_path`` whose names end with ``extname``.

    Symbolic links are followed, so a directory linked under two names is
    listed under both; a link back to one of its own ancestors is skipped. Hidden
    entries are skipped. Paths are relative to ``dir_path`` with forward
    slashes, sorted.

    Raises:
        OSError: If the directory cannot be read
    """
    if not os.path.isdir(dir_path):
        raise FileNotFoundError(2, "No such directory", dir_path)

    def on_error(e: OSError) -> None:
        raise e

    found = []
    # Real paths on the chain from dir_path to each directory still to visit
    ancestors = {dir_path: {os.path.realpath(dir_path)}}
    for root, dirs, files in os.walk(dir_path, onerror=on_error, followlinks=True):
        chain = ancestors.pop(root)
        kept = []
        for name in dirs:
            if name.startswith("."):
                continue
            child = os.path.join(root, name)
            real = os.path.realpath(child)
            if real in chain:
                logger.debug("Skipping symlink cycle at %s", child)
                continue
            ancestors[child] = chain | {real}
            kept.append(name)
        dirs[:] = kept

        for name in files:
            if name.startswith(".") or not name.endswith(extname):
                continue
            full_path = os.path.join(root, name)
            if not os.path.isfile(full_path):
                continue
            rel_path = os.path.relpath(full_path, dir_path)
            found.append(rel_path.replace(os.sep, "/"))

    return sorted(found)

class DirectoryLister:
    """Lists template files under a directory, backed by a PathCache."""

    def __init__(self, extname: str, cache: Optional[PathCache] = None):
        self.extname = extname
        self.cache = cache if cache is not None else PathCache("directory")

    async def list(self, dir_path: str, use_cache: bool = False) -> List[str]:
        """
        List template files under a directory.

        Args:
            dir_path: Directory to search recursively
            use_cache: Whether to reuse/populate the listing cache

        Returns:
            A fresh list of relative paths; mutating it does not touch the cache

        Raises:
            ListingError: If the directory cannot be enumerated
        """
        dir_path = normalize_key(dir_path)

        async def compute() -> List[str]:
            try:
                listing = await asyncio.to_thread(walk_templates, dir_path, self.extname)
            except OSError as e:
                logger.warning("Failed to list templates in %s: %s", dir_path, e)
                raise ListingError(
                    f"Unable to list templates in {dir_path}: {e}",
                    ErrorContext("DirectoryLister", "list"),
                    path=dir_path,
                ) from e
            logger.debug("Listed %d templates in %s", len(listing), dir_path)
            return listing

        listing = await self.cache.get(dir_path, compute, use_cache)
        return list(listing)

class FileReader:
    """Reads template sources as text, backed by a PathCache."""

    def __init__(self, cache: Optional[PathCache] = None, encoding: str = ENCODING):
        self.cache = cache if cache is not None else PathCache("file")
        self.encoding = encoding

    async def read(self, file_path: str, use_cache: bool = False) -> str:
        """
        Read a file's contents.

        Raises:
            ReadError: If the file is missing, unreadable or not valid text
        """
        file_path = normalize_key(file_path)

        async def compute() -> str:
            try:
                async with aiofiles.open(file_path, mode="r", encoding=self.encoding) as f:
                    content = await f.read()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Failed to read template %s: %s", file_path, e)
                raise ReadError(
                    f"Unable to read template {file_path}: {e}",
                    ErrorContext("FileReader", "read"),
                    path=file_path,
                ) from e
            logger.debug("Read %d characters from %s", len(content), file_path)
            return content

        return await self.cache.get(file_path, compute, use_cache)
