# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
File-backed custom storage.

Persists the whole cache as one JSON document so entries survive a host
restart the way ``localStorage`` survives a browser restart.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import aiofiles
import aiofiles.os

from ..errors import StorageError
from .custom import CustomStorage


logger = logging.getLogger(__name__)


class FileStorage(CustomStorage):
    """Custom storage that keeps its entries in a JSON file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()
        self._entries: Optional[Dict[str, str]] = None

    async def _load(self) -> Dict[str, str]:
        if self._entries is not None:
            return self._entries

        if not await aiofiles.os.path.exists(self.path):
            self._entries = {}
            return self._entries

        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            raw = await f.read()

        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            raise StorageError(f"Cache file {self.path} is corrupted", cause=e) from e

        if not isinstance(data, dict):
            raise StorageError(f"Cache file {self.path} does not hold a JSON object")

        self._entries = {str(k): str(v) for k, v in data.items()}
        logger.debug(f"Loaded {len(self._entries)} entries from {self.path}")
        return self._entries

    async def _flush(self) -> None:
        # The target is only ever replaced by a complete document
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(self._entries, indent=2))
        await aiofiles.os.replace(tmp_path, self.path)

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entries = await self._load()
            return entries.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            entries = await self._load()
            entries[key] = value
            await self._flush()

    async def remove(self, key: str) -> None:
        async with self._lock:
            entries = await self._load()
            if entries.pop(key, None) is not None:
                await self._flush()

    async def clear(self) -> None:
        async with self._lock:
            await self._load()
            self._entries = {}
            await self._flush()
            logger.info(f"Cleared cache file {self.path}")

    async def list_keys(self) -> List[str]:
        async with self._lock:
            entries = await self._load()
            return list(entries)
