# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Host-supplied storage backends.

Embedding applications subclass ``CustomStorage`` to plug their own
medium (a native bridge, a network store, ...) into the cache. Any
operation the subclass leaves out raises ``UnimplementedCapabilityError``
when called.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..errors import UnimplementedCapabilityError
from .base import CacheLocation, StorageBackend


logger = logging.getLogger(__name__)


class CustomStorage(StorageBackend):
    """Base class for host-supplied storage."""

    kind = CacheLocation.CUSTOM

    async def get(self, key: str) -> Optional[str]:
        raise UnimplementedCapabilityError("get")

    async def set(self, key: str, value: str) -> None:
        raise UnimplementedCapabilityError("set")

    async def remove(self, key: str) -> None:
        raise UnimplementedCapabilityError("remove")

    async def clear(self) -> None:
        raise UnimplementedCapabilityError("clear")

    async def list_keys(self) -> List[str]:
        raise UnimplementedCapabilityError("list_keys")


class MemoryStorage(CustomStorage):
    """
    In-memory custom storage.

    Suitable for development, tests, and single-process hosts that do not
    need entries to outlive the process.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._store: Dict[str, str] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._store.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            self._store[key] = value
            logger.debug(f"Stored {key} in memory storage")

    async def remove(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            count = len(self._store)
            self._store.clear()
            logger.info(f"Cleared {count} entries from memory storage")

    async def list_keys(self) -> List[str]:
        async with self._lock:
            return list(self._store)
