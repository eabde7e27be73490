# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Backend over the host's local or session Web Storage area.
"""

import logging
from typing import List, Optional

from ..host import WebStorageArea
from .base import CacheLocation, StorageBackend


logger = logging.getLogger(__name__)


class WebStorageBackend(StorageBackend):
    """Adapts a synchronous Web Storage area to the async backend interface."""

    def __init__(self, area: WebStorageArea, kind: CacheLocation):
        if kind is CacheLocation.CUSTOM:
            raise ValueError("WebStorageBackend only serves local and session areas")

        self._area = area
        self.kind = kind

    async def get(self, key: str) -> Optional[str]:
        return self._area.get_item(key)

    async def set(self, key: str, value: str) -> None:
        self._area.set_item(key, value)
        logger.debug(f"Stored {key} in {self.kind.value}")

    async def remove(self, key: str) -> None:
        self._area.remove_item(key)

    async def clear(self) -> None:
        self._area.clear()
        logger.info(f"Cleared {self.kind.value}")

    async def list_keys(self) -> List[str]:
        return self._area.keys()
