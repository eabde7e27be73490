# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Process-wide cache handle.

Most applications build an ``AuthCache`` and pass it to its consumers.
Hosts that need a single shared instance initialize it here once and tear
it down explicitly; re-initializing with a different configuration is an
error instead of silently returning the first instance.
"""

import asyncio
import logging
from typing import Optional

from .cache import AuthCache
from .config import CacheConfig
from .errors import CacheReconfigurationError, ConfigurationError
from .host import HostEnvironment
from .storage.custom import CustomStorage


logger = logging.getLogger(__name__)

_active_cache: Optional[AuthCache] = None
_init_lock = asyncio.Lock()


async def initialize_cache(config: CacheConfig,
                           host: Optional[HostEnvironment] = None,
                           custom_storage: Optional[CustomStorage] = None) -> AuthCache:
    """
    Initialize the shared cache.

    Calling again with an equal configuration and the same host and custom
    storage objects returns the existing cache.

    Raises:
        CacheReconfigurationError: If a cache bound to anything else exists
    """
    global _active_cache

    async with _init_lock:
        if _active_cache is not None:
            if (_active_cache.config == config
                    and _active_cache.host is host
                    and _active_cache.custom_storage is custom_storage):
                return _active_cache
            raise CacheReconfigurationError(
                f"Shared cache already initialized for client {_active_cache.client_id}; "
                "call teardown_cache() before reconfiguring",
                details={
                    "active": _active_cache.config.to_dict(),
                    "requested": config.to_dict(),
                    "same_host": _active_cache.host is host,
                    "same_custom_storage": _active_cache.custom_storage is custom_storage,
                },
            )

        _active_cache = await AuthCache.create(config, host=host, custom_storage=custom_storage)
        logger.info(f"Initialized shared cache for client {config.client_id}")
        return _active_cache


def get_cache() -> AuthCache:
    """
    Return the shared cache.

    Raises:
        ConfigurationError: If no cache has been initialized
    """
    if _active_cache is None:
        raise ConfigurationError("Shared cache is not initialized; call initialize_cache() first")
    return _active_cache


def teardown_cache() -> None:
    """Forget the shared cache. Stored entries are left in place."""
    global _active_cache, _init_lock

    if _active_cache is not None:
        logger.info(f"Tore down shared cache for client {_active_cache.client_id}")
    _active_cache = None
    # A lock that saw contention stays bound to that event loop
    _init_lock = asyncio.Lock()
