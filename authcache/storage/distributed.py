# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Redis-backed custom storage.

Lets several hosts (for example a fleet of webview shells) share one auth
cache. All entries live under a configurable key prefix so the cache can
share a Redis database with unrelated data.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

import redis.asyncio as redis

from ..errors import StorageError
from .custom import CustomStorage


logger = logging.getLogger(__name__)


class RedisConfig:
    """Configuration for Redis storage."""

    def __init__(self,
                 address: str = "localhost:6379",
                 password: Optional[str] = None,
                 db: int = 0,
                 ssl: bool = False,
                 connection_kwargs: Dict[str, Any] = None,
                 key_prefix: str = "authcache:",
                 scan_batch_size: int = 100):
        """
        Initialize Redis configuration.

        Args:
            address: Redis address (host:port)
            password: Redis password
            db: Redis database number
            ssl: Enable SSL connection
            connection_kwargs: Additional arguments for the Redis client
            key_prefix: Prefix applied to every stored key
            scan_batch_size: COUNT hint used when enumerating keys
        """
        self.address = address
        self.password = password
        self.db = db
        self.ssl = ssl
        self.connection_kwargs = connection_kwargs or {}
        self.key_prefix = key_prefix
        self.scan_batch_size = scan_batch_size


class RedisStorage(CustomStorage):
    """Custom storage persisting entries in Redis."""

    def __init__(self, config: Optional[RedisConfig] = None, client: Optional["redis.Redis"] = None):
        """
        Initialize Redis storage.

        Args:
            config: Redis configuration
            client: Pre-built client; when given no connection is opened here
        """
        self.config = config or RedisConfig()
        self._redis = client
        self._connected = client is not None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Connect to Redis."""
        async with self._lock:
            if self._connected:
                return

            host, port = self.config.address.rsplit(":", 1)
            self._redis = redis.Redis(
                host=host,
                port=int(port),
                password=self.config.password,
                db=self.config.db,
                ssl=self.config.ssl,
                decode_responses=True,
                **self.config.connection_kwargs
            )

            try:
                await self._redis.ping()
            except redis.RedisError as e:
                logger.error(f"Failed to connect to Redis at {self.config.address}: {e}")
                raise StorageError(f"Redis at {self.config.address} is unreachable", cause=e) from e

            self._connected = True
            logger.info(f"Connected to Redis at {self.config.address}")

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None and self._connected:
            await self._redis.aclose()
            self._connected = False
            logger.info("Disconnected from Redis")

    def _get_key(self, key: str) -> str:
        return f"{self.config.key_prefix}{key}"

    @staticmethod
    def _decode(value: Union[str, bytes, None]) -> Optional[str]:
        # Injected clients may not set decode_responses
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def get(self, key: str) -> Optional[str]:
        await self.connect()
        return self._decode(await self._redis.get(self._get_key(key)))

    async def set(self, key: str, value: str) -> None:
        await self.connect()
        await self._redis.set(self._get_key(key), value)
        logger.debug(f"Stored {key} in Redis")

    async def remove(self, key: str) -> None:
        await self.connect()
        await self._redis.delete(self._get_key(key))

    async def clear(self) -> None:
        keys = await self.list_keys()
        if keys:
            await self._redis.delete(*(self._get_key(k) for k in keys))
        logger.info(f"Cleared {len(keys)} entries from Redis")

    async def list_keys(self) -> List[str]:
        await self.connect()

        prefix_len = len(self.config.key_prefix)
        pattern = f"{self.config.key_prefix}*"
        cursor = 0
        keys: List[str] = []

        while True:
            cursor, batch = await self._redis.scan(
                cursor=cursor,
                match=pattern,
                count=self.config.scan_batch_size
            )
            keys.extend(self._decode(k)[prefix_len:] for k in batch)

            if cursor == 0:
                break

        return keys
