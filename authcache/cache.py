# Copyright (c) 2025 Gimel Foundation and the persons identified as the document authors.
# All rights reserved. This file is subject to the Gimel Foundation's Legal Provisions Relating to GiFo Documents.
# See http://GimelFoundation.com or https://github.com/Gimel-Foundation for details.
# Code Components extracted from GiFo-RfC 0111 must include this license text and are provided without warranty.

"""
Auth cache façade.

Composes a storage backend, the cookie mirror and the key namespacer, and
exposes the operations the protocol layer needs: namespaced reads and
writes, access-token scans, and reaping of per-request transient entries.

Transient entries of a request are protected while its renewal flag reads
"In Progress". The flag check and the removals it guards run under a
per-instance lock, so callers sharing one cache never interleave a reap
with a flag write. Writers that bypass the cache are not covered.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .config import CacheConfig
from .constants import IN_PROGRESS, MIGRATED_KEYS, TemporaryCacheKeys
from .cookies import CookieMirror
from .host import HostEnvironment
from .keys import (
    KeyGeneration,
    KeyNamespacer,
    build_acquire_token_account_key,
    build_authority_key,
    build_renew_status_key,
    build_state_cookie_key,
    extract_state,
)
from .models import AccessTokenCacheItem
from .storage.base import StorageBackend
from .storage.custom import CustomStorage
from .storage.factory import create_storage_backend


logger = logging.getLogger(__name__)


class AuthCache:
    """
    Persistent cache for authentication artifacts.

    Build one instance per client configuration and share it with every
    consumer. Use ``AuthCache.create`` to also copy legacy entries forward.
    """

    def __init__(self,
                 config: CacheConfig,
                 host: Optional[HostEnvironment] = None,
                 custom_storage: Optional[CustomStorage] = None):
        """
        Initialize the cache.

        Args:
            config: Cache configuration
            host: Host environment providing storage areas and cookies
            custom_storage: Host-supplied storage for ``CacheLocation.CUSTOM``

        Raises:
            ConfigurationError: If the configuration is invalid
            StorageUnsupportedError: If the requested backend is unavailable
        """
        config.validate()

        self.config = config
        self.host = host
        self.custom_storage = custom_storage
        self.storage: StorageBackend = create_storage_backend(
            config.cache_location, host, custom_storage
        )
        self.namespacer = KeyNamespacer(config.client_id, config.cache_prefix)
        # Without a host there is no cookie string; keep a private one
        self.cookies = CookieMirror(host.cookies if host else HostEnvironment().cookies)
        self._reap_lock = asyncio.Lock()

    @classmethod
    async def create(cls,
                     config: CacheConfig,
                     host: Optional[HostEnvironment] = None,
                     custom_storage: Optional[CustomStorage] = None) -> "AuthCache":
        """Create a cache and migrate legacy entries into the current schema."""
        cache = cls(config, host=host, custom_storage=custom_storage)
        await cache.migrate_cache_entries()
        return cache

    @property
    def client_id(self) -> str:
        return self.config.client_id

    @property
    def migration_enabled(self) -> bool:
        return self.config.migration_enabled

    def _physical_keys(self, key: Any) -> List[str]:
        """Physical keys a write or removal touches, current schema first."""
        current = self.namespacer.to_physical(key, KeyGeneration.CURRENT)
        if not self.migration_enabled:
            return [current]

        legacy = self.namespacer.to_physical(key, KeyGeneration.LEGACY)
        if legacy == current:
            return [current]
        return [current, legacy]

    async def migrate_cache_entries(self) -> int:
        """
        Copy legacy-schema entries into both schemas.

        Returns:
            Number of entries migrated
        """
        migrated = 0
        for cache_key in MIGRATED_KEYS:
            legacy_key = self.namespacer.to_physical(cache_key.value, KeyGeneration.LEGACY)
            value = await self.storage.get(legacy_key)
            if value:
                await self.set(
                    cache_key.value, value,
                    mirror_to_cookie=self.config.store_auth_state_in_cookie
                )
                migrated += 1

        if migrated:
            logger.info(f"Migrated {migrated} legacy cache entries for client {self.client_id}")
        return migrated

    async def set(self, key: Any, value: str, mirror_to_cookie: bool = False) -> None:
        """
        Write a value under a logical or structured key.

        Args:
            key: Logical key, structured key string, or dict payload
            value: Value to store
            mirror_to_cookie: Also write the value to the cookie mirror
        """
        for physical_key in self._physical_keys(key):
            await self.storage.set(physical_key, value)

        if mirror_to_cookie:
            self.set_item_cookie(key, value, self.config.cookie_life_days)

    async def get(self, key: Any, mirror_to_cookie: bool = False) -> Optional[str]:
        """
        Read a value through the current schema.

        A non-empty mirrored cookie wins over the backend when requested.
        """
        physical_key = self.namespacer.to_physical(key, KeyGeneration.CURRENT)

        if mirror_to_cookie:
            cookie_value = self.cookies.get(physical_key)
            if cookie_value:
                return cookie_value

        return await self.storage.get(physical_key)

    async def remove(self, key: Any) -> None:
        """Remove a key from both schemas. Absent keys are ignored."""
        for physical_key in self._physical_keys(key):
            await self.storage.remove(physical_key)

    async def reset_all(self) -> int:
        """
        Remove every entry written by this cache family.

        Entries without the cache prefix belong to other applications
        sharing the storage area and are left untouched.

        Returns:
            Number of entries removed
        """
        removed = 0
        for key in await self.storage.list_keys():
            if self.namespacer.contains_prefix(key):
                await self.storage.remove(key)
                removed += 1

        logger.info(f"Reset {removed} cache entries")
        return removed

    async def reset_temporary_entries(self, state: Optional[str] = None) -> int:
        """
        Reap the transient entries of a request.

        Every key containing ``state`` is removed together with its cookie
        mirror and the request's state cookies, unless the renewal of
        ``state`` is still in progress. With an empty ``state`` every key is
        considered and each one is gated on the state embedded in it. The
        global interaction status and redirect request are always removed.

        Returns:
            Number of keys reaped
        """
        reaped = 0
        async with self._reap_lock:
            if state and await self._renewal_in_progress(state):
                logger.warning(f"Renewal in progress for state {state}, deferring cleanup")
            else:
                renewing: Dict[str, bool] = {}
                for key in await self.storage.list_keys():
                    if state and state not in key:
                        continue

                    entry_state = state or extract_state(key)
                    if not state and await self._is_protected(key, entry_state, renewing):
                        logger.debug(f"Renewal in progress for state {entry_state}, keeping {key}")
                        continue

                    await self.remove(key)
                    self.clear_item_cookie(key)
                    self.clear_msal_cookie(entry_state)
                    reaped += 1
                    logger.debug(f"Reaped temporary entry {key}")

        await self.remove(TemporaryCacheKeys.INTERACTION_STATUS.value)
        await self.remove(TemporaryCacheKeys.REDIRECT_REQUEST.value)
        return reaped

    async def get_all_access_tokens(self,
                                    client_id: str,
                                    home_account_identifier: str) -> List[AccessTokenCacheItem]:
        """
        Collect the cached access tokens of one client and account.

        Keys are matched by substring; entries that do not decode as
        access-token items are skipped.

        Returns:
            Decoded items in backend enumeration order
        """
        results: List[AccessTokenCacheItem] = []

        for key in await self.storage.list_keys():
            if client_id not in key or home_account_identifier not in key:
                continue

            value = await self.storage.get(key)
            try:
                results.append(AccessTokenCacheItem.from_entry(key, value))
            except (ValueError, KeyError, TypeError) as e:
                logger.debug(f"Skipping cache entry {key}: {e}")

        return results

    async def remove_acquire_token_entries(self, state: Optional[str] = None) -> int:
        """
        Reap authority and acquire-token account entries.

        Only entries whose embedded state is not being renewed are removed,
        along with that state's renewal flag and state cookies.

        Returns:
            Number of entries removed
        """
        tags = (
            TemporaryCacheKeys.AUTHORITY.value,
            TemporaryCacheKeys.ACQUIRE_TOKEN_ACCOUNT.value,
        )
        removed = 0

        async with self._reap_lock:
            for key in await self.storage.list_keys():
                if not any(tag in key for tag in tags):
                    continue
                if state and state not in key:
                    continue

                entry_state = extract_state(key)
                if not entry_state:
                    continue

                if await self._renewal_in_progress(entry_state):
                    logger.warning(f"Renewal in progress for state {entry_state}, keeping {key}")
                    continue

                await self.remove(key)
                await self.remove(build_renew_status_key(entry_state))
                self.clear_item_cookie(key)
                self.clear_item_cookie(build_state_cookie_key(TemporaryCacheKeys.STATE_LOGIN, entry_state))
                self.clear_item_cookie(build_state_cookie_key(TemporaryCacheKeys.STATE_ACQ_TOKEN, entry_state))
                removed += 1
                logger.debug(f"Removed acquire-token entry {key}")

        return removed

    async def is_renewal_in_progress(self, state: str) -> bool:
        """Return True iff the renewal flag of ``state`` reads "In Progress"."""
        return await self._renewal_in_progress(state)

    async def _renewal_in_progress(self, state: Optional[str]) -> bool:
        renew_status = await self.get(build_renew_status_key(state or ""))
        return renew_status == IN_PROGRESS

    async def _is_protected(self, key: str, entry_state: Optional[str], renewing: Dict[str, bool]) -> bool:
        """True if ``key`` is a running renewal flag or belongs to a renewing state."""
        if TemporaryCacheKeys.RENEW_STATUS.value in key and await self.storage.get(key) == IN_PROGRESS:
            return True
        if not entry_state:
            return False
        if entry_state not in renewing:
            renewing[entry_state] = await self._renewal_in_progress(entry_state)
        return renewing[entry_state]

    async def set_renewal_in_progress(self, state: str) -> None:
        """Mark the renewal of ``state`` as running; its transient entries are protected."""
        async with self._reap_lock:
            await self.set(build_renew_status_key(state), IN_PROGRESS)

    async def clear_renewal_status(self, state: str) -> None:
        """Mark the renewal of ``state`` as finished or abandoned."""
        async with self._reap_lock:
            await self.remove(build_renew_status_key(state))

    def set_item_cookie(self, key: Any, value: str, expires_in_days: Optional[float] = None) -> None:
        """Write a cookie under the namespaced name(s) of ``key``."""
        for physical_key in self._physical_keys(key):
            self.cookies.set(physical_key, value, expires_in_days)

    def get_item_cookie(self, key: Any) -> str:
        """Read the cookie stored under the current-schema name of ``key``."""
        return self.cookies.get(self.namespacer.to_physical(key, KeyGeneration.CURRENT))

    def clear_item_cookie(self, key: Any) -> None:
        self.set_item_cookie(key, "", -1)

    def clear_msal_cookie(self, state: Optional[str] = None) -> None:
        """Expire the nonce, login-state, login-request and acquire-token-state cookies of ``state``."""
        for cache_key in (
            TemporaryCacheKeys.NONCE_IDTOKEN,
            TemporaryCacheKeys.STATE_LOGIN,
            TemporaryCacheKeys.LOGIN_REQUEST,
            TemporaryCacheKeys.STATE_ACQ_TOKEN,
        ):
            self.clear_item_cookie(build_state_cookie_key(cache_key, state))

    @staticmethod
    def build_acquire_token_account_key(account_id: Any, state: str) -> str:
        """Create the key caching the account of an acquire-token request."""
        return build_acquire_token_account_key(account_id, state)

    @staticmethod
    def build_authority_key(state: str) -> str:
        """Create the key caching the authority of a request."""
        return build_authority_key(state)
