"""
Basic authcache usage example.

This example demonstrates the fundamental cache operations:
- Creating a cache over the host's local storage
- Namespaced writes with legacy-schema co-writes
- Caching and scanning access tokens
- Renewal-gated cleanup of request state
"""

import asyncio
import json
import logging
import time

from authcache import AuthCache, CacheConfig, HostEnvironment


async def basic_example():
    """Demonstrate basic authcache usage"""
    print("Basic authcache Example")
    print("=" * 30)

    # 1. Create the host and the cache
    host = HostEnvironment()
    config = CacheConfig(
        client_id="basic-example-client",
        cache_location="localStorage",
        store_auth_state_in_cookie=True,
    )
    cache = await AuthCache.create(config, host=host)
    print("✓ Created cache")

    # 2. Cache the ID token
    await cache.set("idtoken", "eyJ0eXAiOiJKV1QiLCJhbGciOi...")
    print(f"✓ Physical keys: {host.local_storage.keys()}")

    # 3. Cache an access token under a structured key
    token_key = {
        "authority": "https://login.example.com/common/",
        "clientId": "basic-example-client",
        "scopes": "user.read",
        "homeAccountIdentifier": "account-1",
    }
    token_value = {
        "accessToken": "access-token",
        "idToken": "id-token",
        "expiresIn": str(int(time.time()) + 3600),
        "homeAccountIdentifier": "account-1",
    }
    await cache.set(token_key, json.dumps(token_value))

    items = await cache.get_all_access_tokens("basic-example-client", "account-1")
    print(f"✓ Access tokens for account-1: {len(items)}")

    # 4. Track a silent renewal for one request
    state = "request-state-1"
    await cache.set(AuthCache.build_authority_key(state), token_key["authority"], mirror_to_cookie=True)
    await cache.set_renewal_in_progress(state)

    reaped = await cache.reset_temporary_entries(state)
    print(f"✓ Reaped while renewing: {reaped}")

    await cache.clear_renewal_status(state)
    reaped = await cache.reset_temporary_entries(state)
    print(f"✓ Reaped after renewal: {reaped}")

    # 5. Reset everything written by the cache
    removed = await cache.reset_all()
    print(f"✓ Reset removed {removed} entries")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(basic_example())
