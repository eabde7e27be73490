"""
Tests for the AuthCache façade: namespaced reads and writes, schema
migration, access-token scans and transient-entry reaping.
"""

import json

import pytest

from authcache import (
    AuthCache,
    CacheConfig,
    CacheLocation,
    CustomStorage,
    HostEnvironment,
    MemoryStorage,
    StorageUnsupportedError,
    UnimplementedCapabilityError,
    WebStorageArea,
)
from authcache.constants import IN_PROGRESS
from authcache.storage import FileStorage


@pytest.fixture
def host():
    """Create a host exposing both storage areas"""
    return HostEnvironment()


@pytest.fixture
def config():
    return CacheConfig(client_id="app1", cache_location="localStorage")


@pytest.fixture
def cache(config, host):
    return AuthCache(config, host=host)


def access_token_key(client_id, account):
    return json.dumps({
        "authority": "https://login.example.com/common/",
        "clientId": client_id,
        "scopes": "user.read",
        "homeAccountIdentifier": account,
    }, separators=(",", ":"))


def access_token_value(account):
    return json.dumps({
        "accessToken": f"at-{account}",
        "idToken": f"id-{account}",
        "expiresIn": "4102444800",
        "homeAccountIdentifier": account,
    })


class TestRoundTrip:
    """Test set/get round trips on every backend variant"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("location", ["localStorage", "sessionStorage"])
    async def test_web_storage_round_trip(self, host, location):
        """Test round trip through the host storage areas"""
        cache = AuthCache(CacheConfig(client_id="app1", cache_location=location), host=host)

        await cache.set("idtoken", "token-value")

        assert await cache.get("idtoken") == "token-value"

    @pytest.mark.asyncio
    async def test_custom_storage_round_trip(self):
        """Test round trip through a custom storage"""
        storage = MemoryStorage()
        cache = AuthCache(
            CacheConfig(client_id="app1", cache_location=CacheLocation.CUSTOM),
            custom_storage=storage,
        )

        await cache.set("client.info", "info")

        assert await cache.get("client.info") == "info"
        assert await storage.get("msal.app1.client.info") == "info"

    @pytest.mark.asyncio
    async def test_file_storage_round_trip(self, tmp_path):
        """Test round trip through a file-backed storage"""
        cache = AuthCache(
            CacheConfig(client_id="app1", cache_location="custom"),
            custom_storage=FileStorage(tmp_path / "cache.json"),
        )

        await cache.set("idtoken", "token-value")

        assert await cache.get("idtoken") == "token-value"

    @pytest.mark.asyncio
    async def test_sessions_are_isolated_from_local(self, host):
        """Test that each cache only sees its own storage area"""
        local = AuthCache(CacheConfig(client_id="app1", cache_location="localStorage"), host=host)
        session = AuthCache(CacheConfig(client_id="app1", cache_location="sessionStorage"), host=host)

        await local.set("idtoken", "local-value")

        assert await session.get("idtoken") is None

    @pytest.mark.asyncio
    async def test_get_missing_key(self, cache):
        """Test reading a key that was never written"""
        assert await cache.get("missing") is None


class TestSchemaMigration:
    """Test current and legacy schema co-writes"""

    @pytest.mark.asyncio
    async def test_set_writes_both_schemas(self, cache, host):
        """Test that a write lands under both physical keys"""
        await cache.set("idtoken", "value")

        assert host.local_storage.get_item("msal.app1.idtoken") == "value"
        assert host.local_storage.get_item("msal.idtoken") == "value"
        assert len(host.local_storage) == 2

    @pytest.mark.asyncio
    async def test_remove_deletes_both_schemas(self, cache, host):
        """Test that removal clears both physical keys"""
        await cache.set("idtoken", "value")

        await cache.remove("idtoken")

        assert host.local_storage.keys() == []

    @pytest.mark.asyncio
    async def test_remove_absent_key_is_noop(self, cache, host):
        """Test that removing an absent key leaves storage unchanged"""
        host.local_storage.set_item("unrelated.bar", "keep")

        await cache.remove("never-written")

        assert host.local_storage.keys() == ["unrelated.bar"]

    @pytest.mark.asyncio
    async def test_set_is_idempotent(self, cache, host):
        """Test that repeating a write leaves the same state"""
        await cache.set("idtoken", "value")
        first = {k: host.local_storage.get_item(k) for k in host.local_storage.keys()}

        await cache.set("idtoken", "value")
        second = {k: host.local_storage.get_item(k) for k in host.local_storage.keys()}

        assert first == second

    @pytest.mark.asyncio
    async def test_structured_key_written_once(self, cache, host):
        """Test that structured keys are not duplicated across schemas"""
        key = access_token_key("app1", "acct1")

        await cache.set(key, access_token_value("acct1"))

        assert host.local_storage.keys() == [key]

    @pytest.mark.asyncio
    async def test_dict_key_matches_encoded_key(self, cache):
        """Test that a dict key resolves to the compact JSON key"""
        payload = json.loads(access_token_key("app1", "acct1"))

        await cache.set(payload, "value")

        assert await cache.get(access_token_key("app1", "acct1")) == "value"

    @pytest.mark.asyncio
    async def test_migration_disabled_writes_current_only(self, host):
        """Test that disabling migration skips the legacy schema"""
        cache = AuthCache(
            CacheConfig(client_id="app1", cache_location="localStorage", migration_enabled=False),
            host=host,
        )

        await cache.set("idtoken", "value")

        assert host.local_storage.keys() == ["msal.app1.idtoken"]

    @pytest.mark.asyncio
    async def test_reads_ignore_legacy_schema(self, cache, host):
        """Test that reads only resolve through the current schema"""
        host.local_storage.set_item("msal.idtoken", "legacy-only")

        assert await cache.get("idtoken") is None

    @pytest.mark.asyncio
    async def test_create_migrates_legacy_entries(self, host):
        """Test that opening a cache copies legacy entries forward"""
        host.local_storage.set_item("msal.idtoken", "old-id-token")
        host.local_storage.set_item("msal.error", "interaction_required")

        cache = await AuthCache.create(
            CacheConfig(client_id="app1", cache_location="localStorage"), host=host
        )

        assert await cache.get("idtoken") == "old-id-token"
        assert await cache.get("error") == "interaction_required"
        assert await cache.get("client.info") is None


class TestCookieMirroring:
    """Test cookie write-through and cookie-first reads"""

    @pytest.mark.asyncio
    async def test_set_mirrors_to_cookie(self, cache):
        """Test that mirrored writes reach the cookie store"""
        await cache.set("state.login|s1", "s1", mirror_to_cookie=True)

        assert cache.get_item_cookie("state.login|s1") == "s1"
        assert cache.cookies.get("msal.state.login|s1") == "s1"

    @pytest.mark.asyncio
    async def test_cookie_takes_priority_when_requested(self, cache, host):
        """Test that a mirrored cookie wins over the backend"""
        await cache.set("nonce.idtoken|s1", "cookie-nonce", mirror_to_cookie=True)
        host.local_storage.set_item("msal.app1.nonce.idtoken|s1", "backend-nonce")

        assert await cache.get("nonce.idtoken|s1", mirror_to_cookie=True) == "cookie-nonce"
        assert await cache.get("nonce.idtoken|s1") == "backend-nonce"

    @pytest.mark.asyncio
    async def test_empty_cookie_falls_back_to_backend(self, cache):
        """Test that reads fall back to the backend without a cookie"""
        await cache.set("nonce.idtoken|s1", "backend-nonce")

        assert await cache.get("nonce.idtoken|s1", mirror_to_cookie=True) == "backend-nonce"

    @pytest.mark.asyncio
    async def test_backend_failure_keeps_cookie(self, host):
        """Test that a backend failure after a cookie write is not rolled back"""

        class FailingWrites(MemoryStorage):
            async def set(self, key, value):
                raise RuntimeError("store offline")

        cache = AuthCache(
            CacheConfig(client_id="app1", cache_location="custom"),
            host=host,
            custom_storage=FailingWrites(),
        )
        cache.set_item_cookie("login.request|s1", "https://app.example.com")

        with pytest.raises(RuntimeError):
            await cache.set("login.request|s1", "https://other.example.com", mirror_to_cookie=True)

        assert await cache.get("login.request|s1", mirror_to_cookie=True) == "https://app.example.com"


class TestResetAll:
    """Test full cache reset"""

    @pytest.mark.asyncio
    async def test_reset_all_leaves_unrelated_keys(self, cache, host):
        """Test that only prefixed keys are removed"""
        host.local_storage.set_item("msal.foo", "1")
        host.local_storage.set_item("unrelated.bar", "2")

        removed = await cache.reset_all()

        assert removed == 1
        assert host.local_storage.keys() == ["unrelated.bar"]

    @pytest.mark.asyncio
    async def test_reset_all_removes_both_schemas(self, cache, host):
        """Test that reset clears entries of every generation"""
        await cache.set("idtoken", "value")
        await cache.set("client.info", "info")

        await cache.reset_all()

        assert host.local_storage.keys() == []


class TestAccessTokenScan:
    """Test access-token scanning"""

    @pytest.mark.asyncio
    async def test_scan_filters_by_account(self, cache):
        """Test that only the requested account's tokens are returned"""
        await cache.set(access_token_key("app1", "acct1"), access_token_value("acct1"))
        await cache.set(access_token_key("app1", "acct2"), access_token_value("acct2"))

        items = await cache.get_all_access_tokens("app1", "acct1")

        assert len(items) == 1
        assert items[0].key.home_account_identifier == "acct1"
        assert items[0].key.client_id == "app1"
        assert items[0].value.access_token == "at-acct1"

    @pytest.mark.asyncio
    async def test_scan_skips_undecodable_entries(self, cache, host):
        """Test that corrupted or foreign entries are skipped silently"""
        await cache.set(access_token_key("app1", "acct1"), access_token_value("acct1"))
        host.local_storage.set_item('{"clientId":"app1","homeAccountIdentifier":"acct1"', "broken")
        host.local_storage.set_item(access_token_key("app1", "acct1").replace("user.read", "mail.read"), "not json")
        await cache.set("app1.acct1.note", "plain scalar")

        items = await cache.get_all_access_tokens("app1", "acct1")

        assert [item.value.id_token for item in items] == ["id-acct1"]

    @pytest.mark.asyncio
    async def test_scan_preserves_enumeration_order(self, cache):
        """Test that items come back in backend enumeration order"""
        first = access_token_key("app1", "acct1")
        second = first.replace("user.read", "mail.read")
        await cache.set(first, access_token_value("acct1"))
        await cache.set(second, access_token_value("acct1"))

        items = await cache.get_all_access_tokens("app1", "acct1")

        assert [item.key.scopes for item in items] == ["user.read", "mail.read"]

    @pytest.mark.asyncio
    async def test_scan_empty_cache(self, cache):
        """Test scanning an empty cache"""
        assert await cache.get_all_access_tokens("app1", "acct1") == []


class TestTemporaryEntryReaping:
    """Test renewal-gated cleanup of transient entries"""

    async def _seed(self, cache, state):
        await cache.set(AuthCache.build_authority_key(state), "https://login.example.com/common/")
        await cache.set(f"nonce.idtoken|{state}", "nonce-1", mirror_to_cookie=True)
        await cache.set("interaction_status", "in_progress")
        await cache.set("redirect_request", "/home")

    @pytest.mark.asyncio
    async def test_in_progress_renewal_protects_entries(self, cache, host):
        """Test that a running renewal keeps its entries, then a later call reaps them"""
        await self._seed(cache, "stateA")
        await cache.set_renewal_in_progress("stateA")
        tagged_before = [k for k in host.local_storage.keys() if "stateA" in k]

        reaped = await cache.reset_temporary_entries("stateA")

        assert reaped == 0
        assert [k for k in host.local_storage.keys() if "stateA" in k] == tagged_before
        assert await cache.get("interaction_status") is None
        assert await cache.get("redirect_request") is None

        await cache.clear_renewal_status("stateA")
        await cache.reset_temporary_entries("stateA")

        assert [k for k in host.local_storage.keys() if "stateA" in k] == []

    @pytest.mark.asyncio
    async def test_reap_clears_cookies(self, cache):
        """Test that reaping expires the request's cookies"""
        await self._seed(cache, "stateA")
        cache.set_item_cookie("state.login|stateA", "stateA")

        await cache.reset_temporary_entries("stateA")

        assert cache.get_item_cookie("nonce.idtoken|stateA") == ""
        assert cache.get_item_cookie("state.login|stateA") == ""

    @pytest.mark.asyncio
    async def test_reap_only_touches_matching_state(self, cache):
        """Test that other requests' entries survive"""
        await self._seed(cache, "stateA")
        await self._seed(cache, "stateB")

        await cache.reset_temporary_entries("stateA")

        assert await cache.get(AuthCache.build_authority_key("stateA")) is None
        assert await cache.get(AuthCache.build_authority_key("stateB")) == "https://login.example.com/common/"

    @pytest.mark.asyncio
    async def test_empty_state_reaps_everything_but_renewing_requests(self, cache, host):
        """Test that an empty state still honours each entry's own renewal flag"""
        await self._seed(cache, "stateA")
        await self._seed(cache, "stateB")
        await cache.set_renewal_in_progress("stateB")
        tagged_b = [k for k in host.local_storage.keys() if "stateB" in k]

        reaped = await cache.reset_temporary_entries("")

        assert reaped > 0
        assert [k for k in host.local_storage.keys() if "stateA" in k] == []
        assert [k for k in host.local_storage.keys() if "stateB" in k] == tagged_b
        assert await cache.is_renewal_in_progress("stateB") is True
        assert await cache.get(AuthCache.build_authority_key("stateB")) == "https://login.example.com/common/"
        assert await cache.get("interaction_status") is None

    @pytest.mark.asyncio
    async def test_empty_state_keeps_running_flag_without_state(self, cache):
        await cache.set("token.renew.status|", IN_PROGRESS)
        await cache.set("idtoken", "id-1")

        await cache.reset_temporary_entries()

        assert await cache.get("token.renew.status|") == IN_PROGRESS
        assert await cache.get("idtoken") is None

    @pytest.mark.asyncio
    async def test_reap_clears_all_state_cookies(self, cache):
        """Test that the nonce, login-state, login-request and acquire-token-state cookies expire"""
        await self._seed(cache, "stateA")
        names = ["nonce.idtoken|stateA", "state.login|stateA", "login.request|stateA", "state.acquireToken|stateA"]
        for name in names:
            cache.set_item_cookie(name, "value")

        await cache.reset_temporary_entries("stateA")

        assert [cache.get_item_cookie(name) for name in names] == ["", "", "", ""]

    @pytest.mark.asyncio
    async def test_renewal_flag_read_once_per_reap(self, cache):
        await self._seed(cache, "stateA")
        await cache.set_renewal_in_progress("stateA")
        reads = []
        original_get = cache.storage.get

        async def counting_get(key):
            reads.append(key)
            return await original_get(key)

        cache.storage.get = counting_get
        await cache.reset_temporary_entries("stateA")

        assert reads == ["msal.app1.token.renew.status|stateA"]

    @pytest.mark.asyncio
    async def test_is_renewal_in_progress(self, cache):
        """Test the renewal flag lifecycle"""
        assert await cache.is_renewal_in_progress("stateA") is False

        await cache.set_renewal_in_progress("stateA")
        assert await cache.is_renewal_in_progress("stateA") is True
        assert await cache.get("token.renew.status|stateA") == IN_PROGRESS

        await cache.clear_renewal_status("stateA")
        assert await cache.is_renewal_in_progress("stateA") is False

    @pytest.mark.asyncio
    async def test_other_flag_values_are_not_in_progress(self, cache):
        """Test that only the exact sentinel protects entries"""
        await cache.set("token.renew.status|stateA", "Completed")

        assert await cache.is_renewal_in_progress("stateA") is False


class TestAcquireTokenEntries:
    """Test removal of authority and acquire-token account entries"""

    @pytest.mark.asyncio
    async def test_removes_entries_and_flag(self, cache, host):
        """Test that entries of idle requests are removed with their flag"""
        await cache.set(AuthCache.build_authority_key("s1"), "https://login.example.com/common/")
        await cache.set(AuthCache.build_acquire_token_account_key("acct1", "s1"), '{"id":"acct1"}')
        await cache.set("token.renew.status|s1", "Completed")

        removed = await cache.remove_acquire_token_entries("s1")

        assert removed == 4
        assert [k for k in host.local_storage.keys() if "s1" in k] == []

    @pytest.mark.asyncio
    async def test_keeps_entries_while_renewing(self, cache):
        """Test that renewing requests keep their entries"""
        await cache.set(AuthCache.build_authority_key("s1"), "https://login.example.com/common/")
        await cache.set(AuthCache.build_authority_key("s2"), "https://login.example.com/common/")
        await cache.set_renewal_in_progress("s1")

        await cache.remove_acquire_token_entries()

        assert await cache.get(AuthCache.build_authority_key("s1")) is not None
        assert await cache.get(AuthCache.build_authority_key("s2")) is None
        assert await cache.is_renewal_in_progress("s1") is True

    @pytest.mark.asyncio
    async def test_clears_state_cookies(self, cache):
        """Test that login and acquire-token state cookies are expired"""
        await cache.set(AuthCache.build_authority_key("s1"), "https://login.example.com/common/")
        cache.set_item_cookie("state.login|s1", "s1")
        cache.set_item_cookie("state.acquireToken|s1", "s1")

        await cache.remove_acquire_token_entries("s1")

        assert cache.get_item_cookie("state.login|s1") == ""
        assert cache.get_item_cookie("state.acquireToken|s1") == ""

    def test_key_builders(self):
        """Test the static key builders"""
        assert AuthCache.build_authority_key("s1") == "authority|s1"
        assert AuthCache.build_acquire_token_account_key("acct1", "s1") == "acquireToken.account|acct1|s1"


class TestBackendSelection:
    """Test backend selection and construction failures"""

    def test_missing_area_is_unsupported(self):
        """Test that a disabled storage area fails construction"""
        host = HostEnvironment(local_storage=None)

        with pytest.raises(StorageUnsupportedError) as exc_info:
            AuthCache(CacheConfig(client_id="app1", cache_location="localStorage"), host=host)

        assert exc_info.value.storage_kind == "localStorage"

    def test_missing_host_is_unsupported(self):
        """Test that a named area without a host fails construction"""
        with pytest.raises(StorageUnsupportedError):
            AuthCache(CacheConfig(client_id="app1", cache_location="sessionStorage"))

    def test_custom_without_storage_is_unsupported(self):
        """Test that a custom location requires a storage instance"""
        with pytest.raises(StorageUnsupportedError):
            AuthCache(CacheConfig(client_id="app1", cache_location="custom"), host=HostEnvironment())

    def test_custom_storage_is_used_as_is(self):
        """Test that the supplied custom storage becomes the backend"""
        storage = MemoryStorage()
        cache = AuthCache(CacheConfig(client_id="app1", cache_location="custom"), custom_storage=storage)

        assert cache.storage is storage

    def test_session_area_is_selected(self):
        """Test that the session location uses the session area"""
        session = WebStorageArea({"msal.app1.idtoken": "x"})
        host = HostEnvironment(session_storage=session)
        cache = AuthCache(CacheConfig(client_id="app1"), host=host)

        assert cache.storage.kind is CacheLocation.SESSION

    @pytest.mark.asyncio
    async def test_unimplemented_custom_operation(self):
        """Test that a custom storage without an operation fails per call"""

        class WriteOnly(CustomStorage):
            def __init__(self):
                self.items = {}

            async def set(self, key, value):
                self.items[key] = value

        cache = AuthCache(CacheConfig(client_id="app1", cache_location="custom"), custom_storage=WriteOnly())
        await cache.set("idtoken", "value")

        with pytest.raises(UnimplementedCapabilityError) as exc_info:
            await cache.get("idtoken")

        assert exc_info.value.method_name == "get"

    @pytest.mark.asyncio
    async def test_custom_errors_propagate(self):
        """Test that custom storage errors reach the caller unchanged"""

        class Flaky(MemoryStorage):
            async def get(self, key):
                raise ConnectionError("bridge closed")

        cache = AuthCache(CacheConfig(client_id="app1", cache_location="custom"), custom_storage=Flaky())

        with pytest.raises(ConnectionError):
            await cache.get("idtoken")
