"""Tests for the client-credentials TokenCache."""

from __future__ import annotations

import threading
import time

import httpx
import pytest

from collectr.errors import AuthenticationError
from collectr.scrapers.token_cache import TokenCache


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TokenEndpoint:
    """MockTransport handler that hands out numbered tokens."""

    def __init__(self, expires_in: int = 3600, status: int = 200, delay: float = 0.0) -> None:
        self.expires_in = expires_in
        self.status = status
        self.delay = delay
        self.calls = 0
        self.params: list[dict[str, str]] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.calls += 1
            n = self.calls
        self.params.append(dict(request.url.params))
        if self.delay:
            time.sleep(self.delay)
        if self.status != 200:
            return httpx.Response(self.status, json={"message": "invalid client"})
        return httpx.Response(
            200,
            json={"access_token": f"token-{n}", "expires_in": self.expires_in, "token_type": "bearer"},
        )


def make_cache(endpoint, clock: FakeClock, buffer: float = 300) -> TokenCache:
    transport = httpx.MockTransport(endpoint)
    return TokenCache(
        "client-id",
        "secret",
        http_client=lambda: httpx.Client(transport=transport, timeout=10),
        refresh_buffer=buffer,
        clock=clock,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestTokenCache:
    def test_first_call_exchanges_credentials(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint()
        cache = make_cache(endpoint, clock)
        assert cache.get_token() == "token-1"
        assert endpoint.calls == 1
        assert endpoint.params[0] == {
            "client_id": "client-id",
            "client_secret": "secret",
            "grant_type": "client_credentials",
        }

    def test_valid_token_is_reused(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint()
        cache = make_cache(endpoint, clock)
        cache.get_token()
        clock.now += 1000
        assert cache.get_token() == "token-1"
        assert endpoint.calls == 1

    def test_refreshes_inside_buffer_window(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint(expires_in=3600)
        cache = make_cache(endpoint, clock)
        cache.get_token()
        # 250s left: inside the 300s buffer
        clock.now += 3350
        assert cache.get_token() == "token-2"
        assert endpoint.calls == 2

    def test_reuses_just_outside_buffer_window(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint(expires_in=3600)
        cache = make_cache(endpoint, clock)
        cache.get_token()
        clock.now += 3290
        assert cache.get_token() == "token-1"

    def test_invalidate_forces_exchange(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint()
        cache = make_cache(endpoint, clock)
        cache.get_token()
        cache.invalidate()
        assert cache.get_token() == "token-2"

    def test_stale_invalidate_keeps_refreshed_token(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint()
        cache = make_cache(endpoint, clock)
        stale = cache.get_token()
        cache.invalidate(stale)
        assert cache.get_token() == "token-2"
        # a second caller rejected with token-1 arrives after the refresh
        cache.invalidate(stale)
        assert cache.get_token() == "token-2"
        assert endpoint.calls == 2

    def test_invalidate_matching_token_forces_exchange(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint()
        cache = make_cache(endpoint, clock)
        cache.get_token()
        cache.invalidate("token-1")
        assert cache.get_token() == "token-2"

    def test_rejected_credentials_raise(self, clock: FakeClock) -> None:
        cache = make_cache(TokenEndpoint(status=400), clock)
        with pytest.raises(AuthenticationError):
            cache.get_token()

    def test_network_error_raises(self, clock: FakeClock) -> None:
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        cache = make_cache(unreachable, clock)
        with pytest.raises(AuthenticationError):
            cache.get_token()

    def test_payload_without_token_raises(self, clock: FakeClock) -> None:
        cache = make_cache(lambda request: httpx.Response(200, json={"expires_in": 10}), clock)
        with pytest.raises(AuthenticationError):
            cache.get_token()

    def test_failure_is_not_cached(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint(status=500)
        cache = make_cache(endpoint, clock)
        with pytest.raises(AuthenticationError):
            cache.get_token()
        endpoint.status = 200
        assert cache.get_token() == "token-2"

    def test_concurrent_callers_share_one_exchange(self, clock: FakeClock) -> None:
        endpoint = TokenEndpoint(delay=0.05)
        cache = make_cache(endpoint, clock)
        barrier = threading.Barrier(8)
        tokens: list[str] = []

        def worker() -> None:
            barrier.wait()
            tokens.append(cache.get_token())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert endpoint.calls == 1
        assert tokens == ["token-1"] * 8
