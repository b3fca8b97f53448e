import json
from typing import Callable, List, Set

import httpx
import pytest
import pytest_asyncio

from maktab.client.breaker import CircuitBreaker
from maktab.client.dispatcher import ApiClient, BACKEND_UNAVAILABLE, NETWORK_ERROR, REQUEST_FAILED
from maktab.client.environment import EnvironmentProbe

DEFAULT_PORTS = {"http": 80, "https": 443}

# native probe with a dev host -> four candidates, in this order
CANDIDATES = [
    "http://192.168.1.20:8083",
    "http://192.168.1.20:5001",
    "http://localhost:8083",
    "http://localhost:5001",
]


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeNetwork:
    """MockTransport handler: some origins refuse connections, the rest answer with a canned response."""

    def __init__(self, unreachable: Set[str] = frozenset()):
        self.unreachable = set(unreachable)
        self.respond: Callable[[], httpx.Response] = lambda: httpx.Response(200, json={"ok": True})
        self.attempts: List[str] = []
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        port = request.url.port or DEFAULT_PORTS[request.url.scheme]
        origin = f"{request.url.scheme}://{request.url.host}:{port}"
        self.attempts.append(origin)
        if origin in self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)
        self.requests.append(request)
        return self.respond()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest_asyncio.fixture
async def api_client(network, clock):
    async with httpx.AsyncClient(transport=httpx.MockTransport(network)) as http_client:
        yield ApiClient(
            probe=EnvironmentProbe.native(dev_host_uri="192.168.1.20:8081"),
            breaker=CircuitBreaker(clock=clock),
            http_client=http_client,
        )


@pytest.mark.asyncio
class TestFailover:

    async def test_first_reachable_candidate_wins(self, api_client, network):
        result = await api_client.request("/api/users")

        assert result.success
        assert result.data == {"ok": True}
        assert network.attempts == CANDIDATES[:1]

    @pytest.mark.parametrize("k", [1, 2, 3, 4])
    async def test_candidate_after_first_response_is_never_tried(self, api_client, network, k):
        network.unreachable = set(CANDIDATES[:k - 1])

        result = await api_client.request("/health")

        assert result.success
        assert network.attempts == CANDIDATES[:k]

    async def test_error_status_stops_failover(self, api_client, network):
        """A reached server that rejects the request is the final answer."""
        network.respond = lambda: httpx.Response(401, json={"message": "Invalid credentials"})

        result = await api_client.request("/api/auth/login", method="POST", json={"username": "u"})

        assert not result.success
        assert result.error == "Invalid credentials"
        assert network.attempts == CANDIDATES[:1]
        assert not api_client.breaker.should_short_circuit()

    async def test_error_field_is_preferred_over_message(self, api_client, network):
        network.respond = lambda: httpx.Response(429, json={"error": "Rate limit exceeded", "message": "slow down"})

        result = await api_client.request("/api/auth/login", method="POST")

        assert result.error == "Rate limit exceeded"

    async def test_non_json_error_body_is_surfaced_raw(self, api_client, network):
        network.respond = lambda: httpx.Response(502, text="Bad Gateway")

        result = await api_client.request("/api/users")

        assert result.error == "Bad Gateway"

    async def test_empty_error_body_gets_generic_message(self, api_client, network):
        network.respond = lambda: httpx.Response(500)

        result = await api_client.request("/api/users")

        assert result.error == REQUEST_FAILED

    async def test_non_json_success_body_is_returned_as_text(self, api_client, network):
        network.respond = lambda: httpx.Response(200, text="pong")

        result = await api_client.request("/ping")

        assert result.success
        assert result.data == "pong"

    async def test_request_options_are_forwarded(self, api_client, network):
        await api_client.authorized_request("/api/auth/change-password", "tok", method="POST", json={"a": 1})

        request = network.requests[0]
        assert request.method == "POST"
        assert request.headers["authorization"] == "Bearer tok"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {"a": 1}


@pytest.mark.asyncio
class TestBreaker:

    async def test_total_failure_trips_breaker(self, api_client, network, clock):
        network.unreachable = set(CANDIDATES)

        result = await api_client.request("/api/users")

        assert not result.success
        assert result.error == NETWORK_ERROR
        assert network.attempts == CANDIDATES

        network.attempts.clear()
        network.unreachable.clear()
        clock.now = 4.0
        short_circuited = await api_client.request("/api/users")

        assert short_circuited.error == BACKEND_UNAVAILABLE
        assert network.attempts == []

    async def test_malformed_configured_url_counts_as_unreachable(self, network, clock):
        async with httpx.AsyncClient(transport=httpx.MockTransport(network)) as http_client:
            client = ApiClient(
                probe=EnvironmentProbe.native(),
                configured_url="http://[::1:8083",
                breaker=CircuitBreaker(clock=clock),
                http_client=http_client,
            )

            result = await client.request("/api/users")

        assert not result.success
        assert result.error == NETWORK_ERROR
        assert client.breaker.should_short_circuit()

    async def test_network_is_tried_again_after_the_window(self, api_client, network, clock):
        network.unreachable = set(CANDIDATES)
        await api_client.request("/api/users")
        network.unreachable.clear()
        network.attempts.clear()

        clock.now = 5.0
        result = await api_client.request("/api/users")

        assert result.success
        assert network.attempts == CANDIDATES[:1]

    async def test_partial_failure_does_not_trip(self, api_client, network):
        network.unreachable = set(CANDIDATES[:3])

        await api_client.request("/api/users")

        assert not api_client.breaker.should_short_circuit()

    async def test_breakers_are_independent_per_client(self, api_client, network):
        network.unreachable = set(CANDIDATES)
        await api_client.request("/api/users")

        network.unreachable.clear()
        other = ApiClient(probe=api_client.probe, http_client=api_client._http_client)
        result = await other.request("/api/users")

        assert result.success


@pytest.mark.asyncio
class TestCandidates:

    async def test_absolute_url_is_the_only_candidate(self, api_client, network):
        network.unreachable = {"https://elsewhere.example:443"}

        result = await api_client.request("https://elsewhere.example/api/users")

        assert result.error == NETWORK_ERROR
        assert network.attempts == ["https://elsewhere.example:443"]

    async def test_configured_url_short_circuits_discovery(self, network, clock):
        async with httpx.AsyncClient(transport=httpx.MockTransport(network)) as http_client:
            client = ApiClient(
                probe=EnvironmentProbe.web(origin="https://school.example"),
                configured_url="https://api.school.uz/",
                breaker=CircuitBreaker(clock=clock),
                http_client=http_client,
            )
            assert client.candidate_urls("/api/users") == ["https://api.school.uz/api/users"]

            await client.request("/api/users")

        assert network.attempts == ["https://api.school.uz:443"]
