"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from identity_store import Client, Gateway, RequestContext, open_identity_store


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ctx(clock):
    return RequestContext(clock=clock)


@pytest.fixture
async def identity(clock):
    store = await open_identity_store({"path": ":memory:"}, clock=clock)
    yield store
    await store.close()


@pytest.fixture
def clients(identity):
    return identity.clients


@pytest.fixture
def gateways(identity):
    return identity.gateways


@pytest.fixture
def foo_client():
    return Client(
        client_id="foo-client",
        name="Foo",
        description="The foo client",
        secret="s3cret",
        redirect_uris=["https://foo.example/callback"],
        grants=["authorization_code", "refresh_token"],
        rights=["RIGHT_USER_INFO"],
    )


@pytest.fixture
def foo_gateway():
    return Gateway(
        gateway_id="foo-gateway",
        eui="00-11-22-33-44-55-66-77",
        name="Foo Gateway",
        frequency_plan_id="EU_863_870",
        attributes={"site": "roof"},
    )
