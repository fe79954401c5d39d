"""Test doubles for code built on the client runtime.

Modules:
    environment: In-memory :class:`FakeEnvironment`
    token_endpoint: :class:`MockTokenEndpoint`, an ``httpx.MockTransport``
        factory standing in for the identity server

Example:
    ```python
    from eryph_clientruntime.testing import FakeEnvironment, MockTokenEndpoint

    async def test_resolves_token():
        environment = FakeEnvironment()
        environment.add_config(
            "user", "test", {"endpoints": {...}, "clients": [{"id": "client-a", "secret": "s"}]}
        )
        endpoint = MockTokenEndpoint(access_token="tok1")
        provider = TokenProvider(transport=endpoint.transport)
        config = await resolve_client_config("test", environment=environment, token_provider=provider)
        assert endpoint.call_count == 1
    ```
"""

from eryph_clientruntime.testing.environment import FakeEnvironment
from eryph_clientruntime.testing.token_endpoint import MockTokenEndpoint

__all__ = ["FakeEnvironment", "MockTokenEndpoint"]
