"""Transport layer for token endpoint requests.

Modules:
    retry: Retry logic for token requests (429 and 5xx aware)
    ssl: TLS policy (verification, custom CA, client certificates)

Example:
    ```python
    from eryph_clientruntime.transport import SSLConfig, create_token_transport

    transport = create_token_transport(SSLConfig(ca_file="/etc/eryph/zero-ca.pem"))
    ```
"""

import httpx

from eryph_clientruntime.transport.retry import TokenEndpointRetry
from eryph_clientruntime.transport.ssl import SSLConfig, create_ssl_context


def create_token_transport(ssl_config: SSLConfig | None = None, *, max_retries: int = 3) -> httpx.AsyncBaseTransport:
    """Create the transport stack used for token requests.

    Args:
        ssl_config: TLS policy, defaults to full verification.
        max_retries: Retry attempts for transient failures.
    """
    context = create_ssl_context(ssl_config or SSLConfig())
    return TokenEndpointRetry(
        wrapped_transport=httpx.AsyncHTTPTransport(verify=context),
        max_retries=max_retries,
    )


__all__ = [
    "SSLConfig",
    "TokenEndpointRetry",
    "create_ssl_context",
    "create_token_transport",
]
