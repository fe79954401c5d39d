"""Exceptions raised while resolving configuration, credentials and tokens.

Resolution errors (everything under :class:`ConfigurationError`) mean the
environment is not set up correctly and need operator action; they are never
retried automatically. :class:`TokenAcquisitionError` reports whether the
failure is transient through its ``retryable`` attribute.

Example:
    ```python
    from eryph_clientruntime.auth.exceptions import CredentialsNotFoundError

    try:
        identity = lookup.find_credentials("production")
    except CredentialsNotFoundError as e:
        print(f"Missing client for {e.config_name}: {e}")
    ```
"""


class ClientRuntimeError(Exception):
    """Base exception for all eryph client runtime errors."""

    pass


class ConfigurationError(ClientRuntimeError):
    """Base exception for configuration resolution problems.

    Attributes:
        config_name: The configuration that was being resolved (if any).
    """

    def __init__(self, message: str, config_name: str | None = None):
        super().__init__(message)
        self.config_name = config_name


class NoConfigurationFoundError(ConfigurationError):
    """Raised when no (or not the requested) configuration exists in any store."""

    pass


class AmbiguousConfigurationError(ConfigurationError):
    """Raised when auto-discovery finds several configurations and no single default.

    Attributes:
        candidates: Names of the configurations that could have been used.
    """

    def __init__(self, message: str, candidates: list[str] | None = None):
        super().__init__(message)
        self.candidates = candidates if candidates is not None else []


class EndpointNotFoundError(ConfigurationError):
    """Raised when an endpoint is neither configured nor published locally.

    Attributes:
        endpoint_name: The endpoint that was looked up.
    """

    def __init__(self, message: str, endpoint_name: str, config_name: str | None = None):
        super().__init__(message, config_name=config_name)
        self.endpoint_name = endpoint_name


class CredentialError(ConfigurationError):
    """Base exception for client identity selection errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class CredentialsNotFoundError(CredentialError):
    """Raised when no usable client identity can be selected.

    Attributes:
        client_id: The explicitly requested client id (if any).
        env_var_name: The environment variable that was checked for a secret (if any).
    """

    def __init__(
        self,
        message: str,
        config_name: str | None = None,
        client_id: str | None = None,
        env_var_name: str | None = None,
    ):
        super().__init__(message, config_name=config_name)
        self.client_id = client_id
        self.env_var_name = env_var_name


class CredentialFileError(CredentialsNotFoundError):
    """Raised when an explicitly referenced key file cannot be read.

    Example:
        ```python
        try:
            key = resolver.read_key_file("~/.eryph/private/client-a.key", required=True)
        except CredentialFileError as e:
            print(f"Cannot read key file: {e}")
        ```
    """

    pass


class AmbiguousCredentialsError(CredentialError):
    """Raised when a configuration has several clients and no single default.

    Attributes:
        candidates: Client ids that could have been used.
    """

    def __init__(self, message: str, config_name: str | None = None, candidates: list[str] | None = None):
        super().__init__(message, config_name=config_name)
        self.candidates = candidates if candidates is not None else []


class TokenAcquisitionError(ClientRuntimeError):
    """Raised when the OAuth2 client-credentials exchange fails.

    Attributes:
        cause: The underlying exception (transport error, timeout or
            :class:`eryph_clientruntime.errors.APIError`).
        retryable: True for transient failures (timeouts, connection errors,
            429 and 5xx). Rejections such as ``invalid_client`` are not retryable.
        status_code: HTTP status of the token endpoint response (if any).
        error: OAuth2 ``error`` code from the response body (if any).
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        retryable: bool = False,
        status_code: int | None = None,
        error: str | None = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.retryable = retryable
        self.status_code = status_code
        self.error = error
