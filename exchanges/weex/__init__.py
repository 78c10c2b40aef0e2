"""
WEEX exchange adapters.

`client` wraps the contract REST API; `signing` holds the pure HMAC helpers.
"""

from .client import (  # noqa: F401
    MissingCredentialsError,
    WeexApiError,
    WeexClient,
    WeexClientError,
    WeexTransportError,
)
