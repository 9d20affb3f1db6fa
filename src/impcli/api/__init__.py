"""Electric Imp build API client."""

from impcli.api.client import ImpClient
from impcli.api.errors import (
    AuthenticationError,
    ClientRequestError,
    ImpApiError,
    NotFoundError,
    RemoteCallError,
)

__all__ = [
    "AuthenticationError",
    "ClientRequestError",
    "ImpApiError",
    "ImpClient",
    "NotFoundError",
    "RemoteCallError",
]
