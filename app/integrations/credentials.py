"""Credential resolution for requests to the Grafana alerting API.

A client picks exactly one strategy when it is built, in this order:

1. forwarded access token + ID token (trusted proxy)
2. federated credential, exchanged for a bearer token scoped to Grafana
3. static API key / service account token
4. nothing (unauthenticated)

Only the federated strategy performs I/O.
"""
import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncGenerator, Dict, Optional

import httpx

from app.core.errors import AuthError

logger = logging.getLogger(__name__)

# Entra ID application of the Grafana API; fixed for every federated token request.
GRAFANA_AAD_RESOURCE = "ce34e7e5-485f-4d76-964f-b3d2b16d1e4f"

ACCESS_TOKEN_HEADER = "X-Access-Token"
ID_TOKEN_HEADER = "X-Grafana-Id"


class AuthStrategy(str, Enum):
    FORWARDED = "forwarded"
    FEDERATED = "federated"
    API_KEY = "api_key"
    NONE = "none"


@dataclass(frozen=True)
class ClientIdentity:
    strategy: AuthStrategy
    access_token: str = ""
    id_token: str = ""
    api_key: str = ""
    credential: Optional[Any] = None

    def __repr__(self) -> str:
        return f"ClientIdentity(strategy={self.strategy.value})"


def resolve_identity(
    access_token: str = "",
    id_token: str = "",
    api_key: str = "",
    credential: Optional[Any] = None,
) -> ClientIdentity:
    if access_token and id_token:
        return ClientIdentity(AuthStrategy.FORWARDED, access_token=access_token, id_token=id_token)
    if credential is not None:
        return ClientIdentity(AuthStrategy.FEDERATED, credential=credential)
    if api_key:
        return ClientIdentity(AuthStrategy.API_KEY, api_key=api_key)
    return ClientIdentity(AuthStrategy.NONE)


async def fetch_federated_token(credential: Any) -> str:
    """Ask the identity provider for a bearer token scoped to Grafana.

    Accepts both sync and async credentials exposing ``get_token(*scopes)``
    (the azure-identity shape). Sync providers run in a worker thread so the
    event loop is not blocked.
    """
    get_token = credential.get_token
    try:
        if inspect.iscoroutinefunction(get_token):
            access = await get_token(GRAFANA_AAD_RESOURCE)
        else:
            access = await asyncio.to_thread(get_token, GRAFANA_AAD_RESOURCE)
    except Exception as e:
        raise AuthError(f"failed to get AAD token for alerting client: {e}") from e

    token = getattr(access, "token", None)
    if not token:
        raise AuthError("failed to get AAD token for alerting client: provider returned no token")
    return token


async def identity_headers(identity: ClientIdentity) -> Dict[str, str]:
    if identity.strategy is AuthStrategy.FORWARDED:
        return {ACCESS_TOKEN_HEADER: identity.access_token, ID_TOKEN_HEADER: identity.id_token}
    if identity.strategy is AuthStrategy.FEDERATED:
        token = await fetch_federated_token(identity.credential)
        return {"Authorization": f"Bearer {token}"}
    if identity.strategy is AuthStrategy.API_KEY:
        return {"Authorization": f"Bearer {identity.api_key}"}
    return {}


class GrafanaAuth(httpx.Auth):
    """httpx auth hook applying one resolved identity to every request."""

    def __init__(self, identity: ClientIdentity):
        self.identity = identity

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        headers = await identity_headers(self.identity)
        logger.debug("authenticating %s with strategy=%s", request.url, self.identity.strategy.value)
        request.headers.update(headers)
        yield request
