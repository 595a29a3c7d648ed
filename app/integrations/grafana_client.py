import asyncio
import logging
from typing import Optional

import httpx

from app.core.config import GrafanaConfig, build_transport
from app.core.errors import APIError, ConfigError, TransportError
from app.core.schemas import RulesResponse
from app.integrations.credentials import ClientIdentity, GrafanaAuth, resolve_identity
from app.integrations.rules_decoder import decode_rules_response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
RULES_ENDPOINT_PATH = "/api/prometheus/grafana/api/v1/rules"

_JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def normalize_base_url(url: str) -> str:
    base = (url or "").strip().rstrip("/")
    try:
        parsed = httpx.URL(base)
    except httpx.InvalidURL as e:
        raise ConfigError(f"invalid Grafana base URL {base!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigError(f"invalid Grafana base URL {base!r}: expected an absolute http(s) URL")
    return base


class AlertingClient:
    """Reads alert rule state from Grafana's Prometheus-compatible rules API.

    The auth strategy is resolved once here and reused for every request.
    ``transport`` overrides the pooled transport built from the config
    (custom TLS trust, or a fake in tests).
    """

    def __init__(self, config: GrafanaConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = normalize_base_url(config.url)
        self.identity: ClientIdentity = resolve_identity(
            access_token=config.access_token,
            id_token=config.id_token,
            api_key=config.api_key,
            credential=config.credential,
        )
        # An injected transport belongs to the caller and outlives this client
        self._owns_transport = transport is None
        if transport is None:
            transport = build_transport(config)
        self._http = httpx.AsyncClient(
            transport=transport,
            timeout=DEFAULT_TIMEOUT,
            auth=GrafanaAuth(self.identity),
        )

    async def __aenter__(self) -> "AlertingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_transport:
            await self._http.aclose()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def fetch(self, path: str, cancel: Optional[asyncio.Event] = None) -> httpx.Response:
        """GET ``path`` and return the open response on HTTP 200.

        The caller owns the returned response and must close it. Setting
        ``cancel`` aborts the token fetch and the request. DEFAULT_TIMEOUT
        bounds everything up to the response headers; ``get_rules`` bounds
        the whole exchange including the body.
        """
        url = self.url_for(path)
        request = self._http.build_request("GET", url, headers=_JSON_HEADERS)
        logger.debug("GET %s (auth=%s)", url, self.identity.strategy.value)

        try:
            response = await asyncio.wait_for(self._send(request, cancel), DEFAULT_TIMEOUT)
        except asyncio.TimeoutError as e:
            raise _timed_out(url) from e
        except httpx.HTTPError as e:
            logger.warning("request to %s failed: %s", url, e)
            raise TransportError(url, e) from e

        if response is None:
            logger.info("request to %s cancelled", url)
            raise TransportError(url, cancelled=True)

        if response.status_code != 200:
            try:
                body = await asyncio.wait_for(response.aread(), DEFAULT_TIMEOUT)
            except asyncio.TimeoutError as e:
                raise _timed_out(url) from e
            except httpx.HTTPError as e:
                logger.warning("reading error body from %s failed: %s", url, e)
                raise TransportError(url, e) from e
            finally:
                await response.aclose()
            text = body.decode("utf-8", errors="replace")
            logger.warning("Grafana API returned %s for %s", response.status_code, url)
            raise APIError(response.status_code, text, url)

        return response

    async def _send(self, request: httpx.Request, cancel: Optional[asyncio.Event]) -> Optional[httpx.Response]:
        # None means the cancel event won the race.
        if cancel is None:
            return await self._http.send(request, stream=True)
        if cancel.is_set():
            return None

        sending = asyncio.ensure_future(self._http.send(request, stream=True))
        waiting = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({sending, waiting}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiting.cancel()
            if not sending.done():
                sending.cancel()
                for late in await asyncio.gather(sending, return_exceptions=True):
                    if isinstance(late, httpx.Response):
                        await late.aclose()

        if sending in done:
            return sending.result()
        return None

    async def get_rules(self, cancel: Optional[asyncio.Event] = None) -> RulesResponse:
        """Fetch and decode the rules listing within one DEFAULT_TIMEOUT deadline."""
        try:
            return await asyncio.wait_for(self._get_rules(cancel), DEFAULT_TIMEOUT)
        except asyncio.TimeoutError as e:
            raise _timed_out(self.url_for(RULES_ENDPOINT_PATH)) from e

    async def _get_rules(self, cancel: Optional[asyncio.Event]) -> RulesResponse:
        response = await self.fetch(RULES_ENDPOINT_PATH, cancel)
        try:
            return await decode_rules_response(response.aiter_bytes(), RULES_ENDPOINT_PATH)
        finally:
            await response.aclose()


def _timed_out(url: str) -> TransportError:
    logger.warning("request to %s exceeded %ss", url, DEFAULT_TIMEOUT)
    return TransportError(url, TimeoutError(f"no complete response within {DEFAULT_TIMEOUT}s"))
