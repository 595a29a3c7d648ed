"""Shared fixtures: sample rules payloads and a client wired to a fake transport."""

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from app.core.config import GrafanaConfig
from app.integrations.grafana_client import AlertingClient


@pytest.fixture
def rules_payload() -> Dict[str, Any]:
    """One group, one firing rule, one alert instance."""
    return {
        "status": "success",
        "data": {
            "groups": [
                {
                    "name": "api-latency",
                    "folderUid": "fold-1",
                    "file": "Platform",
                    "interval": 60,
                    "lastEvaluation": "2025-03-01T10:00:00Z",
                    "evaluationTime": 0.012,
                    "rules": [
                        {
                            "state": "firing",
                            "name": "HighLatency",
                            "query": "histogram_quantile(0.99, rate(http_duration_bucket[5m])) > 1",
                            "duration": 300,
                            "keepFiringFor": 0,
                            "annotations": {"summary": "p99 latency above 1s"},
                            "activeAt": "2025-03-01T09:55:00Z",
                            "alerts": [
                                {
                                    "labels": {"alertname": "HighLatency", "service": "checkout"},
                                    "annotations": {"summary": "p99 latency above 1s"},
                                    "state": "Alerting",
                                    "activeAt": "2025-03-01T09:55:00Z",
                                    "value": "1.42e+00",
                                }
                            ],
                            "totals": {"alerting": 1},
                            "totalsFiltered": {"alerting": 1},
                            "uid": "rule-abc",
                            "folderUid": "fold-1",
                            "labels": {"severity": "critical"},
                            "health": "ok",
                            "type": "alerting",
                            "lastEvaluation": "2025-03-01T10:00:00Z",
                            "evaluationTime": 0.004,
                        }
                    ],
                }
            ],
            "groupNextToken": "next-page",
            "totals": {"firing": 1, "inactive": 4},
        },
    }


@pytest.fixture
def make_client() -> Callable[..., AlertingClient]:
    """Build an AlertingClient whose transport is answered by ``handler``.

    Every request seen by the transport is appended to ``client.seen``.
    """

    def _make(handler, **config: Any) -> AlertingClient:
        seen: List[httpx.Request] = []

        async def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            result = handler(request)
            if hasattr(result, "__await__"):
                result = await result
            return result

        config.setdefault("url", "https://grafana.example.com/")
        client = AlertingClient(GrafanaConfig(**config), transport=httpx.MockTransport(_record))
        client.seen = seen
        return client

    return _make


class FakeAccessToken:
    def __init__(self, token: str):
        self.token = token


class FakeCredential:
    """Sync token provider with the azure-identity ``get_token(*scopes)`` shape."""

    def __init__(self, token: str = "aad-token", error: Optional[Exception] = None):
        self.token = token
        self.error = error
        self.scopes: List[tuple] = []

    def get_token(self, *scopes: str) -> FakeAccessToken:
        self.scopes.append(scopes)
        if self.error is not None:
            raise self.error
        return FakeAccessToken(self.token)


class FakeAsyncCredential(FakeCredential):
    async def get_token(self, *scopes: str) -> FakeAccessToken:
        return FakeCredential.get_token(self, *scopes)


@pytest.fixture
def credential() -> FakeCredential:
    return FakeCredential()


@pytest.fixture
def async_credential() -> FakeAsyncCredential:
    return FakeAsyncCredential(token="async-aad-token")


@pytest.fixture
def failing_credential() -> FakeCredential:
    return FakeCredential(error=RuntimeError("workload identity trust expired"))
