from typing import Optional


class GrafanaClientError(Exception):
    """Base error for the Grafana alerting client."""


class ConfigError(GrafanaClientError):
    """Invalid client configuration (bad base URL, unreadable TLS material)."""


class AuthError(GrafanaClientError):
    """Credential or token acquisition failure."""


class TransportError(GrafanaClientError):
    """Network, timeout or cancellation failure while talking to Grafana."""

    def __init__(self, url: str, cause: Optional[BaseException] = None, cancelled: bool = False):
        self.url = url
        self.cause = cause
        self.cancelled = cancelled
        if cancelled:
            message = f"request to {url} was cancelled"
        else:
            message = f"failed to execute request to {url}: {cause}"
        super().__init__(message)


class APIError(GrafanaClientError):
    """Grafana answered with a non-200 status."""

    def __init__(self, status_code: int, body: str, url: str = ""):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"Grafana API returned status code {status_code}: {body}")


class DecodeError(GrafanaClientError):
    """Response body could not be decoded into the rules model."""

    def __init__(self, endpoint: str, cause: BaseException):
        self.endpoint = endpoint
        self.cause = cause
        super().__init__(f"failed to decode rules response from {endpoint}: {cause}")
