import os
import ssl
from typing import Any, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from app.core.errors import ConfigError

DEFAULT_GRAFANA_URL = "http://localhost:3000"


def _bool_env(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class GrafanaConfig(BaseModel):
    """Everything the alerting client needs, passed explicitly at construction."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    url: str = DEFAULT_GRAFANA_URL
    api_key: str = ""
    access_token: str = ""
    id_token: str = ""
    # Federated token provider, anything with get_token(*scopes) -> obj with .token
    credential: Optional[Any] = None
    tls_ca_file: Optional[str] = None
    tls_cert_file: Optional[str] = None
    tls_key_file: Optional[str] = None
    tls_skip_verify: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> "GrafanaConfig":
        """Read GRAFANA_* variables; keyword overrides win.

        ``credential`` is never read from the environment. A federated token
        provider can only be injected in code, e.g.
        ``GrafanaConfig.from_env(credential=DefaultAzureCredential())``.
        """
        values = {
            "url": os.getenv("GRAFANA_URL", DEFAULT_GRAFANA_URL),
            "api_key": os.getenv("GRAFANA_SERVICE_ACCOUNT_TOKEN") or os.getenv("GRAFANA_API_KEY", ""),
            "tls_ca_file": os.getenv("GRAFANA_TLS_CA_FILE") or None,
            "tls_cert_file": os.getenv("GRAFANA_TLS_CERT_FILE") or None,
            "tls_key_file": os.getenv("GRAFANA_TLS_KEY_FILE") or None,
            "tls_skip_verify": _bool_env("GRAFANA_TLS_SKIP_VERIFY"),
        }
        values.update(overrides)
        return cls(**values)

    @property
    def has_tls(self) -> bool:
        return bool(self.tls_ca_file or self.tls_cert_file or self.tls_skip_verify)


def build_transport(config: GrafanaConfig) -> httpx.AsyncHTTPTransport:
    """Pooled transport, with custom TLS trust material when configured."""
    if not config.has_tls:
        return httpx.AsyncHTTPTransport()

    try:
        ctx = ssl.create_default_context(cafile=config.tls_ca_file)
        if config.tls_cert_file:
            ctx.load_cert_chain(config.tls_cert_file, keyfile=config.tls_key_file)
    except (OSError, ssl.SSLError) as e:
        raise ConfigError(f"failed to create custom transport: {e}") from e

    if config.tls_skip_verify:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE

    return httpx.AsyncHTTPTransport(verify=ctx)
