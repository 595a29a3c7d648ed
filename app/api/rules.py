import logging

from fastapi import APIRouter, HTTPException, Request

from app.core.config import GrafanaConfig
from app.core.errors import APIError, AuthError, ConfigError, DecodeError, TransportError
from app.core.summary import summarize_rules
from app.integrations.credentials import ACCESS_TOKEN_HEADER, ID_TOKEN_HEADER
from app.integrations.grafana_client import AlertingClient

logger = logging.getLogger(__name__)

router = APIRouter()


def config_for_request(req: Request) -> GrafanaConfig:
    # Identity headers from a trusted proxy are forwarded as-is
    return GrafanaConfig.from_env(
        access_token=req.headers.get(ACCESS_TOKEN_HEADER, ""),
        id_token=req.headers.get(ID_TOKEN_HEADER, ""),
    )


@router.get("/rules")
async def list_rules(req: Request):
    try:
        # pooled transport built once at startup; absent when lifespan did not run
        transport = getattr(req.app.state, "grafana_transport", None)
        client = AlertingClient(config_for_request(req), transport=transport)
    except ConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))

    try:
        async with client:
            rules = await client.get_rules()
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except (APIError, DecodeError) as e:
        raise HTTPException(status_code=502, detail=str(e))
    except TransportError as e:
        raise HTTPException(status_code=504, detail=str(e))

    summaries = summarize_rules(rules)
    logger.info("listed %d alert rules from %s", len(summaries), client.base_url)
    return {
        "rules": [s.model_dump() for s in summaries],
        "nextToken": rules.next_token,
        "totals": rules.totals,
    }
