import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
load_dotenv(".env")  # load environment variables for local dev

from fastapi import FastAPI
from app.api.rules import router as rules_router
from app.core.config import GrafanaConfig, build_transport

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # one connection pool shared by every per-request AlertingClient
    transport = build_transport(GrafanaConfig.from_env())
    app.state.grafana_transport = transport
    try:
        yield
    finally:
        await transport.aclose()


app = FastAPI(title="Grafana Alerting Rules", version="0.1.0", lifespan=lifespan)
app.include_router(rules_router, prefix="/alerting")


@app.get("/health")
async def health():
    return {"status": "ok"}
