"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from copilot_bridge.config import settings
from copilot_bridge.errors import BridgeError
from copilot_bridge.http_client import create_http_client
from copilot_bridge.routers import copilotkit, custom_adk

# ── Logging setup ────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    app.state.http_client = create_http_client()
    logger.info("Bridging CopilotKit → agent runtime at %s", settings.agent_run_url)

    yield

    # Shutdown
    await app.state.http_client.aclose()


app = FastAPI(
    title="Copilot Bridge",
    description="CopilotKit GraphQL ↔ agent runtime REST/SSE bridge",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BridgeError)
async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(exc.payload, status_code=exc.status_code)


# Mount routers
app.include_router(custom_adk.router, prefix="/api/custom-adk", tags=["custom-adk"])
app.include_router(copilotkit.router, prefix="/api/copilotkit", tags=["copilotkit"])


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": "copilot-bridge",
        "agent_base_url": settings.agent_base_url,
    }


def run() -> None:
    uvicorn.run("copilot_bridge.main:app", host=settings.host, port=settings.port)
