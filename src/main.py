"""Recon Decoder Service"""

import logging
import sys
import os
from contextlib import asynccontextmanager
import httpx
import uvicorn
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from exceptions import ReconError, SchemaMismatchError
from recon_client import ReconClientConfig, fetch_connection_details
from schemas import DecodeRequest, ReconContext, ReconResponse, ReconResult
import recon_decoder


# Define log format
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Create a handler with the custom format
formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(formatter)

# Configure the root logger
logging.basicConfig(
    level=LOG_LEVEL,
    format=LOG_FORMAT,
    datefmt=LOG_DATE_FORMAT,
    handlers=[handler]
)

# Apply the same format to all relevant Uvicorn loggers
for logger_name in ["uvicorn", "uvicorn.access", "httpx"]:
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()
    logger.propagate = False
    logger.addHandler(handler)

# HTTP status per failing stage; anything else is a decode failure
STAGE_STATUS = {"fetch": 502}


@asynccontextmanager
async def lifespan(app_: FastAPI):
    """Lifespan event handler to manage the shared outbound HTTP client."""
    client = httpx.AsyncClient()
    app_.state.http_client = client
    app_.state.recon_config = ReconClientConfig.from_env()
    if not app_.state.recon_config.cookie:
        logging.warning("RECON_COOKIE is not set; /recon/connections is disabled.")
    yield  # App runs here
    await client.aclose()

app = FastAPI(lifespan=lifespan)


@app.exception_handler(ReconError)
async def recon_error_handler(_: Request, exc: ReconError):
    """Report which pipeline stage failed."""
    content = {"detail": str(exc), "stage": exc.stage}
    if isinstance(exc, SchemaMismatchError):
        content["violations"] = exc.violations
    return JSONResponse(status_code=STAGE_STATUS.get(exc.stage, 422), content=content)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/recon/decode", response_model=ReconResult, response_model_by_alias=True)
async def decode_recon(body: DecodeRequest):
    """Decode the 'SC' section of a recon token."""
    return recon_decoder.decode(body.recon)


@app.post("/recon/connections", response_model=ReconResponse)
async def recon_connections(request: Request, context: ReconContext):
    """Replay a recon context to the booking API and return its connections."""
    config: ReconClientConfig = request.app.state.recon_config
    if not config.cookie:
        raise HTTPException(status_code=503, detail="Recon session cookie is not configured.")

    client = request.client.host if request.client else "-"
    logging.info("%s Fetching connection details for %s", client, context.hinfahrtDatum)
    return await fetch_connection_details(context, config, request.app.state.http_client)


def run():
    """Serve the app with uvicorn."""
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")),
                log_config=None)


if __name__ == "__main__":
    run()
