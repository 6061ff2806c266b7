"""Replays a recon context to the booking API to fetch full connection details"""

import logging
import os
from dataclasses import dataclass
from typing import Optional, Type, TypeVar
import httpx
from pydantic import BaseModel, ValidationError
from exceptions import InvalidResponseError
from schemas import ReconContext, ReconResponse

DEFAULT_RECON_URL = "https://www.bahn.de/web/api/angebote/recon"

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class ReconClientConfig:
    """Deployment/session specific settings for the recon endpoint."""
    cookie: str = ""
    url: str = DEFAULT_RECON_URL

    @classmethod
    def from_env(cls) -> "ReconClientConfig":
        return cls(
            cookie=os.getenv("RECON_COOKIE", ""),
            url=os.getenv("RECON_URL", DEFAULT_RECON_URL),
        )


def build_request_body(context: ReconContext) -> dict:
    """Request body for a single adult, 2nd class, no discounts."""
    return {
        "klasse": "KLASSE_2",
        "reisende": [
            {
                "typ": "ERWACHSENER",
                "ermaessigungen": [
                    {"art": "KEINE_ERMAESSIGUNG", "klasse": "KLASSENLOS"},
                ],
                "anzahl": 1,
                "alter": [],
            }
        ],
        "anfrageZeitpunkt": context.hinfahrtDatum,
        "ctxRecon": context.hinfahrtRecon,
        "reservierungsKontingenteVorhanden": False,
        "nurDeutschlandTicketVerbindungen": False,
        "deutschlandTicketVorhanden": False,
        "sitzplatzOnly": False,
    }


async def fetch_and_validate_json(
    client: httpx.AsyncClient,
    url: str,
    schema: Type[ModelT],
    method: str = "GET",
    headers: Optional[dict] = None,
    body: Optional[dict] = None,
) -> ModelT:
    """Send one request and validate the JSON response against a pydantic model.

    Every failure (network, non-2xx status, invalid JSON, schema mismatch) is
    raised as InvalidResponseError. No retries are attempted.
    """
    try:
        response = await client.request(method, url, headers=headers, json=body)
    except httpx.HTTPError as e:
        raise InvalidResponseError(f"Request to {url} failed: {e}", url=url) from e

    if not response.is_success:
        raise InvalidResponseError(
            f"Request to {url} returned HTTP {response.status_code}",
            url=url, status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise InvalidResponseError(
            f"Response from {url} isn't valid JSON", url=url,
            status_code=response.status_code,
        ) from e

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise InvalidResponseError(
            f"Response from {url} doesn't match schema: {e.error_count()} error(s)",
            url=url, status_code=response.status_code,
        ) from e


async def fetch_connection_details(
    context: ReconContext,
    config: ReconClientConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> ReconResponse:
    """POST the recon context and return the validated connections."""
    if client is None:
        async with httpx.AsyncClient() as own_client:
            return await fetch_connection_details(context, config, own_client)

    headers = {
        "Content-Type": "application/json",
        "Cookie": config.cookie,
    }
    try:
        result = await fetch_and_validate_json(
            client, config.url, ReconResponse,
            method="POST", headers=headers, body=build_request_body(context),
        )
    except InvalidResponseError as e:
        logging.warning("Recon request failed: %s", e)
        raise

    logging.info("Recon request returned %s connection(s)", len(result.verbindungen))
    return result
