"""Pydantic models for recon payloads, results and API responses"""

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    """A location reference inside the decoded 'SC' payload."""
    lid: str


class ScRequest(BaseModel):
    arrLoc: List[Location] = Field(..., min_length=1)
    depLoc: List[Location] = Field(..., min_length=1)


class ScPayload(BaseModel):
    """Shape of the JSON hidden in the 'SC' section of a recon token."""
    req: ScRequest


class ReconResult(BaseModel):
    """Arrival and departure location IDs taken from a decoded recon token."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    arrival_location_id: str = Field(..., alias="arrivalLocationId")
    departure_location_id: str = Field(..., alias="departureLocationId")


class ReconContext(BaseModel):
    """The pieces of a booking search result that get replayed to the recon endpoint."""
    hinfahrtDatum: str = Field(..., description="Outbound trip date/time as sent by the API")
    hinfahrtRecon: str = Field(..., description="Opaque recon token of the outbound trip")


class Stop(BaseModel):
    id: str


class Leg(BaseModel):
    # empty for walking segments and transfers
    halte: List[Stop]


class Connection(BaseModel):
    verbindungsAbschnitte: List[Leg] = Field(..., min_length=1)


class ReconResponse(BaseModel):
    """Validated response of the recon endpoint."""
    verbindungen: List[Connection] = Field(..., min_length=1)


class DecodeRequest(BaseModel):
    recon: str
