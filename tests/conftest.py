"""Shared fixtures for recon tests"""

import base64
import gzip
import json

import pytest

from recon_decoder import encode


def gzip_b64(data: bytes) -> str:
    return base64.b64encode(gzip.compress(data)).decode("ascii")


@pytest.fixture
def sc_payload():
    return {"req": {"arrLoc": [{"lid": "A"}], "depLoc": [{"lid": "B"}]}}


@pytest.fixture
def token(sc_payload):
    """A token shaped like the ones the booking API sends back."""
    return encode(sc_payload, leading_sections=["HKI", "T$A=1@O=Frankfurt(Main)Hbf@L=8000105@"])


@pytest.fixture
def recon_response():
    return {
        "verbindungen": [
            {
                "verbindungsAbschnitte": [
                    {"halte": [{"id": "A=1@L=8000105@"}, {"id": "A=1@L=8011160@"}]},
                    # walking segment
                    {"halte": []},
                ],
                "tripId": "ignored",
            }
        ]
    }


def raw_token(section: str) -> str:
    return "¶".join(["HKI", "SC", section])


def json_token(text: str) -> str:
    return raw_token("1_" + gzip_b64(text.encode("utf-8")))


def payload_token(obj) -> str:
    return json_token(json.dumps(obj))
