"""Decodes the 'SC' section of a recon token into arrival and departure location IDs.

A recon token is a '¶'-separated list of sections. The section following the
literal 'SC' section holds '1_' + base64(gzip(JSON)). Only one token variant is
understood; other variants typically fail to gunzip and raise DecompressionError.
"""

import base64
import binascii
import gzip
import json
import logging
import zlib
from typing import List, Mapping, Sequence, Union
from pydantic import ValidationError
from exceptions import (
    ReconError, TagNotFoundError, UnexpectedPrefixError, DecodeError,
    DecompressionError, JsonParseError, SchemaMismatchError
)
from schemas import ScPayload, ReconResult

SECTION_DELIMITER = "¶"
SC_TAG = "SC"
SC_PREFIX = "1_"


def split_sections(token: str) -> List[str]:
    """Split a recon token into its sections."""
    return token.split(SECTION_DELIMITER)


def find_data_section(sections: Sequence[str]) -> str:
    """Return the section following the first 'SC' section."""
    try:
        sc_index = sections.index(SC_TAG)
    except ValueError:
        raise TagNotFoundError("Couldn't find 'SC' in recon token") from None

    if sc_index + 1 >= len(sections):
        raise TagNotFoundError("'SC' is the last section of the recon token")

    return sections[sc_index + 1]


def strip_prefix(section: str) -> str:
    if not section.startswith(SC_PREFIX):
        raise UnexpectedPrefixError(
            f"'SC' section unexpectedly doesn't start with '{SC_PREFIX}'"
        )
    return section[len(SC_PREFIX):]


def decode_base64(text: str) -> bytes:
    """Strict base64 decode; rejects stray characters and bad padding."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"'SC' section isn't valid base64: {e}") from e


def decompress(raw: bytes) -> str:
    """Gunzip raw bytes into UTF-8 text."""
    if not raw:
        raise DecompressionError("'SC' section failed to get gunzipped: no data")
    try:
        return gzip.decompress(raw).decode("utf-8")
    except (OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
        raise DecompressionError(f"'SC' section failed to get gunzipped: {e}") from e


def parse_json(text: str):
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError) as e:
        raise JsonParseError(f"'SC' JSON parsing failed (invalid JSON): {e}") from e


def validate_payload(value) -> ScPayload:
    """Validate parsed JSON against the 'SC' payload schema."""
    try:
        return ScPayload.model_validate(value)
    except ValidationError as e:
        violations = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise SchemaMismatchError(
            "'SC' JSON doesn't match schema: " + "; ".join(violations),
            violations=violations,
        ) from e


def to_result(payload: ScPayload) -> ReconResult:
    return ReconResult(
        arrival_location_id=payload.req.arrLoc[0].lid,
        departure_location_id=payload.req.depLoc[0].lid,
    )


def decode(token: str) -> ReconResult:
    """Decode a recon token into a ReconResult.

    Raises a ReconError subclass naming the first stage that failed. Nothing is
    returned on failure.
    """
    try:
        section = find_data_section(split_sections(token))
        text = decompress(decode_base64(strip_prefix(section)))
        logging.debug(text)
        result = to_result(validate_payload(parse_json(text)))
    except DecompressionError as e:
        # known unsupported token variant
        logging.warning("Recon decode failed at stage %s: %s", e.stage, e)
        raise
    except ReconError as e:
        logging.info("Recon decode failed at stage %s: %s", e.stage, e)
        raise

    logging.debug("Decoded recon: arrival %s, departure %s",
                  result.arrival_location_id, result.departure_location_id)
    return result


def encode(payload: Union[str, Mapping], leading_sections: Sequence[str] = ()) -> str:
    """Build a recon token whose 'SC' section carries the given JSON payload."""
    # Parse to ensure valid JSON, then re-dump compactly
    obj = json.loads(payload) if isinstance(payload, str) else payload
    compact = json.dumps(obj, separators=(",", ":"))
    compressed = gzip.compress(compact.encode("utf-8"), mtime=0)
    encoded = base64.b64encode(compressed).decode("ascii")
    return SECTION_DELIMITER.join([*leading_sections, SC_TAG, SC_PREFIX + encoded])
