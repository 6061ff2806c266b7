"""Custom exceptions"""

class ReconError(Exception):
    """Base class for all recon decoding and fetching failures."""

    stage = "recon"


class TagNotFoundError(ReconError):
    """Raised when the token has no 'SC' section followed by a data section."""

    stage = "split"


class UnexpectedPrefixError(ReconError):
    """Raised when the 'SC' data section doesn't start with '1_'."""

    stage = "prefix"


class DecodeError(ReconError):
    """Raised when the 'SC' data section isn't valid base64."""

    stage = "base64"


class DecompressionError(ReconError):
    """Raised when the decoded bytes can't be gunzipped into UTF-8 text.

    Real-world tokens hit this regularly, so callers should treat it as a normal
    outcome and fall back to another parser rather than report a bug.
    """

    stage = "gunzip"


class JsonParseError(ReconError):
    """Raised when the gunzipped text isn't valid JSON."""

    stage = "json"


class SchemaMismatchError(ReconError):
    """Raised when the parsed JSON doesn't match the expected shape."""

    stage = "schema"

    def __init__(self, message, violations=None):
        super().__init__(message)
        self.violations = list(violations or [])


class InvalidResponseError(ReconError):
    """Raised when the recon API call fails or returns an unexpected body."""

    stage = "fetch"

    def __init__(self, message, url=None, status_code=None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
