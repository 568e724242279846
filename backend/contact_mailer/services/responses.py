"""
Response envelope builders.

Both builders are pure: identical arguments always produce identical
envelopes. Bodies are compact JSON so they match what browsers and the
gateway expect byte for byte.
"""

import json
from typing import Union

from contact_mailer.models.envelope import ResponseEnvelope

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
}


def _dumps(data: dict) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def build_success_response(message: str, status_code: int = 200) -> ResponseEnvelope:
    return ResponseEnvelope(
        status_code=status_code,
        headers=dict(DEFAULT_HEADERS),
        body=_dumps({"message": message}),
    )


def build_error_response(
    error: Union[BaseException, str],
    message: str,
    status_code: int = 500,
) -> ResponseEnvelope:
    """
    Build an error envelope.

    error is either an exception (its text becomes the "error" field) or an
    already-sanitized description string.
    """
    return ResponseEnvelope(
        status_code=status_code,
        headers=dict(DEFAULT_HEADERS),
        body=_dumps({"message": message, "error": str(error)}),
    )
