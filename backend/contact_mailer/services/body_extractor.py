"""
Body extractor.

Turns a raw SubmissionRequest into a plain dict shaped like a contact form
submission. Nothing is validated here: the result may lack required fields
or carry wrongly typed values; the schema validator deals with that.

Multipart bodies
----------------
Parsed with python-multipart's streaming MultipartParser (the same parser
FastAPI/Starlette use for form uploads). Parts carrying a filename are
buffered into Attachment records under "files"; every other part is a
plain field assigned by name, last value wins.

JSON bodies
-----------
Anything that is not multipart/form-data (including a missing content-type)
is parsed as JSON.
"""

import base64
import binascii
import json
import logging
from typing import Any, Optional

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, MultipartState, parse_options_header

from contact_mailer.errors import MultipartStreamError, PayloadParseError
from contact_mailer.models.submission import Attachment, SubmissionRequest

logger = logging.getLogger(__name__)

MULTIPART_FORM_DATA = "multipart/form-data"
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"


# ---------------------------------------------------------------------------
# Raw body decoding
# ---------------------------------------------------------------------------

def _raw_body(request: SubmissionRequest) -> bytes:
    """Return the request body as bytes, undoing gateway base64 encoding."""
    body = request.body or ""
    if request.is_base64_encoded:
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise PayloadParseError(f"Body is not valid base64: {exc}") from exc
    return body.encode("utf-8")


# ---------------------------------------------------------------------------
# Multipart
# ---------------------------------------------------------------------------

class _MultipartCollector:
    """Callback target for MultipartParser; accumulates fields and files."""

    def __init__(self) -> None:
        self.fields: dict[str, str] = {}
        self.files: list[Attachment] = []
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._data = bytearray()

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._data = bytearray()

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._data += data[start:end]

    def on_part_end(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        name = options.get(b"name", b"").decode("utf-8", errors="replace")
        filename = options.get(b"filename")

        if filename is None:
            if name:
                self.fields[name] = bytes(self._data).decode("utf-8", errors="replace")
            return

        # Browsers send an empty, nameless part for an unused file input
        if not filename and not self._data:
            return

        content_type, _ = parse_options_header(self._headers.get(b"content-type", b""))
        self.files.append(
            Attachment(
                filename=filename.decode("utf-8", errors="replace"),
                content_type=content_type.decode("latin-1") or DEFAULT_FILE_CONTENT_TYPE,
                content=bytes(self._data),
            )
        )


def _boundary(content_type: str) -> bytes:
    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        raise MultipartStreamError("Multipart: Boundary not found")
    return boundary


def extract_multipart(request: SubmissionRequest) -> dict:
    """
    Parse a multipart/form-data body.

    Returns a dict of the plain fields plus a "files" list (possibly empty)
    of Attachment records, in the order the parts appeared.

    Raises MultipartStreamError for a missing boundary, malformed parts or
    a stream that ends before the closing boundary.
    """
    boundary = _boundary(request.content_type or "")
    data = _raw_body(request)

    collector = _MultipartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        parser.write(data)
        parser.finalize()
    except MultipartParseError as exc:
        raise MultipartStreamError(f"Malformed multipart body: {exc}") from exc

    if parser.state != MultipartState.END:
        raise MultipartStreamError("Unexpected end of form")

    logger.debug(
        "Extracted multipart submission: fields=%s files=%d",
        sorted(collector.fields),
        len(collector.files),
    )
    return {**collector.fields, "files": collector.files}


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def extract_json(request: SubmissionRequest) -> Any:
    """
    Parse the body as JSON.

    Raises PayloadParseError when the body is empty or not valid JSON.
    """
    try:
        text = _raw_body(request).decode("utf-8")
        return json.loads(text)
    except ValueError as exc:
        raise PayloadParseError(f"Body is not valid JSON: {exc}") from exc


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

def is_multipart(content_type: Optional[str]) -> bool:
    return bool(content_type) and MULTIPART_FORM_DATA in content_type.lower()


def extract_submission(request: SubmissionRequest) -> Any:
    """Route to the multipart or JSON extractor based on the content-type header."""
    if is_multipart(request.content_type):
        return extract_multipart(request)
    return extract_json(request)
