"""
Pydantic models for contact form submissions.

Models:
  SubmissionRequest  — raw inbound request (headers, body, base64 flag)
  Attachment         — a file part, buffered to raw bytes
  ContactPayload     — validated five-field form plus optional attachments
  ValidationResult   — outcome of schema validation
"""

from typing import Optional

from pydantic import BaseModel


class SubmissionRequest(BaseModel):
    """
    Raw inbound request as handed over by the hosting layer.

    Header names are kept exactly as received; routers and gateways are
    inconsistent about casing, so lookups go through header().
    """

    model_config = {"frozen": True}

    headers: dict[str, str] = {}
    body: Optional[str] = None
    is_base64_encoded: bool = False

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for candidate in (lowered, lowered.title()):
            if candidate in self.headers:
                return self.headers[candidate]
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def content_type(self) -> Optional[str]:
        return self.header("content-type")

    @classmethod
    def from_lambda_event(cls, event: dict) -> "SubmissionRequest":
        """Build a request from an API Gateway (REST or HTTP API) proxy event."""
        headers = event.get("headers") or {}
        return cls(
            headers={str(k): str(v) for k, v in headers.items() if v is not None},
            body=event.get("body"),
            is_base64_encoded=bool(event.get("isBase64Encoded")),
        )


class Attachment(BaseModel):
    """A single uploaded file, already decoded to raw bytes."""

    model_config = {"frozen": True}

    filename: str
    content_type: str = "application/octet-stream"
    content: bytes


class ContactPayload(BaseModel):
    """A submission that passed schema validation."""

    model_config = {"frozen": True}

    name: str
    email: str
    subject: str
    message: str
    recaptcha: str
    files: Optional[list[Attachment]] = None


class ValidationResult(BaseModel):
    """
    Result of validating an extracted submission.

    message is the first violated rule (e.g. "must have required property
    'name'") and is only set when valid is False.
    """

    valid: bool
    message: Optional[str] = None
    payload: Optional[ContactPayload] = None
