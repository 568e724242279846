"""
Schema validation for contact form submissions.

The schema is fixed: name, email, subject, message and recaptcha are all
required strings, and email must look like an email address. Extra keys are
ignored.

Only the first violated rule is reported, in this order:
  1. the submission is not an object            -> must be object
  2. required properties, in declaration order  -> must have required property 'X'
  3. per-property rules, in declaration order   -> must be string
                                                   must match format "email"

Callers show these messages to the submitter, so their wording is part of
the public contract.
"""

import logging
import re
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from contact_mailer.models.submission import Attachment, ContactPayload, ValidationResult

logger = logging.getLogger(__name__)

# Same pattern as ajv-formats' "email" format, which browsers' form
# libraries validate against before submitting.
EMAIL_PATTERN = re.compile(
    r"^[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$",
    re.IGNORECASE,
)


class ContactForm(BaseModel):
    """The five form fields, strictly typed."""

    model_config = {"extra": "ignore", "strict": True}

    name: str
    email: str
    subject: str
    message: str
    recaptcha: str

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        if not EMAIL_PATTERN.fullmatch(value):
            raise PydanticCustomError("format", 'must match format "email"')
        return value


def _describe(error: dict) -> str:
    kind = error["type"]
    if kind == "missing":
        return f"must have required property '{error['loc'][0]}'"
    if kind == "format":
        return error["msg"]
    if kind.startswith("string"):
        return "must be string"
    return error["msg"]


def _first_violation(exc: ValidationError) -> str:
    errors = exc.errors()
    missing = [e for e in errors if e["type"] == "missing"]
    return _describe(missing[0] if missing else errors[0])


def _collect_files(data: dict):
    files = data.get("files")
    if isinstance(files, list) and all(isinstance(f, Attachment) for f in files):
        return list(files)
    return None


class ContactFormValidator:
    """
    Validates extracted submissions.

    Built once per handler and reused across requests; holds no per-request
    state and never mutates its input.
    """

    def __init__(self, form_model: type[ContactForm] = ContactForm):
        self._form_model = form_model

    def validate(self, data: Any) -> ValidationResult:
        if not isinstance(data, dict):
            return ValidationResult(valid=False, message="must be object")

        try:
            form = self._form_model.model_validate(data)
        except ValidationError as exc:
            message = _first_violation(exc)
            logger.info(f"Submission rejected by schema: {message}")
            return ValidationResult(valid=False, message=message)

        payload = ContactPayload(**form.model_dump(), files=_collect_files(data))
        return ValidationResult(valid=True, payload=payload)
