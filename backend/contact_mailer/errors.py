"""
Exceptions raised by the contact mailer pipeline.

Validation failures are not exceptions: the validator returns a
ValidationResult. Faults from SES (botocore ClientError / BotoCoreError)
are not wrapped and reach the handler unchanged.
"""


class ContactMailerError(Exception):
    """Base class for faults raised by this package."""


class ExtractionError(ContactMailerError):
    """The request body could not be turned into a submission record."""


class PayloadParseError(ExtractionError):
    """The body is not valid JSON (or not valid base64)."""


class MultipartStreamError(ExtractionError):
    """The multipart stream is malformed or truncated."""


class CaptchaVerificationError(ContactMailerError):
    """The reCAPTCHA round trip failed or returned an unreadable body."""


class ConfigurationError(ContactMailerError, ValueError):
    """Required settings are missing from the environment."""
