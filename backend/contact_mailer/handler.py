"""
Contact form handler.

Runs one submission through the pipeline

    extract -> validate -> verify reCAPTCHA (optional) -> dispatch -> respond

and always returns exactly one ResponseEnvelope. Hosting adapters (the
Lambda entrypoint and the FastAPI route in main.py) translate their own
request/response protocol to and from SubmissionRequest / ResponseEnvelope.

Outcome mapping:
  invalid submission      400  validator's message
  reCAPTCHA false/fault   400  "reCAPTCHA failed"
  anything else failing   500  "Internal error, please try again later"
  success                 200  "Mail sent successfully"

500 responses never carry the internal fault text; it is logged instead.
"""

import logging
from typing import Optional

from contact_mailer.errors import CaptchaVerificationError
from contact_mailer.models.config import HandlerConfig
from contact_mailer.models.envelope import ResponseEnvelope
from contact_mailer.models.submission import SubmissionRequest
from contact_mailer.services.body_extractor import extract_submission
from contact_mailer.services.captcha import verify_recaptcha_token
from contact_mailer.services.mailer import SesMailer, dispatch
from contact_mailer.services.responses import build_error_response, build_success_response
from contact_mailer.services.schema_validator import ContactFormValidator

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Mail sent successfully"
RECAPTCHA_FAILED_MESSAGE = "reCAPTCHA failed"
RECAPTCHA_FAILED_ERROR = "Invalid reCAPTCHA"
INTERNAL_ERROR_MESSAGE = "Internal error, please try again later"
INTERNAL_ERROR = "Internal server error"


class SendMailHandler:
    """
    Handles contact form submissions for one HandlerConfig.

    The validator and SES mailer are built once here and shared, read-only,
    by every request this instance serves.
    """

    def __init__(self, config: HandlerConfig, mailer: Optional[SesMailer] = None):
        self.config = config
        self.validator = ContactFormValidator()
        self.mailer = mailer or SesMailer(region=config.region)

    def __call__(self, request: SubmissionRequest) -> ResponseEnvelope:
        return self.handle(request)

    def _recaptcha_ok(self, token: str) -> bool:
        try:
            return verify_recaptcha_token(token, self.config.recaptcha_secret)
        except CaptchaVerificationError as exc:
            logger.warning(f"reCAPTCHA verification error: {exc}")
            return False

    def handle(self, request: SubmissionRequest) -> ResponseEnvelope:
        try:
            data = extract_submission(request)

            result = self.validator.validate(data)
            if not result.valid:
                message = result.message or "Invalid input"
                return build_error_response(message, message, 400)

            payload = result.payload

            if not self.config.skip_recaptcha and not self._recaptcha_ok(payload.recaptcha):
                return build_error_response(RECAPTCHA_FAILED_ERROR, RECAPTCHA_FAILED_MESSAGE, 400)

            dispatch(payload, self.config, self.mailer)
            return build_success_response(SUCCESS_MESSAGE)
        except Exception:
            logger.exception("Failed to process contact form submission")
            return build_error_response(INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE, 500)


def create_send_mail_handler(config: HandlerConfig, mailer: Optional[SesMailer] = None) -> SendMailHandler:
    return SendMailHandler(config, mailer=mailer)
