"""
Contact Mailer entrypoints.

Two hosting adapters share one SendMailHandler per process:

  lambda_handler(event, context)  AWS Lambda behind an API Gateway proxy
                                  integration; returns the envelope dict.
  app                             FastAPI application for running the relay
                                  as a regular web service.

Configuration comes from the environment (see HandlerConfig.from_env); a
.env file in the working directory is loaded if present.
"""

import base64
import logging
from functools import lru_cache

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, Response
from starlette.concurrency import run_in_threadpool

from contact_mailer.errors import ConfigurationError
from contact_mailer.handler import (
    INTERNAL_ERROR,
    INTERNAL_ERROR_MESSAGE,
    SendMailHandler,
    create_send_mail_handler,
)
from contact_mailer.models.config import HandlerConfig
from contact_mailer.models.envelope import ResponseEnvelope
from contact_mailer.models.submission import SubmissionRequest
from contact_mailer.services.responses import build_error_response

load_dotenv()

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_handler() -> SendMailHandler:
    """Build the process-wide handler from the environment on first use."""
    config = HandlerConfig.from_env()
    logger.info(
        "Contact mailer configured: region=%s recaptcha=%s sending=%s",
        config.region,
        "off" if config.skip_recaptcha or not config.recaptcha_secret else "on",
        "off" if config.disable_send else "on",
    )
    return create_send_mail_handler(config)


def _configuration_error_response(exc: ConfigurationError) -> ResponseEnvelope:
    logger.error(f"Contact mailer is not configured: {exc}")
    return build_error_response(INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE, 500)


# ---------------------------------------------------------------------------
# AWS Lambda
# ---------------------------------------------------------------------------

def lambda_handler(event, context):
    """API Gateway proxy entrypoint."""
    request = SubmissionRequest.from_lambda_event(event)
    try:
        handler = get_handler()
    except ConfigurationError as exc:
        return _configuration_error_response(exc).to_dict()
    return handler.handle(request).to_dict()


# ---------------------------------------------------------------------------
# FastAPI
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Contact Mailer API",
    description="Contact form relay: validates submissions and forwards them through Amazon SES",
    version="0.1.0",
)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> Response:
    envelope = _configuration_error_response(exc)
    return Response(
        content=envelope.body,
        status_code=envelope.status_code,
        headers=envelope.headers,
    )


@app.get("/")
async def root():
    return {"message": "Contact Mailer API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/contact")
async def submit_contact(
    request: Request,
    handler: SendMailHandler = Depends(get_handler),
) -> Response:
    """
    Accept a contact form submission (JSON or multipart/form-data).

    The raw body is passed on base64-encoded, the same way API Gateway
    forwards binary payloads, so file parts survive untouched.
    """
    raw = await request.body()
    submission = SubmissionRequest(
        headers=dict(request.headers),
        body=base64.b64encode(raw).decode("ascii"),
        is_base64_encoded=True,
    )

    envelope = await run_in_threadpool(handler.handle, submission)
    return Response(
        content=envelope.body,
        status_code=envelope.status_code,
        headers=envelope.headers,
    )
