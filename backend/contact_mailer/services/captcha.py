"""
Google reCAPTCHA verification.

Verifies a reCAPTCHA response token against Google's siteverify endpoint.
Without a configured secret, verification is disabled and every token is
accepted.

Documentation: https://developers.google.com/recaptcha/docs/verify
"""

import logging
from typing import Optional

import requests

from contact_mailer.errors import CaptchaVerificationError

logger = logging.getLogger(__name__)

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"

# requests never times out on its own
REQUEST_TIMEOUT = 10


def verify_recaptcha_token(token: str, secret: Optional[str]) -> bool:
    """
    Verify a reCAPTCHA token.

    Args:
        token:  The g-recaptcha-response token submitted with the form.
        secret: The site's reCAPTCHA secret key. None or empty disables
                verification.

    Returns:
        The "success" flag from Google's response (True when disabled).

    Raises:
        CaptchaVerificationError: If the request fails or the response body
            is not JSON.
    """
    if not secret:
        logger.warning("No reCAPTCHA secret configured - skipping verification.")
        return True

    try:
        response = requests.post(
            VERIFY_URL,
            data={"secret": secret, "response": token},
            timeout=REQUEST_TIMEOUT,
        )
        result = response.json()
    except requests.exceptions.JSONDecodeError as e:
        raise CaptchaVerificationError(f"reCAPTCHA response is not JSON: {e}") from e
    except requests.exceptions.RequestException as e:
        raise CaptchaVerificationError(f"reCAPTCHA request failed: {e}") from e

    success = isinstance(result, dict) and result.get("success") is True
    if not success:
        error_codes = result.get("error-codes", []) if isinstance(result, dict) else []
        logger.warning(f"reCAPTCHA verification failed: {error_codes}")
    return success
