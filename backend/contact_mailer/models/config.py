"""
Handler configuration model.

One HandlerConfig is built per deployed handler and reused, read-only, for
every request that handler serves.
"""

import os
from typing import Optional

from pydantic import BaseModel

from contact_mailer.errors import ConfigurationError

DEFAULT_REGION = "us-west-2"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


class HandlerConfig(BaseModel):
    """
    Settings for a contact form handler.

    recaptcha_secret unset disables verification; skip_recaptcha forces it
    off even when a secret is present. disable_send reports success without
    contacting SES (used in tests and CI).
    """

    model_config = {"frozen": True}

    sender_email: str
    recipient_email: str
    region: str = DEFAULT_REGION
    recaptcha_secret: Optional[str] = None
    skip_recaptcha: bool = False
    disable_send: bool = False

    @classmethod
    def from_env(cls) -> "HandlerConfig":
        """
        Build a config from environment variables.

        SENDER_EMAIL and RECIPIENT_EMAIL are required. AWS_REGION,
        RECAPTCHA_SECRET, SKIP_RECAPTCHA and DISABLE_SEND are optional.
        """
        sender = os.getenv("SENDER_EMAIL")
        recipient = os.getenv("RECIPIENT_EMAIL")
        if not sender or not recipient:
            raise ConfigurationError("SENDER_EMAIL and RECIPIENT_EMAIL must be set in environment variables")

        return cls(
            sender_email=sender,
            recipient_email=recipient,
            region=os.getenv("AWS_REGION") or DEFAULT_REGION,
            recaptcha_secret=os.getenv("RECAPTCHA_SECRET") or None,
            skip_recaptcha=_env_flag("SKIP_RECAPTCHA"),
            disable_send=_env_flag("DISABLE_SEND"),
        )
