"""
Contact form handler tests.

Exercise the whole pipeline (extract -> validate -> reCAPTCHA -> dispatch ->
respond) with requests and SES mocked out.
"""

import base64
import json
from unittest.mock import MagicMock, Mock, patch

import pytest
import requests
from botocore.exceptions import ClientError

from contact_mailer.handler import create_send_mail_handler
from contact_mailer.models.config import HandlerConfig
from contact_mailer.models.submission import SubmissionRequest
from contact_mailer.services.mailer import SesMailer
from helpers_multipart import MULTIPART_CONTENT_TYPE, multipart_body, valid_fields

INTERNAL_ERROR_MESSAGE = "Internal error, please try again later"


def _config(**overrides) -> HandlerConfig:
    values = {
        "sender_email": "sender@example.com",
        "recipient_email": "recipient@example.com",
        "skip_recaptcha": True,
        "disable_send": True,
    }
    values.update(overrides)
    return HandlerConfig(**values)


def _json_request(body) -> SubmissionRequest:
    return SubmissionRequest(
        headers={"Content-Type": "application/json"},
        body=json.dumps(body),
    )


def _body(envelope) -> dict:
    return json.loads(envelope.body)


@pytest.fixture
def mailer():
    return MagicMock(spec=SesMailer)


class TestSuccess:

    def test_valid_payload_with_sending_disabled(self, mailer):
        handler = create_send_mail_handler(
            HandlerConfig(
                sender_email="a@b.com",
                recipient_email="c@d.com",
                skip_recaptcha=True,
                disable_send=True,
            ),
            mailer=mailer,
        )
        request = _json_request(
            {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "subject": "Hi",
                "message": "hey",
                "recaptcha": "tok",
            }
        )

        envelope = handler(request)

        assert envelope.status_code == 200
        assert _body(envelope) == {"message": "Mail sent successfully"}
        mailer.send.assert_not_called()

    def test_valid_payload_is_sent(self, mailer):
        handler = create_send_mail_handler(_config(disable_send=False), mailer=mailer)

        envelope = handler.handle(_json_request(valid_fields()))

        assert envelope.status_code == 200
        mailer.send.assert_called_once()
        message = mailer.send.call_args.args[0]
        assert message.from_ == "sender@example.com"
        assert message.to == "recipient@example.com"
        assert message.reply_to == "jane@example.com"

    def test_multipart_attachments_reach_the_mailer(self, mailer):
        handler = create_send_mail_handler(_config(disable_send=False), mailer=mailer)
        body = multipart_body(valid_fields(), files=[("attachment", "x.txt", "text/plain", b"hello")])
        request = SubmissionRequest(
            headers={"content-type": MULTIPART_CONTENT_TYPE},
            body=base64.b64encode(body).decode("ascii"),
            is_base64_encoded=True,
        )

        envelope = handler.handle(request)

        assert envelope.status_code == 200
        message = mailer.send.call_args.args[0]
        assert [(a.filename, a.content) for a in message.attachments] == [("x.txt", b"hello")]


class TestValidationFailures:

    @pytest.mark.parametrize("field", ["name", "email", "subject", "message", "recaptcha"])
    def test_missing_field_returns_400(self, mailer, field):
        handler = create_send_mail_handler(_config(), mailer=mailer)
        data = valid_fields()
        del data[field]

        envelope = handler.handle(_json_request(data))

        assert envelope.status_code == 400
        body = _body(envelope)
        assert "required property" in body["message"].lower()
        assert body["error"] == body["message"]

    def test_invalid_email_returns_400(self, mailer):
        handler = create_send_mail_handler(_config(), mailer=mailer)

        envelope = handler.handle(_json_request(valid_fields(email="nope")))

        assert envelope.status_code == 400
        assert _body(envelope)["message"] == 'must match format "email"'

    def test_validation_failure_never_verifies_or_sends(self, mailer):
        handler = create_send_mail_handler(
            _config(skip_recaptcha=False, recaptcha_secret="s3cret", disable_send=False),
            mailer=mailer,
        )
        with patch("contact_mailer.services.captcha.requests.post") as mock_post:
            envelope = handler.handle(_json_request({"email": "jane@example.com"}))

        assert envelope.status_code == 400
        mock_post.assert_not_called()
        mailer.send.assert_not_called()


class TestRecaptcha:

    def test_skip_recaptcha_never_calls_verification(self, mailer):
        handler = create_send_mail_handler(
            _config(skip_recaptcha=True, recaptcha_secret="s3cret"),
            mailer=mailer,
        )
        with patch("contact_mailer.services.captcha.requests.post") as mock_post:
            envelope = handler.handle(_json_request(valid_fields(recaptcha="anything")))

        assert envelope.status_code == 200
        mock_post.assert_not_called()

    def test_explicit_failure_returns_400(self, mailer):
        handler = create_send_mail_handler(
            _config(skip_recaptcha=False, recaptcha_secret="s3cret", disable_send=False),
            mailer=mailer,
        )
        with patch("contact_mailer.services.captcha.requests.post") as mock_post:
            mock_post.return_value = Mock(json=Mock(return_value={"success": False}))
            envelope = handler.handle(_json_request(valid_fields()))

        assert envelope.status_code == 400
        assert _body(envelope) == {"message": "reCAPTCHA failed", "error": "Invalid reCAPTCHA"}
        mailer.send.assert_not_called()

    def test_verification_fault_is_reported_like_a_failure(self, mailer):
        handler = create_send_mail_handler(
            _config(skip_recaptcha=False, recaptcha_secret="s3cret"),
            mailer=mailer,
        )
        with patch("contact_mailer.services.captcha.requests.post") as mock_post:
            mock_post.side_effect = requests.exceptions.Timeout("read timed out")
            envelope = handler.handle(_json_request(valid_fields()))

        assert envelope.status_code == 400
        assert _body(envelope)["message"] == "reCAPTCHA failed"
        assert "timed out" not in envelope.body

    def test_successful_verification_continues_to_dispatch(self, mailer):
        handler = create_send_mail_handler(
            _config(skip_recaptcha=False, recaptcha_secret="s3cret", disable_send=False),
            mailer=mailer,
        )
        with patch("contact_mailer.services.captcha.requests.post") as mock_post:
            mock_post.return_value = Mock(json=Mock(return_value={"success": True}))
            envelope = handler.handle(_json_request(valid_fields(recaptcha="tok-1")))

        assert envelope.status_code == 200
        assert mock_post.call_args.kwargs["data"] == {"secret": "s3cret", "response": "tok-1"}
        mailer.send.assert_called_once()

    def test_no_secret_accepts_without_network(self, mailer):
        handler = create_send_mail_handler(_config(skip_recaptcha=False), mailer=mailer)
        with patch("contact_mailer.services.captcha.requests.post") as mock_post:
            envelope = handler.handle(_json_request(valid_fields()))

        assert envelope.status_code == 200
        mock_post.assert_not_called()


class TestHeaderSafety:

    def test_multiline_subject_is_still_delivered(self):
        client = MagicMock()
        client.send_raw_email.return_value = {"MessageId": "msg-1"}
        handler = create_send_mail_handler(
            _config(disable_send=False),
            mailer=SesMailer(region="us-west-2", client=client),
        )

        envelope = handler.handle(_json_request(valid_fields(subject="Hello\nthere")))

        assert envelope.status_code == 200
        raw = client.send_raw_email.call_args.kwargs["RawMessage"]["Data"]
        assert b"Subject: Hello there" in raw


class TestInternalErrors:

    def test_malformed_json_returns_generic_500(self, mailer):
        handler = create_send_mail_handler(_config(), mailer=mailer)

        envelope = handler.handle(SubmissionRequest(headers={"Content-Type": "application/json"}, body="{oops"))

        assert envelope.status_code == 500
        body = _body(envelope)
        assert body["message"] == INTERNAL_ERROR_MESSAGE
        assert "oops" not in body["error"]

    def test_truncated_multipart_returns_500(self, mailer):
        handler = create_send_mail_handler(_config(), mailer=mailer)
        request = SubmissionRequest(
            headers={"Content-Type": MULTIPART_CONTENT_TYPE},
            body=base64.b64encode(multipart_body(valid_fields(), closed=False)).decode("ascii"),
            is_base64_encoded=True,
        )

        envelope = handler.handle(request)

        assert envelope.status_code == 500
        assert _body(envelope)["message"] == INTERNAL_ERROR_MESSAGE

    def test_dispatch_fault_is_logged_not_exposed(self, mailer, caplog):
        mailer.send.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
            "SendRawEmail",
        )
        handler = create_send_mail_handler(_config(disable_send=False), mailer=mailer)

        with caplog.at_level("ERROR", logger="contact_mailer.handler"):
            envelope = handler.handle(_json_request(valid_fields()))

        assert envelope.status_code == 500
        assert _body(envelope)["message"] == INTERNAL_ERROR_MESSAGE
        assert "not verified" not in envelope.body
        assert "not verified" in caplog.text
        mailer.send.assert_called_once()

    def test_every_request_gets_exactly_one_envelope(self, mailer):
        handler = create_send_mail_handler(_config(), mailer=mailer)
        requests_ = [
            _json_request(valid_fields()),
            _json_request({}),
            SubmissionRequest(body="not json"),
        ]

        statuses = [handler.handle(r).status_code for r in requests_]

        assert statuses == [200, 400, 500]
