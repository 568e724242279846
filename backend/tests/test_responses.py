"""Response envelope builder tests."""

import json

from contact_mailer.services.responses import build_error_response, build_success_response

EXPECTED_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
}


class TestSuccessResponse:

    def test_defaults_to_200(self):
        envelope = build_success_response("Mail sent successfully")

        assert envelope.status_code == 200
        assert envelope.headers == EXPECTED_HEADERS
        assert json.loads(envelope.body) == {"message": "Mail sent successfully"}

    def test_custom_status_code(self):
        assert build_success_response("Accepted", 202).status_code == 202

    def test_body_is_compact_json(self):
        assert build_success_response("ok").body == '{"message":"ok"}'


class TestErrorResponse:

    def test_carries_message_and_error(self):
        envelope = build_error_response(ValueError("boom"), "Internal error, please try again later")

        assert envelope.status_code == 500
        assert envelope.headers == EXPECTED_HEADERS
        assert json.loads(envelope.body) == {
            "message": "Internal error, please try again later",
            "error": "boom",
        }

    def test_accepts_plain_string_error(self):
        envelope = build_error_response("Invalid reCAPTCHA", "reCAPTCHA failed", 400)

        assert envelope.status_code == 400
        assert json.loads(envelope.body)["error"] == "Invalid reCAPTCHA"


class TestEnvelopeShape:

    def test_identical_arguments_give_identical_envelopes(self):
        first = build_error_response("x", "must be string", 400)
        second = build_error_response("x", "must be string", 400)

        assert first == second
        assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())

    def test_to_dict_uses_gateway_keys(self):
        assert build_success_response("ok").to_dict() == {
            "statusCode": 200,
            "headers": EXPECTED_HEADERS,
            "body": '{"message":"ok"}',
        }

    def test_headers_are_not_shared_between_envelopes(self):
        first = build_success_response("ok")
        second = build_success_response("ok")
        assert first.headers is not second.headers
