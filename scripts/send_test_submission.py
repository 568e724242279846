#!/usr/bin/env python3
"""
Dev helper: send a test contact form submission to a running backend.

Builds a submission with the five form fields, optionally attaches a file,
and POSTs it to the /api/contact endpoint as JSON or multipart/form-data.

Usage
-----
# Basic JSON submission to localhost:8000
python scripts/send_test_submission.py

# Multipart submission with an attachment
python scripts/send_test_submission.py --file path/to/notes.pdf

# Leave out a field to see the validation error
python scripts/send_test_submission.py --omit name

# Print the request without sending it
python scripts/send_test_submission.py --dry-run

Environment / .env
------------------
The backend reads SENDER_EMAIL, RECIPIENT_EMAIL, RECAPTCHA_SECRET,
SKIP_RECAPTCHA and DISABLE_SEND. Set SKIP_RECAPTCHA=true when testing
locally, since this script cannot solve a real reCAPTCHA challenge.
"""

import argparse
import json
import mimetypes
import sys
import textwrap
from pathlib import Path

import httpx

FIELDS = ("name", "email", "subject", "message", "recaptcha")


def _build_fields(args: argparse.Namespace) -> dict:
    fields = {
        "name": args.name,
        "email": args.email,
        "subject": args.subject,
        "message": args.message,
        "recaptcha": args.recaptcha,
    }
    for omitted in args.omit:
        fields.pop(omitted, None)
    return fields


def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="send_test_submission.py",
        description="Send a test contact form submission to the backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_submission.py
              python scripts/send_test_submission.py --file notes.txt
              python scripts/send_test_submission.py --omit email
              python scripts/send_test_submission.py --url http://localhost:8001
        """),
    )
    parser.add_argument("--url", default="http://localhost:8000", help="Backend base URL (default: http://localhost:8000)")
    parser.add_argument("--name", default="Jane Doe")
    parser.add_argument("--email", default="jane@example.com")
    parser.add_argument("--subject", default="Test contact form submission")
    parser.add_argument("--message", default="Hello from send_test_submission.py")
    parser.add_argument("--recaptcha", default="test-token", help="reCAPTCHA response token to send")
    parser.add_argument(
        "--omit",
        action="append",
        default=[],
        choices=FIELDS,
        help="Leave a field out of the submission (repeatable)",
    )
    parser.add_argument(
        "--file",
        default=None,
        metavar="PATH",
        help="Attach a file; switches the request to multipart/form-data.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the request without sending it.")

    args = parser.parse_args()
    fields = _build_fields(args)
    endpoint = f"{args.url.rstrip('/')}/api/contact"

    files = None
    if args.file:
        file_path = Path(args.file)
        if not file_path.exists():
            print(f"ERROR: File not found: {file_path}", file=sys.stderr)
            return 1
        content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        files = {"attachment": (file_path.name, file_path.read_bytes(), content_type)}
        print(f"Attaching file: {file_path} ({file_path.stat().st_size:,} bytes)")

    print(f"Endpoint : {endpoint}")
    print(f"Encoding : {'multipart/form-data' if files else 'application/json'}")

    if args.dry_run:
        print("\n[DRY RUN] Fields:")
        print(json.dumps(fields, indent=2))
        return 0

    try:
        if files:
            response = httpx.post(endpoint, data=fields, files=files, timeout=30)
        else:
            response = httpx.post(endpoint, json=fields, timeout=30)
    except httpx.HTTPError as e:
        print(f"\nERROR: Request failed: {e}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
