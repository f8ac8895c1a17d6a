#!/usr/bin/env python3
"""
Dev helper: post a sample contact-form submission to a running relay.

Builds a submission like the website form would and POST-s it to
/api/contact, either form-encoded (what a plain HTML form sends) or as JSON
(what a fetch()-based form sends).

Usage
-----
# Basic: form-encoded submission to localhost:8000
python scripts/send_test_contact.py

# Send as JSON instead
python scripts/send_test_contact.py --json

# Simulate a bot filling the hidden honeypot field (expects 200, no mail)
python scripts/send_test_contact.py --honeypot

# Custom fields
python scripts/send_test_contact.py --name "Jane Doe" --email jane@example.com \\
    --message "Do you take small projects?"

# Target a different deployment
python scripts/send_test_contact.py --url https://contact.example.com

# Print the payload without sending
python scripts/send_test_contact.py --dry-run
"""

import argparse
import json
import sys

import httpx


def build_payload(args: argparse.Namespace) -> dict:
    payload = {
        "name": args.name,
        "email": args.email,
        "phone": args.phone,
        "message": args.message,
    }
    if args.honeypot:
        payload["website"] = "http://bot.example"
    return payload


def _print_response(response: httpx.Response) -> None:
    status_label = "OK" if response.status_code == 200 else "FAIL"
    print(f"\n[{status_label}] HTTP {response.status_code}")
    request_id = response.headers.get("x-request-id")
    if request_id:
        print(f"Request ID: {request_id}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Post a test contact-form submission to the relay.",
    )
    parser.add_argument("--url", default="http://localhost:8000", help="Relay base URL.")
    parser.add_argument("--name", default="Test Visitor")
    parser.add_argument("--email", default="visitor@example.com")
    parser.add_argument("--phone", default="")
    parser.add_argument("--message", default="This is a test message from send_test_contact.py.")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Send a JSON body instead of application/x-www-form-urlencoded.",
    )
    parser.add_argument(
        "--honeypot",
        action="store_true",
        help="Fill the hidden 'website' field the way a bot would.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload without sending it.",
    )

    args = parser.parse_args()

    payload = build_payload(args)
    endpoint = f"{args.url.rstrip('/')}/api/contact"
    encoding = "json" if args.json else "form"

    print(f"Endpoint : {endpoint}")
    print(f"Encoding : {encoding}")
    print(f"Honeypot : {'filled' if args.honeypot else 'empty'}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2))
        return 0

    try:
        if args.json:
            response = httpx.post(endpoint, json=payload, timeout=30)
        else:
            response = httpx.post(endpoint, data=payload, timeout=30)
        _print_response(response)
        return 0 if response.status_code == 200 else 1
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the relay running? Start it with:\n"
            "  cd backend && uvicorn contact_relay.main:app --reload",
            file=sys.stderr,
        )
        return 1
    except Exception as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
