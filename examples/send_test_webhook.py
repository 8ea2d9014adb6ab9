"""
Test Delivery Example

Sends a signed webhook delivery to a local receiver, the same way the
webhook sender would.

Run with: SANITY_WEBHOOK_SECRET=... python examples/send_test_webhook.py
"""

from __future__ import annotations

import json
import os

import httpx

from sanity_webhook import WebhookSignatureAuth


def main() -> None:
    # Body is serialized once; the signature covers these exact bytes
    body = json.dumps({"_id": "resume", "_type": "post"}, separators=(",", ":"))

    with httpx.Client(auth=WebhookSignatureAuth(os.environ["SANITY_WEBHOOK_SECRET"])) as client:
        response = client.post(
            "http://localhost:8000/hooks/document",
            content=body,
            headers={"Content-Type": "application/json"},
        )

    print(f"Status: {response.status_code}")
    print(f"Response: {response.json()}")


if __name__ == "__main__":
    main()
