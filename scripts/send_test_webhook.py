#!/usr/bin/env python
"""
Send a Docker Hub style push webhook to a running deploy hook.
"""
import sys

import httpx

HOOK_URL = "http://localhost:8080"


def build_payload(tag: str, callback_url: str = "") -> dict:
    """Minimal registry push payload for ``tag``."""
    return {
        "callback_url": callback_url,
        "push_data": {
            "images": [],
            "pushed_at": 0,
            "pusher": "send_test_webhook",
            "tag": tag,
        },
        "repository": {
            "name": "test",
            "repo_name": "local/test",
            "status": "Active",
        },
    }


def send_webhook(token: str, tag: str, callback_url: str = "", base_url: str = HOOK_URL) -> int:
    """POST the webhook and return the HTTP status code."""
    response = httpx.post(
        f"{base_url}/deploy/{token}",
        json=build_payload(tag, callback_url),
        timeout=10.0,
    )
    return response.status_code


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python send_test_webhook.py <token> <tag> [callback_url] [--url http://host:port]")
        sys.exit(1)

    token, tag = sys.argv[1], sys.argv[2]
    callback = sys.argv[3] if len(sys.argv) > 3 and not sys.argv[3].startswith("--") else ""
    base = sys.argv[sys.argv.index("--url") + 1] if "--url" in sys.argv else HOOK_URL

    status = send_webhook(token, tag, callback, base)
    meaning = {201: "deploy scheduled", 404: "tag not managed", 400: "unknown token or bad payload"}
    print(f"{status}: {meaning.get(status, 'unexpected response')}")
    sys.exit(0 if status == 201 else 1)
