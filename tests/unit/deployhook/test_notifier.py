"""
Unit tests for deployhook.notifier.

Outbound requests are captured with httpx.MockTransport.
"""

import json

import httpx

from src.deployhook.models import DeployOutcome
from src.deployhook.notifier import CallbackNotifier


def capturing_transport(captured, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code)

    return httpx.MockTransport(handler)


class TestCallbackNotifier:
    """Tests for CallbackNotifier.notify()."""

    def test_posts_json_outcome(self):
        captured = []
        notifier = CallbackNotifier(transport=capturing_transport(captured))

        ok = notifier.notify("http://x/cb", DeployOutcome.success())

        assert ok is True
        assert len(captured) == 1
        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == "http://x/cb"
        assert request.headers["content-type"] == "application/json"
        assert json.loads(request.content) == {
            "state": "success",
            "description": "",
            "context": "Deploy",
            "target_url": "",
        }

    def test_non_2xx_response_returns_false(self):
        captured = []
        notifier = CallbackNotifier(transport=capturing_transport(captured, status_code=500))

        assert notifier.notify("http://x/cb", DeployOutcome.success()) is False
        assert len(captured) == 1

    def test_transport_error_returns_false(self, caplog):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        notifier = CallbackNotifier(transport=httpx.MockTransport(handler))

        assert notifier.notify("http://x/cb", DeployOutcome.success()) is False
        assert "connection refused" in caplog.text

    def test_empty_url_is_skipped(self):
        captured = []
        notifier = CallbackNotifier(transport=capturing_transport(captured))

        assert notifier.notify("", DeployOutcome.success()) is False
        assert captured == []

    def test_url_without_scheme_returns_false(self):
        notifier = CallbackNotifier(timeout=1.0)

        assert notifier.notify("not-a-url", DeployOutcome.success()) is False

    def test_failure_outcome_is_sent(self):
        captured = []
        notifier = CallbackNotifier(transport=capturing_transport(captured, status_code=201))

        assert notifier.notify("http://x/cb", DeployOutcome.failure("deploy.sh exited with status 1")) is True
        assert json.loads(captured[0].content)["state"] == "failure"
