"""
Callback Notifier
=================

Posts a ``DeployOutcome`` as JSON to the callback URL supplied by the
registry. Best effort: failures are logged and reported as ``False``,
never raised, and never retried.
"""

import logging
from typing import Optional

import httpx

from src.deployhook.models import DeployOutcome

logger = logging.getLogger(__name__)


class CallbackNotifier:
    """
    Sends deploy outcomes to registry callback URLs.

    Args:
        timeout: Seconds for the whole request.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(self, timeout: Optional[float] = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def notify(self, url: str, outcome: DeployOutcome) -> bool:
        """POST ``outcome`` to ``url``. Returns True on a 2xx response."""
        if not url:
            logger.warning("No callback URL in webhook, skipping callback")
            return False

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    url,
                    json=outcome.to_payload(),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.InvalidURL as e:
            logger.error(f"Invalid callback URL {url}: {e}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"POST to {url} failed: {e}")
            return False

        if not response.is_success:
            logger.error(f"POST to {url} returned {response.status_code}")
            return False

        logger.info(f"POST to {url} succeeded ({outcome.state.value}).")
        return True
