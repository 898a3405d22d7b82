"""
Shared test fixtures for the deploy hook service.
"""

import os
import sys
import threading
from typing import List, Tuple

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.deployhook.config import AppConfiguration, RepositoryConfig, get_settings
from src.deployhook.models import DeployOutcome
from src.deployhook.runner import ScriptResult


# =============================================================================
# ENVIRONMENT SETUP
# =============================================================================

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop DEPLOYHOOK_* variables so settings come from defaults."""
    for key in list(os.environ):
        if key.startswith("DEPLOYHOOK_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# FAKES
# =============================================================================

class RecordingRunner:
    """ScriptRunner stand-in that records calls instead of spawning processes."""

    def __init__(self, exit_code: int = 0):
        self.exit_code = exit_code
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def run(self, script_path: str) -> ScriptResult:
        with self._lock:
            self.calls.append(script_path)
        return ScriptResult(
            script=script_path,
            output="deployed\n",
            exit_code=0 if self.exit_code == 0 else 1,
            returncode=self.exit_code,
        )


class RecordingNotifier:
    """CallbackNotifier stand-in that records outcomes."""

    def __init__(self):
        self.calls: List[Tuple[str, DeployOutcome]] = []
        self._lock = threading.Lock()

    def notify(self, url: str, outcome: DeployOutcome) -> bool:
        with self._lock:
            self.calls.append((url, outcome))
        return True


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture
def api_repo() -> RepositoryConfig:
    return RepositoryConfig(name="api", token="abc123", script="deploy.sh", tags=["latest", "v2"])


@pytest.fixture
def configuration(api_repo) -> AppConfiguration:
    """Config with two repositories; ``api`` is the one most tests hit."""
    return AppConfiguration(
        port=8080,
        logPath="",
        repos=[
            api_repo,
            RepositoryConfig(name="web", token="web-token", script="/opt/web/deploy.sh", tags=["stable"]),
        ],
    )


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def webhook_body():
    """Docker Hub push payload for tag ``latest``."""
    return {
        "callback_url": "http://x/cb",
        "push_data": {
            "images": ["sha256:0123"],
            "pushed_at": 1.417566161e9,
            "pusher": "trustedbuilder",
            "tag": "latest",
        },
        "repository": {
            "comment_count": 0,
            "date_created": 1.417494799e9,
            "description": "",
            "dockerfile": "FROM python:3.12\n",
            "full_description": "",
            "is_official": False,
            "is_private": True,
            "is_trusted": True,
            "name": "api",
            "namespace": "acme",
            "owner": "acme",
            "repo_name": "acme/api",
            "repo_url": "https://registry.hub.docker.com/u/acme/api/",
            "star_count": 0,
            "status": "Active",
        },
    }
