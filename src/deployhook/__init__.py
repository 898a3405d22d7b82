"""
Deploy Hook Service
===================

Registry push webhook listener that runs per-repository deploy scripts.

Usage:
    # Run the server
    deployhook --config config.json

    # Or build the app yourself
    from src.deployhook import create_app, load_configuration
    app = create_app(load_configuration("config.json"))
"""

from src.deployhook.config import AppConfiguration, RepositoryConfig, ServerSettings, get_settings, load_configuration
from src.deployhook.dispatcher import DeployDispatcher
from src.deployhook.errors import ConfigurationError, DeployHookError, WebhookDecodeError
from src.deployhook.main import create_app
from src.deployhook.models import DeployOutcome, DeployState, InboundWebhook
from src.deployhook.notifier import CallbackNotifier
from src.deployhook.runner import ScriptResult, ScriptRunner

__all__ = [
    "AppConfiguration",
    "RepositoryConfig",
    "ServerSettings",
    "get_settings",
    "load_configuration",
    "DeployDispatcher",
    "ConfigurationError",
    "DeployHookError",
    "WebhookDecodeError",
    "create_app",
    "DeployOutcome",
    "DeployState",
    "InboundWebhook",
    "CallbackNotifier",
    "ScriptResult",
    "ScriptRunner",
]
