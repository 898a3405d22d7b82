"""
FastAPI Dependency Injection
============================

Routes reach the loaded configuration and the deploy dispatcher through
these functions instead of module globals. Both live on ``app.state`` and
are set by ``create_app``.

Can be overridden in tests:
    app.dependency_overrides[get_dispatcher] = lambda: fake_dispatcher
"""

from fastapi import Request

from src.deployhook.config import AppConfiguration
from src.deployhook.dispatcher import DeployDispatcher


def get_configuration(request: Request) -> AppConfiguration:
    return request.app.state.configuration


def get_dispatcher(request: Request) -> DeployDispatcher:
    return request.app.state.dispatcher
