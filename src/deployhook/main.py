"""
Deploy Hook Server
==================

HTTP listener for registry push notifications (Docker Hub webhooks).
A push whose URL token and tag match a configured repository runs that
repository's deploy script in the background and reports back to the
webhook's callback URL.

Usage:
    deployhook --config config.json
    python -m src.deployhook.main --config config.json --port 8080

Exit codes:
    0  server stopped normally
    1  configuration could not be loaded
    2  log file could not be opened
"""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, List

import uvicorn
from fastapi import FastAPI, Request, Response

from src.deployhook.config import AppConfiguration, ServerSettings, get_settings, load_configuration
from src.deployhook.dispatcher import DeployDispatcher
from src.deployhook.errors import ConfigurationError, WebhookDecodeError
from src.deployhook.notifier import CallbackNotifier
from src.deployhook.routes import router
from src.deployhook.runner import ScriptRunner

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_LOG_ERROR = 2


# =============================================================================
# LOGGING
# =============================================================================

def configure_logging(log_file: Optional[Path] = None, level: str = "INFO") -> None:
    """
    Send log records to stdout and, if given, append them to ``log_file``.

    Raises:
        OSError: the log file cannot be opened for appending.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
        force=True,
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

async def webhook_decode_error_handler(request: Request, exc: WebhookDecodeError) -> Response:
    logger.warning(f"Rejected webhook on {request.url.path}: {exc}")
    return Response(status_code=exc.status_code, media_type="application/json")


def build_dispatcher(settings: ServerSettings) -> DeployDispatcher:
    return DeployDispatcher(
        runner=ScriptRunner(timeout=settings.script_timeout),
        notifier=CallbackNotifier(timeout=settings.callback_timeout),
        callback_workers=settings.callback_workers,
        report_exit_status=settings.report_exit_status,
        serialize_deploys=settings.serialize_deploys,
    )


def create_app(
    configuration: AppConfiguration,
    settings: Optional[ServerSettings] = None,
    dispatcher: Optional[DeployDispatcher] = None,
) -> FastAPI:
    """
    Build the FastAPI app around an already loaded configuration.

    Args:
        configuration: Repository list, read-only for the app's lifetime
        settings: Process settings, defaults to ``get_settings()``
        dispatcher: Background executor, built from ``settings`` if omitted
    """
    settings = settings or get_settings()
    dispatcher = dispatcher or build_dispatcher(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Serving {len(configuration.repos)} repositories: {', '.join(configuration.repository_names)}")
        yield
        dispatcher.shutdown(wait=False)

    app = FastAPI(
        title="Deploy Hook",
        description="Runs deploy scripts on registry push webhooks",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.configuration = configuration
    app.state.dispatcher = dispatcher
    app.add_exception_handler(WebhookDecodeError, webhook_decode_error_handler)
    app.include_router(router)
    return app


# =============================================================================
# MAIN
# =============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Registry webhook deploy listener")
    parser.add_argument("--config", default=None, help="Path to the JSON config file")
    parser.add_argument("--host", default=None, help="Interface to bind")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (overrides config file)")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    level = "DEBUG" if args.verbose else settings.log_level

    # stdout only until the config tells us where the log file lives
    configure_logging(level=level)

    config_file = args.config or settings.config_file
    try:
        configuration = load_configuration(config_file)
    except ConfigurationError as e:
        logger.critical(f"Cannot load configuration: {e}")
        return EXIT_CONFIG_ERROR

    try:
        configure_logging(configuration.log_file, level=level)
    except OSError as e:
        logger.critical(f"Error opening log file {configuration.log_file}: {e}")
        return EXIT_LOG_ERROR

    host = args.host or settings.host
    port = args.port if args.port is not None else configuration.port

    app = create_app(configuration, settings)
    logger.info(f"Starting deploy hook on {host}:{port} (config: {config_file})")
    uvicorn.run(app, host=host, port=port, log_config=None)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
