"""
Deploy Hook Routes
==================

- POST /deploy/{token} - registry push webhook
- GET  /health         - health check

Webhook responses have empty bodies; the status code is the whole answer:

- 201: token known, tag allowed, deploy scheduled
- 404: token known, tag not managed
- 400: unknown token or malformed body
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from src.deployhook.config import AppConfiguration
from src.deployhook.dependencies import get_configuration, get_dispatcher
from src.deployhook.dispatcher import DeployDispatcher
from src.deployhook.errors import WebhookDecodeError
from src.deployhook.models import HealthResponse, InboundWebhook

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Deploy"])


def empty_response(status_code: int) -> Response:
    return Response(status_code=status_code, media_type="application/json")


async def decode_webhook(request: Request) -> InboundWebhook:
    """Parse the request body, raising ``WebhookDecodeError`` if it is not a webhook."""
    body = await request.body()
    try:
        return InboundWebhook.model_validate_json(body)
    except ValidationError as e:
        raise WebhookDecodeError(
            "Cannot decode webhook body",
            errors=e.error_count(),
            first=e.errors()[0]["msg"] if e.errors() else "",
        ) from e


# =============================================================================
# WEBHOOK
# =============================================================================

@router.post("/deploy/{token}", status_code=201)
async def deploy(
    token: str,
    webhook: InboundWebhook = Depends(decode_webhook),
    configuration: AppConfiguration = Depends(get_configuration),
    dispatcher: DeployDispatcher = Depends(get_dispatcher),
):
    repo = configuration.find_repository(token)
    if repo is None:
        logger.info("Deploy request with unknown token rejected")
        return empty_response(400)

    tag = webhook.pushed_tag
    if not repo.allows(tag):
        logger.info(f"Push detected for {repo.name}, but tag {tag!r} is not managed.")
        return empty_response(404)

    logger.info(f"Found token. Deploy for {repo.name} (tag {tag!r})")
    dispatcher.dispatch(repo, webhook)
    return empty_response(201)


# =============================================================================
# HEALTH CHECK
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health(
    configuration: AppConfiguration = Depends(get_configuration),
    dispatcher: DeployDispatcher = Depends(get_dispatcher),
):
    return HealthResponse.now(
        repositories=configuration.repository_names,
        pending_deploys=dispatcher.pending(),
    )
