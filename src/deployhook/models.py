"""
Deploy Hook Data Models
=======================

Pydantic models for registry push webhooks (Docker Hub shape) and the
deploy outcome posted back to the caller's callback URL.
"""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class PushData(BaseModel):
    """``push_data`` section of a registry push webhook."""

    model_config = ConfigDict(extra="allow")

    images: List[str] = Field(default_factory=list)
    pushed_at: float = 0
    pusher: str = ""
    tag: str = ""


class RegistryRepository(BaseModel):
    """``repository`` section of a registry push webhook. Carried, not used."""

    model_config = ConfigDict(extra="allow")

    comment_count: int = 0
    date_created: float = 0
    description: str = ""
    dockerfile: str = ""
    full_description: str = ""
    is_official: bool = False
    is_private: bool = False
    is_trusted: bool = False
    name: str = ""
    namespace: str = ""
    owner: str = ""
    repo_name: str = ""
    repo_url: str = ""
    star_count: int = 0
    status: str = ""


class InboundWebhook(BaseModel):
    """Registry push notification. Missing fields take zero values."""

    model_config = ConfigDict(extra="allow")

    callback_url: str = ""
    push_data: PushData = Field(default_factory=PushData)
    repository: RegistryRepository = Field(default_factory=RegistryRepository)

    @property
    def pushed_tag(self) -> str:
        return self.push_data.tag

    @property
    def repository_name(self) -> str:
        return self.repository.repo_name or self.repository.name


class DeployState(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class DeployOutcome(BaseModel):
    """Status payload posted to the callback URL."""

    state: DeployState = DeployState.SUCCESS
    description: str = ""
    context: str = "Deploy"
    target_url: str = ""

    @classmethod
    def success(cls) -> "DeployOutcome":
        return cls(state=DeployState.SUCCESS)

    @classmethod
    def failure(cls, description: str = "") -> "DeployOutcome":
        return cls(state=DeployState.FAILURE, description=description)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    timestamp: str
    repositories: List[str]
    pending_deploys: int

    @classmethod
    def now(cls, repositories: List[str], pending_deploys: int) -> "HealthResponse":
        return cls(
            status="healthy",
            service="deployhook",
            timestamp=datetime.now().isoformat(),
            repositories=repositories,
            pending_deploys=pending_deploys,
        )
