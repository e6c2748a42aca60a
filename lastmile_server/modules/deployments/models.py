# In-memory table: deployments
# Records live in InMemoryStore keyed by deployment_id.
# Only DeploymentRegistry writes to them; readers get deep copies.

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class DeploymentStatus(str, Enum):
    QUEUED = "queued"
    BUILDING = "building"
    TESTING = "testing"
    DEPLOYING = "deploying"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DeploymentStatus.COMPLETED, DeploymentStatus.FAILED)


# Forward-only progression driven by the deployment worker
STAGE_ORDER: List[DeploymentStatus] = [
    DeploymentStatus.QUEUED,
    DeploymentStatus.BUILDING,
    DeploymentStatus.TESTING,
    DeploymentStatus.DEPLOYING,
    DeploymentStatus.COMPLETED,
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentRecord(BaseModel):
    deployment_id: str
    project_name: str
    framework: str
    environment: Dict[str, Any] = Field(default_factory=dict)
    extra_config: Dict[str, Any] = Field(default_factory=dict)
    status: DeploymentStatus = DeploymentStatus.QUEUED
    url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    error: Optional[str] = None
    logs: List[str] = Field(default_factory=list)

    def next_stage(self) -> Optional[DeploymentStatus]:
        """Stage that follows the current one, or None when terminal."""
        if self.status.is_terminal:
            return None
        return STAGE_ORDER[STAGE_ORDER.index(self.status) + 1]
