from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


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


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DeploymentConfig(CamelModel):
    code: Optional[str] = None
    project_name: Optional[str] = None
    framework: str = "auto-detect"
    environment: Dict[str, Any] = Field(default_factory=dict)
    extra_config: Dict[str, Any] = Field(default_factory=dict, alias="config")


class DeploymentResult(CamelModel):
    deployment_id: str
    project_name: str
    status: DeploymentStatus
    url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    message: Optional[str] = None
    error: Optional[str] = None


class DeploymentStatusDetail(CamelModel):
    deployment_id: str
    project_name: str
    framework: str
    status: DeploymentStatus
    url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    logs: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class DeploymentList(CamelModel):
    deployments: List[DeploymentStatusDetail]
    total: int
    limit: int
    offset: int


class DeleteResult(CamelModel):
    message: str
    deployment_id: str


class ValidationResult(CamelModel):
    valid: bool
    account: Optional[str] = None
    tier: Optional[str] = None
