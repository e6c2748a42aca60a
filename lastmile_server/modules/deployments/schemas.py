from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any, List
from datetime import datetime
from lastmile_server.modules.deployments.models import DeploymentRecord, DeploymentStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeploymentCreate(CamelModel):
    # code and projectName are checked by the registry so a missing field maps to 400
    code: Optional[str] = None
    project_name: Optional[str] = None
    framework: Optional[str] = None
    environment: Optional[Dict[str, Any]] = None
    extra_config: Optional[Dict[str, Any]] = Field(default=None, alias="config")


class DeploymentCreatedResponse(CamelModel):
    deployment_id: str
    project_name: str
    status: DeploymentStatus
    message: str = "Deployment initiated successfully"
    created_at: datetime
    url: Optional[str] = None

    @classmethod
    def from_record(cls, record: DeploymentRecord) -> "DeploymentCreatedResponse":
        return cls(
            deployment_id=record.deployment_id,
            project_name=record.project_name,
            status=record.status,
            created_at=record.created_at,
            url=record.url,
        )


class DeploymentSummary(CamelModel):
    deployment_id: str
    project_name: str
    framework: str
    status: DeploymentStatus
    url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: DeploymentRecord) -> "DeploymentSummary":
        return cls(**record.model_dump(include=set(cls.model_fields)))


class DeploymentStatusResponse(DeploymentSummary):
    logs: List[str] = []
    error: Optional[str] = None


class DeploymentListResponse(CamelModel):
    deployments: List[DeploymentSummary]
    total: int
    limit: int
    offset: int


class DeploymentDeleteResponse(CamelModel):
    message: str = "Deployment deleted successfully"
    deployment_id: str


class DeploymentLogsResponse(CamelModel):
    deployment_id: str
    logs: List[str]
