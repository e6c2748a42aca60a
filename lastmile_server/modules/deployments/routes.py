from fastapi import APIRouter, Depends, Query
from lastmile_server.core.dependencies import enforce_rate_limit, get_registry
from lastmile_server.modules.deployments.schemas import (
    DeploymentCreate, DeploymentCreatedResponse, DeploymentStatusResponse, DeploymentSummary,
    DeploymentListResponse, DeploymentDeleteResponse, DeploymentLogsResponse
)
from lastmile_server.modules.deployments.service import DeploymentRegistry
from typing import Optional

router = APIRouter(tags=["deployments"], dependencies=[Depends(enforce_rate_limit)])


@router.post("/deploy", response_model=DeploymentCreatedResponse, status_code=201)
async def create_deployment(
    deployment_data: DeploymentCreate,
    registry: DeploymentRegistry = Depends(get_registry)
):
    """Queue a deployment; stages advance in the background"""
    record = registry.create(deployment_data)
    return DeploymentCreatedResponse.from_record(record)


@router.get("/deployments", response_model=DeploymentListResponse)
async def list_deployments(
    limit: Optional[str] = Query(default=None),
    offset: Optional[str] = Query(default=None),
    registry: DeploymentRegistry = Depends(get_registry)
):
    """List deployments, newest first"""
    page, total, limit_value, offset_value = registry.list_deployments(limit, offset)
    return DeploymentListResponse(
        deployments=[DeploymentSummary.from_record(r) for r in page],
        total=total,
        limit=limit_value,
        offset=offset_value,
    )


@router.get("/deployments/{deployment_id}", response_model=DeploymentStatusResponse)
async def get_deployment(
    deployment_id: str,
    registry: DeploymentRegistry = Depends(get_registry)
):
    """Get deployment status by ID"""
    return DeploymentStatusResponse.from_record(registry.get(deployment_id))


@router.delete("/deployments/{deployment_id}", response_model=DeploymentDeleteResponse)
async def delete_deployment(
    deployment_id: str,
    registry: DeploymentRegistry = Depends(get_registry)
):
    deleted_id = registry.delete(deployment_id)
    return DeploymentDeleteResponse(deployment_id=deleted_id)


@router.get("/deployments/{deployment_id}/logs", response_model=DeploymentLogsResponse)
async def get_deployment_logs(
    deployment_id: str,
    registry: DeploymentRegistry = Depends(get_registry)
):
    """Return the deployment's log lines"""
    return DeploymentLogsResponse(
        deployment_id=deployment_id,
        logs=registry.get_logs(deployment_id),
    )
