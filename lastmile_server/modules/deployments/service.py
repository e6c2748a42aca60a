import asyncio
import logging
import uuid
from typing import Any, List, Optional, Tuple
from lastmile_server.core.errors import NotFoundError, ValidationError
from lastmile_server.database.memory_store import InMemoryStore
from lastmile_server.modules.deployments.deployment_worker import advance_deployment_async
from lastmile_server.modules.deployments.models import DeploymentRecord, DeploymentStatus, utcnow
from lastmile_server.modules.deployments.schemas import DeploymentCreate
from lastmile_server.modules.deployments.task_registry import TaskRegistry

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 20
DEFAULT_LIST_OFFSET = 0


def _coerce_page_value(value: Any, default: int, minimum: int = 0) -> int:
    """Parse a pagination value; anything non-numeric or below minimum falls back to default."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= minimum else default


class DeploymentRegistry:
    def __init__(
        self,
        store: InMemoryStore,
        platform_domain: str = "lastmile.app",
        stage_delay: float = 2.0,
        default_framework: str = "auto-detect",
        auto_advance: bool = True,
    ):
        self.store = store
        self.platform_domain = platform_domain
        self.stage_delay = stage_delay
        self.default_framework = default_framework
        self.auto_advance = auto_advance
        self.tasks = TaskRegistry()

    def _new_deployment_id(self) -> str:
        while True:
            deployment_id = f"dep_{uuid.uuid4().hex}"
            if not self.store.has_deployment(deployment_id):
                return deployment_id

    def build_url(self, project_name: str) -> str:
        return f"https://{project_name}.{self.platform_domain}"

    def _require(self, deployment_id: str) -> DeploymentRecord:
        record = self.store.get_deployment(deployment_id)
        if record is None:
            raise NotFoundError(
                f"No deployment found with ID: {deployment_id}",
                error="Deployment not found",
            )
        return record

    def create(self, payload: DeploymentCreate) -> DeploymentRecord:
        """Store a queued deployment and start advancing it in the background"""
        if not payload.code or not payload.project_name:
            raise ValidationError("Both code and projectName are required")

        record = DeploymentRecord(
            deployment_id=self._new_deployment_id(),
            project_name=payload.project_name,
            framework=payload.framework or self.default_framework,
            environment=dict(payload.environment or {}),
            extra_config=dict(payload.extra_config or {}),
        )
        self.store.insert_deployment(record)
        logger.info(f"Deployment {record.deployment_id} queued for project {record.project_name}")

        if self.auto_advance:
            task = asyncio.create_task(advance_deployment_async(self, record.deployment_id))
            self.tasks.register(record.deployment_id, task)

        return record.model_copy(deep=True)

    def step(self, deployment_id: str) -> Optional[DeploymentStatus]:
        """
        Move a deployment one stage forward.
        Returns the new status, or None if the deployment is gone or already terminal.
        """
        record = self.store.get_deployment(deployment_id)
        if record is None:
            return None
        next_status = record.next_stage()
        if next_status is None:
            return None

        update_data = {"status": next_status, "updated_at": utcnow()}
        if next_status == DeploymentStatus.COMPLETED:
            update_data["url"] = self.build_url(record.project_name)

        self.store.update_deployment(deployment_id, update_data)
        logger.debug(f"Deployment {deployment_id} -> {next_status.value}")
        return next_status

    def mark_failed(self, deployment_id: str, error_message: str) -> bool:
        """Move a non-terminal deployment to failed. Returns False if it is gone or already terminal."""
        record = self.store.get_deployment(deployment_id)
        if record is None or record.status.is_terminal:
            return False
        self.store.update_deployment(deployment_id, {
            "status": DeploymentStatus.FAILED,
            "error": error_message,
            "updated_at": utcnow(),
        })
        logger.error(f"Deployment {deployment_id} failed: {error_message}")
        return True

    def get(self, deployment_id: str) -> DeploymentRecord:
        """Get deployment by ID"""
        return self._require(deployment_id).model_copy(deep=True)

    def list_deployments(self, limit: Any = None, offset: Any = None) -> Tuple[List[DeploymentRecord], int, int, int]:
        """
        Page through deployments, newest first.
        Returns (page, total, limit, offset) with limit/offset after defaulting.
        """
        limit = _coerce_page_value(limit, DEFAULT_LIST_LIMIT, minimum=1)
        offset = _coerce_page_value(offset, DEFAULT_LIST_OFFSET)
        # store order is newest-inserted first; the stable sort keeps that for equal timestamps
        records = sorted(self.store.list_deployments(), key=lambda r: r.created_at, reverse=True)
        page = [r.model_copy(deep=True) for r in records[offset:offset + limit]]
        return page, self.store.count_deployments(), limit, offset

    def delete(self, deployment_id: str) -> str:
        """Remove a deployment and stop its advancement"""
        self._require(deployment_id)
        self.store.delete_deployment(deployment_id)
        self.tasks.cancel(deployment_id)
        logger.info(f"Deployment {deployment_id} deleted")
        return deployment_id

    def get_logs(self, deployment_id: str) -> List[str]:
        return list(self._require(deployment_id).logs)

    async def shutdown(self) -> None:
        cancelled = await self.tasks.cancel_all()
        if cancelled:
            logger.info(f"Cancelled {cancelled} in-flight deployment(s)")
