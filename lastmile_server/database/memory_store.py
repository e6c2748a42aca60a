from typing import Any, Dict, List, Optional
from lastmile_server.modules.auth.models import ApiKeyData
from lastmile_server.modules.deployments.models import DeploymentRecord


class InMemoryStore:
    """Process-local storage for deployments and API keys. One instance per application."""

    def __init__(self):
        self._deployments: Dict[str, DeploymentRecord] = {}
        self._api_keys: Dict[str, ApiKeyData] = {}

    # Deployments

    def insert_deployment(self, record: DeploymentRecord) -> DeploymentRecord:
        self._deployments[record.deployment_id] = record
        return record

    def get_deployment(self, deployment_id: str) -> Optional[DeploymentRecord]:
        return self._deployments.get(deployment_id)

    def has_deployment(self, deployment_id: str) -> bool:
        return deployment_id in self._deployments

    def update_deployment(self, deployment_id: str, update_data: Dict[str, Any]) -> Optional[DeploymentRecord]:
        """Apply field updates in place. Returns None if the record no longer exists."""
        record = self._deployments.get(deployment_id)
        if record is None:
            return None
        for field, value in update_data.items():
            setattr(record, field, value)
        return record

    def delete_deployment(self, deployment_id: str) -> bool:
        return self._deployments.pop(deployment_id, None) is not None

    def list_deployments(self) -> List[DeploymentRecord]:
        """All records, most recently inserted first."""
        return list(reversed(list(self._deployments.values())))

    def count_deployments(self) -> int:
        return len(self._deployments)

    # API keys

    def set_api_key(self, api_key: str, data: ApiKeyData) -> None:
        self._api_keys[api_key] = data

    def get_api_key(self, api_key: str) -> Optional[ApiKeyData]:
        return self._api_keys.get(api_key)
