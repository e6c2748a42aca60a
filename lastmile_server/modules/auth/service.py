import logging
from typing import Optional
from lastmile_server.core.errors import AuthError
from lastmile_server.database.memory_store import InMemoryStore
from lastmile_server.modules.auth.models import ApiKeyData

logger = logging.getLogger(__name__)


class ApiKeyService:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def register_key(self, api_key: str, data: ApiKeyData) -> None:
        self.store.set_api_key(api_key, data)

    def authenticate(self, api_key: Optional[str]) -> ApiKeyData:
        """Resolve an X-API-Key header value to its account"""
        if not api_key:
            raise AuthError(
                "Please provide an API key in the X-API-Key header",
                error="API key is required",
            )
        key_data = self.store.get_api_key(api_key)
        if key_data is None:
            logger.warning("Rejected request with unknown API key")
            raise AuthError(
                "The provided API key is not valid",
                error="Invalid API key",
            )
        return key_data
