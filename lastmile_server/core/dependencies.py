"""
Core dependencies for API key protection, rate limiting and service lookup
"""

from fastapi import Depends, Header, Request
from limits import parse
from slowapi import Limiter
from slowapi.util import get_remote_address
from typing import Optional
from lastmile_server.core.errors import RateLimitError
from lastmile_server.database.memory_store import InMemoryStore
from lastmile_server.modules.auth.models import ApiKeyData
from lastmile_server.modules.auth.service import ApiKeyService
from lastmile_server.modules.deployments.service import DeploymentRegistry


def get_store(request: Request) -> InMemoryStore:
    return request.app.state.store


def get_registry(request: Request) -> DeploymentRegistry:
    return request.app.state.registry


def get_api_key_service(store: InMemoryStore = Depends(get_store)) -> ApiKeyService:
    return ApiKeyService(store)


def api_key_or_remote_address(request: Request) -> str:
    """Rate-limit per API key; anonymous requests fall back to client address."""
    return request.headers.get("x-api-key") or get_remote_address(request)


def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    service: ApiKeyService = Depends(get_api_key_service)
) -> ApiKeyData:
    """Reject the request unless X-API-Key names a known account"""
    key_data = service.authenticate(x_api_key)
    request.state.api_key_data = key_data
    return key_data


def enforce_rate_limit(
    request: Request,
    key_data: ApiKeyData = Depends(require_api_key)
) -> None:
    """
    Count the request against the application-wide limit and the key's own
    per-minute allowance. Raises RateLimitError once either is used up.
    """
    limiter: Limiter = request.app.state.limiter
    identity = api_key_or_remote_address(request)
    checks = (
        ("global", request.app.state.settings.rate_limit),
        ("key", f"{key_data.rate_limit}/minute"),
    )
    for scope, limit in checks:
        if not limiter.limiter.hit(parse(limit), identity, scope):
            raise RateLimitError(f"Too many requests: limit is {limit}")
