"""Async client for the LastMile deployment API."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Type, TypeVar, Union

import httpx
import pydantic

from lastmile.config import LastMileConfig, __version__
from lastmile.errors import ConfigError, LastMileError, PollTimeoutError, TransportError, ValidationError, error_from_response
from lastmile.events import EventCallback, EventEmitter, EventKind
from lastmile.models import (
    DeleteResult,
    DeploymentConfig,
    DeploymentList,
    DeploymentResult,
    DeploymentStatusDetail,
    ValidationResult,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 2000
DEFAULT_MAX_POLL_ATTEMPTS = 150  # about five minutes at the default interval

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


class LastMile:
    """Submit deployments, follow their progress and manage them."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        debug: Optional[bool] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        overrides = {
            "api_key": api_key,
            "api_url": api_url,
            "debug": debug,
            "timeout": timeout,
        }
        self.config = LastMileConfig(**{k: v for k, v in overrides.items() if v is not None})
        if not self.config.api_key:
            raise ConfigError("LastMile SDK requires an API key")

        self.last_deployment_status: Optional[DeploymentResult] = None
        self._events = EventEmitter()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._debug("LastMile SDK initialized")

    async def __aenter__(self) -> "LastMile":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _debug(self, message: str, *args: Any) -> None:
        if self.config.debug:
            logger.info(message, *args)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.api_url.rstrip("/"),
                headers={
                    "Content-Type": "application/json",
                    "X-API-Key": self.config.api_key,
                    "User-Agent": f"lastmile-python/{__version__}",
                },
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        client = self._get_client()
        self._debug("Making request to: %s %s", method, path)
        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            error = TransportError(f"Request timed out after {self.config.timeout}ms")
            logger.error("Request failed: %s", error)
            raise error from e
        except httpx.HTTPError as e:
            error = TransportError(f"Request failed: {e}")
            logger.error("Request failed: %s", error)
            raise error from e

        if resp.is_error:
            error = error_from_response(resp)
            logger.error("Request failed: %s", error)
            raise error
        try:
            return resp.json()
        except ValueError as e:
            error = TransportError(f"Invalid JSON response: {e}", status=resp.status_code)
            logger.error("Request failed: %s", error)
            raise error from e

    @staticmethod
    def _parse(model: Type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            error = TransportError(f"Unexpected response for {model.__name__}: {e.error_count()} invalid field(s)")
            logger.error("Request failed: %s", error)
            raise error from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # Deployments

    async def deploy(self, deployment: Union[DeploymentConfig, Mapping[str, Any], None]) -> DeploymentResult:
        """
        Submit code for deployment.

        Raises ValidationError without touching the network when code or
        projectName is missing. Emits deployStart, then deploySuccess or
        deployError.
        """
        if deployment is None:
            raise ValidationError("Deployment requires code")
        if not isinstance(deployment, DeploymentConfig):
            try:
                deployment = DeploymentConfig.model_validate(dict(deployment))
            except pydantic.ValidationError as e:
                raise ValidationError(f"Invalid deployment configuration: {e}") from e
        if not deployment.code:
            raise ValidationError("Deployment requires code")
        if not deployment.project_name:
            raise ValidationError("Deployment requires a project name")

        self._debug("Starting deployment: %s", deployment.project_name)
        self._events.emit(EventKind.DEPLOY_START, {"projectName": deployment.project_name})

        payload = deployment.to_payload()
        payload["timestamp"] = datetime.now(timezone.utc).isoformat()
        try:
            data = await self._request("POST", "/v1/deploy", json=payload)
            result = self._parse(DeploymentResult, data)
        except Exception as e:
            logger.error("Deployment failed: %s", e)
            message = e.message if isinstance(e, LastMileError) else str(e)
            self._events.emit(EventKind.DEPLOY_ERROR, {"error": message})
            raise

        self._debug("Deployment successful: %s", result.deployment_id)
        self.last_deployment_status = result
        self._events.emit(EventKind.DEPLOY_SUCCESS, result)
        return result

    async def get_status(self, deployment_id: str) -> DeploymentStatusDetail:
        """Fetch the current status of a deployment and emit statusUpdate."""
        if not deployment_id:
            raise ValidationError("Deployment ID is required")

        self._debug("Checking status for: %s", deployment_id)
        data = await self._request("GET", f"/v1/deployments/{deployment_id}")
        status = self._parse(DeploymentStatusDetail, data)
        self._events.emit(EventKind.STATUS_UPDATE, status)
        return status

    async def poll_status(
        self,
        deployment_id: str,
        interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        max_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS,
    ) -> DeploymentStatusDetail:
        """
        Poll until the deployment is completed or failed.

        Any request error aborts polling immediately. Raises PollTimeoutError
        once max_attempts statuses came back non-terminal.
        """
        attempts = 0
        while True:
            status = await self.get_status(deployment_id)
            attempts += 1
            if status.status.is_terminal:
                return status
            if attempts >= max_attempts:
                raise PollTimeoutError(
                    f"Polling timeout: deployment {deployment_id} still {status.status.value} "
                    f"after {attempts} attempts"
                )
            await asyncio.sleep(interval_ms / 1000)

    async def list_deployments(self, limit: int = 20, offset: int = 0) -> DeploymentList:
        self._debug("Listing deployments")
        data = await self._request("GET", "/v1/deployments", params={"limit": limit, "offset": offset})
        return self._parse(DeploymentList, data)

    async def delete_deployment(self, deployment_id: str) -> DeleteResult:
        if not deployment_id:
            raise ValidationError("Deployment ID is required")

        self._debug("Deleting deployment: %s", deployment_id)
        data = await self._request("DELETE", f"/v1/deployments/{deployment_id}")
        result = self._parse(DeleteResult, data)
        self._events.emit(EventKind.DEPLOYMENT_DELETED, {"deploymentId": deployment_id})
        return result

    async def validate_config(self) -> ValidationResult:
        """Check the configured API key against the server."""
        self._debug("Validating configuration")
        data = await self._request("POST", "/v1/validate", json={"apiKey": self.config.api_key})
        return self._parse(ValidationResult, data)

    # Events

    def on(self, event: Union[EventKind, str], callback: EventCallback) -> None:
        self._events.on(event, callback)

    def off(self, event: Union[EventKind, str], callback: Optional[EventCallback] = None) -> None:
        self._events.off(event, callback)

    @staticmethod
    def get_version() -> str:
        return __version__
