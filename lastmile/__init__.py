"""LastMile Deployment Platform SDK."""

from lastmile.client import LastMile
from lastmile.config import LastMileConfig, __version__
from lastmile.errors import (
    AuthError,
    ConfigError,
    InternalError,
    LastMileError,
    NotFoundError,
    PollTimeoutError,
    TransportError,
    ValidationError,
)
from lastmile.events import EventKind
from lastmile.models import (
    DeleteResult,
    DeploymentConfig,
    DeploymentList,
    DeploymentResult,
    DeploymentStatus,
    DeploymentStatusDetail,
    ValidationResult,
)

__all__ = [
    "__version__",
    "LastMile",
    "LastMileConfig",
    "EventKind",
    "LastMileError",
    "ConfigError",
    "ValidationError",
    "PollTimeoutError",
    "TransportError",
    "AuthError",
    "NotFoundError",
    "InternalError",
    "DeploymentConfig",
    "DeploymentResult",
    "DeploymentStatus",
    "DeploymentStatusDetail",
    "DeploymentList",
    "DeleteResult",
    "ValidationResult",
]
