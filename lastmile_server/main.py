import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from starlette.exceptions import HTTPException as StarletteHTTPException

from lastmile_server.config import Settings, settings as default_settings
from lastmile_server.core.dependencies import api_key_or_remote_address
from lastmile_server.core.errors import APIError
from lastmile_server.database.memory_store import InMemoryStore
from lastmile_server.modules.auth import routes as auth_routes
from lastmile_server.modules.auth.models import ApiKeyData
from lastmile_server.modules.auth.service import ApiKeyService
from lastmile_server.modules.deployments import routes as deployments_routes
from lastmile_server.modules.deployments.service import DeploymentRegistry

logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def create_app(settings: Optional[Settings] = None, store: Optional[InMemoryStore] = None, auto_advance: bool = True) -> FastAPI:
    settings = settings or default_settings
    store = store or InMemoryStore()

    ApiKeyService(store).register_key(
        settings.demo_api_key,
        ApiKeyData(
            name=settings.demo_account_name,
            tier=settings.demo_account_tier,
            rate_limit=settings.demo_rate_limit,
        ),
    )
    registry = DeploymentRegistry(
        store,
        platform_domain=settings.platform_domain,
        stage_delay=settings.stage_delay_seconds,
        default_framework=settings.default_framework,
        auto_advance=auto_advance,
    )

    # Limits are checked per request by core.dependencies.enforce_rate_limit
    limiter = Limiter(key_func=api_key_or_remote_address)
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        debug=settings.debug,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry
    app.state.limiter = limiter

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": "Invalid request", "message": detail})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # unmatched paths and methods both read as a missing route
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={"error": "Not found", "message": f"Route {request.method} {request.url.path} not found"},
            )
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail), "message": str(exc.detail)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        message = "An unexpected error occurred" if settings.is_production else str(exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "message": message})

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include module routes
    app.include_router(auth_routes.router, prefix="/v1")
    app.include_router(deployments_routes.router, prefix="/v1")

    @app.on_event("startup")
    async def startup_event():
        logger.info(f"{settings.app_name} {settings.version} starting ({settings.environment})")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Application shutdown")
        await registry.shutdown()

    @app.get("/")
    async def root():
        return {"message": "Welcome to the LastMile Deployment Platform API", "status": "healthy"}

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.version,
        }

    return app


app = create_app()
