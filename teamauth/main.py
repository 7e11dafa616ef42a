from typing import Optional
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from teamauth.core import config
from teamauth.core.application import Application
from teamauth.core.errors import CascadeError, TeamAuthError
from teamauth.features.authorisations.routes import router as authorisation_router
from teamauth.features.groups.routes import router as group_router
from teamauth.features.organisations.routes import router as organisation_router
from teamauth.features.permissions.routes import router as ability_router
from teamauth.features.users.routes import router as user_router
from teamauth.limiter import limiter
from teamauth.services import create_application
from teamauth.utils import get_logger


log = get_logger(__name__)


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("teamauth.main.app.features."), timing=timing, tags=tags))


def create_app(application: Optional[Application] = None) -> FastAPI:
    """
    Build the HTTP application.

    An injected `application` must already be set up, otherwise one is
    created from the configuration on startup and closed on shutdown.
    """
    log.info("Initializing server")
    app = FastAPI(
        title="TeamAuth",
        description="Multi-tenant authorization for organisations, groups and their members",
        version="0.1.0",
        docs_url="/docs" if config.ENABLE_DOCS else None,
        redoc_url="/redoc" if config.ENABLE_DOCS else None,
        openapi_url="/openapi.json" if config.ENABLE_DOCS else None
    )
    app.state.limiter = limiter
    app.state.application = application

    app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("teamauth.main", app))

    if config.ENABLE_DOCS:
        log.warning("Docs enabled")
    if config.ALLOW_ORIGIN:
        log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[config.ALLOW_ORIGIN],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError):
        errors = dict()
        for error in exc.errors():
            if "loc" not in error or "msg" not in error:
                continue
            # ("body", "permissions") -> "permissions", nested fields keep their path
            key = ".".join(str(part) for part in error["loc"][1:]) or "root"
            errors[key] = error["msg"]
        log.info("Request validation error %s", errors)
        return JSONResponse(status_code=400, content=jsonable_encoder(errors))

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
        return JSONResponse({"error": "You are going too fast"}, status_code=429)

    @app.exception_handler(TeamAuthError)
    async def teamauth_error_handler(request: Request, exc: TeamAuthError):
        if isinstance(exc, CascadeError):
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            log.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(jsonable_encoder(exc.to_dict()), status_code=exc.status_code)

    @app.on_event("startup")
    async def startup():
        if app.state.application is None:
            app.state.application = create_application()
            await app.state.application.setup()
            app.state.owns_application = True

    @app.on_event("shutdown")
    async def shutdown():
        if getattr(app.state, "owns_application", False):
            await app.state.application.close()
            log.info("Application closed")

    @app.get("/")
    async def root():
        """Root endpoint - API health check."""
        return {
            "message": "TeamAuth API",
            "version": "0.1.0",
            "status": "online",
            "docs": "/docs" if config.ENABLE_DOCS else None,
            "authentication": {
                "info": "Protected endpoints require Bearer token in Authorization header",
                "public_endpoints": ["POST /users", "/abilities"]
            }
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(user_router, prefix="/users", tags=["users"])
    app.include_router(organisation_router, prefix="/organisations", tags=["organisations"])
    # Groups live in the database of their organisation
    app.include_router(group_router, prefix="/organisations", tags=["groups"])
    app.include_router(authorisation_router, prefix="/authorisations", tags=["authorisations"])
    app.include_router(ability_router, prefix="/abilities", tags=["abilities"])
    return app


app = create_app()
