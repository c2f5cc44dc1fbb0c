"""
FastAPI app
"""

from contextlib import asynccontextmanager
from importlib.metadata import version

from fastapi import FastAPI

from oauthbridge.core.models import HealthResponse

from .dependencies import (
    SETTINGS,
    IdentityBackendDependency,
    get_token_store,
    logger,
)
from .errors import add_exception_handlers
from .oauth import oauth_app
from .user import user_app

settings = SETTINGS()


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.settings = settings

    store = get_token_store()

    if settings.create_tables:
        await store.manager.create_all()
        await logger().ainfo("api.lifespan.tables_created")

    yield

    await store.manager.dispose()


app = FastAPI(
    lifespan=lifespan,
    title="OAuth Bridge API",
    summary=(
        "Authorization code flow that lets third-party clients obtain a bearer "
        "token for a user's account without seeing their identity provider "
        "credentials."
    ),
    version=version("oauthbridge"),
)

app = add_exception_handlers(app)

app.include_router(oauth_app)
app.include_router(user_app)


@app.get("/health", response_model=HealthResponse, tags=["Status"])
async def health(backend: IdentityBackendDependency) -> HealthResponse:
    return HealthResponse(backend=backend.name if backend is not None else None)
