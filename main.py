"""
Main API module for the Short-link Registry.

Responsibilities:
    - Expose REST endpoints for creating, listing and deleting short links
    - Redirect short codes to their destinations and count the clicks
    - Render every domain error as a stable {"error": kind, ...} body

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory Storage by default; Postgres selected via SHORTLINK_STORAGE_BACKEND.
    - LinkRegistry owns create/list/delete, RedirectResolver owns lookups,
      ClickRecorder runs click side effects on its own thread pool.
    - Authentication is delegated to an IdentityProvider (bearer tokens).

LLM Prompt Example:
    "Explain how to structure a FastAPI service with an application factory,
    injected dependencies, and a clean separation between API and business logic."
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from auth.dependencies import get_current_user
from auth.service import IdentityProvider, StaticTokenIdentityProvider
from shortlink_registry.analytics.analytics import ClickRecorder
from shortlink_registry.analytics.base import BaseClickRecorder
from shortlink_registry.config import settings
from shortlink_registry.errors import InvalidInput, ShortLinkError
from shortlink_registry.manager.link_registry import LinkRegistry
from shortlink_registry.manager.redirect_resolver import RedirectResolver
from shortlink_registry.models import RequestMetadata, ShortLink
from shortlink_registry.storage.base import BaseStorage
from shortlink_registry.storage.storage_factory import get_storage


class CreateLinkRequest(BaseModel):
    """Request payload for creating a new short link."""
    destination_url: Optional[str] = None
    code: Optional[str] = None
    label: Optional[str] = None
    expires_at: Optional[str] = None


# request body attribute -> field name reported in InvalidInput
_REQUEST_FIELDS = {
    "destination_url": "destinationUrl",
    "code": "code",
    "label": "label",
    "expires_at": "expiresAt",
}


def create_app(
    storage: Optional[BaseStorage] = None,
    identity_provider: Optional[IdentityProvider] = None,
    click_recorder: Optional[BaseClickRecorder] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage: Storage backend; defaults to get_storage() (env-driven).
        identity_provider: Token verifier; defaults to the static env token table.
        click_recorder: Click side effects; defaults to a ClickRecorder on `storage`.

    Returns:
        FastAPI: A fully configured application instance with isolated state.

    Why an app factory?
        - Enables per-test isolation in pytest.
        - Encourages dependency injection and easy swapping of implementations.
        - Avoids accidental global state across workers/processes.
    """
    log = logging.getLogger("shortlink.app")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    storage = storage or get_storage()  # ← chooses memory or postgres based on env
    identity_provider = identity_provider or StaticTokenIdentityProvider.from_env()
    click_recorder = click_recorder or ClickRecorder(storage)
    registry = LinkRegistry(storage=storage)
    resolver = RedirectResolver(storage=storage, click_recorder=click_recorder)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if isinstance(click_recorder, ClickRecorder):
            click_recorder.shutdown(wait=True)

    app = FastAPI(
        title="Short-link Registry",
        description="Short-link registry with expiring links and click counting",
        docs_url="/docs",  # Swagger UI endpoint
        lifespan=lifespan,
    )
    app.state.storage = storage
    app.state.identity_provider = identity_provider
    app.state.click_recorder = click_recorder
    app.state.registry = registry
    app.state.resolver = resolver

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    log.info("Short-link storage backend: %s", type(storage).__name__)

    # ----------------------------------------------------------------
    # Errors
    # ----------------------------------------------------------------
    @app.exception_handler(ShortLinkError)
    async def shortlink_error_handler(request: Request, exc: ShortLinkError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        if exc.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Badly typed or unparseable bodies are InvalidInput too, not FastAPI's bare 422."""
        field = "body"
        errors = exc.errors()
        if errors:
            loc = errors[0].get("loc") or ()
            if len(loc) >= 2 and isinstance(loc[1], str):
                field = _REQUEST_FIELDS.get(loc[1], loc[1])
        err = InvalidInput(field)
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    def _render(link: ShortLink, request: Request) -> Dict[str, Any]:
        data = link.to_public_dict()
        data["short_url"] = str(request.url_for("redirect_link", code=link.code))
        return data

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.post("/api/links", status_code=201)
    def create_link(
        req: CreateLinkRequest,
        request: Request,
        user_id: str = Depends(get_current_user),
    ) -> Dict[str, Any]:
        """
        Create a short link owned by the caller.

        Returns:
            dict: The public link fields plus a clickable `short_url`.
        """
        link = registry.create(
            owner_id=user_id,
            destination_url=req.destination_url,
            code=req.code,
            label=req.label,
            expires_at=req.expires_at,
        )
        return _render(link, request)

    @app.get("/api/links")
    def list_links(request: Request, user_id: str = Depends(get_current_user)) -> List[Dict[str, Any]]:
        """The caller's links, newest first."""
        return [_render(link, request) for link in registry.list(user_id)]

    @app.delete("/api/links/{link_id}", status_code=204)
    def delete_link(link_id: str, user_id: str = Depends(get_current_user)) -> Response:
        registry.delete(user_id, link_id)
        return Response(status_code=204)

    @app.get("/{code}", name="redirect_link")
    def redirect_link(code: str, request: Request) -> Response:
        """
        Redirect to the link's destination and record the click.

        Expired links answer 410, unknown codes 404; the click side effects
        never change the response.
        """
        metadata = RequestMetadata(
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
        destination = resolver.resolve(code, metadata)
        return RedirectResponse(url=destination, status_code=302)

    return app


# Backward compatibility for uvicorn and legacy imports:
# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT)
