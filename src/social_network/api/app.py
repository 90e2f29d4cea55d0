"""FastAPI application factory for the admin API."""

from fastapi import FastAPI

from social_network.api.admin import router as admin_router
from social_network.app_logging import configure_logging
from social_network.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()

    app = FastAPI(title="social-network admin")
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
