"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from scriptbay.api.auth import router as auth_router
from scriptbay.api.health import router as health_router
from scriptbay.api.installs import router as installs_router
from scriptbay.api.packages import router as packages_router
from scriptbay.config import SHELL, SUDO_PATH
from scriptbay.credentials import CredentialStore
from scriptbay.services.fetcher import ScriptFetcher
from scriptbay.services.runner import InstallerRunner

logger = logging.getLogger(__name__)


def create_app(
    store: CredentialStore | None = None,
    fetcher: ScriptFetcher | None = None,
    sudo_path: str = SUDO_PATH,
    shell: str = SHELL,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Tests pass their own store, fetcher and a fake sudo; by default each app
    gets a fresh empty store and a fetcher for the public script repository.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle: wire the store, fetcher and runner."""
        script_fetcher = fetcher or ScriptFetcher()
        app.state.credential_store = store or CredentialStore()
        app.state.sudo_path = sudo_path
        app.state.runner = InstallerRunner(
            app.state.credential_store, script_fetcher, sudo_path=sudo_path, shell=shell
        )
        logger.info("Scriptbay ready (sudo=%s, shell=%s)", sudo_path, shell)

        yield

        await script_fetcher.aclose()

    app = FastAPI(title="Scriptbay", version="0.1.0", lifespan=lifespan)

    app.include_router(health_router)
    app.include_router(packages_router)
    app.include_router(auth_router)
    app.include_router(installs_router)

    return app
