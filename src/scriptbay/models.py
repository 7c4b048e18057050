"""Pydantic request/response models for the Scriptbay API."""

from pydantic import BaseModel

from scriptbay.services.runner import RunOutcome, RunState


# --- Catalog ---


class Package(BaseModel):
    """One installable package."""

    id: str
    name: str
    desc: str
    icon: str
    script: str  # relative to the fetcher's base URL


class Category(BaseModel):
    """Titled group of packages, in display order."""

    title: str
    package: list[Package] = []


class CatalogResponse(BaseModel):
    """Full package catalog."""

    categories: list[Category]


# --- Auth ---


class ValidatePasswordRequest(BaseModel):
    """Candidate sudo password."""

    password: str


class ValidatePasswordResponse(BaseModel):
    """Whether sudo accepted the password (it is cached if so)."""

    valid: bool


class AuthStatusResponse(BaseModel):
    """Whether a password is cached. Never includes the password."""

    authenticated: bool


# --- Installs ---


class InstallRequest(BaseModel):
    """Run the installer script with this name."""

    script: str


class InstallCreated(BaseModel):
    """Returned when a background install run is accepted."""

    run_id: str
    poll_url: str
    state: RunState = RunState.idle


class InstallRunResult(BaseModel):
    """Full state of a background install run, returned by the poll endpoint."""

    run_id: str
    script: str
    state: RunState
    output: list[str] = []
    outcome: RunOutcome | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
