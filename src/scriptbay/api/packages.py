"""Package catalog route."""

from fastapi import APIRouter

from scriptbay.catalog import load_catalog
from scriptbay.models import CatalogResponse

router = APIRouter()


@router.get("/packages", response_model=CatalogResponse)
async def list_packages() -> CatalogResponse:
    """List installable packages grouped by category."""
    return CatalogResponse(categories=list(load_catalog()))
