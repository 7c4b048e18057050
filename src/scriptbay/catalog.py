"""Static catalog of installable packages, bundled with the code."""

import tomllib
from functools import lru_cache
from pathlib import Path

from scriptbay.models import Category

CATALOG_PATH = Path(__file__).resolve().parent / "packages.toml"


def parse_catalog(text: str) -> list[Category]:
    """Parse catalog TOML into categories, preserving file order."""
    data = tomllib.loads(text)
    return [Category.model_validate(c) for c in data.get("category", [])]


@lru_cache(maxsize=1)
def load_catalog() -> tuple[Category, ...]:
    """Load the bundled catalog once. Callers must not mutate the result."""
    return tuple(parse_catalog(CATALOG_PATH.read_text(encoding="utf-8")))
