"""Pattern catalogs (pure data)."""

from ci_migrator.patterns.catalog import (
    CATALOGS,
    DEFAULT_PROFILE,
    SUPPORTED_PROFILES,
    PatternCatalog,
    PatternGroup,
    get_catalog,
)

__all__ = [
    "CATALOGS",
    "DEFAULT_PROFILE",
    "SUPPORTED_PROFILES",
    "PatternCatalog",
    "PatternGroup",
    "get_catalog",
]
