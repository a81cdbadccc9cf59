"""FastAPI dependencies package."""

from .rbac import (get_catalog, get_catalog_provider, get_rbac_engine,
                   get_resource_discovery, get_simulation_engine,
                   get_subject_directory)

__all__ = [
    "get_catalog",
    "get_catalog_provider",
    "get_rbac_engine",
    "get_resource_discovery",
    "get_simulation_engine",
    "get_subject_directory",
]
