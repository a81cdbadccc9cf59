"""Repositories package for data access layer."""

from .catalog import (KubernetesCatalogProvider, PolicyCatalogProvider,
                      StaticCatalogProvider)
from .discovery import KubernetesResourceDiscovery, StaticResourceDiscovery
from .subjects import SubjectDirectoryRepository

__all__ = [
    "PolicyCatalogProvider",
    "KubernetesCatalogProvider",
    "StaticCatalogProvider",
    "KubernetesResourceDiscovery",
    "StaticResourceDiscovery",
    "SubjectDirectoryRepository",
]
