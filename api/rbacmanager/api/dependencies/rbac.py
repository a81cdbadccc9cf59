"""RBAC engine dependencies: one catalog snapshot and one engine per request."""

from fastapi import Depends
from redis import RedisError

from rbacmanager.core.exceptions import CollaboratorError
from rbacmanager.core.logging import get_logger
from rbacmanager.db.kubernetes import get_api_client
from rbacmanager.db.redis import get_redis_client
from rbacmanager.models.policy import PolicyCatalog
from rbacmanager.repositories.catalog import (KubernetesCatalogProvider,
                                              PolicyCatalogProvider)
from rbacmanager.repositories.discovery import KubernetesResourceDiscovery
from rbacmanager.repositories.subjects import SubjectDirectoryRepository
from rbacmanager.services.rbac import RBACEngine, create_rbac_engine

logger = get_logger(__name__)


def get_catalog_provider() -> PolicyCatalogProvider:
    """Catalog provider for the configured cluster."""
    return KubernetesCatalogProvider(get_api_client())


def get_resource_discovery() -> KubernetesResourceDiscovery:
    """API resource discovery for the configured cluster."""
    return KubernetesResourceDiscovery(get_api_client())


def get_subject_directory() -> SubjectDirectoryRepository:
    """Subject directory backed by the shared Redis pool."""
    try:
        return SubjectDirectoryRepository(get_redis_client())
    except RedisError as e:
        raise CollaboratorError("subject-directory", str(e)) from e


def get_catalog(
    provider: PolicyCatalogProvider = Depends(get_catalog_provider),
) -> PolicyCatalog:
    """Fetch one snapshot for the current request."""
    catalog = provider.fetch_catalog()
    if catalog.is_empty:
        logger.warning("Policy catalog is empty; every query will resolve to nothing")
    return catalog


def get_rbac_engine(catalog: PolicyCatalog = Depends(get_catalog)) -> RBACEngine:
    """
    FastAPI dependency building an engine over a freshly fetched snapshot.

    Read-only views need nothing but the catalog, so Redis and API discovery
    are not touched. The engine and its index live for this request only.

    Usage:
        @router.get("/roles")
        async def list_roles(engine: RBACEngine = Depends(get_rbac_engine)):
            ...
    """
    return create_rbac_engine(catalog)


def get_simulation_engine(
    catalog: PolicyCatalog = Depends(get_catalog),
    directory: SubjectDirectoryRepository = Depends(get_subject_directory),
    discovery: KubernetesResourceDiscovery = Depends(get_resource_discovery),
) -> RBACEngine:
    """Engine wired with the subject directory and API discovery for simulation."""
    return create_rbac_engine(catalog, directory=directory, discovery=discovery)
