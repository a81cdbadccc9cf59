"""Kubernetes API client management."""

from functools import lru_cache

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from rbacmanager.config.settings import KubeConfigMode, settings
from rbacmanager.core.exceptions import CollaboratorError
from rbacmanager.core.logging import get_logger

logger = get_logger(__name__)


def _load_config() -> None:
    mode = settings.kube_config_mode

    if mode in (KubeConfigMode.AUTO, KubeConfigMode.IN_CLUSTER):
        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes config")
            return
        except ConfigException:
            if mode == KubeConfigMode.IN_CLUSTER:
                raise

    config.load_kube_config(
        config_file=settings.kubeconfig_path, context=settings.kube_context
    )
    logger.info("Loaded local Kubernetes config")


@lru_cache(maxsize=1)
def get_api_client() -> client.ApiClient:
    """Get a shared Kubernetes API client."""
    try:
        _load_config()
    except ConfigException as e:
        logger.error(f"Kubernetes client unavailable: {e}")
        raise CollaboratorError("kubernetes", f"Cannot load configuration: {e}") from e
    return client.ApiClient()


def close_api_client():
    """Close the shared Kubernetes API client, if one was created."""
    if get_api_client.cache_info().currsize:
        get_api_client().close()
        get_api_client.cache_clear()
        logger.info("Kubernetes API client closed")
