"""API resource discovery through the Kubernetes dynamic client."""

from typing import List, Set

from kubernetes import client
from kubernetes.dynamic import DynamicClient

from rbacmanager.core.exceptions import CollaboratorError
from rbacmanager.core.logging import get_logger

logger = get_logger(__name__)


class KubernetesResourceDiscovery:
    """Lists the resource type names the cluster serves."""

    def __init__(self, api_client: client.ApiClient):
        self.api_client = api_client

    def _resources(self) -> List:
        try:
            dynamic_client = DynamicClient(self.api_client)
            return dynamic_client.resources.search()
        except Exception as e:
            logger.error(f"API resource discovery failed: {e}")
            raise CollaboratorError("api-discovery", str(e)) from e

    def resource_names(self) -> Set[str]:
        return {
            resource.name
            for resource in self._resources()
            if getattr(resource, "name", None)
        }

    def describe(self) -> List[str]:
        """Human-readable ``name (group/version)`` entries, sorted."""
        entries = {
            f"{resource.name} ({resource.group_version})"
            for resource in self._resources()
            if getattr(resource, "name", None)
        }
        return sorted(entries)


class StaticResourceDiscovery:
    """Fixed resource list; used when the cluster is not reachable and in tests."""

    def __init__(self, names):
        self.names = set(names)

    def resource_names(self) -> Set[str]:
        return set(self.names)

    def describe(self) -> List[str]:
        return sorted(self.names)
