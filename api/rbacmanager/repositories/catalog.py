"""Policy catalog provider backed by the Kubernetes RBAC API."""

from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Protocol, Tuple

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from rbacmanager.core.exceptions import CollaboratorError
from rbacmanager.core.logging import get_logger
from rbacmanager.models.policy import (ClusterRole, ClusterRoleBinding,
                                       PolicyCatalog, PolicyRule, Role,
                                       RoleBinding, RoleRef, Subject,
                                       SubjectKind)

logger = get_logger(__name__)


class PolicyCatalogProvider(Protocol):
    """Source of policy catalog snapshots."""

    def fetch_catalog(self, namespace: Optional[str] = None) -> PolicyCatalog: ...


def _strings(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    return tuple(values or ())


def rule_from_k8s(rule: Any) -> PolicyRule:
    return PolicyRule(
        verbs=_strings(rule.verbs),
        api_groups=_strings(rule.api_groups),
        resources=_strings(rule.resources),
        resource_names=_strings(rule.resource_names),
    )


def subjects_from_k8s(subjects: Optional[List[Any]]) -> Tuple[Subject, ...]:
    """Convert binding subjects, dropping kinds the engine does not model."""
    converted = []
    for subject in subjects or ():
        try:
            kind = SubjectKind(subject.kind)
        except ValueError:
            logger.debug(f"Ignoring subject {subject.name} of kind {subject.kind}")
            continue
        namespace = subject.namespace if kind == SubjectKind.SERVICE_ACCOUNT else None
        converted.append(Subject(kind=kind, name=subject.name or "", namespace=namespace))
    return tuple(converted)


def role_ref_from_k8s(role_ref: Any) -> RoleRef:
    if role_ref is None:
        return RoleRef(kind="", name="")
    return RoleRef(kind=role_ref.kind or "", name=role_ref.name or "")


def role_from_k8s(obj: Any) -> Role:
    return Role(
        name=obj.metadata.name,
        namespace=obj.metadata.namespace,
        rules=tuple(rule_from_k8s(rule) for rule in obj.rules or ()),
    )


def cluster_role_from_k8s(obj: Any) -> ClusterRole:
    return ClusterRole(
        name=obj.metadata.name,
        rules=tuple(rule_from_k8s(rule) for rule in obj.rules or ()),
    )


def role_binding_from_k8s(obj: Any) -> RoleBinding:
    return RoleBinding(
        name=obj.metadata.name,
        namespace=obj.metadata.namespace,
        role_ref=role_ref_from_k8s(obj.role_ref),
        subjects=subjects_from_k8s(obj.subjects),
    )


def cluster_role_binding_from_k8s(obj: Any) -> ClusterRoleBinding:
    return ClusterRoleBinding(
        name=obj.metadata.name,
        role_ref=role_ref_from_k8s(obj.role_ref),
        subjects=subjects_from_k8s(obj.subjects),
    )


class KubernetesCatalogProvider:
    """Fetches a consistent-per-request snapshot of RBAC objects.

    ClusterRoles and ClusterRoleBindings are always fetched in full; Roles and
    RoleBindings are limited to ``namespace`` when one is given.
    """

    def __init__(self, api_client: client.ApiClient):
        self.rbac = client.RbacAuthorizationV1Api(api_client)

    def _list(self, what: str, call, *args):
        try:
            return call(*args).items or []
        except (ApiException, HTTPError) as e:
            logger.error(f"Error fetching {what}: {e}")
            raise CollaboratorError("policy-catalog", f"Error fetching {what}: {e}") from e

    def fetch_catalog(self, namespace: Optional[str] = None) -> PolicyCatalog:
        if namespace:
            roles = self._list("roles", self.rbac.list_namespaced_role, namespace)
            role_bindings = self._list(
                "role bindings", self.rbac.list_namespaced_role_binding, namespace
            )
        else:
            roles = self._list("roles", self.rbac.list_role_for_all_namespaces)
            role_bindings = self._list(
                "role bindings", self.rbac.list_role_binding_for_all_namespaces
            )

        cluster_roles = self._list("cluster roles", self.rbac.list_cluster_role)
        cluster_role_bindings = self._list(
            "cluster role bindings", self.rbac.list_cluster_role_binding
        )

        catalog = PolicyCatalog(
            roles=tuple(role_from_k8s(r) for r in roles),
            cluster_roles=tuple(cluster_role_from_k8s(r) for r in cluster_roles),
            role_bindings=tuple(role_binding_from_k8s(b) for b in role_bindings),
            cluster_role_bindings=tuple(
                cluster_role_binding_from_k8s(b) for b in cluster_role_bindings
            ),
            namespace=namespace,
            fetched_at=datetime.now(timezone.utc).isoformat(),
        )

        logger.debug(
            f"Fetched catalog: {len(catalog.roles)} roles, "
            f"{len(catalog.cluster_roles)} cluster roles, "
            f"{len(catalog.role_bindings)} role bindings, "
            f"{len(catalog.cluster_role_bindings)} cluster role bindings",
            extra={"namespace": namespace or "*"},
        )
        return catalog


class StaticCatalogProvider:
    """Serves a fixed snapshot; used for offline analysis and tests."""

    def __init__(self, catalog: PolicyCatalog):
        self.catalog = catalog

    def fetch_catalog(self, namespace: Optional[str] = None) -> PolicyCatalog:
        if not namespace:
            return self.catalog
        return PolicyCatalog(
            roles=self.catalog.roles_in(namespace),
            cluster_roles=self.catalog.cluster_roles,
            role_bindings=tuple(
                b for b in self.catalog.role_bindings if b.namespace == namespace
            ),
            cluster_role_bindings=self.catalog.cluster_role_bindings,
            namespace=namespace,
            fetched_at=self.catalog.fetched_at,
        )
