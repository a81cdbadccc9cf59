"""Read-only RBAC views: subjects, permissions, role activity and usage."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from rbacmanager.api.dependencies.rbac import (get_rbac_engine,
                                               get_resource_discovery,
                                               get_subject_directory)
from rbacmanager.core.logging import get_logger
from rbacmanager.models.policy import RoleKind, Subject, SubjectKind
from rbacmanager.models.schemas import (CompareRolesRequest, RoleSelector,
                                        SubjectEntry, SubjectRegistration)
from rbacmanager.repositories.discovery import KubernetesResourceDiscovery
from rbacmanager.repositories.subjects import SubjectDirectoryRepository
from rbacmanager.services.index import BindingRef
from rbacmanager.services.rbac import RBACEngine

logger = get_logger(__name__)

router = APIRouter()


def subject_from_path(
    kind: SubjectKind, name: str, namespace: Optional[str] = None
) -> Subject:
    if kind == SubjectKind.SERVICE_ACCOUNT and not namespace:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="namespace is required for ServiceAccount subjects",
        )
    if kind != SubjectKind.SERVICE_ACCOUNT:
        namespace = None
    return Subject(kind=kind, name=name, namespace=namespace)


def usage_to_dict(refs: List[BindingRef]) -> List[Dict[str, Any]]:
    return [
        {
            "binding": ref.binding.name,
            "kind": ref.binding.kind.value,
            "scope": ref.scope.to_dict(),
            "roleRef": ref.binding.role_ref.to_dict(),
            "subjects": [s.to_dict() for s in ref.binding.subjects],
        }
        for ref in refs
    ]


# ---------------------------------------------------------------------------
# Subjects
# ---------------------------------------------------------------------------


@router.get(
    "/subjects",
    response_model=List[SubjectEntry],
    summary="List Subjects",
    description="Subjects named by any binding, merged with the subject directory",
)
def list_subjects(
    kind: Optional[SubjectKind] = Query(None, description="Filter by subject kind"),
    engine: RBACEngine = Depends(get_rbac_engine),
    directory: SubjectDirectoryRepository = Depends(get_subject_directory),
) -> List[SubjectEntry]:
    sources = directory.sources()
    entries: Dict[tuple, SubjectEntry] = {}

    for subject in directory.list_subjects(kind):
        entries[subject.identity] = SubjectEntry(
            kind=subject.kind,
            name=subject.name,
            namespace=subject.namespace,
            sources=[sources.get(subject.id, "directory")],
        )

    for subject in engine.list_subjects(kind):
        entry = entries.get(subject.identity)
        if entry is None:
            entries[subject.identity] = SubjectEntry(
                kind=subject.kind,
                name=subject.name,
                namespace=subject.namespace,
                sources=["binding"],
            )
        elif "binding" not in entry.sources:
            entry.sources.append("binding")

    return list(entries.values())


@router.post(
    "/subjects",
    status_code=status.HTTP_201_CREATED,
    response_model=SubjectEntry,
    summary="Register Subject",
    description="Add a subject to the directory of known subjects",
)
def register_subject(
    registration: SubjectRegistration,
    directory: SubjectDirectoryRepository = Depends(get_subject_directory),
) -> SubjectEntry:
    subject = registration.to_subject()
    directory.register(subject, source=registration.source)
    return SubjectEntry(
        kind=subject.kind,
        name=subject.name,
        namespace=subject.namespace,
        sources=[registration.source],
    )


@router.delete(
    "/subjects/{kind}/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Subject",
    description="Drop a subject from the directory of known subjects",
)
def remove_subject(
    kind: SubjectKind,
    name: str,
    namespace: Optional[str] = Query(None, description="Service account namespace"),
    directory: SubjectDirectoryRepository = Depends(get_subject_directory),
) -> Response:
    subject = subject_from_path(kind, name, namespace)
    if not directory.remove(subject):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject {subject.id} is not registered",
        )
    logger.info(f"Removed subject {subject.id}", extra={"subject": subject.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/subjects/{kind}/{name}/permissions",
    summary="Effective Permissions",
    description="Every rule granted to a subject, with scope and provenance",
)
def subject_permissions(
    kind: SubjectKind,
    name: str,
    namespace: Optional[str] = Query(None, description="Service account namespace"),
    engine: RBACEngine = Depends(get_rbac_engine),
) -> Dict[str, Any]:
    subject = subject_from_path(kind, name, namespace)
    result = engine.resolve(subject)

    logger.info(
        f"Resolved {len(result.grants)} grants for {subject.id}",
        extra={"subject": subject.id},
    )
    return result.to_dict()


@router.get(
    "/subjects/{kind}/{name}/details",
    summary="Subject Details",
    description="Bindings naming a subject and the roles they reference",
)
def subject_details(
    kind: SubjectKind,
    name: str,
    namespace: Optional[str] = Query(None, description="Service account namespace"),
    engine: RBACEngine = Depends(get_rbac_engine),
) -> Dict[str, Any]:
    subject = subject_from_path(kind, name, namespace)
    return engine.subject_details(subject).to_dict()


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


@router.get(
    "/roles",
    summary="List Roles",
    description="Roles with an active flag; all namespaces when none is given",
)
def list_roles(
    namespace: Optional[str] = Query(None, description="Namespace filter"),
    engine: RBACEngine = Depends(get_rbac_engine),
) -> List[Dict[str, Any]]:
    roles = engine.catalog.roles_in(namespace) if namespace else engine.catalog.roles
    return [
        {**role.to_dict(), "active": engine.is_role_active(role.name, role.namespace)}
        for role in roles
    ]


@router.get(
    "/clusterroles",
    summary="List Cluster Roles",
    description="Cluster roles with an active flag",
)
def list_cluster_roles(
    engine: RBACEngine = Depends(get_rbac_engine),
) -> List[Dict[str, Any]]:
    return [
        {**role.to_dict(), "active": engine.is_cluster_role_active(role.name)}
        for role in engine.catalog.cluster_roles
    ]


@router.get(
    "/roles/{namespace}/{name}/usage",
    summary="Role Usage",
    description="RoleBindings referencing a Role",
)
def role_usage(
    namespace: str,
    name: str,
    engine: RBACEngine = Depends(get_rbac_engine),
) -> Dict[str, Any]:
    role = engine.catalog.find_role(name, namespace)
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Role {namespace}/{name} not found",
        )
    return {
        "role": role.to_dict(),
        "active": engine.is_role_active(name, namespace),
        "bindings": usage_to_dict(engine.role_usage(name, namespace)),
    }


@router.get(
    "/clusterroles/{name}/usage",
    summary="Cluster Role Usage",
    description="Every binding granting a ClusterRole, namespaced ones included",
)
def cluster_role_usage(
    name: str,
    namespace: Optional[str] = Query(None, description="Limit RoleBindings to a namespace"),
    engine: RBACEngine = Depends(get_rbac_engine),
) -> Dict[str, Any]:
    cluster_role = engine.catalog.find_cluster_role(name)
    if cluster_role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"ClusterRole {name} not found",
        )
    return {
        "clusterRole": cluster_role.to_dict(),
        "active": engine.is_cluster_role_active(name),
        "bindings": usage_to_dict(engine.cluster_role_usage(name, namespace)),
    }


def _select_role(engine: RBACEngine, selector: RoleSelector):
    if selector.kind == RoleKind.ROLE:
        role = engine.catalog.find_role(selector.name, selector.namespace)
        label = f"Role {selector.namespace}/{selector.name}"
    else:
        role = engine.catalog.find_cluster_role(selector.name)
        label = f"ClusterRole {selector.name}"
    if role is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found"
        )
    return role


@router.post(
    "/roles/compare",
    summary="Compare Roles",
    description="Rule-level difference between two roles",
)
def compare_roles(
    body: CompareRolesRequest,
    engine: RBACEngine = Depends(get_rbac_engine),
) -> Dict[str, Any]:
    first = _select_role(engine, body.first)
    second = _select_role(engine, body.second)
    return engine.compare_roles(first, second).to_dict()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


@router.get(
    "/apiresources",
    summary="API Resources",
    description="Resource types served by the cluster",
)
def api_resources(
    discovery: KubernetesResourceDiscovery = Depends(get_resource_discovery),
) -> Dict[str, List[str]]:
    return {"resources": discovery.describe()}
