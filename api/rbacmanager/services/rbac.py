"""RBAC resolution engine for one policy catalog snapshot."""

from typing import List, Optional

from rbacmanager.core.logging import get_logger
from rbacmanager.models.policy import PolicyCatalog, Subject, SubjectKind
from rbacmanager.services.activity import ActivityResolver
from rbacmanager.services.index import BindingRef, SubjectIndex, build_index
from rbacmanager.services.permissions import (AnyRole, EffectivePermissionResolver,
                                              GrantedRule, ResolutionResult,
                                              RoleComparison, SubjectDetails)
from rbacmanager.services.simulation import (ApiResourceDiscovery,
                                             SimulationEngine,
                                             SimulationRequest,
                                             SimulationResult,
                                             SubjectDirectory)

logger = get_logger(__name__)


class RBACEngine:
    """Answers permission, activity and simulation queries over one snapshot.

    The engine builds its subject index on construction and never mutates the
    catalog, so one instance may serve concurrent queries. Build a new engine
    for every freshly fetched snapshot.
    """

    def __init__(
        self,
        catalog: PolicyCatalog,
        directory: Optional[SubjectDirectory] = None,
        discovery: Optional[ApiResourceDiscovery] = None,
    ):
        self.catalog = catalog
        self.index: SubjectIndex = build_index(catalog)
        self.activity = ActivityResolver(self.index)
        self.permissions = EffectivePermissionResolver(self.index)
        self.simulation = SimulationEngine(
            self.index, self.permissions, directory=directory, discovery=discovery
        )
        logger.debug(
            "RBAC engine built",
            extra={"namespace": catalog.namespace or "*", **self.get_stats()},
        )

    def resolve_permissions(self, subject: Subject) -> List[GrantedRule]:
        return self.permissions.resolve(subject).grants

    def resolve(self, subject: Subject) -> ResolutionResult:
        """Grants plus the inconsistencies skipped while computing them."""
        return self.permissions.resolve(subject)

    def subject_details(self, subject: Subject) -> SubjectDetails:
        return self.permissions.details(subject)

    def list_subjects(self, kind: Optional[SubjectKind] = None) -> List[Subject]:
        return self.index.subjects(kind)

    def is_role_active(self, role_name: str, namespace: str) -> bool:
        return self.activity.is_role_active(role_name, namespace)

    def is_cluster_role_active(self, role_name: str) -> bool:
        return self.activity.is_cluster_role_active(role_name)

    def role_usage(self, role_name: str, namespace: str) -> List[BindingRef]:
        return self.activity.role_usage(role_name, namespace)

    def cluster_role_usage(
        self, role_name: str, namespace: Optional[str] = None
    ) -> List[BindingRef]:
        return self.activity.cluster_role_usage(role_name, namespace)

    def compare_roles(self, first: AnyRole, second: AnyRole) -> RoleComparison:
        return self.permissions.compare(first, second)

    def simulate(self, request: SimulationRequest) -> SimulationResult:
        return self.simulation.simulate(request)

    def get_stats(self):
        """Get snapshot statistics."""
        return {
            "roles": len(self.catalog.roles),
            "cluster_roles": len(self.catalog.cluster_roles),
            "role_bindings": len(self.catalog.role_bindings),
            "cluster_role_bindings": len(self.catalog.cluster_role_bindings),
            "subjects": len(self.index),
        }


def create_rbac_engine(
    catalog: PolicyCatalog,
    directory: Optional[SubjectDirectory] = None,
    discovery: Optional[ApiResourceDiscovery] = None,
) -> RBACEngine:
    """Create RBAC engine instance."""
    return RBACEngine(catalog, directory=directory, discovery=discovery)
